import uuid
from datetime import date, datetime, time, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Date, Time, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class IncidentReport(Base):
    __tablename__ = "incident_reports"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("guards.id"), nullable=True)
    site_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sites.id"), nullable=True)

    incident_date: Mapped[date] = mapped_column(Date, nullable=False)
    incident_time: Mapped[time] = mapped_column(Time, nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    incident_type: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    people_involved: Mapped[list] = mapped_column(JSON, default=list)  # [{name, role, contact}]
    actions_taken: Mapped[str | None] = mapped_column(Text, nullable=True)
    witnesses: Mapped[str | None] = mapped_column(Text, nullable=True)

    injuries: Mapped[bool] = mapped_column(Boolean, default=False)
    injury_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    police_involved: Mapped[bool] = mapped_column(Boolean, default=False)
    police_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    follow_up_required: Mapped[bool] = mapped_column(Boolean, default=False)
    follow_up_details: Mapped[str | None] = mapped_column(Text, nullable=True)

    polished_narrative: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
