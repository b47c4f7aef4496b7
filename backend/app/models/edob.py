import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

EDOB_PATROL = "Patrol"
EDOB_INCIDENT = "Incident / Observation"
EDOB_ACCESS = "Access Control"
EDOB_ALARM = "Alarm Activation"
EDOB_EQUIPMENT = "Equipment Check"
EDOB_UNIFORM = "Uniform Check"
EDOB_TYPES = (EDOB_PATROL, EDOB_INCIDENT, EDOB_ACCESS, EDOB_ALARM, EDOB_EQUIPMENT, EDOB_UNIFORM)


class EdobEntry(Base):
    """Electronic daily occurrence book entry."""
    __tablename__ = "edob_entries"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("guards.id"), nullable=True)
    site_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sites.id"), nullable=True)

    entry_type: Mapped[str] = mapped_column(String(50), nullable=False)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Type specific fields
    route: Mapped[str | None] = mapped_column(String(255), nullable=True)
    access_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    person_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    alarm_zone: Mapped[str | None] = mapped_column(String(100), nullable=True)
    alarm_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    equipment: Mapped[str | None] = mapped_column(String(255), nullable=True)
    equipment_status: Mapped[str | None] = mapped_column(String(50), nullable=True)  # OK | Needs Attention
    checklist: Mapped[list] = mapped_column(JSON, default=list)

    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
