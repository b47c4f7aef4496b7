import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class VisitorLog(Base):
    __tablename__ = "visitor_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    site_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sites.id"), nullable=True)
    logged_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    visitor_name: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(255), nullable=True)
    host_contact: Mapped[str | None] = mapped_column(String(255), nullable=True)
    purpose: Mapped[str | None] = mapped_column(Text, nullable=True)
    escort: Mapped[str | None] = mapped_column(String(255), nullable=True)
    vehicle_reg: Mapped[str | None] = mapped_column(String(20), nullable=True)
    badge_number: Mapped[str | None] = mapped_column(String(50), nullable=True)

    arrival_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    departure_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def on_site(self) -> bool:
        return self.departure_time is None
