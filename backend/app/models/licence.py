import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Date, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

LICENCE_ACTIVE = "Active"
LICENCE_EXPIRED = "Expired"
LICENCE_REVOKED = "Revoked"


class SiaLicence(Base):
    __tablename__ = "sia_licences"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id", ondelete="CASCADE"), nullable=False)

    licence_number: Mapped[str] = mapped_column(String(50), nullable=False)
    licence_type: Mapped[str] = mapped_column(String(100), default="Door Supervisor")
    issue_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    expiry_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=LICENCE_ACTIVE)  # Active | Expired | Revoked
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    guard: Mapped["Guard"] = relationship(back_populates="licences")
    alerts: Mapped[list["LicenceAlert"]] = relationship(
        back_populates="licence", cascade="all, delete-orphan"
    )


class LicenceAlert(Base):
    __tablename__ = "licence_alerts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    licence_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("sia_licences.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id"), nullable=False)

    level: Mapped[str] = mapped_column(String(20), nullable=False)  # Expired | Critical | Warning | Info
    days_until_expiry: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)

    acknowledged: Mapped[bool] = mapped_column(Boolean, default=False)
    acknowledged_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    acknowledged_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    licence: Mapped["SiaLicence"] = relationship(back_populates="alerts")
