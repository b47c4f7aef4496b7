import uuid
from datetime import date, datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, Numeric, Text, Date
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

VARIANCE_PENDING = "Pending"
VARIANCE_STATUSES = ("Pending", "Investigating", "Resolved", "No Action Required")


class PayrollInput(Base):
    """Hours actually paid to a guard for a pay period."""
    __tablename__ = "payroll_inputs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id", ondelete="CASCADE"), nullable=False)

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    hours_paid: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    guard: Mapped["Guard"] = relationship()


class PayrollVariance(Base):
    __tablename__ = "payroll_variances"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id", ondelete="CASCADE"), nullable=False)

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_hours: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False)
    paid_hours: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False)
    variance_hours: Mapped[float] = mapped_column(Numeric(6, 2), nullable=False)  # paid - scheduled

    status: Mapped[str] = mapped_column(String(30), default=VARIANCE_PENDING)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    guard: Mapped["Guard"] = relationship()
