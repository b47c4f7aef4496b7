import uuid
from datetime import date, datetime, time, timezone

from sqlalchemy import String, DateTime, ForeignKey, Date, Time, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base

SHIFT_LOG_ACTIONS = ("shift_start", "shift_end", "radio_check", "handover")


class ShiftLog(Base):
    __tablename__ = "shift_logs"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("guards.id"), nullable=False)
    shift_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("shifts.id"), nullable=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )


class BreakCheckQuery(Base):
    """One call of the break checker, kept for the control room."""
    __tablename__ = "break_check_queries"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("guards.id"), nullable=True)
    shift_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("shifts.id"), nullable=True)

    guard_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    query_date: Mapped[date] = mapped_column(Date, nullable=False)
    query_time: Mapped[time] = mapped_column(Time, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
