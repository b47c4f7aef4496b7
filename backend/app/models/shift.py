import uuid
from datetime import date, datetime, time, timedelta, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Integer, Time, Date, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base

SHIFT_TYPES = ("Day", "Night", "Evening")
SHIFT_STATUSES = ("planned", "confirmed", "declined", "completed", "cancelled")


class ShiftTemplate(Base):
    __tablename__ = "shift_templates"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    site_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sites.id"), nullable=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    weekdays: Mapped[list] = mapped_column(JSON, nullable=False)  # [0,1,2] = Mon,Tue,Wed
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    shift_type: Mapped[str] = mapped_column(String(20), default="Day")
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    break_times: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    shifts: Mapped[list["Shift"]] = relationship(back_populates="template")


class ShiftRequirement(Base):
    """How many guards a site needs for a shift type on given weekdays."""
    __tablename__ = "shift_requirements"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    site_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("sites.id", ondelete="CASCADE"), nullable=False)

    shift_type: Mapped[str] = mapped_column(String(20), default="Day")
    weekdays: Mapped[list] = mapped_column(JSON, default=lambda: [0, 1, 2, 3, 4, 5, 6])
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    guards_required: Mapped[int] = mapped_column(Integer, default=1)
    required_skills: Mapped[list] = mapped_column(JSON, default=list)

    site: Mapped["Site"] = relationship(back_populates="requirements")


class Shift(Base):
    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    guard_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("guards.id"), nullable=True)
    site_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("sites.id"), nullable=True)
    template_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("shift_templates.id"), nullable=True)

    date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    shift_type: Mapped[str] = mapped_column(String(20), default="Day")  # Day | Night | Evening
    # [{"break_start": "HH:MM", "break_end": "HH:MM", "break_type": "paid|unpaid|meal"}]
    break_times: Mapped[list] = mapped_column(JSON, default=list)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(50), default="planned")

    # Guard response (rota confirmation)
    responded_by: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    response_note: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    guard: Mapped["Guard | None"] = relationship(back_populates="shifts")
    site: Mapped["Site | None"] = relationship()
    template: Mapped["ShiftTemplate | None"] = relationship(back_populates="shifts")

    @property
    def is_overnight(self) -> bool:
        return self.end_time < self.start_time

    @property
    def duration_hours(self) -> float:
        start = datetime.combine(self.date, self.start_time)
        end = datetime.combine(self.date, self.end_time)
        if end < start:
            end += timedelta(days=1)
        return (end - start).total_seconds() / 3600
