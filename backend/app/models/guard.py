import uuid
from datetime import datetime, time, timezone

from sqlalchemy import String, DateTime, Boolean, ForeignKey, Numeric, Time, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base


class Guard(Base):
    __tablename__ = "guards"

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    user_id: Mapped[uuid.UUID | None] = mapped_column(ForeignKey("users.id"), nullable=True)

    guard_code: Mapped[str | None] = mapped_column(String(20), nullable=True)  # e.g. G001
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[str] = mapped_column(String(100), default="Security Officer")
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    max_hours_per_week: Mapped[float | None] = mapped_column(Numeric(5, 2), nullable=True)
    skills: Mapped[list] = mapped_column(JSON, default=list)
    availability_preferences: Mapped[dict] = mapped_column(JSON, default=dict)
    notification_prefs: Mapped[dict] = mapped_column(JSON, default=dict)

    telegram_chat_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quiet_hours_start: Mapped[time] = mapped_column(Time, default=time(22, 0))
    quiet_hours_end: Mapped[time] = mapped_column(Time, default=time(7, 0))

    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship(back_populates="guards")
    user: Mapped["User | None"] = relationship(back_populates="guard")
    shifts: Mapped[list["Shift"]] = relationship(back_populates="guard")
    licences: Mapped[list["SiaLicence"]] = relationship(back_populates="guard")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
