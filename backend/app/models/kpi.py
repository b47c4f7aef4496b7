import uuid
from datetime import date, datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Date, Integer, Numeric, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class DailyKpiMetric(Base):
    __tablename__ = "daily_kpi_metrics"
    __table_args__ = (UniqueConstraint("tenant_id", "report_date", name="uq_kpi_tenant_date"),)

    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False)
    report_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_patrols: Mapped[int] = mapped_column(Integer, default=0)
    breaks_logged: Mapped[int] = mapped_column(Integer, default=0)
    guards_on_duty: Mapped[int] = mapped_column(Integer, default=0)
    patrol_target_pct: Mapped[float] = mapped_column(Numeric(6, 2), default=0)
    patrols_per_guard: Mapped[float] = mapped_column(Numeric(6, 2), default=0)
    uniform_compliance_pct: Mapped[float] = mapped_column(Numeric(6, 2), default=0)
    patrols_by_guard: Mapped[dict] = mapped_column(JSON, default=dict)  # {guard_id: count}

    generated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
