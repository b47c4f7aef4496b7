"""
Reports: the AI-written daily summary and the weekly client report.
"""
import logging
import uuid
from collections import Counter
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.edob import EdobEntry
from app.models.incident import IncidentReport
from app.models.kpi import DailyKpiMetric
from app.models.no_show import NoShowAlert
from app.models.report import DailySummary, WeeklyReport
from app.models.shift_log import ShiftLog
from app.models.site import Site
from app.models.visitor import VisitorLog
from app.services.ai_client import AIClient, AIServiceError
from app.utils.time_helpers import local_day_bounds, today_local

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    "You are a UK security control room supervisor. Write a concise end-of-day summary "
    "for management in British English: two or three short paragraphs, factual, no "
    "speculation. Mention notable incidents, alarms, no-shows and visitor activity."
)

SNIPPET_LINES = 2


async def collect_day_stats(db: AsyncSession, tenant_id: uuid.UUID, day: date) -> dict:
    start, end = local_day_bounds(day)

    entries = (await db.execute(
        select(EdobEntry).where(
            EdobEntry.tenant_id == tenant_id,
            EdobEntry.occurred_at >= start,
            EdobEntry.occurred_at < end,
        )
    )).scalars().all()
    incidents = (await db.execute(
        select(IncidentReport).where(
            IncidentReport.tenant_id == tenant_id, IncidentReport.incident_date == day
        )
    )).scalars().all()
    visitors = (await db.execute(
        select(VisitorLog).where(
            VisitorLog.tenant_id == tenant_id,
            VisitorLog.arrival_time >= start,
            VisitorLog.arrival_time < end,
        )
    )).scalars().all()
    shift_starts = (await db.execute(
        select(ShiftLog).where(
            ShiftLog.tenant_id == tenant_id,
            ShiftLog.action == "shift_start",
            ShiftLog.logged_at >= start,
            ShiftLog.logged_at < end,
        )
    )).scalars().all()
    no_shows = (await db.execute(
        select(NoShowAlert).where(
            NoShowAlert.tenant_id == tenant_id,
            NoShowAlert.shift_start >= start,
            NoShowAlert.shift_start < end,
        )
    )).scalars().all()

    return {
        "date": day.isoformat(),
        "edob_entries": len(entries),
        "edob_by_type": dict(Counter(e.entry_type for e in entries)),
        "edob_notes": [f"{e.entry_type}: {e.details}" for e in entries if e.details][:30],
        "incidents": [
            {"type": i.incident_type, "location": i.location, "time": i.incident_time.strftime("%H:%M")}
            for i in incidents
        ],
        "visitors": len(visitors),
        "visitor_companies": sorted({v.company for v in visitors if v.company}),
        "shift_starts": len(shift_starts),
        "no_shows": [n.message for n in no_shows],
    }


def template_summary(stats: dict) -> str:
    day = date.fromisoformat(stats["date"]).strftime("%A %d/%m/%Y")
    by_type = ", ".join(f"{n} {t}" for t, n in sorted(stats["edob_by_type"].items())) or "none"
    lines = [
        f"Daily summary for {day}.",
        f"{stats['edob_entries']} occurrence book entries were logged ({by_type}).",
        f"{stats['shift_starts']} shift starts were recorded and {stats['visitors']} visitors signed in.",
    ]
    if stats["incidents"]:
        incidents = "; ".join(f"{i['type']} at {i['location']} ({i['time']})" for i in stats["incidents"])
        lines.append(f"{len(stats['incidents'])} incident(s) reported: {incidents}.")
    else:
        lines.append("No incidents were reported.")
    if stats["no_shows"]:
        lines.append(f"{len(stats['no_shows'])} no-show alert(s) were raised.")
    return "\n".join(lines)


def summary_prompt(stats: dict) -> str:
    lines = [f"Date: {stats['date']}", f"Occurrence book entries: {stats['edob_entries']}"]
    lines += [f"- {note}" for note in stats["edob_notes"]]
    lines.append(f"Incidents: {len(stats['incidents'])}")
    lines += [f"- {i['type']} at {i['location']} ({i['time']})" for i in stats["incidents"]]
    lines.append(f"Visitors: {stats['visitors']} ({', '.join(stats['visitor_companies']) or 'no companies'})")
    lines.append(f"Shift starts logged: {stats['shift_starts']}")
    lines.append(f"No-shows: {len(stats['no_shows'])}")
    lines += [f"- {m}" for m in stats["no_shows"]]
    return "\n".join(lines)


async def generate_daily_summary(
    db: AsyncSession, tenant_id: uuid.UUID, day: date | None = None, client_factory=AIClient
) -> DailySummary:
    day = day or today_local() - timedelta(days=1)
    stats = await collect_day_stats(db, tenant_id, day)

    try:
        text = await client_factory("openai").complete(SUMMARY_SYSTEM_PROMPT, summary_prompt(stats), max_tokens=800)
        source = "ai"
    except AIServiceError as e:
        logger.warning("Daily summary %s falling back to template: %s", day, e)
        text, source = template_summary(stats), "template"

    existing = (await db.execute(
        select(DailySummary).where(DailySummary.tenant_id == tenant_id, DailySummary.summary_date == day)
    )).scalar_one_or_none()
    summary = existing or DailySummary(tenant_id=tenant_id, summary_date=day)
    summary.summary_text = text
    summary.source = source
    summary.stats = stats
    if existing is None:
        db.add(summary)
    await db.commit()
    await db.refresh(summary)
    return summary


# ── Weekly client report ──────────────────────────────────────────────────────

def previous_week(today: date) -> tuple[date, date]:
    """Monday–Sunday of the week before the current one."""
    monday = today - timedelta(days=today.weekday() + 7)
    return monday, monday + timedelta(days=6)


def _avg(values: list[float]) -> float:
    return round(sum(values) / len(values), 2) if values else 0.0


def build_weekly_markdown(
    week_start: date,
    week_end: date,
    client_name: str | None,
    kpis: list,
    summaries: list,
    incidents: list,
) -> str:
    period = f"{week_start.strftime('%d/%m/%Y')} – {week_end.strftime('%d/%m/%Y')}"
    md = [f"# Weekly Security Report{' – ' + client_name if client_name else ''}", "", f"**Period:** {period}", ""]

    md += ["## Key performance indicators", ""]
    if kpis:
        md += [
            f"- Average patrol target achieved: **{_avg([float(k.patrol_target_pct) for k in kpis])}%**",
            f"- Average uniform compliance: **{_avg([float(k.uniform_compliance_pct) for k in kpis])}%**",
            f"- Average guards on duty: **{_avg([k.guards_on_duty for k in kpis])}**",
            f"- Total patrols: **{sum(k.total_patrols for k in kpis)}**",
            "",
            "| Date | Patrols | Guards | Patrol target % | Uniform % |",
            "|---|---|---|---|---|",
        ]
        for k in sorted(kpis, key=lambda k: k.report_date):
            md.append(
                f"| {k.report_date.strftime('%a %d/%m')} | {k.total_patrols} | {k.guards_on_duty} "
                f"| {float(k.patrol_target_pct):.2f} | {float(k.uniform_compliance_pct):.2f} |"
            )
    else:
        md.append("No KPI data recorded for this period.")
    md.append("")

    md += ["## Daily highlights", ""]
    if summaries:
        for s in sorted(summaries, key=lambda s: s.summary_date):
            snippet = " ".join(line.strip() for line in s.summary_text.splitlines()[:SNIPPET_LINES] if line.strip())
            md.append(f"- **{s.summary_date.strftime('%a %d/%m')}:** {snippet}")
    else:
        md.append("No daily summaries were generated for this period.")
    md.append("")

    md += ["## Incident overview", ""]
    if incidents:
        counts = Counter(i.incident_type for i in incidents)
        md.append(f"{len(incidents)} incident(s) were reported.")
        md.append("")
        md += ["| Incident type | Count |", "|---|---|"]
        for incident_type, n in counts.most_common():
            md.append(f"| {incident_type} | {n} |")
    else:
        md.append("No incidents were reported.")
    return "\n".join(md) + "\n"


async def generate_weekly_report(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    week_start: date | None = None,
    site_id: uuid.UUID | None = None,
) -> WeeklyReport:
    if week_start is None:
        week_start, week_end = previous_week(today_local())
    else:
        week_start = week_start - timedelta(days=week_start.weekday())
        week_end = week_start + timedelta(days=6)

    client_name = None
    if site_id is not None:
        site = (await db.execute(
            select(Site).where(Site.id == site_id, Site.tenant_id == tenant_id)
        )).scalar_one_or_none()
        if site is None:
            raise LookupError("Site not found")
        client_name = site.client_name or site.name

    kpis = (await db.execute(
        select(DailyKpiMetric).where(
            DailyKpiMetric.tenant_id == tenant_id,
            DailyKpiMetric.report_date >= week_start,
            DailyKpiMetric.report_date <= week_end,
        )
    )).scalars().all()
    summaries = (await db.execute(
        select(DailySummary).where(
            DailySummary.tenant_id == tenant_id,
            DailySummary.summary_date >= week_start,
            DailySummary.summary_date <= week_end,
        )
    )).scalars().all()
    incident_q = select(IncidentReport).where(
        IncidentReport.tenant_id == tenant_id,
        IncidentReport.incident_date >= week_start,
        IncidentReport.incident_date <= week_end,
    )
    if site_id is not None:
        incident_q = incident_q.where(IncidentReport.site_id == site_id)
    incidents = (await db.execute(incident_q)).scalars().all()

    report = WeeklyReport(
        tenant_id=tenant_id,
        site_id=site_id,
        week_start=week_start,
        week_end=week_end,
        client_name=client_name,
        markdown=build_weekly_markdown(
            week_start, week_end, client_name, list(kpis), list(summaries), list(incidents)
        ),
    )
    db.add(report)
    await db.commit()
    await db.refresh(report)
    logger.info("Weekly report tenant %s %s: %d incidents", tenant_id, week_start, len(incidents))
    return report
