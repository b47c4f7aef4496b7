"""
PDF rendering for incident reports and weekly client reports.
Returns bytes – no file-system storage needed.
"""
from __future__ import annotations

import io
from datetime import datetime, timezone
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, HRFlowable

if TYPE_CHECKING:
    from app.models.incident import IncidentReport
    from app.models.report import WeeklyReport


# ── Colours (print friendly) ─────────────────────────────────────────────────

_NAVY   = colors.HexColor("#1E3A5F")   # header background
_LIGHT  = colors.HexColor("#F0F4F8")   # table zebra
_WHITE  = colors.white
_GRAY   = colors.HexColor("#6B7280")


def _styles():
    styles = getSampleStyleSheet()
    normal = styles["Normal"]
    normal.fontName = "Helvetica"
    normal.fontSize = 9
    normal.leading = 13
    heading = ParagraphStyle(
        "heading", parent=normal, fontSize=11, fontName="Helvetica-Bold",
        textColor=_NAVY, spaceBefore=6, spaceAfter=4,
    )
    title = ParagraphStyle(
        "title", parent=normal, fontSize=14, fontName="Helvetica-Bold",
        textColor=_NAVY, spaceAfter=6,
    )
    small_gray = ParagraphStyle("small_gray", parent=normal, fontSize=8, textColor=_GRAY)
    return normal, heading, title, small_gray


def _doc(buf: io.BytesIO) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        buf, pagesize=A4,
        leftMargin=2 * cm, rightMargin=2 * cm, topMargin=2 * cm, bottomMargin=2 * cm,
    )


def _header(left: str, right: str, width: float) -> Table:
    normal = getSampleStyleSheet()["Normal"]
    tbl = Table(
        [[Paragraph(f"<font color='white'><b>{escape(left)}</b></font>", normal),
          Paragraph(f"<font color='white'>{escape(right)}</font>", normal)]],
        colWidths=[width * 0.6, width * 0.4],
    )
    tbl.setStyle(TableStyle([
        ("BACKGROUND",  (0, 0), (-1, -1), _NAVY),
        ("ALIGN",       (1, 0), (1, 0),   "RIGHT"),
        ("TOPPADDING",  (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
        ("LEFTPADDING", (0, 0), (-1, -1), 10),
        ("RIGHTPADDING", (0, 0), (-1, -1), 10),
    ]))
    return tbl


def _grid(rows: list[list], widths: list[float], header_row: bool = False) -> Table:
    tbl = Table(rows, colWidths=widths)
    style = [
        ("GRID",        (0, 0), (-1, -1), 0.25, _GRAY),
        ("VALIGN",      (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING",  (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ]
    if header_row:
        style += [
            ("BACKGROUND", (0, 0), (-1, 0), _NAVY),
            ("TEXTCOLOR",  (0, 0), (-1, 0), _WHITE),
            ("FONTNAME",   (0, 0), (-1, 0), "Helvetica-Bold"),
        ]
    for i in range(1 if header_row else 0, len(rows)):
        if i % 2 == 0:
            style.append(("BACKGROUND", (0, i), (-1, i), _LIGHT))
    tbl.setStyle(TableStyle(style))
    return tbl


def _footer(story: list, small_gray) -> None:
    story.append(Spacer(1, 0.6 * cm))
    story.append(HRFlowable(width="100%", color=_GRAY, thickness=0.5))
    generated = datetime.now(timezone.utc).strftime("%d/%m/%Y %H:%M UTC")
    story.append(Paragraph(f"Generated by GuardOps on {generated}", small_gray))


def _yes_no(flag: bool, details: str | None) -> str:
    if not flag:
        return "No"
    return f"Yes – {details}" if details else "Yes"


# ── Incident report ───────────────────────────────────────────────────────────

def generate_incident_pdf(incident: "IncidentReport", tenant_name: str, guard_name: str | None) -> bytes:
    buf = io.BytesIO()
    doc = _doc(buf)
    normal, heading, _, small_gray = _styles()
    page_w = A4[0] - 4 * cm

    story = [_header("Incident Report", tenant_name, page_w), Spacer(1, 0.4 * cm)]

    def p(text: str | None) -> Paragraph:
        return Paragraph(escape(text or "–").replace("\n", "<br/>"), normal)

    people = "; ".join(
        " – ".join(str(v) for v in (person.get("name"), person.get("role"), person.get("contact")) if v)
        for person in incident.people_involved or []
    )
    facts = [
        [p("Date"), p(incident.incident_date.strftime("%d/%m/%Y")),
         p("Time"), p(incident.incident_time.strftime("%H:%M"))],
        [p("Location"), p(incident.location), p("Type"), p(incident.incident_type)],
        [p("Reported by"), p(guard_name), p("Reference"), p(str(incident.id)[:8].upper())],
    ]
    story.append(_grid(facts, [page_w * 0.15, page_w * 0.35, page_w * 0.15, page_w * 0.35]))

    story.append(Paragraph("Description", heading))
    story.append(p(incident.description))
    story.append(Paragraph("People involved", heading))
    story.append(p(people))
    story.append(Paragraph("Actions taken", heading))
    story.append(p(incident.actions_taken))
    story.append(Paragraph("Witnesses", heading))
    story.append(p(incident.witnesses))

    flags = [
        [p("Injuries"), p(_yes_no(incident.injuries, incident.injury_details))],
        [p("Police involved"), p(_yes_no(incident.police_involved, incident.police_details))],
        [p("Follow-up required"), p(_yes_no(incident.follow_up_required, incident.follow_up_details))],
    ]
    story.append(Spacer(1, 0.3 * cm))
    story.append(_grid(flags, [page_w * 0.25, page_w * 0.75]))

    if incident.polished_narrative:
        story.append(Paragraph("Narrative", heading))
        story.append(p(incident.polished_narrative))

    _footer(story, small_gray)
    doc.build(story)
    return buf.getvalue()


# ── Weekly client report (Markdown → PDF) ─────────────────────────────────────

def _inline(text: str) -> str:
    """Escape, then map **bold** pairs to <b>."""
    parts = escape(text).split("**")
    return "".join(f"<b>{part}</b>" if i % 2 else part for i, part in enumerate(parts))


def markdown_to_flowables(markdown: str, width: float) -> list:
    normal, heading, title, _ = _styles()
    story: list = []
    table_rows: list[list] = []

    def flush_table():
        if table_rows:
            cols = max(len(r) for r in table_rows)
            rows = [r + [""] * (cols - len(r)) for r in table_rows]
            rows = [[Paragraph(_inline(c), normal) for c in r] for r in rows]
            story.append(_grid(rows, [width / cols] * cols, header_row=True))
            story.append(Spacer(1, 0.2 * cm))
            table_rows.clear()

    for raw in markdown.splitlines():
        line = raw.rstrip()
        if line.startswith("|"):
            cells = [c.strip() for c in line.strip("|").split("|")]
            if all(set(c) <= set("-: ") for c in cells):
                continue  # separator row
            table_rows.append(cells)
            continue
        flush_table()
        if not line.strip():
            story.append(Spacer(1, 0.15 * cm))
        elif line.startswith("# "):
            story.append(Paragraph(_inline(line[2:]), title))
        elif line.startswith("## ") or line.startswith("### "):
            story.append(Paragraph(_inline(line.lstrip("#").strip()), heading))
        elif line.lstrip().startswith(("- ", "* ")):
            story.append(Paragraph("• " + _inline(line.lstrip()[2:]), normal))
        else:
            story.append(Paragraph(_inline(line), normal))
    flush_table()
    return story


def generate_weekly_report_pdf(report: "WeeklyReport", tenant_name: str) -> bytes:
    buf = io.BytesIO()
    doc = _doc(buf)
    _, _, _, small_gray = _styles()
    page_w = A4[0] - 4 * cm

    period = f"{report.week_start.strftime('%d/%m/%Y')} – {report.week_end.strftime('%d/%m/%Y')}"
    story = [_header(f"Weekly Security Report · {period}", tenant_name, page_w), Spacer(1, 0.4 * cm)]
    story += markdown_to_flowables(report.markdown, page_w)
    _footer(story, small_gray)
    doc.build(story)
    return buf.getvalue()
