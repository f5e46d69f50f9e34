"""Itinerary PDF export with ReportLab."""

import re
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from safari_connector.config import settings
from safari_connector.schemas.itinerary import ItineraryPdfRequest

BRAND_GREEN = colors.HexColor("#0B6B3A")
BRAND_INK = colors.HexColor("#0B1220")
BRAND_MUTED = colors.HexColor("#55677C")
BRAND_LINE = colors.HexColor("#E6EDF5")
BRAND_CARD = colors.HexColor("#F3F7FB")

DEFAULT_TITLE = "Safari Itinerary"


def pdf_filename(title: str | None) -> str:
    """File name for the download, derived from the itinerary title."""
    slug = re.sub(r"[^a-z0-9]+", "-", (title or "").lower()).strip("-")
    return f"{slug or 'safari-itinerary'}.pdf"


def _day_line(index: int, day: str | dict) -> str:
    if isinstance(day, dict):
        parts = [str(day.get(key)) for key in ("park_name", "lodge_name") if day.get(key)]
        activities = [a.get("name", "") if isinstance(a, dict) else str(a) for a in day.get("activities") or []]
        if activities:
            parts.append(", ".join(a for a in activities if a))
        label = day.get("title") or " / ".join(parts) or "-"
        return f"Day {day.get('day_index', index)}: {label}"
    return f"Day {index}: {day}"


def _bullets(items: list[str], style: ParagraphStyle) -> list[Paragraph]:
    return [Paragraph(f"&bull; {escape(item)}", style) for item in items if item.strip()] or [Paragraph("-", style)]


def render_itinerary_pdf(request: ItineraryPdfRequest) -> bytes:
    """Render an itinerary as an A4 PDF and return the bytes."""
    it = request.itinerary
    days = [d for d in it.days if d]
    days_count = it.days_count or max(len(days), 1)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("ItTitle", parent=styles["Title"], textColor=BRAND_GREEN, alignment=0)
    heading = ParagraphStyle("ItHeading", parent=styles["Heading2"], textColor=BRAND_INK, spaceBefore=12)
    body = ParagraphStyle("ItBody", parent=styles["Normal"], textColor=BRAND_INK, leading=14)
    muted = ParagraphStyle("ItMuted", parent=styles["Normal"], textColor=BRAND_MUTED, fontSize=9)

    story = [
        Paragraph(escape(settings.app_name), muted),
        Paragraph(escape(it.title or DEFAULT_TITLE), title_style),
        Paragraph(escape(request.subtitle), muted),
        Spacer(1, 10),
    ]

    facts = [
        ["Destination", it.destination or "-"],
        ["Duration", f"{days_count} day{'s' if days_count != 1 else ''}"],
        ["Travel date", it.travel_date.strftime("%a %d %b %Y") if it.travel_date else "-"],
        ["Budget", it.budget_range or "-"],
        ["Style", it.style or "-"],
        ["Group", it.group_type or "-"],
    ]
    if request.traveller_name:
        facts.insert(0, ["Prepared for", request.traveller_name])
    if request.email:
        facts.insert(1 if request.traveller_name else 0, ["Email", request.email])

    table = Table(facts, colWidths=[120, 360])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (0, -1), BRAND_CARD),
                ("TEXTCOLOR", (0, 0), (0, -1), BRAND_MUTED),
                ("TEXTCOLOR", (1, 0), (1, -1), BRAND_INK),
                ("GRID", (0, 0), (-1, -1), 0.5, BRAND_LINE),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
            ]
        )
    )
    story.append(table)

    if it.summary:
        story.append(Paragraph("Overview", heading))
        story.append(Paragraph(escape(it.summary), body))

    if it.experiences:
        story.append(Paragraph("Experiences", heading))
        story.extend(_bullets(it.experiences, body))

    story.append(Paragraph("Day by day", heading))
    if days:
        story.extend(Paragraph(escape(_day_line(i, day)), body) for i, day in enumerate(days, start=1))
    else:
        story.append(Paragraph("Day-by-day plan to be confirmed with your operator.", body))

    story.append(Paragraph("Included", heading))
    story.extend(_bullets(it.includes, body))
    story.append(Paragraph("Not included", heading))
    story.extend(_bullets(it.excludes, body))

    story.append(Spacer(1, 20))
    story.append(Paragraph("Prices and availability are confirmed by the operator on quotation.", muted))

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=40,
        bottomMargin=40,
        title=it.title or DEFAULT_TITLE,
    )
    doc.build(story)
    return buffer.getvalue()
