"""
Printable PDF reports
Schedule table, per-type schedule list and the patient handover summary sheet
"""

import io
import logging
from datetime import date
from functools import lru_cache
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy.orm import Session

from ...config import PDF_FONT_NAME
from ...models import EVENT_BOTH, EVENT_PRESCRIPTION, EVENT_VISIT, Patient, PatientSummary
from ...organization import OrganizationContext
from ...shared.clock import local_now
from ..events.grouping import is_grouped
from ..events.repository import EventRepository
from ..events.schemas import EventResponse
from ..events.service import format_event, sort_events
from ..patients.service import PatientService
from ..summaries.service import SummaryService

logger = logging.getLogger(__name__)

TYPE_LABELS = {
    EVENT_VISIT: "Visit",
    EVENT_PRESCRIPTION: "Prescription",
    EVENT_BOTH: "Visit + Rx",
}

APPROACH_LABELS = {
    "normal": "Normal care OK",
    "careful": "Careful approach required",
    "contact_first": "Contact before visit",
}

CAUTION_LABELS = (
    ("caution_medication_refusal", "Medication refusal/forgetting"),
    ("caution_understanding_difficulty", "Understanding difficulty"),
    ("caution_family_presence_required", "Family/staff presence required"),
    ("caution_time_restriction", "Time/day restrictions"),
    ("caution_trouble_risk", "Trouble risk"),
)


@lru_cache(maxsize=1)
def register_font() -> str:
    """Register the built-in CID font so Japanese names render"""
    pdfmetrics.registerFont(UnicodeCIDFont(PDF_FONT_NAME))
    return PDF_FONT_NAME


def text(value: Optional[str]) -> str:
    """Escape free text for a Paragraph and keep its line breaks"""
    if not value:
        return ""
    return escape(value).replace("\n", "<br/>")


def display_name(event: EventResponse) -> str:
    """Facility name for grouped facilities, otherwise the patient"""
    if is_grouped(event):
        return event.facility_name
    return event.patient_name or event.facility_name or "-"


def status_label(event: EventResponse) -> str:
    if event.is_completed:
        return "Done"
    return "Confirmed" if event.status == "confirmed" else "Draft"


class BasePDFGenerator:
    """Shared page setup, palette and styles"""

    title = "Report"

    def __init__(self, pagesize=A4):
        self.font = register_font()
        self.page_width, self.page_height = pagesize
        self.pagesize = pagesize
        self.margin = 15 * mm
        self.content_width = self.page_width - (2 * self.margin)

        self.brand_color = colors.HexColor("#3b82f6")
        self.dark_gray = colors.HexColor("#1e293b")
        self.light_gray = colors.HexColor("#f1f5f9")
        self.caution_color = colors.HexColor("#c80000")

        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontName=self.font,
            fontSize=16,
            textColor=self.dark_gray,
            spaceAfter=6,
        )
        self.meta_style = ParagraphStyle(
            "ReportMeta",
            parent=styles["Normal"],
            fontName=self.font,
            fontSize=9,
            textColor=colors.grey,
            spaceAfter=2,
        )
        self.body_style = ParagraphStyle(
            "ReportBody",
            parent=styles["Normal"],
            fontName=self.font,
            fontSize=9,
            leading=13,
            textColor=self.dark_gray,
        )
        self.cell_style = ParagraphStyle(
            "ReportCell",
            parent=self.body_style,
            fontSize=8,
            leading=10,
        )

    def build(self, story: list) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            rightMargin=self.margin,
            leftMargin=self.margin,
            topMargin=self.margin,
            bottomMargin=self.margin,
            title=self.title,
        )
        doc.build(story, onFirstPage=self._add_page_number, onLaterPages=self._add_page_number)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes

    def header(self, title: str, *lines: str) -> list:
        story = [Paragraph(text(title), self.title_style)]
        story.extend(Paragraph(text(line), self.meta_style) for line in lines)
        story.append(Spacer(1, 5 * mm))
        return story

    def event_table(self, rows: list[list[str]], col_widths: list[float]) -> Table:
        """Striped table whose header row repeats on every page"""
        header, *body = rows
        data = [header] + [[Paragraph(text(cell), self.cell_style) for cell in row] for row in body]
        table = Table(data, colWidths=col_widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    # Header row
                    ("BACKGROUND", (0, 0), (-1, 0), self.brand_color),
                    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                    ("FONT", (0, 0), (-1, 0), self.font, 9),
                    ("BOTTOMPADDING", (0, 0), (-1, 0), 6),
                    ("TOPPADDING", (0, 0), (-1, 0), 6),
                    # Data rows
                    ("FONT", (0, 1), (-1, -1), self.font, 8),
                    ("TEXTCOLOR", (0, 1), (-1, -1), self.dark_gray),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, self.light_gray]),
                    ("GRID", (0, 0), (-1, -1), 0.5, colors.lightgrey),
                    ("LEFTPADDING", (0, 0), (-1, -1), 4),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 4),
                ]
            )
        )
        return table

    def _add_page_number(self, canvas_obj, doc):
        """Add page numbers to PDF"""
        canvas_obj.setFont(self.font, 8)
        canvas_obj.setFillColor(colors.grey)
        canvas_obj.drawRightString(
            self.page_width - self.margin, self.margin / 2, f"Page {canvas_obj.getPageNumber()}"
        )


class SchedulePDFGenerator(BasePDFGenerator):
    """All events of a period as a landscape table"""

    def __init__(self, events: list[EventResponse], start: date, end: date):
        super().__init__(landscape(A4))
        self.events = events
        self.start = start
        self.end = end
        self.title = f"Schedule {start.isoformat()} - {end.isoformat()}"

    def generate(self) -> bytes:
        logger.info(f"📄 Generating schedule PDF with {len(self.events)} events")
        story = self.header(
            "Schedule Report",
            f"Period: {self.start.isoformat()} - {self.end.isoformat()}",
            f"Generated: {local_now().strftime('%Y-%m-%d %H:%M')}",
        )

        rows = [["Date", "Type", "Patient/Facility", "Time", "Assignee", "Status"]]
        for event in self.events:
            rows.append(
                [
                    event.date.isoformat(),
                    TYPE_LABELS.get(event.type, event.type),
                    display_name(event),
                    event.time or "-",
                    event.assignee_name or "-",
                    status_label(event),
                ]
            )

        widths = [0.12, 0.12, 0.36, 0.1, 0.18, 0.12]
        story.append(self.event_table(rows, [w * self.content_width for w in widths]))
        return self.build(story)


class ScheduleListPDFGenerator(BasePDFGenerator):
    """Events of one type as a portrait list"""

    def __init__(self, events: list[EventResponse], start: date, end: date, event_type: str):
        super().__init__(A4)
        self.events = events
        self.start = start
        self.end = end
        self.event_type = event_type
        self.type_label = "Visit Schedule" if event_type == EVENT_VISIT else "Prescription Schedule"
        self.title = self.type_label

    def generate(self) -> bytes:
        logger.info(f"📄 Generating {self.event_type} schedule list with {len(self.events)} events")
        story = self.header(
            self.type_label,
            f"Period: {self.start.strftime('%Y/%m/%d')} - {self.end.strftime('%Y/%m/%d')}",
            f"Output: {local_now().strftime('%Y/%m/%d %H:%M')}",
            f"Total: {len(self.events)} events",
        )

        if not self.events:
            story.append(Paragraph("No events found for this period.", self.body_style))
            return self.build(story)

        rows = [["Date", "Time", "Patient", "Location", "Staff"]]
        for event in self.events:
            rows.append(
                [
                    event.date.strftime("%m/%d (%a)"),
                    event.time or "-",
                    event.patient_name or "-",
                    event.facility_name or "Home",
                    event.assignee_name or "-",
                ]
            )

        widths = [0.18, 0.1, 0.27, 0.27, 0.18]
        story.append(self.event_table(rows, [w * self.content_width for w in widths]))
        return self.build(story)


class PatientSummaryPDFGenerator(BasePDFGenerator):
    """One page handover sheet for the next visitor"""

    def __init__(self, patient: Patient, summary: Optional[PatientSummary]):
        super().__init__(A4)
        self.patient = patient
        self.summary = summary
        self.title = f"Patient Summary - {patient.name}"

        self.section_style = ParagraphStyle(
            "SummarySection",
            parent=self.body_style,
            fontSize=10,
            leading=14,
            spaceBefore=8,
            spaceAfter=4,
            backColor=self.light_gray,
            borderPadding=3,
        )
        self.warning_style = ParagraphStyle(
            "SummaryWarning",
            parent=self.section_style,
            fontSize=11,
            textColor=self.caution_color,
            backColor=colors.HexColor("#ffe6e6"),
        )
        self.note_style = ParagraphStyle(
            "SummaryNote",
            parent=self.body_style,
            fontSize=8,
            textColor=colors.grey,
        )

    def caution_count(self) -> int:
        fields = [name for name, _ in CAUTION_LABELS] + ["caution_other"]
        return sum(1 for name in fields if getattr(self.summary, name))

    def section(self, title: str, style: Optional[ParagraphStyle] = None) -> Paragraph:
        return Paragraph(text(title), style or self.section_style)

    def line(self, value: str, style: Optional[ParagraphStyle] = None) -> Paragraph:
        return Paragraph(text(value), style or self.body_style)

    def _summary_story(self) -> list:
        summary = self.summary
        story = []

        count = self.caution_count()
        if count:
            story.append(self.section(f"!! CAUTION PATIENT ({count} items) !!", self.warning_style))

        # 1. Key cautions
        story.append(self.section("1. Key Cautions"))
        for name, label in CAUTION_LABELS:
            mark = "[X]" if getattr(summary, name) else "[ ]"
            story.append(self.line(f"{mark} {label}"))
        if summary.caution_other:
            story.append(self.line(f"[X] Other: {summary.caution_other_text or ''}"))
        else:
            story.append(self.line("[ ] Other"))

        # 2. Prohibited actions
        if summary.prohibited_actions:
            story.append(self.section("2. PROHIBITED ACTIONS", self.warning_style))
            story.append(self.line(summary.prohibited_actions))

        # 3. Approach
        story.append(self.section("3. Approach Type"))
        story.append(self.line(f"> {APPROACH_LABELS.get(summary.approach_type, summary.approach_type)}"))
        if summary.approach_note:
            story.append(self.line(f"Note: {summary.approach_note}", self.note_style))

        # 4. Contacts
        story.append(self.section("4. Emergency Contacts"))
        story.append(
            self.line(
                f"* PRIMARY: {summary.primary_contact_name} "
                f"({summary.primary_contact_relation}) - {summary.primary_contact_phone}"
            )
        )
        if summary.secondary_contact_name:
            story.append(
                self.line(
                    f"Secondary: {summary.secondary_contact_name} "
                    f"({summary.secondary_contact_relation or '-'}) - {summary.secondary_contact_phone or '-'}"
                )
            )

        # 5. Recent changes
        story.append(self.section("5. Recent Changes"))
        story.append(self.line(summary.recent_changes))
        updater = summary.recent_changes_updater.name if summary.recent_changes_updater else "Unknown"
        updated_at = summary.recent_changes_updated_at
        story.append(
            self.line(
                f"Updated: {updated_at.strftime('%m/%d') if updated_at else '-'} by {updater}",
                self.note_style,
            )
        )

        # 6. Free note
        if summary.free_note:
            story.append(self.section("6. Additional Notes"))
            story.append(self.line(summary.free_note))

        story.append(Spacer(1, 4 * mm))
        last_updated = summary.updated_at.strftime("%Y-%m-%d %H:%M") if summary.updated_at else "-"
        last_updater = summary.updater.name if summary.updater else "Unknown"
        story.append(self.line(f"Last updated: {last_updated} by {last_updater}", self.note_style))
        return story

    def _basic_information(self) -> list:
        patient = self.patient
        story = [self.section("Basic Information")]
        story.append(self.line(f"Name: {patient.name}"))
        if patient.name_kana:
            story.append(self.line(f"Kana: {patient.name_kana}"))
        if patient.facility is not None:
            story.append(self.line(f"Facility: {patient.facility.name}"))
        else:
            story.append(self.line("Location: Home"))
        if patient.phone:
            story.append(self.line(f"Phone: {patient.phone}"))
        if patient.address:
            story.append(self.line(f"Address: {patient.address}"))
        return story

    def generate(self) -> bytes:
        logger.info(f"📄 Generating handover summary PDF for patient {self.patient.id}")
        story = self.header(
            f"Patient Summary: {self.patient.name}",
            f"Output: {local_now().strftime('%Y-%m-%d %H:%M')}",
        )

        if self.summary is None:
            story.append(self.section("** NO HANDOVER SUMMARY CREATED **", self.warning_style))
        else:
            story.extend(self._summary_story())

        story.append(Spacer(1, 6 * mm))
        story.extend(self._basic_information())
        return self.build(story)


class ReportService:
    """Loads tenant-scoped data and renders it"""

    def __init__(self, db: Session):
        self.db = db
        self.events = EventRepository()

    def _events(
        self, ctx: OrganizationContext, start: date, end: date, types: Optional[tuple] = None
    ) -> list[EventResponse]:
        rows = self.events.list_events(self.db, ctx, start=start, end=end, types=types)
        return sort_events([format_event(e) for e in rows])

    def schedule_pdf(self, ctx: OrganizationContext, start: date, end: date) -> bytes:
        return SchedulePDFGenerator(self._events(ctx, start, end), start, end).generate()

    def schedule_list_pdf(
        self, ctx: OrganizationContext, start: date, end: date, event_type: str
    ) -> bytes:
        # Combined events belong on both lists
        events = self._events(ctx, start, end, types=(event_type, EVENT_BOTH))
        return ScheduleListPDFGenerator(events, start, end, event_type).generate()

    def patient_summary_pdf(self, ctx: OrganizationContext, patient_id: int) -> tuple[Patient, bytes]:
        patient = PatientService(self.db).get_patient(patient_id, ctx)
        summary = SummaryService(self.db).get_summary(patient.id)
        return patient, PatientSummaryPDFGenerator(patient, summary).generate()
