"""Inspection report PDF export using ReportLab."""

import logging
import re
from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from backend.app.models.report import Report

logger = logging.getLogger(__name__)

FONT = "Helvetica"


def _cell(value: str | None) -> str:
    return (value or "-").replace("|", "/")


def report_to_markdown(report: Report) -> str:
    """Render a report with its approval and review trail as Markdown."""
    reporter = report.reporter.name if report.reporter else "Unknown"
    class_name = report.school_class.name if report.school_class else "Unknown"

    lines = [
        f"# {report.title}",
        "",
        f"**Class:** {class_name}",
        f"**Reporter:** {reporter}",
        f"**Submitted:** {report.created_at:%Y-%m-%d %H:%M}",
        f"**Category:** {report.category}",
        f"**Status:** {report.status}",
        "",
        "## Inspected items",
        "",
        "| Item | Status | Comment |",
        "|------|--------|---------|",
    ]
    for evaluation in report.item_evaluated or []:
        lines.append(
            f"| {_cell(evaluation.get('name'))} | {_cell(evaluation.get('status'))} "
            f"| {_cell(evaluation.get('comment'))} |"
        )

    if report.general_comment:
        lines += ["", "## General comment", "", f"> {report.general_comment}"]

    approval = report.approval
    if approval is not None:
        lines += ["", "## Representative decisions", ""]
        for role in ("CS", "CP"):
            decision = approval.decision_of(role)
            if decision is None:
                lines.append(f"**{role}:** no decision yet")
                continue
            comments = getattr(approval, f"comments_{role.lower()}") or ""
            verdict = "approved" if decision else "denied"
            lines.append(f"**{role}:** {verdict} - {comments}")

    reviewed = [r for r in report.reviews if r.reviewed_at is not None]
    if reviewed:
        lines += ["", "## Administrative review", ""]
        for review in reviewed:
            admin = review.admin.name if review.admin else "admin"
            lines.append(f"**{review.status}** by {admin} on {review.reviewed_at:%Y-%m-%d}: {review.comments or ''}")

    return "\n".join(lines)


class PDFGenerator:
    """Generate PDF documents from the Markdown subset produced by ``report_to_markdown``."""

    def __init__(self):
        styles = getSampleStyleSheet()
        self.title_style = ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontName=FONT,
            fontSize=22,
            textColor=colors.HexColor("#2c3e50"),
            spaceAfter=20,
            alignment=TA_CENTER,
        )
        self.heading_style = ParagraphStyle(
            "ReportHeading",
            parent=styles["Heading2"],
            fontName=FONT,
            fontSize=16,
            textColor=colors.HexColor("#2980b9"),
            spaceBefore=16,
            spaceAfter=10,
        )
        self.body_style = ParagraphStyle(
            "ReportBody",
            parent=styles["BodyText"],
            fontName=FONT,
            fontSize=11,
            leading=16,
        )
        self.quote_style = ParagraphStyle(
            "ReportQuote",
            parent=self.body_style,
            leftIndent=20,
            rightIndent=20,
            textColor=colors.HexColor("#555555"),
            backColor=colors.HexColor("#f7f7f7"),
            borderPadding=8,
        )

    def markdown_to_pdf(self, markdown_content: str) -> bytes:
        """
        Convert Markdown content to PDF.

        Args:
            markdown_content: Markdown with headings, tables, quotes and bold text

        Returns:
            PDF file as bytes
        """
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=2 * cm,
            leftMargin=2 * cm,
            topMargin=2 * cm,
            bottomMargin=2 * cm,
        )

        story = []
        lines = markdown_content.split("\n")
        i = 0
        while i < len(lines):
            line = lines[i].strip()

            if not line:
                i += 1
                continue

            if line.startswith("# "):
                story.append(Paragraph(self._escape_html(line[2:]), self.title_style))
                story.append(Spacer(1, 12))

            elif line.startswith("## "):
                story.append(Paragraph(self._escape_html(line[3:]), self.heading_style))
                story.append(Spacer(1, 6))

            elif line.startswith("---"):
                story.append(HRFlowable(width="100%", thickness=1, color=colors.grey))
                story.append(Spacer(1, 6))

            elif line.startswith("|"):
                table_lines = []
                while i < len(lines) and lines[i].strip().startswith("|"):
                    table_lines.append(lines[i].strip())
                    i += 1
                i -= 1

                table_data = [
                    [Paragraph(self._escape_html(cell.strip()), self.body_style) for cell in row.split("|")[1:-1]]
                    for row in table_lines
                    if not re.match(r"^\|[\s\-:|]+\|$", row)
                ]
                if table_data:
                    table = Table(table_data, colWidths=[5 * cm, 3 * cm, 9 * cm])
                    table.setStyle(TableStyle([
                        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#3498db")),
                        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
                        ("VALIGN", (0, 0), (-1, -1), "TOP"),
                        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
                        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                    ]))
                    story.append(table)
                    story.append(Spacer(1, 12))

            elif line.startswith("> "):
                story.append(Paragraph(self._escape_html(line[2:]), self.quote_style))
                story.append(Spacer(1, 6))

            else:
                text = re.sub(r"\*\*(.*?)\*\*", r"<b>\1</b>", self._escape_html(line))
                story.append(Paragraph(text, self.body_style))
                story.append(Spacer(1, 4))

            i += 1

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.info(f"[PDF] PDF generated successfully ({len(pdf_bytes)} bytes)")
        return pdf_bytes

    def _escape_html(self, text: str) -> str:
        """Escape the characters ReportLab paragraphs treat as markup."""
        return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
