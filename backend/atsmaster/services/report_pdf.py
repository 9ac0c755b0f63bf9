from io import BytesIO
from datetime import datetime, timezone

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from atsmaster.core import AnalysisResult

# Theme colors (luxury dark + cyan accents similar vibe)
BG = colors.HexColor("#070A12")
CARD = colors.HexColor("#0B0F1A")
TEXT = colors.HexColor("#E7E9EE")
MUTED = colors.Color(231 / 255, 233 / 255, 238 / 255, alpha=0.70)
CYAN = colors.HexColor("#38C7D7")


def _esc(s: str) -> str:
    """Basic safe text for ReportLab Paragraph (avoids broken markup)."""
    if s is None:
        return ""
    s = str(s)
    s = s.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    return s


def _listing(items) -> str:
    return _esc(", ".join(items)) if items else "—"


def build_pdf(result: AnalysisResult) -> bytes:
    buf = BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=36,
        rightMargin=36,
        topMargin=36,
        bottomMargin=36,
        title="ATS Report",
        author="ATS Master",
    )

    styles = getSampleStyleSheet()
    title = ParagraphStyle(
        "title",
        parent=styles["Title"],
        fontName="Helvetica-Bold",
        fontSize=20,
        textColor=TEXT,
        spaceAfter=10,
    )
    h = ParagraphStyle(
        "h",
        parent=styles["Heading2"],
        fontName="Helvetica-Bold",
        fontSize=12,
        textColor=TEXT,
        spaceBefore=10,
        spaceAfter=6,
    )
    p = ParagraphStyle(
        "p",
        parent=styles["BodyText"],
        fontName="Helvetica",
        fontSize=10,
        textColor=MUTED,
        leading=14,
    )

    story = []

    story.append(Paragraph("ATS Compatibility Report", title))
    story.append(Paragraph(f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}", p))
    story.append(Spacer(1, 12))

    score = max(0, min(100, result.score))
    kpi = Table(
        [
            ["Match Score", "Missing Keywords"],
            [f"{score}/100", str(len(result.missing_keywords))],
        ],
        colWidths=[250, 250],
    )
    kpi.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), CARD),
                ("TEXTCOLOR", (0, 0), (-1, 0), TEXT),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, 0), 10),
                ("BACKGROUND", (0, 1), (-1, 1), colors.Color(1, 1, 1, alpha=0.04)),
                ("TEXTCOLOR", (0, 1), (-1, 1), TEXT),
                ("FONTNAME", (0, 1), (-1, 1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 1), (-1, 1), 12),
                ("GRID", (0, 0), (-1, -1), 0.6, colors.Color(1, 1, 1, alpha=0.12)),
                ("ALIGN", (0, 0), (-1, -1), "CENTER"),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
                ("TOPPADDING", (0, 0), (-1, -1), 10),
            ]
        )
    )
    story.append(kpi)
    story.append(Spacer(1, 14))

    story.append(Paragraph("Missing Keywords", h))
    story.append(Paragraph(_listing(result.missing_keywords), p))

    story.append(Paragraph("Match Analysis", h))
    story.append(Paragraph(_esc(result.match_analysis) or "—", p))

    story.append(Paragraph("Recommendation", h))
    story.append(Paragraph(_esc(result.recommendation) or "—", p))

    if result.linkedin is not None:
        li = result.linkedin
        story.append(Paragraph("LinkedIn Suggestions", h))
        story.append(Paragraph(f"<font color='{CYAN.hexval()}'><b>HEADLINE</b></font> — {_esc(li.suggested_headline)}", p))
        story.append(Spacer(1, 6))
        story.append(Paragraph(f"<font color='{CYAN.hexval()}'><b>ABOUT</b></font> — {_esc(li.suggested_about)}", p))
        story.append(Spacer(1, 6))
        story.append(Paragraph(f"<font color='{CYAN.hexval()}'><b>SKILLS</b></font> — {_listing(li.top_skills_to_add)}", p))

    # Dark background every page
    def on_page(canvas, _doc):
        canvas.saveState()
        canvas.setFillColor(BG)
        canvas.rect(0, 0, A4[0], A4[1], fill=1, stroke=0)

        # subtle top glow
        canvas.setFillColor(colors.Color(56 / 255, 199 / 255, 215 / 255, alpha=0.10))
        canvas.rect(0, A4[1] - 70, A4[0], 70, fill=1, stroke=0)

        canvas.restoreState()

    doc.build(story, onFirstPage=on_page, onLaterPages=on_page)
    return buf.getvalue()
