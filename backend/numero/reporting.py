from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO
from textwrap import wrap
from typing import Any

from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

CORE_ROWS = (
    ("Life Path", "life_path"),
    ("Expression", "expression"),
    ("Soul Urge", "soul_urge"),
    ("Personality", "personality"),
    ("Birthday", "birthday"),
    ("Maturity", "maturity"),
    ("Balance", "balance"),
)

TIMELINES = (
    ("Pinnacles", "pinnacles"),
    ("Challenges", "challenges"),
    ("Life Periods", "life_periods"),
)

BOTTOM_MARGIN = 90


def _safe_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).replace("\n", " ").strip()


def _draw_wrapped(c: canvas.Canvas, text: str, x: int, y: int, max_chars: int = 95, line_height: int = 14) -> int:
    lines = wrap(_safe_text(text), width=max_chars) or [""]
    for line in lines:
        c.drawString(x, y, line)
        y -= line_height
    return y


def _format_reduction(item: dict) -> str:
    text = str(item.get("final_number"))
    if item.get("is_master_number"):
        text += " (master)"
    if item.get("karmic_debt_number"):
        text += f", karmic debt {item['karmic_debt_number']}"
    steps = item.get("reduction_steps") or []
    if len(steps) > 1:
        text += f"   [{' > '.join(str(step) for step in steps)}]"
    return text


def _format_age_range(period: dict) -> str:
    end_age = period.get("end_age")
    if end_age is None:
        return f"{period.get('start_age')}+"
    return f"{period.get('start_age')}-{end_age}"


def build_analysis_report_pdf(*, profile_name: str, birth_date: str, analysis: dict) -> bytes:
    """Render a stored analysis (API response shape) as an A4 PDF."""
    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    width, height = A4

    def ensure_room(y: int, needed: int = BOTTOM_MARGIN) -> int:
        if y < needed:
            c.showPage()
            c.setFont("Helvetica", 10)
            return int(height) - 48
        return y

    c.setTitle(f"Numerology Report {profile_name}")
    c.setAuthor("Numero")

    y = int(height) - 48
    c.setFont("Helvetica-Bold", 16)
    c.drawString(40, y, "Numerology Report")

    y -= 20
    c.setFont("Helvetica", 10)
    c.drawString(40, y, f"Generated UTC: {datetime.now(timezone.utc).isoformat()}")
    y -= 16
    c.drawString(40, y, f"Name: {_safe_text(profile_name)}")
    y -= 14
    c.drawString(40, y, f"Birth date: {_safe_text(birth_date)}")
    y -= 14
    c.drawString(40, y, f"Letter system: {_safe_text(analysis.get('system'))}")

    y -= 26
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, y, "Core Numbers")
    y -= 18
    c.setFont("Helvetica", 11)
    for label, key in CORE_ROWS:
        item = analysis.get(key)
        if isinstance(item, dict):
            c.drawString(40, y, f"{label}: {_format_reduction(item)}")
            y -= 14

    y -= 10
    c.setFont("Helvetica-Bold", 12)
    c.drawString(40, y, "Name Details")
    y -= 18
    c.setFont("Helvetica", 10)
    hidden_passion = analysis.get("hidden_passion")
    c.drawString(40, y, f"Hidden Passion: {hidden_passion if hidden_passion is not None else '-'}")
    y -= 14
    c.drawString(40, y, f"Subconscious Self: {_safe_text(analysis.get('subconscious_self'))}")
    y -= 14
    lessons = analysis.get("karmic_lessons") or []
    lessons_text = ", ".join(str(number) for number in lessons) if lessons else "none"
    y = _draw_wrapped(c, f"Karmic Lessons: {lessons_text}", 40, y)

    specials = analysis.get("special_numbers") or {}
    for label, key in (("Cornerstone", "cornerstone"), ("Capstone", "capstone"), ("First Vowel", "first_vowel")):
        value = specials.get(key)
        c.drawString(40, y, f"{label}: {value if value is not None else '-'}")
        y -= 14

    for title, key in TIMELINES:
        y -= 12
        y = ensure_room(y, 160)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(40, y, title)
        y -= 16
        c.setFont("Helvetica", 10)
        for period in analysis.get(key) or []:
            line = f"{period.get('period_index')}. ages {_format_age_range(period)}: {period.get('number')}"
            if period.get("is_master_number"):
                line += " (master)"
            if period.get("source"):
                line += f"  from {period['source']}"
            c.drawString(48, y, line)
            y -= 14
            y = ensure_room(y)

    c.showPage()
    c.save()
    return buffer.getvalue()
