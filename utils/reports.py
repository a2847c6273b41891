from __future__ import annotations

import re
from datetime import date
from io import BytesIO
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

from models import Student


def report_filename(student: Student) -> str:
    base = re.sub(r"\s+", "_", (student.name or "student").strip())
    return f"{base}_Report.pdf"


def _fmt_date(value) -> str:
    if hasattr(value, "strftime"):
        return value.strftime("%Y-%m-%d")
    return str(value or "")


def _money(value, currency: str) -> str:
    return f"{float(value or 0):,.2f} {currency}"


def build_student_report(
    student: Student,
    title: str = "Tuition Management System",
    currency: str = "BDT",
    generated_on: Optional[date] = None,
) -> bytes:
    """Render a student's classes, payments and notes as a PDF."""
    generated_on = generated_on or date.today()
    classes = sorted(student.classes, key=lambda c: c.date or date.min, reverse=True)
    payments = sorted(student.payments, key=lambda p: p.date or date.min, reverse=True)
    notes = sorted(student.notes, key=lambda n: n.id, reverse=True)

    buffer = BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(f"{student.name} Report")
    width, height = A4
    x, y = 20*mm, height - 20*mm

    def ensure_room(y_pos):
        if y_pos < 25*mm:
            c.showPage()
            c.setFont("Helvetica", 10)
            return height - 20*mm
        return y_pos

    c.setFont("Helvetica-Bold", 16)
    c.drawCentredString(width / 2, y, title)
    y -= 8*mm
    c.setFont("Helvetica-Bold", 13)
    c.drawCentredString(width / 2, y, "Student Report")
    y -= 12*mm

    total_classes = sum(cl.completed_count or 0 for cl in classes)
    total_paid = sum(float(p.amount or 0) for p in payments)

    c.setFont("Helvetica", 11)
    details = [
        f"Name: {student.name}",
        f"Class: {student.class_name or ''}",
        f"Contact: {student.contact or ''}",
        f"Monthly Fee: {_money(student.fees_per_month, currency)}",
        f"Target Classes: {student.monthly_target_classes or 0}",
        f"Generated: {_fmt_date(generated_on)}",
    ]
    for line in details:
        c.drawString(x, y, line)
        y -= 6*mm
    c.drawString(x + 95*mm, height - 40*mm, f"Total Classes Completed: {total_classes}")
    c.drawString(x + 95*mm, height - 46*mm, f"Total Payments Made: {_money(total_paid, currency)}")
    y -= 6*mm

    c.setFont("Helvetica-Bold", 12)
    c.drawString(x, y, "Class History")
    y -= 7*mm
    c.setFont("Helvetica", 10)
    c.drawString(x, y, "Date")
    c.drawString(x + 50*mm, y, "Classes Completed")
    y -= 5*mm
    c.line(x, y, width - 20*mm, y)
    y -= 5*mm
    for cl in classes:
        y = ensure_room(y)
        c.drawString(x, y, _fmt_date(cl.date))
        c.drawString(x + 50*mm, y, str(cl.completed_count or 0))
        y -= 6*mm
    y -= 6*mm

    y = ensure_room(y)
    c.setFont("Helvetica-Bold", 12)
    c.drawString(x, y, "Payment History")
    y -= 7*mm
    c.setFont("Helvetica", 10)
    c.drawString(x, y, "Date")
    c.drawString(x + 50*mm, y, "Month/Year")
    c.drawString(x + 100*mm, y, "Amount")
    y -= 5*mm
    c.line(x, y, width - 20*mm, y)
    y -= 5*mm
    for p in payments:
        y = ensure_room(y)
        c.drawString(x, y, _fmt_date(p.date))
        c.drawString(x + 50*mm, y, f"{p.month or ''} {p.year or ''}".strip())
        c.drawString(x + 100*mm, y, _money(p.amount, currency))
        y -= 6*mm

    if notes:
        y -= 6*mm
        y = ensure_room(y)
        c.setFont("Helvetica-Bold", 12)
        c.drawString(x, y, "Notes")
        y -= 7*mm
        c.setFont("Helvetica", 10)
        for n in notes:
            y = ensure_room(y)
            c.drawString(x, y, _fmt_date(n.created_at))
            c.drawString(x + 35*mm, y, (n.note_text or "")[:95])
            y -= 6*mm

    c.showPage()
    c.save()
    return buffer.getvalue()
