from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional

from flask import abort

from extensions import db
from models import Student


def get_student_or_404(student_id: int) -> Student:
    student = db.session.get(Student, student_id)
    if student is None:
        abort(404, description="Student not found")
    return student


def parse_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError("Must be a number")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError("Must be a number") from None


def parse_amount(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError("Must be a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError("Must be a number") from None


def month_name(day: date) -> str:
    return day.strftime("%B")


def student_summary(student: Student, today: Optional[date] = None) -> Dict[str, float]:
    """Monthly progress and fee position for one student.

    ``due_amount`` is the monthly fee less whatever was paid against the
    current month, never below zero.
    """
    today = today or date.today()
    completed_month = sum(
        c.completed_count or 0
        for c in student.classes
        if c.date and c.date.year == today.year and c.date.month == today.month
    )
    total_paid = sum((p.amount or Decimal("0")) for p in student.payments)
    paid_this_month = sum(
        (p.amount or Decimal("0"))
        for p in student.payments
        if p.month == month_name(today) and p.year == today.year
    )
    fee = student.fees_per_month or Decimal("0")
    due = max(Decimal(fee) - Decimal(paid_this_month), Decimal("0"))
    return {
        "completed_classes_month": completed_month,
        "monthly_target_classes": student.monthly_target_classes or 0,
        "total_paid": float(total_paid),
        "due_amount": float(due),
    }
