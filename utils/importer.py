"""Bulk JSON import: template, structural validation and staged inserts.

An import document is a JSON object with four optional arrays::

    {
      "students": [{name, class, contact, monthly_target_classes, fees_per_month}],
      "classes":  [{student_name, date, completed_count}],
      "payments": [{student_name, amount, date, month, year}],
      "notes":    [{student_name, note_text}]
    }

Classes, payments and notes point at students by *name*. Names are resolved
against the students inserted by the same import first, then against
students already in the database.

The insert stages are best effort: a record whose student cannot be found,
or a batch the database rejects, is counted and reported while the remaining
stages still run. Nothing is rolled back across stages.
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, List, Optional

from utils.repository import BatchInsertError, driver_message

logger = logging.getLogger(__name__)

SECTIONS = ("students", "classes", "payments", "notes")
LINKED_SECTIONS = ("classes", "payments", "notes")
TEMPLATE_FILENAME = "import-template.json"


# -----------------------------
# Result types
# -----------------------------

@dataclass
class ValidationError:
    field: str
    message: str
    index: Optional[int] = None
    section: Optional[str] = None

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class ValidationResult:
    valid: bool
    errors: List[ValidationError] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {"valid": self.valid, "errors": [e.as_dict() for e in self.errors]}


@dataclass
class SectionResult:
    success: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)


@dataclass
class ImportReport:
    students: SectionResult = field(default_factory=SectionResult)
    classes: SectionResult = field(default_factory=SectionResult)
    payments: SectionResult = field(default_factory=SectionResult)
    notes: SectionResult = field(default_factory=SectionResult)

    def section(self, name: str) -> SectionResult:
        return getattr(self, name)

    def as_dict(self) -> dict:
        return asdict(self)


class ImportFailedError(Exception):
    """Raised when an unexpected error aborts the pipeline.

    ``report`` holds whatever the completed stages recorded before the abort;
    those rows are already written.
    """

    def __init__(self, message: str, report: Optional[ImportReport] = None):
        super().__init__(message)
        self.report = report


class NameResolutionTable:
    """Maps student display names to database ids for one import."""

    def __init__(self):
        self._ids: Dict[str, Any] = {}

    def add_inserted(self, name: str, student_id: Any) -> None:
        self._ids[name] = student_id

    def add_existing(self, name: str, student_id: Any) -> None:
        # Students inserted by this import win over older rows with the same name
        self._ids.setdefault(name, student_id)

    def resolve(self, name: Any) -> Optional[Any]:
        if not isinstance(name, str):
            return None
        return self._ids.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def __len__(self) -> int:
        return len(self._ids)


# -----------------------------
# Template
# -----------------------------

def generate_template() -> dict:
    return {
        "students": [
            {
                "name": "John Doe",
                "class": "Grade 10",
                "contact": "01712345678",
                "monthly_target_classes": 8,
                "fees_per_month": 2000,
            },
            {
                "name": "Jane Smith",
                "class": "Grade 9",
                "contact": "01798765432",
                "monthly_target_classes": 10,
                "fees_per_month": 2500,
            },
        ],
        "classes": [
            {"student_name": "John Doe", "date": "2024-01-15", "completed_count": 1},
            {"student_name": "Jane Smith", "date": "2024-01-15", "completed_count": 1},
        ],
        "payments": [
            {"student_name": "John Doe", "amount": 2000, "date": "2024-01-01", "month": "January", "year": 2024},
            {"student_name": "Jane Smith", "amount": 2500, "date": "2024-01-01", "month": "January", "year": 2024},
        ],
        "notes": [
            {"student_name": "John Doe", "note_text": "Excellent progress in mathematics"},
            {"student_name": "Jane Smith", "note_text": "Needs improvement in physics"},
        ],
    }


def template_bytes() -> bytes:
    return json.dumps(generate_template(), indent=2).encode("utf-8")


# -----------------------------
# Validation
# -----------------------------

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_student(record: dict) -> List[tuple]:
    problems = []
    name = record.get("name")
    if not name or not isinstance(name, str):
        problems.append(("name", "Student name is required"))
    for key in ("monthly_target_classes", "fees_per_month"):
        if key in record and not _is_number(record[key]):
            problems.append((key, "Must be a number"))
    return problems


def _check_class(record: dict) -> List[tuple]:
    problems = []
    if not record.get("student_name"):
        problems.append(("student_name", "Student name is required"))
    if not record.get("date"):
        problems.append(("date", "Date is required"))
    if "completed_count" in record and not _is_number(record["completed_count"]):
        problems.append(("completed_count", "Must be a number"))
    return problems


def _check_payment(record: dict) -> List[tuple]:
    problems = []
    if not record.get("student_name"):
        problems.append(("student_name", "Student name is required"))
    amount = record.get("amount")
    if not amount or not _is_number(amount):
        problems.append(("amount", "Amount is required and must be a number"))
    if not record.get("date"):
        problems.append(("date", "Date is required"))
    return problems


def _check_note(record: dict) -> List[tuple]:
    problems = []
    if not record.get("student_name"):
        problems.append(("student_name", "Student name is required"))
    if not record.get("note_text"):
        problems.append(("note_text", "Note text is required"))
    return problems


_RULES: Dict[str, Callable[[dict], List[tuple]]] = {
    "students": _check_student,
    "classes": _check_class,
    "payments": _check_payment,
    "notes": _check_note,
}


def validate_import_data(data: Any) -> ValidationResult:
    """Check the shape of an import document without touching the database.

    Never raises for malformed input. Whether referenced students exist is
    not checked here; that happens per record during :func:`bulk_insert`.
    """
    errors: List[ValidationError] = []

    if not isinstance(data, dict):
        errors.append(ValidationError(field="root", message="Invalid JSON structure. Expected an object."))
        return ValidationResult(valid=False, errors=errors)

    for section in SECTIONS:
        if section not in data:
            continue
        records = data[section]
        if not isinstance(records, list):
            errors.append(ValidationError(field=section, message=f"{section.capitalize()} must be an array"))
            continue
        check = _RULES[section]
        for index, record in enumerate(records):
            if not isinstance(record, dict):
                errors.append(ValidationError(field="record", message="Must be an object", index=index, section=section))
                continue
            for fld, message in check(record):
                errors.append(ValidationError(field=fld, message=message, index=index, section=section))

    return ValidationResult(valid=not errors, errors=errors)


# -----------------------------
# Insert stages
# -----------------------------

def _class_row(record: dict, student_id: Any) -> dict:
    return {
        "student_id": student_id,
        "date": record.get("date"),
        "completed_count": record.get("completed_count") or 1,
    }


def _payment_row(record: dict, student_id: Any) -> dict:
    return {
        "student_id": student_id,
        "amount": record.get("amount"),
        "date": record.get("date"),
        "month": record.get("month"),
        "year": record.get("year"),
    }


def _note_row(record: dict, student_id: Any) -> dict:
    return {"student_id": student_id, "note_text": record.get("note_text")}


_LINKED: Dict[str, tuple] = {
    "classes": (_class_row, "insert_classes"),
    "payments": (_payment_row, "insert_payments"),
    "notes": (_note_row, "insert_notes"),
}


def insert_students(repository, records: List[dict], report: ImportReport, names: NameResolutionTable) -> ImportReport:
    if not records:
        return report
    result = report.students
    try:
        inserted = repository.insert_students(records)
    except BatchInsertError as exc:
        result.failed = len(records)
        result.errors.append(str(exc))
        return report
    result.success = len(inserted)
    for row in inserted:
        names.add_inserted(row["name"], row["id"])
    return report


def load_existing_students(repository, names: NameResolutionTable) -> NameResolutionTable:
    for row in repository.find_all_students():
        names.add_existing(row["name"], row["id"])
    return names


def insert_linked(repository, section: str, records: List[dict], report: ImportReport, names: NameResolutionTable) -> ImportReport:
    """Resolve ``student_name`` for each record, then insert the rest as one batch."""
    if not records:
        return report
    to_row, method = _LINKED[section]
    result = report.section(section)

    rows = []
    for record in records:
        name = record.get("student_name")
        student_id = names.resolve(name)
        if student_id is None:
            result.failed += 1
            result.errors.append(f'Student "{name}" not found')
            continue
        rows.append(to_row(record, student_id))

    if not rows:
        return report
    try:
        getattr(repository, method)(rows)
    except BatchInsertError as exc:
        result.failed += len(rows)
        result.errors.append(str(exc))
        return report
    result.success = len(rows)
    return report


def bulk_insert(data: dict, repository) -> ImportReport:
    """Run every insert stage in order and return the per-collection report.

    Raises :class:`ImportFailedError` when something other than a rejected
    batch goes wrong; the partial report is attached to the error.
    """
    report = ImportReport()
    names = NameResolutionTable()
    try:
        report = insert_students(repository, data.get("students") or [], report, names)
        names = load_existing_students(repository, names)
        for section in LINKED_SECTIONS:
            report = insert_linked(repository, section, data.get(section) or [], report, names)
    except Exception as exc:
        logger.exception("Import aborted")
        raise ImportFailedError(f"Import failed: {driver_message(exc)}", report) from exc

    logger.info(
        "Import finished: %s",
        ", ".join(f"{s} {report.section(s).success} ok/{report.section(s).failed} failed" for s in SECTIONS),
    )
    return report
