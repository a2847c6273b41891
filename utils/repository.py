from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import OperationalError, SQLAlchemyError, StatementError

from extensions import db
from models import ClassRecord, Note, Payment, Student

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


class BatchInsertError(Exception):
    """The store rejected a whole batch; none of its rows were written."""


class SqlAlchemyRepository:
    """Row store used by the import pipeline.

    Each ``insert_*`` call is one batch: every row is written in a single
    commit, or the session is rolled back and :class:`BatchInsertError` is
    raised with the backend's message. Failures that are not a rejection of
    the data itself (lost connection, misconfigured engine) propagate as-is.
    """

    def __init__(self, session=None):
        self.session = session if session is not None else db.session

    def insert_students(self, rows: Iterable[Row]) -> List[Row]:
        students = self._build(
            lambda row: Student(
                name=row.get("name"),
                class_name=row.get("class"),
                contact=row.get("contact"),
                monthly_target_classes=row.get("monthly_target_classes") or 0,
                fees_per_month=row.get("fees_per_month") or 0,
            ),
            rows,
        )
        self._commit_batch(students)
        return [{"id": s.id, "name": s.name} for s in students]

    def find_all_students(self) -> List[Row]:
        rows = self.session.query(Student.id, Student.name).order_by(Student.id).all()
        return [{"id": sid, "name": name} for sid, name in rows]

    def insert_classes(self, rows: Iterable[Row]) -> int:
        records = self._build(
            lambda row: ClassRecord(
                student_id=row["student_id"],
                date=parse_date(row.get("date")),
                completed_count=row.get("completed_count"),
            ),
            rows,
        )
        self._commit_batch(records)
        return len(records)

    def insert_payments(self, rows: Iterable[Row]) -> int:
        payments = self._build(
            lambda row: Payment(
                student_id=row["student_id"],
                amount=row.get("amount"),
                date=parse_date(row.get("date")),
                month=row.get("month"),
                year=row.get("year"),
            ),
            rows,
        )
        self._commit_batch(payments)
        return len(payments)

    def insert_notes(self, rows: Iterable[Row]) -> int:
        notes = self._build(
            lambda row: Note(student_id=row["student_id"], note_text=row.get("note_text")),
            rows,
        )
        self._commit_batch(notes)
        return len(notes)

    def _build(self, factory, rows: Iterable[Row]) -> list:
        try:
            return [factory(_scalar_row(row)) for row in rows]
        except (TypeError, ValueError) as exc:
            raise BatchInsertError(str(exc)) from exc

    def _commit_batch(self, objects: list) -> None:
        try:
            self.session.add_all(objects)
            self.session.commit()
        except StatementError as exc:
            self.session.rollback()
            if isinstance(exc, OperationalError) or getattr(exc, "connection_invalidated", False):
                raise
            # Values the driver refuses to store or bind reject the batch only
            message = driver_message(exc)
            logger.warning("Batch of %d rows rejected: %s", len(objects), message)
            raise BatchInsertError(message) from exc
        except SQLAlchemyError:
            self.session.rollback()
            raise


def driver_message(exc: BaseException) -> str:
    """The database driver's own message, without the SQL and parameters."""
    return str(getattr(exc, "orig", None) or exc)


def _scalar_row(row: Row) -> Row:
    for key, value in row.items():
        if isinstance(value, (dict, list, tuple, set)):
            raise ValueError(f"Unsupported value for {key}: {type(value).__name__}")
    return row


def parse_date(value: Any) -> Optional[date]:
    """Accept ``date`` objects or ISO ``YYYY-MM-DD`` strings."""
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date: {value!r}")
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {value!r}") from None
