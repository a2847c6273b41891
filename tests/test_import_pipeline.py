import pytest

from utils.importer import (
    ImportFailedError,
    ImportReport,
    NameResolutionTable,
    bulk_insert,
    insert_linked,
    insert_students,
    load_existing_students,
)
from utils.repository import BatchInsertError


class FakeRepository:
    """In-memory stand-in for SqlAlchemyRepository."""

    def __init__(self, existing=None, reject=(), explode=()):
        self.students = [dict(s) for s in (existing or [])]
        self.classes = []
        self.payments = []
        self.notes = []
        self.reject = set(reject)
        self.explode = set(explode)
        self.calls: list[str] = []
        self._next_id = 1000

    def _guard(self, method):
        self.calls.append(method)
        if method in self.explode:
            raise ConnectionError("network down")
        if method in self.reject:
            raise BatchInsertError(f"{method} rejected")

    def insert_students(self, rows):
        self._guard("insert_students")
        inserted = []
        for row in rows:
            self._next_id += 1
            student = dict(row, id=self._next_id)
            self.students.append(student)
            inserted.append({"id": student["id"], "name": student["name"]})
        return inserted

    def find_all_students(self):
        self._guard("find_all_students")
        return [{"id": s["id"], "name": s["name"]} for s in self.students]

    def insert_classes(self, rows):
        self._guard("insert_classes")
        self.classes.extend(rows)
        return len(rows)

    def insert_payments(self, rows):
        self._guard("insert_payments")
        self.payments.extend(rows)
        return len(rows)

    def insert_notes(self, rows):
        self._guard("insert_notes")
        self.notes.extend(rows)
        return len(rows)


def _counts(report, section):
    result = report.section(section)
    return result.success, result.failed


def test_end_to_end_against_empty_store():
    repo = FakeRepository()
    doc = {
        "students": [{"name": "A", "class": "Grade 9", "contact": "0171", "monthly_target_classes": 8, "fees_per_month": 2000}],
        "classes": [{"student_name": "A", "date": "2024-01-01", "completed_count": 2}],
        "payments": [{"student_name": "B", "amount": 100, "date": "2024-01-01", "month": "January", "year": 2024}],
    }
    report = bulk_insert(doc, repo)

    assert report.as_dict() == {
        "students": {"success": 1, "failed": 0, "errors": []},
        "classes": {"success": 1, "failed": 0, "errors": []},
        "payments": {"success": 0, "failed": 1, "errors": ['Student "B" not found']},
        "notes": {"success": 0, "failed": 0, "errors": []},
    }
    student_id = repo.students[0]["id"]
    assert repo.classes == [{"student_id": student_id, "date": "2024-01-01", "completed_count": 2}]
    assert repo.payments == []


def test_missing_completed_count_defaults_to_one():
    repo = FakeRepository(existing=[{"id": 1, "name": "A"}])
    report = bulk_insert({"classes": [
        {"student_name": "A", "date": "2024-01-01"},
        {"student_name": "A", "date": "2024-01-02", "completed_count": 3},
    ]}, repo)
    assert _counts(report, "classes") == (2, 0)
    assert [c["completed_count"] for c in repo.classes] == [1, 3]


def test_unresolved_record_fails_while_siblings_succeed():
    repo = FakeRepository(existing=[{"id": 1, "name": "A"}, {"id": 2, "name": "C"}])
    report = bulk_insert({"notes": [
        {"student_name": "A", "note_text": "one"},
        {"student_name": "Ghost", "note_text": "two"},
        {"student_name": "C", "note_text": "three"},
    ]}, repo)
    assert _counts(report, "notes") == (2, 1)
    assert report.notes.errors == ['Student "Ghost" not found']
    assert repo.notes == [
        {"student_id": 1, "note_text": "one"},
        {"student_id": 2, "note_text": "three"},
    ]


def test_freshly_inserted_student_wins_over_existing_name():
    repo = FakeRepository(existing=[{"id": 1, "name": "A"}])
    bulk_insert({
        "students": [{"name": "A"}],
        "payments": [{"student_name": "A", "amount": 50, "date": "2024-02-01", "month": "February", "year": 2024}],
    }, repo)
    new_id = repo.students[-1]["id"]
    assert new_id != 1
    assert repo.payments[0]["student_id"] == new_id


def test_payment_fields_pass_through_unchanged():
    repo = FakeRepository(existing=[{"id": 7, "name": "A"}])
    payment = {"student_name": "A", "amount": 1500.5, "date": "2024-03-01", "month": "March", "year": 2024}
    bulk_insert({"payments": [payment]}, repo)
    assert repo.payments == [{"student_id": 7, "amount": 1500.5, "date": "2024-03-01", "month": "March", "year": 2024}]


def test_existing_students_are_fetched_even_without_new_students():
    repo = FakeRepository()
    bulk_insert({}, repo)
    assert repo.calls == ["find_all_students"]


def test_second_import_resolves_students_from_first():
    repo = FakeRepository()
    first = bulk_insert({"students": [{"name": "A"}]}, repo)
    assert _counts(first, "students") == (1, 0)

    second = bulk_insert({
        "classes": [{"student_name": "A", "date": "2024-01-05", "completed_count": 1}],
        "payments": [{"student_name": "A", "amount": 100, "date": "2024-01-05", "month": "January", "year": 2024}],
    }, repo)
    assert _counts(second, "classes") == (1, 0)
    assert _counts(second, "payments") == (1, 0)
    assert len(repo.students) == 1
    assert repo.calls.count("insert_students") == 1


def test_rejected_student_batch_marks_all_failed_and_later_stages_run():
    repo = FakeRepository(existing=[{"id": 1, "name": "Old"}], reject={"insert_students"})
    report = bulk_insert({
        "students": [{"name": "A"}, {"name": "B"}],
        "classes": [{"student_name": "A", "date": "2024-01-01"}, {"student_name": "Old", "date": "2024-01-01"}],
    }, repo)
    assert _counts(report, "students") == (0, 2)
    assert report.students.errors == ["insert_students rejected"]
    assert _counts(report, "classes") == (1, 1)
    assert report.classes.errors == ['Student "A" not found']


def test_rejected_batch_adds_to_resolution_failures():
    repo = FakeRepository(existing=[{"id": 1, "name": "A"}], reject={"insert_classes"})
    report = bulk_insert({
        "classes": [
            {"student_name": "A", "date": "2024-01-01"},
            {"student_name": "Nobody", "date": "2024-01-01"},
            {"student_name": "A", "date": "2024-01-02"},
        ],
        "notes": [{"student_name": "A", "note_text": "still imported"}],
    }, repo)
    assert _counts(report, "classes") == (0, 3)
    assert report.classes.errors == ['Student "Nobody" not found', "insert_classes rejected"]
    assert _counts(report, "notes") == (1, 0)


def test_unexpected_error_aborts_and_carries_partial_report():
    repo = FakeRepository(explode={"insert_payments"})
    doc = {
        "students": [{"name": "A"}],
        "classes": [{"student_name": "A", "date": "2024-01-01"}],
        "payments": [{"student_name": "A", "amount": 10, "date": "2024-01-01", "month": "January", "year": 2024}],
        "notes": [{"student_name": "A", "note_text": "never reached"}],
    }
    with pytest.raises(ImportFailedError) as info:
        bulk_insert(doc, repo)

    assert str(info.value) == "Import failed: network down"
    assert isinstance(info.value.__cause__, ConnectionError)
    partial = info.value.report
    assert _counts(partial, "students") == (1, 0)
    assert _counts(partial, "classes") == (1, 0)
    assert _counts(partial, "notes") == (0, 0)
    assert "insert_notes" not in repo.calls
    # No rollback: rows from completed stages stay written
    assert len(repo.students) == 1 and len(repo.classes) == 1


def test_failure_while_fetching_existing_students_aborts():
    repo = FakeRepository(explode={"find_all_students"})
    with pytest.raises(ImportFailedError):
        bulk_insert({"students": [{"name": "A"}], "notes": [{"student_name": "A", "note_text": "x"}]}, repo)
    assert repo.calls == ["insert_students", "find_all_students"]


def test_stage_functions_return_the_threaded_report():
    repo = FakeRepository(existing=[{"id": 1, "name": "A"}, {"id": 2, "name": "B"}])
    names = NameResolutionTable()
    report = ImportReport()

    after_students = insert_students(repo, [{"name": "B"}], report, names)
    assert after_students is report
    assert _counts(report, "students") == (1, 0)
    inserted_b = names.resolve("B")
    assert inserted_b not in (1, 2)

    names = load_existing_students(repo, names)
    assert names.resolve("A") == 1
    assert names.resolve("B") == inserted_b

    after_notes = insert_linked(repo, "notes", [{"student_name": "A", "note_text": "hi"}], report, names)
    assert after_notes is report
    assert _counts(report, "notes") == (1, 0)


def test_name_table_ignores_non_string_names():
    names = NameResolutionTable()
    names.add_existing("A", 1)
    names.add_existing("A", 2)
    assert names.resolve("A") == 1
    assert names.resolve(["A"]) is None
    assert "A" in names and len(names) == 1
