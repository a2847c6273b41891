import copy

import pytest

from utils.importer import generate_template, template_bytes, validate_import_data


@pytest.mark.parametrize("document", [None, [], ["students"], "students", 42, True])
def test_non_object_root_is_a_single_root_error(document):
    result = validate_import_data(document)
    assert result.valid is False
    assert len(result.errors) == 1
    assert result.errors[0].field == "root"
    assert result.errors[0].section is None


@pytest.mark.parametrize("section", ["students", "classes", "payments", "notes"])
def test_non_array_collection_records_one_error(section):
    result = validate_import_data({section: {"name": "A", "student_name": "A"}})
    assert not result.valid
    assert [(e.field, e.message) for e in result.errors] == [
        (section, f"{section.capitalize()} must be an array")
    ]


def test_missing_student_name_reported_at_index():
    doc = {"students": [{"name": "Ok"}, {"class": "Grade 9"}, {"name": ""}]}
    result = validate_import_data(doc)
    assert not result.valid
    positions = [(e.section, e.index, e.field) for e in result.errors]
    assert positions == [("students", 1, "name"), ("students", 2, "name")]
    assert result.errors[0].message == "Student name is required"


def test_student_numeric_fields():
    doc = {"students": [
        {"name": "A", "monthly_target_classes": "8", "fees_per_month": 2000},
        {"name": "B", "monthly_target_classes": 8, "fees_per_month": True},
        {"name": "C"},
    ]}
    errors = validate_import_data(doc).errors
    assert [(e.index, e.field) for e in errors] == [(0, "monthly_target_classes"), (1, "fees_per_month")]


def test_class_rules():
    doc = {"classes": [
        {"student_name": "A", "date": "2024-01-01"},
        {"date": "2024-01-01", "completed_count": "two"},
        {"student_name": "A"},
    ]}
    errors = validate_import_data(doc).errors
    assert [(e.index, e.field) for e in errors] == [
        (1, "student_name"),
        (1, "completed_count"),
        (2, "date"),
    ]


def test_payment_amount_required_and_numeric():
    doc = {"payments": [
        {"student_name": "A", "amount": 100, "date": "2024-01-01"},
        {"student_name": "A", "amount": "100", "date": "2024-01-01"},
        {"student_name": "A", "date": "2024-01-01"},
        {"student_name": "A", "amount": 0, "date": "2024-01-01"},
    ]}
    errors = validate_import_data(doc).errors
    assert [e.index for e in errors] == [1, 2, 3]
    assert {e.field for e in errors} == {"amount"}


def test_note_rules():
    errors = validate_import_data({"notes": [{"student_name": "A"}, {"note_text": "hi"}]}).errors
    assert [(e.index, e.field) for e in errors] == [(0, "note_text"), (1, "student_name")]


def test_non_object_record_is_reported():
    errors = validate_import_data({"notes": ["just text"]}).errors
    assert [(e.section, e.index) for e in errors] == [("notes", 0)]


def test_sections_are_optional():
    assert validate_import_data({}).valid
    assert validate_import_data({"students": []}).valid


def test_validation_does_not_mutate_input():
    doc = {"students": [{"class": "x"}], "classes": [{"student_name": "A", "date": "2024-01-01"}]}
    before = copy.deepcopy(doc)
    validate_import_data(doc)
    assert doc == before


def test_template_is_valid():
    result = validate_import_data(generate_template())
    assert result.valid
    assert result.errors == []


def test_template_bytes_is_indented_json():
    import json

    raw = template_bytes()
    assert json.loads(raw) == generate_template()
    assert b'\n  "students"' in raw
    assert len(generate_template()["students"]) == 2


def test_as_dict_shape():
    body = validate_import_data({"students": [{}]}).as_dict()
    assert body == {
        "valid": False,
        "errors": [{"field": "name", "message": "Student name is required", "index": 0, "section": "students"}],
    }
