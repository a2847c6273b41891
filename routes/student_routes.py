from flask import Blueprint, current_app, jsonify, request, send_file
from io import BytesIO
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import ClassRecord, Student
from utils import error_response, read_payload
from utils.db_helpers import get_student_or_404, parse_amount, parse_int, student_summary
from utils.reports import build_student_report, report_filename

student_bp = Blueprint('students', __name__, url_prefix='/students')


@student_bp.route('/', methods=['GET'])
def list_students():
    """All students, newest first; ``?q=`` matches name or class."""
    query = Student.query
    q = (request.args.get('q') or '').strip().lower()
    if q:
        pattern = f"%{q}%"
        query = query.filter(or_(
            func.lower(Student.name).like(pattern),
            func.lower(Student.class_name).like(pattern),
        ))
    students = query.order_by(Student.created_at.desc(), Student.id.desc()).all()
    return jsonify([s.to_dict() for s in students])


@student_bp.route('/', methods=['POST'])
def add_student():
    data = read_payload()
    name = (data.get('name') or '').strip() if isinstance(data.get('name'), str) else ''
    if not name:
        return error_response("Student name is required")
    try:
        target = parse_int(data.get('monthly_target_classes'), 0)
        fee = parse_amount(data.get('fees_per_month'), 0)
    except ValueError as exc:
        return error_response(str(exc))

    student = Student(
        name=name,
        class_name=data.get('class') or data.get('class_name'),
        contact=data.get('contact'),
        monthly_target_classes=target,
        fees_per_month=fee,
    )
    db.session.add(student)
    db.session.commit()
    current_app.logger.info("Student %s added (id=%s)", student.name, student.id)
    return jsonify(student.to_dict()), 201


@student_bp.route('/<int:student_id>', methods=['GET'])
def student_detail(student_id):
    student = get_student_or_404(student_id)
    classes = sorted(student.classes, key=lambda c: (c.date, c.id), reverse=True)
    payments = sorted(student.payments, key=lambda p: (p.date, p.id), reverse=True)
    notes = sorted(student.notes, key=lambda n: n.id, reverse=True)
    body = student.to_dict()
    body.update({
        "classes": [c.to_dict() for c in classes],
        "payments": [p.to_dict() for p in payments],
        "notes": [n.to_dict() for n in notes],
        "summary": student_summary(student),
    })
    return jsonify(body)


@student_bp.route('/<int:student_id>/target', methods=['PATCH', 'POST'])
def update_monthly_target(student_id):
    student = get_student_or_404(student_id)
    data = read_payload()
    try:
        target = parse_int(data.get('monthly_target_classes'))
    except ValueError as exc:
        return error_response(str(exc))
    if target is None or target < 0:
        return error_response("monthly_target_classes must be a non-negative number")
    student.monthly_target_classes = target
    db.session.commit()
    return jsonify(student.to_dict())


@student_bp.route('/<int:student_id>/new-month', methods=['POST'])
def start_new_month(student_id):
    """Reset completed classes; payments and notes are kept."""
    student = get_student_or_404(student_id)
    try:
        removed = ClassRecord.query.filter_by(student_id=student.id).delete()
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to start new month for student %s", student.id)
        return error_response("Failed to start new month", 500)
    return jsonify({"student_id": student.id, "classes_removed": removed})


@student_bp.route('/<int:student_id>', methods=['DELETE'])
def delete_student(student_id):
    student = get_student_or_404(student_id)
    db.session.delete(student)
    db.session.commit()
    current_app.logger.info("Student %s deleted", student_id)
    return '', 204


@student_bp.route('/<int:student_id>/report.pdf', methods=['GET'])
def student_report(student_id):
    student = get_student_or_404(student_id)
    pdf = build_student_report(
        student,
        title=current_app.config.get("REPORT_TITLE", "Tuition Management System"),
        currency=current_app.config.get("CURRENCY", "BDT"),
    )
    return send_file(
        BytesIO(pdf),
        mimetype="application/pdf",
        as_attachment=True,
        download_name=report_filename(student),
    )
