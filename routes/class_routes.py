from flask import Blueprint, current_app, jsonify, request

from extensions import db
from models import ClassRecord
from utils import error_response, read_payload
from utils.db_helpers import get_student_or_404, parse_int
from utils.repository import parse_date

class_bp = Blueprint('classes', __name__, url_prefix='/classes')


@class_bp.route('/', methods=['GET'])
def list_classes():
    query = ClassRecord.query
    try:
        student_id = parse_int(request.args.get('student_id'))
        day = parse_date(request.args.get('date'))
    except ValueError as exc:
        return error_response(str(exc))
    if student_id is not None:
        query = query.filter_by(student_id=student_id)
    if day is not None:
        query = query.filter_by(date=day)
    records = query.order_by(ClassRecord.date.desc(), ClassRecord.id.desc()).all()
    return jsonify([r.to_dict() for r in records])


@class_bp.route('/', methods=['POST'])
def add_class():
    data = read_payload()
    try:
        student_id = parse_int(data.get('student_id'))
        day = parse_date(data.get('date'))
        completed = parse_int(data.get('completed_count'), 1)
    except ValueError as exc:
        return error_response(str(exc))
    if student_id is None:
        return error_response("student_id is required")
    if day is None:
        return error_response("Date is required")
    student = get_student_or_404(student_id)

    record = ClassRecord(
        student_id=student.id,
        date=day,
        time=data.get('time') or None,
        completed_count=completed or 1,
    )
    db.session.add(record)
    db.session.commit()
    current_app.logger.info("Class recorded for student %s on %s", student.id, day)
    return jsonify(record.to_dict()), 201


@class_bp.route('/<int:class_id>', methods=['DELETE'])
def delete_class(class_id):
    record = db.get_or_404(ClassRecord, class_id)
    db.session.delete(record)
    db.session.commit()
    return '', 204
