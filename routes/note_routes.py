from flask import Blueprint, jsonify, request

from extensions import db
from models import Note
from utils import error_response, read_payload
from utils.db_helpers import get_student_or_404, parse_int

note_bp = Blueprint('notes', __name__, url_prefix='/notes')


def _note_text(data):
    text = data.get('note_text')
    return text.strip() if isinstance(text, str) else ''


@note_bp.route('/', methods=['GET'])
def list_notes():
    query = Note.query
    try:
        student_id = parse_int(request.args.get('student_id'))
    except ValueError as exc:
        return error_response(str(exc))
    if student_id is not None:
        query = query.filter_by(student_id=student_id)
    notes = query.order_by(Note.created_at.desc(), Note.id.desc()).all()
    return jsonify([n.to_dict() for n in notes])


@note_bp.route('/', methods=['POST'])
def add_note():
    data = read_payload()
    try:
        student_id = parse_int(data.get('student_id'))
    except ValueError as exc:
        return error_response(str(exc))
    if student_id is None:
        return error_response("student_id is required")
    text = _note_text(data)
    if not text:
        return error_response("Note text is required")
    student = get_student_or_404(student_id)

    note = Note(student_id=student.id, note_text=text)
    db.session.add(note)
    db.session.commit()
    return jsonify(note.to_dict()), 201


@note_bp.route('/<int:note_id>', methods=['PATCH', 'PUT'])
def update_note(note_id):
    note = db.get_or_404(Note, note_id)
    text = _note_text(read_payload())
    if not text:
        return error_response("Note text is required")
    note.note_text = text
    db.session.commit()
    return jsonify(note.to_dict())


@note_bp.route('/<int:note_id>', methods=['DELETE'])
def delete_note(note_id):
    note = db.get_or_404(Note, note_id)
    db.session.delete(note)
    db.session.commit()
    return '', 204
