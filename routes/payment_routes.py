from flask import Blueprint, current_app, jsonify, request

from extensions import db
from models import Payment
from utils import error_response, read_payload
from utils.db_helpers import get_student_or_404, month_name, parse_amount, parse_int
from utils.repository import parse_date

payment_bp = Blueprint('payments', __name__, url_prefix='/payments')


@payment_bp.route('/', methods=['GET'])
def list_payments():
    query = Payment.query
    try:
        student_id = parse_int(request.args.get('student_id'))
        year = parse_int(request.args.get('year'))
    except ValueError as exc:
        return error_response(str(exc))
    if student_id is not None:
        query = query.filter_by(student_id=student_id)
    if request.args.get('month'):
        query = query.filter_by(month=request.args['month'])
    if year is not None:
        query = query.filter_by(year=year)
    payments = query.order_by(Payment.created_at.desc(), Payment.id.desc()).all()
    return jsonify([p.to_dict() for p in payments])


@payment_bp.route('/', methods=['POST'])
def add_payment():
    data = read_payload()
    try:
        student_id = parse_int(data.get('student_id'))
        amount = parse_amount(data.get('amount'))
        day = parse_date(data.get('date'))
        year = parse_int(data.get('year'))
    except ValueError as exc:
        return error_response(str(exc))
    if student_id is None:
        return error_response("student_id is required")
    if not amount or amount <= 0:
        return error_response("Amount is required and must be a number")
    if day is None:
        return error_response("Date is required")
    student = get_student_or_404(student_id)

    payment = Payment(
        student_id=student.id,
        amount=amount,
        date=day,
        # Month/year default to the payment date
        month=data.get('month') or month_name(day),
        year=year or day.year,
    )
    db.session.add(payment)
    db.session.commit()
    current_app.logger.info("Payment of %s recorded for student %s", amount, student.id)
    return jsonify(payment.to_dict()), 201


@payment_bp.route('/<int:payment_id>', methods=['DELETE'])
def delete_payment(payment_id):
    payment = db.get_or_404(Payment, payment_id)
    db.session.delete(payment)
    db.session.commit()
    return '', 204
