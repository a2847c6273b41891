import json
from io import BytesIO

from flask import Blueprint, current_app, jsonify, request, send_file

from utils import error_response
from utils.importer import (
    TEMPLATE_FILENAME,
    ImportFailedError,
    bulk_insert,
    template_bytes,
    validate_import_data,
)
from utils.repository import SqlAlchemyRepository

import_bp = Blueprint('imports', __name__, url_prefix='/import')


class UnreadableUpload(ValueError):
    pass


def _read_document():
    """Parsed import document from the ``file`` upload or the raw JSON body."""
    upload = request.files.get('file')
    if upload is not None:
        raw = upload.read()
    else:
        raw = request.get_data()
    if not raw:
        raise UnreadableUpload("No import file provided")
    try:
        return json.loads(raw.decode('utf-8-sig'))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise UnreadableUpload(f"Invalid JSON file: {exc}") from exc


@import_bp.route('/template', methods=['GET'])
def download_template():
    return send_file(
        BytesIO(template_bytes()),
        mimetype="application/json",
        as_attachment=True,
        download_name=TEMPLATE_FILENAME,
    )


@import_bp.route('/validate', methods=['POST'])
def validate_upload():
    try:
        document = _read_document()
    except UnreadableUpload as exc:
        return error_response(str(exc))
    return jsonify(validate_import_data(document).as_dict())


@import_bp.route('/', methods=['POST'])
def run_import():
    """Validate then import; nothing is written unless the whole file validates."""
    try:
        document = _read_document()
    except UnreadableUpload as exc:
        return error_response(str(exc))

    validation = validate_import_data(document)
    if not validation.valid:
        body = validation.as_dict()
        body["error"] = "Validation failed"
        return jsonify(body), 400

    try:
        report = bulk_insert(document, SqlAlchemyRepository())
    except ImportFailedError as exc:
        # Full statement and parameters go to the log only
        current_app.logger.error("Import aborted", exc_info=exc.__cause__ or exc)
        partial = exc.report.as_dict() if exc.report is not None else None
        return jsonify({"error": str(exc), "results": partial}), 500

    return jsonify({"results": report.as_dict()})
