from flask import Blueprint, jsonify

from utils import error_response, read_payload
from utils.settings import get_branding, get_settings, update_setting

settings_bp = Blueprint('settings', __name__, url_prefix='/settings')

EDITABLE_KEYS = ("app_name", "app_logo_text", "app_tagline")


@settings_bp.route('/', methods=['GET'])
def view_settings():
    body = get_settings()
    body.update(get_branding())
    return jsonify(body)


@settings_bp.route('/', methods=['POST'])
def save_settings():
    data = read_payload()
    updates = {k: data[k] for k in EDITABLE_KEYS if k in data}
    if not updates:
        return error_response(f"Nothing to update; expected one of {', '.join(EDITABLE_KEYS)}")
    for key, value in updates.items():
        if not isinstance(value, str) or not value.strip():
            return error_response(f"{key} must be a non-empty string")
    failed = [key for key, value in updates.items() if not update_setting(key, value.strip())]
    if failed:
        return error_response(f"Failed to save: {', '.join(failed)}", 500)
    return jsonify(get_branding())
