from __future__ import annotations

from typing import Any, Dict

from flask import jsonify, redirect, request, session

PUBLIC_ENDPOINTS = {"auth.login", "auth.login_page", "static"}


def require_login():
    """``before_request`` hook guarding every page and API.

    - If ``session['logged_in']`` is truthy, proceeds to the view.
    - JSON clients get a 401; everything else is redirected to ``/login``.
    """
    if request.endpoint in PUBLIC_ENDPOINTS:
        return None
    if session.get("logged_in"):
        return None
    if wants_json():
        return jsonify({"error": "Authentication required"}), 401
    return redirect("/login")


def wants_json() -> bool:
    return request.is_json or request.accept_mimetypes.best == "application/json"


def read_payload() -> Dict[str, Any]:
    """Request body as a dict, from JSON when sent as JSON, else from the form."""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()


def error_response(message: str, status: int = 400):
    return jsonify({"error": message}), status
