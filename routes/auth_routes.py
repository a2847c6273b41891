import hmac

from flask import Blueprint, current_app, jsonify, redirect, render_template_string, session

from extensions import limiter
from utils import read_payload, wants_json
from utils.settings import get_branding

auth_bp = Blueprint('auth', __name__)

LOGIN_PAGE = """<!doctype html>
<title>{{ app_name }} | Sign in</title>
<h1>{{ app_name }}</h1>
<p>{{ app_tagline }}</p>
{% if error %}<p role="alert">{{ error }}</p>{% endif %}
<form method="post" action="/login">
  <input name="username" placeholder="Username" autocomplete="username" required>
  <input name="password" type="password" placeholder="Password" autocomplete="current-password" required>
  <button type="submit">Sign in</button>
</form>
"""


def _login_rate_limit():
    return current_app.config.get("LOGIN_RATE_LIMIT", "10 per minute")


def _credentials_match(username: str, password: str) -> bool:
    expected_user = str(current_app.config.get("LOGIN_USERNAME", ""))
    expected_pass = str(current_app.config.get("LOGIN_PASSWORD", ""))
    user_ok = hmac.compare_digest(username.encode(), expected_user.encode())
    pass_ok = hmac.compare_digest(password.encode(), expected_pass.encode())
    return user_ok and pass_ok


@auth_bp.route('/login', methods=['GET'])
def login_page():
    if session.get("logged_in"):
        return redirect("/")
    return render_template_string(LOGIN_PAGE, error=None, **get_branding())


@auth_bp.route('/login', methods=['POST'], endpoint='login')
@limiter.limit(_login_rate_limit)
def login():
    if session.get("logged_in"):
        return redirect("/")
    data = read_payload()
    username = str(data.get("username") or "")
    password = str(data.get("password") or "")
    if not _credentials_match(username, password):
        current_app.logger.warning("Failed login attempt for %r", username)
        if wants_json():
            return jsonify({"error": "Invalid username or password"}), 401
        return render_template_string(LOGIN_PAGE, error="Invalid username or password", **get_branding()), 401

    session.clear()
    session["logged_in"] = True
    session["username"] = username
    session.permanent = True
    if wants_json():
        return jsonify({"ok": True, "username": username})
    return redirect("/")


@auth_bp.route('/logout', methods=['POST', 'GET'])
def logout():
    session.clear()
    if wants_json():
        return jsonify({"ok": True})
    return redirect("/login")


@auth_bp.route('/', methods=['GET'])
def home():
    body = get_branding()
    body["username"] = session.get("username")
    body["sections"] = ["/students/", "/classes/", "/payments/", "/notes/", "/settings/", "/import/template"]
    return jsonify(body)
