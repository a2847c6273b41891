import logging

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from extensions import db, limiter, migrate
from routes.auth_routes import auth_bp
from routes.class_routes import class_bp
from routes.import_routes import import_bp
from routes.note_routes import note_bp
from routes.payment_routes import payment_bp
from routes.settings_routes import settings_bp
from routes.student_routes import student_bp
from utils import require_login


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)

    # Load configuration from Config (falls back to sensible defaults inside Config)
    app.config.from_object(config_object)
    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))

    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    app.before_request(require_login)

    for bp in (auth_bp, student_bp, class_bp, payment_bp, note_bp, settings_bp, import_bp):
        app.register_blueprint(bp)

    # Set modern security headers on every response
    @app.after_request
    def _set_security_headers(resp):
        resp.headers.setdefault("X-Content-Type-Options", "nosniff")
        resp.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
        resp.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        if app.config.get("SESSION_COOKIE_SECURE", False):
            resp.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
        return resp

    @app.errorhandler(HTTPException)
    def _http_error(exc):
        return jsonify({"error": exc.description or exc.name}), exc.code

    @app.errorhandler(SQLAlchemyError)
    def _db_error(exc):
        db.session.rollback()
        app.logger.exception("Database error")
        return jsonify({"error": "Database error"}), 500

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            import models  # noqa: F401 - registers tables on db.metadata
            try:
                db.create_all()
            except SQLAlchemyError:
                # Database may be unreachable at boot; migrations can create tables later
                app.logger.exception("Could not create tables on startup")

    return app


app = create_app()


if __name__ == "__main__":
    app.run(debug=True)
