from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from extensions import db
from models import Setting

logger = logging.getLogger(__name__)

DEFAULT_APP_NAME = "TMS"
DEFAULT_LOGO_TEXT = "TMS"
DEFAULT_TAGLINE = "Tuition Management System"


def get_settings() -> Dict[str, Optional[str]]:
    try:
        rows = db.session.query(Setting.key, Setting.value).all()
    except SQLAlchemyError:
        logger.exception("Error fetching settings")
        db.session.rollback()
        return {}
    return {str(k): v for k, v in rows}


def get_setting(key: str, default: Optional[str] = None) -> Optional[str]:
    try:
        row = Setting.query.filter_by(key=key).first()
    except SQLAlchemyError:
        logger.exception("Error fetching setting %s", key)
        db.session.rollback()
        return default
    if row is None or not row.value:
        return default
    return str(row.value)


def update_setting(key: str, value: Optional[str]) -> bool:
    """Insert or update ``key``; returns False when the write fails."""
    try:
        row = Setting.query.filter_by(key=key).first()
        if row is None:
            row = Setting(key=key)
            db.session.add(row)
        row.value = value
        row.updated_at = datetime.utcnow()
        db.session.commit()
        return True
    except SQLAlchemyError:
        logger.exception("Error updating setting %s", key)
        db.session.rollback()
        return False


def get_app_name() -> str:
    return get_setting("app_name") or DEFAULT_APP_NAME


def get_logo_text() -> str:
    return get_setting("app_logo_text") or DEFAULT_LOGO_TEXT


def get_tagline() -> str:
    return get_setting("app_tagline") or DEFAULT_TAGLINE


def update_app_name(name: str) -> bool:
    return update_setting("app_name", name)


def update_logo_text(text: str) -> bool:
    return update_setting("app_logo_text", text)


def update_tagline(tagline: str) -> bool:
    return update_setting("app_tagline", tagline)


def get_branding() -> Dict[str, str]:
    return {
        "app_name": get_app_name(),
        "app_logo_text": get_logo_text(),
        "app_tagline": get_tagline(),
    }
