import os
from pathlib import Path

from .constants import (
    BUDGET_FIELD_NAME,
    EXECUTION_PHASE_VALUE,
    LAST_SPENT_ON_FIELD_NAME,
    PHASE_FIELD_NAME,
    SPENT_FIELD_NAME,
)
from .version import get_version

BASE_DIR = Path(__file__).resolve().parent.parent
INSTANCE_DIR = BASE_DIR / "instance"
INSTANCE_PATH = str(INSTANCE_DIR.resolve())


def _get_int_env_var(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool_env_var(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    INSTANCE_PATH = INSTANCE_PATH
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL", f"sqlite:///{(INSTANCE_DIR / 'app.db').resolve()}"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MIGRATIONS_DIR = os.getenv(
        "MIGRATIONS_DIR", str((BASE_DIR / "migrations").resolve())
    )
    SESSION_COOKIE_HTTPONLY = True
    REMEMBER_COOKIE_HTTPONLY = True
    PMADMIN_VERSION = get_version()
    LOG_FILE = os.getenv(
        "LOG_FILE",
        str((BASE_DIR / "logs" / "pmadmin.log").resolve()),
    )
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    ATTACHMENTS_PATH = os.getenv(
        "ATTACHMENTS_PATH", str((INSTANCE_DIR / "files").resolve())
    )
    PLUGIN_ASSETS_PATH = os.getenv(
        "PLUGIN_ASSETS_PATH", str((BASE_DIR / "public" / "plugin_assets").resolve())
    )
    ADMIN_PROJECTS_PER_PAGE = _get_int_env_var("ADMIN_PROJECTS_PER_PAGE", 25)
    # Credentials created by `flask create-admin` on fresh installs; the info
    # screen warns while they still work.
    DEFAULT_ADMIN_EMAIL = os.getenv("DEFAULT_ADMIN_EMAIL", "admin@example.com")
    DEFAULT_ADMIN_PASSWORD = os.getenv("DEFAULT_ADMIN_PASSWORD", "admin")

    # Outgoing mail (Flask-Mail)
    MAIL_SERVER = os.getenv("MAIL_SERVER", "localhost")
    MAIL_PORT = _get_int_env_var("MAIL_PORT", 25)
    MAIL_USE_TLS = _get_bool_env_var("MAIL_USE_TLS", False)
    MAIL_USE_SSL = _get_bool_env_var("MAIL_USE_SSL", False)
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "pmadmin@example.com")

    # Budget recalculation
    RECALC_BUDGET_FIELD = os.getenv("RECALC_BUDGET_FIELD", BUDGET_FIELD_NAME)
    RECALC_SPENT_FIELD = os.getenv("RECALC_SPENT_FIELD", SPENT_FIELD_NAME)
    RECALC_PHASE_FIELD = os.getenv("RECALC_PHASE_FIELD", PHASE_FIELD_NAME)
    RECALC_LAST_SPENT_ON_FIELD = os.getenv(
        "RECALC_LAST_SPENT_ON_FIELD", LAST_SPENT_ON_FIELD_NAME
    )
    RECALC_PHASE_VALUE = os.getenv("RECALC_PHASE_VALUE", EXECUTION_PHASE_VALUE)
