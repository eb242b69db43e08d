from __future__ import annotations

from urllib.parse import urlparse

from flask_login import UserMixin  # type: ignore
from werkzeug.security import check_password_hash, generate_password_hash


def hash_password(password: str) -> str:
    return generate_password_hash(password, method="pbkdf2:sha256")


def verify_password(password_hash: str, candidate: str) -> bool:
    return check_password_hash(password_hash, candidate)


def safe_next_url(candidate: str | None) -> str | None:
    """Return ``candidate`` only when it points back into this site."""
    if not candidate:
        return None
    parsed = urlparse(candidate)
    if parsed.scheme or parsed.netloc:
        return None
    return candidate


def default_admin_account_changed(user_model, email: str, password: str) -> bool:
    """Return False while an admin can still log in with the install defaults."""
    user = user_model.query.filter_by(email=email.lower(), is_admin=True).first()
    if user is None:
        return True
    return not verify_password(user.password_hash, password)


class LoginUser(UserMixin):
    """Adapter to satisfy Flask-Login interface."""

    def __init__(self, db_user) -> None:
        self._db_user = db_user

    def get_id(self) -> str:
        return str(self._db_user.id)

    @property
    def email(self) -> str:
        return self._db_user.email

    @property
    def is_admin(self) -> bool:
        return self._db_user.is_admin

    def __getattr__(self, item):
        return getattr(self._db_user, item)
