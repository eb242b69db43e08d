"""Environment checklist shown on the admin information page."""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path

from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from alembic.util import CommandError
from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import User
from ..security import default_admin_account_changed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChecklistItem:
    label: str
    ok: bool


def _writable(path: str | os.PathLike[str] | None) -> bool:
    if not path:
        return False
    return os.access(Path(path), os.W_OK)


def database_reachable() -> bool:
    try:
        return db.session.execute(text("SELECT 1")).scalar() == 1
    except SQLAlchemyError as exc:
        logger.warning("Database check failed: %s", exc)
        return False


def migrations_pending() -> bool:
    """Compare the database revision with the heads of the migration scripts.

    Reports pending when the migration directory cannot be read.
    """
    migrate_state = current_app.extensions.get("migrate")
    if migrate_state is None:
        return True
    try:
        config = migrate_state.migrate.get_config(migrate_state.directory)
        heads = set(ScriptDirectory.from_config(config).get_heads())
        with db.engine.connect() as connection:
            current = set(MigrationContext.configure(connection).get_current_heads())
    except (CommandError, SQLAlchemyError, OSError) as exc:
        logger.warning("Unable to inspect migration state: %s", exc)
        return True
    return current != heads


def build_checklist() -> list[ChecklistItem]:
    config = current_app.config
    return [
        ChecklistItem(
            "Default administrator account changed",
            default_admin_account_changed(
                User,
                config.get("DEFAULT_ADMIN_EMAIL", ""),
                config.get("DEFAULT_ADMIN_PASSWORD", ""),
            ),
        ),
        ChecklistItem(
            "Attachments directory writable", _writable(config.get("ATTACHMENTS_PATH"))
        ),
        ChecklistItem(
            f"Plugin assets directory writable ({config.get('PLUGIN_ASSETS_PATH')})",
            _writable(config.get("PLUGIN_ASSETS_PATH")),
        ),
        ChecklistItem("All migrations have been run", not migrations_pending()),
        ChecklistItem("Database reachable", database_reachable()),
        ChecklistItem("ImageMagick convert available", shutil.which("convert") is not None),
        ChecklistItem("Ghostscript available", shutil.which("gs") is not None),
    ]


__all__ = ["ChecklistItem", "build_checklist", "database_reachable", "migrations_pending"]
