"""Default configuration data for fresh installations."""
from __future__ import annotations

import logging

from ..constants import (
    BUDGET_FIELD_NAME,
    LAST_SPENT_ON_FIELD_NAME,
    PHASE_CHOICES,
    PHASE_FIELD_NAME,
    SPENT_FIELD_NAME,
)
from ..extensions import db
from ..models import CustomField, Project

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "cs"

# Field names are fixed because the budget recalculation looks them up by name;
# only the descriptions are translated.
_FIELD_DESCRIPTIONS: dict[str, dict[str, str]] = {
    "cs": {
        BUDGET_FIELD_NAME: "Součet odhadovaných hodin úkolů projektu.",
        SPENT_FIELD_NAME: "Součet vykázaných hodin úkolů projektu.",
        PHASE_FIELD_NAME: "Fáze životního cyklu projektu.",
        LAST_SPENT_ON_FIELD_NAME: "Datum posledního vykázaného času.",
    },
    "en": {
        BUDGET_FIELD_NAME: "Sum of the estimated hours of the project's issues.",
        SPENT_FIELD_NAME: "Sum of the hours logged on the project's issues.",
        PHASE_FIELD_NAME: "Project lifecycle phase.",
        LAST_SPENT_ON_FIELD_NAME: "Date of the most recent time entry.",
    },
}

_DEFAULT_FIELDS: list[tuple[str, str, list[str]]] = [
    (BUDGET_FIELD_NAME, "int", []),
    (SPENT_FIELD_NAME, "int", []),
    (PHASE_FIELD_NAME, "list", list(PHASE_CHOICES)),
    (LAST_SPENT_ON_FIELD_NAME, "date", []),
]


class DefaultDataError(RuntimeError):
    """Raised when default data cannot be loaded."""


def available_languages() -> list[str]:
    return sorted(_FIELD_DESCRIPTIONS)


def no_data() -> bool:
    """True while the database holds neither custom fields nor projects."""
    return (
        db.session.query(CustomField.id).first() is None
        and db.session.query(Project.id).first() is None
    )


def load(lang: str | None = None) -> list[CustomField]:
    language = (lang or DEFAULT_LANGUAGE).strip().lower()
    descriptions = _FIELD_DESCRIPTIONS.get(language)
    if descriptions is None:
        raise DefaultDataError(f"Unsupported language: {language}")
    if not no_data():
        raise DefaultDataError("Default data can only be loaded into an empty database.")

    fields: list[CustomField] = []
    for position, (name, field_format, possible_values) in enumerate(
        _DEFAULT_FIELDS, start=1
    ):
        fields.append(
            CustomField(
                name=name,
                field_format=field_format,
                possible_values=possible_values,
                description=descriptions[name],
                is_for_all=True,
                position=position,
            )
        )
    db.session.add_all(fields)
    db.session.commit()
    logger.info("Loaded %s default custom field(s) (%s).", len(fields), language)
    return fields


__all__ = [
    "DEFAULT_LANGUAGE",
    "DefaultDataError",
    "available_languages",
    "load",
    "no_data",
]
