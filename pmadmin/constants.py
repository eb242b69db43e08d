from __future__ import annotations

# Custom field names looked up by the budget recalculation. They must match the
# stored names exactly, including diacritics and whitespace.
BUDGET_FIELD_NAME: str = "Rozpočet (tis. Kč)"
SPENT_FIELD_NAME: str = "Vyčerpáno (tis. Kč)"
PHASE_FIELD_NAME: str = "Fáze"
LAST_SPENT_ON_FIELD_NAME: str = "Poslední náklady k datu"

# Only projects in this phase are recalculated.
EXECUTION_PHASE_VALUE: str = "3 - Exekuce"

PHASE_CHOICES: list[str] = [
    "1 - Příprava",
    "2 - Plánování",
    EXECUTION_PHASE_VALUE,
    "4 - Uzavření",
]

MISSING_FIELDS_MESSAGE: str = (
    "Nepodařilo se najít uživatelská pole Rozpočet (tis. Kč), "
    "Vyčerpáno (tis. Kč) nebo Fáze nebo Poslední náklady k datu."
)

NOTICE_SUCCESSFUL_UPDATE = "Successful update."
NOTICE_UPDATE_ERROR = "An error occurred while updating"

PROJECT_STATUS_ACTIVE = 1
PROJECT_STATUS_CLOSED = 5
PROJECT_STATUS_ARCHIVED = 9

PROJECT_STATUS_CHOICES: list[tuple[int, str]] = [
    (PROJECT_STATUS_ACTIVE, "Active"),
    (PROJECT_STATUS_CLOSED, "Closed"),
    (PROJECT_STATUS_ARCHIVED, "Archived"),
]


def project_status_label(status: int | None) -> str:
    """Return the human readable label for a project status code."""
    for value, label in PROJECT_STATUS_CHOICES:
        if value == status:
            return label
    return "Unknown"
