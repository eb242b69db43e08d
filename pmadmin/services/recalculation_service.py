"""Budget recalculation for projects in the execution phase.

For every project whose phase custom field holds the execution value, the
estimated and logged hours of its issues are summed and written back into the
budget and spent custom fields together with the date of the newest time entry.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Optional

from flask import current_app

from ..constants import (
    BUDGET_FIELD_NAME,
    EXECUTION_PHASE_VALUE,
    LAST_SPENT_ON_FIELD_NAME,
    MISSING_FIELDS_MESSAGE,
    PHASE_FIELD_NAME,
    SPENT_FIELD_NAME,
)
from ..extensions import db
from ..models import CustomField, Project

logger = logging.getLogger(__name__)


class MissingRequiredFieldsError(RuntimeError):
    """Raised when a custom field needed by the recalculation cannot be found."""

    def __init__(self, missing: list[str], message: Optional[str] = None):
        super().__init__(message or MISSING_FIELDS_MESSAGE)
        self.missing = missing


@dataclass(frozen=True)
class RecalculationFields:
    """Display names of the custom fields the recalculation reads and writes."""

    budget: str = BUDGET_FIELD_NAME
    spent: str = SPENT_FIELD_NAME
    phase: str = PHASE_FIELD_NAME
    last_spent_on: str = LAST_SPENT_ON_FIELD_NAME

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "RecalculationFields":
        return cls(
            budget=config.get("RECALC_BUDGET_FIELD") or BUDGET_FIELD_NAME,
            spent=config.get("RECALC_SPENT_FIELD") or SPENT_FIELD_NAME,
            phase=config.get("RECALC_PHASE_FIELD") or PHASE_FIELD_NAME,
            last_spent_on=config.get("RECALC_LAST_SPENT_ON_FIELD")
            or LAST_SPENT_ON_FIELD_NAME,
        )

    def by_role(self) -> dict[str, str]:
        return {
            "budget": self.budget,
            "spent": self.spent,
            "phase": self.phase,
            "last_spent_on": self.last_spent_on,
        }


@dataclass(frozen=True)
class ResolvedFields:
    budget_id: int
    spent_id: int
    phase_id: int
    last_spent_on_id: int


@dataclass(frozen=True)
class ProjectTotals:
    total_budget: int = 0
    total_spent: int = 0
    last_spent_on: Optional[date] = None


@dataclass
class RecalculationResult:
    updated: list[int] = field(default_factory=list)
    skipped: int = 0

    @property
    def processed(self) -> int:
        return len(self.updated)


def resolve_fields(
    definitions: Iterable[Any], names: Optional[RecalculationFields] = None
) -> ResolvedFields:
    """Map each recalculation role to a custom field id by exact name.

    When several definitions share a name the last one wins.
    """
    names = names or RecalculationFields()
    roles = names.by_role()
    found: dict[str, int] = {}
    for definition in definitions:
        for role, name in roles.items():
            if definition.name != name:
                continue
            if role in found:
                logger.warning(
                    "Custom field %r is defined more than once; using id %s instead of %s.",
                    name,
                    definition.id,
                    found[role],
                )
            found[role] = definition.id

    missing = [name for role, name in roles.items() if role not in found]
    if missing:
        if names == RecalculationFields():
            raise MissingRequiredFieldsError(missing)
        raise MissingRequiredFieldsError(
            missing,
            "Required custom fields are missing: "
            + ", ".join(repr(name) for name in missing),
        )

    return ResolvedFields(
        budget_id=found["budget"],
        spent_id=found["spent"],
        phase_id=found["phase"],
        last_spent_on_id=found["last_spent_on"],
    )


def in_phase(
    project: Any,
    phase_field_id: int,
    phase_value: str = EXECUTION_PHASE_VALUE,
    applicable_ids: Optional[set[int]] = None,
) -> bool:
    # A project without a stored phase, or whose phase field no longer
    # applies to it, never matches.
    if applicable_ids is None:
        applicable_ids = project.applicable_field_ids()
    return project.custom_field_value(phase_field_id, applicable_ids) == phase_value


def aggregate_issues(issues: Iterable[Any]) -> ProjectTotals:
    total_budget = 0
    total_spent = 0
    last_spent_on: Optional[date] = None
    for issue in issues:
        # Hours are rounded per issue before they are added to the totals.
        total_budget += round(issue.estimated_hours or 0.0)
        total_spent += round(issue.spent_hours or 0.0)
        for entry in issue.time_entries:
            if last_spent_on is None or entry.spent_on > last_spent_on:
                last_spent_on = entry.spent_on
    return ProjectTotals(
        total_budget=total_budget,
        total_spent=total_spent,
        last_spent_on=last_spent_on,
    )


def apply_totals(
    project: Any,
    fields: ResolvedFields,
    totals: ProjectTotals,
    applicable_ids: Optional[set[int]] = None,
) -> None:
    if applicable_ids is None:
        applicable_ids = project.applicable_field_ids()
    project.set_custom_field_value(
        fields.budget_id, str(totals.total_budget), applicable_ids
    )
    project.set_custom_field_value(
        fields.spent_id, str(totals.total_spent), applicable_ids
    )
    project.set_custom_field_value(
        fields.last_spent_on_id,
        totals.last_spent_on.isoformat() if totals.last_spent_on else None,
        applicable_ids,
    )


def recalculate_projects(
    definitions: Iterable[Any],
    projects: Iterable[Any],
    *,
    save: Callable[[Any], None],
    fields: Optional[RecalculationFields] = None,
    phase_value: str = EXECUTION_PHASE_VALUE,
) -> RecalculationResult:
    """Recalculate budget figures of every project in ``phase_value``.

    ``save`` is called once per updated project. There is no transaction around
    the whole batch, so projects saved before a failing ``save`` stay saved.
    Raises ``MissingRequiredFieldsError`` before touching any project when a
    field cannot be resolved.
    """
    resolved = resolve_fields(definitions, fields)
    result = RecalculationResult()
    for project in projects:
        applicable_ids = project.applicable_field_ids()
        if not in_phase(project, resolved.phase_id, phase_value, applicable_ids):
            result.skipped += 1
            continue
        totals = aggregate_issues(project.issues)
        apply_totals(project, resolved, totals, applicable_ids)
        save(project)
        result.updated.append(project.id)
        logger.debug(
            "Project %s recalculated: budget=%s spent=%s last_spent_on=%s",
            project.id,
            totals.total_budget,
            totals.total_spent,
            totals.last_spent_on,
        )
    logger.info(
        "Budget recalculation finished; %s project(s) updated, %s skipped.",
        result.processed,
        result.skipped,
    )
    return result


def _commit_project(project: Project) -> None:
    db.session.add(project)
    db.session.commit()


def run_recalculation() -> RecalculationResult:
    """Run the recalculation against the database of the current app."""
    config = current_app.config
    return recalculate_projects(
        CustomField.query.order_by(CustomField.id).all(),
        Project.query.order_by(Project.id).all(),
        save=_commit_project,
        fields=RecalculationFields.from_config(config),
        phase_value=config.get("RECALC_PHASE_VALUE") or EXECUTION_PHASE_VALUE,
    )


__all__ = [
    "MissingRequiredFieldsError",
    "ProjectTotals",
    "RecalculationFields",
    "RecalculationResult",
    "ResolvedFields",
    "aggregate_issues",
    "apply_totals",
    "in_phase",
    "recalculate_projects",
    "resolve_fields",
    "run_recalculation",
]
