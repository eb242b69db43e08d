from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from types import SimpleNamespace
from typing import Optional

import pytest

from pmadmin.constants import (
    BUDGET_FIELD_NAME,
    EXECUTION_PHASE_VALUE,
    LAST_SPENT_ON_FIELD_NAME,
    MISSING_FIELDS_MESSAGE,
    PHASE_FIELD_NAME,
    SPENT_FIELD_NAME,
)
from pmadmin.services.recalculation_service import (
    MissingRequiredFieldsError,
    ProjectTotals,
    RecalculationFields,
    ResolvedFields,
    aggregate_issues,
    recalculate_projects,
    resolve_fields,
)

BUDGET_ID, SPENT_ID, PHASE_ID, LAST_SPENT_ON_ID = 11, 12, 13, 14


@dataclass
class FakeProject:
    id: int
    issues: list = field(default_factory=list)
    values: dict[int, Optional[str]] = field(default_factory=dict)
    applicable: Optional[set[int]] = None

    def applicable_field_ids(self) -> set[int]:
        if self.applicable is None:
            return {BUDGET_ID, SPENT_ID, PHASE_ID, LAST_SPENT_ON_ID} | set(self.values)
        return set(self.applicable)

    def custom_field_value(
        self, field_id: int, applicable_ids: Optional[set[int]] = None
    ) -> Optional[str]:
        if applicable_ids is not None and field_id not in applicable_ids:
            return None
        return self.values.get(field_id)

    def set_custom_field_value(
        self,
        field_id: int,
        value: Optional[str],
        applicable_ids: Optional[set[int]] = None,
    ) -> bool:
        if applicable_ids is None:
            applicable_ids = self.applicable_field_ids()
        if field_id not in applicable_ids:
            return False
        self.values[field_id] = value
        return True


def _definitions(skip: Optional[str] = None) -> list[SimpleNamespace]:
    entries = [
        SimpleNamespace(id=1, name="Zákazník"),
        SimpleNamespace(id=BUDGET_ID, name=BUDGET_FIELD_NAME),
        SimpleNamespace(id=SPENT_ID, name=SPENT_FIELD_NAME),
        SimpleNamespace(id=PHASE_ID, name=PHASE_FIELD_NAME),
        SimpleNamespace(id=LAST_SPENT_ON_ID, name=LAST_SPENT_ON_FIELD_NAME),
    ]
    return [entry for entry in entries if entry.name != skip]


def _issue(estimated=None, spent=None, dates=()) -> SimpleNamespace:
    return SimpleNamespace(
        estimated_hours=estimated,
        spent_hours=spent,
        time_entries=[SimpleNamespace(spent_on=value) for value in dates],
    )


def _executing_project(project_id: int = 1, issues=None) -> FakeProject:
    return FakeProject(
        id=project_id,
        issues=list(issues or []),
        values={PHASE_ID: EXECUTION_PHASE_VALUE},
    )


class SaveRecorder:
    def __init__(self) -> None:
        self.saved: list[int] = []

    def __call__(self, project) -> None:
        self.saved.append(project.id)


def test_resolve_fields_maps_every_role():
    resolved = resolve_fields(_definitions())
    assert resolved == ResolvedFields(
        budget_id=BUDGET_ID,
        spent_id=SPENT_ID,
        phase_id=PHASE_ID,
        last_spent_on_id=LAST_SPENT_ON_ID,
    )


@pytest.mark.parametrize(
    "missing",
    [BUDGET_FIELD_NAME, SPENT_FIELD_NAME, PHASE_FIELD_NAME, LAST_SPENT_ON_FIELD_NAME],
)
def test_resolve_fields_reports_missing_field(missing):
    with pytest.raises(MissingRequiredFieldsError) as excinfo:
        resolve_fields(_definitions(skip=missing))

    assert excinfo.value.missing == [missing]
    assert str(excinfo.value) == MISSING_FIELDS_MESSAGE


def test_resolve_fields_requires_exact_names():
    definitions = [
        SimpleNamespace(id=BUDGET_ID, name="Rozpočet (tis. Kč) "),
        SimpleNamespace(id=SPENT_ID, name=SPENT_FIELD_NAME),
        SimpleNamespace(id=PHASE_ID, name="Faze"),
        SimpleNamespace(id=LAST_SPENT_ON_ID, name=LAST_SPENT_ON_FIELD_NAME),
    ]
    with pytest.raises(MissingRequiredFieldsError) as excinfo:
        resolve_fields(definitions)

    assert excinfo.value.missing == [BUDGET_FIELD_NAME, PHASE_FIELD_NAME]


def test_resolve_fields_last_duplicate_wins(caplog):
    definitions = _definitions() + [SimpleNamespace(id=99, name=PHASE_FIELD_NAME)]

    with caplog.at_level(logging.WARNING):
        resolved = resolve_fields(definitions)

    assert resolved.phase_id == 99
    assert "defined more than once" in caplog.text


def test_fields_from_config_fall_back_to_defaults():
    fields = RecalculationFields.from_config(
        {"RECALC_PHASE_FIELD": "Phase", "RECALC_BUDGET_FIELD": ""}
    )
    assert fields.phase == "Phase"
    assert fields.budget == BUDGET_FIELD_NAME
    assert fields.spent == SPENT_FIELD_NAME
    assert fields.last_spent_on == LAST_SPENT_ON_FIELD_NAME


def test_aggregate_rounds_each_issue_before_summing():
    totals = aggregate_issues([_issue(estimated=1.4), _issue(estimated=1.4)])
    assert totals.total_budget == 2


def test_aggregate_treats_missing_hours_as_zero():
    totals = aggregate_issues([_issue(estimated=None, spent=None)])
    assert totals == ProjectTotals(total_budget=0, total_spent=0, last_spent_on=None)


def test_aggregate_uses_builtin_rounding_for_halves():
    totals = aggregate_issues(
        [_issue(spent=0.5), _issue(spent=1.5), _issue(spent=2.5)]
    )
    assert totals.total_spent == round(0.5) + round(1.5) + round(2.5)


def test_aggregate_picks_latest_time_entry_across_issues():
    totals = aggregate_issues(
        [
            _issue(dates=[date(2024, 1, 10)]),
            _issue(dates=[date(2024, 3, 2), date(2023, 12, 31)]),
        ]
    )
    assert totals.last_spent_on == date(2024, 3, 2)


def test_aggregate_without_time_entries_has_no_date():
    totals = aggregate_issues([_issue(estimated=2.0), _issue(spent=1.0)])
    assert totals.last_spent_on is None


def test_recalculate_writes_totals_and_saves_project():
    project = _executing_project(
        issues=[
            _issue(estimated=3.6, spent=1.2, dates=[date(2024, 2, 1)]),
            _issue(estimated=2.4, spent=0.9, dates=[date(2024, 5, 20)]),
        ]
    )
    save = SaveRecorder()

    result = recalculate_projects(_definitions(), [project], save=save)

    assert project.values[BUDGET_ID] == "6"
    assert project.values[SPENT_ID] == "2"
    assert project.values[LAST_SPENT_ON_ID] == "2024-05-20"
    assert project.values[PHASE_ID] == EXECUTION_PHASE_VALUE
    assert save.saved == [1]
    assert result.updated == [1]
    assert result.processed == 1
    assert result.skipped == 0


def test_recalculate_clears_last_spent_on_without_time_entries():
    project = _executing_project(issues=[_issue(estimated=4.0)])
    project.values[LAST_SPENT_ON_ID] = "2023-01-01"

    recalculate_projects(_definitions(), [project], save=SaveRecorder())

    assert project.values[LAST_SPENT_ON_ID] is None
    assert project.values[BUDGET_ID] == "4"
    assert project.values[SPENT_ID] == "0"


@pytest.mark.parametrize(
    "phase", [None, "2 - Plánování", "3 - exekuce", "3 - Exekuce ", ""]
)
def test_recalculate_skips_projects_outside_execution_phase(phase):
    values = {BUDGET_ID: "99", SPENT_ID: "42"}
    if phase is not None:
        values[PHASE_ID] = phase
    project = FakeProject(
        id=7,
        issues=[_issue(estimated=10.0, spent=5.0, dates=[date(2024, 1, 1)])],
        values=dict(values),
    )
    save = SaveRecorder()

    result = recalculate_projects(_definitions(), [project], save=save)

    assert project.values == values
    assert save.saved == []
    assert result.skipped == 1
    assert result.updated == []


def test_recalculate_aborts_before_touching_projects_when_field_missing():
    project = _executing_project(issues=[_issue(estimated=3.0)])
    save = SaveRecorder()

    with pytest.raises(MissingRequiredFieldsError):
        recalculate_projects(
            _definitions(skip=LAST_SPENT_ON_FIELD_NAME), [project], save=save
        )

    assert project.values == {PHASE_ID: EXECUTION_PHASE_VALUE}
    assert save.saved == []


def test_recalculate_keeps_projects_saved_before_a_failure():
    first = _executing_project(1, issues=[_issue(estimated=1.0)])
    second = _executing_project(2, issues=[_issue(estimated=2.0)])
    third = _executing_project(3, issues=[_issue(estimated=3.0)])
    saved: list[int] = []

    def save(project) -> None:
        if project.id == 2:
            raise RuntimeError("database is locked")
        saved.append(project.id)

    with pytest.raises(RuntimeError, match="database is locked"):
        recalculate_projects(_definitions(), [first, second, third], save=save)

    assert saved == [1]
    assert first.values[BUDGET_ID] == "1"
    assert BUDGET_ID not in third.values


def test_recalculate_processes_projects_in_given_order():
    projects = [
        _executing_project(5),
        FakeProject(id=3),
        _executing_project(4),
    ]
    save = SaveRecorder()

    result = recalculate_projects(_definitions(), projects, save=save)

    assert save.saved == [5, 4]
    assert result.updated == [5, 4]
    assert result.skipped == 1


def test_recalculate_honours_configured_names_and_phase():
    definitions = [
        SimpleNamespace(id=BUDGET_ID, name="Budget"),
        SimpleNamespace(id=SPENT_ID, name="Spent"),
        SimpleNamespace(id=PHASE_ID, name="Phase"),
        SimpleNamespace(id=LAST_SPENT_ON_ID, name="Last spent on"),
    ]
    project = FakeProject(
        id=1, issues=[_issue(estimated=2.2)], values={PHASE_ID: "Execution"}
    )

    result = recalculate_projects(
        definitions,
        [project],
        save=SaveRecorder(),
        fields=RecalculationFields(
            budget="Budget",
            spent="Spent",
            phase="Phase",
            last_spent_on="Last spent on",
        ),
        phase_value="Execution",
    )

    assert result.updated == [1]
    assert project.values[BUDGET_ID] == "2"


def test_recalculate_only_writes_applicable_fields():
    project = _executing_project(issues=[_issue(estimated=1.0, dates=[date(2024, 6, 1)])])
    project.applicable = {PHASE_ID, BUDGET_ID, SPENT_ID}

    recalculate_projects(_definitions(), [project], save=SaveRecorder())

    assert project.values[BUDGET_ID] == "1"
    assert LAST_SPENT_ON_ID not in project.values


def test_recalculate_ignores_phase_value_of_field_no_longer_applicable():
    project = _executing_project(issues=[_issue(estimated=3.0, dates=[date(2024, 1, 1)])])
    project.applicable = {BUDGET_ID, SPENT_ID, LAST_SPENT_ON_ID}
    save = SaveRecorder()

    result = recalculate_projects(_definitions(), [project], save=save)

    assert result.updated == []
    assert result.skipped == 1
    assert save.saved == []
    assert project.values == {PHASE_ID: EXECUTION_PHASE_VALUE}


def test_resolve_fields_names_configured_fields_in_message():
    names = RecalculationFields(
        budget="Budget", spent="Spent", phase="Phase", last_spent_on="Last spent on"
    )
    definitions = [
        SimpleNamespace(id=BUDGET_ID, name="Budget"),
        SimpleNamespace(id=PHASE_ID, name="Phase"),
    ]

    with pytest.raises(MissingRequiredFieldsError) as excinfo:
        resolve_fields(definitions, names)

    assert excinfo.value.missing == ["Spent", "Last spent on"]
    assert str(excinfo.value) == (
        "Required custom fields are missing: 'Spent', 'Last spent on'"
    )


def test_recalculate_resolves_applicable_fields_once_per_project():
    calls: list[int] = []

    class CountingProject(FakeProject):
        def applicable_field_ids(self) -> set[int]:
            calls.append(self.id)
            return super().applicable_field_ids()

    projects = [
        CountingProject(
            id=1,
            issues=[_issue(estimated=1.0)],
            values={PHASE_ID: EXECUTION_PHASE_VALUE},
        ),
        CountingProject(id=2, values={PHASE_ID: "1 - Příprava"}),
    ]

    recalculate_projects(_definitions(), projects, save=SaveRecorder())

    assert calls == [1, 2]
