from __future__ import annotations

from datetime import date

import pytest

from pmadmin import create_app, db
from pmadmin.config import Config
from pmadmin.models import CustomField, CustomValue, Issue, Project, TimeEntry


class ModelTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


@pytest.fixture()
def app(tmp_path):
    application = create_app(ModelTestConfig, instance_path=tmp_path / "instance")
    with application.app_context():
        db.create_all()
        yield application


def test_available_custom_fields_include_global_and_linked(app):
    shared = CustomField(name="Shared", is_for_all=True, position=2)
    linked = CustomField(name="Linked", position=1)
    other = CustomField(name="Other")
    project = Project(name="Alpha", identifier="alpha", custom_fields=[linked])
    db.session.add_all([shared, linked, other, project])
    db.session.commit()

    assert [field.name for field in project.available_custom_fields()] == [
        "Linked",
        "Shared",
    ]


def test_set_custom_field_value_upserts_single_row(app):
    field = CustomField(name="Budget", field_format="int", is_for_all=True)
    project = Project(name="Alpha", identifier="alpha")
    db.session.add_all([field, project])
    db.session.commit()

    assert project.set_custom_field_value(field.id, "5") is True
    db.session.commit()
    assert project.set_custom_field_value(field.id, "7") is True
    db.session.commit()

    rows = CustomValue.query.filter_by(project_id=project.id).all()
    assert [row.value for row in rows] == ["7"]
    assert project.custom_field_value(field.id) == "7"


def test_set_custom_field_value_ignores_unrelated_field(app):
    field = CustomField(name="Private", field_format="string")
    project = Project(name="Alpha", identifier="alpha")
    db.session.add_all([field, project])
    db.session.commit()

    assert project.set_custom_field_value(field.id, "x") is False
    assert project.custom_field_value(field.id) is None


def test_issue_spent_hours_sums_time_entries(app):
    project = Project(name="Alpha", identifier="alpha")
    logged = Issue(project=project, subject="Logged", estimated_hours=3.0)
    logged.time_entries.extend(
        [
            TimeEntry(hours=1.25, spent_on=date(2024, 1, 2)),
            TimeEntry(hours=0.5, spent_on=date(2024, 1, 3)),
        ]
    )
    untouched = Issue(project=project, subject="Untouched")
    db.session.add(project)
    db.session.commit()

    assert logged.spent_hours == pytest.approx(1.75)
    assert untouched.spent_hours is None
    assert project.status_label == "Active"


def test_stale_value_of_unlinked_field_reads_as_none(app):
    field = CustomField(name="Phase", field_format="list")
    shared = CustomField(name="Shared", is_for_all=True)
    project = Project(name="Alpha", identifier="alpha", custom_fields=[field])
    db.session.add_all([field, shared, project])
    db.session.commit()
    assert project.set_custom_field_value(field.id, "old") is True
    db.session.commit()

    project.custom_fields.remove(field)
    db.session.commit()
    applicable = project.applicable_field_ids()

    assert applicable == {shared.id}
    assert project.custom_field_value(field.id) == "old"
    assert project.custom_field_value(field.id, applicable) is None
    assert project.set_custom_field_value(field.id, "new", applicable) is False
