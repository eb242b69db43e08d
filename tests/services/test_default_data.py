from __future__ import annotations

import pytest

from pmadmin import create_app, db
from pmadmin.config import Config
from pmadmin.constants import EXECUTION_PHASE_VALUE, PHASE_FIELD_NAME
from pmadmin.models import CustomField, Project
from pmadmin.services import default_data
from pmadmin.services.default_data import DefaultDataError


class DefaultDataTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


@pytest.fixture()
def app(tmp_path):
    application = create_app(DefaultDataTestConfig, instance_path=tmp_path / "instance")
    with application.app_context():
        db.create_all()
        yield application


def test_no_data_on_empty_database(app):
    assert default_data.no_data() is True


def test_no_data_false_once_a_project_exists(app):
    db.session.add(Project(name="Alpha", identifier="alpha"))
    db.session.commit()
    assert default_data.no_data() is False


def test_load_creates_recalculation_fields(app):
    fields = default_data.load("en")

    assert [field.field_format for field in fields] == ["int", "int", "list", "date"]
    assert all(field.is_for_all for field in fields)
    phase = CustomField.query.filter_by(name=PHASE_FIELD_NAME).one()
    assert EXECUTION_PHASE_VALUE in phase.possible_values
    assert phase.description == "Project lifecycle phase."


def test_load_defaults_to_czech(app):
    default_data.load(None)
    phase = CustomField.query.filter_by(name=PHASE_FIELD_NAME).one()
    assert phase.description == "Fáze životního cyklu projektu."


def test_load_rejects_unknown_language(app):
    with pytest.raises(DefaultDataError, match="Unsupported language"):
        default_data.load("de")
    assert CustomField.query.count() == 0


def test_load_refuses_non_empty_database(app):
    default_data.load("cs")
    with pytest.raises(DefaultDataError):
        default_data.load("cs")
    assert CustomField.query.count() == 4
