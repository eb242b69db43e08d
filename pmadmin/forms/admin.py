from __future__ import annotations

from flask_wtf import FlaskForm  # type: ignore
from wtforms import HiddenField, SelectField, SubmitField
from wtforms.validators import DataRequired

from ..services.default_data import DEFAULT_LANGUAGE, available_languages

LANGUAGE_LABELS = {"cs": "Čeština", "en": "English"}


class RecalculateForm(FlaskForm):
    submit = SubmitField("Recalculate budgets")


class TestEmailForm(FlaskForm):
    next = HiddenField()
    submit = SubmitField("Send a test email")


class DefaultConfigurationForm(FlaskForm):
    lang = SelectField(
        "Language",
        validators=[DataRequired()],
        default=DEFAULT_LANGUAGE,
    )
    submit = SubmitField("Load the default configuration")

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.lang.choices = [
            (code, LANGUAGE_LABELS.get(code, code)) for code in available_languages()
        ]
