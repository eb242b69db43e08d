from __future__ import annotations

import platform
from functools import wraps

from flask import (
    Blueprint,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)
from flask_login import current_user, login_required  # type: ignore
from sqlalchemy import func

from ..constants import (
    NOTICE_SUCCESSFUL_UPDATE,
    NOTICE_UPDATE_ERROR,
    PROJECT_STATUS_CHOICES,
)
from ..extensions import db
from ..forms.admin import DefaultConfigurationForm, RecalculateForm, TestEmailForm
from ..models import CustomField, Project
from ..security import safe_next_url
from ..services import default_data
from ..services.default_data import DefaultDataError
from ..services.mail_service import MailDeliveryError, deliver_test_email
from ..services.plugin_registry import discover_plugins
from ..services.recalculation_service import (
    MissingRequiredFieldsError,
    run_recalculation,
)
from ..services.system_info import build_checklist

admin_bp = Blueprint("admin", __name__)


def admin_required(func):
    @wraps(func)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated or not current_user.is_admin:
            flash("Administrator access required.", "danger")
            return redirect(url_for("auth.login"))
        return func(*args, **kwargs)

    return login_required(wrapper)


def _is_xhr() -> bool:
    return request.headers.get("X-Requested-With") == "XMLHttpRequest"


def _int_arg(name: str, default: int, *, minimum: int = 1, maximum: int = 500) -> int:
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    return max(minimum, min(value, maximum))


@admin_bp.route("/")
@admin_required
def index():
    return render_template(
        "admin/index.html",
        no_configuration_data=default_data.no_data(),
        default_configuration_form=DefaultConfigurationForm(),
        test_email_form=TestEmailForm(),
    )


@admin_bp.route("/projects")
@admin_required
def projects():
    page = _int_arg("page", 1, maximum=100000)
    per_page = _int_arg(
        "per_page", current_app.config.get("ADMIN_PROJECTS_PER_PAGE", 25)
    )
    name_filter = (request.args.get("name") or "").strip()
    status_raw = (request.args.get("status") or "").strip()

    query = Project.query
    if name_filter:
        pattern = f"%{name_filter.lower()}%"
        query = query.filter(
            func.lower(Project.name).like(pattern)
            | func.lower(Project.identifier).like(pattern)
        )
    if status_raw.isdigit():
        query = query.filter(Project.status == int(status_raw))

    pagination = query.order_by(Project.name, Project.id).paginate(
        page=page, per_page=per_page, error_out=False
    )
    columns = (
        CustomField.query.filter_by(is_for_all=True)
        .order_by(CustomField.position, CustomField.id)
        .all()
    )
    context = {
        "pagination": pagination,
        "projects": pagination.items,
        "entry_count": pagination.total,
        "custom_columns": columns,
        "name_filter": name_filter,
        "status_filter": status_raw,
        "status_choices": PROJECT_STATUS_CHOICES,
    }
    if _is_xhr():
        return render_template("admin/_projects_table.html", **context)
    return render_template("admin/projects.html", **context)


@admin_bp.route("/recalculate", methods=["GET"])
@admin_required
def recalculate():
    return render_template("admin/recalculate.html", form=RecalculateForm())


@admin_bp.route("/recalculate", methods=["POST"])
@admin_required
def do_recalculate():
    form = RecalculateForm()
    if not form.validate_on_submit():
        flash("Invalid recalculation request.", "danger")
        return redirect(url_for("admin.recalculate"))

    try:
        result = run_recalculation()
    except MissingRequiredFieldsError as exc:
        current_app.logger.warning(
            "Budget recalculation aborted; missing custom fields: %s",
            ", ".join(exc.missing),
        )
        flash(f"{NOTICE_UPDATE_ERROR}: {exc}", "danger")
    else:
        current_app.logger.info(
            "Budget recalculation by %s updated %s project(s).",
            current_user.email,
            result.processed,
        )
        flash(NOTICE_SUCCESSFUL_UPDATE, "success")
    return redirect(url_for("admin.recalculate"))


@admin_bp.route("/plugins")
@admin_required
def plugins():
    return render_template("admin/plugins.html", plugins=discover_plugins())


@admin_bp.route("/default_configuration", methods=["POST"])
@admin_required
def default_configuration():
    form = DefaultConfigurationForm()
    if not form.validate_on_submit():
        flash("Invalid default configuration request.", "danger")
        return redirect(url_for("admin.index"))

    try:
        default_data.load(form.lang.data)
    except DefaultDataError as exc:
        current_app.logger.exception("Loading default configuration failed.")
        flash(f"Unable to load the default configuration: {exc}", "danger")
    else:
        flash("Default configuration successfully loaded.", "success")
    return redirect(url_for("admin.index"))


@admin_bp.route("/test_email", methods=["POST"])
@admin_required
def test_email():
    form = TestEmailForm()
    redirect_target = safe_next_url(form.next.data) or url_for("admin.index")
    if not form.validate_on_submit():
        flash("Invalid test email request.", "danger")
        return redirect(redirect_target)

    recipient = current_user.email
    try:
        deliver_test_email(recipient)
    except MailDeliveryError as exc:
        current_app.logger.exception("Test email delivery failed.")
        flash(f"An error occurred while sending mail ({exc})", "danger")
    else:
        flash(f"An email was sent to {recipient}", "success")
    return redirect(redirect_target)


@admin_bp.route("/info")
@admin_required
def info():
    return render_template(
        "admin/info.html",
        version=current_app.config.get("PMADMIN_VERSION"),
        python_version=platform.python_version(),
        database_dialect=db.engine.dialect.name,
        checklist=build_checklist(),
    )
