import click
from flask.cli import with_appcontext

from .extensions import db
from .models import User
from .security import hash_password
from .services import default_data
from .services.default_data import DefaultDataError
from .services.recalculation_service import (
    MissingRequiredFieldsError,
    run_recalculation,
)
from .version import __version__


@click.command("db_init")
@with_appcontext
def db_init_command() -> None:
    """Initialize the database tables."""
    db.create_all()
    click.echo("Database initialized.")


@click.command("create-admin")
@click.option("--email", prompt=True)
@click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
@click.option("--name", default="Administrator", show_default=True)
@with_appcontext
def create_admin_command(email: str, password: str, name: str) -> None:
    """Create an administrator account."""
    email = email.strip().lower()
    if User.query.filter_by(email=email).first():
        raise click.ClickException("User already exists.")

    user = User(
        email=email,
        name=name,
        password_hash=hash_password(password),
        is_admin=True,
    )
    db.session.add(user)
    db.session.commit()
    click.echo(f"Admin user {email} created.")


@click.command("load-default-data")
@click.option(
    "--lang",
    default=default_data.DEFAULT_LANGUAGE,
    show_default=True,
    type=click.Choice(default_data.available_languages()),
    help="Language of the field descriptions.",
)
@with_appcontext
def load_default_data_command(lang: str) -> None:
    """Create the custom fields used by the budget recalculation."""
    try:
        fields = default_data.load(lang)
    except DefaultDataError as exc:
        raise click.ClickException(str(exc)) from exc
    for field in fields:
        click.echo(f"Created custom field '{field.name}' ({field.field_format}).")


@click.command("recalculate-budgets")
@with_appcontext
def recalculate_budgets_command() -> None:
    """Recalculate budget, spent and last-spent-on fields of projects in execution."""
    try:
        result = run_recalculation()
    except MissingRequiredFieldsError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Updated {result.processed} project(s); skipped {result.skipped}.")


@click.command("version")
def version_command() -> None:
    """Display the pm-admin version."""
    click.echo(__version__)


def register_cli_commands(app) -> None:
    app.cli.add_command(db_init_command)
    app.cli.add_command(create_admin_command)
    app.cli.add_command(load_default_data_command)
    app.cli.add_command(recalculate_budgets_command)
    app.cli.add_command(version_command)
