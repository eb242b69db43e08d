import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Type

from flask import Flask
from flask_wtf.csrf import generate_csrf  # type: ignore

from .cli import register_cli_commands
from .config import Config
from .constants import project_status_label
from .extensions import csrf, db, limiter, login_manager, mail, migrate
from .routes.admin import admin_bp
from .routes.auth import auth_bp
from .version import __version__

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def create_app(
    config_object: Optional[Type[Config]] = None,
    instance_path: Optional[Path] = None,
) -> Flask:
    if instance_path is not None:
        app = Flask(
            __name__, instance_path=str(instance_path), instance_relative_config=True
        )
    else:
        app = Flask(__name__, instance_relative_config=True)
    cfg = config_object or Config
    app.config.from_object(cfg)

    Path(app.instance_path).mkdir(parents=True, exist_ok=True)

    configure_logging(app)
    register_extensions(app)
    register_blueprints(app)
    register_cli_commands(app)

    app.config.setdefault("PMADMIN_VERSION", __version__)
    app.add_template_filter(project_status_label, "project_status")

    @app.context_processor
    def inject_globals():
        return {
            "csrf_token": generate_csrf,
            "app_version": app.config.get("PMADMIN_VERSION", __version__),
        }

    return app


def configure_logging(app: Flask) -> None:
    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if not isinstance(level, int):
        level = logging.INFO
    # app.logger is the "pmadmin" logger, parent of every module logger.
    app.logger.setLevel(level)

    log_file = app.config.get("LOG_FILE")
    if app.testing or not log_file:
        return

    log_path = Path(log_file)
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path, maxBytes=5 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
    except OSError as exc:
        app.logger.warning("Unable to open log file %s: %s", log_path, exc)
        return
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.setLevel(level)
    app.logger.addHandler(handler)


def register_extensions(app: Flask) -> None:
    db.init_app(app)
    migrate.init_app(app, db, directory=app.config["MIGRATIONS_DIR"])
    login_manager.init_app(app)
    csrf.init_app(app)
    limiter.init_app(app)
    mail.init_app(app)


def register_blueprints(app: Flask) -> None:
    app.register_blueprint(auth_bp)
    app.register_blueprint(admin_bp, url_prefix="/admin")
