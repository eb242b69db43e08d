from flask_limiter import Limiter  # type: ignore
from flask_limiter.util import get_remote_address  # type: ignore
from flask_login import LoginManager  # type: ignore
from flask_mail import Mail  # type: ignore
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from flask_wtf.csrf import CSRFProtect  # type: ignore

db = SQLAlchemy()


class BaseModel(db.Model):  # type: ignore
    __abstract__ = True


login_manager = LoginManager()
csrf = CSRFProtect()
migrate = Migrate()
mail = Mail()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["500 per day", "100 per hour"],
    storage_uri="memory://",
)

login_manager.login_view = "auth.login"
login_manager.login_message_category = "warning"
