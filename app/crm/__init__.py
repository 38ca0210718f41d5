import logging
import uuid

import click
from flask import Flask, g
from dotenv import load_dotenv

from app.crm.config import load_config
from app.crm.db import create_all, init_db, teardown_db_session
from app.crm.errors import register_error_handlers
from app.crm.routes import bp as routes_bp
from app.crm.modules.customers.routes import bp as customers_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates")
    app.config.from_mapping(load_config())

    configure_logging(app)

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(customers_bp, url_prefix="/customers")

    @app.before_request
    def _assign_request_id():
        g.request_id = uuid.uuid4().hex

    app.teardown_appcontext(teardown_db_session)
    register_error_handlers(app)

    @app.cli.command("init-db")
    def init_db_command():
        """Create database tables from model metadata (development only)."""
        create_all(app)
        click.echo("Database tables created.")

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")

    return app


def configure_logging(app: Flask) -> None:
    level = getattr(logging, app.config.get("LOG_LEVEL", "INFO"), logging.INFO)
    if not logging.getLogger().handlers:
        logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(level)
