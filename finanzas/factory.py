# -*- coding: utf-8 -*-
from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from finanzas.config import Config, validate_config
from finanzas.database import db

# Observability imports
from finanzas.services.metrics import init_metrics
from finanzas.services.request_context import init_request_context
from finanzas.services.structured_logging import get_logger, init_logging

from finanzas.middleware.errors import register_error_handlers
from finanzas.services.identity_platform import init_identity_platform
from finanzas.services.rate_limiter import init_rate_limiter


def _migrate_db(app):
    """Run Alembic migrations to head using the app's DB URL."""
    from pathlib import Path
    from alembic import command
    from alembic.config import Config as AlembicConfig

    BASE_DIR = Path(__file__).resolve().parent.parent
    cfg = AlembicConfig()  # in-memory config, avoid alembic.ini dependency
    cfg.set_main_option("script_location", str(BASE_DIR / "migrations"))
    cfg.set_main_option("sqlalchemy.url", app.config["SQLALCHEMY_DATABASE_URI"])

    try:
        command.upgrade(cfg, "head")
        app.logger.info("Database migrations applied successfully")
    except Exception as e:
        app.logger.error(f"Migration failed: {e}")
        raise


def create_app(config=None) -> Flask:
    app = Flask(__name__)
    app.url_map.strict_slashes = False

    # --- Core config ---
    app.config.from_object(config or Config())
    validate_config(app.config, get_logger('finanzas.config'))

    # --- DB ---
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    db.init_app(app)

    # --- JWT (verification of identity platform tokens) ---
    JWTManager(app)

    # --- CORS ---
    CORS(app, resources={
        r"/api/*": {
            "origins": app.config["CORS_ALLOWED_ORIGINS"],
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization", "X-Requested-With"],
            "supports_credentials": True,
            "max_age": 600,
        }}
    )

    # --- Initialize observability ---
    # Logging first so the rest of the setup is captured
    init_logging(app)
    init_request_context(app)
    init_metrics(app)

    register_error_handlers(app)
    init_identity_platform(app)
    init_rate_limiter(app)

    # --- Mount blueprints ---
    with app.app_context():
        from finanzas.routes import (
            auth, budget, categories, dashboard, goals, health,
            notifications, transactions, webhooks,
        )
        app.register_blueprint(health.health_bp, url_prefix="/")
        app.register_blueprint(auth.auth_bp, url_prefix="/api")
        app.register_blueprint(transactions.transactions_bp, url_prefix="/api")
        app.register_blueprint(categories.categories_bp, url_prefix="/api")
        app.register_blueprint(goals.goals_bp, url_prefix="/api")
        app.register_blueprint(budget.budget_bp, url_prefix="/api")
        app.register_blueprint(dashboard.dashboard_bp, url_prefix="/api")
        app.register_blueprint(notifications.notifications_bp, url_prefix="/api")
        app.register_blueprint(webhooks.webhooks_bp, url_prefix="/api")

    # --- DB init ---
    with app.app_context():
        if app.config.get("TESTING") or app.config.get("DB_AUTOCREATE"):
            import finanzas.models  # noqa: F401  (register tables)
            db.create_all()
        if app.config.get("DB_MIGRATE_ON_START"):
            _migrate_db(app)

        driver = app.config["SQLALCHEMY_DATABASE_URI"].split("://", 1)[0]
        app.logger.info(f"DB ready (driver={driver}, env={app.config['APP_ENV']})")

    return app
