# -*- coding: utf-8 -*-
"""
Environment-driven configuration.

All values are read when a ``Config`` is instantiated (once per
``create_app()``), so tests can patch ``os.environ`` before building an app.
"""
import os

CRITICAL_SETTINGS = (
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "JWT_SECRET_KEY",
)


class ConfigurationError(RuntimeError):
    """Raised when the process cannot start with the current environment."""


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _normalize_db_url(url: str) -> str:
    """
    Normalize DATABASE_URL so SQLAlchemy loads the right DBAPI.
    We standardize on psycopg v3 driver ('+psycopg').
    """
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+psycopg://", 1)
    if url.startswith("postgresql://") and "+psycopg://" not in url:
        return url.replace("postgresql://", "postgresql+psycopg://", 1)
    return url


def _database_url() -> str:
    db_url = os.environ.get("DATABASE_URL")
    if db_url:
        return _normalize_db_url(db_url)
    db_path = os.path.join(os.path.dirname(__file__), "..", "instance", "finanzas.db")
    os.makedirs(os.path.dirname(db_path), exist_ok=True)
    return f"sqlite:///{db_path}"


class Config:
    def __init__(self):
        self.APP_ENV = os.getenv("APP_ENV", "development").lower()
        self.IS_PRODUCTION = self.APP_ENV == "production"
        self.IS_DEV = not self.IS_PRODUCTION
        self.TESTING = _flag("TESTING")
        self.PORT = int(os.getenv("PORT", "3001"))
        self.SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")

        # --- DB ---
        self.SQLALCHEMY_DATABASE_URI = _database_url()
        self.SQLALCHEMY_TRACK_MODIFICATIONS = False
        self.DB_AUTOCREATE = _flag("DB_AUTOCREATE")
        self.DB_MIGRATE_ON_START = _flag("DB_MIGRATE_ON_START")

        # --- Identity platform ---
        self.SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
        self.SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")
        self.SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
        self.IDENTITY_TIMEOUT = float(os.getenv("IDENTITY_TIMEOUT", "10"))

        # Access tokens are issued by the identity platform; we only verify them.
        self.JWT_SECRET_KEY = (
            os.environ.get("SUPABASE_JWT_SECRET")  # preferred
            or os.environ.get("JWT_SECRET")        # legacy fallback
        )
        self.JWT_ALGORITHM = "HS256"
        self.JWT_TOKEN_LOCATION = ["headers"]
        self.JWT_DECODE_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")
        self.JWT_ENCODE_AUDIENCE = self.JWT_DECODE_AUDIENCE

        # --- Providers ---
        self.STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
        self.STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
        self.GHL_WEBHOOK_SECRET = os.getenv("GHL_WEBHOOK_SECRET")
        self.SEND_ONBOARDING_LINK = _flag("SEND_ONBOARDING_LINK")

        # --- Access gating ---
        self.SUBSCRIPTION_BYPASS = _flag(
            "SUBSCRIPTION_BYPASS", "true" if self.IS_DEV else "false")

        # --- Frontend / CORS ---
        self.FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173").rstrip("/")
        origins = os.getenv("CORS_ALLOWED_ORIGINS", self.FRONTEND_URL)
        self.CORS_ALLOWED_ORIGINS = [o.strip() for o in origins.split(",") if o.strip()]
        if self.IS_DEV:
            for local in ("http://localhost:5173", "http://localhost:3000"):
                if local not in self.CORS_ALLOWED_ORIGINS:
                    self.CORS_ALLOWED_ORIGINS.append(local)

        # --- Rate limiting (Flask-Limiter reads the RATELIMIT_* keys) ---
        self.RATELIMIT_ENABLED = _flag("RATELIMIT_ENABLED", "true")
        self.RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
        self.RATELIMIT_DEFAULT = os.getenv("RATE_LIMIT_DEFAULT", "300/minute")
        self.AUTH_RATE_LIMIT = os.getenv("AUTH_RATE_LIMIT", "10/minute")

        # --- Observability ---
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.METRICS_ENABLED = _flag("METRICS_ENABLED", "true")


def validate_config(config, logger) -> list:
    """
    Check the critical settings.

    Missing values are logged as warnings; in production they are fatal.
    Returns the list of missing setting names.
    """
    missing = [name for name in CRITICAL_SETTINGS if not config.get(name)]
    if config.get("IS_PRODUCTION"):
        for name in ("STRIPE_WEBHOOK_SECRET", "GHL_WEBHOOK_SECRET"):
            if not config.get(name):
                logger.warning(
                    f"{name} not configured; webhook signatures will not be verified",
                    setting=name,
                )
    if not missing:
        return missing

    if config.get("IS_PRODUCTION"):
        logger.critical("Missing critical configuration", missing=missing)
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}")

    logger.warning("Missing configuration (development mode)", missing=missing)
    return missing
