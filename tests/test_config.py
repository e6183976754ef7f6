import json
import logging
import os
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest

from finanzas.api.envelope import ApiError
from finanzas.config import Config, ConfigurationError, _normalize_db_url, validate_config
from finanzas.services.structured_logging import StructuredFormatter
from finanzas.utils.dates import month_bounds, parse_iso_datetime, shift_month
from finanzas.utils.money import format_cop, money, total


class TestDatabaseUrl:
    def test_heroku_style_scheme_uses_psycopg(self):
        assert _normalize_db_url("postgres://u:p@db/app") == "postgresql+psycopg://u:p@db/app"

    def test_plain_postgresql_scheme_uses_psycopg(self):
        assert _normalize_db_url("postgresql://u:p@db/app") == "postgresql+psycopg://u:p@db/app"

    def test_normalized_and_sqlite_urls_unchanged(self):
        assert _normalize_db_url("postgresql+psycopg://db/app") == "postgresql+psycopg://db/app"
        assert _normalize_db_url("sqlite:///tmp/x.db") == "sqlite:///tmp/x.db"


class TestConfig:
    def test_development_defaults(self):
        env = {"APP_ENV": "development", "DATABASE_URL": "sqlite://"}
        with patch.dict(os.environ, env, clear=True):
            config = Config()
        assert config.IS_DEV is True
        assert config.SUBSCRIPTION_BYPASS is True
        assert config.PORT == 3001
        assert config.JWT_DECODE_AUDIENCE == "authenticated"
        assert "http://localhost:5173" in config.CORS_ALLOWED_ORIGINS

    def test_production_never_bypasses_by_default(self):
        env = {"APP_ENV": "production", "DATABASE_URL": "sqlite://"}
        with patch.dict(os.environ, env, clear=True):
            config = Config()
        assert config.IS_PRODUCTION is True
        assert config.SUBSCRIPTION_BYPASS is False

    def test_jwt_secret_prefers_identity_platform_secret(self):
        env = {"SUPABASE_JWT_SECRET": "platform", "JWT_SECRET": "legacy", "DATABASE_URL": "sqlite://"}
        with patch.dict(os.environ, env, clear=True):
            assert Config().JWT_SECRET_KEY == "platform"

    def test_cors_origins_split_on_commas(self):
        env = {
            "APP_ENV": "production",
            "DATABASE_URL": "sqlite://",
            "CORS_ALLOWED_ORIGINS": "https://a.test, https://b.test,",
        }
        with patch.dict(os.environ, env, clear=True):
            assert Config().CORS_ALLOWED_ORIGINS == ["https://a.test", "https://b.test"]


class TestValidateConfig:
    def test_missing_settings_are_fatal_in_production(self):
        logger = MagicMock()
        with pytest.raises(ConfigurationError) as exc:
            validate_config({"IS_PRODUCTION": True, "SUPABASE_URL": "https://x"}, logger)
        assert "SUPABASE_ANON_KEY" in str(exc.value)
        logger.critical.assert_called_once()

    def test_missing_settings_only_warn_in_development(self):
        logger = MagicMock()
        missing = validate_config({"IS_PRODUCTION": False}, logger)
        assert "JWT_SECRET_KEY" in missing
        logger.warning.assert_called()

    def test_complete_configuration_passes(self):
        config = {
            "IS_PRODUCTION": True,
            "SUPABASE_URL": "https://x",
            "SUPABASE_ANON_KEY": "a",
            "SUPABASE_SERVICE_ROLE_KEY": "s",
            "JWT_SECRET_KEY": "j",
            "STRIPE_WEBHOOK_SECRET": "w",
            "GHL_WEBHOOK_SECRET": "g",
        }
        logger = MagicMock()
        assert validate_config(config, logger) == []
        logger.warning.assert_not_called()


class TestMoneyAndDates:
    def test_money_rounds_half_up(self):
        assert money(50.005) == 50.01
        assert money(Decimal("2.345")) == 2.35
        assert money("10") == 10.0

    def test_total_keeps_precision_until_rounded(self):
        assert money(total([1000000, 50.005])) == 1000050.01

    def test_format_cop_uses_dot_separators(self):
        assert format_cop(1234567) == "1.234.567"
        assert format_cop(999) == "999"

    def test_shift_month_crosses_years(self):
        assert shift_month(2024, 1, -1) == (2023, 12)
        assert shift_month(2024, 12, 1) == (2025, 1)
        assert shift_month(2024, 3, -5) == (2023, 10)

    def test_month_bounds_handles_leap_years(self):
        assert month_bounds(2024, 2) == (date(2024, 2, 1), date(2024, 2, 29))
        assert month_bounds(2023, 2)[1] == date(2023, 2, 28)

    def test_parse_iso_datetime_accepts_z_suffix(self):
        parsed = parse_iso_datetime("2024-05-01T10:00:00Z")
        assert parsed == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert parse_iso_datetime("") is None


def test_unknown_error_code_becomes_internal_error():
    err = ApiError("SOMETHING_ODD", "boom")
    assert err.code == "INTERNAL_ERROR"
    assert err.status_code == 500


def test_structured_formatter_emits_json_with_extra_fields():
    record = logging.LogRecord("finanzas.test", logging.INFO, __file__, 10, "hola %s", ("mundo",), None)
    record.extra_fields = {"user_id": "u-1", "provider": "stripe"}
    payload = json.loads(StructuredFormatter(json_enabled=True).format(record))
    assert payload["message"] == "hola mundo"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "finanzas.test"
    assert payload["user_id"] == "u-1"
    assert payload["provider"] == "stripe"
