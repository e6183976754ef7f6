# -*- coding: utf-8 -*-
"""
Subscription resolution, provider status mapping and the access gate.
"""
from datetime import datetime, timedelta, timezone

import pytest

from finanzas.database import db
from finanzas.models import Subscription
from finanzas.services.status_mapping import (
    SubscriptionStatus,
    UnknownProviderStatus,
    map_ghl_status,
    map_stripe_status,
)
from finanzas.services.subscription_resolver import SubscriptionResolver

from conftest import USER_ID, add_profile

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def _record(status="active", period_end=None, provider="stripe", external_id="sub_1"):
    record = Subscription(user_id=USER_ID, provider=provider, external_id=external_id,
                          status=status, current_period_end=period_end)
    db.session.add(record)
    db.session.commit()
    return record


@pytest.fixture
def resolver(app):
    return SubscriptionResolver(clock=lambda: NOW)


class TestStatusMapping:

    @pytest.mark.parametrize("value,expected", [
        ("active", SubscriptionStatus.ACTIVE),
        ("trialing", SubscriptionStatus.ACTIVE),
        ("past_due", SubscriptionStatus.PAST_DUE),
        ("unpaid", SubscriptionStatus.PAST_DUE),
        ("canceled", SubscriptionStatus.CANCELLED),
        ("incomplete", SubscriptionStatus.INACTIVE),
        ("paused", SubscriptionStatus.INACTIVE),
    ])
    def test_stripe(self, value, expected):
        assert map_stripe_status(value) is expected

    def test_ghl_is_case_insensitive(self):
        assert map_ghl_status(" Active ") is SubscriptionStatus.ACTIVE
        assert map_ghl_status("CANCELED") is SubscriptionStatus.CANCELLED

    def test_unknown_values_raise(self):
        with pytest.raises(UnknownProviderStatus) as exc:
            map_stripe_status("frozen")
        assert exc.value.provider == "stripe"
        assert exc.value.value == "frozen"
        with pytest.raises(UnknownProviderStatus):
            map_ghl_status(None)


class TestResolver:

    def test_nothing_on_file(self, resolver):
        assert resolver.resolve(USER_ID) is None

    def test_profile_flag_grants_access(self, resolver):
        add_profile(status="active")
        resolved = resolver.resolve(USER_ID)
        assert resolved.status == "active"
        assert resolved.provider == "ghl_webhook"
        assert resolved.current_period_end is None

    def test_profile_flag_wins_over_expired_record(self, resolver):
        add_profile(status="active")
        _record(period_end=NOW - timedelta(days=30))
        assert resolver.resolve(USER_ID).provider == "ghl_webhook"

    def test_active_record_in_period(self, resolver):
        add_profile(status=None)
        record = _record(period_end=NOW + timedelta(days=10))
        resolved = resolver.resolve(USER_ID)
        assert resolved.id == record.id
        assert resolved.provider == "stripe"

    def test_active_record_without_period_end(self, resolver):
        _record(period_end=None)
        assert resolver.resolve(USER_ID) is not None

    def test_active_record_past_period_is_ignored(self, resolver):
        _record(period_end=NOW - timedelta(seconds=1))
        assert resolver.resolve(USER_ID) is None

    def test_past_due_is_not_access(self, resolver):
        _record(status="past_due", period_end=NOW + timedelta(days=10))
        assert resolver.resolve(USER_ID) is None

    def test_inactive_profile_flag_does_not_block_record(self, resolver):
        add_profile(status="cancelled")
        _record(period_end=NOW + timedelta(days=1))
        assert resolver.has_access(USER_ID) is True


class TestGate:

    def test_denied_without_subscription(self, client, auth_headers):
        response = client.get("/api/transactions", headers=auth_headers)
        assert response.status_code == 403
        error = response.get_json()["error"]
        assert error["code"] == "SUBSCRIPTION_INACTIVE"
        assert error["message"] == "Necesitas una suscripción activa para acceder a esta función"

    def test_allowed_with_profile_flag(self, client, auth_headers, subscribed):
        assert client.get("/api/transactions", headers=auth_headers).status_code == 200

    def test_allowed_with_record(self, client, auth_headers):
        _record(period_end=datetime.now(timezone.utc) + timedelta(days=5))
        assert client.get("/api/dashboard/stats", headers=auth_headers).status_code == 200

    def test_auth_checked_before_subscription(self, client):
        assert client.get("/api/transactions").status_code == 401

    def test_bypass_in_development(self, dev_app, dev_client):
        from conftest import make_token
        headers = {"Authorization": f"Bearer {make_token()}"}
        assert dev_client.get("/api/transactions", headers=headers).status_code == 200

    def test_ungated_routes_need_only_auth(self, client, auth_headers):
        assert client.get("/api/categories", headers=auth_headers).status_code == 200
        assert client.get("/api/budget/pockets", headers=auth_headers).status_code == 200
