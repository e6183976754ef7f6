# -*- coding: utf-8 -*-
"""
Flask-Limiter wiring: the stricter credential limit and exempt health paths.
"""
import os
from unittest.mock import patch

import pytest

from finanzas.database import db
from finanzas.services.identity_platform import IdentityPlatformClient, IdentityPlatformError
from finanzas.services.rate_limiter import get_actor_identifier

from conftest import _build_app


@pytest.fixture
def limited_app():
    app, db_fd, db_path = _build_app(AUTH_RATE_LIMIT="2/minute", RATE_LIMIT_DEFAULT="3/minute")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    os.close(db_fd)
    os.unlink(db_path)


class TestRateLimit:

    def test_login_limit(self, limited_app):
        client = limited_app.test_client()
        error = IdentityPlatformError("Invalid login credentials", 400)
        with patch.object(IdentityPlatformClient, "sign_in_with_password", side_effect=error):
            statuses = [
                client.post("/api/auth/login", json={"email": "a@b.co", "password": "x"}).status_code
                for _ in range(3)
            ]
        assert statuses == [401, 401, 429]

        response = client.post("/api/auth/login", json={"email": "a@b.co", "password": "x"})
        assert response.get_json()["error"]["code"] == "RATE_LIMIT"

    def test_health_is_exempt(self, limited_app):
        client = limited_app.test_client()
        assert all(client.get("/health").status_code == 200 for _ in range(6))

    def test_default_limit(self, limited_app):
        client = limited_app.test_client()
        statuses = [client.get("/api/goals").status_code for _ in range(4)]
        assert statuses == [401, 401, 401, 429]

    def test_default_limit_read_from_each_app(self, app, limited_app):
        # `app` (1000/minute) is bound to the shared limiter first
        client = limited_app.test_client()
        statuses = [client.get("/api/goals").status_code for _ in range(4)]
        assert statuses[-1] == 429

    def test_breach_is_counted(self, limited_app):
        client = limited_app.test_client()
        for _ in range(4):
            client.get("/api/goals")
        registry = limited_app.extensions["metrics"].registry
        assert registry.get_sample_value("finanzas_rate_limit_hits_total", {"route": "/api/goals"}) == 1.0


class TestActorIdentifier:

    def test_anonymous_uses_ip(self, app):
        with app.test_request_context("/", environ_base={"REMOTE_ADDR": "10.0.0.7"}):
            assert get_actor_identifier() == "ip:10.0.0.7"

    def test_authenticated_uses_user(self, app):
        from flask import g
        from types import SimpleNamespace
        with app.test_request_context("/"):
            g.current_user = SimpleNamespace(id="abc")
            assert get_actor_identifier() == "user:abc"
