import os
import tempfile
import uuid
from unittest.mock import patch

import pytest
from flask_jwt_extended import create_access_token

from finanzas.database import db
from finanzas.factory import create_app
from finanzas.models import Profile

JWT_SECRET = "test-jwt-secret-with-enough-length-for-hs256"

TEST_ENV = {
    "APP_ENV": "production",
    "TESTING": "true",
    "SUBSCRIPTION_BYPASS": "false",
    "SUPABASE_URL": "https://identity.test",
    "SUPABASE_ANON_KEY": "anon-key",
    "SUPABASE_SERVICE_ROLE_KEY": "service-role-key",
    "SUPABASE_JWT_SECRET": JWT_SECRET,
    "STRIPE_SECRET_KEY": "sk_test_dummy",
    "STRIPE_WEBHOOK_SECRET": "whsec_test_secret",
    "GHL_WEBHOOK_SECRET": "ghl-test-secret",
    "FRONTEND_URL": "https://app.test",
    "RATE_LIMIT_DEFAULT": "1000/minute",
    "AUTH_RATE_LIMIT": "1000/minute",
    "LOG_LEVEL": "WARNING",
}

USER_ID = "11111111-1111-4111-8111-111111111111"
OTHER_USER_ID = "22222222-2222-4222-8222-222222222222"


def _build_app(**overrides):
    db_fd, db_path = tempfile.mkstemp()
    env = dict(TEST_ENV, DATABASE_URL=f"sqlite:///{db_path}")
    env.update(overrides)
    with patch.dict(os.environ, env):
        app = create_app()
    return app, db_fd, db_path


@pytest.fixture
def app():
    """Production-like app (signatures enforced, no subscription bypass)."""
    app, db_fd, db_path = _build_app()
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def dev_app():
    """Development app: subscription bypass on, webhook checks relaxed."""
    app, db_fd, db_path = _build_app(APP_ENV="development", SUBSCRIPTION_BYPASS="true")
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()
    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def dev_client(dev_app):
    return dev_app.test_client()


def make_token(user_id=USER_ID, email="ana@example.com", name="Ana"):
    return create_access_token(
        identity=user_id,
        additional_claims={"email": email, "user_metadata": {"full_name": name}},
    )


@pytest.fixture
def auth_headers(app):
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def other_headers(app):
    token = make_token(OTHER_USER_ID, "luis@example.com", "Luis")
    return {"Authorization": f"Bearer {token}"}


def add_profile(user_id=USER_ID, email="ana@example.com", status="active", full_name="Ana"):
    profile = Profile(id=user_id, email=email, full_name=full_name, subscription_status=status)
    db.session.add(profile)
    db.session.commit()
    return profile


@pytest.fixture
def subscribed(app):
    """The default user, with an active profile flag."""
    add_profile()
    return USER_ID


@pytest.fixture
def both_subscribed(app):
    add_profile()
    add_profile(OTHER_USER_ID, "luis@example.com", full_name="Luis")
    return USER_ID, OTHER_USER_ID


def new_id():
    return str(uuid.uuid4())
