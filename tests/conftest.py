"""Pytest fixtures: an app bound to a throwaway SQLite file plus seed helpers."""
from datetime import timedelta
from decimal import Decimal

import pytest

from spinwheel import create_app
from spinwheel.extensions import db, notifier
from spinwheel.model import Coupon, Prize
from spinwheel.services.promo_service import create_promo_code
from spinwheel.services.token_service import SpinSettings
from spinwheel.utils.clock import utcnow

HMAC_SECRET = "test-hmac-secret"
SPIN_SECRET = "test-spin-secret"
ADMIN_SECRET = "test-admin-secret"


@pytest.fixture
def app(tmp_path):
    app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'test.db'}",
        # worker threads in the race tests share the file; wait on locks instead of failing
        "SQLALCHEMY_ENGINE_OPTIONS": {"connect_args": {"check_same_thread": False, "timeout": 30}},
        "HMAC_SECRET": HMAC_SECRET,
        "SPIN_SECRET": SPIN_SECRET,
        "ADMIN_SECRET": ADMIN_SECRET,
        "JWT_SECRET_KEY": "test-jwt-secret-that-is-long-enough-for-hs256",
        "TELEGRAM_BOT_TOKEN": "",
        "CHAT_IDS": [],
    })
    yield app
    notifier.wait(timeout=10)
    notifier.use_client(None)
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def ctx(app):
    with app.app_context():
        yield
        db.session.remove()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def settings(app) -> SpinSettings:
    return SpinSettings.from_config(app.config)


@pytest.fixture
def make_prize(app):
    def _make(name="10% off", type="percent", value=10, weight=1.0, stock=None, active=True) -> int:
        with app.app_context():
            p = Prize(name=name, type=type, value=Decimal(str(value)), weight=weight, stock=stock, active=active)
            db.session.add(p)
            db.session.commit()
            return p.id
    return _make


@pytest.fixture
def make_promo(app):
    def _make(code="ABCD-1234", campaign="Flyer") -> int:
        with app.app_context():
            row = create_promo_code(code, HMAC_SECRET, campaign=campaign)
            db.session.commit()
            return row.id
    return _make


@pytest.fixture
def make_coupon(app):
    def _make(prize_id, code="C-TEST-0001", redeemed=False, expires_in=timedelta(days=365)) -> str:
        with app.app_context():
            db.session.add(Coupon(code=code, prize_id=prize_id, redeemed=redeemed, expires_at=utcnow() + expires_in))
            db.session.commit()
        return code
    return _make


@pytest.fixture
def admin_headers(client):
    resp = client.post("/api/admin/login", json={"secret": ADMIN_SECRET})
    assert resp.status_code == 200
    return {"Authorization": f"Bearer {resp.get_json()['token']}"}
