from datetime import datetime

from werkzeug.security import generate_password_hash

from spinwheel.extensions import db
from spinwheel.model import PromoCode
from spinwheel.services.promo_service import CODE_ALPHABET, code_digest, normalize_code, random_code
from spinwheel.services.token_service import SpinToken, TokenAuthenticator

from .conftest import HMAC_SECRET


def test_valid_code_returns_signed_token(client, settings, make_promo):
    promo_id = make_promo("ABCD-1234")

    resp = client.post("/api/verify-code", json={"code": "ABCD-1234"})
    body = resp.get_json()

    assert resp.status_code == 200
    assert body["ok"] is True
    token = SpinToken.from_request(body["token"])
    assert token.promo_code_id == promo_id
    assert TokenAuthenticator(settings).authenticate(token) == promo_id


def test_code_is_normalized_before_lookup(client, make_promo):
    make_promo("ABCD-1234")
    resp = client.post("/api/verify-code", json={"code": "  abcd-1234 "})
    assert resp.status_code == 200


def test_verify_does_not_consume_the_code(app, client, make_promo):
    promo_id = make_promo("ABCD-1234")
    for _ in range(3):
        assert client.post("/api/verify-code", json={"code": "ABCD-1234"}).status_code == 200
    with app.app_context():
        assert db.session.get(PromoCode, promo_id).used_at is None


def test_missing_code(client):
    for body in ({}, {"code": ""}, {"code": "   "}, {"code": 1234}):
        resp = client.post("/api/verify-code", json=body)
        assert resp.status_code == 400
        assert resp.get_json() == {"ok": False, "error": "CODE_REQUIRED"}


def test_unknown_code(client, make_promo):
    make_promo("ABCD-1234")
    resp = client.post("/api/verify-code", json={"code": "ZZZZ-9999"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_CODE"


def test_used_code(app, client, make_promo):
    promo_id = make_promo("ABCD-1234")
    with app.app_context():
        db.session.get(PromoCode, promo_id).used_at = datetime(2024, 1, 1)
        db.session.commit()

    resp = client.post("/api/verify-code", json={"code": "ABCD-1234"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "ALREADY_USED"


def test_hash_mismatch_is_rejected_even_when_lookup_key_matches(app, client, make_promo):
    promo_id = make_promo("ABCD-1234")
    with app.app_context():
        row = db.session.get(PromoCode, promo_id)
        # stored slow hash belongs to a different code
        row.code_hash = generate_password_hash("OTHER-CODE")
        db.session.commit()

    resp = client.post("/api/verify-code", json={"code": "ABCD-1234"})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "INVALID_CODE"


def test_code_helpers():
    assert normalize_code(" ab-cd ") == "AB-CD"
    assert code_digest("ABCD-1234", HMAC_SECRET) == code_digest("ABCD-1234", HMAC_SECRET)
    assert code_digest("ABCD-1234", HMAC_SECRET) != code_digest("ABCD-1234", "other")
    assert "=" not in code_digest("ABCD-1234", HMAC_SECRET)

    code = random_code()
    assert len(code) == 9 and code[4] == "-"
    assert set(code.replace("-", "")) <= set(CODE_ALPHABET)
