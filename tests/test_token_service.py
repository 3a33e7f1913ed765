import pytest

from spinwheel.services.token_service import SpinSettings, SpinToken, TokenAuthenticator, sign_payload
from spinwheel.utils.errors import INVALID_TOKEN, ApiError

SETTINGS = SpinSettings(hmac_secret="lookup-key", spin_secret="spin-key", token_ttl_seconds=300)
NOW = 1_700_000_000_000


def _auth():
    return TokenAuthenticator(SETTINGS)


def test_issued_token_authenticates_to_its_promo_code():
    token = _auth().issue(42, now=NOW)

    assert token.exp == NOW + 300_000
    assert _auth().authenticate(token, now=NOW + 1) == 42


def test_token_expired_by_one_millisecond_is_rejected_despite_valid_signature():
    payload = {"promo_code_id": 7, "exp": NOW - 1}
    token = SpinToken(promo_code_id=7, exp=NOW - 1, signature=sign_payload(payload, "spin-key"))

    with pytest.raises(ApiError) as exc:
        _auth().authenticate(token, now=NOW)
    assert exc.value.code == INVALID_TOKEN


def test_token_at_exact_expiry_is_rejected():
    token = _auth().issue(1, now=NOW)
    with pytest.raises(ApiError):
        _auth().authenticate(token, now=token.exp)


def test_tampered_payload_is_rejected():
    token = _auth().issue(1, now=NOW)
    forged = SpinToken(promo_code_id=2, exp=token.exp, signature=token.signature)

    with pytest.raises(ApiError) as exc:
        _auth().authenticate(forged, now=NOW)
    assert exc.value.code == INVALID_TOKEN


def test_token_signed_with_lookup_key_is_rejected():
    payload = {"promo_code_id": 1, "exp": NOW + 1000}
    token = SpinToken(promo_code_id=1, exp=NOW + 1000, signature=sign_payload(payload, "lookup-key"))

    with pytest.raises(ApiError):
        _auth().authenticate(token, now=NOW)


def test_non_ascii_signature_is_rejected_not_crashing():
    token = SpinToken(promo_code_id=1, exp=NOW + 1000, signature="päyload")
    with pytest.raises(ApiError):
        _auth().authenticate(token, now=NOW)


def test_signature_ignores_payload_key_order():
    a = sign_payload({"promo_code_id": 3, "exp": 10}, "k")
    b = sign_payload({"exp": 10, "promo_code_id": 3}, "k")
    assert a == b
    assert "=" not in a


@pytest.mark.parametrize("raw", [
    None,
    "token",
    {},
    {"payload": {"promo_code_id": 1, "exp": NOW}},
    {"payload": {"promo_code_id": 1, "exp": NOW}, "signature": ""},
    {"payload": {"promo_code_id": "1", "exp": NOW}, "signature": "x"},
    {"payload": {"promo_code_id": True, "exp": NOW}, "signature": "x"},
    {"payload": {"promo_code_id": 1}, "signature": "x"},
    {"payload": {"promo_code_id": 1, "exp": NOW, "extra": 1}, "signature": "x"},
])
def test_malformed_token_bodies_are_invalid(raw):
    with pytest.raises(ApiError) as exc:
        SpinToken.from_request(raw)
    assert exc.value.code == INVALID_TOKEN


def test_round_trip_through_api_shape():
    token = _auth().issue(5, now=NOW)
    parsed = SpinToken.from_request(token.as_api())
    assert parsed == token
