# spinwheel/services/token_service.py
"""Short-lived capability tokens that authorize exactly one spin.

A token is ``{"payload": {"promo_code_id": int, "exp": epoch_ms}, "signature": str}``.
The signature is HMAC-SHA256 over the canonical JSON of the payload, encoded as
unpadded base64url. Tokens are never stored; the promo code's ``used_at`` is what
makes them single-use.
"""
from __future__ import annotations

import base64
import hashlib
import hmac
import json
from dataclasses import dataclass
from typing import Any, Mapping

from ..utils.clock import now_ms
from ..utils.errors import INVALID_TOKEN, ApiError


@dataclass(frozen=True)
class SpinSettings:
    hmac_secret: str
    spin_secret: str
    token_ttl_seconds: int = 300
    coupon_ttl_days: int = 365

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SpinSettings":
        return cls(
            hmac_secret=config["HMAC_SECRET"],
            spin_secret=config["SPIN_SECRET"],
            token_ttl_seconds=int(config.get("SPIN_TOKEN_TTL_SECONDS", 300)),
            coupon_ttl_days=int(config.get("COUPON_TTL_DAYS", 365)),
        )


@dataclass(frozen=True)
class SpinToken:
    promo_code_id: int
    exp: int
    signature: str

    @property
    def payload(self) -> dict:
        return {"promo_code_id": self.promo_code_id, "exp": self.exp}

    def as_api(self) -> dict:
        return {"payload": self.payload, "signature": self.signature}

    @classmethod
    def from_request(cls, raw) -> "SpinToken":
        """Convert an untrusted ``{payload, signature}`` body; INVALID_TOKEN on any shape problem."""
        if not isinstance(raw, dict):
            raise ApiError(INVALID_TOKEN)
        payload, signature = raw.get("payload"), raw.get("signature")
        if not isinstance(payload, dict) or not isinstance(signature, str) or not signature:
            raise ApiError(INVALID_TOKEN)
        promo_code_id, exp = payload.get("promo_code_id"), payload.get("exp")
        if set(payload) != {"promo_code_id", "exp"}:
            raise ApiError(INVALID_TOKEN)
        if not _is_int(promo_code_id) or not _is_int(exp):
            raise ApiError(INVALID_TOKEN)
        return cls(promo_code_id=promo_code_id, exp=exp, signature=signature)


def _is_int(v) -> bool:
    return isinstance(v, int) and not isinstance(v, bool)


def _serialize(payload: dict) -> bytes:
    return json.dumps(payload, sort_keys=True, separators=(",", ":")).encode("utf-8")


def sign_payload(payload: dict, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), _serialize(payload), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class TokenAuthenticator:
    def __init__(self, settings: SpinSettings):
        self.settings = settings

    def issue(self, promo_code_id: int, now: int | None = None) -> SpinToken:
        now = now_ms() if now is None else now
        payload = {"promo_code_id": promo_code_id, "exp": now + self.settings.token_ttl_seconds * 1000}
        return SpinToken(signature=sign_payload(payload, self.settings.spin_secret), **payload)

    def authenticate(self, token: SpinToken, now: int | None = None) -> int:
        """Return the promo code id the token grants a spin for."""
        expected = sign_payload(token.payload, self.settings.spin_secret)
        if not hmac.compare_digest(expected.encode("ascii"), token.signature.encode("utf-8")):
            raise ApiError(INVALID_TOKEN)
        now = now_ms() if now is None else now
        if token.exp <= now:
            raise ApiError(INVALID_TOKEN)
        return token.promo_code_id
