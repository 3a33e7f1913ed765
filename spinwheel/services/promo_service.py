# spinwheel/services/promo_service.py
from __future__ import annotations

import base64
import hashlib
import hmac
import secrets

from werkzeug.security import check_password_hash, generate_password_hash

from ..extensions import db
from ..model import PromoCode
from ..utils.errors import ALREADY_USED, INVALID_CODE, ApiError
from .token_service import SpinSettings, SpinToken, TokenAuthenticator

# no 0/O, 1/I: codes are printed on flyers and typed back by hand
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MAX_CODES_PER_BATCH = 5000


def normalize_code(raw: str) -> str:
    return raw.strip().upper()


def code_digest(code: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), code.encode("utf-8"), hashlib.sha256).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def random_code(groups: int = 2, size: int = 4) -> str:
    return "-".join("".join(secrets.choice(CODE_ALPHABET) for _ in range(size)) for _ in range(groups))


def create_promo_code(code: str, hmac_secret: str, campaign: str = "Flyer") -> PromoCode:
    """Add a promo code row to the session (caller commits)."""
    code = normalize_code(code)
    row = PromoCode(
        code=code,
        code_hash=generate_password_hash(code),
        code_hmac=code_digest(code, hmac_secret),
        campaign=campaign,
    )
    db.session.add(row)
    return row


def issue_promo_codes(count: int, hmac_secret: str, campaign: str = "Flyer") -> list[PromoCode]:
    n = min(MAX_CODES_PER_BATCH, max(1, int(count or 0)))
    taken = {
        h for (h,) in db.session.query(PromoCode.code_hmac).all()
    }
    rows: list[PromoCode] = []
    while len(rows) < n:
        code = random_code()
        digest = code_digest(code, hmac_secret)
        if digest in taken:
            continue
        taken.add(digest)
        rows.append(create_promo_code(code, hmac_secret, campaign))
    db.session.commit()
    return rows


class CodeVerifier:
    """Turns a raw promo code into a spin token. Never writes to the promo code row."""

    def __init__(self, settings: SpinSettings):
        self.settings = settings
        self.tokens = TokenAuthenticator(settings)

    def verify(self, raw_code: str, now_ms: int | None = None) -> SpinToken:
        code = normalize_code(raw_code)
        row = db.session.execute(
            db.select(PromoCode).where(PromoCode.code_hmac == code_digest(code, self.settings.hmac_secret))
        ).scalar_one_or_none()
        if row is None:
            raise ApiError(INVALID_CODE)
        if row.is_used:
            raise ApiError(ALREADY_USED)
        # second factor in case the lookup key leaks or collides
        if not check_password_hash(row.code_hash, code):
            raise ApiError(INVALID_CODE)
        return self.tokens.issue(row.id, now=now_ms)
