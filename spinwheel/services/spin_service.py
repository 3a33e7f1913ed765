# spinwheel/services/spin_service.py
from __future__ import annotations

import logging
import random
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import or_, update

from ..extensions import db
from ..model import Coupon, Prize, PromoCode
from ..utils.clock import iso_utc, utcnow
from ..utils.errors import ALREADY_USED, NO_PRIZES, ApiError, PrizeOutOfStock, ServerError
from .prize_selector import PrizeOption, pick_prize
from .promo_service import CODE_ALPHABET
from .token_service import SpinSettings

log = logging.getLogger(__name__)


def new_coupon_code() -> str:
    body = "".join(secrets.choice(CODE_ALPHABET) for _ in range(8))
    return f"C-{body[:4]}-{body[4:]}"


def new_client_signature() -> str:
    return secrets.token_urlsafe(16)


@dataclass(frozen=True)
class SpinResult:
    prize: PrizeOption
    coupon_code: str
    expires_at: datetime
    client_signature: str

    def as_api(self):
        return {
            "prize": self.prize.summary(),
            "coupon": {"code": self.coupon_code, "expiresAt": iso_utc(self.expires_at)},
            "client_signature": self.client_signature,
        }


class SpinCoordinator:
    """Consumes a verified promo code and awards one prize as a coupon.

    Two attempts at most: the first pick, and if that prize sold out before the
    commit, one reselection that excludes it. Anything else is terminal.
    """

    def __init__(self, settings: SpinSettings, rng: random.Random | None = None):
        self.settings = settings
        self.rng = rng

    def load_prizes(self) -> list[PrizeOption]:
        rows = db.session.execute(db.select(Prize).where(Prize.active.is_(True))).scalars().all()
        return [PrizeOption.from_model(p) for p in rows]

    def spin(self, promo_code_id: int, user_ip: str | None = None) -> SpinResult:
        code = db.session.get(PromoCode, promo_code_id)
        if code is None or code.is_used:
            raise ApiError(ALREADY_USED)

        pool = self.load_prizes()
        prize = pick_prize(pool, self.rng)
        if prize is None:
            raise ApiError(NO_PRIZES)

        expires_at = utcnow() + timedelta(days=self.settings.coupon_ttl_days)
        client_signature = new_client_signature()

        # first attempt
        try:
            return self._commit(promo_code_id, prize, new_coupon_code(), expires_at, user_ip, client_signature)
        except PrizeOutOfStock:
            log.info("prize %s sold out during spin for promo code %s, reselecting", prize.id, promo_code_id)

        # reselection attempt
        prize = pick_prize([p for p in pool if p.id != prize.id], self.rng)
        if prize is None:
            raise ApiError(NO_PRIZES)
        try:
            return self._commit(promo_code_id, prize, new_coupon_code(), expires_at, user_ip, client_signature)
        except PrizeOutOfStock as e:
            log.error("prize %s sold out on reselection for promo code %s", prize.id, promo_code_id)
            raise ServerError() from e

    def _commit(self, promo_code_id, prize, coupon_code, expires_at, user_ip, client_signature) -> SpinResult:
        """Consume the promo code, take one unit of stock and insert the coupon in one transaction."""
        now = utcnow()
        try:
            used = db.session.execute(
                update(PromoCode)
                .where(PromoCode.id == promo_code_id, PromoCode.used_at.is_(None))
                .values(used_at=now)
                .execution_options(synchronize_session=False)
            )
            if used.rowcount != 1:
                raise ApiError(ALREADY_USED)

            # NULL - 1 stays NULL, so unlimited prizes pass through untouched
            taken = db.session.execute(
                update(Prize)
                .where(Prize.id == prize.id, Prize.active.is_(True), or_(Prize.stock.is_(None), Prize.stock > 0))
                .values(stock=Prize.stock - 1)
                .execution_options(synchronize_session=False)
            )
            if taken.rowcount != 1:
                raise PrizeOutOfStock(prize.id)

            db.session.add(Coupon(
                code=coupon_code,
                prize_id=prize.id,
                promo_code_id=promo_code_id,
                redeemed=False,
                expires_at=expires_at,
                user_ip=user_ip,
                client_signature=client_signature,
            ))
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

        log.info("promo code %s won prize %s as coupon %s", promo_code_id, prize.id, coupon_code)
        return SpinResult(prize=prize, coupon_code=coupon_code, expires_at=expires_at, client_signature=client_signature)
