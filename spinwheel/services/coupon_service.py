# spinwheel/services/coupon_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import update

from ..extensions import db
from ..model import Coupon
from ..utils.clock import utcnow
from ..utils.errors import (
    ALREADY_REDEEMED, COUPON_RACE_CONDITION, EXPIRED, NOT_FOUND, ApiError,
)
from ..utils.money import D, Money, as_number, floor_money

log = logging.getLogger(__name__)


def compute_discount(subtotal: Money, prize_type: str, prize_value) -> Money:
    """percent -> floor(subtotal * value / 100); amount -> min(subtotal, value)."""
    subtotal = D(subtotal)
    if subtotal <= 0:
        return Decimal("0")
    value = D(prize_value)
    if prize_type == "percent":
        return max(Decimal("0"), min(subtotal, floor_money(subtotal * value / Decimal("100"))))
    if prize_type == "amount":
        return max(Decimal("0"), min(subtotal, value))
    return Decimal("0")


@dataclass(frozen=True)
class ValidCoupon:
    id: int
    code: str
    prize_type: str
    prize_value: Decimal

    def discount_for(self, subtotal: Money) -> Money:
        return compute_discount(subtotal, self.prize_type, self.prize_value)

    def prize_api(self):
        return {"type": self.prize_type, "value": as_number(self.prize_value)}


def validate_coupon(code: str, *, error_prefix: str = "") -> ValidCoupon:
    """Check a coupon can still be used. ``error_prefix`` is prepended to error codes (order flow uses ``COUPON_``)."""
    c = db.session.execute(db.select(Coupon).where(Coupon.code == code.strip())).scalar_one_or_none()
    if c is None:
        raise ApiError(error_prefix + NOT_FOUND, 404 if not error_prefix else 400)
    if c.redeemed:
        raise ApiError(error_prefix + ALREADY_REDEEMED)
    if c.is_expired():
        raise ApiError(error_prefix + EXPIRED)
    return ValidCoupon(id=c.id, code=c.code, prize_type=c.prize.type, prize_value=D(c.prize.value))


def redeem_coupon(coupon: ValidCoupon) -> None:
    """Flip ``redeemed`` false -> true. Losing a concurrent race raises COUPON_RACE_CONDITION."""
    try:
        result = db.session.execute(
            update(Coupon)
            .where(Coupon.id == coupon.id, Coupon.redeemed.is_(False))
            .values(redeemed=True, redeemed_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            log.warning("coupon %s lost a concurrent redemption", coupon.code)
            raise ApiError(COUPON_RACE_CONDITION, 409)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    log.info("coupon %s redeemed", coupon.code)
