# spinwheel/coupon/routes.py
from __future__ import annotations
from flask import request

from ..services.coupon_service import redeem_coupon, validate_coupon
from ..utils.api import err, ok
from ..utils.errors import CODE_REQUIRED, INVALID_ORDER_TOTAL
from ..utils.money import as_number, parse_money
from . import bp


def _read_body():
    data = request.get_json(silent=True) or {}
    code = data.get("code")
    if not isinstance(code, str) or not code.strip():
        return None, None, err(CODE_REQUIRED, 400)

    order_total = parse_money(data.get("order_total", 0))
    if order_total is None:
        return None, None, err(INVALID_ORDER_TOTAL, 400)
    return code.strip(), order_total, None


@bp.post("/validate-coupon")
def validate():
    """
    Body: { "code": "C-XXXX-XXXX", "order_total"?: number }
    Read-only check; the discount is a preview against order_total.
    """
    code, order_total, problem = _read_body()
    if problem:
        return problem

    coupon = validate_coupon(code)
    return ok({"discount": as_number(coupon.discount_for(order_total)), "prize": coupon.prize_api()})


@bp.post("/redeem-coupon")
def redeem():
    """
    Body: { "code": "C-XXXX-XXXX", "order_total": number }
    Marks the coupon redeemed exactly once.
    """
    code, order_total, problem = _read_body()
    if problem:
        return problem

    coupon = validate_coupon(code)
    discount = coupon.discount_for(order_total)
    redeem_coupon(coupon)
    return ok({"discount": as_number(discount), "prize": coupon.prize_api()})
