# spinwheel/services/order_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from ..extensions import db
from ..model import Order, OrderItem
from ..utils.errors import (
    INVALID_ITEM, ITEMS_REQUIRED, NAME_PHONE_REQUIRED, ORDER_REQUIRED, ApiError,
)
from ..utils.money import MAX_AMOUNT, Money, parse_money, round_money
from .coupon_service import redeem_coupon, validate_coupon

log = logging.getLogger(__name__)

PAYMENT_METHODS = {"cod", "fop"}
COUPON_ERROR_PREFIX = "COUPON_"


@dataclass(frozen=True)
class OrderLine:
    product_name: str
    price: Money
    quantity: int
    product_id: Optional[str] = None
    product_dosage: Optional[str] = None

    @property
    def line_total(self) -> Money:
        return round_money(self.price * self.quantity)


@dataclass(frozen=True)
class OrderRequest:
    name: str
    phone: str
    items: list[OrderLine] = field(default_factory=list)
    email: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None
    payment_method: str = "cod"
    coupon_code: Optional[str] = None

    @property
    def subtotal(self) -> Money:
        return round_money(sum((i.line_total for i in self.items), Decimal("0")))


def _opt_str(v) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _parse_line(raw) -> OrderLine:
    if not isinstance(raw, dict):
        raise ApiError(INVALID_ITEM)
    name = _opt_str(raw.get("product_name"))
    price = parse_money(raw.get("price", 0))
    qty = raw.get("quantity")
    if isinstance(qty, str) and qty.strip().isdigit():
        qty = int(qty)
    if not name or price is None or isinstance(qty, bool) or not isinstance(qty, int) or qty < 1:
        raise ApiError(INVALID_ITEM)
    if price > MAX_AMOUNT or price * qty > MAX_AMOUNT:
        raise ApiError(INVALID_ITEM)
    return OrderLine(
        product_name=name,
        price=price,
        quantity=qty,
        product_id=_opt_str(raw.get("product_id")),
        product_dosage=_opt_str(raw.get("product_dosage")),
    )


def parse_order_request(body) -> OrderRequest:
    """Validate ``{"order": {...}}`` into an :class:`OrderRequest`."""
    data = (body or {}).get("order") if isinstance(body, dict) else None
    if not isinstance(data, dict):
        raise ApiError(ORDER_REQUIRED)

    name, phone = _opt_str(data.get("name")), _opt_str(data.get("phone"))
    if not name or not phone:
        raise ApiError(NAME_PHONE_REQUIRED)

    items = data.get("items")
    if not isinstance(items, list) or not items:
        raise ApiError(ITEMS_REQUIRED)

    payment_method = (_opt_str(data.get("payment_method")) or "cod").lower()
    if payment_method not in PAYMENT_METHODS:
        payment_method = "cod"

    req = OrderRequest(
        name=name,
        phone=phone,
        items=[_parse_line(i) for i in items],
        email=_opt_str(data.get("email")),
        city=_opt_str(data.get("city")),
        address=_opt_str(data.get("address")),
        notes=_opt_str(data.get("notes")),
        payment_method=payment_method,
        coupon_code=_opt_str(data.get("couponCode") or data.get("coupon_code")),
    )
    if req.subtotal > MAX_AMOUNT:
        raise ApiError(INVALID_ITEM)
    return req


def create_order(req: OrderRequest) -> Order:
    """Price the order server-side, consume the coupon, then insert the order.

    The coupon is committed as redeemed before the order insert; if the insert
    fails the coupon stays redeemed.
    """
    subtotal = req.subtotal
    discount = Decimal("0")
    prize_type = prize_value = None

    if req.coupon_code:
        coupon = validate_coupon(req.coupon_code, error_prefix=COUPON_ERROR_PREFIX)
        discount = coupon.discount_for(subtotal)
        prize_type, prize_value = coupon.prize_type, coupon.prize_value
        redeem_coupon(coupon)

    order = Order(
        name=req.name,
        phone=req.phone,
        email=req.email,
        city=req.city,
        address=req.address,
        notes=req.notes,
        payment_method=req.payment_method,
        subtotal=subtotal,
        discount_amount=discount,
        total_amount=max(Decimal("0"), subtotal - discount),
        coupon_code=req.coupon_code if prize_type else None,
        prize_type=prize_type,
        prize_value=prize_value,
    )
    try:
        db.session.add(order)
        db.session.flush()
        for line in req.items:
            db.session.add(OrderItem(
                order_id=order.id,
                product_id=line.product_id,
                product_name=line.product_name,
                product_dosage=line.product_dosage,
                price=line.price,
                quantity=line.quantity,
                line_total=line.line_total,
            ))
        db.session.commit()
    except Exception:
        db.session.rollback()
        if req.coupon_code:
            log.error("order insert failed after coupon %s was redeemed", req.coupon_code)
        raise
    return order
