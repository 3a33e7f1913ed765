# ------ spinwheel/model/__init__.py ------

from .promo_code import PromoCode
from .prize import Prize, PRIZE_TYPES
from .coupon import Coupon
from .order import Order, OrderItem

__all__ = [
    "PromoCode",
    "Prize",
    "PRIZE_TYPES",
    "Coupon",
    "Order",
    "OrderItem",
]
