# spinwheel/order/routes.py
from flask import current_app, request

from ..extensions import notifier
from ..services.order_service import create_order, parse_order_request
from ..utils.api import ok
from ..utils.money import as_number
from . import bp


@bp.post("/create-order")
def create():
    """
    Body: { "order": { name, phone, email?, city?, address?, notes?,
                       payment_method: "cod"|"fop",
                       items: [{product_id?, product_name, product_dosage?, price, quantity}],
                       couponCode? } }
    Subtotal is computed here from the items; a client total is never used.
    """
    req = parse_order_request(request.get_json(silent=True))
    order = create_order(req)

    # rendered here, delivered in the background; failures never reach the client
    queued = notifier.notify_order(order) is not None
    current_app.logger.info("order %s created, notification queued: %s", order.id, queued)

    return ok({
        "order_id": order.id,
        "subtotal": as_number(order.subtotal),
        "discount": as_number(order.discount_amount),
        "total_amount": as_number(order.total_amount),
    })
