# --- spinwheel/utils/errors.py ---
from flask import current_app
from werkzeug.exceptions import HTTPException

from ..extensions import db
from .api import err

# verify / spin
CODE_REQUIRED = "CODE_REQUIRED"
INVALID_CODE = "INVALID_CODE"
ALREADY_USED = "ALREADY_USED"
INVALID_TOKEN = "INVALID_TOKEN"
NO_PRIZES = "NO_PRIZES"

# coupons
NOT_FOUND = "NOT_FOUND"
ALREADY_REDEEMED = "ALREADY_REDEEMED"
EXPIRED = "EXPIRED"
COUPON_RACE_CONDITION = "COUPON_RACE_CONDITION"
INVALID_ORDER_TOTAL = "INVALID_ORDER_TOTAL"

# orders
ORDER_REQUIRED = "ORDER_REQUIRED"
NAME_PHONE_REQUIRED = "NAME_PHONE_REQUIRED"
ITEMS_REQUIRED = "ITEMS_REQUIRED"
INVALID_ITEM = "INVALID_ITEM"

# admin
UNAUTHORIZED = "UNAUTHORIZED"
FORBIDDEN = "FORBIDDEN"
ID_REQUIRED = "ID_REQUIRED"
INVALID_PRIZE = "INVALID_PRIZE"

SERVER_ERROR = "SERVER_ERROR"


class ApiError(Exception):
    """A failure that is reported to the client as ``{ok: false, error: code}``."""

    def __init__(self, code: str, status: int = 400):
        super().__init__(code)
        self.code = code
        self.status = status


class ServerError(ApiError):
    def __init__(self, code: str = SERVER_ERROR):
        super().__init__(code, 500)


class PrizeOutOfStock(Exception):
    """The chosen prize sold out between selection and commit."""

    def __init__(self, prize_id: int):
        super().__init__(f"prize {prize_id} is out of stock")
        self.prize_id = prize_id


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if e.status >= 500:
            current_app.logger.error("request failed: %s", e.code, exc_info=e.__cause__ or e)
        return err(e.code, e.status)

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        code = (e.name or "error").upper().replace(" ", "_")
        return err(code, e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        db.session.rollback()
        current_app.logger.exception("unhandled error: %s", e)
        return err(SERVER_ERROR, 500)
