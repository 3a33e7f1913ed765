# spinwheel/services/notify_service.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import wait as futures_wait
from html import escape

import httpx

from ..utils.money import D

log = logging.getLogger(__name__)

TELEGRAM_API = "https://api.telegram.org/bot{token}/sendMessage"

PAYMENT_LABELS = {"fop": "FOP (bank transfer)", "cod": "Cash on delivery"}


def _esc(s) -> str:
    return escape("" if s is None else str(s), quote=False)


def _money(n) -> str:
    return f"{D(n):.2f} UAH"


def format_order_message(order) -> str:
    """Render a new-order chat message (Telegram HTML parse mode)."""
    lines = ["🛒 <b>New order</b>", f"👤 Name: <b>{_esc(order.name)}</b>", f"📞 Phone: <b>{_esc(order.phone)}</b>"]
    if order.email:
        lines.append(f"📧 Email: <b>{_esc(order.email)}</b>")
    if order.city:
        lines.append(f"🏙️ City: <b>{_esc(order.city)}</b>")
    if order.address:
        lines.append(f"🏡 Address: <b>{_esc(order.address)}</b>")
    lines.append(f"📝 Notes: {_esc(order.notes) or '-'}")

    if order.coupon_code:
        if order.prize_type == "percent":
            prize = f"{D(order.prize_value).normalize():f}%"
        elif order.prize_type == "amount":
            prize = _money(order.prize_value)
        else:
            prize = "-"
        lines.append(f"🏷️ Coupon: <b>{_esc(order.coupon_code)}</b> ({_esc(prize)})")

    lines.append("")
    lines.append("📦 Items:")
    for it in order.items:
        dosage = f" {_esc(it.product_dosage)} mg" if it.product_dosage else ""
        lines.append(
            f"• {_esc(it.product_name)}{dosage}: <b>{it.quantity} pcs</b>"
            f" × {_money(it.price)} = <b>{_money(it.line_total)}</b>"
        )

    lines.append("")
    lines.append(f"💳 Payment: <b>{_esc(PAYMENT_LABELS.get(order.payment_method, order.payment_method))}</b>")
    lines.append(f"🧮 Subtotal: <b>{_money(order.subtotal)}</b>")
    if order.coupon_code:
        lines.append(f"🔻 Coupon discount: <b>{_money(order.discount_amount)}</b>")
    lines.append(f"💵 Total due: <b>{_money(order.total_amount)}</b>")
    lines.append("")
    lines.append(f"#order_{order.id}")
    return "\n".join(lines)


class TelegramNotifier:
    """Posts messages to every configured chat from a background worker.

    The message text is rendered in the request; only that string crosses into
    the worker thread. Delivery failures are logged, never raised.
    """

    def __init__(self, app=None, client: httpx.Client | None = None):
        self.bot_token = ""
        self.chat_ids: list[str] = []
        self.timeout = 5.0
        self._client = client
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="notify")
        self._pending: set[Future] = set()
        self._lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.bot_token = app.config.get("TELEGRAM_BOT_TOKEN") or ""
        self.chat_ids = list(app.config.get("CHAT_IDS") or [])
        self.timeout = float(app.config.get("NOTIFY_TIMEOUT_SECONDS", 5))
        app.extensions["notifier"] = self

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_ids)

    def use_client(self, client: httpx.Client | None):
        self._client = client

    def send(self, text: str) -> int:
        """Send ``text`` to each chat; returns how many deliveries succeeded."""
        if not self.enabled:
            log.debug("notifier disabled, message dropped")
            return 0

        client = self._client or httpx.Client(timeout=self.timeout)
        delivered = 0
        try:
            for chat_id in self.chat_ids:
                try:
                    resp = client.post(TELEGRAM_API.format(token=self.bot_token), json={
                        "chat_id": chat_id,
                        "text": text,
                        "parse_mode": "HTML",
                        "disable_web_page_preview": True,
                    })
                    resp.raise_for_status()
                    delivered += 1
                except httpx.HTTPStatusError as e:
                    log.warning("telegram delivery to chat %s failed: %s", chat_id, e)
                except Exception:
                    log.exception("telegram delivery to chat %s failed", chat_id)
        finally:
            if self._client is None:
                client.close()
        return delivered

    def dispatch(self, text: str) -> Future | None:
        """Queue ``text`` for delivery and return immediately."""
        if not self.enabled:
            return None
        future = self._executor.submit(self.send, text)
        with self._lock:
            self._pending.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: Future):
        with self._lock:
            self._pending.discard(future)

    def wait(self, timeout: float | None = None) -> None:
        """Block until queued deliveries finish (shutdown and tests)."""
        with self._lock:
            pending = list(self._pending)
        futures_wait(pending, timeout=timeout)

    def notify_order(self, order) -> Future | None:
        try:
            text = format_order_message(order)
        except Exception:
            log.exception("could not format notification for order %s", getattr(order, "id", None))
            return None
        return self.dispatch(text)
