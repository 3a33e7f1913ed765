import logging
from decimal import Decimal
from types import SimpleNamespace

import httpx

from spinwheel.services.notify_service import TelegramNotifier, format_order_message


def _order(**kw):
    base = dict(
        id=17, name="Olena <b>", phone="+380501112233", email=None, city="Kyiv", address=None,
        notes=None, payment_method="fop", subtotal=Decimal("599.50"), discount_amount=Decimal("59"),
        total_amount=Decimal("540.50"), coupon_code="C-ABCD-EFGH", prize_type="percent",
        prize_value=Decimal("10.00"),
        items=[SimpleNamespace(product_name="Vitamin D", product_dosage="50", quantity=2,
                               price=Decimal("250"), line_total=Decimal("500"))],
    )
    base.update(kw)
    return SimpleNamespace(**base)


def _notifier(handler, chats=("1",)):
    n = TelegramNotifier(client=httpx.Client(transport=httpx.MockTransport(handler)))
    n.bot_token = "123:abc"
    n.chat_ids = list(chats)
    return n


def test_message_escapes_customer_input_and_lists_totals():
    text = format_order_message(_order())

    assert "Olena &lt;b&gt;" in text
    assert "C-ABCD-EFGH</b> (10%)" in text
    assert "Vitamin D 50 mg" in text
    assert "599.50 UAH" in text
    assert "540.50 UAH" in text
    assert "FOP (bank transfer)" in text
    assert text.endswith("#order_17")


def test_message_without_coupon_has_no_discount_line():
    text = format_order_message(_order(coupon_code=None, prize_type=None, prize_value=None))
    assert "Coupon" not in text


def test_send_posts_to_each_chat():
    urls = []

    def handler(request):
        urls.append(str(request.url))
        return httpx.Response(200, json={"ok": True})

    assert _notifier(handler, chats=("1", "2")).send("hi") == 2
    assert urls == ["https://api.telegram.org/bot123:abc/sendMessage"] * 2


def test_failed_delivery_is_logged_and_counted(caplog):
    def handler(request):
        if b'"chat_id":"bad"' in request.content.replace(b" ", b""):
            return httpx.Response(400, json={"ok": False})
        return httpx.Response(200, json={"ok": True})

    with caplog.at_level(logging.WARNING, logger="spinwheel.services.notify_service"):
        delivered = _notifier(handler, chats=("bad", "good")).send("hi")

    assert delivered == 1
    assert "chat bad failed" in caplog.text


def test_unconfigured_notifier_sends_nothing():
    calls = []
    n = TelegramNotifier(client=httpx.Client(transport=httpx.MockTransport(lambda r: calls.append(r))))

    assert n.enabled is False
    assert n.send("hi") == 0
    assert calls == []


def test_transport_crash_is_logged_and_next_chat_still_gets_it(caplog):
    def handler(request):
        if b'"chat_id":"1"' in request.content.replace(b" ", b""):
            raise RuntimeError("socket gone")
        return httpx.Response(200, json={"ok": True})

    with caplog.at_level(logging.ERROR, logger="spinwheel.services.notify_service"):
        delivered = _notifier(handler, chats=("1", "2")).send("hi")

    assert delivered == 1
    assert "chat 1 failed" in caplog.text


def test_dispatch_runs_in_the_background():
    n = _notifier(lambda r: httpx.Response(200, json={"ok": True}), chats=("1", "2"))

    future = n.dispatch("hi")
    n.wait(timeout=5)

    assert future.result() == 2


def test_unconfigured_notifier_queues_nothing():
    n = TelegramNotifier()
    assert n.dispatch("hi") is None
    assert n.notify_order(_order()) is None
