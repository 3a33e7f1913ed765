# spinwheel/admin/routes.py
import hmac
from io import StringIO

import pandas as pd
from flask import Response, current_app, request
from flask_jwt_extended import create_access_token
from sqlalchemy import or_

from ..extensions import db
from ..model import PRIZE_TYPES, Order, Prize, PromoCode
from ..utils.api import err, ok
from ..utils.decorators import ADMIN_ROLE, admin_required
from ..utils.errors import ID_REQUIRED, INVALID_PRIZE, NOT_FOUND, UNAUTHORIZED
from ..utils.money import parse_money
from . import bp

CODES_LIMIT = 2000
CODE_COLUMNS = ["id", "code", "code_hmac", "campaign", "used_at"]

# ------------------------ helpers ------------------------
def _to_int(v, default=None):
    try:
        return int(v)
    except (TypeError, ValueError):
        return default

def _csv_response(rows, columns, filename):
    buf = StringIO()
    pd.DataFrame(rows, columns=columns).to_csv(buf, index=False)
    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

def _apply_prize_fields(prize: Prize, data: dict, *, partial: bool):
    """Copy validated prize fields from ``data``; raises ValueError on bad input."""
    if "name" in data or not partial:
        name = (data.get("name") or "").strip()
        if not name:
            raise ValueError("name")
        prize.name = name
    if "type" in data or not partial:
        ptype = (data.get("type") or "").strip().lower()
        if ptype not in PRIZE_TYPES:
            raise ValueError("type")
        prize.type = ptype
    if "value" in data or not partial:
        value = parse_money(data.get("value"))
        if value is None:
            raise ValueError("value")
        prize.value = value
    if "weight" in data:
        weight = parse_money(data.get("weight"))
        if weight is None:
            raise ValueError("weight")
        prize.weight = float(weight)
    if "stock" in data:
        stock = data.get("stock")
        if stock is not None:
            stock = _to_int(stock, -1)
            if stock < 0:
                raise ValueError("stock")
        prize.stock = stock
    if "active" in data:
        if not isinstance(data.get("active"), bool):
            raise ValueError("active")
        prize.active = data["active"]
    if prize.type == "percent" and prize.value is not None and prize.value > 100:
        raise ValueError("value")

# ------------------------ auth ------------------------
@bp.post("/login")
def login():
    """Body: { "secret": "..." } -> admin access token."""
    data = request.get_json(silent=True) or {}
    secret = data.get("secret")
    expected = current_app.config.get("ADMIN_SECRET") or ""
    if not expected or not isinstance(secret, str) or \
            not hmac.compare_digest(secret.encode("utf-8"), expected.encode("utf-8")):
        return err(UNAUTHORIZED, 401)

    token = create_access_token(identity=ADMIN_ROLE, additional_claims={"role": ADMIN_ROLE})
    return ok({"token": token})

# ------------------------ promo codes ------------------------
@bp.get("/codes")
@admin_required
def list_codes():
    """
    q      -> exact code, or substring of campaign
    export -> "1" for a CSV download
    """
    q = (request.args.get("q") or "").strip()
    qry = db.select(PromoCode).order_by(PromoCode.id.desc())
    if q:
        qry = qry.where(or_(PromoCode.code == q.upper(), PromoCode.campaign.ilike(f"%{q}%")))
    rows = [c.as_api() for c in db.session.execute(qry.limit(CODES_LIMIT)).scalars()]

    if request.args.get("export") == "1":
        return _csv_response(rows, CODE_COLUMNS, "promo_codes.csv")
    return ok({"data": rows})

# ------------------------ prizes ------------------------
@bp.get("/prizes")
@admin_required
def list_prizes():
    prizes = db.session.execute(db.select(Prize).order_by(Prize.id.asc())).scalars()
    return ok({"data": [p.as_api() for p in prizes]})

@bp.post("/prizes")
@admin_required
def create_prize():
    """Body: { name, type: "percent"|"amount", value, weight?, stock?, active? }"""
    data = request.get_json(silent=True) or {}
    prize = Prize(weight=1.0, stock=None, active=True)
    try:
        _apply_prize_fields(prize, data, partial=False)
    except ValueError:
        return err(INVALID_PRIZE, 400)

    db.session.add(prize)
    db.session.commit()
    return ok({"data": prize.as_api()}, status=201)

@bp.patch("/prizes")
@admin_required
def update_prize():
    """Body: { id, active?, weight?, stock? (null = unlimited), name?, type?, value? }"""
    data = request.get_json(silent=True) or {}
    prize_id = _to_int(data.get("id"))
    if not prize_id:
        return err(ID_REQUIRED, 400)

    prize = db.session.get(Prize, prize_id)
    if not prize:
        return err(NOT_FOUND, 404)
    try:
        _apply_prize_fields(prize, data, partial=True)
    except ValueError:
        db.session.rollback()
        return err(INVALID_PRIZE, 400)

    db.session.commit()
    return ok({"data": prize.as_api()})

# ------------------------ orders ------------------------
@bp.get("/orders")
@admin_required
def list_orders():
    """
    q     -> phone/name/city substring, exact coupon code or order id
    limit -> default 100 (cap 1000)
    """
    q = (request.args.get("q") or "").strip()
    limit = min(max(_to_int(request.args.get("limit"), 100), 1), 1000)

    qry = db.select(Order).order_by(Order.id.desc()).limit(limit)
    if q:
        like = f"%{q}%"
        qry = qry.where(or_(
            Order.phone.ilike(like),
            Order.name.ilike(like),
            Order.city.ilike(like),
            Order.coupon_code == q,
            Order.id == _to_int(q, 0),
        ))
    orders = db.session.execute(qry).scalars().all()
    return ok({"data": [o.as_api() for o in orders]})
