from ..extensions import db
from ..utils.clock import utcnow
from ..utils.money import as_number

class Order(db.Model):
    __tablename__ = "orders"

    id = db.Column(db.Integer, primary_key=True)

    # Customer snapshot
    name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(50), nullable=False, index=True)
    email = db.Column(db.String(120))
    city = db.Column(db.String(120))
    address = db.Column(db.String(255))  # post office branch
    notes = db.Column(db.Text)
    payment_method = db.Column(db.String(16), default="cod")

    # Money snapshot
    subtotal = db.Column(db.Numeric(12, 2), nullable=False)
    discount_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(12, 2), nullable=False)

    # Coupon snapshot (not a FK: the coupon row may be cleaned up independently)
    coupon_code = db.Column(db.String(32), index=True)
    prize_type = db.Column(db.String(16))
    prize_value = db.Column(db.Numeric(12, 2))

    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    items = db.relationship(
        "OrderItem",
        backref="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.id.asc()",
    )

    def as_api(self):
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "city": self.city,
            "address": self.address,
            "notes": self.notes,
            "payment_method": self.payment_method,
            "subtotal": as_number(self.subtotal),
            "discount_amount": as_number(self.discount_amount),
            "total_amount": as_number(self.total_amount),
            "coupon_code": self.coupon_code,
            "prize_type": self.prize_type,
            "prize_value": as_number(self.prize_value) if self.prize_value is not None else None,
            "items": [i.as_api() for i in self.items],
        }

class OrderItem(db.Model):
    __tablename__ = "order_items"

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    product_id = db.Column(db.String(64))
    product_name = db.Column(db.String(255), nullable=False)
    product_dosage = db.Column(db.String(64))

    price = db.Column(db.Numeric(12, 2), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Numeric(12, 2), nullable=False)

    def as_api(self):
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "product_dosage": self.product_dosage,
            "price": as_number(self.price),
            "quantity": self.quantity,
            "line_total": as_number(self.line_total),
        }
