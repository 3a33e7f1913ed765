# --- spinwheel/model/prize.py ---
from ..extensions import db
from ..utils.money import as_number

PRIZE_TYPES = ("percent", "amount")

class Prize(db.Model):
    __tablename__ = "prizes"
    __table_args__ = (
        db.CheckConstraint("stock IS NULL OR stock >= 0", name="ck_prizes_stock_non_negative"),
        db.CheckConstraint("weight >= 0", name="ck_prizes_weight_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)

    # "percent" or "amount"
    type = db.Column(db.String(16), nullable=False, default="percent")
    value = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    weight = db.Column(db.Float, nullable=False, default=1.0)
    stock = db.Column(db.Integer, nullable=True)  # None = unlimited
    active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    coupons = db.relationship("Coupon", back_populates="prize", lazy="select")

    def summary(self):
        return {"id": self.id, "name": self.name, "type": self.type, "value": as_number(self.value)}

    def as_api(self):
        return {
            **self.summary(),
            "weight": self.weight,
            "stock": self.stock,
            "active": self.active,
        }
