# --- spinwheel/model/coupon.py ---

from ..extensions import db
from ..utils.clock import utcnow

class Coupon(db.Model):
    __tablename__ = "coupons"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), unique=True, nullable=False, index=True)

    prize_id = db.Column(db.Integer, db.ForeignKey("prizes.id"), nullable=False, index=True)
    promo_code_id = db.Column(db.Integer, db.ForeignKey("promo_codes.id"), nullable=True, index=True)

    # false -> true exactly once, via compare-and-set
    redeemed = db.Column(db.Boolean, nullable=False, default=False)
    redeemed_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)

    # audit
    user_ip = db.Column(db.String(64), nullable=True)
    client_signature = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    prize = db.relationship("Prize", back_populates="coupons", lazy="joined")
    promo_code = db.relationship("PromoCode", back_populates="coupons")

    def is_expired(self, now=None) -> bool:
        return self.expires_at is not None and self.expires_at < (now or utcnow())
