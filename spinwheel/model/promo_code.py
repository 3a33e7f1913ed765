# --- spinwheel/model/promo_code.py ---
from ..extensions import db
from ..utils.clock import utcnow

class PromoCode(db.Model):
    __tablename__ = "promo_codes"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(32), nullable=True, index=True)      # plaintext, admin search/export only
    code_hash = db.Column(db.String(255), nullable=False)           # salted slow hash
    code_hmac = db.Column(db.String(64), unique=True, nullable=False, index=True)  # lookup key
    campaign = db.Column(db.String(120), nullable=False, default="Flyer", index=True)

    # set exactly once by the spin commit
    used_at = db.Column(db.DateTime, nullable=True, index=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    coupons = db.relationship("Coupon", back_populates="promo_code", lazy="select")

    @property
    def is_used(self) -> bool:
        return self.used_at is not None

    def as_api(self):
        return {
            "id": self.id,
            "code": self.code,
            "code_hmac": self.code_hmac,
            "campaign": self.campaign,
            "used_at": self.used_at.isoformat() if self.used_at else None,
        }
