# spinwheel/utils/net.py
from flask import request

# matches Coupon.user_ip
MAX_IP_LENGTH = 64

def get_client_ip():
    """Best guess at the caller's address for the coupon audit trail; never used for auth."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    # left-most hop is the client when behind a proxy
    ip = forwarded.split(",")[0].strip() if forwarded else ""
    ip = ip or request.headers.get("X-Real-IP", "").strip() or request.remote_addr or ""
    return ip[:MAX_IP_LENGTH] or None
