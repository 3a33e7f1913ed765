# ------- spinwheel/utils/decorators.py -------
from functools import wraps
from flask_jwt_extended import get_jwt, verify_jwt_in_request

from .api import err
from .errors import FORBIDDEN

ADMIN_ROLE = "admin"

def admin_required(fn):
    """Gate an endpoint behind an admin JWT issued by ``POST /api/admin/login``."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        if get_jwt().get("role") != ADMIN_ROLE:
            return err(FORBIDDEN, 403)
        return fn(*args, **kwargs)
    return wrapper
