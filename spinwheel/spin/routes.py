# spinwheel/spin/routes.py
from flask import current_app, request

from ..services.promo_service import CodeVerifier
from ..services.spin_service import SpinCoordinator
from ..services.token_service import SpinSettings, SpinToken, TokenAuthenticator
from ..utils.api import err, ok
from ..utils.errors import CODE_REQUIRED
from ..utils.net import get_client_ip
from . import bp


def _settings() -> SpinSettings:
    return SpinSettings.from_config(current_app.config)


@bp.post("/verify-code")
def verify_code():
    """
    Body: { "code": "ABCD-EFGH" }
    Returns a signed token valid for one spin within a few minutes.
    """
    data = request.get_json(silent=True) or {}
    code = data.get("code")
    if not isinstance(code, str) or not code.strip():
        return err(CODE_REQUIRED, 400)

    token = CodeVerifier(_settings()).verify(code)
    return ok({"token": token.as_api()})


@bp.post("/spin")
def spin():
    """
    Body: { "token": { "payload": {promo_code_id, exp}, "signature": "..." } }
    """
    data = request.get_json(silent=True) or {}
    settings = _settings()

    token = SpinToken.from_request(data.get("token"))
    promo_code_id = TokenAuthenticator(settings).authenticate(token)

    result = SpinCoordinator(settings).spin(promo_code_id, user_ip=get_client_ip())
    return ok(result.as_api())
