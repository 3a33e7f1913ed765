# --- spinwheel/__init__.py ---
import logging

from flask import Flask, jsonify
from .config import Config
from .extensions import db, jwt, cors, migrate, notifier
from .utils.api import api_error
from .utils.errors import UNAUTHORIZED, register_error_handlers

def create_app(overrides=None):
    app = Flask(__name__, instance_relative_config=True)

    app.config.from_object(Config)
    Config.init_app(app)
    app.config['MAX_CONTENT_LENGTH'] = 1 * 1024 * 1024
    if overrides:
        app.config.update(overrides)

    app.logger.setLevel(getattr(logging, str(app.config["LOG_LEVEL"]).upper(), logging.INFO))
    logging.getLogger(__name__).setLevel(app.logger.level)

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}},
                  allow_headers=["Content-Type", "Authorization"])
    migrate.init_app(app, db)
    notifier.init_app(app)
    _register_jwt_handlers()

    register_error_handlers(app)

    # Register blueprints
    from .spin import bp as spin_bp; app.register_blueprint(spin_bp)
    from .coupon import bp as coupon_bp; app.register_blueprint(coupon_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)
    from .admin import bp as admin_bp; app.register_blueprint(admin_bp)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        from . import model  # noqa: F401  (register tables)
        db.create_all()

    return app

def _register_jwt_handlers():
    def _unauthorized(*_args):
        return jsonify(api_error(UNAUTHORIZED)), 401

    jwt.unauthorized_loader(_unauthorized)
    jwt.invalid_token_loader(_unauthorized)
    jwt.expired_token_loader(_unauthorized)
    jwt.revoked_token_loader(_unauthorized)
