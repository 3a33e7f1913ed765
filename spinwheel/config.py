import os
from datetime import timedelta


def _csv_env(name, default=""):
    return [x.strip() for x in os.getenv(name, default).split(",") if x.strip()]


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    ENV = os.getenv("FLASK_ENV", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # admin JWT
    JWT_SECRET_KEY = os.environ.get("JWT_SECRET_KEY", "dev-jwt-secret-change-me-please-32b")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=12)
    ADMIN_SECRET = os.environ.get("ADMIN_SECRET", "")

    # promo code lookup key and spin token signing key must differ
    HMAC_SECRET = os.environ.get("HMAC_SECRET", "dev-hmac-secret")
    SPIN_SECRET = os.environ.get("SPIN_SECRET", "dev-spin-secret")
    SPIN_TOKEN_TTL_SECONDS = int(os.getenv("SPIN_TOKEN_TTL_SECONDS", "300"))
    COUPON_TTL_DAYS = int(os.getenv("COUPON_TTL_DAYS", "365"))

    CORS_ORIGINS = _csv_env("CORS_ORIGINS", "*")

    TELEGRAM_BOT_TOKEN = os.environ.get("TELEGRAM_BOT_TOKEN", "")
    CHAT_IDS = _csv_env("CHAT_IDS")
    NOTIFY_TIMEOUT_SECONDS = float(os.getenv("NOTIFY_TIMEOUT_SECONDS", "5"))

    PUBLIC_SITE_BASE_URL = os.environ.get("PUBLIC_SITE_BASE_URL", "https://example.com")

    @staticmethod
    def init_app(app):

        if not os.getenv("DATABASE_URL"):
            os.makedirs(app.instance_path, exist_ok=True)
            app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{os.path.join(app.instance_path, 'app.db')}"
        else:
            app.config["SQLALCHEMY_DATABASE_URI"] = os.getenv("DATABASE_URL")
