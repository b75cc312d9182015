# config.py
import os

# Claim radius per deployment mode; laptop GPS in development is often kilometres off
CLAIM_DISTANCE_BY_MODE = {
    "production": 10.0,
    "development": 10000.0,
}


def _database_url():
    url = os.environ.get("DATABASE_URL", "sqlite:///attendance.db")
    # SQLAlchemy 1.4+ only accepts the postgresql:// scheme
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)
    return url


def resolve_claim_distance(mode, override=None):
    """Pick the maximum claim distance for a deployment mode.

    An explicit override wins; otherwise the mode must be one of
    CLAIM_DISTANCE_BY_MODE.
    """
    if override not in (None, ""):
        return float(override)
    try:
        return CLAIM_DISTANCE_BY_MODE[mode]
    except KeyError:
        raise ValueError(f"Unknown DEPLOYMENT_MODE {mode!r}") from None


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "change-me")
    JWT_SECRET = os.environ.get("JWT_SECRET")
    JWT_ALGO = "HS256"
    JWT_EXPIRY_MINUTES = int(os.environ.get("JWT_EXPIRY_MINUTES", "120"))

    QR_CODE_SECRET = os.environ.get("QR_CODE_SECRET")
    QR_TOKEN_MAX_AGE_MS = int(os.environ.get("QR_TOKEN_MAX_AGE_MS", str(10 * 60 * 1000)))

    SESSION_DURATION_SECONDS = int(os.environ.get("SESSION_DURATION_SECONDS", "300"))

    DEPLOYMENT_MODE = os.environ.get("DEPLOYMENT_MODE", "production")
    MAX_CLAIM_DISTANCE_METERS = resolve_claim_distance(
        DEPLOYMENT_MODE, os.environ.get("MAX_CLAIM_DISTANCE_METERS")
    )

    SQLALCHEMY_DATABASE_URI = _database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    NOTIFICATION_MAILBOX_SIZE = 100
    EXPIRY_TIMERS_ENABLED = True
    TESTING = False
    DEBUG = False


class DevelopmentConfig(Config):
    DEBUG = True
    DEPLOYMENT_MODE = os.environ.get("DEPLOYMENT_MODE", "development")
    MAX_CLAIM_DISTANCE_METERS = resolve_claim_distance(
        DEPLOYMENT_MODE, os.environ.get("MAX_CLAIM_DISTANCE_METERS")
    )
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    pass


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key"
    JWT_SECRET = "test-jwt-secret"
    QR_CODE_SECRET = "test-qr-secret"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    DEPLOYMENT_MODE = "production"
    MAX_CLAIM_DISTANCE_METERS = 10.0
    SESSION_DURATION_SECONDS = 300
    QR_TOKEN_MAX_AGE_MS = 10 * 60 * 1000
    EXPIRY_TIMERS_ENABLED = False
    LOG_LEVEL = "DEBUG"


CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
