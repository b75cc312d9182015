# app.py
import logging
import os

from flask import Flask, jsonify

from config import CONFIGS
from models import db
from routes.auth_routes import auth_bp
from routes.errors import register_error_handlers
from routes.faculty_routes import faculty_bp
from routes.student_routes import student_bp
from services.admission import AdmissionController
from services.notifier import MailboxNotifier
from services.session_lifecycle import ExpiryScheduler, SessionLifecycle
from services.storage import AttendanceStore
from utils.clock import SystemClock
from utils.qr_utils import SessionTokenCodec


class AttendanceServices:
    """The collaborators every request shares, kept on app.extensions."""

    def __init__(self, store, codec, lifecycle, admission, notifier, clock, scheduler):
        self.store = store
        self.codec = codec
        self.lifecycle = lifecycle
        self.admission = admission
        self.notifier = notifier
        self.clock = clock
        self.scheduler = scheduler


def _check_secrets(app):
    missing = [k for k in ("JWT_SECRET", "QR_CODE_SECRET") if not app.config.get(k)]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")


def create_app(config_name=None, clock=None, scheduler=None, notifier=None):
    config_name = config_name or os.environ.get("APP_CONFIG", "production")
    app = Flask(__name__)
    app.config.from_object(CONFIGS[config_name])
    _check_secrets(app)
    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.logger.setLevel(app.config["LOG_LEVEL"])

    db.init_app(app)

    clock = clock or SystemClock()
    if scheduler is None and app.config["EXPIRY_TIMERS_ENABLED"]:
        scheduler = ExpiryScheduler()
    notifier = notifier or MailboxNotifier(app.config["NOTIFICATION_MAILBOX_SIZE"])

    store = AttendanceStore()
    codec = SessionTokenCodec(app.config["QR_CODE_SECRET"], clock, app.config["QR_TOKEN_MAX_AGE_MS"])
    lifecycle = SessionLifecycle(
        store, codec, clock, scheduler, app.config["SESSION_DURATION_SECONDS"], app=app
    )
    admission = AdmissionController(store, codec, lifecycle, notifier, clock)
    app.extensions["attendance"] = AttendanceServices(
        store, codec, lifecycle, admission, notifier, clock, scheduler
    )

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(faculty_bp, url_prefix="/faculty")
    app.register_blueprint(student_bp, url_prefix="/student")
    register_error_handlers(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "ok"})

    with app.app_context():
        db.create_all()

    app.logger.info(
        "attendance app ready: mode=%s max_claim_distance=%sm session_duration=%ss",
        app.config["DEPLOYMENT_MODE"],
        app.config["MAX_CLAIM_DISTANCE_METERS"],
        app.config["SESSION_DURATION_SECONDS"],
    )
    return app


# -------------------- Run --------------------
if __name__ == "__main__":
    create_app().run(debug=os.environ.get("APP_CONFIG") == "development")
