"""
Main Flask application for the ChainVote student election service.

``create_app`` wires configuration, authentication, rate limiting, mail, the
AI assistant and the vote ledger together and registers the API blueprints.
Each call builds an application with its own fresh ledger.
"""

import atexit
from datetime import timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from dotenv import load_dotenv
from flask import Flask, Response, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from blueprints.admin_api import admin_api
from blueprints.auth_api import auth_api
from blueprints.voting_api import voting_api
from chainvote import assistant, mailer
from chainvote.chain import Ledger
from chainvote.metrics import start_metrics_server
from chainvote.otp import OTPStore
from chainvote.voting import VotingService
from config import Settings
from service_utils.auth import limiter
from service_utils.context import EXTENSION_KEY
from service_utils.error_handler import error_bp
from service_utils.health import health_bp
from service_utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


def _configure_jwt(app: Flask, settings: Settings) -> JWTManager:
    app.config["JWT_SECRET_KEY"] = settings.jwt_secret_key
    app.config["JWT_ACCESS_TOKEN_EXPIRES"] = timedelta(minutes=settings.jwt_access_expires_minutes)
    jwt = JWTManager(app)

    @jwt.unauthorized_loader
    def missing_token_callback(error: str) -> Response:
        """Handle missing JWT."""
        return jsonify({"msg": error}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error: str) -> Response:
        """Handle invalid JWT."""
        return jsonify({"msg": error}), 422

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header: dict, jwt_payload: dict) -> Response:
        """Handle expired JWT."""
        return jsonify({"msg": "Token has expired"}), 401

    return jwt


def _configure_mail(app: Flask, settings: Settings) -> None:
    app.config["MAIL_SERVER"] = settings.mail_server
    app.config["MAIL_PORT"] = settings.mail_port
    app.config["MAIL_USE_TLS"] = settings.mail_use_tls
    app.config["MAIL_USERNAME"] = settings.mail_username or ""
    app.config["MAIL_PASSWORD"] = settings.mail_password or ""
    app.config["MAIL_DEFAULT_SENDER"] = settings.mail_default_sender or settings.mail_username
    app.config["MAIL_SUPPRESS_SEND"] = settings.testing
    mailer.mail.init_app(app)


def _start_otp_purge(otp_store: OTPStore, interval_minutes: int) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(otp_store.purge_expired, "interval", minutes=interval_minutes, id="otp_purge")
    scheduler.start()
    atexit.register(lambda: scheduler.shutdown(wait=False))
    logger.info(f"Scheduled expired OTP purge every {interval_minutes} minutes")
    return scheduler


def create_app(settings: Optional[Settings] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        settings: Configuration; read from the environment and .env when omitted.
    Returns:
        Configured Flask app with a freshly initialized ledger.
    """
    settings = settings or Settings()
    configure_logging(settings.log_level)

    # --- Flask App Initialization ---
    app = Flask(__name__)
    app.secret_key = settings.flask_secret_key
    app.config["TESTING"] = settings.testing
    CORS(app)

    # --- Authentication, Rate Limiting, Mail, AI ---
    _configure_jwt(app, settings)
    app.config["RATELIMIT_DEFAULT"] = settings.rate_limit_default
    app.config["RATELIMIT_ENABLED"] = not settings.testing
    limiter.init_app(app)
    _configure_mail(app, settings)
    assistant.configure(settings.gemini_api_key, settings.gemini_model)

    # --- Ledger and Voting Service ---
    ledger = Ledger(difficulty=settings.difficulty, max_attempts=settings.max_mining_attempts or None)
    ledger.initialize()
    voting = VotingService(ledger, require_registered_candidate=settings.require_registered_candidate)
    otp_store = OTPStore(ttl_seconds=settings.otp_ttl_seconds, length=settings.otp_length)
    app.extensions[EXTENSION_KEY] = {
        "settings": settings,
        "ledger": ledger,
        "voting": voting,
        "otp": otp_store,
        "scheduler": None,
    }

    # --- Blueprints ---
    app.register_blueprint(error_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(auth_api, url_prefix="/api/auth")
    app.register_blueprint(voting_api, url_prefix="/api")
    app.register_blueprint(admin_api, url_prefix="/api/admin")

    @app.route("/metrics")
    def metrics_endpoint() -> Response:
        """Expose Prometheus metrics."""
        data = generate_latest()
        return Response(data, mimetype=CONTENT_TYPE_LATEST)

    # --- Background Jobs and Metrics Exporter ---
    if settings.otp_purge_interval_minutes and not settings.testing:
        app.extensions[EXTENSION_KEY]["scheduler"] = _start_otp_purge(
            otp_store, settings.otp_purge_interval_minutes
        )
    if settings.metrics_port and not settings.testing:
        start_metrics_server(port=settings.metrics_port, addr=settings.metrics_addr)

    logger.info(f"ChainVote ready: difficulty={settings.difficulty}, admins={len(settings.admin_emails)}")
    return app


def main() -> None:
    """Run the development server."""
    load_dotenv()
    settings = Settings()
    app = create_app(settings)
    app.run(host=settings.host, port=settings.port)


# --- Main Entrypoint ---
if __name__ == "__main__":
    main()
