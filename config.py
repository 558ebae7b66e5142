from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    flask_secret_key: str = "replace-me-with-secure-key"
    # Secret key for JWT token generation
    jwt_secret_key: str = "replace-me-with-jwt-secret-key"
    jwt_access_expires_minutes: int = 60
    # Ledger
    difficulty: int = 2
    # Nonce search cap per block; 0 disables it
    max_mining_attempts: int = 1_000_000
    require_registered_candidate: bool = True
    # Emails that receive the 'admin' role after OTP login
    admin_emails: List[str] = []
    # OTP login
    otp_ttl_seconds: int = 300
    otp_length: int = 6
    otp_purge_interval_minutes: int = 5
    # SMTP (Gmail needs an App Password)
    mail_server: str = "smtp.gmail.com"
    mail_port: int = 587
    mail_use_tls: bool = True
    mail_username: Optional[str] = None
    mail_password: Optional[str] = None
    mail_default_sender: Optional[str] = None
    # Google Generative AI
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"
    # Rate limits (Flask-Limiter notation)
    rate_limit_default: str = "200 per minute"
    otp_rate_limit: str = "5 per minute"
    # HTTP server settings
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"
    # Standalone Prometheus exporter port; /metrics is always served by the app
    metrics_port: Optional[int] = None
    metrics_addr: str = "0.0.0.0"
    testing: bool = False

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    @field_validator("admin_emails")
    @classmethod
    def _normalize_admin_emails(cls, value: List[str]) -> List[str]:
        return [email.strip().lower() for email in value if email.strip()]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type["Settings"],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment variables take highest priority, then init, dotenv, file secrets
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


def get_package_version() -> str:
    """
    Returns the installed chainvote version, or the package fallback.
    """
    import importlib.metadata

    try:
        return importlib.metadata.version("chainvote")
    except importlib.metadata.PackageNotFoundError:
        from chainvote import __version__

        return __version__
