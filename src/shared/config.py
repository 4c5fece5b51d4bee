"""Environment configuration for the contact service."""

import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file (for local development)
load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Well-known mail services, mirrors the service names nodemailer-style configs use
SMTP_SERVICES = {
    "gmail": ("smtp.gmail.com", 587),
    "outlook": ("smtp.office365.com", 587),
    "hotmail": ("smtp.office365.com", 587),
    "office365": ("smtp.office365.com", 587),
    "yahoo": ("smtp.mail.yahoo.com", 465),
    "zoho": ("smtp.zoho.com", 465),
    "sendgrid": ("smtp.sendgrid.net", 587),
    "mailgun": ("smtp.mailgun.org", 587),
}

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Process configuration, read once at startup."""
    email_service: str = "gmail"
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_timeout: float = 30.0
    email_user: Optional[str] = None
    email_password: Optional[str] = None
    company_email: Optional[str] = None
    port: int = 3000
    app_env: str = "development"
    allowed_origin: Optional[str] = None
    trust_proxy: bool = False
    static_dir: Path = PROJECT_ROOT / "public"
    max_body_bytes: int = 10 * 1024
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.app_env.lower() == "production"

    @property
    def mail_configured(self) -> bool:
        return bool(self.email_user and self.email_password and self.company_email)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logging.warning(f"Ignoring non-numeric {name}={raw!r}, using {default}")
        return default


def get_settings() -> Settings:
    """Build settings from the current environment."""
    email_service = os.environ.get("EMAIL_SERVICE", "gmail").strip().lower()
    default_host, default_port = SMTP_SERVICES.get(email_service, ("smtp.gmail.com", 587))
    email_user = os.environ.get("EMAIL_USER") or None

    return Settings(
        email_service=email_service,
        smtp_host=os.environ.get("SMTP_HOST") or default_host,
        smtp_port=_env_int("SMTP_PORT", default_port),
        smtp_timeout=float(_env_int("SMTP_TIMEOUT", 30)),
        email_user=email_user,
        email_password=os.environ.get("EMAIL_PASSWORD") or None,
        # Fall back to the sending account so notifications still land somewhere
        company_email=os.environ.get("COMPANY_EMAIL") or email_user,
        port=_env_int("PORT", 3000),
        app_env=os.environ.get("APP_ENV", "development"),
        allowed_origin=os.environ.get("ALLOWED_ORIGIN") or None,
        trust_proxy=os.environ.get("TRUST_PROXY", "false").strip().lower() in TRUTHY,
        static_dir=Path(os.environ.get("STATIC_DIR") or PROJECT_ROOT / "public"),
        max_body_bytes=_env_int("MAX_BODY_BYTES", 10 * 1024),
        log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    """Set the root level; the timestamped format only applies when no handler is installed yet."""
    log_level = getattr(logging, level, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(log_level)
