"""Dependencies that hand the shared security collaborators to the contact routes."""

from fastapi import Request

from src.shared.config import Settings
from src.shared.contact.email_utils import MailDispatcher
from src.shared.security.csrf import TokenStore
from src.shared.security.rate_limit import RateLimiter


def get_settings_dependency(request: Request) -> Settings:
    return request.app.state.settings


def get_token_store(request: Request) -> TokenStore:
    return request.app.state.token_store


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_mail_dispatcher(request: Request) -> MailDispatcher:
    return request.app.state.mail_dispatcher


def get_client_ip(request: Request) -> str:
    """Get client IP address for rate limiting and token fingerprints."""
    settings: Settings = request.app.state.settings
    if settings.trust_proxy:
        # Take the first IP in the chain set by the proxy/load balancer
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"
