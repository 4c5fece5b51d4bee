"""COA Services - FastAPI server for the marketing site and contact form relay."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.shared.config import Settings, configure_logging, get_settings
from src.shared.contact.dependencies import get_client_ip
from src.shared.contact.email_utils import MailDispatcher, MailTransport
from src.shared.contact.routes import router as contact_router
from src.shared.contact.schemas import HealthResponse
from src.shared.errors import ContactServiceError, RateLimitError
from src.shared.security.csrf import InMemoryTokenStore, TokenStore
from src.shared.security.rate_limit import FixedWindowRateLimiter, RateLimiter
from src.shared.site.routes import SiteStaticFiles, router as site_router

SWEEP_INTERVAL_SECONDS = 10 * 60

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; script-src 'self'; style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data:; frame-ancestors 'none'"
    ),
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}


def _failure(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


async def _sweep_periodically(app: FastAPI) -> None:
    """Drops expired tokens and elapsed rate windows independent of traffic."""
    while True:
        await asyncio.sleep(SWEEP_INTERVAL_SECONDS)
        sweep_once(app)


def sweep_once(app: FastAPI) -> None:
    """One sweep pass; a failing store is logged and retried on the next pass."""
    try:
        removed_tokens = app.state.token_store.sweep()
        removed_windows = app.state.rate_limiter.sweep()
    except Exception as e:
        logging.error(f"Periodic sweep failed: {str(e)}", exc_info=True)
        return
    if removed_tokens or removed_windows:
        logging.debug(f"Swept {removed_tokens} expired tokens and {removed_windows} rate windows")


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[MailTransport] = None,
    token_store: Optional[TokenStore] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Build the application.

    Collaborators default to the in-process implementations; tests and
    multi-instance deployments pass their own.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="COA Services",
        description="Marketing site with contact form relay",
        version="1.0.0",
    )
    app.state.settings = settings
    app.state.token_store = token_store if token_store is not None else InMemoryTokenStore()
    app.state.rate_limiter = rate_limiter if rate_limiter is not None else FixedWindowRateLimiter()
    app.state.mail_dispatcher = MailDispatcher.from_settings(settings, transport)

    @app.on_event("startup")
    async def startup_event():
        if not app.state.mail_dispatcher.configured:
            logging.warning(
                "Email credentials not configured (EMAIL_USER, EMAIL_PASSWORD, COMPANY_EMAIL). "
                "The contact form will return 503 until they are set."
            )
        app.state.sweep_task = asyncio.create_task(_sweep_periodically(app))
        logging.info(f"Server is running on http://localhost:{settings.port}")

    @app.on_event("shutdown")
    async def shutdown_event():
        sweep_task = getattr(app.state, "sweep_task", None)
        if sweep_task:
            sweep_task.cancel()

    # CORS: locked to the configured origin in production, open otherwise
    if settings.is_production:
        allowed_origins = [settings.allowed_origin] if settings.allowed_origin else []
    else:
        allowed_origins = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "X-CSRF-Token"],
    )

    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        """Add security headers to all responses."""
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    @app.exception_handler(ContactServiceError)
    async def contact_error_handler(request: Request, exc: ContactServiceError):
        """Uniform failure body for every pipeline error."""
        logging.warning(
            f"{request.method} {request.url.path} from {get_client_ip(request)} failed "
            f"({exc.status_code} {type(exc).__name__}): {exc.message}"
        )
        headers = None
        if isinstance(exc, RateLimitError) and exc.retry_after:
            headers = {"Retry-After": str(exc.retry_after)}
        return _failure(exc.status_code, exc.message, headers)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if request.url.path.startswith("/api/"):
            return _failure(exc.status_code, str(exc.detail), getattr(exc, "headers", None))
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logging.warning(f"Request validation failed on {request.url.path}: {exc.errors()}")
        return _failure(400, "Invalid request.")

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Never leak a stack trace to the client."""
        logging.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)
        return _failure(500, "Internal server error")

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(status="OK", timestamp=datetime.now(timezone.utc).isoformat())

    app.include_router(contact_router)
    app.include_router(site_router)

    # Everything else (css, js, images) comes straight from the static root; misses and
    # non-GET requests to unmatched paths are 404
    app.mount("/", SiteStaticFiles(directory=str(settings.static_dir), check_dir=False), name="static")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
