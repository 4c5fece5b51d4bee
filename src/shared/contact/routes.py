"""Contact routes: CSRF token issuance and form submission relay."""

import json
import logging
from urllib.parse import parse_qs

from fastapi import APIRouter, Depends, Request, status
from pydantic import ValidationError as PydanticValidationError

from src.shared.config import Settings
from src.shared.contact.dependencies import (
    get_client_ip,
    get_mail_dispatcher,
    get_rate_limiter,
    get_settings_dependency,
    get_token_store,
)
from src.shared.contact.email_utils import MailDispatcher
from src.shared.contact.schemas import ContactRequest, ContactResponse, CsrfTokenResponse
from src.shared.errors import RateLimitError, ValidationError
from src.shared.security.csrf import TokenStore
from src.shared.security.input_validation import sanitize_submission, validate_submission
from src.shared.security.rate_limit import RateLimiter

router = APIRouter(prefix="/api", tags=["contact"])

CSRF_HEADER = "X-CSRF-Token"
SUCCESS_MESSAGE = "Message sent successfully!"


async def read_body(request: Request, max_body_bytes: int) -> bytes:
    """Read the body, refusing it as soon as it is known to exceed the cap."""
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > max_body_bytes:
        raise ValidationError("Request body too large.")

    body = b""
    async for chunk in request.stream():
        body += chunk
        # Content-Length can be absent (chunked) or wrong
        if len(body) > max_body_bytes:
            raise ValidationError("Request body too large.")
    return body


async def read_submission(request: Request, max_body_bytes: int) -> ContactRequest:
    """Parse a JSON or urlencoded body into a ContactRequest, mapping every failure to a 400."""
    body = await read_body(request, max_body_bytes)
    if not body.strip():
        return ContactRequest()

    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/x-www-form-urlencoded"):
        parsed = parse_qs(body.decode("utf-8", errors="replace"))
        data = {key: values[0] for key, values in parsed.items()}
    else:
        try:
            data = json.loads(body)
        except (ValueError, RecursionError):
            # Deeply nested arrays hit the recursion limit before any decode error
            raise ValidationError("Invalid request body.")

    if not isinstance(data, dict):
        raise ValidationError("Invalid request body.")

    try:
        return ContactRequest.model_validate(data)
    except PydanticValidationError:
        raise ValidationError("All form fields must be text.")


@router.get("/csrf-token", response_model=CsrfTokenResponse)
async def issue_csrf_token(
    client_ip: str = Depends(get_client_ip),
    token_store: TokenStore = Depends(get_token_store),
):
    """Issue a one-time token the contact form must echo in the X-CSRF-Token header."""
    return CsrfTokenResponse(csrfToken=token_store.issue(client_ip))


@router.post("/contact", response_model=ContactResponse, status_code=status.HTTP_200_OK)
async def submit_contact_form(
    request: Request,
    client_ip: str = Depends(get_client_ip),
    settings: Settings = Depends(get_settings_dependency),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
    token_store: TokenStore = Depends(get_token_store),
    dispatcher: MailDispatcher = Depends(get_mail_dispatcher),
):
    """
    Relay a contact form submission to the business and auto-reply to the submitter.

    Stages run in a fixed order and each one short-circuits the rest:
    rate limit -> CSRF token -> field validation -> sanitization -> dispatch.
    The body is not even parsed until the first two stages pass.
    """
    decision = rate_limiter.admit(client_ip)
    if not decision.allowed:
        raise RateLimitError(retry_after=decision.retry_after_seconds)

    token_store.validate(request.headers.get(CSRF_HEADER))

    submission = await read_submission(request, settings.max_body_bytes)
    validate_submission(submission)
    sanitized = sanitize_submission(submission)

    await dispatcher.dispatch(submission.email, sanitized)

    logging.info(f"Contact form submission relayed for {client_ip}")
    return ContactResponse(success=True, message=SUCCESS_MESSAGE)
