"""Pydantic schemas for contact API."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ContactRequest(BaseModel):
    """
    Schema for contact form submission.

    Every field is optional at the schema level; required-field and email
    checks live in ``validate_submission`` so they run after rate limiting and
    CSRF validation and report the contact form's own error messages.
    """
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(None, description="Your name")
    email: Optional[str] = Field(None, description="Your email address")
    phone: Optional[str] = Field(None, description="Phone number")
    company: Optional[str] = Field(None, description="Company name")
    service: Optional[str] = Field(None, description="Service interested in")
    message: Optional[str] = Field(None, description="Your message")


class ContactResponse(BaseModel):
    """Schema for contact form response."""
    success: bool
    message: str


class CsrfTokenResponse(BaseModel):
    csrfToken: str


class HealthResponse(BaseModel):
    status: str
    timestamp: str
