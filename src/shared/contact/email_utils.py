"""Email composition and delivery for contact form submissions."""

import smtplib
import ssl
import logging
from dataclasses import dataclass
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional, Protocol

from fastapi.concurrency import run_in_threadpool

from src.shared.config import Settings
from src.shared.contact.schemas import ContactRequest
from src.shared.errors import ConfigurationError, DispatchFailure

BUSINESS_NAME = "COA Services"
AUTO_REPLY_SUBJECT = f"Thank you for contacting {BUSINESS_NAME}"


@dataclass(frozen=True)
class EmailDocument:
    sender: str
    to: str
    subject: str
    html: str
    reply_to: Optional[str] = None


class MailTransport(Protocol):
    """Delivers a fully composed email. Raises on any failure."""

    def send(self, document: EmailDocument) -> None: ...


class SmtpMailTransport:
    """Sends each document over its own SMTP connection."""

    def __init__(self, host: str, port: int, user: str, password: str, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpMailTransport":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            user=settings.email_user,
            password=settings.email_password,
            timeout=settings.smtp_timeout,
        )

    def send(self, document: EmailDocument) -> None:
        msg = MIMEMultipart('alternative')
        msg['From'] = document.sender
        msg['To'] = document.to
        msg['Subject'] = document.subject
        if document.reply_to:
            msg['Reply-To'] = document.reply_to
        msg.attach(MIMEText(document.html, 'html'))

        # Port 465 expects TLS from the first byte, everything else upgrades with STARTTLS
        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout,
                                  context=ssl.create_default_context()) as server:
                server.login(self.user, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(self.user, self.password)
                server.send_message(msg)


def _optional_row(label: str, value: Optional[str]) -> str:
    if not value:
        return ""
    return f'<p><strong>{label}:</strong> {value}</p>'


def build_notification_email(sender: str, company_email: str, reply_to: str,
                             submission: ContactRequest) -> EmailDocument:
    """Business notification. ``submission`` must already be sanitized."""
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #2563eb;">New Contact Form Submission</h2>
    <div style="background-color: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <p><strong>Name:</strong> {submission.name}</p>
        <p><strong>Email:</strong> {submission.email}</p>
        {_optional_row("Phone", submission.phone)}
        {_optional_row("Company", submission.company)}
        {_optional_row("Service Interested In", submission.service)}
    </div>
    <div style="margin: 20px 0;">
        <h3 style="color: #2563eb;">Message:</h3>
        <p style="background-color: #f9fafb; padding: 15px; border-radius: 8px; white-space: pre-wrap;">{submission.message}</p>
    </div>
    <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 20px 0;">
    <p style="color: #6b7280; font-size: 12px;">
        This email was sent from the {BUSINESS_NAME} contact form.
    </p>
</div>
"""
    return EmailDocument(
        sender=sender,
        to=company_email,
        subject=f"New Contact Form Submission from {submission.name}",
        html=html_body,
        reply_to=reply_to,
    )


def build_auto_reply_email(sender: str, recipient: str, submission: ContactRequest) -> EmailDocument:
    """Auto-reply to the submitter. ``recipient`` is the raw address, ``submission`` is sanitized."""
    html_body = f"""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2 style="color: #2563eb;">Thank You for Contacting Us!</h2>
    <p>Dear {submission.name},</p>
    <p>Thank you for reaching out to {BUSINESS_NAME}. We have received your message and will get back to you as soon as possible, typically within 1 business day.</p>

    <div style="background-color: #f9fafb; padding: 20px; border-radius: 8px; margin: 20px 0;">
        <h3 style="color: #2563eb; margin-top: 0;">Your Message:</h3>
        <p style="white-space: pre-wrap;">{submission.message}</p>
    </div>

    <p>If you have any urgent concerns, please don't hesitate to call us during business hours.</p>

    <p>Best regards,<br>
    <strong>{BUSINESS_NAME} Team</strong></p>

    <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 20px 0;">
    <p style="color: #6b7280; font-size: 12px;">
        This is an automated response. Please do not reply to this email.
    </p>
</div>
"""
    return EmailDocument(
        sender=sender,
        to=recipient,
        subject=AUTO_REPLY_SUBJECT,
        html=html_body,
    )


class MailDispatcher:
    """
    Sends the business notification and then the auto-reply.

    The two sends are not atomic: if the auto-reply fails after the notification
    went out, the caller only sees a DispatchFailure. Nothing is retried.
    """

    def __init__(self, transport: Optional[MailTransport], sender: Optional[str],
                 company_email: Optional[str]):
        self.transport = transport
        self.sender = sender
        self.company_email = company_email

    @classmethod
    def from_settings(cls, settings: Settings,
                      transport: Optional[MailTransport] = None) -> "MailDispatcher":
        if transport is None and settings.mail_configured:
            transport = SmtpMailTransport.from_settings(settings)
        return cls(transport=transport, sender=settings.email_user, company_email=settings.company_email)

    @property
    def configured(self) -> bool:
        return self.transport is not None and bool(self.sender and self.company_email)

    async def dispatch(self, raw_email: str, sanitized: ContactRequest) -> None:
        """
        Compose and send both emails.

        Args:
            raw_email: Submitter address as entered, used as the auto-reply recipient
            sanitized: Escaped submission used for every HTML body and subject

        Raises:
            ConfigurationError: no transport or addresses configured
            DispatchFailure: either send failed
        """
        if not self.configured:
            raise ConfigurationError()

        documents = [
            build_notification_email(self.sender, self.company_email, raw_email, sanitized),
            build_auto_reply_email(self.sender, raw_email, sanitized),
        ]
        for document in documents:
            try:
                # smtplib blocks, keep it off the event loop
                await run_in_threadpool(self.transport.send, document)
            except Exception as e:
                logging.error(f"Failed to send '{document.subject}' email: {str(e)}")
                raise DispatchFailure() from e
        logging.info("Contact form emails sent successfully")
