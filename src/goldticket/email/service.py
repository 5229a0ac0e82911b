"""
Outbound account email (password reset and confirmation).

Delivery goes through a provider object so tests can swap it out; SMTP via
aiosmtplib is the one real transport. A failed delivery is logged and
reported as ``False``, never raised, because no route should fail on mail.
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr

import aiosmtplib
import structlog

from goldticket.config import Settings, get_settings
from goldticket.email.templates import password_changed, password_reset

logger = structlog.get_logger()

TemplateFunc = Callable[..., tuple[str, str, str]]

_TEMPLATE_REGISTRY: dict[str, TemplateFunc] = {
    "password_reset": password_reset,
    "password_changed": password_changed,
}


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class BaseEmailProvider(ABC):
    """A mail transport. ``send`` reports delivery as a bool."""

    @abstractmethod
    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool: ...


@dataclass(frozen=True)
class SMTPProvider(BaseEmailProvider):
    """Relay through an SMTP server, upgrading with STARTTLS when ``use_tls`` is set."""

    host: str
    port: int
    username: str
    password: str
    from_address: str
    from_name: str
    use_tls: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> SMTPProvider:
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            from_address=settings.email_from_address,
            from_name=settings.email_from_name,
            use_tls=settings.smtp_use_tls,
        )

    def build_message(self, email: OutgoingEmail) -> EmailMessage:
        message = EmailMessage()
        message["From"] = formataddr((self.from_name, self.from_address))
        message["To"] = email.to
        message["Subject"] = email.subject
        message.set_content(email.text)
        message.add_alternative(email.html, subtype="html")
        return message

    async def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        message = self.build_message(OutgoingEmail(to=to_email, subject=subject, html=html_body, text=text_body))
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self.password or None,
                start_tls=self.use_tls,
                tls_context=ssl.create_default_context() if self.use_tls else None,
            )
        except (aiosmtplib.SMTPException, OSError):
            logger.exception("email_delivery_failed", to=to_email, host=self.host)
            return False
        logger.info("email_delivered", to=to_email, subject=subject)
        return True


class EmailService:
    """Looks up a template by name, renders it, and hands the result to the provider."""

    def __init__(self, provider: BaseEmailProvider | None = None) -> None:
        self.provider = provider or SMTPProvider.from_settings(get_settings())

    def render(self, to: str, template_name: str, **context: object) -> OutgoingEmail:
        """
        Render a registered template.

        Raises:
            ValueError: If no template is registered under ``template_name``.
        """
        try:
            template = _TEMPLATE_REGISTRY[template_name]
        except KeyError:
            msg = f"Unknown template: {template_name}"
            raise ValueError(msg) from None
        subject, html, text = template(**context)
        return OutgoingEmail(to=to, subject=subject, html=html, text=text)

    async def send_template(self, to: str, template_name: str, **context: object) -> bool:
        email = self.render(to, template_name, **context)
        return await self.provider.send(email.to, email.subject, email.html, email.text)


_service: EmailService | None = None


def get_email_service() -> EmailService:
    """Process-wide service, created on first use."""
    global _service  # noqa: PLW0603
    if _service is None:
        _service = EmailService()
    return _service


def reset_email_service() -> None:
    global _service  # noqa: PLW0603
    _service = None
