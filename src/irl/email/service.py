"""
Outbound email for account verification, magic-link sign-in and invitations.

A provider (SMTP or Resend, chosen by ``IRL_EMAIL_PROVIDER``) delivers a
rendered ``OutgoingEmail``. Delivery problems are logged and surface as a
False return so auth routes can keep their neutral responses.
"""

from __future__ import annotations

import ssl
from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.message import EmailMessage
from urllib.parse import urlencode

import aiosmtplib
import httpx
import structlog

from irl.config import Settings, get_settings
from irl.email import templates

logger = structlog.get_logger()


@dataclass(frozen=True, slots=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class BaseEmailProvider(ABC):
    """Delivers one message. Implementations never raise on delivery errors."""

    name = "base"

    def __init__(self, from_address: str, from_name: str) -> None:
        self.sender = f"{from_name} <{from_address}>"

    @abstractmethod
    async def deliver(self, message: OutgoingEmail) -> bool: ...


class SMTPProvider(BaseEmailProvider):
    name = "smtp"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings.email_from_address, settings.email_from_name)
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username or None
        self.password = settings.smtp_password or None
        self.use_tls = settings.smtp_use_tls

    def _build(self, message: OutgoingEmail) -> EmailMessage:
        mime = EmailMessage()
        mime["From"] = self.sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")
        return mime

    async def deliver(self, message: OutgoingEmail) -> bool:
        try:
            await aiosmtplib.send(
                self._build(message),
                hostname=self.host,
                port=self.port,
                username=self.username,
                password=self.password,
                start_tls=self.use_tls,
                tls_context=ssl.create_default_context() if self.use_tls else None,
            )
        except (aiosmtplib.SMTPException, OSError):
            logger.exception("email_send_failed", provider=self.name, subject=message.subject)
            return False
        return True


class ResendProvider(BaseEmailProvider):
    name = "resend"
    API_URL = "https://api.resend.com/emails"

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings.email_from_address, settings.email_from_name)
        self.api_key = settings.resend_api_key

    async def deliver(self, message: OutgoingEmail) -> bool:
        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(
                    self.API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError:
            logger.exception("email_send_failed", provider=self.name, subject=message.subject)
            return False
        return True


_PROVIDERS: dict[str, type[BaseEmailProvider]] = {
    SMTPProvider.name: SMTPProvider,
    ResendProvider.name: ResendProvider,
}


def _create_provider(settings: Settings) -> BaseEmailProvider:
    provider_cls = _PROVIDERS.get(settings.email_provider.lower())
    if provider_cls is None:
        msg = f"Unsupported email provider: {settings.email_provider}"
        raise ValueError(msg)
    return provider_cls(settings)


def build_frontend_link(path: str, token: str) -> str:
    """Absolute frontend URL carrying ``?token=``."""
    base = get_settings().frontend_base_url.rstrip("/")
    return f"{base}{path}?{urlencode({'token': token})}"


class EmailService:
    """Renders the auth emails and hands them to the configured provider."""

    def __init__(self, provider: BaseEmailProvider | None = None) -> None:
        self.provider = provider or _create_provider(get_settings())

    async def send(self, message: OutgoingEmail) -> bool:
        sent = await self.provider.deliver(message)
        if sent:
            logger.info("email_sent", provider=self.provider.name, subject=message.subject)
        return sent

    async def send_verification_email(self, to: str, token: str) -> bool:
        subject, html, text = templates.verify_email(build_frontend_link("/verify-email", token))
        return await self.send(OutgoingEmail(to=to, subject=subject, html=html, text=text))

    async def send_magic_link_email(self, to: str, token: str) -> bool:
        subject, html, text = templates.magic_link(
            build_frontend_link("/auth/verify", token),
            expires_minutes=get_settings().magic_link_ttl_minutes,
        )
        return await self.send(OutgoingEmail(to=to, subject=subject, html=html, text=text))

    async def send_invitation_email(self, to: str, inviter_email: str) -> bool:
        base = get_settings().frontend_base_url.rstrip("/")
        register_url = f"{base}/register?{urlencode({'email': to})}"
        subject, html, text = templates.invitation(register_url, inviter_email)
        return await self.send(OutgoingEmail(to=to, subject=subject, html=html, text=text))


_email_service: EmailService | None = None


def get_email_service() -> EmailService:
    """FastAPI dependency: the process-wide EmailService, built on first use."""
    global _email_service  # noqa: PLW0603
    if _email_service is None:
        _email_service = EmailService()
    return _email_service
