import logging
from dataclasses import dataclass

from django.conf import settings

from .base import DeliveryError, OutgoingEmail
from .providers import GmailApiProvider, ResendProvider, SmtpProvider

logger = logging.getLogger(__name__)


@dataclass
class DeliveryConfig:
    """Credentials for every transport. Blank credentials drop that transport from the chain."""

    resend_api_key: str = ""
    resend_from: str = ""
    gmail_client_id: str = ""
    gmail_client_secret: str = ""
    gmail_refresh_token: str = ""
    gmail_sender: str = ""
    gmail_timeout: int = 15
    smtp_backend: str = "django.core.mail.backends.smtp.EmailBackend"
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_username: str = ""
    smtp_password: str = ""
    smtp_use_tls: bool = True
    smtp_timeout: int = 20
    smtp_from: str = ""


def get_delivery_config():
    """DeliveryConfig from SiteSetting rows with Django settings as fallback."""
    from reservations.conf import get_setting

    email_user = get_setting('email_user')
    return DeliveryConfig(
        resend_api_key=get_setting('resend_api_key'),
        resend_from=settings.RESEND_FROM_EMAIL,
        gmail_client_id=get_setting('gmail_client_id'),
        gmail_client_secret=get_setting('gmail_client_secret'),
        gmail_refresh_token=get_setting('gmail_refresh_token'),
        gmail_sender=settings.GMAIL_SENDER or email_user,
        gmail_timeout=settings.GMAIL_HTTP_TIMEOUT_SECONDS,
        smtp_backend=settings.EMAIL_BACKEND,
        smtp_host=settings.EMAIL_HOST,
        smtp_port=settings.EMAIL_PORT,
        smtp_username=email_user,
        smtp_password=settings.EMAIL_HOST_PASSWORD,
        smtp_use_tls=settings.EMAIL_USE_TLS,
        smtp_timeout=settings.EMAIL_TIMEOUT,
        smtp_from=email_user or settings.DEFAULT_FROM_EMAIL,
    )


class Dispatcher:
    """Send one message through an ordered provider chain; first success wins."""

    def __init__(self, providers):
        self.providers = list(providers)

    def dispatch(self, message: OutgoingEmail):
        if not self.providers:
            raise DeliveryError("No email provider configured")

        attempts = []
        for provider in self.providers:
            try:
                result = provider.send(message)
            except Exception as exc:
                logger.warning(
                    "%s failed for %s: %s", provider.name, message.to, exc,
                )
                attempts.append((provider.name, exc))
                continue  # Fall through to the next transport
            if attempts:
                logger.info(
                    "Delivered to %s via %s after %d failed attempt(s)",
                    message.to, provider.name, len(attempts),
                )
            return result

        raise DeliveryError(
            f"All email providers failed for {message.to}", attempts,
        ) from attempts[-1][1]


def build_dispatcher(config: DeliveryConfig):
    """Resend, then Gmail REST API, then SMTP. Unconfigured transports are left out."""
    chain = [
        ResendProvider(config.resend_api_key, config.resend_from),
        GmailApiProvider(
            config.gmail_client_id,
            config.gmail_client_secret,
            config.gmail_refresh_token,
            config.gmail_sender,
            timeout=config.gmail_timeout,
        ),
        SmtpProvider(
            backend=config.smtp_backend,
            host=config.smtp_host,
            port=config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            timeout=config.smtp_timeout,
            from_address=config.smtp_from,
        ),
    ]
    return Dispatcher([provider for provider in chain if provider.is_configured()])


def send_email(message: OutgoingEmail, config=None):
    """Build a dispatcher for ``config`` (current settings when None) and send."""
    return build_dispatcher(config or get_delivery_config()).dispatch(message)
