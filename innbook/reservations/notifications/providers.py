import base64
from email.utils import make_msgid

import requests as http_requests
from django.core.mail import EmailMultiAlternatives, get_connection

from .base import DeliveryProvider, DeliveryResult, OutgoingEmail

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"


def _build_mime(message: OutgoingEmail, from_address):
    mail = EmailMultiAlternatives(
        subject=message.subject,
        body=message.text or "",
        from_email=from_address,
        to=[message.to],
    )
    mail.attach_alternative(message.html, "text/html")
    return mail


# ---------------------------------------------------------------------------
# Resend (primary)
# ---------------------------------------------------------------------------

class ResendProvider(DeliveryProvider):
    """Resend HTTP API."""

    name = "resend"

    def __init__(self, api_key, from_address):
        self.api_key = api_key
        self.from_address = from_address

    def is_configured(self):
        return bool(self.api_key)

    def send(self, message):
        import resend

        resend.api_key = self.api_key
        response = resend.Emails.send({
            'from': message.from_address or self.from_address,
            'to': [message.to],
            'subject': message.subject,
            'html': message.html,
            'tags': [
                {'name': key, 'value': str(value)} for key, value in message.tags.items()
            ],
        })
        message_id = (response or {}).get('id', '')
        if not message_id:
            raise ValueError(f"Resend response missing id: {response}")
        return DeliveryResult(provider=self.name, message_id=message_id)


# ---------------------------------------------------------------------------
# Gmail REST API (secondary, attempt A)
# ---------------------------------------------------------------------------

class GmailApiProvider(DeliveryProvider):
    """Gmail users.messages.send, authorised by exchanging an OAuth2 refresh token."""

    name = "gmail_api"

    def __init__(self, client_id, client_secret, refresh_token, sender, timeout=15):
        self.client_id = client_id
        self.client_secret = client_secret
        self.refresh_token = refresh_token
        self.sender = sender
        self.timeout = timeout

    def is_configured(self):
        return bool(self.client_id and self.client_secret and self.refresh_token and self.sender)

    def _access_token(self):
        response = http_requests.post(
            GOOGLE_TOKEN_URL,
            data={
                'client_id': self.client_id,
                'client_secret': self.client_secret,
                'refresh_token': self.refresh_token,
                'grant_type': 'refresh_token',
            },
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise RuntimeError(
                f"Google token refresh failed {response.status_code}: {response.text[:200]}"
            )
        token = response.json().get('access_token')
        if not token:
            raise RuntimeError("Google token response missing access_token")
        return token

    def send(self, message):
        mime = _build_mime(message, message.from_address or self.sender).message()
        raw = base64.urlsafe_b64encode(mime.as_bytes()).decode('ascii')
        response = http_requests.post(
            GMAIL_SEND_URL,
            headers={'Authorization': f'Bearer {self._access_token()}'},
            json={'raw': raw},
            timeout=self.timeout,
        )
        if response.status_code >= 400:
            raise RuntimeError(
                f"Gmail API error {response.status_code}: {response.text[:200]}"
            )
        return DeliveryResult(provider=self.name, message_id=response.json().get('id', ''))


# ---------------------------------------------------------------------------
# SMTP (secondary, attempt B)
# ---------------------------------------------------------------------------

class SmtpProvider(DeliveryProvider):
    """Plain SMTP through Django's mail backend."""

    name = "smtp"

    def __init__(self, backend, host, port, username, password, use_tls, timeout, from_address):
        self.backend = backend
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.from_address = from_address

    def is_configured(self):
        return bool(self.username and self.host)

    def send(self, message):
        connection = get_connection(
            backend=self.backend,
            fail_silently=False,
            host=self.host,
            port=self.port,
            username=self.username,
            password=self.password,
            use_tls=self.use_tls,
            timeout=self.timeout,
        )
        mail = _build_mime(message, message.from_address or self.from_address)
        message_id = make_msgid()
        mail.extra_headers["Message-ID"] = message_id
        mail.connection = connection
        if not mail.send(fail_silently=False):
            raise RuntimeError("SMTP backend accepted no messages")
        return DeliveryResult(provider=self.name, message_id=message_id)
