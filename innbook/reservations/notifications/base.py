from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class OutgoingEmail:
    """A fully rendered message handed to the dispatcher."""

    to: str
    subject: str
    html: str
    text: str = ""
    from_address: Optional[str] = None  # None = provider default sender
    tags: dict = field(default_factory=dict)  # e.g. {"kind": "payment_reminder"}


@dataclass
class DeliveryResult:
    provider: str
    message_id: str = ""


class DeliveryProvider(ABC):
    """One transport in the dispatcher's failover chain."""

    name = "provider"

    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this transport are present."""

    @abstractmethod
    def send(self, message: OutgoingEmail) -> DeliveryResult:
        """Send or raise. Any exception counts as a failed attempt."""


class DeliveryError(Exception):
    """Every provider in the chain failed (or none was configured)."""

    def __init__(self, message, attempts=None):
        super().__init__(message)
        # [(provider_name, exception), ...] in chain order
        self.attempts = list(attempts or [])

    @property
    def last_error(self):
        return self.attempts[-1][1] if self.attempts else None

    def __str__(self):
        base = super().__str__()
        if not self.attempts:
            return base
        detail = "; ".join(f"{name}: {exc}" for name, exc in self.attempts)
        return f"{base} ({detail})"
