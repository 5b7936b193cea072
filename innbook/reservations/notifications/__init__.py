from .base import DeliveryError, DeliveryResult, OutgoingEmail
from .dispatcher import DeliveryConfig, Dispatcher, build_dispatcher, get_delivery_config, send_email
from .renderer import RenderedEmail, render

__all__ = [
    'DeliveryConfig', 'DeliveryError', 'DeliveryResult', 'Dispatcher',
    'OutgoingEmail', 'RenderedEmail', 'build_dispatcher', 'get_delivery_config',
    'render', 'send_email',
]
