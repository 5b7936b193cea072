"""Runtime settings lookup: SiteSetting row first, then Django settings."""
from django.conf import settings

from .models import SiteSetting

# SiteSetting key -> Django settings attribute used as fallback
SETTING_FALLBACKS = {
    'hotel_name': 'HOTEL_NAME',
    'hotel_phone': 'HOTEL_PHONE',
    'hotel_address': 'HOTEL_ADDRESS',
    'hotel_email': 'HOTEL_EMAIL',
    'bank_name': 'BANK_NAME',
    'bank_branch': 'BANK_BRANCH',
    'bank_account': 'BANK_ACCOUNT',
    'account_name': 'ACCOUNT_NAME',
    'email_user': 'EMAIL_HOST_USER',
    'resend_api_key': 'RESEND_API_KEY',
    'gmail_client_id': 'GMAIL_CLIENT_ID',
    'gmail_client_secret': 'GMAIL_CLIENT_SECRET',
    'gmail_refresh_token': 'GMAIL_REFRESH_TOKEN',
}


def get_setting(key, default=''):
    """Value of ``key``; blank SiteSetting values fall through to Django settings."""
    value = SiteSetting.objects.filter(key=key).values_list('value', flat=True).first()
    if value:
        return value
    attr = SETTING_FALLBACKS.get(key, key.upper())
    return getattr(settings, attr, default) or default
