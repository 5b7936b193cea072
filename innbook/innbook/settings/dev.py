from .base import *

DEBUG = True

# Console mail in dev so the SMTP fallback never reaches a real server
EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'

REST_FRAMEWORK['DEFAULT_AUTHENTICATION_CLASSES'] = [
    'rest_framework.authentication.SessionAuthentication',
    'rest_framework.authentication.BasicAuthentication',
]

LOGGING['loggers'] = {
    'reservations': {'handlers': ['console'], 'level': 'DEBUG', 'propagate': False},
}
