from .base import *

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# No provider credentials by default; tests opt in with override_settings.
RESEND_API_KEY = ''
GMAIL_CLIENT_ID = ''
GMAIL_CLIENT_SECRET = ''
GMAIL_REFRESH_TOKEN = ''
EMAIL_HOST_USER = ''
EMAIL_HOST_PASSWORD = ''

HOTEL_NAME = 'Harbour Inn'
HOTEL_PHONE = '02-1234-5678'
HOTEL_ADDRESS = '1 Harbour Road'
HOTEL_EMAIL = 'stay@harbour.example'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_RESULT_BACKEND = 'cache+memory://'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
