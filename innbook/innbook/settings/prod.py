from .base import *

DEBUG = False

SECRET_KEY = config('SECRET_KEY')

if DB_ENGINE != 'sqlite':
    DATABASES['default']['OPTIONS'] = {
        'sslmode': config('DB_SSLMODE', default='require'),
    }
    DATABASES['default']['DISABLE_SERVER_SIDE_CURSORS'] = True  # pgbouncer transaction mode

SECURE_SSL_REDIRECT = True
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SECURE_HSTS_SECONDS = 31536000
SECURE_HSTS_INCLUDE_SUBDOMAINS = True
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

_csv = lambda v: [s.strip() for s in v.split(',') if s.strip()]

CSRF_TRUSTED_ORIGINS = config('CSRF_TRUSTED_ORIGINS', default='', cast=_csv)
