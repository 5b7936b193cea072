from pathlib import Path

from celery.schedules import crontab
from decouple import config

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = config('SECRET_KEY', default='django-insecure-innbook-dev-only')

DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config(
    'ALLOWED_HOSTS',
    default='localhost,127.0.0.1',
    cast=lambda v: [s.strip() for s in v.split(',')]
)

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    # Third party
    'rest_framework',
    'django_celery_beat',
    'django_celery_results',
    # Local
    'reservations',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'innbook.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'innbook.wsgi.application'

# Two interchangeable engines behind the ORM: PostgreSQL in production,
# SQLite for single-host installs.
DB_ENGINE = config('DB_ENGINE', default='postgresql')

if DB_ENGINE == 'sqlite':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': config('DB_NAME', default=str(BASE_DIR / 'innbook.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('DB_NAME', default='innbook_db'),
            'USER': config('DB_USER', default='innbook_user'),
            'PASSWORD': config('DB_PASSWORD', default='innbook_password'),
            'HOST': config('DB_HOST', default='localhost'),
            'PORT': config('DB_PORT', default='5432'),
        }
    }

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator', 'OPTIONS': {'min_length': 8}},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAdminUser',
    ],
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
}

# --- Guest lifecycle notifications ---
# Local calendar used for "today" and for the send-hour gate.
LIFECYCLE_TIME_ZONE = config('LIFECYCLE_TIME_ZONE', default='Asia/Taipei')
# Local hour at which unpaid transfer bookings past their hold are cancelled.
AUTO_EXPIRE_HOUR = config('AUTO_EXPIRE_HOUR', default=1, cast=int)

# Hotel identity, used in the footer. Overridable per install via SiteSetting rows.
HOTEL_NAME = config('HOTEL_NAME', default='')
HOTEL_PHONE = config('HOTEL_PHONE', default='')
HOTEL_ADDRESS = config('HOTEL_ADDRESS', default='')
HOTEL_EMAIL = config('HOTEL_EMAIL', default='')

# Transfer payment account shown in payment emails.
BANK_NAME = config('BANK_NAME', default='')
BANK_BRANCH = config('BANK_BRANCH', default='')
BANK_ACCOUNT = config('BANK_ACCOUNT', default='')
ACCOUNT_NAME = config('ACCOUNT_NAME', default='')
# Share of the total due up front for deposit bookings.
DEPOSIT_PERCENTAGE = config('DEPOSIT_PERCENTAGE', default=30, cast=int)

# --- Resend Email API (primary provider) ---
RESEND_API_KEY = config('RESEND_API_KEY', default='')
RESEND_FROM_EMAIL = config('RESEND_FROM_EMAIL', default='Innbook <bookings@example.com>')

# --- Gmail REST API (secondary provider, OAuth2 refresh token) ---
GMAIL_CLIENT_ID = config('GMAIL_CLIENT_ID', default='')
GMAIL_CLIENT_SECRET = config('GMAIL_CLIENT_SECRET', default='')
GMAIL_REFRESH_TOKEN = config('GMAIL_REFRESH_TOKEN', default='')
GMAIL_SENDER = config('GMAIL_SENDER', default='')
GMAIL_HTTP_TIMEOUT_SECONDS = 15

# --- SMTP (secondary provider fallback) ---
EMAIL_BACKEND = 'django.core.mail.backends.smtp.EmailBackend'
EMAIL_HOST = config('EMAIL_HOST', default='smtp.gmail.com')
EMAIL_PORT = config('EMAIL_PORT', default=587, cast=int)
EMAIL_HOST_USER = config('EMAIL_HOST_USER', default='')
EMAIL_HOST_PASSWORD = config('EMAIL_HOST_PASSWORD', default='')
EMAIL_USE_TLS = config('EMAIL_USE_TLS', default=True, cast=bool)
EMAIL_TIMEOUT = 20
DEFAULT_FROM_EMAIL = config('DEFAULT_FROM_EMAIL', default=EMAIL_HOST_USER or 'webmaster@localhost')

# --- Celery ---
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = 'django-db'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = LIFECYCLE_TIME_ZONE
CELERY_BEAT_SCHEDULER = 'django_celery_beat.schedulers:DatabaseScheduler'

# DatabaseScheduler syncs these into the DB on first beat startup.
# Crontab hours are local to CELERY_TIMEZONE.
CELERY_BEAT_SCHEDULE = {
    'payment-reminders': {
        'task': 'reservations.tasks.send_payment_reminders_task',
        'schedule': crontab(minute=0),  # hourly, gated by the template send hour
    },
    'checkin-reminders': {
        'task': 'reservations.tasks.send_checkin_reminders_task',
        'schedule': crontab(minute=0),
    },
    'feedback-requests': {
        'task': 'reservations.tasks.send_feedback_requests_task',
        'schedule': crontab(minute=0),
    },
    'cancel-expired-reservations': {
        'task': 'reservations.tasks.cancel_expired_reservations_task',
        'schedule': crontab(hour=AUTO_EXPIRE_HOUR, minute=0),  # daily
    },
}
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_REJECT_ON_WORKER_LOST = True
CELERY_TASK_TIME_LIMIT = 10 * 60
CELERY_TASK_SOFT_TIME_LIMIT = 5 * 60
CELERY_WORKER_PREFETCH_MULTIPLIER = 1

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO',
    },
}
