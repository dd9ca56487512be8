"""Django settings for the billing service.

Values that differ between environments are read from ``BILLING_*``
environment variables; everything else is fixed here.
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {'1', 'true', 'yes', 'on'}


SECRET_KEY = os.environ.get('BILLING_SECRET_KEY', 'billing-dev-key-change-before-deploying')

DEBUG = _env_bool('BILLING_DEBUG', True)

ALLOWED_HOSTS = [h for h in os.environ.get('BILLING_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'rest_framework',
    'rest_framework_simplejwt',
    'django_filters',
    'drf_spectacular',
    'drf_yasg',

    'accounts',
    'clients',
    'sequences',
    'documents',
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

ROOT_URLCONF = 'core.urls'
WSGI_APPLICATION = 'core.wsgi.application'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

# SQLite by default; point BILLING_DB_ENGINE at postgresql for row-level locking.
_db_engine = os.environ.get('BILLING_DB_ENGINE', 'sqlite3')
if _db_engine == 'sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': os.environ.get('BILLING_DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': f'django.db.backends.{_db_engine}',
            'NAME': os.environ.get('BILLING_DB_NAME', 'billing'),
            'USER': os.environ.get('BILLING_DB_USER', ''),
            'PASSWORD': os.environ.get('BILLING_DB_PASSWORD', ''),
            'HOST': os.environ.get('BILLING_DB_HOST', 'localhost'),
            'PORT': os.environ.get('BILLING_DB_PORT', ''),
        }
    }

AUTH_USER_MODEL = 'accounts.User'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('BILLING_TIME_ZONE', 'UTC')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'DEFAULT_FILTER_BACKENDS': (
        'django_filters.rest_framework.DjangoFilterBackend',
    ),
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
    'EXCEPTION_HANDLER': 'core.exceptions.billing_exception_handler',
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=12),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
}

SPECTACULAR_SETTINGS = {
    'TITLE': 'Billing API',
    'DESCRIPTION': 'Invoices, receipts and credit notes with per-type numbering.',
    'VERSION': '1.0.0',
}

# Billing rules
BILLING_DEFAULT_DUE_DAYS = int(os.environ.get('BILLING_DEFAULT_DUE_DAYS', '6'))
BILLING_ALLOWED_DUE_DAYS = (5, 6, 7)
BILLING_SEQUENCE_START = int(os.environ.get('BILLING_SEQUENCE_START', '1000'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name} {message}',
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
        'level': 'WARNING',
    },
    'loggers': {
        'documents': {
            'handlers': ['console'],
            'level': os.environ.get('BILLING_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
        'sequences': {
            'handlers': ['console'],
            'level': os.environ.get('BILLING_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
