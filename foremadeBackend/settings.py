"""
Django settings for foremadeBackend project.

Values are read from the environment (and a local .env file when present).
"""

import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")

SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    raise RuntimeError("SECRET_KEY environment variable is required")

DEBUG = os.getenv("DEBUG", "False").lower() == "true"

ALLOWED_HOSTS = [host.strip() for host in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if host]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "rest_framework.authtoken",
    "drf_spectacular",
    "infrastructure",
    "marketplace",
    "payment_system",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "foremadeBackend.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

ASGI_APPLICATION = "foremadeBackend.asgi.application"

DATABASES = {
    "default": {
        "ENGINE": os.getenv("DB_ENGINE", "django.db.backends.postgresql"),
        "NAME": os.getenv("DB_NAME", "foremade"),
        "USER": os.getenv("DB_USER", "foremade"),
        "PASSWORD": os.getenv("DB_PASSWORD", ""),
        "HOST": os.getenv("DB_HOST", "localhost"),
        "PORT": os.getenv("DB_PORT", "5432"),
        "ATOMIC_REQUESTS": False,
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Django REST Framework
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.TokenAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Foremade Marketplace API",
    "DESCRIPTION": "Cart, checkout and multi-seller order settlement",
    "VERSION": "1.0.0",
}

# Infrastructure backends
INFRASTRUCTURE = {
    "PAYMENT_PROVIDER": os.getenv("PAYMENT_PROVIDER", "stripe"),
    "EMAIL_BACKEND_TYPE": os.getenv("EMAIL_BACKEND_TYPE", "smtp"),
    "NOTIFICATION_BACKEND": os.getenv("NOTIFICATION_BACKEND", "email"),
}

# Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY", "")
STRIPE_PUBLISHABLE_KEY = os.getenv("STRIPE_PUBLISHABLE_KEY", "")
STRIPE_TIMEOUT = int(os.getenv("STRIPE_TIMEOUT", "30"))

# Email
EMAIL_BACKEND = "django.core.mail.backends.smtp.EmailBackend"
EMAIL_HOST = os.getenv("EMAIL_HOST", "smtp.gmail.com")
EMAIL_PORT = int(os.getenv("EMAIL_PORT", "587"))
EMAIL_USE_TLS = os.getenv("EMAIL_USE_TLS", "True").lower() == "true"
EMAIL_HOST_USER = os.getenv("EMAIL_HOST_USER", "")
EMAIL_HOST_PASSWORD = os.getenv("EMAIL_HOST_PASSWORD", "")
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "orders@foremade.com")

# Settlement
SETTLEMENT = {
    "CANONICAL_CURRENCY": "NGN",
    "PLATFORM_WALLET_ID": os.getenv("PLATFORM_WALLET_ID", "admin"),
    "RETRY_ATTEMPTS": 3,
    "RETRY_BASE_DELAY": float(os.getenv("SETTLEMENT_RETRY_BASE_DELAY", "2.0")),
    "CONCURRENCY_RETRY_ATTEMPTS": 3,
    "CONCURRENCY_RETRY_BASE_DELAY": 0.05,
    "MINIMUM_PURCHASE_AMOUNT": Decimal(os.getenv("MINIMUM_PURCHASE_AMOUNT", "1000")),
    "NOTIFICATIONS_ASYNC": os.getenv("SETTLEMENT_NOTIFICATIONS_ASYNC", "False").lower() == "true",
    "TRANSACTION_TIMEOUT": float(os.getenv("SETTLEMENT_TRANSACTION_TIMEOUT", "10.0")),
}

SETTLEMENT_FEE_POLICIES = {
    "default": {
        "handling_rate": Decimal("0.05"),
        "buyer_protection_rate": Decimal("0.02"),
        "tax_rate": Decimal("0.075"),
    },
}

CURRENCY_MINOR_UNIT_EXPONENTS = {
    "NGN": 2,
    "GBP": 2,
    "USD": 2,
    "EUR": 2,
    "JPY": 0,
}

# Celery
CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")

# Observability
OTEL_TRACING_ENABLED = os.getenv("OTEL_TRACING_ENABLED", "False").lower() == "true"
OTEL_EXPORTER_OTLP_TRACES_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT", "http://localhost:4318/v1/traces")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "INFO",
    },
    "loggers": {
        "marketplace": {"handlers": ["console"], "level": os.getenv("MARKETPLACE_LOG_LEVEL", "INFO"), "propagate": False},
        "payment_system": {"handlers": ["console"], "level": os.getenv("PAYMENT_LOG_LEVEL", "INFO"), "propagate": False},
        "infrastructure": {"handlers": ["console"], "level": "INFO", "propagate": False},
    },
}
