import os

# Mock SECRET_KEY for tests BEFORE importing settings to bypass validation
os.environ.setdefault("SECRET_KEY", "django-insecure-test-key-for-unit-tests-only")

from .settings import *  # noqa: F403

# Override Database to use SQLite for tests
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "db.sqlite3",  # noqa: F405
    }
}

# Disable external services
INFRASTRUCTURE["EMAIL_BACKEND_TYPE"] = "mock"  # noqa: F405
INFRASTRUCTURE["PAYMENT_PROVIDER"] = "mock"  # noqa: F405
INFRASTRUCTURE["NOTIFICATION_BACKEND"] = "mock"  # noqa: F405

STRIPE_SECRET_KEY = "sk_test_mock_key"

# No real backoff sleeps in tests
SETTLEMENT["RETRY_BASE_DELAY"] = 0  # noqa: F405
SETTLEMENT["CONCURRENCY_RETRY_BASE_DELAY"] = 0  # noqa: F405
SETTLEMENT["NOTIFICATIONS_ASYNC"] = False  # noqa: F405

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Enable SessionAuthentication for tests to support client.force_login()
REST_FRAMEWORK["DEFAULT_AUTHENTICATION_CLASSES"].append(  # noqa: F405
    "rest_framework.authentication.SessionAuthentication"
)
