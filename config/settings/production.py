# Production overrides
from .base import *  # noqa
import os
import dj_database_url

DEBUG = False
ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "").split(",")
SECRET_KEY = os.environ["SECRET_KEY"]
SIMPLE_JWT["SIGNING_KEY"] = os.environ.get("JWT_SECRET", SECRET_KEY)  # noqa: F405

# Database from DATABASE_URL env var.
DATABASES["default"] = dj_database_url.parse(os.environ["DATABASE_URL"], conn_max_age=600)  # noqa: F405

# Use redis for cache in production
CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": os.environ.get("REDIS_URL", "redis://redis:6379/0"),
        "OPTIONS": {"CLIENT_CLASS": "django_redis.client.DefaultClient"},
    }
}

SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True

# Logging: less verbose
LOGGING["root"]["level"] = os.environ.get("LOG_LEVEL", "INFO")  # noqa: F405
