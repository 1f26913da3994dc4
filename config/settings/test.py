from .local import *  # noqa

# File-backed so threads in TransactionTestCase share one database; IMMEDIATE
# transactions plus the busy timeout serialise writers instead of failing them.
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": BASE_DIR / "test_mediashare.sqlite3",  # noqa: F405
        "OPTIONS": {"timeout": 30, "transaction_mode": "IMMEDIATE"},
        "TEST": {"NAME": BASE_DIR / "test_mediashare.sqlite3"},  # noqa: F405
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.InMemoryStorage"},
    "staticfiles": {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"},
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_RESULT_BACKEND = "cache+memory://"

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
