from .base import *  # noqa

DEBUG = True
ALLOWED_HOSTS = ["*"]

INSTALLED_APPS += ["django_extensions"]  # noqa: F405

# Local DB: sqlite unless DATABASE_URL is provided
DATABASE_URL = os.environ.get("DATABASE_URL", None)  # noqa: F405
if DATABASE_URL:
    import dj_database_url
    DATABASES["default"] = dj_database_url.parse(DATABASE_URL)  # noqa: F405

EMAIL_BACKEND = "django.core.mail.backends.console.EmailBackend"

# run Celery tasks inline unless a worker is explicitly wanted
CELERY_TASK_ALWAYS_EAGER = os.environ.get("CELERY_EAGER", "True").lower() in ("1", "true", "yes")  # noqa: F405
CELERY_TASK_EAGER_PROPAGATES = True
