from .base import *

DEBUG = True

ALLOWED_HOSTS = ["127.0.0.1", "localhost"]

# SQLite local si DATABASE_URL absent
if not env("DATABASE_URL"):
    DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": str(BASE_DIR.parent / "db.sqlite3")}}

# Cookies non sécurisés en dev
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

# DRF renderers plus larges en dev (browsable API)
REST_FRAMEWORK["DEFAULT_RENDERER_CLASSES"] = (
    "rest_framework.renderers.JSONRenderer",
    "rest_framework.renderers.BrowsableAPIRenderer",
)

# Pas de broker en dev: les tâches best-effort s'exécutent en ligne
CELERY_TASK_ALWAYS_EAGER = env("CELERY_EAGER", "1") == "1"

LOGGING["handlers"]["console"]["formatter"] = "simple"
