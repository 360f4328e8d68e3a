from .base import *

DEBUG = False

DATABASES = {"default": {"ENGINE": "django.db.backends.sqlite3", "NAME": ":memory:"}}

CACHES = {"default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"}}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

STORAGES["staticfiles"] = {"BACKEND": "django.contrib.staticfiles.storage.StaticFilesStorage"}

JWT_SECRET = "test-secret-key-with-enough-bytes-for-hs256"

# Valeurs fixes pour les tests, indépendantes de l'environnement
BILLING["RESET_POLICY"] = "day_of_month"

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = False
CELERY_BROKER_URL = "memory://"
CELERY_RESULT_BACKEND = None

LOGGING["loggers"]["blockai"]["level"] = "WARNING"
