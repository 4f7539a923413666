"""
Test settings for PASAR.

Self-contained storage: in-memory SQLite unless TEST_DB_ENGINE says otherwise,
in-memory channel layer, local cache, eager Celery.
"""

from decouple import config

from .settings import *  # noqa: F401,F403

# TEST_DB_ENGINE=postgresql runs the suite, threaded claim races included,
# against the DB_* server from settings.py
if config('TEST_DB_ENGINE', default='sqlite') == 'postgresql':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': config('DB_NAME', default='pasar_db'),
            'USER': config('DB_USER', default='pasar_user'),
            'PASSWORD': config('DB_PASSWORD', default='pasar_secret'),
            'HOST': config('DB_HOST', default='localhost'),
            'PORT': config('DB_PORT', default='5432'),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }


CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
    }
}

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels.layers.InMemoryChannelLayer',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

AUTO_DISPATCH_ON_CREATE = False
