"""
Django settings for PASAR.
Marketplace backend - courier dispatch core

Configuration:
- PostgreSQL (production) / SQLite (local)
- Redis/Celery (background dispatch)
- Django Channels (live courier tracking)
- JWT Authentication (API)
"""

from pathlib import Path
from decouple import config, Csv
from datetime import timedelta
from decimal import Decimal

# ===========================================
# BASE CONFIGURATION
# ===========================================
BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = config('SECRET_KEY', default='dev-secret-key-change-in-production')
DEBUG = config('DEBUG', default=True, cast=bool)
ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,0.0.0.0', cast=Csv())

# ===========================================
# APPLICATION DEFINITION
# ===========================================
INSTALLED_APPS = [
    # Django Core
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',

    # Daphne MUST be before staticfiles
    'daphne',  # ASGI server for WebSocket support
    'channels',  # Django Channels for real-time

    'django.contrib.staticfiles',

    # Third Party
    'rest_framework',
    'rest_framework_simplejwt',
    'corsheaders',
    'django_filters',
    'drf_spectacular',

    # PASAR Apps
    'core.apps.CoreConfig',
    'logistics.apps.LogisticsConfig',
    'finance.apps.FinanceConfig',
]


MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'pasar_core.urls'

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

WSGI_APPLICATION = 'pasar_core.wsgi.application'

# ===========================================
# DATABASE
# ===========================================
# Conditional order updates are the claim primitive, any engine with
# atomic row updates works (PostgreSQL in production).
DB_ENGINE = config('DB_ENGINE', default='django.db.backends.sqlite3')

if DB_ENGINE == 'django.db.backends.sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': config('DB_NAME', default=str(BASE_DIR / 'db.sqlite3')),
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': config('DB_NAME', default='pasar_db'),
            'USER': config('DB_USER', default='pasar_user'),
            'PASSWORD': config('DB_PASSWORD', default='pasar_secret'),
            'HOST': config('DB_HOST', default='db'),
            'PORT': config('DB_PORT', default='5432'),
        }
    }

# ===========================================
# CUSTOM USER MODEL
# ===========================================
AUTH_USER_MODEL = 'core.User'

# ===========================================
# PASSWORD VALIDATION
# ===========================================
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

# ===========================================
# INTERNATIONALIZATION (Indonesia)
# ===========================================
LANGUAGE_CODE = 'id'
TIME_ZONE = 'Asia/Jakarta'
USE_I18N = True
USE_TZ = True

# ===========================================
# STATIC FILES
# ===========================================
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'

# ===========================================
# DEFAULT PRIMARY KEY
# ===========================================
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# ===========================================
# DJANGO CHANNELS (WebSocket Real-time)
# ===========================================
ASGI_APPLICATION = 'pasar_core.asgi.application'

CHANNEL_LAYERS = {
    'default': {
        'BACKEND': 'channels_redis.core.RedisChannelLayer',
        'CONFIG': {
            'hosts': [config('REDIS_URL', default='redis://redis:6379/1')],
            'capacity': 1500,
            'expiry': 10,
        },
    },
}

# ===========================================
# DJANGO REST FRAMEWORK
# ===========================================
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': [
        'rest_framework_simplejwt.authentication.JWTAuthentication',
        'rest_framework.authentication.SessionAuthentication',
    ],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.IsAuthenticated',
    ],
    'DEFAULT_FILTER_BACKENDS': [
        'django_filters.rest_framework.DjangoFilterBackend',
        'rest_framework.filters.OrderingFilter',
    ],
    'DEFAULT_PAGINATION_CLASS': 'rest_framework.pagination.PageNumberPagination',
    'PAGE_SIZE': 20,
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',
}

# ===========================================
# API DOCUMENTATION (drf-spectacular)
# ===========================================
SPECTACULAR_SETTINGS = {
    'TITLE': 'PASAR Dispatch API',
    'DESCRIPTION': 'Penugasan kurir otomatis untuk marketplace',
    'VERSION': '1.0.0',
    'SERVE_INCLUDE_SCHEMA': False,
}

# ===========================================
# JWT CONFIGURATION
# ===========================================
SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=12),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

# ===========================================
# CORS (Cross-Origin Resource Sharing)
# ===========================================
CORS_ALLOWED_ORIGINS = config(
    'CORS_ALLOWED_ORIGINS',
    default='http://localhost:5173,http://127.0.0.1:5173',
    cast=Csv()
)
CORS_ALLOW_CREDENTIALS = True

# ===========================================
# REDIS & CELERY CONFIGURATION
# ===========================================
REDIS_URL = config('REDIS_URL', default='redis://redis:6379/0')

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.redis.RedisCache',
        'LOCATION': REDIS_URL,
    }
}

CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://redis:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default='redis://redis:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE

# ===========================================
# BUSINESS RULES - COURIER DISPATCH
# ===========================================
DISPATCH_MAX_DISTANCE_KM = config('DISPATCH_MAX_DISTANCE_KM', default=10.0, cast=float)
DISPATCH_MAX_ACTIVE_ORDERS = config('DISPATCH_MAX_ACTIVE_ORDERS', default=3, cast=int)
DISPATCH_LOAD_PENALTY_KM = config('DISPATCH_LOAD_PENALTY_KM', default=2.0, cast=float)

# Fallback pickup point when the merchant has no registered location (Bandung)
DISPATCH_DEFAULT_PICKUP_LAT = config('DISPATCH_DEFAULT_PICKUP_LAT', default=-6.9175, cast=float)
DISPATCH_DEFAULT_PICKUP_LNG = config('DISPATCH_DEFAULT_PICKUP_LNG', default=107.6191, cast=float)

# Enqueue auto-assignment as soon as an order is created
AUTO_DISPATCH_ON_CREATE = config('AUTO_DISPATCH_ON_CREATE', default=False, cast=bool)

# Hard limit for one background dispatch attempt (seconds)
DISPATCH_TASK_TIME_LIMIT = config('DISPATCH_TASK_TIME_LIMIT', default=20, cast=int)

# ===========================================
# BUSINESS RULES - COURIER EARNINGS & TRACKING
# ===========================================
COURIER_EARNING_RATE = config('COURIER_EARNING_RATE', default='0.80', cast=Decimal)  # share of shipping cost
LOCATION_CHECKPOINT_SECONDS = config('LOCATION_CHECKPOINT_SECONDS', default=30, cast=int)

# ===========================================
# LOGGING CONFIGURATION
# ===========================================
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
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
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': config('DJANGO_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
        'celery': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False,
        },
    },
}
