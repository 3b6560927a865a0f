from datetime import timedelta
from pathlib import Path

from decouple import config, Csv
from kombu import Queue
import dj_database_url

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent

# Quick-start development settings - unsuitable for production
SECRET_KEY = config('SECRET_KEY', default='codepulse-dev-only-secret-key')

DEBUG = config('DEBUG', default=False, cast=bool)

ALLOWED_HOSTS = config('ALLOWED_HOSTS', default='localhost,127.0.0.1,testserver', cast=Csv())

# Application definition
INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    # Local
    'core',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'core.middleware.ProfileMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'codepulse_project.urls'

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

WSGI_APPLICATION = 'codepulse_project.wsgi.application'

# Database
# Uses DATABASE_URL from .env
DATABASES = {
    'default': dj_database_url.config(
        default=config('DATABASE_URL', default='sqlite:///db.sqlite3')
    )
}

# Caches
# The platform stats cache gets its own alias so its entry bound does not
# compete with sessions/locks in the default cache.
PLATFORM_STATS_CACHE_ALIAS = 'platform_stats'
PLATFORM_STATS_CACHE_MAX_ENTRIES = config('PLATFORM_STATS_CACHE_MAX_ENTRIES', default=1000, cast=int)
REDIS_CACHE_URL = config('REDIS_CACHE_URL', default='')

if REDIS_CACHE_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_CACHE_URL,
        },
        PLATFORM_STATS_CACHE_ALIAS: {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_CACHE_URL,
            'KEY_PREFIX': 'codepulse',
        },
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'codepulse-default',
        },
        PLATFORM_STATS_CACHE_ALIAS: {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
            'LOCATION': 'codepulse-platform-stats',
            'OPTIONS': {
                'MAX_ENTRIES': PLATFORM_STATS_CACHE_MAX_ENTRIES,
            },
        },
    }

# Password validation
AUTH_PASSWORD_VALIDATORS = [
    {
        'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator',
    },
    {
        'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator',
    },
]

# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = config('TIME_ZONE', default='UTC')
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = 'static/'

# Session/CSRF security
SESSION_COOKIE_HTTPONLY = True
if not DEBUG:
    SESSION_COOKIE_SECURE = True
    CSRF_COOKIE_SECURE = True

# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Logging
LOG_LEVEL = config('LOG_LEVEL', default='INFO')
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'core': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
    },
}

# Celery Configuration
CELERY_BROKER_URL = config('CELERY_BROKER_URL', default='redis://localhost:6379/0')
CELERY_RESULT_BACKEND = config('CELERY_RESULT_BACKEND', default='redis://localhost:6379/0')
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TASK_SERIALIZER = 'json'
CELERY_RESULT_SERIALIZER = 'json'
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_DEFAULT_QUEUE = 'celery'
CELERY_TASK_QUEUES = (
    Queue('celery'),
    Queue('platform_stats'),
)
CELERY_TASK_ROUTES = {
    'core.tasks.warm_platform_stats': {'queue': 'platform_stats'},
    'core.tasks.warm_all_platform_stats': {'queue': 'platform_stats'},
}
CELERY_TASK_ANNOTATIONS = {
    'core.tasks.warm_platform_stats': {'rate_limit': '30/m'},
}
PLATFORM_STATS_WARM_MINUTES = config('PLATFORM_STATS_WARM_MINUTES', default=5, cast=int)
CELERY_BEAT_SCHEDULE = {
    'warm-platform-stats': {
        'task': 'core.tasks.warm_all_platform_stats',
        'schedule': timedelta(minutes=PLATFORM_STATS_WARM_MINUTES),
    },
}

# Upstream platforms
LEETCODE_GRAPHQL_URL = config('LEETCODE_GRAPHQL_URL', default='https://leetcode.com/graphql')
CODECHEF_BASE_URL = config('CODECHEF_BASE_URL', default='https://www.codechef.com/users')
HACKERRANK_BASE_URL = config('HACKERRANK_BASE_URL', default='https://www.hackerrank.com/rest/hackers')
LEETCODE_TIMEOUT_SECONDS = config('LEETCODE_TIMEOUT_SECONDS', default=30, cast=int)
PLATFORM_DEFAULT_TIMEOUT_SECONDS = config('PLATFORM_DEFAULT_TIMEOUT_SECONDS', default=10, cast=int)
PLATFORM_MAX_RETRIES = config('PLATFORM_MAX_RETRIES', default=3, cast=int)
PLATFORM_RETRY_DELAY_SECONDS = config('PLATFORM_RETRY_DELAY_SECONDS', default=2.0, cast=float)

# Aggregation
PLATFORM_STATS_CACHE_TTL_SECONDS = config('PLATFORM_STATS_CACHE_TTL_SECONDS', default=300, cast=int)
PLATFORM_STATS_PARTIAL_RESULTS = config('PLATFORM_STATS_PARTIAL_RESULTS', default=True, cast=bool)
PLATFORM_STATS_STABLE_HISTORY = config('PLATFORM_STATS_STABLE_HISTORY', default=False, cast=bool)
RANKING_HISTORY_POINTS = config('RANKING_HISTORY_POINTS', default=6, cast=int)
CODECHEF_HISTORY_BASE = config('CODECHEF_HISTORY_BASE', default=50000, cast=int)
HACKERRANK_HISTORY_BASE = config('HACKERRANK_HISTORY_BASE', default=30000, cast=int)
