"""
Django settings for the Agri Sales CRM back office.

SQLite by default; set DB_ENGINE (and the DB_* variables) for PostgreSQL.
The API layer is django-rest-framework, JSON only.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-secret-key-change-in-production')

DEBUG = os.environ.get('DEBUG', 'True').lower() in ('true', '1', 'yes')

ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')

# Application definition
INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.staticfiles',
    'rest_framework',
    'corsheaders',
    'django_q',
    'crm',
]

MIDDLEWARE = [
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
]

# No trailing-slash redirects: API clients send exact URLs
APPEND_SLASH = False

ROOT_URLCONF = 'agri_crm.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
    },
]

WSGI_APPLICATION = 'agri_crm.wsgi.application'

# Database: SQLite for local dev, PostgreSQL when DB_ENGINE says so
DB_ENGINE = os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3')

if DB_ENGINE == 'django.db.backends.sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'db.sqlite3',
        }
    }
else:
    DATABASES = {
        'default': {
            'ENGINE': DB_ENGINE,
            'NAME': os.environ.get('DB_NAME', 'agri_crm'),
            'USER': os.environ.get('DB_USER', 'postgres'),
            'PASSWORD': os.environ.get('DB_PASSWORD', 'postgres'),
            'HOST': os.environ.get('DB_HOST', 'localhost'),
            'PORT': os.environ.get('DB_PORT', '5432'),
        }
    }

STATIC_URL = '/static/'

# CORS
CORS_ALLOW_ALL_ORIGINS = DEBUG
CORS_ALLOWED_ORIGINS = [
    'http://localhost:3000',
    'http://127.0.0.1:3000',
]

# DRF
REST_FRAMEWORK = {
    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    # ?format= is the export file type, not a renderer override
    'URL_FORMAT_OVERRIDE': None,
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'DEFAULT_PAGINATION_CLASS': None,
    'UNAUTHENTICATED_USER': None,
    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [],
}

# CRM configuration
CRM_DATABASE_ALIAS = os.environ.get('CRM_DATABASE_ALIAS', 'default')

# When off, any lead stage may be written over any other (legacy dashboards).
CRM_ENFORCE_STAGE_TRANSITIONS = os.environ.get(
    'CRM_ENFORCE_STAGE_TRANSITIONS', 'True'
).lower() in ('true', '1', 'yes')

EXPORT_FILENAME_PREFIX = os.environ.get('EXPORT_FILENAME_PREFIX', 'farmers')

# Hour of day (UTC) the stage-duration sweep runs
STAGE_SWEEP_HOUR = int(os.environ.get('STAGE_SWEEP_HOUR', '2'))

# django-q2: lightweight task queue using the ORM broker (no Redis needed)
Q_CLUSTER = {
    'name': 'agri-crm',
    'workers': 2,
    'timeout': 120,
    'retry': 180,
    'orm': 'default',
    'bulk': 10,
    'catch_up': False,
}

# All datetimes are timezone-aware UTC
USE_TZ = True
TIME_ZONE = 'UTC'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
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
        'level': os.environ.get('LOG_LEVEL', 'INFO'),
    },
}
