from pathlib import Path

from environs import Env

env = Env()
env.read_env(recurse=False)

BASE_DIR = Path(__file__).resolve().parent.parent.parent

SECRET_KEY = env.str('SECRET_KEY', 'django-insecure-3q9k!v2x@c_export-local-only-key')

DEBUG = env.bool('DEBUG', False)

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', [])

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'catalog_export',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'core.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
                'catalog_export.sdk.sdk_context',
            ],
        },
    },
]

WSGI_APPLICATION = 'core.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LOG_LEVEL = env.str('LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'default': {
            'format': '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            'datefmt': '%Y-%m-%d %H:%M:%S',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'default',
        },
    },
    'loggers': {
        'catalog_export': {
            'handlers': ['console'],
            'level': LOG_LEVEL,
            'propagate': False,
        },
        'urllib3': {
            'handlers': ['console'],
            'level': 'WARNING',
        },
    },
}

# Celery
CELERY_BROKER_URL = env.str('CELERY_BROKER_URL', 'redis://localhost:6379/0')
CELERY_RESULT_BACKEND = CELERY_BROKER_URL
CELERY_BEAT_SCHEDULE = {
    'delta-product-export-hourly': {
        'task': 'catalog_export.tasks.delta_product_export',
        'schedule': env.int('DELTA_PRODUCT_EXPORT_INTERVAL', 3600),
    },
    'delta-faq-export-hourly': {
        'task': 'catalog_export.tasks.delta_faq_export',
        'schedule': env.int('DELTA_FAQ_EXPORT_INTERVAL', 3600),
    },
}

# Ingestion service API
INGESTION_ENABLED = env.bool('INGESTION_ENABLED', False)
INGESTION_API_BASE_URL = env.str('INGESTION_API_BASE_URL', '')
INGESTION_API_KEY = env.str('INGESTION_API_KEY', '')
INGESTION_API_RATE_LIMIT = env.int('INGESTION_API_RATE_LIMIT', 5)
INGESTION_API_TIMEOUT = env.float('INGESTION_API_TIMEOUT', 30.0)
INGESTION_BATCH_SIZE = env.int('INGESTION_BATCH_SIZE', 100)
# 'collection' -> POST .../collection?delete_existing_collection=true
# 'reset'      -> DELETE .../reset-collection
INGESTION_RESET_STYLE = env.str('INGESTION_RESET_STYLE', 'collection')

# Export content
PRODUCT_ATTRIBUTE_MAPPING = env.str('PRODUCT_ATTRIBUTE_MAPPING', '{}')
FAQ_ATTRIBUTE_MAPPING = env.str('FAQ_ATTRIBUTE_MAPPING', '{}')
INGESTION_LIST_PRICE_BOOK_ID = env.str('INGESTION_LIST_PRICE_BOOK_ID', '')
INGESTION_IMAGE_TYPES = env.list('INGESTION_IMAGE_TYPES', ['large', 'medium', 'small'])
INGESTION_SITE_ID = env.str('INGESTION_SITE_ID', 'default')
INGESTION_DEFAULT_CURRENCY = env.str('INGESTION_DEFAULT_CURRENCY', 'USD')
STOREFRONT_PRODUCT_URL = env.str('STOREFRONT_PRODUCT_URL', '/product/{id}')

PRODUCT_SOURCE_PATH = env.path('PRODUCT_SOURCE_PATH', BASE_DIR / 'data' / 'products.jsonl')
FAQ_SOURCE_PATH = env.path('FAQ_SOURCE_PATH', BASE_DIR / 'data' / 'faqs.jsonl')

# Storefront SDK snippet
INGESTION_SDK_ENABLED = env.bool('INGESTION_SDK_ENABLED', False)
INGESTION_SDK_URL = env.str('INGESTION_SDK_URL', '')
INGESTION_SDK_API_URL = env.str('INGESTION_SDK_API_URL', '')
INGESTION_SDK_API_KEY = env.str('INGESTION_SDK_API_KEY', '')

# Export providers, swappable via env or prod.py
EXPORT_PRODUCT_SOURCE_CLASS = env.str(
    'EXPORT_PRODUCT_SOURCE_CLASS', 'catalog_export.sources.jsonl_source.JsonLinesSource',
)
EXPORT_FAQ_SOURCE_CLASS = env.str(
    'EXPORT_FAQ_SOURCE_CLASS', 'catalog_export.sources.jsonl_source.JsonLinesSource',
)
EXPORT_CLIENT_CLASS = env.str(
    'EXPORT_CLIENT_CLASS', 'catalog_export.clients.ingestion_client.IngestionClient',
)
