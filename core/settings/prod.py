from .base import *  # noqa: F401,F403
from .base import env

DEBUG = False

SECRET_KEY = env.str('SECRET_KEY')  # required

ALLOWED_HOSTS = env.list('ALLOWED_HOSTS')

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': env.str('POSTGRES_DB', 'catalog_export'),
        'USER': env.str('POSTGRES_USER', 'postgres'),
        'PASSWORD': env.str('POSTGRES_PASSWORD', 'postgres'),
        'HOST': env.str('POSTGRES_HOST', 'db'),
        'PORT': env.str('POSTGRES_PORT', '5432'),
    }
}

# Ingestion credentials must be provided explicitly in production
INGESTION_API_BASE_URL = env.str('INGESTION_API_BASE_URL')
INGESTION_API_KEY = env.str('INGESTION_API_KEY')

# Security
SECURE_SSL_REDIRECT = env.bool('SECURE_SSL_REDIRECT', True)
SECURE_HSTS_SECONDS = env.int('SECURE_HSTS_SECONDS', 31536000)
SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
