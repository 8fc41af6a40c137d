from .base import *  # noqa: F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

INGESTION_ENABLED = True
INGESTION_API_BASE_URL = 'https://ingest.example.test'
INGESTION_API_KEY = 'test-ingestion-key'
INGESTION_API_RATE_LIMIT = 1000
INGESTION_LIST_PRICE_BOOK_ID = 'usd-list-prices'
INGESTION_SITE_ID = 'RefArch'
STOREFRONT_PRODUCT_URL = 'https://shop.example.test/product/{id}.html'
PRODUCT_ATTRIBUTE_MAPPING = (
    '{"systemAttributes": ['
    '{"brainCommerceAttr": "id", "sfccAttr": "id"},'
    '{"brainCommerceAttr": "title", "sfccAttr": "name"},'
    '{"brainCommerceAttr": "brand", "sfccAttr": "attributes.brand"}'
    '], "customAttributes": ['
    '{"brainCommerceAttr": "color", "sfccAttr": "color", "defaultValue": "N/A"}'
    ']}'
)
