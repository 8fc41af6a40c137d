from collections import namedtuple

Endpoint = namedtuple('Endpoint', ['path', 'method'])

MAX_BATCH_SIZE = 100

ADD_PRODUCTS = Endpoint('/v1/product', 'POST')
ADD_FAQS = Endpoint('/v1/faq', 'POST')

DELETE_PRODUCT = Endpoint('/v1/product/{id}', 'DELETE')
DELETE_FAQ = Endpoint('/v1/faq/{id}', 'DELETE')

RESET_STYLE_COLLECTION = 'collection'
RESET_STYLE_RESET = 'reset'

RESET_ENDPOINTS = {
    RESET_STYLE_COLLECTION: {
        'product': Endpoint('/v1/product/collection?delete_existing_collection=true', 'POST'),
        'faq': Endpoint('/v1/faq/collection?delete_existing_collection=true', 'POST'),
    },
    RESET_STYLE_RESET: {
        'product': Endpoint('/v1/product/reset-collection', 'DELETE'),
        'faq': Endpoint('/v1/faq/reset-collection', 'DELETE'),
    },
}

ADD_ENDPOINTS = {
    'product': ADD_PRODUCTS,
    'faq': ADD_FAQS,
}

DELETE_ENDPOINTS = {
    'product': DELETE_PRODUCT,
    'faq': DELETE_FAQ,
}
