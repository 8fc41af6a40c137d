from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import MagicMock

from catalog_export.mapping import AttributeMapping, MappingContext
from catalog_export.records import (
    FAQ, Category, PriceEntry, Product, ProductKind, ProductVariant,
)

BASE_URL = 'https://ingest.example.test'
PRICE_BOOK = 'usd-list-prices'
SITE = 'RefArch'

CHECKPOINT = datetime(2026, 10, 1, 12, 0, tzinfo=dt_timezone.utc)
BEFORE_CHECKPOINT = CHECKPOINT - timedelta(hours=3)
AFTER_CHECKPOINT = CHECKPOINT + timedelta(hours=3)


def make_context(**kwargs):
    defaults = dict(
        site_id=SITE,
        price_book_id=PRICE_BOOK,
        default_currency='USD',
        product_url_template='https://shop.example.test/product/{id}.html',
        image_types=('large', 'medium'),
    )
    defaults.update(kwargs)
    return MappingContext(**defaults)


def make_mapping():
    return AttributeMapping.from_json({
        'systemAttributes': [
            {'brainCommerceAttr': 'id', 'sfccAttr': 'id'},
            {'brainCommerceAttr': 'title', 'sfccAttr': 'name'},
        ],
        'customAttributes': [
            {'brainCommerceAttr': 'color', 'sfccAttr': 'color', 'defaultValue': 'N/A'},
        ],
    })


def make_category():
    root = Category(id='root', display_name='Storefront Catalog')
    mens = Category(id='mens', display_name='Men', parent=root)
    return Category(id='mens-shoes', display_name='Shoes', parent=mens)


def make_product(product_id='P1', last_modified=AFTER_CHECKPOINT, list_price='100',
                 sale_price=None, status='IN_STOCK', kind=ProductKind.STANDARD, **kwargs):
    prices = {PRICE_BOOK: PriceEntry(amount=Decimal(list_price))} if list_price is not None else {}
    return Product(
        id=product_id,
        last_modified=last_modified,
        name=kwargs.pop('name', f"Product {product_id}"),
        kind=kind,
        availability_status=status,
        prices=prices,
        sale_price=Decimal(sale_price) if sale_price is not None else None,
        **kwargs,
    )


def make_master(product_id='M1', last_modified=BEFORE_CHECKPOINT, **kwargs):
    return make_product(
        product_id, last_modified=last_modified, list_price=None, kind=ProductKind.MASTER,
        min_variant_price=Decimal(kwargs.pop('min_variant_price', '90')), **kwargs,
    )


def make_variant(product_id='V1', master=None, last_modified=AFTER_CHECKPOINT, list_price='100', **kwargs):
    return ProductVariant(
        id=product_id,
        last_modified=last_modified,
        name=f"Variant {product_id}",
        availability_status='IN_STOCK',
        prices={PRICE_BOOK: PriceEntry(amount=Decimal(list_price))},
        master=master,
        **kwargs,
    )


def make_faq(faq_id='F1', last_modified=AFTER_CHECKPOINT, **kwargs):
    return FAQ(
        id=faq_id,
        last_modified=last_modified,
        question=kwargs.pop('question', f"Question {faq_id}?"),
        answer=kwargs.pop('answer', f"Answer {faq_id}."),
        **kwargs,
    )


def make_source(records):
    source = MagicMock()
    source.iter_records.return_value = iter(records)
    return source
