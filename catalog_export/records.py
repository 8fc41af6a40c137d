"""
Catalog records read by the export engine.

Records are owned by the catalog system; the exporter only reads them. Three
shapes exist: ``Product`` (standard products, masters and the non-exportable
kinds), ``ProductVariant`` (a product that belongs to a master) and ``FAQ``.
All of them expose ``id``, ``last_modified`` and ``custom``.
"""

import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone as dt_timezone
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional, Union

from django.utils.dateparse import parse_datetime


class RecordType(str, enum.Enum):
    PRODUCT = 'product'
    FAQ = 'faq'


class ProductKind(str, enum.Enum):
    STANDARD = 'standard'
    MASTER = 'master'
    VARIANT = 'variant'
    BUNDLE = 'bundle'
    SET = 'set'
    VARIATION_GROUP = 'variation_group'
    OPTION = 'option'


@dataclass
class Category:
    id: str
    display_name: str
    parent: Optional['Category'] = None


@dataclass
class PriceEntry:
    amount: Decimal
    currency: Optional[str] = None


@dataclass
class Product:
    id: str
    last_modified: datetime
    name: str = ''
    online: bool = True
    kind: ProductKind = ProductKind.STANDARD
    availability_status: str = 'NOT_AVAILABLE'
    attributes: Dict = field(default_factory=dict)
    custom: Dict = field(default_factory=dict)
    prices: Dict[str, PriceEntry] = field(default_factory=dict)
    sale_price: Optional[Decimal] = None
    min_variant_price: Optional[Decimal] = None
    categories: List[Category] = field(default_factory=list)
    images: Dict[str, str] = field(default_factory=dict)

    record_type = RecordType.PRODUCT

    @property
    def is_master(self) -> bool:
        return self.kind == ProductKind.MASTER


@dataclass
class ProductVariant(Product):
    kind: ProductKind = ProductKind.VARIANT
    master: Optional[Product] = None


@dataclass
class FAQ:
    id: str
    last_modified: datetime
    question: str = ''
    answer: str = ''
    custom: Dict = field(default_factory=dict)

    record_type = RecordType.FAQ


CatalogRecord = Union[Product, ProductVariant, FAQ]


def to_decimal(value) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f"invalid price value: {value!r}")


def to_datetime(value) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = parse_datetime(str(value)) if value else None
        if parsed is None:
            raise ValueError(f"invalid last_modified value: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_timezone.utc)
    return parsed


def category_from_dict(data) -> Optional[Category]:
    if not data:
        return None
    return Category(
        id=data['id'],
        display_name=data.get('display_name') or data['id'],
        parent=category_from_dict(data.get('parent')),
    )


def product_from_dict(data) -> Product:
    prices = {
        book_id: PriceEntry(amount=to_decimal(entry['amount']), currency=entry.get('currency'))
        for book_id, entry in (data.get('prices') or {}).items()
        if entry and entry.get('amount') is not None
    }
    kwargs = dict(
        id=data['id'],
        last_modified=to_datetime(data.get('last_modified')),
        name=data.get('name') or '',
        online=bool(data.get('online', True)),
        availability_status=data.get('availability_status') or 'NOT_AVAILABLE',
        attributes=data.get('attributes') or {},
        custom=data.get('custom') or {},
        prices=prices,
        sale_price=to_decimal(data.get('sale_price')),
        min_variant_price=to_decimal(data.get('min_variant_price')),
        categories=[c for c in map(category_from_dict, data.get('categories') or []) if c],
        images=data.get('images') or {},
    )

    kind = ProductKind(data.get('kind') or ProductKind.STANDARD.value)
    if kind == ProductKind.VARIANT:
        master = data.get('master')
        return ProductVariant(master=product_from_dict(master) if master else None, **kwargs)
    return Product(kind=kind, **kwargs)


def faq_from_dict(data) -> FAQ:
    return FAQ(
        id=data['id'],
        last_modified=to_datetime(data.get('last_modified')),
        question=data.get('question') or '',
        answer=data.get('answer') or '',
        custom=data.get('custom') or {},
    )


def record_from_dict(record_type, data) -> CatalogRecord:
    if RecordType(record_type) == RecordType.FAQ:
        return faq_from_dict(data)
    return product_from_dict(data)
