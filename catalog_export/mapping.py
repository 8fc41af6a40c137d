import enum
import json
from dataclasses import asdict, dataclass, is_dataclass
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Tuple

from catalog_export.exceptions import ConfigurationInvalid
from catalog_export.records import FAQ, Product, ProductVariant

IN_STOCK = 'IN_STOCK'

_SCALARS = (str, bytes, int, float, bool, Decimal, datetime)


@dataclass(frozen=True)
class AttributeRule:
    target: str
    source: str
    default: object = None


@dataclass(frozen=True)
class AttributeMapping:
    system: Tuple[AttributeRule, ...] = ()
    custom: Tuple[AttributeRule, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.system and not self.custom

    @classmethod
    def from_json(cls, value) -> 'AttributeMapping':
        """Parse ``{"systemAttributes": [...], "customAttributes": [...]}``.

        Each entry names its output field in ``targetField`` (or
        ``brainCommerceAttr``) and its record path in ``sourceField`` (or
        ``sfccAttr``). Entries missing either side are dropped.
        """
        if isinstance(value, (str, bytes)):
            try:
                value = json.loads(value or '{}')
            except ValueError as exc:
                raise ConfigurationInvalid([f"attribute mapping is not valid JSON: {exc}"])
        if value is None:
            value = {}
        if not isinstance(value, dict):
            raise ConfigurationInvalid(["attribute mapping must be a JSON object"])

        return cls(
            system=_parse_rules(value.get('systemAttributes')),
            custom=_parse_rules(value.get('customAttributes')),
        )


def _parse_rules(items) -> Tuple[AttributeRule, ...]:
    rules = []
    for item in items or []:
        if not isinstance(item, dict):
            continue
        target = item.get('targetField') or item.get('brainCommerceAttr')
        source = item.get('sourceField') or item.get('sfccAttr')
        if not target or not source:
            continue
        rules.append(AttributeRule(target=target, source=source, default=item.get('defaultValue')))
    return tuple(rules)


@dataclass(frozen=True)
class MappingContext:
    site_id: str = 'default'
    price_book_id: str = ''
    default_currency: str = 'USD'
    product_url_template: str = '/product/{id}'
    image_types: Tuple[str, ...] = ()


def safe_get(obj, path, default=None):
    """Walk a dot-separated path through mappings and attributes."""
    if obj is None or isinstance(obj, _SCALARS):
        return default
    if not path:
        return obj
    current = obj
    for segment in path.split('.'):
        if current is None or isinstance(current, _SCALARS):
            return default
        if isinstance(current, Mapping):
            current = current.get(segment)
        else:
            current = getattr(current, segment, None)
        if current is None:
            return default
    return current


def _jsonable(value):
    if is_dataclass(value) and not isinstance(value, type):
        return _jsonable(asdict(value))
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_jsonable(v) for v in value]
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    return value


def _apply_rules(record, mapping: AttributeMapping) -> dict:
    data = {}
    for rule in mapping.system:
        default = rule.default if rule.default is not None else ''
        data[rule.target] = _jsonable(safe_get(record, rule.source, default))
    for rule in mapping.custom:
        default = rule.default if rule.default is not None else ''
        data[rule.target] = _jsonable(safe_get(record.custom, rule.source, default))
    return data


def category_path(category) -> str:
    """Root-to-leaf display names joined by '/', without the root node."""
    names = []
    node = category
    while node is not None and node.parent is not None:
        names.append(node.display_name)
        node = node.parent
    return '/'.join(reversed(names))


def _categories_of(product: Product):
    if product.categories:
        return product.categories
    if isinstance(product, ProductVariant) and product.master is not None:
        return product.master.categories
    return []


def resolve_prices(product: Product, context: MappingContext):
    """Return (list_price, sale_price, currency) for the context's price book."""
    entry = product.prices.get(context.price_book_id) if context.price_book_id else None
    if entry is not None:
        list_price = entry.amount
    elif product.is_master:
        list_price = product.min_variant_price
    else:
        list_price = None

    sale_price = product.sale_price if product.sale_price is not None else list_price
    currency = entry.currency if entry is not None and entry.currency else context.default_currency
    return list_price, sale_price, currency


def _format_price(amount: Optional[Decimal]) -> str:
    if amount is None:
        return ''
    return format(amount.normalize(), 'f')


def snapshot_value(product: Product, context: MappingContext) -> str:
    """Serialized ``status|listPrice|salePrice`` used to spot price/stock changes."""
    list_price, sale_price, _ = resolve_prices(product, context)
    return '|'.join([
        product.availability_status or '',
        _format_price(list_price),
        _format_price(sale_price),
    ])


def _image_link(product: Product, context: MappingContext) -> str:
    for image_type in context.image_types:
        url = product.images.get(image_type)
        if url:
            return url
    return ''


def _item_group_id(product: Product) -> str:
    if isinstance(product, ProductVariant) and product.master is not None:
        return product.master.id
    return product.id


def map_product(product: Product, mapping: AttributeMapping, context: MappingContext) -> dict:
    data = _apply_rules(product, mapping)

    list_price, sale_price, currency = resolve_prices(product, context)
    paths = [category_path(c) for c in _categories_of(product)]

    data['availability'] = 'in_stock' if product.availability_status == IN_STOCK else 'out_of_stock'
    data['product_status'] = 'true' if product.online else 'false'
    data['product_type'] = ','.join(p for p in paths if p)
    data['price'] = _jsonable(list_price) if list_price is not None else ''
    data['sale_price'] = _jsonable(sale_price) if sale_price is not None else ''
    data['currency'] = currency
    data['link'] = context.product_url_template.format(id=product.id)
    data['image_link'] = _image_link(product, context)
    data['item_group_id'] = _item_group_id(product)
    return data


def map_faq(faq: FAQ, mapping: AttributeMapping, context: Optional[MappingContext] = None) -> dict:
    data = {
        'question': faq.question,
        'answer': faq.answer,
        'text': faq.answer,
        'internal_id': 0,
    }
    data.update(_apply_rules(faq, mapping))
    return data


def map_record(record, mapping: AttributeMapping, context: MappingContext) -> dict:
    if isinstance(record, FAQ):
        return map_faq(record, mapping, context)
    return map_product(record, mapping, context)
