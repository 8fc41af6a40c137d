import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from django.conf import settings

from catalog_export.constants import MAX_BATCH_SIZE, RESET_ENDPOINTS
from catalog_export.exceptions import ConfigurationInvalid
from catalog_export.mapping import AttributeMapping, MappingContext
from catalog_export.records import RecordType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportConfig:
    """Read-only view of the export settings, taken once per job run."""

    enabled: bool
    base_url: str
    api_key: str
    rate_limit: int
    timeout: float
    batch_size: int
    reset_style: str
    product_mapping_json: str
    faq_mapping_json: str
    list_price_book_id: str
    image_types: List[str] = field(default_factory=list)
    site_id: str = 'default'
    default_currency: str = 'USD'
    product_url_template: str = '/product/{id}'

    @classmethod
    def from_settings(cls, **overrides) -> 'ExportConfig':
        config = cls(
            enabled=getattr(settings, 'INGESTION_ENABLED', False),
            base_url=getattr(settings, 'INGESTION_API_BASE_URL', ''),
            api_key=getattr(settings, 'INGESTION_API_KEY', ''),
            rate_limit=getattr(settings, 'INGESTION_API_RATE_LIMIT', 5),
            timeout=getattr(settings, 'INGESTION_API_TIMEOUT', 30.0),
            batch_size=getattr(settings, 'INGESTION_BATCH_SIZE', MAX_BATCH_SIZE),
            reset_style=getattr(settings, 'INGESTION_RESET_STYLE', 'collection'),
            product_mapping_json=getattr(settings, 'PRODUCT_ATTRIBUTE_MAPPING', '{}'),
            faq_mapping_json=getattr(settings, 'FAQ_ATTRIBUTE_MAPPING', '{}'),
            list_price_book_id=getattr(settings, 'INGESTION_LIST_PRICE_BOOK_ID', ''),
            image_types=list(getattr(settings, 'INGESTION_IMAGE_TYPES', [])),
            site_id=getattr(settings, 'INGESTION_SITE_ID', 'default'),
            default_currency=getattr(settings, 'INGESTION_DEFAULT_CURRENCY', 'USD'),
            product_url_template=getattr(settings, 'STOREFRONT_PRODUCT_URL', '/product/{id}'),
        )
        overrides = {k: v for k, v in overrides.items() if v not in (None, '')}
        if overrides:
            logger.debug("Config overrides for this run: %s", sorted(overrides))
            config = replace(config, **overrides)
        return config

    @property
    def effective_batch_size(self) -> int:
        return max(1, min(int(self.batch_size or MAX_BATCH_SIZE), MAX_BATCH_SIZE))

    @property
    def throttle_interval(self) -> float:
        return 1.0 / self.rate_limit if self.rate_limit and self.rate_limit > 0 else 0.0

    def mapping_for(self, record_type) -> AttributeMapping:
        if RecordType(record_type) == RecordType.FAQ:
            return AttributeMapping.from_json(self.faq_mapping_json)
        return AttributeMapping.from_json(self.product_mapping_json)

    def mapping_context(self) -> MappingContext:
        return MappingContext(
            site_id=self.site_id,
            price_book_id=self.list_price_book_id,
            default_currency=self.default_currency,
            product_url_template=self.product_url_template,
            image_types=tuple(self.image_types),
        )

    def validate(self, record_type) -> AttributeMapping:
        """Raise ConfigurationInvalid listing every problem, else return the parsed mapping."""
        problems = []
        if not self.enabled:
            problems.append("ingestion backend is disabled")
        if not self.base_url:
            problems.append("ingestion base URL is not set")
        if not self.api_key:
            problems.append("ingestion API key is not set")
        if self.reset_style not in RESET_ENDPOINTS:
            problems.append(f"unknown reset style {self.reset_style!r}")

        mapping: Optional[AttributeMapping] = None
        try:
            mapping = self.mapping_for(record_type)
        except ConfigurationInvalid as exc:
            problems.extend(exc.problems)
        else:
            if RecordType(record_type) == RecordType.PRODUCT and mapping.is_empty:
                problems.append("product attribute mapping is empty")

        if problems:
            raise ConfigurationInvalid(problems, context={'record_type': RecordType(record_type).value})
        return mapping
