import logging

from django.db import transaction
from django.utils import timezone

from catalog_export.mapping import snapshot_value
from catalog_export.models import ProductExportSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Per-site view over ``ProductExportSnapshot`` rows."""

    def __init__(self, site_id):
        self.site_id = site_id
        self._cache = {}

    def prefetch(self, product_ids):
        """Replace the cache with the entries for ``product_ids``, read in one query."""
        ids = list(dict.fromkeys(product_ids))
        found = dict(
            ProductExportSnapshot.objects.filter(product_id__in=ids).values_list('product_id', 'sites')
        )
        self._cache = {
            product_id: (found[product_id] or {}).get(self.site_id) if product_id in found else None
            for product_id in ids
        }

    def get(self, product_id):
        if product_id in self._cache:
            return self._cache[product_id]
        state = ProductExportSnapshot.objects.filter(product_id=product_id).first()
        if state is None:
            return None
        return state.sites.get(self.site_id)

    def record_exported(self, products, context):
        """Store the exported state of ``products`` for this site in one transaction.

        Entries for other sites on the same product are preserved.
        """
        values = {p.id: snapshot_value(p, context) for p in products}
        if not values:
            return 0

        with transaction.atomic():
            existing = {
                state.product_id: state
                for state in ProductExportSnapshot.objects.select_for_update().filter(
                    product_id__in=list(values)
                )
            }

            to_create = []
            to_update = []
            now = timezone.now()
            for product_id, value in values.items():
                state = existing.get(product_id)
                if state is None:
                    to_create.append(
                        ProductExportSnapshot(product_id=product_id, sites={self.site_id: value})
                    )
                elif state.sites.get(self.site_id) != value:
                    state.sites = {**state.sites, self.site_id: value}
                    state.updated_at = now
                    to_update.append(state)

            if to_create:
                ProductExportSnapshot.objects.bulk_create(to_create)
            if to_update:
                ProductExportSnapshot.objects.bulk_update(to_update, ['sites', 'updated_at'])

        for product_id in self._cache.keys() & values.keys():
            self._cache[product_id] = values[product_id]

        logger.debug(
            "Snapshots for site %s: %d created, %d updated",
            self.site_id, len(to_create), len(to_update),
        )
        return len(to_create) + len(to_update)
