import logging

from catalog_export.mapping import MappingContext, snapshot_value
from catalog_export.records import Product

logger = logging.getLogger(__name__)


class ChangeDetector:
    """Decides whether a record has to be sent in a delta run.

    The checkpoint and threshold are fixed for the lifetime of the detector,
    which is one job run.

    1. With an explicit ``threshold`` the record is eligible iff
       ``last_modified >= threshold``; the checkpoint is not consulted.
    2. Otherwise it is eligible iff there is no checkpoint or
       ``last_modified > checkpoint``.
    3. A product that fails both is still eligible when its current
       ``status|listPrice|salePrice`` differs from the snapshot stored for
       this site, or no snapshot exists for it.
    """

    def __init__(self, checkpoint=None, threshold=None, snapshots=None, context=None):
        self.checkpoint = checkpoint
        self.threshold = threshold
        self.snapshots = snapshots
        self.context = context or MappingContext()

    def prefetch(self, records):
        """Load stored snapshots for the products in ``records`` with one query."""
        if self.snapshots is None:
            return
        self.snapshots.prefetch([r.id for r in records if isinstance(r, Product)])

    def is_modified(self, record) -> bool:
        if self.threshold is not None:
            return record.last_modified >= self.threshold
        if self.checkpoint is None:
            return True
        return record.last_modified > self.checkpoint

    def has_snapshot_changed(self, product) -> bool:
        if self.snapshots is None:
            return False
        stored = self.snapshots.get(product.id)
        current = snapshot_value(product, self.context)
        if stored != current:
            logger.debug("Product %s snapshot changed: %r -> %r", product.id, stored, current)
            return True
        return False

    def is_eligible(self, record) -> bool:
        if self.is_modified(record):
            return True
        if isinstance(record, Product):
            return self.has_snapshot_changed(record)
        return False
