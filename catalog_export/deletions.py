import logging
from dataclasses import dataclass, field
from typing import List

from django.db import transaction

from catalog_export.models import PendingDeletion
from catalog_export.records import RecordType

logger = logging.getLogger(__name__)


def queue_deletion(record_type, record_id):
    """Mark a record for removal at the ingestion service on the next delta run."""
    _, created = PendingDeletion.objects.get_or_create(
        record_type=RecordType(record_type).value, record_id=str(record_id),
    )
    if created:
        logger.info("Queued %s %s for deletion", RecordType(record_type).value, record_id)
    return created


def pending_ids(record_type) -> List[str]:
    return list(
        PendingDeletion.objects.filter(record_type=RecordType(record_type).value)
        .values_list('record_id', flat=True)
    )


@dataclass
class ReconcileResult:
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)


class DeletionReconciler:
    """Drains the pending-deletion list for one record type.

    A failed delete leaves its ID queued for the next run and does not stop
    the remaining IDs from being processed.
    """

    def __init__(self, client, session, record_type, endpoint):
        self.client = client
        self.session = session
        self.record_type = RecordType(record_type)
        self.endpoint = endpoint

    def reconcile(self) -> ReconcileResult:
        result = ReconcileResult()
        ids = pending_ids(self.record_type)
        if not ids:
            return result

        logger.info("Deleting %d %s records at the ingestion service", len(ids), self.record_type.value)

        for record_id in ids:
            path = self.endpoint.path.format(id=record_id)
            try:
                response = self.client.delete(self.session, path)
            except Exception:
                logger.exception(
                    "Delete of %s %s raised, keeping it queued", self.record_type.value, record_id,
                )
                result.failed.append(record_id)
                continue
            if response.ok:
                result.deleted.append(record_id)
            else:
                logger.warning(
                    "Delete of %s %s failed, keeping it queued: %s",
                    self.record_type.value, record_id, response.message,
                )
                result.failed.append(record_id)

        if result.deleted:
            with transaction.atomic():
                PendingDeletion.objects.filter(
                    record_type=self.record_type.value, record_id__in=result.deleted,
                ).delete()

        logger.info(
            "Deletion reconcile: %d deleted, %d left for retry",
            len(result.deleted), len(result.failed),
        )
        return result
