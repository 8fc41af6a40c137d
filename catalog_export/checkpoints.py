import logging

from django.db import transaction

from catalog_export.models import ExportCheckpoint
from catalog_export.records import RecordType

logger = logging.getLogger(__name__)


class CheckpointStore:
    def __init__(self, site_id):
        self.site_id = site_id

    def get(self, record_type):
        """Return the last export start time, or None if nothing was ever exported."""
        checkpoint = ExportCheckpoint.objects.filter(
            site_id=self.site_id, record_type=RecordType(record_type).value,
        ).first()
        return checkpoint.last_export_at if checkpoint else None

    def set(self, record_type, timestamp):
        """Advance the checkpoint to ``timestamp``; never moves it backwards."""
        record_type = RecordType(record_type).value
        with transaction.atomic():
            checkpoint = (
                ExportCheckpoint.objects.select_for_update()
                .filter(site_id=self.site_id, record_type=record_type)
                .first()
            )
            if checkpoint is None:
                ExportCheckpoint.objects.create(
                    site_id=self.site_id, record_type=record_type, last_export_at=timestamp,
                )
            elif timestamp > checkpoint.last_export_at:
                checkpoint.last_export_at = timestamp
                checkpoint.save(update_fields=['last_export_at', 'updated_at'])
            else:
                logger.warning(
                    "Not moving %s checkpoint for %s back from %s to %s",
                    record_type, self.site_id, checkpoint.last_export_at, timestamp,
                )
                return checkpoint.last_export_at

        logger.info("Checkpoint %s/%s set to %s", self.site_id, record_type, timestamp)
        return timestamp
