import enum
import itertools
import logging
import time
from dataclasses import dataclass

from catalog_export.constants import MAX_BATCH_SIZE
from catalog_export.mapping import map_record
from catalog_export.records import Product, ProductKind, ProductVariant

logger = logging.getLogger(__name__)

NON_EXPORTABLE_KINDS = frozenset({
    ProductKind.BUNDLE,
    ProductKind.SET,
    ProductKind.VARIATION_GROUP,
    ProductKind.OPTION,
})


class ExportMode(str, enum.Enum):
    FULL = 'full'
    DELTA = 'delta'


def is_exportable(record) -> bool:
    if isinstance(record, Product):
        return record.kind not in NON_EXPORTABLE_KINDS
    return True


@dataclass
class ExportResult:
    processed_count: int = 0
    batches_sent: int = 0
    skipped: int = 0
    failed: bool = False
    message: str = ''


class BatchExporter:
    """Streams records to the ingestion service in batches.

    Records are pulled from the iterator one at a time (one batch-sized chunk
    at a time in delta mode). A batch is sent when it reaches ``batch_size``
    and once more for the remainder. The first rejected batch stops the run;
    only records from batches the service accepted count as processed, and
    only those update product snapshots.

    In delta mode an exported variant brings its master along. The master is
    always the record read from the source, never the copy embedded in the
    variant, so it is sent when it is read, whether before or after the
    variant.
    """

    def __init__(self, client, session, mapping, context, endpoint,
                 batch_size=MAX_BATCH_SIZE, detector=None, snapshots=None,
                 is_exportable=is_exportable, throttle_interval=0.0):
        self.client = client
        self.session = session
        self.mapping = mapping
        self.context = context
        self.endpoint = endpoint
        self.batch_size = max(1, min(batch_size, MAX_BATCH_SIZE))
        self.detector = detector
        self.snapshots = snapshots
        self.is_exportable = is_exportable
        self.throttle_interval = throttle_interval

    def run(self, records, mode=ExportMode.FULL) -> ExportResult:
        mode = ExportMode(mode)
        if mode == ExportMode.DELTA and self.detector is None:
            raise ValueError("delta export requires a change detector")

        logger.info("Starting %s export to %s", mode.value, self.endpoint.path)

        result = ExportResult()
        batch = []
        queued_masters = set()
        # masters wanted by an exported variant but not read from the source yet
        awaiting_masters = set()
        # unchanged masters read so far, sent only if one of their variants is
        held_masters = {}

        def queue(record):
            batch.append((record, map_record(record, self.mapping, self.context)))
            if len(batch) >= self.batch_size:
                sent = self._flush(batch, result)
                batch.clear()
                return sent
            return True

        if mode == ExportMode.DELTA:
            records = self._prefetched(records)

        for record in records:
            if not self.is_exportable(record):
                logger.debug("Skipping %s: not an exportable product type", record.id)
                result.skipped += 1
                continue

            if mode == ExportMode.DELTA and isinstance(record, Product) and not record.online:
                logger.debug("Skipping %s: offline", record.id)
                result.skipped += 1
                continue

            if isinstance(record, Product) and record.is_master:
                if record.id in queued_masters:
                    logger.debug("Master %s already queued in this run", record.id)
                    continue
                if (mode == ExportMode.DELTA and record.id not in awaiting_masters
                        and not self.detector.is_eligible(record)):
                    held_masters[record.id] = record
                    continue
                awaiting_masters.discard(record.id)
                queued_masters.add(record.id)
                if not queue(record):
                    break
                continue

            if mode == ExportMode.DELTA and not self.detector.is_eligible(record):
                logger.debug("Record %s unchanged, skipping", record.id)
                result.skipped += 1
                continue

            if mode == ExportMode.DELTA and isinstance(record, ProductVariant) and record.master is not None:
                master_id = record.master.id
                if master_id in held_masters:
                    logger.debug("Queueing master %s with variant %s", master_id, record.id)
                    queued_masters.add(master_id)
                    if not queue(held_masters.pop(master_id)):
                        break
                elif master_id not in queued_masters:
                    awaiting_masters.add(master_id)

            if not queue(record):
                break
        else:
            if batch:
                self._flush(batch, result)
            if awaiting_masters:
                logger.warning(
                    "Masters %s of exported variants were not found in the source",
                    ", ".join(sorted(awaiting_masters)),
                )

        result.skipped += len(held_masters)
        logger.info(
            "Export finished: %d processed in %d batches, %d skipped%s",
            result.processed_count, result.batches_sent, result.skipped,
            " (halted on failure)" if result.failed else "",
        )
        return result

    def _prefetched(self, records):
        """Yield ``records`` unchanged, loading change-detection state one batch-sized chunk at a time."""
        records = iter(records)
        while True:
            chunk = list(itertools.islice(records, self.batch_size))
            if not chunk:
                return
            self.detector.prefetch(chunk)
            yield from chunk

    def _flush(self, batch, result) -> bool:
        payload = [data for _, data in batch]

        if self.throttle_interval:
            time.sleep(self.throttle_interval)
        response = self.client.send(self.session, self.endpoint.path, self.endpoint.method, payload)

        if not response.ok:
            logger.error(
                "Batch %d of %d records rejected: %s",
                result.batches_sent + 1, len(batch), response.message,
            )
            result.failed = True
            result.message = response.message
            return False

        if self.snapshots is not None:
            products = [record for record, _ in batch if isinstance(record, Product)]
            self.snapshots.record_exported(products, self.context)

        result.processed_count += len(batch)
        result.batches_sent += 1
        logger.info("Sent batch %d (%d records)", result.batches_sent, len(batch))
        return True
