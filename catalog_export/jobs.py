"""
Export job entry points.

Each job walks ``validating -> resetting|deleting -> exporting ->
checkpointing -> done`` and returns a ``JobStatus``. Every error, expected or
not, stops the run at the step it happened in and is reported through the
status; nothing is raised to the scheduler. Checkpoints and snapshots are
written only after the ingestion service confirmed the data, so a failed run
leaves them as the last good run left them.
"""

import logging
from dataclasses import dataclass
from datetime import timedelta

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone
from django.utils.module_loading import import_string

from catalog_export.change_detection import ChangeDetector
from catalog_export.checkpoints import CheckpointStore
from catalog_export.config import ExportConfig
from catalog_export.constants import ADD_ENDPOINTS, DELETE_ENDPOINTS, RESET_ENDPOINTS
from catalog_export.deletions import DeletionReconciler
from catalog_export.exceptions import ExportError, ResetFailure, TransportFailure
from catalog_export.exporter import BatchExporter, ExportMode
from catalog_export.models import ExportRun
from catalog_export.records import RecordType
from catalog_export.reset import CollectionResetCoordinator
from catalog_export.snapshots import SnapshotStore

logger = logging.getLogger(__name__)

STATUS_OK = 'OK'
STATUS_ERROR = 'ERROR'

SOURCE_SETTINGS = {
    RecordType.PRODUCT: 'EXPORT_PRODUCT_SOURCE_CLASS',
    RecordType.FAQ: 'EXPORT_FAQ_SOURCE_CLASS',
}

NOUNS = {
    RecordType.PRODUCT: ('Product', 'Products'),
    RecordType.FAQ: ('Faq', 'Faqs'),
}


@dataclass
class JobStatus:
    outcome: str
    message: str
    processed_count: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome == STATUS_OK

    def to_dict(self):
        return {
            'outcome': self.outcome,
            'message': self.message,
            'processed_count': self.processed_count,
        }


def get_client(config):
    client_class = import_string(settings.EXPORT_CLIENT_CLASS)
    return client_class.from_config(config)


def get_source(record_type):
    source_class = import_string(getattr(settings, SOURCE_SETTINGS[record_type]))
    return source_class(record_type=record_type)


def threshold_from_hours(hours, now):
    """``now - hours``, or None when no look-back window was requested."""
    if hours in (None, ''):
        return None
    hours = float(hours)
    if hours <= 0:
        return None
    return now - timedelta(hours=hours)


class ExportJob:
    def __init__(self, record_type, mode, config=None, client=None, source=None):
        self.record_type = RecordType(record_type)
        self.mode = ExportMode(mode)
        self.config = config
        self.client = client
        self.source = source
        self.run = None

        singular, _ = NOUNS[self.record_type]
        self.label = f"{self.mode.value.capitalize()} {singular} Export Job"

    def execute(self, data_prior_to_hours=None, price_book_id=None) -> JobStatus:
        started_at = timezone.now()
        processed = 0
        logger.info("***** %s Started *****", self.label)

        try:
            config = self.config or ExportConfig.from_settings(list_price_book_id=price_book_id)
            self.run = ExportRun.objects.create(
                record_type=self.record_type.value,
                mode=self.mode.value,
                site_id=config.site_id,
                state=ExportRun.State.VALIDATING,
                started_at=started_at,
            )

            mapping = config.validate(self.record_type)
            threshold = threshold_from_hours(data_prior_to_hours, started_at)
            client = self.client or get_client(config)
            session = client.make_session()

            if self.mode == ExportMode.FULL:
                self._transition(ExportRun.State.RESETTING)
                endpoint = RESET_ENDPOINTS[config.reset_style][self.record_type.value]
                coordinator = CollectionResetCoordinator(client, session, endpoint)
                if not coordinator.reset_before_full_export():
                    raise ResetFailure(
                        "Remote collection reset failed", context={'endpoint': endpoint.path},
                    )
            else:
                self._transition(ExportRun.State.DELETING)
                DeletionReconciler(
                    client, session, self.record_type, DELETE_ENDPOINTS[self.record_type.value],
                ).reconcile()

            self._transition(ExportRun.State.EXPORTING)
            context = config.mapping_context()
            checkpoints = CheckpointStore(config.site_id)
            snapshots = SnapshotStore(config.site_id) if self.record_type == RecordType.PRODUCT else None

            detector = None
            if self.mode == ExportMode.DELTA:
                checkpoint = checkpoints.get(self.record_type)
                logger.info(
                    "Delta reference: checkpoint=%s threshold=%s", checkpoint, threshold,
                )
                detector = ChangeDetector(
                    checkpoint=checkpoint, threshold=threshold, snapshots=snapshots, context=context,
                )

            exporter = BatchExporter(
                client=client,
                session=session,
                mapping=mapping,
                context=context,
                endpoint=ADD_ENDPOINTS[self.record_type.value],
                batch_size=config.effective_batch_size,
                detector=detector,
                snapshots=snapshots,
                throttle_interval=config.throttle_interval,
            )
            source = self.source or get_source(self.record_type)
            result = exporter.run(source.iter_records(), self.mode)
            processed = result.processed_count

            if result.failed:
                raise TransportFailure(result.message or "batch rejected", processed_count=processed)

            self._transition(ExportRun.State.CHECKPOINTING)
            if processed > 0:
                checkpoints.set(self.record_type, started_at)

        except ExportError as exc:
            logger.error("%s failed: %s", self.label, exc)
            return self._finish(STATUS_ERROR, f"{self.label} Finished with ERROR {exc}", processed)
        except Exception as exc:
            logger.exception("%s failed unexpectedly", self.label)
            return self._finish(STATUS_ERROR, f"{self.label} Finished with ERROR {exc}", processed)

        return self._finish(STATUS_OK, f"{self.label} Finished", processed)

    def _transition(self, state):
        logger.debug("%s: %s -> %s", self.label, self.run.state, state)
        self.run.state = state
        self.run.save(update_fields=['state'])

    def _finish(self, outcome, message, processed) -> JobStatus:
        _, plural = NOUNS[self.record_type]
        message = f"{message}, {plural} Processed => {processed}"

        if self.run is not None:
            self.run.state = ExportRun.State.DONE if outcome == STATUS_OK else ExportRun.State.FAILED
            self.run.finished_at = timezone.now()
            self.run.processed_count = processed
            self.run.message = message
            try:
                self.run.save(update_fields=['state', 'finished_at', 'processed_count', 'message'])
            except DatabaseError:
                logger.exception("Could not record the end of %s", self.label)

        log = logger.info if outcome == STATUS_OK else logger.error
        log("***** %s *****", message)
        return JobStatus(outcome=outcome, message=message, processed_count=processed)


def full_product_export(params=None) -> JobStatus:
    params = params or {}
    return ExportJob(RecordType.PRODUCT, ExportMode.FULL).execute(
        price_book_id=params.get('listPriceBookId'),
    )


def delta_product_export(params=None) -> JobStatus:
    params = params or {}
    return ExportJob(RecordType.PRODUCT, ExportMode.DELTA).execute(
        data_prior_to_hours=params.get('dataPriorToHours'),
        price_book_id=params.get('listPriceBookId'),
    )


def full_faq_export(params=None) -> JobStatus:
    return ExportJob(RecordType.FAQ, ExportMode.FULL).execute()


def delta_faq_export(params=None) -> JobStatus:
    params = params or {}
    return ExportJob(RecordType.FAQ, ExportMode.DELTA).execute(
        data_prior_to_hours=params.get('faqDataPriorToHours'),
    )
