from unittest.mock import MagicMock, patch

from django.test import TestCase

from catalog_export.change_detection import ChangeDetector
from catalog_export.clients.base import TransportResponse
from catalog_export.constants import ADD_FAQS, ADD_PRODUCTS
from catalog_export.exporter import BatchExporter, ExportMode
from catalog_export.mapping import AttributeMapping
from catalog_export.models import ProductExportSnapshot
from catalog_export.records import ProductKind
from catalog_export.snapshots import SnapshotStore

from .helpers import (
    AFTER_CHECKPOINT, BEFORE_CHECKPOINT, CHECKPOINT, SITE, make_category, make_context, make_faq, make_mapping,
    make_master, make_product, make_variant,
)

OK = TransportResponse(status='OK')
ERROR = TransportResponse(status='ERROR', message='HTTP 500: boom')


def _client(*responses):
    client = MagicMock()
    if responses:
        client.send.side_effect = list(responses)
    else:
        client.send.return_value = OK
    return client


def _faq_exporter(client, **kwargs):
    return BatchExporter(
        client=client, session=MagicMock(), mapping=AttributeMapping(),
        context=make_context(), endpoint=ADD_FAQS, **kwargs,
    )


def _product_exporter(client, detector=None, **kwargs):
    return BatchExporter(
        client=client, session=MagicMock(), mapping=make_mapping(), context=make_context(),
        endpoint=ADD_PRODUCTS, detector=detector, snapshots=SnapshotStore(SITE), **kwargs,
    )


def _sent_batches(client):
    return [call.args[3] for call in client.send.call_args_list]


class TestBatching(TestCase):
    def test_150_records_sent_as_100_and_50(self):
        client = _client()
        faqs = [make_faq(f"F{i}") for i in range(150)]

        result = _faq_exporter(client).run(iter(faqs), ExportMode.FULL)

        self.assertEqual([len(b) for b in _sent_batches(client)], [100, 50])
        self.assertEqual(result.processed_count, 150)
        self.assertEqual(result.batches_sent, 2)
        self.assertFalse(result.failed)

    def test_exact_multiple_has_no_empty_flush(self):
        client = _client()
        result = _faq_exporter(client).run(iter([make_faq(f"F{i}") for i in range(200)]))

        self.assertEqual([len(b) for b in _sent_batches(client)], [100, 100])
        self.assertEqual(result.processed_count, 200)

    def test_no_records_sends_nothing(self):
        client = _client()
        result = _faq_exporter(client).run(iter([]))

        client.send.assert_not_called()
        self.assertEqual(result.processed_count, 0)

    def test_batch_size_is_capped(self):
        client = _client()
        exporter = _faq_exporter(client, batch_size=500)
        exporter.run(iter([make_faq(f"F{i}") for i in range(250)]))

        self.assertTrue(all(len(b) <= 100 for b in _sent_batches(client)))
        self.assertEqual(client.send.call_count, 3)

    def test_smaller_batch_size(self):
        client = _client()
        _faq_exporter(client, batch_size=2).run(iter([make_faq(f"F{i}") for i in range(5)]))
        self.assertEqual([len(b) for b in _sent_batches(client)], [2, 2, 1])

    def test_endpoint_and_order(self):
        client = _client()
        _faq_exporter(client).run(iter([make_faq("B"), make_faq("A")]))

        args = client.send.call_args.args
        self.assertEqual(args[1:3], ('/v1/faq', 'POST'))
        self.assertEqual([f["question"] for f in args[3]], ["Question B?", "Question A?"])

    def test_records_pulled_lazily(self):
        client = _client()
        pulled = []

        def records():
            for i in range(150):
                pulled.append(i)
                yield make_faq(f"F{i}")

        def send(session, path, method, body):
            # first flush happens before record 101 is read
            self.assertEqual(len(pulled), 100)
            client.send.side_effect = None
            return OK

        client.send.side_effect = send
        client.send.return_value = OK
        _faq_exporter(client).run(records())

        self.assertEqual(client.send.call_count, 2)

    @patch('catalog_export.exporter.time.sleep')
    def test_throttle_between_batches(self, mock_sleep):
        _faq_exporter(_client(), throttle_interval=0.2).run(iter([make_faq(f"F{i}") for i in range(150)]))
        self.assertEqual(mock_sleep.call_count, 2)
        mock_sleep.assert_called_with(0.2)


class TestFailureHandling(TestCase):
    def test_failure_on_second_batch_counts_first_only(self):
        client = _client(OK, ERROR)
        faqs = [make_faq(f"F{i}") for i in range(250)]

        result = _faq_exporter(client).run(iter(faqs))

        self.assertTrue(result.failed)
        self.assertEqual(result.processed_count, 100)
        self.assertEqual(client.send.call_count, 2)
        self.assertIn("boom", result.message)

    def test_failure_on_first_batch_stops_run(self):
        client = _client(ERROR)
        result = _faq_exporter(client).run(iter([make_faq(f"F{i}") for i in range(250)]))

        self.assertEqual(result.processed_count, 0)
        self.assertEqual(client.send.call_count, 1)

    def test_failure_on_final_partial_batch(self):
        client = _client(OK, ERROR)
        result = _faq_exporter(client).run(iter([make_faq(f"F{i}") for i in range(130)]))

        self.assertTrue(result.failed)
        self.assertEqual(result.processed_count, 100)

    def test_snapshots_written_only_for_accepted_batches(self):
        client = _client(OK, ERROR)
        exporter = _product_exporter(client, batch_size=2)
        products = [make_product(f"P{i}") for i in range(4)]

        exporter.run(iter(products), ExportMode.FULL)

        self.assertEqual(
            sorted(ProductExportSnapshot.objects.values_list('product_id', flat=True)),
            ["P0", "P1"],
        )

    def test_snapshot_value_stored_per_site(self):
        ProductExportSnapshot.objects.create(product_id="P1", sites={"SiteGenesis": "IN_STOCK|5|5"})
        _product_exporter(_client()).run(iter([make_product("P1", list_price="100", sale_price="80")]))

        self.assertEqual(
            ProductExportSnapshot.objects.get(product_id="P1").sites,
            {"SiteGenesis": "IN_STOCK|5|5", SITE: "IN_STOCK|100|80"},
        )


class TestRecordSelection(TestCase):
    def test_non_exportable_kinds_skipped(self):
        client = _client()
        products = [
            make_product("BUNDLE", kind=ProductKind.BUNDLE),
            make_product("SET", kind=ProductKind.SET),
            make_product("VG", kind=ProductKind.VARIATION_GROUP),
            make_product("OPT", kind=ProductKind.OPTION),
            make_product("P1"),
        ]

        result = _product_exporter(client).run(iter(products), ExportMode.FULL)

        self.assertEqual([p["id"] for p in _sent_batches(client)[0]], ["P1"])
        self.assertEqual(result.processed_count, 1)
        self.assertEqual(result.skipped, 4)

    def test_custom_predicate(self):
        client = _client()
        exporter = _product_exporter(client, is_exportable=lambda record: record.online)
        exporter.run(iter([make_product("P1", online=False), make_product("P2")]))

        self.assertEqual([p["id"] for p in _sent_batches(client)[0]], ["P2"])

    def test_delta_requires_detector(self):
        with self.assertRaises(ValueError):
            _faq_exporter(_client()).run(iter([]), ExportMode.DELTA)

    def test_delta_drops_unchanged(self):
        client = _client()
        detector = ChangeDetector(checkpoint=CHECKPOINT, context=make_context())
        faqs = [make_faq("OLD", last_modified=BEFORE_CHECKPOINT), make_faq("NEW")]

        result = _faq_exporter(client, detector=detector).run(iter(faqs), ExportMode.DELTA)

        self.assertEqual(result.processed_count, 1)
        self.assertEqual(_sent_batches(client)[0][0]["question"], "Question NEW?")

    def test_full_mode_ignores_detector(self):
        client = _client()
        detector = ChangeDetector(checkpoint=CHECKPOINT, context=make_context())
        faqs = [make_faq("OLD", last_modified=BEFORE_CHECKPOINT)]

        result = _faq_exporter(client, detector=detector).run(iter(faqs), ExportMode.FULL)
        self.assertEqual(result.processed_count, 1)


class TestMasterVariant(TestCase):
    def setUp(self):
        self.context = make_context()
        self.master = make_master("M1", last_modified=BEFORE_CHECKPOINT)
        # master was exported before and has not changed since
        SnapshotStore(SITE).record_exported([self.master], self.context)

    def _detector(self):
        return ChangeDetector(checkpoint=CHECKPOINT, snapshots=SnapshotStore(SITE), context=self.context)

    def _full_master(self):
        return make_master(
            "M1",
            categories=[make_category()],
            images={"large": "https://img.example.test/M1.jpg"},
            custom={"color": "navy"},
        )

    def test_eligible_variant_pulls_in_master(self):
        detector = self._detector()
        self.assertFalse(detector.is_eligible(self.master))

        client = _client()
        variant = make_variant("V1", master=self.master)
        result = _product_exporter(client, detector=detector).run(iter([self.master, variant]), ExportMode.DELTA)

        self.assertEqual([p["id"] for p in _sent_batches(client)[0]], ["M1", "V1"])
        self.assertEqual(result.processed_count, 2)

    def test_master_added_once_for_many_variants(self):
        client = _client()
        variants = [make_variant(f"V{i}", master=self.master) for i in range(3)]

        result = _product_exporter(client, detector=self._detector()).run(
            iter([self.master] + variants), ExportMode.DELTA,
        )

        ids = [p["id"] for p in _sent_batches(client)[0]]
        self.assertEqual(ids, ["M1", "V0", "V1", "V2"])
        self.assertEqual(result.processed_count, 4)

    def test_changed_master_not_repeated_when_read_after_variant(self):
        client = _client()
        changed_master = make_master("M1", last_modified=AFTER_CHECKPOINT)
        variant = make_variant("V1", master=changed_master)

        _product_exporter(client, detector=self._detector()).run(
            iter([variant, changed_master, changed_master]), ExportMode.DELTA,
        )

        ids = [p["id"] for p in _sent_batches(client)[0]]
        self.assertEqual(ids, ["V1", "M1"])

    def test_source_master_sent_instead_of_embedded_copy(self):
        client = _client()
        full_master = self._full_master()
        # the copy carried by the variant has no categories, images or custom fields
        variant = make_variant("V1", master=self.master)

        _product_exporter(client, detector=self._detector()).run(
            iter([variant, full_master]), ExportMode.DELTA,
        )

        sent = {p["id"]: p for p in _sent_batches(client)[0]}
        self.assertEqual(list(sent), ["V1", "M1"])
        self.assertEqual(sent["M1"]["product_type"], "Men/Shoes")
        self.assertEqual(sent["M1"]["image_link"], "https://img.example.test/M1.jpg")
        self.assertEqual(sent["M1"]["color"], "navy")

    def test_held_master_is_the_source_record(self):
        client = _client()
        full_master = self._full_master()
        variant = make_variant("V1", master=self.master)

        _product_exporter(client, detector=self._detector()).run(
            iter([full_master, variant]), ExportMode.DELTA,
        )

        master_payload = _sent_batches(client)[0][0]
        self.assertEqual(master_payload["id"], "M1")
        self.assertEqual(master_payload["product_type"], "Men/Shoes")
        self.assertEqual(master_payload["color"], "navy")

    def test_master_missing_from_source_is_not_sent(self):
        client = _client()
        variant = make_variant("V1", master=self.master)

        result = _product_exporter(client, detector=self._detector()).run(iter([variant]), ExportMode.DELTA)

        self.assertEqual([p["id"] for p in _sent_batches(client)[0]], ["V1"])
        self.assertEqual(result.processed_count, 1)

    def test_ineligible_variant_does_not_pull_master(self):
        client = _client()
        variant = make_variant("V1", master=self.master, last_modified=BEFORE_CHECKPOINT)
        SnapshotStore(SITE).record_exported([variant], self.context)

        result = _product_exporter(client, detector=self._detector()).run(
            iter([self.master, variant]), ExportMode.DELTA,
        )

        client.send.assert_not_called()
        self.assertEqual(result.processed_count, 0)
        self.assertEqual(result.skipped, 2)

    def test_full_mode_sends_masters_as_read(self):
        client = _client()
        variant = make_variant("V1", master=self.master)

        _product_exporter(client).run(iter([variant, self._full_master()]), ExportMode.FULL)

        self.assertEqual([p["id"] for p in _sent_batches(client)[0]], ["V1", "M1"])

    def test_master_snapshot_updated_after_send(self):
        client = _client()
        variant = make_variant("V1", master=self.master)
        _product_exporter(client, detector=self._detector()).run(iter([self.master, variant]), ExportMode.DELTA)

        self.assertEqual(
            set(ProductExportSnapshot.objects.values_list('product_id', flat=True)), {"M1", "V1"},
        )


class TestDeltaSelection(TestCase):
    def test_offline_products_dropped_in_delta(self):
        client = _client()
        detector = ChangeDetector(checkpoint=CHECKPOINT, context=make_context())
        products = [make_product("OFF", online=False), make_product("ON")]

        result = _product_exporter(client, detector=detector).run(iter(products), ExportMode.DELTA)

        self.assertEqual([p["id"] for p in _sent_batches(client)[0]], ["ON"])
        self.assertEqual(result.skipped, 1)

    def test_offline_products_kept_in_full(self):
        client = _client()
        _product_exporter(client).run(iter([make_product("OFF", online=False)]), ExportMode.FULL)

        self.assertEqual(_sent_batches(client)[0][0]["product_status"], "false")

    def test_snapshots_read_once_per_chunk(self):
        context = make_context()
        products = [make_product(f"P{i}", last_modified=BEFORE_CHECKPOINT) for i in range(5)]
        SnapshotStore(SITE).record_exported(products, context)
        client = _client()
        detector = ChangeDetector(checkpoint=CHECKPOINT, snapshots=SnapshotStore(SITE), context=context)

        with self.assertNumQueries(1):
            result = _product_exporter(client, detector=detector).run(iter(products), ExportMode.DELTA)

        client.send.assert_not_called()
        self.assertEqual(result.skipped, 5)
