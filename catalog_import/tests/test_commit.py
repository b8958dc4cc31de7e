"""Tests for the confirm phase: job claiming, row application and audit."""

from decimal import Decimal
from unittest import mock

from django.test import TestCase

from catalog_import.models import AuditRecord, ImportJob, Product
from catalog_import.services.errors import StateError
from catalog_import.services.pipeline import confirm_import, validate_import

FULL = ImportJob.ImportType.FULL
STOCK_ONLY = ImportJob.ImportType.STOCK_ONLY
UPSERT = ImportJob.Mode.UPSERT
CREATE_ONLY = ImportJob.Mode.CREATE_ONLY


SCENARIO_A_CSV = b"""\
sku,name,price_base
LP-001,Effaclar Gel Moussant,130.00
NEW-100,Nouveau Produit,99.90
AB,Bad Sku,10.00
"""


class CommitTestBase(TestCase):
    def setUp(self):
        self.product = Product.objects.create(
            sku="LP-001",
            slug="lp-001",
            name="Effaclar Gel Moussant",
            base_price=Decimal("125.50"),
            stock_quantity=45,
            pack_size=12,
            moq=12,
        )

    def _validate(self, content=SCENARIO_A_CSV, import_type=FULL, mode=UPSERT):
        return validate_import(content, "catalog.csv", import_type, mode, actor="admin")


class ConfirmAppliesRowsTest(CommitTestBase):
    def test_scenario_a(self):
        validated = self._validate()
        outcome = confirm_import(validated.job.pk)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.success_rows, 2)
        self.assertEqual(outcome.error_rows, 0)

        self.product.refresh_from_db()
        self.assertEqual(self.product.base_price, Decimal("130.00"))
        self.assertEqual(self.product.stock_quantity, 45)
        self.assertEqual(self.product.pack_size, 12)

        created = Product.objects.get(sku="NEW-100")
        self.assertEqual(created.slug, "new-100")
        self.assertEqual(created.name, "Nouveau Produit")
        self.assertEqual(created.base_price, Decimal("99.90"))
        self.assertIsNone(created.promo_price)
        self.assertEqual(created.stock_quantity, 0)
        self.assertEqual(created.pack_size, 1)
        self.assertEqual(created.moq, 1)
        self.assertEqual(created.tax_rate, Decimal("0.20"))
        self.assertTrue(created.is_active)

        self.assertFalse(Product.objects.filter(sku="AB").exists())

    def test_job_finalized(self):
        validated = self._validate()
        confirm_import(validated.job.pk)

        job = ImportJob.objects.get(pk=validated.job.pk)
        self.assertEqual(job.status, ImportJob.Status.COMPLETED)
        self.assertEqual(job.success_rows, 2)
        self.assertEqual(job.error_rows, 0)
        self.assertIsNotNone(job.executed_at)
        self.assertLessEqual(job.success_rows + job.error_rows, job.total_rows)

    def test_audit_record_written(self):
        validated = self._validate()
        confirm_import(validated.job.pk)

        record = AuditRecord.objects.get()
        self.assertEqual(record.action, AuditRecord.Action.PRODUCT_IMPORT)
        self.assertEqual(record.entity_type, "ImportJob")
        self.assertEqual(record.entity_id, str(validated.job.pk))
        self.assertEqual(record.success_count, 2)
        self.assertEqual(record.error_count, 0)
        self.assertEqual(record.actor, "admin")
        self.assertEqual(record.metadata["import_type"], FULL)
        self.assertEqual(record.metadata["mode"], UPSERT)
        self.assertFalse(record.metadata["aborted"])

    def test_confirming_actor_recorded(self):
        validated = self._validate()
        confirm_import(validated.job.pk, actor="ops")
        self.assertEqual(AuditRecord.objects.get().actor, "ops")

    def test_to_dict(self):
        validated = self._validate()
        outcome = confirm_import(validated.job.pk)
        self.assertEqual(
            outcome.to_dict(),
            {
                "jobId": validated.job.pk,
                "status": ImportJob.Status.COMPLETED,
                "success": True,
                "summary": {"success": 2, "errors": 0},
            },
        )

    def test_skipped_rows_untouched(self):
        validated = self._validate(
            b"sku,name,price_base\nLP-001,Renamed,1.00\n", mode=CREATE_ONLY
        )
        outcome = confirm_import(validated.job.pk)

        self.assertEqual(outcome.success_rows, 0)
        self.assertEqual(outcome.error_rows, 0)
        self.assertTrue(outcome.success)
        self.product.refresh_from_db()
        self.assertEqual(self.product.name, "Effaclar Gel Moussant")
        self.assertEqual(self.product.base_price, Decimal("125.50"))

    def test_stock_only_touches_stock(self):
        validated = self._validate(
            b"sku,stock_quantity,price_base\nLP-001,40,1.00\n", import_type=STOCK_ONLY
        )
        confirm_import(validated.job.pk)

        self.product.refresh_from_db()
        self.assertEqual(self.product.stock_quantity, 40)
        self.assertEqual(self.product.base_price, Decimal("125.50"))

    def test_changes_recomputed_at_commit(self):
        validated = self._validate(b"sku,name,price_base\nLP-001,Effaclar Gel Moussant,130.00\n")
        Product.objects.filter(pk=self.product.pk).update(
            base_price=Decimal("140.00"), stock_quantity=10
        )

        outcome = confirm_import(validated.job.pk)

        self.assertEqual(outcome.success_rows, 1)
        self.product.refresh_from_db()
        self.assertEqual(self.product.base_price, Decimal("130.00"))
        self.assertEqual(self.product.stock_quantity, 10)


class ConfirmStateTest(CommitTestBase):
    def test_second_confirm_rejected(self):
        validated = self._validate()
        confirm_import(validated.job.pk)

        with self.assertRaises(StateError):
            confirm_import(validated.job.pk)

        job = ImportJob.objects.get(pk=validated.job.pk)
        self.assertEqual(job.status, ImportJob.Status.COMPLETED)
        self.assertEqual(job.success_rows, 2)
        self.assertEqual(AuditRecord.objects.count(), 1)
        self.assertEqual(Product.objects.count(), 2)

    def test_job_already_processing(self):
        validated = self._validate()
        ImportJob.objects.filter(pk=validated.job.pk).update(
            status=ImportJob.Status.PROCESSING
        )

        with self.assertRaises(StateError):
            confirm_import(validated.job.pk)

        self.product.refresh_from_db()
        self.assertEqual(self.product.base_price, Decimal("125.50"))
        self.assertFalse(Product.objects.filter(sku="NEW-100").exists())
        self.assertEqual(AuditRecord.objects.count(), 0)

    def test_unknown_job(self):
        with self.assertRaises(ImportJob.DoesNotExist):
            confirm_import(987654)


class ConfirmRowFailureTest(CommitTestBase):
    def test_entry_created_after_validation(self):
        validated = self._validate()
        Product.objects.create(sku="NEW-100", slug="new-100", name="Someone else")

        with self.assertLogs("catalog_import.services.commit_executor", level="WARNING"):
            outcome = confirm_import(validated.job.pk)

        self.assertTrue(outcome.success)
        self.assertEqual(outcome.success_rows, 1)
        self.assertEqual(outcome.error_rows, 1)
        self.assertEqual(
            outcome.to_dict()["summary"], {"success": 1, "errors": 1}
        )

        job = ImportJob.objects.get(pk=validated.job.pk)
        self.assertEqual(job.status, ImportJob.Status.FAILED)
        self.product.refresh_from_db()
        self.assertEqual(self.product.base_price, Decimal("130.00"))
        self.assertEqual(Product.objects.get(sku="NEW-100").name, "Someone else")

        record = AuditRecord.objects.get()
        self.assertEqual(record.success_count, 1)
        self.assertEqual(record.error_count, 1)

    def test_entry_deleted_after_validation(self):
        validated = self._validate()
        self.product.delete()

        with self.assertLogs("catalog_import.services.commit_executor", level="WARNING") as logs:
            outcome = confirm_import(validated.job.pk)

        self.assertEqual(outcome.success_rows, 1)
        self.assertEqual(outcome.error_rows, 1)
        self.assertIn("no longer exists", logs.output[0])
        self.assertTrue(Product.objects.filter(sku="NEW-100").exists())

    def test_slug_collision_fails_row(self):
        validated = self._validate(
            b"sku,name,price_base\nNEW-300,Dash,1.50\nNEW_300,Underscore,2.50\n"
        )
        self.assertEqual(
            [row.action for row in validated.rows], ["CREATE", "CREATE"]
        )

        with self.assertLogs("catalog_import.services.commit_executor", level="WARNING"):
            outcome = confirm_import(validated.job.pk)

        self.assertEqual(outcome.success_rows, 1)
        self.assertEqual(outcome.error_rows, 1)
        self.assertEqual(Product.objects.get(slug="new-300").sku, "NEW-300")
        self.assertFalse(Product.objects.filter(sku="NEW_300").exists())
        self.assertEqual(
            ImportJob.objects.get(pk=validated.job.pk).status, ImportJob.Status.FAILED
        )

    def test_unexpected_failure_aborts_run(self):
        validated = self._validate(
            b"sku,name\nNEW-100,One\nNEW-200,Two\nNEW-300,Three\n"
        )

        with mock.patch(
            "catalog_import.services.commit_executor.apply_row",
            side_effect=[None, RuntimeError("disk on fire")],
        ) as apply_row:
            with self.assertLogs("catalog_import.services.commit_executor", level="ERROR"):
                outcome = confirm_import(validated.job.pk)

        self.assertEqual(apply_row.call_count, 2)
        self.assertTrue(outcome.success)
        self.assertEqual(outcome.success_rows, 1)
        self.assertEqual(outcome.error_rows, 0)

        job = ImportJob.objects.get(pk=validated.job.pk)
        self.assertEqual(job.status, ImportJob.Status.FAILED)
        self.assertIsNotNone(job.executed_at)
        self.assertTrue(AuditRecord.objects.get().metadata["aborted"])
