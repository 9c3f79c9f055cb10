from unittest import mock

from django.db import OperationalError
from django.test import TestCase, TransactionTestCase

from storage.exceptions import KeyNotFoundError, NotFoundError, StoreError, ValidationError
from storage.models import Entry
from storage.services import delete_value, get_value, set_value
from storage.store import Store, WriteTransaction


class PointOperationTests(TestCase):
    def setUp(self):
        self.store = Store()

    def test_set_then_get_round_trips(self):
        for key, value in (("a", "1"), ("with space", "v a l"), ("ключ", "значение")):
            self.assertEqual(set_value(self.store, key, value), key.encode())
            self.assertEqual(get_value(self.store, key), value.encode())

    def test_accepts_raw_bytes(self):
        set_value(self.store, b"\x00\x01", b"\xff\xfe")
        self.assertEqual(get_value(self.store, b"\x00\x01"), b"\xff\xfe")

    def test_overwrite_keeps_single_entry(self):
        set_value(self.store, "k", "1")
        set_value(self.store, "k", "2")
        self.assertEqual(get_value(self.store, "k"), b"2")
        self.assertEqual(Entry.objects.count(), 1)

    def test_get_missing_key_raises_not_found(self):
        with self.assertRaises(KeyNotFoundError) as ctx:
            get_value(self.store, "missing")
        self.assertIsInstance(ctx.exception, NotFoundError)
        self.assertNotIsInstance(ctx.exception, StoreError)

    def test_delete_then_get_raises_not_found(self):
        set_value(self.store, "k", "v")
        delete_value(self.store, "k")
        with self.assertRaises(KeyNotFoundError):
            get_value(self.store, "k")

    def test_delete_absent_key_is_not_an_error(self):
        self.assertEqual(delete_value(self.store, "never"), b"never")
        with self.assertRaises(KeyNotFoundError):
            get_value(self.store, "never")

    def test_empty_input_is_rejected_before_touching_the_store(self):
        with mock.patch.object(Store, "update") as update, mock.patch.object(Store, "view") as view:
            with self.assertRaises(ValidationError):
                set_value(self.store, "", "v")
            with self.assertRaises(ValidationError):
                set_value(self.store, "k", "")
            with self.assertRaises(ValidationError):
                set_value(self.store, None, None)
            with self.assertRaises(ValidationError):
                get_value(self.store, "")
            with self.assertRaises(ValidationError):
                delete_value(self.store, "")
        update.assert_not_called()
        view.assert_not_called()


class TransactionTests(TestCase):
    def setUp(self):
        self.store = Store()

    def test_read_transaction_never_commits(self):
        with self.store.view():
            Entry.objects.create(key=b"ghost", value=b"boo")
        self.assertFalse(Entry.objects.filter(key=b"ghost").exists())

    def test_failed_write_rolls_back(self):
        with self.assertRaises(RuntimeError):
            with self.store.update() as txn:
                txn.set(b"k", b"v")
                raise RuntimeError("abort")
        self.assertFalse(Entry.objects.exists())

    def test_database_errors_become_store_errors(self):
        with mock.patch.object(WriteTransaction, "delete", side_effect=OperationalError("disk full")):
            with self.assertRaises(StoreError) as ctx:
                delete_value(self.store, "k")
        self.assertEqual(str(ctx.exception.detail), "disk full")
        self.assertIsInstance(ctx.exception.__cause__, OperationalError)

    def test_write_is_visible_to_later_reads(self):
        with self.store.update() as txn:
            txn.set(b"a", b"1")
            txn.set(b"b", b"2")
            txn.delete(b"a")
        with self.store.view() as txn:
            self.assertEqual([item.key for item in txn.iterate()], [b"b"])
            self.assertEqual(
                [item.value_copy() for item in txn.iterate(prefetch_values=True)], [b"2"]
            )

    def test_prefetch_size_must_be_positive(self):
        with self.assertRaises(ValueError):
            Store(prefetch_size=0)


class StoreLifecycleTests(TransactionTestCase):
    def test_close_then_reuse_reconnects(self):
        store = Store()
        set_value(store, "k", "v")
        store.close()
        self.assertEqual(get_value(store, "k"), b"v")
