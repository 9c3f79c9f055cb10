from unittest import mock

import requests
from django.test import LiveServerTestCase

from storage.client import KVClient
from storage.exceptions import KeyNotFoundError, StoreError, ValidationError


class KVClientTests(LiveServerTestCase):
    def setUp(self):
        self.client_ = KVClient(self.live_server_url, timeout=5)

    def test_set_get_delete(self):
        self.assertEqual(self.client_.set("alpha", "1"), "Key 'alpha' set successfully")
        self.assertEqual(self.client_.get("alpha"), b"1")

        self.client_.update("alpha", "2")
        self.assertEqual(self.client_.get("alpha"), b"2")

        self.assertEqual(self.client_.delete("alpha"), "Key 'alpha' deleted successfully")
        with self.assertRaises(KeyNotFoundError):
            self.client_.get("alpha")

    def test_keys_are_quoted(self):
        self.client_.set("a/b c", "x")
        self.assertEqual(self.client_.get("a/b c"), b"x")

    def test_list_and_search(self):
        for key, value in (("apple", "1"), ("banana", "2"), ("grape", "3")):
            self.client_.set(key, value)

        page = self.client_.list(page=2, page_size=2)
        self.assertEqual(page["items"], [{"key": "grape", "value": "3"}])
        self.assertEqual(page["total"], 3)

        found = self.client_.search("an")
        self.assertEqual(found["items"], [{"key": "banana", "value": "2"}])
        self.assertEqual(found["total"], 1)

    def test_validation_errors_are_raised(self):
        with self.assertRaises(ValidationError):
            self.client_.set("", "x")
        with self.assertRaises(ValidationError):
            self.client_.search("")


class KVClientTransportTests(LiveServerTestCase):
    def test_unreachable_server_raises_store_error_after_retries(self):
        session = mock.Mock(spec=requests.Session)
        session.get.side_effect = requests.ConnectionError("refused")
        client = KVClient("http://kv.invalid", session=session)

        with mock.patch("storage.client.RETRY_DELAY", 0):
            with self.assertRaises(StoreError):
                client.list()
        self.assertEqual(session.get.call_count, 3)

    def test_server_errors_map_to_store_error(self):
        with mock.patch("storage.views.list_entries", side_effect=StoreError("boom")):
            with self.assertRaises(StoreError) as ctx:
                KVClient(self.live_server_url).list()
        self.assertIn("boom", str(ctx.exception.detail))
