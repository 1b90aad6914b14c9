import json
import os
import tempfile
import unittest
from datetime import datetime, timezone

from site_editor.usage import (
    InMemoryUsageStore,
    JsonUsageStore,
    hour_bucket,
    make_store,
    minutes_until_next_hour,
)

NOW = datetime(2024, 5, 1, 13, 45, 30, tzinfo=timezone.utc)


class TestBuckets(unittest.TestCase):
    def test_hour_bucket(self):
        self.assertEqual(hour_bucket(NOW), "2024-05-01T13:00:00+00:00")
        self.assertEqual(hour_bucket(datetime(2024, 5, 1, 13, 59)), "2024-05-01T13:00:00+00:00")

    def test_minutes_until_next_hour(self):
        self.assertEqual(minutes_until_next_hour(NOW), 15)
        self.assertEqual(minutes_until_next_hour(datetime(2024, 5, 1, 13, 0, tzinfo=timezone.utc)), 60)
        self.assertEqual(minutes_until_next_hour(datetime(2024, 5, 1, 13, 59, 59, tzinfo=timezone.utc)), 1)


class TestInMemoryStore(unittest.TestCase):
    def test_counts_per_user_and_bucket(self):
        store = InMemoryUsageStore()
        self.assertEqual(store.get("u1", "b1"), 0)
        self.assertEqual(store.increment("u1", "b1"), 1)
        self.assertEqual(store.increment("u1", "b1"), 2)
        self.assertEqual(store.get("u1", "b2"), 0)
        self.assertEqual(store.get("u2", "b1"), 0)


class TestJsonStore(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmp.name, "nested", "usage.json")

    def tearDown(self):
        self.tmp.cleanup()

    def test_persists_across_instances(self):
        JsonUsageStore(self.path).increment("u1", "b1")
        JsonUsageStore(self.path).increment("u1", "b1")
        self.assertEqual(JsonUsageStore(self.path).get("u1", "b1"), 2)
        self.assertEqual(os.listdir(os.path.dirname(self.path)), ["usage.json"])

    def test_old_buckets_dropped(self):
        store = JsonUsageStore(self.path)
        store.increment("u1", "2024-05-01T12:00:00+00:00")
        store.increment("u1", "2024-05-01T13:00:00+00:00")
        with open(self.path, encoding="utf-8") as handle:
            data = json.load(handle)
        self.assertEqual(data, {"u1": {"2024-05-01T13:00:00+00:00": 1}})

    def test_unreadable_file_reads_as_zero(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as handle:
            handle.write("{not json")
        self.assertEqual(JsonUsageStore(self.path).get("u1", "b1"), 0)


class TestMakeStore(unittest.TestCase):
    def test_kinds(self):
        self.assertIsInstance(make_store("memory"), InMemoryUsageStore)
        self.assertIsInstance(make_store(""), InMemoryUsageStore)
        self.assertIsInstance(make_store("/tmp/site-editor-usage.json"), JsonUsageStore)
