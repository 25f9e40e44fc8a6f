import unittest
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock, AsyncMock, patch

from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from validations.models import ValidationRecord
from validations.mongo_store import MongoRecordStore, TTL_INDEX_NAME
from validations.record_store import StoreConfigurationError


def make_client(collection):
    """A stand-in for AsyncIOMotorClient where client[db][collection] is `collection`."""
    client = MagicMock()
    client.__getitem__.return_value.__getitem__.return_value = collection
    return client


class TestMongoRecordStoreConfig(unittest.TestCase):

    def test_missing_collection_name_fails_fast(self):
        with patch("validations.mongo_store.AsyncIOMotorClient") as client_cls:
            with self.assertRaises(StoreConfigurationError):
                MongoRecordStore(collection_name=None)
            with self.assertRaises(StoreConfigurationError):
                MongoRecordStore(collection_name="")
        client_cls.assert_not_called()

    def test_configuration_error_is_a_value_error(self):
        self.assertTrue(issubclass(StoreConfigurationError, ValueError))

    def test_uri_is_optional(self):
        with patch("validations.mongo_store.AsyncIOMotorClient") as client_cls:
            store = MongoRecordStore(collection_name="validations", uri=None, db_name="app")
        client_cls.assert_called_once_with(None)
        client_cls.return_value.__getitem__.assert_called_once_with("app")
        self.assertIs(store.client, client_cls.return_value)


class TestMongoRecordStore(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.collection = AsyncMock()
        self.client = make_client(self.collection)
        self.store = MongoRecordStore(collection_name="validations", client=self.client)

    async def test_save_puts_one_document(self):
        id = await self.store.save_validation('{"type":"object"}', '{"a":1}')

        self.collection.insert_one.assert_awaited_once()
        (doc,) = self.collection.insert_one.call_args.args
        self.collection.replace_one.assert_not_called()

        self.assertEqual(doc["_id"], id)
        self.assertEqual(doc["schema"], '{"type":"object"}')
        self.assertEqual(doc["json"], '{"a":1}')
        self.assertRegex(doc["created_at"], r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z$")
        self.assertNotIn("id", doc)

    async def test_ttl_is_one_day_after_save(self):
        before = datetime.now(timezone.utc)
        await self.store.save_validation("{}", "{}")
        after = datetime.now(timezone.utc)

        ttl = self.collection.insert_one.call_args.args[0]["ttl"]
        self.assertIsInstance(ttl, datetime)
        self.assertGreaterEqual(ttl, before + timedelta(days=1))
        self.assertLessEqual(ttl, after + timedelta(days=1))

    async def test_custom_retention(self):
        store = MongoRecordStore(collection_name="validations", retention_seconds=60, client=self.client)
        before = datetime.now(timezone.utc)
        await store.save_validation("{}", "{}")

        ttl = self.collection.insert_one.call_args.args[0]["ttl"]
        self.assertLess(ttl - before, timedelta(seconds=61))

    async def test_save_returns_fresh_ids(self):
        first = await self.store.save_validation("{}", "{}")
        second = await self.store.save_validation("{}", "{}")
        self.assertNotEqual(first, second)

    async def test_get_maps_document_to_record(self):
        self.collection.find_one.return_value = {
            "_id": "abc123",
            "schema": '{"type":"object"}',
            "json": '{"a":1}',
            "created_at": "2026-10-18T17:34:05.123Z",
            "ttl": datetime(2026, 10, 19, 17, 34, 5),
        }

        record = await self.store.get_validation("abc123")

        self.collection.find_one.assert_awaited_once_with({"_id": "abc123"})
        self.assertEqual(
            record,
            ValidationRecord(
                id="abc123",
                schema='{"type":"object"}',
                json='{"a":1}',
                created_at="2026-10-18T17:34:05.123Z",
            ),
        )

    async def test_get_missing_returns_none(self):
        self.collection.find_one.return_value = None
        self.assertIsNone(await self.store.get_validation("nonexistent-id"))

    async def test_driver_errors_propagate(self):
        self.collection.insert_one.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(ServerSelectionTimeoutError):
            await self.store.save_validation("{}", "{}")

        self.collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(ServerSelectionTimeoutError):
            await self.store.get_validation("abc123")

    async def test_id_collision_raises_instead_of_overwriting(self):
        self.collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key error")

        with self.assertRaises(DuplicateKeyError):
            await self.store.save_validation("{}", "{}")
        self.collection.replace_one.assert_not_called()
        self.collection.update_one.assert_not_called()

    async def test_ensure_indexes_binds_ttl_field(self):
        await self.store.ensure_indexes()

        self.collection.create_index.assert_awaited_once()
        call = self.collection.create_index.call_args
        self.assertEqual(call.args[0], [("ttl", 1)])
        self.assertEqual(call.kwargs["expireAfterSeconds"], 0)
        self.assertEqual(call.kwargs["name"], TTL_INDEX_NAME)

    async def test_close_closes_client(self):
        await self.store.close()
        self.client.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
