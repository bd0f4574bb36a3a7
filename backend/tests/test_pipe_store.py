"""
Pipeyard Backend - PipeStore Unit Tests
========================================

What:  Tests for load, list and upsert on the in-memory pipe collection.
How:   Real JsonDocument in tmp_path; PersistenceError is simulated with
       a patched write().

What we test:
    ✅ Load: missing, empty, valid and corrupt documents
    ✅ Create: id assignment, falsy ids, appended order
    ✅ Update: field-by-field overlay, unknown id leaves state unchanged
    ✅ Restart round trip reproduces the collection
    ✅ Write failures never fail the upsert
"""

import json
from unittest.mock import AsyncMock, patch

import pytest

from pipeyard.database import JsonDocument
from pipeyard.exceptions import PersistenceError, PipeNotFoundError, StoreLoadError
from pipeyard.services.pipe_service import PipeStore


class TestPipeStoreLoad:
    """Startup loading from the durable document."""

    @pytest.mark.asyncio
    async def test_missing_document_loads_empty(self, pipe_store, database_path):
        count = await pipe_store.load()

        assert count == 0
        assert pipe_store.list() == []
        assert not database_path.exists()  # created on first write only

    @pytest.mark.asyncio
    async def test_empty_document_loads_empty(self, pipe_store, database_path):
        database_path.write_text("")

        assert await pipe_store.load() == 0
        assert pipe_store.list() == []

    @pytest.mark.asyncio
    async def test_existing_document_loads_in_order(self, pipe_store, database_path):
        stored = [{"id": 2, "material": "PVC"}, {"id": 1, "material": "Copper"}]
        database_path.write_text(json.dumps(stored))

        assert await pipe_store.load() == 2
        assert pipe_store.list() == stored

    @pytest.mark.asyncio
    async def test_invalid_json_is_fatal(self, pipe_store, database_path):
        database_path.write_text('[{"id": 1,')

        with pytest.raises(StoreLoadError, match="Error parsing"):
            await pipe_store.load()

    @pytest.mark.asyncio
    async def test_non_array_document_is_fatal(self, pipe_store, database_path):
        database_path.write_text('{"id": 1}')

        with pytest.raises(StoreLoadError, match="JSON array"):
            await pipe_store.load()


class TestPipeStoreCreate:
    """Upsert without a (truthy) id."""

    @pytest.mark.asyncio
    async def test_first_pipe_gets_id_1(self, pipe_store):
        await pipe_store.load()

        record, created = await pipe_store.upsert({})

        assert created is True
        assert record == {"id": 1}

    @pytest.mark.asyncio
    async def test_ids_strictly_increase(self, pipe_store):
        await pipe_store.load()

        ids = []
        for _ in range(5):
            record, _ = await pipe_store.upsert({"material": "Steel"})
            ids.append(record["id"])

        assert ids == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_next_id_follows_max_existing(self, pipe_store, database_path):
        database_path.write_text(json.dumps([{"id": 7}, {"id": 3}]))
        await pipe_store.load()

        record, _ = await pipe_store.upsert({"coating": "FBE"})

        assert record == {"id": 8, "coating": "FBE"}
        assert [p["id"] for p in pipe_store.list()] == [7, 3, 8]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("falsy_id", [0, None, False, ""])
    async def test_falsy_id_creates_and_is_replaced(self, pipe_store, falsy_id):
        await pipe_store.load()

        record, created = await pipe_store.upsert({"id": falsy_id, "schedule": "SCH 40"})

        assert created is True
        assert record == {"id": 1, "schedule": "SCH 40"}


class TestPipeStoreUpdate:
    """Upsert with a truthy id."""

    @pytest.mark.asyncio
    async def test_update_overlays_only_given_fields(self, pipe_store):
        await pipe_store.load()
        await pipe_store.upsert({"material": "Carbon Steel", "diameter": 114.3, "isFlanged": True})

        record, created = await pipe_store.upsert({"id": 1, "diameter": 168.3, "coating": None})

        assert created is False
        assert record == {
            "id": 1,
            "material": "Carbon Steel",
            "diameter": 168.3,
            "isFlanged": True,
            "coating": None,
        }
        assert pipe_store.list() == [record]

    @pytest.mark.asyncio
    async def test_update_keeps_position(self, pipe_store):
        await pipe_store.load()
        for material in ("PVC", "Copper", "Steel"):
            await pipe_store.upsert({"material": material})

        await pipe_store.upsert({"id": 2, "material": "Brass"})

        assert [p["material"] for p in pipe_store.list()] == ["PVC", "Brass", "Steel"]

    @pytest.mark.asyncio
    async def test_unknown_id_raises_and_changes_nothing(self, pipe_store, database_path):
        await pipe_store.load()

        with pytest.raises(PipeNotFoundError, match="Pipe with id 99 not found"):
            await pipe_store.upsert({"id": 99})

        assert pipe_store.list() == []
        assert not database_path.exists()

    @pytest.mark.asyncio
    async def test_boolean_true_does_not_match_pipe_1(self, pipe_store):
        await pipe_store.load()
        await pipe_store.upsert({})

        with pytest.raises(PipeNotFoundError, match="Pipe with id true not found"):
            await pipe_store.upsert({"id": True, "material": "PVC"})

        assert pipe_store.list() == [{"id": 1}]

    @pytest.mark.asyncio
    async def test_float_id_keeps_stored_integer_id(self, pipe_store):
        await pipe_store.load()
        await pipe_store.upsert({})

        record, _ = await pipe_store.upsert({"id": 1.0, "length": 6})

        assert record["id"] == 1
        assert isinstance(record["id"], int)


class TestPipeStorePersistence:
    """Durable snapshots after each mutation."""

    @pytest.mark.asyncio
    async def test_walkthrough_example(self, pipe_store):
        await pipe_store.load()

        assert (await pipe_store.upsert({}))[0] == {"id": 1}
        assert (await pipe_store.upsert({"id": 1, "material": "steel"}))[0] == {
            "id": 1,
            "material": "steel",
        }
        assert (await pipe_store.upsert({}))[0] == {"id": 2}
        assert pipe_store.list() == [{"id": 1, "material": "steel"}, {"id": 2}]

    @pytest.mark.asyncio
    async def test_restart_reproduces_collection(self, pipe_store, database_path):
        await pipe_store.load()
        await pipe_store.upsert({"material": "PVC", "length": 12})
        await pipe_store.upsert({"description": "riser", "isJacketed": False})
        await pipe_store.upsert({"id": 1, "pressureRating": 150})

        restarted = PipeStore(JsonDocument(database_path))
        await restarted.load()

        assert restarted.list() == pipe_store.list()

    @pytest.mark.asyncio
    async def test_write_failure_does_not_fail_upsert(self, pipe_store):
        await pipe_store.load()

        with patch.object(
            pipe_store.document,
            "write",
            AsyncMock(side_effect=PersistenceError(message="disk full")),
        ) as mock_write:
            record, created = await pipe_store.upsert({"material": "HDPE"})

        mock_write.assert_awaited_once()
        assert created is True
        assert pipe_store.list() == [{"id": 1, "material": "HDPE"}]

    @pytest.mark.asyncio
    async def test_list_is_a_snapshot(self, pipe_store):
        await pipe_store.load()
        await pipe_store.upsert({})

        listed = pipe_store.list()
        listed.append({"id": 42})

        assert pipe_store.list() == [{"id": 1}]
