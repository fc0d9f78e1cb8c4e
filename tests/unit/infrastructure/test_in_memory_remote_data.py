"""Tests for the in-memory remote data adapter."""

import pytest

from mowglians_sdk.domain.exceptions import DataAccessError, TransportError
from mowglians_sdk.domain.queries import Relation, SelectQuery
from mowglians_sdk.domain.value_objects import Identity
from mowglians_sdk.infrastructure.in_memory_remote_data import InMemoryRemoteData
from tests.builders import pet_row, profile_row, request_row


@pytest.fixture
def store(fixed_clock):
    remote = InMemoryRemoteData(clock=fixed_clock)
    remote.seed("pets", [pet_row("p1", age=3), pet_row("p2", age=1), pet_row("p3", age=None)])
    return remote


class TestSelect:
    """Selecting rows."""

    @pytest.mark.asyncio
    async def test_select_all(self, store):
        """Without a query every row is returned."""
        rows = await store.select("pets")

        assert [r["id"] for r in rows] == ["p1", "p2", "p3"]

    @pytest.mark.asyncio
    async def test_unknown_table_is_empty(self, store):
        """Tables that were never written are empty."""
        assert await store.select("nothing") == []

    @pytest.mark.asyncio
    async def test_filters_order_and_paging(self, store):
        """Equality filters, ordering with nulls last, offset and limit."""
        ordered = await store.select("pets", SelectQuery().ordered_by("age"))
        assert [r["id"] for r in ordered] == ["p2", "p1", "p3"]

        descending = await store.select("pets", SelectQuery().ordered_by("age", ascending=False))
        assert [r["id"] for r in descending] == ["p1", "p2", "p3"]

        filtered = await store.select("pets", SelectQuery().where("age", 1))
        assert [r["id"] for r in filtered] == ["p2"]

        page = await store.select("pets", SelectQuery().ordered_by("age").page(2, 1))
        assert [r["id"] for r in page] == ["p1"]

    @pytest.mark.asyncio
    async def test_column_projection(self, store):
        """Only requested columns are returned."""
        rows = await store.select("pets", SelectQuery(columns=("id", "name")).where("id", "p1"))

        assert rows == [{"id": "p1", "name": "Pet p1"}]

    @pytest.mark.asyncio
    async def test_relations_are_embedded(self, store):
        """Related rows are embedded under their alias."""
        store.seed("users_profile", [profile_row("u1")])
        store.seed("adoption_requests", [request_row("1"), request_row("2", pet_id="gone")])
        query = SelectQuery(
            relations=(
                Relation(alias="pet", table="pets", local_column="pet_id", columns=("name",)),
                Relation(
                    alias="user",
                    table="users_profile",
                    local_column="user_id",
                    foreign_column="user_id",
                ),
            )
        )

        first, second = await store.select("adoption_requests", query)

        assert first["pet"] == {"name": "Pet p1"}
        assert first["user"]["email"] == "u1@example.com"
        assert second["pet"] is None

    @pytest.mark.asyncio
    async def test_results_are_copies(self, store):
        """Mutating returned rows does not change the store."""
        [row] = await store.select("pets", SelectQuery().where("id", "p1"))
        row["name"] = "changed"

        assert store.get_row("pets", "p1")["name"] == "Pet p1"


class TestWrites:
    """Inserting, updating and uploading."""

    @pytest.mark.asyncio
    async def test_insert_generates_id_and_timestamp(self, store, fixed_clock):
        """Generated ids are returned; created_at comes from the clock."""
        record_id = await store.insert("gallery", {"image_url": "x"})

        row = store.get_row("gallery", record_id)
        assert row["id"] == record_id
        assert row["created_at"] == fixed_clock.now().isoformat()

    @pytest.mark.asyncio
    async def test_insert_duplicate_id(self, store):
        """Duplicate identifiers are rejected."""
        with pytest.raises(DataAccessError):
            await store.insert("pets", {"id": "p1", "name": "Again"})

    @pytest.mark.asyncio
    async def test_update(self, store):
        """Updates patch the named columns only."""
        await store.update("pets", "p1", {"status": "adopted"})

        row = store.get_row("pets", "p1")
        assert row["status"] == "adopted"
        assert row["name"] == "Pet p1"

    @pytest.mark.asyncio
    async def test_update_missing_row(self, store):
        """Updating a missing row fails."""
        with pytest.raises(DataAccessError) as exc_info:
            await store.update("pets", "nope", {"status": "adopted"})

        assert exc_info.value.operation == "update"

    @pytest.mark.asyncio
    async def test_upload_blob(self, store):
        """Blobs are stored once per path."""
        url = await store.upload_blob("gallery", "a.png", b"png", "image/png")

        assert url == "memory://gallery/a.png"
        assert store.get_blob("gallery", "a.png") == b"png"
        with pytest.raises(DataAccessError):
            await store.upload_blob("gallery", "a.png", b"png")


class TestHelpers:
    """Failure injection, identity and bookkeeping."""

    @pytest.mark.asyncio
    async def test_fail_next_applies_once(self, store):
        """A queued failure is raised by the next matching call only."""
        store.fail_next("select", TransportError("offline"), table="pets")

        assert await store.select("users_profile") == []
        with pytest.raises(TransportError):
            await store.select("pets")
        assert len(await store.select("pets")) == 3

    @pytest.mark.asyncio
    async def test_identity(self, store):
        """The bound identity is returned by the identity check."""
        assert await store.get_identity() is None

        identity = Identity(id="u1", email="u1@example.com")
        store.set_identity(identity)

        assert await store.get_identity() == identity

    @pytest.mark.asyncio
    async def test_calls_recorded_and_cleared(self, store):
        """Calls are recorded until cleared."""
        await store.select("pets")
        await store.insert("gallery", {"image_url": "x"})

        assert store.calls == [("select", "pets"), ("insert", "gallery")]

        store.clear()
        assert store.calls == []
        assert store.get_rows("pets") == []
