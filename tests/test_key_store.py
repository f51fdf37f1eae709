"""
Tests for the JSON file key store.
"""
import asyncio
import json
import pytest
from datetime import datetime, timedelta, timezone
from relay.core.exceptions import KeyStoreError
from relay.models.api_key import ApiKeyRecord, format_timestamp
from relay.services.key_store import JsonFileKeyStore


def make_record(name: str, key: str, days: int = 30) -> ApiKeyRecord:
    return ApiKeyRecord(
        name=name,
        key=key,
        expires_at=datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc) + timedelta(days=days),
    )


class TestKeyStoreLoad:
    """Tests for loading the key file."""

    @pytest.mark.asyncio
    async def test_missing_file_is_created_empty(self, key_store):
        """A missing key file should be created holding an empty array."""
        assert not key_store.path.exists()

        records = await key_store.load()

        assert records == []
        assert key_store.path.exists()
        assert json.loads(key_store.path.read_text(encoding="utf-8")) == []

    @pytest.mark.asyncio
    async def test_corrupt_file_raises(self, key_store):
        """A key file that is not JSON should be reported, not replaced."""
        key_store.path.parent.mkdir(parents=True, exist_ok=True)
        key_store.path.write_text("{not json", encoding="utf-8")

        with pytest.raises(KeyStoreError):
            await key_store.load()

        assert key_store.path.read_text(encoding="utf-8") == "{not json"

    @pytest.mark.asyncio
    async def test_non_array_document_raises(self, key_store):
        """The key file must hold a JSON array."""
        key_store.path.parent.mkdir(parents=True, exist_ok=True)
        key_store.path.write_text('{"name": "x"}', encoding="utf-8")

        with pytest.raises(KeyStoreError):
            await key_store.load()

    @pytest.mark.asyncio
    async def test_malformed_record_raises(self, key_store):
        """Records without a key should be rejected."""
        key_store.path.parent.mkdir(parents=True, exist_ok=True)
        key_store.path.write_text('[{"name": "x", "expiresAt": "2025-01-01T00:00:00.000Z"}]', encoding="utf-8")

        with pytest.raises(KeyStoreError):
            await key_store.load()

    @pytest.mark.asyncio
    async def test_legacy_field_names_are_read(self, key_store):
        """Files written with apiName/apiKey/expirationDate should still load."""
        key_store.path.parent.mkdir(parents=True, exist_ok=True)
        key_store.path.write_text(
            json.dumps([
                {"apiName": "Legacy", "apiKey": "legacy-key", "expirationDate": "2025-02-01T10:00:00.000Z"}
            ]),
            encoding="utf-8"
        )

        records = await key_store.load()

        assert len(records) == 1
        assert records[0].name == "Legacy"
        assert records[0].key == "legacy-key"
        assert records[0].expires_at == datetime(2025, 2, 1, 10, 0, tzinfo=timezone.utc)


class TestKeyStoreAppend:
    """Tests for adding records."""

    @pytest.mark.asyncio
    async def test_append_then_reload(self, key_store):
        """Appended records should survive a fresh store instance."""
        first = make_record("First", "key-1")
        second = make_record("Second", "key-2", days=5)

        await key_store.append(first)
        await key_store.append(second)

        reopened = JsonFileKeyStore(str(key_store.path))
        records = await reopened.load()

        assert records == [first, second]

    @pytest.mark.asyncio
    async def test_file_uses_current_field_names(self, key_store):
        """Records should be written as name/key/expiresAt with a Z timestamp."""
        record = make_record("App", "key-1")
        await key_store.append(record)

        document = json.loads(key_store.path.read_text(encoding="utf-8"))

        assert document == [{
            "name": "App",
            "key": "key-1",
            "expiresAt": format_timestamp(record.expires_at),
        }]
        assert document[0]["expiresAt"].endswith(".000Z")

    @pytest.mark.asyncio
    async def test_append_to_corrupt_file_fails(self, key_store):
        """Appending must not overwrite a file that could not be parsed."""
        key_store.path.parent.mkdir(parents=True, exist_ok=True)
        key_store.path.write_text("garbage", encoding="utf-8")

        with pytest.raises(KeyStoreError):
            await key_store.append(make_record("App", "key-1"))

        assert key_store.path.read_text(encoding="utf-8") == "garbage"

    @pytest.mark.asyncio
    async def test_concurrent_appends_keep_every_record(self, key_store):
        """Parallel appends on one store should not lose updates."""
        records = [make_record(f"App {i}", f"key-{i}") for i in range(20)]

        await asyncio.gather(*(key_store.append(record) for record in records))

        stored = await key_store.load()
        assert {record.key for record in stored} == {record.key for record in records}

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, key_store):
        """Atomic writes should not leave temporary files next to the key file."""
        await key_store.append(make_record("App", "key-1"))

        assert [p.name for p in key_store.path.parent.iterdir()] == [key_store.path.name]


class TestKeyStoreLookup:
    """Tests for key lookup."""

    @pytest.mark.asyncio
    async def test_get_exact_match(self, key_store):
        """get should return the record for an exact token."""
        await key_store.append(make_record("App", "key-1"))

        record = await key_store.get("key-1")

        assert record is not None
        assert record.name == "App"

    @pytest.mark.asyncio
    async def test_get_unknown_key(self, key_store):
        """Unknown or partial tokens should not match."""
        await key_store.append(make_record("App", "key-1"))

        assert await key_store.get("key-2") is None
        assert await key_store.get("key") is None

    @pytest.mark.asyncio
    async def test_count(self, key_store):
        """count should report the number of stored records."""
        assert await key_store.count() == 0

        await key_store.append(make_record("App", "key-1"))

        assert await key_store.count() == 1
