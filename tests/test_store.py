"""Tests for the DataStore module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from flora_catalog.store import DataStore, StorageQuotaExceeded


class TestDataStoreInit:
    """Test DataStore initialization."""

    def test_paths(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.base == tmp_path
        assert store.cache == tmp_path / "cache"
        assert store.quota_bytes is None


class TestDataStoreWrite:
    """Test writing data with metadata envelopes."""

    def test_write_creates_file(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        path = store.write(Path("cache/plant_inat_1.json"), {"id": "inat_1"}, source="test")
        assert path.exists()

    def test_write_envelope_format(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(
            Path("cache/plant_inat_1.json"),
            {"id": "inat_1"},
            source="inaturalist",
            written_at_ms=1234,
        )

        data = json.loads((tmp_path / "cache" / "plant_inat_1.json").read_text())
        assert data["meta"]["source"] == "inaturalist"
        assert "fetched_at" in data["meta"]
        assert data["meta"]["written_at_ms"] == 1234
        assert data["data"] == {"id": "inat_1"}

    def test_write_defaults_timestamp(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("favorites.json"), [], source="test")
        data = json.loads((tmp_path / "favorites.json").read_text())
        assert isinstance(data["meta"]["written_at_ms"], int)

    def test_write_extra_params(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("cache/x.json"), {}, source="test", query="rose", page=2)
        data = json.loads((tmp_path / "cache" / "x.json").read_text())
        assert data["meta"]["query"] == "rose"
        assert data["meta"]["page"] == 2

    def test_write_creates_parent_dirs(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("deep/nested/entry.json"), {}, source="test")
        assert (tmp_path / "deep" / "nested" / "entry.json").exists()

    def test_write_outside_base_rejected(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path / "store")
        with pytest.raises(ValueError, match="escapes"):
            store.write(Path("../outside.json"), {}, source="test")


class TestDataStoreRead:
    """Test reading data from the store."""

    def test_read_returns_data_payload(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("cache/test.json"), {"key": "value"}, source="test")
        assert store.read(Path("cache/test.json")) == {"key": "value"}

    def test_read_missing_file(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.read(Path("nonexistent.json")) is None

    def test_read_raw_returns_full_envelope(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("cache/test.json"), {"key": "value"}, source="test")
        result = store.read_raw(Path("cache/test.json"))
        assert result is not None
        assert "meta" in result
        assert result["data"] == {"key": "value"}

    def test_read_raw_corrupt_file(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        (tmp_path / "cache").mkdir()
        (tmp_path / "cache" / "bad.json").write_text("{not json")
        assert store.read_raw(Path("cache/bad.json")) is None

    def test_read_raw_non_object(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        (tmp_path / "list.json").write_text("[1, 2]")
        assert store.read_raw(Path("list.json")) is None


class TestDataStoreKeys:
    """Key encoding and listing."""

    def test_key_path_is_encoded(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.key_path("plant_perenual_42") == Path("cache/plant_perenual_42.json")
        assert store.key_path("a/b c") == Path("cache/a%2Fb%20c.json")

    def test_keys_roundtrip_and_prefix(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        for key in ("plant_inat_1", "plant_toxic_Amanita phalloides", "search_abc"):
            store.write(store.key_path(key), {}, source="test")

        assert set(store.keys()) == {
            "plant_inat_1",
            "plant_toxic_Amanita phalloides",
            "search_abc",
        }
        assert list(store.keys("search_")) == ["search_abc"]

    def test_keys_empty_store(self, tmp_path: Path) -> None:
        assert list(DataStore(tmp_path).keys()) == []


class TestDataStoreDelete:
    def test_delete_existing(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        store.write(Path("cache/x.json"), {}, source="test")
        assert store.delete(Path("cache/x.json")) is True
        assert store.read(Path("cache/x.json")) is None

    def test_delete_missing(self, tmp_path: Path) -> None:
        assert DataStore(tmp_path).delete(Path("cache/x.json")) is False


class TestDataStoreQuota:
    """Byte quota emulating bounded browser storage."""

    def test_write_over_quota_raises(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path, quota_bytes=200)
        with pytest.raises(StorageQuotaExceeded):
            store.write(Path("cache/big.json"), "x" * 500, source="test")
        assert not (tmp_path / "cache" / "big.json").exists()

    def test_quota_error_is_oserror(self) -> None:
        assert issubclass(StorageQuotaExceeded, OSError)

    def test_overwrite_counts_replaced_file_once(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path, quota_bytes=600)
        store.write(Path("cache/x.json"), "x" * 300, source="test")
        # Replacing the same entry must not count the old bytes twice.
        store.write(Path("cache/x.json"), "y" * 300, source="test")
        assert store.read(Path("cache/x.json")) == "y" * 300

    def test_size_bytes(self, tmp_path: Path) -> None:
        store = DataStore(tmp_path)
        assert store.size_bytes() == 0
        path = store.write(Path("cache/x.json"), {"a": 1}, source="test")
        assert store.size_bytes() == path.stat().st_size
