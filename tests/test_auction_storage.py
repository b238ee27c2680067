"""
Unit tests for the SQLite ordered map.

Tests point get/insert/remove, key-ordered enumeration, persistence across
reopen, slot limits and fault reporting.
"""

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

import pytest
from auctions.errors import StorageFault
from auctions.storage import SQLiteOrderedMap


class TestOrderedMapOperations:
    """Test basic map operations"""

    def test_get_missing(self):
        ordered_map = SQLiteOrderedMap()
        assert ordered_map.get("missing") is None
        assert "missing" not in ordered_map

    def test_insert_and_get(self):
        ordered_map = SQLiteOrderedMap()

        previous = ordered_map.insert("k1", {"value": 1})

        assert previous is None
        assert ordered_map.get("k1") == {"value": 1}
        assert "k1" in ordered_map
        assert len(ordered_map) == 1

    def test_insert_replaces(self):
        """Insert returns the replaced value"""
        ordered_map = SQLiteOrderedMap()
        ordered_map.insert("k1", {"value": 1})

        previous = ordered_map.insert("k1", {"value": 2})

        assert previous == {"value": 1}
        assert ordered_map.get("k1") == {"value": 2}
        assert len(ordered_map) == 1

    def test_remove(self):
        ordered_map = SQLiteOrderedMap()
        ordered_map.insert("k1", {"value": 1})

        assert ordered_map.remove("k1") == {"value": 1}
        assert ordered_map.get("k1") is None
        assert ordered_map.remove("k1") is None

    def test_values_in_key_order(self):
        ordered_map = SQLiteOrderedMap()
        for key in ["c", "a", "b"]:
            ordered_map.insert(key, {"key": key})

        assert [v["key"] for v in ordered_map.values()] == ["a", "b", "c"]


class TestOrderedMapLimits:
    """Test key and value slot limits"""

    def test_key_too_large(self):
        ordered_map = SQLiteOrderedMap(max_key_bytes=44)

        with pytest.raises(ValueError):
            ordered_map.insert("k" * 45, {"value": 1})

    def test_value_too_large(self):
        ordered_map = SQLiteOrderedMap(max_value_bytes=64)

        with pytest.raises(ValueError):
            ordered_map.insert("k1", {"value": "x" * 100})

        assert ordered_map.get("k1") is None

    def test_invalid_table_name(self):
        with pytest.raises(ValueError):
            SQLiteOrderedMap(table="auctions; DROP TABLE x")


class TestOrderedMapPersistence:
    """Test durability and fault handling"""

    def test_reopen_keeps_values(self, tmp_path):
        db_path = tmp_path / "map.db"

        first = SQLiteOrderedMap(db_path)
        first.insert("k1", {"value": 1})
        first.close()

        second = SQLiteOrderedMap(db_path)
        assert second.get("k1") == {"value": 1}
        second.close()

    def test_undecodable_value(self):
        ordered_map = SQLiteOrderedMap()
        with ordered_map.conn:
            ordered_map.conn.execute(
                "INSERT INTO auctions (key, value) VALUES (?, ?)", ("k1", "{not json")
            )

        with pytest.raises(StorageFault):
            ordered_map.get("k1")

    def test_closed_connection_faults(self):
        ordered_map = SQLiteOrderedMap()
        ordered_map.close()

        with pytest.raises(StorageFault):
            ordered_map.values()

    def test_unopenable_path(self, tmp_path):
        with pytest.raises(StorageFault):
            SQLiteOrderedMap(tmp_path / "missing" / "map.db")
