"""Tests for canonical JSON value encoding."""

import enum
from dataclasses import dataclass
from datetime import date
from uuid import UUID

from sandbox_cache.domain.documents import encoding


class Status(enum.Enum):
    ACTIVE = "active"


@dataclass
class Point:
    x: int
    y: int


class TestNormalize:

    def test_tuples_become_lists(self):
        assert encoding.normalize({"a": (1, 2)}) == {"a": [1, 2]}

    def test_non_string_keys_become_strings(self):
        assert encoding.normalize({1: "one", Status.ACTIVE: True}) == {"1": "one", "active": True}

    def test_enum_values(self):
        assert encoding.normalize([Status.ACTIVE]) == ["active"]

    def test_dates_uuids_and_dataclasses(self):
        uid = UUID("12345678-1234-5678-1234-567812345678")
        value = {"day": date(2024, 1, 2), "id": uid, "point": Point(1, 2)}

        assert encoding.normalize(value) == {
            "day": "2024-01-02",
            "id": "12345678-1234-5678-1234-567812345678",
            "point": {"x": 1, "y": 2},
        }

    def test_plain_json_unchanged(self):
        value = {"a": [1, 2.5, None, True, "s"]}
        assert encoding.normalize(value) == value


class TestDecode:

    def test_none(self):
        assert encoding.decode(None) is None

    def test_json_string(self):
        assert encoding.decode('{"a": 1}') == {"a": 1}

    def test_bytes(self):
        assert encoding.decode(b"[1, 2]") == [1, 2]

    def test_non_json_returned_unchanged(self):
        assert encoding.decode("not json") == "not json"
        assert encoding.decode(5) == 5
