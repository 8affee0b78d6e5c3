"""Unit tests for the audit event model and EventFactory."""

from __future__ import annotations

import json
import pickle
from datetime import date, datetime
from decimal import Decimal

import pytest

from mp_auditlog.events import (
    AuditCreateEvent,
    AuditDeleteEvent,
    AuditEvent,
    AuditUpdateEvent,
    EventFactory,
    EventType,
)
from mp_auditlog.kernel.errors import SerializationError, UnknownEventTypeError


def _round_trip(event: AuditEvent) -> AuditEvent:
    return EventFactory().create(json.loads(event.to_json()))


# ---------------------------------------------------------------------------
# Construction invariants
# ---------------------------------------------------------------------------


class TestEventConstruction:
    def test_event_types(self) -> None:
        assert AuditCreateEvent("t", 1, "articles", {}, None).get_event_type() == "create"
        assert AuditUpdateEvent("t", 1, "articles", {}, {}).get_event_type() == "update"
        assert AuditDeleteEvent("t", 1, "articles", None, {}).get_event_type() == "delete"

    def test_base_class_is_abstract(self) -> None:
        with pytest.raises(TypeError):
            AuditEvent("t", 1, "articles", {}, None)

    def test_create_discards_original(self) -> None:
        event = AuditCreateEvent("t", 1, "articles", {"title": "A"}, {"title": "B"})
        assert event.original is None

    def test_delete_discards_changed(self) -> None:
        event = AuditDeleteEvent("t", 1, "articles", {"title": "A"}, {"title": "B"})
        assert event.changed is None
        assert event.get_original() == {"title": "B"}

    def test_single_column_key_is_scalar(self) -> None:
        assert AuditCreateEvent("t", [13], "articles", {}, None).get_id() == 13

    def test_composite_key_is_list(self) -> None:
        assert AuditCreateEvent("t", (1, 2), "articles_tags", {}, None).get_id() == [1, 2]

    def test_timestamp_format(self) -> None:
        timestamp = AuditCreateEvent("t", 1, "articles", {}, None).get_timestamp()
        assert timestamp.endswith("+00:00")
        assert datetime.fromisoformat(timestamp).microsecond == 0

    def test_accessors(self) -> None:
        event = AuditUpdateEvent("tx", 5, "articles", {"title": "New"}, {"title": "Old"}, "New")
        assert event.get_transaction_id() == "tx"
        assert event.get_source_name() == "articles"
        assert event.get_changed() == {"title": "New"}
        assert event.get_original() == {"title": "Old"}
        assert event.get_display_value() == "New"
        assert event.get_parent_source_name() is None
        event.set_parent_source_name("authors")
        assert event.get_parent_source_name() == "authors"

    def test_equality_is_structural(self) -> None:
        a = AuditCreateEvent("t", 1, "articles", {"x": 1}, None, timestamp="2024-05-01T10:00:00+00:00")
        b = AuditCreateEvent("t", 1, "articles", {"x": 1}, None, timestamp="2024-05-01T10:00:00+00:00")
        assert a == b
        assert a is not b

    def test_different_variants_are_not_equal(self) -> None:
        ts = "2024-05-01T10:00:00+00:00"
        assert AuditCreateEvent("t", 1, "a", {}, None, timestamp=ts) != AuditUpdateEvent("t", 1, "a", {}, None, timestamp=ts)


class TestMetaInfo:
    def test_meta_defaults_to_none(self) -> None:
        assert AuditCreateEvent("t", 1, "a", {}, None).get_meta_info() is None

    def test_set_meta_info(self) -> None:
        event = AuditCreateEvent("t", 1, "a", {}, None)
        event.set_meta_info({"user": 7})
        assert event.get_meta_info() == {"user": 7}
        event.set_meta_info(None)
        assert event.get_meta_info() is None

    def test_merge_keeps_existing_keys(self) -> None:
        event = AuditCreateEvent("t", 1, "a", {}, None, meta={"user": "alice"})
        event.merge_meta_info({"user": "bob", "ip": "10.0.0.1"})
        assert event.get_meta_info() == {"user": "alice", "ip": "10.0.0.1"}

    def test_merge_into_none(self) -> None:
        event = AuditCreateEvent("t", 1, "a", {}, None)
        event.merge_meta_info({"app_name": "blog"})
        assert event.get_meta_info() == {"app_name": "blog"}


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


class TestSerialization:
    def test_to_dict_layout(self) -> None:
        event = AuditUpdateEvent(
            "tx", 5, "articles", {"title": "New"}, {"title": "Old"}, "New",
            parent_source="authors", meta={"user": 1}, timestamp="2024-05-01T10:00:00+00:00",
        )
        assert event.to_dict() == {
            "type": "update",
            "transaction": "tx",
            "primary_key": 5,
            "source": "articles",
            "parent_source": "authors",
            "display_value": "New",
            "original": {"title": "Old"},
            "changed": {"title": "New"},
            "meta": {"user": 1},
            "@timestamp": "2024-05-01T10:00:00+00:00",
        }

    def test_to_json_renders_dates_and_decimals(self) -> None:
        event = AuditCreateEvent(
            "t", 1, "a", {"published": date(2024, 5, 1), "price": Decimal("9.90")}, None
        )
        payload = json.loads(event.to_json())
        assert payload["changed"] == {"published": "2024-05-01", "price": "9.90"}

    def test_to_json_unencodable_value(self) -> None:
        event = AuditCreateEvent("t", 1, "a", {"blob": object()}, None)
        with pytest.raises(SerializationError):
            event.to_json()

    @pytest.mark.parametrize(
        "event",
        [
            AuditCreateEvent("tx", 13, "articles", {"id": 13, "title": "T"}, None, "T"),
            AuditUpdateEvent("tx", [1, 2], "articles_tags", {"a": 1}, {"a": 0}, None, parent_source="articles"),
            AuditDeleteEvent("tx", 2, "comments", None, {"body": "b"}, "b", meta={"ip": "::1"}),
            AuditUpdateEvent("tx", 3, "articles", {}, {}, None, meta={}),
        ],
        ids=["create", "update-composite", "delete-meta", "empty-changes"],
    )
    def test_round_trip(self, event: AuditEvent) -> None:
        restored = _round_trip(event)
        assert restored == event
        assert type(restored) is type(event)

    def test_round_trip_keeps_none_and_empty_apart(self) -> None:
        with_none = AuditUpdateEvent("tx", 1, "a", {"x": 1}, {"x": 0}, None)
        with_empty = AuditUpdateEvent("tx", 1, "a", {"x": 1}, {"x": 0}, None, meta={})
        assert _round_trip(with_none).get_meta_info() is None
        assert _round_trip(with_empty).get_meta_info() == {}

    def test_pickle(self) -> None:
        event = AuditCreateEvent("tx", 1, "a", {"x": 1}, None, meta={"user": 1})
        assert pickle.loads(pickle.dumps(event)) == event


class TestEventFactory:
    def test_restores_persisted_timestamp(self) -> None:
        record = AuditCreateEvent("tx", 1, "a", {}, None).to_dict()
        record["@timestamp"] = "2001-01-01T00:00:00+00:00"
        assert EventFactory().create(record).get_timestamp() == "2001-01-01T00:00:00+00:00"

    def test_dispatches_on_type(self) -> None:
        record = AuditDeleteEvent("tx", 1, "a", None, {"x": 1}).to_dict()
        assert isinstance(EventFactory().create(record), AuditDeleteEvent)

    def test_event_classes_cover_every_type(self) -> None:
        assert set(EventFactory.EVENT_CLASSES) == set(EventType)

    def test_unknown_type(self) -> None:
        record = AuditCreateEvent("tx", 1, "a", {}, None).to_dict()
        record["type"] = "upsert"
        with pytest.raises(UnknownEventTypeError):
            EventFactory().create(record)

    def test_missing_type(self) -> None:
        record = AuditCreateEvent("tx", 1, "a", {}, None).to_dict()
        del record["type"]
        with pytest.raises(UnknownEventTypeError):
            EventFactory().create(record)

    def test_missing_required_key(self) -> None:
        record = AuditCreateEvent("tx", 1, "a", {}, None).to_dict()
        del record["source"]
        with pytest.raises(SerializationError, match="source"):
            EventFactory().create(record)

    def test_create_many_keeps_order(self) -> None:
        events = [
            AuditCreateEvent("tx", 1, "a", {}, None),
            AuditDeleteEvent("tx", 2, "b", None, {}),
        ]
        restored = EventFactory().create_many([e.to_dict() for e in events])
        assert restored == events
