"""Unit tests for the Elasticsearch adapter (mocked, no cluster required)."""
from __future__ import annotations

from datetime import date, datetime
from unittest.mock import MagicMock, patch

import pytest
import sqlalchemy as sa

from mp_auditlog.adapters.elasticsearch import ElasticSearchPersister, build_index_mapping
from mp_auditlog.adapters.elasticsearch.mapping import NULL_INTEGER, column_mapping
from mp_auditlog.events import AuditCreateEvent, AuditDeleteEvent, AuditUpdateEvent
from mp_auditlog.kernel.errors import ConfigurationError, PersistenceError

_GUARD = "mp_auditlog.adapters.elasticsearch.persister._require_elasticsearch"
_TS = "2024-05-01T10:00:00+00:00"


class _BulkIndexError(Exception):
    pass


class _ApiError(Exception):
    pass


class _TransportError(Exception):
    pass


def _make_mock_es(indexed: int = 0):
    mock_es = MagicMock()
    mock_es.helpers.BulkIndexError = _BulkIndexError
    mock_es.ApiError = _ApiError
    mock_es.TransportError = _TransportError
    mock_es.helpers.bulk.return_value = (indexed, [])
    return mock_es


def _events():
    return [
        AuditCreateEvent("tx", 1, "articles", {"title": "A"}, None, "A", timestamp=_TS),
        AuditDeleteEvent("tx", 2, "comments", None, {"body": "b"}, "b", parent_source="articles", timestamp=_TS),
    ]


# ===========================================================================
# Import guard / construction
# ===========================================================================


class TestElasticsearchImportError:
    def test_raises_import_error_without_lib(self):
        persister = ElasticSearchPersister(hosts=["http://localhost:9200"])
        with patch(_GUARD, side_effect=ImportError("mp-auditlog[elasticsearch]")):
            with pytest.raises(ImportError, match="elasticsearch"):
                persister.log_events(_events())


class TestConstruction:
    def test_needs_client_or_hosts(self):
        with pytest.raises(ConfigurationError):
            ElasticSearchPersister()

    def test_client_built_lazily_from_hosts(self):
        mock_es = _make_mock_es()
        persister = ElasticSearchPersister(hosts=["http://es:9200"])
        mock_es.Elasticsearch.assert_not_called()
        with patch(_GUARD, return_value=mock_es):
            client = persister.client
            assert persister.client is client
        mock_es.Elasticsearch.assert_called_once_with(hosts=["http://es:9200"])

    def test_given_client_is_used(self):
        client = MagicMock()
        assert ElasticSearchPersister(client=client).client is client


# ===========================================================================
# Documents and indices
# ===========================================================================


class TestDocuments:
    def test_index_defaults_to_source(self):
        persister = ElasticSearchPersister(client=MagicMock())
        assert persister.index_for(_events()[1]) == "comments"

    def test_fixed_index(self):
        persister = ElasticSearchPersister(client=MagicMock(), index="audits")
        assert persister.index_for(_events()[1]) == "audits"

    def test_per_source_override(self):
        persister = ElasticSearchPersister(client=MagicMock(), indices={"articles": "audit_articles"})
        events = _events()
        assert persister.index_for(events[0]) == "audit_articles"
        assert persister.index_for(events[1]) == "comments"

    def test_document_layout(self):
        event = AuditUpdateEvent(
            "tx", [1, 2], "articles_tags", {"a": 1}, {"a": 0}, "x",
            parent_source="articles", meta={"user": 7}, timestamp=_TS,
        )
        document = ElasticSearchPersister(client=MagicMock()).document(event)
        assert document == {
            "@timestamp": _TS,
            "transaction": "tx",
            "type": "update",
            "primary_key": [1, 2],
            "source": "articles_tags",
            "parent_source": "articles",
            "original": {"a": 0},
            "changed": {"a": 1},
            "meta": {"user": 7},
        }
        assert "display_value" not in document

    def test_dates_are_rendered(self):
        event = AuditCreateEvent(
            "tx", 1, "articles",
            {"published": date(2024, 5, 1), "seen": [datetime(2024, 5, 1, 10, 30, 5)]},
            None, timestamp=_TS,
        )
        document = ElasticSearchPersister(client=MagicMock()).document(event)
        assert document["changed"] == {"published": "2024-05-01", "seen": ["2024-05-01 10:30:05"]}
        assert document["original"] is None


# ===========================================================================
# Bulk indexing
# ===========================================================================


class TestLogEvents:
    def setup_method(self):
        self.mock_es = _make_mock_es(indexed=2)
        self.client = MagicMock()
        self._patcher = patch(_GUARD, return_value=self.mock_es)
        self._patcher.start()

    def teardown_method(self):
        self._patcher.stop()

    def test_single_bulk_request(self):
        persister = ElasticSearchPersister(client=self.client)
        persister.log_events(_events())
        self.mock_es.helpers.bulk.assert_called_once()
        args, kwargs = self.mock_es.helpers.bulk.call_args
        assert args[0] is self.client
        assert [a["_index"] for a in args[1]] == ["articles", "comments"]
        assert args[1][1]["_source"]["parent_source"] == "articles"
        assert kwargs == {"refresh": False}

    def test_refresh_flag(self):
        ElasticSearchPersister(client=self.client, refresh=True).log_events(_events())
        assert self.mock_es.helpers.bulk.call_args.kwargs["refresh"] is True

    def test_empty_batch_sends_nothing(self):
        ElasticSearchPersister(client=self.client).log_events([])
        self.mock_es.helpers.bulk.assert_not_called()

    @pytest.mark.parametrize("error", [_BulkIndexError, _ApiError, _TransportError])
    def test_failure_raises_persistence_error(self, error):
        self.mock_es.helpers.bulk.side_effect = error("boom")
        with pytest.raises(PersistenceError) as info:
            ElasticSearchPersister(client=self.client).log_events(_events())
        assert info.value.persister == "elasticsearch"
        assert info.value.batch_size == 2
        assert isinstance(info.value.__cause__, error)


# ===========================================================================
# Index mapping
# ===========================================================================


def _articles_table():
    return sa.Table(
        "articles",
        sa.MetaData(),
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("uuid", sa.Uuid),
        sa.Column("title", sa.String(255)),
        sa.Column("published", sa.Boolean),
        sa.Column("price", sa.Numeric(10, 2)),
        sa.Column("published_on", sa.Date),
        sa.Column("created", sa.DateTime),
    )


class TestIndexMapping:
    def test_column_types(self):
        columns = _articles_table().c
        assert column_mapping(columns.id) == {"type": "integer", "null_value": NULL_INTEGER}
        assert column_mapping(columns.uuid)["null_value"] == "_null_"
        assert column_mapping(columns.published) == {"type": "boolean"}
        assert column_mapping(columns.price)["type"] == "float"
        assert column_mapping(columns.published_on)["null_value"] == "0001-01-01"
        assert column_mapping(columns.created)["type"] == "date"

    def test_text_column_has_raw_subfield(self):
        mapping = column_mapping(_articles_table().c.title)
        assert mapping["type"] == "text"
        assert mapping["fields"]["raw"] == {"type": "text", "index": False}
        assert mapping["fields"]["title"] == {"type": "text"}

    def test_document_properties(self):
        mapping = build_index_mapping(_articles_table())["properties"]
        assert set(mapping) == {
            "@timestamp", "transaction", "type", "primary_key", "source",
            "parent_source", "original", "changed", "meta",
        }
        assert mapping["@timestamp"]["type"] == "date"
        assert mapping["original"] == mapping["changed"]
        assert set(mapping["meta"]["properties"]) == {"ip", "url", "user", "app_name"}

    def test_whitelist_and_blacklist(self):
        mapping = build_index_mapping(_articles_table(), whitelist=("id", "title", "created"), blacklist=("created",))
        assert set(mapping["properties"]["changed"]["properties"]) == {"id", "title"}
