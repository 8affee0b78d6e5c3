"""Elasticsearch adapter – ElasticSearchPersister and index mapping builder."""
from mp_auditlog.adapters.elasticsearch.mapping import build_index_mapping
from mp_auditlog.adapters.elasticsearch.persister import ElasticSearchPersister

__all__ = ["ElasticSearchPersister", "build_index_mapping"]
