"""
Tests for the prefix context: loading, CURIE expansion and compression.
"""
import json
import pickle

import pytest

from py_gaf_validator.context import ContextMap, load_context, split_curie
from py_gaf_validator.errors import ContextLoadError, DuplicatePrefix, MalformedCurie, UnknownPrefix

GO = "http://purl.obolibrary.org/obo/GO_"


def test_expand_and_compress(context: ContextMap):
    assert context.expand("GO:0006915") == GO + "0006915"
    assert context.compress(GO + "0006915") == "GO:0006915"


def test_expand_unknown_prefix_raises(context: ContextMap):
    with pytest.raises(UnknownPrefix) as excinfo:
        context.expand("FB:FBgn0000001")
    assert excinfo.value.prefix == "FB"
    # UnknownPrefix is a KeyError for callers doing mapping-style lookups
    assert isinstance(excinfo.value, KeyError)


@pytest.mark.parametrize("curie", ["GO0006915", ":0006915", "GO:", "GO: 0006915", ""])
def test_malformed_curie(curie):
    with pytest.raises(MalformedCurie):
        split_curie(curie)


def test_split_curie_splits_on_first_colon():
    assert split_curie("GO_REF:0000033") == ("GO_REF", "0000033")
    assert split_curie("MGI:MGI:98834") == ("MGI", "MGI:98834")


def test_compress_prefers_longest_base():
    """An OBO-wide base and a GO-specific base both match; GO should win."""
    context = ContextMap.from_document({"obo": "http://purl.obolibrary.org/obo/", "GO": GO})
    assert context.compress(GO + "0005634") == "GO:0005634"
    assert context.compress("http://purl.obolibrary.org/obo/CL_0000540") == "obo:CL_0000540"


def test_compress_unmatched_uri_is_unchanged(context: ContextMap):
    uri = "https://example.org/thing/1"
    assert context.compress(uri) == uri


def test_from_document_accepts_flat_mapping():
    context = ContextMap.from_document({"GO": GO})
    assert "GO" in context
    assert len(context) == 1


def test_non_string_value_is_a_load_error():
    with pytest.raises(ContextLoadError):
        ContextMap.from_document({"@context": {"GO": {"@id": GO}}})


def test_mapping_is_read_only(context: ContextMap):
    with pytest.raises(TypeError):
        context.mapping["GO"] = "http://example.org/"


def test_load_context_rejects_duplicate_prefix(tmp_path):
    path = tmp_path / "context.jsonld"
    path.write_text('{"@context": {"GO": "%s", "GO": "http://example.org/go/"}}' % GO)
    with pytest.raises(DuplicatePrefix) as excinfo:
        load_context(path)
    assert excinfo.value.prefix == "GO"
    assert str(path) in str(excinfo.value)


def test_load_context_rejects_duplicate_prefix_in_flat_document(tmp_path):
    path = tmp_path / "context.json"
    path.write_text('{"GO": "%s", "GO": "http://example.org/go/"}' % GO)
    with pytest.raises(DuplicatePrefix):
        load_context(path)


def test_load_context_invalid_json(tmp_path):
    path = tmp_path / "context.jsonld"
    path.write_text("{not json")
    with pytest.raises(ContextLoadError):
        load_context(path)


def test_load_context_from_file(tmp_path):
    path = tmp_path / "context.jsonld"
    path.write_text(json.dumps({"@context": {"GO": GO, "PMID": "http://www.ncbi.nlm.nih.gov/pubmed/"}}))
    context = load_context(path)
    assert context.source == str(path)
    assert context.expand("PMID:123") == "http://www.ncbi.nlm.nih.gov/pubmed/123"


def test_context_survives_pickling(context: ContextMap):
    """Worker processes receive the context by pickling."""
    restored = pickle.loads(pickle.dumps(context))
    assert dict(restored.mapping) == dict(context.mapping)
    assert restored.compress(GO + "0005634") == "GO:0005634"
