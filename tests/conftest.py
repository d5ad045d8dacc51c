import copy
import json
from pathlib import Path

import pytest

from py_gaf_validator.context import ContextMap
from py_gaf_validator.ontology import OntologyGraph
from py_gaf_validator.records import parse_line

OBO = "http://purl.obolibrary.org/obo/"
GO = OBO + "GO_"


def _node(local_id, label, namespace, deprecated=False, replaced_by=None, deprecated_as_property=False, subsets=()):
    """Builds one OBO Graphs JSON node, the way go.json writes them."""
    property_values = [{
        "pred": "http://www.geneontology.org/formats/oboInOwl#hasOBONamespace",
        "val": namespace,
    }]
    meta = {"basicPropertyValues": property_values}
    if deprecated and deprecated_as_property:
        property_values.append({"pred": "http://www.w3.org/2002/07/owl#deprecated", "val": "true"})
    elif deprecated:
        meta["deprecated"] = True
    if replaced_by:
        property_values.append({"pred": "http://purl.obolibrary.org/obo/IAO_0100001", "val": replaced_by})
    if subsets:
        meta["subsets"] = list(subsets)
    return {"id": GO + local_id, "lbl": label, "type": "CLASS", "meta": meta}


def _is_a(child, parent):
    return {"sub": GO + child, "pred": "is_a", "obj": GO + parent}


ONTOLOGY_DOCUMENT = {
    "graphs": [{
        "id": "http://purl.obolibrary.org/obo/go.owl",
        "nodes": [
            _node("0008150", "biological_process", "biological_process"),
            _node("0003674", "molecular_function", "molecular_function"),
            _node("0005575", "cellular_component", "cellular_component"),
            _node("0006915", "apoptotic process", "biological_process",
                  subsets=[OBO + "go#goslim_generic"]),
            _node("0000001", "obsolete apoptosis", "biological_process",
                  deprecated=True, replaced_by="GO:0006915"),
            _node("0000002", "obsolete cell death thing", "biological_process",
                  deprecated=True, deprecated_as_property=True),
            _node("0005488", "binding", "molecular_function"),
            _node("0005515", "protein binding", "molecular_function"),
            _node("0005634", "nucleus", "cellular_component"),
        ],
        "edges": [
            _is_a("0006915", "0008150"),
            _is_a("0005488", "0003674"),
            _is_a("0005515", "0005488"),
            _is_a("0005634", "0005575"),
            {"sub": GO + "0005634", "pred": "http://purl.obolibrary.org/obo/BFO_0000050", "obj": GO + "0005575"},
        ],
    }]
}

CONTEXT_DOCUMENT = {
    "@context": {
        "GO": GO,
        "UniProtKB": "http://identifiers.org/uniprot/",
        "PMID": "http://www.ncbi.nlm.nih.gov/pubmed/",
        "GO_REF": "http://purl.obolibrary.org/obo/go/references/",
        "CL": OBO + "CL_",
        "PR": OBO + "PR_",
    }
}

# Column values of a GAF line that passes every rule, keyed by record field name
GAF_FIELDS = (
    "db", "object_id", "object_symbol", "qualifiers", "term", "references",
    "evidence_code", "with_from", "aspect", "object_name", "synonyms",
    "object_type", "taxa", "date", "assigned_by", "extensions", "gene_product_form",
)
VALID_COLUMNS = {
    "db": "UniProtKB",
    "object_id": "P04637",
    "object_symbol": "TP53",
    "qualifiers": "involved_in",
    "term": "GO:0006915",
    "references": "PMID:15314173",
    "evidence_code": "IDA",
    "with_from": "",
    "aspect": "P",
    "object_name": "Cellular tumor antigen p53",
    "synonyms": "P53|TP53_HUMAN",
    "object_type": "protein",
    "taxa": "taxon:9606",
    "date": "20240115",
    "assigned_by": "UniProt",
    "extensions": "",
    "gene_product_form": "",
}


@pytest.fixture
def ontology_document() -> dict:
    return copy.deepcopy(ONTOLOGY_DOCUMENT)


@pytest.fixture
def ontology(ontology_document) -> OntologyGraph:
    return OntologyGraph.from_document(ontology_document, policy="strict", replacement_depth_bound=10)


@pytest.fixture
def context() -> ContextMap:
    return ContextMap.from_document(CONTEXT_DOCUMENT)


@pytest.fixture
def make_line():
    """Returns a function building a tab-separated GAF line, with column overrides by field name."""
    def _make(**overrides) -> str:
        columns = dict(VALID_COLUMNS)
        columns.update(overrides)
        return "\t".join(columns[name] for name in GAF_FIELDS)
    return _make


@pytest.fixture
def make_record(make_line, context):
    """Returns a function parsing a GAF line built from overrides into a record."""
    def _make(line_number: int = 1, **overrides):
        return parse_line(make_line(**overrides), line_number, context)
    return _make


@pytest.fixture
def input_files(tmp_path: Path, ontology_document):
    """Writes the ontology and context documents to disk. Returns their paths."""
    ontology_path = tmp_path / "go.json"
    context_path = tmp_path / "go_context.jsonld"
    ontology_path.write_text(json.dumps(ontology_document))
    context_path.write_text(json.dumps(CONTEXT_DOCUMENT))
    return ontology_path, context_path
