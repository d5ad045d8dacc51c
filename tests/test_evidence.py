"""
Tests for the GO evidence code to ECO mapping.
"""
import pytest

from py_gaf_validator.evidence import EVIDENCE_TO_ECO, eco_for_references, evidence_to_eco
from py_gaf_validator.records import EVIDENCE_CODES


def test_default_mapping():
    assert evidence_to_eco("ISO") == "ECO:0000266"
    assert evidence_to_eco("IKR") == "ECO:0000320"
    assert evidence_to_eco("ND") == "ECO:0000307"


def test_every_evidence_code_has_a_default_row():
    missing = sorted(code for code in EVIDENCE_CODES if (code, None) not in EVIDENCE_TO_ECO)
    assert missing == [], f"No ECO mapping for {missing}"


@pytest.mark.parametrize("code, go_ref, expected", [
    ("IEA", "GO_REF:0000002", "ECO:0000256"),
    ("IEA", "GO_REF:0000108", "ECO:0000363"),
    ("IGC", "GO_REF:0000025", "ECO:0000354"),
    ("ISS", "GO_REF:0000012", "ECO:0000031"),
])
def test_go_ref_specific_row(code, go_ref, expected):
    assert evidence_to_eco(code, go_ref) == expected


def test_unmapped_go_ref_falls_back_to_code():
    assert evidence_to_eco("IEA", "GO_REF:0000999") == "ECO:0000501"
    # GO_REF:0000002 only refines IEA
    assert evidence_to_eco("IDA", "GO_REF:0000002") == "ECO:0000314"


def test_unknown_code():
    assert evidence_to_eco("XYZ") is None
    assert eco_for_references("XYZ", ["GO_REF:0000002"]) is None


def test_references_pick_the_go_ref_row():
    assert eco_for_references("IEA", ["PMID:1", "GO_REF:0000002"]) == "ECO:0000256"
    assert eco_for_references("IEA", ["PMID:1"]) == "ECO:0000501"
    assert eco_for_references("IEA", []) == "ECO:0000501"
