# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
GO evidence codes and the Evidence & Conclusion Ontology (ECO) classes they
stand for.

Most codes map to a single ECO class. A few IEA, IGC and ISS annotations are
made by a named pipeline, cited by its GO_REF, and map to a more specific
class; those rows are keyed by the code and the GO_REF together.
"""
from typing import Dict, Iterable, Optional, Tuple

GO_REF_PREFIX = "GO_REF:"

EVIDENCE_TO_ECO: Dict[Tuple[str, Optional[str]], str] = {
    ("EXP", None): "ECO:0000269",
    ("HDA", None): "ECO:0007005",
    ("HEP", None): "ECO:0007007",
    ("HGI", None): "ECO:0007003",
    ("HMP", None): "ECO:0007001",
    ("HTP", None): "ECO:0006056",
    ("IBA", None): "ECO:0000318",
    ("IBD", None): "ECO:0000319",
    ("IC", None): "ECO:0000305",
    ("IDA", None): "ECO:0000314",
    ("IEA", None): "ECO:0000501",
    ("IEA", "GO_REF:0000002"): "ECO:0000256",
    ("IEA", "GO_REF:0000003"): "ECO:0000501",
    ("IEA", "GO_REF:0000004"): "ECO:0000501",
    ("IEA", "GO_REF:0000019"): "ECO:0000265",
    ("IEA", "GO_REF:0000020"): "ECO:0000265",
    ("IEA", "GO_REF:0000023"): "ECO:0000501",
    ("IEA", "GO_REF:0000035"): "ECO:0000265",
    ("IEA", "GO_REF:0000037"): "ECO:0000322",
    ("IEA", "GO_REF:0000038"): "ECO:0000323",
    ("IEA", "GO_REF:0000039"): "ECO:0000322",
    ("IEA", "GO_REF:0000040"): "ECO:0000323",
    ("IEA", "GO_REF:0000041"): "ECO:0000322",
    ("IEA", "GO_REF:0000049"): "ECO:0000265",
    ("IEA", "GO_REF:0000107"): "ECO:0000256",
    ("IEA", "GO_REF:0000108"): "ECO:0000363",
    ("IEP", None): "ECO:0000270",
    ("IGC", None): "ECO:0000317",
    ("IGC", "GO_REF:0000025"): "ECO:0000354",
    ("IGI", None): "ECO:0000316",
    ("IKR", None): "ECO:0000320",
    ("IMP", None): "ECO:0000315",
    ("IMR", None): "ECO:0000320",
    ("IPI", None): "ECO:0000353",
    ("IRD", None): "ECO:0000321",
    ("ISA", None): "ECO:0000247",
    ("ISM", None): "ECO:0000255",
    ("ISO", None): "ECO:0000266",
    ("ISS", None): "ECO:0000250",
    ("ISS", "GO_REF:0000011"): "ECO:0000255",
    ("ISS", "GO_REF:0000012"): "ECO:0000031",
    ("ISS", "GO_REF:0000027"): "ECO:0000031",
    ("NAS", None): "ECO:0000303",
    ("ND", None): "ECO:0000307",
    ("RCA", None): "ECO:0000245",
    ("TAS", None): "ECO:0000304",
}


def evidence_to_eco(evidence_code: str, go_ref: Optional[str] = None) -> Optional[str]:
    """
    Returns the ECO CURIE for an evidence code, preferring the row for the
    given GO_REF and falling back to the code's default row. None when the
    code is not a GO evidence code.
    """
    if go_ref is not None and (evidence_code, go_ref) in EVIDENCE_TO_ECO:
        return EVIDENCE_TO_ECO[(evidence_code, go_ref)]
    return EVIDENCE_TO_ECO.get((evidence_code, None))


def eco_for_references(evidence_code: str, references: Iterable[str]) -> Optional[str]:
    """Picks the ECO class for an annotation from its evidence code and the GO_REFs among its references."""
    for reference in sorted(references):
        if reference.startswith(GO_REF_PREFIX) and (evidence_code, reference) in EVIDENCE_TO_ECO:
            return EVIDENCE_TO_ECO[(evidence_code, reference)]
    return evidence_to_eco(evidence_code)
