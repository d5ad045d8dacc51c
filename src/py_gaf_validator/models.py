# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Dict, FrozenSet, List, Optional, Tuple

from .evidence import eco_for_references

# A full URI. Prefixed forms are expanded by the ContextMap before they get here.
Identifier = str


class NodeKind(str, Enum):
    CLASS = "CLASS"
    PROPERTY = "PROPERTY"


class Severity(str, Enum):
    ERROR = "Error"
    WARNING = "Warning"


class Aspect(str, Enum):
    """GAF column 9: which branch of the ontology a term belongs to."""
    BIOLOGICAL_PROCESS = "P"
    MOLECULAR_FUNCTION = "F"
    CELLULAR_COMPONENT = "C"

    @property
    def namespace(self) -> str:
        return ASPECT_TO_NAMESPACE[self]

    @classmethod
    def from_namespace(cls, namespace: Optional[str]) -> Optional["Aspect"]:
        for aspect, ns in ASPECT_TO_NAMESPACE.items():
            if ns == namespace:
                return aspect
        return None


ASPECT_TO_NAMESPACE = {
    Aspect.BIOLOGICAL_PROCESS: "biological_process",
    Aspect.MOLECULAR_FUNCTION: "molecular_function",
    Aspect.CELLULAR_COMPONENT: "cellular_component",
}


class Synonym(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    scope: str  # hasExactSynonym, hasBroadSynonym, ...
    xrefs: Tuple[str, ...] = ()


class OntologyNode(BaseModel):
    """
    A class or property of the ontology, keyed by its full URI.
    """
    model_config = ConfigDict(frozen=True)

    id: Identifier
    kind: NodeKind = NodeKind.CLASS
    label: Optional[str] = None
    namespace: Optional[str] = None
    definition: Optional[str] = None
    deprecated: bool = False
    replaced_by: Optional[Identifier] = None
    synonyms: Tuple[Synonym, ...] = ()
    cross_references: FrozenSet[str] = frozenset()
    subsets: FrozenSet[Identifier] = frozenset()


class OntologyEdge(BaseModel):
    """
    A single subject-predicate-object assertion. The predicate is 'is_a' for the
    class hierarchy, otherwise a relation URI.
    """
    model_config = ConfigDict(frozen=True)

    subject: Identifier
    predicate: str
    object: Identifier


class AnnotationRecord(BaseModel):
    """
    One parsed GAF line. `columns` keeps the raw column values so that a record
    can be written back with only the fields a rule rewrote changed.
    """
    db: str
    object_id: str
    object_symbol: str
    qualifiers: FrozenSet[str] = frozenset()
    term: Identifier
    references: FrozenSet[str] = frozenset()
    evidence_code: str
    with_from: FrozenSet[str] = frozenset()
    aspect: Aspect
    object_name: str = ""
    synonyms: FrozenSet[str] = frozenset()
    object_type: str
    taxa: Tuple[str, ...]
    date: datetime.date
    assigned_by: str
    extensions: Tuple[Tuple[str, Identifier], ...] = ()
    gene_product_form: Optional[Identifier] = None
    line_number: int
    columns: Tuple[str, ...] = Field(default=(), repr=False)

    @property
    def negated(self) -> bool:
        return "NOT" in self.qualifiers

    @property
    def relations(self) -> List[str]:
        """Qualifier values other than NOT, sorted for stable messages."""
        return sorted(q for q in self.qualifiers if q != "NOT")

    @property
    def evidence_eco(self) -> Optional[str]:
        """ECO CURIE for the evidence code, refined by a GO_REF reference where one has its own mapping."""
        return eco_for_references(self.evidence_code, self.references)


class ValidationIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    rule_id: str
    severity: Severity
    line_number: int
    field: Optional[str] = None
    message: str


class Report(BaseModel):
    """
    The outcome of validating one annotation stream. Samples are kept in the
    order issues were recorded, capped per rule.
    """
    model_config = ConfigDict(frozen=True)

    name: str = ""
    total_records: int = 0
    malformed_records: int = 0
    counts_by_rule: Dict[str, int] = Field(default_factory=dict)
    counts_by_severity: Dict[Severity, int] = Field(default_factory=dict)
    samples: Tuple[ValidationIssue, ...] = ()

    @property
    def error_count(self) -> int:
        return self.counts_by_severity.get(Severity.ERROR, 0)

    @property
    def warning_count(self) -> int:
        return self.counts_by_severity.get(Severity.WARNING, 0)
