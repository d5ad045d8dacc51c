# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Validation rules for annotation records.

Each rule is a plain value with a `rule_id`, a `title` and an
`evaluate(record, ontology, context)` method returning a RuleOutcome. The
engine runs the tuple returned by `build_rules` in order, handing every rule
the record as corrected by the rules before it.

Rule ids and the GO rules they follow:
  term-existence           every term must be in the ontology
  deprecated-term          GORULE:0000020, repair obsolete terms
  aspect-namespace         aspect column agrees with the term's namespace
  nd-root-only             GORULE:0000011, ND only to the three roots
  no-not-protein-binding   GORULE:0000002
  evidence-with-from       GORULE:0000018 and friends, table driven
  qualifier-legality       GAF 2.2 relation vocabulary
  taxon-well-formed        one taxon, or two for interacting-taxon evidence
  reference-presence       at least one reference
"""
from typing import FrozenSet, List, Mapping, NamedTuple, Optional, Tuple

from .config import Settings, WithFromRequirement, settings as default_settings
from .context import ContextMap
from .errors import UnresolvableDeprecation
from .models import Aspect, AnnotationRecord, Severity, ValidationIssue
from .ontology import OntologyGraph
from .records import TAXON_PATTERN

# Issues for lines that never became a record
MALFORMED_RECORD = "malformed-record"

NEGATION = "NOT"

# GAF 2.2 gene product to term relations and the aspect each one is valid for.
# http://geneontology.org/docs/go-annotation-file-gaf-format-2.2/#qualifier-column-4
QUALIFIER_RELATION_ASPECT = {
    # Molecular function
    "enables": Aspect.MOLECULAR_FUNCTION,
    "contributes_to": Aspect.MOLECULAR_FUNCTION,
    # Biological process
    "involved_in": Aspect.BIOLOGICAL_PROCESS,
    "acts_upstream_of": Aspect.BIOLOGICAL_PROCESS,
    "acts_upstream_of_positive_effect": Aspect.BIOLOGICAL_PROCESS,
    "acts_upstream_of_negative_effect": Aspect.BIOLOGICAL_PROCESS,
    "acts_upstream_of_or_within": Aspect.BIOLOGICAL_PROCESS,
    "acts_upstream_of_or_within_positive_effect": Aspect.BIOLOGICAL_PROCESS,
    "acts_upstream_of_or_within_negative_effect": Aspect.BIOLOGICAL_PROCESS,
    # Cellular component
    "located_in": Aspect.CELLULAR_COMPONENT,
    "part_of": Aspect.CELLULAR_COMPONENT,
    "is_active_in": Aspect.CELLULAR_COMPONENT,
    "colocalizes_with": Aspect.CELLULAR_COMPONENT,
}


class RuleOutcome(NamedTuple):
    issues: Tuple[ValidationIssue, ...] = ()
    corrected: Optional[AnnotationRecord] = None


PASS = RuleOutcome()


def _issue(rule_id: str, severity: Severity, record: AnnotationRecord, message: str, field: Optional[str] = None) -> ValidationIssue:
    return ValidationIssue(
        rule_id=rule_id,
        severity=severity,
        line_number=record.line_number,
        field=field,
        message=message,
    )


class TermExistenceRule:
    rule_id = "term-existence"
    title = "Annotated term must exist in the ontology"

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        if record.term in ontology:
            return PASS
        return RuleOutcome(issues=(
            _issue(self.rule_id, Severity.ERROR, record,
                   f"{context.compress(record.term)} is not in the ontology", field="term"),
        ))


class DeprecatedTermRule:
    """
    Replaces a deprecated term with the current term at the end of its
    replacement chain. The original term is kept when the chain cannot be
    resolved.
    """
    rule_id = "deprecated-term"
    title = "Deprecated terms are replaced with their current term"

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        node = ontology.get(record.term)
        if node is None or not node.deprecated:
            return PASS

        term = context.compress(record.term)
        try:
            current = ontology.resolve_current(record.term)
        except UnresolvableDeprecation as e:
            return RuleOutcome(issues=(
                _issue(self.rule_id, Severity.ERROR, record,
                       f"{term} is deprecated and cannot be repaired: {e.reason}", field="term"),
            ))

        return RuleOutcome(
            issues=(
                _issue(self.rule_id, Severity.WARNING, record,
                       f"{term} is deprecated, replaced with {context.compress(current)}", field="term"),
            ),
            corrected=record.model_copy(update={"term": current}),
        )


class AspectNamespaceRule:
    rule_id = "aspect-namespace"
    title = "Aspect must match the namespace of the term"

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        if record.term not in ontology:
            return PASS
        namespace = ontology.namespace_of(record.term)
        if namespace is None:
            return PASS
        if ontology.aspect_of(record.term) == record.aspect:
            return PASS
        return RuleOutcome(issues=(
            _issue(self.rule_id, Severity.ERROR, record,
                   f"aspect {record.aspect.value} ({record.aspect.namespace}) does not match "
                   f"{context.compress(record.term)} in {namespace}", field="aspect"),
        ))


class NdRootOnlyRule:
    """ND (no biological data) annotations go to the root terms, and only ND goes there."""
    rule_id = "nd-root-only"
    title = "ND evidence is only used with root terms"

    def __init__(self, root_terms: FrozenSet[str]):
        self.root_terms = frozenset(root_terms)

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        # Unknown terms are reported once, by term-existence
        if record.term not in ontology:
            return PASS
        is_root = record.term in self.root_terms
        term = context.compress(record.term)
        if record.evidence_code == "ND" and not is_root:
            return RuleOutcome(issues=(
                _issue(self.rule_id, Severity.ERROR, record,
                       f"ND evidence used with {term}, which is not a root term", field="term"),
            ))
        if record.evidence_code != "ND" and is_root:
            return RuleOutcome(issues=(
                _issue(self.rule_id, Severity.ERROR, record,
                       f"root term {term} used with {record.evidence_code} evidence instead of ND",
                       field="evidence_code"),
            ))
        return PASS


class NoNotProteinBindingRule:
    rule_id = "no-not-protein-binding"
    title = "NOT annotations to protein binding are not informative"

    def __init__(self, protein_binding_term: str):
        self.protein_binding_term = protein_binding_term

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        if record.term not in ontology:
            return PASS
        if record.negated and record.term == self.protein_binding_term:
            return RuleOutcome(issues=(
                _issue(self.rule_id, Severity.WARNING, record,
                       f"NOT qualifier used with {context.compress(record.term)}", field="qualifiers"),
            ))
        return PASS


class EvidenceWithFromRule:
    """Checks the With/From column against a per evidence code requirement table."""
    rule_id = "evidence-with-from"
    title = "Evidence code and With/From column agree"

    def __init__(self, table: Mapping[str, WithFromRequirement]):
        self.table = dict(table)

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        requirement = self.table.get(record.evidence_code)
        if requirement is None:
            return PASS
        severity = Severity(requirement.severity)
        if requirement.requirement == "required" and not record.with_from:
            return RuleOutcome(issues=(
                _issue(self.rule_id, severity, record,
                       f"{record.evidence_code} evidence requires a With/From value", field="with_from"),
            ))
        if requirement.requirement == "forbidden" and record.with_from:
            return RuleOutcome(issues=(
                _issue(self.rule_id, severity, record,
                       f"{record.evidence_code} evidence must not have a With/From value, found "
                       f"{', '.join(sorted(record.with_from))}", field="with_from"),
            ))
        return PASS


class QualifierLegalityRule:
    rule_id = "qualifier-legality"
    title = "Qualifiers come from the GAF vocabulary and suit the aspect"

    def __init__(self, negation_disallowed_evidence: FrozenSet[str]):
        self.negation_disallowed_evidence = frozenset(negation_disallowed_evidence)

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        issues: List[ValidationIssue] = []
        relations = record.relations

        unknown = [q for q in relations if q not in QUALIFIER_RELATION_ASPECT]
        if unknown:
            issues.append(_issue(self.rule_id, Severity.ERROR, record,
                                 f"unknown qualifier(s): {', '.join(unknown)}", field="qualifiers"))

        if len(relations) > 1:
            issues.append(_issue(self.rule_id, Severity.ERROR, record,
                                 f"only one relation is allowed, found {', '.join(relations)}", field="qualifiers"))

        for relation in relations:
            aspect = QUALIFIER_RELATION_ASPECT.get(relation)
            if aspect is not None and aspect != record.aspect:
                issues.append(_issue(self.rule_id, Severity.ERROR, record,
                                     f"{relation} is a {aspect.namespace} relation but the aspect is "
                                     f"{record.aspect.value}", field="qualifiers"))

        if record.negated and record.evidence_code in self.negation_disallowed_evidence:
            issues.append(_issue(self.rule_id, Severity.WARNING, record,
                                 f"NOT qualifier used with {record.evidence_code} evidence", field="qualifiers"))

        return RuleOutcome(issues=tuple(issues))


class TaxonWellFormedRule:
    """
    Checks the taxon count against the evidence code.

    parse_line already rejects a malformed taxon as a malformed record, so
    the syntax check below only fires for records built directly, without
    going through parse_line (model_validate, or a corrected copy).
    """
    rule_id = "taxon-well-formed"
    title = "One taxon, or two for interacting-taxon evidence"

    def __init__(self, interacting_taxon_evidence_codes: FrozenSet[str]):
        self.interacting_taxon_evidence_codes = frozenset(interacting_taxon_evidence_codes)

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        taxa = record.taxa
        bad = [t for t in taxa if not TAXON_PATTERN.match(t)]
        if bad:
            return RuleOutcome(issues=(
                _issue(self.rule_id, Severity.ERROR, record,
                       f"malformed taxon: {', '.join(bad)}", field="taxa"),
            ))

        if len(taxa) == 1:
            return PASS
        if len(taxa) == 2 and record.evidence_code in self.interacting_taxon_evidence_codes:
            if taxa[0] == taxa[1]:
                return RuleOutcome(issues=(
                    _issue(self.rule_id, Severity.WARNING, record,
                           f"interacting taxon repeats the primary taxon {taxa[0]}", field="taxa"),
                ))
            return PASS
        if len(taxa) == 2:
            message = f"{record.evidence_code} evidence does not allow an interacting taxon"
        else:
            message = f"expected one or two taxa, found {len(taxa)}"
        return RuleOutcome(issues=(_issue(self.rule_id, Severity.ERROR, record, message, field="taxa"),))


class ReferencePresenceRule:
    rule_id = "reference-presence"
    title = "At least one reference is required"

    def evaluate(self, record: AnnotationRecord, ontology: OntologyGraph, context: ContextMap) -> RuleOutcome:
        if record.references:
            return PASS
        return RuleOutcome(issues=(
            _issue(self.rule_id, Severity.ERROR, record, "no reference given", field="references"),
        ))


def build_rules(settings: Optional[Settings] = None) -> Tuple:
    """Returns the rules in evaluation order, configured from `settings`."""
    settings = settings or default_settings
    return (
        TermExistenceRule(),
        DeprecatedTermRule(),
        AspectNamespaceRule(),
        NdRootOnlyRule(frozenset(settings.root_terms)),
        NoNotProteinBindingRule(settings.protein_binding_term),
        EvidenceWithFromRule(settings.evidence_with_from),
        QualifierLegalityRule(frozenset(settings.negation_disallowed_evidence)),
        TaxonWellFormedRule(frozenset(settings.interacting_taxon_evidence_codes)),
        ReferencePresenceRule(),
    )


RULE_IDS = tuple(rule.rule_id for rule in build_rules())
