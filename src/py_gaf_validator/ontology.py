# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
In-memory ontology graph built from an OBO Graphs JSON document.

Only what annotation validation needs is modelled: the `is_a` hierarchy,
deprecation with "term replaced by" pointers, OBO namespaces and subsets.
Other edge predicates are stored and can be queried, but are never reasoned
over.

The graph is built once and never mutated afterwards, so it can be shared by
every worker without locking.
"""
import json
import re
from collections import defaultdict
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, Iterator, List, Literal, Optional, Set, Tuple
from rich.console import Console

from .config import settings
from .errors import OntologyLoadError, UnknownTerm, UnresolvableDeprecation
from .models import Aspect, Identifier, NodeKind, OntologyEdge, OntologyNode, Synonym

console = Console()

LoadPolicy = Literal["strict", "tolerant"]

IS_A = "is_a"
SUBCLASS_OF_URIS = {
    "http://www.w3.org/2000/01/rdf-schema#subClassOf",
    "rdfs:subClassOf",
}

# basicPropertyValues predicates
OWL_DEPRECATED = "http://www.w3.org/2002/07/owl#deprecated"
TERM_REPLACED_BY = "http://purl.obolibrary.org/obo/IAO_0100001"
HAS_OBO_NAMESPACE = "http://www.geneontology.org/formats/oboInOwl#hasOBONamespace"

OBO_PURL = "http://purl.obolibrary.org/obo/"
_OBO_CURIE = re.compile(r"^([A-Za-z][A-Za-z0-9_]*):([A-Za-z0-9_]+)$")


def _obo_uri(value: str) -> Identifier:
    """Property values sometimes hold `GO:0000001` instead of a URI."""
    match = _OBO_CURIE.match(value)
    if match and not value.startswith("http"):
        return f"{OBO_PURL}{match.group(1)}_{match.group(2)}"
    return value


def _property_values(meta: Dict[str, Any], predicate: str) -> List[str]:
    return [
        str(pv.get("val"))
        for pv in meta.get("basicPropertyValues") or []
        if pv.get("pred") == predicate and pv.get("val") is not None
    ]


def extract_deprecation(meta: Dict[str, Any]) -> Tuple[bool, Optional[Identifier]]:
    """
    Normalizes the two ways a source document can mark a term obsolete: the
    boolean `meta.deprecated` flag, or an `owl:deprecated "true"` property value.
    Returns (deprecated, replaced_by).
    """
    deprecated = bool(meta.get("deprecated", False))
    if not deprecated:
        deprecated = any(v.strip().lower() == "true" for v in _property_values(meta, OWL_DEPRECATED))
    replacements = _property_values(meta, TERM_REPLACED_BY)
    replaced_by = _obo_uri(replacements[0]) if replacements else None
    return deprecated, replaced_by


def node_from_document(raw: Dict[str, Any]) -> OntologyNode:
    """Builds an OntologyNode from one entry of an OBO Graphs `nodes` list."""
    meta = raw.get("meta") or {}
    deprecated, replaced_by = extract_deprecation(meta)
    namespaces = _property_values(meta, HAS_OBO_NAMESPACE)
    definition = (meta.get("definition") or {}).get("val")
    synonyms = tuple(
        Synonym(
            text=syn.get("val", ""),
            scope=syn.get("pred", "hasRelatedSynonym"),
            xrefs=tuple(syn.get("xrefs") or ())
        )
        for syn in meta.get("synonyms") or []
    )
    xrefs = frozenset(x.get("val") for x in meta.get("xrefs") or [] if x.get("val"))
    kind = NodeKind.PROPERTY if raw.get("type") == "PROPERTY" else NodeKind.CLASS
    return OntologyNode(
        id=raw["id"],
        kind=kind,
        label=raw.get("lbl"),
        namespace=namespaces[0] if namespaces else None,
        definition=definition,
        deprecated=deprecated,
        replaced_by=replaced_by,
        synonyms=synonyms,
        cross_references=xrefs,
        subsets=frozenset(meta.get("subsets") or ()),
    )


class OntologyGraph:
    """
    Directed graph of ontology nodes with `is_a` adjacency and lookup indices.
    Use `OntologyGraph.from_document` or `load_ontology` to build one.
    """

    def __init__(
        self,
        nodes: Iterable[OntologyNode],
        edges: Iterable[OntologyEdge],
        load_warnings: Iterable[str] = (),
        replacement_depth_bound: Optional[int] = None
    ):
        node_index: Dict[Identifier, OntologyNode] = {}
        for node in nodes:
            node_index[node.id] = node
        self._nodes = MappingProxyType(node_index)
        self._edges: Tuple[OntologyEdge, ...] = tuple(edges)
        self.load_warnings: Tuple[str, ...] = tuple(load_warnings)
        self.replacement_depth_bound = (
            replacement_depth_bound if replacement_depth_bound is not None
            else settings.replacement_depth_bound
        )

        parents: Dict[Identifier, Set[Identifier]] = defaultdict(set)
        children: Dict[Identifier, Set[Identifier]] = defaultdict(set)
        by_predicate: Dict[str, List[OntologyEdge]] = defaultdict(list)
        for edge in self._edges:
            if edge.predicate == IS_A:
                parents[edge.subject].add(edge.object)
                children[edge.object].add(edge.subject)
            else:
                by_predicate[edge.predicate].append(edge)

        by_namespace: Dict[str, Set[Identifier]] = defaultdict(set)
        by_subset: Dict[Identifier, Set[Identifier]] = defaultdict(set)
        for node in node_index.values():
            if node.namespace:
                by_namespace[node.namespace].add(node.id)
            for subset in node.subsets:
                by_subset[subset].add(node.id)

        self._parents = {k: frozenset(v) for k, v in parents.items()}
        self._children = {k: frozenset(v) for k, v in children.items()}
        self._edges_by_predicate = {k: tuple(v) for k, v in by_predicate.items()}
        self._by_namespace = {k: frozenset(v) for k, v in by_namespace.items()}
        self._by_subset = {k: frozenset(v) for k, v in by_subset.items()}

    @classmethod
    def from_document(
        cls,
        document: Dict[str, Any],
        policy: Optional[LoadPolicy] = None,
        replacement_depth_bound: Optional[int] = None,
        source: str = "<ontology>"
    ) -> "OntologyGraph":
        """
        Builds the graph from a parsed OBO Graphs JSON document (first graph only).

        Under the 'strict' policy an edge or a replacement pointer naming an
        unknown node raises OntologyLoadError. Under 'tolerant' it is dropped and
        recorded in `load_warnings`.
        """
        policy = policy or settings.ontology_load_policy
        graphs = document.get("graphs") if isinstance(document, dict) else None
        if not graphs:
            raise OntologyLoadError(f"{source}: no `graphs` found in ontology document")
        graph = graphs[0]

        warnings: List[str] = []

        def reject(message: str):
            if policy == "strict":
                raise OntologyLoadError(f"{source}: {message}")
            warnings.append(message)

        nodes: Dict[Identifier, OntologyNode] = {}
        for i, raw in enumerate(graph.get("nodes") or []):
            if "id" not in raw:
                raise OntologyLoadError(f"{source}: node #{i} has no `id`")
            if raw.get("type") == "INDIVIDUAL":
                warnings.append(f"Skipped individual node {raw['id']}")
                continue
            nodes[raw["id"]] = node_from_document(raw)

        edges: List[OntologyEdge] = []
        for i, raw in enumerate(graph.get("edges") or []):
            try:
                subject, predicate, obj = raw["sub"], raw["pred"], raw["obj"]
            except KeyError as e:
                raise OntologyLoadError(f"{source}: edge #{i} is missing {e}") from e
            if predicate in SUBCLASS_OF_URIS:
                predicate = IS_A
            missing = [n for n in (subject, obj) if n not in nodes]
            if missing:
                reject(f"edge #{i} ({subject} {predicate} {obj}) references unknown node(s): {', '.join(missing)}")
                continue
            edges.append(OntologyEdge(subject=subject, predicate=predicate, object=obj))

        for node_id, node in list(nodes.items()):
            if node.replaced_by is None:
                continue
            if node.replaced_by == node_id:
                reject(f"term {node_id} is replaced by itself")
                nodes[node_id] = node.model_copy(update={"replaced_by": None})
            elif node.replaced_by not in nodes:
                reject(f"term {node_id} is replaced by unknown term {node.replaced_by}")
                nodes[node_id] = node.model_copy(update={"replaced_by": None})

        return cls(nodes.values(), edges, warnings, replacement_depth_bound)

    def __reduce__(self):
        # Shipped to worker processes; indices are rebuilt on the other side
        return (
            self.__class__,
            (tuple(self._nodes.values()), self._edges, self.load_warnings, self.replacement_depth_bound)
        )

    # --- Lookup ---

    def __contains__(self, term_id: object) -> bool:
        return term_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[OntologyNode]:
        return iter(self._nodes.values())

    @property
    def edge_count(self) -> int:
        return len(self._edges)

    def get(self, term_id: Identifier) -> Optional[OntologyNode]:
        return self._nodes.get(term_id)

    def lookup(self, term_id: Identifier) -> OntologyNode:
        node = self._nodes.get(term_id)
        if node is None:
            raise UnknownTerm(term_id)
        return node

    def edges(self, predicate: Optional[str] = None) -> Tuple[OntologyEdge, ...]:
        if predicate is None:
            return self._edges
        if predicate == IS_A:
            return tuple(e for e in self._edges if e.predicate == IS_A)
        return self._edges_by_predicate.get(predicate, ())

    # --- Deprecation ---

    def resolve_current(self, term_id: Identifier) -> Identifier:
        """
        Follows `replaced_by` pointers from a deprecated term to the first
        non-deprecated one. A current term resolves to itself.

        Raises UnresolvableDeprecation when a deprecated term has no replacement,
        the chain revisits a term, or it needs more than `replacement_depth_bound`
        hops.
        """
        current = self.lookup(term_id)
        seen = {current.id}
        hops = 0
        while current.deprecated:
            if current.replaced_by is None:
                reason = "no replacement declared" if hops == 0 else f"chain ends at {current.id} with no replacement"
                raise UnresolvableDeprecation(term_id, reason)
            if hops >= self.replacement_depth_bound:
                raise UnresolvableDeprecation(
                    term_id, f"replacement chain longer than {self.replacement_depth_bound} steps"
                )
            successor = current.replaced_by
            if successor in seen:
                raise UnresolvableDeprecation(term_id, f"replacement chain cycles back to {successor}")
            nxt = self._nodes.get(successor)
            if nxt is None:
                raise UnresolvableDeprecation(term_id, f"replacement {successor} is not in the ontology")
            seen.add(successor)
            current = nxt
            hops += 1
        return current.id

    # --- Namespaces & subsets ---

    def namespace_of(self, term_id: Identifier) -> Optional[str]:
        return self.lookup(term_id).namespace

    def aspect_of(self, term_id: Identifier) -> Optional[Aspect]:
        return Aspect.from_namespace(self.namespace_of(term_id))

    def nodes_in_namespace(self, namespace: str) -> FrozenSet[Identifier]:
        return self._by_namespace.get(namespace, frozenset())

    def namespaces(self) -> List[str]:
        return sorted(self._by_namespace)

    def in_subset(self, term_id: Identifier, subset_id: Identifier) -> bool:
        return term_id in self._by_subset.get(subset_id, frozenset())

    # --- Hierarchy ---

    def parents(self, term_id: Identifier) -> FrozenSet[Identifier]:
        return self._parents.get(term_id, frozenset())

    def children(self, term_id: Identifier) -> FrozenSet[Identifier]:
        return self._children.get(term_id, frozenset())

    def _walk(self, start: Identifier, step) -> Iterator[Identifier]:
        # Visited set keeps this finite on malformed, cyclic input
        visited = {start}
        stack = list(step(start))
        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)
            yield current
            stack.extend(n for n in step(current) if n not in visited)

    def ancestors(self, term_id: Identifier) -> Set[Identifier]:
        return set(self._walk(term_id, self.parents))

    def descendants(self, term_id: Identifier) -> Set[Identifier]:
        return set(self._walk(term_id, self.children))

    def is_ancestor(self, ancestor: Identifier, descendant: Identifier) -> bool:
        """True if `ancestor` is reachable from `descendant` by following `is_a` upwards."""
        return any(node == ancestor for node in self._walk(descendant, self.parents))


def load_ontology(
    path: Path,
    policy: Optional[LoadPolicy] = None,
    replacement_depth_bound: Optional[int] = None
) -> OntologyGraph:
    """Reads an OBO Graphs JSON file into an OntologyGraph."""
    path = Path(path)
    policy = policy or settings.ontology_load_policy
    console.log(f"Loading ontology from {path} ({policy} mode)...")
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise OntologyLoadError(f"{path}: invalid JSON ({e})") from e

    ontology = OntologyGraph.from_document(
        document, policy=policy, replacement_depth_bound=replacement_depth_bound, source=str(path)
    )
    for warning in ontology.load_warnings:
        console.log(f"[yellow]Load warning: {warning}[/yellow]")
    console.log(
        f"Loaded {len(ontology)} nodes and {ontology.edge_count} edges "
        f"across {len(ontology.namespaces())} namespaces."
    )
    return ontology
