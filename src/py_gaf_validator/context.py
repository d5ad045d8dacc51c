# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Prefix context: maps CURIE prefixes (GO, RO, ECO, ...) to base URIs.

Context documents are JSON-LD files with an `@context` object, as published
by the GO site, or a flat JSON object of prefix to base URI.
"""
import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
from rich.console import Console

from .errors import ContextLoadError, DuplicatePrefix, MalformedCurie, UnknownPrefix
from .models import Identifier

console = Console()


def split_curie(curie: str) -> Tuple[str, str]:
    """Splits `PREFIX:LOCAL` on the first colon. Both halves must be non-empty."""
    prefix, sep, local = curie.partition(":")
    if not sep or not prefix or not local:
        raise MalformedCurie(f"'{curie}' is not a CURIE of the form PREFIX:LOCAL")
    if " " in curie:
        raise MalformedCurie(f"'{curie}' contains spaces")
    return prefix, local


class ContextMap:
    """Immutable prefix to base-URI mapping with CURIE expansion and compression."""

    def __init__(self, pairs: Iterable[Tuple[str, str]], source: Optional[str] = None):
        mapping: Dict[str, str] = {}
        for prefix, base in pairs:
            if prefix in mapping:
                raise DuplicatePrefix(prefix, source)
            if not isinstance(base, str):
                raise ContextLoadError(f"Value of prefix '{prefix}' is not a string")
            mapping[prefix] = base
        self._mapping = MappingProxyType(mapping)
        # Longest base first so compress() picks the most specific prefix
        self._by_base: List[Tuple[str, str]] = sorted(
            ((base, prefix) for prefix, base in mapping.items()),
            key=lambda item: len(item[0]),
            reverse=True
        )
        self.source = source

    @classmethod
    def from_document(cls, document: Any, source: Optional[str] = None) -> "ContextMap":
        """Builds from a parsed JSON-LD document, or from a flat mapping / list of pairs."""
        if isinstance(document, list):
            return cls(document, source)
        if not isinstance(document, dict):
            raise ContextLoadError("Context document must be a JSON object")
        if "@context" in document:
            context = document["@context"]
        else:
            context = document
        if isinstance(context, list):
            # object_pairs_hook output: keep the pairs so duplicates are still visible
            return cls(context, source)
        if not isinstance(context, dict):
            raise ContextLoadError("Value of `@context` is not a json object (mapping)")
        return cls(context.items(), source)

    def __reduce__(self):
        return (self.__class__, (tuple(self._mapping.items()), self.source))

    def __len__(self) -> int:
        return len(self._mapping)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._mapping

    @property
    def mapping(self) -> Mapping[str, str]:
        return self._mapping

    def base_for(self, prefix: str) -> Optional[str]:
        return self._mapping.get(prefix)

    def expand(self, curie: str) -> Identifier:
        """Expands `PREFIX:LOCAL` into a full URI. Raises UnknownPrefix if unmapped."""
        prefix, local = split_curie(curie)
        base = self._mapping.get(prefix)
        if base is None:
            raise UnknownPrefix(prefix, curie)
        return base + local

    def compress(self, uri: Identifier) -> str:
        """Shortens a URI with the longest matching base; unmatched URIs come back unchanged."""
        for base, prefix in self._by_base:
            if uri.startswith(base) and len(uri) > len(base):
                return f"{prefix}:{uri[len(base):]}"
        return uri


def _pairs_hook(pairs: List[Tuple[str, Any]]) -> Any:
    # Only the @context object needs its duplicate keys preserved; everything
    # else becomes a normal dict.
    keys = [k for k, _ in pairs]
    if len(keys) != len(set(keys)):
        return pairs
    return dict(pairs)


def load_context(path: Path) -> ContextMap:
    """Reads a JSON-LD context file. Duplicate prefixes are a load error."""
    path = Path(path)
    console.log(f"Loading prefix context from {path}...")
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = json.load(f, object_pairs_hook=_pairs_hook)
    except json.JSONDecodeError as e:
        raise ContextLoadError(f"{path}: invalid JSON ({e})") from e
    if isinstance(document, list) and any(k == "@context" for k, _ in document):
        document = dict(document)
    context = ContextMap.from_document(document, source=str(path))
    console.log(f"Loaded {len(context)} prefix mappings.")
    return context
