# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Exception hierarchy.

Load-time errors (context and ontology) are fatal and abort a run before any
annotation is read. `MalformedRecord` is raised per line and never escapes the
engine. `UnknownTerm` and `UnresolvableDeprecation` come from graph lookups and
are turned into validation issues by the rules.
"""
from typing import Optional


class GafValidatorError(Exception):
    """Base class for every error raised by this package."""


class ContextLoadError(GafValidatorError):
    """The prefix context document could not be loaded."""


class UnknownPrefix(ContextLoadError, KeyError):
    def __init__(self, prefix: str, curie: str):
        self.prefix = prefix
        self.curie = curie
        super().__init__(f"No base URI is mapped for prefix '{prefix}' (in '{curie}')")

    def __str__(self) -> str:
        return self.args[0]


class DuplicatePrefix(ContextLoadError):
    def __init__(self, prefix: str, source: Optional[str] = None):
        self.prefix = prefix
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"Prefix '{prefix}' is declared more than once{where}")


class MalformedCurie(GafValidatorError, ValueError):
    """A value expected to be `PREFIX:LOCAL` is not."""


class OntologyLoadError(GafValidatorError):
    """The ontology document is unreadable or references unknown nodes (strict mode)."""


class UnknownTerm(GafValidatorError, KeyError):
    def __init__(self, term_id: str):
        self.term_id = term_id
        super().__init__(f"Term '{term_id}' is not in the ontology")

    def __str__(self) -> str:
        return self.args[0]


class UnresolvableDeprecation(GafValidatorError):
    def __init__(self, term_id: str, reason: str):
        self.term_id = term_id
        self.reason = reason
        super().__init__(f"Deprecated term '{term_id}' could not be resolved: {reason}")


class MalformedRecord(GafValidatorError):
    """An annotation line could not be parsed into a record."""

    def __init__(self, line_number: int, field: str, message: str):
        self.line_number = line_number
        self.field = field
        self.message = message
        super().__init__(f"Line {line_number}, field '{field}': {message}")
