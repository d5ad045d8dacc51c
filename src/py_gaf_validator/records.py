# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Parses GO Annotation File (GAF 2.1 / 2.2) lines into AnnotationRecords and
writes them back.

Every column is checked syntactically at parse time. A line that fails any
check raises MalformedRecord naming the line and the offending field; the
engine records it and carries on with the next line.
"""
import datetime
import re
from typing import List, Optional, Tuple

from .context import ContextMap, split_curie
from .errors import MalformedCurie, MalformedRecord, UnknownPrefix
from .models import Aspect, AnnotationRecord

# Define column indices for GAF files for clarity
# GAF 2.2: http://geneontology.org/docs/go-annotation-file-gaf-format-2.2/
(DB_I, DB_OBJECT_ID_I, DB_OBJECT_SYMBOL_I, QUALIFIER_I, GO_ID_I, DB_REFERENCE_I,
 EVIDENCE_CODE_I, WITH_FROM_I, ASPECT_I, DB_OBJECT_NAME_I, DB_OBJECT_SYNONYM_I,
 DB_OBJECT_TYPE_I, TAXON_I, DATE_I, ASSIGNED_BY_I, ANNOTATION_EXTENSION_I,
 GENE_PRODUCT_FORM_ID_I) = range(17)

GAF_COLUMN_COUNT = 17


EVIDENCE_CODES = frozenset({
    "EXP", "IDA", "IPI", "IMP", "IGI", "IEP",
    "HTP", "HDA", "HMP", "HGI", "HEP",
    "IBA", "IBD", "IKR", "IRD",
    "ISS", "ISO", "ISA", "ISM", "IGC", "RCA",
    "TAS", "NAS", "IC", "ND", "IEA",
})

LIST_SEPARATOR = "|"
CONJUNCTION_SEPARATOR = ","

TAXON_PATTERN = re.compile(r"^taxon:(\d+)$")
_DATE = re.compile(r"^\d{8}$")
_CLASS_EXPRESSION = re.compile(r"^([^()\s]+)\(([^()\s]+)\)$")
_GAF_VERSION = re.compile(r"^!\s*gaf-version:\s*(\S+)")


def is_comment(line: str) -> bool:
    return line.startswith("!")


def detect_gaf_version(line: str) -> Optional[str]:
    """Returns '2.2' for a `!gaf-version: 2.2` header line, None for anything else."""
    match = _GAF_VERSION.match(line)
    return match.group(1) if match else None


def _split(value: str, separator: str = LIST_SEPARATOR) -> List[str]:
    if value == "":
        return []
    return value.split(separator)


def _no_space(value: str, field: str, line_number: int, required: bool = True) -> str:
    if required and not value:
        raise MalformedRecord(line_number, field, "value is required")
    if " " in value:
        raise MalformedRecord(line_number, field, f"spaces are not allowed: '{value}'")
    return value


def _curie_list(value: str, field: str, line_number: int, separators: Tuple[str, ...]) -> frozenset:
    items = [value]
    for separator in separators:
        items = [part for item in items for part in _split(item, separator)]
    for item in items:
        try:
            split_curie(item)
        except MalformedCurie as e:
            raise MalformedRecord(line_number, field, str(e)) from e
    return frozenset(items)


def _expand(value: str, field: str, line_number: int, context: ContextMap) -> str:
    try:
        return context.expand(value)
    except (MalformedCurie, UnknownPrefix) as e:
        raise MalformedRecord(line_number, field, str(e)) from e


def _parse_qualifiers(value: str, line_number: int) -> frozenset:
    qualifiers = _split(value)
    for q in qualifiers:
        _no_space(q, "qualifiers", line_number)
    return frozenset(qualifiers)


def _parse_taxa(value: str, line_number: int) -> Tuple[str, ...]:
    taxa = _split(value)
    if not taxa:
        raise MalformedRecord(line_number, "taxa", "at least one taxon is required")
    for taxon in taxa:
        if not TAXON_PATTERN.match(taxon):
            raise MalformedRecord(line_number, "taxa", f"'{taxon}' does not match taxon:<integer>")
    return tuple(taxa)


def _parse_date(value: str, line_number: int) -> datetime.date:
    if not _DATE.match(value):
        raise MalformedRecord(line_number, "date", f"'{value}' does not match YYYYMMDD")
    try:
        return datetime.datetime.strptime(value, "%Y%m%d").date()
    except ValueError as e:
        raise MalformedRecord(line_number, "date", f"'{value}' is not a calendar date") from e


def _parse_extensions(value: str, line_number: int, context: ContextMap) -> Tuple[Tuple[str, str], ...]:
    # part_of(GO:0005634),occurs_in(CL:0000540)|has_input(UniProtKB:P12345)
    pairs = []
    for group in _split(value):
        for expression in _split(group, CONJUNCTION_SEPARATOR):
            match = _CLASS_EXPRESSION.match(expression)
            if not match:
                raise MalformedRecord(
                    line_number, "extensions", f"'{expression}' is not of the form relation(PREFIX:LOCAL)"
                )
            relation, filler = match.groups()
            pairs.append((relation, _expand(filler, "extensions", line_number, context)))
    return tuple(pairs)


def parse_line(line: str, line_number: int, context: ContextMap) -> AnnotationRecord:
    """
    Parses one GAF line into an AnnotationRecord.

    The term, extension fillers and gene product form are expanded to full URIs
    through `context`. Raises MalformedRecord on the first column that fails.
    """
    columns = line.rstrip("\r\n").split("\t")
    if len(columns) == GAF_COLUMN_COUNT - 1:
        # Trailing optional column left off entirely
        columns.append("")
    if len(columns) != GAF_COLUMN_COUNT:
        raise MalformedRecord(
            line_number, "columns", f"expected {GAF_COLUMN_COUNT} tab-separated columns, found {len(columns)}"
        )

    evidence_code = columns[EVIDENCE_CODE_I]
    if evidence_code not in EVIDENCE_CODES:
        raise MalformedRecord(line_number, "evidence_code", f"unknown evidence code '{evidence_code}'")

    aspect_value = columns[ASPECT_I]
    try:
        aspect = Aspect(aspect_value)
    except ValueError as e:
        raise MalformedRecord(
            line_number, "aspect", f"aspect must be `C`, `F`, or `P`, but received `{aspect_value}`"
        ) from e

    object_type = columns[DB_OBJECT_TYPE_I]
    if not object_type:
        raise MalformedRecord(line_number, "object_type", "value is required")

    gene_product_form = None
    if columns[GENE_PRODUCT_FORM_ID_I]:
        gene_product_form = _expand(columns[GENE_PRODUCT_FORM_ID_I], "gene_product_form", line_number, context)

    return AnnotationRecord(
        db=_no_space(columns[DB_I], "db", line_number),
        object_id=_no_space(columns[DB_OBJECT_ID_I], "object_id", line_number),
        object_symbol=_no_space(columns[DB_OBJECT_SYMBOL_I], "object_symbol", line_number),
        qualifiers=_parse_qualifiers(columns[QUALIFIER_I], line_number),
        term=_expand(columns[GO_ID_I], "term", line_number, context),
        references=_curie_list(columns[DB_REFERENCE_I], "references", line_number, (LIST_SEPARATOR,)),
        evidence_code=evidence_code,
        with_from=_curie_list(
            columns[WITH_FROM_I], "with_from", line_number, (LIST_SEPARATOR, CONJUNCTION_SEPARATOR)
        ),
        aspect=aspect,
        object_name=columns[DB_OBJECT_NAME_I],
        synonyms=frozenset(_split(columns[DB_OBJECT_SYNONYM_I])),
        object_type=object_type,
        taxa=_parse_taxa(columns[TAXON_I], line_number),
        date=_parse_date(columns[DATE_I], line_number),
        assigned_by=_no_space(columns[ASSIGNED_BY_I], "assigned_by", line_number),
        extensions=_parse_extensions(columns[ANNOTATION_EXTENSION_I], line_number, context),
        gene_product_form=gene_product_form,
        line_number=line_number,
        columns=tuple(columns),
    )


def _render_columns(record: AnnotationRecord, context: ContextMap) -> List[str]:
    """Builds columns from the record's fields, for records not read from a file."""
    columns = [""] * GAF_COLUMN_COUNT
    columns[DB_I] = record.db
    columns[DB_OBJECT_ID_I] = record.object_id
    columns[DB_OBJECT_SYMBOL_I] = record.object_symbol
    columns[QUALIFIER_I] = LIST_SEPARATOR.join(sorted(record.qualifiers, key=lambda q: (q != "NOT", q)))
    columns[DB_REFERENCE_I] = LIST_SEPARATOR.join(sorted(record.references))
    columns[EVIDENCE_CODE_I] = record.evidence_code
    columns[WITH_FROM_I] = LIST_SEPARATOR.join(sorted(record.with_from))
    columns[ASPECT_I] = record.aspect.value
    columns[DB_OBJECT_NAME_I] = record.object_name
    columns[DB_OBJECT_SYNONYM_I] = LIST_SEPARATOR.join(sorted(record.synonyms))
    columns[DB_OBJECT_TYPE_I] = record.object_type
    columns[TAXON_I] = LIST_SEPARATOR.join(record.taxa)
    columns[DATE_I] = record.date.strftime("%Y%m%d")
    columns[ASSIGNED_BY_I] = record.assigned_by
    columns[ANNOTATION_EXTENSION_I] = CONJUNCTION_SEPARATOR.join(
        f"{relation}({context.compress(filler)})" for relation, filler in record.extensions
    )
    if record.gene_product_form:
        columns[GENE_PRODUCT_FORM_ID_I] = context.compress(record.gene_product_form)
    return columns


def to_line(record: AnnotationRecord, context: ContextMap) -> str:
    """
    Serializes a record as a GAF line (no newline). Columns read from the input
    are written verbatim; the term column always reflects `record.term`.
    """
    if len(record.columns) == GAF_COLUMN_COUNT:
        columns = list(record.columns)
    else:
        columns = _render_columns(record, context)
    columns[GO_ID_I] = context.compress(record.term)
    return "\t".join(columns)
