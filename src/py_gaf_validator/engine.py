# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
"""
Runs the validation rules over a stream of GAF lines.

Lines are numbered as they are read. With more than one worker, chunks of
numbered lines are evaluated in a process pool and the results are put back
into line order before they are yielded, so the caller always sees results in
input order no matter which worker finishes first.
"""
from concurrent.futures import Executor, FIRST_COMPLETED, ProcessPoolExecutor, wait
from enum import Enum
from itertools import islice
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict

from .config import settings
from .context import ContextMap
from .errors import MalformedRecord
from .models import AnnotationRecord, Severity, ValidationIssue
from .ontology import OntologyGraph
from .records import detect_gaf_version, is_comment, parse_line, to_line
from .rules import MALFORMED_RECORD, build_rules


class LineKind(str, Enum):
    RECORD = "record"
    COMMENT = "comment"
    BLANK = "blank"
    MALFORMED = "malformed"


class LineResult(BaseModel):
    """
    What became of one input line. `output` is the line to write to the
    corrected file (without newline), or None when the line is dropped.
    Blank lines pass through as an empty string.
    """
    model_config = ConfigDict(frozen=True)

    line_number: int
    kind: LineKind
    output: Optional[str] = None
    record: Optional[AnnotationRecord] = None
    issues: Tuple[ValidationIssue, ...] = ()


ExecutorFactory = Callable[..., Executor]
RawLine = Union[str, bytes]

# Per worker engine, set up once by the pool initializer
_worker_engine: Optional["ValidationEngine"] = None


def _init_worker(ontology: OntologyGraph, context: ContextMap, rules: Tuple) -> None:
    global _worker_engine
    _worker_engine = ValidationEngine(ontology, context, rules=rules, max_workers=1)


def _validate_chunk(chunk: Sequence[Tuple[int, RawLine]]) -> List[LineResult]:
    """Worker function to validate a chunk of numbered lines."""
    return [_worker_engine.validate_line(line_number, line) for line_number, line in chunk]


def _malformed(line_number: int, field: str, message: str) -> LineResult:
    issue = ValidationIssue(
        rule_id=MALFORMED_RECORD,
        severity=Severity.ERROR,
        line_number=line_number,
        field=field,
        message=message,
    )
    return LineResult(line_number=line_number, kind=LineKind.MALFORMED, issues=(issue,))


def _chunked(numbered: Iterable[Tuple[int, RawLine]], size: int) -> Iterator[List[Tuple[int, RawLine]]]:
    iterator = iter(numbered)
    while True:
        chunk = list(islice(iterator, size))
        if not chunk:
            return
        yield chunk


class ValidationEngine:
    """Validates annotation records against an ontology with an ordered tuple of rules."""

    def __init__(
        self,
        ontology: OntologyGraph,
        context: ContextMap,
        rules: Optional[Tuple] = None,
        max_workers: Optional[int] = None,
        chunk_size: Optional[int] = None,
        executor_factory: ExecutorFactory = ProcessPoolExecutor
    ):
        self.ontology = ontology
        self.context = context
        self.rules = tuple(rules) if rules is not None else build_rules(settings)
        self.max_workers = max_workers if max_workers is not None else settings.max_parallel_processes
        self.chunk_size = chunk_size or settings.chunk_size
        self.executor_factory = executor_factory
        self.gaf_version: Optional[str] = None

    def validate_record(self, record: AnnotationRecord) -> Tuple[AnnotationRecord, List[ValidationIssue]]:
        """
        Runs every rule in order. A rule that corrects the record hands the
        corrected record to the rules after it.
        """
        issues: List[ValidationIssue] = []
        for rule in self.rules:
            outcome = rule.evaluate(record, self.ontology, self.context)
            issues.extend(outcome.issues)
            if outcome.corrected is not None:
                record = outcome.corrected
        return record, issues

    def validate_line(self, line_number: int, line: RawLine) -> LineResult:
        """
        Validates one raw line. Lines read in binary mode are decoded here, so
        a line that is not UTF-8 becomes a malformed record instead of
        stopping the stream.
        """
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                return _malformed(line_number, "encoding", f"Line is not valid UTF-8: {e.reason} at byte {e.start}")

        text = line.rstrip("\r\n")
        if not text.strip():
            return LineResult(line_number=line_number, kind=LineKind.BLANK, output=text)
        if is_comment(text):
            return LineResult(line_number=line_number, kind=LineKind.COMMENT, output=text)

        try:
            record = parse_line(text, line_number, self.context)
        except MalformedRecord as e:
            return _malformed(line_number, e.field, e.message)

        record, issues = self.validate_record(record)
        return LineResult(
            line_number=line_number,
            kind=LineKind.RECORD,
            output=to_line(record, self.context),
            record=record,
            issues=tuple(issues),
        )

    def iter_results(self, lines: Iterable[RawLine], first_line_number: int = 1) -> Iterator[LineResult]:
        """Yields one LineResult per input line, in input order. Lines may be str or bytes."""
        numbered = enumerate(self._watch_header(lines), start=first_line_number)
        if self.max_workers <= 1:
            for line_number, line in numbered:
                yield self.validate_line(line_number, line)
        else:
            yield from self._iter_parallel(numbered)

    def _watch_header(self, lines: Iterable[RawLine]) -> Iterator[RawLine]:
        for line in lines:
            if self.gaf_version is None:
                text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
                if is_comment(text):
                    self.gaf_version = detect_gaf_version(text)
            yield line

    def _iter_parallel(self, numbered: Iterable[Tuple[int, RawLine]]) -> Iterator[LineResult]:
        # Submitted chunks plus finished-but-not-yet-drained chunks stay under this bound
        max_outstanding = self.max_workers * 4
        chunks = _chunked(numbered, self.chunk_size)

        with self.executor_factory(
            max_workers=self.max_workers,
            initializer=_init_worker,
            initargs=(self.ontology, self.context, self.rules)
        ) as executor:
            in_flight = {}
            finished: Dict[int, List[LineResult]] = {}
            next_to_submit = 0
            next_to_drain = 0
            exhausted = False

            while True:
                while not exhausted and len(in_flight) + len(finished) < max_outstanding:
                    chunk = next(chunks, None)
                    if chunk is None:
                        exhausted = True
                        break
                    in_flight[executor.submit(_validate_chunk, chunk)] = next_to_submit
                    next_to_submit += 1

                if not in_flight:
                    break

                done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
                for future in done:
                    finished[in_flight.pop(future)] = future.result()

                while next_to_drain in finished:
                    yield from finished.pop(next_to_drain)
                    next_to_drain += 1
