# Copyright (c) 2025-2026 Gowtham Adamane Rao. All Rights Reserved.
#
# Licensed under the Prosperity Public License 3.0.0 (the "License").
# You may not use this file except in compliance with the License.
# You may obtain a copy of the License in the LICENSE file at the root
# of this repository, or at: https://prosperitylicense.com/versions/3.0.0
#
# Commercial use beyond a 30-day trial requires a separate license.
from collections import Counter
from typing import List, Optional

from .config import settings
from .engine import LineKind, LineResult
from .models import Report, Severity, ValidationIssue


class ReportAggregator:
    """
    Collects validation issues into counters and capped per-rule samples.

    Issues must be recorded in input order; the aggregator keeps arrival order
    and does no I/O. `total_records` counts every annotation line, malformed
    ones included.
    """

    def __init__(self, name: str = "", sample_cap: Optional[int] = None):
        self.name = name
        self.sample_cap = settings.sample_cap if sample_cap is None else sample_cap
        self._total = 0
        self._malformed = 0
        self._by_rule: Counter = Counter()
        self._by_severity: Counter = Counter()
        self._sampled: Counter = Counter()
        self._samples: List[ValidationIssue] = []

    def count_record(self):
        self._total += 1

    def count_malformed(self):
        self._total += 1
        self._malformed += 1

    def record(self, issue: ValidationIssue):
        self._by_rule[issue.rule_id] += 1
        self._by_severity[issue.severity] += 1
        if self._sampled[issue.rule_id] < self.sample_cap:
            self._sampled[issue.rule_id] += 1
            self._samples.append(issue)

    def add_line_result(self, result: LineResult):
        if result.kind == LineKind.RECORD:
            self.count_record()
        elif result.kind == LineKind.MALFORMED:
            self.count_malformed()
        for issue in result.issues:
            self.record(issue)

    def finalize(self) -> Report:
        return Report(
            name=self.name,
            total_records=self._total,
            malformed_records=self._malformed,
            counts_by_rule=dict(self._by_rule),
            counts_by_severity={severity: self._by_severity[severity] for severity in Severity},
            samples=tuple(self._samples),
        )
