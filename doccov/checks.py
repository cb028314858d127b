"""Coverage and drift threshold evaluation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List

from .config import Thresholds
from .coverage import ensure_enriched
from .drift.categorize import filter_drift_by_types
from .logging import get_logger
from .models import DriftCategory, DriftRecord, Spec

_LOGGER = get_logger("checks")


@dataclass(frozen=True)
class CheckResult:
    coverage: int
    drift_percent: float
    drift_count: int
    passed_coverage: bool
    passed_drift: bool
    failures: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.passed_coverage and self.passed_drift

    def to_dict(self) -> Dict[str, object]:
        return {
            "coverage": self.coverage,
            "driftPercent": self.drift_percent,
            "driftCount": self.drift_count,
            "passedCoverage": self.passed_coverage,
            "passedDrift": self.passed_drift,
            "passed": self.passed,
            "failures": list(self.failures),
        }


def counted_drift(records: List[DriftRecord], thresholds: Thresholds) -> List[DriftRecord]:
    if not thresholds.examples:
        records = [record for record in records if record.category is not DriftCategory.EXAMPLE]
    if thresholds.drift_types:
        records = filter_drift_by_types(records, thresholds.drift_types)
    return records


def evaluate_thresholds(spec: Spec, thresholds: Thresholds) -> CheckResult:
    """Check coverage and drift percentages against ``thresholds``.

    Drift percentage is the share of exports carrying at least one counted
    drift record.
    """
    spec = ensure_enriched(spec)
    coverage = spec.docs.coverage_score if spec.docs else 100

    drift_count = 0
    exports_with_drift = 0
    for export in spec.exports:
        records = counted_drift(list(export.docs.drift) if export.docs else [], thresholds)
        drift_count += len(records)
        if records:
            exports_with_drift += 1
    total = len(spec.exports)
    drift_percent = round(100 * exports_with_drift / total, 2) if total else 0.0

    failures: List[str] = []
    passed_coverage = thresholds.min_coverage is None or coverage >= thresholds.min_coverage
    if not passed_coverage:
        failures.append(f"Coverage {coverage}% is below the minimum {thresholds.min_coverage:g}%")
    passed_drift = thresholds.max_drift is None or drift_percent <= thresholds.max_drift
    if not passed_drift:
        failures.append(f"Drift {drift_percent:g}% exceeds the maximum {thresholds.max_drift:g}%")
    for failure in failures:
        _LOGGER.info(failure)

    return CheckResult(
        coverage=coverage,
        drift_percent=drift_percent,
        drift_count=drift_count,
        passed_coverage=passed_coverage,
        passed_drift=passed_drift,
        failures=failures,
    )


__all__ = ["CheckResult", "counted_drift", "evaluate_thresholds"]
