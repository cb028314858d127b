"""Drift detection between doc comments and declared signatures."""

from ..models import DRIFT_CATEGORIES, DriftCategory, DriftRecord, DriftType
from .categorize import (
    DriftSummary,
    Group,
    filter_drift_by_categories,
    filter_drift_by_types,
    get_drift_summary,
    group_drift_by_export,
    group_drifts_by_category,
    parse_drift_type_filter,
)
from .compute import ExampleResults, compute_drift, compute_export_drift
from .examples import Assertion, AssertionParser, ExampleRunResult, parse_assertions

__all__ = [
    "Assertion",
    "AssertionParser",
    "DRIFT_CATEGORIES",
    "DriftCategory",
    "DriftRecord",
    "DriftSummary",
    "DriftType",
    "ExampleResults",
    "ExampleRunResult",
    "Group",
    "compute_drift",
    "compute_export_drift",
    "filter_drift_by_categories",
    "filter_drift_by_types",
    "get_drift_summary",
    "group_drift_by_export",
    "group_drifts_by_category",
    "parse_assertions",
    "parse_drift_type_filter",
]
