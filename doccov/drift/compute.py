"""Drift computation for single exports and whole specs."""

from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple

from ..comments import DocCommentPatch, parse_doc_comment
from ..logging import get_logger
from ..models import DriftRecord, Export, Spec
from .examples import (
    AssertionParser,
    ExampleRunResult,
    detect_example_assertion_failures,
    detect_example_runtime_errors,
)
from .params import detect_optionality_drift, detect_param_drift, detect_param_type_drift
from .semantic import detect_deprecated_drift, detect_visibility_drift
from .signature import detect_generic_constraint_drift, detect_return_type_drift

_LOGGER = get_logger("drift")

ExampleResults = Mapping[int, ExampleRunResult]

_DETECTORS = (
    detect_param_drift,
    detect_optionality_drift,
    detect_param_type_drift,
    detect_return_type_drift,
    detect_generic_constraint_drift,
    detect_deprecated_drift,
    detect_visibility_drift,
)


def compute_export_drift(
    export: Export,
    *,
    patch: Optional[DocCommentPatch] = None,
    example_results: Optional[ExampleResults] = None,
    assertion_parser: Optional[AssertionParser] = None,
) -> Tuple[DriftRecord, ...]:
    """Compare an export's doc comment with its declaration.

    The result depends only on the export, its comment text and the supplied
    runner results, and keeps a fixed detector order so repeated runs yield the
    same sequence.
    """
    if not export.has_known_kind:
        _LOGGER.debug("Skipping drift for %s with unknown kind %r", export.id, export.kind)
        return ()
    if patch is None:
        patch = parse_doc_comment(export.raw_comment)

    records: List[DriftRecord] = []
    for detector in _DETECTORS:
        records.extend(detector(export, patch))
    if example_results:
        records.extend(detect_example_runtime_errors(export, patch, example_results))
        records.extend(
            detect_example_assertion_failures(export, patch, example_results, assertion_parser)
        )
    return _dedupe(records)


def compute_drift(
    spec: Spec,
    *,
    example_results: Optional[Mapping[str, ExampleResults]] = None,
    assertion_parser: Optional[AssertionParser] = None,
) -> Dict[str, Tuple[DriftRecord, ...]]:
    """Return drift per export id for every export in ``spec``."""
    results = example_results or {}
    return {
        export.id: compute_export_drift(
            export,
            example_results=results.get(export.id),
            assertion_parser=assertion_parser,
        )
        for export in spec.exports
    }


def _dedupe(records: List[DriftRecord]) -> Tuple[DriftRecord, ...]:
    seen = set()
    unique: List[DriftRecord] = []
    for record in records:
        if record in seen:
            continue
        seen.add(record)
        unique.append(record)
    return tuple(unique)


__all__ = ["ExampleResults", "compute_drift", "compute_export_drift"]
