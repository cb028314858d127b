"""Documentation coverage scoring and spec enrichment."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import List, Mapping, Optional, Sequence, Tuple

from .comments import DocCommentPatch, parse_doc_comment
from .drift.compute import ExampleResults, compute_export_drift
from .drift.examples import AssertionParser
from .drift.utils import actual_parameters, is_void_type
from .logging import get_logger
from .models import DocsMetadata, DriftCategory, Export, SIGNAL_NAMES, Spec

_LOGGER = get_logger("coverage")


@dataclass(frozen=True)
class CoverageResult:
    coverage_score: int
    missing: Tuple[str, ...] = ()


def score_export(export: Export, patch: Optional[DocCommentPatch] = None) -> CoverageResult:
    """Score one export over the description, params, returns and examples signals.

    Signals that cannot apply (``params`` without parameters, ``returns`` for a
    void return) are left out of the denominator.
    """
    if not export.has_known_kind:
        _LOGGER.warning("Export %s has unknown kind %r; scoring it 0", export.id, export.kind)
        return CoverageResult(coverage_score=0, missing=SIGNAL_NAMES)
    if patch is None:
        patch = parse_doc_comment(export.raw_comment)

    present: List[str] = []
    applicable: List[str] = ["description", "examples"]
    if _has_description(export, patch):
        present.append("description")
    if export.examples or patch.examples:
        present.append("examples")

    params = actual_parameters(export)
    if params:
        applicable.append("params")
        if all(param.description or patch.param(param.name) is not None for param in params):
            present.append("params")

    if _returns_applicable(export):
        applicable.append("returns")
        documented = any(
            sig.returns is not None and sig.returns.description for sig in export.signatures
        )
        if documented or patch.returns is not None:
            present.append("returns")

    missing = tuple(name for name in SIGNAL_NAMES if name in applicable and name not in present)
    score = round(100 * len(present) / len(applicable))
    return CoverageResult(coverage_score=score, missing=missing)


def aggregate_coverage(scores: Sequence[int]) -> int:
    if not scores:
        return 100
    return round(sum(scores) / len(scores))


def enrich_export(
    export: Export,
    *,
    example_results: Optional[ExampleResults] = None,
    assertion_parser: Optional[AssertionParser] = None,
) -> Export:
    """Return ``export`` with freshly derived docs metadata.

    Without runner results, example drift recorded by an earlier enrichment is
    carried over so enrichment stays idempotent.
    """
    patch = parse_doc_comment(export.raw_comment) if export.has_known_kind else DocCommentPatch()
    coverage = score_export(export, patch)
    drift = compute_export_drift(
        export,
        patch=patch,
        example_results=example_results,
        assertion_parser=assertion_parser,
    )
    if not example_results and export.docs is not None and export.has_known_kind:
        carried = tuple(
            record
            for record in export.docs.drift
            if record.category is DriftCategory.EXAMPLE and record not in drift
        )
        drift = drift + carried
    docs = DocsMetadata(
        coverage_score=coverage.coverage_score,
        missing=coverage.missing,
        drift=drift,
    )
    return replace(export, docs=docs)


def enrich_spec(
    spec: Spec,
    *,
    example_results: Optional[Mapping[str, ExampleResults]] = None,
    assertion_parser: Optional[AssertionParser] = None,
) -> Spec:
    results = example_results or {}
    exports = tuple(
        enrich_export(
            export,
            example_results=results.get(export.id),
            assertion_parser=assertion_parser,
        )
        for export in spec.exports
    )
    score = aggregate_coverage([export.docs.coverage_score for export in exports if export.docs])
    _LOGGER.debug("Enriched %s with %d export(s), coverage %d%%", spec.meta.name, len(exports), score)
    return replace(spec, exports=exports, docs=DocsMetadata(coverage_score=score))


def ensure_enriched(spec: Spec) -> Spec:
    return spec if spec.is_enriched else enrich_spec(spec)


def _has_description(export: Export, patch: DocCommentPatch) -> bool:
    if export.description and export.description.strip():
        return True
    return bool(patch.description)


def _returns_applicable(export: Export) -> bool:
    if export.kind == "class":
        return False
    return any(
        sig.returns is not None and not is_void_type(sig.returns.declared_type)
        for sig in export.signatures
    )


__all__ = [
    "CoverageResult",
    "aggregate_coverage",
    "enrich_export",
    "enrich_spec",
    "ensure_enriched",
    "score_export",
]
