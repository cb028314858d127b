"""doccov: documentation coverage, drift detection, fixes and API diffs.

The package works on API snapshots (:class:`~doccov.models.Spec`) produced
by an external extractor. Typical use::

    spec = spec_from_dict(json.loads(path.read_text()))
    enriched = enrich_spec(spec)
    diff = diff_spec(base, enriched)
"""

from .checks import CheckResult, evaluate_thresholds
from .config import ConfigError, DocCovConfig, Thresholds, load_config
from .coverage import enrich_export, enrich_spec, score_export
from .diff import diff_spec, recommend_semver_bump
from .drift import compute_drift, compute_export_drift
from .fix import apply_edits, build_fix_plan
from .models import DriftRecord, DriftType, Export, Spec, spec_from_dict, spec_to_dict

__all__ = [
    "CheckResult",
    "ConfigError",
    "DocCovConfig",
    "DriftRecord",
    "DriftType",
    "Export",
    "Spec",
    "Thresholds",
    "apply_edits",
    "build_fix_plan",
    "compute_drift",
    "compute_export_drift",
    "diff_spec",
    "enrich_export",
    "enrich_spec",
    "evaluate_thresholds",
    "load_config",
    "recommend_semver_bump",
    "score_export",
    "spec_from_dict",
    "spec_to_dict",
]
