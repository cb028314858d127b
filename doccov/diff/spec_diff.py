"""Spec-to-spec comparison, breaking change severity and semver recommendation."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
import re
from typing import Dict, List, Optional, Sequence, Tuple

from ..coverage import ensure_enriched
from ..drift.utils import normalize_type
from ..logging import get_logger
from ..models import Export, Signature, Spec, TypeDecl
from .impact import DocsImpact, DocsImpactSummary, analyze_docs_impact
from .markdown import MarkdownDocFile
from .members import MemberChange, diff_class_members

_LOGGER = get_logger("diff")

HIGH = "high"
MEDIUM = "medium"
_SEVERITY_ORDER = {HIGH: 0, MEDIUM: 1}
_HIGH_REMOVAL_KINDS = frozenset({"function", "class", "variable", "enum", "namespace", "module"})


@dataclass(frozen=True)
class CategorizedBreaking:
    id: str
    name: str
    kind: str
    severity: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "severity": self.severity,
            "reason": self.reason,
        }


@dataclass(frozen=True)
class SpecDiff:
    old_coverage: int
    new_coverage: int
    coverage_delta: int
    breaking: Tuple[str, ...] = ()
    non_breaking: Tuple[str, ...] = ()
    docs_only: Tuple[str, ...] = ()
    new_undocumented: Tuple[str, ...] = ()
    improved_exports: Tuple[str, ...] = ()
    regressed_exports: Tuple[str, ...] = ()
    drift_introduced: int = 0
    drift_resolved: int = 0
    categorized_breaking: Tuple[CategorizedBreaking, ...] = ()
    member_changes: Tuple[MemberChange, ...] = ()
    docs_impact: Optional[DocsImpact] = None

    @property
    def has_docs_impact(self) -> bool:
        return self.docs_impact is not None and self.docs_impact.has_impact

    def docs_impact_summary(self) -> DocsImpactSummary:
        impact = self.docs_impact if self.docs_impact is not None else DocsImpact()
        return impact.summary(len(self.member_changes))

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "oldCoverage": self.old_coverage,
            "newCoverage": self.new_coverage,
            "coverageDelta": self.coverage_delta,
            "breaking": list(self.breaking),
            "nonBreaking": list(self.non_breaking),
            "docsOnly": list(self.docs_only),
            "newUndocumented": list(self.new_undocumented),
            "improvedExports": list(self.improved_exports),
            "regressedExports": list(self.regressed_exports),
            "driftIntroduced": self.drift_introduced,
            "driftResolved": self.drift_resolved,
            "categorizedBreaking": [item.to_dict() for item in self.categorized_breaking],
            "memberChanges": [change.to_dict() for change in self.member_changes],
        }
        if self.docs_impact is not None:
            data["docsImpact"] = self.docs_impact.to_dict()
        return data


@dataclass(frozen=True)
class SemverRecommendation:
    bump: str
    reason: str
    breaking_count: int = 0
    addition_count: int = 0
    docs_only_changes: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "bump": self.bump,
            "reason": self.reason,
            "breakingCount": self.breaking_count,
            "additionCount": self.addition_count,
            "docsOnlyChanges": self.docs_only_changes,
        }


@dataclass
class _Classification:
    breaking: List[str] = field(default_factory=list)
    non_breaking: List[str] = field(default_factory=list)
    docs_only: List[str] = field(default_factory=list)


def diff_spec(
    base: Spec,
    head: Spec,
    *,
    markdown_files: Optional[Sequence[MarkdownDocFile]] = None,
) -> SpecDiff:
    """Compare two snapshots. Unenriched inputs are enriched first; inputs are never modified."""
    base = ensure_enriched(base)
    head = ensure_enriched(head)
    base_exports = base.export_by_id()
    head_exports = head.export_by_id()

    classification = _classify(base, head)
    categorized = categorize_breaking(base, head, classification.breaking)
    member_changes = diff_class_members(base_exports, head_exports)

    new_undocumented = [
        export_id
        for export_id in classification.non_breaking
        if export_id in head_exports and _is_undocumented(head_exports[export_id])
    ]
    improved: List[str] = []
    regressed: List[str] = []
    for export_id, old in base_exports.items():
        new = head_exports.get(export_id)
        if new is None:
            continue
        old_score = old.docs.coverage_score if old.docs else 0
        new_score = new.docs.coverage_score if new.docs else 0
        if new_score > old_score:
            improved.append(export_id)
        elif new_score < old_score:
            regressed.append(export_id)

    base_drift = _drift_keys(base)
    head_drift = _drift_keys(head)
    introduced = sum((head_drift - base_drift).values())
    resolved = sum((base_drift - head_drift).values())

    old_coverage = base.docs.coverage_score if base.docs else 100
    new_coverage = head.docs.coverage_score if head.docs else 100

    docs_impact = None
    if markdown_files is not None:
        removed_ids = [export_id for export_id in classification.breaking if export_id not in head_exports]
        changed_ids = [export_id for export_id in classification.breaking if export_id in head_exports]
        docs_impact = analyze_docs_impact(
            markdown_files,
            removed_names=[base_exports[i].name for i in removed_ids if i in base_exports],
            changed_names=[head_exports[i].name for i in changed_ids],
            added_names=[head_exports[i].name for i in classification.non_breaking if i in head_exports],
            head_names=[export.name for export in head.exports],
            member_changes=member_changes,
        )

    result = SpecDiff(
        old_coverage=old_coverage,
        new_coverage=new_coverage,
        coverage_delta=new_coverage - old_coverage,
        breaking=tuple(classification.breaking),
        non_breaking=tuple(classification.non_breaking),
        docs_only=tuple(classification.docs_only),
        new_undocumented=tuple(new_undocumented),
        improved_exports=tuple(improved),
        regressed_exports=tuple(regressed),
        drift_introduced=introduced,
        drift_resolved=resolved,
        categorized_breaking=tuple(categorized),
        member_changes=tuple(member_changes),
        docs_impact=docs_impact,
    )
    _LOGGER.debug(
        "Diffed %s@%s -> %s@%s: %d breaking, %d added, %d docs-only",
        base.meta.name,
        base.meta.version,
        head.meta.name,
        head.meta.version,
        len(result.breaking),
        len(result.non_breaking),
        len(result.docs_only),
    )
    return result


def categorize_breaking(
    base: Spec, head: Spec, breaking: Sequence[str]
) -> List[CategorizedBreaking]:
    """Attach a severity and reason to each breaking id; high severity sorts first."""
    base_exports = base.export_by_id()
    head_exports = head.export_by_id()
    base_types = {decl.id: decl for decl in base.types}
    head_types = {decl.id: decl for decl in head.types}
    entries: List[CategorizedBreaking] = []
    for item_id in breaking:
        if item_id in base_exports:
            old = base_exports[item_id]
            severity, reason = _export_severity(old, head_exports.get(item_id))
            entries.append(CategorizedBreaking(item_id, old.name, old.kind, severity, reason))
        elif item_id in base_types:
            decl = base_types[item_id]
            reason = "removed" if item_id not in head_types else "type definition changed"
            entries.append(CategorizedBreaking(item_id, decl.name, decl.kind, MEDIUM, reason))
    return sorted(entries, key=lambda entry: _SEVERITY_ORDER[entry.severity])


def recommend_semver_bump(diff: SpecDiff) -> SemverRecommendation:
    breaking = len(diff.breaking)
    additions = len(diff.non_breaking)
    docs_only = len(diff.docs_only)
    if breaking:
        bump, reason = "major", f"{breaking} breaking change(s) detected"
    elif additions:
        bump, reason = "minor", f"{additions} new export(s) added"
    elif docs_only:
        bump, reason = "patch", f"{docs_only} documentation-only change(s)"
    else:
        bump, reason = "patch", "No API changes detected"
    return SemverRecommendation(
        bump=bump,
        reason=reason,
        breaking_count=breaking,
        addition_count=additions,
        docs_only_changes=docs_only,
    )


def calculate_next_version(version: str, bump: str) -> str:
    """Apply ``bump`` (major, minor or patch) to a ``[v]X.Y.Z`` version string."""
    prefix = "v" if version.startswith("v") else ""
    match = re.match(r"^(\d+)(?:\.(\d+))?(?:\.(\d+))?", version[len(prefix) :])
    if not match:
        raise ValueError(f"Unsupported version string: {version!r}")
    major, minor, patch = (int(part) if part else 0 for part in match.groups())
    if bump == "major":
        return f"{prefix}{major + 1}.0.0"
    if bump == "minor":
        return f"{prefix}{major}.{minor + 1}.0"
    if bump == "patch":
        return f"{prefix}{major}.{minor}.{patch + 1}"
    raise ValueError(f"Unknown semver bump: {bump!r}")


def structural_fingerprint(export: Export) -> tuple:
    members = tuple(
        sorted(
            (
                member.name,
                member.kind,
                member.visibility or "public",
                tuple(_signature_shape(sig) for sig in member.signatures),
            )
            for member in export.members
        )
    )
    return (
        export.kind,
        tuple(_signature_shape(sig) for sig in export.signatures),
        tuple((param.name, normalize_type(param.constraint)) for param in export.type_parameters),
        members,
    )


def documentation_fingerprint(export: Export) -> tuple:
    return (
        export.description,
        export.examples,
        export.raw_comment,
        export.source,
        export.deprecated,
        tuple(
            (
                sig.description,
                tuple((param.name, param.description) for param in sig.parameters),
                sig.returns.description if sig.returns else None,
            )
            for sig in export.signatures
        ),
        tuple((member.name, member.description, member.raw_comment) for member in export.members),
    )


def _classify(base: Spec, head: Spec) -> _Classification:
    result = _Classification()
    base_exports = base.export_by_id()
    head_exports = head.export_by_id()
    for export_id, old in base_exports.items():
        new = head_exports.get(export_id)
        if new is None or structural_fingerprint(old) != structural_fingerprint(new):
            result.breaking.append(export_id)
        elif documentation_fingerprint(old) != documentation_fingerprint(new):
            result.docs_only.append(export_id)
    result.non_breaking.extend(export_id for export_id in head_exports if export_id not in base_exports)

    base_types = {decl.id: decl for decl in base.types}
    head_types = {decl.id: decl for decl in head.types}
    for type_id, old_decl in base_types.items():
        new_decl = head_types.get(type_id)
        if new_decl is None or _type_shape(old_decl) != _type_shape(new_decl):
            result.breaking.append(type_id)
        elif old_decl.description != new_decl.description:
            result.docs_only.append(type_id)
    result.non_breaking.extend(type_id for type_id in head_types if type_id not in base_types)
    return result


def _export_severity(old: Export, new: Optional[Export]) -> Tuple[str, str]:
    if new is None:
        return (HIGH if old.kind in _HIGH_REMOVAL_KINDS else MEDIUM), "removed"
    if old.kind != new.kind:
        return HIGH, f"kind changed from {old.kind} to {new.kind}"
    if old.kind == "class":
        head_members = {member.name for member in new.members}
        removed = [member.name for member in old.members if member.name not in head_members]
        if removed:
            return HIGH, f"members removed: {', '.join(removed)}"
        if _constructor_shapes(old) != _constructor_shapes(new):
            return HIGH, "constructor changed"
        if old.signatures and _signatures_changed(old.signatures, new.signatures):
            return _signature_severity(old.signatures, new.signatures)
        return MEDIUM, "class members changed"
    if old.kind in ("interface", "type"):
        return MEDIUM, "type definition changed"
    if old.signatures or new.signatures:
        return _signature_severity(old.signatures, new.signatures)
    return MEDIUM, "declaration changed"


def _signature_severity(
    old_signatures: Sequence[Signature], new_signatures: Sequence[Signature]
) -> Tuple[str, str]:
    if len(new_signatures) < len(old_signatures):
        return HIGH, "overload removed"
    medium_reason: Optional[str] = None
    for old, new in zip(old_signatures, new_signatures):
        old_params, new_params = old.parameters, new.parameters
        if len(new_params) < len(old_params):
            return HIGH, "parameter removed"
        for old_param, new_param in zip(old_params, new_params):
            if old_param.required is False and new_param.required:
                return HIGH, f'parameter "{new_param.name}" made required'
            if normalize_type(old_param.declared_type) != normalize_type(new_param.declared_type):
                return HIGH, f'parameter "{new_param.name}" type changed'
            if old_param.required and not new_param.required:
                medium_reason = medium_reason or f'parameter "{new_param.name}" made optional'
        for extra in new_params[len(old_params) :]:
            if extra.required:
                return HIGH, f'required parameter "{extra.name}" added'
            medium_reason = medium_reason or f'optional parameter "{extra.name}" added'
        old_return = normalize_type(old.returns.declared_type) if old.returns else None
        new_return = normalize_type(new.returns.declared_type) if new.returns else None
        if old_return != new_return:
            medium_reason = medium_reason or "return type changed"
    if len(new_signatures) > len(old_signatures):
        medium_reason = medium_reason or "overload added"
    return MEDIUM, medium_reason or "signature changed"


def _signatures_changed(old: Sequence[Signature], new: Sequence[Signature]) -> bool:
    return tuple(_signature_shape(sig) for sig in old) != tuple(_signature_shape(sig) for sig in new)


def _constructor_shapes(export: Export) -> tuple:
    return tuple(
        tuple(_signature_shape(sig) for sig in member.signatures)
        for member in export.members
        if member.kind == "constructor"
    )


def _signature_shape(signature: Signature) -> tuple:
    return (
        tuple((normalize_type(param.declared_type), param.required) for param in signature.parameters),
        normalize_type(signature.returns.declared_type) if signature.returns else None,
        tuple((param.name, normalize_type(param.constraint)) for param in signature.type_parameters),
    )


def _type_shape(decl: TypeDecl) -> tuple:
    return (decl.kind, normalize_type(decl.declared_type))


def _is_undocumented(export: Export) -> bool:
    return export.docs is None or bool(export.docs.missing)


def _drift_keys(spec: Spec) -> Counter:
    keys: Counter = Counter()
    for export in spec.exports:
        if export.docs is None:
            continue
        for record in export.docs.drift:
            keys[(export.id, record.type.value, record.issue)] += 1
    return keys


__all__ = [
    "CategorizedBreaking",
    "HIGH",
    "MEDIUM",
    "SemverRecommendation",
    "SpecDiff",
    "calculate_next_version",
    "categorize_breaking",
    "diff_spec",
    "documentation_fingerprint",
    "recommend_semver_bump",
    "structural_fingerprint",
]
