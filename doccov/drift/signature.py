"""Return type and generic constraint drift."""

from __future__ import annotations

from typing import List, Optional

from ..comments import DocCommentPatch
from ..models import DriftRecord, DriftType, Export
from .utils import (
    declared_return_type,
    declared_type_parameters,
    normalize_type,
    types_equivalent,
    unwrap_promise,
)


def detect_return_type_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    if patch.returns is None or not patch.returns.type:
        return []
    declared = declared_return_type(export)
    if declared is None or normalize_type(declared) is None:
        return []
    documented = patch.returns.type
    if types_equivalent(documented, declared):
        return []
    return [
        DriftRecord(
            type=DriftType.RETURN_TYPE_MISMATCH,
            issue=_return_type_issue(documented, declared),
            suggestion=f"Update @returns to {declared}.",
            target="returns",
        )
    ]


def detect_generic_constraint_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    if not patch.templates:
        return []
    declared = declared_type_parameters(export)
    records: List[DriftRecord] = []
    for template in patch.templates:
        if template.name not in declared:
            continue
        actual = declared[template.name]
        documented_norm = normalize_type(template.constraint)
        actual_norm = normalize_type(actual)
        if documented_norm == actual_norm:
            continue
        if documented_norm and actual_norm and types_equivalent(documented_norm, actual_norm):
            continue
        records.append(
            DriftRecord(
                type=DriftType.GENERIC_CONSTRAINT_MISMATCH,
                issue=_constraint_issue(template.name, template.constraint, actual),
                suggestion=_constraint_suggestion(template.name, actual),
                target=template.name,
            )
        )
    return records


def _return_type_issue(documented: str, declared: str) -> str:
    documented_norm = normalize_type(documented) or documented
    declared_norm = normalize_type(declared) or declared
    doc_inner = unwrap_promise(documented_norm)
    declared_inner = unwrap_promise(declared_norm)
    if doc_inner and not declared_inner and doc_inner == declared_norm:
        return f"JSDoc documents Promise<{doc_inner}> but the function returns {declared_norm}."
    if declared_inner and not doc_inner and documented_norm == declared_inner:
        return f"JSDoc documents {documented_norm} but the function returns Promise<{declared_inner}>."
    return f"JSDoc documents {documented} but the function returns {declared_norm}."


def _constraint_issue(name: str, documented: Optional[str], actual: Optional[str]) -> str:
    if actual and documented:
        return (
            f'JSDoc constrains template "{name}" to {documented} '
            f"but the declaration constrains it to {actual}."
        )
    if actual:
        return (
            f'JSDoc omits the constraint for template "{name}" '
            f"but the declaration constrains it to {actual}."
        )
    return f'JSDoc constrains template "{name}" to {documented} but the declaration has no constraint.'


def _constraint_suggestion(name: str, actual: Optional[str]) -> str:
    if actual:
        return f"Update @template to {{{actual}}} {name} to reflect the declaration."
    return f"Remove the constraint from @template {name} to match the declaration."


__all__ = ["detect_generic_constraint_drift", "detect_return_type_drift"]
