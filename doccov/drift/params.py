"""Parameter-level drift: names, optionality and declared types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Set

from ..comments import DocCommentPatch, DocParam
from ..models import DriftRecord, DriftType, Export, Parameter
from .utils import (
    actual_parameters,
    find_closest_match,
    normalize_type,
    positional_parameters,
    types_equivalent,
)

_UNKNOWN_TYPES = frozenset({"unknown", "any"})


@dataclass
class ParameterMatching:
    """How documented ``@param`` entries line up with the declared parameters.

    Documented names are matched to the signature by name first and by
    position second. A documented name that matches nothing but sits at the same
    position as an undocumented declared parameter is treated as a rename.
    """

    matched: Dict[str, Parameter] = field(default_factory=dict)
    renames: Dict[str, Parameter] = field(default_factory=dict)
    unknown: List[DocParam] = field(default_factory=list)
    undocumented: List[Parameter] = field(default_factory=list)


def match_parameters(export: Export, patch: DocCommentPatch) -> ParameterMatching:
    matching = ParameterMatching()
    actual = actual_parameters(export)
    by_name = {param.name: param for param in actual}
    positional = positional_parameters(export)
    documented_names = set(patch.param_names)
    claimed: Set[str] = set()

    for index, doc_param in enumerate(patch.params):
        if doc_param.name in by_name:
            matching.matched[doc_param.name] = by_name[doc_param.name]
            claimed.add(doc_param.name)
            continue
        prefix = doc_param.name.split(".", 1)[0]
        if "." in doc_param.name and prefix in by_name:
            # Destructured property docs cannot be verified without a schema.
            continue
        if index < len(positional):
            candidate = positional[index]
            if candidate.name not in documented_names and candidate.name not in claimed:
                matching.renames[doc_param.name] = candidate
                claimed.add(candidate.name)
                continue
        matching.unknown.append(doc_param)

    documented_prefixes = {name.split(".", 1)[0] for name in documented_names}
    for param in actual:
        if param.name in claimed or param.name in documented_prefixes:
            continue
        matching.undocumented.append(param)
    return matching


def detect_param_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    if not export.signatures or not patch.params:
        return []

    matching = match_parameters(export, patch)
    actual_names = [param.name for param in actual_parameters(export)]
    records: List[DriftRecord] = []

    for doc_name, actual in matching.renames.items():
        records.append(
            DriftRecord(
                type=DriftType.PARAM_MISMATCH,
                issue=f'JSDoc documents parameter "{doc_name}" which is not present in the signature.',
                suggestion=f'Did you mean "{actual.name}"?',
                target=doc_name,
            )
        )

    for doc_param in matching.unknown:
        closest = find_closest_match(doc_param.name, actual_names)
        if closest is not None:
            suggestion = f'Did you mean "{closest.value}"?'
        elif actual_names:
            suggestion = f"Available parameters: {', '.join(actual_names)}"
        else:
            suggestion = f"Remove @param {doc_param.name}."
        records.append(
            DriftRecord(
                type=DriftType.PARAM_MISMATCH,
                issue=f'JSDoc documents parameter "{doc_param.name}" which is not present in the signature.',
                suggestion=suggestion,
                target=doc_param.name,
            )
        )

    for param in matching.undocumented:
        records.append(
            DriftRecord(
                type=DriftType.PARAM_MISMATCH,
                issue=f'Parameter "{param.name}" is missing from the doc comment.',
                suggestion=f"Add @param {{{param.declared_type}}} {param.name}.",
                target=param.name,
            )
        )
    return records


def detect_optionality_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    if not export.signatures or not patch.params:
        return []
    matching = match_parameters(export, patch)
    records: List[DriftRecord] = []
    for doc_param in patch.params:
        actual = matching.matched.get(doc_param.name)
        if actual is None:
            continue
        actual_optional = not actual.required
        if actual_optional == doc_param.optional:
            continue
        name = doc_param.name
        if doc_param.optional:
            issue = f'JSDoc marks parameter "{name}" optional but the signature requires it.'
            suggestion = f"Remove brackets around {name} or mark the parameter optional in the signature."
        else:
            issue = (
                f'JSDoc omits optional brackets for parameter "{name}" '
                "but the signature marks it optional."
            )
            suggestion = f"Document {name} as [{name}] or make it required in the signature."
        records.append(
            DriftRecord(
                type=DriftType.OPTIONALITY_MISMATCH,
                issue=issue,
                suggestion=suggestion,
                target=name,
            )
        )
    return records


def detect_param_type_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    if not export.signatures or not patch.params:
        return []
    matching = match_parameters(export, patch)
    records: List[DriftRecord] = []
    for doc_param in patch.params:
        actual = matching.matched.get(doc_param.name)
        if actual is None or not doc_param.type:
            continue
        declared = actual.declared_type
        if normalize_type(declared) is None or declared.strip() in _UNKNOWN_TYPES:
            continue
        if types_equivalent(doc_param.type, declared):
            continue
        records.append(
            DriftRecord(
                type=DriftType.PARAM_TYPE_MISMATCH,
                issue=(
                    f'JSDoc documents {doc_param.type} for parameter "{doc_param.name}" '
                    f"but the signature declares {declared}."
                ),
                suggestion=f"Update @param {{{declared}}} {doc_param.name} to match the signature.",
                target=doc_param.name,
            )
        )
    return records


__all__ = [
    "ParameterMatching",
    "detect_optionality_drift",
    "detect_param_drift",
    "detect_param_type_drift",
    "match_parameters",
]
