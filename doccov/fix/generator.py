"""Turn drift and missing-signal records into doc comment patches."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, NamedTuple, Optional, Sequence, Tuple

from ..comments import (
    DocCommentPatch,
    DocParam,
    DocReturn,
    DocTemplate,
    parse_doc_comment,
    serialize_doc_comment,
)
from ..coverage import score_export
from ..drift.compute import compute_export_drift
from ..drift.params import match_parameters
from ..drift.utils import (
    actual_parameters,
    declared_return_type,
    declared_type_parameters,
    positional_parameters,
)
from ..logging import get_logger
from ..models import DriftRecord, DriftType, Export

_LOGGER = get_logger("fix")

DEFAULT_DESCRIPTION_PLACEHOLDER = "TODO: describe {name}."


class FixKind(str, Enum):
    ADD_PARAM = "add-param"
    RENAME_PARAM = "rename-param"
    REMOVE_PARAM = "remove-param"
    UPDATE_PARAM_TYPE = "update-param-type"
    UPDATE_PARAM_OPTIONALITY = "update-param-optionality"
    UPDATE_RETURN_TYPE = "update-return-type"
    UPDATE_TEMPLATE_CONSTRAINT = "update-template-constraint"
    ADD_DEPRECATED = "add-deprecated"
    REMOVE_DEPRECATED = "remove-deprecated"
    ADD_DESCRIPTION = "add-description"
    ADD_RETURNS = "add-returns"


@dataclass(frozen=True)
class PatchFragment:
    """A single field-level change to a :class:`DocCommentPatch`.

    ``op`` selects the field; the remaining attributes carry the new value.
    ``order`` lists declared parameter names so inserted params land in
    signature position.
    """

    op: str
    name: Optional[str] = None
    param: Optional[DocParam] = None
    returns: Optional[DocReturn] = None
    template: Optional[DocTemplate] = None
    text: Optional[str] = None
    optional: Optional[bool] = None
    order: Tuple[str, ...] = ()

    def apply(self, patch: DocCommentPatch) -> DocCommentPatch:
        return _FRAGMENT_OPS[self.op](self, patch)


@dataclass(frozen=True)
class FixSuggestion:
    kind: FixKind
    description: str
    fragment: PatchFragment
    drift_type: Optional[DriftType] = None
    target: Optional[str] = None


class DriftPartition(NamedTuple):
    fixable: List[DriftRecord]
    non_fixable: List[DriftRecord]


@dataclass(frozen=True)
class FixPlan:
    export: Export
    fixes: Tuple[FixSuggestion, ...]
    patch: DocCommentPatch
    comment_text: str
    skipped: Tuple[DriftRecord, ...] = ()


FixHandler = Callable[[DriftRecord, Export, DocCommentPatch], Optional[FixSuggestion]]


def generate_fix(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    handler = _FIX_HANDLERS[drift.type]
    if handler is None:
        return None
    return handler(drift, export, patch)


def is_fixable(drift_type: DriftType) -> bool:
    return _FIX_HANDLERS[drift_type] is not None


def categorize_drifts(drifts: Iterable[DriftRecord]) -> DriftPartition:
    fixable: List[DriftRecord] = []
    non_fixable: List[DriftRecord] = []
    for record in drifts:
        (fixable if is_fixable(record.type) else non_fixable).append(record)
    return DriftPartition(fixable=fixable, non_fixable=non_fixable)


def generate_missing_fixes(
    export: Export,
    patch: DocCommentPatch,
    missing: Sequence[str],
    *,
    description_placeholder: str = DEFAULT_DESCRIPTION_PLACEHOLDER,
) -> List[FixSuggestion]:
    fixes: List[FixSuggestion] = []
    if "description" in missing:
        fixes.append(
            FixSuggestion(
                kind=FixKind.ADD_DESCRIPTION,
                description=f"Add a description for {export.name}",
                fragment=PatchFragment(
                    op="description", text=description_placeholder.format(name=export.name)
                ),
            )
        )
    if "params" in missing:
        matching = match_parameters(export, patch)
        renamed = {param.name for param in matching.renames.values()}
        for param in matching.undocumented:
            if param.name in renamed:
                continue
            fixes.append(_add_param_fix(export, param.name, None))
    if "returns" in missing:
        declared = declared_return_type(export)
        fixes.append(
            FixSuggestion(
                kind=FixKind.ADD_RETURNS,
                description="Add @returns",
                fragment=PatchFragment(op="returns", returns=DocReturn(type=declared)),
                target="returns",
            )
        )
    return fixes


def generate_fixes(
    export: Export,
    patch: Optional[DocCommentPatch] = None,
    *,
    description_placeholder: str = DEFAULT_DESCRIPTION_PLACEHOLDER,
) -> Tuple[List[FixSuggestion], List[DriftRecord]]:
    """Return fixes for ``export`` plus the drift records no fix could address."""
    if patch is None:
        patch = parse_doc_comment(export.raw_comment)
    if export.docs is not None:
        drifts: Sequence[DriftRecord] = export.docs.drift
        missing: Sequence[str] = export.docs.missing
    else:
        drifts = compute_export_drift(export, patch=patch)
        missing = score_export(export, patch).missing

    fixes: List[FixSuggestion] = []
    skipped: List[DriftRecord] = []
    for record in drifts:
        fix = generate_fix(record, export, patch)
        if fix is None:
            skipped.append(record)
        else:
            fixes.append(fix)
    covered = {(fix.kind, fix.target) for fix in fixes}
    for fix in generate_missing_fixes(
        export, patch, missing, description_placeholder=description_placeholder
    ):
        if (fix.kind, fix.target) not in covered:
            fixes.append(fix)
    return fixes, skipped


def merge_fixes(patch: DocCommentPatch, fixes: Iterable[FixSuggestion]) -> DocCommentPatch:
    """Fold fixes over ``patch`` in order; later fixes win on the same field."""
    merged = patch
    for fix in fixes:
        merged = fix.fragment.apply(merged)
    return merged


def build_fix_plan(
    export: Export,
    *,
    indent: str = "",
    description_placeholder: str = DEFAULT_DESCRIPTION_PLACEHOLDER,
) -> FixPlan:
    patch = parse_doc_comment(export.raw_comment)
    fixes, skipped = generate_fixes(
        export, patch, description_placeholder=description_placeholder
    )
    merged = merge_fixes(patch, fixes)
    if skipped:
        _LOGGER.debug("%s: %d drift record(s) need manual attention", export.id, len(skipped))
    return FixPlan(
        export=export,
        fixes=tuple(fixes),
        patch=merged,
        comment_text=serialize_doc_comment(merged, indent),
        skipped=tuple(skipped),
    )


# ----------------------------------------------------------------------
# Drift handlers


def _fix_param_mismatch(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    target = drift.target
    if not target:
        return None
    matching = match_parameters(export, patch)
    if target in matching.renames:
        actual = matching.renames[target]
        documented = patch.param(target) or DocParam(name=target)
        return FixSuggestion(
            kind=FixKind.RENAME_PARAM,
            description=f"Rename @param {target} to {actual.name}",
            fragment=PatchFragment(
                op="param", name=target, param=replace(documented, name=actual.name)
            ),
            drift_type=drift.type,
            target=target,
        )
    if any(param.name == target for param in matching.unknown):
        return FixSuggestion(
            kind=FixKind.REMOVE_PARAM,
            description=f"Remove @param {target}",
            fragment=PatchFragment(op="remove-param", name=target),
            drift_type=drift.type,
            target=target,
        )
    if any(param.name == target for param in matching.undocumented):
        return _add_param_fix(export, target, drift.type)
    return None


def _fix_param_type(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    documented, actual = _documented_and_actual(drift, export, patch)
    if documented is None or actual is None:
        return None
    return FixSuggestion(
        kind=FixKind.UPDATE_PARAM_TYPE,
        description=f"Update @param {documented.name} type to {actual.declared_type}",
        fragment=PatchFragment(op="param-type", name=documented.name, text=actual.declared_type),
        drift_type=drift.type,
        target=documented.name,
    )


def _fix_optionality(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    documented, actual = _documented_and_actual(drift, export, patch)
    if documented is None or actual is None:
        return None
    optional = not actual.required
    label = f"[{documented.name}]" if optional else documented.name
    return FixSuggestion(
        kind=FixKind.UPDATE_PARAM_OPTIONALITY,
        description=f"Document {documented.name} as {label}",
        fragment=PatchFragment(op="param-optional", name=documented.name, optional=optional),
        drift_type=drift.type,
        target=documented.name,
    )


def _fix_return_type(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    declared = declared_return_type(export)
    if declared is None:
        return None
    existing = patch.returns or DocReturn()
    return FixSuggestion(
        kind=FixKind.UPDATE_RETURN_TYPE,
        description=f"Update @returns type to {declared}",
        fragment=PatchFragment(op="returns", returns=replace(existing, type=declared)),
        drift_type=drift.type,
        target="returns",
    )


def _fix_generic_constraint(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    declared = declared_type_parameters(export)
    if drift.target not in declared:
        return None
    template = DocTemplate(name=drift.target, constraint=declared[drift.target])
    return FixSuggestion(
        kind=FixKind.UPDATE_TEMPLATE_CONSTRAINT,
        description=f"Align @template {drift.target} with the declaration",
        fragment=PatchFragment(op="template", template=template),
        drift_type=drift.type,
        target=drift.target,
    )


def _fix_deprecated(
    drift: DriftRecord, export: Export, patch: DocCommentPatch
) -> Optional[FixSuggestion]:
    if export.is_deprecated:
        reason = export.deprecated if isinstance(export.deprecated, str) else ""
        return FixSuggestion(
            kind=FixKind.ADD_DEPRECATED,
            description="Add @deprecated",
            fragment=PatchFragment(op="deprecated", text=reason),
            drift_type=drift.type,
            target=drift.target,
        )
    return FixSuggestion(
        kind=FixKind.REMOVE_DEPRECATED,
        description="Remove @deprecated",
        fragment=PatchFragment(op="deprecated", text=None),
        drift_type=drift.type,
        target=drift.target,
    )


_FIX_HANDLERS: Dict[DriftType, Optional[FixHandler]] = {
    DriftType.PARAM_MISMATCH: _fix_param_mismatch,
    DriftType.PARAM_TYPE_MISMATCH: _fix_param_type,
    DriftType.RETURN_TYPE_MISMATCH: _fix_return_type,
    DriftType.OPTIONALITY_MISMATCH: _fix_optionality,
    DriftType.GENERIC_CONSTRAINT_MISMATCH: _fix_generic_constraint,
    DriftType.DEPRECATED_MISMATCH: _fix_deprecated,
    DriftType.VISIBILITY_MISMATCH: None,
    DriftType.EXAMPLE_RUNTIME_ERROR: None,
    DriftType.EXAMPLE_ASSERTION_FAILURE: None,
}


def _add_param_fix(export: Export, name: str, drift_type: Optional[DriftType]) -> FixSuggestion:
    actual = next(param for param in actual_parameters(export) if param.name == name)
    order = tuple(param.name for param in positional_parameters(export))
    return FixSuggestion(
        kind=FixKind.ADD_PARAM,
        description=f"Add @param {name}",
        fragment=PatchFragment(
            op="param",
            name=name,
            param=DocParam(name=name, type=actual.declared_type, optional=not actual.required),
            order=order,
        ),
        drift_type=drift_type,
        target=name,
    )


def _documented_and_actual(drift: DriftRecord, export: Export, patch: DocCommentPatch):
    if not drift.target:
        return None, None
    matching = match_parameters(export, patch)
    return patch.param(drift.target), matching.matched.get(drift.target)


# ----------------------------------------------------------------------
# Fragment application


def _apply_param(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    if fragment.param is None:
        raise ValueError("param fragment requires a DocParam")
    replacing = fragment.name or fragment.param.name
    if patch.param(replacing) is not None or not fragment.order:
        return patch.with_param(fragment.param, replacing=replacing)
    rank = {name: index for index, name in enumerate(fragment.order)}
    own = rank.get(fragment.param.name, len(rank))
    params = list(patch.params)
    position = len(params)
    for index, existing in enumerate(params):
        if rank.get(existing.name, -1) > own:
            position = index
            break
    params.insert(position, fragment.param)
    return replace(patch, params=tuple(params))


def _apply_param_type(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    current = patch.param(fragment.name or "")
    if current is None:
        return patch
    return patch.with_param(replace(current, type=fragment.text), replacing=current.name)


def _apply_param_optional(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    current = patch.param(fragment.name or "")
    if current is None or fragment.optional is None:
        return patch
    optional = fragment.optional
    updated = replace(current, optional=optional, default=current.default if optional else None)
    return patch.with_param(updated, replacing=current.name)


def _apply_remove_param(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    return patch.without_param(fragment.name or "")


def _apply_returns(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    return replace(patch, returns=fragment.returns)


def _apply_template(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    if fragment.template is None:
        raise ValueError("template fragment requires a DocTemplate")
    return patch.with_template(fragment.template)


def _apply_deprecated(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    return replace(patch, deprecated=fragment.text)


def _apply_description(fragment: PatchFragment, patch: DocCommentPatch) -> DocCommentPatch:
    return replace(patch, description=fragment.text)


_FRAGMENT_OPS: Dict[str, Callable[[PatchFragment, DocCommentPatch], DocCommentPatch]] = {
    "param": _apply_param,
    "param-type": _apply_param_type,
    "param-optional": _apply_param_optional,
    "remove-param": _apply_remove_param,
    "returns": _apply_returns,
    "template": _apply_template,
    "deprecated": _apply_deprecated,
    "description": _apply_description,
}


__all__ = [
    "DEFAULT_DESCRIPTION_PLACEHOLDER",
    "DriftPartition",
    "FixKind",
    "FixPlan",
    "FixSuggestion",
    "PatchFragment",
    "build_fix_plan",
    "categorize_drifts",
    "generate_fix",
    "generate_fixes",
    "generate_missing_fixes",
    "is_fixable",
    "merge_fixes",
]
