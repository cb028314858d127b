"""Fix generation and doc comment patch application."""

from .generator import (
    DEFAULT_DESCRIPTION_PLACEHOLDER,
    DriftPartition,
    FixKind,
    FixPlan,
    FixSuggestion,
    PatchFragment,
    build_fix_plan,
    categorize_drifts,
    generate_fix,
    generate_fixes,
    generate_missing_fixes,
    is_fixable,
    merge_fixes,
)
from .writer import (
    ApplyEditsResult,
    DocLocation,
    EditBatch,
    EditError,
    JSDocEdit,
    PatchLocationNotFound,
    apply_edits,
    build_edits,
    create_edit,
    locate_doc_comment,
)

__all__ = [
    "ApplyEditsResult",
    "DEFAULT_DESCRIPTION_PLACEHOLDER",
    "DocLocation",
    "DriftPartition",
    "EditBatch",
    "EditError",
    "FixKind",
    "FixPlan",
    "FixSuggestion",
    "JSDocEdit",
    "PatchFragment",
    "PatchLocationNotFound",
    "apply_edits",
    "build_edits",
    "build_fix_plan",
    "categorize_drifts",
    "create_edit",
    "generate_fix",
    "generate_fixes",
    "generate_missing_fixes",
    "is_fixable",
    "locate_doc_comment",
    "merge_fixes",
]
