"""Deprecation and visibility drift."""

from __future__ import annotations

from typing import List, Optional

from ..comments import DocCommentPatch, parse_doc_comment
from ..models import DriftRecord, DriftType, Export

_DOC_VISIBILITY = {
    "internal": "internal",
    "alpha": "internal",
    "private": "private",
    "protected": "protected",
    "public": "public",
}


def detect_deprecated_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    code_deprecated = export.is_deprecated
    docs_deprecated = patch.deprecated is not None
    if code_deprecated == docs_deprecated:
        return []
    target = export.name
    if code_deprecated:
        return [
            DriftRecord(
                type=DriftType.DEPRECATED_MISMATCH,
                issue=f'Declaration for "{target}" is marked deprecated but @deprecated is missing from the docs.',
                suggestion="Add an @deprecated tag explaining the replacement or removal timeline.",
                target=target,
            )
        ]
    return [
        DriftRecord(
            type=DriftType.DEPRECATED_MISMATCH,
            issue=f'JSDoc marks "{target}" as deprecated but the declaration is not.',
            suggestion="Remove the @deprecated tag or deprecate the declaration.",
            target=target,
        )
    ]


def detect_visibility_drift(export: Export, patch: DocCommentPatch) -> List[DriftRecord]:
    """Exports are always public; members carry their own declared visibility."""
    records: List[DriftRecord] = []
    record = _visibility_record(export.name, patch.visibility, "public")
    if record is not None:
        records.append(record)

    for member in export.members:
        if not member.raw_comment:
            continue
        member_patch = parse_doc_comment(member.raw_comment)
        record = _visibility_record(
            f"{export.name}#{member.name}",
            member_patch.visibility,
            member.visibility or "public",
        )
        if record is not None:
            records.append(record)
    return records


def visibility_matches(doc_visibility: str, actual: str) -> bool:
    if doc_visibility == "internal":
        return actual != "public"
    return doc_visibility == actual


def _visibility_record(target: str, tag: Optional[str], actual: str) -> Optional[DriftRecord]:
    if not tag:
        return None
    documented = _DOC_VISIBILITY.get(tag)
    if documented is None or visibility_matches(documented, actual):
        return None
    return DriftRecord(
        type=DriftType.VISIBILITY_MISMATCH,
        issue=f'JSDoc marks "{target}" as @{tag} but the declaration is {actual}.',
        suggestion=_visibility_suggestion(tag, documented, actual),
        target=target,
    )


def _visibility_suggestion(tag: str, documented: str, actual: str) -> str:
    label = f"@{tag}"
    if documented == "internal":
        return f"Remove {label} or mark the declaration protected/private."
    if documented == "public":
        return f"Remove {label} or mark the declaration public."
    if documented == "protected" and actual == "private":
        return f"Promote the declaration to protected or replace {label} with @private."
    if documented == "private" and actual == "protected":
        return f"Downgrade the declaration to private or replace {label} with @protected/@internal."
    return f"Remove {label} or mark the declaration {documented}."


__all__ = ["detect_deprecated_drift", "detect_visibility_drift", "visibility_matches"]
