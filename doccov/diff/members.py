"""Class member level change detection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from ..drift.categorize import Group
from ..drift.utils import find_closest_match, normalize_type
from ..models import Export, Member, Signature

ADDED = "added"
REMOVED = "removed"
SIGNATURE_CHANGED = "signature-changed"


@dataclass(frozen=True)
class MemberChange:
    class_name: str
    member_name: str
    change_type: str
    old_signature: Optional[str] = None
    new_signature: Optional[str] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {
            "className": self.class_name,
            "memberName": self.member_name,
            "changeType": self.change_type,
        }
        if self.old_signature is not None:
            data["oldSignature"] = self.old_signature
        if self.new_signature is not None:
            data["newSignature"] = self.new_signature
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        return data


def format_signature(name: str, signature: Signature) -> str:
    params = []
    for param in signature.parameters:
        marker = "" if param.required else "?"
        params.append(f"{param.name}{marker}: {param.declared_type}")
    rendered = f"{name}({', '.join(params)})"
    if signature.returns is not None:
        rendered += f": {signature.returns.declared_type}"
    return rendered


def format_member_signature(member: Member) -> str:
    if not member.signatures:
        return member.name
    return " | ".join(format_signature(member.name, sig) for sig in member.signatures)


def find_similar_member(name: str, candidates: Sequence[str]) -> Optional[str]:
    match = find_closest_match(name, candidates, suffix_weight=2.0)
    return match.value if match else None


def diff_members(base: Export, head: Export) -> List[MemberChange]:
    """Compare class members by name; order follows base then head."""
    base_members = _by_name(base.members)
    head_members = _by_name(head.members)
    added_names = [name for name in head_members if name not in base_members]
    changes: List[MemberChange] = []

    for name, member in base_members.items():
        if name not in head_members:
            replacement = find_similar_member(name, added_names) or find_similar_member(
                name, list(head_members)
            )
            changes.append(
                MemberChange(
                    class_name=base.name,
                    member_name=name,
                    change_type=REMOVED,
                    old_signature=format_member_signature(member),
                    suggestion=f"Use {replacement} instead" if replacement else None,
                )
            )
            continue
        updated = head_members[name]
        if _member_shape(member) != _member_shape(updated):
            changes.append(
                MemberChange(
                    class_name=base.name,
                    member_name=name,
                    change_type=SIGNATURE_CHANGED,
                    old_signature=format_member_signature(member),
                    new_signature=format_member_signature(updated),
                )
            )

    for name in added_names:
        changes.append(
            MemberChange(
                class_name=head.name,
                member_name=name,
                change_type=ADDED,
                new_signature=format_member_signature(head_members[name]),
            )
        )
    return _dedupe(changes)


def diff_class_members(
    base_exports: Dict[str, Export], head_exports: Dict[str, Export]
) -> List[MemberChange]:
    changes: List[MemberChange] = []
    for export_id, base in base_exports.items():
        head = head_exports.get(export_id)
        if head is None or base.kind != "class" or head.kind != "class":
            continue
        changes.extend(diff_members(base, head))
    return changes


def group_member_changes_by_class(changes: Sequence[MemberChange]) -> List[Group[str, MemberChange]]:
    buckets: Dict[str, List[MemberChange]] = {}
    for change in changes:
        buckets.setdefault(change.class_name, []).append(change)
    return [Group(key=name, items=tuple(items)) for name, items in buckets.items()]


def _member_shape(member: Member) -> tuple:
    signatures = tuple(
        (
            tuple((normalize_type(p.declared_type), p.required) for p in sig.parameters),
            normalize_type(sig.returns.declared_type) if sig.returns else None,
        )
        for sig in member.signatures
    )
    return (member.kind, member.visibility or "public", signatures)


def _by_name(members: Sequence[Member]) -> Dict[str, Member]:
    result: Dict[str, Member] = {}
    for member in members:
        result.setdefault(member.name, member)
    return result


def _dedupe(changes: List[MemberChange]) -> List[MemberChange]:
    seen = set()
    unique: List[MemberChange] = []
    for change in changes:
        if change in seen:
            continue
        seen.add(change)
        unique.append(change)
    return unique


__all__ = [
    "ADDED",
    "MemberChange",
    "REMOVED",
    "SIGNATURE_CHANGED",
    "diff_class_members",
    "diff_members",
    "find_similar_member",
    "format_member_signature",
    "format_signature",
    "group_member_changes_by_class",
]
