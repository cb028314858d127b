"""Find markdown examples affected by API changes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .markdown import MarkdownDocFile, block_references, extract_method_calls, find_instantiations, mentions
from .members import REMOVED, SIGNATURE_CHANGED, MemberChange

REMOVED_EXPORT = "removed"
CHANGED_EXPORT = "signature-changed"
METHOD_REMOVED = "method-removed"
METHOD_CHANGED = "method-changed"


@dataclass(frozen=True)
class ImpactReference:
    line: int
    export_name: str
    change_type: str
    member_name: Optional[str] = None
    is_instantiation: bool = False
    replacement_suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data: Dict[str, object] = {
            "line": self.line,
            "exportName": self.export_name,
            "changeType": self.change_type,
            "isInstantiation": self.is_instantiation,
        }
        if self.member_name is not None:
            data["memberName"] = self.member_name
        if self.replacement_suggestion is not None:
            data["replacementSuggestion"] = self.replacement_suggestion
        return data


@dataclass(frozen=True)
class ImpactedFile:
    file: str
    references: Tuple[ImpactReference, ...]

    def to_dict(self) -> Dict[str, object]:
        return {"file": self.file, "references": [ref.to_dict() for ref in self.references]}


@dataclass(frozen=True)
class ImpactStats:
    files_scanned: int = 0
    code_blocks_found: int = 0
    total_exports: int = 0
    documented_exports: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "filesScanned": self.files_scanned,
            "codeBlocksFound": self.code_blocks_found,
            "totalExports": self.total_exports,
            "documentedExports": self.documented_exports,
        }


@dataclass(frozen=True)
class DocsImpactSummary:
    impacted_file_count: int = 0
    impacted_reference_count: int = 0
    missing_docs_count: int = 0
    member_changes_count: int = 0

    @property
    def total_issues(self) -> int:
        return self.impacted_reference_count + self.missing_docs_count

    def to_dict(self) -> Dict[str, int]:
        return {
            "impactedFileCount": self.impacted_file_count,
            "impactedReferenceCount": self.impacted_reference_count,
            "missingDocsCount": self.missing_docs_count,
            "totalIssues": self.total_issues,
            "memberChangesCount": self.member_changes_count,
        }


@dataclass(frozen=True)
class DocsImpact:
    impacted_files: Tuple[ImpactedFile, ...] = ()
    missing_docs: Tuple[str, ...] = ()
    all_undocumented: Tuple[str, ...] = ()
    stats: ImpactStats = field(default_factory=ImpactStats)

    @property
    def has_impact(self) -> bool:
        """True when a code block references a changed API or a new export lacks docs."""
        return bool(self.impacted_files or self.missing_docs)

    def summary(self, member_changes_count: int = 0) -> DocsImpactSummary:
        return DocsImpactSummary(
            impacted_file_count=len(self.impacted_files),
            impacted_reference_count=sum(len(item.references) for item in self.impacted_files),
            missing_docs_count=len(self.missing_docs),
            member_changes_count=member_changes_count,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "impactedFiles": [item.to_dict() for item in self.impacted_files],
            "missingDocs": list(self.missing_docs),
            "allUndocumented": list(self.all_undocumented),
            "stats": self.stats.to_dict(),
        }


def analyze_docs_impact(
    files: Sequence[MarkdownDocFile],
    *,
    removed_names: Sequence[str],
    changed_names: Sequence[str],
    added_names: Sequence[str],
    head_names: Sequence[str],
    member_changes: Sequence[MemberChange] = (),
) -> DocsImpact:
    """Scan code blocks for references to removed or changed exports and members.

    Method calls matching a member change are reported first; ``new Class(``
    is reported only for classes with member changes whose methods were not
    referenced in the same block.
    """
    by_method: Dict[str, MemberChange] = {}
    for change in member_changes:
        if change.change_type in (REMOVED, SIGNATURE_CHANGED):
            by_method.setdefault(change.member_name, change)
    classes_with_changes = list(dict.fromkeys(change.class_name for change in by_method.values()))
    plain_targets = [
        name for name in list(removed_names) + list(changed_names) if name not in classes_with_changes
    ]
    removed = set(removed_names)

    impacted: Dict[str, List[ImpactReference]] = {}
    for doc_file in files:
        for block in doc_file.code_blocks:
            reported: Set[Tuple[int, str]] = set()
            referenced_classes: Set[str] = set()
            for call in extract_method_calls(block.code):
                change = by_method.get(call.method_name)
                if change is None:
                    continue
                line = block.start_line + call.line - 1
                if (line, call.method_name) in reported:
                    continue
                reported.add((line, call.method_name))
                referenced_classes.add(change.class_name)
                impacted.setdefault(doc_file.path, []).append(
                    ImpactReference(
                        line=line,
                        export_name=change.class_name,
                        member_name=call.method_name,
                        change_type=METHOD_REMOVED if change.change_type == REMOVED else METHOD_CHANGED,
                        replacement_suggestion=change.suggestion,
                    )
                )
            for class_name in classes_with_changes:
                if class_name in referenced_classes:
                    continue
                lines = find_instantiations(block.code, class_name)
                if not lines:
                    continue
                impacted.setdefault(doc_file.path, []).append(
                    ImpactReference(
                        line=block.start_line + lines[0] - 1,
                        export_name=class_name,
                        change_type=CHANGED_EXPORT,
                        is_instantiation=True,
                    )
                )
            for ref in block_references(block, plain_targets):
                if (ref.line, ref.name) in reported:
                    continue
                reported.add((ref.line, ref.name))
                impacted.setdefault(doc_file.path, []).append(
                    ImpactReference(
                        line=ref.line,
                        export_name=ref.name,
                        change_type=REMOVED_EXPORT if ref.name in removed else CHANGED_EXPORT,
                    )
                )

    documented = {
        name
        for name in head_names
        if any(mentions(block, name) for doc_file in files for block in doc_file.code_blocks)
    }
    return DocsImpact(
        impacted_files=tuple(
            ImpactedFile(file=path, references=tuple(refs)) for path, refs in impacted.items()
        ),
        missing_docs=tuple(name for name in added_names if name not in documented),
        all_undocumented=tuple(name for name in head_names if name not in documented),
        stats=ImpactStats(
            files_scanned=len(files),
            code_blocks_found=sum(len(doc_file.code_blocks) for doc_file in files),
            total_exports=len(head_names),
            documented_exports=len(documented),
        ),
    )


__all__ = [
    "CHANGED_EXPORT",
    "DocsImpact",
    "DocsImpactSummary",
    "ImpactReference",
    "ImpactStats",
    "ImpactedFile",
    "METHOD_CHANGED",
    "METHOD_REMOVED",
    "REMOVED_EXPORT",
    "analyze_docs_impact",
]
