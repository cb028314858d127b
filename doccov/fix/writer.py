"""Locate doc comments in source text and apply comment edits to files."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..comments import DocCommentPatch, serialize_doc_comment
from ..logging import get_logger
from ..models import Export
from .generator import FixPlan

_LOGGER = get_logger("fix.writer")

_MODIFIERS = r"(?:(?:export|default|declare|abstract|async|public|private|protected|static|readonly|override|get|set)\s+)*"
_KEYWORDS = r"(?:function\*?|class|interface|type|enum|const|let|var|namespace|module)"


class PatchLocationNotFound(RuntimeError):
    """Raised when a declaration or its doc comment is no longer where the edit expects."""


@dataclass(frozen=True)
class DocLocation:
    """Line range (1-based, inclusive) of a declaration's doc comment."""

    start_line: int
    end_line: int
    declaration_line: int
    has_existing: bool
    indent: str = ""
    existing_comment: Optional[str] = None


@dataclass(frozen=True)
class JSDocEdit:
    file_path: Path
    symbol_name: str
    start_line: int
    end_line: int
    has_existing: bool
    new_comment_text: str
    indent: str = ""
    existing_comment_text: Optional[str] = None


@dataclass(frozen=True)
class EditError:
    file: str
    error: str

    def to_dict(self) -> Dict[str, str]:
        return {"file": self.file, "error": self.error}


@dataclass
class ApplyEditsResult:
    edits_applied: int = 0
    files_modified: int = 0
    errors: List[EditError] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {
            "editsApplied": self.edits_applied,
            "filesModified": self.files_modified,
            "errors": [error.to_dict() for error in self.errors],
        }


@dataclass
class EditBatch:
    edits: List[JSDocEdit] = field(default_factory=list)
    errors: List[EditError] = field(default_factory=list)


def declaration_pattern(symbol_name: str) -> "re.Pattern[str]":
    """Match keyword declarations (``function``, ``class``, ``const`` ...) of ``symbol_name``."""
    name = re.escape(symbol_name)
    return re.compile(rf"^(?P<indent>[ \t]*){_MODIFIERS}{_KEYWORDS}\s+{name}\b")


def member_pattern(symbol_name: str) -> "re.Pattern[str]":
    """Match class member declarations of ``symbol_name``.

    Methods need a body brace or a return annotation after the parameter list,
    so call statements such as ``add(1, 2);`` never match.
    """
    name = re.escape(symbol_name)
    return re.compile(
        rf"^(?P<indent>[ \t]*){_MODIFIERS}#?{name}\s*"
        r"(?:[?!]?\s*:|=(?!=)|(?:<.*>)?\(.*\)\s*(?::.*)?\{\s*$|(?:<.*>)?\(.*\)\s*:)"
    )


def locate_doc_comment(
    text: str, symbol_name: str, approximate_line: Optional[int] = None
) -> Optional[DocLocation]:
    """Find ``symbol_name``'s declaration and the ``/** */`` block attached to it.

    Keyword declarations win over class member forms. Among candidates of the
    same form the one closest to ``approximate_line`` wins, otherwise the first.
    """
    lines = text.split("\n")
    patterns = (declaration_pattern(symbol_name), member_pattern(symbol_name))
    best: Optional[Tuple[int, int, int, str]] = None
    for index, line in enumerate(lines):
        for rank, pattern in enumerate(patterns):
            match = pattern.match(line)
            if match:
                break
        else:
            continue
        line_no = index + 1
        distance = abs(line_no - approximate_line) if approximate_line is not None else 0
        if best is None or (rank, distance) < (best[1], best[2]):
            best = (index, rank, distance, match.group("indent"))
    if best is None:
        return None

    decl_index, indent = best[0], best[3]
    anchor = decl_index
    while anchor > 0 and lines[anchor - 1].strip().startswith("@"):
        anchor -= 1

    above = anchor - 1
    if above >= 0 and lines[above].rstrip().endswith("*/"):
        start = above
        while start >= 0 and "/**" not in lines[start]:
            inner = lines[start].strip()
            if start < above and ("*/" in inner or not inner.startswith("*")):
                start = -1
                break
            start -= 1
        if start >= 0:
            return DocLocation(
                start_line=start + 1,
                end_line=above + 1,
                declaration_line=decl_index + 1,
                has_existing=True,
                indent=indent,
                existing_comment="\n".join(lines[start : above + 1]),
            )
    return DocLocation(
        start_line=anchor + 1,
        end_line=anchor + 1,
        declaration_line=decl_index + 1,
        has_existing=False,
        indent=indent,
    )


def create_edit(
    export: Export,
    source_text: str,
    file_path: Path,
    patch: DocCommentPatch,
) -> JSDocEdit:
    """Build an edit that writes ``patch`` as the doc comment of ``export``."""
    approximate = export.source.line if export.source is not None else None
    location = locate_doc_comment(source_text, export.name, approximate)
    if location is None:
        raise PatchLocationNotFound(f"Declaration for {export.name} not found in {file_path}")
    return JSDocEdit(
        file_path=file_path,
        symbol_name=export.name,
        start_line=location.start_line,
        end_line=location.end_line,
        has_existing=location.has_existing,
        new_comment_text=serialize_doc_comment(patch, location.indent),
        indent=location.indent,
        existing_comment_text=location.existing_comment,
    )


def build_edits(plans: Iterable[FixPlan], root: Path) -> EditBatch:
    """Create edits for fix plans whose exports have a source file under ``root``."""
    batch = EditBatch()
    sources: Dict[Path, str] = {}
    for plan in plans:
        export = plan.export
        if export.source is None or not plan.fixes:
            continue
        path = root / export.source.file
        try:
            if path not in sources:
                sources[path] = path.read_text(encoding="utf-8")
            batch.edits.append(create_edit(export, sources[path], path, plan.patch))
        except (OSError, PatchLocationNotFound) as exc:
            _LOGGER.warning("Skipping %s: %s", export.id, exc)
            batch.errors.append(EditError(file=str(path), error=str(exc)))
    return batch


def apply_edits(edits: Sequence[JSDocEdit], *, max_workers: int = 1) -> ApplyEditsResult:
    """Apply edits grouped by file, bottom-up within each file.

    Files are independent: a failure in one is recorded and never rolls back
    or blocks another. Edits whose text is already in place are skipped, so
    re-running a batch is harmless.
    """
    by_file: Dict[Path, List[JSDocEdit]] = {}
    for edit in edits:
        by_file.setdefault(Path(edit.file_path), []).append(edit)

    result = ApplyEditsResult()
    if max_workers > 1 and len(by_file) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            outcomes = list(pool.map(lambda item: _apply_file(*item), by_file.items()))
    else:
        outcomes = [_apply_file(path, file_edits) for path, file_edits in by_file.items()]

    for applied, modified, errors in outcomes:
        result.edits_applied += applied
        result.files_modified += int(modified)
        result.errors.extend(errors)
    _LOGGER.info(
        "Applied %d edit(s) across %d file(s); %d error(s)",
        result.edits_applied,
        result.files_modified,
        len(result.errors),
    )
    return result


def _apply_file(path: Path, edits: List[JSDocEdit]) -> Tuple[int, bool, List[EditError]]:
    if path.name.endswith(".d.ts"):
        message = "Declaration files have no source to edit"
        _LOGGER.warning("%s: %s", path, message)
        return 0, False, [EditError(file=str(path), error=message)]
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("Failed to read %s: %s", path, exc)
        return 0, False, [EditError(file=str(path), error=str(exc))]

    lines = content.split("\n")
    applied = 0
    errors: List[EditError] = []
    for edit in sorted(edits, key=lambda item: item.start_line, reverse=True):
        try:
            changed = _apply_edit(lines, edit)
        except PatchLocationNotFound as exc:
            _LOGGER.warning("%s: %s", path, exc)
            errors.append(EditError(file=str(path), error=str(exc)))
            continue
        if changed:
            applied += 1

    if not applied:
        return 0, False, errors
    try:
        path.write_text("\n".join(lines), encoding="utf-8")
    except OSError as exc:
        _LOGGER.warning("Failed to write %s: %s", path, exc)
        errors.append(EditError(file=str(path), error=str(exc)))
        return 0, False, errors
    return applied, True, errors


def _apply_edit(lines: List[str], edit: JSDocEdit) -> bool:
    new_lines = edit.new_comment_text.split("\n")
    start = edit.start_line - 1
    if edit.has_existing:
        end = edit.end_line
        if start < 0 or end > len(lines) or end <= start:
            raise PatchLocationNotFound(
                f"Lines {edit.start_line}-{edit.end_line} for {edit.symbol_name} are out of range"
            )
        if lines[start : start + len(new_lines)] == new_lines:
            return False
        current = "\n".join(lines[start:end])
        if edit.existing_comment_text is not None and current.strip() != edit.existing_comment_text.strip():
            raise PatchLocationNotFound(
                f"Doc comment for {edit.symbol_name} changed since the edit was planned"
            )
        lines[start:end] = new_lines
        return True

    if lines[start : start + len(new_lines)] == new_lines:
        return False
    if start < 0 or start >= len(lines) or not _is_declaration_line(lines[start], edit.symbol_name):
        raise PatchLocationNotFound(
            f"Declaration for {edit.symbol_name} is no longer at line {edit.start_line}"
        )
    lines[start:start] = new_lines
    return True


def _is_declaration_line(line: str, symbol_name: str) -> bool:
    if line.strip().startswith("@"):
        return True
    return any(
        pattern.match(line) is not None
        for pattern in (declaration_pattern(symbol_name), member_pattern(symbol_name))
    )


__all__ = [
    "ApplyEditsResult",
    "DocLocation",
    "EditBatch",
    "EditError",
    "JSDocEdit",
    "PatchLocationNotFound",
    "apply_edits",
    "build_edits",
    "create_edit",
    "declaration_pattern",
    "locate_doc_comment",
    "member_pattern",
]
