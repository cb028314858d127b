"""Regex-based scanning of markdown code blocks for API references."""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

EXECUTABLE_LANGS = frozenset({"ts", "typescript", "js", "javascript", "tsx", "jsx"})

_FENCE = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})\s*(?P<info>[^`\s]*)?.*$")
_IMPORT = re.compile(r"import\s+(?:type\s+)?\{([^}]+)\}\s+from\s+['\"]([^'\"]+)['\"]")
_DEFAULT_IMPORT = re.compile(r"import\s+([A-Za-z_$][\w$]*)\s*(?:,|\s+from\s)")
_CALL = re.compile(r"(?<![\w$.])([A-Za-z_$][\w$]*)\s*[(<]")
_METHOD_CALL = re.compile(r"([A-Za-z_$][\w$]*)\s*\??\.\s*([A-Za-z_$][\w$]*)\s*\(")
_KEYWORDS = frozenset(
    {
        "if",
        "for",
        "while",
        "switch",
        "catch",
        "function",
        "class",
        "interface",
        "type",
        "import",
        "export",
        "return",
        "throw",
        "new",
        "typeof",
        "instanceof",
        "await",
        "async",
    }
)


@dataclass(frozen=True)
class CodeBlock:
    """A fenced code block; ``start_line`` is the first code line (1-based)."""

    lang: str
    code: str
    start_line: int
    end_line: int


@dataclass(frozen=True)
class MarkdownDocFile:
    path: str
    code_blocks: Tuple[CodeBlock, ...] = ()


class CodeReference(NamedTuple):
    name: str
    line: int


class MethodCall(NamedTuple):
    object_name: str
    method_name: str
    line: int


def is_executable_lang(lang: Optional[str]) -> bool:
    return bool(lang) and lang.lower() in EXECUTABLE_LANGS


def parse_markdown_file(content: str, path: str) -> MarkdownDocFile:
    """Collect fenced code blocks tagged with a JavaScript or TypeScript language."""
    lines = content.replace("\r\n", "\n").split("\n")
    blocks: List[CodeBlock] = []
    index = 0
    while index < len(lines):
        opening = _FENCE.match(lines[index])
        if not opening:
            index += 1
            continue
        fence = opening.group("fence")
        lang = (opening.group("info") or "").strip()
        body: List[str] = []
        cursor = index + 1
        while cursor < len(lines):
            stripped = lines[cursor].strip()
            if stripped.startswith(fence[0] * len(fence)) and not stripped.strip(fence[0]):
                break
            body.append(lines[cursor])
            cursor += 1
        if is_executable_lang(lang):
            blocks.append(
                CodeBlock(
                    lang=lang.lower(),
                    code="\n".join(body),
                    start_line=index + 2,
                    end_line=index + 1 + len(body),
                )
            )
        index = cursor + 1
    return MarkdownDocFile(path=path, code_blocks=tuple(blocks))


def parse_markdown_files(files: Iterable[Tuple[str, str]]) -> List[MarkdownDocFile]:
    """Parse ``(path, content)`` pairs."""
    return [parse_markdown_file(content, path) for path, content in files]


def extract_imports(code: str) -> List[CodeReference]:
    references: List[CodeReference] = []
    for match in _IMPORT.finditer(code):
        line = _line_of(code, match.start())
        for part in match.group(1).split(","):
            name = re.split(r"\s+as\s+", part.strip())[0].strip()
            if name.startswith("type "):
                name = name[5:].strip()
            if name:
                references.append(CodeReference(name=name, line=line))
    for match in _DEFAULT_IMPORT.finditer(code):
        references.append(CodeReference(name=match.group(1), line=_line_of(code, match.start())))
    return references


def extract_function_calls(code: str) -> List[CodeReference]:
    references: List[CodeReference] = []
    for match in _CALL.finditer(code):
        name = match.group(1)
        if name in _KEYWORDS:
            continue
        references.append(CodeReference(name=name, line=_line_of(code, match.start())))
    return references


def extract_method_calls(code: str) -> List[MethodCall]:
    return [
        MethodCall(
            object_name=match.group(1),
            method_name=match.group(2),
            line=_line_of(code, match.start()),
        )
        for match in _METHOD_CALL.finditer(code)
    ]


def find_instantiations(code: str, class_name: str) -> List[int]:
    pattern = re.compile(rf"\bnew\s+{re.escape(class_name)}\s*[(<]")
    return [_line_of(code, match.start()) for match in pattern.finditer(code)]


def block_references(block: CodeBlock, names: Sequence[str]) -> List[CodeReference]:
    """References to ``names`` by import or call, one per name, with file line numbers."""
    wanted = set(names)
    found: List[CodeReference] = []
    seen = set()
    for ref in extract_imports(block.code) + extract_function_calls(block.code):
        if ref.name in wanted and ref.name not in seen:
            seen.add(ref.name)
            found.append(CodeReference(name=ref.name, line=block.start_line + ref.line - 1))
    return found


def mentions(block: CodeBlock, name: str) -> bool:
    return re.search(rf"(?<![\w$]){re.escape(name)}(?![\w$])", block.code) is not None


def _line_of(code: str, offset: int) -> int:
    return code.count("\n", 0, offset) + 1


__all__ = [
    "CodeBlock",
    "CodeReference",
    "EXECUTABLE_LANGS",
    "MarkdownDocFile",
    "MethodCall",
    "block_references",
    "extract_function_calls",
    "extract_imports",
    "extract_method_calls",
    "find_instantiations",
    "is_executable_lang",
    "mentions",
    "parse_markdown_file",
    "parse_markdown_files",
]
