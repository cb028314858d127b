"""Structured parsing and deterministic serialisation of JSDoc-style comments."""

from __future__ import annotations

from dataclasses import dataclass, replace
import re
from typing import Iterable, List, Optional, Tuple

_TAG_LINE = re.compile(r"^@([A-Za-z][\w-]*)\s?(.*)$")
_LEADING_STAR = re.compile(r"^\s*\*(?: |$)?")
_VISIBILITY_TAGS = ("public", "protected", "private", "internal", "alpha")
_PARAM_TAGS = ("param", "arg", "argument")
_RETURN_TAGS = ("returns", "return")
# Block tags that close an @example body; anything else starting with "@" there is code.
_EXAMPLE_TERMINATORS = frozenset(
    (
        *_PARAM_TAGS,
        *_RETURN_TAGS,
        *_VISIBILITY_TAGS,
        "example",
        "deprecated",
        "template",
        "throws",
        "see",
        "since",
        "remarks",
        "category",
        "typeparam",
        "defaultvalue",
        "beta",
        "experimental",
    )
)
_SINGLE_LINE_LIMIT = 60


@dataclass(frozen=True)
class DocParam:
    name: str
    type: Optional[str] = None
    description: Optional[str] = None
    optional: bool = False
    default: Optional[str] = None


@dataclass(frozen=True)
class DocReturn:
    type: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class DocTemplate:
    name: str
    constraint: Optional[str] = None


@dataclass(frozen=True)
class DocCommentPatch:
    """Field-level view of a documentation comment.

    ``params`` keeps declaration order for serialisation, but every lookup
    goes through :meth:`param` so callers can treat it as a name keyed map.
    ``deprecated`` is ``None`` when the tag is absent and ``""`` for a bare tag.
    """

    description: Optional[str] = None
    params: Tuple[DocParam, ...] = ()
    returns: Optional[DocReturn] = None
    deprecated: Optional[str] = None
    examples: Tuple[str, ...] = ()
    templates: Tuple[DocTemplate, ...] = ()
    visibility: Optional[str] = None
    other_tags: Tuple[Tuple[str, str], ...] = ()

    def param(self, name: str) -> Optional[DocParam]:
        for param in self.params:
            if param.name == name:
                return param
        return None

    def template(self, name: str) -> Optional[DocTemplate]:
        for template in self.templates:
            if template.name == name:
                return template
        return None

    @property
    def param_names(self) -> List[str]:
        return [param.name for param in self.params]

    @property
    def is_empty(self) -> bool:
        return self == DocCommentPatch()

    def with_param(self, param: DocParam, *, replacing: Optional[str] = None) -> "DocCommentPatch":
        """Return a copy with ``param`` set, replacing ``replacing`` (or its own name) in place."""
        target = replacing or param.name
        params = list(self.params)
        for index, existing in enumerate(params):
            if existing.name == target:
                params[index] = param
                break
        else:
            params.append(param)
        return replace(self, params=tuple(params))

    def without_param(self, name: str) -> "DocCommentPatch":
        return replace(self, params=tuple(p for p in self.params if p.name != name))

    def with_template(self, template: DocTemplate) -> "DocCommentPatch":
        templates = list(self.templates)
        for index, existing in enumerate(templates):
            if existing.name == template.name:
                templates[index] = template
                break
        else:
            templates.append(template)
        return replace(self, templates=tuple(templates))


def parse_doc_comment(text: Optional[str]) -> DocCommentPatch:
    """Parse raw comment text (with or without ``/** */`` markers) into a patch."""
    if not text or not text.strip():
        return DocCommentPatch()

    lines = _comment_body_lines(text)
    description_lines: List[str] = []
    blocks: List[Tuple[str, List[str]]] = []
    for line in lines:
        match = _TAG_LINE.match(line.strip())
        if match and _opens_block(match.group(1), blocks):
            blocks.append((match.group(1), [match.group(2).rstrip()]))
        elif blocks:
            blocks[-1][1].append(line)
        else:
            description_lines.append(line)

    description = _join_block(description_lines)
    params: List[DocParam] = []
    returns: Optional[DocReturn] = None
    deprecated: Optional[str] = None
    examples: List[str] = []
    templates: List[DocTemplate] = []
    visibility: Optional[str] = None
    other_tags: List[Tuple[str, str]] = []

    for tag, body_lines in blocks:
        name = tag.lower()
        body = _join_block(body_lines) or ""
        if name in _PARAM_TAGS:
            param = parse_param_tag(body)
            if param is not None:
                params.append(param)
        elif name in _RETURN_TAGS:
            returns = _parse_returns(body)
        elif name == "example":
            example = _join_block(body_lines, keep_indent=True)
            if example:
                examples.append(example)
        elif name == "deprecated":
            deprecated = body
        elif name == "template":
            templates.extend(parse_template_tag(body))
        elif name in _VISIBILITY_TAGS and visibility is None and not body:
            visibility = name
        else:
            other_tags.append((tag, body))

    return DocCommentPatch(
        description=description,
        params=tuple(params),
        returns=returns,
        deprecated=deprecated,
        examples=tuple(examples),
        templates=tuple(templates),
        visibility=visibility,
        other_tags=tuple(other_tags),
    )


def parse_param_tag(text: str) -> Optional[DocParam]:
    """Parse the body of an ``@param`` tag: ``{type} [name=default] - description``."""
    type_text, rest = split_braced_type(text.strip())
    if not rest:
        return None
    parts = rest.split(None, 1)
    raw_name = parts[0]
    remainder = parts[1] if len(parts) > 1 else ""

    optional = raw_name.startswith("[") and raw_name.endswith("]")
    name = raw_name[1:-1] if optional else raw_name
    default = None
    if "=" in name:
        name, default = name.split("=", 1)
    name = name.rstrip(",")
    if not name:
        return None

    description = remainder
    if description.startswith("- "):
        description = description[2:]
    elif description == "-":
        description = ""
    return DocParam(
        name=name,
        type=type_text,
        description=description.strip() or None,
        optional=optional,
        default=default,
    )


def parse_template_tag(text: str) -> List[DocTemplate]:
    """Parse ``@template {C} T``, ``@template T extends C`` or ``@template T, U``."""
    constraint, rest = split_braced_type(text.strip())
    if not rest:
        return []
    if constraint is not None:
        name = re.sub(r"[.,;:]+$", "", rest.split(None, 1)[0])
        return [DocTemplate(name=name, constraint=constraint)]
    extends = re.match(r"^(\w+)\s+extends\s+(.+?)(?:\s+[-–]\s+.*)?$", rest, re.DOTALL)
    if extends:
        return [DocTemplate(name=extends.group(1), constraint=extends.group(2).strip())]
    names = re.match(r"^\w+(?:\s*,\s*\w+)*", rest)
    if not names:
        return []
    return [DocTemplate(name=name) for name in re.split(r"\s*,\s*", names.group(0))]


def split_braced_type(text: str) -> Tuple[Optional[str], str]:
    """Split a leading ``{type}`` (braces may nest) from the rest of ``text``."""
    if not text.startswith("{"):
        return None, text
    depth = 0
    for index, char in enumerate(text):
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                inner = text[1:index].strip()
                return (inner or None), text[index + 1 :].strip()
    return None, text


def serialize_doc_comment(patch: DocCommentPatch, indent: str = "") -> str:
    """Render ``patch`` as a ``/** */`` block with ``indent`` on every line."""
    body: List[str] = []
    if patch.description:
        body.extend(patch.description.split("\n"))

    tags: List[str] = []
    for template in patch.templates:
        if template.constraint:
            tags.append(f"@template {{{template.constraint}}} {template.name}")
        else:
            tags.append(f"@template {template.name}")
    for param in patch.params:
        tags.extend(_render_param(param))
    if patch.returns is not None:
        tags.extend(_render_returns(patch.returns))
    if patch.deprecated is not None:
        tags.extend(_render_text_tag("deprecated", patch.deprecated))
    if patch.visibility:
        tags.append(f"@{patch.visibility}")
    for tag, text in patch.other_tags:
        tags.extend(_render_text_tag(tag, text))
    for example in patch.examples:
        tags.append("@example")
        tags.extend(example.split("\n"))

    if body and tags:
        body.append("")
    body.extend(tags)

    if not body:
        return f"{indent}/** */"
    if len(body) == 1 and len(body[0]) < _SINGLE_LINE_LIMIT and "*/" not in body[0]:
        return f"{indent}/** {body[0]} */"

    rendered = [f"{indent}/**"]
    for line in body:
        rendered.append(f"{indent} * {line}".rstrip() if line.strip() else f"{indent} *")
    rendered.append(f"{indent} */")
    return "\n".join(rendered)


def _opens_block(tag: str, blocks: List[Tuple[str, List[str]]]) -> bool:
    if not blocks or blocks[-1][0].lower() != "example":
        return True
    return tag.lower() in _EXAMPLE_TERMINATORS


def _render_param(param: DocParam) -> List[str]:
    name = param.name
    if param.default is not None:
        name = f"{name}={param.default}"
    if param.optional:
        name = f"[{name}]"
    head = "@param"
    if param.type:
        head += f" {{{param.type}}}"
    head += f" {name}"
    if not param.description:
        return [head]
    first, *rest = param.description.split("\n")
    return [f"{head} - {first}", *rest]


def _render_returns(returns: DocReturn) -> List[str]:
    head = "@returns"
    if returns.type:
        head += f" {{{returns.type}}}"
    if not returns.description:
        return [head]
    first, *rest = returns.description.split("\n")
    return [f"{head} {first}", *rest]


def _render_text_tag(tag: str, text: str) -> List[str]:
    if not text:
        return [f"@{tag}"]
    first, *rest = text.split("\n")
    return [f"@{tag} {first}", *rest]


def _parse_returns(text: str) -> DocReturn:
    type_text, rest = split_braced_type(text)
    if rest.startswith("- "):
        rest = rest[2:]
    return DocReturn(type=type_text, description=rest.strip() or None)


def _comment_body_lines(text: str) -> List[str]:
    stripped = text.strip()
    if stripped.startswith("/**"):
        stripped = stripped[3:]
    elif stripped.startswith("/*"):
        stripped = stripped[2:]
    if stripped.endswith("*/"):
        stripped = stripped[:-2]
    lines = stripped.replace("\r\n", "\n").split("\n")
    if len(lines) == 1:
        return [lines[0].strip()]
    return [_LEADING_STAR.sub("", line, count=1).rstrip() for line in lines]


def _join_block(lines: Iterable[str], *, keep_indent: bool = False) -> Optional[str]:
    cleaned = [line.rstrip() for line in lines]
    while cleaned and not cleaned[0].strip():
        cleaned.pop(0)
    while cleaned and not cleaned[-1].strip():
        cleaned.pop()
    if not cleaned:
        return None
    if not keep_indent:
        cleaned[0] = cleaned[0].lstrip()
    return "\n".join(cleaned)


__all__ = [
    "DocCommentPatch",
    "DocParam",
    "DocReturn",
    "DocTemplate",
    "parse_doc_comment",
    "parse_param_tag",
    "parse_template_tag",
    "serialize_doc_comment",
    "split_braced_type",
]
