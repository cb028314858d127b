"""Core data models for API snapshots and their derived documentation metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import hashlib
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from .logging import get_logger

_LOGGER = get_logger("models")

EXPORT_KINDS = frozenset(
    {"function", "class", "variable", "interface", "type", "enum", "module", "namespace"}
)
MEMBER_KINDS = frozenset({"method", "property", "constructor", "accessor"})
SIGNAL_NAMES: Tuple[str, ...] = ("description", "params", "returns", "examples")


class DriftType(str, Enum):
    """Closed set of documentation drift kinds."""

    PARAM_MISMATCH = "param-mismatch"
    PARAM_TYPE_MISMATCH = "param-type-mismatch"
    RETURN_TYPE_MISMATCH = "return-type-mismatch"
    OPTIONALITY_MISMATCH = "optionality-mismatch"
    GENERIC_CONSTRAINT_MISMATCH = "generic-constraint-mismatch"
    DEPRECATED_MISMATCH = "deprecated-mismatch"
    VISIBILITY_MISMATCH = "visibility-mismatch"
    EXAMPLE_RUNTIME_ERROR = "example-runtime-error"
    EXAMPLE_ASSERTION_FAILURE = "example-assertion-failure"


class DriftCategory(str, Enum):
    BREAKING = "breaking"
    DRIFT = "drift"
    EXAMPLE = "example"


DRIFT_CATEGORIES: Dict[DriftType, DriftCategory] = {
    DriftType.PARAM_MISMATCH: DriftCategory.BREAKING,
    DriftType.PARAM_TYPE_MISMATCH: DriftCategory.BREAKING,
    DriftType.RETURN_TYPE_MISMATCH: DriftCategory.BREAKING,
    DriftType.OPTIONALITY_MISMATCH: DriftCategory.BREAKING,
    DriftType.GENERIC_CONSTRAINT_MISMATCH: DriftCategory.BREAKING,
    DriftType.DEPRECATED_MISMATCH: DriftCategory.DRIFT,
    DriftType.VISIBILITY_MISMATCH: DriftCategory.DRIFT,
    DriftType.EXAMPLE_RUNTIME_ERROR: DriftCategory.EXAMPLE,
    DriftType.EXAMPLE_ASSERTION_FAILURE: DriftCategory.EXAMPLE,
}


@dataclass(frozen=True)
class DriftRecord:
    """A single disagreement between a doc comment and the declaration."""

    type: DriftType
    issue: str
    suggestion: Optional[str] = None
    target: Optional[str] = None

    @property
    def category(self) -> DriftCategory:
        return DRIFT_CATEGORIES[self.type]

    @property
    def key(self) -> Tuple[str, str]:
        return (self.type.value, self.issue)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "type": self.type.value,
            "issue": self.issue,
            "category": self.category.value,
        }
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        if self.target is not None:
            data["target"] = self.target
        return data

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["DriftRecord"]:
        if not isinstance(payload, Mapping):
            return None
        try:
            drift_type = DriftType(payload.get("type"))
        except ValueError:
            _LOGGER.warning("Ignoring drift record with unknown type %r", payload.get("type"))
            return None
        issue = _as_str(payload.get("issue")) or ""
        return cls(
            type=drift_type,
            issue=issue,
            suggestion=_as_str(payload.get("suggestion")),
            target=_as_str(payload.get("target")),
        )


@dataclass(frozen=True)
class DocsMetadata:
    """Derived coverage and drift data attached to an export or the spec root."""

    coverage_score: int
    missing: Tuple[str, ...] = ()
    drift: Tuple[DriftRecord, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "coverageScore": self.coverage_score,
            "missing": list(self.missing),
            "drift": [record.to_dict() for record in self.drift],
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["DocsMetadata"]:
        if not isinstance(payload, Mapping):
            return None
        score = _as_int(payload.get("coverageScore"))
        if score is None:
            return None
        missing = tuple(name for name in _as_list(payload.get("missing")) if name in SIGNAL_NAMES)
        drift = tuple(
            record
            for record in (DriftRecord.from_dict(item) for item in _as_list(payload.get("drift")))
            if record is not None
        )
        return cls(coverage_score=max(0, min(100, score)), missing=missing, drift=drift)


@dataclass(frozen=True)
class SourceLocation:
    file: str
    line: Optional[int] = None


@dataclass(frozen=True)
class Parameter:
    name: str
    declared_type: str = "unknown"
    required: bool = True
    description: Optional[str] = None


@dataclass(frozen=True)
class ReturnInfo:
    declared_type: str = "void"
    description: Optional[str] = None


@dataclass(frozen=True)
class TypeParameter:
    name: str
    constraint: Optional[str] = None


@dataclass(frozen=True)
class Signature:
    parameters: Tuple[Parameter, ...] = ()
    returns: Optional[ReturnInfo] = None
    description: Optional[str] = None
    type_parameters: Tuple[TypeParameter, ...] = ()


@dataclass(frozen=True)
class Member:
    """A class or enum member."""

    name: str
    kind: str = "method"
    signatures: Tuple[Signature, ...] = ()
    description: Optional[str] = None
    visibility: Optional[str] = None
    raw_comment: Optional[str] = None


@dataclass(frozen=True)
class Export:
    """One exported symbol of the package."""

    id: str
    name: str
    kind: str
    signatures: Tuple[Signature, ...] = ()
    members: Tuple[Member, ...] = ()
    description: Optional[str] = None
    examples: Tuple[str, ...] = ()
    source: Optional[SourceLocation] = None
    docs: Optional[DocsMetadata] = None
    raw_comment: Optional[str] = None
    deprecated: Union[bool, str, None] = None
    type_parameters: Tuple[TypeParameter, ...] = ()

    @property
    def has_known_kind(self) -> bool:
        return self.kind in EXPORT_KINDS

    @property
    def is_deprecated(self) -> bool:
        return bool(self.deprecated)


@dataclass(frozen=True)
class TypeDecl:
    id: str
    name: str
    kind: str = "type"
    declared_type: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class SpecMeta:
    name: str
    version: str = "0.0.0"


@dataclass(frozen=True)
class Spec:
    """Immutable snapshot of a package's public API."""

    meta: SpecMeta
    exports: Tuple[Export, ...] = ()
    types: Tuple[TypeDecl, ...] = ()
    docs: Optional[DocsMetadata] = None

    @property
    def is_enriched(self) -> bool:
        return self.docs is not None and all(export.docs is not None for export in self.exports)

    def export_by_id(self) -> Dict[str, Export]:
        return {export.id: export for export in self.exports}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Spec":
        return spec_from_dict(payload)

    def to_dict(self) -> Dict[str, Any]:
        return spec_to_dict(self)


# ----------------------------------------------------------------------
# JSON conversion


def spec_from_dict(payload: Mapping[str, Any]) -> Spec:
    """Build a :class:`Spec` from its JSON form, skipping malformed entries."""

    meta_data = _as_dict(payload.get("meta"))
    meta = SpecMeta(
        name=_as_str(meta_data.get("name")) or "unknown",
        version=_as_str(meta_data.get("version")) or "0.0.0",
    )

    exports: List[Export] = []
    seen: set[str] = set()
    for raw in _as_list(payload.get("exports")):
        export = _export_from_dict(raw)
        if export is None:
            continue
        if export.id in seen:
            _LOGGER.warning("Skipping duplicate export id %s", export.id)
            continue
        seen.add(export.id)
        exports.append(export)

    types: List[TypeDecl] = []
    for raw in _as_list(payload.get("types")):
        data = _as_dict(raw)
        type_id = _as_str(data.get("id"))
        if not type_id:
            _LOGGER.warning("Skipping type declaration without an id")
            continue
        types.append(
            TypeDecl(
                id=type_id,
                name=_as_str(data.get("name")) or type_id,
                kind=_as_str(data.get("kind")) or "type",
                declared_type=_as_str(data.get("declaredType")),
                description=_as_str(data.get("description")),
            )
        )

    root_docs = _as_dict(payload.get("docs"))
    docs = None
    score = _as_int(root_docs.get("coverageScore"))
    if score is not None:
        docs = DocsMetadata(coverage_score=max(0, min(100, score)))

    return Spec(meta=meta, exports=tuple(exports), types=tuple(types), docs=docs)


def spec_to_dict(spec: Spec) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "meta": {"name": spec.meta.name, "version": spec.meta.version},
        "exports": [_export_to_dict(export) for export in spec.exports],
        "types": [_type_to_dict(decl) for decl in spec.types],
    }
    if spec.docs is not None:
        data["docs"] = {"coverageScore": spec.docs.coverage_score}
    return data


def content_hash(spec: Spec) -> str:
    """Return a stable SHA-256 digest of the canonical JSON form of ``spec``."""
    canonical = json.dumps(spec_to_dict(spec), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def spec_pair_hash(base: Spec, head: Spec) -> str:
    combined = f"{content_hash(base)}:{content_hash(head)}"
    return hashlib.sha256(combined.encode("utf-8")).hexdigest()


def _export_from_dict(raw: Any) -> Optional[Export]:
    data = _as_dict(raw)
    export_id = _as_str(data.get("id"))
    if not export_id:
        _LOGGER.warning("Skipping export without an id: %r", data.get("name"))
        return None
    kind = _as_str(data.get("kind")) or "unknown"
    if kind not in EXPORT_KINDS:
        _LOGGER.warning("Export %s has unknown kind %r", export_id, kind)

    source = None
    source_data = _as_dict(data.get("source"))
    source_file = _as_str(source_data.get("file"))
    if source_file:
        source = SourceLocation(file=source_file, line=_as_int(source_data.get("line")))

    deprecated = data.get("deprecated")
    if not isinstance(deprecated, (bool, str)):
        deprecated = None

    return Export(
        id=export_id,
        name=_as_str(data.get("name")) or export_id,
        kind=kind,
        signatures=tuple(_signature_from_dict(item) for item in _as_list(data.get("signatures"))),
        members=tuple(
            member
            for member in (_member_from_dict(item) for item in _as_list(data.get("members")))
            if member is not None
        ),
        description=_as_str(data.get("description")),
        examples=tuple(_as_str_list(data.get("examples"))),
        source=source,
        docs=DocsMetadata.from_dict(data.get("docs")),
        raw_comment=_as_str(data.get("rawComments")),
        deprecated=deprecated,
        type_parameters=_type_parameters_from(data.get("typeParameters")),
    )


def _signature_from_dict(raw: Any) -> Signature:
    data = _as_dict(raw)
    parameters = []
    for item in _as_list(data.get("parameters")):
        param = _as_dict(item)
        name = _as_str(param.get("name"))
        if not name:
            continue
        required = param.get("required")
        parameters.append(
            Parameter(
                name=name,
                declared_type=_as_str(param.get("declaredType")) or "unknown",
                required=required if isinstance(required, bool) else True,
                description=_as_str(param.get("description")),
            )
        )
    returns = None
    returns_data = data.get("returns")
    if isinstance(returns_data, Mapping):
        returns = ReturnInfo(
            declared_type=_as_str(returns_data.get("declaredType")) or "void",
            description=_as_str(returns_data.get("description")),
        )
    return Signature(
        parameters=tuple(parameters),
        returns=returns,
        description=_as_str(data.get("description")),
        type_parameters=_type_parameters_from(data.get("typeParameters")),
    )


def _member_from_dict(raw: Any) -> Optional[Member]:
    data = _as_dict(raw)
    name = _as_str(data.get("name"))
    if not name:
        return None
    return Member(
        name=name,
        kind=_as_str(data.get("kind")) or "method",
        signatures=tuple(_signature_from_dict(item) for item in _as_list(data.get("signatures"))),
        description=_as_str(data.get("description")),
        visibility=_as_str(data.get("visibility")),
        raw_comment=_as_str(data.get("rawComments")),
    )


def _type_parameters_from(raw: Any) -> Tuple[TypeParameter, ...]:
    result = []
    for item in _as_list(raw):
        data = _as_dict(item)
        name = _as_str(data.get("name"))
        if name:
            result.append(TypeParameter(name=name, constraint=_as_str(data.get("constraint"))))
    return tuple(result)


def _export_to_dict(export: Export) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "id": export.id,
        "name": export.name,
        "kind": export.kind,
        "signatures": [_signature_to_dict(sig) for sig in export.signatures],
        "examples": list(export.examples),
    }
    if export.members:
        data["members"] = [_member_to_dict(member) for member in export.members]
    if export.description is not None:
        data["description"] = export.description
    if export.source is not None:
        source: Dict[str, Any] = {"file": export.source.file}
        if export.source.line is not None:
            source["line"] = export.source.line
        data["source"] = source
    if export.raw_comment is not None:
        data["rawComments"] = export.raw_comment
    if export.deprecated is not None:
        data["deprecated"] = export.deprecated
    if export.type_parameters:
        data["typeParameters"] = _type_parameters_to_list(export.type_parameters)
    if export.docs is not None:
        data["docs"] = export.docs.to_dict()
    return data


def _signature_to_dict(signature: Signature) -> Dict[str, Any]:
    data: Dict[str, Any] = {"parameters": []}
    for param in signature.parameters:
        entry: Dict[str, Any] = {
            "name": param.name,
            "declaredType": param.declared_type,
            "required": param.required,
        }
        if param.description is not None:
            entry["description"] = param.description
        data["parameters"].append(entry)
    if signature.returns is not None:
        returns: Dict[str, Any] = {"declaredType": signature.returns.declared_type}
        if signature.returns.description is not None:
            returns["description"] = signature.returns.description
        data["returns"] = returns
    if signature.description is not None:
        data["description"] = signature.description
    if signature.type_parameters:
        data["typeParameters"] = _type_parameters_to_list(signature.type_parameters)
    return data


def _member_to_dict(member: Member) -> Dict[str, Any]:
    data: Dict[str, Any] = {"name": member.name, "kind": member.kind}
    if member.signatures:
        data["signatures"] = [_signature_to_dict(sig) for sig in member.signatures]
    if member.description is not None:
        data["description"] = member.description
    if member.visibility is not None:
        data["visibility"] = member.visibility
    if member.raw_comment is not None:
        data["rawComments"] = member.raw_comment
    return data


def _type_to_dict(decl: TypeDecl) -> Dict[str, Any]:
    data: Dict[str, Any] = {"id": decl.id, "name": decl.name, "kind": decl.kind}
    if decl.declared_type is not None:
        data["declaredType"] = decl.declared_type
    if decl.description is not None:
        data["description"] = decl.description
    return data


def _type_parameters_to_list(params: Tuple[TypeParameter, ...]) -> List[Dict[str, Any]]:
    result = []
    for param in params:
        entry: Dict[str, Any] = {"name": param.name}
        if param.constraint is not None:
            entry["constraint"] = param.constraint
        result.append(entry)
    return result


def _as_dict(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(round(value))
    return None


def _as_str_list(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    return [item for item in _as_list(value) if isinstance(item, str)]


__all__ = [
    "DRIFT_CATEGORIES",
    "DocsMetadata",
    "DriftCategory",
    "DriftRecord",
    "DriftType",
    "EXPORT_KINDS",
    "Export",
    "MEMBER_KINDS",
    "Member",
    "Parameter",
    "ReturnInfo",
    "SIGNAL_NAMES",
    "Signature",
    "SourceLocation",
    "Spec",
    "SpecMeta",
    "TypeDecl",
    "TypeParameter",
    "content_hash",
    "spec_from_dict",
    "spec_pair_hash",
]
