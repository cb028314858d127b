"""Pure grouping, filtering and summary helpers for drift records."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Generic, Iterable, List, Sequence, Tuple, TypeVar

from ..models import DriftCategory, DriftRecord, DriftType, Export, Spec

K = TypeVar("K")
T = TypeVar("T")


@dataclass(frozen=True)
class Group(Generic[K, T]):
    key: K
    items: Tuple[T, ...]


@dataclass(frozen=True)
class DriftSummary:
    total: int
    by_category: Dict[str, int] = field(default_factory=dict)
    by_type: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return {"total": self.total, "byCategory": dict(self.by_category), "byType": dict(self.by_type)}


def group_drift_by_export(spec: Spec) -> List[Group[Export, DriftRecord]]:
    """Exports that carry drift, in spec order."""
    groups: List[Group[Export, DriftRecord]] = []
    for export in spec.exports:
        if export.docs is not None and export.docs.drift:
            groups.append(Group(key=export, items=export.docs.drift))
    return groups


def group_drifts_by_category(
    drifts: Iterable[DriftRecord],
) -> List[Group[DriftCategory, DriftRecord]]:
    buckets: Dict[DriftCategory, List[DriftRecord]] = {category: [] for category in DriftCategory}
    for record in drifts:
        buckets[record.category].append(record)
    return [Group(key=category, items=tuple(items)) for category, items in buckets.items() if items]


def get_drift_summary(drifts: Sequence[DriftRecord]) -> DriftSummary:
    by_category = {category.value: 0 for category in DriftCategory}
    by_type: Dict[str, int] = {}
    for record in drifts:
        by_category[record.category.value] += 1
        by_type[record.type.value] = by_type.get(record.type.value, 0) + 1
    return DriftSummary(total=len(drifts), by_category=by_category, by_type=by_type)


def filter_drift_by_types(
    drifts: Iterable[DriftRecord], types: Iterable[DriftType]
) -> List[DriftRecord]:
    allowed = frozenset(types)
    return [record for record in drifts if record.type in allowed]


def filter_drift_by_categories(
    drifts: Iterable[DriftRecord], categories: Iterable[DriftCategory]
) -> List[DriftRecord]:
    allowed = frozenset(categories)
    return [record for record in drifts if record.category in allowed]


def parse_drift_type_filter(value: str) -> FrozenSet[DriftType]:
    """Parse a comma separated list of drift type names."""
    names = [part.strip() for part in value.split(",") if part.strip()]
    known = {member.value: member for member in DriftType}
    unknown = sorted(name for name in names if name not in known)
    if unknown:
        raise ValueError(f"Unknown drift types: {', '.join(unknown)}")
    return frozenset(known[name] for name in names)


__all__ = [
    "DriftSummary",
    "Group",
    "filter_drift_by_categories",
    "filter_drift_by_types",
    "get_drift_summary",
    "group_drift_by_export",
    "group_drifts_by_category",
    "parse_drift_type_filter",
]
