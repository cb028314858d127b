"""Type normalisation and fuzzy name matching shared by drift detectors."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, NamedTuple, Optional

from ..models import Export, Parameter

_VOID_EQUIVALENTS = frozenset({"void", "undefined"})
_PROMISE = re.compile(r"^promise<(.+)>$", re.IGNORECASE)


class ClosestMatch(NamedTuple):
    value: str
    score: float


def normalize_type(value: Optional[str]) -> Optional[str]:
    """Collapse whitespace and canonicalise union member order."""
    if not value or not value.strip():
        return None
    text = re.sub(r"\s+", " ", value).strip().rstrip(";")
    text = re.sub(r"\s*([<>,|&()\[\]{}:])\s*", r"\1", text)
    text = text.replace(",", ", ").replace(":", ": ")
    members = _split_top_level(text, "|")
    if len(members) > 1:
        text = "|".join(sorted(members))
    return text


def types_equivalent(a: Optional[str], b: Optional[str]) -> bool:
    left = normalize_type(a)
    right = normalize_type(b)
    if left is None or right is None:
        return left == right
    if left == right:
        return True
    return left.lower() in _VOID_EQUIVALENTS and right.lower() in _VOID_EQUIVALENTS


def is_void_type(value: Optional[str]) -> bool:
    normalized = normalize_type(value)
    if normalized is None:
        return True
    if normalized.lower() in _VOID_EQUIVALENTS:
        return True
    inner = unwrap_promise(normalized)
    return inner is not None and inner.lower() in _VOID_EQUIVALENTS


def unwrap_promise(value: str) -> Optional[str]:
    match = _PROMISE.match(value.strip())
    return match.group(1).strip() if match else None


def actual_parameters(export: Export) -> List[Parameter]:
    """Unique parameters across all signatures, first declaration wins."""
    seen: Dict[str, Parameter] = {}
    for signature in export.signatures:
        for param in signature.parameters:
            seen.setdefault(param.name, param)
    return list(seen.values())


def positional_parameters(export: Export) -> List[Parameter]:
    return list(export.signatures[0].parameters) if export.signatures else []


def declared_return_type(export: Export) -> Optional[str]:
    for signature in export.signatures:
        if signature.returns is not None:
            return signature.returns.declared_type
    return None


def declared_type_parameters(export: Export) -> Dict[str, Optional[str]]:
    constraints: Dict[str, Optional[str]] = {}
    for param in export.type_parameters:
        constraints.setdefault(param.name, param.constraint)
    for signature in export.signatures:
        for param in signature.type_parameters:
            constraints.setdefault(param.name, param.constraint)
    return constraints


def split_camel_case(value: str) -> List[str]:
    text = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", value)
    text = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1 \2", text)
    return [part for part in re.split(r"[\s_\-]+", text.lower()) if part]


def levenshtein(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def find_closest_match(
    source: str,
    candidates: Iterable[str],
    *,
    suffix_weight: float = 1.5,
    min_words: float = 2,
) -> Optional[ClosestMatch]:
    """Pick the candidate sharing the most camelCase words with ``source``.

    A shared trailing word counts ``suffix_weight``; other shared words count
    one each. Candidates below ``min_words`` of overlap are ignored, and the
    survivors are ranked by word overlap blended with normalised edit distance.
    Ties keep the earliest candidate so results are deterministic.
    """
    source_words = split_camel_case(source)
    best: Optional[ClosestMatch] = None
    for candidate in candidates:
        if candidate == source:
            continue
        candidate_words = split_camel_case(candidate)
        if not source_words or not candidate_words:
            continue
        matching = 0.0
        suffix = source_words[-1] == candidate_words[-1]
        if suffix:
            matching += suffix_weight
        for word in source_words:
            if (not suffix or word != source_words[-1]) and word in candidate_words:
                matching += 1
        if matching < min_words:
            continue
        word_score = matching / max(len(source_words), len(candidate_words))
        distance = levenshtein(source.lower(), candidate.lower())
        lev_score = 1 - distance / max(len(source), len(candidate))
        total = word_score * 1.5 + lev_score if suffix else word_score + lev_score * 0.5
        if total >= 0.5 and (best is None or total > best.score):
            best = ClosestMatch(value=candidate, score=total)
    return best


def _split_top_level(text: str, separator: str) -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    previous = ""
    for char in text:
        if char in "<([{":
            depth += 1
        elif char in ">)]}" and previous != "=":
            depth -= 1
        if char == separator and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
        previous = char
    parts.append("".join(current))
    return [part for part in parts if part]


__all__ = [
    "ClosestMatch",
    "actual_parameters",
    "declared_return_type",
    "declared_type_parameters",
    "find_closest_match",
    "is_void_type",
    "levenshtein",
    "normalize_type",
    "positional_parameters",
    "split_camel_case",
    "types_equivalent",
    "unwrap_promise",
]
