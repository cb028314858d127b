"""Persistent cache for spec diff results keyed by content hash."""

from __future__ import annotations

from datetime import UTC, datetime
import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Protocol, Sequence

from ..diff.markdown import MarkdownDocFile
from ..diff.spec_diff import diff_spec, recommend_semver_bump
from ..logging import get_logger
from ..models import Spec, spec_pair_hash

_CACHE_VERSION = 1
_LOGGER = get_logger("stores.diff_cache")


class DiffCache(Protocol):
    """Port for diff result storage; values are Diff JSON payloads."""

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    def put(self, key: str, value: Dict[str, Any]) -> None:
        ...


class InMemoryDiffCache:
    def __init__(self) -> None:
        self._entries: Dict[str, Dict[str, Any]] = {}

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = self._entries.get(key)
        return json.loads(json.dumps(value)) if value is not None else None

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self._entries[key] = json.loads(json.dumps(value))

    def __len__(self) -> int:
        return len(self._entries)


class JsonDiffCache:
    """Stores diff payloads in a JSON file with a checksum per entry."""

    def __init__(self, path: Path | None) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, object]] = {}
        self._dirty = False
        if self._path is not None:
            self._load(self._path)

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if not entry:
            return None
        payload = entry.get("diff")
        if entry.get("key") != key or not isinstance(payload, dict):
            return None
        if entry.get("checksum") != _checksum(payload):
            _LOGGER.debug("Discarding corrupt diff cache entry %s", key)
            self._entries.pop(key, None)
            self._dirty = True
            return None
        return payload

    def put(self, key: str, value: Dict[str, Any]) -> None:
        self._entries[key] = {
            "key": key,
            "checksum": _checksum(value),
            "diff": value,
            "updated_at": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
        }
        self._dirty = True

    def prune(self, keys_to_keep: Iterable[str]) -> None:
        keep = set(keys_to_keep)
        removed = [key for key in self._entries if key not in keep]
        if removed:
            for key in removed:
                self._entries.pop(key, None)
            self._dirty = True

    def persist(self) -> None:
        if not self._dirty or self._path is None:
            return
        payload = {
            "version": _CACHE_VERSION,
            "entries": self._entries,
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        self._dirty = False

    def clear(self) -> None:
        self._entries.clear()
        self._dirty = True

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            _LOGGER.debug("Ignoring unreadable diff cache at %s", path)
            return
        if not isinstance(data, dict) or data.get("version") != _CACHE_VERSION:
            return
        entries = data.get("entries")
        if not isinstance(entries, dict):
            return
        valid_entries: Dict[str, Dict[str, object]] = {}
        for key, raw in entries.items():
            if not isinstance(key, str) or not isinstance(raw, dict):
                continue
            if "key" not in raw or "checksum" not in raw or "diff" not in raw:
                continue
            valid_entries[key] = raw
        self._entries = valid_entries
        self._dirty = False


def diff_cache_key(
    base: Spec, head: Spec, markdown_files: Optional[Sequence[MarkdownDocFile]] = None
) -> str:
    key = spec_pair_hash(base, head)
    if markdown_files is None:
        return key
    digest = hashlib.sha256(key.encode("utf-8"))
    for doc_file in markdown_files:
        digest.update(doc_file.path.encode("utf-8"))
        for block in doc_file.code_blocks:
            digest.update(f"{block.start_line}:{block.code}".encode("utf-8"))
    return digest.hexdigest()


def diff_with_cache(
    base: Spec,
    head: Spec,
    cache: Optional[DiffCache] = None,
    *,
    markdown_files: Optional[Sequence[MarkdownDocFile]] = None,
) -> Dict[str, Any]:
    """Return Diff JSON plus a ``semver`` recommendation, reusing ``cache`` when possible."""
    key = diff_cache_key(base, head, markdown_files)
    if cache is not None:
        cached = cache.get(key)
        if cached is not None:
            _LOGGER.debug("Diff cache hit for %s", key[:12])
            return cached

    diff = diff_spec(base, head, markdown_files=markdown_files)
    payload = diff.to_dict()
    payload["semver"] = recommend_semver_bump(diff).to_dict()
    if cache is not None:
        cache.put(key, payload)
    return payload


def _checksum(payload: Dict[str, Any]) -> str:
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


__all__ = [
    "DiffCache",
    "InMemoryDiffCache",
    "JsonDiffCache",
    "diff_cache_key",
    "diff_with_cache",
]
