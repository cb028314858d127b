"""Tests for the FastAPI service mode."""

from __future__ import annotations

from typing import Any, Dict, Optional

import pytest

try:
    from fastapi.testclient import TestClient
except ModuleNotFoundError:  # pragma: no cover - optional dependency
    pytest.skip("fastapi not installed", allow_module_level=True)

from doccov.service import create_app
from doccov.stores import InMemoryDiffCache
from tests._fixtures.spec_builder import SpecBuilder, param


class _RecordingCache(InMemoryDiffCache):
    def __init__(self) -> None:
        super().__init__()
        self.hits = 0

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        value = super().get(key)
        if value is not None:
            self.hits += 1
        return value


@pytest.fixture
def cache() -> _RecordingCache:
    return _RecordingCache()


@pytest.fixture
def client(cache: _RecordingCache) -> TestClient:
    return TestClient(create_app(lambda: cache))


def _base() -> Dict[str, Any]:
    builder = SpecBuilder()
    builder.function(
        "add",
        param("a"),
        param("b"),
        returns="number",
        raw_comment="""
        /**
         * Add two numbers.
         * @param {string} a first
         * @param b second
         * @returns sum
         */
        """,
    )
    builder.function("removeMe")
    return builder.build().to_dict()


def _head() -> Dict[str, Any]:
    builder = SpecBuilder(version="2.0.0")
    builder.function("add", param("a"), param("b"), returns="number")
    return builder.build().to_dict()


def test_health_endpoint(client: TestClient) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_enrich_endpoint_returns_docs_metadata(client: TestClient) -> None:
    response = client.post("/enrich", json={"spec": _base()})

    assert response.status_code == 200
    body = response.json()
    assert "coverageScore" in body["docs"]
    add = next(item for item in body["exports"] if item["name"] == "add")
    assert [record["type"] for record in add["docs"]["drift"]] == ["param-type-mismatch"]
    remove_me = next(item for item in body["exports"] if item["name"] == "removeMe")
    assert "description" in remove_me["docs"]["missing"]


def test_diff_endpoint_uses_cache(client: TestClient, cache: _RecordingCache) -> None:
    payload = {
        "base": _base(),
        "head": _head(),
        "markdown": [
            {"path": "README.md", "content": "```ts\nremoveMe();\n```\n"},
        ],
    }

    first = client.post("/diff", json=payload)
    second = client.post("/diff", json=payload)

    assert first.status_code == 200
    assert first.json() == second.json()
    assert cache.hits == 1
    body = first.json()
    assert body["breaking"] == ["removeMe"]
    assert body["semver"]["bump"] == "major"
    references = body["docsImpact"]["impactedFiles"][0]["references"]
    assert references[0]["exportName"] == "removeMe"


def test_check_endpoint_reports_failures(client: TestClient) -> None:
    response = client.post(
        "/check",
        json={"spec": _base(), "thresholds": {"min_coverage": 100, "max_drift": 100}},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["passedCoverage"] is False
    assert body["passedDrift"] is True
    assert body["passed"] is False
    assert body["failures"]


def test_check_endpoint_rejects_invalid_thresholds(client: TestClient) -> None:
    response = client.post(
        "/check",
        json={"spec": _base(), "thresholds": {"drift_types": ["not-a-drift-type"]}},
    )

    assert response.status_code == 400
    assert "not-a-drift-type" in response.json()["detail"]
