from __future__ import annotations

import pytest

from tests._fixtures.spec_builder import SpecBuilder


@pytest.fixture
def spec_builder() -> SpecBuilder:
    """Provide a fresh snapshot builder for each test."""
    return SpecBuilder()
