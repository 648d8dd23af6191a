from __future__ import annotations

import random
from collections.abc import Iterator

import pytest

from presets import DEFAULT_CATALOG


@pytest.fixture(autouse=True)
def reset_preset_offset() -> Iterator[None]:
    """Keep the shared catalog's rotation offset at 0 around each test."""
    DEFAULT_CATALOG.set_offset(0)
    yield
    DEFAULT_CATALOG.set_offset(0)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)
