"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from spccore.core.config import get_settings
from spccore.utils.statistics import ControlLimits


@pytest.fixture(autouse=True)
def _fresh_settings() -> Generator[None, None, None]:
    """Drop the cached settings so env overrides apply per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def standard_limits() -> ControlLimits:
    """Limits centred at 100 with sigma 10.

    Bands: 1 sigma = 90/110, 2 sigma = 80/120, 3 sigma = 70/130.
    """
    return ControlLimits(ucl=130.0, lcl=70.0, cl=100.0, sigma=10.0)
