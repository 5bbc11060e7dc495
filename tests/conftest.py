"""
Pytest configuration for the bodygraph suite.

- Registers Hypothesis profiles for local dev and CI.
- Provides a deterministic linear ephemeris so no test loads a JPL kernel.
"""

from __future__ import annotations

import os
from collections import Counter

import pytest
from hypothesis import HealthCheck, settings

settings.register_profile(
    "dev",
    settings(
        deadline=None,
        max_examples=60,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)
settings.register_profile(
    "ci",
    settings(
        deadline=None,
        max_examples=200,
        suppress_health_check=[HealthCheck.too_slow],
    ),
)

_profile = (
    "ci"
    if (os.getenv("CI") or os.getenv("GITHUB_ACTIONS"))
    else os.getenv("HYPOTHESIS_PROFILE", "dev")
)
settings.load_profile(_profile)


def pytest_report_header(config: pytest.Config) -> str:
    return f"Hypothesis profile: '{_profile}'"


# ──────────────────────────────────────────────────────────────────────────────
# Fake ephemeris
# ──────────────────────────────────────────────────────────────────────────────
J2000 = 2451545.0

BASE_LON = {  # arbitrary deterministic angles at J2000
    "Sun": 280.0,
    "Moon": 20.0,
    "Mercury": 30.0,
    "Venus": 40.0,
    "Mars": 50.0,
    "Jupiter": 60.0,
    "Saturn": 70.0,
    "Uranus": 80.0,
    "Neptune": 90.0,
    "Pluto": 100.0,
    "North Node": 125.0,
}
BASE_SPD = {  # constant "speeds" (deg/day)
    "Sun": 0.9856,
    "Moon": 13.1764,
    "Mercury": 1.2,
    "Venus": 1.0,
    "Mars": 0.5,
    "Jupiter": 0.08,
    "Saturn": 0.03,
    "Uranus": 0.01,
    "Neptune": 0.006,
    "Pluto": 0.004,
    "North Node": -0.053,
}


class FakeEphemeris:
    """Linear longitudes, counting every query by body."""

    def __init__(self, sun_rate: float = BASE_SPD["Sun"], fixed: dict[str, float] | None = None):
        self.sun_rate = sun_rate
        self.fixed = fixed or {}
        self.calls: Counter[str] = Counter()

    def longitude(self, jd_ut: float, body: str) -> float:
        if body not in BASE_LON:
            raise KeyError(body)
        self.calls[body] += 1
        if body in self.fixed:
            return self.fixed[body] % 360.0
        rate = self.sun_rate if body == "Sun" else BASE_SPD[body]
        return (BASE_LON[body] + rate * (jd_ut - J2000)) % 360.0


@pytest.fixture
def fake_ephemeris() -> FakeEphemeris:
    return FakeEphemeris()
