"""Longitude → gate.line mapping on the 64-gate wheel.

The ecliptic is cut into 64 equal arcs of 5.625° in a fixed, non-sequential
gate order, each arc split into 6 lines of 0.9375°. The order is anchored so
that gate 41 starts at 302° (2° Aquarius).
"""

import math

from bodygraph.models import GateLine

DEG_PER_GATE = 360 / 64
DEG_PER_LINE = DEG_PER_GATE / 6

ANCHOR_LON = 302.0
ANCHOR_GATE = 41

GATE_ORDER: tuple[int, ...] = (
    41, 19, 13, 49, 30, 55, 37, 63, 22, 36, 25, 17, 21, 51, 42, 3,
    27, 24, 2, 23, 8, 20, 16, 35, 45, 12, 15, 52, 39, 53, 62, 56,
    31, 33, 7, 4, 29, 59, 40, 64, 47, 6, 46, 18, 48, 57, 32, 50,
    28, 44, 1, 43, 14, 34, 9, 5, 26, 11, 10, 58, 38, 54, 61, 60,
)  # fmt: skip

# Absorbs float jitter at arc boundaries (63.9999999 → 64)
_EPS = 1e-9


def _rotate_to_anchor(order: tuple[int, ...], gate: int) -> tuple[int, ...]:
    i = order.index(gate)
    return order[i:] + order[:i]


ORDER_ALIGNED = _rotate_to_anchor(GATE_ORDER, ANCHOR_GATE)


def norm_deg(deg: float) -> float:
    """Reduce an angle into [0, 360)."""
    deg = math.fmod(deg, 360.0)
    if deg < 0:
        deg += 360.0
    return 0.0 if deg >= 360.0 else deg


def ang_diff(a: float, b: float) -> float:
    """Signed smallest difference a → b in degrees, in (-180, 180]."""
    d = norm_deg(b) - norm_deg(a)
    if d > 180:
        d -= 360
    if d <= -180:
        d += 360
    return d


def gate_line_from_longitude(lon: float) -> GateLine:
    """Map an ecliptic longitude (any real number) onto its gate and line.

    A longitude sitting exactly on the end of a gate rolls forward into
    line 1 of the next gate in wheel order, so line 7 is never produced.

    Args:
        lon: Ecliptic longitude in degrees.

    Returns:
        GateLine with gate in 1..64 and line in 1..6.
    """
    delta = norm_deg(lon - ANCHOR_LON)

    gate_idx = math.floor(delta / DEG_PER_GATE + _EPS)
    if gate_idx >= len(ORDER_ALIGNED):
        gate_idx = len(ORDER_ALIGNED) - 1

    # Epsilon may bump gate_idx past delta by a hair; keep the remainder non-negative
    within_gate = max(0.0, delta - gate_idx * DEG_PER_GATE)

    line = math.floor(within_gate / DEG_PER_LINE + _EPS) + 1
    if line > 6:
        line = 1
        gate_idx = (gate_idx + 1) % len(ORDER_ALIGNED)

    return GateLine(gate=ORDER_ALIGNED[gate_idx], line=line)
