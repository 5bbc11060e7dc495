"""SVG bodygraph renderer.

Produces a self-contained ``<svg>`` fragment on a fixed 420x600 canvas.
Layout never depends on activation state; only center fills, channel
overlay colours and label bubbles do.

Coordinate system: SVG user units, origin top-left, y grows downward.
Draw order: background, channel grid + overlays, center shapes, gate labels.
"""

from __future__ import annotations

import base64
import logging
import math
from dataclasses import dataclass
from pathlib import Path

from bodygraph.definition import CHANNELS, center_sources
from bodygraph.models import ActivationSet, ChartFacts

log = logging.getLogger(__name__)

Point = tuple[float, float]

W, H = 420, 600
CX = 210

_BG = "#ffffff"
_STROKE = "#555555"
_GRID = "#FFFFFF"
_PERSONALITY = "#222222"
_DESIGN = "#D75442"

CENTER_THEME = {
    "open": "#FFFFFF",
    "personality": "#506A81",
    "design": "#AADBD5",
    "both": "#506A81",
}

_SQUARE = 58
_HEAD_SIZE = 60
_AJNA_SIZE = 56


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def centroid(self) -> Point:
        return (self.x + self.w / 2, self.y + self.h / 2)


# --- Static geometry ---
HEAD_Y = 36
HEAD: tuple[Point, ...] = (  # apex up, base down
    (CX, HEAD_Y),
    (CX - _HEAD_SIZE / 2, HEAD_Y + _HEAD_SIZE),
    (CX + _HEAD_SIZE / 2, HEAD_Y + _HEAD_SIZE),
)

AJNA_Y = HEAD[1][1] + 28
AJNA: tuple[Point, ...] = (  # base up, apex down
    (CX - _AJNA_SIZE / 2, AJNA_Y),
    (CX + _AJNA_SIZE / 2, AJNA_Y),
    (CX, AJNA_Y + _AJNA_SIZE),
)

THROAT = Rect(CX - _SQUARE / 2, AJNA[2][1] + 36, _SQUARE, _SQUARE)

G_CY = THROAT.y + THROAT.h + 64
G_HALF = round(_SQUARE * 0.65)
G: tuple[Point, ...] = (  # top, right, bottom, left
    (CX, G_CY - G_HALF),
    (CX + G_HALF, G_CY),
    (CX, G_CY + G_HALF),
    (CX - G_HALF, G_CY),
)

SACRAL = Rect(CX - _SQUARE / 2, G_CY + 90, _SQUARE, _SQUARE)

_SIDE_GAP = 120
_SIDE_BASE = 70
_SIDE_HEIGHT = 70
_SIDE_MID_Y = SACRAL.y + SACRAL.h / 2

_SPL_X = SACRAL.x - _SIDE_GAP
SPLEEN: tuple[Point, ...] = (  # points right
    (_SPL_X, _SIDE_MID_Y - _SIDE_HEIGHT / 2),
    (_SPL_X, _SIDE_MID_Y + _SIDE_HEIGHT / 2),
    (_SPL_X + _SIDE_BASE, _SIDE_MID_Y),
)

_SOL_X = SACRAL.x + SACRAL.w + _SIDE_GAP
SOLAR: tuple[Point, ...] = (  # points left
    (_SOL_X, _SIDE_MID_Y - _SIDE_HEIGHT / 2),
    (_SOL_X, _SIDE_MID_Y + _SIDE_HEIGHT / 2),
    (_SOL_X - _SIDE_BASE, _SIDE_MID_Y),
)

_EGO_CY = (G_CY + _SIDE_MID_Y) / 2 - 30
_EGO_CX = CX + G_HALF + 20
_EGO_H = 35
_EGO_BASE = 65
EGO: tuple[Point, ...] = (  # apex up
    (_EGO_CX, _EGO_CY - _EGO_H / 2),
    (_EGO_CX - _EGO_BASE / 2, _EGO_CY + _EGO_H / 2),
    (_EGO_CX + _EGO_BASE / 2, _EGO_CY + _EGO_H / 2),
)

ROOT = Rect(CX - _SQUARE / 2, SACRAL.y + SACRAL.h + 36, _SQUARE, _SQUARE)


def _triangle_centroid(pts: tuple[Point, ...]) -> Point:
    return (sum(p[0] for p in pts) / 3, sum(p[1] for p in pts) / 3)


CENTROIDS: dict[str, Point] = {
    "Throat": THROAT.centroid,
    "Sacral": SACRAL.centroid,
    "Root": ROOT.centroid,
    "G": (CX, G_CY),
    "Head": _triangle_centroid(HEAD),
    "Ajna": _triangle_centroid(AJNA),
    "Spleen": _triangle_centroid(SPLEEN),
    "SolarPlexus": _triangle_centroid(SOLAR),
    "Ego": _triangle_centroid(EGO),
}

# gate → (center, side, fraction along that side)
ANCHORS: dict[int, tuple[str, str, float]] = {
    # Throat
    62: ("Throat", "top", 0.25),
    23: ("Throat", "top", 0.50),
    56: ("Throat", "top", 0.75),
    16: ("Throat", "left", 0.10),
    20: ("Throat", "left", 0.50),
    12: ("Throat", "right", 0.50),
    31: ("Throat", "bottom", 0.24),
    8: ("Throat", "bottom", 0.50),
    33: ("Throat", "bottom", 0.76),
    45: ("Throat", "bottom", 0.99),
    35: ("Throat", "right", 0.10),
    # Head
    64: ("Head", "bottom", 0.26),
    61: ("Head", "bottom", 0.50),
    63: ("Head", "bottom", 0.74),
    # Ajna
    47: ("Ajna", "top", 0.25),
    24: ("Ajna", "top", 0.50),
    4: ("Ajna", "top", 0.75),
    17: ("Ajna", "left", 0.50),
    11: ("Ajna", "right", 0.50),
    43: ("Ajna", "bottom", 0.70),
    # G
    13: ("G", "top", 0.40),
    1: ("G", "top", 0.01),
    7: ("G", "left", 0.60),
    46: ("G", "right", 0.60),
    2: ("G", "bottom", 0.01),
    15: ("G", "bottom", 0.40),
    10: ("G", "left", 0.01),
    25: ("G", "right", 0.25),
    # Ego
    21: ("Ego", "top", 0.50),
    51: ("Ego", "left", 0.60),
    26: ("Ego", "left", 0.01),
    40: ("Ego", "bottom", 0.85),
    # Solar Plexus
    22: ("SolarPlexus", "top", 0.70),
    36: ("SolarPlexus", "top", 0.90),
    6: ("SolarPlexus", "bottom", 0.99),
    37: ("SolarPlexus", "top", 0.40),
    49: ("SolarPlexus", "bottom", 0.50),
    30: ("SolarPlexus", "bottom", 0.10),
    55: ("SolarPlexus", "bottom", 0.30),
    # Spleen
    48: ("Spleen", "top", 0.90),
    57: ("Spleen", "top", 0.70),
    50: ("Spleen", "top", 0.01),
    44: ("Spleen", "top", 0.35),
    32: ("Spleen", "bottom", 0.60),
    28: ("Spleen", "bottom", 0.40),
    18: ("Spleen", "bottom", 0.20),
    # Sacral
    14: ("Sacral", "top", 0.50),
    5: ("Sacral", "top", 0.25),
    34: ("Sacral", "left", 0.30),
    27: ("Sacral", "left", 0.65),
    29: ("Sacral", "top", 0.75),
    59: ("Sacral", "right", 0.53),
    9: ("Sacral", "bottom", 0.80),
    3: ("Sacral", "bottom", 0.50),
    42: ("Sacral", "bottom", 0.20),
    # Root
    52: ("Root", "top", 0.80),
    60: ("Root", "top", 0.50),
    53: ("Root", "top", 0.20),
    54: ("Root", "left", 0.20),
    38: ("Root", "left", 0.50),
    58: ("Root", "left", 0.80),
    39: ("Root", "right", 0.50),
    41: ("Root", "right", 0.80),
    19: ("Root", "right", 0.20),
}

# Hand-tuned label offsets (px) applied after the centroid inset
LABEL_NUDGES: dict[int, tuple[float, float]] = {
    64: (-6, -1), 63: (6, -1),
    47: (-6, 0), 4: (7, 0), 24: (0, -2), 43: (0, -6),
    20: (0, 7), 16: (1, 9), 62: (-6, 0), 56: (6, 0), 23: (1, -1),
    31: (-8, 0), 8: (-7, 1), 33: (-5, 0), 35: (-1, 9), 12: (0, 6), 45: (-1, -2),
    25: (2, -2),
    26: (6, -3), 51: (-2, -1), 21: (1, 1), 40: (2, -3),
    34: (0, 2), 27: (0, 3), 42: (-4, 0), 3: (0, 1), 9: (4, 0), 29: (5, 0), 5: (-5, 0),
    53: (-6, 0), 60: (0, -1), 52: (6, 0), 54: (1, 6), 58: (1, 6), 38: (0, 6),
    19: (-1, 6), 39: (0, 6), 41: (-1, 6),
    48: (-2, 3), 50: (-6, 0), 32: (2, 0), 28: (-2, 2), 18: (-7, 3),
    6: (4, -1), 37: (-2, 0), 36: (3, 1), 49: (-4, -1), 30: (2, 1),
}  # fmt: skip

# Integration gates share one physical spine (57 → 20) and are drawn separately
HUB_GATES = frozenset({10, 20, 34, 57})
J34_FRACTION = 0.20
J10_FRACTION = 0.50

LABEL_INSET = 9
LABEL_RADIUS = 6
LABEL_STROKE_WIDTH = 1
CHANNEL_WIDTH = 5
HUB_DUAL_WIDTH = 4
_DASH = 8


def _lerp(a: Point, b: Point, t: float) -> Point:
    return (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)


def _rect_point(r: Rect, side: str, t: float) -> Point:
    if side == "top":
        return (r.x + r.w * t, r.y)
    if side == "bottom":
        return (r.x + r.w * t, r.y + r.h)
    if side == "left":
        return (r.x, r.y + r.h * t)
    if side == "right":
        return (r.x + r.w, r.y + r.h * t)
    return r.centroid


def _diamond_point(side: str, t: float) -> Point:
    top, right, bottom, left = G
    edges = {
        "top": (top, right),
        "right": (right, bottom),
        "bottom": (bottom, left),
        "left": (left, top),
    }
    if side not in edges:
        return (CX, G_CY)
    return _lerp(*edges[side], t)


def _head_point(side: str, t: float) -> Point:
    apex, base_l, base_r = HEAD
    return apex if side == "top" else _lerp(base_l, base_r, t)


def _ajna_point(side: str, t: float) -> Point:
    base_l, base_r, apex = AJNA
    if side == "bottom":
        return apex
    if side == "left":
        return _lerp(base_l, apex, t)
    if side == "right":
        return _lerp(base_r, apex, t)
    return _lerp(base_l, base_r, t)


def _side_triangle_point(pts: tuple[Point, ...], flat_side: str, side: str, t: float) -> Point:
    # Spleen and Solar Plexus: vertical flat side, two slanted sides
    upper, lower, tip = pts
    if side == flat_side:
        return _lerp(upper, lower, t)
    if side == "top":
        return _lerp(tip, upper, t)
    if side == "bottom":
        return _lerp(lower, tip, t)
    return upper


def _ego_point(side: str, t: float) -> Point:
    apex, base_l, base_r = EGO
    if side == "top":
        return apex
    if side == "bottom":
        return _lerp(base_l, base_r, t)
    if side == "left":
        return _lerp(base_l, apex, t)
    if side == "right":
        return _lerp(base_r, apex, t)
    return _lerp(base_l, base_r, 0.5)


def anchor_for_gate(gate: int) -> Point | None:
    """Point on the owning center's outline where the gate's channel attaches."""
    anchor = ANCHORS.get(gate)
    if anchor is None:
        return None
    center, side, t = anchor
    if center == "Throat":
        return _rect_point(THROAT, side, t)
    if center == "Sacral":
        return _rect_point(SACRAL, side, t)
    if center == "Root":
        return _rect_point(ROOT, side, t)
    if center == "G":
        return _diamond_point(side, t)
    if center == "Head":
        return _head_point(side, t)
    if center == "Ajna":
        return _ajna_point(side, t)
    if center == "Spleen":
        return _side_triangle_point(SPLEEN, "right", side, t)
    if center == "SolarPlexus":
        return _side_triangle_point(SOLAR, "left", side, t)
    if center == "Ego":
        return _ego_point(side, t)
    return None


def label_position(gate: int, inset: float = LABEL_INSET) -> Point | None:
    """Anchor moved ``inset`` px toward the center's centroid, plus its manual nudge."""
    anchor = ANCHORS.get(gate)
    p = anchor_for_gate(gate)
    if anchor is None or p is None:
        return None
    cx, cy = CENTROIDS[anchor[0]]
    vx, vy = cx - p[0], cy - p[1]
    length = math.hypot(vx, vy) or 1.0
    dx, dy = LABEL_NUDGES.get(gate, (0, 0))
    return (p[0] + vx / length * inset + dx, p[1] + vy / length * inset + dy)


def _f(v: float) -> str:
    return f"{v:.2f}"


class SvgBuilder:
    """Accumulates SVG elements for one diagram, in paint order."""

    def __init__(self, width: int = W, height: int = H):
        self.width = width
        self.height = height
        self.parts: list[str] = []

    def raw(self, markup: str) -> None:
        self.parts.append(markup)

    def rect(self, r: Rect, fill: str, stroke: str = _STROKE) -> None:
        self.parts.append(
            f'<rect x="{_f(r.x)}" y="{_f(r.y)}" width="{_f(r.w)}" height="{_f(r.h)}"'
            f' fill="{fill}" stroke="{stroke}"/>'
        )

    def polygon(self, pts: tuple[Point, ...], fill: str, stroke: str = _STROKE) -> None:
        points = " ".join(f"{_f(x)},{_f(y)}" for x, y in pts)
        self.parts.append(f'<polygon points="{points}" fill="{fill}" stroke="{stroke}"/>')

    def line(
        self,
        a: Point,
        b: Point,
        stroke: str,
        width: float = 4,
        cap: str = "butt",
        extra: str = "",
    ) -> None:
        self.parts.append(
            f'<line x1="{_f(a[0])}" y1="{_f(a[1])}" x2="{_f(b[0])}" y2="{_f(b[1])}"'
            f' stroke="{stroke}" stroke-width="{width}" stroke-linecap="{cap}"{extra}/>'
        )

    def markup(self) -> str:
        head = (
            f'<svg xmlns="http://www.w3.org/2000/svg" width="{self.width}"'
            f' height="{self.height}" viewBox="0 0 {self.width} {self.height}">'
        )
        return "\n".join([head, *self.parts, "</svg>"])


@dataclass(frozen=True)
class _GateSets:
    personality: frozenset[int]
    design: frozenset[int]

    def stroke(self, gate: int) -> str | None:
        if gate in self.personality:
            return _PERSONALITY
        if gate in self.design:
            return _DESIGN
        return None

    def both(self, gate: int) -> bool:
        return gate in self.personality and gate in self.design


def _draw_seg(svg: SvgBuilder, a: Point, b: Point, stroke: str | None, width: float) -> None:
    if stroke is None:
        return
    svg.line(a, b, stroke, width)


def _draw_seg_both(svg: SvgBuilder, a: Point, b: Point, width: float) -> None:
    # Solid red underlay, black dashes on top
    svg.line(a, b, _DESIGN, width)
    svg.line(
        a,
        b,
        _PERSONALITY,
        max(1, width - 1),
        extra=f' stroke-dasharray="{_DASH},{_DASH}" stroke-dashoffset="{_DASH}"',
    )


def _draw_half(
    svg: SvgBuilder, sets: _GateSets, gate: int, a: Point, b: Point, dual_width: float
) -> None:
    if sets.both(gate):
        _draw_seg_both(svg, a, b, dual_width)
    else:
        _draw_seg(svg, a, b, sets.stroke(gate), CHANNEL_WIDTH)


def _draw_channels(svg: SvgBuilder, sets: _GateSets, defined: frozenset[str]) -> None:
    """Grid line for every non-integration channel, overlay for the defined ones."""
    for ch in CHANNELS:
        g_a, g_b = ch.gates
        if g_a in HUB_GATES or g_b in HUB_GATES:
            continue
        p_a = anchor_for_gate(g_a)
        p_b = anchor_for_gate(g_b)
        if p_a is None or p_b is None:
            continue

        svg.line(p_a, p_b, _GRID, CHANNEL_WIDTH)
        if ch.key not in defined:
            continue
        mid = _lerp(p_a, p_b, 0.5)
        _draw_half(svg, sets, g_a, p_a, mid, CHANNEL_WIDTH)
        _draw_half(svg, sets, g_b, mid, p_b, CHANNEL_WIDTH)


def integration_junctions() -> tuple[Point, Point]:
    """(J34, J10): where 34 and 10 join the 57 → 20 spine."""
    p20 = anchor_for_gate(20)
    p57 = anchor_for_gate(57)
    assert p20 is not None and p57 is not None
    return _lerp(p57, p20, J34_FRACTION), _lerp(p57, p20, J10_FRACTION)


def _draw_integration(svg: SvgBuilder, sets: _GateSets, defined: frozenset[str]) -> None:
    """The 10-20-34-57 network: one spine from 57 to 20, with 34 and 10 feeding in.

    Each overlay segment is owned by one gate and drawn only while one of the
    hub channels running through it is defined.
    """
    p10 = anchor_for_gate(10)
    p20 = anchor_for_gate(20)
    p34 = anchor_for_gate(34)
    p57 = anchor_for_gate(57)
    assert p10 and p20 and p34 and p57
    j34, j10 = integration_junctions()
    m2057 = _lerp(p20, p57, 0.5)

    svg.line(p20, p57, _GRID, CHANNEL_WIDTH)
    svg.line(p34, j34, _GRID, CHANNEL_WIDTH)
    svg.line(j34, p20, _GRID, CHANNEL_WIDTH)
    svg.line(p10, j10, _GRID, CHANNEL_WIDTH)
    svg.line(j10, p57, _GRID, CHANNEL_WIDTH)

    # (gate, start, end, channels drawn through the segment)
    segments = (
        (34, p34, j34, {"20-34", "34-57", "10-34"}),
        (20, j34, p20, {"20-34"}),
        (10, p10, j10, {"10-20", "10-34", "10-57"}),
        (57, j10, p57, {"10-57", "34-57"}),
        (20, p20, m2057, {"20-57", "10-20"}),
        (57, m2057, p57, {"20-57"}),
    )
    for gate, start, end, channels in segments:
        if channels & defined:
            _draw_half(svg, sets, gate, start, end, HUB_DUAL_WIDTH)


def _paint_centers(svg: SvgBuilder, status: dict[str, str]) -> None:
    def fill(center: str) -> str:
        return CENTER_THEME.get(status.get(center, "open"), CENTER_THEME["open"])

    svg.polygon(HEAD, fill("Head"), stroke="none")
    svg.polygon(AJNA, fill("Ajna"), stroke="none")
    svg.rect(THROAT, fill("Throat"), stroke="none")
    svg.polygon(G, fill("G"), stroke="none")
    svg.polygon(EGO, fill("Ego"), stroke="none")
    svg.polygon(SPLEEN, fill("Spleen"), stroke="none")
    svg.polygon(SOLAR, fill("SolarPlexus"), stroke="none")
    svg.rect(SACRAL, fill("Sacral"), stroke="none")
    svg.rect(ROOT, fill("Root"), stroke="none")


def _draw_gate_label(svg: SvgBuilder, gate: int, status: dict[str, str]) -> None:
    pos = label_position(gate)
    if pos is None:
        return
    tx, ty = pos

    st = status.get(ANCHORS[gate][0], "open")
    bubble_fill = CENTER_THEME[st] if st in CENTER_THEME else CENTER_THEME["open"]
    text_fill = "#FFFFFF" if st in ("personality", "both") else "#000000"
    bubble_stroke = "#DDDDDD" if st == "open" else "none"

    svg.raw(
        f'<g class="gate-label">'
        f'<circle cx="{_f(tx)}" cy="{_f(ty)}" r="{LABEL_RADIUS}" fill="{bubble_fill}"'
        f' stroke="{bubble_stroke}" stroke-width="{LABEL_STROKE_WIDTH}"/>'
        f'<text x="{_f(tx)}" y="{_f(ty)}" font-family="Helvetica, Arial, sans-serif"'
        f' font-size="10" fill="{text_fill}" text-anchor="middle"'
        f' dominant-baseline="middle">{gate}</text>'
        f"</g>"
    )


def _background(svg: SvgBuilder, image: Path, opacity: float) -> None:
    try:
        data = base64.b64encode(image.read_bytes()).decode("ascii")
    except OSError as e:
        log.debug("background image skipped: %s", e)
        return
    svg.raw(
        f'<defs><clipPath id="frameClip"><rect x="0" y="0" width="{svg.width}"'
        f' height="{svg.height}"/></clipPath></defs>'
    )
    svg.raw(
        f'<image href="data:image/png;base64,{data}" x="0" y="0" width="{svg.width}"'
        f' height="{svg.height}" preserveAspectRatio="xMidYMid slice"'
        f' opacity="{opacity}" clip-path="url(#frameClip)"/>'
    )


def render_bodygraph_svg(
    facts: ChartFacts,
    personality: ActivationSet,
    design: ActivationSet,
    background_image: Path | None = None,
    background_opacity: float = 0.8,
) -> str:
    """Return the bodygraph as a self-contained SVG string.

    Args:
        facts: Classification; its defined channels drive overlays and center fills.
        personality: Activation set of the birth epoch (black overlays).
        design: Activation set of the design epoch (red overlays).
        background_image: Optional PNG drawn behind everything.
        background_opacity: Opacity of the background image.

    Returns:
        ``<svg>`` markup on a 420x600 canvas.
    """
    sets = _GateSets(personality=personality.gates(), design=design.gates())
    status = center_sources(facts.defined_channels, sets.personality, sets.design)

    svg = SvgBuilder()
    svg.rect(Rect(0, 0, W, H), _BG)
    if background_image is not None:
        _background(svg, background_image, background_opacity)

    defined = frozenset(facts.defined_channels)
    _draw_channels(svg, sets, defined)
    _draw_integration(svg, sets, defined)
    _paint_centers(svg, status)
    for gate in sorted(ANCHORS):
        _draw_gate_label(svg, gate, status)

    return svg.markup()
