"""Incarnation cross label and description lookup."""

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from bodygraph.models import ActivationSet

log = logging.getLogger(__name__)

ANGLE_NAMES = {"R": "Right", "L": "Left", "J": "Juxtaposition"}

# Angle category (as derived from the profile) → index angle name
_CATEGORY_TO_ANGLE = {
    "Right Angle": "Right",
    "Left Angle": "Left",
    "Juxtaposition": "Juxtaposition",
}


class CrossLookup(Protocol):
    def lookup(self, angle_category: str, gates: list[int]) -> str | None: ...


@dataclass(frozen=True)
class CrossRow:
    """A single row of the cross-description table."""

    angle: str  # "Right" | "Left" | "Juxtaposition"
    gates: tuple[int, int, int, int]  # pSun, pEarth, dSun, dEarth
    description: str


def _normalize_angle(raw: str) -> str:
    s = raw.strip()
    return ANGLE_NAMES.get(s.upper(), s)


def cross_gates(personality: ActivationSet, design: ActivationSet) -> list[int]:
    """Sun/Earth gates of both sets; bodies that are missing are skipped."""
    gates: list[int] = []
    for activations, body in (
        (personality, "Sun"),
        (personality, "Earth"),
        (design, "Sun"),
        (design, "Earth"),
    ):
        gate_line = activations.get(body)
        if gate_line is not None:
            gates.append(gate_line.gate)
    return gates


def cross_label(angle_category: str, personality: ActivationSet, design: ActivationSet) -> str:
    """``"Right Angle Cross (1/2|7/13)"``."""

    def gate(activations: ActivationSet, body: str) -> str:
        gate_line = activations.get(body)
        return str(gate_line.gate) if gate_line else "?"

    return (
        f"{angle_category} Cross ("
        f"{gate(personality, 'Sun')}/{gate(personality, 'Earth')}|"
        f"{gate(design, 'Sun')}/{gate(design, 'Earth')})"
    )


class NullCrossIndex:
    """Lookup that never finds anything."""

    def lookup(self, angle_category: str, gates: list[int]) -> str | None:
        return None


class CrossIndex:
    """Exact-match index keyed by angle and the ordered four gates."""

    def __init__(self, rows: list[CrossRow]):
        self._index: dict[tuple[str, tuple[int, ...]], CrossRow] = {
            (row.angle, row.gates): row for row in rows
        }

    def __len__(self) -> int:
        return len(self._index)

    @classmethod
    def from_csv(cls, path: Path) -> "CrossIndex":
        """Parse a CSV with header ``angle,g1,g2,g3,g4,description``.

        Angle may be given as a code (R/L/J) or a name. Gate order is kept as
        written; lookups must use the same order.
        """
        rows: list[CrossRow] = []
        with path.open(encoding="utf-8-sig", newline="") as f:
            for record in csv.DictReader(f):
                rows.append(
                    CrossRow(
                        angle=_normalize_angle(record["angle"]),
                        gates=(
                            int(record["g1"]),
                            int(record["g2"]),
                            int(record["g3"]),
                            int(record["g4"]),
                        ),
                        description=(record.get("description") or "").strip(),
                    )
                )
        log.debug("loaded %d cross rows from %s", len(rows), path)
        return cls(rows)

    def find(self, angle: str, gates: list[int]) -> CrossRow | None:
        return self._index.get((_normalize_angle(angle), tuple(gates)))

    def lookup(self, angle_category: str, gates: list[int]) -> str | None:
        angle = _CATEGORY_TO_ANGLE.get(angle_category)
        if angle is None or len(gates) != 4 or not all(g > 0 for g in gates):
            return None
        row = self.find(angle, gates)
        return row.description if row else None


def cross_description(
    index: CrossLookup, angle_category: str, gates: list[int], fallback: str
) -> str:
    """``"<description> (g1/g2 | g3/g4)"`` when the index knows the cross, else ``fallback``."""
    description = index.lookup(angle_category, gates)
    if not description:
        return fallback
    g1, g2, g3, g4 = gates
    return f"{description} ({g1}/{g2} | {g3}/{g4})"
