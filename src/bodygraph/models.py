"""Data model definitions — explicit boundaries between input, compute, and render layers."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class QueryInput:
    """Raw user input. Not yet validated."""

    date: str  # "YYYY-MM-DD"
    time: str = "12:00"  # "HH:MM" local wall-clock time
    zone: str | None = None  # IANA zone ("Europe/Dublin"); looked up from place if None
    place: str = ""  # Free-form place name, used only when zone is None
    name: str = ""  # Subject name, echoed into the output


@dataclass(frozen=True)
class Epochs:
    """The two instants driving a chart, as Julian Days in universal time."""

    personality_jd: float  # Birth instant
    design_jd: float  # Solar-arc instant ~88 days before birth
    utc_dt: datetime  # Birth instant as an aware UTC datetime
    zone: str  # IANA zone the wall-clock time was interpreted in


@dataclass(frozen=True)
class GateLine:
    """A position on the 64-gate wheel."""

    gate: int  # 1..64
    line: int  # 1..6

    def __str__(self) -> str:
        return f"{self.gate}.{self.line}"


@dataclass(frozen=True)
class Activation:
    """A single body or node mapped onto the wheel."""

    body: str  # "Sun", "Earth", ..., "North Node", "South Node"
    gate_line: GateLine
    longitude: float  # Ecliptic longitude the gate.line was derived from


@dataclass(frozen=True)
class ActivationSet:
    """Ordered body → gate.line collection for one epoch (13 entries)."""

    entries: tuple[Activation, ...]

    def get(self, body: str) -> GateLine | None:
        for entry in self.entries:
            if entry.body == body:
                return entry.gate_line
        return None

    def gates(self) -> frozenset[int]:
        return frozenset(entry.gate_line.gate for entry in self.entries)

    def pairs(self) -> list[list[str]]:
        """``[["Sun", "46.5"], ...]`` in collection order."""
        return [[entry.body, str(entry.gate_line)] for entry in self.entries]

    def rows(self, order: tuple[str, ...]) -> list[tuple[str, str]]:
        """Rows for tabular display; bodies missing from the set get an empty cell."""
        rows: list[tuple[str, str]] = []
        for body in order:
            gate_line = self.get(body)
            rows.append((body, str(gate_line) if gate_line else ""))
        return rows


@dataclass(frozen=True)
class Channel:
    """One of the 36 fixed gate pairs linking structural centers."""

    key: str  # "1-8"
    gates: tuple[int, int]
    centers: tuple[str, ...]  # One or two center names


@dataclass(frozen=True)
class ChartFacts:
    """Classification derived from the two activation sets."""

    type: str
    authority: str
    strategy: str
    definition: str  # Connectivity label ("Single Definition", ...)
    profile: str  # "personalityLine/designLine" or "TBD"
    not_self: str  # Shadow theme keyed by type
    angle: str  # "Right Angle" | "Left Angle" | "Juxtaposition"
    defined_channels: tuple[str, ...]  # Channel keys in table order
    defined_centers: tuple[str, ...]  # Center names in first-seen table order


@dataclass(frozen=True)
class Chart:
    """Complete engine output. The sole input to presentation layers."""

    query: QueryInput
    epochs: Epochs
    facts: ChartFacts
    personality: ActivationSet
    design: ActivationSet
    cross: str  # Composed label, "Right Angle Cross (1/2|7/13)"
    cross_description: str  # Looked-up description, or the composed label
    svg: str  # Self-contained SVG markup, 420x600 canvas
    sun_birth: float  # Sun longitude at the personality epoch
    sun_design: float  # Sun longitude at the design epoch

    def to_dict(self, debug: bool = False) -> dict[str, Any]:
        """JSON-ready document in the shape report layers consume."""
        doc: dict[str, Any] = {
            "name": self.query.name,
            "date": self.query.date,
            "time": self.query.time,
            "place": self.query.place,
            "type": self.facts.type,
            "profile": self.facts.profile,
            "definition": self.facts.definition,
            "authority": self.facts.authority,
            "strategy": self.facts.strategy,
            "notSelf": self.facts.not_self,
            "cross": self.cross,
            "crossDescription": self.cross_description,
            "designPlanets": self.design.pairs(),
            "personalityPlanets": self.personality.pairs(),
            "definedChannels": list(self.facts.defined_channels),
            "definedCenters": list(self.facts.defined_centers),
            "svg": self.svg,
        }
        if debug:
            doc["debug"] = {
                "tz": self.epochs.zone,
                "utc": self.epochs.utc_dt.isoformat(),
                "jdBirth": self.epochs.personality_jd,
                "jdDesign": self.epochs.design_jd,
                "sunBirth": self.sun_birth,
                "sunDesign": self.sun_design,
            }
        return doc
