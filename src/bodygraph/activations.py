"""Activation sets — body/node longitudes at both epochs mapped to gate.line."""

import logging

from bodygraph.ephemeris import NORTH_NODE, Ephemeris
from bodygraph.models import Activation, ActivationSet, GateLine
from bodygraph.wheel import gate_line_from_longitude, norm_deg

log = logging.getLogger(__name__)

SOUTH_NODE = "South Node"

# Collection order. Earth is derived from the Sun, never queried.
PLANETS: tuple[str, ...] = (
    "Sun",
    "Earth",
    "Moon",
    "Mercury",
    "Venus",
    "Mars",
    "Jupiter",
    "Saturn",
    "Uranus",
    "Neptune",
    "Pluto",
)
NODES: tuple[str, ...] = (NORTH_NODE, SOUTH_NODE)

# Row order for tabular reports
DISPLAY_ORDER: tuple[str, ...] = (
    "Sun",
    "Earth",
    "Moon",
    NORTH_NODE,
    SOUTH_NODE,
    "Mercury",
    "Venus",
    "Mars",
    "Jupiter",
    "Saturn",
    "Uranus",
    "Neptune",
    "Pluto",
)

GLYPHS: dict[str, str] = {
    "Sun": "☉",
    "Earth": "♁",
    "Moon": "☽",
    NORTH_NODE: "☊",
    SOUTH_NODE: "☋",
    "Mercury": "☿",
    "Venus": "♀",
    "Mars": "♂",
    "Jupiter": "♃",
    "Saturn": "♄",
    "Uranus": "♅",
    "Neptune": "♆",
    "Pluto": "♇",
}


def body_longitudes(jd_ut: float, ephemeris: Ephemeris) -> dict[str, float]:
    """Longitudes of the 11 bodies and 2 nodes at one instant, keyed by name."""
    lons: dict[str, float] = {}
    for body in PLANETS:
        if body == "Earth":
            continue
        lons[body] = ephemeris.longitude(jd_ut, body)
    lons["Earth"] = norm_deg(lons["Sun"] + 180.0)

    north = ephemeris.longitude(jd_ut, NORTH_NODE)
    lons[NORTH_NODE] = norm_deg(north)
    lons[SOUTH_NODE] = norm_deg(north + 180.0)
    log.debug(
        "nodes at JD %.5f: north=%.6f south=%.6f",
        jd_ut,
        lons[NORTH_NODE],
        lons[SOUTH_NODE],
    )
    return lons


def harmonize_sun_earth(entries: list[Activation]) -> list[Activation]:
    """Give Earth the Sun's line while keeping Earth's own gate."""
    sun = next((e for e in entries if e.body == "Sun"), None)
    if sun is None:
        return entries
    result: list[Activation] = []
    for entry in entries:
        if entry.body == "Earth":
            entry = Activation(
                body="Earth",
                gate_line=GateLine(gate=entry.gate_line.gate, line=sun.gate_line.line),
                longitude=entry.longitude,
            )
        result.append(entry)
    return result


def activation_set(lons: dict[str, float]) -> ActivationSet:
    """Map longitudes through the wheel in planets-then-nodes order."""
    entries = [
        Activation(body=body, gate_line=gate_line_from_longitude(lons[body]), longitude=lons[body])
        for body in PLANETS + NODES
        if body in lons
    ]
    return ActivationSet(entries=tuple(harmonize_sun_earth(entries)))


def build_activations(
    personality_jd: float, design_jd: float, ephemeris: Ephemeris
) -> tuple[ActivationSet, ActivationSet]:
    """Build the (personality, design) activation sets for the two epochs."""
    personality = activation_set(body_longitudes(personality_jd, ephemeris))
    design = activation_set(body_longitudes(design_jd, ephemeris))
    return personality, design
