"""Definition engine — defined channels/centers, connectivity and classification.

Pure functions over two activation sets. The center graph is rebuilt per call
from the fixed channel table and discarded after classification.
"""

from collections.abc import Iterable

import networkx as nx

from bodygraph.models import ActivationSet, Channel, ChartFacts

CHANNELS: tuple[Channel, ...] = tuple(
    Channel(key=f"{a}-{b}", gates=(a, b), centers=centers)
    for (a, b), centers in (
        ((1, 8), ("G", "Throat")),
        ((2, 14), ("G", "Sacral")),
        ((3, 60), ("Sacral", "Root")),
        ((4, 63), ("Ajna", "Head")),
        ((5, 15), ("Sacral", "G")),
        ((6, 59), ("SolarPlexus", "Sacral")),
        ((7, 31), ("G", "Throat")),
        ((9, 52), ("Sacral", "Root")),
        ((10, 20), ("G", "Throat")),
        ((10, 34), ("G", "Sacral")),
        ((10, 57), ("G", "Spleen")),
        ((11, 56), ("Ajna", "Throat")),
        ((12, 22), ("SolarPlexus", "Throat")),
        ((13, 33), ("G", "Throat")),
        ((16, 48), ("Throat", "Spleen")),
        ((17, 62), ("Ajna", "Throat")),
        ((18, 58), ("Spleen", "Root")),
        ((19, 49), ("Root", "SolarPlexus")),
        ((20, 34), ("Throat", "Sacral")),
        ((20, 57), ("Throat", "Spleen")),
        ((21, 45), ("Ego", "Throat")),
        ((23, 43), ("Throat", "Ajna")),
        ((24, 61), ("Ajna", "Head")),
        ((25, 51), ("G", "Ego")),
        ((26, 44), ("Ego", "Spleen")),
        ((27, 50), ("Sacral", "Spleen")),
        ((28, 38), ("Spleen", "Root")),
        ((29, 46), ("Sacral", "G")),
        ((30, 41), ("SolarPlexus", "Root")),
        ((32, 54), ("Spleen", "Root")),
        ((34, 57), ("Sacral", "Spleen")),
        ((35, 36), ("Throat", "SolarPlexus")),
        ((37, 40), ("SolarPlexus", "Ego")),
        ((39, 55), ("Root", "SolarPlexus")),
        ((42, 53), ("Sacral", "Root")),
        ((47, 64), ("Ajna", "Head")),
    )
)

CHANNELS_BY_KEY: dict[str, Channel] = {ch.key: ch for ch in CHANNELS}

CENTERS: tuple[str, ...] = (
    "Head",
    "Ajna",
    "Throat",
    "G",
    "Ego",
    "Spleen",
    "SolarPlexus",
    "Sacral",
    "Root",
)
MOTORS = frozenset({"Sacral", "SolarPlexus", "Ego", "Root"})

_DEFINITION_LABELS = {
    1: "Single Definition",
    2: "Split Definition",
    3: "Triple Split Definition",
    4: "Quadruple Split Definition",
}
MULTIPLE_SPLITS = "Multiple Splits"

STRATEGY = {
    "Generator": "To Respond",
    "Manifesting Generator": "To Respond",
    "Manifestor": "To Inform",
    "Projector": "Wait for the Invitation",
    "Reflector": "Wait a Lunar Cycle",
}

NOT_SELF = {
    "Generator": "Frustration",
    "Manifesting Generator": "Frustration/Anger",
    "Manifestor": "Anger",
    "Projector": "Bitterness",
    "Reflector": "Disappointment",
}

PROFILE_TBD = "TBD"


def derive_definition(gates: Iterable[int]) -> tuple[list[Channel], list[str]]:
    """Return (defined channels, defined centers), both in channel-table order."""
    active = set(gates)
    channels = [ch for ch in CHANNELS if ch.gates[0] in active and ch.gates[1] in active]
    centers = list(dict.fromkeys(c for ch in channels for c in ch.centers))
    return channels, centers


def center_graph(channels: Iterable[Channel]) -> nx.Graph:
    graph = nx.Graph()
    for ch in channels:
        graph.add_nodes_from(ch.centers)
        if len(ch.centers) == 2:
            graph.add_edge(*ch.centers)
    return graph


def definition_label(graph: nx.Graph) -> str:
    if graph.number_of_nodes() == 0:
        return "None"
    count = nx.number_connected_components(graph)
    return _DEFINITION_LABELS.get(count, MULTIPLE_SPLITS)


def motor_to_throat(graph: nx.Graph) -> bool:
    """True if any defined motor center is connected to the Throat."""
    if "Throat" not in graph:
        return False
    reachable = nx.node_connected_component(graph, "Throat")
    return any(motor in reachable for motor in MOTORS)


def chart_type(centers: Iterable[str], graph: nx.Graph) -> str:
    defined = set(centers)
    if not defined:
        return "Reflector"
    sacral = "Sacral" in defined
    motor_throat = motor_to_throat(graph)
    if sacral and motor_throat:
        return "Manifesting Generator"
    if sacral:
        return "Generator"
    if motor_throat:
        return "Manifestor"
    return "Projector"


def authority(centers: Iterable[str]) -> str:
    defined = set(centers)
    if "SolarPlexus" in defined:
        return "Emotional"
    if "Sacral" in defined:
        return "Sacral"
    if "Spleen" in defined:
        return "Splenic"
    if "Ego" in defined:
        return "Ego/Heart"
    if "G" in defined and "Throat" in defined:
        return "Self-Projected"
    if not defined:
        return "Lunar"
    return "Environment (Mental)"


def _sun_line(activations: ActivationSet) -> int | None:
    gate_line = activations.get("Sun") or activations.get("Earth")
    if gate_line is None or not 1 <= gate_line.line <= 6:
        return None
    return gate_line.line


def profile(personality: ActivationSet, design: ActivationSet) -> str:
    p_line = _sun_line(personality)
    d_line = _sun_line(design)
    if p_line is None or d_line is None:
        return PROFILE_TBD
    return f"{p_line}/{d_line}"


def angle_from_profile(profile_label: str) -> str:
    """Cross angle category: 4/1 is Juxtaposition, lines 5-6 Left, otherwise Right."""
    try:
        first, second = (int(part) for part in profile_label.split("/"))
    except ValueError:
        return "Right Angle"
    if (first, second) == (4, 1):
        return "Juxtaposition"
    if first >= 5:
        return "Left Angle"
    return "Right Angle"


def classify(personality: ActivationSet, design: ActivationSet) -> ChartFacts:
    """Derive type, authority, strategy, definition and profile.

    Entry order inside either set has no influence on the result.
    """
    channels, centers = derive_definition(personality.gates() | design.gates())
    graph = center_graph(channels)
    assert set(graph.nodes) == set(centers)

    kind = chart_type(centers, graph)
    profile_label = profile(personality, design)
    return ChartFacts(
        type=kind,
        authority=authority(centers),
        strategy=STRATEGY[kind],
        definition=definition_label(graph),
        profile=profile_label,
        not_self=NOT_SELF[kind],
        angle=angle_from_profile(profile_label),
        defined_channels=tuple(ch.key for ch in channels),
        defined_centers=tuple(centers),
    )


def center_sources(
    defined_channels: Iterable[str],
    personality_gates: frozenset[int],
    design_gates: frozenset[int],
) -> dict[str, str]:
    """Per-center activation source: "open", "personality", "design" or "both".

    A channel counts as personality when both of its gates are personality
    gates, else as design when both are design gates, else as both. A center
    fed by channels of different sources is "both".
    """
    sources: dict[str, set[str]] = {}
    for key in defined_channels:
        ch = CHANNELS_BY_KEY.get(key)
        if ch is None:
            continue
        g1, g2 = ch.gates
        if g1 in personality_gates and g2 in personality_gates:
            src = "personality"
        elif g1 in design_gates and g2 in design_gates:
            src = "design"
        else:
            src = "both"
        for center in ch.centers:
            sources.setdefault(center, set()).add(src)

    status: dict[str, str] = {}
    for center in CENTERS:
        found = sources.get(center)
        if not found:
            status[center] = "open"
        elif len(found) > 1:
            status[center] = "both"
        else:
            status[center] = next(iter(found))
    return status
