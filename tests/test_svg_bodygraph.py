from __future__ import annotations

import re

import pytest

from bodygraph.activations import NODES, PLANETS
from bodygraph.definition import classify
from bodygraph.models import Activation, ActivationSet, GateLine
from bodygraph.renderers.svg_bodygraph import (
    ANCHORS,
    CENTER_THEME,
    H,
    J10_FRACTION,
    J34_FRACTION,
    W,
    anchor_for_gate,
    integration_junctions,
    label_position,
    render_bodygraph_svg,
)

EMPTY = ActivationSet(entries=())


def acts(*gates: int) -> ActivationSet:
    return ActivationSet(
        entries=tuple(Activation(f"Body{g}", GateLine(g, 1), 0.0) for g in gates)
    )


def render(personality: ActivationSet, design: ActivationSet, **kwargs) -> str:
    return render_bodygraph_svg(classify(personality, design), personality, design, **kwargs)


def test_every_gate_has_an_anchor():
    assert sorted(ANCHORS) == list(range(1, 65))
    for gate in range(1, 65):
        x, y = anchor_for_gate(gate)
        assert 0 <= x <= W
        assert 0 <= y <= H


def test_unknown_gate_has_no_anchor():
    assert anchor_for_gate(65) is None
    assert label_position(0) is None


def test_canvas():
    svg = render(EMPTY, EMPTY)
    assert svg.startswith("<svg ")
    assert f'viewBox="0 0 {W} {H}"' in svg
    assert svg.endswith("</svg>")


def test_no_activations_draws_only_open_state():
    svg = render(EMPTY, EMPTY)
    assert "#222222" not in svg
    assert "#D75442" not in svg
    assert CENTER_THEME["personality"] not in svg
    assert CENTER_THEME["design"] not in svg
    assert "stroke-dasharray" not in svg


def test_labels_for_all_gates_in_order():
    svg = render(EMPTY, EMPTY)
    assert svg.count('class="gate-label"') == 64
    numbers = [int(n) for n in re.findall(r">(\d+)</text>", svg)]
    assert numbers == list(range(1, 65))


def test_single_source_channel_colours():
    svg = render(acts(1, 8), EMPTY)
    assert "#222222" in svg
    assert "#D75442" not in svg
    assert CENTER_THEME["personality"] in svg


def test_design_channel_colours():
    svg = render(EMPTY, acts(1, 8))
    assert "#D75442" in svg
    assert "#222222" not in svg
    assert CENTER_THEME["design"] in svg


def test_gate_in_both_sets_is_dashed():
    svg = render(acts(1, 8), acts(1, 8))
    assert 'stroke-dasharray="8,8"' in svg
    assert 'stroke-dashoffset="8"' in svg


def test_integration_junctions_on_spine():
    j34, j10 = integration_junctions()
    p20, p57 = anchor_for_gate(20), anchor_for_gate(57)
    for junction, t in ((j34, J34_FRACTION), (j10, J10_FRACTION)):
        assert junction[0] == pytest.approx(p57[0] + t * (p20[0] - p57[0]))
        assert junction[1] == pytest.approx(p57[1] + t * (p20[1] - p57[1]))


def test_hub_gate_drawn_to_its_junction():
    svg = render(acts(34, 20), EMPTY)
    p34 = anchor_for_gate(34)
    j34, _ = integration_junctions()
    segment = (
        f'x1="{p34[0]:.2f}" y1="{p34[1]:.2f}" x2="{j34[0]:.2f}" y2="{j34[1]:.2f}"'
        f' stroke="#222222"'
    )
    assert segment in svg


def test_background_image_embedded(tmp_path):
    image = tmp_path / "bg.png"
    image.write_bytes(b"\x89PNG\r\n\x1a\nfake")
    svg = render(EMPTY, EMPTY, background_image=image, background_opacity=0.5)
    assert 'clipPath id="frameClip"' in svg
    assert "data:image/png;base64," in svg
    assert 'opacity="0.5"' in svg
    assert 'preserveAspectRatio="xMidYMid slice"' in svg


def test_missing_background_image_is_skipped(tmp_path):
    svg = render(EMPTY, EMPTY, background_image=tmp_path / "absent.png")
    assert "<image" not in svg


def test_layout_independent_of_activations():
    a = re.findall(r"<polygon points=\"([^\"]+)\"", render(EMPTY, EMPTY))
    b = re.findall(r"<polygon points=\"([^\"]+)\"", render(acts(1, 8, 34, 20), acts(57, 10)))
    assert a == b


def full_set(*gates: int) -> ActivationSet:
    bodies = PLANETS + NODES
    assert len(gates) == len(bodies)
    return ActivationSet(
        entries=tuple(Activation(b, GateLine(g, 1), 0.0) for b, g in zip(bodies, gates))
    )


def test_full_sets_without_channels_draw_no_overlays():
    personality = full_set(1, 2, 3, 4, 5, 6, 7, 9, 11, 12, 13, 16, 17)
    design = full_set(18, 19, 21, 23, 24, 25, 26, 27, 28, 29, 30, 32, 35)
    facts = classify(personality, design)
    assert facts.defined_channels == ()

    svg = render_bodygraph_svg(facts, personality, design)
    assert "#222222" not in svg
    assert "#D75442" not in svg
    assert "stroke-dasharray" not in svg
    for colour in (CENTER_THEME["personality"], CENTER_THEME["design"]):
        assert colour not in svg


def test_lone_hub_gate_not_drawn():
    svg = render(acts(34), acts(10))
    assert "#222222" in svg  # 10-34 is defined
    assert "#222222" not in render(acts(34), EMPTY)
    assert "#D75442" not in render(EMPTY, acts(57))
