from __future__ import annotations

import json

import pytest
from conftest import FakeEphemeris

from bodygraph import cli, compute
from bodygraph.crosses import NullCrossIndex


@pytest.fixture(autouse=True)
def fake_run(monkeypatch):
    def run(query, settings=None):
        return compute.run(
            query,
            ephemeris=FakeEphemeris(sun_rate=0.95),
            cross_index=NullCrossIndex(),
            settings=settings,
        )

    monkeypatch.setattr(cli, "run", run)


def test_prints_chart_json(capsys):
    code = cli.main(["--date=2000-04-10", "--time=08:15", "--tz=Europe/Dublin", "--name=Test"])
    assert code == 0
    doc = json.loads(capsys.readouterr().out)
    assert doc["name"] == "Test"
    assert len(doc["personalityPlanets"]) == 13
    assert "debug" not in doc


def test_debug_and_svg_out(tmp_path, capsys):
    out = tmp_path / "chart.svg"
    code = cli.main(["--date=2000-04-10", "--tz=UTC", "--debug", f"--svg-out={out}"])
    assert code == 0
    doc = json.loads(capsys.readouterr().out)
    assert doc["debug"]["tz"] == "UTC"
    assert out.read_text(encoding="utf-8") == doc["svg"]


def test_bad_input_exits_with_error(capsys):
    code = cli.main(["--date=2021-03-14", "--time=02:30", "--tz=America/New_York"])
    assert code == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert "error:" in captured.err
