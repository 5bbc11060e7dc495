from __future__ import annotations

import json

import pytest
from conftest import FakeEphemeris

from bodygraph import compute
from bodygraph.compute import GeocodingError, resolve_zone, run
from bodygraph.config import Settings
from bodygraph.crosses import NullCrossIndex
from bodygraph.epoch import InvalidTimeInput
from bodygraph.models import QueryInput

SETTINGS = Settings()


def make_chart(**query):
    query.setdefault("date", "2000-04-10")
    query.setdefault("zone", "Europe/Dublin")
    return run(
        QueryInput(**query),
        ephemeris=FakeEphemeris(sun_rate=0.95),
        cross_index=NullCrossIndex(),
        settings=SETTINGS,
    )


def test_run_produces_full_chart():
    chart = make_chart(time="08:15", name="Test")
    assert len(chart.personality.entries) == 13
    assert len(chart.design.entries) == 13
    assert chart.epochs.design_jd < chart.epochs.personality_jd
    assert chart.cross.endswith(")")
    assert chart.cross_description == chart.cross
    assert chart.svg.startswith("<svg ")
    assert chart.sun_birth == chart.personality.entries[0].longitude


def test_blank_time_defaults_to_noon():
    chart = make_chart(time="")
    assert chart.query.time == "12:00"
    assert chart.epochs.utc_dt.hour == 11  # Dublin summer time


def test_to_dict_shape():
    doc = make_chart(name="Test").to_dict()
    for key in (
        "type",
        "profile",
        "definition",
        "authority",
        "strategy",
        "notSelf",
        "cross",
        "crossDescription",
        "personalityPlanets",
        "designPlanets",
        "definedChannels",
        "definedCenters",
        "svg",
    ):
        assert key in doc
    assert "debug" not in doc
    assert doc["name"] == "Test"
    json.dumps(doc)


def test_to_dict_debug_block():
    doc = make_chart().to_dict(debug=True)
    assert set(doc["debug"]) == {"tz", "utc", "jdBirth", "jdDesign", "sunBirth", "sunDesign"}
    assert doc["debug"]["tz"] == "Europe/Dublin"


def test_invalid_time_propagates():
    with pytest.raises(InvalidTimeInput):
        make_chart(date="2021-03-14", time="02:30", zone="America/New_York")


def test_zone_defaults_to_utc():
    assert resolve_zone(QueryInput(date="2000-01-01"), SETTINGS) == "UTC"


def test_explicit_zone_skips_geocoding(monkeypatch):
    def boom(*args, **kwargs):
        raise AssertionError("geocoder called")

    monkeypatch.setattr(compute, "_geocode_nominatim", boom)
    query = QueryInput(date="2000-01-01", zone="Asia/Seoul", place="Busan")
    assert resolve_zone(query, SETTINGS) == "Asia/Seoul"


def test_place_geocoded_to_zone(monkeypatch):
    monkeypatch.setattr(
        compute, "_geocode_nominatim", lambda address, ua: (53.35, -6.26, "Dublin, Ireland")
    )
    query = QueryInput(date="2000-01-01", place="Dublin")
    assert resolve_zone(query, SETTINGS) == "Europe/Dublin"


def test_unknown_place(monkeypatch):
    monkeypatch.setattr(compute, "_geocode_nominatim", lambda address, ua: None)
    with pytest.raises(GeocodingError):
        resolve_zone(QueryInput(date="2000-01-01", place="Nowhere"), SETTINGS)
