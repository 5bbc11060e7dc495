from __future__ import annotations

from datetime import datetime, timezone

import pytest
from conftest import J2000, FakeEphemeris

from bodygraph import epoch
from bodygraph.epoch import (
    DESIGN_ARC_DEG,
    TOLERANCE_DEG,
    DesignEpochUnresolved,
    InvalidTimeInput,
    find_design_jd,
    julian_day,
    resolve_epochs,
    to_julian_day,
    to_utc,
)
from bodygraph.wheel import ang_diff, norm_deg


def test_j2000_noon():
    assert to_julian_day("2000-01-01", "12:00", "UTC") == pytest.approx(J2000, abs=1e-9)


def test_julian_day_of_unix_epoch():
    assert julian_day(datetime(1970, 1, 1, tzinfo=timezone.utc)) == 2440587.5


def test_zone_offset_applied():
    utc_dt = to_utc("1990-06-15", "14:30", "Europe/Dublin")
    assert (utc_dt.hour, utc_dt.minute) == (13, 30)


def test_seconds_accepted():
    utc_dt = to_utc("1990-06-15", "14:30:15", "UTC")
    assert utc_dt.second == 15


def test_nonexistent_local_time_rejected():
    with pytest.raises(InvalidTimeInput):
        to_utc("2021-03-14", "02:30", "America/New_York")


def test_ambiguous_local_time_takes_earlier_instant():
    utc_dt = to_utc("2021-11-07", "01:30", "America/New_York")
    assert (utc_dt.hour, utc_dt.minute) == (5, 30)


@pytest.mark.parametrize(
    "date, time",
    [("1990-13-01", "12:00"), ("1990-06-15", "25:00"), ("15/06/1990", "12:00"), ("", "")],
)
def test_malformed_input_rejected(date, time):
    with pytest.raises(InvalidTimeInput):
        to_utc(date, time, "UTC")


def test_unknown_zone_rejected():
    with pytest.raises(InvalidTimeInput):
        to_utc("1990-06-15", "12:00", "Mars/Olympus_Mons")


def test_converges_immediately_at_mean_rate():
    eph = FakeEphemeris()
    jd_birth = J2000 + 1000.0
    jd = find_design_jd(jd_birth, eph)
    assert jd == pytest.approx(jd_birth - DESIGN_ARC_DEG / 0.9856)
    assert eph.calls["Sun"] == 2
    assert set(eph.calls) == {"Sun"}


def test_converges_when_sun_slower_than_mean():
    eph = FakeEphemeris(sun_rate=0.95)
    jd_birth = J2000 + 1000.0
    jd = find_design_jd(jd_birth, eph)
    target = norm_deg(eph.longitude(jd_birth, "Sun") - DESIGN_ARC_DEG)
    assert abs(ang_diff(eph.longitude(jd, "Sun"), target)) < TOLERANCE_DEG
    assert jd < jd_birth


def test_diverging_search_raises():
    eph = FakeEphemeris(sun_rate=1.02)
    with pytest.raises(DesignEpochUnresolved):
        find_design_jd(J2000 + 1000.0, eph)


def test_resolve_epochs_is_repeatable():
    first = resolve_epochs("2000-04-10", "08:15", "Europe/Dublin", FakeEphemeris(sun_rate=0.95))
    second = resolve_epochs("2000-04-10", "08:15", "Europe/Dublin", FakeEphemeris(sun_rate=0.95))
    assert first == second
    assert first.design_jd < first.personality_jd
    assert first.zone == "Europe/Dublin"


def test_search_deadline(monkeypatch):
    ticks = iter(range(0, 1000, 10))
    monkeypatch.setattr(epoch, "monotonic", lambda: next(ticks))
    with pytest.raises(DesignEpochUnresolved, match="exceeded"):
        find_design_jd(J2000 + 1000.0, FakeEphemeris(sun_rate=0.95), deadline_s=5.0)


def test_deadline_not_checked_once_converged(monkeypatch):
    ticks = iter(range(0, 1000, 10))
    monkeypatch.setattr(epoch, "monotonic", lambda: next(ticks))
    jd = find_design_jd(J2000 + 1000.0, FakeEphemeris(), deadline_s=5.0)
    assert jd < J2000 + 1000.0
