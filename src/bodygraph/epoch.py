"""Epoch resolution — birth (personality) and design instants as Julian Days."""

import logging
from datetime import datetime
from time import monotonic

from pytz import timezone, utc
from pytz.exceptions import (
    AmbiguousTimeError,
    NonExistentTimeError,
    UnknownTimeZoneError,
)

from bodygraph.ephemeris import Ephemeris
from bodygraph.models import Epochs
from bodygraph.wheel import ang_diff, norm_deg

log = logging.getLogger(__name__)

DESIGN_ARC_DEG = 88.0
SUN_MEAN_DEG_PER_DAY = 0.9856
TOLERANCE_DEG = 0.01
MAX_ITERATIONS = 12
MIN_STEP_DAYS = 1e-6
MAX_LOOKBACK_DAYS = 365.0

_UNIX_EPOCH_JD = 2440587.5
_TIME_FORMATS = ("%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S")


class InvalidTimeInput(ValueError):
    """Date/time/zone combination does not denote a real moment."""


class DesignEpochUnresolved(RuntimeError):
    """Design-epoch search drifted past its safety bound."""


def _parse_local(date: str, time: str) -> datetime:
    raw = f"{date.strip()} {time.strip()}"
    for fmt in _TIME_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    raise InvalidTimeInput(f"Malformed date/time: {raw!r}")


def to_utc(date: str, time: str, zone: str) -> datetime:
    """Interpret a local wall-clock date/time in an IANA zone and convert to UTC.

    Ambiguous times (clocks going back) resolve to the earlier, daylight-saving
    reading. Times skipped by a forward transition are rejected.

    Raises:
        InvalidTimeInput: Malformed digits, unknown zone, or non-existent local time.
    """
    dt = _parse_local(date, time)
    try:
        local_tz = timezone(zone)
    except UnknownTimeZoneError as e:
        raise InvalidTimeInput(f"Unknown time zone: {zone!r}") from e
    try:
        local_dt = local_tz.localize(dt, is_dst=None)
    except NonExistentTimeError as e:
        raise InvalidTimeInput(f"{dt:%Y-%m-%d %H:%M} does not exist in {zone}") from e
    except AmbiguousTimeError:
        local_dt = local_tz.localize(dt, is_dst=True)
    return local_dt.astimezone(utc)


def julian_day(utc_dt: datetime) -> float:
    """Fractional Julian Day (UT) of an aware datetime."""
    return _UNIX_EPOCH_JD + utc_dt.timestamp() / 86400.0


def to_julian_day(date: str, time: str, zone: str) -> float:
    return julian_day(to_utc(date, time, zone))


def find_design_jd(
    jd_birth: float,
    ephemeris: Ephemeris,
    arc_deg: float = DESIGN_ARC_DEG,
    deadline_s: float | None = None,
) -> float:
    """Find the instant the Sun stood ``arc_deg`` degrees behind its birth longitude.

    Damped, one-directional search: every step moves the guess earlier by
    ``|delta| / mean rate`` days, never later. Stops on convergence
    (|delta| < 0.01°), on a negligible step, or after 12 iterations.

    Args:
        jd_birth: Birth instant (JD, UT).
        ephemeris: Longitude source; only the Sun is queried.
        arc_deg: Solar arc between design and birth.
        deadline_s: Wall-clock budget for the whole search, checked after every
            ephemeris call. A single call is not interrupted; ``None`` leaves
            only the iteration and 365-day bounds.

    Returns:
        Design instant (JD, UT).

    Raises:
        DesignEpochUnresolved: The guess drifted more than 365 days before birth
            or the deadline passed.
    """
    started = monotonic()
    sun_birth = ephemeris.longitude(jd_birth, "Sun")
    target = norm_deg(sun_birth - arc_deg)

    jd = jd_birth - arc_deg / SUN_MEAN_DEG_PER_DAY
    for i in range(MAX_ITERATIONS):
        lon = ephemeris.longitude(jd, "Sun")
        delta = ang_diff(lon, target)
        log.debug("design search #%d: jd=%.6f sun=%.6f delta=%.6f", i, jd, lon, delta)

        if abs(delta) < TOLERANCE_DEG:
            return jd
        if deadline_s is not None and monotonic() - started > deadline_s:
            raise DesignEpochUnresolved(
                f"design search exceeded {deadline_s:g}s after {i + 1} iterations "
                f"(JD {jd_birth:.5f})"
            )

        step_days = abs(delta) / SUN_MEAN_DEG_PER_DAY
        jd -= step_days

        if step_days < MIN_STEP_DAYS:
            return jd
        if jd <= jd_birth - MAX_LOOKBACK_DAYS:
            raise DesignEpochUnresolved(
                f"design search drifted {jd_birth - jd:.1f} days before birth "
                f"(JD {jd_birth:.5f}, target {target:.4f}°)"
            )

    log.warning(
        "design search not converged after %d iterations (JD %.5f)",
        MAX_ITERATIONS,
        jd_birth,
    )
    return jd


def resolve_epochs(
    date: str,
    time: str,
    zone: str,
    ephemeris: Ephemeris,
    deadline_s: float | None = None,
) -> Epochs:
    """Resolve the personality and design instants for a local birth time."""
    utc_dt = to_utc(date, time, zone)
    jd_birth = julian_day(utc_dt)
    jd_design = find_design_jd(jd_birth, ephemeris, deadline_s=deadline_s)
    return Epochs(
        personality_jd=jd_birth, design_jd=jd_design, utc_dt=utc_dt, zone=zone
    )
