"""Ephemeris collaborator — ecliptic longitudes of bodies at a Julian Day (UT).

The engine depends only on the ``Ephemeris`` protocol. ``SkyfieldEphemeris``
is the default implementation, backed by skyfield and the JPL DE421 kernel.
"""

import logging
import math
from typing import Any, Protocol

from skyfield.api import Loader
from skyfield.framelib import ecliptic_frame

from bodygraph.config import Settings

log = logging.getLogger(__name__)

NORTH_NODE = "North Node"

# DE421 coverage: 1899-07-29 .. 2053-10-09
DE421_JD_MIN = 2414992.5
DE421_JD_MAX = 2469807.5

_PLANET_KEYS: dict[str, str] = {
    "Sun": "sun",
    "Moon": "moon",
    "Mercury": "mercury",
    "Venus": "venus",
    "Mars": "mars",
    "Jupiter": "jupiter barycenter",
    "Saturn": "saturn barycenter",
    "Uranus": "uranus barycenter",
    "Neptune": "neptune barycenter",
    "Pluto": "pluto barycenter",
}

# Half-width (days) of the central difference used for the Moon's velocity
_NODE_STEP_DAYS = 0.05


class EphemerisError(RuntimeError):
    """Ephemeris computation failure."""

    def __init__(self, stage: str, message: str):
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message


class Ephemeris(Protocol):
    def longitude(self, jd_ut: float, body: str) -> float:
        """Geocentric ecliptic longitude of ``body`` in degrees, [0, 360)."""
        ...


def _cross(
    a: tuple[float, float, float], b: tuple[float, float, float]
) -> tuple[float, float, float]:
    ax, ay, az = a
    bx, by, bz = b
    return (ay * bz - az * by, az * bx - ax * bz, ax * by - ay * bx)


class SkyfieldEphemeris:
    """Apparent geocentric longitudes in the ecliptic-of-date frame.

    Lunar node is the true (osculating) ascending node, derived from the
    Moon's angular-momentum vector. The kernel is loaded on first use so
    constructing the object never touches the network.
    """

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or Settings()
        self._kernel: Any = None
        self._ts: Any = None

    def _load(self) -> tuple[Any, Any]:
        if self._kernel is None:
            loader = Loader(str(self._settings.resources_dir))
            try:
                self._kernel = loader(self._settings.ephemeris_file)
                self._ts = loader.timescale()
            except Exception as e:
                raise EphemerisError("kernel", f"cannot load {self._settings.ephemeris_file}: {e}") from e
            log.debug("loaded ephemeris kernel %s", self._settings.ephemeris_file)
        return self._kernel, self._ts

    def longitude(self, jd_ut: float, body: str) -> float:
        if body != NORTH_NODE and body not in _PLANET_KEYS:
            raise EphemerisError("body", f"unsupported body {body!r}")
        if not (DE421_JD_MIN <= jd_ut <= DE421_JD_MAX):
            raise EphemerisError(
                "range", f"JD {jd_ut:.5f} outside {DE421_JD_MIN}..{DE421_JD_MAX}"
            )

        kernel, ts = self._load()
        try:
            if body == NORTH_NODE:
                lon = self._true_node(kernel, ts, jd_ut)
            else:
                t = ts.ut1_jd(jd_ut)
                apparent = kernel["earth"].at(t).observe(kernel[_PLANET_KEYS[body]]).apparent()
                _, ecl_lon, _ = apparent.frame_latlon(ecliptic_frame)
                lon = float(ecl_lon.degrees)
        except EphemerisError:
            raise
        except Exception as e:
            raise EphemerisError("compute", f"{body} at JD {jd_ut:.5f}: {e}") from e

        if not math.isfinite(lon):
            raise EphemerisError("compute", f"{body} at JD {jd_ut:.5f}: non-finite longitude")
        return lon % 360.0

    def _true_node(self, kernel: Any, ts: Any, jd_ut: float) -> float:
        earth = kernel["earth"]
        moon = kernel["moon"]

        def position(jd: float) -> tuple[float, float, float]:
            t = ts.ut1_jd(jd)
            x, y, z = earth.at(t).observe(moon).apparent().frame_xyz(ecliptic_frame).au
            return float(x), float(y), float(z)

        r0 = position(jd_ut)
        rp = position(jd_ut + _NODE_STEP_DAYS)
        rm = position(jd_ut - _NODE_STEP_DAYS)
        v = tuple((rp[i] - rm[i]) / (2.0 * _NODE_STEP_DAYS) for i in range(3))

        h = _cross(r0, v)  # type: ignore[arg-type]
        # Ecliptic north is +z in this frame; the ascending node lies along z × h
        nx, ny, _ = _cross((0.0, 0.0, 1.0), h)
        if math.hypot(nx, ny) < 1e-18:
            raise EphemerisError("node", f"degenerate lunar orbit at JD {jd_ut:.5f}")
        lon = math.degrees(math.atan2(ny, nx)) % 360.0
        log.debug("true node at JD %.5f: %.6f", jd_ut, lon)
        return lon
