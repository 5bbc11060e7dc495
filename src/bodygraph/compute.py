"""Chart pipeline — place/zone resolution, epochs, activations, classification, diagram."""

import logging
from dataclasses import replace

import httpx
from timezonefinder import TimezoneFinder

from bodygraph.activations import build_activations
from bodygraph.config import Settings
from bodygraph.crosses import (
    CrossIndex,
    CrossLookup,
    NullCrossIndex,
    cross_description,
    cross_gates,
    cross_label,
)
from bodygraph.definition import classify
from bodygraph.ephemeris import Ephemeris, SkyfieldEphemeris
from bodygraph.epoch import resolve_epochs
from bodygraph.models import ActivationSet, Chart, QueryInput
from bodygraph.renderers.svg_bodygraph import render_bodygraph_svg

log = logging.getLogger(__name__)

DEFAULT_TIME = "12:00"
DEFAULT_ZONE = "UTC"

_tf: TimezoneFinder | None = None


class GeocodingError(Exception):
    """Geocoder call failure."""


def _timezone_finder() -> TimezoneFinder:
    global _tf
    if _tf is None:
        _tf = TimezoneFinder()
    return _tf


def _geocode_nominatim(address: str, user_agent: str) -> tuple[float, float, str] | None:
    """Nominatim (OpenStreetMap) geocoder. Returns (lat, lng, display_name) or None."""
    params = {"q": address, "format": "json", "limit": 1}
    headers = {"User-Agent": user_agent}
    try:
        resp = httpx.get(
            "https://nominatim.openstreetmap.org/search",
            params=params,
            headers=headers,
            timeout=10,
        )
        resp.raise_for_status()
    except httpx.HTTPError as e:
        raise GeocodingError(f"Nominatim request failed: {e}") from e
    results = resp.json()
    if not results:
        return None
    r = results[0]
    return float(r["lat"]), float(r["lon"]), r["display_name"]


def zone_for_place(place: str, settings: Settings) -> str:
    """Geocode a free-form place name and return its IANA zone.

    Raises:
        GeocodingError: On API error, unknown place, or a point with no zone.
    """
    result = _geocode_nominatim(place, settings.user_agent)
    if result is None:
        raise GeocodingError(f"Address not found: {place}")
    lat, lng, display = result
    tz_str = _timezone_finder().timezone_at(lat=lat, lng=lng)
    if tz_str is None:
        raise GeocodingError(f"Timezone not found: lat={lat}, lng={lng}")
    log.debug("resolved %r → %s (%s)", place, tz_str, display)
    return tz_str


def resolve_zone(query: QueryInput, settings: Settings) -> str:
    """Explicit zone wins; otherwise the place is geocoded; otherwise UTC."""
    if query.zone:
        return query.zone
    if query.place.strip():
        return zone_for_place(query.place.strip(), settings)
    return DEFAULT_ZONE


def _sun_longitude(activations: ActivationSet) -> float:
    return next(e.longitude for e in activations.entries if e.body == "Sun")


def load_cross_index(settings: Settings) -> CrossLookup:
    if settings.cross_csv is None:
        return NullCrossIndex()
    return CrossIndex.from_csv(settings.cross_csv)


def run(
    query: QueryInput,
    *,
    ephemeris: Ephemeris | None = None,
    cross_index: CrossLookup | None = None,
    settings: Settings | None = None,
) -> Chart:
    """Compute a full chart for one birth moment.

    Args:
        query: Birth date/time and where to interpret it.
        ephemeris: Longitude source. Defaults to the skyfield DE421 backend.
        cross_index: Cross-description table. Defaults to ``settings.cross_csv``.
        settings: Runtime configuration. Defaults to ``Settings.from_env()``.

    Returns:
        Chart with activations, classification, cross and SVG diagram.

    Raises:
        InvalidTimeInput: The date/time/zone does not denote a real moment.
        DesignEpochUnresolved: The design-epoch search diverged.
        EphemerisError: The ephemeris could not produce a longitude.
        GeocodingError: The place could not be resolved to a zone.
    """
    settings = settings or Settings.from_env()
    ephemeris = ephemeris or SkyfieldEphemeris(settings)
    if cross_index is None:
        cross_index = load_cross_index(settings)

    time = query.time.strip() or DEFAULT_TIME
    zone = resolve_zone(query, settings)
    epochs = resolve_epochs(
        query.date, time, zone, ephemeris, deadline_s=settings.search_timeout_s
    )
    log.debug(
        "epochs for %s %s %s: birth JD %.5f, design JD %.5f",
        query.date,
        time,
        zone,
        epochs.personality_jd,
        epochs.design_jd,
    )

    personality, design = build_activations(epochs.personality_jd, epochs.design_jd, ephemeris)
    facts = classify(personality, design)

    label = cross_label(facts.angle, personality, design)
    description = cross_description(
        cross_index, facts.angle, cross_gates(personality, design), fallback=label
    )

    svg = render_bodygraph_svg(
        facts,
        personality,
        design,
        background_image=settings.background_image,
        background_opacity=settings.background_opacity,
    )

    return Chart(
        query=replace(query, time=time, zone=zone),
        epochs=epochs,
        facts=facts,
        personality=personality,
        design=design,
        cross=label,
        cross_description=description,
        svg=svg,
        sun_birth=_sun_longitude(personality),
        sun_design=_sun_longitude(design),
    )
