"""Environment-driven settings."""

import os
from dataclasses import dataclass
from pathlib import Path

_ROOT = Path(__file__).parent.parent.parent


def _optional_path(name: str) -> Path | None:
    raw = os.environ.get(name, "").strip()
    return Path(raw).expanduser() if raw else None


def _optional_seconds(name: str, default: float | None) -> float | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    seconds = float(raw)
    return seconds if seconds > 0 else None


@dataclass(frozen=True)
class Settings:
    """Runtime configuration. Build with ``Settings.from_env()``."""

    resources_dir: Path = _ROOT / "resources"  # skyfield kernel cache
    ephemeris_file: str = "de421.bsp"
    cross_csv: Path | None = None  # angle,g1,g2,g3,g4,description
    background_image: Path | None = None  # PNG embedded behind the diagram
    background_opacity: float = 0.8
    log_level: str = "WARNING"
    user_agent: str = "Bodygraph/1.0"
    search_timeout_s: float | None = 30.0  # design-epoch search budget; None disables

    @classmethod
    def from_env(cls) -> "Settings":
        """Read ``BODYGRAPH_*`` variables, falling back to the field defaults."""
        defaults = cls()
        return cls(
            resources_dir=_optional_path("BODYGRAPH_RESOURCES")
            or defaults.resources_dir,
            ephemeris_file=os.environ.get(
                "BODYGRAPH_EPHEMERIS", defaults.ephemeris_file
            ),
            cross_csv=_optional_path("BODYGRAPH_CROSS_CSV"),
            background_image=_optional_path("BODYGRAPH_BACKGROUND"),
            background_opacity=float(
                os.environ.get(
                    "BODYGRAPH_BACKGROUND_OPACITY", defaults.background_opacity
                )
            ),
            log_level=os.environ.get("BODYGRAPH_LOG_LEVEL", defaults.log_level).upper(),
            user_agent=os.environ.get("BODYGRAPH_USER_AGENT", defaults.user_agent),
            search_timeout_s=_optional_seconds(
                "BODYGRAPH_SEARCH_TIMEOUT", defaults.search_timeout_s
            ),
        )
