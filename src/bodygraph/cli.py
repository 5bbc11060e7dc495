"""CLI entry point for chart generation.

    bodygraph --date=1990-06-15 --time=14:30 --tz=Europe/Dublin --svg-out=chart.svg
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterable

from dotenv import load_dotenv

load_dotenv()

from bodygraph.compute import GeocodingError, run  # noqa: E402
from bodygraph.config import Settings  # noqa: E402
from bodygraph.ephemeris import EphemerisError  # noqa: E402
from bodygraph.epoch import DesignEpochUnresolved, InvalidTimeInput  # noqa: E402
from bodygraph.models import QueryInput  # noqa: E402

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bodygraph", description="Compute a bodygraph chart and print it as JSON"
    )
    parser.add_argument("--date", required=True, help="Birth date, YYYY-MM-DD")
    parser.add_argument("--time", default="12:00", help="Local birth time, HH:MM")
    parser.add_argument("--place", default="", help="Birth place, geocoded when --tz is absent")
    parser.add_argument("--tz", default=None, help="IANA time zone, e.g. Europe/Dublin")
    parser.add_argument("--name", default="", help="Subject name echoed into the output")
    parser.add_argument("--debug", action="store_true", help="Include epochs and Sun longitudes")
    parser.add_argument("--svg-out", type=Path, default=None, help="Also write the diagram here")
    return parser


def main(argv: Iterable[str] | None = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)

    settings = Settings.from_env()
    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    query = QueryInput(
        date=args.date, time=args.time, zone=args.tz, place=args.place, name=args.name
    )
    try:
        chart = run(query, settings=settings)
    except (
        InvalidTimeInput,
        DesignEpochUnresolved,
        EphemerisError,
        GeocodingError,
    ) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    if args.svg_out is not None:
        args.svg_out.write_text(chart.svg, encoding="utf-8")
        log.info("wrote %s", args.svg_out)

    print(json.dumps(chart.to_dict(debug=args.debug), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
