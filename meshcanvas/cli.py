"""Headless renderer: JSON point list in, PNG out."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from meshcanvas import defaults
from meshcanvas.app import actions
from meshcanvas.app.session import CanvasSession
from meshcanvas.serialization import PointsLoadError, load_points

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="meshcanvas-render",
        description="Render a mesh gradient point list to PNG.",
    )
    parser.add_argument("points", help="JSON point list")
    parser.add_argument("output", help="Output PNG path")
    parser.add_argument("--width", type=int, default=defaults.DEFAULT_CANVAS_SIZE[0])
    parser.add_argument("--height", type=int, default=defaults.DEFAULT_CANVAS_SIZE[1])
    parser.add_argument(
        "--background",
        default=defaults.DEFAULT_BACKGROUND_COLOR,
        help=f"Background hex color (default: {defaults.DEFAULT_BACKGROUND_COLOR})",
    )
    parser.add_argument("--no-grid", action="store_true", help="Omit grid lines")
    parser.add_argument("--no-crosshair", action="store_true", help="Omit the center crosshair")
    parser.add_argument(
        "--image",
        action="append",
        default=[],
        metavar="REF=PATH",
        help="Resolve an image reference used by points (repeatable)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        points = load_points(args.points)
    except (FileNotFoundError, PointsLoadError) as e:
        logger.error("%s", e)
        return 1

    session = CanvasSession()
    try:
        state = session.state
        actions.set_canvas_size(state, args.width, args.height)
        if not actions.set_background_color(state, args.background):
            logger.warning("Invalid --background %r, keeping %s", args.background, state.display.background_color)
        actions.set_show_grid(state, not args.no_grid)
        state.display.show_crosshair = not args.no_crosshair
        session.load_points(points)

        for item in args.image:
            ref, sep, path = item.partition("=")
            if not sep:
                logger.error("--image expects REF=PATH, got %r", item)
                return 1
            session.images.request(ref, Path(path))
        session.images.wait()
        for point in points:
            if point.image is not None and session.images.get(point.image) is None:
                logger.warning("Image %r for %s unavailable, drawing gradient only", point.image, point.id)

        session.export_png(args.output)
    finally:
        session.close()

    logger.info("Rendered %d points to %s", len(points), args.output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
