"""
funcarrows Main Entry Point

Loads a scene, runs the propagators against it and prints the result.

Usage:
    python -m funcarrows --file scene.funcarrows
    python -m funcarrows --file scene.funcarrows --click 50 50
    python -m funcarrows --file scene.funcarrows --ticks 60
    python -m funcarrows --file scene.funcarrows --set shape:a val 3 --save out
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Configure logging before importing funcarrows modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stderr),
    ],
)

logger = logging.getLogger("funcarrows")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="funcarrows",
        description="funcarrows - run arrow programs over a canvas scene",
    )
    parser.add_argument(
        "--file",
        "-f",
        type=Path,
        help="Scene file to load",
    )
    parser.add_argument(
        "--set",
        nargs=3,
        action="append",
        default=[],
        metavar=("ID", "KEY", "VALUE"),
        help="Set a shape field or prop (VALUE is parsed as JSON when possible); repeatable",
    )
    parser.add_argument(
        "--click",
        nargs=2,
        type=float,
        action="append",
        default=[],
        metavar=("X", "Y"),
        help="Simulate a pointer-down at page coordinates; repeatable",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=0,
        help="Number of frames to run",
    )
    parser.add_argument(
        "--save",
        type=Path,
        help="Save the resulting scene to this path",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging level."""
    level = logging.DEBUG if debug else logging.INFO
    logging.getLogger("funcarrows").setLevel(level)

    if debug:
        for name in ["funcarrows.propagators", "funcarrows.program", "funcarrows.document"]:
            logging.getLogger(name).setLevel(logging.DEBUG)


def parse_value(text: str) -> Any:
    """Interpret a command-line value as JSON, falling back to the raw string."""
    try:
        return json.loads(text)
    except ValueError:
        return text


def build_set_patch(shape_id: str, key: str, value: Any):
    from funcarrows.document.model import ShapePatch

    if key in ("x", "y", "rotation"):
        return ShapePatch(id=shape_id, **{key: value})
    return ShapePatch(id=shape_id, props={key: value})


def scene_report(document) -> Dict[str, Any]:
    """Shapes and connector markers as a JSON-ready dict."""
    markers = {}
    for shape in document.get_current_page_shapes():
        marker = document.get_connector_marker(shape.id)
        if marker is not None:
            markers[shape.id] = marker.value
    return {
        "shapes": [shape.to_dict() for shape in document.get_current_page_shapes()],
        "markers": markers,
    }


def run(args: argparse.Namespace) -> int:
    """Execute the requested actions and print the resulting scene."""
    from funcarrows.core.frame_clock import FrameClock
    from funcarrows.document.document import Document
    from funcarrows.document.host import HostError
    from funcarrows.propagators.registry import register_propagators
    from funcarrows.serialization.schema import SchemaValidationError
    from funcarrows.serialization.serializer import get_serializer

    serializer = get_serializer()
    document = Document()

    if args.file:
        try:
            serializer.apply_to_document(serializer.load(args.file), document)
        except (FileNotFoundError, SchemaValidationError) as e:
            logger.error(f"Could not load scene: {e}")
            return 1

    engine = register_propagators(document)

    try:
        for shape_id, key, value in args.set:
            document.update_shape(build_set_patch(shape_id, key, parse_value(value)))
    except HostError as e:
        logger.error(f"Could not apply --set: {e}")
        engine.dispose()
        return 1

    for x, y in args.click:
        document.click(x, y)

    if args.ticks > 0:
        clock = FrameClock(document)
        asyncio.run(clock.run_frames(args.ticks))
        logger.info(f"Ran {clock.frames} frames")

    engine.dispose()

    print(json.dumps(scene_report(document), indent=2))

    if args.save:
        serializer.save(args.save, document)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.debug)

    try:
        return run(args)
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
