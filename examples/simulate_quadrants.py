#!/usr/bin/env python3
"""
Run simulated quadrant tests against a synthetic visual field and print the
sampled points as a text map.

Usage:
    python examples/simulate_quadrants.py --visible-radius 9
    python examples/simulate_quadrants.py --quadrant 3 --config my_config.json --debug
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path

from perimetry import (
    PerimetryConfig,
    SessionSnapshot,
    format_summary,
    run_simulated_quadrant,
    setup_debug_logging,
    visual_field_responder,
)

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(levelname)s] %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


def load_config(path: Path | None) -> PerimetryConfig:
    """Load a PerimetryConfig from a JSON file, or return the defaults."""
    if path is None:
        return PerimetryConfig()
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    logger.info(f"Loaded configuration from {path}")
    return PerimetryConfig.from_dict(data)


def render_text_map(snapshot: SessionSnapshot, grid_size: int) -> str:
    """Render F for the focal point, + for seen and - for unseen probes."""
    rows = [["." for _ in range(grid_size)] for _ in range(grid_size)]
    for point in snapshot.tested_points:
        rows[int(point.y)][int(point.x)] = "+" if point.seen else "-"
    if snapshot.focal_point is not None:
        rows[int(snapshot.focal_point.y)][int(snapshot.focal_point.x)] = "F"
    return "\n".join(" ".join(row) for row in rows)


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Simulate perimetry quadrant tests against a synthetic visual field"
    )
    parser.add_argument(
        "--quadrant",
        type=int,
        choices=[1, 2, 3, 4],
        action="append",
        help="Quadrant test to run (repeatable, default: all four)"
    )
    parser.add_argument(
        "--visible-radius",
        type=float,
        default=9.0,
        help="Distance from the focal point within which probes are seen"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON file with PerimetryConfig overrides"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable engine debug logging"
    )
    args = parser.parse_args()

    if args.debug:
        setup_debug_logging()

    config = load_config(args.config)
    responder = visual_field_responder(args.visible_radius)

    for quadrant in args.quadrant or [1, 2, 3, 4]:
        snapshot = run_simulated_quadrant(quadrant, responder, config=config)
        print(f"\nQuadrant {quadrant} ({snapshot.completion_reason}): {format_summary(snapshot.summary)}")
        print(render_text_map(snapshot, config.grid_size))


if __name__ == "__main__":
    main()
