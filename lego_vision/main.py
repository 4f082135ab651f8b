"""
LEGO Board Vision – Main Entry Point
====================================

Commands:

  1. **Analyze**  – Locate the baseplate in an image, classify every cell
                    and print the connected colour regions.
  2. **Palette**  – List the reference colours.

Usage examples
--------------

**Offline, with a saved polygon**::

    python lego_vision.py analyze \\
        --image board.jpg \\
        --polygon board_polygon.json \\
        --color-map colorMap.json \\
        --visualize

**Against the segmentation service**::

    python lego_vision.py analyze \\
        --image board.jpg \\
        --endpoint http://localhost:3000/api/segment \\
        --json

**Palette**::

    python lego_vision.py palette
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

import cv2

log = logging.getLogger("lego_vision")


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


# ═══════════════════════════════════════════════════════════════════════
# Analyze
# ═══════════════════════════════════════════════════════════════════════

def cmd_analyze(args: argparse.Namespace) -> None:
    """Run the board analysis pipeline on an image."""
    from lego_vision.inference.pipeline import LegoBoardAnalyzer, draw_grid
    from lego_vision.models.color_map import load_color_map
    from lego_vision.models.segmenter import RemoteSegmenter, StaticSegmenter

    # Load image
    image = cv2.imread(args.image)
    if image is None:
        log.error("Could not read image: %s", args.image)
        sys.exit(1)

    # Segmenter
    if args.polygon:
        try:
            segmenter = StaticSegmenter.from_file(args.polygon)
        except (OSError, ValueError) as e:
            log.error("Could not read polygon file %s: %s", args.polygon, e)
            sys.exit(1)
    else:
        segmenter = RemoteSegmenter(
            endpoint=args.endpoint,
            api_key=args.api_key,
            timeout=args.timeout,
        )

    # Build pipeline
    analyzer = LegoBoardAnalyzer(
        segmenter=segmenter,
        color_map=load_color_map(args.color_map),
        inset=args.inset,
        blur_kernel=(args.blur, args.blur) if args.blur > 1 else None,
    )

    # Run
    try:
        result = analyzer.analyze(image)
    finally:
        if isinstance(segmenter, RemoteSegmenter):
            segmenter.close()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print("\n" + "=" * 60)
        print("  LEGO BOARD ANALYSIS")
        print("=" * 60)
        if not result.ok:
            print(f"  No board found  : {result.failure}")
        else:
            corners = ", ".join(f"({p.x:.0f}, {p.y:.0f})" for p in result.quad)
            print(f"  Board corners  : {corners}")
            print(f"  Cells          : {len(result.cells)}")
            print(f"  Regions        : {len(result.groups)}")
            print("-" * 60)
            for i, g in enumerate(result.groups):
                print(f"  [{i:3d}] {g.color_name:<20s} {g.component:<20s} "
                      f"{len(g.cells):4d} cells")
        print("=" * 60 + "\n")

    # Visualise
    if args.visualize or args.save_debug:
        analyzer.visualize(
            image, result,
            show=args.visualize,
            save_path=args.save_debug or None,
            draw_cells=args.draw_cells,
        )

    if args.save_grid:
        if result.rectified is None:
            log.warning("No rectified board to save (%s)", result.failure)
        else:
            cv2.imwrite(args.save_grid, draw_grid(result.rectified))
            log.info("Saved rectified grid to %s", args.save_grid)


# ═══════════════════════════════════════════════════════════════════════
# Palette
# ═══════════════════════════════════════════════════════════════════════

def cmd_palette(args: argparse.Namespace) -> None:
    """Print the reference palette."""
    from lego_vision.inference.color_match import rgb_to_lab
    from lego_vision.models.palette import LEGO_COLORS

    for c in LEGO_COLORS:
        l, a, b = rgb_to_lab(c.rgb)
        print(f"  {c.name:<20s} rgb={c.rgb!s:<16s} lab=({l:6.2f}, {a:7.2f}, {b:7.2f})")


# ═══════════════════════════════════════════════════════════════════════
# CLI
# ═══════════════════════════════════════════════════════════════════════

def _odd_kernel(value: str) -> int:
    k = int(value)
    if k < 1 or k % 2 == 0:
        raise argparse.ArgumentTypeError("blur kernel must be a positive odd number")
    return k


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lego_vision",
        description="LEGO baseplate colour-region recognition.",
    )
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", help="Available commands")

    # ── analyze ──
    p_an = sub.add_parser("analyze", help="Analyze a board image")
    p_an.add_argument("--image", required=True,
                      help="Path to the captured frame")
    src = p_an.add_mutually_exclusive_group()
    src.add_argument("--polygon", default=None,
                     help="JSON file with the board polygon (skips the service)")
    src.add_argument("--endpoint", default=None,
                     help="Segmentation service URL (default: $LEGO_SEGMENT_URL)")
    p_an.add_argument("--api-key", default=None,
                      help="Segmentation API key (default: $LEGO_SEGMENT_API_KEY)")
    p_an.add_argument("--timeout", type=float, default=15.0)
    p_an.add_argument("--color-map", default=None,
                      help="Colour → component JSON (file path or URL)")
    p_an.add_argument("--inset", type=int, default=2,
                      help="Pixels trimmed from each cell before sampling")
    p_an.add_argument("--blur", type=_odd_kernel, default=3,
                      help="Gaussian kernel size (odd; 1 disables)")
    p_an.add_argument("--json", action="store_true",
                      help="Print the full result as JSON")
    p_an.add_argument("--visualize", action="store_true",
                      help="Show debug visualisation")
    p_an.add_argument("--draw-cells", action="store_true",
                      help="Outline every cell in the visualisation")
    p_an.add_argument("--save-debug", default=None,
                      help="Save debug image to path")
    p_an.add_argument("--save-grid", default=None,
                      help="Save the rectified board with the cell grid to path")

    # ── palette ──
    sub.add_parser("palette", help="List reference colours")

    return parser


def main(argv=None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.verbose)

    dispatch = {
        "analyze": cmd_analyze,
        "palette": cmd_palette,
    }

    dispatch[args.command](args)


if __name__ == "__main__":
    main()
