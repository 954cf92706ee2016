import sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

import argparse
import logging

from stitchgrid.config import (
    ANALYSIS_METHODS, DEFAULT_GRID_HEIGHT, DEFAULT_GRID_WIDTH, DEFAULT_MAX_COLORS,
    DEFAULT_METHOD, AnalysisConfig, StitchGridError
)
from stitchgrid.io_utils import load_image
from stitchgrid.pipeline.compose import build_stitch_guide
from stitchgrid.preprocessing.resize import suggest_grid_size, sync_dimensions


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Build a reduced-palette stitching guide from an image.")
    parser.add_argument("image", type=str, help="Input image")
    parser.add_argument("--grid-width", type=int, default=None, help=f"Grid columns (default {DEFAULT_GRID_WIDTH})")
    parser.add_argument("--grid-height", type=int, default=None, help=f"Grid rows (default {DEFAULT_GRID_HEIGHT})")
    parser.add_argument("--square", action="store_true",
                        help="Keep the grid square: the side that was given sets the other (width wins if both are)")
    parser.add_argument("--auto-size", action="store_true",
                        help="Derive the grid size from the image aspect ratio (overrides --grid-*)")
    parser.add_argument("--colors", type=int, default=DEFAULT_MAX_COLORS, help="Maximum palette size")
    parser.add_argument("--method", type=str, default=DEFAULT_METHOD, choices=list(ANALYSIS_METHODS))
    parser.add_argument("--no-detect", action="store_true", help="Skip existing-grid detection")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--batches", type=int, default=10, help="How many color batches to list")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        img = load_image(args.image)
    except FileNotFoundError as e:
        print(f"✗ {e}")
        return 1

    grid_w = DEFAULT_GRID_WIDTH if args.grid_width is None else args.grid_width
    grid_h = DEFAULT_GRID_HEIGHT if args.grid_height is None else args.grid_height
    if args.auto_size:
        grid_w, grid_h = suggest_grid_size(img.shape[1], img.shape[0])
    elif args.square:
        if args.grid_width is not None:
            changed = "width"
        elif args.grid_height is not None:
            changed = "height"
        else:
            changed = "both"
        grid_w, grid_h = sync_dimensions(grid_w, grid_h, changed, keep_aspect=True)

    config = AnalysisConfig(
        grid_width=grid_w,
        grid_height=grid_h,
        max_colors=args.colors,
        method=args.method,
        auto_detect_grid=not args.no_detect,
        seed=args.seed,
    )

    try:
        result, guide = build_stitch_guide(img, config)
    except StitchGridError as e:
        # nothing is cached between runs, so a failed analysis can simply be re-run
        print(f"✗ Analysis failed: {e}")
        return 1

    print(f"✓ {Path(args.image).name}")
    for line in result.summary():
        print(f"  {line}")

    counts = result.grid.color_counts()
    print("Palette:")
    for entry in result.palette:
        print(f"  [{entry.index:2d}] {entry.hex}  rgb{entry.rgb}  x{counts[entry.index]}")

    fid = result.fidelity()
    ssim_txt = "n/a" if fid["ssim"] is None else f"{fid['ssim']:.3f}"
    print(f"Fidelity: MSE {fid['mse']:.1f}, SSIM {ssim_txt}")

    print(f"Steps: {guide.total_steps} in {len(guide.batches)} color batches")
    for batch in guide.batches[: max(args.batches, 0)]:
        print(f"  steps {batch.start_index + 1}-{batch.end_index + 1}: {batch.color.hex} x{batch.count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
