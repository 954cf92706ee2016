# stitchgrid/pattern/serpentine.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from stitchgrid.quantize.palette import PaletteEntry, QuantizedGrid


@dataclass(frozen=True)
class PatternStep:
    x: int
    y: int
    color: PaletteEntry
    step: int  # 1-based visit number


@dataclass(frozen=True)
class ColorBatch:
    """Maximal run of consecutive steps sharing one RGB value.
    start_index/end_index are 0-based positions in the step sequence (inclusive)."""
    color: PaletteEntry
    start_index: int
    end_index: int
    count: int
    steps: Tuple[PatternStep, ...]


def serpentine_order(width: int, height: int) -> Iterator[Tuple[int, int]]:
    """
    Yield (x, y) starting at the bottom row and moving up. The bottom row
    runs right-to-left, the next left-to-right, alternating after that.
    """
    for y in range(height - 1, -1, -1):
        row_from_bottom = height - 1 - y
        if row_from_bottom % 2 == 0:
            xs = range(width - 1, -1, -1)
        else:
            xs = range(width)
        for x in xs:
            yield x, y


def generate_pattern(grid: QuantizedGrid) -> List[PatternStep]:
    return [
        PatternStep(x=x, y=y, color=grid[y, x], step=n)
        for n, (x, y) in enumerate(serpentine_order(grid.width, grid.height), start=1)
    ]


def batch_colors(steps: Sequence[PatternStep]) -> List[ColorBatch]:
    """Split the step sequence into runs; a new run starts whenever the RGB changes."""
    batches: List[ColorBatch] = []
    start = 0
    for i in range(1, len(steps) + 1):
        if i == len(steps) or steps[i].color.rgb != steps[start].color.rgb:
            run = tuple(steps[start:i])
            batches.append(ColorBatch(
                color=steps[start].color,
                start_index=start,
                end_index=i - 1,
                count=len(run),
                steps=run,
            ))
            start = i
    return batches
