# stitchgrid/pattern/guide.py
from __future__ import annotations
from bisect import bisect_right
from dataclasses import dataclass, field
from enum import Enum
from typing import List

from stitchgrid.pattern.serpentine import ColorBatch, PatternStep, batch_colors, generate_pattern
from stitchgrid.quantize.palette import QuantizedGrid


class HintKind(Enum):
    """What happens after the current step."""

    SAME_COLOR = "same_color"      # more steps of this color follow
    COLOR_CHANGE = "color_change"  # the next step uses another color
    FINAL = "final"                # this is the last step


@dataclass(frozen=True)
class StepHint:
    kind: HintKind
    remaining: int  # identical-color steps still ahead of the current one


@dataclass
class StitchGuide:
    """Traversal steps of a quantized grid plus their color batches.
    Step indices passed to the query methods are 0-based."""

    steps: List[PatternStep]
    batches: List[ColorBatch]
    _starts: List[int] = field(init=False, repr=False)

    def __post_init__(self):
        self._starts = [b.start_index for b in self.batches]

    @classmethod
    def from_grid(cls, grid: QuantizedGrid) -> "StitchGuide":
        steps = generate_pattern(grid)
        return cls(steps=steps, batches=batch_colors(steps))

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self.steps):
            raise IndexError(f"Step index {index} out of range [0, {len(self.steps)})")

    def batch_at(self, index: int) -> ColorBatch:
        self._check(index)
        return self.batches[bisect_right(self._starts, index) - 1]

    def hint(self, index: int) -> StepHint:
        batch = self.batch_at(index)
        remaining = batch.end_index - index
        if remaining > 0:
            return StepHint(HintKind.SAME_COLOR, remaining)
        if index + 1 < len(self.steps):
            return StepHint(HintKind.COLOR_CHANGE, 0)
        return StepHint(HintKind.FINAL, 0)
