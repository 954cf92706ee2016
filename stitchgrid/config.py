from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

# Manual grid defaults (used when no grid is detected in the source image)
DEFAULT_GRID_WIDTH = 32
DEFAULT_GRID_HEIGHT = 32

# Palette defaults
# Options: "hyab-xmeans", "median-cut", "deltae2000"
ANALYSIS_METHODS = ("hyab-xmeans", "median-cut", "deltae2000")
DEFAULT_METHOD = "hyab-xmeans"
DEFAULT_MAX_COLORS = 16
MIN_COLORS = 2  # lower bound of the X-Means search range
MAX_KMEANS_ITERATIONS = 100

# Grid detection
EDGE_THRESHOLD = 30     # per-channel gradient (0..255) that counts as an edge pixel
EDGE_FRACTION = 0.3     # share of a row/column that must be edge pixels
MIN_LINE_SPACING = 5    # lines closer than max(this, dim / 30) are merged
MIN_DETECTED_GRID = 8   # smaller detected grids are treated as false positives

# Grid-size suggestion from image aspect ratio
SUGGEST_BASE = 32
SUGGEST_MIN = 12
SUGGEST_MAX = 48


class StitchGridError(Exception):
    """Base exception for stitchgrid errors."""

    pass


class InvalidInputError(StitchGridError, ValueError):
    """Malformed input: empty buffers, bad shapes, non-positive sizes."""

    pass


@dataclass
class AnalysisConfig:
    """Options for one analysis run."""

    grid_width: int = DEFAULT_GRID_WIDTH
    grid_height: int = DEFAULT_GRID_HEIGHT
    max_colors: int = DEFAULT_MAX_COLORS
    method: str = DEFAULT_METHOD
    auto_detect_grid: bool = True
    min_colors: int = MIN_COLORS
    max_iterations: int = MAX_KMEANS_ITERATIONS
    min_detected_grid: int = MIN_DETECTED_GRID
    seed: Optional[int] = None

    def validate(self) -> "AnalysisConfig":
        """Raise InvalidInputError on unusable settings; returns self."""
        if self.grid_width <= 0 or self.grid_height <= 0:
            raise InvalidInputError(
                f"Grid dimensions must be positive, got {self.grid_width}x{self.grid_height}"
            )
        if self.max_colors < 1:
            raise InvalidInputError(f"max_colors must be >= 1, got {self.max_colors}")
        if self.min_colors < 1:
            raise InvalidInputError(f"min_colors must be >= 1, got {self.min_colors}")
        if self.max_iterations < 1:
            raise InvalidInputError(f"max_iterations must be >= 1, got {self.max_iterations}")
        if self.method not in ANALYSIS_METHODS:
            raise InvalidInputError(
                f"Unknown analysis method: {self.method!r} (expected one of {', '.join(ANALYSIS_METHODS)})"
            )
        return self
