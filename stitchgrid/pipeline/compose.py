# stitchgrid/pipeline/compose.py
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple
import logging
import numpy as np

from ..color.space import rgb_array_to_lab
from ..config import AnalysisConfig
from ..grid.detector import GridInfo, detect_grid, extract_cell_colors
from ..io_utils import PixelSource, as_pixel_buffer
from ..metrics.distance import METRICS, hyab_distance
from ..metrics.similarity import quantization_fidelity
from ..pattern.guide import StitchGuide
from ..preprocessing.resize import resize_to_grid
from ..quantize.matchers import match_to_palette
from ..quantize.median_cut import MedianCutQuantizer
from ..quantize.palette import (
    PaletteEntry, QuantizedGrid, palette_from_rgb, palette_lab_array
)
from ..quantize.xmeans import XMeansClusterer

logger = logging.getLogger(__name__)

METHOD_NAMES = {
    "hyab-xmeans": "HyAB X-Means",
    "median-cut": "Median Cut",
    "deltae2000": "Delta E 2000",
}

# palette-building metric per clustering method (keys of METRICS)
CLUSTER_METRICS = {
    "hyab-xmeans": "hyab",
    "deltae2000": "deltae2000",
}


@dataclass(frozen=True)
class AnalysisResult:
    palette: Tuple[PaletteEntry, ...]
    grid: QuantizedGrid
    grid_info: GridInfo           # detection outcome (detected=False when not found/disabled)
    used_detected_grid: bool
    samples: np.ndarray           # (H, W, 3) uint8, one RGB sample per cell
    method: str
    requested_colors: int

    @property
    def color_count(self) -> int:
        return len(self.palette)

    def fidelity(self):
        return quantization_fidelity(self.samples, self.grid.to_rgb())

    def summary(self) -> List[str]:
        lines = []
        if self.used_detected_grid:
            gi = self.grid_info
            lines.append(f"Detected {gi.grid_width}x{gi.grid_height} grid")
            lines.append(f"Cell size: {gi.cell_width}x{gi.cell_height} px")
        else:
            lines.append(f"Manual {self.grid.width}x{self.grid.height} grid")
            if self.grid.width != self.grid.height:
                lines.append(f"Aspect ratio: {self.grid.width / self.grid.height:.2f}:1")
        lines.append(f"Analyzed with {METHOD_NAMES[self.method]}")
        colors = f"{self.color_count} colors used"
        if self.method == "hyab-xmeans" and self.color_count != self.requested_colors:
            colors += f" (auto-selected, {self.requested_colors} requested)"
        lines.append(colors)
        return lines


def sample_cells(pixels: np.ndarray, config: AnalysisConfig) -> Tuple[np.ndarray, GridInfo, bool]:
    """
    One RGB sample per grid cell. Uses a detected grid when it is at least
    min_detected_grid cells on both sides, else box-resizes to the configured grid.
    """
    grid_info = GridInfo.not_detected()
    if config.auto_detect_grid:
        grid_info = detect_grid(pixels)
        if (grid_info.detected
                and grid_info.grid_width >= config.min_detected_grid
                and grid_info.grid_height >= config.min_detected_grid):
            logger.info("Using detected %dx%d grid", grid_info.grid_width, grid_info.grid_height)
            return extract_cell_colors(pixels, grid_info), grid_info, True
    logger.debug("No usable grid detected; resizing to %dx%d", config.grid_width, config.grid_height)
    return resize_to_grid(pixels, config.grid_width, config.grid_height), grid_info, False


def build_palette(
    colors_lab: np.ndarray,
    config: AnalysisConfig,
    rng: np.random.Generator,
) -> List[PaletteEntry]:
    if config.method == "median-cut":
        rgb = MedianCutQuantizer(config.max_colors).quantize(colors_lab)
        return palette_from_rgb(rgb)

    metric = METRICS[CLUSTER_METRICS[config.method]]
    clusterer = XMeansClusterer(
        min_k=min(config.min_colors, config.max_colors),
        max_k=config.max_colors,
        max_iterations=config.max_iterations,
        rng=rng,
    )
    return list(clusterer.cluster(colors_lab, metric).palette)


def analyze_image(
    image: PixelSource,
    config: Optional[AnalysisConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> AnalysisResult:
    """
    Sample the image onto a grid, build a palette with the configured method
    and map every cell to its nearest palette entry.
    Cells are always matched with HyAB, whatever metric built the palette.
    """
    config = (config or AnalysisConfig()).validate()
    pixels = as_pixel_buffer(image)
    if rng is None:
        rng = np.random.default_rng(config.seed)

    samples, grid_info, used_detected = sample_cells(pixels, config)
    H, W = samples.shape[:2]
    lab = rgb_array_to_lab(samples).reshape(-1, 3)

    palette = build_palette(lab, config, rng)
    indices = match_to_palette(lab, palette_lab_array(palette), hyab_distance).reshape(H, W)

    logger.info("%s: %d colors on a %dx%d grid", METHOD_NAMES[config.method], len(palette), W, H)
    return AnalysisResult(
        palette=tuple(palette),
        grid=QuantizedGrid(indices, palette),
        grid_info=grid_info,
        used_detected_grid=used_detected,
        samples=samples,
        method=config.method,
        requested_colors=config.max_colors,
    )


def build_stitch_guide(
    image: PixelSource,
    config: Optional[AnalysisConfig] = None,
    rng: Optional[np.random.Generator] = None,
) -> Tuple[AnalysisResult, StitchGuide]:
    """Analyze the image and lay out its serpentine stitching order."""
    result = analyze_image(image, config, rng)
    return result, StitchGuide.from_grid(result.grid)
