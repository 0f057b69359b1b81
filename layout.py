"""
Board layout calculator.

Derives every Y band and spacing of the board from the canvas size and a
SimulationConfig. Pure and deterministic: the same inputs always give the same
Layout, and nothing here touches the physics world.

Coordinates are canvas coordinates (origin top-left, +y down). Bands, top to
bottom:

    top_margin
    funnel slope + neck        -> funnel_exit_y
    gap
    peg field (row_count rows) -> peg_field_start_y .. last row
    bins                       -> bin_start_y .. height
"""

import logging
import math
from dataclasses import dataclass

import config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layout:
    width: float
    height: float
    funnel_top_y: float
    funnel_exit_y: float
    neck_top_y: float
    neck_width: float
    peg_field_start_y: float
    peg_row_spacing_x: float
    peg_row_spacing_y: float
    bin_start_y: float
    bin_height: float
    horizontal_spacing_x: float
    row_count: int
    bucket_count: int

    @property
    def center_x(self) -> float:
        return self.width / 2

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def peg_row_y(self, row: int) -> float:
        return self.peg_field_start_y + row * self.peg_row_spacing_y

    def divider_x(self, index: int) -> float:
        return index * self.horizontal_spacing_x

    def bin_center_x(self, index: int) -> float:
        return (index + 0.5) * self.horizontal_spacing_x


def _empty_layout(width, height, sim_config) -> Layout:
    return Layout(
        width=max(0.0, width) if math.isfinite(width) else 0.0,
        height=max(0.0, height) if math.isfinite(height) else 0.0,
        funnel_top_y=0.0,
        funnel_exit_y=0.0,
        neck_top_y=0.0,
        neck_width=0.0,
        peg_field_start_y=0.0,
        peg_row_spacing_x=0.0,
        peg_row_spacing_y=0.0,
        bin_start_y=0.0,
        bin_height=0.0,
        horizontal_spacing_x=0.0,
        row_count=sim_config.row_count,
        bucket_count=sim_config.bucket_count,
    )


def _clearance(spacing_y, peg_radius):
    # the last peg row keeps at least one peg radius of clearance above the bins
    return max(spacing_y * 0.5, peg_radius)


def _block_height(row_gaps, spacing_y, peg_radius):
    """Height of the peg field from its first row down to the bin band."""
    return row_gaps * spacing_y + _clearance(spacing_y, peg_radius)


def _fit_spacing(room, row_gaps, peg_radius):
    """Largest row spacing whose peg block fits in `room`."""
    spacing_y = room / (row_gaps + 0.5)
    if spacing_y * 0.5 < peg_radius:
        spacing_y = (room - peg_radius) / row_gaps
    return spacing_y


def _shrink(value, floor, shortfall):
    take = min(shortfall, max(0.0, value - floor))
    return value - take, shortfall - take


def compute(width, height, sim_config, c=None) -> Layout:
    """
    Compute the board layout for a canvas of `width` x `height`.

    Horizontal spacing always spans the full width (width / bucket_count).
    When the ideal vertical spacing does not leave room for the minimum bin
    height, the vertical spacing is compressed down to a minimum pitch (one
    peg and one ball diameter). Below that the gap, funnel and bin bands give
    up height, in that order, before the rows are pressed closer. Rows never
    share a y.
    """
    if c is None:
        c = config.get_config()
    sim_config = config.sanitize_config(sim_config)

    if not (width > 0 and height > 0):
        logger.warning("Degenerate canvas %rx%r; using an empty layout", width, height)
        return _empty_layout(width, height, sim_config)

    rows = sim_config.row_count
    buckets = sim_config.bucket_count
    peg_radius = sim_config.peg_radius
    ball_diameter = 2 * sim_config.ball_radius

    spacing_x = width / buckets
    target_spacing_y = spacing_x * c["peg_aspect"]

    top_margin = c["top_margin"]
    funnel_height = max(c["funnel_height_min"], height * c["funnel_height_ratio"])
    gap = funnel_height * c["funnel_gap_ratio"]
    min_bin_height = max(c["bin_height_min"], height * c["bin_height_ratio"])

    row_gaps = rows - 1
    room = height - top_margin - funnel_height - gap - min_bin_height

    if _block_height(row_gaps, target_spacing_y, peg_radius) <= room:
        spacing_y = target_spacing_y
    else:
        min_pitch = 2 * peg_radius + ball_diameter
        shortfall = _block_height(row_gaps, min_pitch, peg_radius) - room
        if shortfall > 0:
            gap, shortfall = _shrink(
                gap, c["gap_floor_diameters"] * ball_diameter, shortfall
            )
            funnel_height, shortfall = _shrink(
                funnel_height, c["funnel_floor_diameters"] * ball_diameter, shortfall
            )
            min_bin_height, shortfall = _shrink(
                min_bin_height, c["bin_floor_diameters"] * ball_diameter, shortfall
            )
            room = height - top_margin - funnel_height - gap - min_bin_height
            logger.debug(
                "Bands shrunk to fit %d rows: funnel %.1f, gap %.1f, bins %.1f",
                rows,
                funnel_height,
                gap,
                min_bin_height,
            )

        fitted = _fit_spacing(room, row_gaps, peg_radius)
        if fitted < min_pitch / 2:
            logger.warning(
                "Canvas height %s too small for %d peg rows; bins are cut short",
                height,
                rows,
            )
            fitted = min_pitch / 2
        spacing_y = min(target_spacing_y, fitted)
        logger.debug(
            "Peg rows compressed: spacing_y %.2f -> %.2f", target_spacing_y, spacing_y
        )

    funnel_top_y = top_margin
    funnel_exit_y = top_margin + funnel_height
    neck_width = min(width, ball_diameter * c["neck_clearance"])
    neck_top_y = funnel_exit_y - min(funnel_height / 2, 2 * ball_diameter)

    peg_field_start_y = funnel_exit_y + gap
    bin_start_y = peg_field_start_y + _block_height(row_gaps, spacing_y, peg_radius)
    bin_height = max(0.0, height - bin_start_y)

    return Layout(
        width=float(width),
        height=float(height),
        funnel_top_y=funnel_top_y,
        funnel_exit_y=funnel_exit_y,
        neck_top_y=neck_top_y,
        neck_width=neck_width,
        peg_field_start_y=peg_field_start_y,
        peg_row_spacing_x=spacing_x,
        peg_row_spacing_y=spacing_y,
        bin_start_y=bin_start_y,
        bin_height=bin_height,
        horizontal_spacing_x=spacing_x,
        row_count=rows,
        bucket_count=buckets,
    )
