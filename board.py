# =============================================================================
# STATIC BOARD BUILDER FOR THE GALTON BOARD
# =============================================================================

# Import libraries
import logging
from dataclasses import dataclass, field
from typing import List

import pymunk

# Import project files
import config
import gate

logger = logging.getLogger(__name__)

# Collision type definitions for physics engine
shape_code = {
    "walls": 0,
    "floor": 1,
    "ball": 2,
    "peg": 3,
    "funnel": 4,
    "gate": 5,
    "divider": 6,
}

inverse_shape_code = {shape_code[key]: key for key in shape_code}

# Build order of the static parts
PART_ORDER = ("funnel", "gate", "peg", "divider", "walls", "floor")


@dataclass
class BoardPart:
    """One body of the board together with its collision shapes."""

    kind: str
    body: pymunk.Body
    shapes: List[pymunk.Shape] = field(default_factory=list)


# =============================================================================
# PHYSICS OBJECT CREATION FUNCTIONS
# =============================================================================


def _finish(kind, body, shapes, c, friction=None):
    if friction is None:
        friction = c["static_friction"]
    for sh in shapes:
        sh.elasticity = c["static_elasticity"]
        sh.friction = friction
        sh.collision_type = shape_code[kind]
    return BoardPart(kind, body, shapes)


def make_funnel(layout, c):
    """
    Create the two funnel walls.
    Each side is a single polygon covering both the slope and the neck, so there is
    no seam between them for a ball to wedge into.
    """
    parts = []
    neck_left = layout.center_x - layout.neck_width / 2
    neck_right = layout.center_x + layout.neck_width / 2
    if neck_left < 1:
        logger.warning("Canvas too narrow for a funnel (neck at x=%.2f)", neck_left)
        return parts

    left = [
        (0, layout.funnel_top_y),
        (neck_left, layout.neck_top_y),
        (neck_left, layout.funnel_exit_y),
        (0, layout.funnel_exit_y),
    ]
    right = [
        (layout.width, layout.funnel_top_y),
        (layout.width, layout.funnel_exit_y),
        (neck_right, layout.funnel_exit_y),
        (neck_right, layout.neck_top_y),
    ]
    for verts in (left, right):
        body = pymunk.Body(body_type=pymunk.Body.STATIC)
        parts.append(
            _finish(
                "funnel", body, [pymunk.Poly(body, verts)], c, c["funnel_friction"]
            )
        )
    return parts


def make_gate(layout, c, is_open=False):
    """Create the gate pair as kinematic boxes just below the neck exit."""
    targets = gate.gate_targets(layout, c)
    parts = []
    for side in ("left", "right"):
        body = pymunk.Body(body_type=pymunk.Body.KINEMATIC)
        x = targets.open_x[side] if is_open else targets.closed_x[side]
        body.position = x, targets.y
        box = pymunk.Poly.create_box(body, (targets.gate_width, c["gate_height"]))
        parts.append(_finish("gate", body, [box], c))
    return parts


def peg_positions(layout, peg_margin=20):
    """
    Peg centres as a list of rows.
    Row r holds r + 1 pegs: even rows are centred on the board, odd rows are
    offset by half a spacing. Pegs outside [-margin, width + margin] are dropped.
    """
    rows = []
    spacing = layout.peg_row_spacing_x
    for row in range(layout.row_count):
        y = layout.peg_row_y(row)
        xs = []
        for k in range(row + 1):
            x = layout.center_x + (k - row / 2) * spacing
            if -peg_margin < x < layout.width + peg_margin:
                xs.append((x, y))
        rows.append(xs)
    return rows


def make_pegs(layout, sim_config, c):
    parts = []
    for row in peg_positions(layout, c["peg_margin"]):
        for x, y in row:
            body = pymunk.Body(body_type=pymunk.Body.STATIC)
            body.position = x, y
            circle = pymunk.Circle(body, sim_config.peg_radius, (0, 0))
            parts.append(_finish("peg", body, [circle], c))
    return parts


def make_dividers(layout, c):
    """Create the bucket_count + 1 bin dividers. Never shorter than one unit."""
    parts = []
    height = max(1.0, layout.bin_height)
    center_y = layout.bin_start_y + height / 2
    for i in range(layout.bucket_count + 1):
        body = pymunk.Body(body_type=pymunk.Body.STATIC)
        body.position = layout.divider_x(i), center_y
        box = pymunk.Poly.create_box(body, (c["divider_thickness"], height))
        parts.append(_finish("divider", body, [box], c))
    return parts


def make_walls(layout, c):
    """Side walls, reaching one canvas height above the top for the spawn stack."""
    parts = []
    r = c["wall_thickness"] / 2
    top = -layout.height
    bottom = layout.height + c["floor_overscan"]
    for x in (-r, layout.width + r):
        body = pymunk.Body(body_type=pymunk.Body.STATIC)
        seg = pymunk.Segment(body, (x, top), (x, bottom), r)
        parts.append(_finish("walls", body, [seg], c))
    return parts


def make_floor(layout, c):
    overscan = c["floor_overscan"]
    body = pymunk.Body(body_type=pymunk.Body.STATIC)
    body.position = layout.center_x, layout.height + overscan
    box = pymunk.Poly.create_box(body, (max(1.0, layout.width * 2), overscan * 2))
    return [_finish("floor", body, [box], c)]


def build(layout, sim_config, c=None, gate_open=False) -> List[BoardPart]:
    """
    Build every static part of the board, in order: funnel walls, gate pair,
    peg lattice, bin dividers, side walls, floor.
    """
    if c is None:
        c = config.get_config()

    parts = []
    if not layout.is_degenerate:
        parts += make_funnel(layout, c)
    parts += make_gate(layout, c, is_open=gate_open)
    if not layout.is_degenerate:
        parts += make_pegs(layout, sim_config, c)
    parts += make_dividers(layout, c)
    if not layout.is_degenerate:
        parts += make_walls(layout, c)
    parts += make_floor(layout, c)

    logger.debug(
        "Built board: %s",
        ", ".join(f"{k}={sum(p.kind == k for p in parts)}" for k in PART_ORDER),
    )
    return parts


def clear_space(space):
    """Remove every body, shape and constraint from the space."""
    objects = list(space.constraints) + list(space.shapes) + list(space.bodies)
    if objects:
        space.remove(*objects)


def install(space, parts):
    """Replace the whole world with `parts` (clear, then add)."""
    clear_space(space)
    for part in parts:
        space.add(part.body, *part.shapes)
    logger.info("Installed %d board parts", len(parts))
