"""
Gate controller.

The gate is a pair of kinematic boxes just below the funnel neck. Its logical
state is open or closed; every tick each box slides toward the target for that
state by exponential smoothing, so it never teleports into a resting ball.
"""

import logging
from dataclasses import dataclass
from typing import Dict

logger = logging.getLogger(__name__)

SIDES = ("left", "right")


@dataclass(frozen=True)
class GateTargets:
    gate_width: float
    y: float
    closed_x: Dict[str, float]
    open_x: Dict[str, float]


def gate_targets(layout, c) -> GateTargets:
    """
    Closed: both boxes meet at the neck centre, each reaching `gate_overlap` past it.
    Open: each box slides outward by its own width plus `gate_margin`, clear of the neck.
    """
    overlap = c["gate_overlap"]
    margin = c["gate_margin"]
    gate_width = layout.neck_width / 2 + overlap + margin
    cx = layout.center_x
    y = layout.funnel_exit_y + c["gate_height"] / 2

    closed_left = cx + overlap - gate_width / 2
    closed_right = cx - overlap + gate_width / 2
    shift = gate_width + margin
    return GateTargets(
        gate_width=gate_width,
        y=y,
        closed_x={"left": closed_left, "right": closed_right},
        open_x={"left": closed_left - shift, "right": closed_right + shift},
    )


class Gate:
    def __init__(self, parts, targets: GateTargets, c, is_open=False):
        gate_parts = [p for p in parts if p.kind == "gate"]
        if len(gate_parts) != 2:
            raise ValueError(f"expected 2 gate parts, got {len(gate_parts)}")
        self.bodies = dict(zip(SIDES, (p.body for p in gate_parts)))
        self.targets = targets
        self.smoothing = c["gate_smoothing"]
        self.snap = c["gate_snap"]
        self.is_open = is_open

    def target_x(self, side) -> float:
        if self.is_open:
            return self.targets.open_x[side]
        return self.targets.closed_x[side]

    def position_x(self, side) -> float:
        return self.bodies[side].position.x

    def set_open(self, is_open, balls=(), wake_above_y=None) -> bool:
        """
        Switch the logical state. Returns True if the state changed.
        On opening, sleeping balls above `wake_above_y` are woken; a sleeping
        body does not react to the gate moving away from under it.
        """
        is_open = bool(is_open)
        if is_open == self.is_open:
            return False
        self.is_open = is_open
        logger.info("Gate %s", "opening" if is_open else "closing")

        if is_open:
            woken = 0
            for ball in balls:
                body = ball.body
                if body.space is None or not body.is_sleeping:
                    continue
                if wake_above_y is None or body.position.y < wake_above_y:
                    body.activate()
                    woken += 1
            if woken:
                logger.debug("Woke %d sleeping balls", woken)
        return True

    def update(self):
        """Move both boxes one smoothing step toward their target."""
        for side, body in self.bodies.items():
            target = self.target_x(side)
            x = body.position.x
            dx = target - x
            if abs(dx) < self.snap:
                x = target
            else:
                x += dx * self.smoothing
            body.position = x, self.targets.y
            body.velocity = 0, 0
            if body.space is not None:
                body.space.reindex_shapes_for_body(body)
