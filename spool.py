"""
Ball spool: turns ball definitions into a queue and spawns the queue into the world.

Batch-fill model: a fill spawns every not-yet-dropped entry of the queue at once,
on a grid above the funnel. The gate then releases them together.
"""

import logging
import math
from dataclasses import dataclass
from typing import List

import numpy as np
import pymunk

import config
from board import shape_code

logger = logging.getLogger(__name__)


@dataclass
class Ball:
    """A live ball: the pymunk body/shape pair plus its colour."""

    body: pymunk.Body
    shape: pymunk.Circle
    color: config.BallColor
    index: int

    @property
    def position(self):
        return self.body.position

    @property
    def velocity(self):
        return self.body.velocity

    @property
    def angular_velocity(self) -> float:
        return self.body.angular_velocity

    @property
    def radius(self) -> float:
        return self.shape.radius

    @property
    def sleeping(self) -> bool:
        return self.body.is_sleeping


def enqueue(definitions) -> List[config.BallColor]:
    """
    Flatten ball definitions into a queue, in definition order.
    Each definition contributes `count` contiguous entries of its colour.
    """
    queue = []
    for d in config.sanitize_definitions(definitions):
        queue.extend([d.color] * d.count)
    return queue


def make_ball(c, sim_config, color, position, index):
    """Create a ball body and shape. Restitution starts at 0 so spawn overlaps settle quietly."""
    radius = sim_config.ball_radius
    mass = c["ball_density"] * math.pi * radius**2
    inertia = pymunk.moment_for_circle(mass, 0, radius, (0, 0))
    body = pymunk.Body(mass, inertia)
    body.position = position
    shape = pymunk.Circle(body, radius, (0, 0))
    shape.elasticity = 0
    shape.friction = sim_config.ball_friction
    shape.collision_type = shape_code["ball"]
    return Ball(body=body, shape=shape, color=color, index=index)


def spawn_position(index, layout, sim_config, c, rng):
    """Grid cell for the index-th ball (row-major, above the funnel), plus jitter."""
    spacing = sim_config.ball_radius * c["ball_spacing_factor"]
    per_row = max(1, math.floor(layout.width / spacing) - 2)
    col = index % per_row
    row = index // per_row

    start_x = (layout.width - per_row * spacing) / 2 + spacing / 2
    x = start_x + col * spacing + rng.uniform(-1, 1) * c["ball_jitter"]
    y = (
        layout.funnel_top_y
        - c["spawn_clearance"]
        - row * spacing * c["spawn_row_gap"]
        - rng.uniform(0, spacing * (c["spawn_row_gap"] - 1))
    )
    return x, y


class BallSpool:
    """
    Owns the ball queue and the live balls.
    `drop_index` counts balls already introduced and is the only record of it,
    so a repeated fill never spawns a ball twice.
    """

    def __init__(self, c, seed=None):
        self.c = c
        self.rng = np.random.default_rng(seed)
        self.queue: List[config.BallColor] = []
        self.balls: List[Ball] = []
        self.drop_index = 0

    def __len__(self):
        return len(self.balls)

    @property
    def expected_count(self) -> int:
        return len(self.queue)

    @property
    def remaining(self) -> int:
        return max(0, len(self.queue) - self.drop_index)

    def extends(self, queue) -> bool:
        """True if `queue` starts with every ball already dropped."""
        queue = list(queue)
        return queue[: self.drop_index] == self.queue[: self.drop_index]

    def load(self, queue):
        """
        Replace the queue. The new queue must keep the dropped balls as its
        prefix; anything else needs a clear() first.
        """
        queue = list(queue)
        if not self.extends(queue):
            raise ValueError(
                f"queue of {len(queue)} does not extend the "
                f"{self.drop_index} balls already dropped"
            )
        self.queue = queue

    def spawn_balls(self, space, layout, sim_config) -> List[Ball]:
        """Spawn every queued ball not yet dropped. Returns the new balls."""
        new_balls = []
        while self.drop_index < len(self.queue):
            color = self.queue[self.drop_index]
            pos = spawn_position(self.drop_index, layout, sim_config, self.c, self.rng)
            ball = make_ball(self.c, sim_config, color, pos, self.drop_index)
            space.add(ball.body, ball.shape)
            new_balls.append(ball)
            self.drop_index += 1

        self.balls.extend(new_balls)
        if new_balls:
            logger.info("Spawned %d balls (%d total)", len(new_balls), len(self.balls))
        return new_balls

    def clear(self):
        """Forget the live balls. Their bodies go with the world clear on reset."""
        self.balls = []
        self.drop_index = 0
