"""
Settling detector.

A ball is settled when it moves slower than `settle_speed` and spins slower than
`settle_angular_speed` (both per tick of length `dt`) and has dropped into
the bin band.
Completion is an edge: it fires once when every expected ball exists and is
settled, and re-arms only after that condition has been false again.
"""

import logging

logger = logging.getLogger(__name__)


def is_settled(ball, layout, c, dt=None):
    if dt is None:
        dt = c["dt"]
    speed = ball.velocity.length * dt
    angular_speed = abs(ball.angular_velocity) * dt
    return (
        speed < c["settle_speed"]
        and angular_speed < c["settle_angular_speed"]
        and ball.position.y > layout.bin_start_y
    )


class SettlingDetector:
    def __init__(self, c):
        self.c = c
        self._latched = False

    @property
    def fired(self) -> bool:
        return self._latched

    def reset(self):
        self._latched = False

    def all_settled(self, balls, layout, expected_count, dt=None) -> bool:
        if not balls or len(balls) != expected_count:
            return False
        return all(is_settled(b, layout, self.c, dt) for b in balls)

    def update(self, balls, layout, expected_count, dt=None) -> bool:
        """Returns True on the tick the board becomes settled, False otherwise."""
        if not self.all_settled(balls, layout, expected_count, dt):
            self._latched = False
            return False
        if self._latched:
            return False
        self._latched = True
        logger.info("All %d balls settled", len(balls))
        return True
