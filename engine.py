# =============================================================================
# SIMULATION ENGINE FOR THE GALTON BOARD
# =============================================================================

# Import libraries
import logging
import time
from dataclasses import dataclass
from typing import Optional, Tuple

import pymunk

# Import project files
import board
import config
import gate
import layout as board_layout
import settling
import spool
import utils
import zones

logger = logging.getLogger(__name__)

# Simulation status values
EMPTY = "empty"
FILLED = "filled"
RUNNING = "running"
PAUSED = "paused"
COMPLETED = "completed"


# =============================================================================
# SNAPSHOTS FOR THE RENDERING LAYER
# =============================================================================


@dataclass(frozen=True)
class PartOutline:
    kind: str
    geometry: str
    points: Tuple[Tuple[float, float], ...]
    radius: float


@dataclass(frozen=True)
class BallState:
    index: int
    x: float
    y: float
    radius: float
    color: config.BallColor
    sleeping: bool


@dataclass(frozen=True)
class BoardSnapshot:
    frame: int
    width: float
    height: float
    layout: board_layout.Layout
    parts: Tuple[PartOutline, ...]
    balls: Tuple[BallState, ...]
    gate_open: bool
    status: str
    labels: Tuple[str, ...]
    bin_centers: Tuple[float, ...]


# =============================================================================
# SIMULATION
# =============================================================================


class Simulation:
    """
    Owns the physics space, the layout, the board parts, the gate, the ball spool
    and the settling detector. Driven by explicit commands:
    reset(), reconfigure(), request_resize(), fill(), set_gate(), start(),
    pause() and tick().

    Every reset, reconfigure or applied resize tears the whole world down and
    builds it again; nothing is patched in place.
    """

    def __init__(
        self, width=None, height=None, sim_config=None, c=None, seed=None
    ):
        self.c = c if c is not None else config.get_config()
        if width is None:
            width = self.c["screen_size"]["width"]
        if height is None:
            height = self.c["screen_size"]["height"]
        self.width = width
        self.height = height
        if sim_config is None:
            sim_config = config.SimulationConfig(**self.c["simulation"])
        self.sim_config = config.sanitize_config(sim_config)

        self.space = pymunk.Space()
        self.space.gravity = (0.0, self.c["gravity"])
        self.space.damping = self.c["damping"]
        self.space.sleep_time_threshold = self.c["sleep_time_threshold"]

        self.spool = spool.BallSpool(self.c, seed=seed)
        self.detector = settling.SettlingDetector(self.c)
        self.labels = config.default_bucket_labels(self.sim_config.bucket_count)
        self.frame = 0
        self._pending_resize = None

        self.layout = None
        self.parts = []
        self.gate = None
        self.status = EMPTY
        self.reset()

    # ------------------------------------------------------------------
    # structural commands
    # ------------------------------------------------------------------

    def reset(self):
        """Rebuild layout and board from scratch. Clears every ball."""
        self.layout = board_layout.compute(
            self.width, self.height, self.sim_config, self.c
        )
        self.parts = board.build(self.layout, self.sim_config, self.c)
        board.install(self.space, self.parts)
        self.spool.clear()
        self.gate = gate.Gate(
            self.parts, gate.gate_targets(self.layout, self.c), self.c
        )
        self.detector.reset()
        self.status = EMPTY
        logger.info(
            "Board reset: %sx%s, %d rows, %d buckets",
            self.width,
            self.height,
            self.sim_config.row_count,
            self.sim_config.bucket_count,
        )

    def reconfigure(self, sim_config):
        self.sim_config = config.sanitize_config(sim_config)
        self.labels = config.default_bucket_labels(
            self.sim_config.bucket_count, self.labels
        )
        self.reset()

    def request_resize(self, width, height, now=None):
        """
        Ask for a new canvas size. Requests are coalesced; the latest one is applied
        on the first tick at least `resize_debounce` seconds after it was made.
        """
        if not (width > 0 and height > 0):
            logger.debug("Ignoring resize to %rx%r", width, height)
            return
        if now is None:
            now = time.monotonic()
        self._pending_resize = (width, height, now)

    def _apply_pending_resize(self, now):
        if self._pending_resize is None:
            return False
        width, height, requested_at = self._pending_resize
        if now - requested_at < self.c["resize_debounce"]:
            return False
        self._pending_resize = None
        if (width, height) == (self.width, self.height):
            return False
        self.width, self.height = width, height
        self.reset()
        return True

    # ------------------------------------------------------------------
    # ball and gate commands
    # ------------------------------------------------------------------

    def fill(self, queue=None):
        """
        Spawn every queued ball not yet dropped. `queue` replaces the current queue;
        a queue that does not extend the balls already dropped rebuilds the board
        first and spawns the new queue from scratch.
        """
        if queue is not None:
            queue = list(queue)
            if not self.spool.extends(queue):
                logger.info(
                    "Queue changed under %d live balls; rebuilding", len(self.balls)
                )
                self.reset()
            self.spool.load(queue)
        new_balls = self.spool.spawn_balls(self.space, self.layout, self.sim_config)
        if new_balls and self.status in (EMPTY, COMPLETED):
            self.status = FILLED
        return new_balls

    def set_gate(self, is_open):
        return self.gate.set_open(
            is_open, self.spool.balls, wake_above_y=self.layout.bin_start_y
        )

    def toggle_gate(self):
        return self.set_gate(not self.gate.is_open)

    def start(self):
        self.status = RUNNING

    def pause(self):
        if self.status == RUNNING:
            self.status = PAUSED

    @property
    def balls(self):
        return self.spool.balls

    def set_label(self, index, text):
        self.labels[index] = str(text)

    # ------------------------------------------------------------------
    # per-frame work
    # ------------------------------------------------------------------

    def tick(self, dt=None, now=None) -> bool:
        """
        Advance one frame. Returns True only on the frame the board completes.
        Order: pending resize, gate animation, zone tuning, physics, settling.
        """
        if now is None:
            now = time.monotonic()
        self._apply_pending_resize(now)
        if self.status == PAUSED:
            return False

        if dt is None:
            dt = self.c["dt"]

        self.gate.update()
        zones.tune_balls(self.spool.balls, self.layout, self.sim_config, self.c)

        substeps = self.c["substeps_per_frame"]
        for _ in range(substeps):
            self.space.step(dt / substeps)
        self.frame += 1

        if self.status != RUNNING:
            return False
        if self.detector.update(
            self.spool.balls, self.layout, self.spool.expected_count, dt
        ):
            self.status = COMPLETED
            return True
        return False

    def run(self, max_frames, on_frame=None):
        """
        Tick while running, up to `max_frames`. Pausing or resetting from
        `on_frame` stops the loop at the next frame boundary.
        Returns the number of frames advanced.
        """
        frames = 0
        while self.status == RUNNING and frames < max_frames:
            self.tick()
            frames += 1
            if on_frame is not None:
                on_frame(self)
        return frames

    def snapshot(self) -> BoardSnapshot:
        parts = []
        for part in self.parts:
            for shape in part.shapes:
                geometry, points, radius = utils.get_vertices(shape)
                parts.append(
                    PartOutline(part.kind, geometry, tuple(points), radius)
                )
        balls = tuple(
            BallState(
                index=b.index,
                x=b.position.x,
                y=b.position.y,
                radius=b.radius,
                color=b.color,
                sleeping=b.sleeping,
            )
            for b in self.spool.balls
        )
        return BoardSnapshot(
            frame=self.frame,
            width=self.width,
            height=self.height,
            layout=self.layout,
            parts=tuple(parts),
            balls=balls,
            gate_open=self.gate.is_open,
            status=self.status,
            labels=tuple(self.labels),
            bin_centers=tuple(
                self.layout.bin_center_x(i) for i in range(self.layout.bucket_count)
            ),
        )


# =============================================================================
# HEADLESS RUN
# =============================================================================


def run_simulation(
    sim_config=None,
    queue=None,
    c=None,
    width=None,
    height=None,
    seed=None,
    settle_frames=60,
    max_frames=6000,
    sim: Optional[Simulation] = None,
):
    """
    Fill the board, let the stack rest on the closed gate for `settle_frames`,
    open the gate and tick until the balls settle or `max_frames` pass.
    Returns a dict with the final ball positions and the run outcome.
    """
    if sim is None:
        sim = Simulation(width, height, sim_config, c, seed=seed)
    if queue is None:
        queue = config.cycle_pattern(
            config.DEFAULT_COLORS[:1], sim.c["default_ball_count"]
        )

    sim.fill(queue)
    sim.start()
    for _ in range(settle_frames):
        sim.tick()
    sim.set_gate(True)

    completed = False
    while sim.balls and sim.frame < max_frames:
        if sim.tick():
            completed = True
            break
        if sim.frame % 600 == 0:
            logger.info(
                "Progress: frame %d, %s",
                sim.frame,
                zones.occupancy(sim.balls, sim.layout),
            )

    if not completed:
        logger.warning("Balls did not settle within %d frames", max_frames)

    all_data = {
        "completed": completed,
        "frames": sim.frame,
        "ball_position": [{"x": b.position.x, "y": b.position.y} for b in sim.balls],
        "ball_color": [b.color.id for b in sim.balls],
        "layout": sim.layout,
        "bucket_count": sim.sim_config.bucket_count,
    }
    return all_data
