import pymunk
import pytest

import board
import config
import gate
import layout
import spool


@pytest.fixture
def c():
    return config.get_config()


@pytest.fixture
def cfg():
    return config.SimulationConfig(row_count=8, bucket_count=9)


@pytest.fixture
def lay(c, cfg):
    return layout.compute(900, 600, cfg, c)


@pytest.fixture
def world(lay, cfg, c):
    space = pymunk.Space()
    space.sleep_time_threshold = c["sleep_time_threshold"]
    parts = board.build(lay, cfg, c)
    board.install(space, parts)
    g = gate.Gate(parts, gate.gate_targets(lay, c), c)
    return space, g


def test_closed_gate_seals_the_neck(lay, c):
    t = gate.gate_targets(lay, c)
    left_edge = t.closed_x["left"] + t.gate_width / 2
    right_edge = t.closed_x["right"] - t.gate_width / 2

    assert left_edge > lay.center_x
    assert right_edge < lay.center_x
    assert t.closed_x["left"] - t.gate_width / 2 < lay.center_x - lay.neck_width / 2


def test_open_gate_clears_the_neck(lay, c):
    t = gate.gate_targets(lay, c)
    neck_left = lay.center_x - lay.neck_width / 2
    neck_right = lay.center_x + lay.neck_width / 2

    assert t.open_x["left"] + t.gate_width / 2 < neck_left
    assert t.open_x["right"] - t.gate_width / 2 > neck_right
    assert t.closed_x["left"] - t.open_x["left"] >= t.gate_width


def test_gate_starts_at_closed_target(world):
    _, g = world
    for side in gate.SIDES:
        assert g.position_x(side) == pytest.approx(g.targets.closed_x[side])


def test_set_open_reports_transitions(world):
    _, g = world
    assert g.set_open(True) is True
    assert g.set_open(True) is False
    assert g.set_open(False) is True


def test_update_slides_instead_of_jumping(world, c):
    _, g = world
    start = g.position_x("left")
    g.set_open(True)
    g.update()

    target = g.targets.open_x["left"]
    moved = g.position_x("left")
    assert moved == pytest.approx(start + (target - start) * c["gate_smoothing"])


def test_reopen_then_close_converges_monotonically(world):
    _, g = world
    g.set_open(True)
    for _ in range(5):
        g.update()
    g.set_open(False)

    closed = g.targets.closed_x["left"]
    distances = []
    for _ in range(60):
        g.update()
        distances.append(abs(g.position_x("left") - closed))

    assert all(b <= a for a, b in zip(distances, distances[1:]))
    assert distances[-1] == 0
    for side in gate.SIDES:
        assert g.bodies[side].position.y == pytest.approx(g.targets.y)


def test_opening_wakes_sleeping_balls_above_bins(world, lay, cfg, c):
    space, g = world
    above = spool.make_ball(c, cfg, config.DEFAULT_COLORS[0], (100, -50), 0)
    below = spool.make_ball(c, cfg, config.DEFAULT_COLORS[0], (100, 590), 1)
    for ball in (above, below):
        space.add(ball.body, ball.shape)
        ball.body.sleep()
    assert above.sleeping and below.sleeping

    g.set_open(True, [above, below], wake_above_y=lay.bin_start_y)

    assert not above.sleeping
    assert below.sleeping


def test_closing_does_not_wake(world, cfg, c):
    space, g = world
    ball = spool.make_ball(c, cfg, config.DEFAULT_COLORS[0], (100, -50), 0)
    space.add(ball.body, ball.shape)
    g.set_open(True)
    ball.body.sleep()

    g.set_open(False, [ball], wake_above_y=1000)
    assert ball.sleeping


def test_gate_needs_two_parts(lay, cfg, c):
    parts = [p for p in board.build(lay, cfg, c) if p.kind != "gate"]
    with pytest.raises(ValueError):
        gate.Gate(parts, gate.gate_targets(lay, c), c)
