import pymunk
import pytest

import config
import layout
import spool

RED = config.BallColor("r", "#ff0000", "Red")
BLUE = config.BallColor("b", "#0000ff", "Blue")


@pytest.fixture
def c():
    return config.get_config()


@pytest.fixture
def cfg():
    return config.SimulationConfig(row_count=8, bucket_count=9)


@pytest.fixture
def lay(c, cfg):
    return layout.compute(900, 600, cfg, c)


def test_enqueue_preserves_order_and_counts():
    queue = spool.enqueue(
        [config.BallDefinition(RED, 3), config.BallDefinition(BLUE, 2)]
    )
    assert queue == [RED, RED, RED, BLUE, BLUE]


def test_enqueue_empty_and_zero_counts():
    assert spool.enqueue([]) == []
    assert spool.enqueue(
        [config.BallDefinition(RED, 0), config.BallDefinition(BLUE, 0)]
    ) == []


def test_enqueue_clamps_negative_counts():
    queue = spool.enqueue(
        [config.BallDefinition(RED, -4), config.BallDefinition(BLUE, 1)]
    )
    assert queue == [BLUE]


def test_spawn_places_whole_queue_above_funnel(lay, cfg, c):
    space = pymunk.Space()
    s = spool.BallSpool(c, seed=3)
    s.load([RED] * 150 + [BLUE] * 50)

    new = s.spawn_balls(space, lay, cfg)

    assert len(new) == 200
    assert s.drop_index == 200
    assert len(space.bodies) == 200
    for ball in new:
        assert ball.position.y < lay.funnel_top_y
        assert 0 < ball.position.x < lay.width
        assert ball.shape.elasticity == 0
        assert ball.radius == cfg.ball_radius
    assert [b.color for b in new] == s.queue


def test_grid_rows_stack_upwards(lay, cfg, c):
    s = spool.BallSpool(c, seed=5)
    s.load([RED] * 300)
    balls = s.spawn_balls(pymunk.Space(), lay, cfg)

    spacing = cfg.ball_radius * c["ball_spacing_factor"]
    per_row = int(lay.width // spacing) - 2
    first_row = balls[:per_row]
    second_row = balls[per_row : 2 * per_row]

    # neighbours in a row stay apart by the spacing minus both jitters
    for a, b in zip(first_row, first_row[1:]):
        assert b.position.x - a.position.x >= spacing - 2 * c["ball_jitter"]
    assert max(b.position.y for b in second_row) < min(
        b.position.y for b in first_row
    )


def test_second_fill_spawns_nothing(lay, cfg, c):
    space = pymunk.Space()
    s = spool.BallSpool(c, seed=1)
    s.load([RED] * 10)
    s.spawn_balls(space, lay, cfg)

    assert s.spawn_balls(space, lay, cfg) == []
    assert len(s) == 10
    assert s.remaining == 0


def test_longer_queue_spawns_only_new_entries(lay, cfg, c):
    space = pymunk.Space()
    s = spool.BallSpool(c, seed=1)
    s.load([RED] * 4)
    s.spawn_balls(space, lay, cfg)

    s.load([RED] * 4 + [BLUE] * 3)
    new = s.spawn_balls(space, lay, cfg)

    assert [b.color for b in new] == [BLUE] * 3
    assert [b.index for b in new] == [4, 5, 6]
    assert len(s) == 7


def test_spawn_is_deterministic_for_a_seed(lay, cfg, c):
    def positions(seed):
        s = spool.BallSpool(c, seed=seed)
        s.load([RED] * 20)
        return [tuple(b.position) for b in s.spawn_balls(pymunk.Space(), lay, cfg)]

    assert positions(7) == positions(7)
    assert positions(7) != positions(8)


def test_clear_resets_drop_index(lay, cfg, c):
    s = spool.BallSpool(c)
    s.load([RED] * 3)
    s.spawn_balls(pymunk.Space(), lay, cfg)
    s.clear()

    assert s.drop_index == 0
    assert s.balls == []
    assert s.expected_count == 3


def test_load_rejects_queue_that_rewrites_dropped_balls(lay, cfg, c):
    s = spool.BallSpool(c, seed=1)
    s.load([BLUE] * 5)
    s.spawn_balls(pymunk.Space(), lay, cfg)

    assert not s.extends([RED] * 3)
    assert not s.extends([BLUE] * 3)
    with pytest.raises(ValueError):
        s.load([RED] * 3)
    assert s.queue == [BLUE] * 5
    assert s.expected_count == len(s) == 5


def test_cleared_spool_accepts_any_queue(lay, cfg, c):
    s = spool.BallSpool(c, seed=1)
    s.load([BLUE] * 5)
    s.spawn_balls(pymunk.Space(), lay, cfg)
    s.clear()

    s.load([RED] * 3)
    new = s.spawn_balls(pymunk.Space(), lay, cfg)
    assert [b.color for b in new] == [RED] * 3
