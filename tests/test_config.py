import json
import math

import numpy as np
import pytest

import config


def test_sanitize_clamps_out_of_range_values():
    cfg = config.SimulationConfig(
        row_count=1,
        bucket_count=0,
        peg_radius=0.0,
        ball_radius=-2.0,
        ball_restitution=1.5,
        ball_friction=-1.0,
    )
    clean = config.sanitize_config(cfg)

    assert clean.row_count == 2
    assert clean.bucket_count == 1
    assert clean.peg_radius == config.MIN_RADIUS
    assert clean.ball_radius == config.MIN_RADIUS
    assert clean.ball_restitution == 1.0
    assert clean.ball_friction == 0.0


def test_sanitize_keeps_valid_config():
    cfg = config.SimulationConfig()
    assert cfg.sanitized() == cfg


def test_sanitize_truncates_fractional_counts():
    clean = config.SimulationConfig(row_count=7.8, bucket_count=3.2).sanitized()
    assert clean.row_count == 7
    assert clean.bucket_count == 3


def test_non_finite_values_fall_back_to_defaults():
    clean = config.SimulationConfig(
        ball_radius=math.nan, bucket_count=math.inf
    ).sanitized()
    assert clean.ball_radius == config.SimulationConfig.ball_radius
    assert clean.bucket_count == config.SimulationConfig.bucket_count


@pytest.mark.parametrize("bad", ["12", None, True])
def test_non_numeric_values_raise(bad):
    with pytest.raises(TypeError):
        config.SimulationConfig(row_count=bad).sanitized()


def test_clamping_is_logged(caplog):
    with caplog.at_level("WARNING", logger="config"):
        config.SimulationConfig(bucket_count=0).sanitized()
    assert "bucket_count" in caplog.text


def test_negative_definition_counts_are_zeroed():
    red = config.DEFAULT_COLORS[1]
    defs = config.sanitize_definitions([config.BallDefinition(red, -3)])
    assert defs == [config.BallDefinition(red, 0)]


def test_cycle_pattern():
    blue, red = config.DEFAULT_COLORS[:2]
    assert config.cycle_pattern([blue, red], 5) == [blue, red, blue, red, blue]
    assert config.cycle_pattern([], 5) == []
    assert config.cycle_pattern([blue], 0) == []


def test_bucket_labels_keep_existing_text():
    assert config.default_bucket_labels(3) == ["1", "2", "3"]
    assert config.default_bucket_labels(4, ["a", "b"]) == ["a", "b", "3", "4"]
    assert config.default_bucket_labels(1, ["a", "b"]) == ["a"]


def test_scene_round_trip(tmp_path):
    path = tmp_path / "scene.json"
    sim_config = config.SimulationConfig(row_count=6, bucket_count=7, ball_radius=4.0)
    definitions = [
        config.BallDefinition(config.DEFAULT_COLORS[0], 30),
        config.BallDefinition(config.DEFAULT_COLORS[2], 10),
    ]
    c = config.get_config()
    c["gravity"] = 500

    config.save_config(path, sim_config, definitions, c)
    loaded_c, loaded_cfg, loaded_defs = config.load_config(path)

    assert loaded_cfg == sim_config
    assert loaded_defs == definitions
    assert loaded_c["gravity"] == 500
    assert loaded_c["simulation"]["row_count"] == 6


def test_load_sanitizes_and_ignores_unknown_keys(tmp_path, caplog):
    path = tmp_path / "scene.json"
    path.write_text(
        json.dumps(
            {
                "global": {"gravity": 100, "no_such_setting": 1},
                "simulation": {"bucket_count": 0, "colour": "blue"},
                "balls": [
                    {"color": {"id": 9, "color": "#ffffff"}, "count": -2},
                ],
            }
        )
    )

    with caplog.at_level("WARNING", logger="config"):
        c, sim_config, definitions = config.load_config(path)

    assert c["gravity"] == 100
    assert "no_such_setting" not in c
    assert sim_config.bucket_count == 1
    assert definitions[0].color.id == "9"
    assert definitions[0].count == 0
    assert "no_such_setting" in caplog.text


def test_missing_scene_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        config.load_config(tmp_path / "missing.json")


def test_numpy_numbers_are_accepted():
    clean = config.SimulationConfig(
        row_count=np.int64(9), bucket_count=np.int32(10), ball_radius=np.float32(4.5)
    ).sanitized()

    assert clean.row_count == 9 and type(clean.row_count) is int
    assert clean.bucket_count == 10
    assert clean.ball_radius == pytest.approx(4.5)
    assert type(clean.ball_radius) is float
