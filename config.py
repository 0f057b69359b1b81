# import libraries
import json
import logging
import math
import numbers
from dataclasses import asdict, dataclass, replace
from itertools import cycle, islice
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s: %(message)s"


def get_config():
    """
    Creates the main configuration dictionary.
    Holds the engine-wide settings; the per-run board parameters live in SimulationConfig.
    """
    c = {}

    # GLOBAL SETTINGS
    c["dt"] = 1 / 60  # one animation frame
    c["substeps_per_frame"] = 4
    c["gravity"] = 900  # px/s^2, +y is down
    c["damping"] = 0.5  # fraction of velocity kept after one second
    c["sleep_time_threshold"] = 0.5
    c["screen_size"] = {"width": 900, "height": 600}
    c["resize_debounce"] = 0.1  # seconds

    # LAYOUT SETTINGS
    c["top_margin"] = 10
    c["funnel_height_ratio"] = 0.15
    c["funnel_height_min"] = 70
    c["funnel_gap_ratio"] = 1.2  # gap between neck exit and first peg row
    c["peg_aspect"] = 0.6  # vertical / horizontal peg spacing
    c["bin_height_ratio"] = 0.3
    c["bin_height_min"] = 150
    c["neck_clearance"] = 2.5  # neck width in ball diameters
    # floors, in ball diameters, for squeezing bands on short canvases
    c["gap_floor_diameters"] = 2
    c["funnel_floor_diameters"] = 4
    c["bin_floor_diameters"] = 4

    # BOARD SETTINGS
    # pymunk multiplies the two shapes' values, so the ball's value governs
    c["static_elasticity"] = 1.0
    c["static_friction"] = 1.0
    c["funnel_friction"] = 0.0
    c["peg_margin"] = 20
    c["divider_thickness"] = 4
    c["wall_thickness"] = 10
    c["floor_overscan"] = 50

    # GATE SETTINGS
    c["gate_height"] = 10
    c["gate_overlap"] = 2  # inward overlap past the neck centre when closed
    c["gate_margin"] = 6
    c["gate_smoothing"] = 0.2
    c["gate_snap"] = 0.01

    # BALL SETTINGS
    c["ball_density"] = 0.004
    c["ball_spacing_factor"] = 2.2
    c["ball_jitter"] = 3
    c["spawn_clearance"] = 50
    c["spawn_row_gap"] = 1.1  # row pitch in ball spacings

    # ZONE SETTINGS
    c["enclosed_restitution"] = 0.0  # funnel and bin zones

    # SETTLING SETTINGS
    c["settle_speed"] = 0.15  # units per tick
    c["settle_angular_speed"] = 0.1  # radians per tick

    # DEFAULT RUN
    c["default_ball_count"] = 200
    c["simulation"] = asdict(SimulationConfig())

    return c


# =============================================================================
# RUN PARAMETERS
# =============================================================================


@dataclass(frozen=True)
class SimulationConfig:
    row_count: int = 12
    bucket_count: int = 13
    peg_radius: float = 6.0
    ball_radius: float = 5.0
    ball_restitution: float = 0.5
    ball_friction: float = 0.05
    drop_interval_ms: float = 50.0

    def sanitized(self) -> "SimulationConfig":
        return sanitize_config(self)


@dataclass(frozen=True)
class BallColor:
    id: str
    color: str
    name: str


@dataclass(frozen=True)
class BallDefinition:
    color: BallColor
    count: int


DEFAULT_COLORS = (
    BallColor("1", "#3b82f6", "Blue"),
    BallColor("2", "#ef4444", "Red"),
    BallColor("3", "#10b981", "Green"),
    BallColor("4", "#f59e0b", "Amber"),
    BallColor("5", "#8b5cf6", "Purple"),
)

MIN_ROW_COUNT = 2
MIN_BUCKET_COUNT = 1
MIN_RADIUS = 0.5


def _clamp(name, value, low, high=None, integer=False):
    default = getattr(SimulationConfig, name)
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise TypeError(f"{name} must be a number, got {type(value).__name__}")
    if not math.isfinite(value):
        logger.warning("%s=%r is not finite; using default %r", name, value, default)
        return default
    clamped = max(low, value)
    if high is not None:
        clamped = min(high, clamped)
    if integer:
        clamped = int(clamped)
    else:
        clamped = float(clamped)
    if clamped != value:
        logger.warning("%s=%r out of range; clamped to %r", name, value, clamped)
    return clamped


def sanitize_config(cfg: SimulationConfig) -> SimulationConfig:
    """Clamp every field into its valid range. Never raises for numeric input."""
    return replace(
        cfg,
        row_count=_clamp("row_count", cfg.row_count, MIN_ROW_COUNT, integer=True),
        bucket_count=_clamp(
            "bucket_count", cfg.bucket_count, MIN_BUCKET_COUNT, integer=True
        ),
        peg_radius=_clamp("peg_radius", cfg.peg_radius, MIN_RADIUS),
        ball_radius=_clamp("ball_radius", cfg.ball_radius, MIN_RADIUS),
        ball_restitution=_clamp("ball_restitution", cfg.ball_restitution, 0.0, 1.0),
        ball_friction=_clamp("ball_friction", cfg.ball_friction, 0.0),
        drop_interval_ms=_clamp("drop_interval_ms", cfg.drop_interval_ms, 0.0),
    )


def sanitize_definitions(definitions) -> List[BallDefinition]:
    result = []
    for d in definitions:
        if d.count < 0:
            logger.warning(
                "Negative count %d for colour %s; clamped to 0", d.count, d.color.id
            )
            d = replace(d, count=0)
        result.append(d)
    return result


def cycle_pattern(colors, total) -> List[BallColor]:
    """Build a ball queue of `total` entries by repeating `colors` in order."""
    if not colors or total <= 0:
        return []
    return list(islice(cycle(colors), int(total)))


def default_bucket_labels(count, previous=None) -> List[str]:
    """
    Labels for `count` buckets. Existing labels are kept; missing ones
    get their 1-based index, extra ones are dropped.
    """
    labels = list(previous or [])[:count]
    for i in range(len(labels), count):
        labels.append(str(i + 1))
    return labels


# =============================================================================
# SCENE FILES
# =============================================================================


def _color_from_dict(d):
    return BallColor(id=str(d["id"]), color=d["color"], name=d.get("name", ""))


def load_config(
    name,
) -> Tuple[dict, SimulationConfig, List[BallDefinition]]:
    """
    Load a scene JSON file.
    Sections: "global" overrides keys of get_config(), "simulation" holds the
    SimulationConfig fields and "balls" is a list of {"color": {...}, "count": n}.
    """
    c = get_config()

    with open(name, "r") as f:
        ob = json.load(f)

    for key, value in ob.get("global", {}).items():
        if key not in c:
            logger.warning("Unknown global setting %r ignored", key)
            continue
        c[key] = value

    fields = SimulationConfig.__dataclass_fields__
    sim = {k: v for k, v in ob.get("simulation", {}).items() if k in fields}
    sim_config = sanitize_config(SimulationConfig(**sim))
    c["simulation"] = asdict(sim_config)

    definitions = sanitize_definitions(
        BallDefinition(color=_color_from_dict(b["color"]), count=int(b["count"]))
        for b in ob.get("balls", [])
    )

    return c, sim_config, definitions


def save_config(name, sim_config, definitions, c: Optional[dict] = None):
    ob = {
        "simulation": asdict(sim_config),
        "balls": [
            {"color": asdict(d.color), "count": d.count} for d in definitions
        ],
    }
    if c is not None:
        defaults = get_config()
        ob["global"] = {
            k: v for k, v in c.items() if k != "simulation" and defaults.get(k) != v
        }
    with open(name, "w") as f:
        json.dump(ob, f, indent=2)
