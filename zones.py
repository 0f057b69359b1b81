"""
Zone-adaptive material tuning.

A single restitution value cannot serve the whole board: bouncy balls ricochet in
the funnel before lining up, dead balls slide through the pegs without dispersing.
Each tick every ball gets the restitution of the zone it is in:

- funnel (above funnel_exit_y) and bin (at or below bin_start_y): enclosed_restitution
- peg field (in between): the configured ball restitution

Friction is the configured ball friction everywhere and is re-applied every tick.
"""

FUNNEL = "funnel"
PEG_FIELD = "peg_field"
BIN = "bin"


def classify(y, layout):
    if y < layout.funnel_exit_y:
        return FUNNEL
    if y < layout.bin_start_y:
        return PEG_FIELD
    return BIN


def restitution_for(zone, sim_config, c):
    if zone == PEG_FIELD:
        return sim_config.ball_restitution
    return c["enclosed_restitution"]


def tune_balls(balls, layout, sim_config, c):
    """Rewrite restitution and friction of every live ball."""
    for ball in balls:
        zone = classify(ball.position.y, layout)
        ball.shape.elasticity = restitution_for(zone, sim_config, c)
        ball.shape.friction = sim_config.ball_friction


def occupancy(balls, layout):
    counts = {FUNNEL: 0, PEG_FIELD: 0, BIN: 0}
    for ball in balls:
        counts[classify(ball.position.y, layout)] += 1
    return counts
