#!/usr/bin/env python3
"""
Run the Galton board, in a window or headless.

Usage:
    python demonstrate.py                          # interactive window
    python demonstrate.py --headless --balls 300   # print bucket counts
    python demonstrate.py --scene scene.json --headless --plot hist.png
"""

import argparse
import json
import logging
import sys

import analysis
import config
import engine
import spool


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Galton board simulation")
    parser.add_argument("--scene", type=str, help="Path to a saved scene JSON file")
    parser.add_argument("--rows", type=int, help="Number of peg rows")
    parser.add_argument("--buckets", type=int, help="Number of buckets")
    parser.add_argument("--balls", type=int, help="Total balls (cycles the colour palette)")
    parser.add_argument("--width", type=int, help="Canvas width")
    parser.add_argument("--height", type=int, help="Canvas height")
    parser.add_argument("--seed", type=int, help="Seed for the spawn jitter")
    parser.add_argument("--headless", action="store_true", help="Run without a window")
    parser.add_argument("--frames", type=int, default=6000, help="Frame limit when headless")
    parser.add_argument("--plot", type=str, help="Save a histogram to this path")
    parser.add_argument("--save-scene", type=str, help="Write the scene to this JSON file")
    return parser.parse_args(argv)


def build_scene(args):
    """Returns (c, sim_config, queue) from the scene file and the command line."""
    if args.scene:
        c, sim_config, definitions = config.load_config(args.scene)
        queue = spool.enqueue(definitions)
    else:
        c = config.get_config()
        sim_config = config.SimulationConfig(**c["simulation"])
        definitions = []
        queue = None

    overrides = {}
    if args.rows is not None:
        overrides["row_count"] = args.rows
    if args.buckets is not None:
        overrides["bucket_count"] = args.buckets
    if overrides:
        sim_config = config.sanitize_config(
            config.SimulationConfig(**{**c["simulation"], **overrides})
        )
    if args.balls is not None or queue is None:
        total = args.balls if args.balls is not None else c["default_ball_count"]
        queue = config.cycle_pattern(config.DEFAULT_COLORS, total)
    if args.width is not None:
        c["screen_size"]["width"] = args.width
    if args.height is not None:
        c["screen_size"]["height"] = args.height

    if args.save_scene:
        if not definitions:
            definitions = [
                config.BallDefinition(color, queue.count(color))
                for color in config.DEFAULT_COLORS
                if color in queue
            ]
        config.save_config(args.save_scene, sim_config, definitions, c)
        print(f"Saved scene: {args.save_scene}")

    return c, sim_config, queue


def run_headless(c, sim_config, queue, args):
    print(f"\n{'=' * 60}")
    print(f"GALTON BOARD: {sim_config.row_count} rows, {sim_config.bucket_count} buckets, "
          f"{len(queue)} balls")
    print(f"{'=' * 60}")

    sim = engine.Simulation(c=c, sim_config=sim_config, seed=args.seed)
    data = engine.run_simulation(queue=queue, max_frames=args.frames, sim=sim)
    counts = analysis.bin_counts(data["ball_position"], data["layout"])
    analysis.print_counts(counts, sim.labels)

    result = analysis.compare_to_binomial(counts)
    print(f"\nFrames: {data['frames']}  Settled: {'yes' if data['completed'] else 'no'}")
    print(f"Chi-square vs binomial: {result['statistic']:.2f} "
          f"(dof={result['dof']}, p={result['p_value']:.3f})")

    if args.plot:
        analysis.plot_histogram(counts, sim.labels, path=args.plot)
        print(f"Saved histogram: {args.plot}")
    return 0 if data["completed"] else 2


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)

    try:
        c, sim_config, queue = build_scene(args)
    except (OSError, json.JSONDecodeError, KeyError, ValueError) as e:
        print(f"Error: could not load scene {args.scene}: {e}")
        return 1

    if args.headless:
        return run_headless(c, sim_config, queue, args)

    import visual

    sim = engine.Simulation(c=c, sim_config=sim_config, seed=args.seed)
    visual.visualize(sim, queue)
    return 0


if __name__ == "__main__":
    sys.exit(main())
