#!/usr/bin/env python3
"""
Bin distribution analysis for the Galton board.

Counts where balls ended up and compares the counts with the binomial
distribution an ideal board would produce.
"""

import logging

import numpy as np
import scipy.stats as st
from matplotlib import pyplot as plt

import config
import engine

logger = logging.getLogger(__name__)


def bin_index(x, layout):
    """Bucket under x, clamped to the edge buckets."""
    spacing = layout.horizontal_spacing_x
    if spacing <= 0:
        return 0
    idx = int(x // spacing)
    return min(max(idx, 0), layout.bucket_count - 1)


def _xy(item):
    if isinstance(item, dict):
        return item["x"], item["y"]
    if hasattr(item, "position"):
        return item.position.x, item.position.y
    if hasattr(item, "x"):
        return item.x, item.y
    return item[0], item[1]


def bin_counts(positions, layout):
    """
    Count balls per bucket. `positions` may hold (x, y) pairs, {"x", "y"} dicts,
    live balls or snapshot BallStates. Balls above the bin band are not counted.
    """
    counts = np.zeros(layout.bucket_count, dtype=int)
    for item in positions:
        x, y = _xy(item)
        if y > layout.bin_start_y:
            counts[bin_index(x, layout)] += 1
    return counts


def counts_by_color(positions, color_ids, layout):
    result = {}
    for item, color_id in zip(positions, color_ids):
        x, y = _xy(item)
        if y <= layout.bin_start_y:
            continue
        if color_id not in result:
            result[color_id] = np.zeros(layout.bucket_count, dtype=int)
        result[color_id][bin_index(x, layout)] += 1
    return result


def expected_counts(total, bucket_count):
    """Binomial(bucket_count - 1, 0.5) expectation scaled to `total` balls."""
    k = np.arange(bucket_count)
    return st.binom.pmf(k, bucket_count - 1, 0.5) * total


def _pool_small_bins(observed, expected, min_expected=5.0):
    """Merge neighbouring bins, left to right, until each group expects `min_expected`."""
    obs_groups, exp_groups = [], []
    acc_obs, acc_exp = 0.0, 0.0
    for o, e in zip(observed, expected):
        acc_obs += o
        acc_exp += e
        if acc_exp >= min_expected:
            obs_groups.append(acc_obs)
            exp_groups.append(acc_exp)
            acc_obs, acc_exp = 0.0, 0.0
    if acc_exp > 0 or acc_obs > 0:
        if exp_groups:
            obs_groups[-1] += acc_obs
            exp_groups[-1] += acc_exp
        else:
            obs_groups.append(acc_obs)
            exp_groups.append(acc_exp)
    return np.array(obs_groups), np.array(exp_groups)


def compare_to_binomial(counts, min_expected=5.0):
    """
    Chi-square goodness of fit of `counts` against the binomial expectation.
    Returns a dict with statistic, p_value, dof and the pooled observed/expected.
    """
    counts = np.asarray(counts, dtype=float)
    total = counts.sum()
    expected = expected_counts(total, len(counts))
    observed, pooled_expected = _pool_small_bins(counts, expected, min_expected)

    if total == 0 or len(observed) < 2:
        return {
            "statistic": float("nan"),
            "p_value": float("nan"),
            "dof": 0,
            "observed": observed,
            "expected": pooled_expected,
        }

    statistic, p_value = st.chisquare(observed, pooled_expected)
    return {
        "statistic": float(statistic),
        "p_value": float(p_value),
        "dof": len(observed) - 1,
        "observed": observed,
        "expected": pooled_expected,
    }


def plot_histogram(counts, labels=None, path=None):
    """Bar chart of observed counts with the binomial expectation overlaid."""
    counts = np.asarray(counts)
    k = np.arange(len(counts))
    if labels is None:
        labels = config.default_bucket_labels(len(counts))

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.bar(k, counts, color="#3b82f6", alpha=0.7, label="observed")
    ax.plot(k, expected_counts(counts.sum(), len(counts)), "o-", color="#ef4444",
            label="binomial")
    ax.set_xticks(k)
    ax.set_xticklabels(labels)
    ax.set_xlabel("Bucket")
    ax.set_ylabel("Number of Balls")
    ax.grid(True, axis="y")
    ax.legend()

    if path is not None:
        fig.savefig(path)
        plt.close(fig)
        logger.info("Saved histogram: %s", path)
    return fig


def simulate_counts(sim_config=None, queue=None, c=None, seed=None, **kwargs):
    """Run one headless simulation and return (counts, run data)."""
    data = engine.run_simulation(sim_config, queue, c, seed=seed, **kwargs)
    return bin_counts(data["ball_position"], data["layout"]), data


def print_counts(counts, labels=None, title="Bucket counts"):
    if labels is None:
        labels = config.default_bucket_labels(len(counts))
    expected = expected_counts(np.sum(counts), len(counts))
    print(f"\n{title}")
    print("=" * 40)
    print("Bucket | Observed | Expected")
    print("-" * 40)
    for label, obs, exp in zip(labels, counts, expected):
        print(f"{label:>6} | {obs:8d} | {exp:8.1f}")


def main():
    logging.basicConfig(level=logging.INFO, format=config.LOG_FORMAT)
    print("Galton Board Distribution Analysis")
    print("=" * 50)

    sim_config = config.SimulationConfig(row_count=8, bucket_count=9)
    counts, data = simulate_counts(sim_config, seed=0)
    print_counts(counts)

    result = compare_to_binomial(counts)
    print(f"\nChi-square: {result['statistic']:.2f} (dof={result['dof']}), "
          f"p={result['p_value']:.3f}")
    if not data["completed"]:
        print("Warning: not every ball settled")


if __name__ == "__main__":
    main()
