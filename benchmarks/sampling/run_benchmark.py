"""Benchmark comparing sampling structures and pairing modes.

This script times batch draws with the cumulative sampler, alias tables and
stochastic universal sampling, and full mate pair generation in each
distinctness mode, across population sizes.

Usage:
    uv run python benchmarks/sampling/run_benchmark.py
"""

import json
import logging
import time
from collections import defaultdict
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import numpy as np

from mate_selection import PairGenerator, RouletteWheel, StochasticUniversalSampling, Tournament

# Configure logging
logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


# Experiment parameters
POP_SIZES = [100, 10_000, 1_000_000]
N_DRAWS = 200_000
N_PAIRS = 10_000
N_WORKERS = 4
N_RUNS = 5
SEEDS = list(range(N_RUNS))


def time_draws(kind: str) -> Callable[[np.ndarray, int], float]:
    """Build a runner timing N_DRAWS roulette draws with one sampling structure.

    The round is prepared outside the timed section, matching its reuse
    across a generation.
    """

    def run(scores: np.ndarray, seed: int) -> float:
        rng = np.random.default_rng(seed)
        if kind == "sus":
            round_ = StochasticUniversalSampling().prepare(scores)
        else:
            round_ = RouletteWheel().prepare(scores, sampler=kind)
        start_time = time.perf_counter()
        round_.select(N_DRAWS, rng)
        return time.perf_counter() - start_time

    return run


def time_pairs(distinctness: str) -> Callable[[np.ndarray, int], float]:
    """Build a runner timing generation of N_PAIRS tournament pairs."""

    def run(scores: np.ndarray, seed: int) -> float:
        rng = np.random.default_rng(seed)
        generator = PairGenerator(Tournament(size=2), distinctness=distinctness)
        count = min(N_PAIRS, scores.size // 2)
        start_time = time.perf_counter()
        generator.pairs(scores, rng, count)
        return time.perf_counter() - start_time

    return run


def time_parallel_pairs(scores: np.ndarray, seed: int) -> float:
    """Time N_PAIRS roulette pairs split across N_WORKERS threads."""
    generator = PairGenerator(RouletteWheel())
    start_time = time.perf_counter()
    generator.parallel_pairs(scores, seed, N_PAIRS, N_WORKERS)
    return time.perf_counter() - start_time


RUNNERS: dict[str, Callable[[np.ndarray, int], float]] = {
    "cumulative": time_draws("cumulative"),
    "alias": time_draws("alias"),
    "sus": time_draws("sus"),
    "pairs-within": time_pairs("distinct_within_pair"),
    "pairs-across": time_pairs("distinct_across_generation"),
    "pairs-parallel": time_parallel_pairs,
}


def run_benchmark() -> dict:
    """Run the full benchmark suite.

    Returns:
        Dictionary containing metadata and results.
    """
    metadata = {
        "timestamp": datetime.now(UTC).isoformat(),
        "parameters": {
            "pop_sizes": POP_SIZES,
            "n_draws": N_DRAWS,
            "n_pairs": N_PAIRS,
            "n_workers": N_WORKERS,
            "n_runs": N_RUNS,
            "seeds": SEEDS,
        },
    }

    results = []
    total_runs = len(POP_SIZES) * len(RUNNERS) * N_RUNS
    current_run = 0

    for pop_size in POP_SIZES:
        scores = np.random.default_rng(pop_size).exponential(size=pop_size)
        for name, runner in RUNNERS.items():
            for seed in SEEDS:
                current_run += 1
                logger.info(f"Running [{current_run}/{total_runs}]: {name} with n={pop_size} (seed={seed})")

                elapsed = runner(scores, seed)
                results.append({"method": name, "pop_size": pop_size, "seed": seed, "time_seconds": elapsed})

                logger.info(f"  Time: {elapsed * 1e3:.2f}ms")

    return {"metadata": metadata, "results": results}


def print_summary(results: dict) -> None:
    """Print mean milliseconds per run for each method and population size.

    Args:
        results: The benchmark results dictionary.
    """
    data = defaultdict(lambda: defaultdict(list))
    for r in results["results"]:
        data[r["method"]][r["pop_size"]].append(r["time_seconds"])

    print("\n" + "=" * 70)
    print("BENCHMARK SUMMARY (mean milliseconds per run)")
    print("=" * 70)
    print(f"\nParameters: draws={N_DRAWS}, pairs={N_PAIRS}, runs={N_RUNS}")
    print()

    header = f"{'Method':<16}"
    for pop_size in POP_SIZES:
        header += f"{'n=' + str(pop_size):>16}"
    print(header)
    print("-" * 64)

    for method in RUNNERS:
        row = f"{method:<16}"
        for pop_size in POP_SIZES:
            times = data[method][pop_size]
            row += f"{np.mean(times) * 1e3:>16.2f}" if times else f"{'N/A':>16}"
        print(row)

    print()


def main() -> None:
    """Main entry point for the benchmark."""
    logger.info("Starting sampling benchmark suite")
    logger.info(f"Parameters: pop_sizes={POP_SIZES}, draws={N_DRAWS}, pairs={N_PAIRS}, runs={N_RUNS}")

    results = run_benchmark()

    output_path = Path(__file__).parent / "results" / "benchmark_results.json"
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "w") as f:
        json.dump(results, f, indent=2)

    logger.info(f"Results saved to {output_path}")

    print_summary(results)


if __name__ == "__main__":
    main()
