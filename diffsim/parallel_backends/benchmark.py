"""
Benchmark tools for the execution strategies.

Times the serial strategy against partitioned parallel runs with different
worker counts.

Usage:
    python -m diffsim.parallel_backends.benchmark --n-trials 100000 --n-threads 1 2 4

    Or from Python:
        from diffsim.parallel_backends.benchmark import benchmark_all, compare_strategies

        results = benchmark_all(n_trials=100_000, n_threads=[1, 2, 4])
        compare_strategies(results)
"""

import time
from dataclasses import dataclass

import numpy as np

from diffsim.basic_simulators.simulator import simulate

DEFAULT_THETA = {"a": 1.0, "v": 0.5, "t0": 0.3, "z": 0.5, "sv": 0.5, "sz": 0.1}


@dataclass
class BenchmarkResult:
    """Result of a single benchmark run."""

    strategy: str
    n_trials: int
    n_threads: int
    time_seconds: float
    trials_per_second: float

    def __repr__(self):
        return (
            f"BenchmarkResult(strategy='{self.strategy}', "
            f"threads={self.n_threads}, "
            f"time={self.time_seconds:.3f}s, "
            f"throughput={self.trials_per_second / 1e3:.1f}K trials/s)"
        )


def benchmark_strategy(
    n_trials: int,
    n_threads: int,
    theta: dict | None = None,
    n_runs: int = 3,
    random_state: int = 42,
) -> BenchmarkResult:
    """Time ``simulate`` with a fixed worker count (median of ``n_runs``)."""
    theta = theta or DEFAULT_THETA

    # Warmup (triggers JIT compilation)
    simulate(min(100, n_trials), **theta, n_threads=n_threads, random_state=random_state)

    times = []
    for _ in range(n_runs):
        start = time.perf_counter()
        simulate(
            n_trials,
            **theta,
            n_threads=n_threads,
            random_state=random_state,
            return_format="array",
        )
        times.append(time.perf_counter() - start)

    median_time = float(np.median(times))
    return BenchmarkResult(
        strategy="serial" if n_threads == 1 else "parallel",
        n_trials=n_trials,
        n_threads=n_threads,
        time_seconds=median_time,
        trials_per_second=n_trials / median_time if median_time > 0 else float("inf"),
    )


def benchmark_all(
    n_trials: int = 100_000,
    n_threads: list[int] = (1, 2, 4),
    theta: dict | None = None,
    n_runs: int = 3,
    random_state: int = 42,
) -> dict[int, BenchmarkResult]:
    """Benchmark every requested worker count.

    Returns
    -------
    dict[int, BenchmarkResult]
        Results keyed by worker count.
    """
    print(f"Benchmarking diffusion / SDT simulator: {n_trials:,} trials")
    print("-" * 60)

    results = {}
    for threads in n_threads:
        print(f"Benchmarking: n_threads={threads}...", end=" ", flush=True)
        results[threads] = benchmark_strategy(
            n_trials, threads, theta=theta, n_runs=n_runs, random_state=random_state
        )
        print("✓")

    print("-" * 60)
    return results


def compare_strategies(results: dict[int, BenchmarkResult]) -> str:
    """
    Generate a comparison table from benchmark results.

    Speedups are relative to the serial run when one is present.
    """
    lines = []
    lines.append("\n" + "=" * 70)
    lines.append("BENCHMARK RESULTS")
    lines.append("=" * 70)
    lines.append("")
    lines.append(
        f"{'Strategy':<12} {'Threads':>8} {'Time (s)':>12} {'Trials/s':>15} {'Speedup':>10}"
    )
    lines.append("-" * 70)

    baseline_time = results[1].time_seconds if 1 in results else None

    for threads in sorted(results):
        result = results[threads]
        speedup = ""
        if baseline_time is not None and result.time_seconds > 0:
            speedup = f"{baseline_time / result.time_seconds:.2f}x"

        lines.append(
            f"{result.strategy:<12} "
            f"{result.n_threads:>8} "
            f"{result.time_seconds:>12.4f} "
            f"{result.trials_per_second:>15,.0f} "
            f"{speedup:>10}"
        )

    lines.append("-" * 70)
    lines.append("")

    output = "\n".join(lines)
    print(output)
    return output


def main():
    """CLI entry point for benchmarking."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Benchmark serial and parallel diffusion / SDT simulation"
    )
    parser.add_argument(
        "--n-trials",
        type=int,
        default=100_000,
        help="Number of trials (default: 100000)",
    )
    parser.add_argument(
        "--n-threads",
        type=int,
        nargs="+",
        default=[1, 2, 4],
        help="Worker counts to compare (default: 1 2 4)",
    )
    parser.add_argument(
        "--n-runs", type=int, default=3, help="Number of benchmark runs (default: 3)"
    )
    parser.add_argument(
        "--seed", type=int, default=42, help="Random seed (default: 42)"
    )

    args = parser.parse_args()

    results = benchmark_all(
        n_trials=args.n_trials,
        n_threads=args.n_threads,
        n_runs=args.n_runs,
        random_state=args.seed,
    )

    compare_strategies(results)


if __name__ == "__main__":
    main()
