"""Tests for the execution-strategy benchmark helpers."""

import pytest

from diffsim.parallel_backends.benchmark import (
    BenchmarkResult,
    benchmark_all,
    benchmark_strategy,
    compare_strategies,
)


def test_benchmark_strategy_reports_throughput():
    result = benchmark_strategy(n_trials=200, n_threads=1, n_runs=1)
    assert isinstance(result, BenchmarkResult)
    assert result.strategy == "serial"
    assert result.n_trials == 200
    assert result.time_seconds >= 0
    assert result.trials_per_second > 0


def test_benchmark_all_keys_by_thread_count(capsys):
    results = benchmark_all(n_trials=200, n_threads=[1, 2], n_runs=1)
    assert set(results) == {1, 2}
    assert results[2].strategy == "parallel"
    assert "Benchmarking" in capsys.readouterr().out


def test_compare_strategies_table():
    results = {
        1: BenchmarkResult("serial", 1000, 1, 0.2, 5000.0),
        4: BenchmarkResult("parallel", 1000, 4, 0.05, 20000.0),
    }
    table = compare_strategies(results)
    assert "BENCHMARK RESULTS" in table
    assert "4.00x" in table
    assert "1.00x" in table


def test_compare_strategies_without_serial_baseline():
    results = {2: BenchmarkResult("parallel", 1000, 2, 0.1, 10000.0)}
    table = compare_strategies(results)
    row = next(line for line in table.splitlines() if line.startswith("parallel"))
    assert not row.rstrip().endswith("x")


@pytest.mark.parametrize("threads", [1, 3])
def test_repr(threads):
    result = BenchmarkResult("serial", 10, threads, 0.5, 20.0)
    assert f"threads={threads}" in repr(result)
