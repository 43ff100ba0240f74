"""
Serial and partitioned thread-parallel execution of trial ranges.

The unit of work is a range task: ``task(begin, end, partition)`` simulates
trials ``begin..end-1`` on the stream keyed by ``(base_seed, partition)`` and
writes rows ``begin..end-1`` of a shared output buffer. Ranges handed to
different workers never overlap, so the buffer needs no locking and each row
is written exactly once.

The compiled kernel releases the GIL (``nogil=True``), so a
``ThreadPoolExecutor`` runs partitions truly in parallel.
"""

import logging
import os
import warnings
from concurrent.futures import ThreadPoolExecutor
from numbers import Integral

import numpy as np
from numba import njit

from diffsim.basic_simulators.integrator import NO_STEP_LIMIT, integrate
from diffsim.basic_simulators.normalize import NormalizedDistributions
from diffsim.basic_simulators.rng import init_stream
from diffsim.basic_simulators.sdt import classify_sdt
from diffsim.basic_simulators.trial_sampler import pack_distributions, sample_trial
from diffsim.config import NUM_THREADS_ENV_VAR
from diffsim.exceptions import ConcurrencyConfigurationError

logger = logging.getLogger(__name__)

RT_COL = 0
PRIMARY_COL = 1
SECONDARY_COL = 2


# ============================================================================
# Range kernel
# ============================================================================


@njit(cache=True, fastmath=True, nogil=True)
def simulate_range(
    begin,
    end,
    partition,
    seed,
    kinds,
    locs,
    scales,
    a,
    delta_t,
    noise_sd,
    crit_upper,
    crit_lower,
    max_steps,
    out,
):
    """Simulate trials ``begin..end-1`` into rows of ``out``.

    Returns the number of trials stopped by ``max_steps`` before reaching a
    boundary.
    """
    s0, s1 = init_stream(seed, partition)
    n_truncated = 0

    for i in range(begin, end):
        evidence, start, ndt, s0, s1 = sample_trial(kinds, locs, scales, s0, s1)
        n_steps, response, pos, s0, s1 = integrate(
            start, evidence * delta_t, noise_sd, a, max_steps, s0, s1
        )
        if pos > 0 and pos < a:
            n_truncated += 1

        out[i, RT_COL] = ndt + n_steps * delta_t
        out[i, PRIMARY_COL] = response
        out[i, SECONDARY_COL] = classify_sdt(evidence, response, crit_upper, crit_lower)

    return n_truncated


def make_range_task(
    dists: NormalizedDistributions,
    base_seed: int,
    out: np.ndarray,
    max_steps: int | None = None,
):
    """Bind everything but the range and partition index of a range task."""
    kinds, locs, scales = pack_distributions(dists)
    seed = np.uint64(base_seed)
    limit = np.int64(NO_STEP_LIMIT if max_steps is None else max_steps)
    crit_upper, crit_lower = dists.crit

    def task(begin: int, end: int, partition: int) -> int:
        return simulate_range(
            begin,
            end,
            partition,
            seed,
            kinds,
            locs,
            scales,
            dists.a,
            dists.delta_t,
            dists.noise_sd,
            crit_upper,
            crit_lower,
            limit,
            out,
        )

    return task


# ============================================================================
# Worker configuration and partitioning
# ============================================================================


def _fallback(value, source: str) -> int:
    message = (
        f"Invalid n_threads={value!r} from {source}; falling back to a single worker."
    )
    logger.warning(message)
    warnings.warn(message, ConcurrencyConfigurationError, stacklevel=3)
    return 1


def resolve_n_threads(n_threads=None) -> int:
    """Return the number of workers to use.

    Order of precedence: the explicit argument, the ``DIFFSIM_NUM_THREADS``
    environment variable, then ``os.cpu_count()``. Invalid values (zero,
    negative, non-integer) fall back to one worker with a
    ``ConcurrencyConfigurationError`` warning.
    """
    if n_threads is not None:
        if isinstance(n_threads, bool) or not isinstance(n_threads, Integral):
            return _fallback(n_threads, "argument")
        if n_threads < 1:
            return _fallback(n_threads, "argument")
        return int(n_threads)

    env_value = os.environ.get(NUM_THREADS_ENV_VAR)
    if env_value is not None and env_value.strip():
        try:
            parsed = int(env_value)
        except ValueError:
            return _fallback(env_value, NUM_THREADS_ENV_VAR)
        if parsed < 1:
            return _fallback(env_value, NUM_THREADS_ENV_VAR)
        return parsed

    return os.cpu_count() or 1


def partition_ranges(n_trials: int, n_partitions: int) -> list[tuple[int, int]]:
    """Split ``[0, n_trials)`` into contiguous ranges of near-equal size.

    Sizes differ by at most one and there are never more ranges than trials.
    """
    n_partitions = max(1, min(n_partitions, n_trials))
    base, extra = divmod(n_trials, n_partitions)
    ranges = []
    begin = 0
    for k in range(n_partitions):
        end = begin + base + (1 if k < extra else 0)
        ranges.append((begin, end))
        begin = end
    return ranges


# ============================================================================
# Strategies
# ============================================================================


def run_serial(task, n_trials: int) -> int:
    """Run all trials in one loop on the stream of partition 0."""
    logger.debug("Serial run over %d trials", n_trials)
    return task(0, n_trials, 0)


def run_parallel(task, n_trials: int, n_threads: int) -> int:
    """Run contiguous partitions of the trials on a thread pool.

    Partition ``k`` always uses stream ``k``, so the output only depends on
    the base seed and the number of partitions, not on scheduling. Blocks
    until every partition has finished; the first worker exception is
    re-raised.
    """
    ranges = partition_ranges(n_trials, n_threads)
    logger.debug("Parallel run over %d trials in partitions %s", n_trials, ranges)
    with ThreadPoolExecutor(
        max_workers=len(ranges), thread_name_prefix="diffsim"
    ) as executor:
        futures = [
            executor.submit(task, begin, end, partition)
            for partition, (begin, end) in enumerate(ranges)
        ]
        return sum(future.result() for future in futures)
