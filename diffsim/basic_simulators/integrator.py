"""
Fixed-step random-walk integration between two absorbing boundaries.

The accumulator starts at the sampled starting position and moves by
``drift + noise_sd * N(0, 1)`` per step while it lies strictly inside
``(0, a)``. The walk stops at the first step at which the position reaches
or leaves a boundary; the upper boundary counts as reached when the final
position is ``>= a``.

There is no built-in step limit. With near-zero drift and small noise a
walk can run for an extremely long time (see ``NonTerminationRisk``);
callers needing bounded latency pass ``max_steps``.
"""

import numpy as np
from numba import njit

from diffsim.basic_simulators.rng import init_stream, random_gaussian

UPPER = 1
LOWER = 0
NO_STEP_LIMIT = -1


@njit(cache=True, fastmath=True, nogil=True)
def integrate(start, drift, noise_sd, a, max_steps, s0, s1):
    """Run one random walk.

    Returns
    -------
    tuple
        ``(n_steps, response, final_position, s0, s1)`` where ``response``
        is ``UPPER`` if the final position is ``>= a`` and ``LOWER`` otherwise.
    """
    pos = start
    n_steps = 0
    while pos < a and pos > 0:
        if max_steps >= 0 and n_steps >= max_steps:
            break
        g, s0, s1 = random_gaussian(s0, s1)
        pos += drift + noise_sd * g
        n_steps += 1

    response = UPPER if pos >= a else LOWER
    return n_steps, response, pos, s0, s1


@njit(cache=True, nogil=True)
def _walk_kernel(start, drift, noise_sd, a, max_steps, seed, partition):
    s0, s1 = init_stream(seed, partition)
    n_steps, response, pos, s0, s1 = integrate(
        start, drift, noise_sd, a, max_steps, s0, s1
    )
    return n_steps, response, pos


def random_walk(
    start: float,
    drift: float,
    noise_sd: float,
    a: float,
    seed: int,
    partition: int = 0,
    max_steps: int | None = None,
) -> tuple[int, int, float]:
    """Run a single random walk on its own stream.

    ``drift`` and ``noise_sd`` are per-step quantities.

    Returns
    -------
    tuple[int, int, float]
        Number of steps, response (``UPPER`` or ``LOWER``) and final position.
    """
    limit = NO_STEP_LIMIT if max_steps is None else int(max_steps)
    n_steps, response, pos = _walk_kernel(
        float(start),
        float(drift),
        float(noise_sd),
        float(a),
        np.int64(limit),
        np.uint64(seed),
        partition,
    )
    return int(n_steps), int(response), float(pos)
