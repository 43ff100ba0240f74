"""
Per-trial parameter sampling.

Each trial draws, in this order, an evidence strength from the drift
distribution, a starting position and a non-decision time. Point-mass
distributions return their value without consuming random numbers.

Distributions are passed to the kernels packed as three parallel arrays
(``kinds``, ``locs``, ``scales``) indexed by ``DRIFT``, ``START`` and ``NDT``.
"""

import numpy as np
from numba import njit

from diffsim.basic_simulators.normalize import NORMAL, UNIFORM, NormalizedDistributions
from diffsim.basic_simulators.rng import init_stream, random_gaussian, random_uniform

DRIFT = 0
START = 1
NDT = 2


def pack_distributions(dists: NormalizedDistributions):
    """Return ``(kinds, locs, scales)`` arrays for the compiled kernels."""
    packed = np.vstack([d.as_array() for d in (dists.drift, dists.start, dists.ndt)])
    kinds = packed[:, 0].astype(np.int64)
    locs = np.ascontiguousarray(packed[:, 1])
    scales = np.ascontiguousarray(packed[:, 2])
    return kinds, locs, scales


@njit(cache=True, fastmath=True, nogil=True)
def sample_from(kind, loc, scale, s0, s1):
    """Draw one value from a packed distribution."""
    if kind == NORMAL:
        g, s0, s1 = random_gaussian(s0, s1)
        return loc + scale * g, s0, s1
    if kind == UNIFORM:
        u, s0, s1 = random_uniform(s0, s1)
        return loc + scale * u, s0, s1
    return loc, s0, s1


@njit(cache=True, fastmath=True, nogil=True)
def sample_trial(kinds, locs, scales, s0, s1):
    """Draw evidence strength, starting position and non-decision time."""
    evidence, s0, s1 = sample_from(kinds[DRIFT], locs[DRIFT], scales[DRIFT], s0, s1)
    start, s0, s1 = sample_from(kinds[START], locs[START], scales[START], s0, s1)
    ndt, s0, s1 = sample_from(kinds[NDT], locs[NDT], scales[NDT], s0, s1)
    return evidence, start, ndt, s0, s1


@njit(cache=True, nogil=True)
def _sample_trials_kernel(kinds, locs, scales, seed, partition, out):
    s0, s1 = init_stream(seed, partition)
    for i in range(out.shape[0]):
        evidence, start, ndt, s0, s1 = sample_trial(kinds, locs, scales, s0, s1)
        out[i, DRIFT] = evidence
        out[i, START] = start
        out[i, NDT] = ndt


def sample_trials(
    dists: NormalizedDistributions, n_trials: int, seed: int, partition: int = 0
) -> np.ndarray:
    """Sample trial parameters without running the random walk.

    Returns
    -------
    np.ndarray
        Array of shape ``(n_trials, 3)`` with columns evidence strength,
        starting position and non-decision time.
    """
    kinds, locs, scales = pack_distributions(dists)
    out = np.empty((n_trials, 3), dtype=np.float64)
    _sample_trials_kernel(kinds, locs, scales, np.uint64(seed), partition, out)
    return out
