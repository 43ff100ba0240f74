"""
Random number streams for the diffusion simulators.

Two layers are involved:

1. A process-wide ``numpy.random.Generator`` that is created at import with
   ``DEFAULT_SEED`` and only ever replaced through :func:`set_seed`. Every
   simulation call draws one ``base_seed`` from it, so reseeding makes the
   following calls reproducible.
2. Kernel streams used inside the compiled simulation loops. A stream is a
   xoroshiro128+ state (two ``uint64`` words) initialised with splitmix64 from
   ``(base_seed, partition)``. Different partition indices give decorrelated
   streams, which is what lets each worker own its stream without locking.

Kernel stream functions take and return the state explicitly, e.g.::

    s0, s1 = init_stream(np.uint64(123), 0)
    g, s0, s1 = random_gaussian(s0, s1)
"""

import logging
import threading
from numbers import Integral

import numpy as np
from numba import njit, uint64

from diffsim.exceptions import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_SEED = 42
MAX_SEED = 2**64 - 1

# ============================================================================
# Kernel streams (xoroshiro128+, splitmix64 seeding)
# ============================================================================


@njit(cache=True, fastmath=True, nogil=True)
def _rotl(x: uint64, k: int) -> uint64:
    """Rotate left helper for xoroshiro128+"""
    return (x << k) | (x >> (64 - k))


@njit(cache=True, fastmath=True, nogil=True)
def _splitmix64(z: uint64) -> uint64:
    z = (z ^ (z >> 30)) * np.uint64(0xBF58476D1CE4E5B9)
    z = (z ^ (z >> 27)) * np.uint64(0x94D049BB133111EB)
    return z ^ (z >> 31)


@njit(cache=True, fastmath=True, nogil=True)
def init_stream(seed: uint64, partition: int):
    """Initialize a stream state from a base seed and a partition index."""
    # Hash the seed before mixing in the partition so nearby keys stay unrelated
    s0 = _splitmix64(_splitmix64(seed) ^ np.uint64(partition))
    s1 = _splitmix64(s0 + np.uint64(0x9E3779B97F4A7C15))

    # xoroshiro must never sit in the all-zero state
    if s0 == 0 and s1 == 0:
        s0 = np.uint64(1)

    return s0, s1


@njit(cache=True, fastmath=True, nogil=True)
def _xoroshiro_next(s0: uint64, s1: uint64):
    """Generate next random uint64 using xoroshiro128+"""
    result = s0 + s1

    s1 ^= s0
    new_s0 = _rotl(s0, 24) ^ s1 ^ (s1 << 16)
    new_s1 = _rotl(s1, 37)

    return result, new_s0, new_s1


@njit(cache=True, fastmath=True, nogil=True)
def random_uniform(s0: uint64, s1: uint64):
    """Generate uniform random number in [0, 1)"""
    x, new_s0, new_s1 = _xoroshiro_next(s0, s1)
    # Use top 53 bits for double precision
    u = np.float64(x >> 11) * (1.0 / 9007199254740992.0)
    return u, new_s0, new_s1


@njit(cache=True, fastmath=True, nogil=True)
def random_gaussian(s0: uint64, s1: uint64):
    """Generate standard normal using Box-Muller"""
    u1, s0, s1 = random_uniform(s0, s1)
    while u1 <= 1e-300:
        u1, s0, s1 = random_uniform(s0, s1)
    u2, s0, s1 = random_uniform(s0, s1)

    g = np.sqrt(-2.0 * np.log(u1)) * np.cos(2.0 * np.pi * u2)
    return g, s0, s1


@njit(cache=True, nogil=True)
def draw_gaussians(seed: uint64, partition: int, n: int) -> np.ndarray:
    """Draw ``n`` standard normals from the stream ``(seed, partition)``."""
    out = np.empty(n, dtype=np.float64)
    s0, s1 = init_stream(seed, partition)
    for i in range(n):
        g, s0, s1 = random_gaussian(s0, s1)
        out[i] = g
    return out


@njit(cache=True, nogil=True)
def draw_uniforms(seed: uint64, partition: int, n: int) -> np.ndarray:
    """Draw ``n`` uniforms on [0, 1) from the stream ``(seed, partition)``."""
    out = np.empty(n, dtype=np.float64)
    s0, s1 = init_stream(seed, partition)
    for i in range(n):
        u, s0, s1 = random_uniform(s0, s1)
        out[i] = u
    return out


# ============================================================================
# Process-wide stream
# ============================================================================


def _check_seed(seed, name: str = "seed") -> int:
    if isinstance(seed, bool) or not isinstance(seed, Integral):
        raise ValidationError(f"{name} must be an integer, got {seed!r}")
    seed = int(seed)
    if not 0 <= seed <= MAX_SEED:
        raise ValidationError(f"{name} must lie in [0, 2**64 - 1], got {seed}")
    return seed


class GlobalStream:
    """Process-wide generator from which per-call base seeds are drawn.

    The generator is only replaced by :meth:`set_seed`. Simulation calls
    advance it by exactly one draw each and never reset it.
    """

    def __init__(self, seed: int = DEFAULT_SEED):
        self._lock = threading.Lock()
        self._seed = _check_seed(seed)
        self._generator = np.random.default_rng(self._seed)

    @property
    def seed(self) -> int:
        return self._seed

    def set_seed(self, seed: int) -> None:
        seed = _check_seed(seed)
        with self._lock:
            self._seed = seed
            self._generator = np.random.default_rng(seed)
        logger.debug("Global stream reseeded with %d", seed)

    def next_base_seed(self) -> int:
        with self._lock:
            return int(self._generator.integers(0, 2**63))


_GLOBAL_STREAM = GlobalStream(DEFAULT_SEED)


def set_seed(seed: int) -> None:
    """Reseed the process-wide stream.

    Affects every subsequent simulation call. Must not be called while a
    simulation is running in another thread.
    """
    _GLOBAL_STREAM.set_seed(seed)


def get_seed() -> int:
    """Return the seed last passed to :func:`set_seed` (or the default)."""
    return _GLOBAL_STREAM.seed


def next_base_seed(random_state: int | None = None) -> int:
    """Return the base seed for one simulation call.

    An explicit ``random_state`` is used as is and leaves the process-wide
    stream untouched.
    """
    if random_state is not None:
        return _check_seed(random_state, name="random_state")
    return _GLOBAL_STREAM.next_base_seed()
