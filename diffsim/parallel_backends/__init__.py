"""
Execution strategies for the diffusion / SDT simulator.

Trials are simulated by a compiled range task (Numba, GIL released) that
either runs once over all trials (serial) or once per contiguous partition
on a thread pool (parallel). Each partition owns its random stream and its
output rows.

Example usage:

    from diffsim.parallel_backends import partition_ranges

    partition_ranges(10, 3)  # [(0, 4), (4, 7), (7, 10)]
"""

from diffsim.parallel_backends.partitioned import (
    partition_ranges,
    resolve_n_threads,
    run_parallel,
    run_serial,
)

__all__ = [
    "partition_ranges",
    "resolve_n_threads",
    "run_parallel",
    "run_serial",
]
