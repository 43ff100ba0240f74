"""Secondary signal-detection judgment derived from the sampled evidence."""

import numpy as np
from numba import njit

from diffsim.basic_simulators.integrator import UPPER


@njit(cache=True, fastmath=True, nogil=True)
def classify_sdt(evidence, response, crit_upper, crit_lower):
    """Return 1 if the evidence exceeds the criterion for the given response.

    ``crit_upper`` applies after an upper ("old") primary response and
    ``crit_lower`` after a lower one.
    """
    if response == UPPER:
        return 1 if evidence > crit_upper else 0
    return 1 if evidence > crit_lower else 0


def classify_sdt_array(evidence, responses, crit) -> np.ndarray:
    """Vectorized :func:`classify_sdt` over arrays of trials."""
    evidence = np.asarray(evidence, dtype=np.float64)
    said_upper = np.asarray(responses) == UPPER
    return np.where(
        said_upper, evidence > crit[0], evidence > crit[1]
    ).astype(np.int64)
