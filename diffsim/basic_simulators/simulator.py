"""
Simulate trial-level data from a diffusion model with a secondary SDT judgment.

Each trial samples an evidence strength (drift), a starting point and a
non-decision time, integrates a fixed-step random walk until it leaves
``(0, a)``, and derives a secondary binary response by comparing the sampled
evidence against the criterion belonging to the primary response.

Output columns, in order:

- ``reaction_time``: non-decision time + number of steps * ``delta_t``
- ``primary_response``: 1 if the upper boundary was reached, else 0
- ``secondary_response``: the SDT judgment (0 / 1)

Row ``i`` always belongs to trial ``i``, for serial and parallel runs alike.
"""

import logging
from numbers import Integral

import numpy as np
import pandas as pd

from diffsim.basic_simulators.normalize import (
    DEFAULT_CRIT,
    DEFAULT_DELTA_T,
    DEFAULT_TERMINATION_RISK_STEPS,
    check_termination_risk,
    normalize_parameters,
    validate_n_trials,
    validate_parameters,
)
from diffsim.basic_simulators.rng import next_base_seed
from diffsim.exceptions import ValidationError
from diffsim.parallel_backends.partitioned import (
    make_range_task,
    resolve_n_threads,
    run_parallel,
    run_serial,
)
from diffsim.support_utils.utils import COLUMNS

logger = logging.getLogger(__name__)

RETURN_FORMATS = ("dataframe", "array", "dict")


def _validate_max_steps(max_steps):
    if max_steps is None:
        return None
    if isinstance(max_steps, bool) or not isinstance(max_steps, Integral):
        raise ValidationError(f"max_steps must be an integer or None, got {max_steps!r}")
    if max_steps < 0:
        raise ValidationError(f"max_steps must be >= 0, got {max_steps}")
    return int(max_steps)


def simulate(
    n_trials: int,
    a: float,
    v: float,
    t0: float,
    z: float,
    sz: float = 0.0,
    sv: float = 0.0,
    st0: float = 0.0,
    s: float = 1.0,
    crit=DEFAULT_CRIT,
    *,
    delta_t: float = DEFAULT_DELTA_T,
    ndt_convention: str = "onset",
    n_threads: int | None = None,
    random_state: int | None = None,
    max_steps: int | None = None,
    termination_risk_steps: float = DEFAULT_TERMINATION_RISK_STEPS,
    return_format: str = "dataframe",
):
    """Simulate ``n_trials`` trials of the diffusion model with an SDT judgment.

    Parameters
    ----------
    n_trials : int
        Number of trials (> 0).
    a : float
        Boundary separation (> 0).
    v : float
        Mean drift rate per second.
    t0 : float
        Non-decision time (>= 0).
    z : float
        Relative starting point in (0, 1).
    sz, sv, st0 : float
        Trial-to-trial variability of starting point, drift and non-decision
        time. Zero gives a point mass.
    s : float
        Diffusion coefficient (> 0).
    crit : sequence of two floats
        SDT criteria after an upper and after a lower primary response.
    delta_t : float
        Integration time step in seconds.
    ndt_convention : str
        ``"onset"`` (``[t0, t0 + st0]``) or ``"centered"``
        (``[t0 - st0/2, t0 + st0/2]``).
    n_threads : int or None
        Number of partitions / worker threads. ``1`` runs serially. ``None``
        reads ``DIFFSIM_NUM_THREADS`` and otherwise uses the CPU count.
    random_state : int or None
        Base seed for this call. ``None`` draws it from the process-wide
        stream (see :func:`diffsim.set_seed`).
    max_steps : int or None
        Optional limit on integration steps per trial. ``None`` = no limit.
    termination_risk_steps : float
        Expected step count above which a ``NonTerminationRisk`` warning is
        emitted before simulating.
    return_format : str
        ``"dataframe"``, ``"array"`` (``(n_trials, 3)`` float64) or ``"dict"``
        (``rts``, ``choices``, ``secondary``, ``metadata``).

    Raises
    ------
    ValidationError
        For invalid parameters; raised before any sampling.
    """
    n_trials = validate_n_trials(n_trials)
    params = validate_parameters(a, v, t0, z, sz=sz, sv=sv, st0=st0, s=s, crit=crit)
    dists = normalize_parameters(params, delta_t=delta_t, ndt_convention=ndt_convention)
    max_steps = _validate_max_steps(max_steps)
    if return_format not in RETURN_FORMATS:
        raise ValidationError(
            f"Unknown return_format '{return_format}'. Available: {list(RETURN_FORMATS)}"
        )
    n_threads = resolve_n_threads(n_threads)
    n_partitions = min(n_threads, n_trials)

    base_seed = next_base_seed(random_state)
    logger.debug(
        "Simulating %d trials with base seed %d on %d partition(s)",
        n_trials,
        base_seed,
        n_partitions,
    )
    check_termination_risk(dists, threshold_steps=termination_risk_steps)

    out = np.zeros((n_trials, 3), dtype=np.float64)
    task = make_range_task(dists, base_seed, out, max_steps=max_steps)
    if n_partitions == 1:
        n_truncated = run_serial(task, n_trials)
    else:
        n_truncated = run_parallel(task, n_trials, n_partitions)

    if n_truncated:
        logger.warning(
            "%d of %d trials stopped at max_steps=%d before reaching a boundary",
            n_truncated,
            n_trials,
            max_steps,
        )

    if return_format == "array":
        return out

    if return_format == "dict":
        metadata = {
            "simulator": "ddm_sdt",
            "possible_choices": [0, 1],
            "n_trials": n_trials,
            "n_partitions": n_partitions,
            "base_seed": base_seed,
            "max_steps": max_steps,
            "n_truncated": int(n_truncated),
            "t0_min": dists.t0_min,
            **dists.as_dict(),
        }
        return {
            "rts": out[:, 0].copy(),
            "choices": out[:, 1].astype(np.int64),
            "secondary": out[:, 2].astype(np.int64),
            "metadata": metadata,
        }

    frame = pd.DataFrame(out, columns=COLUMNS)
    frame["primary_response"] = frame["primary_response"].astype(np.int64)
    frame["secondary_response"] = frame["secondary_response"].astype(np.int64)
    frame.index.name = "trial"
    return frame
