"""
Helper functions around simulated tables.

Functions
---------
expected_decision_time(a, v, z, s) -> float
    Mean first-passage time of a drift-diffusion between absorbing bounds.

as_frame(table) -> pd.DataFrame
    Coerce a simulator output (array, dict or DataFrame) to a DataFrame.

summarize(table) -> dict
    Response proportions and reaction-time moments of one simulated table.

compare_tables(table_a, table_b) -> dict
    Distributional comparison of two simulated tables.
"""  # noqa: D205, D404

import math

import numpy as np
import pandas as pd
from scipy import stats

COLUMNS = ["reaction_time", "primary_response", "secondary_response"]

# Below this |2 v a / s^2| the zero-drift formula is used
_SMALL_DRIFT = 1e-6


def expected_decision_time(a: float, v: float, z: float, s: float = 1.0) -> float:
    """Mean first-passage time of a Wiener process with drift.

    Arguments
    ---------
        a (float): Boundary separation (absorbing bounds at 0 and a).
        v (float): Drift rate.
        z (float): Absolute starting point in (0, a).
        s (float, optional): Diffusion coefficient. Defaults to 1.0.

    Returns
    -------
        float: Expected decision time, ``(a * P(upper) - z) / v`` or
        ``z (a - z) / s**2`` when the drift is negligible.
    """
    if z <= 0 or z >= a:
        return 0.0
    if v < 0:
        # Reflect so that the exponentials below cannot overflow
        return expected_decision_time(a, -v, a - z, s)

    k = 2.0 * v / (s * s)
    if k * a < _SMALL_DRIFT:
        return z * (a - z) / (s * s)

    p_upper = math.expm1(-k * z) / math.expm1(-k * a)
    return (a * p_upper - z) / v


def as_frame(table) -> pd.DataFrame:
    """Return a simulated table as a DataFrame with the standard columns."""
    if isinstance(table, pd.DataFrame):
        return table
    if isinstance(table, dict):
        return pd.DataFrame(
            {
                "reaction_time": np.asarray(table["rts"]).ravel(),
                "primary_response": np.asarray(table["choices"]).ravel(),
                "secondary_response": np.asarray(table["secondary"]).ravel(),
            }
        )
    frame = pd.DataFrame(np.asarray(table), columns=COLUMNS)
    frame["primary_response"] = frame["primary_response"].astype(np.int64)
    frame["secondary_response"] = frame["secondary_response"].astype(np.int64)
    return frame


def summarize(table) -> dict:
    """Summarize one simulated table.

    Returns
    -------
        dict: ``n_trials``, ``p_upper``, ``p_secondary``, and per primary
        response (``upper`` / ``lower``) the trial count, ``p_secondary``,
        ``mean_rt`` and ``sd_rt``.
    """
    frame = as_frame(table)
    summary = {
        "n_trials": len(frame),
        "p_upper": float(frame["primary_response"].mean()),
        "p_secondary": float(frame["secondary_response"].mean()),
    }
    grouped = frame.groupby("primary_response")
    for response, label in ((1, "upper"), (0, "lower")):
        if response in grouped.groups:
            group = grouped.get_group(response)
            summary[label] = {
                "n_trials": len(group),
                "p_secondary": float(group["secondary_response"].mean()),
                "mean_rt": float(group["reaction_time"].mean()),
                "sd_rt": float(group["reaction_time"].std(ddof=0)),
            }
        else:
            summary[label] = {
                "n_trials": 0,
                "p_secondary": np.nan,
                "mean_rt": np.nan,
                "sd_rt": np.nan,
            }
    return summary


def compare_tables(table_a, table_b) -> dict:
    """Compare two simulated tables distributionally.

    Rows are not matched; only the reaction-time distributions (two-sample
    Kolmogorov-Smirnov test) and the response proportions are compared.
    """
    frame_a = as_frame(table_a)
    frame_b = as_frame(table_b)
    ks = stats.ks_2samp(frame_a["reaction_time"], frame_b["reaction_time"])
    return {
        "ks_statistic": float(ks.statistic),
        "ks_pvalue": float(ks.pvalue),
        "mean_rt_diff": abs(
            float(frame_a["reaction_time"].mean() - frame_b["reaction_time"].mean())
        ),
        "p_upper_diff": abs(
            float(
                frame_a["primary_response"].mean() - frame_b["primary_response"].mean()
            )
        ),
        "p_secondary_diff": abs(
            float(
                frame_a["secondary_response"].mean()
                - frame_b["secondary_response"].mean()
            )
        ),
    }
