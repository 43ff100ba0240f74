"""Configuration dictionaries for the simulators.

Variables:
---------
model_config: dict
    Dictionary containing all the information about the models
"""

from copy import deepcopy
from pathlib import Path

import yaml

from diffsim.exceptions import ValidationError

NUM_THREADS_ENV_VAR = "DIFFSIM_NUM_THREADS"


def _get_base_ddm_sdt_config():
    return {
        "name": "ddm_sdt",
        "params": ["a", "v", "t0", "z", "sz", "sv", "st0", "s"],
        "param_bounds": [
            [0.3, -3.0, 0.0, 0.1, 0.0, 0.0, 0.0, 0.1],
            [2.5, 3.0, 2.0, 0.9, 0.5, 2.0, 0.5, 2.0],
        ],
        "default_params": [1.0, 0.0, 0.3, 0.5, 0.0, 0.0, 0.0, 1.0],
        "n_params": 8,
        "nchoices": 2,
        "choices": [0, 1],
        "crit": [-0.5, 5.0],
    }


def get_ddm_sdt_config():
    """Get the configuration for the diffusion model with an SDT judgment."""
    return _get_base_ddm_sdt_config()


def get_ddm_sdt_unbiased_config():
    """Get the configuration with both SDT criteria at zero."""
    config = _get_base_ddm_sdt_config()
    config["name"] = "ddm_sdt_unbiased"
    config["crit"] = [0.0, 0.0]
    return config


def get_model_config() -> dict:
    return {
        "ddm_sdt": get_ddm_sdt_config(),
        "ddm_sdt_unbiased": get_ddm_sdt_unbiased_config(),
    }


def get_default_simulation_config() -> dict:
    """Get the default settings of a simulation run.

    Returns
    -------
    dict
        ``delta_t``: integration step in seconds.
        ``ndt_convention``: ``"onset"`` or ``"centered"`` non-decision time.
        ``n_threads``: worker count (``None`` = environment / CPU count).
        ``max_steps``: optional integration step limit (``None`` = no limit).
        ``termination_risk_steps``: expected step count above which a
        ``NonTerminationRisk`` warning is emitted.
    """
    return {
        "delta_t": 0.001,
        "ndt_convention": "onset",
        "n_threads": None,
        "max_steps": None,
        "termination_risk_steps": 1e7,
    }


def _lowercase_keys(d):
    if isinstance(d, dict):
        return {str(k).lower(): _lowercase_keys(v) for k, v in d.items()}
    return d


def load_simulation_config(yaml_config_path) -> dict:
    """Load a YAML run configuration.

    Keys are case-insensitive. The file may contain ``model``, ``n_trials``,
    a ``theta`` mapping of model parameters and a ``simulator`` mapping of
    run settings (see :func:`get_default_simulation_config`, plus ``crit``).

    Returns
    -------
    dict
        ``{"model", "n_trials", "theta", "simulator"}`` with defaults filled in.
    """
    # Handle both file paths and file-like objects
    if hasattr(yaml_config_path, "read"):
        raw = yaml.safe_load(yaml_config_path)
    else:
        with open(Path(yaml_config_path), "rb") as f:
            raw = yaml.safe_load(f)
    raw = _lowercase_keys(raw or {})

    model = raw.get("model", "ddm_sdt")
    if model not in model_config:
        raise ValidationError(
            f"Unknown model '{model}'. Available models: {list(model_config.keys())}"
        )

    theta = dict(raw.get("theta") or {})
    unknown = set(theta) - set(model_config[model]["params"]) - {"crit"}
    if unknown:
        raise ValidationError(f"Unknown parameters in theta: {sorted(unknown)}")

    simulator_config = get_default_simulation_config()
    simulator_config["crit"] = deepcopy(model_config[model]["crit"])
    overrides = raw.get("simulator") or {}
    unknown = set(overrides) - set(simulator_config)
    if unknown:
        raise ValidationError(f"Unknown simulator settings: {sorted(unknown)}")
    simulator_config.update(overrides)

    return {
        "model": model,
        "n_trials": raw.get("n_trials", 1000),
        "theta": theta,
        "simulator": simulator_config,
    }


model_config = get_model_config()
