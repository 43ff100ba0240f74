"""
Class-based interface for the diffusion / SDT simulator.

A :class:`Simulator` bundles a model configuration (parameter names, default
values and criteria) with run settings, so repeated simulations only need
the parameters that change.
"""

from collections.abc import Callable, Mapping
from copy import deepcopy

from diffsim.basic_simulators.simulator import simulate
from diffsim.config import get_default_simulation_config, model_config


class Simulator:
    """Class-based interface for diffusion / SDT simulations.

    Examples
    --------
    >>> sim = Simulator("ddm_sdt", n_threads=4)
    >>> table = sim.simulate(1000, theta={"a": 1.2, "v": 0.8, "t0": 0.3, "z": 0.5})

    Parameters
    ----------
    model : str or dict
        A model name from ``model_config`` or a full configuration dict.
    simulator_function : Callable or None
        Replacement for :func:`diffsim.simulate` with the same signature.
    **config_overrides
        Either model configuration keys (e.g. ``default_params``, ``crit``)
        or run settings from :func:`get_default_simulation_config`
        (e.g. ``delta_t``, ``n_threads``).

    Raises
    ------
    ValueError
        If the model is unknown or an override key is not recognised.
    """

    def __init__(
        self,
        model: str | dict = "ddm_sdt",
        simulator_function: Callable | None = None,
        **config_overrides,
    ):
        if isinstance(model, dict):
            config = deepcopy(model)
        elif isinstance(model, str):
            if model not in model_config:
                raise ValueError(
                    f"Unknown model '{model}'. Available models: {list(model_config.keys())}"
                )
            config = deepcopy(model_config[model])
        else:
            raise ValueError("model must be a model name or a configuration dict")

        for key in ("params", "default_params", "crit"):
            if key not in config:
                raise ValueError(f"Model configuration is missing '{key}'")
        if len(config["params"]) != len(config["default_params"]):
            raise ValueError("'params' and 'default_params' must have the same length")

        settings = get_default_simulation_config()
        for key, value in config_overrides.items():
            if key in settings:
                settings[key] = value
            elif key in config:
                config[key] = value
            else:
                raise ValueError(f"Unknown configuration key '{key}'")

        self._config = config
        self._settings = settings
        self._simulator_function = simulator_function or simulate

    @property
    def config(self) -> dict:
        """A copy of the model configuration."""
        return deepcopy(self._config)

    @property
    def settings(self) -> dict:
        """A copy of the run settings."""
        return deepcopy(self._settings)

    @property
    def default_theta(self) -> dict:
        return dict(zip(self._config["params"], self._config["default_params"]))

    def make_theta(self, theta: Mapping | None = None) -> dict:
        """Merge ``theta`` into the default parameters.

        Raises
        ------
        ValueError
            If ``theta`` names a parameter the model does not have.
        """
        full_theta = self.default_theta
        full_theta["crit"] = list(self._config["crit"])
        if theta is None:
            return full_theta

        theta = dict(theta)
        unknown = set(theta) - set(full_theta)
        if unknown:
            raise ValueError(
                f"Unknown parameters {sorted(unknown)}. "
                f"Model parameters: {self._config['params'] + ['crit']}"
            )
        for key, value in theta.items():
            full_theta[key] = value
        return full_theta

    def simulate(self, n_trials: int, theta: Mapping | None = None, **kwargs):
        """Simulate ``n_trials`` trials.

        ``kwargs`` override run settings for this call only (for example
        ``random_state`` or ``return_format``).
        """
        run_settings = self.settings
        run_settings.update(kwargs)
        return self._simulator_function(
            n_trials, **self.make_theta(theta), **run_settings
        )

    def __repr__(self) -> str:
        return f"Simulator(model='{self._config.get('name', 'custom')}')"
