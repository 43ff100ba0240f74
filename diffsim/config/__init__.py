from .config import (
    model_config,
    get_model_config,
    get_default_simulation_config,
    load_simulation_config,
    NUM_THREADS_ENV_VAR,
)

__all__ = [
    "model_config",
    "get_model_config",
    "get_default_simulation_config",
    "load_simulation_config",
    "NUM_THREADS_ENV_VAR",
]
