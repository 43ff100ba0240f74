# import importlib.metadata
__version__ = "0.1.0"  # importlib.metadata.version(__package__ or __name__)

from .basic_simulators import Simulator, simulate
from .basic_simulators.rng import get_seed, set_seed
from .exceptions import (
    ConcurrencyConfigurationError,
    NonTerminationRisk,
    ValidationError,
)

__all__ = [
    "Simulator",
    "simulate",
    "set_seed",
    "get_seed",
    "ValidationError",
    "NonTerminationRisk",
    "ConcurrencyConfigurationError",
]
