from . import rng
from . import normalize
from . import trial_sampler
from . import integrator
from . import sdt
from . import simulator
from .simulator import simulate
from .simulator_class import Simulator

__all__ = [
    "rng",
    "normalize",
    "trial_sampler",
    "integrator",
    "sdt",
    "simulator",
    "simulate",
    "Simulator",
]
