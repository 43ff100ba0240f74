"""
Parameter validation and normalization.

User-facing parameters (relative starting point, per-second drift and noise)
are turned into the per-timestep quantities and the three trial-level
sampling distributions consumed by the compiled kernels.

Zero (or non-positive) variability parameters produce an explicit point mass
rather than a zero-width random distribution.
"""

import logging
import math
import warnings
from dataclasses import dataclass
from numbers import Integral, Real

import numpy as np

from diffsim.exceptions import NonTerminationRisk, ValidationError
from diffsim.support_utils.utils import expected_decision_time

logger = logging.getLogger(__name__)

DEFAULT_DELTA_T = 0.001
DEFAULT_CRIT = (-0.5, 5.0)
NDT_CONVENTIONS = ("onset", "centered")
DEFAULT_TERMINATION_RISK_STEPS = 1e7

# Distribution kinds as understood by the kernels
POINT = 0
NORMAL = 1
UNIFORM = 2

_KIND_NAMES = {POINT: "point", NORMAL: "normal", UNIFORM: "uniform"}


@dataclass(frozen=True)
class ModelParameters:
    """Parameters of the diffusion model with a secondary SDT judgment.

    Attributes
    ----------
    a : float
        Boundary separation.
    v : float
        Mean drift rate (evidence strength) per second.
    t0 : float
        Non-decision time in seconds.
    z : float
        Relative starting point in (0, 1).
    sz : float
        Width of the uniform starting-point distribution (absolute units).
    sv : float
        Standard deviation of the drift rate across trials.
    st0 : float
        Width of the uniform non-decision-time distribution.
    s : float
        Diffusion coefficient (noise sd per second).
    crit : tuple[float, float]
        SDT criteria applied after an upper / a lower primary response.
    """

    a: float
    v: float
    t0: float
    z: float
    sz: float = 0.0
    sv: float = 0.0
    st0: float = 0.0
    s: float = 1.0
    crit: tuple[float, float] = DEFAULT_CRIT

    @property
    def z_abs(self) -> float:
        """Absolute starting point."""
        return self.z * self.a


@dataclass(frozen=True)
class Distribution:
    """A trial-level sampling distribution.

    ``loc``/``scale`` are the mean and sd of a normal, ``loc``/``scale`` are
    the lower bound and width of a uniform, and ``loc`` is the value of a
    point mass (``scale`` is then 0).
    """

    kind: int
    loc: float
    scale: float = 0.0

    @property
    def name(self) -> str:
        return _KIND_NAMES[self.kind]

    @property
    def lower(self) -> float:
        if self.kind == NORMAL:
            return -math.inf
        return self.loc

    @property
    def upper(self) -> float:
        if self.kind == NORMAL:
            return math.inf
        return self.loc + self.scale

    @property
    def mean(self) -> float:
        if self.kind == UNIFORM:
            return self.loc + 0.5 * self.scale
        return self.loc

    @classmethod
    def point(cls, value: float) -> "Distribution":
        return cls(POINT, float(value), 0.0)

    @classmethod
    def normal(cls, mean: float, sd: float) -> "Distribution":
        if not sd > 0:
            return cls.point(mean)
        return cls(NORMAL, float(mean), float(sd))

    @classmethod
    def uniform(cls, low: float, width: float) -> "Distribution":
        if not width > 0:
            return cls.point(low)
        return cls(UNIFORM, float(low), float(width))

    def as_array(self) -> np.ndarray:
        """Pack as ``[kind, loc, scale]`` for the compiled kernels."""
        return np.array([self.kind, self.loc, self.scale], dtype=np.float64)


@dataclass(frozen=True)
class NormalizedDistributions:
    """Per-run sampling distributions and per-step scale factors."""

    drift: Distribution
    start: Distribution
    ndt: Distribution
    a: float
    delta_t: float
    noise_sd: float
    crit: tuple[float, float]
    ndt_convention: str = "onset"

    @property
    def drift_scale(self) -> float:
        """Factor turning a sampled evidence strength into a per-step drift."""
        return self.delta_t

    @property
    def t0_min(self) -> float:
        """Smallest possible non-decision time (and so reaction time)."""
        return self.ndt.lower

    def as_dict(self) -> dict:
        return {
            "drift": (self.drift.name, self.drift.loc, self.drift.scale),
            "start": (self.start.name, self.start.loc, self.start.scale),
            "ndt": (self.ndt.name, self.ndt.loc, self.ndt.scale),
            "a": self.a,
            "delta_t": self.delta_t,
            "noise_sd": self.noise_sd,
            "crit": self.crit,
            "ndt_convention": self.ndt_convention,
        }


def _check_real(name: str, value, *, positive=False, non_negative=False) -> float:
    if isinstance(value, bool) or not isinstance(value, Real):
        raise ValidationError(f"{name} must be a real number, got {value!r}")
    value = float(value)
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {value}")
    if positive and not value > 0:
        raise ValidationError(f"{name} must be > 0, got {value}")
    if non_negative and value < 0:
        raise ValidationError(f"{name} must be >= 0, got {value}")
    return value


def validate_n_trials(n_trials) -> int:
    """Check the number of trials and return it as a plain ``int``."""
    if isinstance(n_trials, bool) or not isinstance(n_trials, Integral):
        raise ValidationError(f"n_trials must be an integer, got {n_trials!r}")
    if n_trials <= 0:
        raise ValidationError(f"n_trials must be > 0, got {n_trials}")
    return int(n_trials)


def validate_parameters(
    a,
    v,
    t0,
    z,
    sz=0.0,
    sv=0.0,
    st0=0.0,
    s=1.0,
    crit=DEFAULT_CRIT,
) -> ModelParameters:
    """Validate raw parameters and bundle them into :class:`ModelParameters`.

    Raises
    ------
    ValidationError
        If any parameter is out of range or malformed.
    """
    a = _check_real("a", a, positive=True)
    v = _check_real("v", v)
    t0 = _check_real("t0", t0, non_negative=True)
    z = _check_real("z", z)
    if not 0.0 < z < 1.0:
        raise ValidationError(f"z must lie strictly between 0 and 1, got {z}")
    sz = _check_real("sz", sz, non_negative=True)
    sv = _check_real("sv", sv, non_negative=True)
    st0 = _check_real("st0", st0, non_negative=True)
    s = _check_real("s", s, positive=True)

    try:
        crit = tuple(crit)
    except TypeError:
        raise ValidationError(f"crit must be a sequence of two numbers, got {crit!r}") from None
    if len(crit) != 2:
        raise ValidationError(f"crit must have exactly two entries, got {len(crit)}")
    crit = (_check_real("crit[0]", crit[0]), _check_real("crit[1]", crit[1]))

    return ModelParameters(a=a, v=v, t0=t0, z=z, sz=sz, sv=sv, st0=st0, s=s, crit=crit)


def normalize_parameters(
    params: ModelParameters,
    delta_t: float = DEFAULT_DELTA_T,
    ndt_convention: str = "onset",
) -> NormalizedDistributions:
    """Build the sampling distributions and step scales for one run.

    Parameters
    ----------
    params : ModelParameters
        Validated model parameters.
    delta_t : float
        Integration time step in seconds.
    ndt_convention : str
        ``"onset"``: non-decision time uniform on ``[t0, t0 + st0]``.
        ``"centered"``: uniform on ``[t0 - st0/2, t0 + st0/2]``.

    Returns
    -------
    NormalizedDistributions
    """
    delta_t = _check_real("delta_t", delta_t, positive=True)
    if params.a <= 0:
        raise ValidationError(f"a must be > 0, got {params.a}")
    if not 0.0 < params.z < 1.0:
        raise ValidationError(f"z must lie strictly between 0 and 1, got {params.z}")
    if ndt_convention not in NDT_CONVENTIONS:
        raise ValidationError(
            f"Unknown ndt_convention '{ndt_convention}'. Available: {list(NDT_CONVENTIONS)}"
        )

    drift = Distribution.normal(params.v, params.sv)

    z_abs = params.z_abs
    start = Distribution.uniform(z_abs - 0.5 * params.sz, params.sz)
    if start.lower <= 0 or start.upper >= params.a:
        logger.warning(
            "Starting-point range [%g, %g] reaches a boundary of (0, %g); "
            "trials starting outside will end after zero steps",
            start.lower,
            start.upper,
            params.a,
        )

    if ndt_convention == "onset":
        ndt = Distribution.uniform(params.t0, params.st0)
    else:
        ndt_low = params.t0 - 0.5 * params.st0
        if ndt_low < 0:
            raise ValidationError(
                f"t0 - st0/2 must be >= 0 for the centered convention, got {ndt_low}"
            )
        ndt = Distribution.uniform(ndt_low, params.st0)

    return NormalizedDistributions(
        drift=drift,
        start=start,
        ndt=ndt,
        a=params.a,
        delta_t=delta_t,
        noise_sd=params.s * math.sqrt(delta_t),
        crit=params.crit,
        ndt_convention=ndt_convention,
    )


def check_termination_risk(
    dists: NormalizedDistributions,
    threshold_steps: float = DEFAULT_TERMINATION_RISK_STEPS,
) -> float:
    """Warn when the expected number of integration steps is very large.

    The expected decision time is evaluated at the least favourable drift
    the drift distribution plausibly produces (within 3 sd of its mean).

    Returns
    -------
    float
        The expected number of steps at that drift.
    """
    s = dists.noise_sd / math.sqrt(dists.delta_t)
    v = dists.drift.loc
    if dists.drift.kind == NORMAL:
        spread = 3.0 * dists.drift.scale
        v = 0.0 if abs(v) <= spread else v - math.copysign(spread, v)

    expected_steps = (
        expected_decision_time(dists.a, v, dists.start.mean, s) / dists.delta_t
    )
    if expected_steps > threshold_steps:
        message = (
            f"Expected number of integration steps per trial is {expected_steps:.3g} "
            f"(a={dists.a}, v={v}, s={s:g}, delta_t={dists.delta_t}). "
            "The random walk has no step limit and may take very long to terminate."
        )
        logger.warning(message)
        warnings.warn(message, NonTerminationRisk, stacklevel=3)
    return expected_steps
