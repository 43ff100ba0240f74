"""Exceptions and warnings raised by the simulators."""


class ValidationError(ValueError):
    """Invalid simulation parameters.

    Raised before any sampling takes place, so no partial output exists.
    """


class NonTerminationRisk(UserWarning):
    """Parameters for which a random walk may run for a very long time.

    This is a diagnostic only. The integrator imposes no step limit unless
    ``max_steps`` is passed explicitly.
    """


class ConcurrencyConfigurationError(UserWarning):
    """An invalid worker count was requested and replaced by a single worker."""
