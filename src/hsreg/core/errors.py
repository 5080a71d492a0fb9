"""
Typed failures raised by the registration core.

Structural problems (mismatched grids, invalid parameters, non-finite data)
are raised immediately at the entry points. A fixed-point loop that hits its
iteration cap is not an error: the best estimate is returned and a
``NonConvergenceWarning`` is emitted through ``warnings.warn``.
"""


class HSRegError(Exception):
    """Base class for all hsreg errors."""


class ShapeMismatchError(HSRegError, ValueError):
    """Grid dimensions disagree or a pyramid level cannot be formed."""


class InvalidParameterError(HSRegError, ValueError):
    """A numerical parameter is outside its admissible range."""


class NonFiniteError(HSRegError, ValueError):
    """An input or intermediate grid contains NaN or Inf values."""


class NonConvergenceWarning(UserWarning):
    """The fixed-point scheme stopped at its iteration cap."""
