"""
hsreg: multi-resolution Horn-Schunck image registration.

Estimates a dense displacement field between two grey-level images under the
intensity conservation and smooth motion assumptions, and registers the
current image onto the reference.
"""

from hsreg.core import (
    HSRegError,
    ShapeMismatchError,
    InvalidParameterError,
    NonFiniteError,
    NonConvergenceWarning,
    OFOptions,
    FixedPointCriteria,
    estimate,
    estimate_levels,
    solve,
    solve_level,
    imregister_wrapper,
    resize,
)

__version__ = "0.1.0"

__all__ = [
    "HSRegError",
    "ShapeMismatchError",
    "InvalidParameterError",
    "NonFiniteError",
    "NonConvergenceWarning",
    "OFOptions",
    "FixedPointCriteria",
    "estimate",
    "estimate_levels",
    "solve",
    "solve_level",
    "imregister_wrapper",
    "resize",
]
