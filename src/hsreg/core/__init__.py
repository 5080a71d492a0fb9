"""
Core Optical Flow Computation Module
=====================================

This module provides the variational optical flow engine of hsreg: the
Horn-Schunck (L2 data term, L2 smoothness term) energy solved with a
fixed-point scheme on a coarse-to-fine pyramid of scale factors 2**k.

Functions
---------
estimate
    Register a current image onto a reference image, returns (Ireg, u, v)
estimate_levels
    Same pyramid, keeping the accumulated flow of every level
solve, solve_level
    Fixed-point solver of one pyramid level
resize, imregister_wrapper
    Cubic resampling and backward warping collaborators

See Also
--------
hsreg.core.OF_options : Options and convergence policy
hsreg.core.errors : Typed failures
"""

from .errors import (
    HSRegError,
    ShapeMismatchError,
    InvalidParameterError,
    NonFiniteError,
    NonConvergenceWarning,
)
from .OF_options import OFOptions, FixedPointCriteria, InterpolationMethod, SolverBackend
from .warping import resize, imregister_wrapper, backward_valid_mask
from .level_solver import solve, solve_level, LevelSolution
from .optical_flow import estimate, estimate_levels, build_pyramid, PyramidLevel, LevelFlow

__all__ = [
    "HSRegError",
    "ShapeMismatchError",
    "InvalidParameterError",
    "NonFiniteError",
    "NonConvergenceWarning",
    "OFOptions",
    "FixedPointCriteria",
    "InterpolationMethod",
    "SolverBackend",
    "resize",
    "imregister_wrapper",
    "backward_valid_mask",
    "solve",
    "solve_level",
    "LevelSolution",
    "estimate",
    "estimate_levels",
    "build_pyramid",
    "PyramidLevel",
    "LevelFlow",
]
