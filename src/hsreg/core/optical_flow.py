"""
Coarse-to-fine Horn-Schunck registration.

The pyramid is an ordered sequence of immutable levels with scale factors
``2**(levels-1), ..., 2, 1``. The flow is folded over that sequence: at each
level the accumulated flow is upsampled (values doubled, since one coarse
pixel spans two finer ones), the level solver computes a correction, and the
correction is added to the running total. The final flow registers the
current image onto the reference.
"""

from functools import reduce
from typing import List, NamedTuple, Optional, Tuple

import numpy as np

from hsreg.core.errors import InvalidParameterError, ShapeMismatchError
from hsreg.core.level_solver import LevelSolution, check_alpha, check_finite, check_grids, solve_level
from hsreg.core.OF_options import OFOptions
from hsreg.core.warping import imregister_wrapper, resize


class PyramidLevel(NamedTuple):
    index: int
    scale: int
    shape: Tuple[int, int]
    reference: np.ndarray
    current: np.ndarray


class LevelFlow(NamedTuple):
    """Accumulated flow after refining on ``level``."""
    level: PyramidLevel
    u: np.ndarray
    v: np.ndarray
    solution: LevelSolution


def check_levels(levels) -> int:
    if isinstance(levels, bool) or not isinstance(levels, (int, np.integer)) or levels < 1:
        raise InvalidParameterError(f"levels must be an integer >= 1, got {levels}")
    return int(levels)


def level_shape(shape: Tuple[int, int], scale: int) -> Tuple[int, int]:
    """Grid shape at ``scale``; the base shape has to be divisible by it."""
    m, n = shape
    if m % scale or n % scale:
        raise ShapeMismatchError(
            f"image shape {shape} is not divisible by the pyramid scale {scale}")
    return m // scale, n // scale


def build_pyramid(Iref: np.ndarray, Icur: np.ndarray, levels: int) -> List[PyramidLevel]:
    """Levels ordered from coarsest to finest."""
    levels = check_levels(levels)
    if levels == 1:
        return [PyramidLevel(0, 1, Iref.shape, Iref, Icur)]

    pyramid = []
    for k in range(levels - 1, -1, -1):
        scale = 2 ** k
        shape = level_shape(Iref.shape, scale)
        if min(shape) < 3:
            raise ShapeMismatchError(
                f"pyramid level {k} of shape {shape} is smaller than 3x3, "
                f"use fewer levels for an image of shape {Iref.shape}")
        Irefk = resize(Iref, shape)
        Icurk = resize(Icur, shape)
        check_finite(f"reference image at level {k}", Irefk)
        check_finite(f"current image at level {k}", Icurk)
        pyramid.append(PyramidLevel(k, scale, shape, Irefk, Icurk))
    return pyramid


def upsample_flow(u: np.ndarray, v: np.ndarray, shape: Tuple[int, int]) -> Tuple[np.ndarray, np.ndarray]:
    """Bring a coarser flow to ``shape`` and double its magnitude."""
    return resize(u, shape) * 2., resize(v, shape) * 2.


def refine(previous: Optional[LevelFlow], level: PyramidLevel, alpha: float,
           options: OFOptions, resample: bool = True, stacklevel: int = 2) -> LevelFlow:
    """One fold step: carry the flow to ``level`` and add the level correction."""
    if previous is None:
        u = np.zeros(level.shape, dtype=np.float64)
        v = np.zeros(level.shape, dtype=np.float64)
    else:
        u, v = previous.u, previous.v
    if resample:
        u, v = upsample_flow(u, v, level.shape)

    solution = solve_level(level.reference, level.current, alpha, u, v, options=options,
                           stacklevel=stacklevel + 1)
    return LevelFlow(level, u + solution.u, v + solution.v, solution)


def estimate_levels(Iref, Icur, alpha, levels, options: Optional[OFOptions] = None,
                    stacklevel: int = 2) -> List[LevelFlow]:
    """
    Run the pyramid and keep the accumulated flow of every level.

    Returns:
        List of ``LevelFlow`` from coarsest to finest; the last entry holds the
        final flow at full resolution.
    """
    if options is None:
        options = OFOptions()
    alpha = check_alpha(alpha)
    levels = check_levels(levels)
    Iref = np.asarray(Iref, dtype=np.float64)
    Icur = np.asarray(Icur, dtype=np.float64)
    check_grids(Iref=Iref, Icur=Icur)

    pyramid = build_pyramid(Iref, Icur, levels)
    resample = levels > 1

    def step(history: List[LevelFlow], level: PyramidLevel) -> List[LevelFlow]:
        previous = history[-1] if history else None
        # step is one more frame between refine and this function
        return history + [refine(previous, level, alpha, options, resample=resample,
                                 stacklevel=stacklevel + 2)]

    return reduce(step, pyramid, [])


def estimate(Iref, Icur, alpha, levels, options: Optional[OFOptions] = None
             ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Register ``Icur`` onto ``Iref``.

    Args:
        Iref: Reference image, 2D
        Icur: Current image, same shape as ``Iref``
        alpha: Weight of the smoothness term, > 0
        levels: Number of pyramid levels, >= 1; every scale factor
            ``2**k`` (k < levels) has to divide the image shape
        options: Convergence policy, warping, back-end and verbosity settings

    Returns:
        (Ireg, u, v): registered image and horizontal / vertical flow with
        ``Iref(y, x) ~ Icur(y + v, x + u)``.
    """
    if options is None:
        options = OFOptions()
    final = estimate_levels(Iref, Icur, alpha, levels, options=options, stacklevel=3)[-1]
    Ireg = imregister_wrapper(np.asarray(Icur, dtype=np.float64), final.u, final.v,
                              interpolation_method=options.interpolation_method.value)
    return Ireg, final.u, final.v
