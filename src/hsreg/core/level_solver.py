"""
Per-level Horn-Schunck solver.

Solves the linearized L2-L2 energy at one resolution with a fixed-point
scheme. The image pair is first aligned with the prior flow, the spatial and
temporal derivatives of the aligned pair are frozen, and the Euler-Lagrange
update

    phi = (mean_u * Ix + mean_v * Iy + It) / (alpha + Ix**2 + Iy**2)
    u   = mean_u - Ix * phi
    v   = mean_v - Iy * phi

is iterated on the flow correction until the mean step norm falls below the
tolerance or the iteration cap is reached. ``mean_*`` is the 3x3 local
average of the correction plus the Laplacian of the prior flow.

All local averages use explicit Neumann borders: edge rows and columns copy
their inner neighbours and every corner copies its diagonal inner neighbour.
"""

import warnings
from typing import NamedTuple, Optional, Tuple

import numpy as np
from numba import njit
from scipy.ndimage import uniform_filter

from hsreg.core.errors import (
    InvalidParameterError,
    NonConvergenceWarning,
    NonFiniteError,
    ShapeMismatchError,
)
from hsreg.core.OF_options import FixedPointCriteria, OFOptions, SolverBackend
from hsreg.core.warping import imregister_wrapper


class LevelSolution(NamedTuple):
    """Flow correction of one level together with its convergence state."""
    u: np.ndarray
    v: np.ndarray
    iterations: int
    residual: float
    residuals: np.ndarray
    converged: bool


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def check_alpha(alpha) -> float:
    alpha = float(alpha)
    if not np.isfinite(alpha) or alpha <= 0:
        raise InvalidParameterError(f"alpha must be a finite value > 0, got {alpha}")
    return alpha


def check_finite(name: str, arr: np.ndarray) -> None:
    if not np.all(np.isfinite(arr)):
        raise NonFiniteError(f"{name} contains NaN or Inf values")


def check_grids(**grids) -> Tuple[int, int]:
    """All grids must be finite, 2D, at least 3x3 and of identical shape."""
    shape = None
    for name, arr in grids.items():
        if arr.ndim != 2:
            raise InvalidParameterError(f"{name} must be a 2D grid, got {arr.ndim}D")
        if shape is None:
            shape = arr.shape
        elif arr.shape != shape:
            raise ShapeMismatchError(
                f"{name} has shape {arr.shape}, expected {shape}")
        check_finite(name, arr)
    if min(shape) < 3:
        raise ShapeMismatchError(
            f"grids must be at least 3x3 to carry the boundary scheme, got {shape}")
    return shape


# ---------------------------------------------------------------------------
# Discrete operators
# ---------------------------------------------------------------------------

def apply_neumann_boundary(a):
    """Replicate the inner neighbours onto the border of ``a`` in place."""
    a[0, :] = a[1, :]
    a[-1, :] = a[-2, :]
    a[:, 0] = a[:, 1]
    a[:, -1] = a[:, -2]
    a[0, 0] = a[1, 1]
    a[-1, 0] = a[-2, 1]
    a[0, -1] = a[1, -2]
    a[-1, -1] = a[-2, -2]
    return a


_apply_neumann_boundary_jit = njit(cache=True)(apply_neumann_boundary)


def box_mean(a: np.ndarray) -> np.ndarray:
    """3x3 normalized box filter; border cells are overwritten by the caller."""
    return uniform_filter(a, size=3, mode='constant', cval=0.0)


def smoothness_prior(flow: np.ndarray) -> np.ndarray:
    """Discrete Laplacian of a known flow component, ``box(f) - f``."""
    return apply_neumann_boundary(box_mean(flow) - flow)


def spatial_gradients(img: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Central differences along columns (Ix) and rows (Iy)."""
    Ix = np.zeros_like(img, dtype=np.float64)
    Iy = np.zeros_like(img, dtype=np.float64)
    Ix[:, 1:-1] = (img[:, 2:] - img[:, :-2]) / 2.
    Iy[1:-1, :] = (img[2:, :] - img[:-2, :]) / 2.
    return apply_neumann_boundary(Ix), apply_neumann_boundary(Iy)


# ---------------------------------------------------------------------------
# Fixed-point iterations
# ---------------------------------------------------------------------------

def _fixed_point_numpy(Ix, Iy, It, denom, lapl_u, lapl_v, max_iterations, tolerance):
    uk = np.zeros_like(Ix)
    vk = np.zeros_like(Ix)
    residuals = np.zeros(max_iterations, dtype=np.float64)
    n_iter = 0
    for it in range(max_iterations):
        mean_x = apply_neumann_boundary(box_mean(uk) + lapl_u)
        mean_y = apply_neumann_boundary(box_mean(vk) + lapl_v)

        phi = (mean_x * Ix + mean_y * Iy + It) / denom
        u_next = mean_x - Ix * phi
        v_next = mean_y - Iy * phi

        residual = np.mean(np.sqrt((u_next - uk) ** 2 + (v_next - vk) ** 2))
        uk, vk = u_next, v_next
        residuals[it] = residual
        n_iter = it + 1
        if residual < tolerance:
            break
    return uk, vk, n_iter, residuals[:n_iter]


@njit(cache=True)
def _fixed_point_numba(Ix, Iy, It, denom, lapl_u, lapl_v, max_iterations, tolerance):
    H, W = Ix.shape
    uk = np.zeros((H, W))
    vk = np.zeros((H, W))
    mean_x = np.zeros((H, W))
    mean_y = np.zeros((H, W))
    residuals = np.zeros(max_iterations)
    n_iter = 0
    for it in range(max_iterations):
        for y in range(1, H - 1):
            for x in range(1, W - 1):
                su = 0.0
                sv = 0.0
                for dy in range(-1, 2):
                    for dx in range(-1, 2):
                        su += uk[y + dy, x + dx]
                        sv += vk[y + dy, x + dx]
                mean_x[y, x] = su / 9.0 + lapl_u[y, x]
                mean_y[y, x] = sv / 9.0 + lapl_v[y, x]
        _apply_neumann_boundary_jit(mean_x)
        _apply_neumann_boundary_jit(mean_y)

        residual = 0.0
        for y in range(H):
            for x in range(W):
                phi = (mean_x[y, x] * Ix[y, x] + mean_y[y, x] * Iy[y, x] + It[y, x]) / denom[y, x]
                u_next = mean_x[y, x] - Ix[y, x] * phi
                v_next = mean_y[y, x] - Iy[y, x] * phi
                du = u_next - uk[y, x]
                dv = v_next - vk[y, x]
                residual += np.sqrt(du * du + dv * dv)
                uk[y, x] = u_next
                vk[y, x] = v_next
        residual /= H * W
        residuals[it] = residual
        n_iter = it + 1
        if residual < tolerance:
            break
    return uk, vk, n_iter, residuals[:n_iter]


_FIXED_POINT = {
    SolverBackend.NUMPY: _fixed_point_numpy,
    SolverBackend.NUMBA: _fixed_point_numba,
}


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def solve_level(Iref, Icur, alpha, uprec, vprec,
                options: Optional[OFOptions] = None,
                criteria: Optional[FixedPointCriteria] = None,
                stacklevel: int = 2) -> LevelSolution:
    """
    Estimate the flow correction between two images at one resolution.

    Args:
        Iref: Reference image
        Icur: Current image, aligned to ``Iref`` by the returned flow
        alpha: Weight of the smoothness term, > 0
        uprec, vprec: Prior horizontal / vertical flow at this resolution
        options: Warping, back-end and verbosity settings
        criteria: Convergence policy, defaults to ``options.criteria``
        stacklevel: Frame the ``NonConvergenceWarning`` is attributed to,
            counted from this function as in ``warnings.warn``

    Returns:
        LevelSolution whose ``u``, ``v`` are the correction relative to the
        prior (accumulated from zero).
    """
    if options is None:
        options = OFOptions()
    if criteria is None:
        criteria = options.criteria
    alpha = check_alpha(alpha)
    Iref = np.asarray(Iref, dtype=np.float64)
    Icur = np.asarray(Icur, dtype=np.float64)
    uprec = np.asarray(uprec, dtype=np.float64)
    vprec = np.asarray(vprec, dtype=np.float64)
    dimy, dimx = check_grids(Iref=Iref, Icur=Icur, uprec=uprec, vprec=vprec)

    if options.verbose:
        print(f"Compute 2D Horn-Schunck flow on image resolution [ {dimy} x {dimx} ]")

    # Move the current image with the prior estimate
    Ireg = imregister_wrapper(Icur, uprec, vprec, fallback=Iref,
                              interpolation_method=options.interpolation_method.value)
    check_finite("registered image", Ireg)

    lapl_u = smoothness_prior(uprec)
    lapl_v = smoothness_prior(vprec)

    Ix, Iy = spatial_gradients(Ireg)
    It = Ireg - Iref
    denom = alpha + Ix ** 2 + Iy ** 2

    fixed_point = _FIXED_POINT[options.backend]
    uk, vk, n_iter, residuals = fixed_point(
        np.ascontiguousarray(Ix), np.ascontiguousarray(Iy), np.ascontiguousarray(It),
        np.ascontiguousarray(denom), np.ascontiguousarray(lapl_u), np.ascontiguousarray(lapl_v),
        int(criteria.max_iterations), float(criteria.tolerance))
    check_finite("flow correction", uk)
    check_finite("flow correction", vk)

    residual = float(residuals[-1])
    converged = residual < criteria.tolerance
    if options.verbose:
        print(f"  {n_iter} fixed-point iterations, residual {residual:.3e}")
    if not converged:
        warnings.warn(
            f"Fixed-point scheme did not converge on [{dimy} x {dimx}] after "
            f"{n_iter} iterations (residual {residual:.3e} >= {criteria.tolerance:.1e})",
            NonConvergenceWarning, stacklevel=stacklevel)

    return LevelSolution(uk, vk, int(n_iter), residual, np.asarray(residuals), bool(converged))


def solve(Iref, Icur, alpha, uprec, vprec, options: Optional[OFOptions] = None,
          criteria: Optional[FixedPointCriteria] = None) -> Tuple[np.ndarray, np.ndarray]:
    """Flow correction ``(u, v)`` of one level, see ``solve_level``."""
    solution = solve_level(Iref, Icur, alpha, uprec, vprec, options=options, criteria=criteria,
                           stacklevel=3)
    return solution.u, solution.v
