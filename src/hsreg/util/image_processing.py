"""
Image processing utilities for registration.
Provides the intensity adjustments applied to an image pair before
motion estimation.
"""

import numpy as np
from typing import Optional


def normalize(
    arr: np.ndarray,
    ref: Optional[np.ndarray] = None,
    eps: float = 1e-8
) -> np.ndarray:
    """
    Normalize array to [0,1] range.

    Args:
        arr: Array to normalize
        ref: Optional reference providing the min/max range
        eps: Small value to avoid division by zero

    Returns:
        Normalized float64 array
    """
    arr = np.asarray(arr, dtype=np.float64)
    if ref is not None:
        min_val = float(np.min(ref))
        max_val = float(np.max(ref))
    else:
        min_val = float(arr.min())
        max_val = float(arr.max())
    return (arr - min_val) / (max_val - min_val + eps)


def match_mean(arr: np.ndarray, ref: np.ndarray, eps: float = 1e-12) -> np.ndarray:
    """Scale ``arr`` so that its mean equals the mean of ``ref``."""
    arr = np.asarray(arr, dtype=np.float64)
    mean_arr = float(np.mean(arr))
    if abs(mean_arr) < eps:
        raise ValueError("cannot match the mean of an array whose mean is zero")
    return arr * (float(np.mean(ref)) / mean_arr)


def prepare_pair(reference: np.ndarray, current: np.ndarray):
    """
    Adjust grey levels of an image pair before registration.

    The reference is min-max normalized to [0,1] and the current image is
    scaled so that both share the same mean intensity.
    """
    Iref = normalize(reference)
    Icur = match_mean(current, Iref)
    return Iref, Icur
