"""
Synthetic test data shared by the test modules.
"""

from typing import Tuple

import numpy as np
from scipy.ndimage import gaussian_filter

from hsreg.util.io.dat import save_dat


def smooth_texture(shape: Tuple[int, int], sigma: float = 6.0, seed: int = 0) -> np.ndarray:
    """Gaussian-filtered noise rescaled to [0,1]."""
    rng = np.random.default_rng(seed)
    img = gaussian_filter(rng.random(shape), sigma=sigma, mode='wrap')
    return (img - img.min()) / (img.max() - img.min())


def translated_pair(shape: Tuple[int, int] = (96, 96), dx: int = 2, dy: int = -1,
                    sigma: float = 6.0, seed: int = 0) -> Tuple[np.ndarray, np.ndarray]:
    """
    Reference/current pair related by an exact integer translation:
    ``Iref(y, x) = Icur(y + dy, x + dx)``, so the expected flow is (dx, dy).
    """
    margin = max(abs(dx), abs(dy)) + 1
    H, W = shape
    big = smooth_texture((H + 2 * margin, W + 2 * margin), sigma=sigma, seed=seed)
    current = big[margin:margin + H, margin:margin + W].copy()
    reference = big[margin + dy:margin + dy + H, margin + dx:margin + dx + W].copy()
    return reference, current


def image_to_frame(img: np.ndarray) -> np.ndarray:
    """Inverse of the display orientation used by ``DATFileReader.get_image``."""
    return np.flipud(img).T


def write_series(path, images, n_slices: int = 1) -> None:
    """Store 2D images as the dynamics of a ``.dat`` series."""
    frames = [image_to_frame(img) for img in images]
    dimx, dimy = frames[0].shape
    series = np.zeros((dimx, dimy, n_slices, len(frames)), dtype=np.float32)
    for t, frame in enumerate(frames):
        for z in range(n_slices):
            series[:, :, z, t] = frame
    save_dat(path, series)
