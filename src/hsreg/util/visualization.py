"""
Display helpers for registration results.

Rendering only: nothing here feeds back into the estimation.
"""

from typing import Optional

import cv2
import numpy as np


def flow_to_color(u: np.ndarray, v: np.ndarray, max_magnitude: Optional[float] = None) -> np.ndarray:
    """HSV color coding of a flow field (hue = direction, value = magnitude), RGB in [0,1]."""
    u = np.asarray(u, dtype=np.float32)
    v = np.asarray(v, dtype=np.float32)
    hsv = np.zeros((u.shape[0], u.shape[1], 3), dtype=np.uint8)
    mag, ang = cv2.cartToPolar(u, v)
    hsv[:, :, 0] = (ang * 180 / np.pi / 2).astype(np.uint8)
    hsv[:, :, 1] = 255
    if max_magnitude is None:
        hsv[:, :, 2] = cv2.normalize(mag, None, 0, 255, cv2.NORM_MINMAX, dtype=cv2.CV_8U)
    else:
        hsv[:, :, 2] = np.clip(mag / max_magnitude * 255, 0, 255).astype(np.uint8)
    rgb = cv2.cvtColor(hsv, cv2.COLOR_HSV2RGB)
    return rgb.astype(np.float32) / 255.0


def display_result(Iref: np.ndarray, Icur: np.ndarray, Ireg: np.ndarray,
                   u: np.ndarray, v: np.ndarray, step: int = 4,
                   output_file: Optional[str] = None, show: bool = True):
    """
    Show reference, current and registered images, the difference images
    before and after registration and the estimated flow field.
    """
    import matplotlib.pyplot as plt

    fig, axes = plt.subplots(2, 3, figsize=(15, 9))
    axes[0, 0].imshow(Iref, cmap='gray')
    axes[0, 0].set_title("Reference")
    axes[0, 1].imshow(Icur, cmap='gray')
    axes[0, 1].set_title("Current")
    axes[0, 2].imshow(Ireg, cmap='gray')
    axes[0, 2].set_title("Registered")

    diff_before = np.abs(Icur - Iref)
    diff_after = np.abs(Ireg - Iref)
    vmax = float(max(diff_before.max(), diff_after.max()))
    axes[1, 0].imshow(diff_before, cmap='gray', vmin=0, vmax=vmax)
    axes[1, 0].set_title(f"|Current - Reference| (mean {diff_before.mean():.4f})")
    axes[1, 1].imshow(diff_after, cmap='gray', vmin=0, vmax=vmax)
    axes[1, 1].set_title(f"|Registered - Reference| (mean {diff_after.mean():.4f})")

    axes[1, 2].imshow(Iref, cmap='gray')
    y, x = np.mgrid[0:u.shape[0]:step, 0:u.shape[1]:step]
    axes[1, 2].quiver(x, y, u[::step, ::step], v[::step, ::step], color='r',
                      angles='xy', scale_units='xy', scale=1)
    axes[1, 2].set_title("Estimated flow")

    for ax in axes.flat:
        ax.axis('off')
    fig.tight_layout()

    if output_file is not None:
        fig.savefig(output_file, dpi=150, bbox_inches='tight')
    if show:
        plt.show()
    return fig
