"""Gaussian pyramid construction, amplification and collapse."""

import math

import cv2
import numpy as np

from .errors import ConfigurationError, DimensionMismatchError

# Ordered coarsest first; the last entry is the full-resolution frame.
Pyramid = list[np.ndarray]


def build_gaussian_pyramid(frame: np.ndarray, n_levels: int) -> Pyramid:
    """Build a Gaussian pyramid from a single-channel frame.

    Each coarser level is produced by a 5-tap binomial blur followed by
    decimation by 2 in each axis (``cv2.pyrDown``: output size ceil(n / 2),
    reflect-101 borders) and inserted at the front of the list.

    Args:
        frame: Single-channel frame, shape (H, W).
        n_levels: Number of pyramid levels (>= 1).

    Returns:
        List of n_levels arrays. Index 0 is the coarsest level; index
        n_levels - 1 is ``frame`` itself (not a copy).

    Raises:
        ConfigurationError: If n_levels < 1.
        DimensionMismatchError: If frame is not 2-D.
    """
    if n_levels < 1:
        raise ConfigurationError(f"n_levels must be >= 1, got {n_levels}")
    if frame.ndim != 2:
        raise DimensionMismatchError(
            f"Expected a single-channel (H, W) frame, got shape {frame.shape}"
        )

    pyramid = [frame]
    level = frame
    for _ in range(n_levels - 1):
        level = cv2.pyrDown(level)
        pyramid.insert(0, level)
    return pyramid


def amplify_pyramid(pyramid: Pyramid, alpha: float) -> Pyramid:
    """Scale every level of a pyramid by a constant factor.

    Args:
        pyramid: Input pyramid (not modified).
        alpha: Amplification factor.

    Returns:
        New pyramid with each level multiplied by alpha.

    Raises:
        ConfigurationError: If alpha is not finite.
    """
    if not math.isfinite(alpha):
        raise ConfigurationError(f"Amplification factor must be finite, got {alpha}")
    return [level * alpha for level in pyramid]


def collapse_pyramid(pyramid: Pyramid) -> np.ndarray:
    """Collapse a pyramid into a full-resolution frame.

    Starting from the coarsest level, the accumulator is expanded with
    ``cv2.pyrUp``, bilinearly resized to the next level's exact shape (odd
    sizes do not survive a down/up round trip) and summed with that level.
    The sum is divided by the number of levels, so the result is the mean of
    the re-expanded levels rather than a Laplacian reconstruction.

    Args:
        pyramid: Pyramid ordered coarsest first.

    Returns:
        Float64 frame with the shape of pyramid[-1]. Never aliases an input
        level.
    """
    if not pyramid:
        raise DimensionMismatchError("Cannot collapse an empty pyramid")

    accum = np.array(pyramid[0], dtype=np.float64, copy=True)
    for level in pyramid[1:]:
        height, width = level.shape
        accum = cv2.pyrUp(accum)
        accum = cv2.resize(accum, (width, height), interpolation=cv2.INTER_LINEAR)
        accum += level

    accum /= len(pyramid)
    return accum
