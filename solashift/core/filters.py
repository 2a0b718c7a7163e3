# solashift/core/filters.py

"""
Low-pass filtering applied to a captured block before time scaling.
"""

import logging

import numpy as np
from numpy.typing import NDArray
from scipy.ndimage import uniform_filter1d

logger = logging.getLogger(__name__)


def moving_average(samples: NDArray, order: int = 2) -> NDArray:
    """
    Centered moving-average low-pass filter.

    Each interior sample becomes the mean of itself and ``order`` neighbours
    on each side. The first and last ``order`` samples are passed through
    unfiltered.

    Args:
        samples: 1D signal. Integer input keeps its dtype, with the mean
                 truncated toward zero; float input uses true division.
        order: Half-width of the averaging window (window is ``2*order + 1``).

    Returns:
        Filtered copy of the input.

    Raises:
        ValueError: If the input is not 1D or ``order`` is negative.
    """
    samples = np.asarray(samples)
    if samples.ndim != 1:
        raise ValueError("Input signal must be a 1D array.")
    if order < 0:
        raise ValueError(f"Filter order must be non-negative, got {order}.")

    width = 2 * order + 1
    filtered = samples.copy()
    if order == 0 or len(samples) < width:
        return filtered

    logger.debug(f"Applying moving average: order={order}, {len(samples)} samples")
    if np.issubdtype(samples.dtype, np.integer):
        # Exact integer sums keep the truncation identical to fixed-point code
        sums = np.convolve(samples.astype(np.int64), np.ones(width, dtype=np.int64), mode='valid')
        means = np.abs(sums) // width
        filtered[order:len(samples) - order] = np.where(sums < 0, -means, means)
    else:
        means = uniform_filter1d(samples.astype(np.float64), size=width, mode='nearest')
        filtered[order:len(samples) - order] = means[order:len(samples) - order]
    return filtered
