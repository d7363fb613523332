"""Grayscale image operations used to build the scale pyramid."""

from __future__ import annotations

from typing import Sequence

import numpy as np


def _as_2d(image) -> np.ndarray:
    arr = np.asarray(image)
    if arr.ndim != 2:
        raise ValueError("expected a single-channel 2-D image")
    if arr.size == 0:
        raise ValueError("image is empty")
    return arr


def _restore_dtype(values: np.ndarray, dtype: np.dtype) -> np.ndarray:
    if np.issubdtype(dtype, np.integer):
        info = np.iinfo(dtype)
        return np.clip(np.rint(values), info.min, info.max).astype(dtype)
    return values.astype(dtype)


def pad_reflect101(image, border: int) -> np.ndarray:
    """Pad on every side by ``border`` pixels, mirroring without repeating the edge."""
    if border < 0:
        raise ValueError("border must not be negative")
    arr = _as_2d(image)
    if border == 0:
        return arr.copy()
    return np.pad(arr, border, mode="reflect")


def _linear_taps(src_len: int, dst_len: int):
    scale = src_len / dst_len
    pos = (np.arange(dst_len) + 0.5) * scale - 0.5
    lo = np.floor(pos).astype(np.intp)
    frac = pos - lo
    below = lo < 0
    lo[below] = 0
    frac[below] = 0.0
    above = lo >= src_len - 1
    lo[above] = src_len - 1
    frac[above] = 0.0
    hi = np.minimum(lo + 1, src_len - 1)
    return lo, hi, frac


def resize_linear(image, width: int, height: int) -> np.ndarray:
    """Resize with bilinear interpolation on pixel centres."""
    if width <= 0 or height <= 0:
        raise ValueError("target size must be positive")
    arr = _as_2d(image)
    src = arr.astype(np.float64)
    y0, y1, fy = _linear_taps(arr.shape[0], height)
    x0, x1, fx = _linear_taps(arr.shape[1], width)
    rows = src[y0] * (1.0 - fy)[:, None] + src[y1] * fy[:, None]
    out = rows[:, x0] * (1.0 - fx) + rows[:, x1] * fx
    return _restore_dtype(out, arr.dtype)


def _gaussian_kernel(ksize: int, sigma: float) -> np.ndarray:
    if sigma <= 0:
        sigma = 0.3 * ((ksize - 1) * 0.5 - 1) + 0.8
    offsets = np.arange(ksize) - (ksize - 1) / 2
    kernel = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def gaussian_blur(image, ksize: int, sigma: float) -> np.ndarray:
    """Blur with a square Gaussian kernel, mirroring the image at its borders.

    A non-positive ``sigma`` is derived from the kernel size.
    """
    if ksize <= 0 or ksize % 2 == 0:
        raise ValueError("ksize must be a positive odd number")
    arr = _as_2d(image)
    radius = ksize // 2
    height, width = arr.shape
    padded = np.pad(arr.astype(np.float64), radius, mode="reflect")
    kernel = _gaussian_kernel(ksize, sigma)

    horizontal = sum(w * padded[:, i:i + width] for i, w in enumerate(kernel))
    out = sum(w * horizontal[i:i + height, :] for i, w in enumerate(kernel))
    return _restore_dtype(out, arr.dtype)


def build_pyramid(image, inv_scale_factors: Sequence[float], edge_threshold: int) -> list[np.ndarray]:
    """Build a scale pyramid and return each level padded by ``edge_threshold``.

    Level 0 is the image itself; each further level is the previous level
    resized to the original size times its inverse scale factor. The unpadded
    level is ``level[e:-e, e:-e]`` for ``e = edge_threshold``.
    """
    if edge_threshold < 0:
        raise ValueError("edge_threshold must not be negative")
    arr = _as_2d(image)
    rows, cols = arr.shape
    levels: list[np.ndarray] = []
    previous = arr
    for level, scale in enumerate(inv_scale_factors):
        if level == 0:
            interior = arr
        else:
            width = round(cols * scale)
            height = round(rows * scale)
            interior = resize_linear(previous, width, height)
        levels.append(pad_reflect101(interior, edge_threshold))
        previous = interior
    return levels