"""FAST-9 corner detection on grayscale images."""

from __future__ import annotations

import numpy as np

from .keypoint import KeyPoint

# Bresenham circle of radius 3 as (dx, dy), walked clockwise from the bottom.
_CIRCLE = (
    (0, 3), (1, 3), (2, 2), (3, 1), (3, 0), (3, -1), (2, -2), (1, -3),
    (0, -3), (-1, -3), (-2, -2), (-3, -1), (-3, 0), (-3, 1), (-2, 2), (-1, 3),
)
_ARC = 9
_RADIUS = 3
_KEYPOINT_SIZE = 7.0


def _best_arc_margin(diffs: np.ndarray) -> np.ndarray:
    """Largest, over all contiguous arcs of 9, of the smallest value on the arc."""
    count = len(_CIRCLE)
    wrapped = np.concatenate([diffs, diffs[: _ARC - 1]])
    arc_min = wrapped[0:count].copy()
    for k in range(1, _ARC):
        np.minimum(arc_min, wrapped[k:k + count], out=arc_min)
    return arc_min.max(axis=0)


def fast_detect(image, threshold, nonmax_suppression=True) -> list[KeyPoint]:
    """Detect FAST corners: 9 contiguous circle pixels all brighter or all darker.

    A pixel is a corner when 9 contiguous pixels of the radius-3 circle are
    all greater than ``center + threshold`` or all less than
    ``center - threshold``. The response is the largest threshold for which
    the pixel would still be a corner. With suppression a corner is kept only
    if its response is strictly greater than that of its 8 neighbours.
    Keypoints are returned in row-major order.
    """
    arr = np.asarray(image)
    if arr.ndim != 2:
        raise ValueError("expected a single-channel 2-D image")
    height, width = arr.shape
    if height < 2 * _RADIUS + 1 or width < 2 * _RADIUS + 1:
        return []

    if np.issubdtype(arr.dtype, np.integer):
        work = arr.astype(np.int64)
    else:
        work = arr.astype(np.float64)

    r = _RADIUS
    center = work[r:height - r, r:width - r]
    diffs = np.stack([
        work[r + dy:height - r + dy, r + dx:width - r + dx] - center
        for dx, dy in _CIRCLE
    ])

    margin = np.maximum(_best_arc_margin(diffs), _best_arc_margin(-diffs))
    corner = margin > threshold
    score = np.where(corner, margin - 1, 0)

    if nonmax_suppression:
        padded = np.pad(score, 1, mode="constant", constant_values=0)
        rows, cols = score.shape
        keep = corner.copy()
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                neighbour = padded[1 + dy:1 + dy + rows, 1 + dx:1 + dx + cols]
                keep &= score > neighbour
    else:
        keep = corner

    ys, xs = np.nonzero(keep)
    return [
        KeyPoint(
            x=float(x + r),
            y=float(y + r),
            size=_KEYPOINT_SIZE,
            response=float(score[y, x]),
        )
        for y, x in zip(ys, xs)
    ]