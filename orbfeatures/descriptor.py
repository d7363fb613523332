"""Orientation by intensity centroid and the rotated binary descriptor."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from .keypoint import KeyPoint

HALF_PATCH_SIZE = 15
_DEG_TO_RAD = np.float32(math.pi / 180.0)


def _check_inside(arr: np.ndarray, rows, cols) -> None:
    height, width = arr.shape
    if np.min(rows) < 0 or np.max(rows) >= height or np.min(cols) < 0 or np.max(cols) >= width:
        raise ValueError("keypoint patch reaches outside the image")


def ic_angle(image, x, y, umax: Sequence[int]) -> float:
    """Orientation in degrees, in [0, 360), of the intensity centroid of a circular patch."""
    arr = np.asarray(image)
    if arr.ndim != 2:
        raise ValueError("expected a single-channel 2-D image")
    if len(umax) < HALF_PATCH_SIZE + 1:
        raise ValueError("umax must hold one entry per patch row")
    cy, cx = round(y), round(x)
    r = HALF_PATCH_SIZE
    _check_inside(arr, (cy - r, cy + r), (cx - r, cx + r))

    work = arr.astype(np.float64)
    us = np.arange(-r, r + 1)
    m_10 = float(np.dot(us, work[cy, cx - r:cx + r + 1]))
    m_01 = 0.0
    for v in range(1, r + 1):
        d = umax[v]
        u = np.arange(-d, d + 1)
        plus = work[cy + v, cx - d:cx + d + 1]
        minus = work[cy - v, cx - d:cx + d + 1]
        m_10 += float(np.dot(u, plus + minus))
        m_01 += v * float(np.sum(plus - minus))

    angle = math.degrees(math.atan2(m_01, m_10)) % 360.0
    if angle >= 360.0:
        angle -= 360.0
    return angle


def compute_orientation(image, keypoints, umax: Sequence[int]):
    """Set the angle of every keypoint from the image and return the keypoints."""
    for kp in keypoints:
        kp.angle = ic_angle(image, kp.x, kp.y, umax)
    return keypoints


def compute_orb_descriptor(keypoint: KeyPoint, image, pattern) -> np.ndarray:
    """Return the binary descriptor of a keypoint as packed bytes.

    The sampling pattern is rotated by the keypoint angle; bit ``j`` of byte
    ``i`` is set when the sample of point ``16*i + 2*j`` is darker than that of
    point ``16*i + 2*j + 1``.
    """
    arr = np.asarray(image)
    if arr.ndim != 2:
        raise ValueError("expected a single-channel 2-D image")
    points = np.asarray(pattern, dtype=np.float32).reshape(-1, 2)
    if len(points) == 0 or len(points) % 16:
        raise ValueError("pattern must hold a multiple of 16 points")

    angle = np.float32(keypoint.angle) * _DEG_TO_RAD
    a = np.float32(math.cos(angle))
    b = np.float32(math.sin(angle))
    px, py = points[:, 0], points[:, 1]

    cy, cx = round(keypoint.y), round(keypoint.x)
    rows = np.rint(px * b + py * a).astype(np.intp) + cy
    cols = np.rint(px * a - py * b).astype(np.intp) + cx
    _check_inside(arr, rows, cols)

    values = arr[rows, cols]
    bits = values[0::2] < values[1::2]
    return np.packbits(bits.reshape(-1, 8), axis=1, bitorder="little").ravel()


def compute_descriptors(image, keypoints, pattern) -> np.ndarray:
    """Return one descriptor row per keypoint, as a ``uint8`` array."""
    n_bytes = len(pattern) // 16
    rows = [compute_orb_descriptor(kp, image, pattern) for kp in keypoints]
    if not rows:
        return np.zeros((0, n_bytes), dtype=np.uint8)
    return np.vstack(rows)