"""Geometric checks and projections used when searching for matches."""

from __future__ import annotations

from typing import NamedTuple, Sequence

import numpy as np

from .keypoint import KeyPoint

_EPIPOLAR_CHI2 = 3.84
_FRONTAL_VIEW_COS = 0.998
_FRONTAL_RADIUS = 2.5
_OBLIQUE_RADIUS = 4.0


class Sim3Decomposition(NamedTuple):
    """A similarity transform split into rotation, translation and scale.

    ``translation`` is the translation divided by the scale, and
    ``camera_center`` is ``-rotation.T @ translation``.
    """

    rotation: np.ndarray
    translation: np.ndarray
    camera_center: np.ndarray
    scale: float


class Projection(NamedTuple):
    """A point projected into an image, with the inverse of its depth."""

    u: float
    v: float
    inv_depth: float
    camera_point: np.ndarray


def radius_by_viewing_cos(view_cos: float) -> float:
    """Search radius for a point seen at the given viewing-angle cosine.

    Points seen almost head-on get a narrower window.
    """
    cosine = float(view_cos)
    if cosine > _FRONTAL_VIEW_COS:
        radius = _FRONTAL_RADIUS
    else:
        radius = _OBLIQUE_RADIUS
    return radius


def check_dist_epipolar_line(kp1: KeyPoint, kp2: KeyPoint, f12, level_sigma2: Sequence[float]) -> bool:
    """Whether ``kp2`` lies close enough to the epipolar line of ``kp1``.

    The line in the second image is ``x1' F12``; the squared distance of
    ``kp2`` to it must be below the 95% chi-square bound scaled by the
    variance of the level ``kp2`` was detected at. A degenerate line never
    passes.
    """
    f = np.asarray(f12, dtype=np.float64)
    if f.shape != (3, 3):
        raise ValueError("the fundamental matrix must be 3x3")
    if not 0 <= kp2.octave < len(level_sigma2):
        raise ValueError("keypoint octave has no level variance")

    a = kp1.x * f[0, 0] + kp1.y * f[1, 0] + f[2, 0]
    b = kp1.x * f[0, 1] + kp1.y * f[1, 1] + f[2, 1]
    c = kp1.x * f[0, 2] + kp1.y * f[1, 2] + f[2, 2]

    num = a * kp2.x + b * kp2.y + c
    den = a * a + b * b
    if den == 0:
        return False
    return num * num / den < _EPIPOLAR_CHI2 * level_sigma2[kp2.octave]


def decompose_sim3(scw) -> Sim3Decomposition:
    """Split a 3x4 or 4x4 similarity ``[sR | t]`` into rotation, translation and scale."""
    s = np.asarray(scw, dtype=np.float64)
    if s.shape not in ((3, 4), (4, 4)):
        raise ValueError("a similarity transform must be 3x4 or 4x4")
    s_rot = s[:3, :3]
    scale = float(np.sqrt(np.dot(s_rot[0], s_rot[0])))
    if scale == 0:
        raise ValueError("the similarity transform has zero scale")
    rotation = s_rot / scale
    translation = s[:3, 3] / scale
    center = -rotation.T @ translation
    return Sim3Decomposition(rotation, translation, center, scale)


def project_point(point, rotation, translation, fx, fy, cx, cy) -> Projection | None:
    """Project a world point through a pinhole camera.

    Returns ``None`` when the point is not in front of the camera.
    """
    p = np.asarray(point, dtype=np.float64).reshape(3)
    r = np.asarray(rotation, dtype=np.float64)
    t = np.asarray(translation, dtype=np.float64).reshape(3)
    if r.shape != (3, 3):
        raise ValueError("rotation must be 3x3")
    pc = r @ p + t
    z = pc[2]
    if z <= 0:
        return None
    inv_z = 1.0 / z
    u = fx * pc[0] * inv_z + cx
    v = fy * pc[1] * inv_z + cy
    return Projection(float(u), float(v), float(inv_z), pc)