"""Descriptor distance and rotation-consistency histogram helpers."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

TH_HIGH = 100
TH_LOW = 50
HISTO_LENGTH = 30


def descriptor_distance(a, b) -> int:
    """Hamming distance between two binary descriptors given as bytes."""
    da = np.asarray(a, dtype=np.uint8).ravel()
    db = np.asarray(b, dtype=np.uint8).ravel()
    if da.shape != db.shape:
        raise ValueError("descriptors must have the same length")
    return int(np.unpackbits(np.bitwise_xor(da, db)).sum())


def compute_three_maxima(histogram: Sequence[Sequence]) -> tuple[int, int, int]:
    """Indices of the three fullest bins, -1 where a bin is missing or too small.

    The second and third bins are dropped when they hold fewer than a tenth
    of the entries of the fullest one.
    """
    max1 = max2 = max3 = 0
    ind1 = ind2 = ind3 = -1
    for i, entries in enumerate(histogram):
        s = len(entries)
        if s > max1:
            max3, max2, max1 = max2, max1, s
            ind3, ind2, ind1 = ind2, ind1, i
        elif s > max2:
            max3, max2 = max2, s
            ind3, ind2 = ind2, i
        elif s > max3:
            max3 = s
            ind3 = i

    limit = np.float32(0.1) * np.float32(max1)
    if max2 < limit:
        ind2 = ind3 = -1
    elif max3 < limit:
        ind3 = -1
    return ind1, ind2, ind3


def rotation_histogram_bin(angle1: float, angle2: float) -> int:
    """Histogram bin of the rotation between two keypoint angles in degrees."""
    rot = angle1 - angle2
    if rot < 0.0:
        rot += 360.0
    scaled = rot * (1.0 / HISTO_LENGTH)
    bin_ = int(math.floor(scaled + 0.5)) if scaled >= 0 else -int(math.floor(-scaled + 0.5))
    if bin_ == HISTO_LENGTH:
        bin_ = 0
    if not 0 <= bin_ < HISTO_LENGTH:
        raise ValueError("angles must lie within [0, 360)")
    return bin_


def inconsistent_rotations(histogram: Sequence[Sequence]) -> list:
    """Entries of every bin that is not one of the three maxima, bin by bin."""
    kept = set(compute_three_maxima(histogram))
    return [
        entry
        for i, entries in enumerate(histogram)
        if i not in kept
        for entry in entries
    ]