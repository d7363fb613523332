"""Descriptor matching between two sets of ORB features."""

from __future__ import annotations

import sys
from typing import Mapping, Sequence

import numpy as np

from .hamming import (
    HISTO_LENGTH,
    TH_LOW,
    descriptor_distance,
    inconsistent_rotations,
    rotation_histogram_bin,
)
from .keypoint import KeyPoint

_NO_DISTANCE = 256
_INT_MAX = 2**31 - 1


def features_in_area(keypoints: Sequence[KeyPoint], x, y, radius, min_level=None, max_level=None) -> list[int]:
    """Indices of keypoints inside the square window of half side ``radius`` around ``(x, y)``.

    ``min_level`` and ``max_level`` bound the octave of the keypoints when given.
    Indices are returned in ascending order.
    """
    if radius < 0:
        raise ValueError("radius must not be negative")
    found = []
    for index, kp in enumerate(keypoints):
        if min_level is not None and kp.octave < min_level:
            continue
        if max_level is not None and kp.octave > max_level:
            continue
        if abs(kp.x - x) < radius and abs(kp.y - y) < radius:
            found.append(index)
    return found


class ORBMatcher:
    """Matches binary descriptors with a ratio test and a rotation-consistency check."""

    def __init__(self, nn_ratio=0.6, check_orientation=True):
        self.nn_ratio = float(nn_ratio)
        self.check_orientation = bool(check_orientation)

    def _passes_ratio(self, best: int, second: int) -> bool:
        return bool(np.float32(best) < np.float32(self.nn_ratio) * np.float32(second))

    def search_by_bow(
        self,
        feat_vec1: Mapping[int, Sequence[int]],
        descriptors1,
        keypoints1: Sequence[KeyPoint],
        feat_vec2: Mapping[int, Sequence[int]],
        descriptors2,
        keypoints2: Sequence[KeyPoint],
    ) -> list[int | None]:
        """Match features that fall into the same vocabulary node.

        Each feature vector maps a node id to the indices of the features
        assigned to it. Returns, for every keypoint of the first set, the
        index of its match in the second set or ``None``.
        """
        d1 = np.asarray(descriptors1, dtype=np.uint8)
        d2 = np.asarray(descriptors2, dtype=np.uint8)
        matches: list[int | None] = [None] * len(keypoints1)
        matched2: set[int] = set()
        histogram: list[list[int]] = [[] for _ in range(HISTO_LENGTH)]

        for node in sorted(set(feat_vec1) & set(feat_vec2)):
            candidates = feat_vec2[node]
            for idx1 in feat_vec1[node]:
                best1 = best2 = _NO_DISTANCE
                best_idx2 = None
                for idx2 in candidates:
                    if idx2 in matched2:
                        continue
                    dist = descriptor_distance(d1[idx1], d2[idx2])
                    if dist < best1:
                        best2 = best1
                        best1 = dist
                        best_idx2 = idx2
                    elif dist < best2:
                        best2 = dist

                if best_idx2 is None or best1 >= TH_LOW or not self._passes_ratio(best1, best2):
                    continue
                matches[idx1] = best_idx2
                matched2.add(best_idx2)
                if self.check_orientation:
                    bin_ = rotation_histogram_bin(keypoints1[idx1].angle, keypoints2[best_idx2].angle)
                    histogram[bin_].append(idx1)

        if self.check_orientation:
            for idx1 in inconsistent_rotations(histogram):
                matches[idx1] = None
        return matches

    def search_for_initialization(
        self,
        keypoints1: Sequence[KeyPoint],
        descriptors1,
        keypoints2: Sequence[KeyPoint],
        descriptors2,
        prev_matched: Sequence[tuple[float, float]],
        window_size=10,
    ) -> tuple[list[int | None], list[tuple[float, float]]]:
        """Match finest-level keypoints of the first set within a window of their previous match.

        ``prev_matched`` holds, per keypoint of the first set, the position
        around which to search in the second set. Returns the match index per
        keypoint (or ``None``) and the updated positions, where every matched
        keypoint takes the position of its match.
        """
        if len(prev_matched) != len(keypoints1):
            raise ValueError("prev_matched needs one position per keypoint of the first set")
        d1 = np.asarray(descriptors1, dtype=np.uint8)
        d2 = np.asarray(descriptors2, dtype=np.uint8)

        matches12: list[int | None] = [None] * len(keypoints1)
        matches21: list[int | None] = [None] * len(keypoints2)
        matched_distance = [sys.maxsize] * len(keypoints2)
        histogram: list[list[int]] = [[] for _ in range(HISTO_LENGTH)]

        for i1, kp1 in enumerate(keypoints1):
            level = kp1.octave
            if level > 0:
                continue
            px, py = prev_matched[i1]
            candidates = features_in_area(keypoints2, px, py, window_size, level, level)
            if not candidates:
                continue

            best = best2 = _INT_MAX
            best_idx2 = None
            for i2 in candidates:
                dist = descriptor_distance(d1[i1], d2[i2])
                if matched_distance[i2] <= dist:
                    continue
                if dist < best:
                    best2 = best
                    best = dist
                    best_idx2 = i2
                elif dist < best2:
                    best2 = dist

            if best_idx2 is None or best > TH_LOW or not self._passes_ratio(best, best2):
                continue
            previous = matches21[best_idx2]
            if previous is not None:
                matches12[previous] = None
            matches12[i1] = best_idx2
            matches21[best_idx2] = i1
            matched_distance[best_idx2] = best
            if self.check_orientation:
                bin_ = rotation_histogram_bin(kp1.angle, keypoints2[best_idx2].angle)
                histogram[bin_].append(i1)

        if self.check_orientation:
            for i1 in inconsistent_rotations(histogram):
                matches12[i1] = None

        updated = [
            keypoints2[m].pt if m is not None else tuple(prev_matched[i])
            for i, m in enumerate(matches12)
        ]
        return matches12, updated