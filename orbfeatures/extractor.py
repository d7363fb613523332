"""Multi-scale ORB keypoint extraction with an even spatial distribution."""

from __future__ import annotations

import math

import numpy as np

from .descriptor import compute_descriptors, compute_orientation
from .fast import fast_detect
from .image import build_pyramid, gaussian_blur
from .keypoint import KeyPoint, retain_best
from .octree import distribute_oct_tree
from .pattern import circular_umax, pattern_points

PATCH_SIZE = 31
HALF_PATCH_SIZE = 15
EDGE_THRESHOLD = 19
DESCRIPTOR_BYTES = 32
_CELL_SIZE = 30.0


class ORBExtractor:
    """Detects oriented FAST keypoints over a scale pyramid and describes them."""

    def __init__(self, nfeatures=1000, scale_factor=1.2, nlevels=8, ini_th_fast=20, min_th_fast=7):
        if nlevels < 1:
            raise ValueError("nlevels must be at least 1")
        if nfeatures < 0:
            raise ValueError("nfeatures must not be negative")
        if scale_factor <= 0:
            raise ValueError("scale_factor must be positive")
        if nlevels > 1 and scale_factor == 1:
            raise ValueError("scale_factor must differ from 1 when there are several levels")

        self.nfeatures = nfeatures
        self.scale_factor = float(scale_factor)
        self.nlevels = nlevels
        self.ini_th_fast = ini_th_fast
        self.min_th_fast = min_th_fast

        self.scale_factors = [1.0]
        for _ in range(1, nlevels):
            self.scale_factors.append(self.scale_factors[-1] * self.scale_factor)
        self.level_sigma2 = [s * s for s in self.scale_factors]
        self.inv_scale_factors = [1.0 / s for s in self.scale_factors]
        self.inv_level_sigma2 = [1.0 / s2 for s2 in self.level_sigma2]

        self.features_per_level = self._split_features()
        self.pattern = pattern_points()
        self.umax = circular_umax(HALF_PATCH_SIZE)
        self.image_pyramid: list[np.ndarray] = []

    def _split_features(self) -> list[int]:
        per_level: list[int] = []
        if self.nlevels > 1:
            factor = 1.0 / self.scale_factor
            desired = self.nfeatures * (1 - factor) / (1 - factor ** self.nlevels)
            for _ in range(self.nlevels - 1):
                per_level.append(round(desired))
                desired *= factor
        per_level.append(max(self.nfeatures - sum(per_level), 0))
        return per_level

    def compute_pyramid(self, image) -> list[np.ndarray]:
        """Build the scale pyramid of ``image`` and return its levels."""
        e = EDGE_THRESHOLD
        padded = build_pyramid(image, self.inv_scale_factors, e)
        self.image_pyramid = [level[e:-e, e:-e] for level in padded]
        return self.image_pyramid

    def _require_pyramid(self) -> None:
        if len(self.image_pyramid) != self.nlevels:
            raise RuntimeError("compute_pyramid must be called first")

    def _patch_size(self, level: int) -> float:
        return float(int(PATCH_SIZE * self.scale_factors[level]))

    def compute_keypoints_octtree(self) -> list[list[KeyPoint]]:
        """Detect keypoints per level, spread with a quad tree, and orient them."""
        self._require_pyramid()
        all_keypoints: list[list[KeyPoint]] = []

        for level, img in enumerate(self.image_pyramid):
            rows, cols = img.shape
            min_border_x = EDGE_THRESHOLD - 3
            min_border_y = min_border_x
            max_border_x = cols - EDGE_THRESHOLD + 3
            max_border_y = rows - EDGE_THRESHOLD + 3

            width = float(max_border_x - min_border_x)
            height = float(max_border_y - min_border_y)
            n_cols = int(width / _CELL_SIZE)
            n_rows = int(height / _CELL_SIZE)
            if n_cols <= 0 or n_rows <= 0:
                all_keypoints.append([])
                continue
            w_cell = math.ceil(width / n_cols)
            h_cell = math.ceil(height / n_rows)

            to_distribute: list[KeyPoint] = []
            for i in range(n_rows):
                ini_y = min_border_y + i * h_cell
                if ini_y >= max_border_y - 3:
                    continue
                max_y = min(ini_y + h_cell + 6, max_border_y)
                for j in range(n_cols):
                    ini_x = min_border_x + j * w_cell
                    if ini_x >= max_border_x - 6:
                        continue
                    max_x = min(ini_x + w_cell + 6, max_border_x)
                    cell = img[ini_y:max_y, ini_x:max_x]
                    keys = fast_detect(cell, self.ini_th_fast, True)
                    if not keys:
                        keys = fast_detect(cell, self.min_th_fast, True)
                    for kp in keys:
                        kp.x += j * w_cell
                        kp.y += i * h_cell
                    to_distribute.extend(keys)

            keypoints = distribute_oct_tree(
                to_distribute, min_border_x, max_border_x, min_border_y, max_border_y,
                self.features_per_level[level],
            )
            size = self._patch_size(level)
            for kp in keypoints:
                kp.x += min_border_x
                kp.y += min_border_y
                kp.octave = level
                kp.size = size
            all_keypoints.append(keypoints)

        for img, keypoints in zip(self.image_pyramid, all_keypoints):
            compute_orientation(img, keypoints, self.umax)
        return all_keypoints

    def compute_keypoints_old(self) -> list[list[KeyPoint]]:
        """Detect keypoints per level on a fixed grid, redistributing the budget."""
        self._require_pyramid()
        all_keypoints: list[list[KeyPoint]] = []
        base_rows, base_cols = self.image_pyramid[0].shape
        image_ratio = base_cols / base_rows

        for level, img in enumerate(self.image_pyramid):
            n_desired = self.features_per_level[level]
            level_cols = int(math.sqrt(n_desired / (5 * image_ratio)))
            level_rows = int(image_ratio * level_cols)
            if level_cols <= 0 or level_rows <= 0:
                all_keypoints.append([])
                continue

            rows, cols = img.shape
            min_border_x = EDGE_THRESHOLD
            min_border_y = min_border_x
            max_border_x = cols - EDGE_THRESHOLD
            max_border_y = rows - EDGE_THRESHOLD
            cell_w = math.ceil((max_border_x - min_border_x) / level_cols)
            cell_h = math.ceil((max_border_y - min_border_y) / level_rows)
            n_cells = level_rows * level_cols
            n_features_cell = math.ceil(n_desired / n_cells)

            cells = [[[] for _ in range(level_cols)] for _ in range(level_rows)]
            to_retain = [[0] * level_cols for _ in range(level_rows)]
            totals = [[0] * level_cols for _ in range(level_rows)]
            no_more = [[False] * level_cols for _ in range(level_rows)]
            ini_x_col = [0] * level_cols
            ini_y_row = [0] * level_rows
            n_no_more = 0
            n_to_distribute = 0

            h_y = cell_h + 6
            for i in range(level_rows):
                ini_y = min_border_y + i * cell_h - 3
                ini_y_row[i] = ini_y
                if i == level_rows - 1:
                    h_y = max_border_y + 3 - ini_y
                    if h_y <= 0:
                        continue
                h_x = cell_w + 6
                for j in range(level_cols):
                    if i == 0:
                        ini_x = min_border_x + j * cell_w - 3
                        ini_x_col[j] = ini_x
                    else:
                        ini_x = ini_x_col[j]
                    if j == level_cols - 1:
                        h_x = max_border_x + 3 - ini_x
                        if h_x <= 0:
                            continue
                    cell = img[ini_y:ini_y + h_y, ini_x:ini_x + h_x]
                    keys = fast_detect(cell, self.ini_th_fast, True)
                    if len(keys) <= 3:
                        keys = fast_detect(cell, self.min_th_fast, True)
                    cells[i][j] = keys
                    totals[i][j] = len(keys)
                    if len(keys) > n_features_cell:
                        to_retain[i][j] = n_features_cell
                        no_more[i][j] = False
                    else:
                        to_retain[i][j] = len(keys)
                        n_to_distribute += n_features_cell - len(keys)
                        no_more[i][j] = True
                        n_no_more += 1

            while n_to_distribute > 0 and n_no_more < n_cells:
                n_new = n_features_cell + math.ceil(n_to_distribute / (n_cells - n_no_more))
                n_to_distribute = 0
                for i in range(level_rows):
                    for j in range(level_cols):
                        if no_more[i][j]:
                            continue
                        if totals[i][j] > n_new:
                            to_retain[i][j] = n_new
                        else:
                            to_retain[i][j] = totals[i][j]
                            n_to_distribute += n_new - totals[i][j]
                            no_more[i][j] = True
                            n_no_more += 1

            size = self._patch_size(level)
            keypoints: list[KeyPoint] = []
            for i in range(level_rows):
                for j in range(level_cols):
                    keep = to_retain[i][j]
                    for kp in retain_best(cells[i][j], keep)[:keep]:
                        kp.x += ini_x_col[j]
                        kp.y += ini_y_row[i]
                        kp.octave = level
                        kp.size = size
                        keypoints.append(kp)

            if len(keypoints) > n_desired:
                keypoints = retain_best(keypoints, n_desired)[:n_desired]
            all_keypoints.append(keypoints)

        for img, keypoints in zip(self.image_pyramid, all_keypoints):
            compute_orientation(img, keypoints, self.umax)
        return all_keypoints

    def __call__(self, image, mask=None) -> tuple[list[KeyPoint], np.ndarray]:
        """Extract keypoints and descriptors from an 8-bit grayscale image.

        Returns the keypoints in original image coordinates and a
        ``(len(keypoints), 32)`` array of ``uint8`` descriptors. The mask is
        accepted but not used.
        """
        arr = np.asarray(image)
        if arr.size == 0:
            return [], np.zeros((0, DESCRIPTOR_BYTES), dtype=np.uint8)
        if arr.ndim != 2 or arr.dtype != np.uint8:
            raise ValueError("expected a single-channel 8-bit image")

        self.compute_pyramid(arr)
        all_keypoints = self.compute_keypoints_octtree()

        keypoints: list[KeyPoint] = []
        blocks: list[np.ndarray] = []
        for level, (img, level_keys) in enumerate(zip(self.image_pyramid, all_keypoints)):
            if not level_keys:
                continue
            working = gaussian_blur(img, 7, 2.0)
            blocks.append(compute_descriptors(working, level_keys, self.pattern))
            if level != 0:
                scale = self.scale_factors[level]
                for kp in level_keys:
                    kp.x *= scale
                    kp.y *= scale
            keypoints.extend(level_keys)

        if not blocks:
            return [], np.zeros((0, DESCRIPTOR_BYTES), dtype=np.uint8)
        return keypoints, np.vstack(blocks)