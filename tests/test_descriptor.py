import numpy as np
import pytest

from orbfeatures.descriptor import (
    compute_descriptors,
    compute_orb_descriptor,
    compute_orientation,
    ic_angle,
)
from orbfeatures.keypoint import KeyPoint
from orbfeatures.pattern import circular_umax, pattern_points

UMAX = circular_umax(15)
PATTERN = pattern_points()


def _random_image(seed=0, size=48):
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(size, size), dtype=np.uint8)


def _unique_image(size=48):
    rng = np.random.default_rng(4)
    return rng.permutation(size * size).reshape(size, size).astype(np.float64)


def test_uniform_patch_has_zero_angle():
    image = np.full((40, 40), 77, dtype=np.uint8)
    assert ic_angle(image, 20, 20, UMAX) == 0.0


def test_horizontal_gradient_points_along_x():
    image = np.tile(np.arange(40, dtype=np.float64), (40, 1))
    assert ic_angle(image, 20, 20, UMAX) == pytest.approx(0.0, abs=1e-9)


def test_angle_in_range():
    image = _random_image(1)
    for x, y in [(16, 16), (24, 24), (30, 20)]:
        angle = ic_angle(image, x, y, UMAX)
        assert 0.0 <= angle < 360.0


def test_transposed_patch_mirrors_angle():
    image = _random_image(2)
    angle = ic_angle(image, 24, 24, UMAX)
    mirrored = ic_angle(image.T, 24, 24, UMAX)
    diff = (angle + mirrored - 90.0) % 360.0
    assert min(diff, 360.0 - diff) == pytest.approx(0.0, abs=1e-6)


def test_angle_patch_outside_image_raises():
    image = _random_image(3)
    with pytest.raises(ValueError):
        ic_angle(image, 5, 24, UMAX)


def test_compute_orientation_sets_angles():
    image = _random_image(5)
    keypoints = [KeyPoint(x=20.0, y=22.0), KeyPoint(x=26.0, y=25.0)]
    result = compute_orientation(image, keypoints, UMAX)
    assert result is keypoints
    assert [kp.angle for kp in keypoints] == [
        ic_angle(image, 20.0, 22.0, UMAX),
        ic_angle(image, 26.0, 25.0, UMAX),
    ]


def test_uniform_image_descriptor_is_zero():
    image = np.full((48, 48), 10, dtype=np.uint8)
    desc = compute_orb_descriptor(KeyPoint(x=24.0, y=24.0, angle=30.0), image, PATTERN)
    assert desc.shape == (32,)
    assert desc.dtype == np.uint8
    assert not desc.any()


def test_brightness_offset_does_not_change_descriptor():
    image = _random_image(6).astype(np.int32)
    kp = KeyPoint(x=24.0, y=24.0, angle=45.0)
    first = compute_orb_descriptor(kp, image, PATTERN)
    second = compute_orb_descriptor(kp, image + 100, PATTERN)
    assert np.array_equal(first, second)


def test_inverted_image_flips_every_bit():
    image = _unique_image()
    kp = KeyPoint(x=24.0, y=24.0, angle=0.0)
    desc = compute_orb_descriptor(kp, image, PATTERN)
    inverted = compute_orb_descriptor(kp, -image, PATTERN)
    assert np.array_equal(inverted, np.bitwise_not(desc))


def test_descriptor_near_border_raises():
    image = _random_image(7)
    with pytest.raises(ValueError):
        compute_orb_descriptor(KeyPoint(x=3.0, y=24.0, angle=0.0), image, PATTERN)


def test_compute_descriptors_stacks_rows():
    image = _random_image(8)
    keypoints = [KeyPoint(x=22.0, y=23.0, angle=10.0), KeyPoint(x=25.0, y=26.0, angle=200.0)]
    table = compute_descriptors(image, keypoints, PATTERN)
    assert table.shape == (2, 32)
    for row, kp in zip(table, keypoints):
        assert np.array_equal(row, compute_orb_descriptor(kp, image, PATTERN))


def test_compute_descriptors_empty():
    image = _random_image(9)
    table = compute_descriptors(image, [], PATTERN)
    assert table.shape == (0, 32)