import numpy as np
import pytest

from orbfeatures.fast import fast_detect


def _positions(keypoints):
    return {(int(kp.x), int(kp.y)) for kp in keypoints}


def _square_image():
    image = np.zeros((24, 24), dtype=np.uint8)
    image[8:16, 8:16] = 200
    return image


def test_uniform_image_has_no_corners():
    image = np.full((20, 20), 90, dtype=np.uint8)
    assert fast_detect(image, 10, True) == []


def test_single_bright_dot_is_the_only_corner():
    image = np.zeros((20, 20), dtype=np.uint8)
    image[10, 10] = 200
    for suppress in (True, False):
        keypoints = fast_detect(image, 20, suppress)
        assert _positions(keypoints) == {(10, 10)}
        assert keypoints[0].response >= 20


def test_keypoint_size_is_fixed():
    image = np.zeros((20, 20), dtype=np.uint8)
    image[10, 10] = 200
    keypoints = fast_detect(image, 20, True)
    assert [kp.size for kp in keypoints] == [7.0]


def test_contrast_below_threshold_is_ignored():
    image = np.zeros((20, 20), dtype=np.uint8)
    image[10, 10] = 30
    assert fast_detect(image, 40, True) == []


def test_small_image_returns_nothing():
    image = np.arange(36, dtype=np.uint8).reshape(6, 6)
    assert fast_detect(image, 1, True) == []


def test_rejects_non_2d_input():
    with pytest.raises(ValueError):
        fast_detect(np.zeros((10, 10, 3), dtype=np.uint8), 10, True)


def test_square_corners_found_and_suppression_is_subset():
    image = _square_image()
    full = fast_detect(image, 20, False)
    suppressed = fast_detect(image, 20, True)
    assert suppressed
    assert _positions(suppressed) <= _positions(full)
    assert len(suppressed) <= len(full)


def test_suppressed_keypoints_are_never_adjacent():
    rng = np.random.default_rng(3)
    image = rng.integers(0, 256, size=(40, 40), dtype=np.uint8)
    positions = sorted(_positions(fast_detect(image, 15, True)))
    pos_set = set(positions)
    for x, y in positions:
        for dx in (-1, 0, 1):
            for dy in (-1, 0, 1):
                if dx or dy:
                    assert (x + dx, y + dy) not in pos_set


def test_keypoints_inside_border_and_responses_reach_threshold():
    rng = np.random.default_rng(7)
    image = rng.integers(0, 256, size=(30, 35), dtype=np.uint8)
    keypoints = fast_detect(image, 25, False)
    assert keypoints
    for kp in keypoints:
        assert 3 <= kp.x < 35 - 3
        assert 3 <= kp.y < 30 - 3
        assert kp.response >= 25


def test_row_major_order():
    rng = np.random.default_rng(11)
    image = rng.integers(0, 256, size=(30, 30), dtype=np.uint8)
    keypoints = fast_detect(image, 20, False)
    order = [(kp.y, kp.x) for kp in keypoints]
    assert order == sorted(order)


def test_higher_threshold_gives_subset():
    rng = np.random.default_rng(5)
    image = rng.integers(0, 256, size=(30, 30), dtype=np.uint8)
    low = _positions(fast_detect(image, 10, False))
    high = _positions(fast_detect(image, 40, False))
    assert high <= low


def test_brightness_offset_does_not_change_corners():
    rng = np.random.default_rng(2)
    image = rng.integers(0, 150, size=(30, 30)).astype(np.uint8)
    shifted = image + np.uint8(50)
    first = fast_detect(image, 20, True)
    second = fast_detect(shifted, 20, True)
    assert [(kp.x, kp.y, kp.response) for kp in first] == [
        (kp.x, kp.y, kp.response) for kp in second
    ]