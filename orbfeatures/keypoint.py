"""Keypoint record and response-based filtering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass
class KeyPoint:
    """A detected image feature.

    Coordinates are in pixels of the image the point was detected in.
    ``angle`` is in degrees and is -1 while no orientation has been assigned.
    """

    x: float
    y: float
    size: float = 0.0
    angle: float = -1.0
    response: float = 0.0
    octave: int = 0

    @property
    def pt(self) -> tuple[float, float]:
        """The position as an ``(x, y)`` pair."""
        return (self.x, self.y)


def retain_best(keypoints: Iterable[KeyPoint], n: int) -> list[KeyPoint]:
    """Keep the ``n`` keypoints with the strongest response.

    Keypoints whose response ties with the n-th best are kept as well, so the
    result may hold more than ``n`` items. A negative ``n``, or one not smaller
    than the number of keypoints, leaves the keypoints unchanged.
    """
    points = list(keypoints)
    if n < 0 or len(points) <= n:
        return points
    if n == 0:
        return []
    ordered = sorted(points, key=lambda kp: kp.response, reverse=True)
    threshold = ordered[n - 1].response
    return [kp for kp in ordered if kp.response >= threshold]