"""Quad-tree distribution of keypoints so that they cover the image evenly."""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Sequence

from .keypoint import KeyPoint

Corner = tuple[int, int]


@dataclass(eq=False)
class ExtractorNode:
    """A rectangular cell of the quad tree and the keypoints inside it."""

    ul: Corner
    ur: Corner
    bl: Corner
    br: Corner
    keys: list[KeyPoint] = field(default_factory=list)
    no_more: bool = False

    def divide(self) -> tuple["ExtractorNode", "ExtractorNode", "ExtractorNode", "ExtractorNode"]:
        """Split into four children (upper-left, upper-right, lower-left, lower-right)."""
        half_x = math.ceil((self.ur[0] - self.ul[0]) / 2)
        half_y = math.ceil((self.br[1] - self.ul[1]) / 2)
        ux, uy = self.ul

        n1 = ExtractorNode(
            ul=self.ul,
            ur=(ux + half_x, uy),
            bl=(ux, uy + half_y),
            br=(ux + half_x, uy + half_y),
        )
        n2 = ExtractorNode(
            ul=n1.ur,
            ur=self.ur,
            bl=n1.br,
            br=(self.ur[0], uy + half_y),
        )
        n3 = ExtractorNode(
            ul=n1.bl,
            ur=n1.br,
            bl=self.bl,
            br=(n1.br[0], self.bl[1]),
        )
        n4 = ExtractorNode(
            ul=n3.ur,
            ur=n2.br,
            bl=n3.br,
            br=self.br,
        )

        split_x = n1.ur[0]
        split_y = n1.br[1]
        for kp in self.keys:
            if kp.x < split_x:
                (n1 if kp.y < split_y else n3).keys.append(kp)
            elif kp.y < split_y:
                n2.keys.append(kp)
            else:
                n4.keys.append(kp)

        children = (n1, n2, n3, n4)
        for child in children:
            if len(child.keys) == 1:
                child.no_more = True
        return children


def _round_half_away(value: float) -> int:
    return int(math.floor(value + 0.5)) if value >= 0 else -int(math.floor(-value + 0.5))


def _initial_nodes(keypoints: Sequence[KeyPoint], width: int, height: int) -> list[ExtractorNode]:
    n_ini = max(1, _round_half_away(width / height))
    h_x = width / n_ini
    nodes = []
    for i in range(n_ini):
        left = int(h_x * i)
        right = int(h_x * (i + 1))
        nodes.append(ExtractorNode(ul=(left, 0), ur=(right, 0), bl=(left, height), br=(right, height)))
    for kp in keypoints:
        index = min(max(int(kp.x / h_x), 0), n_ini - 1)
        nodes[index].keys.append(kp)

    nodes = [node for node in nodes if node.keys]
    for node in nodes:
        if len(node.keys) == 1:
            node.no_more = True
    return nodes


def _best_key(node: ExtractorNode) -> KeyPoint:
    best = node.keys[0]
    for kp in node.keys[1:]:
        if kp.response > best.response:
            best = kp
    return replace(best)


def distribute_oct_tree(keypoints, min_x, max_x, min_y, max_y, n) -> list[KeyPoint]:
    """Spread keypoints over the area and keep the strongest one per cell.

    Keypoint coordinates are relative to ``(min_x, min_y)``. Cells are split
    into quarters until there are at least ``n`` cells or no cell can be split
    further; the keypoint with the highest response in each cell is returned
    as a copy.
    """
    points = list(keypoints)
    if not points:
        return []
    width = max_x - min_x
    height = max_y - min_y
    if width <= 0 or height <= 0:
        raise ValueError("the area must have a positive width and height")

    nodes = _initial_nodes(points, width, height)

    while True:
        prev_size = len(nodes)
        pushed: list[ExtractorNode] = []
        kept: list[ExtractorNode] = []
        expandable: list[ExtractorNode] = []
        for node in nodes:
            if node.no_more:
                kept.append(node)
                continue
            for child in node.divide():
                if child.keys:
                    pushed.append(child)
                    if len(child.keys) > 1:
                        expandable.append(child)
        # Children are pushed to the front, so the latest one ends up first.
        nodes = pushed[::-1] + kept

        if len(nodes) >= n or len(nodes) == prev_size:
            break

        if len(nodes) + 3 * len(expandable) > n:
            while True:
                prev_size = len(nodes)
                previous = sorted(expandable, key=lambda nd: len(nd.keys))
                expandable = []
                for node in reversed(previous):
                    for child in node.divide():
                        if child.keys:
                            nodes.insert(0, child)
                            if len(child.keys) > 1:
                                expandable.append(child)
                    nodes.remove(node)
                    if len(nodes) >= n:
                        break
                if len(nodes) >= n or len(nodes) == prev_size:
                    break
            break

    return [_best_key(node) for node in nodes]