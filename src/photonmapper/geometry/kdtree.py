"""KD-tree over triangles.

The tree is built once and never modified. Each internal node splits its
triangles at the center of its bounding box, along an axis that cycles with
depth (x, y, z, x, ...). No cost heuristic is used. A triangle goes to every
child it touches:

    left  if any vertex <= split
    right if any vertex >  split

so triangles straddling the plane are duplicated. Recursion stops at
``MAX_DEPTH`` or once a node holds at most ``MAX_LEAF_TRIANGLES`` triangles.
Every node's bounds are inflated by ``DISTANCE_EPSILON``.

Traversal visits the child containing the ray origin first. The far child
is skipped when nothing in it can be hit before what was already found:

    - the origin lies at least epsilon before the plane and the ray points
      away from it (or runs parallel to it), or
    - a hit was found at least epsilon before the plane and the ray runs
      toward the far side, so every far-only triangle lies further along
      the ray.

This keeps ``raytrace`` equivalent to testing every triangle. Shadow
queries stop at the first occluder by raising a private exception that
unwinds to the entry point.

Example:
    >>> tree = KdTree(triangles)
    >>> hit = HitInfo()
    >>> tree.raytrace(ray, hit)
    True
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from src.photonmapper.core.ray import DISTANCE_EPSILON, Ray
from src.photonmapper.core.traceable import HitInfo
from src.photonmapper.geometry.aabb import Aabb
from src.photonmapper.geometry.triangle import Triangle

logger = logging.getLogger(__name__)

MAX_DEPTH = 20
MAX_LEAF_TRIANGLES = 32


class KdLeaf:
    """Leaf node owning a compacted tuple of triangles."""

    __slots__ = ("bounds", "triangles")

    def __init__(self, bounds: Aabb, triangles: tuple[Triangle, ...]) -> None:
        self.bounds = bounds
        self.triangles = triangles


class KdInternal:
    """Internal node splitting space at ``split`` along ``axis``."""

    __slots__ = ("bounds", "axis", "split", "left", "right")

    def __init__(self, bounds: Aabb, axis: int, split: float, left: KdNode, right: KdNode) -> None:
        self.bounds = bounds
        self.axis = axis
        self.split = split
        self.left = left
        self.right = right


KdNode = KdLeaf | KdInternal


class _ShadowHit(Exception):
    """Raised inside shadow traversal when an occluder is found."""


class KdTree:
    """Immutable KD-tree over a triangle set.

    Args:
        triangles: Triangles to index. May be empty.

    Attributes:
        root: The root node.
        node_count: Total number of nodes.
        leaf_count: Number of leaf nodes.
        depth: Depth of the deepest leaf (root is depth 0).
    """

    def __init__(self, triangles: Sequence[Triangle]) -> None:
        self.node_count = 0
        self.leaf_count = 0
        self.depth = 0
        self.triangle_count = len(triangles)
        self.root: KdNode = self._build(list(triangles), 0)
        logger.debug(
            "Built KD-tree: %d triangles, %d nodes, %d leaves, depth %d",
            self.triangle_count,
            self.node_count,
            self.leaf_count,
            self.depth,
        )

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    def _make_leaf(self, bounds: Aabb, triangles: list[Triangle], depth: int) -> KdLeaf:
        self.node_count += 1
        self.leaf_count += 1
        self.depth = max(self.depth, depth)
        return KdLeaf(bounds, tuple(triangles))

    def _build(self, triangles: list[Triangle], depth: int) -> KdNode:
        if not triangles:
            empty = Aabb(np.zeros(3), np.zeros(3))
            empty.inflate(DISTANCE_EPSILON)
            return self._make_leaf(empty, [], depth)

        bounds = triangles[0].bounds()
        for triangle in triangles[1:]:
            bounds.extend_to_fit(triangle.bounds())
        bounds.inflate(DISTANCE_EPSILON)

        if depth >= MAX_DEPTH or len(triangles) <= MAX_LEAF_TRIANGLES:
            return self._make_leaf(bounds, triangles, depth)

        axis = depth % 3
        split = float(bounds.center[axis])
        left = [t for t in triangles if t.vertices[:, axis].min() <= split]
        right = [t for t in triangles if t.vertices[:, axis].max() > split]

        if len(left) == len(triangles) and len(right) == len(triangles):
            # Every triangle straddles the plane; splitting would only duplicate
            return self._make_leaf(bounds, triangles, depth)

        self.node_count += 1
        return KdInternal(
            bounds,
            axis,
            split,
            self._build(left, depth + 1),
            self._build(right, depth + 1),
        )

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @property
    def bounds(self) -> Aabb:
        return self.root.bounds

    def raytrace(self, ray: Ray, hit: HitInfo) -> bool:
        """Find the nearest triangle hit closer than ``hit.distance``."""
        return self._raytrace(self.root, ray, hit)

    def _raytrace(self, node: KdNode, ray: Ray, hit: HitInfo) -> bool:
        if not node.bounds.intersects_ray(ray):
            return False

        if isinstance(node, KdLeaf):
            found = False
            for triangle in node.triangles:
                if triangle.raytrace(ray, hit):
                    found = True
            return found

        axis = node.axis
        split = node.split
        origin = ray.origin[axis]
        direction = ray.direction[axis]

        if origin <= split:
            found = self._raytrace(node.left, ray, hit)
            if origin <= split - DISTANCE_EPSILON and direction <= 0.0:
                return found
            if direction > 0.0 and hit.distance < np.inf and hit.position[axis] <= split - DISTANCE_EPSILON:
                return found
            return self._raytrace(node.right, ray, hit) or found

        found = self._raytrace(node.right, ray, hit)
        if origin > split + DISTANCE_EPSILON and direction >= 0.0:
            return found
        if direction < 0.0 and hit.distance < np.inf and hit.position[axis] > split + DISTANCE_EPSILON:
            return found
        return self._raytrace(node.left, ray, hit) or found

    def raytrace_shadow(self, ray: Ray, max_distance: float) -> bool:
        """Report whether any triangle is hit before ``max_distance``."""
        try:
            self._raytrace_shadow(self.root, ray, max_distance)
        except _ShadowHit:
            return True
        return False

    def _raytrace_shadow(self, node: KdNode, ray: Ray, max_distance: float) -> None:
        if not node.bounds.intersects_ray(ray):
            return

        if isinstance(node, KdLeaf):
            for triangle in node.triangles:
                if triangle.raytrace_shadow(ray, max_distance):
                    raise _ShadowHit
            return

        axis = node.axis
        split = node.split
        origin = ray.origin[axis]
        direction = ray.direction[axis]

        if origin <= split:
            self._raytrace_shadow(node.left, ray, max_distance)
            if not (origin <= split - DISTANCE_EPSILON and direction <= 0.0):
                self._raytrace_shadow(node.right, ray, max_distance)
        else:
            self._raytrace_shadow(node.right, ray, max_distance)
            if not (origin > split + DISTANCE_EPSILON and direction >= 0.0):
                self._raytrace_shadow(node.left, ray, max_distance)

    def __repr__(self) -> str:
        return f"KdTree(triangles={self.triangle_count}, nodes={self.node_count}, depth={self.depth})"
