# fizzerb/geometry.py
"""Raycasting math for 2D rays against wall segments."""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from . import config
from .physics import vec2, unit, wall_normal
from .space import Space, Wall, WallIndex


@dataclass(frozen=True)
class LineSegment:
    a: np.ndarray
    b: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "a", vec2(self.a))
        object.__setattr__(self, "b", vec2(self.b))

    @classmethod
    def from_wall(cls, wall: Wall) -> "LineSegment":
        return cls(wall.start, wall.end)


@dataclass(frozen=True)
class RayHit:
    """Intersection point and the ray parameter at which it occurred.

    ``ray_length`` is a distance whenever the ray direction is unit length.
    """

    position: np.ndarray
    ray_length: float


@dataclass(frozen=True)
class Ray:
    start: np.ndarray
    direction: np.ndarray

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", vec2(self.start))
        object.__setattr__(self, "direction", vec2(self.direction))

    def point_at(self, t: float) -> np.ndarray:
        return (self.start + self.direction * np.float32(t)).astype(np.float32)

    def cast(self, segment: LineSegment) -> Optional[RayHit]:
        return cast(self, segment)


@dataclass(frozen=True)
class WallHit:
    ray: RayHit
    wall: WallIndex


def _intersect(start: np.ndarray, direction: np.ndarray,
               seg_a: np.ndarray, seg_e: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Solve ``start + t1*direction == seg_a + t2*seg_e`` for every segment.

    Returns ``(t1, hit)`` where ``hit`` masks segments that are actually hit:
    not parallel, in front of the ray and within the segment's [0, 1] range.
    """
    d = np.asarray(direction, dtype=np.float32)
    lengths = np.linalg.norm(seg_e, axis=1)
    nonzero = lengths > 0
    e_hat = seg_e / np.where(nonzero, lengths, 1.0)[:, None]
    parallel = np.all(np.abs(e_hat - unit(d)) <= config.PARALLEL_EPSILON, axis=1)

    denom = d[0] * seg_e[:, 1] - d[1] * seg_e[:, 0]
    valid = nonzero & ~parallel & (denom != 0)
    safe = np.where(valid, denom, np.float32(1.0))

    w = seg_a - np.asarray(start, dtype=np.float32)
    t1 = (w[:, 0] * seg_e[:, 1] - w[:, 1] * seg_e[:, 0]) / safe
    t2 = (w[:, 0] * d[1] - w[:, 1] * d[0]) / safe
    hit = valid & (t1 >= 0.0) & (t2 >= 0.0) & (t2 <= 1.0)
    return t1.astype(np.float32), hit


def cast(ray: Ray, segment: LineSegment) -> Optional[RayHit]:
    """Casts the ray against a line segment."""
    a = vec2(segment.a).reshape(1, 2)
    e = (vec2(segment.b) - vec2(segment.a)).reshape(1, 2)
    if not np.any(ray.direction):
        return None
    t1, hit = _intersect(ray.start, ray.direction, a, e)
    if not hit[0]:
        return None
    t = float(t1[0])
    return RayHit(ray.point_at(t), t)


class WallIntersector:
    """All walls of a space packed into arrays for a vectorized linear scan.

    Built once per trace batch; later edits to the space are not seen.
    """

    def __init__(self, starts: np.ndarray, edges: np.ndarray, normals: np.ndarray):
        self.starts = starts
        self.edges = edges
        self.normals = normals

    @classmethod
    def build(cls, space: Space) -> "WallIntersector":
        n = len(space.walls)
        starts = np.zeros((n, 2), dtype=np.float32)
        edges = np.zeros((n, 2), dtype=np.float32)
        normals = np.zeros((n, 2), dtype=np.float32)
        for i, wall in enumerate(space.walls):
            starts[i] = wall.start
            edges[i] = wall.end - wall.start
            n_i = wall_normal(wall.start, wall.end)
            if n_i is not None:
                normals[i] = n_i
        return cls(starts, edges, normals)

    def __len__(self) -> int:
        return int(self.starts.shape[0])

    def first_hit(self, ray: Ray) -> Optional[WallHit]:
        """Nearest wall along ``ray``; the first wall wins ties."""
        if len(self) == 0 or not np.any(ray.direction):
            return None
        t1, hit = _intersect(ray.start, ray.direction, self.starts, self.edges)
        candidates = np.flatnonzero(hit)
        if candidates.size == 0:
            return None
        best = int(candidates[np.argmin(t1[candidates])])
        t = float(t1[best])
        return WallHit(RayHit(ray.point_at(t), t), WallIndex(best))

    def normal(self, wall: WallIndex) -> np.ndarray:
        return self.normals[int(wall)]

    def visible(self, start: np.ndarray, target: np.ndarray) -> Tuple[bool, Ray, float]:
        """Line of sight from ``start`` to ``target``.

        Returns ``(reaches, ray, distance)``; the target is reached when no
        wall is hit or the nearest wall lies at or beyond it.
        """
        start = vec2(start)
        offset = vec2(target) - start
        distance = float(np.linalg.norm(offset))
        if distance == 0.0:
            return True, Ray(start, np.zeros(2, dtype=np.float32)), 0.0
        ray = Ray(start, (offset / np.float32(distance)).astype(np.float32))
        hit = self.first_hit(ray)
        if hit is None:
            return True, ray, distance
        return hit.ray.ray_length >= distance, ray, distance
