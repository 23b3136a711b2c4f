# fizzerb/physics.py
from __future__ import annotations
import math
from typing import Optional

import numpy as np

# -----------------------------
# Vector math helpers (2D, float32)
# -----------------------------

def vec2(x, y=None) -> np.ndarray:
    if y is None:
        return np.asarray(x, dtype=np.float32).reshape(2)
    return np.array([x, y], dtype=np.float32)

def unit(v: np.ndarray) -> np.ndarray:
    v = np.asarray(v, dtype=np.float32)
    n = np.linalg.norm(v, axis=-1, keepdims=True)
    n = np.where(n == 0, 1.0, n)
    return (v / n).astype(np.float32)

def cross2(a: np.ndarray, b: np.ndarray) -> float:
    """z component of the 3D cross product of two 2D vectors."""
    return float(a[0]) * float(b[1]) - float(a[1]) * float(b[0])

def reflect(d: np.ndarray, n: np.ndarray) -> np.ndarray:
    """Reflects ``d`` about the unit normal ``n``."""
    d = np.asarray(d, dtype=np.float32)
    n = np.asarray(n, dtype=np.float32)
    return (d - 2.0 * np.dot(d, n) * n).astype(np.float32)

def wall_normal(start: np.ndarray, end: np.ndarray) -> Optional[np.ndarray]:
    """Unit normal of a directed wall, rotated 90 degrees counter-clockwise.

    Returns ``None`` for a zero-length wall.
    """
    d = np.asarray(end, dtype=np.float32) - np.asarray(start, dtype=np.float32)
    length = float(np.linalg.norm(d))
    if length == 0.0:
        return None
    d = d / length
    return np.array([-d[1], d[0]], dtype=np.float32)

# -----------------------------
# Sampling
# -----------------------------

def direction_from_angle(angle) -> np.ndarray:
    """(cos a, sin a); an array of angles gives one row per angle."""
    angle = np.asarray(angle, dtype=np.float64)
    return np.stack([np.cos(angle), np.sin(angle)], axis=-1).astype(np.float32)

def sample_directions(nrays: int, rng: np.random.Generator) -> np.ndarray:
    return direction_from_angle(rng.random(int(nrays)) * 2.0 * math.pi)

# -----------------------------
# Loudness
# -----------------------------

def phase_sign(bounces: int) -> float:
    # every reflection inverts phase
    return 1.0 if int(bounces) % 2 == 0 else -1.0

def pressure_spread(distance: float) -> float:
    # amplitude convention ~ 1/r, clipped so it never amplifies
    r = max(float(distance), 1.0)
    return 1.0 / r
