"""
Utility functions for game mechanics
"""

from __future__ import annotations
import math
import random
from typing import Optional
import numpy as np


def clamp(x: float, lo: float, hi: float) -> float:
    """Clamp value between low and high bounds"""
    return lo if x < lo else hi if x > hi else x


def vec3(x: float = 0.0, y: float = 0.0, z: float = 0.0) -> np.ndarray:
    """Build a float 3-vector (x, y, z); y is up"""
    return np.array([x, y, z], dtype=np.float64)


def vec_len(v: np.ndarray) -> float:
    """Calculate vector length (magnitude)"""
    return float(np.linalg.norm(v))


def normalize(v: np.ndarray, eps: float = 1e-8) -> np.ndarray:
    """Normalize a vector to unit length; zero vectors stay zero"""
    l = float(np.linalg.norm(v))
    if l < eps:
        return np.zeros_like(v, dtype=np.float64)
    return v / l


def horizontal_speed(v: np.ndarray) -> float:
    """Speed in the ground plane (x, z)"""
    return math.hypot(v[0], v[2])


def clamp_horizontal_speed(v: np.ndarray, max_speed: float) -> None:
    """Scale the x/z components in place so their magnitude is at most max_speed"""
    speed = horizontal_speed(v)
    if speed > max_speed:
        scale = max_speed / speed
        v[0] *= scale
        v[2] *= scale


def clamp_speed(v: np.ndarray, max_speed: float) -> None:
    """Scale the whole vector in place so its magnitude is at most max_speed"""
    speed = vec_len(v)
    if speed > max_speed:
        v *= max_speed / speed


def format_clock(seconds: float) -> str:
    """Format seconds as m:ss"""
    seconds = max(0.0, seconds)
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"


def seed_everything(py_seed: Optional[int]):
    """Seed all random number generators"""
    if py_seed is None:
        return
    random.seed(py_seed)
    np.random.seed(py_seed)
