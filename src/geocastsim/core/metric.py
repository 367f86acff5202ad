"""
Euclidean distance between node positions.

Positions are 3-D. Planar deployments simply keep z = 0.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


def as_position(position: Sequence[float] | np.ndarray) -> np.ndarray:
    """Coerce a coordinate sequence into a float64 array of shape (3,)."""
    arr = np.asarray(position, dtype=np.float64)
    if arr.shape == (2,):
        arr = np.append(arr, 0.0)
    if arr.shape != (3,):
        raise ValueError(f"Position must have 2 or 3 coordinates, got shape {arr.shape}")
    return arr


def euclidean_distance_3d(
    a: Sequence[float] | np.ndarray,
    b: Sequence[float] | np.ndarray,
) -> float:
    """Non-negative Euclidean distance between two 3-D points."""
    return float(np.linalg.norm(as_position(a) - as_position(b)))


def euclidean_distances(origin: np.ndarray, targets: np.ndarray) -> np.ndarray:
    """
    Distances from one origin to many targets.

    Args:
        origin: Array of shape (3,)
        targets: Array of shape (n, 3)

    Returns:
        Array of shape (n,)
    """
    targets = np.asarray(targets, dtype=np.float64).reshape(-1, 3)
    return np.linalg.norm(targets - as_position(origin), axis=1)


def pair_distances(positions: np.ndarray, pairs: np.ndarray) -> np.ndarray:
    """
    Distances for index pairs into a position array.

    Args:
        positions: Array of shape (n, 3)
        pairs: Integer array of shape (m, 2)

    Returns:
        Array of shape (m,) with |positions[i] - positions[j]| per pair
    """
    if len(pairs) == 0:
        return np.zeros(0, dtype=np.float64)
    return np.linalg.norm(positions[pairs[:, 0]] - positions[pairs[:, 1]], axis=1)
