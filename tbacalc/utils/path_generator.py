# -*- coding: utf-8 -*-
"""
Utility for generating paths in reciprocal space and in parameter space.
"""
import numpy as np
import logging
from typing import Dict, List, Optional, Tuple, Union
import numpy.typing as npt

logger = logging.getLogger(__name__)


def generate_k_path(
    path_spec: List[str],
    points_per_segment: int,
    high_symmetry_points: Dict[str, Union[List[float], npt.NDArray[np.float64]]],
    reciprocal_vectors: Optional[npt.NDArray[np.float64]] = None,
) -> npt.NDArray[np.float64]:
    """
    Generates a list of k-vectors along a path defined by high-symmetry points.

    Args:
        path_spec (List[str]): A list of names of high-symmetry points defining
            the path segments (e.g., ['Gamma', 'X', 'M', 'Gamma']).
        points_per_segment (int): The number of k-points to generate for each
            segment of the path.
        high_symmetry_points (Dict[str, Union[List[float], npt.NDArray[np.float64]]]):
            A dictionary mapping high-symmetry point names to their coordinates.
        reciprocal_vectors (Optional[npt.NDArray[np.float64]]): If given, the
            coordinates are fractions of these vectors (rows) and are converted
            to Cartesian momenta; otherwise they are taken as Cartesian.

    Returns:
        npt.NDArray[np.float64]: An array of shape (N_total, dim) containing
            the k-vectors along the specified path.

    Raises:
        ValueError: If path_spec is too short, points_per_segment is below 2
                    (the segment would not reach its end point), or a point name in path_spec is not found in high_symmetry_points.
    """
    if len(path_spec) < 2:
        raise ValueError("path_spec must contain at least two points.")
    if points_per_segment < 2:
        raise ValueError(
            "points_per_segment must be at least 2 so that every high-symmetry point is on the path."
        )

    k_path_segments = []
    num_segments = len(path_spec) - 1

    for i in range(num_segments):
        start_name, end_name = path_spec[i], path_spec[i + 1]
        if (
            start_name not in high_symmetry_points
            or end_name not in high_symmetry_points
        ):
            raise ValueError(
                f"Point name '{start_name}' or '{end_name}' not found in high_symmetry_points."
            )

        start_coord = np.array(high_symmetry_points[start_name], dtype=float)
        end_coord = np.array(high_symmetry_points[end_name], dtype=float)
        # Include endpoint only for the very last segment
        include_endpoint = i == num_segments - 1
        segment_points = np.linspace(
            start_coord, end_coord, points_per_segment, endpoint=include_endpoint
        )
        k_path_segments.append(segment_points)

    k_path = np.vstack(k_path_segments)
    if reciprocal_vectors is not None:
        reciprocal_vectors = np.atleast_2d(np.asarray(reciprocal_vectors, dtype=float))
        if reciprocal_vectors.shape[0] != k_path.shape[1]:
            raise ValueError(
                f"Points have {k_path.shape[1]} components but there are {reciprocal_vectors.shape[0]} reciprocal vectors."
            )
        k_path = k_path @ reciprocal_vectors
    logger.debug(f"Generated k-path {'-'.join(path_spec)} with {len(k_path)} points.")
    return k_path


def path_length(k_vectors: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Cumulative distance along a path of vectors, starting at 0."""
    k_vectors = np.asarray(k_vectors, dtype=float)
    if len(k_vectors) == 0:
        return np.zeros(0)
    dists = np.linalg.norm(np.diff(k_vectors, axis=0), axis=1)
    return np.concatenate(([0.0], np.cumsum(dists)))


def k_path_points(
    path_spec: List[str],
    points_per_segment: int,
    high_symmetry_points: Dict[str, Union[List[float], npt.NDArray[np.float64]]],
    reciprocal_vectors: Optional[npt.NDArray[np.float64]] = None,
) -> Tuple[List[Dict[str, npt.NDArray[np.float64]]], npt.NDArray[np.float64], List[float]]:
    """
    Sweep points {"k": vector} along a high-symmetry path.

    Returns:
        Tuple: the sweep points, the cumulative path length of each point and
            the path length at every high-symmetry point (for tick marks).
    """
    k_vectors = generate_k_path(path_spec, points_per_segment, high_symmetry_points, reciprocal_vectors)
    distances = path_length(k_vectors)
    ticks = [float(distances[min(i * points_per_segment, len(distances) - 1)]) for i in range(len(path_spec))]
    return [{"k": k} for k in k_vectors], distances, ticks


def parameter_scan(name: str, start: float, stop: float, num: int) -> List[Dict[str, float]]:
    """Sweep points {name: value} for `num` evenly spaced values."""
    if num <= 0:
        raise ValueError("num must be positive.")
    return [{name: float(value)} for value in np.linspace(start, stop, num)]
