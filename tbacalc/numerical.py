import logging
import numbers
import timeit
from dataclasses import dataclass
from multiprocessing import Pool
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import numpy as np
import numpy.typing as npt
from tqdm import tqdm

from .errors import TBAError
from .linalg import diagonalize

logger = logging.getLogger(__name__)

# Key of the momentum entry in a path point.
MOMENTUM_KEY: str = "k"


@dataclass
class EnergyBands:
    """Result of an energy band sweep."""
    coordinates: npt.NDArray[np.float64]
    energies: npt.NDArray[np.float64]


# --- Global variable for worker processes ---
_worker_system = None


def _init_worker(system):
    """
    Initializer function for multiprocessing worker.
    Each worker keeps its own copy of the system configuration.
    """
    global _worker_system
    _worker_system = system


def point_coordinate(params: Mapping[str, Any], position: int) -> float:
    """
    Scalar coordinate of a path point: its only value if the point holds
    exactly one real number, else its 1-based position.
    """
    if len(params) == 1:
        value = next(iter(params.values()))
        if isinstance(value, numbers.Real) and not isinstance(value, bool):
            return float(value)
    return float(position)


def _split_point(params: Mapping[str, Any]) -> Tuple[Any, Dict[str, Any]]:
    updates = dict(params)
    k = updates.pop(MOMENTUM_KEY, None)
    return k, updates


def _evaluate_point(system, k, updates: Mapping[str, Any], position: int):
    system = system.update(**updates) if updates else system
    start_time: float = timeit.default_timer()
    matrix = system.matrix(k)
    assembled_time: float = timeit.default_timer()
    values = diagonalize(matrix).values
    end_time: float = timeit.default_timer()
    logger.debug(
        f"Point {position}: matrix {assembled_time - start_time:.2e} s, "
        f"eigen {end_time - assembled_time:.2e} s."
    )
    return system, np.sort(np.real(values))


def _tag_error(e: TBAError, position: int, params: Mapping[str, Any]) -> None:
    e.point = (position, dict(params))
    logger.error(f"Band calculation failed at path point {position} ({dict(params)}): {e}")


def _cumulative_tasks(points: List[Mapping[str, Any]]) -> List[Tuple[int, Any, Dict[str, Any], Mapping[str, Any]]]:
    """
    Work items for the pool: each point carries every parameter update made
    up to and including it, so a worker reproduces the sequential state.
    """
    tasks = []
    accumulated: Dict[str, Any] = {}
    for i, params in enumerate(points):
        k, updates = _split_point(params)
        accumulated = {**accumulated, **updates}
        tasks.append((i + 1, k, accumulated, params))
    return tasks


def process_point(
    args: Tuple[int, Any, Dict[str, Any], Mapping[str, Any]]
) -> Tuple[int, npt.NDArray[np.float64]]:
    """
    Worker function for parallel band calculation at a single path point.
    Uses the pre-initialized _worker_system.
    """
    position, k, updates, params = args
    global _worker_system
    if _worker_system is None:
        raise RuntimeError("Worker not initialized with a system")
    try:
        _, values = _evaluate_point(_worker_system, k, updates, position)
    except TBAError as e:
        _tag_error(e, position, params)
        raise
    return position, values


def run_sweep(
    path: Iterable[Mapping[str, Any]],
    system,
    processes: Optional[int] = None,
    progress: bool = False,
) -> EnergyBands:
    """
    Calculate the energy bands of a system along a path of parameter points.

    Each point maps parameter names to values. The entry "k" is the momentum
    of the point; every other entry updates a term parameter. Updates carry
    over to the following points; the system passed in is never modified.

    Args:
        path (Iterable[Mapping[str, Any]]): The parameter points, in order.
        system: A TBA or AnalyticalTBA configuration.
        processes (Optional[int]): Number of worker processes. None or 1 runs
            sequentially. Workers receive every update made up to their point,
            so the result does not depend on the number of processes.
        progress (bool): Show a tqdm progress bar.

    Returns:
        EnergyBands: coordinates of shape (L,) and ascending eigenvalues of
            shape (L, N), row i belonging to path point i.

    Raises:
        TBAError: Any failure of a point, with `point` set to
            (1-based position, parameters). The sweep stops at the first failure.
    """
    points: List[Mapping[str, Any]] = [dict(p) for p in path]
    n = system.dimension
    coordinates = np.zeros(len(points), dtype=float)
    energies = np.zeros((len(points), n), dtype=float)
    for i, params in enumerate(points):
        coordinates[i] = point_coordinate(params, i + 1)

    logger.info(f"Running band calculation over {len(points)} points (dimension {n})...")
    start_time: float = timeit.default_timer()

    if processes is not None and processes > 1 and len(points) > 1:
        with Pool(processes=processes, initializer=_init_worker, initargs=(system,)) as pool:
            results = pool.imap(process_point, _cumulative_tasks(points))
            for position, values in tqdm(results, total=len(points), disable=not progress):
                energies[position - 1, :] = values
    else:
        current = system
        for i, params in enumerate(tqdm(points, disable=not progress)):
            k, updates = _split_point(params)
            try:
                current, energies[i, :] = _evaluate_point(current, k, updates, i + 1)
            except TBAError as e:
                _tag_error(e, i + 1, params)
                raise
            logger.debug(f"Point {i + 1}: {params} -> {energies[i]}")

    end_time: float = timeit.default_timer()
    logger.info(f"Run-time for band calculation: {np.round(end_time - start_time, 3)} s.")
    return EnergyBands(coordinates, energies)


def save_results(filename: str, results_dict: Dict[str, Any]):
    """
    Save calculation results to a compressed NumPy (.npz) file.

    Args:
        filename (str): The name of the file to save the results to.
        results_dict (Dict[str, Any]): Array names mapped to data.

    Raises:
        TypeError: If results_dict is not a dictionary.
        ValueError: If filename is empty.
        IOError: If there is an error writing the file.
    """
    if not isinstance(results_dict, dict):
        raise TypeError("results_dict must be a dictionary.")
    if not filename:
        raise ValueError("filename cannot be empty.")

    logger.info(f"Saving results to '{filename}'...")
    try:
        np.savez_compressed(filename, **results_dict)
        logger.info(f"Results successfully saved to '{filename}'.")
    except (IOError, OSError) as e:
        logger.error(f"Failed to save results to '{filename}': {e}")
        raise IOError(f"File saving failed: {e}") from e
