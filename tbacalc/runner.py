import os
import logging
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from .config_loader import build_system, load_model_config
from .core import TBA
from .numerical import MOMENTUM_KEY, save_results
from .plotting import plot_bands
from .schema import TBAConfig
from .utils.path_generator import k_path_points, parameter_scan

logger = logging.getLogger(__name__)


def generate_path_from_config(
    config: TBAConfig, system: TBA
) -> Tuple[List[Dict[str, Any]], np.ndarray, str, Optional[List[float]], Optional[List[str]]]:
    """
    Sweep points from the 'k_path' or 'parameter_scan' section.

    Returns:
        Tuple: points, x values for plotting, x-axis label, tick positions
            and tick labels. Without either section the path is the single
            point without momentum.
    """
    if config.k_path is not None:
        k_conf = config.k_path
        reciprocal_vectors = None
        if k_conf.units == 'fractional':
            if system.lattice.vectors.shape[0] == 0:
                raise ValueError("Fractional k_path units need lattice vectors; use units: cartesian.")
            reciprocal_vectors = system.lattice.reciprocals()
        points, distances, ticks = k_path_points(
            k_conf.path, k_conf.points_per_segment, k_conf.points, reciprocal_vectors
        )
        return points, distances, "k path length", ticks, list(k_conf.path)

    if config.parameter_scan is not None:
        scan = config.parameter_scan
        points = parameter_scan(scan.name, scan.start, scan.stop, scan.num)
        if scan.k is not None:
            for point in points:
                point[MOMENTUM_KEY] = np.array(scan.k, dtype=float)
        values = np.array([point[scan.name] for point in points])
        return points, values, scan.name, None, None

    logger.warning("No 'k_path' or 'parameter_scan' given; evaluating the bands at a single point.")
    return [{}], np.array([1.0]), "point", None, None


def _resolve(filename: str, config_dir: str) -> str:
    if not os.path.isabs(filename):
        return os.path.join(config_dir, filename)
    return filename


def run_calculation(config_file: str) -> Optional[Dict[str, np.ndarray]]:
    """
    Main execution logic for running a band calculation.

    Returns:
        Optional[Dict[str, np.ndarray]]: The band data that was calculated or
            loaded, or None if no task needed it.
    """
    if not os.path.exists(config_file):
        logger.error(f"Config file '{config_file}' not found.")
        raise FileNotFoundError(f"Config file '{config_file}' not found.")

    config = load_model_config(config_file)
    config_dir = os.path.dirname(os.path.abspath(config_file))
    system = build_system(config)
    tasks = config.tasks

    bands_file = _resolve(config.output.bands_data_filename, config_dir)
    data: Optional[Dict[str, np.ndarray]] = None

    # 1. Bands
    if tasks.run_bands:
        points, x_values, xlabel, ticks, tick_labels = generate_path_from_config(config, system)
        bands = system.calculate_bands(
            points, processes=config.calculation.processes, progress=config.calculation.progress
        )
        data = {
            'coordinates': bands.coordinates,
            'energies': bands.energies,
            'x_values': np.asarray(x_values, dtype=float),
        }
        if points and MOMENTUM_KEY in points[0]:
            data['k_vectors'] = np.array([p[MOMENTUM_KEY] for p in points])
        if ticks is not None:
            data['ticks'] = np.asarray(ticks, dtype=float)
        os.makedirs(os.path.dirname(bands_file), exist_ok=True)
        save_results(bands_file, data)
    else:
        xlabel, tick_labels = "Path coordinate", None

    # 2. Plotting
    plot_config = config.plotting
    if tasks.plot_bands:
        if data is None:
            if not os.path.exists(bands_file):
                raise FileNotFoundError(f"No band data to plot: '{bands_file}' does not exist.")
            with np.load(bands_file) as loaded:
                data = {key: loaded[key] for key in loaded.files}
            logger.info(f"Loaded band data from {bands_file}")
        plot_filename = None
        if plot_config.save_plot:
            plot_filename = _resolve(plot_config.bands_plot_filename, config_dir)
        ticks = data.get('ticks')
        plot_bands(
            data['x_values'],
            data['energies'],
            plot_filename,
            title=plot_config.title,
            xlabel=xlabel,
            ylim=plot_config.energy_limits,
            ticks=None if ticks is None else list(ticks),
            tick_labels=tick_labels if ticks is not None else None,
            show_plot=plot_config.show_plot,
        )

    logger.info("Calculation finished.")
    return data
