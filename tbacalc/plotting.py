import numpy as np
import matplotlib.pyplot as plt
import logging
import os
from typing import Optional, List, Sequence

logger = logging.getLogger(__name__)


def plot_bands(
    coordinates: np.ndarray,
    energies: np.ndarray,
    save_filename: Optional[str],
    title: str = "Energy Bands",
    xlabel: str = "Path coordinate",
    ylim: Optional[List[float]] = None,
    ticks: Optional[Sequence[float]] = None,
    tick_labels: Optional[Sequence[str]] = None,
    show_plot: bool = False,
):
    """
    Plots energy bands against a path coordinate.

    Args:
        coordinates (np.ndarray): Path coordinate of every point, shape (L,).
        energies (np.ndarray): Band energies, shape (L, N).
        save_filename (Optional[str]): Output image; None to skip saving.
        ticks, tick_labels: Positions and names of high-symmetry points.
    """
    energies = np.asarray(energies)
    if energies.ndim != 2 or energies.shape[0] != len(coordinates):
        raise ValueError(f"energies must have shape (L, N) with L={len(coordinates)}, got {energies.shape}.")

    try:
        fig, ax = plt.subplots(figsize=(8, 6))
        for band in range(energies.shape[1]):
            ax.plot(coordinates, energies[:, band], 'b-', alpha=0.8)

        if ticks is not None:
            ax.set_xticks(list(ticks))
            if tick_labels is not None:
                ax.set_xticklabels(list(tick_labels))
            for x in ticks:
                ax.axvline(x, color='k', lw=0.5, alpha=0.5)

        ax.set_title(title)
        ax.set_xlabel(xlabel)
        ax.set_ylabel("Energy")
        if ylim:
            ax.set_ylim(ylim)
        ax.grid(True, alpha=0.3)
        if len(coordinates) > 1:
            ax.set_xlim(min(coordinates), max(coordinates))

        if save_filename:
            os.makedirs(os.path.dirname(os.path.abspath(save_filename)), exist_ok=True)
            fig.savefig(save_filename, dpi=150)
            logger.info(f"Band plot saved to {save_filename}")

        if show_plot:
            plt.show()
        plt.close(fig)

    except Exception as e:
        logger.error(f"Failed to plot bands: {e}")
        raise
