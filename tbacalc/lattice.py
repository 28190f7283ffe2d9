# -*- coding: utf-8 -*-
"""
Minimal lattice description: translation vectors and site positions.

Neighbour search is not done here; bonds are listed explicitly by the model
and this class only turns (site_i, site_j, cell offset) into a real-space
displacement.
"""
import logging
from typing import List, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class Lattice:
    """
    A periodic lattice.

    Attributes:
        vectors (npt.NDArray[np.float64]): Translation vectors as rows, shape
            (n_vectors, dim). May be empty for a finite cluster.
        positions (npt.NDArray[np.float64]): Cartesian site positions, shape (nsite, dim).
    """

    def __init__(
        self,
        positions: Union[Sequence[Sequence[float]], npt.NDArray[np.float64]],
        vectors: Optional[Union[Sequence[Sequence[float]], npt.NDArray[np.float64]]] = None,
    ):
        self.positions = np.atleast_2d(np.asarray(positions, dtype=float))
        if self.positions.size == 0:
            raise ConfigurationError("A lattice needs at least one site.")
        dim = self.positions.shape[1]
        if vectors is None or len(vectors) == 0:
            self.vectors = np.zeros((0, dim))
        else:
            self.vectors = np.atleast_2d(np.asarray(vectors, dtype=float))
        if self.vectors.shape[1] != dim:
            raise ConfigurationError(
                f"Translation vectors have dimension {self.vectors.shape[1]}, site positions have {dim}."
            )

    @property
    def dimension(self) -> int:
        return self.positions.shape[1]

    @property
    def nsite(self) -> int:
        return self.positions.shape[0]

    def displacement(
        self, site_i: int, site_j: int, offset: Optional[Sequence[float]] = None
    ) -> npt.NDArray[np.float64]:
        """
        Real-space vector from site i in the home cell to site j in the cell
        shifted by `offset` (in units of the translation vectors).
        """
        for site in (site_i, site_j):
            if not 0 <= site < self.nsite:
                raise ConfigurationError(f"Site index {site} out of range for {self.nsite} sites.")
        shift = np.zeros(self.dimension)
        if offset is not None and len(offset) > 0:
            offset = np.asarray(offset, dtype=float)
            if offset.shape != (self.vectors.shape[0],):
                raise ConfigurationError(
                    f"Bond offset {list(offset)} needs {self.vectors.shape[0]} components."
                )
            shift = offset @ self.vectors
        return self.positions[site_j] + shift - self.positions[site_i]

    def reciprocals(self) -> npt.NDArray[np.float64]:
        """
        Reciprocal vectors b_i with a_i . b_j = 2 pi delta_ij, as rows.
        """
        if self.vectors.shape[0] == 0:
            return np.zeros((0, self.dimension))
        return 2 * np.pi * np.linalg.pinv(self.vectors).T

    def __repr__(self) -> str:
        return f"Lattice(nsite={self.nsite}, dimension={self.dimension}, nvectors={self.vectors.shape[0]})"
