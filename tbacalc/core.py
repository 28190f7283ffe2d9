#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Tight-Binding Approximation (TBA) Calculator Module.

This module provides the system configuration classes of the calculator. A
configuration bundles the system kind, the basis index table, the
commutation matrix and the term generator, and computes:

1.  The matrix representation of the free Hamiltonian at a momentum.
2.  Its (paraunitary, for bosons and phonons) eigen-decomposition.
3.  Energy bands along a path of momenta or model parameters.

Configurations are immutable: `update` returns a new configuration, so a
sweep never changes the object it was started from.
"""
import copy
import logging
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

from .assembly import DEFAULT_ATOL, Momentum, assemble
from .basis import FockSpace, IndexTable, PhononSpace
from .commutator import check_commutator, select_commutator
from .errors import ConfigurationError, DimensionError
from .kinds import Statistics, SystemKind, infer_kind
from .lattice import Lattice
from .linalg import EigenResult, TBAMatrix, diagonalize
from .numerical import EnergyBands, run_sweep
from .terms import Term, TermGenerator

logger = logging.getLogger(__name__)


class AbstractTBA:
    """
    Common behaviour of free quantum lattice systems.

    Attributes:
        kind (SystemKind): Kind of the system, fixed at construction.
        commutator (Optional[npt.NDArray[np.complex128]]): Commutation matrix
            of the basis, or None.
    """

    kind: SystemKind

    def __init__(self, commutator: Optional[npt.NDArray[np.complex128]] = None):
        check_commutator(commutator, self.dimension)
        self.commutator = commutator

    @property
    def dimension(self) -> int:
        raise NotImplementedError

    @property
    def parameters(self) -> Dict[str, Any]:
        raise NotImplementedError

    def update(self, **parameters) -> "AbstractTBA":
        raise NotImplementedError

    def matrix(self, k: Momentum = None, **parameters) -> TBAMatrix:
        raise NotImplementedError

    def eigen(self, k: Momentum = None, **parameters) -> EigenResult:
        """Eigenvalues and eigenvectors at momentum `k`."""
        return diagonalize(self.matrix(k, **parameters))

    def calculate_bands(
        self,
        path: Iterable[Mapping[str, Any]],
        processes: Optional[int] = None,
        progress: bool = False,
    ) -> EnergyBands:
        """
        Energy bands along a path of parameter points.

        See `tbacalc.numerical.run_sweep` for the meaning of the path points.
        """
        return run_sweep(path, self, processes=processes, progress=progress)


class TBA(AbstractTBA):
    """
    A free lattice system described by quadratic terms.

    Attributes:
        kind (SystemKind): ORDINARY or PARTICLE_HOLE.
        table (IndexTable): Basis index table; its size is the matrix dimension.
        generator (TermGenerator): Expands the terms for the current parameters.
        commutator (Optional[npt.NDArray[np.complex128]]): Commutation matrix.
    """

    def __init__(
        self,
        kind: SystemKind,
        generator: TermGenerator,
        table: IndexTable,
        commutator: Optional[npt.NDArray[np.complex128]] = None,
    ):
        if not isinstance(kind, SystemKind) or kind is SystemKind.ANALYTICAL:
            raise ConfigurationError(f"TBA needs an ORDINARY or PARTICLE_HOLE kind, got {kind!r}.")
        self.kind = kind
        self.generator = generator
        self.table = table
        if kind is SystemKind.PARTICLE_HOLE and len(table) % 2 != 0:
            raise DimensionError(f"A particle-hole basis must have even dimension, got {len(table)}.")
        super().__init__(commutator)

    @classmethod
    def from_terms(
        cls,
        lattice: Lattice,
        space: Union[FockSpace, PhononSpace],
        terms: Sequence[Term],
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "TBA":
        """
        Build a system from a lattice, a Hilbert space and terms.

        The kind is inferred from the terms, the index table is built with the
        kind's metric, and the commutator is selected from kind and statistics.

        Raises:
            ConfigurationError: If the terms, space and parameters are inconsistent.
            DimensionError: If a bosonic/phononic BdG basis has odd dimension.
        """
        kind = infer_kind(terms)
        table = IndexTable.from_space(space, kind)
        commutator = select_commutator(kind, space.statistics, len(table))
        generator = TermGenerator(terms, space, lattice, parameters)
        logger.info(
            f"Initialized {kind.value} system: dimension {len(table)}, "
            f"statistics {space.statistics.name.lower()}, {len(generator.terms)} terms."
        )
        return cls(kind, generator, table, commutator)

    @property
    def dimension(self) -> int:
        return len(self.table)

    @property
    def statistics(self) -> Statistics:
        return self.generator.space.statistics

    @property
    def lattice(self) -> Lattice:
        return self.generator.lattice

    @property
    def parameters(self) -> Dict[str, Any]:
        return dict(self.generator.parameters)

    def update(self, **parameters) -> "TBA":
        """Return a copy of the system with new parameter values."""
        if not parameters:
            return self
        updated = copy.copy(self)
        updated.generator = self.generator.update(**parameters)
        return updated

    def matrix(self, k: Momentum = None, **parameters) -> TBAMatrix:
        """
        Matrix representation at momentum `k` (None for no phase factors).

        Keyword arguments are parameter updates applied to a copy of the
        system before assembling.
        """
        system = self.update(**parameters) if parameters else self
        atol = None if system.commutator is None else DEFAULT_ATOL
        H = assemble(
            system.kind,
            system.generator.expand(),
            system.table,
            k=k,
            statistics=system.statistics,
            atol=atol,
        )
        return TBAMatrix(H, system.commutator)

    def __repr__(self) -> str:
        return f"TBA(kind={self.kind.value}, dimension={self.dimension}, statistics={self.statistics.name.lower()})"


class AnalyticalTBA(AbstractTBA):
    """
    A free system whose matrix is given by a function of momentum.

    The function is called as `hamiltonian(k, **parameters)` and must return
    an N x N Hermitian matrix. Pass a commutator for bosonic or phononic
    systems.
    """

    kind = SystemKind.ANALYTICAL

    def __init__(
        self,
        hamiltonian: Callable[..., npt.NDArray[np.complex128]],
        dimension: int,
        parameters: Optional[Mapping[str, Any]] = None,
        commutator: Optional[npt.NDArray[np.complex128]] = None,
    ):
        if not callable(hamiltonian):
            raise TypeError("hamiltonian must be callable.")
        if dimension < 1:
            raise ValueError("dimension must be positive.")
        self.hamiltonian = hamiltonian
        self._dimension = int(dimension)
        self._parameters: Dict[str, Any] = dict(parameters or {})
        super().__init__(commutator)

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def parameters(self) -> Dict[str, Any]:
        return dict(self._parameters)

    def update(self, **parameters) -> "AnalyticalTBA":
        unknown = set(parameters) - set(self._parameters)
        if unknown:
            raise ConfigurationError(f"Unknown parameters {sorted(unknown)}; known: {sorted(self._parameters)}.")
        if not parameters:
            return self
        updated = copy.copy(self)
        updated._parameters = {**self._parameters, **parameters}
        return updated

    def matrix(self, k: Momentum = None, **parameters) -> TBAMatrix:
        system = self.update(**parameters) if parameters else self
        H = np.array(system.hamiltonian(k, **system._parameters), dtype=np.complex128)
        if H.shape != (self.dimension, self.dimension):
            raise DimensionError(f"Analytical Hamiltonian returned shape {H.shape}, expected {(self.dimension,) * 2}.")
        if system.commutator is not None:
            H[np.diag_indices(self.dimension)] += DEFAULT_ATOL
        return TBAMatrix(H, system.commutator)

    def __repr__(self) -> str:
        return f"AnalyticalTBA(dimension={self.dimension}, parameters={sorted(self._parameters)})"
