# -*- coding: utf-8 -*-
"""
Commutation matrices of the single-particle operators of a free system.

The commutation matrix fixes the inner product used to diagonalize a
particle-hole (BdG) Hamiltonian: bosons and phonons need the paraunitary
procedure, ordinary systems and fermionic BdG systems need none.
"""
import logging
from typing import Optional

import numpy as np
import numpy.typing as npt

from .errors import ConfigurationError, DimensionError
from .kinds import Statistics, SystemKind

logger = logging.getLogger(__name__)

COMMUTATOR_EIGENVALUE_TOLERANCE: float = 1e-8
PHONON_BLOCK: npt.NDArray[np.complex128] = np.array([[0, -1j], [1j, 0]], dtype=np.complex128)


def select_commutator(
    kind: SystemKind, statistics: Statistics, n: int
) -> Optional[npt.NDArray[np.complex128]]:
    """
    Commutation matrix for a system of the given kind and statistics.

    Args:
        kind (SystemKind): Kind of the system.
        statistics (Statistics): Statistics of the basis operators.
        n (int): Dimension of the basis (size of the index table).

    Returns:
        Optional[npt.NDArray[np.complex128]]: None when no structure is needed,
            diag(+1,...,+1,-1,...,-1) for bosons and
            kron([[0,-i],[i,0]], 1) for phonons.

    Raises:
        DimensionError: If a bosonic or phononic commutator is requested for odd n.
    """
    if kind is not SystemKind.PARTICLE_HOLE:
        return None
    if statistics is Statistics.FERMIONIC:
        return None
    if n % 2 != 0:
        raise DimensionError(f"Commutator of a {statistics.name.lower()} BdG system needs an even dimension, got {n}.")
    half = n // 2
    if statistics is Statistics.BOSONIC:
        return np.diag(np.concatenate([np.ones(half), -np.ones(half)])).astype(np.complex128)
    if statistics is Statistics.PHONONIC:
        return np.kron(PHONON_BLOCK, np.eye(half))
    raise ConfigurationError(f"No commutator defined for statistics {statistics!r}.")


def check_commutator(commutator: Optional[npt.NDArray[np.complex128]], n: Optional[int] = None) -> None:
    """
    Verify that a commutator is usable for the paraunitary diagonalization.

    A valid commutator is a square Hermitian matrix whose eigenvalues are half
    +1 and half -1.

    Raises:
        ConfigurationError: If the commutator is malformed.
    """
    if commutator is None:
        return
    commutator = np.asarray(commutator)
    if commutator.ndim != 2 or commutator.shape[0] != commutator.shape[1]:
        raise ConfigurationError(f"Commutator must be a square matrix, got shape {commutator.shape}.")
    if n is not None and commutator.shape[0] != n:
        raise ConfigurationError(f"Commutator has dimension {commutator.shape[0]}, system has {n}.")
    if not np.allclose(commutator, commutator.conj().T, atol=COMMUTATOR_EIGENVALUE_TOLERANCE):
        raise ConfigurationError("Commutator must be Hermitian.")
    values = np.linalg.eigvalsh(commutator)
    num_plus = int(np.sum(np.isclose(values, 1.0, atol=COMMUTATOR_EIGENVALUE_TOLERANCE)))
    num_minus = int(np.sum(np.isclose(values, -1.0, atol=COMMUTATOR_EIGENVALUE_TOLERANCE)))
    if not (2 * num_plus == 2 * num_minus == len(values)):
        raise ConfigurationError(
            f"Unsupported commutator: {num_plus} eigenvalues at +1 and {num_minus} at -1 out of {len(values)}."
        )
