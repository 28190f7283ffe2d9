# -*- coding: utf-8 -*-
"""
Matrix assembly of a quadratic operator sum.

Operators are folded into an N x N matrix with N the size of the index table.
Row s1 is the sequence number of the adjoint of the first label and column s2
that of the second label, so each operator O1 O2 lands where Psi^dagger_s1
H_s1s2 Psi_s2 reproduces it.

Hermiticity convention: only the upper triangle of the accumulated matrix is
read. The result is the strict upper triangle plus its conjugate transpose,
with the real part of the diagonal. Term data must therefore carry every
non-Hermitian operator together with its Hermitian conjugate; entries landing
in the strict lower triangle are ignored.
"""
import logging
from typing import Iterable, Optional, Sequence, Union

import numpy as np
import numpy.typing as npt

from .basis import IndexTable
from .errors import ConfigurationError
from .kinds import Nambu, Statistics, SystemKind
from .operators import QuadraticOperator

logger = logging.getLogger(__name__)

# Diagonal shift guarding Cholesky against rounding noise.
DEFAULT_ATOL: float = np.finfo(np.float64).eps / 5

Momentum = Optional[Union[float, Sequence[float], npt.NDArray[np.float64]]]


def hermitian_view(raw: npt.NDArray[np.complex128]) -> npt.NDArray[np.complex128]:
    """Hermitian matrix read from the upper triangle of `raw`."""
    upper = np.triu(raw, 1)
    return upper + upper.conj().T + np.diag(np.real(np.diag(raw))).astype(np.complex128)


def _phase(k: Momentum, displacement: npt.NDArray[np.float64]) -> complex:
    if k is None or not np.any(displacement):
        return 1.0 + 0.0j
    k = np.atleast_1d(np.asarray(k, dtype=float))
    if k.shape != displacement.shape:
        raise ConfigurationError(
            f"Momentum of dimension {k.shape[0]} does not match displacement of dimension {displacement.shape[0]}."
        )
    return np.exp(-1j * np.dot(k, displacement))


def assemble(
    kind: SystemKind,
    terms: Iterable[QuadraticOperator],
    table: IndexTable,
    k: Momentum = None,
    statistics: Statistics = Statistics.FERMIONIC,
    atol: Optional[float] = None,
) -> npt.NDArray[np.complex128]:
    """
    Fold a sequence of quadratic operators into a Hermitian matrix.

    Args:
        kind (SystemKind): ORDINARY or PARTICLE_HOLE.
        terms (Iterable[QuadraticOperator]): The expanded operators.
        table (IndexTable): Basis index table; its size sets the dimension.
        k (Momentum): Momentum for the phase factors exp(-i k.r), or None for no phases.
        statistics (Statistics): Decides the sign of the particle-hole mirror
            and the phonon folding rule.
        atol (Optional[float]): Shift added to every diagonal entry, used
            before a Cholesky factorization.

    Returns:
        npt.NDArray[np.complex128]: The N x N Hermitian matrix.

    Raises:
        ConfigurationError: If the kind is ANALYTICAL or a label is missing from the table.
    """
    if kind is SystemKind.ANALYTICAL:
        raise ConfigurationError("Analytical systems provide their matrix directly and cannot be assembled from terms.")
    n = len(table)
    raw: npt.NDArray[np.complex128] = np.zeros((n, n), dtype=np.complex128)
    mirror_sign = -1.0 if statistics is Statistics.FERMIONIC else 1.0
    count = 0
    for op in terms:
        phase = _phase(k, op.displacement)
        seq1, seq2 = table[op.index1.adjoint()], table[op.index2]
        if statistics is Statistics.PHONONIC:
            if seq1 == seq2:
                raw[seq1, seq1] += 2 * op.value * phase
            else:
                raw[seq1, seq2] += op.value * phase
                raw[seq2, seq1] += np.conj(op.value * phase)
        else:
            raw[seq1, seq2] += op.value * phase
            if (
                kind is SystemKind.PARTICLE_HOLE
                and getattr(op.index1, "nambu", None) is Nambu.CREATION
                and getattr(op.index2, "nambu", None) is Nambu.ANNIHILATION
            ):
                seq1, seq2 = table[op.index1], table[op.index2.adjoint()]
                raw[seq1, seq2] += mirror_sign * op.value * np.conj(phase)
        count += 1
    if atol is not None:
        raw[np.diag_indices(n)] += atol
    logger.debug(f"Assembled {n}x{n} {kind.value} matrix from {count} operators (k={k}).")
    return hermitian_view(raw)
