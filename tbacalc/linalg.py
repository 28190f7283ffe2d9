
import logging
from typing import NamedTuple, Optional, Tuple, Union

import numpy as np
import numpy.typing as npt
from scipy import linalg as la

from .errors import DimensionError, NumericalError, PositiveDefinitenessError

logger = logging.getLogger(__name__)

# --- Numerical Constants ---
HERMITICITY_TOLERANCE: float = 1e-10
NONNEGATIVITY_TOLERANCE: float = 1e-10


class EigenResult(NamedTuple):
    """Eigenvalues and eigenvectors (as columns) of a free system matrix."""

    values: npt.NDArray[np.float64]
    vectors: npt.NDArray[np.complex128]


class TBAMatrix:
    """
    Matrix representation of a free system: the Hermitian matrix H together
    with the commutation matrix of its basis (None when not needed).
    """

    def __init__(
        self,
        H: npt.NDArray[np.complex128],
        commutator: Optional[npt.NDArray[np.complex128]] = None,
    ):
        self.H = np.asarray(H)
        self.commutator = commutator

    @property
    def shape(self) -> Tuple[int, int]:
        return self.H.shape

    def __getitem__(self, key):
        return self.H[key]

    def __array__(self, dtype=None, copy=None):
        return self.H if dtype is None else self.H.astype(dtype)

    def ishermitian(self) -> bool:
        return True

    def eigen(self) -> EigenResult:
        return diagonalize(self)

    def __repr__(self) -> str:
        structure = "none" if self.commutator is None else "paraunitary"
        return f"TBAMatrix(shape={self.shape}, commutator={structure})"


def check_hermitian(H: npt.NDArray[np.complex128], tolerance: float = HERMITICITY_TOLERANCE) -> None:
    """
    Raises:
        NumericalError: If H is not square or deviates from its conjugate
            transpose by more than `tolerance` (relative to its largest entry).
    """
    if H.ndim != 2 or H.shape[0] != H.shape[1]:
        raise NumericalError(f"Expected a square matrix, got shape {H.shape}.")
    scale = max(1.0, float(np.max(np.abs(H)))) if H.size else 1.0
    deviation = float(np.max(np.abs(H - H.conj().T))) if H.size else 0.0
    if deviation > tolerance * scale:
        raise NumericalError(f"Matrix is not Hermitian: max |H - H^dagger| = {deviation:.3e}.")


def _colpa(
    H: npt.NDArray[np.complex128], commutator: npt.NDArray[np.complex128]
) -> EigenResult:
    """
    Paraunitary diagonalization of a positive-definite BdG matrix.

    Follows Colpa's construction: with H = U^dagger U (U upper triangular) the
    matrix K = U C U^dagger is Hermitian and has the excitation energies as
    eigenvalues, half of them negative. The negative half belongs to the hole
    branch.

    Returns:
        EigenResult: Values ordered particle branch first (ascending) and hole
            branch second, hole mode j being the partner of particle mode j;
            hole values carry a minus sign. Vectors V fulfil
            V^dagger H V = diag(|values|) and V^dagger C V = diag(+1, -1).
    """
    try:
        U = la.cholesky(H, lower=False)
    except la.LinAlgError as e:
        raise PositiveDefinitenessError(f"Hamiltonian matrix is not positive definite: {e}") from e
    K = U @ commutator @ U.conj().T
    K = (K + K.conj().T) / 2
    w, Q = la.eigh(K)
    n = len(w)
    if n % 2 != 0:
        raise DimensionError(f"Paraunitary diagonalization needs an even dimension, got {n}.")
    half = n // 2
    magnitudes = w.copy()
    magnitudes[:half] = -magnitudes[:half]
    threshold = NONNEGATIVITY_TOLERANCE * max(1.0, float(np.max(np.abs(w))))
    if np.any(magnitudes < -threshold):
        raise NumericalError(
            f"Excitation energies of the wrong sign (min {np.min(magnitudes):.3e}); "
            "the commutator and Hamiltonian do not form a stable bosonic system."
        )
    magnitudes = np.clip(magnitudes, 0.0, None)
    V = la.solve_triangular(U, Q) * np.sqrt(magnitudes)
    order = np.concatenate([np.arange(half, n), np.arange(half - 1, -1, -1)])
    values = magnitudes[order]
    values[half:] = -values[half:]
    return EigenResult(values, V[:, order])


def diagonalize(
    H: Union["TBAMatrix", npt.NDArray[np.complex128]],
    commutator: Optional[npt.NDArray[np.complex128]] = None,
) -> EigenResult:
    """
    Solve the eigenproblem of a free system matrix.

    Args:
        H (Union[TBAMatrix, npt.NDArray[np.complex128]]): The Hermitian matrix.
            For a TBAMatrix its own commutator is used unless one is passed.
        commutator (Optional[npt.NDArray[np.complex128]]): Commutation matrix
            of the basis. None selects plain Hermitian diagonalization.

    Returns:
        EigenResult: Without commutator, ascending eigenvalues and orthonormal
            eigenvectors. With commutator, see `_colpa`.

    Raises:
        NumericalError: If H is not Hermitian, or the paraunitary spectrum has
            the wrong sign structure.
        PositiveDefinitenessError: If H is not positive definite (commutator case).
        DimensionError: If the dimension is odd (commutator case).
    """
    if isinstance(H, TBAMatrix):
        if commutator is None:
            commutator = H.commutator
        H = H.H
    H = np.asarray(H, dtype=np.complex128)
    check_hermitian(H)
    if commutator is None:
        values, vectors = la.eigh(H)
        return EigenResult(values, vectors)
    commutator = np.asarray(commutator, dtype=np.complex128)
    if commutator.shape != H.shape:
        raise DimensionError(f"Commutator shape {commutator.shape} does not match matrix shape {H.shape}.")
    return _colpa(H, commutator)
