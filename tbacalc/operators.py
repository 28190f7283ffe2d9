# -*- coding: utf-8 -*-
"""
Quadratic operators, the single terms of an expanded free Hamiltonian.
"""
from dataclasses import dataclass, field
from typing import Tuple

import numpy as np
import numpy.typing as npt

from .basis import BasisIndex


@dataclass(frozen=True, eq=False)
class QuadraticOperator:
    """
    value * O(index1) O(index2), with index2 sitting `displacement` away from index1.

    Attributes:
        index1 (BasisIndex): Label of the left operator.
        index2 (BasisIndex): Label of the right operator.
        displacement (npt.NDArray[np.float64]): Real-space vector r used in the
            momentum phase exp(-i k.r).
        value (complex): Coefficient of the operator.
    """

    index1: BasisIndex
    index2: BasisIndex
    displacement: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(1))
    value: complex = 1.0

    def __post_init__(self):
        disp = np.array(self.displacement, dtype=float).reshape(-1)
        disp.setflags(write=False)
        object.__setattr__(self, "displacement", disp)
        object.__setattr__(self, "value", complex(self.value))

    @property
    def indexes(self) -> Tuple[BasisIndex, BasisIndex]:
        return (self.index1, self.index2)

    def hermitian_conjugate(self) -> "QuadraticOperator":
        return QuadraticOperator(
            self.index2.adjoint(), self.index1.adjoint(), -self.displacement, np.conj(self.value)
        )

    def __repr__(self) -> str:
        return (
            f"QuadraticOperator({self.index1!r}, {self.index2!r}, "
            f"displacement={self.displacement.tolist()}, value={self.value})"
        )
