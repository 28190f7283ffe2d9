# -*- coding: utf-8 -*-
"""
Exceptions raised by the tight-binding calculator.

All of them derive from `TBAError`. The sweep driver attaches the offending
parameter point to an error before re-raising it, so callers can tell which
point of a path failed.
"""
from typing import Any, Optional, Tuple


class TBAError(Exception):
    """Base class for tight-binding calculation errors."""

    def __init__(self, message: str, point: Optional[Tuple[int, Any]] = None):
        super().__init__(message)
        self.point = point

    def __reduce__(self):
        # Keep the failing point when raised inside a worker process.
        return (type(self), (str(self), self.point))


class ConfigurationError(TBAError):
    """Invalid system kind, statistics, commutator or term/basis setup."""


class DimensionError(TBAError):
    """A matrix or commutator dimension is odd where it must be even."""


class PositiveDefinitenessError(TBAError):
    """Cholesky factorization of the Hamiltonian matrix failed."""


class NumericalError(TBAError):
    """A Hermiticity or non-negativity check failed within tolerance."""
