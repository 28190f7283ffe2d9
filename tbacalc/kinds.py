# -*- coding: utf-8 -*-
"""
Tags describing a free quantum lattice system.

`SystemKind` decides how the basis is indexed and which assembly and
diagonalization branch applies. `Statistics` is the particle statistics of
the basis, and `Nambu`/`PhononTag` label the operator halves of a basis.
"""
import logging
from enum import Enum, IntEnum
from functools import reduce
from typing import Iterable

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class SystemKind(Enum):
    """Kind of a free system in the tight-binding approximation."""

    ORDINARY = "TBA"
    PARTICLE_HOLE = "BdG"
    ANALYTICAL = "Analytical"

    def promote(self, other: "SystemKind") -> "SystemKind":
        """Common kind of two term kinds; particle-hole wins over ordinary."""
        if self is other:
            return self
        if {self, other} == {SystemKind.ORDINARY, SystemKind.PARTICLE_HOLE}:
            return SystemKind.PARTICLE_HOLE
        raise ConfigurationError(f"Cannot combine system kinds {self.value} and {other.value}.")


class Statistics(Enum):
    FERMIONIC = "f"
    BOSONIC = "b"
    PHONONIC = "p"

    @classmethod
    def parse(cls, value) -> "Statistics":
        """Accepts an enum member, its short tag ('f', 'b', 'p') or its name."""
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for member in cls:
            if text in (member.value, member.name.lower()):
                return member
        raise ConfigurationError(f"Unknown statistics '{value}'. Use 'fermionic', 'bosonic' or 'phononic'.")


class Nambu(IntEnum):
    ANNIHILATION = 1
    CREATION = 2

    def flip(self) -> "Nambu":
        return Nambu.CREATION if self is Nambu.ANNIHILATION else Nambu.ANNIHILATION


class PhononTag(IntEnum):
    # Displacements come before momenta in the index table.
    DISPLACEMENT = 0
    MOMENTUM = 1


def infer_kind(terms: Iterable) -> SystemKind:
    """
    Reduce the kinds of a collection of terms to the kind of the whole system.

    Args:
        terms (Iterable): Term instances or classes carrying a `kind` attribute.

    Returns:
        SystemKind: ORDINARY if every term conserves particle number,
            PARTICLE_HOLE if at least one needs the doubled basis.

    Raises:
        ConfigurationError: If no terms are given or a term has no kind.
    """
    kinds = []
    for term in terms:
        kind = getattr(term, "kind", None)
        if not isinstance(kind, SystemKind):
            raise ConfigurationError(f"Term {term!r} does not define a system kind.")
        kinds.append(kind)
    if not kinds:
        raise ConfigurationError("At least one term is required to infer the system kind.")
    kind = reduce(lambda a, b: a.promote(b), kinds)
    logger.debug(f"Inferred system kind {kind.value} from {len(kinds)} terms.")
    return kind
