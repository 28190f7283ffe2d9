# -*- coding: utf-8 -*-
"""
Quadratic terms and their expansion into operators.

A term couples basis labels on a list of explicit bonds with an amplitude.
Amplitudes are numbers or SymPy expressions over named parameters (e.g.
"t*exp(I*phi)"), so a whole model can be re-evaluated for new parameter
values without rebuilding it. The `TermGenerator` owns the terms, the
Hilbert space, the lattice and the current parameter values, and produces
the operator sequence consumed by the matrix assembler.
"""
import copy
import logging
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import sympy as sp
from sympy import lambdify

from .basis import FockIndex, FockSpace, PhononIndex, PhononSpace
from .errors import ConfigurationError
from .kinds import Nambu, PhononTag, Statistics, SystemKind
from .lattice import Lattice
from .operators import QuadraticOperator

logger = logging.getLogger(__name__)

ParamValue = Union[float, complex, str]
BOND_LENGTH_THRESHOLD: float = 1e-12


@dataclass(frozen=True)
class Bond:
    """
    A bond from `site_i` in the home cell to `site_j` in the cell at `offset`.

    `orbitals` and `spins` optionally select one (left, right) pair of
    internal states; by default every orbital/spin is coupled to itself.
    """

    site_i: int
    site_j: int
    offset: Tuple[float, ...] = ()
    orbitals: Optional[Tuple[int, int]] = None
    spins: Optional[Tuple[int, int]] = None


class Term:
    """
    Base class of quadratic terms.

    Attributes:
        name (str): Identifier of the term.
        amplitude (ParamValue): Number or expression string; defaults to the
            term name, i.e. a parameter of the same name.
        bonds (Tuple[Bond, ...]): Bonds the term lives on.
    """

    kind: ClassVar[SystemKind]
    space_type: ClassVar[type] = FockSpace

    def __init__(self, name: str, amplitude: Optional[ParamValue] = None, bonds: Sequence[Bond] = ()):
        self.name = name
        self.amplitude = name if amplitude is None else amplitude
        self.bonds = tuple(bonds)

    def expand(self, space, lattice: Lattice, value: complex) -> Iterator[QuadraticOperator]:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, amplitude={self.amplitude!r}, nbonds={len(self.bonds)})"


def _internal_pairs(pair: Optional[Tuple[int, int]], count: int) -> List[Tuple[int, int]]:
    if pair is None:
        return [(n, n) for n in range(count)]
    if not all(0 <= p < count for p in pair):
        raise ConfigurationError(f"Internal index pair {pair} out of range [0, {count}).")
    return [tuple(pair)]


class Hopping(Term):
    """t c^dagger_i c_j + h.c. on every bond."""

    kind = SystemKind.ORDINARY

    def expand(self, space: FockSpace, lattice: Lattice, value: complex) -> Iterator[QuadraticOperator]:
        for bond in self.bonds:
            r = lattice.displacement(bond.site_i, bond.site_j, bond.offset)
            for a, b in _internal_pairs(bond.orbitals, space.norbital):
                for s1, s2 in _internal_pairs(bond.spins, space.nspin):
                    op = QuadraticOperator(
                        FockIndex(bond.site_i, a, s1, Nambu.CREATION),
                        FockIndex(bond.site_j, b, s2, Nambu.ANNIHILATION),
                        r,
                        value,
                    )
                    yield op
                    yield op.hermitian_conjugate()


class Onsite(Term):
    """mu c^dagger_i c_i on the selected sites and orbitals (all by default)."""

    kind = SystemKind.ORDINARY

    def __init__(
        self,
        name: str,
        amplitude: Optional[ParamValue] = None,
        sites: Optional[Sequence[int]] = None,
        orbitals: Optional[Sequence[int]] = None,
    ):
        super().__init__(name, amplitude)
        self.sites = None if sites is None else tuple(sites)
        self.orbitals = None if orbitals is None else tuple(orbitals)

    def expand(self, space: FockSpace, lattice: Lattice, value: complex) -> Iterator[QuadraticOperator]:
        sites = range(space.nsite) if self.sites is None else self.sites
        orbitals = range(space.norbital) if self.orbitals is None else self.orbitals
        origin = np.zeros(lattice.dimension)
        for site in sites:
            for orbital in orbitals:
                for spin in range(space.nspin):
                    yield QuadraticOperator(
                        FockIndex(site, orbital, spin, Nambu.CREATION),
                        FockIndex(site, orbital, spin, Nambu.ANNIHILATION),
                        origin,
                        value,
                    )


class Pairing(Term):
    """
    Delta c^dagger_i c^dagger_j + h.c. on every bond.

    The exchanged partner c^dagger_j c^dagger_i is emitted as well, with a
    minus sign for fermions, so that the pairing block of the BdG matrix is
    (anti)symmetric.
    """

    kind = SystemKind.PARTICLE_HOLE

    def expand(self, space: FockSpace, lattice: Lattice, value: complex) -> Iterator[QuadraticOperator]:
        sign = -1 if space.statistics is Statistics.FERMIONIC else 1
        for bond in self.bonds:
            r = lattice.displacement(bond.site_i, bond.site_j, bond.offset)
            for a, b in _internal_pairs(bond.orbitals, space.norbital):
                for s1, s2 in _internal_pairs(bond.spins, space.nspin):
                    left = FockIndex(bond.site_i, a, s1, Nambu.CREATION)
                    right = FockIndex(bond.site_j, b, s2, Nambu.CREATION)
                    if left == right and not np.any(r):
                        if sign < 0:
                            logger.debug(f"Skipping vanishing fermionic pairing {left} on term '{self.name}'.")
                            continue
                        op = QuadraticOperator(left, right, r, value)
                        yield op
                        yield op.hermitian_conjugate()
                        continue
                    for op in (
                        QuadraticOperator(left, right, r, value),
                        QuadraticOperator(right, left, -r, sign * value),
                    ):
                        yield op
                        yield op.hermitian_conjugate()


class PhononKinetic(Term):
    """amplitude * p_{i,d}^2 for every site and direction; amplitude is 1/(2m)."""

    kind = SystemKind.PARTICLE_HOLE
    space_type = PhononSpace

    def __init__(self, name: str, amplitude: Optional[ParamValue] = None, sites: Optional[Sequence[int]] = None):
        super().__init__(name, amplitude)
        self.sites = None if sites is None else tuple(sites)

    def expand(self, space: PhononSpace, lattice: Lattice, value: complex) -> Iterator[QuadraticOperator]:
        sites = range(space.nsite) if self.sites is None else self.sites
        origin = np.zeros(lattice.dimension)
        for site in sites:
            for direction in range(space.ndim):
                index = PhononIndex(PhononTag.MOMENTUM, site, direction)
                yield QuadraticOperator(index, index, origin, value)


class PhononPotential(Term):
    """
    Longitudinal spring (k/2) [e.(u_i - u_j)]^2 on every bond, e being the
    unit bond vector.
    """

    kind = SystemKind.PARTICLE_HOLE
    space_type = PhononSpace

    def expand(self, space: PhononSpace, lattice: Lattice, value: complex) -> Iterator[QuadraticOperator]:
        if space.ndim != lattice.dimension:
            raise ConfigurationError(
                f"Phonon directions ({space.ndim}) must match the lattice dimension ({lattice.dimension})."
            )
        origin = np.zeros(lattice.dimension)
        for bond in self.bonds:
            r = lattice.displacement(bond.site_i, bond.site_j, bond.offset)
            length = np.linalg.norm(r)
            if length < BOND_LENGTH_THRESHOLD:
                raise ConfigurationError(f"Zero-length bond {bond} in phonon term '{self.name}'.")
            e = r / length
            for d1 in range(space.ndim):
                for d2 in range(d1, space.ndim):
                    # Self-paired entries are doubled by the assembler.
                    coeff = value * e[d1] * e[d2] * (0.5 if d1 == d2 else 1.0)
                    for site in (bond.site_i, bond.site_j):
                        yield QuadraticOperator(
                            PhononIndex(PhononTag.DISPLACEMENT, site, d1),
                            PhononIndex(PhononTag.DISPLACEMENT, site, d2),
                            origin,
                            coeff,
                        )
            for d1 in range(space.ndim):
                for d2 in range(space.ndim):
                    yield QuadraticOperator(
                        PhononIndex(PhononTag.DISPLACEMENT, bond.site_i, d1),
                        PhononIndex(PhononTag.DISPLACEMENT, bond.site_j, d2),
                        r,
                        -value * e[d1] * e[d2],
                    )


TERM_TYPES: Dict[str, type] = {
    "hopping": Hopping,
    "onsite": Onsite,
    "pairing": Pairing,
    "phonon_kinetic": PhononKinetic,
    "phonon_potential": PhononPotential,
}


class TermGenerator:
    """
    Expands a set of terms into quadratic operators for given parameter values.

    Attributes:
        terms (Tuple[Term, ...]): The terms of the model.
        space (Union[FockSpace, PhononSpace]): The single-particle Hilbert space.
        lattice (Lattice): Site positions and translations.
        parameters (Dict[str, float]): Current parameter values.
    """

    def __init__(
        self,
        terms: Sequence[Term],
        space: Union[FockSpace, PhononSpace],
        lattice: Lattice,
        parameters: Optional[Mapping[str, Any]] = None,
    ):
        self.terms = tuple(terms)
        self.space = space
        self.lattice = lattice
        self.parameters: Dict[str, Any] = dict(parameters or {})
        names = [term.name for term in self.terms]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Term names must be unique, got {names}.")
        for term in self.terms:
            if not isinstance(space, term.space_type):
                raise ConfigurationError(
                    f"Term '{term.name}' ({type(term).__name__}) needs a {term.space_type.__name__}."
                )
        if lattice.nsite != space.nsite:
            raise ConfigurationError(f"Lattice has {lattice.nsite} sites but the Hilbert space has {space.nsite}.")
        self._symbols = {name: sp.Symbol(name) for name in self.parameters}
        self._expressions = {term.name: self._parse_amplitude(term) for term in self.terms}
        self._compile()

    def _parse_amplitude(self, term: Term) -> sp.Expr:
        amplitude = term.amplitude
        if isinstance(amplitude, (int, float, complex, np.number)):
            return sp.sympify(complex(amplitude))
        try:
            expr = sp.sympify(str(amplitude), locals=self._symbols)
        except (sp.SympifyError, SyntaxError, TypeError) as e:
            raise ConfigurationError(f"Cannot parse amplitude '{amplitude}' of term '{term.name}': {e}") from e
        unknown = {str(s) for s in expr.free_symbols} - set(self._symbols)
        if unknown:
            raise ConfigurationError(
                f"Amplitude '{amplitude}' of term '{term.name}' uses undefined parameters {sorted(unknown)}."
            )
        return expr

    def _compile(self):
        # Lambdified functions do not pickle; they are rebuilt after unpickling.
        self._functions = {}
        for name, expr in self._expressions.items():
            args = sorted(expr.free_symbols, key=str)
            self._functions[name] = (tuple(str(s) for s in args), lambdify(args, expr, modules=["numpy"]))

    def __getstate__(self):
        state = self.__dict__.copy()
        state.pop("_functions", None)
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._compile()

    def values(self) -> Dict[str, complex]:
        """Numerical amplitude of every term at the current parameters."""
        result = {}
        for name, (args, func) in self._functions.items():
            result[name] = complex(func(*(self.parameters[a] for a in args)))
        return result

    def expand(self) -> List[QuadraticOperator]:
        values = self.values()
        operators: List[QuadraticOperator] = []
        for term in self.terms:
            value = values[term.name]
            if value == 0:
                continue
            operators.extend(term.expand(self.space, self.lattice, value))
        logger.debug(f"Expanded {len(self.terms)} terms into {len(operators)} operators.")
        return operators

    def update(self, **parameters) -> "TermGenerator":
        """
        Return a generator with some parameter values replaced.

        Raises:
            ConfigurationError: If a name is not a parameter of the model.
        """
        unknown = set(parameters) - set(self.parameters)
        if unknown:
            raise ConfigurationError(f"Unknown parameters {sorted(unknown)}; known: {sorted(self.parameters)}.")
        updated = copy.copy(self)
        updated.parameters = {**self.parameters, **parameters}
        return updated
