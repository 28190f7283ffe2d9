# -*- coding: utf-8 -*-
"""
Basis labels, Hilbert spaces and the index table.

A label identifies one single-particle operator of the basis: a Fock
operator (site, orbital, spin, nambu) or a phonon field component
(tag, site, direction). The `IndexTable` maps labels to matrix rows through a
metric, a function turning a label into a sortable key. Which fields enter
the key depends on the system kind, e.g. the ordinary metric drops the nambu
index so that an operator and its adjoint share one row.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, Iterator, List, Tuple, Union

from .errors import ConfigurationError
from .kinds import Nambu, PhononTag, Statistics, SystemKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FockIndex:
    """A fermionic or bosonic creation/annihilation operator label."""

    site: int
    orbital: int = 0
    spin: int = 0
    nambu: Nambu = Nambu.ANNIHILATION

    def adjoint(self) -> "FockIndex":
        return FockIndex(self.site, self.orbital, self.spin, self.nambu.flip())


@dataclass(frozen=True)
class PhononIndex:
    """A displacement (u) or momentum (p) field component; self-adjoint."""

    tag: PhononTag
    site: int
    direction: int = 0

    def adjoint(self) -> "PhononIndex":
        return self


BasisIndex = Union[FockIndex, PhononIndex]
Metric = Callable[[BasisIndex], Tuple]


# --- Metrics ---
def ordinary_fock_metric(index: FockIndex) -> Tuple[int, int, int]:
    return (index.site, index.orbital, index.spin)


def nambu_fock_metric(index: FockIndex) -> Tuple[int, int, int, int]:
    return (int(index.nambu), index.site, index.orbital, index.spin)


def phonon_metric(index: PhononIndex) -> Tuple[int, int, int]:
    return (int(index.tag), index.site, index.direction)


@dataclass(frozen=True)
class FockSpace:
    """Fermions or bosons with `norbital` orbitals and `nspin` spin states per site."""

    nsite: int
    norbital: int = 1
    nspin: int = 1
    statistics: Statistics = Statistics.FERMIONIC

    def __post_init__(self):
        if self.statistics is Statistics.PHONONIC:
            raise ConfigurationError("FockSpace needs fermionic or bosonic statistics; use PhononSpace for phonons.")
        if min(self.nsite, self.norbital, self.nspin) < 1:
            raise ConfigurationError("nsite, norbital and nspin must all be positive.")

    def labels(self) -> Iterator[FockIndex]:
        for nambu in Nambu:
            for site in range(self.nsite):
                for orbital in range(self.norbital):
                    for spin in range(self.nspin):
                        yield FockIndex(site, orbital, spin, nambu)

    def metric(self, kind: SystemKind) -> Metric:
        if kind is SystemKind.PARTICLE_HOLE:
            return nambu_fock_metric
        return ordinary_fock_metric


@dataclass(frozen=True)
class PhononSpace:
    """Lattice vibrations with `ndim` displacement directions per site."""

    nsite: int
    ndim: int = 1

    statistics = Statistics.PHONONIC

    def __post_init__(self):
        if min(self.nsite, self.ndim) < 1:
            raise ConfigurationError("nsite and ndim must be positive.")

    def labels(self) -> Iterator[PhononIndex]:
        for tag in PhononTag:
            for site in range(self.nsite):
                for direction in range(self.ndim):
                    yield PhononIndex(tag, site, direction)

    def metric(self, kind: SystemKind) -> Metric:
        if kind is SystemKind.ORDINARY:
            raise ConfigurationError("Phonon systems are always of particle-hole kind.")
        return phonon_metric


class IndexTable:
    """
    Bijective mapping from basis-label keys to sequence numbers in [0, N).

    Keys produced by the metric are sorted; labels sharing a key share a
    sequence number.
    """

    def __init__(self, labels: Iterable[BasisIndex], metric: Metric):
        self.metric = metric
        keys = sorted({metric(label) for label in labels})
        self._index: Dict[Hashable, int] = {key: seq for seq, key in enumerate(keys)}
        self._keys: List[Tuple] = keys

    @classmethod
    def from_space(cls, space: Union[FockSpace, PhononSpace], kind: SystemKind) -> "IndexTable":
        table = cls(space.labels(), space.metric(kind))
        logger.debug(f"Built index table of size {len(table)} for kind {kind.value}.")
        return table

    def __len__(self) -> int:
        return len(self._keys)

    def __getitem__(self, label: BasisIndex) -> int:
        try:
            return self._index[self.metric(label)]
        except (KeyError, AttributeError) as e:
            raise ConfigurationError(f"Basis label {label!r} is not in the index table.") from e

    def __contains__(self, label: BasisIndex) -> bool:
        try:
            return self.metric(label) in self._index
        except AttributeError:
            return False

    def keys(self) -> List[Tuple]:
        return list(self._keys)
