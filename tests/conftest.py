import matplotlib

matplotlib.use("Agg")

import pytest

from tbacalc.basis import FockSpace, PhononSpace
from tbacalc.core import TBA
from tbacalc.kinds import Statistics
from tbacalc.lattice import Lattice
from tbacalc.terms import Bond, Hopping, Onsite, Pairing, PhononKinetic, PhononPotential


@pytest.fixture
def kitaev_chain():
    """Spinless p-wave chain; bands +-sqrt((2t cos k - mu)^2 + 4 Delta^2 sin^2 k)."""
    lattice = Lattice([[0.0]], [[1.0]])
    terms = [
        Hopping("t", bonds=[Bond(0, 0, (1,))]),
        Onsite("mu", "-mu"),
        Pairing("Delta", bonds=[Bond(0, 0, (1,))]),
    ]
    return TBA.from_terms(lattice, FockSpace(1), terms, {"t": 1.0, "mu": 0.5, "Delta": 0.3})


@pytest.fixture
def boson_site():
    """One bosonic mode with on-site energy e and anomalous term D."""
    lattice = Lattice([[0.0]])
    terms = [Onsite("e"), Pairing("D", bonds=[Bond(0, 0)])]
    space = FockSpace(1, statistics=Statistics.BOSONIC)
    return TBA.from_terms(lattice, space, terms, {"e": 2.0, "D": 1.0})


@pytest.fixture
def phonon_chain():
    """Monatomic chain of mass m = 1/(2 kin) and spring constant kappa."""
    lattice = Lattice([[0.0]], [[1.0]])
    terms = [
        PhononKinetic("kin", 0.5),
        PhononPotential("kappa", bonds=[Bond(0, 0, (1,))]),
    ]
    return TBA.from_terms(lattice, PhononSpace(1, 1), terms, {"kappa": 1.0})


@pytest.fixture
def onsite_pair():
    """Two decoupled sites with energy mu, ordinary kind."""
    lattice = Lattice([[0.0], [1.0]])
    return TBA.from_terms(lattice, FockSpace(2), [Onsite("mu")], {"mu": 0.0})
