# test_terms.py
import pickle

import numpy as np
import pytest
from numpy.testing import assert_allclose

from tbacalc.basis import FockIndex, FockSpace, PhononIndex, PhononSpace
from tbacalc.errors import ConfigurationError
from tbacalc.kinds import Nambu, PhononTag, Statistics
from tbacalc.lattice import Lattice
from tbacalc.operators import QuadraticOperator
from tbacalc.terms import (
    Bond,
    Hopping,
    Onsite,
    Pairing,
    PhononKinetic,
    PhononPotential,
    TermGenerator,
)

CHAIN = Lattice([[0.0]], [[1.0]])
DIMER = Lattice([[0.0, 0.0], [1.0, 0.0]])


def test_lattice_displacement():
    lattice = Lattice([[0.0, 0.0], [0.5, 0.5]], [[1.0, 0.0], [0.0, 1.0]])
    assert_allclose(lattice.displacement(0, 1, (1, 0)), [1.5, 0.5])
    assert_allclose(lattice.displacement(1, 0), [-0.5, -0.5])
    assert_allclose(lattice.reciprocals(), 2 * np.pi * np.eye(2))
    with pytest.raises(ConfigurationError):
        lattice.displacement(0, 2)
    with pytest.raises(ConfigurationError):
        lattice.displacement(0, 1, (1, 0, 0))


def test_hermitian_conjugate():
    op = QuadraticOperator(FockIndex(0, nambu=Nambu.CREATION), FockIndex(1), [0.5], 1 + 2j)
    hc = op.hermitian_conjugate()
    assert hc.index1 == FockIndex(1, nambu=Nambu.CREATION)
    assert hc.index2 == FockIndex(0)
    assert_allclose(hc.displacement, [-0.5])
    assert hc.value == 1 - 2j


def test_hopping_emits_conjugate_pairs():
    ops = list(Hopping("t", bonds=[Bond(0, 1)]).expand(FockSpace(2, nspin=2), DIMER, 1j))
    assert len(ops) == 4
    first, second = ops[:2]
    assert first.indexes == (FockIndex(0, 0, 0, Nambu.CREATION), FockIndex(1, 0, 0, Nambu.ANNIHILATION))
    assert_allclose(first.displacement, [1.0, 0.0])
    assert second.value == -1j
    assert_allclose(second.displacement, [-1.0, 0.0])


def test_hopping_selected_orbitals():
    bond = Bond(0, 1, orbitals=(0, 1))
    ops = list(Hopping("t", bonds=[bond]).expand(FockSpace(2, norbital=2), DIMER, 1.0))
    assert len(ops) == 2
    assert ops[0].index2.orbital == 1
    with pytest.raises(ConfigurationError):
        list(Hopping("t", bonds=[Bond(0, 1, orbitals=(0, 2))]).expand(FockSpace(2, norbital=2), DIMER, 1.0))


def test_onsite_selected_sites():
    ops = list(Onsite("mu", sites=[1]).expand(FockSpace(2), DIMER, 0.5))
    assert len(ops) == 1
    assert ops[0].indexes == (FockIndex(1, nambu=Nambu.CREATION), FockIndex(1))


def test_fermionic_pairing_on_bond():
    ops = list(Pairing("D", bonds=[Bond(0, 0, (1,))]).expand(FockSpace(1), CHAIN, 0.3))
    assert len(ops) == 4
    assert ops[0].value == 0.3
    assert ops[2].value == -0.3
    assert_allclose(ops[2].displacement, [-1.0])


def test_fermionic_onsite_pairing_vanishes():
    assert list(Pairing("D", bonds=[Bond(0, 0)]).expand(FockSpace(1), CHAIN, 0.3)) == []


def test_bosonic_onsite_pairing():
    space = FockSpace(1, statistics=Statistics.BOSONIC)
    ops = list(Pairing("D", bonds=[Bond(0, 0)]).expand(space, CHAIN, 0.3))
    assert len(ops) == 2
    assert ops[0].indexes == (FockIndex(0, nambu=Nambu.CREATION), FockIndex(0, nambu=Nambu.CREATION))


def test_phonon_potential_blocks():
    ops = list(PhononPotential("k", bonds=[Bond(0, 1)]).expand(PhononSpace(2, 2), DIMER, 2.0))
    # x-aligned bond: only the xx components survive
    nonzero = [op for op in ops if op.value != 0]
    assert len(nonzero) == 3
    cross = nonzero[-1]
    assert cross.indexes == (PhononIndex(PhononTag.DISPLACEMENT, 0, 0), PhononIndex(PhononTag.DISPLACEMENT, 1, 0))
    assert cross.value == -2.0
    assert all(op.value == 1.0 for op in nonzero[:2])


def test_phonon_potential_zero_length_bond():
    term = PhononPotential("k", bonds=[Bond(0, 0)])
    with pytest.raises(ConfigurationError):
        list(term.expand(PhononSpace(1), CHAIN, 1.0))


def test_phonon_potential_dimension_mismatch():
    term = PhononPotential("k", bonds=[Bond(0, 1)])
    with pytest.raises(ConfigurationError):
        list(term.expand(PhononSpace(2, 1), DIMER, 1.0))


# --- TermGenerator ---
def test_symbolic_amplitudes():
    generator = TermGenerator(
        [Hopping("hop", "t*exp(I*phi)", bonds=[Bond(0, 1)])],
        FockSpace(2),
        DIMER,
        {"t": 2.0, "phi": np.pi / 2},
    )
    assert_allclose(generator.values()["hop"], 2j, atol=1e-12)
    updated = generator.update(phi=0.0)
    assert_allclose(updated.values()["hop"], 2.0, atol=1e-12)
    assert generator.parameters["phi"] == np.pi / 2


def test_zero_amplitude_terms_are_skipped():
    generator = TermGenerator([Onsite("mu")], FockSpace(2), DIMER, {"mu": 0.0})
    assert generator.expand() == []
    assert len(generator.update(mu=1.0).expand()) == 2


def test_undefined_parameter():
    with pytest.raises(ConfigurationError, match="undefined"):
        TermGenerator([Onsite("mu", "mu + U")], FockSpace(2), DIMER, {"mu": 1.0})


def test_unknown_update():
    generator = TermGenerator([Onsite("mu")], FockSpace(2), DIMER, {"mu": 1.0})
    with pytest.raises(ConfigurationError):
        generator.update(U=1.0)


def test_duplicate_term_names():
    with pytest.raises(ConfigurationError):
        TermGenerator([Onsite("mu", 1.0), Onsite("mu", 2.0)], FockSpace(2), DIMER)


def test_space_type_checked():
    with pytest.raises(ConfigurationError):
        TermGenerator([PhononKinetic("kin", 0.5)], FockSpace(2), DIMER)


def test_site_count_checked():
    with pytest.raises(ConfigurationError):
        TermGenerator([Onsite("mu", 1.0)], FockSpace(3), DIMER)


def test_generator_pickles():
    generator = TermGenerator(
        [Hopping("hop", "t*exp(I*phi)", bonds=[Bond(0, 1)])],
        FockSpace(2),
        DIMER,
        {"t": 1.5, "phi": 0.2},
    )
    restored = pickle.loads(pickle.dumps(generator))
    assert_allclose(restored.values()["hop"], generator.values()["hop"])
    assert len(restored.expand()) == 2
