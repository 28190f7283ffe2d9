"""
tbacalc: energy bands of free quantum lattice systems in the tight-binding
approximation, including particle-hole (BdG) systems of fermions, bosons and
phonons.
"""
from .basis import FockIndex, FockSpace, IndexTable, PhononIndex, PhononSpace
from .commutator import check_commutator, select_commutator
from .core import TBA, AbstractTBA, AnalyticalTBA
from .errors import (
    ConfigurationError,
    DimensionError,
    NumericalError,
    PositiveDefinitenessError,
    TBAError,
)
from .kinds import Nambu, PhononTag, Statistics, SystemKind, infer_kind
from .lattice import Lattice
from .linalg import EigenResult, TBAMatrix, diagonalize
from .numerical import EnergyBands, run_sweep, save_results
from .operators import QuadraticOperator
from .terms import Bond, Hopping, Onsite, Pairing, PhononKinetic, PhononPotential, TermGenerator

__version__ = "0.1.0"
