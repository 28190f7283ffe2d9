from typing import List, Dict, Optional, Union, Literal, Tuple
from pydantic import BaseModel, Field, model_validator, ConfigDict


# --- Primitive Types ---
Vector = List[float]
# Amplitudes can be numbers or symbolic expressions over parameters
ParamValue = Union[float, str]


# --- Lattice and Basis ---
class LatticeConfig(BaseModel):
    # Rows are translation vectors; empty for a finite cluster
    vectors: List[Vector] = Field(default_factory=list)
    sites: List[Vector]

    @model_validator(mode='after')
    def check_dimensions(self):
        if not self.sites:
            raise ValueError("Lattice must contain at least one site.")
        dim = len(self.sites[0])
        if any(len(s) != dim for s in self.sites):
            raise ValueError("All site positions must have the same dimension.")
        if any(len(v) != dim for v in self.vectors):
            raise ValueError(f"Lattice vectors must have {dim} components like the site positions.")
        return self


class BasisConfig(BaseModel):
    statistics: Literal['fermionic', 'bosonic', 'phononic'] = 'fermionic'
    norbital: int = Field(default=1, ge=1)
    nspin: int = Field(default=1, ge=1)
    # Displacement directions per site, phonons only (defaults to lattice dimension)
    ndim: Optional[int] = Field(default=None, ge=1)


# --- Terms ---
class BondConfig(BaseModel):
    site_i: int = Field(ge=0)
    site_j: int = Field(ge=0)
    offset: List[float] = Field(default_factory=list)
    orbitals: Optional[Tuple[int, int]] = None
    spins: Optional[Tuple[int, int]] = None


class TermConfig(BaseModel):
    type: Literal['hopping', 'onsite', 'pairing', 'phonon_kinetic', 'phonon_potential']
    name: str
    amplitude: Optional[ParamValue] = None  # Defaults to the parameter named like the term
    bonds: List[BondConfig] = Field(default_factory=list)
    sites: Optional[List[int]] = None
    orbitals: Optional[List[int]] = None

    @model_validator(mode='after')
    def check_bonds(self):
        if self.type in ('hopping', 'pairing', 'phonon_potential') and not self.bonds:
            raise ValueError(f"Term '{self.name}' of type '{self.type}' needs at least one bond.")
        if self.type not in ('hopping', 'pairing', 'phonon_potential') and self.bonds:
            raise ValueError(f"Term '{self.name}' of type '{self.type}' does not take bonds.")
        return self


# --- Paths ---
class KPathConfig(BaseModel):
    points: Dict[str, Vector]
    path: List[str]
    points_per_segment: int = Field(default=50, ge=2)
    units: Literal['fractional', 'cartesian'] = 'fractional'

    @model_validator(mode='after')
    def check_path(self):
        if len(self.path) < 2:
            raise ValueError("k_path.path must contain at least two points.")
        missing = [p for p in self.path if p not in self.points]
        if missing:
            raise ValueError(f"k_path.path uses undefined points {missing}.")
        return self


class ParameterScanConfig(BaseModel):
    name: str
    start: float
    stop: float
    num: int = Field(default=50, ge=1)
    k: Optional[Vector] = None  # Fixed momentum during the scan


# --- Other Sections ---
class CalculationConfig(BaseModel):
    processes: Optional[int] = Field(default=None, ge=1)
    progress: bool = False


class OutputConfig(BaseModel):
    bands_data_filename: str = 'bands_data.npz'


class PlottingConfig(BaseModel):
    save_plot: bool = True
    bands_plot_filename: str = 'bands_plot.png'
    show_plot: bool = False
    title: str = "Energy Bands"
    energy_limits: Optional[List[float]] = None

    model_config = ConfigDict(extra='allow')


class TasksConfig(BaseModel):
    run_bands: bool = True
    plot_bands: bool = False


# --- Main Configuration ---
class TBAConfig(BaseModel):
    lattice: LatticeConfig
    basis: BasisConfig = Field(default_factory=BasisConfig)
    terms: List[TermConfig]
    parameters: Dict[str, float] = Field(default_factory=dict)  # Name -> Value

    calculation: CalculationConfig = Field(default_factory=CalculationConfig)
    k_path: Optional[KPathConfig] = None
    parameter_scan: Optional[ParameterScanConfig] = None
    output: OutputConfig = Field(default_factory=OutputConfig)
    plotting: PlottingConfig = Field(default_factory=PlottingConfig)
    tasks: TasksConfig = Field(default_factory=TasksConfig)

    @model_validator(mode='after')
    def check_model(self):
        if not self.terms:
            raise ValueError("At least one term is required.")
        phonon_terms = [t.name for t in self.terms if t.type.startswith('phonon_')]
        if self.basis.statistics == 'phononic' and len(phonon_terms) != len(self.terms):
            raise ValueError("Phononic models accept only phonon_kinetic and phonon_potential terms.")
        if self.basis.statistics != 'phononic' and phonon_terms:
            raise ValueError(f"Phonon terms {phonon_terms} need phononic statistics.")
        nsite = len(self.lattice.sites)
        for term in self.terms:
            for bond in term.bonds:
                if bond.site_i >= nsite or bond.site_j >= nsite:
                    raise ValueError(f"Bond {bond.site_i}->{bond.site_j} of term '{term.name}' exceeds {nsite} sites.")
        if self.k_path is not None and self.parameter_scan is not None:
            raise ValueError("Give either 'k_path' or 'parameter_scan', not both.")
        if self.parameter_scan is not None and self.parameter_scan.name not in self.parameters:
            raise ValueError(f"Scanned parameter '{self.parameter_scan.name}' is not in 'parameters'.")
        return self
