#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Configuration Loading Utility for tbacalc.

This module provides functions to load and validate a tight-binding model
configuration from a YAML file and to build the corresponding system.
"""
import logging
from typing import Any, Dict, List, Union

import yaml
from pydantic import ValidationError

from .basis import FockSpace, PhononSpace
from .core import TBA
from .errors import ConfigurationError
from .kinds import Statistics
from .lattice import Lattice
from .schema import TBAConfig, TermConfig
from .terms import TERM_TYPES, Bond, Term

logger = logging.getLogger(__name__)


def load_model_config(filepath: str) -> TBAConfig:
    """
    Loads and validates the model configuration from a YAML file.

    Args:
        filepath (str): The path to the YAML configuration file.

    Returns:
        TBAConfig: The validated configuration.

    Raises:
        FileNotFoundError: If the configuration file is not found.
        ValueError: If there's an error parsing the YAML or if the content
                    does not match the configuration schema.
    """
    logger.info(f"Loading model configuration from: {filepath}")
    try:
        with open(filepath, "r") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.error(f"Configuration file not found: {filepath}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Error parsing YAML file {filepath}: {e}")
        raise ValueError(f"Invalid YAML format in {filepath}") from e

    if not isinstance(data, dict):
        msg = f"Configuration file {filepath} must contain a mapping at top level."
        logger.error(msg)
        raise ValueError(msg)

    try:
        config = TBAConfig.model_validate(data)
    except ValidationError as e:
        logger.error(f"Invalid configuration in {filepath}: {e}")
        raise ValueError(f"Invalid configuration in {filepath}:\n{e}") from e

    logger.info("Model configuration loaded and validated.")
    return config


def _build_term(term_config: TermConfig) -> Term:
    cls = TERM_TYPES[term_config.type]
    if term_config.type == "onsite":
        return cls(term_config.name, term_config.amplitude, sites=term_config.sites, orbitals=term_config.orbitals)
    if term_config.type == "phonon_kinetic":
        return cls(term_config.name, term_config.amplitude, sites=term_config.sites)
    bonds = [
        Bond(
            b.site_i,
            b.site_j,
            tuple(b.offset),
            None if b.orbitals is None else tuple(b.orbitals),
            None if b.spins is None else tuple(b.spins),
        )
        for b in term_config.bonds
    ]
    return cls(term_config.name, term_config.amplitude, bonds=bonds)


def build_system(config: Union[TBAConfig, Dict[str, Any]]) -> TBA:
    """
    Build a TBA system from a validated configuration (or a raw dictionary).

    Raises:
        ValueError: If a raw dictionary does not match the schema.
        ConfigurationError: If terms, basis and parameters are inconsistent.
    """
    if not isinstance(config, TBAConfig):
        try:
            config = TBAConfig.model_validate(config)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration:\n{e}") from e

    lattice = Lattice(config.lattice.sites, config.lattice.vectors)
    statistics = Statistics.parse(config.basis.statistics)
    if statistics is Statistics.PHONONIC:
        ndim = config.basis.ndim if config.basis.ndim is not None else lattice.dimension
        space: Union[FockSpace, PhononSpace] = PhononSpace(lattice.nsite, ndim)
    else:
        if config.basis.ndim is not None:
            raise ConfigurationError("'basis.ndim' applies to phononic models only.")
        space = FockSpace(lattice.nsite, config.basis.norbital, config.basis.nspin, statistics)

    terms: List[Term] = [_build_term(t) for t in config.terms]
    logger.info(f"Building model with terms {[t.name for t in terms]} and parameters {config.parameters}.")
    return TBA.from_terms(lattice, space, terms, config.parameters)
