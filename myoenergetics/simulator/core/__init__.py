"""
Core components for the simulator package.

This module contains the core classes and functions that are used across
the simulator package, organized to eliminate circular dependencies.
"""

from .model import Muscle, MuscleDynamicState, ModelState, MusculoskeletalModel
from .muscle import MetabolicMuscleParameter, MetabolicMuscleParameterSet
from .energetics import EnergeticsTerms, MuscleEnergeticsModel, compute_terms
from .probe import MetabolicBreakdown, MetabolicPowerProbe

__all__ = [
    "Muscle",
    "MuscleDynamicState",
    "ModelState",
    "MusculoskeletalModel",
    "MetabolicMuscleParameter",
    "MetabolicMuscleParameterSet",
    "EnergeticsTerms",
    "MuscleEnergeticsModel",
    "compute_terms",
    "MetabolicBreakdown",
    "MetabolicPowerProbe",
]
