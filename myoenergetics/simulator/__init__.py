"""
myoenergetics Simulator Module

This module provides the muscle metabolic energy expenditure model and the
probe that evaluates it for a whole model.
"""

from myoenergetics.simulator.core.model import (
    Muscle,
    MuscleDynamicState,
    ModelState,
    MusculoskeletalModel,
)
from myoenergetics.simulator.core.muscle import (
    MetabolicMuscleParameter,
    MetabolicMuscleParameterSet,
)
from myoenergetics.simulator.core.energetics import (
    EnergeticsTerms,
    MuscleEnergeticsModel,
    compute_terms,
)
from myoenergetics.simulator.core.probe import MetabolicBreakdown, MetabolicPowerProbe

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
