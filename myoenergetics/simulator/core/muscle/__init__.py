"""
Muscle domain components.

This module contains the per-muscle metabolic parameters used by the metabolic probe.
"""

from .parameters import MetabolicMuscleParameter, MetabolicMuscleParameterSet

__all__ = ["MetabolicMuscleParameter", "MetabolicMuscleParameterSet"]
