"""
Energetics domain components.

This module contains the per-muscle heat and work rate formulas.
"""

from .energetics import EnergeticsTerms, MuscleEnergeticsModel, compute_terms

__all__ = ["EnergeticsTerms", "MuscleEnergeticsModel", "compute_terms"]
