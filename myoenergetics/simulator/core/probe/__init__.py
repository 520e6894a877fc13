"""
Probe domain components.

This module contains the metabolic power probe that aggregates the per-muscle energetics.
"""

from .probe import MetabolicBreakdown, MetabolicPowerProbe

__all__ = ["MetabolicBreakdown", "MetabolicPowerProbe"]
