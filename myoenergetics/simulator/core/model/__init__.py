"""
Model domain components.

This module contains the runtime interface to the dynamics engine and an in-memory reference model.
"""

from .model import (
    Muscle,
    MuscleDynamicState,
    MuscleHandle,
    MuscleModel,
    ModelState,
    MusculoskeletalModel,
)

__all__ = [
    "Muscle",
    "MuscleDynamicState",
    "MuscleHandle",
    "MuscleModel",
    "ModelState",
    "MusculoskeletalModel",
]
