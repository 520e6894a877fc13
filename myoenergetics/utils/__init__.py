from myoenergetics.utils.curves import (
    PiecewiseLinearFunction,
    default_fiber_length_dependence_curve,
)
from myoenergetics.utils.exceptions import (
    ConfigurationError,
    MyoEnergeticsError,
    UnresolvedMuscleError,
)

__all__ = [
    "PiecewiseLinearFunction",
    "default_fiber_length_dependence_curve",
    "ConfigurationError",
    "MyoEnergeticsError",
    "UnresolvedMuscleError",
]
