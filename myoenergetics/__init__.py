import logging

from myoenergetics.utils.exceptions import (
    ConfigurationError,
    MyoEnergeticsError,
    UnresolvedMuscleError,
)

__version__ = "0.1.0"

# Library logging is opt-in for applications
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "ConfigurationError",
    "MyoEnergeticsError",
    "UnresolvedMuscleError",
    "__version__",
]
