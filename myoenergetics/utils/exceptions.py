class MyoEnergeticsError(Exception):
    """Base class for all errors raised by myoenergetics."""


class ConfigurationError(MyoEnergeticsError, ValueError):
    """
    Raised when a probe, a muscle parameter or a curve is configured with
    values that cannot be used for evaluation.

    This covers a missing provided muscle mass, a slow-twitch ratio outside
    [0, 1], non-positive masses, densities or specific tensions, malformed
    curves and unknown configuration keys.
    """


class UnresolvedMuscleError(MyoEnergeticsError, KeyError):
    """
    Raised at bind time when a metabolic parameter names a muscle that does
    not exist in the model.
    """

    def __init__(self, muscle_name: str, probe_name: str | None = None):
        self.muscle_name = muscle_name
        self.probe_name = probe_name
        super().__init__(muscle_name)

    def __str__(self) -> str:
        where = f" (probe '{self.probe_name}')" if self.probe_name else ""
        return f"Muscle '{self.muscle_name}' was not found in the model{where}."
