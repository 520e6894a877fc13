import math
import warnings
from collections.abc import Iterator, Mapping
from typing import Any

from beartype import beartype

from myoenergetics.utils.exceptions import ConfigurationError
from myoenergetics.utils.types import beartowertype


@beartowertype
class MetabolicMuscleParameter:
    """
    Metabolic parameters of a single muscle for the Bhargava et al. (2004) [1]_ energetics model.

    .. note::
        All default values describe mammalian muscle and are taken from [1]_.

    Parameters
    ----------
    name : str
        Name of the muscle in the model. Used as unique key in a
        :class:`MetabolicMuscleParameterSet` and to resolve the muscle at bind time.
    ratio_slow_twitch_fibers : float, default=0.5
        Ratio of slow twitch fibers in the muscle. Must be in [0, 1].
    specific_tension__Pa : float, default=0.25e6
        Specific tension of the muscle in Pascals (N/m^2). Only used when the muscle mass is derived.
    density__kg_m3 : float, default=1059.7
        Density of the muscle in kg/m^3. Only used when the muscle mass is derived.
    activation_constant_slow_twitch__W_kg : float, default=40.0
        Activation constant for slow twitch fibers in W/kg.
    activation_constant_fast_twitch__W_kg : float, default=133.0
        Activation constant for fast twitch fibers in W/kg.
    maintenance_constant_slow_twitch__W_kg : float, default=74.0
        Maintenance constant for slow twitch fibers in W/kg.
    maintenance_constant_fast_twitch__W_kg : float, default=111.0
        Maintenance constant for fast twitch fibers in W/kg.
    use_provided_muscle_mass : bool, default=False
        If True, ``provided_muscle_mass__kg`` is used as the muscle mass.
        Otherwise the mass is derived from the maximum isometric force and the
        optimal fiber length of the bound muscle (see :meth:`resolve_mass`).
    provided_muscle_mass__kg : float, default=nan
        User specified muscle mass in kg. Required if ``use_provided_muscle_mass`` is True.

    Raises
    ------
    ConfigurationError
        If any of the parameters violates its valid range (see :meth:`validate`).

    References
    ----------
    .. [1] Bhargava, L.J., Pandy, M.G., Anderson, F.C., 2004.
        A phenomenological model for estimating metabolic energy consumption in muscle contraction.
        Journal of Biomechanics 37, 81–88. https://doi.org/10.1016/S0021-9290(03)00239-2
    """

    def __init__(
        self,
        name: str,
        ratio_slow_twitch_fibers: float = 0.5,
        specific_tension__Pa: float = 0.25e6,
        density__kg_m3: float = 1059.7,
        activation_constant_slow_twitch__W_kg: float = 40.0,
        activation_constant_fast_twitch__W_kg: float = 133.0,
        maintenance_constant_slow_twitch__W_kg: float = 74.0,
        maintenance_constant_fast_twitch__W_kg: float = 111.0,
        use_provided_muscle_mass: bool = False,
        provided_muscle_mass__kg: float = math.nan,
    ):
        self.name = name
        self.ratio_slow_twitch_fibers = float(ratio_slow_twitch_fibers)
        self.specific_tension__Pa = float(specific_tension__Pa)
        self.density__kg_m3 = float(density__kg_m3)
        self.activation_constant_slow_twitch__W_kg = float(
            activation_constant_slow_twitch__W_kg
        )
        self.activation_constant_fast_twitch__W_kg = float(
            activation_constant_fast_twitch__W_kg
        )
        self.maintenance_constant_slow_twitch__W_kg = float(
            maintenance_constant_slow_twitch__W_kg
        )
        self.maintenance_constant_fast_twitch__W_kg = float(
            maintenance_constant_fast_twitch__W_kg
        )
        self.use_provided_muscle_mass = use_provided_muscle_mass
        self.provided_muscle_mass__kg = float(provided_muscle_mass__kg)

        # Set by the metabolic probe when it is bound to a model
        self._muscle_mass__kg = math.nan

        self.validate()

        if not use_provided_muscle_mass and not math.isnan(self.provided_muscle_mass__kg):
            warnings.warn(
                f"Muscle '{name}': provided_muscle_mass__kg is ignored because "
                "use_provided_muscle_mass is False.",
                UserWarning,
                stacklevel=2,
            )

    @classmethod
    def with_provided_mass(
        cls, name: str, ratio_slow_twitch_fibers: float, muscle_mass__kg: float
    ) -> "MetabolicMuscleParameter":
        """Create a parameter whose mass is given explicitly instead of derived."""
        return cls(
            name=name,
            ratio_slow_twitch_fibers=ratio_slow_twitch_fibers,
            use_provided_muscle_mass=True,
            provided_muscle_mass__kg=muscle_mass__kg,
        )

    def validate(self) -> None:
        """
        Check all static parameters.

        Raises
        ------
        ConfigurationError
            If the slow twitch ratio is outside [0, 1], if the specific tension
            or density is not strictly positive, if any energetic constant is
            negative or not finite, or if ``use_provided_muscle_mass`` is True and
            the provided mass is unset, not finite or not strictly positive.
        """
        if not 0.0 <= self.ratio_slow_twitch_fibers <= 1.0:
            raise ConfigurationError(
                f"Muscle '{self.name}': ratio_slow_twitch_fibers must be in [0, 1], "
                f"got {self.ratio_slow_twitch_fibers}."
            )
        for attribute in ("specific_tension__Pa", "density__kg_m3"):
            value = getattr(self, attribute)
            if not (math.isfinite(value) and value > 0.0):
                raise ConfigurationError(
                    f"Muscle '{self.name}': {attribute} must be > 0, got {value}."
                )
        for attribute in (
            "activation_constant_slow_twitch__W_kg",
            "activation_constant_fast_twitch__W_kg",
            "maintenance_constant_slow_twitch__W_kg",
            "maintenance_constant_fast_twitch__W_kg",
        ):
            value = getattr(self, attribute)
            if not (math.isfinite(value) and value >= 0.0):
                raise ConfigurationError(
                    f"Muscle '{self.name}': {attribute} must be >= 0, got {value}."
                )
        if self.use_provided_muscle_mass:
            if math.isnan(self.provided_muscle_mass__kg):
                raise ConfigurationError(
                    f"Muscle '{self.name}': use_provided_muscle_mass is True but "
                    "provided_muscle_mass__kg was not set."
                )
            if not (
                math.isfinite(self.provided_muscle_mass__kg)
                and self.provided_muscle_mass__kg > 0.0
            ):
                raise ConfigurationError(
                    f"Muscle '{self.name}': provided_muscle_mass__kg must be > 0, "
                    f"got {self.provided_muscle_mass__kg}."
                )

    def resolve_mass(
        self, max_isometric_force__N: float, optimal_fiber_length__m: float
    ) -> float:
        """
        Resolve the mass of the muscle in kg.

        If ``use_provided_muscle_mass`` is True the provided mass is returned.
        Otherwise the mass is derived from the physiological cross-sectional area:

        .. math:: m = \\frac{F_{max}}{\\sigma} \\cdot \\rho \\cdot l_{opt}

        Parameters
        ----------
        max_isometric_force__N : float
            Maximum isometric force of the bound muscle in N.
        optimal_fiber_length__m : float
            Optimal fiber length of the bound muscle in m.

        Returns
        -------
        float
            Muscle mass in kg. Not cached here; see :attr:`muscle_mass__kg`.

        Raises
        ------
        ConfigurationError
            If ``use_provided_muscle_mass`` is True and no mass was provided.
        """
        if self.use_provided_muscle_mass:
            if math.isnan(self.provided_muscle_mass__kg):
                raise ConfigurationError(
                    f"Muscle '{self.name}': use_provided_muscle_mass is True but "
                    "provided_muscle_mass__kg was not set."
                )
            return self.provided_muscle_mass__kg

        return (
            (max_isometric_force__N / self.specific_tension__Pa)
            * self.density__kg_m3
            * optimal_fiber_length__m
        )

    @property
    def muscle_mass__kg(self) -> float:
        """Muscle mass cached at bind time, ``nan`` while unbound."""
        return self._muscle_mass__kg

    @muscle_mass__kg.setter
    def muscle_mass__kg(self, value: float) -> None:
        if not (math.isfinite(value) and value > 0.0):
            raise ConfigurationError(
                f"Muscle '{self.name}': muscle mass must be finite and > 0, got {value}."
            )
        self._muscle_mass__kg = float(value)

    @property
    def is_mass_resolved(self) -> bool:
        return not math.isnan(self._muscle_mass__kg)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "ratio_slow_twitch_fibers": self.ratio_slow_twitch_fibers,
            "specific_tension__Pa": self.specific_tension__Pa,
            "density__kg_m3": self.density__kg_m3,
            "activation_constant_slow_twitch__W_kg": self.activation_constant_slow_twitch__W_kg,
            "activation_constant_fast_twitch__W_kg": self.activation_constant_fast_twitch__W_kg,
            "maintenance_constant_slow_twitch__W_kg": self.maintenance_constant_slow_twitch__W_kg,
            "maintenance_constant_fast_twitch__W_kg": self.maintenance_constant_fast_twitch__W_kg,
            "use_provided_muscle_mass": self.use_provided_muscle_mass,
        }
        # TOML has no NaN-free way to say "unset", so the key is left out
        if not math.isnan(self.provided_muscle_mass__kg):
            data["provided_muscle_mass__kg"] = self.provided_muscle_mass__kg
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetabolicMuscleParameter":
        """
        Build a parameter from a configuration record.

        Keys are the constructor argument names. ``name`` is required.

        Raises
        ------
        ConfigurationError
            If ``name`` is missing or unknown keys are present.
        """
        unknown = set(data) - _PARAMETER_KEYS
        if unknown:
            raise ConfigurationError(
                f"Unknown metabolic parameter keys: {', '.join(sorted(unknown))}"
            )
        if "name" not in data:
            raise ConfigurationError("A metabolic parameter record needs a 'name'.")
        return cls(**dict(data))

    def __repr__(self) -> str:
        return (
            f"MetabolicMuscleParameter(name={self.name!r}, "
            f"ratio_slow_twitch_fibers={self.ratio_slow_twitch_fibers}, "
            f"muscle_mass__kg={self._muscle_mass__kg})"
        )


_PARAMETER_KEYS = frozenset(
    {
        "name",
        "ratio_slow_twitch_fibers",
        "specific_tension__Pa",
        "density__kg_m3",
        "activation_constant_slow_twitch__W_kg",
        "activation_constant_fast_twitch__W_kg",
        "maintenance_constant_slow_twitch__W_kg",
        "maintenance_constant_fast_twitch__W_kg",
        "use_provided_muscle_mass",
        "provided_muscle_mass__kg",
    }
)


@beartype
class MetabolicMuscleParameterSet:
    """
    Ordered collection of :class:`MetabolicMuscleParameter`, keyed by muscle name.

    Insertion order is the order in which the metabolic probe evaluates the
    muscles. Names are unique.

    Parameters
    ----------
    parameters : list[MetabolicMuscleParameter], optional
        Initial parameters, added in order.

    Raises
    ------
    ConfigurationError
        If two parameters share a name.
    """

    def __init__(self, parameters: list[MetabolicMuscleParameter] | None = None):
        self._parameters: dict[str, MetabolicMuscleParameter] = {}
        for parameter in parameters or []:
            self.add(parameter)

    def add(self, parameter: MetabolicMuscleParameter) -> None:
        if parameter.name in self._parameters:
            raise ConfigurationError(
                f"A metabolic parameter for muscle '{parameter.name}' already exists."
            )
        self._parameters[parameter.name] = parameter

    def replace(self, parameter: MetabolicMuscleParameter) -> MetabolicMuscleParameter:
        """
        Replace the parameter with the same name, keeping its position.

        Returns
        -------
        MetabolicMuscleParameter
            The parameter that was replaced.

        Raises
        ------
        KeyError
            If no parameter with that name exists.
        """
        previous = self._parameters[parameter.name]
        self._parameters[parameter.name] = parameter
        return previous

    def remove(self, name: str) -> MetabolicMuscleParameter:
        return self._parameters.pop(name)

    def get(self, name: str) -> MetabolicMuscleParameter:
        return self._parameters[name]

    @property
    def names(self) -> list[str]:
        return list(self._parameters)

    def __getitem__(self, key: str | int) -> MetabolicMuscleParameter:
        if isinstance(key, int):
            return list(self._parameters.values())[key]
        return self._parameters[key]

    def __contains__(self, name: object) -> bool:
        return name in self._parameters

    def __iter__(self) -> Iterator[MetabolicMuscleParameter]:
        return iter(list(self._parameters.values()))

    def __len__(self) -> int:
        return len(self._parameters)

    def __repr__(self) -> str:
        return f"MetabolicMuscleParameterSet({self.names!r})"

    def to_list(self) -> list[dict[str, Any]]:
        return [parameter.to_dict() for parameter in self]

    @classmethod
    def from_list(
        cls, records: list[Mapping[str, Any]]
    ) -> "MetabolicMuscleParameterSet":
        return cls([MetabolicMuscleParameter.from_dict(record) for record in records])
