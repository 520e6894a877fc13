import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

import numpy as np
from tqdm import tqdm

from myoenergetics.simulator.core.energetics import EnergeticsTerms, MuscleEnergeticsModel
from myoenergetics.simulator.core.model import MuscleDynamicState, MuscleHandle, MuscleModel
from myoenergetics.simulator.core.muscle import (
    MetabolicMuscleParameter,
    MetabolicMuscleParameterSet,
)
from myoenergetics.utils.curves import (
    PiecewiseLinearFunction,
    default_fiber_length_dependence_curve,
)
from myoenergetics.utils.exceptions import ConfigurationError, UnresolvedMuscleError
from myoenergetics.utils.types import (
    FIBER_LENGTH_CURVE,
    METABOLIC_POWER__VECTOR,
    beartowertype,
)

logger = logging.getLogger(__name__)

# Lower bound of the summed heat rate of a muscle, Umberger et al. (2003) p. 104
MINIMUM_HEAT_RATE__W_kg = 1.0

_PROBE_KEYS = frozenset(
    {
        "name",
        "activation_rate_on",
        "maintenance_rate_on",
        "shortening_rate_on",
        "basal_rate_on",
        "mechanical_work_rate_on",
        "enforce_minimum_heat_rate_per_muscle",
        "use_force_dependent_shortening_prop_constant",
        "basal_coefficient",
        "basal_exponent",
        "normalized_fiber_length_dependence_on_maintenance_rate",
        "metabolic_parameters",
    }
)


class MetabolicBreakdown(NamedTuple):
    """
    Contributions to the metabolic power of one evaluation.

    Attributes
    ----------
    muscle_terms : dict[str, EnergeticsTerms]
        Per muscle terms after switched-off terms were zeroed, before clamping.
    muscle_heat_rates__W : dict[str, float]
        Per muscle heat rate (activation + maintenance + shortening) after clamping.
    muscle_powers__W : dict[str, float]
        Per muscle metabolic power, i.e. clamped heat rate plus work rate.
    basal_heat_rate__W : float
        Whole body basal heat rate.
    total__W : float
        Sum of all muscle powers and the basal heat rate.
    """

    muscle_terms: dict[str, EnergeticsTerms]
    muscle_heat_rates__W: dict[str, float]
    muscle_powers__W: dict[str, float]
    basal_heat_rate__W: float
    total__W: float


@beartowertype
class MetabolicPowerProbe:
    """
    Probe computing the net metabolic power of a set of muscles after Bhargava et al. (2004) [1]_.

    The metabolic power is the rate at which heat is liberated plus the rate at which work is done:

    .. math:: \\dot{E} = \\dot{B} + \\sum_{muscles} (\\dot{A} + \\dot{M} + \\dot{S} + \\dot{W})

    where :math:`\\dot{B} = c_{basal} \\cdot m_{body}^{e_{basal}}` is computed once for the whole
    body and the per-muscle terms are given by
    :func:`~myoenergetics.simulator.core.energetics.compute_terms`.

    If ``enforce_minimum_heat_rate_per_muscle`` is True and activation, maintenance and
    shortening heat rates are all switched on, the heat rate of every muscle is clamped
    to at least 1.0 W/kg times its mass [2]_.

    The probe works in two phases. :meth:`bind` resolves every metabolic parameter to a
    muscle of the model and caches its mass; it raises on any configuration problem.
    :meth:`evaluate` can then be called any number of times with different states and
    never re-validates.

    Parameters
    ----------
    name : str, default="metabolic_power"
        Name of the probe, also used as its single output label.
    metabolic_parameters : MetabolicMuscleParameterSet | list[MetabolicMuscleParameter], optional
        Metabolic parameters of the muscles to include, evaluated in this order.
    activation_rate_on : bool, default=True
        Include the activation heat rate.
    maintenance_rate_on : bool, default=True
        Include the maintenance heat rate.
    shortening_rate_on : bool, default=True
        Include the shortening heat rate.
    basal_rate_on : bool, default=True
        Include the whole body basal heat rate.
    mechanical_work_rate_on : bool, default=True
        Include the mechanical work rate.
    enforce_minimum_heat_rate_per_muscle : bool, default=True
        Clamp the heat rate of each muscle to at least 1.0 W/kg.
    use_force_dependent_shortening_prop_constant : bool, default=False
        Use the force dependent shortening proportionality constant.
    basal_coefficient : float, default=1.2
        Basal metabolic coefficient.
    basal_exponent : float, default=1.0
        Basal metabolic exponent.
    normalized_fiber_length_dependence_on_maintenance_rate : Callable[[float], float], optional
        Normalized fiber length dependence of the maintenance heat rate.
        Defaults to :func:`~myoenergetics.utils.curves.default_fiber_length_dependence_curve`.

    Raises
    ------
    ConfigurationError
        If the basal coefficient or exponent is not finite.

    References
    ----------
    .. [1] Bhargava, L.J., Pandy, M.G., Anderson, F.C., 2004.
        A phenomenological model for estimating metabolic energy consumption in muscle contraction.
        Journal of Biomechanics 37, 81–88. https://doi.org/10.1016/S0021-9290(03)00239-2
    .. [2] Umberger, B.R., Gerritsen, K.G.M., Martin, P.E., 2003.
        A model of human muscle energy expenditure.
        Computer Methods in Biomechanics and Biomedical Engineering 6, 99–111.
        https://doi.org/10.1080/1025584031000091678
    """

    def __init__(
        self,
        name: str = "metabolic_power",
        metabolic_parameters: (
            MetabolicMuscleParameterSet | list[MetabolicMuscleParameter] | None
        ) = None,
        activation_rate_on: bool = True,
        maintenance_rate_on: bool = True,
        shortening_rate_on: bool = True,
        basal_rate_on: bool = True,
        mechanical_work_rate_on: bool = True,
        enforce_minimum_heat_rate_per_muscle: bool = True,
        use_force_dependent_shortening_prop_constant: bool = False,
        basal_coefficient: float = 1.2,
        basal_exponent: float = 1.0,
        normalized_fiber_length_dependence_on_maintenance_rate: (
            FIBER_LENGTH_CURVE | None
        ) = None,
    ):
        self.name = name

        if isinstance(metabolic_parameters, MetabolicMuscleParameterSet):
            self.metabolic_parameters = metabolic_parameters
        else:
            self.metabolic_parameters = MetabolicMuscleParameterSet(
                metabolic_parameters
            )

        self.activation_rate_on = activation_rate_on
        self.maintenance_rate_on = maintenance_rate_on
        self.shortening_rate_on = shortening_rate_on
        self.basal_rate_on = basal_rate_on
        self.mechanical_work_rate_on = mechanical_work_rate_on
        self.enforce_minimum_heat_rate_per_muscle = enforce_minimum_heat_rate_per_muscle

        if not (math.isfinite(basal_coefficient) and math.isfinite(basal_exponent)):
            raise ConfigurationError(
                f"Probe '{name}': basal_coefficient and basal_exponent must be finite."
            )
        self.basal_coefficient = float(basal_coefficient)
        self.basal_exponent = float(basal_exponent)

        if normalized_fiber_length_dependence_on_maintenance_rate is None:
            normalized_fiber_length_dependence_on_maintenance_rate = (
                default_fiber_length_dependence_curve()
            )
        self.energetics_model = MuscleEnergeticsModel(
            fiber_length_dependence=normalized_fiber_length_dependence_on_maintenance_rate,
            use_force_dependent_shortening_prop_constant=use_force_dependent_shortening_prop_constant,
        )

        # Rebuilt by bind()
        self._model: MuscleModel | None = None
        self._bound_muscles: list[tuple[MetabolicMuscleParameter, MuscleHandle]] | None = None

    @property
    def normalized_fiber_length_dependence_on_maintenance_rate(self) -> FIBER_LENGTH_CURVE:
        return self.energetics_model.fiber_length_dependence

    @normalized_fiber_length_dependence_on_maintenance_rate.setter
    def normalized_fiber_length_dependence_on_maintenance_rate(
        self, curve: FIBER_LENGTH_CURVE
    ) -> None:
        self.energetics_model.fiber_length_dependence = curve

    @property
    def use_force_dependent_shortening_prop_constant(self) -> bool:
        return self.energetics_model.use_force_dependent_shortening_prop_constant

    @use_force_dependent_shortening_prop_constant.setter
    def use_force_dependent_shortening_prop_constant(self, value: bool) -> None:
        self.energetics_model.use_force_dependent_shortening_prop_constant = value

    @property
    def is_bound(self) -> bool:
        return self._bound_muscles is not None

    @property
    def num_outputs(self) -> int:
        """Number of values reported per evaluation. Always 1, the total metabolic power."""
        return 1

    @property
    def output_labels(self) -> list[str]:
        """Column labels of the reported values, the probe name."""
        return [self.name]

    def bind(self, model: MuscleModel) -> None:
        """
        Bind every metabolic parameter to its muscle and cache the muscle masses.

        Must be called before :meth:`evaluate` and again whenever the model or the
        parameter set changes. Binding the same parameters to an unchanged model
        again yields the same masses.

        Parameters
        ----------
        model : MuscleModel
            Model providing ``get_muscle(name)`` and ``get_total_mass(state)``.

        Raises
        ------
        UnresolvedMuscleError
            If a metabolic parameter names a muscle the model does not have.
        ConfigurationError
            If a parameter is invalid or a resolved muscle mass is not finite and positive.
            On any error the probe is left unbound and no mass is changed.
        """
        self._model = None
        self._bound_muscles = None

        resolved: list[tuple[MetabolicMuscleParameter, MuscleHandle, float]] = []
        for parameter in self.metabolic_parameters:
            parameter.validate()
            try:
                muscle = model.get_muscle(parameter.name)
            except KeyError as e:
                raise UnresolvedMuscleError(parameter.name, self.name) from e
            if muscle is None:
                raise UnresolvedMuscleError(parameter.name, self.name)

            mass = parameter.resolve_mass(
                float(muscle.max_isometric_force__N),
                float(muscle.optimal_fiber_length__m),
            )
            if not (math.isfinite(mass) and mass > 0.0):
                raise ConfigurationError(
                    f"Probe '{self.name}': resolved mass of muscle '{parameter.name}' "
                    f"must be finite and > 0, got {mass}."
                )
            resolved.append((parameter, muscle, mass))

        for parameter, _, mass in resolved:
            parameter.muscle_mass__kg = mass
            logger.debug(
                "Probe '%s': muscle '%s' bound with mass %.6g kg (%s).",
                self.name,
                parameter.name,
                mass,
                "provided" if parameter.use_provided_muscle_mass else "derived",
            )

        self._model = model
        self._bound_muscles = [(parameter, muscle) for parameter, muscle, _ in resolved]
        logger.info("Probe '%s' bound to %d muscle(s).", self.name, len(resolved))

    def _require_bound(self) -> tuple[MuscleModel, list[tuple[MetabolicMuscleParameter, MuscleHandle]]]:
        if self._model is None or self._bound_muscles is None:
            raise ConfigurationError(
                f"Probe '{self.name}' must be bound to a model before it is evaluated."
            )
        return self._model, self._bound_muscles

    def _evaluate_muscle(
        self, parameter: MetabolicMuscleParameter, muscle_state: MuscleDynamicState
    ) -> tuple[EnergeticsTerms, float, float]:
        """Return the switched terms, the clamped heat rate and the power of one muscle."""
        terms = self.energetics_model.compute_terms(parameter, muscle_state)
        terms = EnergeticsTerms(
            activation_heat_rate__W=(
                terms.activation_heat_rate__W if self.activation_rate_on else 0.0
            ),
            maintenance_heat_rate__W=(
                terms.maintenance_heat_rate__W if self.maintenance_rate_on else 0.0
            ),
            shortening_heat_rate__W=(
                terms.shortening_heat_rate__W if self.shortening_rate_on else 0.0
            ),
            mechanical_work_rate__W=(
                terms.mechanical_work_rate__W if self.mechanical_work_rate_on else 0.0
            ),
        )

        heat_rate = terms.total_heat_rate__W
        if (
            self.enforce_minimum_heat_rate_per_muscle
            and self.activation_rate_on
            and self.maintenance_rate_on
            and self.shortening_rate_on
        ):
            minimum = MINIMUM_HEAT_RATE__W_kg * parameter.muscle_mass__kg
            if heat_rate < minimum:
                heat_rate = minimum

        return terms, heat_rate, heat_rate + terms.mechanical_work_rate__W

    def _basal_heat_rate(self, model: MuscleModel, state: Any) -> float:
        if not self.basal_rate_on:
            return 0.0
        return self.basal_coefficient * float(model.get_total_mass(state)) ** self.basal_exponent

    def evaluate(self, state: Any) -> float:
        """
        Compute the total metabolic power in W for one state.

        Parameters
        ----------
        state : Any
            State understood by the bound model and its muscles.

        Returns
        -------
        float
            Total metabolic power in W. Non-finite inputs give a non-finite result.

        Raises
        ------
        ConfigurationError
            If the probe was not bound.
        """
        model, bound_muscles = self._require_bound()

        total = 0.0
        for parameter, muscle in bound_muscles:
            _, _, muscle_power = self._evaluate_muscle(
                parameter, muscle.get_dynamic_state(state)
            )
            total += muscle_power

        return total + self._basal_heat_rate(model, state)

    def compute_outputs(self, state: Any) -> np.ndarray:
        """Reported values for one state, shape ``(num_outputs,)``."""
        return np.array([self.evaluate(state)])

    def compute_breakdown(self, state: Any) -> MetabolicBreakdown:
        """
        Evaluate one state and keep every per-muscle contribution.

        Uses the same switches and clamping as :meth:`evaluate`, so
        ``compute_breakdown(state).total__W == evaluate(state)``.
        """
        model, bound_muscles = self._require_bound()

        muscle_terms: dict[str, EnergeticsTerms] = {}
        muscle_heat_rates: dict[str, float] = {}
        muscle_powers: dict[str, float] = {}
        total = 0.0
        for parameter, muscle in bound_muscles:
            terms, heat_rate, muscle_power = self._evaluate_muscle(
                parameter, muscle.get_dynamic_state(state)
            )
            muscle_terms[parameter.name] = terms
            muscle_heat_rates[parameter.name] = heat_rate
            muscle_powers[parameter.name] = muscle_power
            total += muscle_power

        basal_heat_rate = self._basal_heat_rate(model, state)
        return MetabolicBreakdown(
            muscle_terms=muscle_terms,
            muscle_heat_rates__W=muscle_heat_rates,
            muscle_powers__W=muscle_powers,
            basal_heat_rate__W=basal_heat_rate,
            total__W=total + basal_heat_rate,
        )

    def evaluate_many(
        self, states: Iterable[Any], show_progress: bool = False
    ) -> METABOLIC_POWER__VECTOR:
        """
        Evaluate a sequence of independent states, e.g. a recorded trajectory.

        Nothing is carried over from one state to the next.

        Parameters
        ----------
        states : Iterable[Any]
            States understood by the bound model.
        show_progress : bool, default=False
            Show a progress bar.

        Returns
        -------
        METABOLIC_POWER__VECTOR
            Total metabolic power in W per state.
        """
        self._require_bound()
        return np.array(
            [
                self.evaluate(state)
                for state in tqdm(
                    states,
                    desc=f"Evaluating {self.name}",
                    disable=not show_progress,
                )
            ],
            dtype=float,
        )

    def to_dict(self) -> dict[str, Any]:
        """
        Configuration record of the probe.

        Raises
        ------
        ConfigurationError
            If the fiber length dependence is not a :class:`PiecewiseLinearFunction`
            and therefore cannot be written out.
        """
        curve = self.normalized_fiber_length_dependence_on_maintenance_rate
        if not isinstance(curve, PiecewiseLinearFunction):
            raise ConfigurationError(
                f"Probe '{self.name}': only PiecewiseLinearFunction curves can be serialized."
            )
        return {
            "name": self.name,
            "activation_rate_on": self.activation_rate_on,
            "maintenance_rate_on": self.maintenance_rate_on,
            "shortening_rate_on": self.shortening_rate_on,
            "basal_rate_on": self.basal_rate_on,
            "mechanical_work_rate_on": self.mechanical_work_rate_on,
            "enforce_minimum_heat_rate_per_muscle": self.enforce_minimum_heat_rate_per_muscle,
            "use_force_dependent_shortening_prop_constant": self.use_force_dependent_shortening_prop_constant,
            "basal_coefficient": self.basal_coefficient,
            "basal_exponent": self.basal_exponent,
            "normalized_fiber_length_dependence_on_maintenance_rate": curve.to_dict(),
            "metabolic_parameters": self.metabolic_parameters.to_list(),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetabolicPowerProbe":
        """
        Build a probe from a configuration record.

        Keys are the constructor argument names. The curve is given as a
        ``{"x": [...], "y": [...]}`` record and the metabolic parameters as a
        list of records (see :meth:`MetabolicMuscleParameter.from_dict`).

        Raises
        ------
        ConfigurationError
            If unknown keys are present or any nested record is invalid.
        """
        unknown = set(data) - _PROBE_KEYS
        if unknown:
            raise ConfigurationError(
                f"Unknown probe keys: {', '.join(sorted(unknown))}"
            )

        kwargs = dict(data)
        curve = kwargs.pop("normalized_fiber_length_dependence_on_maintenance_rate", None)
        if curve is not None:
            if not isinstance(curve, Mapping):
                raise ConfigurationError(
                    "normalized_fiber_length_dependence_on_maintenance_rate must be "
                    "a table with 'x' and 'y'."
                )
            kwargs["normalized_fiber_length_dependence_on_maintenance_rate"] = (
                PiecewiseLinearFunction.from_dict(curve)
            )
        kwargs["metabolic_parameters"] = MetabolicMuscleParameterSet.from_list(
            list(kwargs.pop("metabolic_parameters", []))
        )
        return cls(**kwargs)

    def __repr__(self) -> str:
        return (
            f"MetabolicPowerProbe(name={self.name!r}, "
            f"muscles={self.metabolic_parameters.names!r}, bound={self.is_bound})"
        )
