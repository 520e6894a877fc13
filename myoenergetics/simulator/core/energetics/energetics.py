import math
from typing import NamedTuple

from myoenergetics.simulator.core.model import MuscleDynamicState
from myoenergetics.simulator.core.muscle import MetabolicMuscleParameter
from myoenergetics.utils.types import FIBER_LENGTH_CURVE, beartowertype


class EnergeticsTerms(NamedTuple):
    """Heat and work rates of one muscle in W."""

    activation_heat_rate__W: float
    maintenance_heat_rate__W: float
    shortening_heat_rate__W: float
    mechanical_work_rate__W: float

    @property
    def total_heat_rate__W(self) -> float:
        return (
            self.activation_heat_rate__W
            + self.maintenance_heat_rate__W
            + self.shortening_heat_rate__W
        )


def _twitch_excitations(excitation: float, ratio_slow_twitch_fibers: float) -> tuple[float, float]:
    """Recruitment weighting of slow and fast twitch fibers for an excitation."""
    slow = ratio_slow_twitch_fibers * math.sin(0.5 * math.pi * excitation)
    fast = (1.0 - ratio_slow_twitch_fibers) * (1.0 - math.cos(0.5 * math.pi * excitation))
    return slow, fast


@beartowertype
def compute_terms(
    parameter: MetabolicMuscleParameter,
    state: MuscleDynamicState,
    fiber_length_dependence: FIBER_LENGTH_CURVE,
    use_force_dependent_shortening_prop_constant: bool = False,
) -> EnergeticsTerms:
    r"""
    Compute the heat and work rates of one muscle after Bhargava et al. (2004) [1]_.

    With :math:`u` the excitation, :math:`r` the slow twitch ratio, :math:`m` the
    muscle mass, :math:`v_{CE}` the fiber velocity (positive when lengthening) and
    :math:`f_L` the fiber length dependence at the current normalized fiber length:

    .. math::
        \dot{A} &= m \left[ \dot{A}_{slow}\, r \sin(\tfrac{\pi}{2}u) + \dot{A}_{fast}\,(1-r)(1-\cos(\tfrac{\pi}{2}u)) \right] \\
        \dot{M} &= m f_L \left[ \dot{M}_{slow}\, r \sin(\tfrac{\pi}{2}u) + \dot{M}_{fast}\,(1-r)(1-\cos(\tfrac{\pi}{2}u)) \right] \\
        \dot{S} &= -\alpha\, v_{CE} \\
        \dot{W} &= -F_{CE}\, v_{CE} \quad (v_{CE} \geq 0), \qquad 0 \quad (v_{CE} < 0)

    The shortening proportionality constant :math:`\alpha` is
    :math:`0.16 F_{CE,iso} + 0.18 F_{CE}` for :math:`v_{CE} \geq 0` and
    :math:`0.157 F_{CE}` otherwise when it is force dependent, and
    :math:`0.25 (F_{CE} + F_{PASSIVE})` for :math:`v_{CE} \geq 0` and :math:`0`
    otherwise when it is not.

    All four terms are always computed. Switching terms off and clamping the
    heat rate is done by :class:`~myoenergetics.simulator.MetabolicPowerProbe`.

    Parameters
    ----------
    parameter : MetabolicMuscleParameter
        Metabolic parameters of the muscle. Its mass must already be resolved;
        an unresolved mass (``nan``) propagates into the result.
    state : MuscleDynamicState
        Dynamic state of the muscle.
    fiber_length_dependence : Callable[[float], float]
        Normalized fiber length dependence of the maintenance heat rate.
    use_force_dependent_shortening_prop_constant : bool, default=False
        Selects the force dependent shortening proportionality constant.

    Returns
    -------
    EnergeticsTerms
        Activation, maintenance and shortening heat rates and the mechanical work rate in W.

    References
    ----------
    .. [1] Bhargava, L.J., Pandy, M.G., Anderson, F.C., 2004.
        A phenomenological model for estimating metabolic energy consumption in muscle contraction.
        Journal of Biomechanics 37, 81–88. https://doi.org/10.1016/S0021-9290(03)00239-2
    """
    # engines may report numpy scalars of any precision
    state = MuscleDynamicState._make(float(value) for value in state)

    mass = parameter.muscle_mass__kg
    slow, fast = _twitch_excitations(state.excitation, parameter.ratio_slow_twitch_fibers)

    activation_heat_rate = mass * (
        parameter.activation_constant_slow_twitch__W_kg * slow
        + parameter.activation_constant_fast_twitch__W_kg * fast
    )

    maintenance_heat_rate = (
        mass
        * float(fiber_length_dependence(state.normalized_fiber_length))
        * (
            parameter.maintenance_constant_slow_twitch__W_kg * slow
            + parameter.maintenance_constant_fast_twitch__W_kg * fast
        )
    )

    v_ce = state.fiber_velocity__m_s
    f_ce = state.active_fiber_force__N

    if use_force_dependent_shortening_prop_constant:
        if v_ce >= 0:
            alpha = 0.16 * state.isometric_active_fiber_force__N + 0.18 * f_ce
        else:
            alpha = 0.157 * f_ce
    else:
        if v_ce >= 0:
            alpha = 0.25 * (f_ce + state.passive_fiber_force__N)
        else:
            alpha = 0.0

    shortening_heat_rate = -alpha * v_ce

    # a NaN velocity takes the work branch and propagates
    mechanical_work_rate = 0.0 if v_ce < 0 else -f_ce * v_ce

    return EnergeticsTerms(
        activation_heat_rate__W=activation_heat_rate,
        maintenance_heat_rate__W=maintenance_heat_rate,
        shortening_heat_rate__W=shortening_heat_rate,
        mechanical_work_rate__W=mechanical_work_rate,
    )


@beartowertype
class MuscleEnergeticsModel:
    """
    Energetics model with a fixed fiber length dependence curve and shortening policy.

    Stateless apart from its configuration, so one instance can be shared by
    any number of evaluations.

    Parameters
    ----------
    fiber_length_dependence : Callable[[float], float]
        Normalized fiber length dependence of the maintenance heat rate.
    use_force_dependent_shortening_prop_constant : bool, default=False
        Selects the force dependent shortening proportionality constant.
    """

    def __init__(
        self,
        fiber_length_dependence: FIBER_LENGTH_CURVE,
        use_force_dependent_shortening_prop_constant: bool = False,
    ):
        self.fiber_length_dependence = fiber_length_dependence
        self.use_force_dependent_shortening_prop_constant = (
            use_force_dependent_shortening_prop_constant
        )

    def compute_terms(
        self, parameter: MetabolicMuscleParameter, state: MuscleDynamicState
    ) -> EnergeticsTerms:
        return compute_terms(
            parameter,
            state,
            self.fiber_length_dependence,
            self.use_force_dependent_shortening_prop_constant,
        )
