import matplotlib

matplotlib.use("Agg")

import pytest

from myoenergetics.simulator import (
    MetabolicMuscleParameter,
    MetabolicPowerProbe,
    ModelState,
    Muscle,
    MuscleDynamicState,
    MusculoskeletalModel,
)


def _make_muscle_state(
    excitation: float = 1.0,
    activation: float = 1.0,
    normalized_fiber_length: float = 1.0,
    fiber_velocity__m_s: float = 0.0,
    active_fiber_force__N: float = 0.0,
    isometric_active_fiber_force__N: float = 0.0,
    passive_fiber_force__N: float = 0.0,
) -> MuscleDynamicState:
    return MuscleDynamicState(
        excitation=excitation,
        activation=activation,
        normalized_fiber_length=normalized_fiber_length,
        fiber_velocity__m_s=fiber_velocity__m_s,
        active_fiber_force__N=active_fiber_force__N,
        isometric_active_fiber_force__N=isometric_active_fiber_force__N,
        passive_fiber_force__N=passive_fiber_force__N,
    )


@pytest.fixture
def make_muscle_state():
    """Factory for muscle states; defaults to a fully excited isometric muscle at optimal length."""
    return _make_muscle_state


@pytest.fixture
def make_single_state():
    """Factory for a model state holding one muscle called 'muscle'."""

    def _make(**kwargs) -> ModelState:
        return ModelState({"muscle": _make_muscle_state(**kwargs)})

    return _make


@pytest.fixture
def make_bound_parameter():
    """Factory for parameters whose mass is already cached, as after binding."""

    def _make(mass: float = 1.0, name: str = "muscle", **kwargs) -> MetabolicMuscleParameter:
        parameter = MetabolicMuscleParameter(name=name, **kwargs)
        parameter.muscle_mass__kg = mass
        return parameter

    return _make


@pytest.fixture
def two_muscle_model() -> MusculoskeletalModel:
    return MusculoskeletalModel(
        muscles=[
            Muscle("soleus", max_isometric_force__N=3549.0, optimal_fiber_length__m=0.05),
            Muscle("vasti", max_isometric_force__N=6000.0, optimal_fiber_length__m=0.087),
        ],
        total_mass__kg=75.0,
    )


@pytest.fixture
def single_muscle_model() -> MusculoskeletalModel:
    return MusculoskeletalModel(
        muscles=[Muscle("muscle", max_isometric_force__N=1000.0, optimal_fiber_length__m=0.1)],
        total_mass__kg=70.0,
    )


@pytest.fixture
def unit_mass_probe(single_muscle_model) -> MetabolicPowerProbe:
    """Single 1 kg muscle with every term on and neither basal rate nor clamping."""
    probe = MetabolicPowerProbe(
        name="metabolics",
        metabolic_parameters=[
            MetabolicMuscleParameter.with_provided_mass("muscle", 0.5, 1.0)
        ],
        basal_rate_on=False,
        enforce_minimum_heat_rate_per_muscle=False,
    )
    probe.bind(single_muscle_model)
    return probe
