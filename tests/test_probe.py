import math

import numpy as np
import pytest
from beartype.roar import BeartypeCallHintParamViolation

from myoenergetics.simulator import (
    MetabolicMuscleParameter,
    MetabolicMuscleParameterSet,
    MetabolicPowerProbe,
    ModelState,
    Muscle,
    MuscleDynamicState,
    MusculoskeletalModel,
)
from myoenergetics.utils import ConfigurationError, UnresolvedMuscleError

ALL_FLAGS = (
    "activation_rate_on",
    "maintenance_rate_on",
    "shortening_rate_on",
    "basal_rate_on",
    "mechanical_work_rate_on",
    "enforce_minimum_heat_rate_per_muscle",
)


def test_defaults():
    probe = MetabolicPowerProbe()
    for flag in ALL_FLAGS:
        assert getattr(probe, flag) is True
    assert probe.use_force_dependent_shortening_prop_constant is False
    assert probe.basal_coefficient == 1.2
    assert probe.basal_exponent == 1.0
    assert len(probe.metabolic_parameters) == 0
    assert probe.normalized_fiber_length_dependence_on_maintenance_rate(1.0) == 1.0
    assert not probe.is_bound


def test_reporting_contract(unit_mass_probe, make_single_state):
    assert unit_mass_probe.num_outputs == 1
    assert unit_mass_probe.output_labels == ["metabolics"]
    outputs = unit_mass_probe.compute_outputs(make_single_state())
    assert outputs.shape == (1,)
    assert outputs[0] == unit_mass_probe.evaluate(make_single_state())


def test_single_fully_excited_muscle(unit_mass_probe, make_single_state):
    total = unit_mass_probe.evaluate(make_single_state())
    assert total == pytest.approx(86.5 + 92.5)


def test_single_muscle_with_basal_rate(unit_mass_probe, make_single_state):
    unit_mass_probe.basal_rate_on = True
    total = unit_mass_probe.evaluate(make_single_state())
    assert total == pytest.approx(86.5 + 92.5 + 1.2 * 70.0)


def test_empty_parameter_set_basal_only(single_muscle_model):
    probe = MetabolicPowerProbe()
    probe.bind(single_muscle_model)
    assert probe.evaluate(ModelState({})) == pytest.approx(84.0)


def test_empty_parameter_set_without_basal(single_muscle_model):
    probe = MetabolicPowerProbe(basal_rate_on=False)
    probe.bind(single_muscle_model)
    assert probe.evaluate(ModelState({})) == 0.0


def test_basal_exponent(single_muscle_model):
    probe = MetabolicPowerProbe(basal_coefficient=2.0, basal_exponent=0.5)
    probe.bind(single_muscle_model)
    assert probe.evaluate(ModelState({})) == pytest.approx(2.0 * math.sqrt(70.0))


def test_all_flags_off_gives_zero(two_muscle_model, make_muscle_state):
    probe = MetabolicPowerProbe(
        metabolic_parameters=[MetabolicMuscleParameter("soleus"), MetabolicMuscleParameter("vasti")],
        **{flag: False for flag in ALL_FLAGS},
    )
    probe.bind(two_muscle_model)
    for velocity in (-1.0, 0.0, 1.0):
        state = ModelState(
            {
                "soleus": make_muscle_state(fiber_velocity__m_s=velocity, active_fiber_force__N=500.0),
                "vasti": make_muscle_state(excitation=0.3, passive_fiber_force__N=50.0),
            }
        )
        assert probe.evaluate(state) == 0.0


def test_all_flags_off_except_clamp_gives_zero(single_muscle_model, make_single_state):
    probe = MetabolicPowerProbe(
        metabolic_parameters=[MetabolicMuscleParameter("muscle")],
        **{flag: False for flag in ALL_FLAGS if flag != "enforce_minimum_heat_rate_per_muscle"},
    )
    probe.bind(single_muscle_model)
    assert probe.evaluate(make_single_state(excitation=0.0)) == 0.0


# Lengthening at 1 m/s with 100 N: Adot = 86.5, Mdot = 92.5, Sdot = -25, Wdot = -100
@pytest.mark.parametrize(
    "flag, expected",
    [
        (None, 86.5 + 92.5 - 25.0 - 100.0),
        ("activation_rate_on", 92.5 - 25.0 - 100.0),
        ("maintenance_rate_on", 86.5 - 25.0 - 100.0),
        ("shortening_rate_on", 86.5 + 92.5 - 100.0),
        ("mechanical_work_rate_on", 86.5 + 92.5 - 25.0),
    ],
)
def test_disabling_one_term(flag, expected, unit_mass_probe, make_single_state):
    if flag is not None:
        setattr(unit_mass_probe, flag, False)
    state = make_single_state(fiber_velocity__m_s=1.0, active_fiber_force__N=100.0)
    assert unit_mass_probe.evaluate(state) == pytest.approx(expected)


class TestMinimumHeatRate:
    @pytest.fixture
    def probe(self, single_muscle_model):
        probe = MetabolicPowerProbe(
            metabolic_parameters=[MetabolicMuscleParameter.with_provided_mass("muscle", 0.5, 2.0)],
            basal_rate_on=False,
        )
        probe.bind(single_muscle_model)
        return probe

    def test_heat_rate_is_clamped_to_one_watt_per_kg(self, probe, make_single_state):
        breakdown = probe.compute_breakdown(make_single_state(excitation=0.0))
        assert breakdown.muscle_heat_rates__W["muscle"] == pytest.approx(2.0)
        assert breakdown.total__W == pytest.approx(2.0)

    def test_work_is_added_after_clamping(self, probe, make_single_state):
        state = make_single_state(
            excitation=0.0, fiber_velocity__m_s=1.0, active_fiber_force__N=10.0
        )
        # raw heat = -0.25 * 10 * 1 = -2.5, clamped to 2.0; work = -10
        assert probe.evaluate(state) == pytest.approx(2.0 - 10.0)

    def test_heat_rate_above_floor_is_unchanged(self, probe, make_single_state):
        breakdown = probe.compute_breakdown(make_single_state())
        raw = breakdown.muscle_terms["muscle"].total_heat_rate__W
        assert raw > 2.0
        assert breakdown.muscle_heat_rates__W["muscle"] == raw

    @pytest.mark.parametrize(
        "flag", ["activation_rate_on", "maintenance_rate_on", "shortening_rate_on"]
    )
    def test_no_clamping_unless_all_heat_terms_on(self, flag, probe, make_single_state):
        setattr(probe, flag, False)
        assert probe.evaluate(make_single_state(excitation=0.0)) == 0.0

    def test_no_clamping_when_disabled(self, probe, make_single_state):
        probe.enforce_minimum_heat_rate_per_muscle = False
        assert probe.evaluate(make_single_state(excitation=0.0)) == 0.0

    @pytest.mark.parametrize("excitation", np.linspace(0.0, 1.0, 6))
    @pytest.mark.parametrize("velocity", [-3.0, -0.5, 0.0, 0.5, 3.0])
    def test_clamped_heat_never_below_floor(self, excitation, velocity, probe, make_single_state):
        state = make_single_state(
            excitation=float(excitation),
            fiber_velocity__m_s=velocity,
            active_fiber_force__N=200.0,
            passive_fiber_force__N=20.0,
        )
        breakdown = probe.compute_breakdown(state)
        assert breakdown.muscle_heat_rates__W["muscle"] >= 2.0


class TestBind:
    def test_derived_masses_are_cached(self, two_muscle_model):
        probe = MetabolicPowerProbe(
            metabolic_parameters=[MetabolicMuscleParameter("soleus"), MetabolicMuscleParameter("vasti")]
        )
        probe.bind(two_muscle_model)
        soleus = probe.metabolic_parameters["soleus"]
        assert soleus.muscle_mass__kg == pytest.approx(3549.0 / 0.25e6 * 1059.7 * 0.05)
        assert probe.is_bound

    def test_bind_is_idempotent(self, two_muscle_model):
        probe = MetabolicPowerProbe(
            metabolic_parameters=[
                MetabolicMuscleParameter("soleus"),
                MetabolicMuscleParameter.with_provided_mass("vasti", 0.5, 2.5),
            ]
        )
        probe.bind(two_muscle_model)
        first = [p.muscle_mass__kg for p in probe.metabolic_parameters]
        probe.bind(two_muscle_model)
        second = [p.muscle_mass__kg for p in probe.metabolic_parameters]
        assert first == second
        assert second[1] == 2.5

    def test_unknown_muscle_fails_without_partial_binding(self, two_muscle_model):
        probe = MetabolicPowerProbe(
            metabolic_parameters=[
                MetabolicMuscleParameter("soleus"),
                MetabolicMuscleParameter("hamstrings"),
            ]
        )
        with pytest.raises(UnresolvedMuscleError) as excinfo:
            probe.bind(two_muscle_model)
        assert excinfo.value.muscle_name == "hamstrings"
        assert "hamstrings" in str(excinfo.value)
        assert isinstance(excinfo.value, KeyError)
        assert not probe.is_bound
        assert not probe.metabolic_parameters["soleus"].is_mass_resolved

    def test_failed_rebind_drops_previous_binding(self, two_muscle_model, make_muscle_state):
        probe = MetabolicPowerProbe(metabolic_parameters=[MetabolicMuscleParameter("soleus")])
        probe.bind(two_muscle_model)
        two_muscle_model.remove_muscle("soleus")
        with pytest.raises(UnresolvedMuscleError):
            probe.bind(two_muscle_model)
        with pytest.raises(ConfigurationError):
            probe.evaluate(ModelState({"soleus": make_muscle_state()}))

    def test_non_positive_derived_mass_is_rejected(self):
        model = MusculoskeletalModel(
            [Muscle("soleus", max_isometric_force__N=-10.0, optimal_fiber_length__m=0.05)],
            total_mass__kg=70.0,
        )
        probe = MetabolicPowerProbe(metabolic_parameters=[MetabolicMuscleParameter("soleus")])
        with pytest.raises(ConfigurationError):
            probe.bind(model)
        assert not probe.is_bound

    def test_parameters_are_revalidated(self, two_muscle_model):
        parameter = MetabolicMuscleParameter("soleus")
        probe = MetabolicPowerProbe(metabolic_parameters=[parameter])
        parameter.ratio_slow_twitch_fibers = 2.0
        with pytest.raises(ConfigurationError):
            probe.bind(two_muscle_model)

    def test_evaluate_before_bind(self, make_single_state):
        probe = MetabolicPowerProbe(metabolic_parameters=[MetabolicMuscleParameter("muscle")])
        with pytest.raises(ConfigurationError):
            probe.evaluate(make_single_state())
        with pytest.raises(ConfigurationError):
            probe.compute_breakdown(make_single_state())
        with pytest.raises(ConfigurationError):
            probe.evaluate_many([make_single_state()])


class TestEvaluate:
    def test_muscles_are_summed_in_order(self, two_muscle_model, make_muscle_state):
        probe = MetabolicPowerProbe(
            metabolic_parameters=MetabolicMuscleParameterSet(
                [
                    MetabolicMuscleParameter.with_provided_mass("vasti", 0.5, 1.0),
                    MetabolicMuscleParameter.with_provided_mass("soleus", 0.5, 2.0),
                ]
            ),
            basal_rate_on=False,
            enforce_minimum_heat_rate_per_muscle=False,
        )
        probe.bind(two_muscle_model)
        state = ModelState({"soleus": make_muscle_state(), "vasti": make_muscle_state()})

        breakdown = probe.compute_breakdown(state)
        assert list(breakdown.muscle_powers__W) == ["vasti", "soleus"]
        assert breakdown.muscle_powers__W["vasti"] == pytest.approx(179.0)
        assert breakdown.muscle_powers__W["soleus"] == pytest.approx(358.0)
        assert probe.evaluate(state) == pytest.approx(537.0)
        assert breakdown.total__W == probe.evaluate(state)

    def test_breakdown_matches_evaluate(self, two_muscle_model, make_muscle_state):
        probe = MetabolicPowerProbe(
            metabolic_parameters=[MetabolicMuscleParameter("soleus"), MetabolicMuscleParameter("vasti")],
            use_force_dependent_shortening_prop_constant=True,
        )
        probe.bind(two_muscle_model)
        state = ModelState(
            {
                "soleus": make_muscle_state(
                    excitation=0.4,
                    normalized_fiber_length=0.8,
                    fiber_velocity__m_s=-0.2,
                    active_fiber_force__N=800.0,
                    isometric_active_fiber_force__N=1000.0,
                ),
                "vasti": make_muscle_state(
                    excitation=0.1,
                    normalized_fiber_length=1.3,
                    fiber_velocity__m_s=0.3,
                    active_fiber_force__N=300.0,
                    isometric_active_fiber_force__N=250.0,
                    passive_fiber_force__N=40.0,
                ),
            }
        )
        breakdown = probe.compute_breakdown(state)
        assert breakdown.basal_heat_rate__W == pytest.approx(1.2 * 75.0)
        assert breakdown.total__W == pytest.approx(
            sum(breakdown.muscle_powers__W.values()) + breakdown.basal_heat_rate__W
        )
        assert breakdown.total__W == probe.evaluate(state)

    def test_repeated_evaluation_keeps_no_history(self, unit_mass_probe, make_single_state):
        first = make_single_state(excitation=0.2)
        second = make_single_state(excitation=0.9, fiber_velocity__m_s=-0.5, active_fiber_force__N=80.0)
        a = unit_mass_probe.evaluate(first)
        unit_mass_probe.evaluate(second)
        assert unit_mass_probe.evaluate(first) == a

    def test_non_finite_input_propagates(self, unit_mass_probe, make_single_state):
        unit_mass_probe.enforce_minimum_heat_rate_per_muscle = True
        assert math.isnan(unit_mass_probe.evaluate(make_single_state(fiber_velocity__m_s=math.nan)))
        assert math.isinf(
            unit_mass_probe.evaluate(
                make_single_state(fiber_velocity__m_s=1.0, active_fiber_force__N=math.inf)
            )
        )

    def test_evaluate_many(self, unit_mass_probe, make_single_state):
        states = [make_single_state(excitation=u) for u in (0.0, 0.5, 1.0)]
        powers = unit_mass_probe.evaluate_many(states)
        assert powers.shape == (3,)
        np.testing.assert_allclose(powers, [unit_mass_probe.evaluate(s) for s in states])
        assert unit_mass_probe.evaluate_many([]).shape == (0,)

    def test_custom_curve(self, single_muscle_model, make_single_state):
        probe = MetabolicPowerProbe(
            metabolic_parameters=[MetabolicMuscleParameter.with_provided_mass("muscle", 0.5, 1.0)],
            basal_rate_on=False,
            normalized_fiber_length_dependence_on_maintenance_rate=lambda length: 0.0,
        )
        probe.bind(single_muscle_model)
        assert probe.evaluate(make_single_state()) == pytest.approx(86.5)


def test_works_with_any_engine(make_muscle_state):
    """The probe only relies on get_muscle / get_total_mass and the muscle handle attributes."""

    class EngineMuscle:
        max_isometric_force__N = 1000.0
        optimal_fiber_length__m = 0.1

        def get_dynamic_state(self, state):
            return make_muscle_state(excitation=state["u"])

    class Engine:
        def get_muscle(self, name):
            if name != "biceps":
                raise KeyError(name)
            return EngineMuscle()

        def get_total_mass(self, state):
            return state["mass"]

    probe = MetabolicPowerProbe(
        metabolic_parameters=[MetabolicMuscleParameter.with_provided_mass("biceps", 0.5, 1.0)],
        enforce_minimum_heat_rate_per_muscle=False,
    )
    probe.bind(Engine())
    assert probe.evaluate({"u": 1.0, "mass": 10.0}) == pytest.approx(179.0 + 12.0)

    probe.metabolic_parameters.add(MetabolicMuscleParameter("triceps"))
    with pytest.raises(UnresolvedMuscleError):
        probe.bind(Engine())


def test_non_finite_basal_parameters_are_rejected():
    with pytest.raises(ConfigurationError):
        MetabolicPowerProbe(basal_coefficient=math.nan)
    with pytest.raises(ConfigurationError):
        MetabolicPowerProbe(basal_exponent=math.inf)


def test_missing_muscle_state_raises_key_error(single_muscle_model):
    probe = MetabolicPowerProbe(metabolic_parameters=[MetabolicMuscleParameter("muscle")])
    probe.bind(single_muscle_model)
    with pytest.raises(KeyError):
        probe.evaluate(ModelState({"other": MuscleDynamicState(1, 1, 1, 0, 0, 0, 0)}))


def test_curve_must_be_callable():
    with pytest.raises(BeartypeCallHintParamViolation):
        MetabolicPowerProbe(normalized_fiber_length_dependence_on_maintenance_rate=[0.5, 1.0])


def test_single_precision_engine_values(make_muscle_state):
    """Engines reporting float32 states and body mass evaluate like double precision ones."""

    class Float32Muscle:
        max_isometric_force__N = np.float32(1000.0)
        optimal_fiber_length__m = np.float32(0.1)

        def get_dynamic_state(self, state):
            return MuscleDynamicState(*(np.float32(value) for value in state["muscle"]))

    class Float32Engine:
        def get_muscle(self, name):
            return Float32Muscle()

        def get_total_mass(self, state):
            return np.float32(70.0)

    probe = MetabolicPowerProbe(
        metabolic_parameters=[MetabolicMuscleParameter.with_provided_mass("muscle", 0.5, 1.0)],
    )
    probe.bind(Float32Engine())
    state = {
        "muscle": make_muscle_state(
            normalized_fiber_length=1.0, fiber_velocity__m_s=0.5, active_fiber_force__N=100.0
        )
    }

    total = probe.evaluate(state)
    assert isinstance(total, float)
    # Sdot = -0.25 * 100 * 0.5, Wdot = -100 * 0.5, basal = 1.2 * 70
    assert total == pytest.approx(86.5 + 92.5 - 12.5 - 50.0 + 84.0)

    breakdown = probe.compute_breakdown(state)
    assert breakdown.basal_heat_rate__W == pytest.approx(84.0)
    assert breakdown.total__W == total
