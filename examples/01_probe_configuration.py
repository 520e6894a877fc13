"""
Probe Configuration
===================

The configuration of a **metabolic probe** can be stored in a TOML file and loaded
again, so the same muscle parameters can be reused across studies.

.. note::
    Only the configuration is stored. Muscle masses are resolved again when the
    loaded probe is **bound** to a model.
"""

##############################################################################
# Import Libraries
# ----------------

from pathlib import Path

import matplotlib.pyplot as plt

from myoenergetics import simulator
from myoenergetics.utils import PiecewiseLinearFunction
from myoenergetics.utils.config import dump_probe_config, load_probe
from myoenergetics.utils.plotting import (
    plot_fiber_length_dependence,
    plot_metabolic_breakdown,
)

# Create results directory
save_path = Path("./results")
save_path.mkdir(exist_ok=True)

##############################################################################
# Create and Store a Probe
# ------------------------
#
# Here the maintenance heat rate uses a narrower fiber length dependence and the
# vasti mass is given explicitly instead of being derived.

probe = simulator.MetabolicPowerProbe(
    name="walking",
    metabolic_parameters=[
        simulator.MetabolicMuscleParameter("soleus", ratio_slow_twitch_fibers=0.8),
        simulator.MetabolicMuscleParameter.with_provided_mass("vasti", 0.5, 2.1),
    ],
    basal_coefficient=1.51,
    normalized_fiber_length_dependence_on_maintenance_rate=PiecewiseLinearFunction(
        x=[0.0, 0.75, 1.0, 1.25, 10.0],
        y=[0.5, 0.5, 1.0, 0.5, 0.5],
        name="narrowCurve",
    ),
)

config_path = dump_probe_config(probe, save_path / "walking_probe.toml")
print(config_path.read_text())

##############################################################################
# Load and Bind the Probe
# -----------------------

loaded_probe = load_probe(config_path)

model = simulator.MusculoskeletalModel(
    muscles=[
        simulator.Muscle("soleus", max_isometric_force__N=3549.0, optimal_fiber_length__m=0.05),
        simulator.Muscle("vasti", max_isometric_force__N=6000.0, optimal_fiber_length__m=0.087),
    ],
    total_mass__kg=75.0,
)
loaded_probe.bind(model)

state = simulator.ModelState(
    {
        "soleus": simulator.MuscleDynamicState(
            excitation=0.6,
            activation=0.55,
            normalized_fiber_length=0.9,
            fiber_velocity__m_s=-0.05,
            active_fiber_force__N=1500.0,
            isometric_active_fiber_force__N=1900.0,
            passive_fiber_force__N=0.0,
        ),
        "vasti": simulator.MuscleDynamicState(
            excitation=0.1,
            activation=0.1,
            normalized_fiber_length=1.2,
            fiber_velocity__m_s=0.1,
            active_fiber_force__N=400.0,
            isometric_active_fiber_force__N=350.0,
            passive_fiber_force__N=60.0,
        ),
    }
)

print(f"\nMetabolic power: {loaded_probe.evaluate(state):.1f} W")

##############################################################################
# Visualize
# ---------

plt.figure(figsize=(12, 4))

ax1 = plt.subplot(1, 2, 1)
plot_fiber_length_dependence(
    loaded_probe.normalized_fiber_length_dependence_on_maintenance_rate, ax1
)
ax1.set_title("Fiber Length Dependence")

ax2 = plt.subplot(1, 2, 2)
plot_metabolic_breakdown(loaded_probe.compute_breakdown(state), ax2)

plt.tight_layout()
plt.show()
