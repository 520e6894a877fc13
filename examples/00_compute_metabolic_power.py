"""
Metabolic Power
===============

Once the **muscle states** of a movement are known (from a forward simulation or from
a recorded trajectory), **MyoEnergetics** estimates the **metabolic power** the muscles
consume using the phenomenological model of Bhargava et al. (2004).

.. note::
    The **metabolic power** is the rate at which heat is liberated plus the rate at
    which mechanical work is done. Heat comes from activation, maintenance and
    shortening of each muscle, and the whole body adds a basal heat rate.

The probe includes:

* **Activation and maintenance heat rates**: Weighted by the slow and fast twitch fiber content
* **Shortening heat rate**: Force dependent or force independent proportionality constant
* **Mechanical work rate**: Counted only while the fibers lengthen, where it is negative (eccentric); zero while shortening
* **Minimum heat rate**: Optional clamp of each muscle to 1 W/kg

References
----------
.. [1] Bhargava, L.J., Pandy, M.G., Anderson, F.C., 2004.
    A phenomenological model for estimating metabolic energy consumption in muscle contraction.
    Journal of Biomechanics 37, 81–88.
"""

##############################################################################
# Import Libraries
# ----------------

from pathlib import Path

import numpy as np
import matplotlib.pyplot as plt

from myoenergetics import simulator
from myoenergetics.utils import default_fiber_length_dependence_curve
from myoenergetics.utils.plotting import (
    plot_fiber_length_dependence,
    plot_metabolic_breakdown,
    plot_metabolic_power,
)

##############################################################################
# Define Parameters
# -----------------
#
# The **metabolic probe** needs one set of metabolic parameters per muscle:
#
# - ``ratio_slow_twitch_fibers``: Fraction of slow twitch fibers
# - ``use_provided_muscle_mass``: Use a given mass instead of deriving it
#   from maximum isometric force and optimal fiber length
#
# The musculoskeletal model provides the maximum isometric force, the optimal
# fiber length and the total body mass.

# Create results directory
save_path = Path("./results")
save_path.mkdir(exist_ok=True)

body_mass__kg = 75.0

# Name, maximum isometric force (N), optimal fiber length (m), slow twitch ratio
muscle_properties = [
    ("soleus", 3549.0, 0.050, 0.80),
    ("gastrocnemius", 1558.0, 0.060, 0.54),
    ("vasti", 6000.0, 0.087, 0.50),
    ("tibialis_anterior", 905.0, 0.098, 0.70),
]

# Gait cycle parameters
gait_cycle_duration__s = 1.1
n_samples = 111

##############################################################################
# Create Model and Probe
# ----------------------
#
# The probe is configured first and then **bound** to the model. Binding checks
# that every muscle exists and caches the muscle masses.

model = simulator.MusculoskeletalModel(
    muscles=[
        simulator.Muscle(name, max_isometric_force__N=f_max, optimal_fiber_length__m=l_opt)
        for name, f_max, l_opt, _ in muscle_properties
    ],
    total_mass__kg=body_mass__kg,
)

probe = simulator.MetabolicPowerProbe(
    name="metabolic_power",
    metabolic_parameters=[
        simulator.MetabolicMuscleParameter(name, ratio_slow_twitch_fibers=ratio)
        for name, _, _, ratio in muscle_properties
    ],
    use_force_dependent_shortening_prop_constant=True,
)
probe.bind(model)

print(f"\nMetabolic probe statistics:")
for parameter in probe.metabolic_parameters:
    print(f"  - {parameter.name}: {parameter.muscle_mass__kg:.3f} kg")

##############################################################################
# Visualize Fiber Length Dependence
# ---------------------------------
#
# The maintenance heat rate is scaled by the normalized fiber length. By default
# it peaks at the optimal fiber length.

plt.figure(figsize=(6, 4))
ax = plt.gca()
plot_fiber_length_dependence(default_fiber_length_dependence_curve(), ax)
ax.set_title("Maintenance Heat Rate Fiber Length Dependence")

plt.tight_layout()
plt.show()

##############################################################################
# Generate Muscle States
# ----------------------
#
# For demonstration we create a synthetic gait cycle. Each muscle is excited
# during its own phase of the cycle, shortens while it is excited and is
# stretched afterwards.

times__s = np.linspace(0.0, gait_cycle_duration__s, n_samples)
phases = {"soleus": 0.35, "gastrocnemius": 0.45, "vasti": 0.1, "tibialis_anterior": 0.8}

states = []
for t in times__s:
    muscle_states = {}
    for name, f_max, l_opt, _ in muscle_properties:
        phase = 2 * np.pi * (t / gait_cycle_duration__s - phases[name])
        excitation = float(np.clip(np.cos(phase), 0.0, 1.0) ** 2)
        velocity = float(-0.5 * l_opt * np.sin(phase + np.pi / 2))
        muscle_states[name] = simulator.MuscleDynamicState(
            excitation=excitation,
            activation=excitation,
            normalized_fiber_length=float(1.0 + 0.2 * np.sin(phase)),
            fiber_velocity__m_s=velocity,
            active_fiber_force__N=excitation * f_max * 0.8,
            isometric_active_fiber_force__N=excitation * f_max,
            passive_fiber_force__N=float(max(0.0, 0.05 * f_max * np.sin(phase))),
        )
    states.append(simulator.ModelState(muscle_states, time__s=float(t)))

##############################################################################
# Compute Metabolic Power
# -----------------------
#
# Every state is evaluated independently.

metabolic_power__W = probe.evaluate_many(states, show_progress=True)

print(f"\nMetabolic power over the gait cycle:")
print(f"  - Mean: {metabolic_power__W.mean():.1f} W")
print(f"  - Peak: {metabolic_power__W.max():.1f} W")
print(
    f"  - Energy per cycle: {np.sum(metabolic_power__W[:-1] * np.diff(times__s)):.1f} J"
)

np.save(save_path / "metabolic_power__W.npy", metabolic_power__W)

##############################################################################
# Visualize Metabolic Power
# -------------------------

plt.figure(figsize=(12, 8))

ax1 = plt.subplot(2, 1, 1)
plot_metabolic_power(times__s, metabolic_power__W, ax1)
ax1.set_title("Metabolic Power")

ax2 = plt.subplot(2, 1, 2)
plot_metabolic_breakdown(probe.compute_breakdown(states[40]), ax2)

plt.tight_layout()
plt.show()
