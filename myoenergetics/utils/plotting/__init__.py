from myoenergetics.utils.plotting.energetics import (
    plot_fiber_length_dependence,
    plot_metabolic_breakdown,
    plot_metabolic_power,
)

__all__ = [
    "plot_fiber_length_dependence",
    "plot_metabolic_breakdown",
    "plot_metabolic_power",
]
