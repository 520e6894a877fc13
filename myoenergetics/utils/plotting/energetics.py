from typing import Any

import numpy as np
import seaborn as sns
from matplotlib.axes import Axes

from myoenergetics.simulator import MetabolicBreakdown
from myoenergetics.utils.types import FIBER_LENGTH_CURVE

TERM_LABELS = {
    "activation_heat_rate__W": "Activation",
    "maintenance_heat_rate__W": "Maintenance",
    "shortening_heat_rate__W": "Shortening",
    "mechanical_work_rate__W": "Mechanical work",
}


def plot_fiber_length_dependence(
    curve: FIBER_LENGTH_CURVE,
    ax: Axes,
    normalized_fiber_length_range: tuple[float, float] = (0.0, 2.0),
    n_samples: int = 201,
    apply_default_formatting: bool = True,
    **kwargs: Any,
) -> Axes:
    """
    Plot the normalized fiber length dependence of the maintenance heat rate.

    Parameters
    ----------
    curve : Callable[[float], float]
        The fiber length dependence to plot.
    ax : Axes
        The axes to plot on.
    normalized_fiber_length_range : tuple[float, float], optional
        Range of normalized fiber lengths to sample, by default (0.0, 2.0)
    n_samples : int, optional
        Number of samples in the range, by default 201
    apply_default_formatting : bool, optional
        Whether to apply default formatting to the plot, by default True
    **kwargs : Any
        Additional keyword arguments to pass to the plot function. Only used if apply_default_formatting is False.

    Returns
    -------
    Axes
        The axes with the plot.
    """
    x_data = np.linspace(*normalized_fiber_length_range, n_samples)
    y_data = np.array([curve(float(x)) for x in x_data])

    if apply_default_formatting:
        ax.plot(x_data, y_data, "black")
        ax.set_xlabel("Normalized fiber length")
        ax.set_ylabel("Maintenance heat rate multiplier")
        sns.despine(ax=ax, top=True, right=True, trim=True, offset=0)
    else:
        ax.plot(x_data, y_data, **kwargs)

    return ax


def plot_metabolic_breakdown(
    breakdown: MetabolicBreakdown,
    ax: Axes,
    show_basal: bool = True,
    apply_default_formatting: bool = True,
    **kwargs: Any,
) -> Axes:
    """
    Plot the per-muscle heat and work rates of one evaluation as stacked bars.

    Positive contributions are stacked upwards from zero and negative ones
    (e.g. shortening heat and work while lengthening) downwards. The clamped
    heat rate of each muscle is marked with a dot.

    Parameters
    ----------
    breakdown : MetabolicBreakdown
        Result of :meth:`~myoenergetics.simulator.MetabolicPowerProbe.compute_breakdown`.
    ax : Axes
        The axes to plot on.
    show_basal : bool, optional
        Whether to add a bar with the whole body basal heat rate, by default True
    apply_default_formatting : bool, optional
        Whether to apply default formatting to the plot, by default True
    **kwargs : Any
        Additional keyword arguments to pass to the bar function. Only used if apply_default_formatting is False.

    Returns
    -------
    Axes
        The axes with the plot.
    """
    muscle_names = list(breakdown.muscle_terms)
    positions = np.arange(len(muscle_names))

    positive_bottom = np.zeros(len(muscle_names))
    negative_bottom = np.zeros(len(muscle_names))
    for term, label in TERM_LABELS.items():
        values = np.array(
            [getattr(breakdown.muscle_terms[name], term) for name in muscle_names]
        )
        bottom = np.where(values >= 0, positive_bottom, negative_bottom)
        if apply_default_formatting:
            ax.bar(positions, values, bottom=bottom, label=label)
        else:
            ax.bar(positions, values, bottom=bottom, label=label, **kwargs)
        positive_bottom += np.clip(values, 0, None)
        negative_bottom += np.clip(values, None, 0)

    ax.plot(
        positions,
        [breakdown.muscle_heat_rates__W[name] for name in muscle_names],
        "o",
        color="black",
        label="Clamped heat rate",
    )

    labels = list(muscle_names)
    if show_basal:
        ax.bar(len(muscle_names), breakdown.basal_heat_rate__W, color="grey", label="Basal")
        labels.append("basal")
    ax.set_xticks(np.arange(len(labels)))
    ax.set_xticklabels(labels)

    if apply_default_formatting:
        ax.axhline(0, color="black", linewidth=0.5)
        ax.set_ylabel("Metabolic rate (W)")
        ax.set_title(f"Total: {breakdown.total__W:.1f} W")
        ax.legend(frameon=False)
        sns.despine(ax=ax, top=True, right=True, trim=False, offset=0)

    return ax


def plot_metabolic_power(
    times__s: np.ndarray,
    metabolic_power__W: np.ndarray,
    ax: Axes,
    apply_default_formatting: bool = True,
    **kwargs: Any,
) -> Axes:
    """
    Plot the total metabolic power over time.

    Parameters
    ----------
    times__s : np.ndarray
        Time of each evaluation in seconds.
    metabolic_power__W : np.ndarray
        Total metabolic power per evaluation, e.g. from
        :meth:`~myoenergetics.simulator.MetabolicPowerProbe.evaluate_many`.
    ax : Axes
        The axes to plot on.
    apply_default_formatting : bool, optional
        Whether to apply default formatting to the plot, by default True
    **kwargs : Any
        Additional keyword arguments to pass to the plot function. Only used if apply_default_formatting is False.

    Returns
    -------
    Axes
        The axes with the plot.

    Raises
    ------
    ValueError
        If times and powers differ in length.
    """
    if len(times__s) != len(metabolic_power__W):
        raise ValueError(
            f"Length of times__s ({len(times__s)}) must match metabolic_power__W ({len(metabolic_power__W)})"
        )

    if apply_default_formatting:
        ax.plot(times__s, metabolic_power__W, "black")
        ax.set_xlabel("Time (s)")
        ax.set_ylabel("Metabolic power (W)")
        sns.despine(ax=ax, top=True, right=True, trim=True, offset=0)
    else:
        ax.plot(times__s, metabolic_power__W, **kwargs)

    return ax
