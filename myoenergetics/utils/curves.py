from collections.abc import Mapping
from typing import Any

import numpy as np

from myoenergetics.utils.exceptions import ConfigurationError
from myoenergetics.utils.types import CURVE_POINTS__VECTOR, beartowertype

DEFAULT_FIBER_LENGTH_DEPENDENCE_X: tuple[float, ...] = (0.0, 0.5, 1.0, 1.5, 10.0)
DEFAULT_FIBER_LENGTH_DEPENDENCE_Y: tuple[float, ...] = (0.5, 0.5, 1.0, 0.5, 0.5)


@beartowertype
class PiecewiseLinearFunction:
    """
    Piecewise linear curve through a set of control points.

    Values between control points are linearly interpolated. Outside the
    control points the curve is extrapolated with the slope of the first
    (respectively last) segment, so a curve whose end segments are flat stays
    flat.

    Parameters
    ----------
    x : list[float] | tuple[float, ...] | np.ndarray
        Strictly increasing abscissae. At least two points are required.
    y : list[float] | tuple[float, ...] | np.ndarray
        Ordinates, one per abscissa.
    name : str, optional
        Label used for plotting and configuration round-trips.

    Raises
    ------
    ConfigurationError
        If fewer than two points are given, if ``x`` and ``y`` differ in length,
        if ``x`` is not strictly increasing or if any point is not finite.
    """

    def __init__(
        self,
        x: list[float] | tuple[float, ...] | np.ndarray,
        y: list[float] | tuple[float, ...] | np.ndarray,
        name: str = "curve",
    ):
        self.name = name
        try:
            self._x: CURVE_POINTS__VECTOR = np.asarray(x, dtype=float)
            self._y: CURVE_POINTS__VECTOR = np.asarray(y, dtype=float)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Curve '{name}' has non-numeric points.") from e

        if self._x.ndim != 1 or self._y.ndim != 1:
            raise ConfigurationError(f"Curve '{name}' points must be one-dimensional.")
        if self._x.shape != self._y.shape:
            raise ConfigurationError(
                f"Curve '{name}' has {self._x.size} x values but {self._y.size} y values."
            )
        if self._x.size < 2:
            raise ConfigurationError(f"Curve '{name}' needs at least two points.")
        if not (np.all(np.isfinite(self._x)) and np.all(np.isfinite(self._y))):
            raise ConfigurationError(f"Curve '{name}' points must be finite.")
        if np.any(np.diff(self._x) <= 0):
            raise ConfigurationError(
                f"Curve '{name}' x values must be strictly increasing."
            )

        self._left_slope = (self._y[1] - self._y[0]) / (self._x[1] - self._x[0])
        self._right_slope = (self._y[-1] - self._y[-2]) / (self._x[-1] - self._x[-2])

    @property
    def x(self) -> np.ndarray:
        return self._x.copy()

    @property
    def y(self) -> np.ndarray:
        return self._y.copy()

    def __call__(self, value: float | np.floating) -> float:
        if value < self._x[0]:
            return float(self._y[0] + self._left_slope * (value - self._x[0]))
        if value > self._x[-1]:
            return float(self._y[-1] + self._right_slope * (value - self._x[-1]))
        # NaN falls through both comparisons and comes back as NaN
        return float(np.interp(value, self._x, self._y))

    def __repr__(self) -> str:
        return f"PiecewiseLinearFunction(name={self.name!r}, n_points={self._x.size})"

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "x": self._x.tolist(), "y": self._y.tolist()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PiecewiseLinearFunction":
        """
        Build a curve from a ``{"x": [...], "y": [...]}`` record.

        Raises
        ------
        ConfigurationError
            If ``x`` or ``y`` is missing, if unknown keys are present or if the
            points are malformed.
        """
        unknown = set(data) - {"name", "x", "y"}
        if unknown:
            raise ConfigurationError(
                f"Unknown curve keys: {', '.join(sorted(unknown))}"
            )
        if "x" not in data or "y" not in data:
            raise ConfigurationError("A curve record needs both 'x' and 'y'.")
        return cls(
            x=list(data["x"]), y=list(data["y"]), name=str(data.get("name", "curve"))
        )


def default_fiber_length_dependence_curve() -> PiecewiseLinearFunction:
    """
    Normalized fiber length dependence of the maintenance heat rate.

    The curve peaks at 1.0 at the optimal fiber length and is flat at 0.5
    below 0.5 and above 1.5 normalized fiber lengths.

    Returns
    -------
    PiecewiseLinearFunction
        A new curve instance. Instances are immutable and can be shared.
    """
    return PiecewiseLinearFunction(
        x=list(DEFAULT_FIBER_LENGTH_DEPENDENCE_X),
        y=list(DEFAULT_FIBER_LENGTH_DEPENDENCE_Y),
        name="defaultCurve",
    )
