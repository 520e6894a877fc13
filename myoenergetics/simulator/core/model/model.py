"""
Runtime interface between the metabolic probe and the dynamics engine.

The probe only needs a handful of quantities from the engine. They are
described here as protocols so that any engine (or recorded data) can be
plugged in. :class:`MusculoskeletalModel`, :class:`Muscle` and
:class:`ModelState` implement these protocols in memory, which is enough to
analyse muscle states that were computed elsewhere.
"""

from typing import Any, NamedTuple, Protocol, runtime_checkable

from beartype import beartype

from myoenergetics.utils.exceptions import ConfigurationError
from myoenergetics.utils.types import beartowertype


class MuscleDynamicState(NamedTuple):
    """
    Dynamic state of one muscle at one evaluation instant.

    Attributes
    ----------
    excitation : float
        Neural excitation in [0, 1].
    activation : float
        Muscle activation in [0, 1].
    normalized_fiber_length : float
        Fiber length divided by optimal fiber length.
    fiber_velocity__m_s : float
        Contractile element velocity. Positive means lengthening (eccentric),
        negative means shortening (concentric).
    active_fiber_force__N : float
        Force of the contractile (active) element.
    isometric_active_fiber_force__N : float
        Force the contractile element would develop isometrically at the
        current activation and fiber length.
    passive_fiber_force__N : float
        Passive fiber force.
    """

    excitation: float
    activation: float
    normalized_fiber_length: float
    fiber_velocity__m_s: float
    active_fiber_force__N: float
    isometric_active_fiber_force__N: float
    passive_fiber_force__N: float


@runtime_checkable
class MuscleHandle(Protocol):
    """A bound muscle as seen by the metabolic probe."""

    max_isometric_force__N: float
    optimal_fiber_length__m: float

    def get_dynamic_state(self, state: Any) -> MuscleDynamicState: ...


@runtime_checkable
class MuscleModel(Protocol):
    """A model the metabolic probe can be bound to."""

    def get_muscle(self, name: str) -> MuscleHandle:
        """Return the muscle called ``name``; raise ``KeyError`` if it does not exist."""
        ...

    def get_total_mass(self, state: Any) -> float: ...


@beartowertype
class Muscle:
    """
    In-memory muscle whose dynamic state is read from a :class:`ModelState`.

    Parameters
    ----------
    name : str
        Name of the muscle, unique within its model.
    max_isometric_force__N : float
        Maximum isometric force in N.
    optimal_fiber_length__m : float
        Optimal fiber length in m.
    """

    def __init__(
        self, name: str, max_isometric_force__N: float, optimal_fiber_length__m: float
    ):
        self.name = name
        self.max_isometric_force__N = float(max_isometric_force__N)
        self.optimal_fiber_length__m = float(optimal_fiber_length__m)

    def get_dynamic_state(self, state: "ModelState") -> MuscleDynamicState:
        return state.muscle_states[self.name]

    def __repr__(self) -> str:
        return (
            f"Muscle(name={self.name!r}, "
            f"max_isometric_force__N={self.max_isometric_force__N}, "
            f"optimal_fiber_length__m={self.optimal_fiber_length__m})"
        )


@beartowertype
class ModelState:
    """
    Snapshot of all muscle states at one evaluation instant.

    Parameters
    ----------
    muscle_states : dict[str, MuscleDynamicState]
        Dynamic state per muscle name.
    time__s : float, default=0.0
        Simulation time of the snapshot. Informational only.
    """

    def __init__(
        self, muscle_states: dict[str, MuscleDynamicState], time__s: float = 0.0
    ):
        self.muscle_states = muscle_states
        self.time__s = float(time__s)


@beartype
class MusculoskeletalModel:
    """
    Minimal musculoskeletal model exposing what the metabolic probe needs.

    Parameters
    ----------
    muscles : list[Muscle]
        Muscles of the model. Names must be unique.
    total_mass__kg : float
        Total body mass of the model in kg.

    Raises
    ------
    ConfigurationError
        If two muscles share a name or the total mass is not positive.
    """

    def __init__(self, muscles: list[Muscle], total_mass__kg: float | int):
        if not total_mass__kg > 0:
            raise ConfigurationError(
                f"total_mass__kg must be > 0, got {total_mass__kg}."
            )
        self.total_mass__kg = float(total_mass__kg)
        self._muscles: dict[str, Muscle] = {}
        for muscle in muscles:
            self.add_muscle(muscle)

    def add_muscle(self, muscle: Muscle) -> None:
        if muscle.name in self._muscles:
            raise ConfigurationError(f"Muscle '{muscle.name}' already exists.")
        self._muscles[muscle.name] = muscle

    def remove_muscle(self, name: str) -> Muscle:
        return self._muscles.pop(name)

    def get_muscle(self, name: str) -> Muscle:
        return self._muscles[name]

    def get_total_mass(self, state: ModelState) -> float:
        return self.total_mass__kg

    @property
    def muscle_names(self) -> list[str]:
        return list(self._muscles)
