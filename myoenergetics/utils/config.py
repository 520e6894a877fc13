"""
Load and store metabolic probe configurations as TOML.

A configuration file keeps the probe under a ``[probe]`` table::

    [probe]
    name = "metabolic_power"
    basal_rate_on = true
    basal_coefficient = 1.2

    [probe.normalized_fiber_length_dependence_on_maintenance_rate]
    x = [0.0, 0.5, 1.0, 1.5, 10.0]
    y = [0.5, 0.5, 1.0, 0.5, 0.5]

    [[probe.metabolic_parameters]]
    name = "soleus"
    ratio_slow_twitch_fibers = 0.8

Keys are the argument names of :class:`~myoenergetics.simulator.MetabolicPowerProbe`
and :class:`~myoenergetics.simulator.MetabolicMuscleParameter`.
"""

from pathlib import Path
from typing import Any

import toml
from beartype import beartype

from myoenergetics.simulator.core.probe import MetabolicPowerProbe
from myoenergetics.utils.exceptions import ConfigurationError

PROBE_TABLE = "probe"


@beartype
def load_probe_config(path: Path | str) -> dict[str, Any]:
    """
    Read the probe table of a TOML configuration file.

    Parameters
    ----------
    path : Path | str
        Path to the TOML file.

    Returns
    -------
    dict[str, Any]
        The ``[probe]`` table.

    Raises
    ------
    ConfigurationError
        If the file is not valid TOML or has no ``[probe]`` table.
    FileNotFoundError
        If the file does not exist.
    """
    path = Path(path)
    try:
        data = toml.load(path)
    except toml.TomlDecodeError as e:
        raise ConfigurationError(f"{path} is not valid TOML: {e}") from e

    if PROBE_TABLE not in data:
        raise ConfigurationError(f"{path} has no [{PROBE_TABLE}] table.")
    return data[PROBE_TABLE]


@beartype
def load_probe(path: Path | str) -> MetabolicPowerProbe:
    """Build an unbound :class:`MetabolicPowerProbe` from a TOML configuration file."""
    return MetabolicPowerProbe.from_dict(load_probe_config(path))


@beartype
def dump_probe_config(probe: MetabolicPowerProbe, path: Path | str) -> Path:
    """
    Write the configuration of a probe to a TOML file.

    Cached muscle masses are not written; they are resolved again when the
    loaded probe is bound.

    Returns
    -------
    Path
        The path written to.
    """
    data = {PROBE_TABLE: probe.to_dict()}
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        toml.dump(data, f)
    return path
