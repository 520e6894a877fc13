from collections.abc import Callable
from typing import Annotated

import numpy as np
import numpy.typing as npt
from beartype import beartype, BeartypeConf
from beartype.vale import Is


# See https://beartype.readthedocs.io/en/latest/api_decor/#beartype.BeartypeConf.is_pep484_tower
beartowertype = beartype(conf=BeartypeConf(is_pep484_tower=True))

# Any callable mapping a normalized fiber length to a scalar multiplier
FIBER_LENGTH_CURVE = Callable[[float], float]

# Abscissae / ordinates of a piecewise linear curve: (n_points,)
CURVE_POINTS__VECTOR = Annotated[
    npt.NDArray[np.floating],
    Is[lambda x: x.ndim == 1],
]

# Metabolic power over a sequence of evaluations: (n_states,)
METABOLIC_POWER__VECTOR = Annotated[
    npt.NDArray[np.floating],
    Is[lambda x: x.ndim == 1],
]
