from numbers import Integral

import numpy as np
from scipy.optimize import Bounds

from ._operation import Status


def _check_random_state(seed) -> np.random.RandomState | np.random.Generator:
    if isinstance(seed, (np.random.RandomState, np.random.Generator)):
        return seed
    if isinstance(seed, (type(None), Integral)):
        return np.random.RandomState(seed)
    raise ValueError(f"Cannot use seed={seed!r} to seed np.random.RandomState")


def _check_bounds(bounds, dim=None):
    if isinstance(bounds, Bounds):
        bounds = list(zip(bounds.lb, bounds.ub))
    assert isinstance(bounds, (tuple, list, np.ndarray)) and len(bounds), bounds
    bounds = np.asarray(bounds, dtype=float)
    assert bounds.ndim == 2 and bounds.shape[1] == 2 and np.all(bounds[:, 0] <= bounds[:, 1]), \
        "bounds= should be [(min_value, max_value), ...]"
    assert dim is None or len(bounds) == dim, \
        f"Shapes of bounds= and problem dimension mismatch ({bounds.shape} vs. {dim})"
    return bounds


def _inf_norm(v) -> float:
    return float(np.max(np.abs(v))) if len(v) else 0.


def _disp(*values):
    print(f"{__package__}:", *values)


def _format_status(status: Status, stats) -> str:
    return (f"{status.name.lower()}, nit:{stats.major_iterations}, "
            f"nfev:{stats.func_evaluations}, runtime:{stats.runtime:.3g}s")
