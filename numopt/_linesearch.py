from numbers import Real

import numpy as np

from ._operation import FUNC_EVALUATION, Evaluation
from ._types import Location, LinesearchError


def backtracking(loc: Location, direction: np.ndarray, step: float, *,
                 derivatives: Evaluation,
                 decrease: float = 1e-4,
                 contraction: float = .5,
                 min_step: float = 1e-20):
    """
    Backtracking line search satisfying the Armijo sufficient decrease
    condition, as a generator of operations to perform on `loc`.

    `loc` must hold the function value and gradient at the current point.
    On return, `loc` holds the accepted point with its function value and
    the `derivatives` evaluated there. The accepted step size is returned.
    """
    assert isinstance(step, Real) and step > 0, step
    assert 0 < decrease < 1 and 0 < contraction < 1, (decrease, contraction)
    x0 = loc.x.copy()
    f0 = loc.f
    slope = float(loc.gradient @ direction)
    if not slope < 0:
        raise LinesearchError(f'Search direction is not a descent direction (slope={slope})')

    while True:
        loc.x[:] = x0 + step * direction
        yield FUNC_EVALUATION
        if loc.f <= f0 + decrease * step * slope:
            break
        step *= contraction
        if step < min_step or np.array_equal(loc.x, x0):
            loc.x[:] = x0
            loc.f = f0
            raise LinesearchError('Line search failed to make progress')

    yield derivatives
    return step
