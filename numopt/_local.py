from enum import Enum, auto
from typing import Optional

import numpy as np

from ._global import _Driver
from ._gradient import BFGS, Newton
from ._method import GlobalMethod, Method, Statuser
from ._neldermead import NelderMead
from ._operation import ContractViolation, Control, Evaluation, Operation, Status
from ._types import Location, Problem, Result, Settings, StartingLocationError
from ._util import _inf_norm

_DEFAULT_GRADIENT_THRESHOLD = 1e-12


class _State(Enum):
    UNINITIALIZED = auto()
    AWAITING_FIRST_RESULT = auto()
    STARTING = auto()
    RUNNING = auto()
    DONE = auto()


class _LocalOptimizer(GlobalMethod):
    """
    Adapts a sequential `Method` to a single-task `GlobalMethod`.

    The starting location is evaluated (only what `settings.init_values`
    does not already provide) and checked, then reported as the first
    major iteration before handing over to the wrapped method.
    """
    def __init__(self, method: Method, x0: np.ndarray, settings: Settings):
        assert isinstance(method, Method), method
        self.method = method
        self.x0 = x0
        self.settings = settings
        self.gradient_threshold = settings.gradient_threshold or _DEFAULT_GRADIENT_THRESHOLD

    def needs(self):
        return self.method.needs()

    def init_global(self, dim, tasks):
        if dim != len(self.x0):
            raise ContractViolation(f'Dimension {dim} does not match len(x0)={len(self.x0)}')
        self._state = _State.UNINITIALIZED
        self._status = Status.NOT_TERMINATED
        self._error = None
        self._last_op = None
        return 1

    def status(self) -> Status:
        if self._error is not None:
            raise self._error
        if self._status.is_terminal:
            return self._status
        if isinstance(self.method, Statuser):
            return self.method.status()
        return Status.NOT_TERMINATED

    def iterate_global(self, task, loc):
        op = self._iterate(loc)
        if op is Control.METHOD_DONE:
            self._state = _State.DONE
        self._last_op = op
        return op

    def _iterate(self, loc: Location) -> Operation:
        match self._state:
            case _State.UNINITIALIZED:
                return self._evaluate_start(loc)
            case _State.AWAITING_FIRST_RESULT:
                return self._check_start(loc)
            case _State.STARTING:
                if self._gradient_converged(loc):
                    return Control.METHOD_DONE
                self._state = _State.RUNNING
                return self.method.init(loc)
            case _State.RUNNING:
                if self._last_op is Control.MAJOR_ITERATION and self._gradient_converged(loc):
                    return Control.METHOD_DONE
                return self.method.iterate(loc)
        raise ContractViolation(f'{type(self.method).__name__} iterated after it was done')

    def _evaluate_start(self, loc):
        needs = self.method.needs()
        loc.x[:] = self.x0
        func, grad, hess = True, needs.gradient, needs.hessian
        init = self.settings.init_values
        if init is not None:
            loc.f, func = init.f, False
            if grad and init.gradient is not None:
                loc.gradient[:] = init.gradient
                grad = False
            if hess and init.hessian is not None:
                loc.hessian[:] = init.hessian
                hess = False
        self._state = _State.AWAITING_FIRST_RESULT
        if func or grad or hess:
            return Evaluation(func=func, grad=grad, hess=hess)
        return self._check_start(loc)

    def _check_start(self, loc):
        if np.isnan(loc.f) or loc.f == np.inf:
            return self._fail(StartingLocationError(f'Objective is {loc.f} at the initial point'))
        if loc.gradient is not None and not np.all(np.isfinite(loc.gradient)):
            return self._fail(StartingLocationError('Gradient is not finite at the initial point'))
        self._state = _State.STARTING
        return Control.MAJOR_ITERATION

    def _fail(self, error):
        self._status, self._error = Status.FAILURE, error
        return Control.METHOD_DONE

    def _gradient_converged(self, loc) -> bool:
        if loc.gradient is not None and _inf_norm(loc.gradient) < self.gradient_threshold:
            self._status = Status.GRADIENT_THRESHOLD
            return True
        return False


def _default_method(problem: Problem) -> Method:
    if problem.hess is not None:
        return Newton()
    if problem.grad is not None:
        return BFGS()
    return NelderMead()


def minimize(
        problem: Problem,
        x0,
        settings: Optional[Settings] = None,
        method: Optional[Method] = None,
        *,
        disp: bool = False,
) -> Result:
    """
    Minimize `problem` using a local optimization `method`,
    starting from `x0`.

    Parameters
    ----------
    problem : Problem
        The objective and, optionally, its derivatives.

    x0 : array_like, shape (n_features,)
        Initial point.

    settings : Settings, optional
        Limits, thresholds, initial values and recorder. See `Settings`.

    method : Method, optional
        The optimization method. Default is `Newton()` if `problem.hess`
        is set, `BFGS()` if `problem.grad` is set, else `NelderMead()`.

    disp : bool, default=False
        Print progress at every major iteration and at the end.

    Returns
    -------
    result : Result
        The best location found and the reason for termination.

    Example
    -------
    >>> from scipy.optimize import rosen, rosen_der
    >>> from numopt import Problem, minimize
    >>> result = minimize(Problem(rosen, grad=rosen_der), x0=[-1.2, 1])
    >>> result.x  # doctest: +SKIP
    array([1., 1.])
    """
    x0 = np.array(x0, dtype=float)
    assert x0.ndim == 1, x0
    if method is None:
        method = _default_method(problem)
    if settings is None:
        settings = Settings()
    optimizer = _LocalOptimizer(method, x0, settings)
    return _Driver(problem, len(x0), optimizer, settings, x0=x0, disp=disp).run()
