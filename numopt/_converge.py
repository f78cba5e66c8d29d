from abc import ABC, abstractmethod
from numbers import Integral, Real

import numpy as np

from ._operation import Evaluation, Status
from ._types import Location, Settings, Stats


class Converger(ABC):
    """Decides, at every major iteration, whether the run has converged."""

    @abstractmethod
    def init(self, dim: int):
        """Reset any state at the start of a run."""

    @abstractmethod
    def converged(self, loc: Location) -> Status:
        """Return a terminal status if converged at `loc`, else `Status.NOT_TERMINATED`."""


class NeverTerminate(Converger):
    def init(self, dim):
        pass

    def converged(self, loc):
        return Status.NOT_TERMINATED


class FunctionConverge(Converger):
    """
    Report `Status.FUNCTION_CONVERGENCE` when the best function value
    has not decreased by more than `relative * max(|f|, |best|) + absolute`
    for `iterations` consecutive major iterations. With both tolerances
    zero, any strict decrease resets the count.
    `iterations=0` disables the check.
    """
    def __init__(self, absolute: float = 0., relative: float = 0., iterations: int = 0):
        assert isinstance(absolute, Real) and absolute >= 0, absolute
        assert isinstance(relative, Real) and relative >= 0, relative
        assert isinstance(iterations, Integral) and iterations >= 0, iterations
        self.absolute = absolute
        self.relative = relative
        self.iterations = iterations
        self.init(0)

    def init(self, dim):
        self._first = True
        self._best = np.nan
        self._iter = 0

    def converged(self, loc):
        if self.iterations == 0:
            return Status.NOT_TERMINATED
        f = loc.f
        if self._first:
            self._first = False
            self._best = f
            return Status.NOT_TERMINATED
        best = self._best
        if f < best and best - f > self.relative * max(abs(f), abs(best)) + self.absolute:
            self._best = f
            self._iter = 0
            return Status.NOT_TERMINATED
        self._iter += 1
        if self._iter < self.iterations:
            return Status.NOT_TERMINATED
        return Status.FUNCTION_CONVERGENCE


def default_converger() -> Converger:
    return FunctionConverge(absolute=1e-10, iterations=100)


def check_evaluation_limits(loc: Location, op: Evaluation, stats: Stats, settings: Settings) -> Status:
    if op.func and loc.f == -np.inf:
        return Status.FUNCTION_NEGATIVE_INFINITY
    if settings.func_evaluations and stats.func_evaluations >= settings.func_evaluations:
        return Status.FUNCTION_EVALUATION_LIMIT
    if settings.grad_evaluations and stats.grad_evaluations >= settings.grad_evaluations:
        return Status.GRADIENT_EVALUATION_LIMIT
    if settings.hess_evaluations and stats.hess_evaluations >= settings.hess_evaluations:
        return Status.HESSIAN_EVALUATION_LIMIT
    return _check_runtime(stats, settings)


def check_major_iteration(loc: Location, stats: Stats, settings: Settings, converger: Converger) -> Status:
    if loc.f == -np.inf:
        return Status.FUNCTION_NEGATIVE_INFINITY
    if loc.f < settings.function_threshold:
        return Status.FUNCTION_THRESHOLD
    status = converger.converged(loc)
    if status.is_terminal:
        return status
    if settings.major_iterations and stats.major_iterations >= settings.major_iterations:
        return Status.ITERATION_LIMIT
    return _check_runtime(stats, settings)


def _check_runtime(stats, settings):
    if settings.runtime and stats.runtime >= settings.runtime:
        return Status.RUNTIME_LIMIT
    return Status.NOT_TERMINATED
