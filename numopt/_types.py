from dataclasses import dataclass, field, replace
from numbers import Integral, Real
from typing import Callable, NamedTuple, Optional

import numpy as np
from scipy.optimize import OptimizeResult as _OptimizeResult

from ._operation import ContractViolation, Evaluation, Operation, Status


class OptimizationError(Exception):
    pass


class StartingLocationError(OptimizationError):
    """The objective or its gradient is not finite at the initial point."""


class LinesearchError(OptimizationError):
    """The line search could not make progress along the search direction."""


class Needs(NamedTuple):
    """Derivative information a method requires of the `Problem`."""
    gradient: bool = False
    hessian: bool = False


@dataclass(eq=False)
class Location:
    """
    A point `x` together with the objective value, and optionally
    the gradient and Hessian, at that point.
    Arrays are updated in place for the lifetime of a run.
    """
    x: np.ndarray
    f: float = np.inf
    gradient: Optional[np.ndarray] = None
    hessian: Optional[np.ndarray] = None

    @classmethod
    def new(cls, dim: int, needs: Needs = Needs()) -> 'Location':
        assert isinstance(dim, Integral) and dim > 0, dim
        return cls(x=np.zeros(dim),
                   gradient=np.zeros(dim) if needs.gradient else None,
                   hessian=np.zeros((dim, dim)) if needs.hessian else None)

    def copy_from(self, other: 'Location'):
        self.x[:] = other.x
        self.f = other.f
        self.gradient = _copy_into(self.gradient, other.gradient)
        self.hessian = _copy_into(self.hessian, other.hessian)

    def copy(self) -> 'Location':
        return Location(x=self.x.copy(), f=self.f,
                        gradient=None if self.gradient is None else self.gradient.copy(),
                        hessian=None if self.hessian is None else self.hessian.copy())


def _copy_into(dst, src):
    if src is None:
        return None
    if dst is None or dst.shape != src.shape:
        return src.copy()
    dst[...] = src
    return dst


@dataclass(frozen=True)
class Problem:
    """
    The objective to minimize.

    Parameters
    ----------
    func : Callable[[np.ndarray], float]
        Objective function.
    grad : Callable[[np.ndarray], np.ndarray], optional
        Gradient of `func`, returning an array of `shape=(dim,)`.
    hess : Callable[[np.ndarray], np.ndarray], optional
        Hessian of `func`, returning a symmetric array of `shape=(dim, dim)`.
    status : Callable[[], Status], optional
        Called before every evaluation. Returning a terminal `Status` stops
        the run with that status; raising an exception stops it with
        `Status.FAILURE`.

    The callables may be called concurrently from several worker threads
    and must not mutate their argument.
    """
    func: Optional[Callable[[np.ndarray], float]]
    grad: Optional[Callable[[np.ndarray], np.ndarray]] = None
    hess: Optional[Callable[[np.ndarray], np.ndarray]] = None
    status: Optional[Callable[[], Status]] = None

    def satisfies(self, needs: Needs):
        if needs.gradient and self.grad is None:
            raise ContractViolation('Method needs a gradient, but Problem.grad is not set')
        if needs.hessian and self.hess is None:
            raise ContractViolation('Method needs a Hessian, but Problem.hess is not set')


@dataclass
class Stats:
    major_iterations: int = 0
    func_evaluations: int = 0
    grad_evaluations: int = 0
    hess_evaluations: int = 0
    runtime: float = 0.  #: Seconds since the start of the run.

    def update(self, op: Evaluation):
        self.func_evaluations += op.func
        self.grad_evaluations += op.grad
        self.hess_evaluations += op.hess

    def copy(self) -> 'Stats':
        return replace(self)


@dataclass(frozen=True)
class Settings:
    """
    Run configuration. Count and runtime limits of 0 mean unlimited.

    Parameters
    ----------
    init_values : Location, optional
        Known function value (and optionally derivatives) at `x0`,
        saving their evaluation in local optimization. Only `f` is required.
    gradient_threshold : float, default=0
        Local optimization stops with `Status.GRADIENT_THRESHOLD` when the
        infinity norm of the gradient falls below this value. 0 means `1e-12`.
    function_threshold : float, default=-inf
        Stop with `Status.FUNCTION_THRESHOLD` when a major iteration
        reports a value below this.
    converger : Converger, optional
        Decides function convergence at major iterations. Default is
        `FunctionConverge(absolute=1e-10, iterations=100)`.
    major_iterations, func_evaluations, grad_evaluations, hess_evaluations : int
        Limits on the respective counts in `Stats`.
    runtime : float
        Limit on wall-clock runtime in seconds.
    recorder : Recorder, optional
        Receives every location the driver processes.
    concurrent : int, default=0
        Number of evaluations allowed to run simultaneously. 0 means 1.
    """
    init_values: Optional[Location] = None
    gradient_threshold: float = 0.
    function_threshold: float = -np.inf
    converger: Optional[object] = None
    major_iterations: int = 0
    runtime: float = 0.
    func_evaluations: int = 0
    grad_evaluations: int = 0
    hess_evaluations: int = 0
    recorder: Optional[object] = None
    concurrent: int = 0

    def __post_init__(self):
        assert self.init_values is None or isinstance(self.init_values, Location), self.init_values
        assert isinstance(self.gradient_threshold, Real) and self.gradient_threshold >= 0, \
            self.gradient_threshold
        assert isinstance(self.function_threshold, Real), self.function_threshold
        assert isinstance(self.runtime, Real) and self.runtime >= 0, self.runtime
        for name in ('major_iterations', 'func_evaluations',
                     'grad_evaluations', 'hess_evaluations', 'concurrent'):
            value = getattr(self, name)
            assert isinstance(value, Integral) and value >= 0, f'{name}={value!r}'


@dataclass(eq=False)
class Task:
    """The unit passed between the method, the workers and the stats combiner."""
    index: int
    op: Operation
    location: Location
    status: Status = Status.NOT_TERMINATED
    error: Optional[BaseException] = field(default=None, repr=False)


class Result(_OptimizeResult):
    """
    Optimization result. Most fields are inherited from
    `scipy.optimize.OptimizeResult`, with additional attributes
    `location`, `stats`, `runtime`, `error`.
    """
    success: bool  #: Whether the run ended with a convergence status.
    status: Status  #: Reason the run terminated.
    message: str  #: Human readable `status`.
    x: np.ndarray  #: Best point found, `shape=(dim,)`.
    fun: float  #: Value of objective function at `x`.
    jac: Optional[np.ndarray]  #: Gradient at `x`, if the method needed it.
    hess: Optional[np.ndarray]  #: Hessian at `x`, if the method needed it.
    nit: int  #: Number of major iterations.
    nfev: int  #: Number of objective function evaluations.
    njev: int  #: Number of gradient evaluations.
    nhev: int  #: Number of Hessian evaluations.
    runtime: float  #: Wall-clock seconds.
    location: Location  #: Copy of the best location.
    stats: Stats  #: Final statistics.
    error: Optional[BaseException]  #: Error that caused `Status.FAILURE`, if any.
