"""
# numopt - **Numerical Optimization Driver** [in Python]

Numopt **finds minima of arbitrary objective functions**\N{DAGGER}
by driving a pluggable optimization _method_ against a user _problem_.
The method only decides _where_ to look next; the driver evaluates
the objective (**in parallel** on a pool of worker threads), keeps the
statistics, tracks the best point found, checks convergence and limits,
and reports progress, all on a single thread of control.

The main tools in this Python optimization toolbox are:

* **function `numopt.minimize()`**, local optimization from an initial point
  with a sequential `Method`,
* **function `numopt.global_minimize()`**, global optimization with a
  `GlobalMethod` that keeps up to `Settings.concurrent` evaluations in flight,
* **recorders** `Printer` and `History` to observe runs,
  and `numopt.plot.plot_convergence()` to visualize them.

The methods implemented by this package are:

* [Nelder-Mead] downhill simplex (optionally bounded),
* gradient descent, [BFGS] quasi-Newton and modified Newton's method,
  with backtracking [Armijo] line search,
* bounded one-dimensional [Brent's method],
* [CMA-ES] covariance matrix adaptation evolution strategy,
* Latin hypercube random search.

New methods are added by subclassing `Method` (a sequential step function)
or `GlobalMethod` (one step function per concurrent task), returning
`Operation`s for the driver to perform.

[Nelder-Mead]: https://doi.org/10.1093/comjnl/7.4.308
[BFGS]: https://en.wikipedia.org/wiki/Broyden%E2%80%93Fletcher%E2%80%93Goldfarb%E2%80%93Shanno_algorithm
[Armijo]: https://doi.org/10.2140/pjm.1966.16.1
[Brent's method]: https://en.wikipedia.org/wiki/Brent%27s_method
[CMA-ES]: https://arxiv.org/abs/1604.00772

\N{DAGGER} To find the _maximum_ instead, simply minimize `-f(x)`. 💡

Example
-------
>>> from scipy.optimize import rosen
>>> from numopt import CmaEsChol, Problem, Settings, global_minimize
>>> settings = Settings(func_evaluations=2000, concurrent=4)
>>> result = global_minimize(Problem(rosen), dim=3, settings=settings,
...                          method=CmaEsChol(rng=0))
>>> result.status  # doctest: +SKIP
"""
from ._brent import Brent
from ._cmaes import CmaEsChol
from ._converge import Converger, FunctionConverge, NeverTerminate
from ._global import global_minimize
from ._gradient import BFGS, GradientDescent, Newton
from ._guessandcheck import GuessAndCheck
from ._local import minimize
from ._method import GlobalMethod, Method, Statuser
from ._neldermead import NelderMead
from ._operation import (
    ContractViolation, Control, Evaluation, Operation, Status,
    FUNC_EVALUATION, GRAD_EVALUATION, HESS_EVALUATION,
    NO_OPERATION, INIT_ITERATION, POST_ITERATION, MAJOR_ITERATION, METHOD_DONE,
)
from ._record import History, Printer, Recorder
from ._types import (
    LinesearchError, Location, Needs, OptimizationError, Problem, Result,
    Settings, StartingLocationError, Stats,
)
try:
    from ._version import __version__
except ImportError:
    __version__ = '0.0.0-dev'

__all__ = [
    'minimize',
    'global_minimize',
    'Problem',
    'Settings',
    'Result',
    'Location',
    'Stats',
    'Needs',
    'Status',
    'Operation',
    'Evaluation',
    'Control',
    'FUNC_EVALUATION',
    'GRAD_EVALUATION',
    'HESS_EVALUATION',
    'NO_OPERATION',
    'INIT_ITERATION',
    'POST_ITERATION',
    'MAJOR_ITERATION',
    'METHOD_DONE',
    'Method',
    'GlobalMethod',
    'Statuser',
    'Converger',
    'FunctionConverge',
    'NeverTerminate',
    'Recorder',
    'Printer',
    'History',
    'NelderMead',
    'GradientDescent',
    'BFGS',
    'Newton',
    'Brent',
    'CmaEsChol',
    'GuessAndCheck',
    'ContractViolation',
    'OptimizationError',
    'StartingLocationError',
    'LinesearchError',
]
