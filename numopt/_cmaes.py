import math
from numbers import Integral, Real

import numpy as np
from scipy.linalg import cholesky, solve_triangular

from ._method import GlobalMethod
from ._operation import ContractViolation, FUNC_EVALUATION, MAJOR_ITERATION, METHOD_DONE, NO_OPERATION, Status
from ._types import Needs
from ._util import _check_random_state

_LOG_1E_16 = math.log(1e-16)


class CmaEsChol(GlobalMethod):
    """
    Covariance Matrix Adaptation Evolution Strategy, maintaining the
    Cholesky factor of the search distribution's covariance.

    Every generation, `population` points are sampled from a multivariate
    normal distribution and handed out to the concurrent tasks. Once all
    are evaluated, the distribution mean, covariance and step size are
    updated from the best half, and a major iteration is reported with
    the best point found (in the last generation if `forget_best`).

    Parameters
    ----------
    init_step_size : float, default=0.3
        Initial global step size.
    population : int, optional
        Samples per generation. Default is `4 + floor(3 * ln(dim))`.
    init_mean : array_like, optional
        Initial distribution mean. Default is the origin.
    init_cholesky : array_like, optional
        Lower-triangular Cholesky factor of the initial covariance.
        Default is the identity.
    stop_log_det : float, default=0
        The method reports `Status.METHOD_CONVERGE` when the log-determinant
        of the distribution covariance falls below this value.
        0 means `dim * ln(1e-16)`, NaN disables the check.
    forget_best : bool, default=False
        Report the best point of the latest generation instead of
        the best point ever seen.
    rng : int or np.random.RandomState or np.random.Generator, optional
        Random state. If an int, every run is seeded afresh.
    """
    def __init__(
            self,
            init_step_size: float = .3,
            population: int = 0,
            init_mean=None,
            init_cholesky=None,
            stop_log_det: float = 0.,
            forget_best: bool = False,
            rng=None,
    ):
        assert isinstance(init_step_size, Real) and init_step_size > 0, init_step_size
        assert isinstance(population, Integral) and (population == 0 or population >= 2), population
        assert isinstance(stop_log_det, Real), stop_log_det
        self.init_step_size = init_step_size
        self.population = population
        self.init_mean = init_mean
        self.init_cholesky = init_cholesky
        self.stop_log_det = stop_log_det
        self.forget_best = forget_best
        self.rng = rng

    def needs(self):
        return Needs()

    def status(self) -> Status:
        stop = self.stop_log_det
        if math.isnan(stop):
            return Status.NOT_TERMINATED
        if stop == 0:
            stop = self._dim * _LOG_1E_16
        if self.log_det < stop:
            return Status.METHOD_CONVERGE
        return Status.NOT_TERMINATED

    @property
    def log_det(self) -> float:
        """Log-determinant of the current sampling covariance."""
        return 2 * (self._dim * math.log(self._sigma) + np.sum(np.log(np.diag(self._chol))))

    def init_global(self, dim, tasks):
        if dim <= 0:
            raise ContractViolation(f'Dimension must be positive, got {dim}')
        n = dim
        pop = self.population or 4 + int(3 * math.log(n))
        mu = pop // 2
        weights = math.log(mu + .5) - np.log(np.arange(1, mu + 1))
        weights /= weights.sum()
        mu_eff = 1 / np.sum(weights ** 2)

        self._dim = dim
        self._pop = pop
        self._weights = weights
        self._mu_eff = mu_eff
        self._cc = (4 + mu_eff / n) / (n + 4 + 2 * mu_eff / n)
        self._cs = (mu_eff + 2) / (n + mu_eff + 5)
        self._c1 = 2 / ((n + 1.3) ** 2 + mu_eff)
        self._cmu = min(1 - self._c1, 2 * (mu_eff - 2 + 1 / mu_eff) / ((n + 2) ** 2 + mu_eff))
        self._ds = 1 + 2 * max(0, math.sqrt((mu_eff - 1) / (n + 1)) - 1) + self._cs
        self._e_chi = math.sqrt(n) * (1 - 1 / (4 * n) + 1 / (21 * n * n))

        self._rng = _check_random_state(self.rng)
        self._sigma = float(self.init_step_size)
        self._mean = np.zeros(dim) if self.init_mean is None else np.array(self.init_mean, dtype=float)
        assert self._mean.shape == (dim,), 'init_mean must have length equal to dimension'
        if self.init_cholesky is None:
            self._chol = np.eye(dim)
        else:
            self._chol = np.tril(np.array(self.init_cholesky, dtype=float))
            assert self._chol.shape == (dim, dim), 'init_cholesky must be of shape (dim, dim)'
        self._pc = np.zeros(dim)
        self._ps = np.zeros(dim)

        self._xs = np.empty((pop, dim))
        self._fs = np.full(pop, np.inf)
        self._unsampled = list(range(pop))
        self._pending = 0
        self._best_x = np.zeros(dim)
        self._best_f = np.inf

        tasks = min(tasks, pop)
        self._sample_of_task = [None] * tasks
        self._reporting = [False] * tasks
        return tasks

    def iterate_global(self, task, loc):
        idx = self._sample_of_task[task]
        if idx is not None:
            self._fs[idx] = loc.f
            self._pending -= 1
            self._sample_of_task[task] = None
        elif self._reporting[task]:
            self._reporting[task] = False
            if self.status().is_terminal:
                return METHOD_DONE

        if self._unsampled:
            idx = self._unsampled.pop()
            z = self._rng.standard_normal(self._dim)
            self._xs[idx] = self._mean + self._sigma * self._chol @ z
            loc.x[:] = self._xs[idx]
            self._sample_of_task[task] = idx
            self._pending += 1
            return FUNC_EVALUATION
        if self._pending:
            return NO_OPERATION

        best = int(np.argsort(self._fs, kind='stable')[0])
        if self.forget_best or self._fs[best] < self._best_f:
            self._best_f = self._fs[best]
            self._best_x[:] = self._xs[best]
        loc.x[:] = self._xs[best] if self.forget_best else self._best_x
        loc.f = self._fs[best] if self.forget_best else self._best_f

        self._update()
        self._unsampled = list(range(self._pop))
        self._reporting[task] = True
        return MAJOR_ITERATION

    def _update(self):
        mu = len(self._weights)
        order = np.argsort(self._fs, kind='stable')[:mu]
        xs = self._xs[order]
        mean_old = self._mean
        sigma = self._sigma

        self._mean = self._weights @ xs
        y_w = (self._mean - mean_old) / sigma
        cs, cc, mu_eff = self._cs, self._cc, self._mu_eff
        self._ps = ((1 - cs) * self._ps +
                    math.sqrt(cs * (2 - cs) * mu_eff) * solve_triangular(self._chol, y_w, lower=True))
        self._pc = (1 - cc) * self._pc + math.sqrt(cc * (2 - cc) * mu_eff) * y_w

        ys = (xs - mean_old) / sigma
        cov = self._chol @ self._chol.T
        cov = ((1 - self._c1 - self._cmu) * cov +
               self._c1 * np.outer(self._pc, self._pc) +
               self._cmu * (ys.T * self._weights) @ ys)
        self._chol = cholesky((cov + cov.T) / 2, lower=True)
        self._sigma *= math.exp(cs / self._ds * (np.linalg.norm(self._ps) / self._e_chi - 1))
        self._fs[:] = np.inf
