from numbers import Real

import numpy as np
from scipy.linalg import LinAlgError, cho_factor, cho_solve

from ._linesearch import backtracking
from ._method import _GeneratorMethod
from ._operation import GRAD_EVALUATION, HESS_EVALUATION, MAJOR_ITERATION
from ._types import Needs
from ._util import _inf_norm


class _LinesearchMethod(_GeneratorMethod):
    _derivatives = GRAD_EVALUATION

    def needs(self):
        return Needs(gradient=True)

    def _run(self, loc):
        self._start()
        while True:
            direction, step = self._direction(loc)
            x_prev, grad_prev = loc.x.copy(), loc.gradient.copy()
            step = yield from backtracking(loc, direction, step, derivatives=self._derivatives)
            self._update(loc.x - x_prev, loc.gradient - grad_prev, step)
            yield MAJOR_ITERATION

    def _start(self):
        pass

    def _update(self, s, y, step):
        pass


class GradientDescent(_LinesearchMethod):
    """
    Steepest descent with backtracking line search. The initial step of each
    line search grows from the previously accepted step by `increase`.
    """
    def __init__(self, increase: float = 2.):
        assert isinstance(increase, Real) and increase >= 1, increase
        self.increase = increase

    def _start(self):
        self._step = None

    def _direction(self, loc):
        if self._step is None:
            return -loc.gradient, 1 / max(_inf_norm(loc.gradient), 1)
        return -loc.gradient, self._step * self.increase

    def _update(self, s, y, step):
        self._step = step


class BFGS(_LinesearchMethod):
    """
    Quasi-Newton method of Broyden, Fletcher, Goldfarb and Shanno
    maintaining a dense approximation of the inverse Hessian.
    """
    def _start(self):
        self._inv_hess = None

    def _direction(self, loc):
        if self._inv_hess is None:
            return -loc.gradient, 1 / max(_inf_norm(loc.gradient), 1)
        return -self._inv_hess @ loc.gradient, 1.

    def _update(self, s, y, step):
        sy = s @ y
        if not sy > 0:
            # Curvature condition violated; keep the previous approximation
            return
        if self._inv_hess is None:
            self._inv_hess = np.eye(len(s)) * (sy / (y @ y))
        rho = 1 / sy
        V = np.eye(len(s)) - rho * np.outer(s, y)
        self._inv_hess = V @ self._inv_hess @ V.T + rho * np.outer(s, s)


class Newton(_LinesearchMethod):
    """
    Modified Newton's method. If the Hessian is not positive definite,
    a multiple of the identity, growing by `increase` each time,
    is added until it is.
    """
    _derivatives = GRAD_EVALUATION | HESS_EVALUATION

    def __init__(self, increase: float = 5.):
        assert isinstance(increase, Real) and increase > 1, increase
        self.increase = increase

    def needs(self):
        return Needs(gradient=True, hessian=True)

    def _direction(self, loc):
        hess = loc.hessian
        eye = np.eye(len(hess))
        tau = 0.
        while True:
            try:
                factor = cho_factor(hess + tau * eye)
                break
            except LinAlgError:
                tau = max(tau * self.increase, 1e-3 * max(_inf_norm(np.diag(hess)), 1))
        return -cho_solve(factor, loc.gradient), 1.
