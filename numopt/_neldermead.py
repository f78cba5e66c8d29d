from numbers import Real

import numpy as np

from ._method import _GeneratorMethod
from ._operation import FUNC_EVALUATION, MAJOR_ITERATION, METHOD_DONE, Status
from ._types import Needs
from ._util import _check_bounds


class NelderMead(_GeneratorMethod):
    """
    Derivative-free downhill simplex method of Nelder and Mead.

    Parameters
    ----------
    initial_step : float, default=1
        Edge length of the initial simplex, built by stepping from `x0`
        along each coordinate.
    reflection, expansion, contraction, shrink : float
        Simplex transformation coefficients.
    bounds : list of tuple, optional
        Bounds `[(min, max), ...]` into which all vertices are clipped.
    x_tol, f_tol : float
        The method reports `Status.METHOD_CONVERGE` once all vertices are
        within `x_tol` of each other in every coordinate, and
        their function values within `f_tol`.
    """
    def __init__(
            self,
            initial_step: float = 1.,
            reflection: float = 1.,
            expansion: float = 2.,
            contraction: float = .5,
            shrink: float = .5,
            bounds=None,
            x_tol: float = 1e-10,
            f_tol: float = 1e-14,
    ):
        assert isinstance(initial_step, Real) and initial_step > 0, initial_step
        assert 0 < reflection < expansion, (reflection, expansion)
        assert 0 < contraction < 1 and 0 < shrink < 1, (contraction, shrink)
        assert x_tol >= 0 and f_tol >= 0, (x_tol, f_tol)
        self.initial_step = initial_step
        self.reflection = reflection
        self.expansion = expansion
        self.contraction = contraction
        self.shrink = shrink
        self.bounds = bounds
        self.x_tol = x_tol
        self.f_tol = f_tol
        self._status = Status.NOT_TERMINATED

    def needs(self):
        return Needs()

    def status(self) -> Status:
        return self._status

    def _clip(self, x):
        if self._bounds is None:
            return x
        return np.clip(x, self._bounds[:, 0], self._bounds[:, 1])

    def _evaluate(self, loc, x):
        loc.x[:] = x
        yield FUNC_EVALUATION
        return loc.f

    def _run(self, loc):
        self._status = Status.NOT_TERMINATED
        dim = len(loc.x)
        self._bounds = None if self.bounds is None else _check_bounds(self.bounds, dim)

        simplex = np.empty((dim + 1, dim))
        fvals = np.empty(dim + 1)
        simplex[0] = loc.x
        fvals[0] = loc.f
        if self._bounds is not None and not np.array_equal(self._clip(loc.x), loc.x):
            simplex[0] = self._clip(loc.x)
            fvals[0] = yield from self._evaluate(loc, simplex[0])
        for i in range(dim):
            vertex = simplex[0].copy()
            vertex[i] += self.initial_step
            vertex = self._clip(vertex)
            if np.array_equal(vertex, simplex[0]):
                vertex[i] -= self.initial_step
                vertex = self._clip(vertex)
            simplex[i + 1] = vertex
            fvals[i + 1] = yield from self._evaluate(loc, vertex)

        while True:
            order = np.argsort(fvals)
            simplex, fvals = simplex[order], fvals[order]

            loc.x[:] = simplex[0]
            loc.f = fvals[0]
            yield MAJOR_ITERATION

            if (np.max(np.ptp(simplex, axis=0)) <= self.x_tol and
                    fvals[-1] - fvals[0] <= self.f_tol):
                self._status = Status.METHOD_CONVERGE
                yield METHOD_DONE

            centroid = simplex[:-1].mean(axis=0)
            worst = simplex[-1]
            xr = self._clip(centroid + self.reflection * (centroid - worst))
            fr = yield from self._evaluate(loc, xr)
            if fvals[0] <= fr < fvals[-2]:
                simplex[-1], fvals[-1] = xr, fr
                continue
            if fr < fvals[0]:
                xe = self._clip(centroid + self.expansion * (xr - centroid))
                fe = yield from self._evaluate(loc, xe)
                simplex[-1], fvals[-1] = (xe, fe) if fe < fr else (xr, fr)
                continue

            if fr < fvals[-1]:
                xc = self._clip(centroid + self.contraction * (xr - centroid))
                fc = yield from self._evaluate(loc, xc)
                accept = fc <= fr
            else:
                xc = self._clip(centroid + self.contraction * (worst - centroid))
                fc = yield from self._evaluate(loc, xc)
                accept = fc < fvals[-1]
            if accept:
                simplex[-1], fvals[-1] = xc, fc
                continue

            for i in range(1, dim + 1):
                simplex[i] = self._clip(simplex[0] + self.shrink * (simplex[i] - simplex[0]))
                fvals[i] = yield from self._evaluate(loc, simplex[i])
