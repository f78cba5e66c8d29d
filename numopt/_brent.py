import math
from numbers import Real

import numpy as np

from ._method import _GeneratorMethod
from ._operation import ContractViolation, FUNC_EVALUATION, MAJOR_ITERATION, METHOD_DONE, Status
from ._types import Needs

_GOLDEN = .5 * (3 - math.sqrt(5))
_SQRT_EPS = math.sqrt(np.finfo(float).eps)


class Brent(_GeneratorMethod):
    """
    Bounded one-dimensional minimization by Brent's method, combining
    golden-section search with successive parabolic interpolation.

    Parameters
    ----------
    bounds : tuple[float, float]
        Finite interval `(min, max)` to search.
    x_tol : float, default=1e-8
        Absolute tolerance on the location of the minimum.
    """
    def __init__(self, bounds: tuple[float, float], x_tol: float = 1e-8):
        lo, hi = bounds
        assert np.isfinite(lo) and np.isfinite(hi) and lo < hi, bounds
        assert isinstance(x_tol, Real) and x_tol > 0, x_tol
        self.bounds = (float(lo), float(hi))
        self.x_tol = x_tol
        self._status = Status.NOT_TERMINATED

    def needs(self):
        return Needs()

    def status(self) -> Status:
        return self._status

    def _run(self, loc):
        if len(loc.x) != 1:
            raise ContractViolation(f'Brent minimizes one-dimensional problems, got dimension {len(loc.x)}')
        self._status = Status.NOT_TERMINATED
        a, b = self.bounds

        def evaluate(u):
            loc.x[0] = u
            yield FUNC_EVALUATION
            return loc.f

        if a < loc.x[0] < b:
            x, fx = float(loc.x[0]), loc.f
        else:
            x = a + _GOLDEN * (b - a)
            fx = yield from evaluate(x)
        v = w = x
        fv = fw = fx
        d = e = 0.

        while True:
            loc.x[0], loc.f = x, fx
            yield MAJOR_ITERATION

            xm = .5 * (a + b)
            tol1 = _SQRT_EPS * abs(x) + self.x_tol / 3
            tol2 = 2 * tol1
            if abs(x - xm) <= tol2 - .5 * (b - a):
                self._status = Status.METHOD_CONVERGE
                yield METHOD_DONE

            golden = True
            if abs(e) > tol1:
                r = (x - w) * (fx - fv)
                q = (x - v) * (fx - fw)
                p = (x - v) * q - (x - w) * r
                q = 2 * (q - r)
                if q > 0:
                    p = -p
                q = abs(q)
                e_prev, e = e, d
                if abs(p) < abs(.5 * q * e_prev) and q * (a - x) < p < q * (b - x):
                    d = p / q
                    u = x + d
                    if u - a < tol2 or b - u < tol2:
                        d = math.copysign(tol1, xm - x)
                    golden = False
            if golden:
                e = (b - x) if x < xm else (a - x)
                d = _GOLDEN * e

            u = x + (d if abs(d) >= tol1 else math.copysign(tol1, d))
            fu = yield from evaluate(u)

            if fu <= fx:
                if u >= x:
                    a = x
                else:
                    b = x
                v, fv, w, fw, x, fx = w, fw, x, fx, u, fu
            else:
                if u < x:
                    a = u
                else:
                    b = u
                if fu <= fw or w == x:
                    v, fv, w, fw = w, fw, u, fu
                elif fu <= fv or v == x or v == w:
                    v, fv = u, fu
