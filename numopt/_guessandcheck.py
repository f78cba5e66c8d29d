import numpy as np
from scipy.stats.qmc import LatinHypercube

from ._method import GlobalMethod
from ._operation import FUNC_EVALUATION, MAJOR_ITERATION
from ._types import Needs
from ._util import _check_bounds, _check_random_state


class GuessAndCheck(GlobalMethod):
    """
    Random search. Points are drawn within `bounds` in Latin hypercube
    batches of `batch_size`, and a major iteration is reported whenever
    one improves on the best found so far.
    """
    def __init__(self, bounds, batch_size: int = 32, rng=None):
        assert batch_size > 0, batch_size
        self.bounds = bounds
        self.batch_size = batch_size
        self.rng = rng

    def needs(self):
        return Needs()

    def init_global(self, dim, tasks):
        self._bounds = _check_bounds(self.bounds, dim)
        self._sampler = LatinHypercube(dim, scramble=True, seed=_check_random_state(self.rng))
        self._samples = []
        self._best_f = np.inf
        self._sampled = [False] * tasks
        return tasks

    def iterate_global(self, task, loc):
        if self._sampled[task] and loc.f < self._best_f:
            self._best_f = loc.f
            self._sampled[task] = False
            return MAJOR_ITERATION
        loc.x[:] = self._next_sample()
        self._sampled[task] = True
        return FUNC_EVALUATION

    def _next_sample(self):
        if not self._samples:
            lo, hi = self._bounds.T
            X = lo + self._sampler.random(n=self.batch_size) * (hi - lo)
            self._samples = list(X[::-1])
        return self._samples.pop()
