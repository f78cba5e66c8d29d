import sys
import time
from abc import ABC, abstractmethod
from numbers import Integral, Real

import numpy as np

from ._operation import Control, Operation
from ._types import Location, Stats
from ._util import _inf_norm


class Recorder(ABC):
    """
    Observer of an optimization run. `record()` is called from a single
    thread with `INIT_ITERATION` before the run, with every processed
    evaluation and major iteration, and with `POST_ITERATION` at the end.
    An exception raised from either method stops the run with `Status.FAILURE`.
    """
    @abstractmethod
    def init(self):
        pass

    @abstractmethod
    def record(self, loc: Location, op: Operation, stats: Stats):
        pass


class Printer(Recorder):
    """
    Print a table of progress to `file` at major iterations, at most every
    `value_interval` seconds, repeating the header every `heading_interval` rows.
    """
    def __init__(self, file=sys.stdout, heading_interval: int = 30, value_interval: float = .5):
        assert isinstance(heading_interval, Integral) and heading_interval > 0, heading_interval
        assert isinstance(value_interval, Real) and value_interval >= 0, value_interval
        self.file = file
        self.heading_interval = heading_interval
        self.value_interval = value_interval
        self.init()

    def init(self):
        self._n_rows = 0
        self._last_print = -np.inf

    def record(self, loc, op, stats):
        if op is Control.MAJOR_ITERATION:
            if time.monotonic() - self._last_print < self.value_interval:
                return
        elif op not in (Control.INIT_ITERATION, Control.POST_ITERATION):
            return
        self._last_print = time.monotonic()

        columns = [('Iter', f'{stats.major_iterations:d}'),
                   ('Runtime', f'{stats.runtime:.3g}'),
                   ('FuncEvals', f'{stats.func_evaluations:d}'),
                   ('Func', f'{loc.f:.5g}')]
        if loc.gradient is not None:
            columns += [('GradEvals', f'{stats.grad_evaluations:d}'),
                        ('|Gradient|∞', f'{_inf_norm(loc.gradient):.5g}')]
        if loc.hessian is not None:
            columns += [('HessEvals', f'{stats.hess_evaluations:d}')]

        if self._n_rows % self.heading_interval == 0:
            print(''.join(f'{name:>14}' for name, _ in columns), file=self.file)
        print(''.join(f'{value:>14}' for _, value in columns), file=self.file)
        self._n_rows += 1


class History(Recorder):
    """
    Record the trajectory of a run: every evaluated point (`xv`, `funv`)
    and every major iteration (`major_xv`, `major_funv`).
    Can be passed to `numopt.plot.plot_convergence()`.
    """
    def __init__(self):
        self.init()

    def init(self):
        self.ops = []
        self._xv = []
        self._funv = []
        self._major_xv = []
        self._major_funv = []

    def record(self, loc, op, stats):
        self.ops.append(op)
        if op.is_evaluation and op.func:
            self._xv.append(loc.x.copy())
            self._funv.append(loc.f)
        elif op is Control.MAJOR_ITERATION:
            self._major_xv.append(loc.x.copy())
            self._major_funv.append(loc.f)

    @property
    def nfev(self) -> int:
        return len(self._funv)

    @property
    def xv(self) -> np.ndarray:
        return np.array(self._xv)

    @property
    def funv(self) -> np.ndarray:
        return np.array(self._funv)

    @property
    def major_xv(self) -> np.ndarray:
        return np.array(self._major_xv)

    @property
    def major_funv(self) -> np.ndarray:
        return np.array(self._major_funv)
