import queue
import threading
import time
from numbers import Integral
from typing import Optional

import numpy as np
from joblib import Parallel, delayed

from ._cmaes import CmaEsChol
from ._converge import check_evaluation_limits, check_major_iteration, default_converger
from ._evaluate import evaluate
from ._method import GlobalMethod, Statuser
from ._operation import ContractViolation, Control, Operation, Status
from ._types import Location, Problem, Result, Settings, Stats, Task
from ._util import _disp, _format_status


class _Token:
    def __init__(self, name):
        self.name = name

    def __repr__(self):
        return f'<{self.name}>'


_CLOSED = _Token('closed')
_HALT = _Token('halt')
_WORKER_DONE = _Token('worker done')
_DISTRIBUTOR_DONE = _Token('distributor done')


class _Crash:
    """Fatal exception raised in one of the actor threads."""
    def __init__(self, exc: BaseException):
        self.exc = exc


def _check_step_result(op, task: Task) -> Operation:
    if not isinstance(op, Operation):
        raise ContractViolation(f'Method returned {op!r} for task {task.index}, not an Operation')
    if op in (Control.INIT_ITERATION, Control.POST_ITERATION):
        raise ContractViolation(f'Method returned illegal operation {op!r} for task {task.index}')
    return op


class _Driver:
    """
    Runs a `GlobalMethod` on a `Problem`.

    Four actors communicate only through queues:

    * the method actor steps the method for every task,
    * the distributor routes evaluations to the workers and
      everything else directly to the stats combiner,
    * the worker pool evaluates the problem concurrently,
    * the stats combiner, running in the calling thread, is the only one
      to touch `Stats`, the optimum, the converger and the recorder.

    Tasks that the combiner has processed are returned to the method actor.
    When the combiner decides the run is over, it sends `POST_ITERATION`
    to the method actor and a halt token to the distributor; the actors
    then drain their queues and exit in turn. Evaluations already running
    complete and are handed back to the method, but no new ones start.
    """
    def __init__(self, problem: Problem, dim: int, method: GlobalMethod, settings: Settings,
                 *, x0: Optional[np.ndarray] = None, disp: bool = False):
        assert isinstance(problem, Problem), problem
        assert isinstance(method, GlobalMethod), method
        assert isinstance(settings, Settings), settings
        self.problem = problem
        self.dim = dim
        self.method = method
        self.settings = settings
        self.x0 = x0
        self.disp = disp

    def run(self) -> Result:
        problem, dim, method, settings = self.problem, self.dim, self.method, self.settings
        if problem.func is None:
            raise ContractViolation('Impossible problem: Problem.func is not set')
        if not isinstance(dim, Integral) or dim <= 0:
            raise ContractViolation(f'Problem dimension must be a positive integer, got {dim!r}')
        needs = method.needs()
        problem.satisfies(needs)

        self._start = time.perf_counter()
        self.stats = Stats()
        self.status = Status.NOT_TERMINATED
        self.error = None
        self._fatal = None
        self.optimum = Location.new(dim, needs)
        if self.x0 is not None:
            self.optimum.x[:] = self.x0
        self.converger = settings.converger if settings.converger is not None else default_converger()
        self.converger.init(dim)
        self.recorder = settings.recorder

        if problem.status is not None:
            try:
                status = problem.status()
            except Exception as exc:
                return self._result(Status.FAILURE, exc)
            if status.is_terminal:
                return self._result(status, None)
        if self.recorder is not None:
            try:
                self.recorder.init()
                self.recorder.record(self.optimum, Control.INIT_ITERATION, self.stats)
            except Exception as exc:
                return self._result(Status.FAILURE, exc)

        tasks = max(settings.concurrent, 1)
        try:
            granted = method.init_global(dim, tasks)
        except (ContractViolation, AssertionError):
            raise
        except Exception as exc:
            self.status, self.error = Status.FAILURE, exc
            return self._finish()
        if not isinstance(granted, Integral) or not 1 <= granted <= tasks:
            raise ContractViolation(
                f'{type(method).__name__}.init_global() granted {granted!r} tasks of {tasks} requested')
        if granted < tasks and self.disp:
            _disp(f'{type(method).__name__} uses {granted} of {tasks} concurrent tasks')

        self._run_actors(granted, needs)
        if self._fatal is not None:
            raise self._fatal
        return self._finish()

    def _run_actors(self, n, needs):
        self._n_workers = n
        self._workers_started = 0
        self._lock = threading.Lock()
        self._operations = queue.Queue()
        self._results = queue.Queue()
        self._dispatch = queue.Queue()
        self._updates = queue.Queue()
        threads = [
            threading.Thread(target=self._method_actor, args=(n, needs),
                             name=f'{__package__}-method', daemon=True),
            threading.Thread(target=self._distribute, name=f'{__package__}-distributor', daemon=True),
            threading.Thread(target=self._run_workers, args=(n,), name=f'{__package__}-workers', daemon=True),
        ]
        for thread in threads:
            thread.start()
        try:
            self._combine()
        finally:
            for thread in threads:
                thread.join()

    # Method actor

    def _method_actor(self, n, needs):
        try:
            self._drive_method(n, needs)
        except Exception as exc:
            self._updates.put(_Crash(exc))
            while self._results.get() is not _CLOSED:
                pass
        self._operations.put(_CLOSED)

    def _drive_method(self, n, needs):
        self._method_done = False
        draining = False
        in_flight = 0
        parked = []
        for i in range(n):
            task = Task(i, Control.NO_OPERATION, Location.new(self.dim, needs))
            in_flight += self._send(self._step(task))

        while (task := self._results.get()) is not _CLOSED:
            if task is Control.POST_ITERATION:
                # Keep stepping tasks as results drain in; the distributor
                # drops any evaluations they request
                draining = True
                continue
            if draining and (task.error is not None or task.status.is_terminal):
                continue
            in_flight -= 1
            if task.op is Control.NO_OPERATION:
                parked.append(task)
            else:
                in_flight += self._send(self._step(task))
                retry, parked = parked, []
                for task in retry:
                    task = self._step(task)
                    if task.op is Control.NO_OPERATION:
                        parked.append(task)
                    else:
                        in_flight += self._send(task)
            if not in_flight and not self._method_done and not draining:
                raise ContractViolation(
                    f'{type(self.method).__name__} returned NO_OPERATION for all tasks '
                    'with nothing in flight')

    def _step(self, task: Task) -> Task:
        task.status, task.error = Status.NOT_TERMINATED, None
        try:
            op = self.method.iterate_global(task.index, task.location)
        except (ContractViolation, AssertionError):
            raise
        except Exception as exc:
            task.op, task.error = Control.METHOD_DONE, exc
            return task
        task.op = _check_step_result(op, task)
        return task

    def _send(self, task: Task) -> int:
        self._operations.put(task)
        if task.op is Control.METHOD_DONE:
            self._method_done = True
            return 0
        return 1

    # Distributor

    def _distribute(self):
        halted = False
        try:
            while (task := self._operations.get()) is not _CLOSED:
                if task is _HALT:
                    if not halted:
                        halted = True
                        self._close_dispatch()
                elif task.op.is_evaluation:
                    # Evaluations requested after the halt are never performed
                    if not halted:
                        self._dispatch.put(task)
                else:
                    self._updates.put(task)
        except Exception as exc:
            self._updates.put(_Crash(exc))
        finally:
            if not halted:
                self._close_dispatch()
            self._updates.put(_DISTRIBUTOR_DONE)

    def _close_dispatch(self):
        for _ in range(self._n_workers):
            self._dispatch.put(_CLOSED)

    # Workers

    def _run_workers(self, n):
        try:
            Parallel(n_jobs=n, prefer='threads', require='sharedmem', batch_size=1)(
                delayed(self._work)() for _ in range(n))
        except Exception as exc:
            self._updates.put(_Crash(exc))
            with self._lock:
                missing = n - self._workers_started
            for _ in range(missing):
                self._updates.put(_WORKER_DONE)

    def _work(self):
        with self._lock:
            self._workers_started += 1
        x = np.empty(self.dim)
        try:
            while (task := self._dispatch.get()) is not _CLOSED:
                try:
                    task.status, task.error = evaluate(self.problem, task.location, task.op, x)
                except Exception as exc:
                    self._updates.put(_Crash(exc))
                else:
                    self._updates.put(task)
        finally:
            self._updates.put(_WORKER_DONE)

    # Stats combiner

    def _combine(self):
        workers_done = 0
        distributor_done = False
        results_open = True
        while workers_done < self._n_workers or not distributor_done:
            item = self._updates.get()
            if item is _WORKER_DONE:
                workers_done += 1
                if workers_done == self._n_workers:
                    results_open = False
                    self._results.put(_CLOSED)
                continue
            if item is _DISTRIBUTOR_DONE:
                distributor_done = True
                continue
            if isinstance(item, _Crash):
                self._fail(item.exc)
                continue
            try:
                self._process(item)
            except Exception as exc:
                self._fail(exc)
            if results_open and item.op is not Control.METHOD_DONE:
                self._results.put(item)

    def _process(self, task: Task):
        if task.error is not None:
            self._terminate(Status.FAILURE, task.error)
            return
        op = task.op
        if op is Control.NO_OPERATION:
            return
        terminated = self.status.is_terminal
        if op.is_evaluation:
            if task.status.is_terminal:
                self._terminate(task.status, None)
                return
            self.stats.update(op)
        elif op is Control.METHOD_DONE and terminated:
            return

        # After termination, evaluations and major iterations of the draining
        # tasks are still counted, recorded and applied to the optimum,
        # but can no longer terminate the run
        loc = task.location
        self.stats.runtime = time.perf_counter() - self._start
        if op.is_evaluation:
            if self._record(loc, op):
                self._terminate(check_evaluation_limits(loc, op, self.stats, self.settings))
        elif op is Control.MAJOR_ITERATION:
            if self.method.forget_best or loc.f <= self.optimum.f:
                self.optimum.copy_from(loc)
            self.stats.major_iterations += 1
            if self.disp:
                _disp(f"nit:{self.stats.major_iterations}, "
                      f"nfev:{self.stats.func_evaluations}, fun:{self.optimum.f:.5g}")
            if self._record(loc, op) and not terminated:
                self._terminate(check_major_iteration(self.optimum, self.stats,
                                                      self.settings, self.converger))
        elif op is Control.METHOD_DONE:
            if not isinstance(self.method, Statuser):
                raise ContractViolation(
                    f'{type(self.method).__name__} returned METHOD_DONE but has no status() method')
            if not self._record(loc, op):
                return
            try:
                status = self.method.status()
            except Exception as exc:
                self._terminate(Status.FAILURE, exc)
                return
            if not isinstance(status, Status) or not status.is_terminal:
                raise ContractViolation(
                    f'{type(self.method).__name__} returned METHOD_DONE with status {status!r}')
            self._terminate(status)

    def _record(self, loc, op) -> bool:
        if self.recorder is None:
            return True
        try:
            self.recorder.record(loc, op, self.stats)
        except Exception as exc:
            self._terminate(Status.FAILURE, exc)
            return False
        return True

    def _terminate(self, status: Status, error: Optional[BaseException] = None):
        if error is not None and not status.is_terminal:
            status = Status.FAILURE
        if not status.is_terminal or self.status.is_terminal:
            return
        self.status, self.error = status, error
        self._results.put(Control.POST_ITERATION)
        self._operations.put(_HALT)

    def _fail(self, exc: BaseException):
        if self._fatal is None:
            self._fatal = exc
        self._terminate(Status.FAILURE, exc)

    # Completion

    def _finish(self) -> Result:
        self.stats.runtime = time.perf_counter() - self._start
        if self.recorder is not None:
            try:
                self.recorder.record(self.optimum, Control.POST_ITERATION, self.stats)
            except Exception as exc:
                self.status = Status.FAILURE
                self.error = self.error or exc
        return self._result(self.status, self.error)

    def _result(self, status: Status, error: Optional[BaseException]) -> Result:
        if not status.is_terminal:
            status = Status.FAILURE
        self.stats.runtime = time.perf_counter() - self._start
        if self.disp:
            _disp(_format_status(status, self.stats))
        opt = self.optimum
        return Result(
            x=opt.x.copy(),
            fun=opt.f,
            jac=None if opt.gradient is None else opt.gradient.copy(),
            hess=None if opt.hessian is None else opt.hessian.copy(),
            status=status,
            success=status.success,
            message=status.value,
            nit=self.stats.major_iterations,
            nfev=self.stats.func_evaluations,
            njev=self.stats.grad_evaluations,
            nhev=self.stats.hess_evaluations,
            runtime=self.stats.runtime,
            location=opt.copy(),
            stats=self.stats.copy(),
            error=error,
        )


def global_minimize(
        problem: Problem,
        dim: int,
        settings: Optional[Settings] = None,
        method: Optional[GlobalMethod] = None,
        *,
        disp: bool = False,
) -> Result:
    """
    Minimize `problem` of dimension `dim` using a `GlobalMethod`,
    with up to `settings.concurrent` evaluations running in parallel.

    Parameters
    ----------
    problem : Problem
        The objective and, optionally, its derivatives.

    dim : int
        Dimension of the search space.

    settings : Settings, optional
        Limits, thresholds, recorder and concurrency. See `Settings`.

    method : GlobalMethod, optional
        The optimization method. Default is `CmaEsChol()`.

    disp : bool, default=False
        Print progress at every major iteration and at the end.

    Returns
    -------
    result : Result
        The best location found and the reason for termination.
        Exceptions raised by the objective callables, and misuse of the
        method contract, are raised instead.

    Example
    -------
    >>> from scipy.optimize import rosen
    >>> from numopt import CmaEsChol, Problem, Settings, global_minimize
    >>> result = global_minimize(Problem(rosen), dim=2,
    ...                          settings=Settings(func_evaluations=1000, concurrent=4),
    ...                          method=CmaEsChol(rng=0))
    >>> result.x, result.fun, result.status  # doctest: +SKIP
    """
    if method is None:
        method = CmaEsChol()
    if settings is None:
        settings = Settings()
    return _Driver(problem, dim, method, settings, disp=disp).run()
