import io
import os
import threading
import time
import unittest
from contextlib import redirect_stdout
from functools import partial

import numpy as np
from matplotlib import pyplot as plt
from matplotlib.figure import Figure
from scipy.optimize import rosen, rosen_der, rosen_hess

from numopt import (
    BFGS, Brent, CmaEsChol, ContractViolation, FunctionConverge, GlobalMethod,
    GradientDescent, GuessAndCheck, History, LinesearchError, Location, Method,
    NelderMead, NeverTerminate, Newton, Printer, Problem, Recorder, Settings,
    StartingLocationError, Status, Statuser, global_minimize, minimize,
    Evaluation, FUNC_EVALUATION, GRAD_EVALUATION, HESS_EVALUATION,
    INIT_ITERATION, MAJOR_ITERATION, METHOD_DONE, NO_OPERATION, POST_ITERATION,
)
from numopt._evaluate import evaluate
from numopt._linesearch import backtracking
from numopt._types import Needs
from numopt.plot import plot_convergence

CmaEsChol = partial(CmaEsChol, rng=0)
GuessAndCheck = partial(GuessAndCheck, rng=0)

ROSEN_PROBLEM = Problem(rosen, grad=rosen_der, hess=rosen_hess)
ROSEN_X0 = [-1.2, 1.]
ROSEN_TRUE_X = [1., 1.]


def quadratic(x):
    return (x[0] - .8)**2


def check_x(res, x_true, atol=1e-5):
    np.testing.assert_allclose(res.x, x_true, atol=atol, err_msg=res)


class TestOperation(unittest.TestCase):
    def test_empty_evaluation(self):
        with self.assertRaises(ContractViolation):
            Evaluation()

    def test_combine_evaluations(self):
        op = FUNC_EVALUATION | GRAD_EVALUATION
        self.assertEqual(op, Evaluation(func=True, grad=True))
        self.assertTrue(op.is_evaluation)
        self.assertFalse(op.hess)
        self.assertEqual(op | HESS_EVALUATION, Evaluation(True, True, True))

    def test_combine_control(self):
        for a, b in ((MAJOR_ITERATION, FUNC_EVALUATION),
                     (FUNC_EVALUATION, MAJOR_ITERATION),
                     (NO_OPERATION, METHOD_DONE)):
            with self.subTest(a=a, b=b):
                with self.assertRaises(ContractViolation):
                    a | b

    def test_control_is_not_evaluation(self):
        for op in (NO_OPERATION, INIT_ITERATION, POST_ITERATION, MAJOR_ITERATION, METHOD_DONE):
            self.assertFalse(op.is_evaluation)

    def test_status(self):
        self.assertFalse(Status.NOT_TERMINATED.is_terminal)
        self.assertTrue(Status.FAILURE.is_terminal)
        self.assertFalse(Status.FAILURE.success)
        self.assertFalse(Status.ITERATION_LIMIT.success)
        self.assertTrue(Status.METHOD_CONVERGE.success)
        self.assertTrue(Status.GRADIENT_THRESHOLD.success)
        self.assertEqual(len({status.value for status in Status}), len(Status))

    def test_statuser(self):
        self.assertIsInstance(NelderMead(), Statuser)
        self.assertIsInstance(CmaEsChol(), Statuser)
        self.assertNotIsInstance(BFGS(), Statuser)


class TestEvaluate(unittest.TestCase):
    def test_objective_sees_copy(self):
        def f(x):
            x[:] = 100
            return 1.

        loc = Location.new(2)
        loc.x[:] = [1, 2]
        status, error = evaluate(Problem(f), loc, FUNC_EVALUATION, np.empty(2))
        self.assertIs(status, Status.NOT_TERMINATED)
        self.assertIsNone(error)
        np.testing.assert_array_equal(loc.x, [1, 2])
        self.assertEqual(loc.f, 1)

    def test_only_requested(self):
        def f(x):
            raise AssertionError('func should not be called')

        loc = Location.new(2, Needs(gradient=True))
        loc.x[:] = [0, 0]
        evaluate(Problem(f, grad=rosen_der), loc, GRAD_EVALUATION, np.empty(2))
        np.testing.assert_allclose(loc.gradient, rosen_der(np.zeros(2)))
        self.assertEqual(loc.f, np.inf)

    def test_status_short_circuits(self):
        def f(x):
            raise AssertionError('func should not be called')

        loc = Location.new(1)
        status, error = evaluate(Problem(f, status=lambda: Status.ITERATION_LIMIT),
                                 loc, FUNC_EVALUATION, np.empty(1))
        self.assertIs(status, Status.ITERATION_LIMIT)
        self.assertIsNone(error)

        def status():
            raise ValueError

        status, error = evaluate(Problem(f, status=status), loc, FUNC_EVALUATION, np.empty(1))
        self.assertIs(status, Status.FAILURE)
        self.assertIsInstance(error, ValueError)

    def test_contract(self):
        loc = Location.new(1)
        with self.assertRaises(ContractViolation):
            evaluate(Problem(quadratic), loc, MAJOR_ITERATION, np.empty(1))
        with self.assertRaises(ContractViolation):
            evaluate(Problem(quadratic, grad=rosen_der), loc, GRAD_EVALUATION, np.empty(1))


class TestFunctionConverge(unittest.TestCase):
    def test_converge(self):
        converger = FunctionConverge(absolute=1e-3, iterations=3)
        for _ in range(2):
            converger.init(1)
            statuses = [converger.converged(Location(np.zeros(1), f))
                        for f in (10, 5, 4.9995, 4.9995, 4.9995)]
            self.assertEqual(statuses, [Status.NOT_TERMINATED] * 4 + [Status.FUNCTION_CONVERGENCE])

    def test_relative(self):
        converger = FunctionConverge(relative=.1, iterations=2)
        converger.init(1)
        statuses = [converger.converged(Location(np.zeros(1), f))
                    for f in (0., 0., -1., -1.05, -1.06)]
        self.assertEqual(statuses, [Status.NOT_TERMINATED] * 4 + [Status.FUNCTION_CONVERGENCE])

    def test_zero_tolerance(self):
        converger = FunctionConverge(iterations=3)
        converger.init(1)
        statuses = [converger.converged(Location(np.zeros(1), f))
                    for f in (10, 9, 8, 7, 6, 6, 6, 6)]
        self.assertEqual(statuses, [Status.NOT_TERMINATED] * 7 + [Status.FUNCTION_CONVERGENCE])

    def test_disabled(self):
        converger = FunctionConverge()
        converger.init(1)
        for _ in range(10):
            self.assertIs(converger.converged(Location(np.zeros(1), 1.)), Status.NOT_TERMINATED)


class TestLinesearch(unittest.TestCase):
    def test_not_descent_direction(self):
        loc = Location(np.zeros(1), 0., gradient=np.ones(1))
        steps = backtracking(loc, np.ones(1), 1., derivatives=GRAD_EVALUATION)
        with self.assertRaises(LinesearchError):
            next(steps)


class TestMinimize(unittest.TestCase):
    def test_nelder_mead(self):
        res = minimize(Problem(quadratic), x0=[2.], method=NelderMead())
        check_x(res, [.8], atol=1e-4)
        self.assertTrue(res.success, res)

    def test_nelder_mead_bounds(self):
        res = minimize(Problem(quadratic), x0=[2.], method=NelderMead(bounds=[(1, 3)]))
        check_x(res, [1.], atol=1e-4)
        self.assertTrue(res.success, res)

    def test_brent(self):
        res = minimize(Problem(lambda x: (x[0] + 4)**2), x0=[1.], method=Brent((-10, 20)))
        check_x(res, [-4.], atol=1e-6)
        self.assertIs(res.status, Status.METHOD_CONVERGE)

    def test_brent_dimension(self):
        with self.assertRaises(ContractViolation):
            minimize(Problem(rosen), x0=ROSEN_X0, method=Brent((-10, 20)))

    def test_gradient_methods(self):
        settings = Settings(gradient_threshold=1e-8)
        for method in (BFGS(), Newton()):
            with self.subTest(method=type(method).__name__):
                res = minimize(ROSEN_PROBLEM, x0=ROSEN_X0, method=method, settings=settings)
                check_x(res, ROSEN_TRUE_X, atol=1e-3)
                self.assertTrue(res.success, res)
                self.assertIsNotNone(res.jac)

    def test_gradient_descent(self):
        scale = np.array([1., 3.])
        center = np.array([1., 2.])
        problem = Problem(lambda x: np.sum(scale * (x - center)**2),
                          grad=lambda x: 2 * scale * (x - center))
        res = minimize(problem, x0=[0., 0.], method=GradientDescent(),
                       settings=Settings(gradient_threshold=1e-6))
        check_x(res, center, atol=1e-5)
        self.assertIs(res.status, Status.GRADIENT_THRESHOLD)

    def test_default_method(self):
        res = minimize(Problem(rosen, grad=rosen_der), x0=ROSEN_X0,
                       settings=Settings(gradient_threshold=1e-8))
        check_x(res, ROSEN_TRUE_X, atol=1e-3)
        self.assertEqual(res.nhev, 0)

    def test_infinite_start(self):
        res = minimize(Problem(lambda x: np.inf), x0=[0.], method=NelderMead())
        self.assertIs(res.status, Status.FAILURE)
        self.assertIsInstance(res.error, StartingLocationError)
        self.assertEqual(res.nit, 0)
        self.assertEqual(res.nfev, 1)
        self.assertFalse(res.success)

    def test_nan_gradient_start(self):
        problem = Problem(lambda x: 0., grad=lambda x: np.full_like(x, np.nan))
        res = minimize(problem, x0=[0.], method=BFGS())
        self.assertIs(res.status, Status.FAILURE)
        self.assertIsInstance(res.error, StartingLocationError)

    def test_limits(self):
        _minimize = partial(minimize, Problem(rosen, grad=rosen_der), x0=ROSEN_X0)
        res = _minimize(method=NelderMead(), settings=Settings(func_evaluations=20))
        self.assertIs(res.status, Status.FUNCTION_EVALUATION_LIMIT)
        self.assertEqual(res.nfev, 20)

        res = _minimize(method=NelderMead(), settings=Settings(major_iterations=5))
        self.assertIs(res.status, Status.ITERATION_LIMIT)
        self.assertEqual(res.nit, 5)

        res = _minimize(method=BFGS(), settings=Settings(grad_evaluations=5))
        self.assertIs(res.status, Status.GRADIENT_EVALUATION_LIMIT)
        self.assertEqual(res.njev, 5)

        res = minimize(ROSEN_PROBLEM, x0=ROSEN_X0, method=Newton(),
                       settings=Settings(hess_evaluations=5))
        self.assertIs(res.status, Status.HESSIAN_EVALUATION_LIMIT)
        self.assertEqual(res.nhev, 5)

    def test_relative_converger_at_zero(self):
        res = minimize(Problem(lambda x: x[0]**2), x0=[0.], method=Brent((-1, 1)),
                       settings=Settings(converger=FunctionConverge(absolute=1e-10, relative=1e-6,
                                                                    iterations=100)))
        self.assertTrue(res.success, res)
        self.assertIsNone(res.error)
        check_x(res, [0.], atol=1e-6)

    def test_function_threshold(self):
        res = minimize(Problem(quadratic), x0=[2.], method=NelderMead(),
                       settings=Settings(function_threshold=1e-2))
        self.assertIs(res.status, Status.FUNCTION_THRESHOLD)
        self.assertLess(res.fun, 1e-2)

    def test_gradient_threshold_at_start(self):
        res = minimize(ROSEN_PROBLEM, x0=ROSEN_TRUE_X, method=BFGS())
        self.assertIs(res.status, Status.GRADIENT_THRESHOLD)
        self.assertEqual(res.nit, 1)
        check_x(res, ROSEN_TRUE_X, atol=0)

    def test_negative_infinity(self):
        res = minimize(Problem(lambda x: -np.inf if x[0] < 1.5 else x[0]), x0=[2.], method=NelderMead())
        self.assertIs(res.status, Status.FUNCTION_NEGATIVE_INFINITY)

    def test_contract_violations(self):
        with self.assertRaises(ContractViolation):
            minimize(Problem(rosen), x0=ROSEN_X0, method=BFGS())
        with self.assertRaises(ContractViolation):
            minimize(Problem(rosen, grad=rosen_der), x0=ROSEN_X0, method=Newton())
        with self.assertRaises(ContractViolation):
            minimize(Problem(None), x0=ROSEN_X0)
        with self.assertRaises(ContractViolation):
            minimize(Problem(rosen), x0=[])

    def test_problem_status(self):
        def f(x):
            nonlocal n_calls
            n_calls += 1
            return rosen(x)

        def status():
            return Status.RUNTIME_LIMIT if n_calls >= 10 else Status.NOT_TERMINATED

        n_calls = 0
        res = minimize(Problem(f, status=status), x0=ROSEN_X0, method=NelderMead())
        self.assertIs(res.status, Status.RUNTIME_LIMIT)
        self.assertEqual(res.nfev, 10)
        self.assertEqual(n_calls, 10)

        def status():
            raise ValueError

        res = minimize(Problem(rosen, status=status), x0=ROSEN_X0, method=NelderMead())
        self.assertIs(res.status, Status.FAILURE)
        self.assertIsInstance(res.error, ValueError)
        self.assertEqual(res.nfev, 0)

    def test_recorder_errors(self):
        class Failing(Recorder):
            def __init__(self, fail_init):
                self.fail_init = fail_init

            def init(self):
                if self.fail_init:
                    raise ValueError('init')

            def record(self, loc, op, stats):
                if op is MAJOR_ITERATION:
                    raise ValueError('record')

        for fail_init in (True, False):
            with self.subTest(fail_init=fail_init):
                res = minimize(Problem(rosen), x0=ROSEN_X0, method=NelderMead(),
                               settings=Settings(recorder=Failing(fail_init)))
                self.assertIs(res.status, Status.FAILURE)
                self.assertEqual(str(res.error), 'init' if fail_init else 'record')
                self.assertEqual(res.nfev, 0 if fail_init else 1)

    def test_history(self):
        history = History()
        res = minimize(Problem(rosen), x0=ROSEN_X0, method=NelderMead(),
                       settings=Settings(recorder=history, func_evaluations=30))
        self.assertIs(history.ops[0], INIT_ITERATION)
        self.assertEqual(history.ops[1], FUNC_EVALUATION)
        self.assertIs(history.ops[2], MAJOR_ITERATION)
        self.assertIs(history.ops[-1], POST_ITERATION)
        self.assertEqual(history.nfev, res.nfev)
        self.assertEqual(len(history.major_funv), res.nit)
        np.testing.assert_array_equal(history.xv[0], ROSEN_X0)
        self.assertGreaterEqual(res.fun, history.funv.min())

    def test_printer(self):
        out = io.StringIO()
        minimize(Problem(quadratic), x0=[2.], method=NelderMead(),
                 settings=Settings(recorder=Printer(file=out, value_interval=0)))
        lines = out.getvalue().splitlines()
        self.assertIn('FuncEvals', lines[0])
        self.assertGreater(len(lines), 3)

    def test_disp(self):
        out = io.StringIO()
        with redirect_stdout(out):
            minimize(Problem(quadratic), x0=[2.], method=NelderMead(), disp=True)
        self.assertIn('numopt: ', out.getvalue())

    def test_rerun_is_identical(self):
        method = NelderMead()
        _minimize = partial(minimize, Problem(rosen), x0=ROSEN_X0, method=method,
                            settings=Settings(func_evaluations=100))
        res1, res2 = _minimize(), _minimize()
        np.testing.assert_array_equal(res1.x, res2.x)
        self.assertEqual(res1.nfev, res2.nfev)
        self.assertEqual(res1.nit, res2.nit)

    def test_init_values(self):
        x0 = np.array([2.])
        res = minimize(Problem(quadratic), x0=x0, method=NelderMead())
        res_init = minimize(Problem(quadratic), x0=x0, method=NelderMead(),
                            settings=Settings(init_values=Location(x0.copy(), quadratic(x0))))
        self.assertEqual(res_init.nfev, res.nfev - 1)
        np.testing.assert_array_equal(res_init.x, res.x)

        x0 = np.array(ROSEN_X0)
        problem = Problem(rosen, grad=rosen_der)
        res = minimize(problem, x0=x0, method=BFGS(), settings=Settings(major_iterations=10))
        res_init = minimize(problem, x0=x0, method=BFGS(),
                            settings=Settings(major_iterations=10,
                                              init_values=Location(x0.copy(), rosen(x0))))
        self.assertEqual(res_init.nfev, res.nfev - 1)
        self.assertEqual(res_init.njev, res.njev)

    def test_illegal_operation(self):
        class Illegal(Method):
            def needs(self):
                return Needs()

            def init(self, loc):
                return INIT_ITERATION

            def iterate(self, loc):
                return FUNC_EVALUATION

        with self.assertRaises(ContractViolation):
            minimize(Problem(quadratic), x0=[0.], method=Illegal())

    def test_method_done_without_status(self):
        class Done(Method):
            def needs(self):
                return Needs()

            def init(self, loc):
                return METHOD_DONE

            def iterate(self, loc):
                return METHOD_DONE

        with self.assertRaises(ContractViolation):
            minimize(Problem(quadratic), x0=[0.], method=Done())

    def test_method_exception(self):
        class Raising(Method):
            def needs(self):
                return Needs()

            def init(self, loc):
                return FUNC_EVALUATION

            def iterate(self, loc):
                raise ValueError('bad step')

        res = minimize(Problem(quadratic), x0=[0.], method=Raising())
        self.assertIs(res.status, Status.FAILURE)
        self.assertIsInstance(res.error, ValueError)
        self.assertEqual(res.nfev, 2)

    def test_objective_exception_propagates(self):
        def f(x):
            nonlocal n_calls
            n_calls += 1
            if n_calls == 3:
                raise ZeroDivisionError
            return rosen(x)

        n_calls = 0
        with self.assertRaises(ZeroDivisionError):
            minimize(Problem(f), x0=ROSEN_X0, method=NelderMead())


class TestGlobalMinimize(unittest.TestCase):
    def test_evaluation_limit_concurrent(self):
        settings = Settings(func_evaluations=250, concurrent=5)
        res = global_minimize(Problem(rosen), 2, settings, CmaEsChol(population=100))
        self.assertIs(res.status, Status.FUNCTION_EVALUATION_LIMIT)
        self.assertGreaterEqual(res.nfev, 250)
        self.assertLess(res.nfev, 250 + 5)

    def test_evaluations_counted_once(self):
        lock = threading.Lock()
        n_calls = 0

        def f(x):
            nonlocal n_calls
            with lock:
                n_calls += 1
            return rosen(x)

        res = global_minimize(Problem(f), 3, Settings(func_evaluations=200, concurrent=4), CmaEsChol())
        self.assertEqual(n_calls, res.nfev)

    def test_monotonic_optimum(self):
        history = History()
        res = global_minimize(Problem(rosen), 3,
                              Settings(func_evaluations=300, concurrent=3, recorder=history),
                              CmaEsChol())
        self.assertGreater(len(history.major_funv), 0)
        self.assertTrue(np.all(np.diff(history.major_funv) <= 0))
        self.assertTrue(np.all(res.fun <= history.major_funv))
        self.assertGreaterEqual(res.fun, history.funv.min())

    def test_method_converge(self):
        res = global_minimize(Problem(lambda x: np.sum(x**2)), 2,
                              Settings(converger=NeverTerminate(), func_evaluations=100_000, concurrent=2),
                              CmaEsChol(stop_log_det=-10))
        self.assertIs(res.status, Status.METHOD_CONVERGE)
        self.assertLess(res.fun, 1e-2)

    def test_rerun_is_identical(self):
        method = CmaEsChol()
        _global_minimize = partial(global_minimize, Problem(rosen), 2,
                                   Settings(func_evaluations=100), method)
        res1, res2 = _global_minimize(), _global_minimize()
        np.testing.assert_array_equal(res1.x, res2.x)
        self.assertEqual(res1.fun, res2.fun)

    def test_default_method(self):
        res = global_minimize(Problem(rosen), 2, Settings(func_evaluations=50))
        self.assertIs(res.status, Status.FUNCTION_EVALUATION_LIMIT)
        self.assertEqual(res.nfev, 50)

    def test_guess_and_check(self):
        res = global_minimize(Problem(lambda x: np.sum((x - .5)**2)), 2,
                              Settings(func_evaluations=500, concurrent=3),
                              GuessAndCheck([(-1, 1)] * 2))
        self.assertIs(res.status, Status.FUNCTION_EVALUATION_LIMIT)
        self.assertLess(res.fun, .05)
        self.assertTrue(np.all(np.abs(res.x) <= 1))

    def test_runtime_limit(self):
        def f(x):
            time.sleep(.01)
            return np.sum(x**2)

        res = global_minimize(Problem(f), 1, Settings(runtime=.1, concurrent=2),
                              GuessAndCheck([(-1, 1)]))
        self.assertIs(res.status, Status.RUNTIME_LIMIT)
        self.assertGreaterEqual(res.runtime, .1)

    def test_in_flight_results_after_termination(self):
        def f(x):
            time.sleep(.05)
            return np.sum(x**2)

        history = History()
        res = global_minimize(Problem(f), 2,
                              Settings(func_evaluations=6, concurrent=4, recorder=history),
                              GuessAndCheck([(-1, 1)] * 2))
        self.assertIs(res.status, Status.FUNCTION_EVALUATION_LIMIT)
        self.assertGreaterEqual(res.nfev, 6)
        self.assertLess(res.nfev, 6 + 4)
        self.assertEqual(history.nfev, res.nfev)
        self.assertEqual(res.fun, history.funv.min())
        self.assertEqual(len(history.major_funv), res.nit)

    def test_forget_best(self):
        class Scripted(GlobalMethod):
            def needs(self):
                return Needs()

            def init_global(self, dim, tasks):
                self._values = iter([1., 2.])
                return 1

            def iterate_global(self, task, loc):
                f = next(self._values, None)
                if f is None:
                    return FUNC_EVALUATION
                loc.x[:], loc.f = f, f
                return MAJOR_ITERATION

        for forget_best, expected in ((False, 1.), (True, 2.)):
            with self.subTest(forget_best=forget_best):
                method = Scripted()
                method.forget_best = forget_best
                res = global_minimize(Problem(quadratic), 1, Settings(major_iterations=2), method)
                self.assertIs(res.status, Status.ITERATION_LIMIT)
                self.assertEqual(res.nit, 2)
                self.assertEqual(res.fun, expected)
                np.testing.assert_array_equal(res.x, [expected])

    def test_default_converger(self):
        class Flat(GlobalMethod):
            def needs(self):
                return Needs()

            def init_global(self, dim, tasks):
                self._evaluated = False
                return 1

            def iterate_global(self, task, loc):
                self._evaluated = not self._evaluated
                if self._evaluated:
                    loc.x[:] = 0
                    return FUNC_EVALUATION
                return MAJOR_ITERATION

        res = global_minimize(Problem(lambda x: 1.), 1, method=Flat())
        self.assertIs(res.status, Status.FUNCTION_CONVERGENCE)
        self.assertTrue(res.success)
        self.assertEqual(res.nit, 101)
        self.assertEqual(res.nfev, 101)

    def test_concurrent_capped(self):
        res = global_minimize(Problem(rosen), 2, Settings(func_evaluations=30, concurrent=50),
                              CmaEsChol(population=6))
        self.assertIs(res.status, Status.FUNCTION_EVALUATION_LIMIT)
        self.assertLess(res.nfev, 30 + 6)

    def test_contract_violations(self):
        class Greedy(GuessAndCheck.func):
            def init_global(self, dim, tasks):
                super().init_global(dim, tasks)
                return tasks + 1

        class Idle(GlobalMethod):
            def needs(self):
                return Needs()

            def init_global(self, dim, tasks):
                return tasks

            def iterate_global(self, task, loc):
                return NO_OPERATION

        class Done(Idle):
            def iterate_global(self, task, loc):
                return METHOD_DONE

        for method in (Greedy([(-1, 1)]), Idle(), Done()):
            with self.subTest(method=type(method).__name__):
                with self.assertRaises(ContractViolation):
                    global_minimize(Problem(rosen), 1, Settings(concurrent=2), method)
        with self.assertRaises(ContractViolation):
            global_minimize(Problem(rosen), 0)

    def test_step_exception(self):
        class Raising(CmaEsChol.func):
            def iterate_global(self, task, loc):
                if task == 1:
                    raise ValueError('bad step')
                return super().iterate_global(task, loc)

        res = global_minimize(Problem(rosen), 2, Settings(concurrent=3), Raising(rng=0))
        self.assertIs(res.status, Status.FAILURE)
        self.assertIsInstance(res.error, ValueError)

    def test_objective_exception_propagates(self):
        def f(x):
            raise ZeroDivisionError

        with self.assertRaises(ZeroDivisionError):
            global_minimize(Problem(f), 2, Settings(concurrent=3))


class TestPlot(unittest.TestCase):
    if os.environ.get('CI') == 'true':
        import matplotlib
        matplotlib.use('Agg')

    def tearDown(self):
        plt.close('all')

    def test_plot_convergence(self):
        histories = []
        for method in (NelderMead(), BFGS()):
            history = History()
            minimize(Problem(rosen, grad=rosen_der), x0=ROSEN_X0, method=method,
                     settings=Settings(recorder=history, func_evaluations=100))
            histories.append(history)
        fig = plot_convergence(histories[0], ('BFGS', histories[1]),
                               true_minimum=0, yscale='log')
        self.assertIsInstance(fig, Figure)

    def test_plot_empty_history(self):
        with self.assertRaises(ValueError):
            plot_convergence(History())


if __name__ == '__main__':
    unittest.main()
