from dataclasses import dataclass
from enum import Enum


class ContractViolation(RuntimeError):
    """
    Raised when a method, problem or driver is used against its contract,
    e.g. a method returning an unknown operation or a problem that
    cannot supply the derivatives a method needs. It signals
    a programming error and is never converted into a `Status`.
    """


class Operation:
    """
    Base type of everything a method may ask of the driver.

    An operation is either an `Evaluation` (of the objective and/or its
    derivatives at the current location) or one of the `Control` members.
    """
    is_evaluation = False

    def __or__(self, other):
        raise ContractViolation(f'Cannot combine operations {self!r} and {other!r}')


@dataclass(frozen=True)
class Evaluation(Operation):
    """Request to evaluate some of the function, gradient and Hessian."""
    func: bool = False
    grad: bool = False
    hess: bool = False

    is_evaluation = True

    def __post_init__(self):
        if not (self.func or self.grad or self.hess):
            raise ContractViolation('Evaluation must request at least one of func, grad, hess')

    def __or__(self, other):
        if not isinstance(other, Evaluation):
            return super().__or__(other)
        return Evaluation(func=self.func or other.func,
                          grad=self.grad or other.grad,
                          hess=self.hess or other.hess)

    def __repr__(self):
        names = [name for name in ('func', 'grad', 'hess') if getattr(self, name)]
        return f'Evaluation({"|".join(names)})'


class Control(Operation, Enum):
    NO_OPERATION = 'no-operation'
    INIT_ITERATION = 'init-iteration'
    POST_ITERATION = 'post-iteration'
    MAJOR_ITERATION = 'major-iteration'
    METHOD_DONE = 'method-done'

    def __repr__(self):
        return self.name


FUNC_EVALUATION = Evaluation(func=True)
GRAD_EVALUATION = Evaluation(grad=True)
HESS_EVALUATION = Evaluation(hess=True)

NO_OPERATION = Control.NO_OPERATION
INIT_ITERATION = Control.INIT_ITERATION
POST_ITERATION = Control.POST_ITERATION
MAJOR_ITERATION = Control.MAJOR_ITERATION
METHOD_DONE = Control.METHOD_DONE


class Status(Enum):
    """Reason an optimization run terminated."""
    NOT_TERMINATED = 'Not terminated'
    FUNCTION_THRESHOLD = 'Function value below threshold'
    FUNCTION_CONVERGENCE = 'Function value converged'
    GRADIENT_THRESHOLD = 'Gradient norm below threshold'
    METHOD_CONVERGE = 'Method converged'
    ITERATION_LIMIT = 'Maximum number of major iterations reached'
    RUNTIME_LIMIT = 'Runtime limit reached'
    FUNCTION_EVALUATION_LIMIT = 'Maximum number of function evaluations reached'
    GRADIENT_EVALUATION_LIMIT = 'Maximum number of gradient evaluations reached'
    HESSIAN_EVALUATION_LIMIT = 'Maximum number of Hessian evaluations reached'
    FUNCTION_NEGATIVE_INFINITY = 'Function value is negative infinity'
    FAILURE = 'Optimization failed'

    @property
    def is_terminal(self) -> bool:
        return self is not Status.NOT_TERMINATED

    @property
    def success(self) -> bool:
        return self in _CONVERGED

    def __str__(self):
        return self.value


_CONVERGED = frozenset({
    Status.FUNCTION_THRESHOLD,
    Status.FUNCTION_CONVERGENCE,
    Status.GRADIENT_THRESHOLD,
    Status.METHOD_CONVERGE,
})
