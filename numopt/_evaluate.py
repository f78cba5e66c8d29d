import numpy as np

from ._operation import ContractViolation, Operation, Status
from ._types import Location, Problem


def evaluate(problem: Problem, loc: Location, op: Operation, x: np.ndarray):
    """
    Evaluate `problem` at `loc.x` as requested by evaluation `op`,
    storing the results into `loc`.

    `x` is a caller-owned scratch buffer into which `loc.x` is copied
    so that the objective never sees the live location.
    If `problem.status` is set, it is consulted first; a terminal status,
    or an exception it raises, is returned without calling the objective.

    Returns a tuple `(status, error)`.
    Exceptions raised by the objective callables propagate.
    """
    if not op.is_evaluation:
        raise ContractViolation(f'Cannot evaluate non-evaluation operation {op!r}')
    if problem.status is not None:
        try:
            status = problem.status()
        except Exception as exc:
            return Status.FAILURE, exc
        if status is not Status.NOT_TERMINATED:
            return status, None

    x[:] = loc.x
    if op.func:
        loc.f = float(problem.func(x))
    if op.grad:
        if loc.gradient is None or problem.grad is None:
            raise ContractViolation('Gradient evaluation requested without gradient storage or Problem.grad')
        loc.gradient[:] = problem.grad(x)
    if op.hess:
        if loc.hessian is None or problem.hess is None:
            raise ContractViolation('Hessian evaluation requested without Hessian storage or Problem.hess')
        loc.hessian[:] = problem.hess(x)
    return Status.NOT_TERMINATED, None
