from abc import ABC, abstractmethod
from typing import Iterator, Protocol, runtime_checkable

from ._operation import ContractViolation, Operation, Status
from ._types import Location, Needs


@runtime_checkable
class Statuser(Protocol):
    """
    A method that can report its own termination status.
    Required of any method that returns `METHOD_DONE`.
    Raising an exception from `status()` means `Status.FAILURE`.
    """
    def status(self) -> Status: pass


class Method(ABC):
    """
    A sequential (local) optimization method.

    The driver calls `init()` once with the starting location, then
    `iterate()` repeatedly. Each call returns the next `Operation` to perform
    on `loc`, which the driver evaluates (or otherwise processes) in place
    before the next call.
    """
    @abstractmethod
    def needs(self) -> Needs:
        pass

    @abstractmethod
    def init(self, loc: Location) -> Operation:
        pass

    @abstractmethod
    def iterate(self, loc: Location) -> Operation:
        pass


class GlobalMethod(ABC):
    """
    A method that can keep several evaluations in flight.

    `init_global()` is told the problem dimension and the number of
    concurrent tasks requested, and returns the number it will use,
    `1 <= granted <= tasks`. `iterate_global()` is then called for each
    task with the task's own location, returning the next operation
    for that task. Returning `NO_OPERATION` means the task has nothing
    to do until some other task's result arrives.

    If `forget_best` is true, every reported major iteration replaces
    the optimum, even if it is worse.
    """
    forget_best: bool = False

    @abstractmethod
    def needs(self) -> Needs:
        pass

    @abstractmethod
    def init_global(self, dim: int, tasks: int) -> int:
        pass

    @abstractmethod
    def iterate_global(self, task: int, loc: Location) -> Operation:
        pass


class _GeneratorMethod(Method):
    """
    Method whose algorithm is a generator `_run(loc)` yielding operations.
    Between yields, the driver has performed the operation on `loc`.
    """
    def init(self, loc):
        self._steps = self._run(loc)
        return next(self._steps)

    def iterate(self, loc):
        try:
            return next(self._steps)
        except StopIteration:
            raise ContractViolation(f'{type(self).__name__} iterated past its end') from None

    @abstractmethod
    def _run(self, loc: Location) -> Iterator[Operation]:
        pass
