
from enum import Enum
from typing import Optional, Sequence, Tuple

import numpy as np

from .. import logger
from ..errors import TensorStateError, UnsupportedOperationError
from ..options import scalar_dtype
from ..parallel import allreduce_sum, comm_size
from ..typing import Communicator, Size, TensorLike

__all__ = ['TensorState', 'DistributedScalar']


class TensorState(Enum):
    EMPTY = 0
    ACCUMULATING = 1
    FINALIZED = 2


def _scalar_block(block) -> float:
    values = np.ravel(np.asarray(block))
    if values.shape[0] != 1:
        raise ValueError(f"A scalar block holds exactly one value, got {values.shape[0]}.")
    return values[0]


def _check_rows(rows: Sequence) -> None:
    if len(rows) != 0:
        raise ValueError(f"A scalar has no rows, but {len(rows)} index array(s) were given.")


class DistributedScalar():
    """A real-valued scalar assembled over a group of processes.

    Every process adds its local contributions; `finalize` sums the local
    values of all processes so that each one holds the global value.

    ## Lifecycle

    `EMPTY -> ACCUMULATING -> FINALIZED`. `add` and `set` move an empty
    scalar to accumulating and are refused once the scalar is finalized;
    `zero` returns to empty from any state.

    `value` is not checked against the state: before `finalize` it is the
    partial sum of this process only. Use `result()` for a checked read.

    `finalize` is collective. Every process of `comm` must call it, otherwise
    the reduction never completes. This is not checked.

    Parameters:
        comm (Communicator | None, optional): The process group. None means a
            single process.
        dtype (optional): Scalar type, defaults to the `scalar_type` option.
    """
    def __init__(self, comm: Optional[Communicator] = None, dtype=None) -> None:
        self._comm = comm
        self._dtype = scalar_dtype(dtype)
        self._value = self._dtype.type(0)
        self._state = TensorState.EMPTY

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} value {self._value}>"

    def __float__(self) -> float:
        return float(self._value)

    @property
    def comm(self) -> Optional[Communicator]:
        return self._comm

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def state(self) -> TensorState:
        return self._state

    @property
    def rank(self) -> int:
        return 0

    @property
    def value(self):
        """Local value; the global value only after `finalize`."""
        return self._value

    def result(self):
        """Return the global value.

        Raises:
            TensorStateError: If the scalar has not been finalized.
        """
        if self._state is not TensorState.FINALIZED:
            raise TensorStateError(f"{self.__class__.__name__} is read in state "
                                   f"{self._state.name}; call finalize() first.")
        return self._value

    def copy(self) -> 'DistributedScalar':
        s = self.__class__(self._comm, self._dtype)
        s._value = self._value
        s._state = self._state
        return s

    ### START: Tensor Interface ###
    def resize(self, rank: int = 0, dims: Size = ()) -> None:
        if rank != 0 or len(dims) != 0:
            raise ValueError(f"A scalar has rank 0, cannot resize to rank {rank}.")
        self.zero()

    def init(self) -> None:
        self.zero()

    def size(self, dim: int) -> int:
        raise UnsupportedOperationError("The size() function is not available for scalars.")

    def local_range(self, dim: int) -> Tuple[int, int]:
        raise UnsupportedOperationError("The local_range() function is not available for scalars.")

    def get(self, rows: Sequence = ()) -> TensorLike:
        _check_rows(rows)
        return np.array([self._value], dtype=self._dtype)

    def set(self, block, rows: Sequence = ()) -> None:
        _check_rows(rows)
        self._check_writable('set')
        self._value = self._dtype.type(_scalar_block(block))
        self._state = TensorState.ACCUMULATING

    def add(self, block, rows: Sequence = ()) -> None:
        _check_rows(rows)
        self._check_writable('add')
        self._value += self._dtype.type(_scalar_block(block))
        self._state = TensorState.ACCUMULATING

    def zero(self) -> None:
        """Set the value to zero, usable to restart assembly into this object."""
        self._value = self._dtype.type(0)
        self._state = TensorState.EMPTY

    def finalize(self, mode: str = 'add') -> None:
        """Sum the local values of all processes (collective).

        Calling it again on a finalized scalar does nothing, on every process.

        Raises:
            CollectiveError: If the reduction fails.
        """
        if mode != 'add':
            raise ValueError(f"Unsupported finalize mode '{mode}'.")
        if self._state is TensorState.FINALIZED:
            logger.debug(f"{self.__class__.__name__} is already finalized.")
            return
        if comm_size(self._comm) > 1:
            self._value = self._dtype.type(allreduce_sum(self._comm, self._value))
        self._state = TensorState.FINALIZED
        logger.info(f"{self.__class__.__name__} finalized, value {self._value}.")

    apply = finalize
    ### END: Tensor Interface ###

    def _check_writable(self, op: str) -> None:
        if self._state is TensorState.FINALIZED:
            raise TensorStateError(f"Cannot {op} on a finalized {self.__class__.__name__}; "
                                   "call zero() to restart assembly.")
