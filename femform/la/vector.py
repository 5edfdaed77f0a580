
from typing import Optional, Sequence, Tuple

import numpy as np

from .. import logger
from ..errors import TensorStateError
from ..options import scalar_dtype
from ..parallel import allreduce_sum, comm_size
from ..typing import Communicator, Size, TensorLike
from .scalar import TensorState

__all__ = ['DistributedVector']


class DistributedVector():
    """A dense vector replicated on every process of a group.

    Processes add their local element vectors into their own copy; `finalize`
    sums the copies so that every process holds the global vector. The
    lifecycle is the one of `DistributedScalar`.

    Blocks are addressed with a single index array, which must have as many
    entries as the block. Repeated indices accumulate in `add`.
    """
    def __init__(self, size: int, comm: Optional[Communicator] = None, dtype=None) -> None:
        self._comm = comm
        self._dtype = scalar_dtype(dtype)
        self._array = np.zeros((int(size), ), dtype=self._dtype)
        self._state = TensorState.EMPTY

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} of size {self._array.shape[0]}>"

    def __len__(self) -> int:
        return self._array.shape[0]

    @property
    def comm(self) -> Optional[Communicator]:
        return self._comm

    @property
    def state(self) -> TensorState:
        return self._state

    @property
    def rank(self) -> int:
        return 1

    @property
    def array(self) -> TensorLike:
        """Local values (read-only view); global values only after `finalize`."""
        view = self._array.view()
        view.flags.writeable = False
        return view

    def result(self) -> TensorLike:
        if self._state is not TensorState.FINALIZED:
            raise TensorStateError(f"{self.__class__.__name__} is read in state "
                                   f"{self._state.name}; call finalize() first.")
        return self.array

    def copy(self) -> 'DistributedVector':
        v = self.__class__(len(self), self._comm, self._dtype)
        v._array[:] = self._array
        v._state = self._state
        return v

    ### START: Tensor Interface ###
    def resize(self, rank: int = 1, dims: Size = ()) -> None:
        if rank != 1 or len(dims) != 1:
            raise ValueError(f"A vector has rank 1, cannot resize to rank {rank} with dims {dims}.")
        self._array = np.zeros((int(dims[0]), ), dtype=self._dtype)
        self._state = TensorState.EMPTY

    def init(self) -> None:
        self.zero()

    def size(self, dim: int) -> int:
        if dim != 0:
            raise IndexError(f"A vector has one dimension, got dim={dim}.")
        return self._array.shape[0]

    def local_range(self, dim: int) -> Tuple[int, int]:
        return (0, self.size(dim))

    def _rows(self, block: TensorLike, rows: Sequence) -> TensorLike:
        if len(rows) != 1:
            raise ValueError(f"A vector block needs 1 index array, got {len(rows)}.")
        index = np.asarray(rows[0])
        if not np.issubdtype(index.dtype, np.integer) and index.size > 0:
            raise TypeError(f"Row indices must be integers, got dtype {index.dtype}.")
        index = index.astype(np.int64).ravel()
        if block is not None and index.shape[0] != block.shape[0]:
            raise ValueError(f"Block has {block.shape[0]} values but {index.shape[0]} rows.")
        n = self._array.shape[0]
        if index.size > 0 and (index.min() < 0 or index.max() >= n):
            raise IndexError(f"Row index out of range [0, {n}).")
        return index

    def get(self, rows: Sequence) -> TensorLike:
        return self._array[self._rows(None, rows)].copy()

    def set(self, block, rows: Sequence) -> None:
        block = np.ravel(np.asarray(block, dtype=self._dtype))
        index = self._rows(block, rows)
        self._check_writable('set')
        self._array[index] = block
        self._state = TensorState.ACCUMULATING

    def add(self, block, rows: Sequence) -> None:
        block = np.ravel(np.asarray(block, dtype=self._dtype))
        index = self._rows(block, rows)
        self._check_writable('add')
        np.add.at(self._array, index, block)
        self._state = TensorState.ACCUMULATING

    def zero(self) -> None:
        self._array[:] = 0
        self._state = TensorState.EMPTY

    def finalize(self, mode: str = 'add') -> None:
        """Sum the local copies of all processes (collective)."""
        if mode != 'add':
            raise ValueError(f"Unsupported finalize mode '{mode}'.")
        if self._state is TensorState.FINALIZED:
            logger.debug(f"{self.__class__.__name__} is already finalized.")
            return
        if comm_size(self._comm) > 1:
            self._array = np.array(allreduce_sum(self._comm, self._array), dtype=self._dtype)
        self._state = TensorState.FINALIZED
        logger.info(f"{self.__class__.__name__} of size {len(self)} finalized.")

    apply = finalize
    ### END: Tensor Interface ###

    def _check_writable(self, op: str) -> None:
        if self._state is TensorState.FINALIZED:
            raise TensorStateError(f"Cannot {op} on a finalized {self.__class__.__name__}; "
                                   "call zero() to restart assembly.")
