
from typing import Optional, Protocol, Sequence, Union, runtime_checkable

from ..errors import UnsupportedOperationError
from ..typing import Communicator, Size, TensorLike
from .scalar import DistributedScalar
from .vector import DistributedVector

__all__ = ['Accumulable', 'create_tensor']


@runtime_checkable
class Accumulable(Protocol):
    """What an assembler needs from the tensor it assembles into.

    `get`, `set` and `add` address a block with one index array per dimension
    (none for scalars); `finalize` reconciles the contributions of all
    processes and must be called by every one of them.
    """
    @property
    def rank(self) -> int: ...
    def resize(self, rank: int, dims: Size) -> None: ...
    def zero(self) -> None: ...
    def get(self, rows: Sequence) -> TensorLike: ...
    def set(self, block, rows: Sequence) -> None: ...
    def add(self, block, rows: Sequence) -> None: ...
    def finalize(self, mode: str = 'add') -> None: ...


_TENSOR_TYPES = {
    0: DistributedScalar,
    1: DistributedVector,
}


def create_tensor(rank: int, comm: Optional[Communicator] = None, dims: Size = (), *,
                  dtype=None) -> Union[DistributedScalar, DistributedVector]:
    """Create the assembly target for a form of the given rank.

    Parameters:
        rank (int): 0 for a scalar, 1 for a vector.
        comm (Communicator | None, optional): The process group.
        dims (Size, optional): Global dimensions, one per rank.

    Raises:
        UnsupportedOperationError: For ranks without a tensor type.
    """
    if rank not in _TENSOR_TYPES:
        raise UnsupportedOperationError(f"No tensor type for rank {rank}.")
    if len(dims) != rank:
        raise ValueError(f"A tensor of rank {rank} needs {rank} dimension(s), got {tuple(dims)}.")
    if rank == 0:
        return DistributedScalar(comm, dtype)
    return DistributedVector(dims[0], comm, dtype)
