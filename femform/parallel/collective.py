
from typing import Any, Optional

from .. import logger
from ..errors import CollectiveError
from ..typing import Communicator

__all__ = [
    'comm_world',
    'comm_self',
    'comm_size',
    'comm_rank',
    'allreduce_sum',
]


def comm_world() -> Communicator:
    """Return `MPI.COMM_WORLD`. Requires mpi4py."""
    from mpi4py import MPI
    return MPI.COMM_WORLD


def comm_self() -> Communicator:
    """Return `MPI.COMM_SELF`. Requires mpi4py."""
    from mpi4py import MPI
    return MPI.COMM_SELF


def comm_size(comm: Optional[Communicator]) -> int:
    """Number of processes in the group, 1 when there is no communicator."""
    return 1 if comm is None else int(comm.Get_size())


def comm_rank(comm: Optional[Communicator]) -> int:
    return 0 if comm is None else int(comm.Get_rank())


def allreduce_sum(comm: Optional[Communicator], value: Any) -> Any:
    """Sum `value` over all processes of `comm`; every process gets the sum.

    This is a blocking collective: all processes of the group must call it,
    otherwise the call deadlocks or fails. With no communicator or a single
    process the value is returned unchanged.

    Raises:
        CollectiveError: If the communicator fails to complete the reduction.
    """
    size = comm_size(comm)
    if size <= 1:
        return value

    logger.debug(f"(ALLREDUCE) rank {comm_rank(comm)}/{size}")
    try:
        # The default operation of mpi4py's object allreduce is MPI.SUM.
        return comm.allreduce(value)
    except Exception as err:
        raise CollectiveError(
            f"Sum reduction failed on rank {comm_rank(comm)} of {size}: {err}"
        ) from err
