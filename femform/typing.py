
from typing import (
    Tuple, Union, Callable, Mapping, Any, Protocol, runtime_checkable
)

import numpy as np


### Types

TensorLike = np.ndarray
Index = Union[int, slice, Tuple[int, ...], TensorLike]
Size = Tuple[int, ...]

# Subdomain markers: one integer per mesh entity, or a sparse entity -> id map.
Markers = Union[TensorLike, Mapping[int, int]]

# kernel(A, w, coordinate_dofs, entity_local_index, permutation) -> None
#   A                  : flat local element tensor, written in place (row-major)
#   w                  : packed coefficient values
#   coordinate_dofs    : (nverts, gdim) vertex coordinates of the cell(s)
#   entity_local_index : local facet or vertex numbers, empty for cells
#   permutation        : orientation data, may be empty
Kernel = Callable[[TensorLike, TensorLike, TensorLike, TensorLike, TensorLike], None]


@runtime_checkable
class Communicator(Protocol):
    """What femform needs from a process group (an `mpi4py.MPI.Comm` fits)."""
    def Get_size(self) -> int: ...
    def Get_rank(self) -> int: ...
    def allreduce(self, sendobj: Any, op: Any = ...) -> Any: ...


class Mesh(Protocol):
    def entity(self, etype: Union[int, str], index: Any = None) -> TensorLike: ...
    def count(self, etype: Union[int, str]) -> int: ...
    def face_to_cell(self) -> TensorLike: ...


class FunctionSpace(Protocol):
    mesh: Any
    def number_of_local_dofs(self, doftype: str = 'cell') -> int: ...
    def number_of_global_dofs(self) -> int: ...
    def cell_to_dof(self, index: Index = ...) -> TensorLike: ...
