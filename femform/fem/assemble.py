
from typing import Iterator, List, Optional, Tuple

import numpy as np

from .. import logger
from ..options import get_option, scalar_dtype
from ..la import DistributedScalar, DistributedVector, create_tensor
from ..typing import Communicator, Mesh, TensorLike
from .form import Form
from .form_integrals import IntegralType

__all__ = ['pack_coefficients', 'assemble_scalar', 'assemble_vector']

_EMPTY_PERM = np.zeros((0, ), dtype=np.uint8)


def _coefficient_tables(form: Form) -> List[Optional[Tuple[TensorLike, TensorLike]]]:
    if get_option('check_coefficients'):
        form.coefficients.check()
    tables = []
    for i in range(len(form.coefficients)):
        f = form.coefficients.get(i)
        tables.append(None if f is None else (np.asarray(f), f.space.cell_to_dof()))
    return tables


def pack_coefficients(form: Form, cells: TensorLike, /, tables=None) -> TensorLike:
    """Pack the values of the form's coefficients on the given cells.

    Values are ordered coefficient by coefficient in declared order, and
    cell by cell inside one coefficient. An unbound coefficient is an error
    here even when `check_coefficients` is off.

    Parameters:
        form (Form): The form.
        cells (TensorLike): One cell, or both cells of an interior facet.

    Returns:
        TensorLike: The flat coefficient array `w` of the kernels.
    """
    if tables is None:
        tables = _coefficient_tables(form)
    cells = np.atleast_1d(cells)
    if len(tables) == 0:
        return np.zeros((0, ), dtype=scalar_dtype())
    w = []
    for i, table in enumerate(tables):
        if table is None:
            name = form.coefficients.name_at(i)
            raise RuntimeError(f"Coefficient number {i} ('{name}') has not been set.")
        values, c2d = table
        w.append(values[c2d[cells]].reshape(-1))
    return np.concatenate(w)


def _entities(mesh: Mesh, itype: IntegralType) -> Tuple[TensorLike, TensorLike, TensorLike]:
    """Entities of a type with the cell(s) they are integrated from and their
    local index in those cells."""
    cell = mesh.entity('cell')
    NC = cell.shape[0]

    if itype == IntegralType.CELL:
        index = np.arange(NC)
        return index, index[:, None], np.zeros((NC, 0), dtype=np.int32)

    if itype == IntegralType.VERTEX:
        NN = mesh.entity('node').shape[0]
        NVC = cell.shape[1]
        first_cell = np.full(NN, NC, dtype=np.int64)
        np.minimum.at(first_cell, cell.reshape(-1), np.repeat(np.arange(NC), NVC))
        index, = np.nonzero(first_cell < NC)
        owner = first_cell[index]
        local = np.argmax(cell[owner] == index[:, None], axis=1)
        return index, owner[:, None], local[:, None]

    face2cell = mesh.face_to_cell()
    is_bd = face2cell[:, 0] == face2cell[:, 1]
    if itype == IntegralType.EXTERIOR_FACET:
        index, = np.nonzero(is_bd)
        return index, face2cell[index, 0:1], face2cell[index, 2:3]

    index, = np.nonzero(~is_bd)
    return index, face2cell[index, 0:2], face2cell[index, 2:4]


def _local_contributions(form: Form) -> Iterator[Tuple[TensorLike, TensorLike]]:
    """Evaluate the kernels on every entity of the form's mesh.

    Yields the local element tensor and the cell(s) it was computed on.
    """
    mesh = form.mesh
    if mesh is None:
        raise RuntimeError(f"{form!r} has no mesh; call set_mesh() first.")

    integrals = form.integrals
    tables = _coefficient_tables(form)
    node = mesh.entity('node')
    cell = mesh.entity('cell')
    dtype = scalar_dtype()
    size = form.max_element_tensor_size()

    for itype in integrals.types():
        index, cells, local = _entities(mesh, itype)
        ncells = cells.shape[1]
        A = np.zeros((size * ncells**form.rank, ), dtype=dtype)
        logger.debug(f"(ASSEMBLY) {itype.measure} over {index.shape[0]} entities")

        for entity, ecells, elocal in zip(index, cells, local):
            kernel = integrals.kernel_for(itype, form.subdomain_id(itype, entity))
            w = pack_coefficients(form, ecells, tables)
            coordinate_dofs = node[cell[ecells].reshape(-1)]
            A[:] = 0
            kernel(A, w, coordinate_dofs, elocal.astype(np.int32), _EMPTY_PERM)
            yield A, ecells


def assemble_scalar(form: Form, comm: Optional[Communicator] = None) -> DistributedScalar:
    """Assemble a functional over the local mesh and sum over `comm`.

    Each process passes its own mesh partition; entities must not be shared
    between processes. Collective when `comm` has more than one process.
    """
    if form.rank != 0:
        raise ValueError(f"assemble_scalar needs a form of rank 0, got rank {form.rank}.")
    M = create_tensor(0, comm)
    for A, _ in _local_contributions(form):
        M.add(A[0])
    M.finalize()
    return M


def assemble_vector(form: Form, comm: Optional[Communicator] = None) -> DistributedVector:
    """Assemble a linear form into a vector replicated on every process of `comm`."""
    if form.rank != 1:
        raise ValueError(f"assemble_vector needs a form of rank 1, got rank {form.rank}.")
    space = form.function_space(0)
    cell2dof = space.cell_to_dof()
    b = create_tensor(1, comm, (space.number_of_global_dofs(), ))
    for A, ecells in _local_contributions(form):
        b.add(A, [cell2dof[ecells].reshape(-1)])
    b.finalize()
    return b
