import numpy as np


class TriangleMesh():
    """A bare triangle mesh with the entity queries the assemblers use."""
    localEdge = np.array([(1, 2), (2, 0), (0, 1)], dtype=np.int64)

    def __init__(self, node, cell):
        self.node = np.asarray(node, dtype=np.float64)
        self.cell = np.asarray(cell, dtype=np.int64)
        NC = self.cell.shape[0]
        NEC = self.localEdge.shape[0]

        totalEdge = np.sort(self.cell[:, self.localEdge].reshape(-1, 2), axis=1)
        _, i0 = np.unique(totalEdge, return_index=True, axis=0)
        _, i1 = np.unique(totalEdge[::-1], return_index=True, axis=0)
        i1 = NEC*NC - 1 - i1

        self.face2cell = np.stack([i0 // NEC, i1 // NEC, i0 % NEC, i1 % NEC], axis=1)
        self.edge = totalEdge[i0]

    def entity(self, etype, index=None):
        entity = {'node': self.node, 'cell': self.cell,
                  'edge': self.edge, 'face': self.edge}[etype]
        return entity if index is None else entity[index]

    def count(self, etype):
        return self.entity(etype).shape[0]

    def face_to_cell(self):
        return self.face2cell


class LagrangeSpace():
    """Linear Lagrange space: one dof per mesh node."""
    def __init__(self, mesh):
        self.mesh = mesh

    def number_of_local_dofs(self, doftype='cell'):
        return self.mesh.cell.shape[1]

    def number_of_global_dofs(self):
        return self.mesh.node.shape[0]

    def cell_to_dof(self, index=slice(None)):
        return self.mesh.cell[index]


class SizedSpace():
    """A space that only knows its mesh and its number of dofs per cell."""
    def __init__(self, mesh, ldof):
        self.mesh = mesh
        self.ldof = ldof

    def number_of_local_dofs(self, doftype='cell'):
        return self.ldof


class Function(np.ndarray):
    def __new__(cls, space, array):
        obj = np.asarray(array, dtype=np.float64).view(cls)
        obj.space = space
        return obj

    def __array_finalize__(self, obj):
        self.space = getattr(obj, 'space', None)


def triangle_area(x):
    return 0.5*abs((x[1, 0] - x[0, 0])*(x[2, 1] - x[0, 1]) - (x[2, 0] - x[0, 0])*(x[1, 1] - x[0, 1]))


def area_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    A[0] += triangle_area(coordinate_dofs)


def scaled_area_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    A[0] += 10.0*triangle_area(coordinate_dofs)


def mean_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    # exact integral of a linear function: area * mean of the vertex values
    A[0] += triangle_area(coordinate_dofs)*np.mean(w[:3])


def boundary_length_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    e = TriangleMesh.localEdge[entity_local_index[0]]
    A[0] += np.linalg.norm(coordinate_dofs[e[1]] - coordinate_dofs[e[0]])


def interior_length_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    # coordinates of both cells are stacked, the first three belong to cell 0
    e = TriangleMesh.localEdge[entity_local_index[0]]
    A[0] += np.linalg.norm(coordinate_dofs[e[1]] - coordinate_dofs[e[0]])


def vertex_count_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    A[0] += 1.0


def load_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    A[:] += triangle_area(coordinate_dofs)/3.0


def ones_kernel(A, w, coordinate_dofs, entity_local_index, permutation):
    A[:] += 1.0


def shifted_kernel(kernel, shift=100.0):
    def shifted(A, w, coordinate_dofs, entity_local_index, permutation):
        kernel(A, w, coordinate_dofs, entity_local_index, permutation)
        A[0] += shift
    return shifted


mesh_data = [
    {
        "node": np.array([[0, 0], [1, 0], [1, 1], [0, 1]], dtype=np.float64),
        "cell": np.array([[1, 2, 0], [3, 0, 2]], dtype=np.int64),
        "area": 1.0,
        "perimeter": 4.0,
        "interior": np.sqrt(2.0),
        "NN": 4,
    },
    {
        "node": np.array([[0, 0], [2, 0], [0, 1]], dtype=np.float64),
        "cell": np.array([[0, 1, 2]], dtype=np.int64),
        "area": 1.0,
        "perimeter": 3.0 + np.sqrt(5.0),
        "interior": 0.0,
        "NN": 3,
    },
]
