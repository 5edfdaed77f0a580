
import numpy as np

from ..typing import TensorLike

__all__ = ['CoordinateMapping']


class CoordinateMapping():
    """Affine map from the reference simplex to a physical cell (experimental).

    The reference simplex of dimension `tdim` has the vertices
    `0, e_1, ..., e_tdim`. A cell is given by its `tdim + 1` vertex
    coordinates (`coordinate_dofs`, shaped (tdim+1, gdim)), and
    `x = x_0 + J X` with `J[:, j] = x_{j+1} - x_0`.
    """
    def __init__(self, tdim: int, gdim: int) -> None:
        if not 1 <= tdim <= gdim:
            raise ValueError(f"Invalid dimensions tdim={tdim}, gdim={gdim}.")
        self.tdim = tdim
        self.gdim = gdim

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(tdim={self.tdim}, gdim={self.gdim})"

    def _check(self, coordinate_dofs: TensorLike) -> TensorLike:
        coordinate_dofs = np.asarray(coordinate_dofs, dtype=np.float64)
        if coordinate_dofs.shape != (self.tdim + 1, self.gdim):
            raise ValueError(f"coordinate_dofs should be shaped {(self.tdim + 1, self.gdim)}, "
                             f"but got {coordinate_dofs.shape}.")
        return coordinate_dofs

    def jacobian(self, coordinate_dofs: TensorLike) -> TensorLike:
        """Jacobian of the map, shaped (gdim, tdim)."""
        x = self._check(coordinate_dofs)
        return (x[1:] - x[0]).T

    def detJ(self, coordinate_dofs: TensorLike) -> float:
        """Determinant of J, or sqrt(det(J^T J)) for manifolds (gdim > tdim)."""
        J = self.jacobian(coordinate_dofs)
        if self.gdim == self.tdim:
            return float(np.linalg.det(J))
        return float(np.sqrt(np.linalg.det(J.T @ J)))

    def push_forward(self, X: TensorLike, coordinate_dofs: TensorLike) -> TensorLike:
        """Map reference points X (NQ, tdim) to physical points (NQ, gdim)."""
        x = self._check(coordinate_dofs)
        X = np.atleast_2d(np.asarray(X, dtype=np.float64))
        return x[0] + X @ (x[1:] - x[0])

    def pull_back(self, x: TensorLike, coordinate_dofs: TensorLike) -> TensorLike:
        """Map physical points x (NQ, gdim) to reference points (NQ, tdim).

        For manifolds the least-squares inverse of J is used.
        """
        J = self.jacobian(coordinate_dofs)
        x0 = self._check(coordinate_dofs)[0]
        x = np.atleast_2d(np.asarray(x, dtype=np.float64))
        K = np.linalg.pinv(J)
        return (x - x0) @ K.T
