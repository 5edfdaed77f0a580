
from typing import (
    Any, Callable, Dict, Mapping, Optional, Sequence, Tuple, Union
)
from collections.abc import Mapping as _MappingABC

from .. import logger
from ..errors import FormConstructionError
from ..typing import FunctionSpace as _FS, Markers, Mesh
from .compiled_form import CompiledForm
from .coordinate_mapping import CoordinateMapping
from .form_coefficients import FormCoefficients
from .form_integrals import FormIntegrals, IntegralType

__all__ = ['Form']

_IType = Union[IntegralType, int, str]


class Form():
    """A variational form: generated integral kernels bound to their argument
    spaces, mesh, coefficients and subdomain markers.

    ## Argument ordering

    Argument spaces are numbered from the leading dimension of the assembled
    tensor: space 0 is the test space and space 1 the trial space. For a
    bilinear form a(u, v) the spaces are therefore given as `(V_v, V_u)`.

    ## Ownership

    Spaces, mesh and markers belong to the caller; the form only keeps
    references. The integrals and the coefficient registry are owned by the
    form and are exposed through `integrals` and `coefficients`.

    Parameters:
        compiled (CompiledForm): The generated-kernel bundle.
        function_spaces (Sequence[FunctionSpace], optional): Argument spaces,
            as many as `compiled.rank`.
        mesh (Mesh | None, optional): The mesh. Needed for functionals, which
            have no space to take it from; otherwise it must be the spaces' mesh.

    Raises:
        FormConstructionError: If the rank and the number of spaces differ,
            the spaces live on different meshes, or `mesh` is not their mesh.
    """
    _spaces: Tuple[_FS, ...]
    _mesh: Optional[Mesh]
    _domains: Dict[IntegralType, Optional[Markers]]

    def __init__(self, compiled: CompiledForm, function_spaces: Sequence[_FS] = (), *,
                 mesh: Optional[Mesh] = None):
        function_spaces = tuple(function_spaces)
        if compiled.rank != len(function_spaces):
            raise FormConstructionError(
                f"Form of rank {compiled.rank} needs {compiled.rank} argument "
                f"space(s), but {len(function_spaces)} were given."
            )
        self._compiled = compiled
        self._spaces = function_spaces

        self._mesh = None
        if function_spaces:
            self._mesh = function_spaces[0].mesh
            for i, space in enumerate(function_spaces[1:], start=1):
                if space.mesh is not self._mesh:
                    raise FormConstructionError(
                        f"Incompatible mesh: argument space {i} is not defined "
                        "on the mesh of argument space 0."
                    )
        if mesh is not None:
            self.set_mesh(mesh)

        self._integrals = FormIntegrals.from_compiled(compiled)
        self._coefficients = FormCoefficients(compiled.coefficient_names,
                                              compiled.original_coefficient_positions)
        self._domains = {t: None for t in IntegralType}

        self._coord_mapping: Optional[CoordinateMapping] = None
        if compiled.coordinate_mapping is not None:
            self._coord_mapping = compiled.coordinate_mapping()

        self._coefficient_index_map: Optional[Callable[[str], int]] = None
        self._coefficient_name_map: Optional[Callable[[int], str]] = None

        logger.info(f"Form of rank {self.rank} created with {len(self._integrals)} "
                    f"integral(s) and {len(self._coefficients)} coefficient(s).")

    def __repr__(self) -> str:
        sig = f", '{self._compiled.signature}'" if self._compiled.signature else ''
        return f"{self.__class__.__name__}(rank={self.rank}{sig})"

    ### START: Arguments and Mesh ###
    @property
    def rank(self) -> int:
        """Rank of the form (bilinear = 2, linear = 1, functional = 0)."""
        return len(self._spaces)

    @property
    def function_spaces(self) -> Tuple[_FS, ...]:
        return self._spaces

    def function_space(self, i: int, /) -> _FS:
        """Return the argument space i (0 is the test space, 1 the trial space)."""
        if not 0 <= i < len(self._spaces):
            raise IndexError(f"Form of rank {self.rank} has no argument space {i}.")
        return self._spaces[i]

    @property
    def mesh(self) -> Optional[Mesh]:
        return self._mesh

    def set_mesh(self, mesh: Mesh, /) -> None:
        """Set the mesh, necessary for functionals when there are no argument spaces."""
        if self._spaces and mesh is not self._spaces[0].mesh:
            raise FormConstructionError(
                "The mesh of a form with argument spaces must be the mesh of its spaces."
            )
        self._mesh = mesh

    def max_element_tensor_size(self) -> int:
        """Number of values in a local element tensor.

        If argument space i has at most N_i dofs per cell, this is 1 for a
        functional, N_0 for a linear form and N_0*N_1 for a bilinear form.
        """
        num_entries = 1
        for space in self._spaces:
            num_entries *= int(space.number_of_local_dofs())
        return num_entries

    @property
    def coordinate_mapping(self) -> Optional[CoordinateMapping]:
        """Geometry mapping of the form, if the bundle provides one (experimental)."""
        return self._coord_mapping

    @property
    def signature(self) -> str:
        return self._compiled.signature
    ### END: Arguments and Mesh ###

    ### START: Coefficients ###
    @property
    def coefficients(self) -> FormCoefficients:
        return self._coefficients

    @property
    def integrals(self) -> FormIntegrals:
        return self._integrals

    def set_coefficient_index_map(self, index_map: Optional[Callable[[str], int]], /) -> None:
        """Install a name -> index lookup that takes precedence over the registry."""
        self._coefficient_index_map = index_map

    def set_coefficient_name_map(self, name_map: Optional[Callable[[int], str]], /) -> None:
        """Install an index -> name lookup that takes precedence over the registry."""
        self._coefficient_name_map = name_map

    def get_coefficient_index(self, name: str, /) -> int:
        """Get the coefficient index for a named coefficient."""
        if self._coefficient_index_map is not None:
            return self._coefficient_index_map(name)
        return self._coefficients.index_of(name)

    def get_coefficient_name(self, i: int, /) -> str:
        """Get the coefficient name for a given coefficient index."""
        if self._coefficient_name_map is not None:
            return self._coefficient_name_map(i)
        return self._coefficients.name_at(i)

    def original_coefficient_position(self, i: int, /) -> int:
        """Position of coefficient i in the coefficients of the original expression."""
        return self._coefficients.original_position(i)

    def set_coefficient(self, key: Union[int, str], function: Any, /) -> None:
        """Bind a function to a coefficient given by index or name."""
        if isinstance(key, str):
            key = self.get_coefficient_index(key)
        self._coefficients.set(key, function)

    def set_coefficients(self, coefficients: Mapping[Union[int, str], Any], /) -> None:
        for key, function in coefficients.items():
            self.set_coefficient(key, function)
    ### END: Coefficients ###

    ### START: Domain Markers ###
    def domains(self, itype: _IType, /) -> Optional[Markers]:
        """Return the markers of an integral type (None if not specified)."""
        return self._domains[IntegralType.get(itype)]

    def set_domains(self, itype: _IType, markers: Optional[Markers], /) -> None:
        """Attach subdomain markers to an integral type.

        Marker values are not checked here. A value without a matching
        integral is reported when the form is assembled.
        """
        itype = IntegralType.get(itype)
        if self._domains[itype] is not None and markers is not None:
            logger.warning(f"{itype.name} domains of {self!r} are replaced.")
        self._domains[itype] = markers

    def subdomain_id(self, itype: _IType, entity: int, /) -> Optional[int]:
        """Marker value of one entity, or None when it carries no marker."""
        markers = self._domains[IntegralType.get(itype)]
        if markers is None:
            return None
        if isinstance(markers, _MappingABC):
            value = markers.get(int(entity))
            return None if value is None else int(value)
        return int(markers[entity])

    @property
    def cell_domains(self) -> Optional[Markers]:
        return self.domains(IntegralType.CELL)

    @cell_domains.setter
    def cell_domains(self, markers: Optional[Markers]):
        self.set_domains(IntegralType.CELL, markers)

    @property
    def exterior_facet_domains(self) -> Optional[Markers]:
        return self.domains(IntegralType.EXTERIOR_FACET)

    @exterior_facet_domains.setter
    def exterior_facet_domains(self, markers: Optional[Markers]):
        self.set_domains(IntegralType.EXTERIOR_FACET, markers)

    @property
    def interior_facet_domains(self) -> Optional[Markers]:
        return self.domains(IntegralType.INTERIOR_FACET)

    @interior_facet_domains.setter
    def interior_facet_domains(self, markers: Optional[Markers]):
        self.set_domains(IntegralType.INTERIOR_FACET, markers)

    @property
    def vertex_domains(self) -> Optional[Markers]:
        return self.domains(IntegralType.VERTEX)

    @vertex_domains.setter
    def vertex_domains(self, markers: Optional[Markers]):
        self.set_domains(IntegralType.VERTEX, markers)
    ### END: Domain Markers ###
