
from enum import IntEnum
from numbers import Integral
from typing import Dict, List, Optional, Tuple, Union

from .. import logger
from ..errors import IntegralNotFoundError
from ..typing import Kernel

__all__ = ['IntegralType', 'FormIntegrals', 'DEFAULT_ID']

# Subdomain id reserved for the default integral of a type.
DEFAULT_ID = -1


class IntegralType(IntEnum):
    """Mesh entities an integral runs over."""
    CELL = 0
    EXTERIOR_FACET = 1
    INTERIOR_FACET = 2
    VERTEX = 3

    @property
    def measure(self) -> str:
        """Name of the matching UFL measure."""
        return _MEASURES[self]

    @classmethod
    def get(cls, key: Union['IntegralType', int, str]) -> 'IntegralType':
        """Accept an IntegralType, its value, its name ('cell', 'exterior_facet', ...)
        or a measure name ('dx', 'ds', 'dS', 'dP')."""
        if isinstance(key, cls):
            return key
        if isinstance(key, str):
            for itype, measure in _MEASURES.items():
                if key == measure:
                    return itype
            try:
                return cls[key.upper()]
            except KeyError:
                raise ValueError(f"Unknown integral type '{key}'.") from None
        return cls(key)


_MEASURES = {
    IntegralType.CELL: 'dx',
    IntegralType.EXTERIOR_FACET: 'ds',
    IntegralType.INTERIOR_FACET: 'dS',
    IntegralType.VERTEX: 'dP',
}

_IType = Union[IntegralType, int, str]


class FormIntegrals():
    """Integral kernels of a form, kept per integral type.

    Every integral type owns an ordered list of kernels and the subdomain ids
    they were registered with. The default integral of a type (registered
    without a subdomain id) is stored under `DEFAULT_ID` and always sits at
    index 0; the other kernels follow in increasing subdomain id.

    Lookup by marker value picks the kernel registered for that subdomain,
    and falls back to the default integral when the marker value has no
    kernel of its own:
    ```
    integrals = FormIntegrals()
    integrals.register_kernel('cell', k0)
    integrals.register_kernel('cell', k1, 7)
    integrals.kernel_for('cell', 7)   # k1
    integrals.kernel_for('cell', 99)  # k0
    ```
    """
    def __init__(self) -> None:
        self._kernels: Dict[IntegralType, List[Kernel]] = {t: [] for t in IntegralType}
        self._ids: Dict[IntegralType, List[int]] = {t: [] for t in IntegralType}

    @classmethod
    def from_compiled(cls, compiled) -> 'FormIntegrals':
        """Collect the kernels of a `CompiledForm` bundle."""
        integrals = cls()
        for itype, kernels in compiled.integrals.items():
            for subdomain_id, kernel in kernels.items():
                sid = None if subdomain_id in (None, DEFAULT_ID) else subdomain_id
                integrals.register_kernel(itype, kernel, sid)
        return integrals

    def __len__(self) -> int:
        return sum(len(k) for k in self._kernels.values())

    def __repr__(self) -> str:
        counts = ', '.join(f"{t.measure}={len(self._kernels[t])}" for t in IntegralType)
        return f"{self.__class__.__name__}({counts})"

    def register_kernel(self, itype: _IType, kernel: Kernel, subdomain_id: Optional[int] = None) -> int:
        """Register a kernel for an integral type.

        Parameters:
            itype (IntegralType | int | str): The integral type.
            kernel (Kernel): The generated kernel, see `femform.typing.Kernel`.
            subdomain_id (int | None, optional): The subdomain marker value the
                kernel is bound to. `None` registers the default integral.

        Returns:
            int: The index the kernel is stored at.
        """
        itype = IntegralType.get(itype)
        if not callable(kernel):
            raise ValueError(f"Kernel for {itype.name} integral is not callable.")
        if subdomain_id is None:
            subdomain_id = DEFAULT_ID
        elif not isinstance(subdomain_id, Integral) or isinstance(subdomain_id, bool):
            raise TypeError(f"Subdomain id must be an integer, got {subdomain_id!r}.")
        elif subdomain_id < 0:
            raise ValueError(f"Subdomain id must be non-negative, got {subdomain_id}.")
        else:
            subdomain_id = int(subdomain_id)

        ids = self._ids[itype]
        if subdomain_id in ids:
            if subdomain_id == DEFAULT_ID:
                raise ValueError(f"Default {itype.name} integral is already registered.")
            raise ValueError(f"{itype.name} integral for subdomain {subdomain_id} is already registered.")

        pos = 0
        while pos < len(ids) and ids[pos] < subdomain_id:
            pos += 1
        ids.insert(pos, subdomain_id)
        self._kernels[itype].insert(pos, kernel)
        logger.debug(f"(REGISTER) {itype.measure}({subdomain_id}) at index {pos}")

        return pos

    def count(self, itype: _IType) -> int:
        """Number of kernels of the integral type."""
        return len(self._kernels[IntegralType.get(itype)])

    def types(self) -> Tuple[IntegralType, ...]:
        """Integral types with at least one kernel."""
        return tuple(t for t in IntegralType if self._kernels[t])

    def integral_ids(self, itype: _IType) -> Tuple[int, ...]:
        """Subdomain ids of the kernels in storage order, `DEFAULT_ID` first if present."""
        return tuple(self._ids[IntegralType.get(itype)])

    def has_default(self, itype: _IType) -> bool:
        ids = self._ids[IntegralType.get(itype)]
        return len(ids) > 0 and ids[0] == DEFAULT_ID

    def kernel(self, itype: _IType, i: int) -> Kernel:
        """Return the i-th kernel of the integral type."""
        itype = IntegralType.get(itype)
        kernels = self._kernels[itype]
        if not 0 <= i < len(kernels):
            raise IndexError(f"{itype.name} integral index {i} out of range "
                             f"(number of integrals is {len(kernels)}).")
        return kernels[i]

    def subdomain_index(self, itype: _IType, subdomain_id: int) -> Optional[int]:
        """Index of the kernel bound to `subdomain_id`, or None."""
        ids = self._ids[IntegralType.get(itype)]
        if subdomain_id is None or subdomain_id == DEFAULT_ID or subdomain_id not in ids:
            return None
        return ids.index(subdomain_id)

    def kernel_for(self, itype: _IType, marker_value: Optional[int] = None) -> Kernel:
        """Return the kernel for an entity carrying `marker_value`.

        The kernel registered for the subdomain is returned when there is one,
        the default integral otherwise. `None` asks for the default integral.

        Raises:
            IntegralNotFoundError: If neither exists.
        """
        itype = IntegralType.get(itype)
        index = self.subdomain_index(itype, marker_value)
        if index is not None:
            return self._kernels[itype][index]
        if self.has_default(itype):
            return self._kernels[itype][0]
        raise IntegralNotFoundError(
            f"No {itype.name} integral for subdomain {marker_value} "
            "and no default integral."
        )
