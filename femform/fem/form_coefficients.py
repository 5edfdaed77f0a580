
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .. import logger
from ..errors import CoefficientNotFoundError

__all__ = ['FormCoefficients']

_Key = Union[int, str]


class FormCoefficients():
    """Coefficients referenced by the generated code of a form.

    Coefficients are stored in the order the generated code declares them.
    The form compiler may reorder or drop coefficients of the user's
    expression, so every slot also records the coefficient's position in the
    original expression.

    Parameters:
        names (Sequence[str], optional): Coefficient names in declared order.
        original_positions (Sequence[int], optional): Original position of each
            coefficient. Must have the same length as `names`.
    """
    def __init__(self, names: Sequence[str] = (), original_positions: Sequence[int] = ()) -> None:
        if len(names) != len(original_positions):
            raise ValueError(f"Got {len(names)} coefficient names but "
                             f"{len(original_positions)} original positions.")
        self._names: List[str] = []
        self._original_positions: List[int] = []
        self._index: Dict[str, int] = {}
        self._functions: List[Any] = []

        for name, pos in zip(names, original_positions):
            self.add(name, pos)

    def __len__(self) -> int:
        return len(self._names)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._names})"

    def size(self) -> int:
        return len(self._names)

    def names(self) -> Tuple[str, ...]:
        return tuple(self._names)

    ### START: Name Table ###
    def add(self, name: str, original_position: int) -> int:
        """Register a coefficient and return its declared index."""
        if name in self._index:
            raise ValueError(f"Coefficient '{name}' is already registered.")
        if original_position < 0:
            raise ValueError(f"Original position of '{name}' must be non-negative, "
                             f"got {original_position}.")
        index = len(self._names)
        self._names.append(name)
        self._original_positions.append(int(original_position))
        self._functions.append(None)
        self._index[name] = index
        logger.debug(f"(COEFFICIENT) {name} -> {index} (original {original_position})")
        return index

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise CoefficientNotFoundError(f"Unknown coefficient '{name}'.") from None

    def name_at(self, i: int) -> str:
        return self._names[self._check_index(i)]

    def original_position(self, i: int) -> int:
        """Position of coefficient i in the original (un-optimised) expression."""
        return self._original_positions[self._check_index(i)]

    def _check_index(self, i: int) -> int:
        if not 0 <= i < len(self._names):
            raise IndexError(f"Coefficient index {i} out of range "
                             f"(number of coefficients is {len(self._names)}).")
        return i

    def _resolve(self, key: _Key) -> int:
        if isinstance(key, str):
            return self.index_of(key)
        return self._check_index(key)
    ### END: Name Table ###

    ### START: Bindings ###
    def set(self, key: _Key, function: Any) -> None:
        """Bind a function to the coefficient given by index or name."""
        i = self._resolve(key)
        if self._functions[i] is not None and self._functions[i] is not function:
            logger.warning(f"Coefficient '{self._names[i]}' is rebound.")
        self._functions[i] = function

    def get(self, key: _Key) -> Optional[Any]:
        """Return the bound function, or None if the coefficient is not set."""
        return self._functions[self._resolve(key)]

    def unbound(self) -> Tuple[int, ...]:
        """Indices of coefficients without a function."""
        return tuple(i for i, f in enumerate(self._functions) if f is None)

    def check(self) -> None:
        """Raise RuntimeError if any coefficient is not bound."""
        missing = self.unbound()
        if missing:
            i = missing[0]
            raise RuntimeError(f"Coefficient number {i} ('{self._names[i]}') has not been set.")

    def assign_from_original(self, functions: Sequence[Any]) -> None:
        """Bind functions given in the order of the original expression.

        Slot `i` receives `functions[self.original_position(i)]`; functions of
        coefficients dropped by the form compiler are ignored.
        """
        for i, pos in enumerate(self._original_positions):
            if pos >= len(functions):
                raise IndexError(f"Coefficient '{self._names[i]}' has original position "
                                 f"{pos}, but only {len(functions)} functions were given.")
            self.set(i, functions[pos])
    ### END: Bindings ###
