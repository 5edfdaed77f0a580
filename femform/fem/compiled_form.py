
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional, Sequence

from ..typing import Kernel
from .form_integrals import IntegralType

__all__ = ['CompiledForm']


@dataclass
class CompiledForm():
    """The bundle a form compiler produces for one weak form.

    Parameters:
        rank (int): Number of arguments (0 functional, 1 linear, 2 bilinear).
        integrals (dict): `{integral type: {subdomain id: kernel}}`, where
            the subdomain id `-1` (or None) marks the default integral.
        coefficient_names (Sequence[str]): Coefficient names in the order
            the kernels expect their values.
        original_coefficient_positions (Sequence[int]): Position of every
            coefficient in the user's original expression.
        coordinate_mapping (Callable | None): Factory of the geometry mapping.
        signature (str): Identifier of the compiled expression.
    """
    rank: int
    integrals: Dict[IntegralType, Dict[int, Kernel]] = field(default_factory=dict)
    coefficient_names: Sequence[str] = ()
    original_coefficient_positions: Sequence[int] = ()
    coordinate_mapping: Optional[Callable[[], object]] = None
    signature: str = ''

    def __post_init__(self):
        if self.rank not in (0, 1, 2):
            raise ValueError(f"Form rank must be 0, 1 or 2, got {self.rank}.")
        if len(self.coefficient_names) != len(self.original_coefficient_positions):
            raise ValueError("coefficient_names and original_coefficient_positions "
                             "must have the same length.")
        self.integrals = {IntegralType.get(k): dict(v) for k, v in self.integrals.items()}

    @property
    def num_coefficients(self) -> int:
        return len(self.coefficient_names)
