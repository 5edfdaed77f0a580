"""The FEM Module"""

### Forms
from .form_integrals import IntegralType, FormIntegrals, DEFAULT_ID
from .form_coefficients import FormCoefficients
from .compiled_form import CompiledForm
from .coordinate_mapping import CoordinateMapping
from .form import Form

### Assembly
from .assemble import pack_coefficients, assemble_scalar, assemble_vector
