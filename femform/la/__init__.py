"""Assembly targets"""

from .scalar import TensorState, DistributedScalar
from .vector import DistributedVector
from .tensor import Accumulable, create_tensor
