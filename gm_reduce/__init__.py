# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.

from .errors import ReductionError, InvalidModulus, InverseNotFound
from .decompose import PrimeDecomposition, decompose, check_decomposition
from .mersenne import generalized_mersenne_reduce, generalized_mersenne_reduce_steps
from .montgomery import montgomery_multiply, montgomery_reduce, montgomery_inverse
from .barrett import barrett_parameter, barrett_reduce
