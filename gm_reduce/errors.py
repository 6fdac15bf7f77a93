# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.

class ReductionError(Exception):
    pass

class InvalidModulus(ReductionError, ValueError):
    """
    The modulus cannot be written as 2^p-k*2^q+1, or the parameters given with it
    are not consistent with it.
    """
    pass

class InverseNotFound(ReductionError, ArithmeticError):
    """
    No value inv exists such that inv*q = R-1 mod R. Happens with an even modulus.
    """
    pass
