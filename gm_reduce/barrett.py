# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ==============================================================================================
# Barrett modular multiplication.
# Reference reducer, used to cross-check the generalized Mersenne reduction.
# ==============================================================================================

from .errors import InvalidModulus

def barrett_parameter(q, R):
    '''
    mu = floor(R^2/q). R is the base of the modulo decomposition.
    '''
    return (R * R) // q

def barrett_reduce(a, b, q, mu):
    '''
    Compute (a*b) mod q, with mu = barrett_parameter(q, R).
    '''
    shift = 2 * q.bit_length()
    # A null mu comes from an invalid decomposition (R=0). A mu above 2^shift/q would
    # overestimate the quotient.
    if (mu <= 0 or mu > (1 << shift) // q):
        raise InvalidModulus("Barrett parameter mu={:d} does not fit modulo {:d}".format(mu, q))

    product = a * b
    quotient = (product * mu) >> shift
    result = product - quotient * q

    # mu is truncated: the quotient is slightly underestimated.
    while (result >= q):
        result = result - q
    return result
