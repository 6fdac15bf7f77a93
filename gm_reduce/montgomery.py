# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ==============================================================================================
# Montgomery modular multiplication.
# Reference reducer, used to cross-check the generalized Mersenne reduction.
# The Montgomery base R is the one of the modulo decomposition.
# ==============================================================================================

from .decompose import decompose, check_decomposition, log2_exact
from .errors import InvalidModulus, InverseNotFound

# ==============================================================================
# Inverse
# ==============================================================================
def extended_gcd(a, b):
    '''
    Return (gcd, x, y) such that a*x + b*y = gcd.
    '''
    x0, x1 = 1, 0
    y0, y1 = 0, 1
    while (b != 0):
        quo = a // b
        a, b = b, a - quo * b
        x0, x1 = x1, x0 - quo * x1
        y0, y1 = y1, y0 - quo * y1
    return a, x0, y0

def montgomery_inverse(q, R):
    '''
    Return inv in [1,R[ such that inv*q = R-1 mod R, i.e. inv = -q^-1 mod R.
    '''
    gcd, q_inv, _ = extended_gcd(q, R)
    if (gcd != 1):
        raise InverseNotFound("Montgomery inverse not found for q={:d} R={:d}".format(q, R))
    return (-q_inv) % R

def montgomery_inverse_bruteforce(q, R):
    '''
    Same as montgomery_inverse, by scanning [1,R[.
    O(R): only usable for small R.
    '''
    for i in range(1, R):
        if ((i * q) % R == R - 1):
            return i
    raise InverseNotFound("Montgomery inverse not found for q={:d} R={:d}".format(q, R))

# ==============================================================================
# Reduce
# ==============================================================================
def montgomery_reduce(t, q, inv, r_shift):
    '''
    Return t*R^-1 mod q, with R = 2**r_shift.
    t must be < q*R. The result is in [0,q[.
    '''
    mask = (1 << r_shift) - 1
    m = ((t & mask) * inv) & mask
    y = (t + m * q) >> r_shift
    return y - q if (y >= q) else y

def montgomery_params(q, params=None):
    '''
    Return (R, r_shift, inv) for modulo q.
    Raise InvalidModulus if q cannot be used with Montgomery.
    '''
    if (params is None):
        params = decompose(q)
    check_decomposition(q, params)

    R = params.modulus_R
    if (q % 2 == 0):
        raise InvalidModulus("Montgomery needs an odd modulo: q={:d}".format(q))
    if (R <= q):
        raise InvalidModulus("Montgomery needs R > q: q={:d} R={:d}".format(q, R))

    return R, log2_exact(R), montgomery_inverse(q, R)

def montgomery_multiply(a, b, q, params=None):
    '''
    Compute (a*b) mod q with Montgomery.
    '''
    R, r_shift, inv = montgomery_params(q, params)

    # Convert into Montgomery domain
    a_m = (a * R) % q
    b_m = (b * R) % q

    # a_m*b_m carries R^2: the first reduction gives (a*b)*R, the second one
    # goes back to the normal domain.
    res = montgomery_reduce(a_m * b_m, q, inv, r_shift)
    res = montgomery_reduce(res, q, inv, r_shift)
    return res % q
