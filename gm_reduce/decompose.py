# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ==============================================================================================
# Decomposition of a generalized Mersenne modulus.
#
# The reduction supports modulo with the following format:
#   Q = 2**p - k*2**q + 1
# where k >= 0 and q < p.
# Fermat-like modulo (2**m+1) are a special case with k=0. For them the Montgomery
# base R is 2**(m+1), so that R > Q.
# ==============================================================================================

from collections import namedtuple

from .errors import InvalidModulus

# ==============================================================================
# Global variables
# ==============================================================================
WORD_W = 32 # Modulo width supported by the reduction

PrimeDecomposition = namedtuple('PrimeDecomposition',
                                ('exponent_p coefficient_k shift_q modulus_R is_valid'))

INVALID_DECOMPOSITION = PrimeDecomposition(exponent_p=-1, coefficient_k=-1, shift_q=-1,
                                           modulus_R=0, is_valid=False)

# ==============================================================================
# Helpers
# ==============================================================================
def is_power_of_two(n):
    return n > 0 and (n & (n - 1)) == 0

def log2_exact(n):
    '''
    Return e such that n = 2**e. n must be a power of 2.
    '''
    return n.bit_length() - 1

# ==============================================================================
# Decompose
# ==============================================================================
def decompose(x):
    '''
    Decompose x into the form 2**p - k*2**q + 1.
    Returns a PrimeDecomposition. If x cannot be decomposed, the returned value
    has is_valid=False.
    x is assumed to be a prime. Primality is not checked.
    '''
    if (x == 2): # smallest prime
        return PrimeDecomposition(exponent_p=1, coefficient_k=1, shift_q=0,
                                  modulus_R=2, is_valid=True)

    if (x < 3 or x % 2 == 0 or x >= 2**WORD_W):
        return INVALID_DECOMPOSITION

    temp = x - 1
    if is_power_of_two(temp): # 2**m+1
        m = log2_exact(temp)
        return PrimeDecomposition(exponent_p=m, coefficient_k=0, shift_q=1,
                                  modulus_R=1 << (m + 1), is_valid=True)

    # Extract the power of 2 factors
    q = 0
    s = temp
    while ((s & 1) == 0):
        q = q + 1
        s = s >> 1

    # Smallest power of 2 greater than s
    t = 1 << (s - 1).bit_length()
    p = q + log2_exact(t)

    return PrimeDecomposition(exponent_p=p, coefficient_k=t - s, shift_q=q,
                              modulus_R=1 << p, is_valid=True)

# ==============================================================================
# Check
# ==============================================================================
def check_decomposition(Q, params):
    '''
    Check that params is a valid decomposition of Q, and that the shift amounts used
    by the reduction are consistent. Raise InvalidModulus otherwise.
    '''
    if not(params.is_valid):
        raise InvalidModulus("Modulo {:d} cannot be decomposed as 2^p-k*2^q+1".format(Q))

    p = params.exponent_p
    k = params.coefficient_k
    q = params.shift_q
    if (p < 1 or k < 0 or q < 0):
        raise InvalidModulus("Negative decomposition parameters for modulo {:d}: {:s}"
                             .format(Q, decomposition_str(params)))
    if (k != 0 and q >= p):
        raise InvalidModulus("Decomposition of modulo {:d} must have q < p: {:s}"
                             .format(Q, decomposition_str(params)))
    if ((1 << p) - k * (1 << q) + 1 != Q):
        raise InvalidModulus("Modulo {:d} does not match its decomposition {:s}"
                             .format(Q, decomposition_str(params)))
    # The coarse reduction needs 2*Q > 2**p to make progress.
    if (Q <= 1 << (p - 1)):
        raise InvalidModulus("Modulo {:d} is too small for exponent p={:d}".format(Q, p))
    if not(is_power_of_two(params.modulus_R)):
        raise InvalidModulus("R={:d} is not a power of 2".format(params.modulus_R))

def decomposition_str(params):
    if not(params.is_valid):
        return "<invalid>"
    return "2^{:d}-{:d}*2^{:d}+1 (R=2^{:d})".format(params.exponent_p, params.coefficient_k,
                                                     params.shift_q,
                                                     log2_exact(params.modulus_R))
