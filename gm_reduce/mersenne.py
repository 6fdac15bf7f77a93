# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ==============================================================================================
# Generalized Mersenne modular multiplication, as the HW would do it.
#
# With Q = 2**p - k*2**q + 1, the product v=a*b is reduced by a loop of approximation steps:
# - compute an approximation of the quotient with 2 shifted views of v:
#     t1 = v >> p
#     t2 = v >> (2p-q)
#     Cres = t1 - t2       if Q > 2**p (2**m+1 modulo)
#     Cres = t1 + k*t2     otherwise
#   In HW, this is done with truncations. No multiplication, nor branch is needed,
#   since only an approximation is required.
# - subtract Cres*Q, built as ((Cres * (Q >> q)) << q) + Cres.
#   Note that (Q >> q) << q = Q-1, for q > 0.
# The loop ends when v <= 2*Q. A final correction brings the result in [0,Q[.
#
# The quotient approximation of the 2**m+1 case may exceed the real quotient by 1.
# The residual is then in ]-Q,0[, and the final correction adds Q.
# ==============================================================================================

from .decompose import decompose, check_decomposition

# ==============================================================================
# Coarse reduction step
# ==============================================================================
def coarse_quotient(v, Q, params):
    '''
    Approximation of v // Q.
    '''
    p = params.exponent_p
    t1 = v >> p
    t2 = v >> (2 * p - params.shift_q)
    if (Q > (1 << p)):
        return t1 - t2
    else:
        return t1 + params.coefficient_k * t2

def _check_operands(a, b, Q):
    if not(0 <= a < Q and 0 <= b < Q):
        raise ValueError("Operands must be in [0, {:d}[: a={:d} b={:d}".format(Q, a, b))

# ==============================================================================
# Reduce
# ==============================================================================
def generalized_mersenne_reduce_steps(a, b, Q, params=None):
    '''
    Compute (a*b) mod Q.
    Returns (result, loop_cnt), loop_cnt being the number of coarse reduction
    iterations that were needed.
    params : decomposition of Q. Computed if not given.
    '''
    if (params is None):
        params = decompose(Q)
    check_decomposition(Q, params)
    _check_operands(a, b, Q)

    q = params.shift_q
    q_msb = Q >> q

    residual = a * b
    loop_cnt = 0
    # Coarse reduction
    while (residual > 2 * Q):
        c_res = coarse_quotient(residual, Q, params)
        step2 = (c_res * q_msb) << q
        residual = residual - (step2 + c_res)
        loop_cnt = loop_cnt + 1

    # Final correction
    if (residual < 0):
        residual = residual + Q
    elif (residual >= Q):
        residual = residual - Q

    return residual, loop_cnt

def generalized_mersenne_reduce(a, b, Q, params=None):
    '''
    Compute (a*b) mod Q with the generalized Mersenne reduction.
    '''
    return generalized_mersenne_reduce_steps(a, b, Q, params)[0]
