#!/usr/bin/env python3
# ==============================================================================================
# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ----------------------------------------------------------------------------------------------
# This code checks that the generalized Mersenne reduction used in HW gives the right
# result, and measures the number of coarse reduction iterations that the HW needs.
#
# Modes:
# - exhaustive : all the (a,b) pairs in [1,Q-1]x[1,Q-1] (or a sub-range) are reduced.
#                The maximum number of iterations is the loop bound of the HW.
# - sample     : random (a,b) pairs in [0,Q-1].
# - find       : find the generalized Mersenne primes of a given width for which
#                the reduction works.
#
# The computation is vectorized with numpy on int64. The product of 2 operands must fit,
# therefore the modulo width is limited to SWEEP_MOD_W_MAX.
# The pairs are split into blocks of a operands, processed in parallel.
# ==============================================================================================

import sys  # manage errors
import argparse  # parse input argument
import concurrent.futures
from collections import namedtuple

import numpy as np
from sympy import isprime

from .decompose import decompose, check_decomposition, decomposition_str
from .errors import ReductionError, InvalidModulus

# ==============================================================================
# Global variables
# ==============================================================================
VERBOSE = False
SWEEP_MOD_W_MAX = 31 # (2**31)**2 < 2**63
SWEEP_BLOCK_SIZE = 2**20 # Number of pairs processed at once

SweepResult = namedtuple('SweepResult', ('pairs loop_max mismatch'))

# ==============================================================================
# Vectorized reduction
# ==============================================================================
def reduce_array(product, Q, params):
    '''
    Array version of the generalized Mersenne reduction.
    product : int64 array of a*b values.
    Returns (residual, loop_cnt) arrays of the same shape.
    '''
    p = params.exponent_p
    k = params.coefficient_k
    q = params.shift_q
    shift1 = p
    shift2 = 2 * p - q
    q_msb = Q >> q
    substract = Q > (1 << p)

    residual = product.astype(np.int64)
    loop_cnt = np.zeros(residual.shape, dtype=np.int64)

    active = residual > 2 * Q
    while active.any():
        r = residual[active]
        if (substract):
            c_res = (r >> shift1) - (r >> shift2)
        else:
            c_res = (r >> shift1) + k * (r >> shift2)
        residual[active] = r - (((c_res * q_msb) << q) + c_res)
        loop_cnt[active] += 1
        active = residual > 2 * Q

    # Final correction
    residual = np.where(residual < 0, residual + Q, residual)
    residual = np.where(residual >= Q, residual - Q, residual)

    return residual, loop_cnt

def _first_mismatch(a, b, residual, Q):
    golden = (a * b) % Q
    bad = np.argwhere(residual != golden)
    if (len(bad) == 0):
        return None
    idx = tuple(bad[0])
    a_v = int(np.broadcast_to(a, residual.shape)[idx])
    b_v = int(np.broadcast_to(b, residual.shape)[idx])
    return (a_v, b_v, int(golden[idx]), int(residual[idx]))

def _get_params(Q, params):
    if (params is None):
        params = decompose(Q)
    check_decomposition(Q, params)
    if (Q.bit_length() > SWEEP_MOD_W_MAX):
        raise InvalidModulus("Sweep supports modulo up to {:d} bits: Q={:d}"
                             .format(SWEEP_MOD_W_MAX, Q))
    return params

# ==============================================================================
# Sweep
# ==============================================================================
def sweep_block(Q, a_lo, a_hi, b_lo, b_hi, params=None):
    '''
    Reduce all the pairs in [a_lo,a_hi[ x [b_lo,b_hi[.
    '''
    params = _get_params(Q, params)
    b = np.arange(b_lo, b_hi, dtype=np.int64)[np.newaxis, :]
    a_step = max(1, SWEEP_BLOCK_SIZE // max(1, b_hi - b_lo))

    pairs = 0
    loop_max = 0
    for lo in range(a_lo, a_hi, a_step):
        a = np.arange(lo, min(lo + a_step, a_hi), dtype=np.int64)[:, np.newaxis]
        residual, loop_cnt = reduce_array(a * b, Q, params)
        pairs = pairs + residual.size
        if (residual.size > 0):
            loop_max = max(loop_max, int(loop_cnt.max()))
        mismatch = _first_mismatch(a, b, residual, Q)
        if (mismatch is not None):
            return SweepResult(pairs=pairs, loop_max=loop_max, mismatch=mismatch)

    return SweepResult(pairs=pairs, loop_max=loop_max, mismatch=None)

def merge_results(results):
    '''
    Merge the results of several blocks. results must be given in increasing order
    of a, so that the first mismatch is the one with the smallest a.
    '''
    pairs = 0
    loop_max = 0
    mismatch = None
    for res in results:
        pairs = pairs + res.pairs
        loop_max = max(loop_max, res.loop_max)
        if (mismatch is None):
            mismatch = res.mismatch
    return SweepResult(pairs=pairs, loop_max=loop_max, mismatch=mismatch)

def exhaustive_sweep(Q, a_max=None, b_max=None, workers=1, params=None):
    '''
    Reduce all the pairs in [1,a_max[ x [1,b_max[. a_max and b_max default to Q.
    With workers > 1, the a range is split into blocks processed in parallel.
    '''
    params = _get_params(Q, params)
    a_max = Q if (a_max is None) else min(a_max, Q)
    b_max = Q if (b_max is None) else min(b_max, Q)

    if (workers <= 1):
        return sweep_block(Q, 1, a_max, 1, b_max, params)

    block = max(1, (a_max - 1 + workers - 1) // workers)
    bounds = [(lo, min(lo + block, a_max)) for lo in range(1, a_max, block)]
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        futs = [executor.submit(sweep_block, Q, lo, hi, 1, b_max, params) for (lo, hi) in bounds]
        results = [fut.result() for fut in futs]
    return merge_results(results)

def sample_sweep(Q, count, seed=None, params=None):
    '''
    Reduce count random pairs in [0,Q[ x [0,Q[.
    '''
    params = _get_params(Q, params)
    rng = np.random.default_rng(seed)
    a = rng.integers(0, Q, size=count, dtype=np.int64)
    b = rng.integers(0, Q, size=count, dtype=np.int64)
    residual, loop_cnt = reduce_array(a * b, Q, params)
    loop_max = int(loop_cnt.max()) if (count > 0) else 0
    return SweepResult(pairs=count, loop_max=loop_max,
                       mismatch=_first_mismatch(a, b, residual, Q))

# ==============================================================================
# Find
# ==============================================================================
def find_moduli(mod_w, k_max):
    '''
    List the primes 2**mod_w - k*2**q + 1, with k odd in [1,k_max] and a
    modulo width of mod_w bits, in increasing order.
    '''
    l = []
    for q in range(1, mod_w):
        for k in range(1, k_max + 1, 2):
            m = 2**mod_w - k * 2**q + 1
            if (m.bit_length() != mod_w):
                break
            if isprime(m):
                l.append(m)
    return sorted(set(l))

# ==============================================================================
# Main
# ==============================================================================
if __name__ == "__main__":

    # ==============================================================================
    # Parse input arguments
    # ==============================================================================
    parser = argparse.ArgumentParser(
        description="Check the generalized Mersenne reduction and measure its loop bound."
    )
    parser.add_argument(
        "-q",
        dest="modulo",
        type=int,
        help="Modulo. Must be of generalized Mersenne type (2^p-k*2^q+1).",
        default=3329,
    )
    parser.add_argument(
        "-a",
        dest="a_max",
        type=int,
        help="Exhaustive mode: a is in [1,a_max[. Default: modulo.",
        default=None,
    )
    parser.add_argument(
        "-b",
        dest="b_max",
        type=int,
        help="Exhaustive mode: b is in [1,b_max[. Default: modulo.",
        default=None,
    )
    parser.add_argument(
        "-s",
        dest="sample",
        type=int,
        help="Sample mode: number of random pairs. If not given, run the exhaustive mode.",
        default=0,
    )
    parser.add_argument(
        "-S",
        dest="seed",
        type=int,
        help="Seed of the sample mode.",
        default=None,
    )
    parser.add_argument(
        "-j",
        dest="workers",
        type=int,
        help="Number of parallel workers.",
        default=1,
    )
    parser.add_argument(
        "-f",
        dest="find",
        type=int,
        help="Find the supported generalized Mersenne primes for the width given in argument of -f.",
        default=0,
    )
    parser.add_argument(
        "-k",
        dest="k_max",
        type=int,
        help="Find mode: maximum value of k.",
        default=15,
    )
    parser.add_argument(
        "-v",
        dest="verbose",
        help="Verbose mode",
        action="store_true",
        default=False,
    )

    args = parser.parse_args()

    VERBOSE = args.verbose

    # ==============================================================================
    # Find
    # ==============================================================================
    if (args.find > 0):
        if (args.find > SWEEP_MOD_W_MAX):
            sys.exit("ERROR> Unsupported width. Must be in [2, {:0d}]".format(SWEEP_MOD_W_MAX))
        sample = args.sample if (args.sample > 0) else 100000
        unsupported = 0
        l = find_moduli(args.find, args.k_max)
        for m in l:
            params = decompose(m)
            res = sample_sweep(m, sample, args.seed, params)
            if (res.mismatch is not None):
                unsupported = unsupported + 1
                print("UNSUPPORTED: Q={:d} = {:s} mismatch={:s}".format(
                        m, decomposition_str(params), str(res.mismatch)))
            elif (VERBOSE):
                print("INFO> Q={:d} = {:s} loop_max={:d}".format(
                        m, decomposition_str(params), res.loop_max))
        print("INFO> {:d}/{:d} supported".format(len(l) - unsupported, len(l)))
        sys.exit(0)

    # ==============================================================================
    # Compute
    # ==============================================================================
    Q = args.modulo
    params = decompose(Q)
    try:
        check_decomposition(Q, params)
        if (VERBOSE):
            print("#######################################################")
            print("Q={:d} = {:s}".format(Q, decomposition_str(params)))
            print("#######################################################")

        if (args.sample > 0):
            res = sample_sweep(Q, args.sample, args.seed, params)
        else:
            res = exhaustive_sweep(Q, args.a_max, args.b_max, args.workers, params)
    except ReductionError as e:
        sys.exit("ERROR> {:s}".format(str(e)))

    if (res.mismatch is not None):
        a, b, exp, seen = res.mismatch
        sys.exit("ERROR> Reduction mismatch: a={:d} b={:d} exp={:d} seen={:d}".format(a, b, exp, seen))
    print("All #{:d} OK".format(res.pairs))
    print("INFO> loop_max={:d}".format(res.loop_max))
