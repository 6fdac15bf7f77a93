#!/usr/bin/env python3
# ==============================================================================================
# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ----------------------------------------------------------------------------------------------
# This script checks the 3 reducers (generalized Mersenne, Montgomery, Barrett) against the
# golden (x*y) mod Q, for a list of moduli.
# The list is given by a csv file (Name,Modulus,X,Y,Enabled). For each modulo, the reference
# operands are checked, followed by the boundary cases.
# A junit report can be produced for the CI.
# ==============================================================================================

import os
import sys  # manage errors
import time
import argparse  # parse input argument
import pathlib  # Get current file path
from collections import namedtuple

import junit_xml as jxml
import pandas

from .decompose import decompose, check_decomposition, decomposition_str
from .mersenne import generalized_mersenne_reduce
from .montgomery import montgomery_multiply
from .barrett import barrett_parameter, barrett_reduce
from .errors import ReductionError

# ==============================================================================
# Global variables
# ==============================================================================
VERBOSE = False
DEFAULT_CSV = os.path.join(pathlib.Path(__file__).parent.absolute(), "data", "moduli.csv")
BOUNDARY_Y = 12345

modulo_t = namedtuple('modulo', ('name modulus x y'))

# ==============================================================================
# Verification
# ==============================================================================
class VerificationResult:
    REDUCERS = ("mersenne", "montgomery", "barrett")

    def __init__(self, x, y, modulus, golden, mersenne, montgomery, barrett):
        self.x = x
        self.y = y
        self.modulus = modulus
        self.golden = golden
        self.mersenne = mersenne
        self.montgomery = montgomery
        self.barrett = barrett

    def reducer_ok(self, name):
        return getattr(self, name) == self.golden

    @property
    def passed(self):
        return all(self.reducer_ok(r) for r in self.REDUCERS)

def run_verification(x, y, Q, params=None):
    '''
    Compute (x*y) mod Q with the 3 reducers.
    Raise ReductionError if Q cannot be used.
    '''
    if (params is None):
        params = decompose(Q)
    check_decomposition(Q, params)

    golden = (x * y) % Q
    mersenne = generalized_mersenne_reduce(x, y, Q, params)
    montgomery = montgomery_multiply(x, y, Q, params)
    mu = barrett_parameter(Q, params.modulus_R)
    barrett = barrett_reduce(x, y, Q, mu)

    return VerificationResult(x, y, Q, golden, mersenne, montgomery, barrett)

def format_verification(res):
    def line(label, name):
        v = getattr(res, name)
        return "{:s}: {:d} {:s}".format(label, v, "OK" if res.reducer_ok(name) else "KO")

    return "\n".join([
        "Q={:d} x={:d} y={:d}".format(res.modulus, res.x, res.y),
        "Golden reference: {:d}".format(res.golden),
        line("Generalized Mersenne", "mersenne"),
        line("Montgomery", "montgomery"),
        line("Barrett", "barrett"),
        ])

def boundary_cases(Q):
    '''
    Boundary operands checked after the reference ones.
    '''
    return [(Q - 1, Q - 1), (0, BOUNDARY_Y % Q)]

# ==============================================================================
# Moduli list
# ==============================================================================
def load_moduli(csv_file, names=None):
    '''
    Read the moduli list. Only enabled entries are kept.
    If names is given, only keep these entries.
    '''
    mod_list = pandas.read_csv(csv_file, comment='#', skip_blank_lines=True)

    if names and not("all" in names):
        mod_list = mod_list[mod_list["Name"].isin(names)]

    mod_list = mod_list[mod_list["Enabled"] == True]
    return [modulo_t(name=str(row["Name"]), modulus=int(row["Modulus"]),
                     x=int(row["X"]), y=int(row["Y"]))
            for _, row in mod_list.iterrows()]

# ==============================================================================
# Report
# ==============================================================================
def verify_modulo(mod):
    '''
    Run the reference and boundary cases of a modulo.
    Returns a list of junit test cases.
    '''
    test_cases = []
    cases = [(mod.x, mod.y)] + boundary_cases(mod.modulus)
    for (x, y) in cases:
        name = "{:s}_x{:d}_y{:d}".format(mod.name, x, y)
        start = time.perf_counter()
        try:
            res = run_verification(x, y, mod.modulus)
            out = format_verification(res)
            err = None if res.passed else "Reduction mismatch"
        except (ReductionError, ValueError) as e:
            out = ""
            err = str(e)
        elapsed = time.perf_counter() - start

        tc = jxml.TestCase(name=name, classname=mod.name, elapsed_sec=elapsed, stdout=out)
        if (err is not None):
            tc.add_failure_info(message=err, output=out)
            print("ERROR> {:s}: {:s}".format(name, err))
        if (VERBOSE or err is not None):
            print(out + "\n")
        test_cases.append(tc)
    return test_cases

# ==============================================================================
# Main
# ==============================================================================
if __name__ == '__main__':

#=====================================================
# Parse input arguments
#=====================================================
    parser = argparse.ArgumentParser(description = "Check the modular reductions against the golden reference.")
    parser.add_argument('-c', dest='csv_file', type=str, help="Moduli list.", default=DEFAULT_CSV)
    parser.add_argument('-n', dest='names',    type=str, help="Only check this modulo name. Can be repeated.",
                              action='append')
    parser.add_argument('-q', dest='modulo',   type=int, help="Check a single modulo, instead of the list.",
                              default=None)
    parser.add_argument('-x', dest='x',        type=int, help="Single modulo: x operand.", default=412223)
    parser.add_argument('-y', dest='y',        type=int, help="Single modulo: y operand.", default=412132)
    parser.add_argument('-r', dest='report_junit', type=str, help="Junit report filename.", default=None)
    parser.add_argument('-v', dest='verbose',  help="Run in verbose mode.",
                              default=False, action="store_true")

    args = parser.parse_args()

    VERBOSE = args.verbose

    if (args.modulo is not None):
        mod_l = [modulo_t(name="custom", modulus=args.modulo, x=args.x, y=args.y)]
    else:
        mod_l = load_moduli(args.csv_file, args.names)

    if (len(mod_l) == 0):
        sys.exit("ERROR> No modulo to check.")

#=====================================================
# Run
#=====================================================
    test_cases = []
    for mod in mod_l:
        if (VERBOSE):
            print("=== {:s} : Q={:d} = {:s} ===".format(mod.name, mod.modulus,
                                                      decomposition_str(decompose(mod.modulus))))
        test_cases.extend(verify_modulo(mod))

    if (args.report_junit is not None):
        pathlib.Path(args.report_junit).parent.mkdir(parents=True, exist_ok=True)
        junit_ts = jxml.TestSuite(name="gm_reduce_verify", test_cases=test_cases)
        with open(args.report_junit, 'w') as rf:
            jxml.to_xml_report_file(rf, [junit_ts])
        print("INFO> Junit report written in {:s}".format(args.report_junit))

    fail_nb = sum(1 for tc in test_cases if tc.is_failure())
    if (fail_nb > 0):
        sys.exit("ERROR> {:d}/{:d} checks failed".format(fail_nb, len(test_cases)))
    print("INFO> All #{:d} checks OK".format(len(test_cases)))
