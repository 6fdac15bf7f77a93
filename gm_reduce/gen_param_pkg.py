#!/usr/bin/env python3
# ==============================================================================================
# BSD 3-Clause Clear License
# Copyright © 2025 ZAMA. All rights reserved.
# ----------------------------------------------------------------------------------------------
#  Script used to create a gm_reduce_param_pkg.sv file, with the constants needed by the
#  HW reduction of a modulo.
# ==============================================================================================

import os       # OS functions
import sys      # manage errors
import argparse # parse input argument
import pathlib  # Get current file path
import jinja2

from .decompose import decompose, check_decomposition
from .montgomery import montgomery_params
from .barrett import barrett_parameter
from .sweep import exhaustive_sweep
from .errors import ReductionError, InvalidModulus

TEMPLATE_NAME = "gm_reduce_param_pkg.sv.j2"
TEMPLATE_PATH = os.path.join(pathlib.Path(__file__).parent.absolute(), "templates")

def param_config(Q, name, loop_max=None):
    '''
    Build the template configuration for modulo Q.
    Raise ReductionError if Q is not supported.
    '''
    params = decompose(Q)
    check_decomposition(Q, params)

    try:
        _, r_shift, inv = montgomery_params(Q, params)
    except InvalidModulus:
        r_shift, inv = None, None

    mu = barrett_parameter(Q, params.modulus_R)

    return {"pkg_name"     : name,
            "mod_w"        : Q.bit_length(),
            "mod_q"        : Q,
            "gm_p"         : params.exponent_p,
            "gm_k"         : params.coefficient_k,
            "gm_q"         : params.shift_q,
            "gm_sub"       : 1 if (Q > (1 << params.exponent_p)) else 0,
            "loop_max"     : loop_max,
            "mont_r_w"     : r_shift,
            "mont_inv"     : inv,
            "barrett_mu_w" : mu.bit_length(),
            "barrett_mu"   : mu}

def render_param_pkg(config):
    template_loader = jinja2.FileSystemLoader(searchpath=TEMPLATE_PATH)
    template_env    = jinja2.Environment(loader=template_loader)
    template = template_env.get_template(TEMPLATE_NAME)
    return template.render(config)

#=====================================================
# Main
#=====================================================
if __name__ == '__main__':

#=====================================================
# Parse input arguments
#=====================================================
    parser = argparse.ArgumentParser(description = "Create the reduction parameter package of a modulo.")
    parser.add_argument('-q', dest='modulo',  type=int, help="Modulo.", default=3329)
    parser.add_argument('-n', dest='name',    type=str, help="Package name.", default="gm_reduce_param_pkg")
    parser.add_argument('-o', dest='outfile', type=str, help="Output filename.", required=True)
    parser.add_argument('-f', dest='force',   help="Overwrite if file already exists", action="store_true", default=False)
    parser.add_argument('-x', dest='exhaustive', help="Compute the loop bound with an exhaustive sweep. Only for small modulo.",
                              action="store_true", default=False)
    parser.add_argument('-j', dest='workers', type=int, help="Number of parallel workers of the sweep.", default=1)

    args = parser.parse_args()

#=====================================================
# Create files
#=====================================================
    try:
        loop_max = None
        if (args.exhaustive):
            res = exhaustive_sweep(args.modulo, workers=args.workers)
            if (res.mismatch is not None):
                sys.exit("ERROR> Reduction mismatch for modulo {:d}: {:s}".format(args.modulo, str(res.mismatch)))
            loop_max = res.loop_max
        config = param_config(args.modulo, args.name, loop_max)
    except ReductionError as e:
        sys.exit("ERROR> {:s}".format(str(e)))

    file_path = args.outfile
    if (os.path.exists(file_path) and not(args.force)):
        sys.exit("ERROR> File {:s} already exists".format(file_path))
    else:
        if (os.path.exists(file_path)):
            print("INFO> File {:s} already exists. Overwrite it.".format(file_path))
        with open(file_path, 'w') as fp:
            fp.write(render_param_pkg(config))
