import random
import unittest

import common  # noqa: F401
from common import CRYPTO_MODULI

from gm_reduce.decompose import decompose, PrimeDecomposition
from gm_reduce.errors import InvalidModulus, InverseNotFound
from gm_reduce.montgomery import (extended_gcd, montgomery_inverse, montgomery_inverse_bruteforce,
                                  montgomery_reduce, montgomery_params, montgomery_multiply)


class MontgomeryInverseTests(unittest.TestCase):
    def test_extended_gcd(self):
        for a, b in ((240, 46), (3329, 4096), (17, 5), (12, 18)):
            g, x, y = extended_gcd(a, b)
            self.assertEqual(a * x + b * y, g)
            self.assertEqual(b % g, 0)
            self.assertEqual(a % g, 0)

    def test_inverse_congruence(self):
        for Q in CRYPTO_MODULI:
            R = decompose(Q).modulus_R
            inv = montgomery_inverse(Q, R)
            self.assertTrue(1 <= inv < R)
            self.assertEqual((inv * Q) % R, R - 1)

    def test_inverse_matches_bruteforce(self):
        for Q in (3329, 7681, 12289, 65537):
            R = decompose(Q).modulus_R
            self.assertEqual(montgomery_inverse(Q, R), montgomery_inverse_bruteforce(Q, R))

    def test_inverse_not_found(self):
        with self.assertRaises(InverseNotFound):
            montgomery_inverse(4, 16)
        with self.assertRaises(InverseNotFound):
            montgomery_inverse_bruteforce(4, 16)


class MontgomeryMultiplyTests(unittest.TestCase):
    def test_reduce_leaves_domain(self):
        Q = 3329
        R, r_shift, inv = montgomery_params(Q)
        self.assertEqual((R, r_shift), (4096, 12))
        for a in (0, 1, 412, Q - 1):
            self.assertEqual(montgomery_reduce((a * R) % Q, Q, inv, r_shift), a)

    def test_reference_cases(self):
        self.assertEqual(montgomery_multiply(412, 999, 3329), 2121)
        Q = 1073479681
        self.assertEqual(montgomery_multiply(412223, 412132, Q), (412223 * 412132) % Q)

    def test_random_pairs(self):
        rng = random.Random(11)
        for Q in CRYPTO_MODULI:
            params = decompose(Q)
            cases = [(0, 5), (Q - 1, Q - 1), (1, Q - 1)]
            cases += [(rng.randrange(Q), rng.randrange(Q)) for _ in range(1000)]
            for a, b in cases:
                self.assertEqual(montgomery_multiply(a, b, Q, params), (a * b) % Q, (Q, a, b))

    def test_fermat_uses_wide_base(self):
        R, r_shift, _ = montgomery_params(65537)
        self.assertEqual((R, r_shift), (2**17, 17))
        self.assertEqual(montgomery_multiply(2**15, 2**15, 65537), 2**30 % 65537)

    def test_rejected_moduli(self):
        with self.assertRaises(InvalidModulus):
            montgomery_multiply(1, 1, 2)
        with self.assertRaises(InvalidModulus):
            montgomery_multiply(1, 1, 4)
        # Consistent decomposition, but R does not exceed the modulo
        with self.assertRaises(InvalidModulus):
            montgomery_multiply(1, 1, 65537, PrimeDecomposition(16, 0, 1, 2**16, True))


if __name__ == "__main__":
    unittest.main()
