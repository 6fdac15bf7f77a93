import unittest

import common  # noqa: F401
from common import CRYPTO_MODULI

from gm_reduce.decompose import (PrimeDecomposition, decompose, check_decomposition,
                                 decomposition_str, is_power_of_two, WORD_W)
from gm_reduce.errors import InvalidModulus


class DecomposeTests(unittest.TestCase):
    def test_smallest_prime(self):
        self.assertEqual(decompose(2), PrimeDecomposition(1, 1, 0, 2, True))

    def test_crypto_moduli(self):
        expected = {
            3329:       (12, 3, 8),
            7681:       (13, 1, 9),
            12289:      (14, 1, 12),
            8380417:    (23, 1, 13),
            8404993:    (24, 511, 14),
            1073479681: (30, 1, 18),
        }
        for Q, (p, k, q) in expected.items():
            params = decompose(Q)
            self.assertEqual(params, PrimeDecomposition(p, k, q, 2**p, True), Q)

    def test_fermat_like(self):
        self.assertEqual(decompose(65537), PrimeDecomposition(16, 0, 1, 2**17, True))
        self.assertEqual(decompose(257), PrimeDecomposition(8, 0, 1, 2**9, True))
        self.assertEqual(decompose(3), PrimeDecomposition(1, 0, 1, 4, True))

    def test_form_holds_for_odd_values(self):
        for x in range(3, 5001, 2):
            params = decompose(x)
            self.assertTrue(params.is_valid)
            p, k, q, R = params.exponent_p, params.coefficient_k, params.shift_q, params.modulus_R
            self.assertEqual(2**p - k * 2**q + 1, x)
            self.assertGreater(R, x)
            self.assertTrue(is_power_of_two(R))
            check_decomposition(x, params)

    def test_invalid_inputs(self):
        for x in (0, 1, 4, 12, 3328, 2**WORD_W + 1, 2**WORD_W + 15):
            self.assertFalse(decompose(x).is_valid, x)

    def test_deterministic(self):
        for Q in CRYPTO_MODULI:
            self.assertEqual(decompose(Q), decompose(Q))

    def test_immutable(self):
        params = decompose(3329)
        with self.assertRaises(AttributeError):
            params.exponent_p = 3

    def test_check_rejects_inconsistent(self):
        params = decompose(3329)
        with self.assertRaises(InvalidModulus):
            check_decomposition(3329, decompose(4))
        with self.assertRaises(InvalidModulus):
            check_decomposition(3329, params._replace(coefficient_k=1))
        with self.assertRaises(InvalidModulus):
            check_decomposition(7681, params)
        with self.assertRaises(InvalidModulus):
            check_decomposition(3329, params._replace(shift_q=12))
        # 5 = 2^4 - 3*2^2 + 1, but 2*5 < 2^4: the coarse loop would not progress.
        with self.assertRaises(InvalidModulus):
            check_decomposition(5, PrimeDecomposition(4, 3, 2, 16, True))
        with self.assertRaises(InvalidModulus):
            check_decomposition(3329, params._replace(modulus_R=3000))

    def test_str(self):
        self.assertEqual(decomposition_str(decompose(3329)), "2^12-3*2^8+1 (R=2^12)")
        self.assertEqual(decomposition_str(decompose(4)), "<invalid>")


if __name__ == "__main__":
    unittest.main()
