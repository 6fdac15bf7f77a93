import random
import unittest

import common  # noqa: F401
from common import CRYPTO_MODULI

from gm_reduce.barrett import barrett_parameter, barrett_reduce
from gm_reduce.decompose import decompose
from gm_reduce.errors import InvalidModulus


class BarrettTests(unittest.TestCase):
    def test_parameter(self):
        self.assertEqual(barrett_parameter(3329, 4096), 5039)
        self.assertEqual(barrett_parameter(3329, 4096), 4096**2 // 3329)

    def test_reference_cases(self):
        self.assertEqual(barrett_reduce(412, 999, 3329, barrett_parameter(3329, 4096)), 2121)
        Q = 1073479681
        mu = barrett_parameter(Q, decompose(Q).modulus_R)
        self.assertEqual(barrett_reduce(412223, 412132, Q, mu), (412223 * 412132) % Q)

    def test_random_pairs(self):
        rng = random.Random(5)
        for Q in CRYPTO_MODULI:
            mu = barrett_parameter(Q, decompose(Q).modulus_R)
            cases = [(0, 5), (Q - 1, Q - 1), (1, Q - 1)]
            cases += [(rng.randrange(Q), rng.randrange(Q)) for _ in range(1000)]
            for a, b in cases:
                self.assertEqual(barrett_reduce(a, b, Q, mu), (a * b) % Q, (Q, a, b))

    def test_smallest_prime(self):
        mu = barrett_parameter(2, decompose(2).modulus_R)
        for a in range(2):
            for b in range(2):
                self.assertEqual(barrett_reduce(a, b, 2, mu), a * b)

    def test_invalid_parameter(self):
        # R=0 comes from an invalid decomposition
        with self.assertRaises(InvalidModulus):
            barrett_reduce(1, 1, 3329, barrett_parameter(3329, decompose(4).modulus_R))
        with self.assertRaises(InvalidModulus):
            barrett_reduce(1, 1, 3329, barrett_parameter(3329, 2**13))


if __name__ == "__main__":
    unittest.main()
