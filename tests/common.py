import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Moduli used by lattice based cryptography
# Kyber:3329/7681 NewHope:12289 NTRU:65537 Dilithium:8380417 qTESLA:8404993 HPS:1073479681
CRYPTO_MODULI = (3329, 7681, 12289, 65537, 8380417, 8404993, 1073479681)
