"""
GBD7Z - Chaotic Stream/Block Envelope Cipher

Pipeline Stages:

Base-3 decomposition: each byte becomes a run of 3^levels identical leaves
Logistic-map chaos generator: key-derived pseudo-random byte sequence
Chained stream cipher: add, rotate and XOR with ciphertext feedback
128-bit block cipher: 7 rounds of key addition, odd multiplication,
chaos-driven byte permutation and key XOR (blocks are independent)

Envelope:

Binary payload of decomposition metadata and cipher bytes
Keyed 64-bit rolling hash for wrong-key and tamper detection
Base-91 printable text encoding: "GBD7Z:<payload>|<hash>&7"

Mathematical Foundations:

Odd multipliers are units modulo 2^128 (extended Euclidean inverse)
Every stage is exactly reversible given the key

Encryption is deterministic: identical key and plaintext give identical
envelopes. This implementation is for educational purposes and is not
cryptographically secure.
"""
from gbd7z.models import (
    Gbd7zParams, Gbd7zKey, RoundKeys, Gbd7zError, InvalidArgumentError,
    FormatError, SecurityError, StateError, bcolors
)
from gbd7z.core import (encrypt, decrypt, encrypt_file, decrypt_file)
