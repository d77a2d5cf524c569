import hmac
from gbd7z.models import (HASH_SEED, MASK64)

# -----------------------------
# Keyed Rolling Hash
# -----------------------------
def rotl64(v: int, r: int) -> int:
    r &= 63
    v &= MASK64
    return ((v << r) | (v >> (64 - r))) & MASK64

def mix_key64(key: bytes, i: int) -> int:
    """Folds every key byte plus the payload index into one 64-bit word."""
    v = HASH_SEED
    for j, b in enumerate(key):
        v = rotl64(v + b + i, j & 63)
    return v

def rolling_hash64(data: bytes, key: bytes) -> int:
    """
    Keyed 64-bit checksum over the binary payload.

    Every byte is folded in with a rotate and a key/index dependent addend,
    then the state goes through the 64-bit finaliser from MurmurHash3.
    This detects wrong keys and accidental or naive tampering; it makes no
    claim of cryptographic collision resistance.

    Args:
        data: Binary payload
        key: Shared secret

    Returns:
        Unsigned 64-bit tag
    """
    h = HASH_SEED
    for i, b in enumerate(data):
        h = (rotl64(h ^ b, 11) + mix_key64(key, i)) & MASK64
    h ^= h >> 33
    h = (h * 0xff51afd7ed558ccd) & MASK64
    h ^= h >> 33
    return h

def hash_hex(data: bytes, key: bytes) -> str:
    return f"{rolling_hash64(data, key):016x}"

def verify_hash(data: bytes, key: bytes, expected_hex: str) -> bool:
    """Constant-time comparison of the recomputed tag against an embedded one."""
    return hmac.compare_digest(hash_hex(data, key), expected_hex.lower())
