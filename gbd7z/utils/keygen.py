from gbd7z.models import (Gbd7zParams, Gbd7zKey, RoundKeys, InvalidArgumentError)
from gbd7z.utils.chaos import (logistic_chaos)

# -----------------------------
# Modular inverse helpers
# -----------------------------
def modinv(a: int, m: int) -> int:
    """
    Compute modular multiplicative inverse using Extended Euclidean Algorithm.

    Finds x such that a*x ≡ 1 (mod m). The block layer only ever inverts odd
    multipliers modulo a power of two, where the inverse always exists.

    Args:
        a: Element to invert
        m: Modulus

    Returns:
        Modular inverse of a

    Raises:
        ValueError: If gcd(a,m) != 1 (no inverse exists)
    """
    def egcd(aa: int, bb: int):
        if aa == 0:
            return bb, 0, 1
        g, x1, y1 = egcd(bb % aa, aa)
        return g, y1 - (bb // aa) * x1, x1
    g, x, _ = egcd(a % m, m)
    if g != 1:
        raise ValueError("Modular inverse does not exist")
    return x % m

# -----------------------------
# Key Material Derivation
# -----------------------------
def init_iv_byte(key: bytes) -> int:
    """Multiplicative-hash fold of the whole key into the stream-layer seed byte."""
    s = 0xA5
    for b in key:
        s = (s * 31 + b) & 0xFF
    return s

def derive_odd_multiplier(key: bytes, block_bytes: int = 16, salt: int = 0) -> int:
    """
    Builds the block-layer multiplier from repeated key bytes.

    The lowest bit is forced on. An odd number is a unit modulo
    2^(8*block_bytes) because 2 is the modulus's only prime factor.

    Args:
        key: Shared secret
        block_bytes: Block width in bytes
        salt: Offset into the key

    Returns:
        Odd multiplier as a big-endian integer
    """
    buf = bytearray(key[(i + salt) % len(key)] for i in range(block_bytes))
    buf[-1] |= 1
    return int.from_bytes(buf, "big")

def derive_round_key(key: bytes, round_idx: int, which: int, block_bytes: int = 16) -> int:
    """
    Derives one round key; which=1 gives the additive key, which=2 the XOR key.

    Byte j is key[(j + round + which) mod len] offset by (round*31) ^ (which*13).
    """
    offset = (round_idx * 31) ^ (which * 13)
    buf = bytes(
        (key[(j + round_idx + which) % len(key)] + offset) & 0xFF
        for j in range(block_bytes)
    )
    return int.from_bytes(buf, "big")

def key_from_bytes(key: bytes, vp: Gbd7zParams = Gbd7zParams()) -> Gbd7zKey:
    """
    Derive the complete key schedule for one encrypt/decrypt call.

    Collects every value the pipeline needs from the shared secret:
    1. Chaos sequence (stream shifts/offsets and block permutations)
    2. Stream-layer IV byte
    3. Odd multiplier with its precomputed inverse
    4. Additive and XOR keys for every round

    Nothing is cached between calls; the schedule is rebuilt from the key.

    Args:
        key: Shared secret (non-empty)
        vp: Pipeline parameters

    Returns:
        Complete key schedule
    """
    if not key:
        raise InvalidArgumentError("key must be non-empty")
    key = bytes(key)
    modulus = 1 << (8 * vp.block_bytes)

    chaos = logistic_chaos(key, vp.chaos_len)
    multiplier = derive_odd_multiplier(key, vp.block_bytes)
    multiplier_inv = modinv(multiplier, modulus)

    rounds = [
        RoundKeys(
            k1=derive_round_key(key, r, 1, vp.block_bytes),
            k2=derive_round_key(key, r, 2, vp.block_bytes),
        )
        for r in range(vp.rounds)
    ]
    return Gbd7zKey(
        key=key,
        params=vp,
        chaos=chaos,
        iv=init_iv_byte(key),
        multiplier=multiplier,
        multiplier_inv=multiplier_inv,
        rounds=rounds,
    )
