import numpy as np
from gbd7z.models import (Decomposition, FormatError, StateError)

# -----------------------------
# Base-3 Decomposition Codec
# -----------------------------
def split3(data: bytes) -> Decomposition:
    """
    Expands each byte into a run of identical leaf bytes.

    Every factor of 3 removed from a byte triples the length of its run:
    a byte v = base * 3^levels becomes 3^levels copies of base. Zero is a
    fixed point (count 1, base 0) since it is divisible by 3 forever.

    Args:
        data: Plaintext bytes

    Returns:
        Decomposition with the leaf sequence and per-byte counts/bases
    """
    values = np.frombuffer(bytes(data), dtype=np.uint8).astype(np.int64)
    bases = values.copy()
    counts = np.ones_like(values)

    # 255 < 3^6, so this settles after at most five passes
    divisible = (bases != 0) & (bases % 3 == 0)
    while divisible.any():
        bases[divisible] //= 3
        counts[divisible] *= 3
        divisible = (bases != 0) & (bases % 3 == 0)

    leaves = np.repeat(bases, counts).astype(np.uint8)
    return Decomposition(leaves=leaves, counts=counts, bases=bases.astype(np.uint8))

def merge3(leaves, counts, bases) -> bytes:
    """
    Rebuilds the plaintext from decomposition records.

    Leaves are consumed `count` at a time but never read back: base * count
    already gives the original byte. The leaf sequence only has to account
    for every count exactly.

    Args:
        leaves: Leaf sequence (only its length is used)
        counts: Per-byte leaf counts
        bases: Per-byte residual values

    Returns:
        Original plaintext bytes

    Raises:
        FormatError: Non-positive count, too few or leftover leaves
        StateError: base * count outside 0..255
    """
    counts = np.asarray(counts).tolist()
    bases = np.asarray(bases).tolist()
    if len(counts) != len(bases):
        raise FormatError(f"counts/bases length mismatch ({len(counts)} != {len(bases)})")

    total = len(leaves)
    pos = 0
    out = bytearray(len(counts))
    for i, (count, base) in enumerate(zip(counts, bases)):
        if count <= 0:
            raise FormatError(f"Invalid count {count} at index {i}")
        if pos + count > total:
            raise FormatError("Leaf array too short")
        original = (base & 0xFF) * count
        if not 0 <= original <= 255:
            raise StateError(
                f"Reconstructed byte out of range from base*count "
                f"(base={base & 0xFF}, count={count}, product={original})"
            )
        out[i] = original
        pos += count
    if pos != total:
        raise FormatError(f"Extra leaves present ({total - pos} unconsumed)")
    return bytes(out)
