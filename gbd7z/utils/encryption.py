import numpy as np

from gbd7z.models import (Gbd7zKey)

# -----------------------------
# 8-bit Rotations
# -----------------------------
def rotr8(v, r):
    """Rotate right within a byte. Works on ints and integer numpy arrays."""
    r = r & 7
    return ((v >> r) | ((v << (8 - r)) & 0xFF)) & 0xFF

def rotl8(v, r):
    """Rotate left within a byte. Works on ints and integer numpy arrays."""
    r = r & 7
    return ((v << r) | (v >> (8 - r))) & 0xFF

# -----------------------------
# Stream Layer
# -----------------------------
def stream_schedule(gkey: Gbd7zKey, length: int):
    """
    Expands the key and chaos sequence cyclically to `length` positions.

    Returns:
        Tuple (key_bytes, chaos_bytes, shifts) as int64 arrays, where
        shifts[i] = ((key[i] ^ chaos[i]) & 7) + 1 is the per-byte rotation.
    """
    k = np.resize(np.frombuffer(gkey.key, dtype=np.uint8), length).astype(np.int64)
    ch = np.resize(gkey.chaos, length).astype(np.int64)
    shifts = ((k ^ ch) & 7) + 1
    return k, ch, shifts

def stream_encrypt(data: bytes, gkey: Gbd7zKey) -> bytes:
    """
    Byte-wise chained stream cipher over the leaf sequence.

    Each byte gets key and chaos bytes added, is rotated right by a
    key/chaos dependent amount, then XORed with the previous ciphertext
    byte (the IV byte for the first position). The feedback makes every
    output depend on all outputs before it.

    Args:
        data: Leaf bytes
        gkey: Key schedule

    Returns:
        Ciphertext bytes, same length as data
    """
    values = np.frombuffer(bytes(data), dtype=np.uint8).astype(np.int64)
    k, ch, shifts = stream_schedule(gkey, len(values))
    rotated = rotr8((values + k + ch) & 0xFF, shifts)

    # c[i] = rot[i] ^ c[i-1] with c[-1] = iv is a running XOR
    chained = np.bitwise_xor.accumulate(np.concatenate(([gkey.iv], rotated)))
    return chained[1:].astype(np.uint8).tobytes()

def stream_decrypt(cipher: bytes, gkey: Gbd7zKey) -> bytes:
    """
    Inverse of stream_encrypt.

    The feedback value is the previous *ciphertext* byte, which is known up
    front, so every position can be undone independently.
    """
    values = np.frombuffer(bytes(cipher), dtype=np.uint8).astype(np.int64)
    k, ch, shifts = stream_schedule(gkey, len(values))
    prev = np.concatenate(([gkey.iv], values))[:len(values)]
    tmp = rotl8(values ^ prev, shifts)
    return ((tmp - k - ch) & 0xFF).astype(np.uint8).tobytes()

# -----------------------------
# Block Helpers
# -----------------------------
def bytes_to_blocks(data: bytes, block_bytes: int) -> np.ndarray:
    """
    Zero-pads data to a whole number of blocks.

    Returns:
        uint8 array of shape (num_blocks, block_bytes)
    """
    num_blocks = -(-len(data) // block_bytes)
    padded = np.zeros(num_blocks * block_bytes, dtype=np.uint8)
    padded[:len(data)] = np.frombuffer(bytes(data), dtype=np.uint8)
    return padded.reshape(num_blocks, block_bytes)

# -----------------------------
# Keyed Byte Permutation
# -----------------------------
def permute_bytes(block: bytearray, chaos: np.ndarray, round_idx: int) -> None:
    """Swaps byte i with byte (i + chaos[(i + round) mod len]) mod n, for i = 0..n-1, in place."""
    n = len(block)
    for i in range(n):
        j = (i + int(chaos[(i + round_idx) % len(chaos)])) % n
        block[i], block[j] = block[j], block[i]

def inverse_permute_bytes(block: bytearray, chaos: np.ndarray, round_idx: int) -> None:
    """Replays the swaps of permute_bytes in reverse order, in place."""
    n = len(block)
    for i in reversed(range(n)):
        j = (i + int(chaos[(i + round_idx) % len(chaos)])) % n
        block[i], block[j] = block[j], block[i]

# -----------------------------
# Block Layer (Block Cipher Core)
# -----------------------------
def encrypt_block(block: bytes, gkey: Gbd7zKey) -> bytes:
    """
    Encrypts a single block as a big-endian integer N mod 2^(8*block_bytes).

    Each round:
    1. N += K1_r (round-key addition)
    2. N *= M (odd multiplier, a unit modulo a power of two)
    3. Keyed byte permutation driven by the chaos sequence
    4. N ^= K2_r

    Args:
        block: Exactly block_bytes bytes
        gkey: Key schedule

    Returns:
        Ciphertext block of the same width
    """
    width = gkey.params.block_bytes
    if len(block) != width:
        raise ValueError(f"Block must be {width} bytes, got {len(block)}")
    modulus = 1 << (8 * width)

    n = int.from_bytes(bytes(block), "big")
    for r, rk in enumerate(gkey.rounds):
        n = (n + rk.k1) % modulus
        n = (n * gkey.multiplier) % modulus
        nb = bytearray(n.to_bytes(width, "big"))
        permute_bytes(nb, gkey.chaos, r)
        n = int.from_bytes(nb, "big") ^ rk.k2
    return n.to_bytes(width, "big")

def decrypt_block(block: bytes, gkey: Gbd7zKey) -> bytes:
    """
    Inverts encrypt_block by running the rounds backwards.

    Exact inversion relies on:
    - XOR being its own inverse
    - Reversed swap order undoing the permutation
    - Precomputed multiplier inverse modulo 2^(8*block_bytes)
    - Modular subtraction of K1_r
    """
    width = gkey.params.block_bytes
    if len(block) != width:
        raise ValueError(f"Block must be {width} bytes, got {len(block)}")
    modulus = 1 << (8 * width)

    n = int.from_bytes(bytes(block), "big")
    for r in reversed(range(len(gkey.rounds))):
        rk = gkey.rounds[r]
        n ^= rk.k2
        nb = bytearray(n.to_bytes(width, "big"))
        inverse_permute_bytes(nb, gkey.chaos, r)
        n = (int.from_bytes(nb, "big") * gkey.multiplier_inv) % modulus
        n = (n - rk.k1) % modulus
    return n.to_bytes(width, "big")

def block_encrypt(data: bytes, gkey: Gbd7zKey) -> bytes:
    """
    Encrypts data block by block with no chaining between blocks.

    The input is zero-padded to a whole number of blocks; only the first
    len(data) output bytes are kept. Identical blocks encrypt identically.
    """
    if not data:
        return b""
    blocks = bytes_to_blocks(data, gkey.params.block_bytes)
    out = b"".join(encrypt_block(b.tobytes(), gkey) for b in blocks)
    return out[:len(data)]

def block_decrypt(data: bytes, gkey: Gbd7zKey) -> bytes:
    """
    Decrypts data block by block, re-padding a short tail with zeros.

    A truncated last block cannot be inverted exactly; the caller only relies
    on the output length there.
    """
    if not data:
        return b""
    blocks = bytes_to_blocks(data, gkey.params.block_bytes)
    out = b"".join(decrypt_block(b.tobytes(), gkey) for b in blocks)
    return out[:len(data)]
