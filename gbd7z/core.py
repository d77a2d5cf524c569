from typing import Optional
from gbd7z.models import (Gbd7zParams, InvalidArgumentError, FormatError, SecurityError)
from gbd7z.utils.keygen import (key_from_bytes)
from gbd7z.utils.decomposition import (split3, merge3)
from gbd7z.utils.encryption import (
    stream_encrypt, stream_decrypt, block_encrypt, block_decrypt
)
from gbd7z.utils.integrity import (hash_hex, verify_hash)
from gbd7z.utils.payload import (
    build_payload, parse_payload, encode_payload, decode_payload,
    build_envelope, parse_envelope
)

# -----------------------------
# Input Normalisation
# -----------------------------
def as_bytes(value, name: str, error: type = TypeError) -> bytes:
    """
    Accepts bytes, bytearray and memoryview as-is and UTF-8 encodes text.

    Anything else (ints included, which bytes() would turn into zero runs)
    raises `error`; None always raises InvalidArgumentError.
    """
    if value is None:
        raise InvalidArgumentError(f"{name} is None")
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise error(f"{name} must be bytes or str, got {type(value).__name__}")

def require_key(key) -> bytes:
    key = as_bytes(key, "key", InvalidArgumentError)
    if not key:
        raise InvalidArgumentError("key must be non-empty")
    return key

# -----------------------------
# Encryption/Decryption
# -----------------------------
def encrypt(key: bytes, plaintext: bytes, vp: Gbd7zParams = Gbd7zParams()) -> str:
    """
    Encrypts plaintext into a printable GBD7Z envelope.

    Pipeline:
    1. Base-3 decomposition of every byte into leaves + (count, base) records
    2. Chained stream cipher over the leaves
    3. Multiply/permute block cipher over the stream output
    4. Payload framing of counts, bases and cipher bytes
    5. Keyed 64-bit hash over the payload
    6. Base-91 text encoding wrapped as "GBD7Z:<payload>|<hash>&7"

    The result is deterministic: the same key and plaintext always give
    the same envelope (no nonce, no semantic security).

    Args:
        key: Shared secret (non-empty; text is UTF-8 encoded)
        plaintext: Bytes to encrypt (may be empty)
        vp: Pipeline parameters

    Returns:
        Envelope string

    Raises:
        InvalidArgumentError: If the key is None, empty or not bytes/str
        TypeError: If the plaintext is not bytes-like or str
    """
    key = require_key(key)
    plaintext = as_bytes(plaintext, "plaintext")
    k = key_from_bytes(key, vp)

    split = split3(plaintext)
    streamed = stream_encrypt(split.leaves.tobytes(), k)
    blocked = block_encrypt(streamed, k)

    payload = build_payload(split.counts, split.bases, blocked)
    return build_envelope(encode_payload(payload), hash_hex(payload, key))

def decrypt(key: bytes, envelope: str, vp: Gbd7zParams = Gbd7zParams()) -> bytes:
    """
    Recovers the plaintext from a GBD7Z envelope.

    Reverses the encryption pipeline, verifying the embedded hash before any
    cipher stage is undone (verify-then-decrypt).

    Args:
        key: Shared secret used for encryption
        envelope: Envelope string
        vp: Pipeline parameters used for encryption

    Returns:
        Original plaintext bytes

    Raises:
        InvalidArgumentError: If the key is None, empty or not bytes/str
        FormatError: Malformed envelope, payload or decomposition records
        SecurityError: Hash mismatch (wrong key or tampered envelope)
        StateError: A record reconstructs a value outside 0..255
    """
    key = require_key(key)
    if envelope is None:
        raise InvalidArgumentError("envelope is None")

    encoded, digest_hex = parse_envelope(envelope)
    payload = decode_payload(encoded)
    if not verify_hash(payload, key, digest_hex):
        raise SecurityError("Hash mismatch: wrong key or corrupt data")

    parts = parse_payload(payload)
    k = key_from_bytes(key, vp)
    streamed = block_decrypt(parts.data, k)
    leaves = stream_decrypt(streamed, k)
    return merge3(leaves, parts.counts, parts.bases)

# -----------------------------
# File Helpers
# -----------------------------
def encrypt_file(key: bytes, in_path: str, out_path: Optional[str] = None, vp: Gbd7zParams = Gbd7zParams()) -> str:
    """
    Encrypts a file's bytes and writes the envelope as text.

    Returns:
        Path of the written envelope (defaults to in_path + ".gbd7z")
    """
    with open(in_path, "rb") as f:
        data = f.read()
    out_path = out_path or in_path + ".gbd7z"
    with open(out_path, "w", encoding="ascii") as f:
        f.write(encrypt(key, data, vp))
    return out_path

def decrypt_file(key: bytes, in_path: str, out_path: str, vp: Gbd7zParams = Gbd7zParams()) -> str:
    """Reads an envelope file, decrypts it and writes the recovered bytes."""
    try:
        with open(in_path, "r", encoding="utf-8") as f:
            envelope = f.read().strip()
    except UnicodeDecodeError as e:
        raise FormatError(f"Envelope file is not text: {e}") from e
    data = decrypt(key, envelope, vp)
    with open(out_path, "wb") as f:
        f.write(data)
    return out_path
