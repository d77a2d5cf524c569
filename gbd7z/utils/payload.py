import string
import numpy as np
from gbd7z.models import (PayloadParts, FormatError, MAGIC, TAIL, ALPHABET_SIZE, BASE0)

HEADER_BYTES = 8
HASH_HEX_LEN = 16

# -----------------------------
# Payload Framing
# -----------------------------
def build_payload(counts, bases, data: bytes) -> bytes:
    """
    Packs decomposition metadata and block-cipher output into one buffer.

    Layout (integers big-endian int32):
        [origLen:4][countsLen:4][counts: origLen*4][bases: origLen*1][data]

    countsLen always equals origLen; the field is kept for format stability.
    """
    counts = np.asarray(counts, dtype=">i4")
    bases = np.asarray(bases, dtype=np.uint8)
    orig_len = len(counts)
    header = np.array([orig_len, orig_len], dtype=">i4")
    return header.tobytes() + counts.tobytes() + bases.tobytes() + bytes(data)

def parse_payload(payload: bytes) -> PayloadParts:
    """
    Splits a binary payload back into counts, bases and cipher bytes.

    Raises:
        FormatError: Truncated buffer, negative length or countsLen != origLen
    """
    if len(payload) < HEADER_BYTES:
        raise FormatError("Payload too short for header")
    orig_len, counts_len = np.frombuffer(payload[:HEADER_BYTES], dtype=">i4").tolist()
    if counts_len != orig_len:
        raise FormatError("Payload counts length mismatch")
    if orig_len < 0:
        raise FormatError(f"Negative payload length {orig_len}")

    counts_end = HEADER_BYTES + 4 * orig_len
    bases_end = counts_end + orig_len
    if len(payload) < bases_end:
        raise FormatError(f"Payload truncated: need {bases_end} bytes, got {len(payload)}")

    counts = np.frombuffer(payload[HEADER_BYTES:counts_end], dtype=">i4").astype(np.int64)
    bases = np.frombuffer(payload[counts_end:bases_end], dtype=np.uint8).copy()
    return PayloadParts(counts=counts, bases=bases, data=bytes(payload[bases_end:]))

# -----------------------------
# Printable Text Codec
# -----------------------------
def encode_payload(data: bytes) -> str:
    """Maps each byte to two base-91 digits rendered from '!' upwards."""
    values = np.frombuffer(bytes(data), dtype=np.uint8).astype(np.int64)
    pairs = np.empty(2 * len(values), dtype=np.uint8)
    pairs[0::2] = values // ALPHABET_SIZE + ord(BASE0)
    pairs[1::2] = values % ALPHABET_SIZE + ord(BASE0)
    return pairs.tobytes().decode("ascii")

def decode_payload(text: str) -> bytes:
    """
    Inverse of encode_payload.

    Digit pairs above 255 (never produced by the encoder) wrap to their low
    byte; the integrity hash rejects such payloads afterwards.

    Raises:
        FormatError: Odd length or a character outside '!'..'!'+90
    """
    if len(text) % 2:
        raise FormatError("Payload length odd")
    digits = np.fromiter((ord(c) for c in text), dtype=np.int64, count=len(text)) - ord(BASE0)
    if ((digits < 0) | (digits >= ALPHABET_SIZE)).any():
        raise FormatError("Invalid char in payload")
    values = digits[0::2] * ALPHABET_SIZE + digits[1::2]
    return (values & 0xFF).astype(np.uint8).tobytes()

# -----------------------------
# Envelope
# -----------------------------
def build_envelope(encoded: str, digest_hex: str) -> str:
    return f"{MAGIC}{encoded}|{digest_hex}{TAIL}"

def parse_envelope(envelope: str) -> tuple[str, str]:
    """
    Splits an envelope into its encoded payload and hash hex.

    The separator is the last '|'; it cannot occur in the payload alphabet.

    Returns:
        Tuple (encoded_payload, hash_hex)

    Raises:
        FormatError: Missing prefix/suffix/separator or a malformed hash
    """
    if not isinstance(envelope, str):
        raise FormatError(f"Envelope must be text, got {type(envelope).__name__}")
    if (len(envelope) < len(MAGIC) + len(TAIL)
            or not envelope.startswith(MAGIC) or not envelope.endswith(TAIL)):
        raise FormatError("Not a GBD7Z envelope")

    inner = envelope[len(MAGIC):len(envelope) - len(TAIL)]
    sep = inner.rfind("|")
    if sep <= 0:
        raise FormatError("Invalid envelope format")
    encoded, digest_hex = inner[:sep], inner[sep + 1:]
    if len(digest_hex) != HASH_HEX_LEN:
        raise FormatError("Bad hash")
    if not all(c in string.hexdigits for c in digest_hex):
        raise FormatError("Bad hash")
    return encoded, digest_hex
