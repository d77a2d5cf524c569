from dataclasses import dataclass
import numpy as np

# -----------------------------
# CLI Colors
# -----------------------------
class bcolors:
    HEADER = '\033[95m'
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    GREY = '\033[90m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    UNDERLINE = '\033[4m'

# -----------------------------
# Envelope Format Constants
# -----------------------------
MAGIC = "GBD7Z:"
TAIL = "&7"
HASH_SEED = 0x9E3779B97F4A7C15
ALPHABET_SIZE = 91  # two base-91 digits cover 0..8280, enough for one byte
BASE0 = "!"
MASK64 = (1 << 64) - 1

# -----------------------------
# Errors
# -----------------------------
class Gbd7zError(Exception):
    """Base class for every error raised by the GBD7Z pipeline."""

class InvalidArgumentError(Gbd7zError, ValueError):
    """Raised for a missing or empty key."""

class FormatError(Gbd7zError, ValueError):
    """
    Raised when an envelope, payload or decomposition record is malformed.

    Covers missing prefix/suffix/separator, bad hash length, odd-length or
    out-of-alphabet text payloads, payload length mismatches and invalid
    decomposition counts.
    """

class SecurityError(Gbd7zError):
    """
    Raised when the integrity hash does not match on decrypt.

    Signals a wrong key or a corrupted/tampered envelope. Deliberately not a
    FormatError so callers can respond to the two cases differently.
    """

class StateError(Gbd7zError, RuntimeError):
    """Raised when base*count reconstructs a value outside 0..255."""

# -----------------------------
# Core Parameters
# -----------------------------
@dataclass
class Gbd7zParams:
    """
    Core parameters for the GBD7Z pipeline.

    The defaults reproduce the reference envelope format. Changing any of them
    yields envelopes that only decrypt under the same parameters.
    """
    block_bytes: int = 16  # 128-bit blocks
    rounds: int = 7        # multiply/permute rounds per block
    chaos_len: int = 256   # logistic-map bytes derived from the key

    def __post_init__(self):
        for name in ("block_bytes", "rounds", "chaos_len"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
                raise InvalidArgumentError(f"{name} must be a positive integer, got {value!r}")

# -----------------------------
# Round Keys
# -----------------------------
@dataclass
class RoundKeys:
    """Additive (k1) and XOR (k2) round keys for one block-cipher round."""
    k1: int
    k2: int

# -----------------------------
# Gbd7z Key
# -----------------------------
@dataclass
class Gbd7zKey:
    """
    Complete per-call key schedule derived from the shared secret.

    Everything here is a pure function of the key bytes and params and is
    rebuilt for every encrypt/decrypt call.
    """
    key: bytes                 # Shared secret
    params: Gbd7zParams        # Pipeline parameters
    chaos: np.ndarray          # Logistic-map byte sequence (uint8)
    iv: int                    # Stream-layer feedback seed byte
    multiplier: int            # Odd multiplier, invertible mod 2^(8*block_bytes)
    multiplier_inv: int        # Precomputed modular inverse
    rounds: list[RoundKeys]    # Per-round keys

# -----------------------------
# Pipeline Records
# -----------------------------
@dataclass
class Decomposition:
    """Leaf sequence plus the per-byte (count, base) records it was expanded from."""
    leaves: np.ndarray  # uint8
    counts: np.ndarray  # int64, powers of 3
    bases: np.ndarray   # uint8

@dataclass
class PayloadParts:
    """Parsed binary payload: decomposition metadata and block-cipher output."""
    counts: np.ndarray
    bases: np.ndarray
    data: bytes
