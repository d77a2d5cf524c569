import math
import numpy as np
from gbd7z.models import (InvalidArgumentError)

# -----------------------------
# Logistic-Map Chaos Generator
# -----------------------------
def logistic_chaos(key: bytes, length: int = 256) -> np.ndarray:
    """
    Derives a deterministic pseudo-random byte sequence from the key.

    Iterates the logistic map x <- r*x*(1-x) in its chaotic regime
    (r just below 4). The seed comes from the key byte sum, the growth rate
    from the first key byte, and r drifts by a small key-dependent step
    after every output so the orbit never settles into a short cycle.

    Arithmetic is IEEE double precision in a fixed operation order matching the
    envelope format, so the output is reproducible on any platform
    whose float is a binary64.

    Args:
        key: Shared secret (non-empty)
        length: Number of bytes to produce

    Returns:
        uint8 array of `length` chaos bytes

    Design notes:
    - The remainder is math.fmod (sign follows the dividend), not Python's
      floor-mod. For key sums giving x0 > 1 the orbit runs negative and
      must stay negative to match existing envelopes.
    - Output bytes use the positive fractional part x - floor(x).
    """
    if not key:
        raise InvalidArgumentError("key must be non-empty")

    x = (sum(key) % 1024) / 1024.0 + 0.123456
    r = 3.9 + (key[0] % 9) * 0.01

    out = np.zeros(length, dtype=np.uint8)
    for i in range(length):
        x = math.fmod(r * x * (1.0 - x), 1.0)
        out[i] = int(math.floor((x - math.floor(x)) * 256.0)) & 0xFF
        r += ((key[i % len(key)] % 5) - 2) * 0.0003
    return out
