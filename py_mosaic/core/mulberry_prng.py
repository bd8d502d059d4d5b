"""
Python implementation of the mulberry32 PRNG used by the stained-glass sketches.

All arithmetic is carried out modulo 2^32 so the stream is identical to the
JavaScript version (which relies on Math.imul and unsigned shifts) on every
platform.
"""

UINT32_MASK = 0xFFFFFFFF
GOLDEN_GAMMA = 0x6D2B79F5  # 1831565813


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & UINT32_MASK


def _imul(a, b):
    """32-bit integer multiply, equivalent to JavaScript's Math.imul."""
    return (a * b) & UINT32_MASK


def normalize_seed(seed) -> int:
    """Fold any integer seed into the unsigned 32-bit range."""
    return int(seed) % 0x100000000


class MulberryPRNG:
    """
    Mulberry32 PRNG.

    The whole state is a single 32-bit integer, so two instances reseeded
    with the same value always produce the same sequence.
    """

    def __init__(self, seed=0):
        self.call_count = 0
        self.state = 0
        self.reseed(seed)

    def reseed(self, seed) -> None:
        """Reset the state from an integer seed (normalized modulo 2^32)."""
        self.seed = normalize_seed(seed)
        self.state = self.seed
        self.call_count = 0

    def next(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        self.state = _uint32(self.state + GOLDEN_GAMMA)
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= _uint32(t + _imul(t ^ (t >> 7), t | 61))
        return (t ^ (t >> 14)) / 4294967296.0

    def random(self) -> float:
        """Alias of next() for code written against the random.Random API."""
        return self.next()

    def range(self, a: float, b: float) -> float:
        """Uniform float in [a, b), computed as a + (b - a) * next()."""
        return a + (b - a) * self.next()

    def randint(self, n: int) -> int:
        """Uniform integer in [0, n)."""
        return int(self.next() * n)

    def choice(self, seq):
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[self.randint(len(seq))]
