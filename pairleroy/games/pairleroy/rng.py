"""xorshift32, the only entropy source of the engine.

Every sampling function takes the generator as an explicit argument so two
runs from the same seed produce identical output.
"""

from __future__ import annotations

import secrets
from typing import Callable

MASK32 = 0xFFFFFFFF
TWO_POW_32 = 0x100000000

# xorshift maps 0 to 0 forever; a zero seed is replaced by this word.
ZERO_SEED_REPLACEMENT = 0x9E3779B9

Rng = Callable[[], float]


class Xorshift32:
    """Seeded uniform float generator over [0, 1)."""

    __slots__ = ("_x",)

    def __init__(self, seed: int) -> None:
        x = seed & MASK32
        # Seed 0 does not reproduce a plain xorshift32(0) stream, which is stuck at 0
        self._x = x if x != 0 else ZERO_SEED_REPLACEMENT

    @classmethod
    def from_state(cls, state: int) -> Xorshift32:
        """Resume a generator from a previously saved ``state`` word."""
        return cls(state)

    @property
    def state(self) -> int:
        return self._x

    def next_uint32(self) -> int:
        x = self._x
        x ^= (x << 13) & MASK32
        x ^= x >> 17
        x ^= (x << 5) & MASK32
        self._x = x
        return x

    def next(self) -> float:
        return self.next_uint32() / TWO_POW_32

    __call__ = next

    def __repr__(self) -> str:
        return f"Xorshift32(state={self._x:#010x})"


def random_seed() -> int:
    """Draw a fresh uint32 seed from the OS."""
    return secrets.randbits(32)
