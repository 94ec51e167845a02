"""Pseudo-random and quasi-random number generation.

Two families of generators are used by the tracers:

- Pseudo-random numbers come from NumPy ``Generator`` objects, one per
  thread, obtained through :func:`thread_rng`. They drive light selection,
  emission positions, Russian roulette and stratification offsets.
- Quasi-random (low-discrepancy) sequences are stateful generator objects
  with an explicit ``set_seed`` / ``next`` protocol. An instance belongs to
  one thread at a time; none of them is thread-safe.

Quasi-random generators:
    Halton: radical-inverse sequence in an arbitrary base
    EvenlySpacedSequence: i / length (+ offset), wrapping around
    VanDerCorput: fixed-point base-2 radical inverse
    HaltonHammersleySet: vector-valued set whose first dimension is evenly
        spaced and the rest are Halton sequences on successive primes

Example:
    >>> from src.photonmapper.core.sampling import HaltonHammersleySet
    >>> qrs = HaltonHammersleySet(dimension=3, length=4)
    >>> qrs.set_seed(1)
    >>> qrs.next()
    [0.25, 0.5, 0.3333333333333333]
"""

from __future__ import annotations

import threading

import numpy as np

_PRIMES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53)

# =============================================================================
# Per-thread pseudo-random generators
# =============================================================================

_rng_lock = threading.Lock()
_rng_state = threading.local()
_seed_sequence = np.random.SeedSequence()
_generation = 0


def reseed(seed: int | None = None) -> None:
    """Reset every thread's pseudo-random generator.

    After this call, the n-th thread to request a generator receives the
    n-th child of ``SeedSequence(seed)``, so single-threaded code is fully
    reproducible for a fixed seed.

    Args:
        seed: Root seed, or None for fresh OS entropy.
    """
    global _seed_sequence, _generation
    with _rng_lock:
        _seed_sequence = np.random.SeedSequence(seed)
        _generation += 1


def thread_rng() -> np.random.Generator:
    """Return the calling thread's pseudo-random generator."""
    rng = getattr(_rng_state, "rng", None)
    if rng is None or _rng_state.generation != _generation:
        with _rng_lock:
            (child,) = _seed_sequence.spawn(1)
            _rng_state.generation = _generation
        rng = np.random.default_rng(child)
        _rng_state.rng = rng
    return rng


# =============================================================================
# Quasi-random sequences
# =============================================================================


def radical_inverse(index: int, base: int) -> float:
    """Compute the index-th value of the Halton sequence in ``base``."""
    inv_base = 1.0 / base
    f = inv_base
    value = 0.0
    while index:
        value += f * (index % base)
        index //= base
        f *= inv_base
    return value


class Halton:
    """Halton sequence in a fixed base.

    ``set_seed(i)`` positions the sequence at its i-th element; ``next``
    returns the current element and advances incrementally, which avoids
    recomputing the radical inverse from scratch.
    """

    def __init__(self, base: int) -> None:
        if base < 2:
            raise ValueError(f"Halton base must be >= 2, got {base}")
        self._base = base
        self._inv_base = 1.0 / base
        self._value = 0.0

    @property
    def base(self) -> int:
        return self._base

    def set_seed(self, seed: int) -> None:
        self._value = radical_inverse(seed, self._base)

    def next(self) -> float:
        old_value = self._value
        inv_base = self._inv_base
        residual = (1.0 - 1e-10) - old_value
        if inv_base < residual:
            self._value = old_value + inv_base
        else:
            h = inv_base
            while True:
                hh = h
                h *= inv_base
                if h < residual:
                    break
            self._value = old_value + hh + h - 1.0
        return old_value


class EvenlySpacedSequence:
    """Cycle through ``(i + offset) / length`` for i in [0, length).

    Args:
        length: Number of strata.
        offset: Jitter within a stratum, in units of one stratum (usually a
            random number in [0, 1)).
    """

    def __init__(self, length: int, offset: float = 0.0) -> None:
        if length <= 0:
            raise ValueError(f"length must be positive, got {length}")
        self._length = length
        self._inv_length = 1.0 / length
        self._offset = offset / length
        self._position = 0

    def set_seed(self, seed: int) -> None:
        self._position = seed % self._length

    def next(self) -> float:
        result = self._position * self._inv_length
        self._position += 1
        if self._position >= self._length:
            self._position = 0
        return result + self._offset


class VanDerCorput:
    """Base-2 radical inverse in 32-bit fixed point.

    ``set_seed`` does not jump to the seed-th element; it starts the
    incremental walk at the fixed-point value ``seed``. For seeds whose low
    32 bits are uniformly distributed this gives the same distribution much
    more cheaply.
    """

    _MASK = 0xFFFFFFFF
    _HALF = 0x80000000

    def __init__(self) -> None:
        self._value = 0

    def set_seed(self, seed: int) -> None:
        self._value = seed & self._MASK

    def next(self) -> float:
        old_value = self._value
        residual = self._MASK - old_value
        h = self._HALF
        if h < residual:
            value = old_value + h
        else:
            while True:
                hh = h
                h >>= 1
                if h < residual or h == 0:
                    break
            value = old_value + hh + h
        self._value = value & self._MASK
        return old_value / 4294967296.0


class HaltonHammersleySet:
    """A vector-valued low-discrepancy point set.

    Dimension 0 is an evenly spaced sequence over ``length`` points (the
    Hammersley dimension); dimensions 1.. are Halton sequences in bases
    2, 3, 5, ... Seeding with ``i`` and calling :meth:`next` yields the i-th
    point of the set.

    Args:
        dimension: Number of components per point.
        length: Number of points the evenly spaced dimension covers.
    """

    def __init__(self, dimension: int, length: int) -> None:
        if dimension <= 0:
            raise ValueError(f"dimension must be positive, got {dimension}")
        if dimension - 1 > len(_PRIMES):
            raise ValueError(f"dimension must be at most {len(_PRIMES) + 1}, got {dimension}")
        self._components: list[EvenlySpacedSequence | Halton] = [EvenlySpacedSequence(max(1, length))]
        self._components.extend(Halton(p) for p in _PRIMES[: dimension - 1])

    @property
    def dimension(self) -> int:
        return len(self._components)

    def set_seed(self, seed: int) -> None:
        for component in self._components:
            component.set_seed(seed)

    def next(self) -> list[float]:
        return [component.next() for component in self._components]
