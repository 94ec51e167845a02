"""Hilbert space-filling curve in any number of dimensions.

Maps integer grid coordinates with ``order`` bits per axis to a single
index along the Hilbert curve, and back. Consecutive indices are always
neighboring grid cells, which makes the index a locality-preserving sort
key for approximate nearest-neighbor search.

The implementation is John Skilling's "transpose" formulation
(Programming the Hilbert curve, AIP Conf. Proc. 707, 2004). The
coordinates are first converted in place into the "transposed" index,
whose bits are then interleaved into a single integer.

Example:
    >>> from src.photonmapper.photonmap.hilbert import decode, encode
    >>> index = encode((3, 5, 1), order=3)
    >>> decode(index, order=3)
    (3, 5, 1)
"""

from __future__ import annotations

from collections.abc import Sequence


def _check(order: int, dimensions: int) -> None:
    if order < 1:
        raise ValueError(f"order must be >= 1, got {order}")
    if dimensions < 1:
        raise ValueError(f"dimensions must be >= 1, got {dimensions}")


def _axes_to_transpose(x: list[int], order: int) -> list[int]:
    n = len(x)
    m = 1 << (order - 1)

    # Inverse undo
    q = m
    while q > 1:
        p = q - 1
        for i in range(n):
            if x[i] & q:
                x[0] ^= p
            else:
                t = (x[0] ^ x[i]) & p
                x[0] ^= t
                x[i] ^= t
        q >>= 1

    # Gray encode
    for i in range(1, n):
        x[i] ^= x[i - 1]
    t = 0
    q = m
    while q > 1:
        if x[n - 1] & q:
            t ^= q - 1
        q >>= 1
    for i in range(n):
        x[i] ^= t
    return x


def _transpose_to_axes(x: list[int], order: int) -> list[int]:
    n = len(x)
    limit = 2 << (order - 1)

    # Gray decode by H ^ (H / 2)
    t = x[n - 1] >> 1
    for i in range(n - 1, 0, -1):
        x[i] ^= x[i - 1]
    x[0] ^= t

    # Undo excess work
    q = 2
    while q != limit:
        p = q - 1
        for i in range(n - 1, -1, -1):
            if x[i] & q:
                x[0] ^= p
            else:
                t = (x[0] ^ x[i]) & p
                x[0] ^= t
                x[i] ^= t
        q <<= 1
    return x


def encode(coords: Sequence[int], order: int) -> int:
    """Hilbert index of a grid cell.

    Args:
        coords: Integer coordinates, each in ``[0, 2**order)``.
        order: Bits per coordinate.

    Returns:
        The index in ``[0, 2**(order * len(coords)))``.

    Raises:
        ValueError: If a coordinate is out of range.
    """
    dimensions = len(coords)
    _check(order, dimensions)
    side = 1 << order
    x = [int(c) for c in coords]
    for c in x:
        if not 0 <= c < side:
            raise ValueError(f"coordinate {c} outside [0, {side})")

    transposed = _axes_to_transpose(x, order)

    index = 0
    for bit in range(order - 1, -1, -1):
        for i in range(dimensions):
            index = (index << 1) | ((transposed[i] >> bit) & 1)
    return index


def decode(index: int, order: int, dimensions: int = 3) -> tuple[int, ...]:
    """Grid cell of a Hilbert index; the inverse of :func:`encode`.

    Args:
        index: Hilbert index in ``[0, 2**(order * dimensions))``.
        order: Bits per coordinate.
        dimensions: Number of coordinates.

    Returns:
        The integer coordinates.

    Raises:
        ValueError: If the index is out of range.
    """
    _check(order, dimensions)
    if not 0 <= index < 1 << (order * dimensions):
        raise ValueError(f"index {index} outside [0, 2**{order * dimensions})")

    x = [0] * dimensions
    position = order * dimensions - 1
    for bit in range(order - 1, -1, -1):
        for i in range(dimensions):
            x[i] |= ((index >> position) & 1) << bit
            position -= 1

    return tuple(_transpose_to_axes(x, order))
