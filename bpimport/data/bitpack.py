"""Palette index bit-packing.

Regions store one palette index per voxel, packed into 64-bit words. Each
entry is ``bits_per_entry`` wide, never less than 4, and entries do not cross
word boundaries: a word holds ``64 // bits_per_entry`` entries and any high
bits left over are padding.
"""

from collections.abc import Sequence
from typing import Any

import numpy as np

MIN_BITS_PER_ENTRY = 4
WORD_BITS = 64
U32_MASK = 0xFFFFFFFF
U64_MASK = 0xFFFFFFFFFFFFFFFF


def bits_per_entry(palette_size: int) -> int:
    """Width of one packed index for a palette of ``palette_size`` entries.

    Example:
        >>> bits_per_entry(1), bits_per_entry(16), bits_per_entry(17)
        (4, 4, 5)
    """
    # (n - 1).bit_length() == ceil(log2(n)) for n >= 1
    return max(MIN_BITS_PER_ENTRY, (max(1, palette_size) - 1).bit_length())


def entries_per_word(bits: int) -> int:
    return max(1, WORD_BITS // bits)


def compose_word(hi: int, lo: int) -> int:
    """Join two 32-bit halves into one unsigned 64-bit value.

    Both halves are taken as unsigned, so ``-1`` and ``0xFFFFFFFF`` are the same.
    """
    return ((int(hi) & U32_MASK) << 32) | (int(lo) & U32_MASK)


def to_unsigned_words(words: Any) -> np.ndarray:
    """Normalise a packed-word payload to a ``uint64`` array.

    Accepts a signed or unsigned integer ndarray (nbtlib ``LongArray`` is
    signed int64), a sequence of Python ints, or a sequence of ``(hi, lo)``
    32-bit pairs.
    """
    if words is None:
        return np.zeros(0, dtype=np.uint64)

    if isinstance(words, np.ndarray):
        # nbtlib LongArray indexes element-wise into Python ints; drop the subclass
        words = words.view(np.ndarray)
        if words.ndim == 2 and words.shape[1] == 2:
            return np.array([compose_word(hi, lo) for hi, lo in words.tolist()],
                            dtype=np.uint64)
        if words.dtype.kind == "i":
            return words.astype(np.int64).view(np.uint64).ravel()
        if words.dtype.kind == "u":
            return words.astype(np.uint64).ravel()
        words = words.tolist()

    out = np.zeros(len(words), dtype=np.uint64)
    for i, word in enumerate(words):
        if isinstance(word, Sequence) and not isinstance(word, (str, bytes)):
            if len(word) != 2:
                continue
            out[i] = compose_word(word[0], word[1])
        elif isinstance(word, (int, np.integer)):
            out[i] = int(word) & U64_MASK
    return out


def unpack_indices(words: Any, palette_size: int, voxel_count: int) -> np.ndarray:
    """Unpack ``voxel_count`` palette indices from packed 64-bit words.

    Args:
        words: Packed words in any form ``to_unsigned_words`` accepts
        palette_size: Number of palette entries
        voxel_count: Number of indices to produce

    Returns:
        1D array of length ``voxel_count``. Indices past the end of ``words``
        are 0. Values are not checked against ``palette_size``.

    Example:
        >>> unpack_indices([0x21], palette_size=3, voxel_count=4).tolist()
        [1, 2, 0, 0]
    """
    bits = bits_per_entry(palette_size)
    per_word = entries_per_word(bits)
    packed = to_unsigned_words(words)

    i = np.arange(voxel_count, dtype=np.int64)
    word_index = i // per_word
    offsets = ((i % per_word) * bits).astype(np.uint64)

    present = word_index < len(packed)
    selected = np.zeros(voxel_count, dtype=np.uint64)
    if len(packed):
        selected[present] = packed[word_index[present]]

    mask = np.uint64((1 << bits) - 1) if bits < WORD_BITS else np.uint64(U64_MASK)
    values = (selected >> offsets) & mask
    return values.astype(np.uint32) if bits <= 32 else values


def pack_indices(indices: Sequence[int], palette_size: int) -> np.ndarray:
    """Inverse of ``unpack_indices``; returns signed int64 words as stored on disk."""
    bits = bits_per_entry(palette_size)
    per_word = entries_per_word(bits)
    word_count = (len(indices) + per_word - 1) // per_word
    words = [0] * word_count
    for i, value in enumerate(indices):
        words[i // per_word] |= (int(value) & ((1 << bits) - 1)) << ((i % per_word) * bits)
    return np.array(words, dtype=np.uint64).view(np.int64)
