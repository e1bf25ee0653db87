import array
from typing import Tuple

from .base import InvalidCounterWidth


SUPPORTED_WORD_BITS = (8, 16, 32, 64)


def word_typecode(word_bits: int) -> str:
    """Pick the unsigned array typecode whose item width is exactly word_bits."""
    if word_bits not in SUPPORTED_WORD_BITS:
        raise InvalidCounterWidth(f"Word width must be one of {SUPPORTED_WORD_BITS}, got {word_bits}")
    for code in "BHILQ":
        if array.array(code).itemsize * 8 == word_bits:
            return code
    raise InvalidCounterWidth(f"No unsigned array type is {word_bits} bits wide on this platform")


def slots_per_word(counter_bits: int, word_bits: int) -> int:
    if not isinstance(counter_bits, int) or isinstance(counter_bits, bool):
        raise InvalidCounterWidth(f"Counter bits must be an integer, got {type(counter_bits).__name__}")
    if counter_bits < 1 or counter_bits > word_bits or word_bits % counter_bits:
        raise InvalidCounterWidth(
            f"Counter bits must be >= 1 and divide the {word_bits}-bit word evenly, got {counter_bits}"
        )
    return word_bits // counter_bits


def word_count(universe_size: int, per_word: int) -> int:
    """ceil(universe_size / per_word)"""
    return (universe_size + per_word - 1) // per_word


def slot_position(value: int, per_word: int, counter_bits: int) -> Tuple[int, int]:
    """Return (word index, bit offset) of a value's slot."""
    word_idx, slot_idx = divmod(value, per_word)
    return word_idx, slot_idx * counter_bits


def slot_mask(shift: int, counter_bits: int) -> int:
    return ((1 << counter_bits) - 1) << shift
