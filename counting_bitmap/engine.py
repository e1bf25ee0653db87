import array
import logging
import operator
from collections.abc import Sequence
from typing import Any, Dict, Iterable, Iterator, Tuple

from .base import (
    DEFAULT_CONFIG,
    CountingBitmapError,
    FrequencyClass,
    InvalidCapacity,
    InvalidCount,
    OutOfRange,
)
from .utils import slot_mask, slot_position, slots_per_word, word_count, word_typecode


logger = logging.getLogger(__name__)


class CountingBitmap:
    """
    Fixed-capacity array of bit-packed saturating counters.

    Every integer in [0, universe_size) owns a counter_bits wide slot. Slots are
    packed into unsigned words of word_bits; value x lives in word
    x // slots_per_word at bit offset (x % slots_per_word) * counter_bits.
    A counter that reaches max_count stays there: it means "seen at least
    max_count times", never wraps.

    With the default 2-bit counters the states are 0 (absent), 1 (once),
    2 (twice) and 3 (three times or more).
    """

    def __init__(self, universe_size: int,
                 counter_bits: int = DEFAULT_CONFIG["counter_bits"],
                 word_bits: int = DEFAULT_CONFIG["word_bits"]):
        try:
            universe_size = operator.index(universe_size)
        except TypeError:
            raise InvalidCapacity(f"Universe size must be an integer, got {type(universe_size).__name__}")
        if universe_size < 0:
            raise InvalidCapacity(f"Universe size must be non-negative, got {universe_size}")

        self.universe_size = universe_size
        self.counter_bits = counter_bits
        self.word_bits = word_bits
        self.slots_per_word = slots_per_word(counter_bits, word_bits)
        self.max_count = (1 << counter_bits) - 1

        self._typecode = word_typecode(word_bits)
        self._words = array.array(self._typecode, bytes(
            word_count(universe_size, self.slots_per_word) * array.array(self._typecode).itemsize
        ))
        logger.debug(
            f"Allocated {len(self._words)} words of {word_bits} bits for {universe_size} values "
            f"({counter_bits}-bit counters)"
        )

    # --- slot access ---

    def _position(self, x: Any) -> Tuple[int, int]:
        value = operator.index(x)
        if not 0 <= value < self.universe_size:
            raise OutOfRange(x, self.universe_size)
        return slot_position(value, self.slots_per_word, self.counter_bits)

    def set(self, x: int, count: int):
        """Store count mod 2**counter_bits in x's slot, leaving neighbouring slots intact."""
        word_idx, shift = self._position(x)
        word = self._words[word_idx] & ~slot_mask(shift, self.counter_bits)
        self._words[word_idx] = word | ((count & self.max_count) << shift)

    def get(self, x: int) -> int:
        word_idx, shift = self._position(x)
        return (self._words[word_idx] >> shift) & self.max_count

    def increment(self, x: int):
        """Count one more occurrence of x; saturated counters are left alone."""
        self._bump(*self._position(x))

    add = increment

    def _bump(self, word_idx: int, shift: int):
        word = self._words[word_idx]
        if (word >> shift) & self.max_count < self.max_count:
            self._words[word_idx] = word + (1 << shift)

    def increment_all(self, values: Iterable[int]) -> int:
        """
        Increment every value; nothing is written unless all values are in range.

        Sequences are range-checked in a first pass and counted in a second.
        One-shot iterables are counted as they stream in, against a copy of the
        storage that is restored if a value is rejected.
        """
        ingested = 0
        if isinstance(values, Sequence):
            for x in values:
                self._position(x)
            for x in values:
                self._bump(*self._position(x))
                ingested += 1
        else:
            saved = array.array(self._typecode, self._words)
            try:
                for x in values:
                    self._bump(*self._position(x))
                    ingested += 1
            except Exception:
                self._words = saved
                raise
        logger.debug(f"Ingested {ingested} values")
        return ingested

    def frequency_class(self, x: int) -> FrequencyClass:
        return FrequencyClass.classify(self.get(x), self.max_count)

    # --- scans ---

    def _iter_counts(self, skip_empty: bool = True, reverse: bool = False) -> Iterator[Tuple[int, int]]:
        per_word = self.slots_per_word
        bits = self.counter_bits
        mask = self.max_count
        word_indices = range(len(self._words))
        if reverse:
            word_indices = reversed(word_indices)
        for word_idx in word_indices:
            word = self._words[word_idx]
            if skip_empty and not word:
                continue
            base = word_idx * per_word
            slots = range(min(per_word, self.universe_size - base))
            if reverse:
                slots = reversed(slots)
            for slot in slots:
                yield base + slot, (word >> (slot * bits)) & mask

    def sorted_unique(self) -> Iterator[int]:
        """Ascending, deduplicated values that were seen at least once."""
        for value, count in self._iter_counts():
            if count:
                yield value

    def sorted_unique_descending(self) -> Iterator[int]:
        for value, count in self._iter_counts(reverse=True):
            if count:
                yield value

    def with_exact_count(self, k: int) -> Iterator[int]:
        """
        Ascending values whose counter is exactly k.

        Only counts below saturation are exact, so k must lie in
        [0, max_count - 1]; use with_count_at_least_saturation() for the rest.
        """
        k = operator.index(k)
        if not 0 <= k < self.max_count:
            raise InvalidCount(f"Exact count must be in [0, {self.max_count - 1}], got {k}")
        return self._values_with_count(k)

    def _values_with_count(self, k: int) -> Iterator[int]:
        for value, count in self._iter_counts(skip_empty=k != 0):
            if count == k:
                yield value

    def with_count_at_least_saturation(self) -> Iterator[int]:
        return self._values_with_count(self.max_count)

    def distinct_count(self) -> int:
        return sum(1 for _ in self.sorted_unique())

    def histogram(self) -> Dict[int, int]:
        """Map each non-zero count to the number of values holding it."""
        result = {count: 0 for count in range(1, self.max_count + 1)}
        for _, count in self._iter_counts():
            if count:
                result[count] += 1
        return result

    # --- housekeeping ---

    def clear(self):
        for i in range(len(self._words)):
            self._words[i] = 0

    def copy(self) -> "CountingBitmap":
        """Independent snapshot, e.g. for scanning while this bitmap keeps changing."""
        clone = CountingBitmap(self.universe_size, self.counter_bits, self.word_bits)
        clone._words = array.array(self._typecode, self._words)
        return clone

    @property
    def words(self) -> Tuple[int, ...]:
        return tuple(self._words)

    @property
    def memory_bytes(self) -> int:
        return len(self._words) * self._words.itemsize

    def to_dict(self) -> Dict[str, Any]:
        return {
            "universe_size": self.universe_size,
            "counter_bits": self.counter_bits,
            "word_bits": self.word_bits,
            "words": list(self._words)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CountingBitmap":
        bitmap = cls(data["universe_size"], data["counter_bits"], data["word_bits"])
        words = data["words"]
        if len(words) != len(bitmap._words):
            raise CountingBitmapError(
                f"Expected {len(bitmap._words)} storage words, got {len(words)}"
            )
        try:
            bitmap._words = array.array(bitmap._typecode, words)
        except OverflowError as e:
            raise CountingBitmapError(f"Storage word does not fit in {bitmap.word_bits} bits: {e}")
        if any(bitmap._words[-1:]) and bitmap._unused_tail_bits():
            raise CountingBitmapError("Bits set beyond the last slot in use")
        return bitmap

    def _unused_tail_bits(self) -> int:
        """Bits of the last word that belong to no value."""
        used_slots = self.universe_size - (len(self._words) - 1) * self.slots_per_word
        used_bits = used_slots * self.counter_bits
        return self._words[-1] >> used_bits if used_bits < self.word_bits else 0

    def __len__(self) -> int:
        return self.universe_size

    def __contains__(self, x: Any) -> bool:
        try:
            return self.get(x) > 0
        except (OutOfRange, TypeError):
            return False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CountingBitmap):
            return NotImplemented
        return (self.universe_size, self.counter_bits, self.word_bits) == \
            (other.universe_size, other.counter_bits, other.word_bits) and self._words == other._words

    def __repr__(self) -> str:
        return (f"CountingBitmap(universe_size={self.universe_size}, "
                f"counter_bits={self.counter_bits}, word_bits={self.word_bits})")
