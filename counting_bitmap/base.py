import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


DEFAULT_CONFIG = {
    "counter_bits": 2,
    "word_bits": 32,
}

ENV_PREFIX = "COUNTING_BITMAP_"


class CountingBitmapError(Exception):
    """Base class for all counting bitmap errors."""


class InvalidCapacity(CountingBitmapError, ValueError):
    """Universe size is negative or not an integer."""


class InvalidCounterWidth(CountingBitmapError, ValueError):
    """Counter width does not evenly divide the storage word width."""


class InvalidCount(CountingBitmapError, ValueError):
    """Requested exact count lies outside the non-saturated range."""


class OutOfRange(CountingBitmapError, IndexError):
    """Value is negative or not below the universe size."""

    def __init__(self, value: Any, universe_size: int):
        super().__init__(f"value {value!r} outside universe [0, {universe_size})")
        self.value = value
        self.universe_size = universe_size


class FrequencyClass(Enum):
    """Coarse frequency classes a slot value falls into."""
    ABSENT = "absent"
    ONCE = "once"
    TWICE = "twice"
    SEVERAL = "several"
    MANY = "many"

    @classmethod
    def classify(cls, count: int, max_count: int) -> "FrequencyClass":
        if count == 0:
            return cls.ABSENT
        # The saturated value wins over the exact classes (1-bit counters saturate at 1)
        if count >= max_count:
            return cls.MANY
        if count == 1:
            return cls.ONCE
        if count == 2:
            return cls.TWICE
        return cls.SEVERAL


@dataclass
class FrequencyReport:
    """Snapshot of the sorted and frequency views of a bitmap."""
    universe_size: int
    counter_bits: int
    unique: List[int] = field(default_factory=list)
    by_count: Dict[int, List[int]] = field(default_factory=dict)  # exact count -> values
    saturated: List[int] = field(default_factory=list)

    @property
    def distinct(self) -> int:
        return len(self.unique)

    @property
    def max_count(self) -> int:
        return (1 << self.counter_bits) - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "universe_size": self.universe_size,
            "counter_bits": self.counter_bits,
            "unique": list(self.unique),
            "by_count": {k: list(v) for k, v in self.by_count.items()},
            "saturated": list(self.saturated),
            "distinct": self.distinct
        }

    def render(self) -> List[str]:
        """Human-readable lines, one per view."""
        lines = ["Sorted distinct values: " + _join(self.unique)]
        for count in sorted(self.by_count):
            lines.append(f"Seen exactly {count}x: " + _join(self.by_count[count]))
        lines.append(f"Seen {self.max_count}x or more: " + _join(self.saturated))
        return lines


def _join(values: List[int]) -> str:
    return " ".join(str(v) for v in values)


def load_config(**overrides: Optional[int]) -> Dict[str, int]:
    """
    Resolve bitmap geometry settings.

    Precedence is explicit overrides, then environment variables
    (COUNTING_BITMAP_COUNTER_BITS, COUNTING_BITMAP_WORD_BITS), then DEFAULT_CONFIG.
    """
    config = dict(DEFAULT_CONFIG)
    for key in DEFAULT_CONFIG:
        env_value = os.getenv(ENV_PREFIX + key.upper(), "").strip()
        if env_value:
            try:
                config[key] = int(env_value)
            except ValueError:
                raise InvalidCounterWidth(f"{ENV_PREFIX + key.upper()}={env_value!r} is not an integer")
    for key, value in overrides.items():
        if key not in DEFAULT_CONFIG:
            raise KeyError(f"Unknown config key: {key}")
        if value is not None:
            config[key] = value
    return config
