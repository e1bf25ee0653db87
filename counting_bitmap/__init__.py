from pathlib import Path
from typing import Optional, Union

from .base import (
    CountingBitmapError,
    FrequencyClass,
    FrequencyReport,
    InvalidCapacity,
    InvalidCount,
    InvalidCounterWidth,
    OutOfRange,
    load_config,
)
from .builder import BitmapBuilder
from .engine import CountingBitmap
from .storage import StorageManager


__all__ = [
    "CountingBitmap",
    "BitmapBuilder",
    "StorageManager",
    "FrequencyClass",
    "FrequencyReport",
    "CountingBitmapError",
    "InvalidCapacity",
    "InvalidCounterWidth",
    "InvalidCount",
    "OutOfRange",
    "load_config",
    "load_bitmap"
]

__version__ = "0.1.0"


def load_bitmap(universe_size: Optional[int] = None, index_path: Optional[Union[str, Path]] = None,
                **overrides: Optional[int]) -> CountingBitmap:
    """
    Factory function for bitmaps.

    Args:
        universe_size: Size of a new, empty bitmap. Ignored when index_path is given.
        index_path: Optional file written by StorageManager.save to load instead.
        **overrides: counter_bits / word_bits, on top of environment and defaults.
    """
    if index_path:
        return StorageManager.load(str(index_path))
    if universe_size is None:
        raise InvalidCapacity("Either universe_size or index_path is required")

    config = load_config(**overrides)
    return CountingBitmap(universe_size, config["counter_bits"], config["word_bits"])
