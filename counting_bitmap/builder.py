import logging
import random
import time
from typing import Iterable, List, Optional

from .base import DEFAULT_CONFIG, FrequencyReport
from .engine import CountingBitmap
from .storage import StorageManager


logger = logging.getLogger(__name__)


class BitmapBuilder:
    """Feeds integer streams into a CountingBitmap and collects its views."""

    def __init__(self, universe_size: int,
                 counter_bits: int = DEFAULT_CONFIG["counter_bits"],
                 word_bits: int = DEFAULT_CONFIG["word_bits"],
                 seed: Optional[int] = None):
        """
        Args:
            universe_size: Exclusive upper bound of the values to be counted.
            counter_bits: Bits per counter slot.
            word_bits: Width of one storage word.
            seed: Seed for random_ints(); None draws from the OS.
        """
        self.bitmap = CountingBitmap(universe_size, counter_bits, word_bits)
        self.rng = random.Random(seed)

        self.stats = {
            "build_time": 0,
            "ingested": 0,
            "distinct": 0,
            "saturated": 0
        }

    def random_ints(self, length: int, min_value: int, max_value: int) -> List[int]:
        """Uniform integers in [min_value, max_value], both ends inclusive."""
        if min_value > max_value:
            raise ValueError(f"min_value {min_value} exceeds max_value {max_value}")
        return [self.rng.randint(min_value, max_value) for _ in range(length)]

    def add_values(self, values: Iterable[int]) -> "BitmapBuilder":
        self.stats["ingested"] += self.bitmap.increment_all(values)
        return self

    def build(self) -> FrequencyReport:
        """Scan the bitmap once per view and return the report."""
        start_time = time.time()
        bitmap = self.bitmap

        report = FrequencyReport(
            universe_size=bitmap.universe_size,
            counter_bits=bitmap.counter_bits,
            unique=list(bitmap.sorted_unique()),
            by_count={k: list(bitmap.with_exact_count(k)) for k in range(1, bitmap.max_count)},
            saturated=list(bitmap.with_count_at_least_saturation())
        )

        self.stats["build_time"] = time.time() - start_time
        self.stats["distinct"] = report.distinct
        self.stats["saturated"] = len(report.saturated)
        logger.debug(f"Built report: {self.stats}")
        return report

    def save_to_file(self, filepath: str):
        """Save the bitmap using StorageManager."""
        StorageManager.save(filepath, self.bitmap)
