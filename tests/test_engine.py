import tracemalloc
import unittest

from counting_bitmap import (
    CountingBitmap,
    CountingBitmapError,
    InvalidCount,
    InvalidCounterWidth,
    OutOfRange,
)


class TestSlotArithmetic(unittest.TestCase):
    def test_round_trip_every_width(self):
        for counter_bits in (1, 2, 4, 8):
            bitmap = CountingBitmap(70, counter_bits=counter_bits)
            for x in range(70):
                count = (x * 7) % (bitmap.max_count + 1)
                bitmap.set(x, count)
            for x in range(70):
                self.assertEqual(bitmap.get(x), (x * 7) % (bitmap.max_count + 1))

    def test_set_wraps_modulo_counter_width(self):
        bitmap = CountingBitmap(4)
        bitmap.set(1, 5)
        self.assertEqual(bitmap.get(1), 1)
        bitmap.set(1, -1)
        self.assertEqual(bitmap.get(1), 3)

    def test_slot_isolation(self):
        bitmap = CountingBitmap(32)
        bitmap.set(4, 3)
        bitmap.set(6, 3)
        bitmap.set(5, 3)
        bitmap.set(5, 0)
        self.assertEqual(bitmap.get(4), 3)
        self.assertEqual(bitmap.get(5), 0)
        self.assertEqual(bitmap.get(6), 3)
        self.assertEqual(bitmap.words[0], (3 << 8) | (3 << 12))

    def test_layout_matches_word_and_offset(self):
        bitmap = CountingBitmap(40, counter_bits=2, word_bits=32)
        bitmap.set(17, 2)
        self.assertEqual(bitmap.words, (0, 2 << 2, 0))

    def test_wider_words(self):
        bitmap = CountingBitmap(100, counter_bits=4, word_bits=64)
        self.assertEqual(bitmap.slots_per_word, 16)
        self.assertEqual(bitmap.memory_bytes, 7 * 8)
        bitmap.set(99, 9)
        self.assertEqual(bitmap.get(99), 9)

    def test_counter_width_must_divide_word(self):
        for counter_bits in (0, 3, 33, -2):
            with self.assertRaises(InvalidCounterWidth):
                CountingBitmap(10, counter_bits=counter_bits)
        with self.assertRaises(InvalidCounterWidth):
            CountingBitmap(10, word_bits=24)


class TestSaturation(unittest.TestCase):
    def test_increment_saturates_and_stays(self):
        for counter_bits in (1, 2, 4):
            bitmap = CountingBitmap(16, counter_bits=counter_bits)
            seen = []
            for _ in range(bitmap.max_count + 5):
                bitmap.increment(7)
                seen.append(bitmap.get(7))
            self.assertEqual(seen, sorted(seen))
            self.assertEqual(seen[-6:], [bitmap.max_count] * 6)

    def test_saturation_does_not_touch_neighbours(self):
        bitmap = CountingBitmap(16)
        for _ in range(10):
            bitmap.increment(15)
        self.assertEqual(bitmap.get(15), 3)
        self.assertEqual(bitmap.get(14), 0)
        self.assertEqual(bitmap.words, (3 << 30,))

    def test_add_alias(self):
        bitmap = CountingBitmap(3)
        bitmap.add(2)
        self.assertEqual(bitmap.get(2), 1)


class TestRangeRejection(unittest.TestCase):
    def setUp(self):
        self.bitmap = CountingBitmap(10)
        self.bitmap.set(9, 2)

    def test_out_of_range_operations(self):
        for x in (-1, 10, 11, 1 << 40):
            with self.assertRaises(OutOfRange):
                self.bitmap.get(x)
            with self.assertRaises(OutOfRange):
                self.bitmap.set(x, 1)
            with self.assertRaises(OutOfRange):
                self.bitmap.increment(x)
        self.assertEqual(self.bitmap.words, (2 << 18,))

    def test_out_of_range_is_index_error(self):
        with self.assertRaises(IndexError):
            self.bitmap.get(10)
        self.assertIsInstance(OutOfRange(10, 10), CountingBitmapError)

    def test_bulk_increment_is_all_or_nothing(self):
        with self.assertRaises(OutOfRange):
            self.bitmap.increment_all([1, 2, 3, 10])
        self.assertEqual(list(self.bitmap.sorted_unique()), [9])
        self.assertEqual(self.bitmap.increment_all([1, 1, 2]), 3)
        self.assertEqual(self.bitmap.get(1), 2)

    def test_bulk_increment_from_stream_rolls_back(self):
        self.bitmap.increment_all(iter([4, 4]))
        before = self.bitmap.words
        with self.assertRaises(OutOfRange):
            self.bitmap.increment_all(x for x in [1, 2, 4, 10, 3])
        self.assertEqual(self.bitmap.words, before)
        with self.assertRaises(TypeError):
            self.bitmap.increment_all(iter([1, 2.0]))
        self.assertEqual(self.bitmap.words, before)

    def test_bulk_increment_saturates(self):
        self.assertEqual(self.bitmap.increment_all(x for x in [0] * 10), 10)
        self.assertEqual(self.bitmap.increment_all((1,) * 10), 10)
        self.assertEqual(self.bitmap.get(0), 3)
        self.assertEqual(self.bitmap.get(1), 3)
        self.assertEqual(self.bitmap.get(2), 0)

    def test_contains_never_raises(self):
        self.assertIn(9, self.bitmap)
        self.assertNotIn(10, self.bitmap)
        self.assertNotIn(-3, self.bitmap)
        self.assertNotIn("9", self.bitmap)


class TestScans(unittest.TestCase):
    def setUp(self):
        self.bitmap = CountingBitmap(50)
        for value in [49, 3, 3, 17, 0, 17, 17, 17, 33, 3]:
            self.bitmap.increment(value)

    def test_sorted_unique_dedups_in_order(self):
        self.assertEqual(list(self.bitmap.sorted_unique()), [0, 3, 17, 33, 49])
        self.assertEqual(list(self.bitmap.sorted_unique_descending()), [49, 33, 17, 3, 0])

    def test_scans_are_restartable(self):
        first = list(self.bitmap.sorted_unique())
        self.assertEqual(list(self.bitmap.sorted_unique()), first)

    def test_exact_counts(self):
        self.assertEqual(list(self.bitmap.with_exact_count(1)), [0, 33, 49])
        self.assertEqual(list(self.bitmap.with_exact_count(2)), [])
        self.assertEqual(list(self.bitmap.with_count_at_least_saturation()), [3, 17])
        zeros = list(self.bitmap.with_exact_count(0))
        self.assertEqual(len(zeros), 45)
        self.assertEqual(zeros[:3], [1, 2, 4])

    def test_exact_count_range(self):
        for k in (-1, 3):
            with self.assertRaises(InvalidCount):
                self.bitmap.with_exact_count(k)
        with self.assertRaises(TypeError):
            self.bitmap.with_exact_count(1.5)

    def test_histogram_and_distinct(self):
        self.assertEqual(self.bitmap.histogram(), {1: 3, 2: 0, 3: 2})
        self.assertEqual(self.bitmap.distinct_count(), 5)

    def test_scan_stops_at_universe_bound(self):
        bitmap = CountingBitmap(17)
        self.assertEqual(len(list(bitmap.with_exact_count(0))), 17)


class TestStreamingMemory(unittest.TestCase):
    def test_large_stream_does_not_buffer_values(self):
        bitmap = CountingBitmap(1 << 20)
        stream_length = 300000
        tracemalloc.start()
        try:
            ingested = bitmap.increment_all((i * 7919) % (1 << 20) for i in range(stream_length))
            _, peak = tracemalloc.get_traced_memory()
        finally:
            tracemalloc.stop()
        self.assertEqual(ingested, stream_length)
        self.assertEqual(bitmap.distinct_count(), stream_length)
        self.assertLess(peak, 10 * bitmap.memory_bytes)


class TestSnapshots(unittest.TestCase):
    def test_copy_is_independent(self):
        bitmap = CountingBitmap(20)
        bitmap.increment(4)
        snapshot = bitmap.copy()
        bitmap.increment(5)
        self.assertEqual(list(snapshot.sorted_unique()), [4])
        self.assertNotEqual(snapshot, bitmap)

    def test_clear(self):
        bitmap = CountingBitmap(20)
        bitmap.increment_all(range(20))
        bitmap.clear()
        self.assertEqual(bitmap, CountingBitmap(20))

    def test_dict_round_trip(self):
        bitmap = CountingBitmap(40, counter_bits=4)
        bitmap.set(39, 12)
        restored = CountingBitmap.from_dict(bitmap.to_dict())
        self.assertEqual(restored, bitmap)
        self.assertEqual(restored.get(39), 12)

    def test_from_dict_rejects_bad_storage(self):
        data = CountingBitmap(20).to_dict()
        data["words"] = [0]
        with self.assertRaises(CountingBitmapError):
            CountingBitmap.from_dict(data)
        data["words"] = [0, 1 << 10]
        with self.assertRaises(CountingBitmapError):
            CountingBitmap.from_dict(data)


if __name__ == "__main__":
    unittest.main()
