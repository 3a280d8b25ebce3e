"""
Unit tests for the time-series store

Tests samples.py capacity, axis bounds and CSV export
"""

import threading
import unittest

import numpy as np

from vl53monitor.data.samples import (
    AxisBounds,
    Sample,
    TimeSeriesStore,
    next_axis_bounds,
    nice_ceil,
    parse_csv,
)


class TestSample(unittest.TestCase):
    """Test the sample value type"""

    def test_immutable(self):
        sample = Sample(1000, 523)
        with self.assertRaises(AttributeError):
            sample.time_ms = 5

    def test_negative_rejected(self):
        with self.assertRaises(ValueError):
            Sample(-1, 10)
        with self.assertRaises(ValueError):
            Sample(10, -1)


class TestNiceCeil(unittest.TestCase):
    """Test Y axis step ladder"""

    def test_ladder_steps(self):
        self.assertEqual(nice_ceil(0), 100)
        self.assertEqual(nice_ceil(100), 100)
        self.assertEqual(nice_ceil(101), 200)
        self.assertEqual(nice_ceil(523), 1000)
        self.assertEqual(nice_ceil(1001), 1500)
        self.assertEqual(nice_ceil(8190), 10000)

    def test_beyond_ladder(self):
        """Past the top step, round up to its multiples"""
        self.assertEqual(nice_ceil(10001), 20000)
        self.assertEqual(nice_ceil(30000), 30000)

    def test_custom_ladder(self):
        self.assertEqual(nice_ceil(7, ladder=(5, 10)), 10)
        self.assertEqual(nice_ceil(11, ladder=(5, 10)), 20)


class TestAxisBounds(unittest.TestCase):
    """Test axis bound derivation"""

    def test_window_before_span(self):
        """X stays at [0, span] until time passes the span"""
        bounds = next_axis_bounds(AxisBounds(), Sample(4000, 300), span_ms=10000)
        self.assertEqual(bounds.x_min, 0)
        self.assertEqual(bounds.x_max, 10000)

    def test_window_slides(self):
        """X window follows the latest time"""
        bounds = next_axis_bounds(AxisBounds(), Sample(25000, 300), span_ms=10000)
        self.assertEqual(bounds.x_min, 15000)
        self.assertEqual(bounds.x_max, 25000)

    def test_y_grows(self):
        bounds = next_axis_bounds(AxisBounds(y_max=1000), Sample(0, 1200))
        self.assertEqual(bounds.y_max, 1500)

    def test_y_never_shrinks(self):
        bounds = next_axis_bounds(AxisBounds(y_max=3000), Sample(0, 50))
        self.assertEqual(bounds.y_max, 3000)

    def test_y_max_monotonic_over_session(self):
        """y_max is non-decreasing for any sample sequence"""
        store = TimeSeriesStore(capacity=50)
        rng = np.random.default_rng(7)
        previous = store.bounds.y_max
        for t, d in zip(range(0, 20000, 100), rng.integers(0, 9000, size=200)):
            bounds = store.append(Sample(t, int(d)))
            self.assertGreaterEqual(bounds.y_max, previous)
            previous = bounds.y_max

    def test_pure(self):
        """next_axis_bounds does not modify its input"""
        before = AxisBounds(x_min=0, x_max=10000, y_max=1000)
        next_axis_bounds(before, Sample(50000, 5000))
        self.assertEqual(before, AxisBounds(x_min=0, x_max=10000, y_max=1000))


class TestTimeSeriesStore(unittest.TestCase):
    """Test the bounded store"""

    def test_fifo_eviction(self):
        """Capacity 3, five inserts: samples 3, 4, 5 remain"""
        store = TimeSeriesStore(capacity=3)
        for i in range(1, 6):
            store.append(Sample(i * 100, i))

        self.assertEqual(len(store), 3)
        self.assertEqual([s.distance_mm for s in store.samples()], [3, 4, 5])

    def test_never_exceeds_capacity(self):
        store = TimeSeriesStore(capacity=10)
        for i in range(1000):
            store.append(Sample(i, i % 300))
            self.assertLessEqual(len(store), 10)

    def test_insertion_order_kept(self):
        """Device clock may jump backwards; order is arrival order"""
        store = TimeSeriesStore()
        for t in (500, 100, 300):
            store.append(Sample(t, 10))
        self.assertEqual([s.time_ms for s in store], [500, 100, 300])

    def test_append_returns_bounds(self):
        store = TimeSeriesStore(span_ms=10000)
        bounds = store.append(Sample(12000, 1234))
        self.assertEqual(bounds, AxisBounds(x_min=2000, x_max=12000, y_max=1500))
        self.assertEqual(store.bounds, bounds)
        self.assertEqual(store.latest, Sample(12000, 1234))

    def test_clear(self):
        """clear() empties the store and resets the bounds"""
        store = TimeSeriesStore(initial_y_max=1000)
        store.append(Sample(50000, 4000))
        store.clear()
        self.assertEqual(len(store), 0)
        self.assertIsNone(store.latest)
        self.assertEqual(store.bounds, AxisBounds(x_min=0, x_max=10000, y_max=1000))

    def test_invalid_capacity(self):
        with self.assertRaises(ValueError):
            TimeSeriesStore(capacity=0)

    def test_as_arrays(self):
        """Chart units: seconds and centimetres"""
        store = TimeSeriesStore()
        store.append(Sample(1000, 523))
        store.append(Sample(1500, 100))
        t_s, dist_cm = store.as_arrays()
        np.testing.assert_allclose(t_s, [1.0, 1.5])
        np.testing.assert_allclose(dist_cm, [52.3, 10.0])

    def test_as_arrays_empty(self):
        t_s, dist_cm = TimeSeriesStore().as_arrays()
        self.assertEqual(t_s.size, 0)
        self.assertEqual(dist_cm.size, 0)

    def test_concurrent_append_and_export(self):
        """export() while another thread appends"""
        store = TimeSeriesStore(capacity=100)

        def writer():
            for i in range(5000):
                store.append(Sample(i, i % 2000))

        thread = threading.Thread(target=writer)
        thread.start()
        for _ in range(200):
            store.export()
        thread.join()
        self.assertEqual(len(store), 100)


class TestCsv(unittest.TestCase):
    """Test CSV export"""

    def test_export_format(self):
        store = TimeSeriesStore()
        store.append(Sample(1000, 523))
        store.append(Sample(1020, 525))
        self.assertEqual(store.export(), "t_ms,dist_mm\n1000,523\n1020,525")

    def test_export_empty(self):
        self.assertEqual(TimeSeriesStore().export(), "t_ms,dist_mm\n")

    def test_export_does_not_mutate(self):
        store = TimeSeriesStore()
        store.append(Sample(1, 2))
        bounds = store.bounds
        store.export()
        store.export()
        self.assertEqual(store.samples(), [Sample(1, 2)])
        self.assertEqual(store.bounds, bounds)

    def test_round_trip(self):
        """Re-parsing the export gives back the same samples"""
        store = TimeSeriesStore(capacity=5)
        for i in range(8):
            store.append(Sample(i * 20, 500 + i))
        self.assertEqual(parse_csv(store.export()), store.samples())

    def test_parse_legacy_header(self):
        text = "time_ms,distance_mm\n42,523\n\n84,530\n"
        self.assertEqual(parse_csv(text), [Sample(42, 523), Sample(84, 530)])

    def test_parse_bad_header(self):
        with self.assertRaises(ValueError):
            parse_csv("a,b\n1,2")

    def test_parse_bad_row(self):
        with self.assertRaises(ValueError):
            parse_csv("t_ms,dist_mm\n1,2,3")

    def test_parse_empty(self):
        self.assertEqual(parse_csv(""), [])


if __name__ == '__main__':
    unittest.main()
