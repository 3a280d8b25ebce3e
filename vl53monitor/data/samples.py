"""
Time-series store for ranging samples

Holds the recorded (time, distance) samples in arrival order with a fixed
capacity, derives the chart axis bounds after every insert, and converts
the recording to and from CSV.

Units are device units throughout (ms, mm); ``as_arrays()`` converts to the
chart's seconds and centimetres.
"""

import threading
from collections import deque
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..utils.constants import (
    CSV_HEADER,
    LEGACY_CSV_HEADER,
    MAX_POINTS,
    X_SPAN_DEFAULT_MS,
    Y_INIT_MAX_MM,
    Y_STEP_LADDER,
)


@dataclass(frozen=True)
class Sample:
    """One distance reading (device clock ms, distance mm)"""
    time_ms: int
    distance_mm: int

    def __post_init__(self):
        if self.time_ms < 0 or self.distance_mm < 0:
            raise ValueError(f"Negative sample: {self.time_ms},{self.distance_mm}")


@dataclass(frozen=True)
class AxisBounds:
    """Chart axis limits: sliding X window (ms) and Y maximum (mm)"""
    x_min: int = 0
    x_max: int = X_SPAN_DEFAULT_MS
    y_max: int = Y_INIT_MAX_MM


def nice_ceil(value: float, ladder: Sequence[int] = Y_STEP_LADDER) -> int:
    """
    Round up to the next step of the ladder

    Values above the last step round up to a multiple of it.

    Example:
        >>> nice_ceil(523)
        1000
        >>> nice_ceil(12345)
        20000
    """
    for step in ladder:
        if value <= step:
            return step
    top = ladder[-1]
    return int(-(-value // top) * top)


def next_axis_bounds(bounds: AxisBounds, sample: Sample,
                     span_ms: int = X_SPAN_DEFAULT_MS,
                     ladder: Sequence[int] = Y_STEP_LADDER) -> AxisBounds:
    """
    Axis bounds after ``sample`` becomes the latest point

    X follows the newest time with a fixed span; Y only ever grows.

    Args:
        bounds: Bounds before the insert
        sample: Newly appended sample
        span_ms: Width of the visible time window
        ladder: Step ladder for the Y maximum

    Returns:
        AxisBounds: New bounds
    """
    x_max = max(span_ms, sample.time_ms)
    x_min = max(0, x_max - span_ms)
    y_max = max(bounds.y_max, nice_ceil(sample.distance_mm, ladder))
    return AxisBounds(x_min=x_min, x_max=x_max, y_max=y_max)


class TimeSeriesStore:
    """
    Capacity-bounded, insertion-ordered sample buffer

    When full, the oldest sample is evicted. All methods are thread-safe,
    so ``export()`` can run while the read thread appends.
    """

    def __init__(self, capacity: int = MAX_POINTS,
                 span_ms: int = X_SPAN_DEFAULT_MS,
                 initial_y_max: int = Y_INIT_MAX_MM,
                 ladder: Sequence[int] = Y_STEP_LADDER):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")

        self.capacity = capacity
        self.span_ms = span_ms
        self.initial_y_max = initial_y_max
        self.ladder = tuple(ladder)

        self._samples = deque(maxlen=capacity)
        self._lock = threading.Lock()
        self._bounds = self._initial_bounds()

    def _initial_bounds(self) -> AxisBounds:
        return AxisBounds(x_min=0, x_max=self.span_ms, y_max=self.initial_y_max)

    @property
    def bounds(self) -> AxisBounds:
        return self._bounds

    @property
    def latest(self) -> Optional[Sample]:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def append(self, sample: Sample) -> AxisBounds:
        """
        Record a sample, evicting the oldest one when full

        Returns:
            AxisBounds: Bounds recomputed for the new sample
        """
        with self._lock:
            self._samples.append(sample)
            self._bounds = next_axis_bounds(self._bounds, sample,
                                            self.span_ms, self.ladder)
            return self._bounds

    def clear(self):
        """Drop all samples and reset the axis bounds"""
        with self._lock:
            self._samples.clear()
            self._bounds = self._initial_bounds()

    def samples(self) -> List[Sample]:
        """Snapshot of the recorded samples, oldest first"""
        with self._lock:
            return list(self._samples)

    def export(self) -> str:
        """
        Render the recording as CSV

        Header ``t_ms,dist_mm`` followed by one row per sample; rows are
        joined with newlines and the last row has no terminator.
        """
        rows = [f"{s.time_ms},{s.distance_mm}" for s in self.samples()]
        return CSV_HEADER + "\n" + "\n".join(rows)

    def as_arrays(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Recording in chart units

        Returns:
            (t_s, dist_cm): float64 arrays of seconds and centimetres
        """
        snapshot = self.samples()
        t_ms = np.fromiter((s.time_ms for s in snapshot), dtype=np.float64,
                           count=len(snapshot))
        d_mm = np.fromiter((s.distance_mm for s in snapshot), dtype=np.float64,
                           count=len(snapshot))
        return t_ms / 1000.0, d_mm / 10.0

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def __iter__(self) -> Iterator[Sample]:
        return iter(self.samples())


def parse_csv(text: str) -> List[Sample]:
    """
    Parse an exported recording back into samples

    Accepts both the ``t_ms,dist_mm`` and the legacy ``time_ms,distance_mm``
    header. Blank lines are skipped.

    Raises:
        ValueError: Unknown header or malformed row
    """
    lines = text.splitlines()
    if not lines:
        return []

    header = lines[0].strip()
    if header not in (CSV_HEADER, LEGACY_CSV_HEADER):
        raise ValueError(f"Unexpected CSV header: {header!r}")

    samples = []
    for lineno, line in enumerate(lines[1:], start=2):
        if not line.strip():
            continue
        parts = line.split(",")
        if len(parts) != 2:
            raise ValueError(f"Line {lineno}: expected 2 fields, got {len(parts)}")
        samples.append(Sample(int(parts[0]), int(parts[1])))
    return samples
