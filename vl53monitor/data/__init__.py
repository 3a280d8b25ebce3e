"""
Recorded samples, axis bounds and CSV export
"""

from .samples import (
    AxisBounds,
    Sample,
    TimeSeriesStore,
    next_axis_bounds,
    nice_ceil,
    parse_csv,
)

__all__ = [
    'AxisBounds',
    'Sample',
    'TimeSeriesStore',
    'next_axis_bounds',
    'nice_ceil',
    'parse_csv',
]
