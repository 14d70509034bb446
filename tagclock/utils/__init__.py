"""Utility modules for tagClock."""

from .date_utils import (
    parse_timestamp, format_timestamp, parse_date, parse_datetime,
    day_bounds, resolve_range, iter_days, day_str,
)
from .format_utils import format_hm, format_tags, short_ref, percent
from .file_utils import write_csv, write_markdown

__all__ = [
    'parse_timestamp', 'format_timestamp', 'parse_date', 'parse_datetime',
    'day_bounds', 'resolve_range', 'iter_days', 'day_str',
    'format_hm', 'format_tags', 'short_ref', 'percent',
    'write_csv', 'write_markdown'
]
