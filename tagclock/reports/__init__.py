"""Report generation modules for tagClock."""

from .time_entry import TimeEntry
from .timesheet import Event, Timesheet, tags_match
from .report_generator import ReportGenerator
from .week_chart import WeekChart
from .tag_index import TagStats, build_tag_index, render_tag_index

__all__ = [
    'TimeEntry', 'Event', 'Timesheet', 'tags_match', 'ReportGenerator', 'WeekChart',
    'TagStats', 'build_tag_index', 'render_tag_index'
]
