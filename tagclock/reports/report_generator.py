"""ReportGenerator class for generating summaries from time entries."""
from collections import defaultdict
from io import StringIO
from typing import List, Optional

from tabulate import tabulate

from .time_entry import TimeEntry
from ..utils.date_utils import day_str
from ..utils.format_utils import format_hm, percent

class ReportGenerator:
    """Class for generating reports from time entries."""

    def __init__(self, entries: List[TimeEntry], date_range_str: str, days: int = 1, untracked_sec: int = 0):
        """Initialize a ReportGenerator.

        Args:
            entries: List of TimeEntry objects
            date_range_str: String representing the date range
            days: Number of days the range covers
            untracked_sec: Stopped time inside the range
        """
        self.entries = entries
        self.date_range_str = date_range_str
        self.days = days
        self.untracked_sec = untracked_sec

        self.tag_durations = defaultdict(int)
        self.day_durations = defaultdict(int)
        self.total_duration = 0

        for entry in entries:
            self.total_duration += entry.duration_sec
            self.day_durations[entry.start_date] += entry.duration_sec
            for tag in entry.tags:
                self.tag_durations[tag] += entry.duration_sec

    @property
    def percent_header(self) -> str:
        if self.days == 1:
            return "%/Day"
        if self.days == 7:
            return "%/Week"
        return "%/Range"

    def generate_report(self, csv_prefix: Optional[str] = None, day_table: Optional[bool] = False) -> str:
        """Generate a complete report.

        Args:
            csv_prefix: Prefix for CSV files (optional)
            day_table: True for a per-day entries table, None to skip entries

        Returns:
            Report as a string
        """
        output = StringIO()

        if not self.entries:
            print(f"\n⚠️  No time tracked {self.date_range_str}", file=output)
            return output.getvalue()

        self._generate_entries_table(output, csv_prefix, day_table)
        if day_table:
            return output.getvalue()
        self._generate_day_table(output, csv_prefix)
        self._generate_tag_table(output, csv_prefix)
        self._generate_totals_table(output, csv_prefix)

        return output.getvalue()

    def _generate_entries_table(self, output: StringIO, csv_prefix: Optional[str] = None, day_table: Optional[bool] = False):
        """Generate the time entries table.

        Args:
            output: StringIO to write to
            csv_prefix: Prefix for CSV files (optional)
            day_table: Whether this is a day-specific table
        """
        if day_table is None:
            return

        percent_header = "%/Day" if day_table else self.percent_header
        headers = ["#", "Event", "Date", "Start", "End", "Duration", "Tags", percent_header]
        table_rows = [entry.to_row(self.total_duration) for entry in self.entries]

        print(f"\n### Time Entries {self.date_range_str}:", file=output)
        print(tabulate(table_rows, headers=headers, tablefmt="github"), file=output)

        if csv_prefix and not day_table:
            from ..utils.file_utils import write_csv
            write_csv(f"{csv_prefix}_entries.csv", headers, table_rows)

    def _generate_day_table(self, output: StringIO, csv_prefix: Optional[str] = None):
        """Generate the per-day table for ranges longer than a day."""
        if self.days < 2:
            return

        day_table = [
            [day_str(day), percent(secs, self.total_duration), format_hm(secs)]
            for day, secs in sorted(self.day_durations.items())
        ]
        headers = ["Day", self.percent_header, "Duration"]
        print(f"\n### Time by Day {self.date_range_str}:", file=output)
        print(tabulate(day_table, headers=headers, tablefmt="github"), file=output)

        if csv_prefix:
            from ..utils.file_utils import write_csv
            write_csv(f"{csv_prefix}_days.csv", headers, day_table)

    def _generate_tag_table(self, output: StringIO, csv_prefix: Optional[str] = None):
        """Generate the tag table.

        An entry counts fully towards each of its tags, so the column can
        add up to more than the total.

        Args:
            output: StringIO to write to
            csv_prefix: Prefix for CSV files (optional)
        """
        if not self.tag_durations:
            return

        tag_table = [
            [tag, percent(secs, self.total_duration), format_hm(secs)]
            for tag, secs in sorted(self.tag_durations.items(), key=lambda x: (-x[1], x[0]))
        ]
        headers = ["Tag", self.percent_header, "ΣDuration"]
        print(f"\n### Time by Tag {self.date_range_str}:", file=output)
        print(tabulate(tag_table, headers=headers, tablefmt="github"), file=output)

        if csv_prefix:
            from ..utils.file_utils import write_csv
            write_csv(f"{csv_prefix}_tags.csv", headers, tag_table)

    def _generate_totals_table(self, output: StringIO, csv_prefix: Optional[str] = None):
        """Generate the totals table.

        Args:
            output: StringIO to write to
            csv_prefix: Prefix for CSV files (optional)
        """
        totals_table = [
            ["Tracked", format_hm(self.total_duration)],
            ["Stopped", format_hm(self.untracked_sec)],
            ["Entries", str(len(self.entries))],
        ]
        headers = ["Total", "h:mm"]

        print(f"\n### Totals {self.date_range_str}:", file=output)
        print(tabulate(totals_table, headers=headers, tablefmt="github", disable_numparse=True), file=output)

        if csv_prefix:
            from ..utils.file_utils import write_csv
            write_csv(f"{csv_prefix}_totals.csv", headers, totals_table)

        print(file=output)
