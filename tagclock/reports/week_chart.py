"""WeekChart: a visual overview of when matching activities took place."""
from datetime import date, datetime, time, timezone, tzinfo
from io import StringIO
from typing import Iterable, Optional

from .timesheet import Timesheet, tags_match
from ..utils.date_utils import iter_days, localize, to_utc

SLOTS_PER_HOUR = 3
SLOT_MINUTES = 60 // SLOTS_PER_HOUR
FILLED = "█"
EMPTY = " "

class WeekChart:
    """Renders one row per day and one cell per 20 minutes.

    A cell is filled when the tags in effect at the start of the slot
    contain every filter tag. Slots in the future stay empty.
    """

    def __init__(self, timesheet: Timesheet, start_date: date, end_date: date,
                 tags: Iterable[str] = (), now: Optional[datetime] = None, tz: Optional[tzinfo] = None):
        self.timesheet = timesheet
        self.start_date = start_date
        self.end_date = end_date
        self.tags = set(tags)
        self.now = now or datetime.now(timezone.utc)
        self.tz = tz

    def header(self) -> str:
        return "Day " + "".join(f"{hour:<3}" for hour in range(24))

    def row(self, day: date) -> str:
        """Render the cells of one local day."""
        cells = []
        for section in range(24 * SLOTS_PER_HOUR):
            hour, minute = divmod(section * SLOT_MINUTES, 60)
            instant = to_utc(localize(datetime.combine(day, time(hour, minute)), self.tz))
            tags = self.timesheet.tags_at_time(instant)
            matches = tags is not None and tags_match(self.tags, tags)
            cells.append(FILLED if matches and instant <= self.now else EMPTY)
        return f"{day.strftime('%a')} " + "".join(cells)

    def render(self) -> str:
        output = StringIO()
        print(self.header(), file=output)
        for day in iter_days(self.start_date, self.end_date):
            print(self.row(day), file=output)
        return output.getvalue()
