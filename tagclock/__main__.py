"""Main module for the tagclock package."""
import io
import sys
import argparse
from datetime import datetime, timezone, tzinfo
from typing import List, Optional

from .config import Config, load_config, load_environment
from .errors import MarkdownValidationError, TagclockError
from .repository import Repository
from .reports import ReportGenerator, WeekChart, build_tag_index, render_tag_index
from .store import FileStore
from .utils.date_utils import as_local, day_bounds, day_str, iter_days, parse_datetime, resolve_range
from .utils.file_utils import write_markdown
from .utils.format_utils import format_hm, format_tags, short_ref

SUMMARY_DEFAULT_DAYS = 1
WEEK_DEFAULT_DAYS = 7

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def info(message: str) -> None:
    print(f"[INFO] {message}", file=sys.stderr)

def warn(message: str) -> None:
    print(f"[WARN] {message}", file=sys.stderr)

# --- CLI Logic ---
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        argv: Arguments without the program name (sys.argv when None)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        description="Track where your time goes, one tag at a time.",
        epilog="""
Examples:
    # Start working on something (ends whatever ran before)
  tagclock start work coding
    ---
    # Stop tracking at a given time
  tagclock stop --at 17:30
    ---
    # Summary of everything tagged 'work' last week
  tagclock summary work --start 2025-05-12 --end 2025-05-18
    ---
    # Visual overview of the last seven days
  tagclock week
    ---
    # Fix the start of an event listed by 'summary'
  tagclock set-start 3f2a9c1e "2025-05-15 09:10"
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        prog="tagclock"
    )
    parser.add_argument('--sync-dir', help='Directory shared between devices (default: $TAGCLOCK_SYNC_DIR)')
    parser.add_argument('--device', help='Name of this device (default: $TAGCLOCK_DEVICE_ID or host name)')
    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    start = commands.add_parser('start', help='Start tracking an activity')
    start.add_argument('tags', nargs='+', help='Tags describing the activity')
    start.add_argument('--at', help='Start time (HH:MM, "YYYY-MM-DD HH:MM" or ISO 8601; default: now)')

    stop = commands.add_parser('stop', help='Stop tracking')
    stop.add_argument('--at', help='Stop time (default: now)')

    for name, help_text, default_desc in (
        ('summary', 'Tabular summary of tracked time', 'today'),
        ('week', 'Visual overview of tracked time per day', 'end minus 6 days'),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument('tags', nargs='*', help='Only include time carrying all of these tags')
        sub.add_argument('--start', help=f'Start date (YYYY-MM-DD, default: {default_desc})')
        sub.add_argument('--end', help='End date (YYYY-MM-DD, default: today)')
        if name == 'summary':
            sub.add_argument('--breakdown', action='store_true', help='Add a table of entries per day')
            sub.add_argument('--csv', help='Export tables to CSV (provide filename prefix)')
            sub.add_argument('--md', help='Export output as markdown to the given file path')
            sub.add_argument('--overwrite', action='store_true', help='Overwrite the markdown file if it exists')

    tags = commands.add_parser('tags', help='List all tags in use')
    tags.add_argument('--start', help='Only count events from this date (YYYY-MM-DD)')
    tags.add_argument('--end', help='Only count events up to this date (YYYY-MM-DD)')
    tags.add_argument('--plain', action='store_true', help='Print tag names only, one per line')

    set_start = commands.add_parser('set-start', help='Change the start time of an event')
    set_start.add_argument('event', help='Event id or unique prefix')
    set_start.add_argument('time', help='New start time')

    set_tags = commands.add_parser('set-tags', help='Replace the tags of an event')
    set_tags.add_argument('event', help='Event id or unique prefix')
    set_tags.add_argument('tags', nargs='+', help='New tags')

    commands.add_parser('status', help='Show what is being tracked and the state of the sync directory')
    return parser.parse_args(argv)

def open_repository(config: Config) -> Repository:
    """Load the repository and report anything skipped while merging."""
    store = FileStore(config.sync_dir, config.device_id)
    repo = Repository.load(store)
    for warning in repo.warnings:
        warn(str(warning))
    if repo.merged:
        info(f"Merged {len(repo.merged)} patch(es) into the record of device '{config.device_id}'")
    return repo

def local_today(now: datetime, tz: Optional[tzinfo]):
    return as_local(now, tz).date()

# --- Commands ---
def start_interface(repo: Repository, tags: List[str], at_str: Optional[str], tz: Optional[tzinfo], now: datetime) -> None:
    at = parse_datetime(at_str, tz, local_today(now, tz)) if at_str else now
    patch = repo.start(tags, at)
    event = next(iter(patch.create_events))
    print(f"[SUCCESS] Started '{format_tags(event.tags)}' at "
          f"{as_local(event.start, tz).strftime('%Y-%m-%d %H:%M')} (event {short_ref(event.event)})")

def stop_interface(repo: Repository, at_str: Optional[str], tz: Optional[tzinfo], now: datetime) -> None:
    at = parse_datetime(at_str, tz, local_today(now, tz)) if at_str else now
    patch = repo.stop(at)
    event = next(iter(patch.create_events))
    print(f"[SUCCESS] Stopped at {as_local(event.start, tz).strftime('%Y-%m-%d %H:%M')}")

def summary_interface(repo: Repository, tags: List[str], start_str: Optional[str] = None, end_str: Optional[str] = None,
                      tz: Optional[tzinfo] = None, now: Optional[datetime] = None, breakdown: bool = False,
                      csv_prefix: Optional[str] = None, md_path: Optional[str] = None, overwrite: bool = False) -> None:
    """Print the summary report for a date range.

    Args:
        repo: Loaded repository
        tags: Tag filter
        start_str: Start date string (YYYY-MM-DD)
        end_str: End date string (YYYY-MM-DD)
        tz: Local zone (system zone when None)
        now: Current time (UTC)
        breakdown: Whether to print one entries table per day
        csv_prefix: Prefix for CSV files
        md_path: Path to export markdown
        overwrite: Whether to overwrite an existing markdown file
    """
    now = now or utc_now()
    timesheet = repo.timesheet()
    start_date, end_date = resolve_range(start_str, end_str, local_today(now, tz), SUMMARY_DEFAULT_DAYS)
    window_start, _ = day_bounds(start_date, tz)
    _, window_end = day_bounds(end_date, tz)
    days = iter_days(start_date, end_date)

    md_buffer = io.StringIO() if md_path else None

    def print_report(report: str):
        if md_buffer:
            md_buffer.write(report)
        else:
            print(report)

    print(f"📅 {day_str(start_date)} → {day_str(end_date)}" + (f"  [{format_tags(tags)}]" if tags else ""))

    if breakdown:
        for day in days:
            day_start, day_end = day_bounds(day, tz)
            day_entries = timesheet.entries(day_start, day_end, now, tags, tz)
            if not day_entries:
                continue
            report_generator = ReportGenerator(day_entries, day_str(day), days=1)
            print_report(report_generator.generate_report(day_table=True))

    entries = timesheet.entries(window_start, window_end, now, tags, tz)
    untracked = timesheet.untracked_seconds(window_start, window_end, now)
    date_range_str = day_str(start_date) if start_date == end_date else f"{day_str(start_date)} to {day_str(end_date)}"
    report_generator = ReportGenerator(entries, date_range_str, days=len(days), untracked_sec=untracked)
    print_report(report_generator.generate_report(csv_prefix, day_table=None if breakdown else False))

    if md_path:
        action = write_markdown(md_path, f"\n{md_buffer.getvalue()}\n",
                                f"Time tracked {start_date} to {end_date}", overwrite)
        print(f"[SUCCESS] Markdown output written to '{md_path}' ({action})")

def week_interface(repo: Repository, tags: List[str], start_str: Optional[str] = None, end_str: Optional[str] = None,
                   tz: Optional[tzinfo] = None, now: Optional[datetime] = None) -> None:
    now = now or utc_now()
    timesheet = repo.timesheet()
    start_date, end_date = resolve_range(start_str, end_str, local_today(now, tz), WEEK_DEFAULT_DAYS)
    chart = WeekChart(timesheet, start_date, end_date, tags, now=now, tz=tz)
    print(chart.render(), end="")

def tags_interface(repo: Repository, start_str: Optional[str] = None, end_str: Optional[str] = None,
                   plain: bool = False, tz: Optional[tzinfo] = None, now: Optional[datetime] = None) -> None:
    now = now or utc_now()
    timesheet = repo.timesheet()
    window_start = window_end = None
    if start_str or end_str:
        today = local_today(now, tz)
        _, end_date = resolve_range(None, end_str, today)
        first = timesheet.first()
        first_date = as_local(first[1].start, tz).date() if first else end_date
        start_date, end_date = resolve_range(start_str or str(min(first_date, end_date)), end_str, today)
        window_start, _ = day_bounds(start_date, tz)
        _, window_end = day_bounds(end_date, tz)
    index = build_tag_index(timesheet, now, window_start, window_end)
    if not index and not plain:
        print("⚠️  No tags recorded yet")
        return
    print(render_tag_index(index, plain), end="")

def set_start_interface(repo: Repository, event: str, time_str: str, tz: Optional[tzinfo], now: datetime) -> None:
    at = parse_datetime(time_str, tz, local_today(now, tz))
    patch = repo.set_start(event, at)
    if patch is None:
        info("Event already starts at that time, nothing to do")
        return
    event_ref = repo.find_event(event)
    print(f"[SUCCESS] Event {short_ref(event_ref)} now starts at {as_local(at, tz).strftime('%Y-%m-%d %H:%M')}")

def set_tags_interface(repo: Repository, event: str, tags: List[str]) -> None:
    patch = repo.set_tags(event, tags)
    event_ref = repo.find_event(event)
    if patch is None:
        info("Event already has these tags, nothing to do")
        return
    tags_now = sorted({tag for _, tag in repo.state.events[event_ref].tags()})
    print(f"[SUCCESS] Event {short_ref(event_ref)} is now tagged '{format_tags(tags_now)}'")

def status_interface(repo: Repository, config: Config, tz: Optional[tzinfo] = None, now: Optional[datetime] = None) -> None:
    now = now or utc_now()
    metas, broken = repo.store.metas()
    print(f"Sync directory: {repo.store.root}")
    print(f"Device: {config.device_id} ({len(metas) + len(broken)} device(s) known)")
    print(f"Patches applied: {len(repo.applied)}, skipped: {len(repo.warnings)}")

    timesheet = repo.timesheet()
    latest = timesheet.latest()
    if latest is None:
        print("Nothing tracked yet")
        return
    event_ref, event = latest
    since = as_local(event.start, tz).strftime('%Y-%m-%d %H:%M')
    if event.is_stop:
        print(f"⏹  Stopped since {since}")
    else:
        running = int((now - event.start).total_seconds()) if now > event.start else 0
        print(f"▶  {format_tags(event.tags)} since {since} ({format_hm(running)}, event {short_ref(event_ref)})")

def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point."""
    load_environment()
    args = parse_args(argv)

    try:
        config = load_config(args.sync_dir, args.device)
        tz = config.tz
        now = utc_now()
        repo = open_repository(config)

        if args.command == 'start':
            start_interface(repo, args.tags, args.at, tz, now)
        elif args.command == 'stop':
            stop_interface(repo, args.at, tz, now)
        elif args.command == 'summary':
            summary_interface(
                repo, args.tags, args.start, args.end, tz, now, args.breakdown,
                args.csv, args.md, args.overwrite
            )
        elif args.command == 'week':
            week_interface(repo, args.tags, args.start, args.end, tz, now)
        elif args.command == 'tags':
            tags_interface(repo, args.start, args.end, args.plain, tz, now)
        elif args.command == 'set-start':
            set_start_interface(repo, args.event, args.time, tz, now)
        elif args.command == 'set-tags':
            set_tags_interface(repo, args.event, args.tags)
        elif args.command == 'status':
            status_interface(repo, config, tz, now)
    except MarkdownValidationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(3)
    except TagclockError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(2)

if __name__ == "__main__":
    main()
