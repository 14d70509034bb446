import sys
import json
import os
import shutil
import tempfile
import unittest
from unittest.mock import patch
from datetime import date, datetime, timezone, timedelta
from io import StringIO

# Add the parent directory to sys.path to import the tagclock package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from tagclock.__main__ import main, summary_interface
from tagclock.config import load_config
from tagclock.errors import InvalidInputError
from tagclock.repository import Repository
from tagclock.store import FileStore
from tagclock.utils.date_utils import day_bounds, parse_datetime, resolve_range
from tagclock.utils.format_utils import format_hm, format_tags, percent

NOW = datetime(2023, 1, 1, 12, 0, tzinfo=timezone.utc)


class TestUtils(unittest.TestCase):
    """Test date parsing and formatting helpers."""

    def test_parse_datetime(self):
        test_cases = [
            ("09:15", datetime(2023, 1, 1, 9, 15, tzinfo=timezone.utc)),
            ("2023-01-02 10:00", datetime(2023, 1, 2, 10, 0, tzinfo=timezone.utc)),
            ("2023-01-02T10:00:00+02:00", datetime(2023, 1, 2, 8, 0, tzinfo=timezone.utc)),
            ("2023-01-02T10:00:00Z", datetime(2023, 1, 2, 10, 0, tzinfo=timezone.utc)),
        ]
        for value, expected in test_cases:
            with self.subTest(value=value):
                self.assertEqual(parse_datetime(value, timezone.utc, date(2023, 1, 1)), expected)

    def test_parse_datetime_uses_zone(self):
        tz = timezone(timedelta(hours=2))
        self.assertEqual(parse_datetime("09:00", tz, date(2023, 1, 1)),
                         datetime(2023, 1, 1, 7, 0, tzinfo=timezone.utc))

    def test_parse_datetime_invalid(self):
        for value in ["", "25:00", "tomorrow", "2023-13-01 10:00"]:
            with self.subTest(value=value):
                with self.assertRaises(InvalidInputError):
                    parse_datetime(value, timezone.utc, date(2023, 1, 1))

    def test_resolve_range(self):
        today = date(2023, 1, 10)
        self.assertEqual(resolve_range(None, None, today), (today, today))
        self.assertEqual(resolve_range(None, None, today, 7), (date(2023, 1, 4), today))
        self.assertEqual(resolve_range("2023-01-01", None, today), (date(2023, 1, 1), today))
        self.assertEqual(resolve_range(None, "2023-01-05", today, 7), (date(2022, 12, 30), date(2023, 1, 5)))
        with self.assertRaises(InvalidInputError):
            resolve_range("2023-01-11", None, today)
        with self.assertRaises(InvalidInputError):
            resolve_range("01/02/2023", None, today)

    def test_day_bounds(self):
        start, end = day_bounds(date(2023, 1, 1), timezone(timedelta(hours=1)))
        self.assertEqual(start, datetime(2022, 12, 31, 23, 0, tzinfo=timezone.utc))
        self.assertEqual(end - start, timedelta(days=1))

    def test_formatting(self):
        self.assertEqual(format_hm(5400), "01:30")
        self.assertEqual(format_hm(-5400), "-01:30")
        self.assertEqual(format_tags({"work", "Lunch"}), "Lunch work")
        self.assertEqual(percent(1, 4), "25")
        self.assertEqual(percent(1, 0), "0")


class TestConfig(unittest.TestCase):
    """Test configuration from the environment."""

    def test_environment_and_overrides(self):
        with patch.dict('os.environ', {'TAGCLOCK_SYNC_DIR': '/tmp/sync', 'TAGCLOCK_DEVICE_ID': 'phone',
                                       'TAGCLOCK_TIMEZONE': ''}):
            config = load_config()
            self.assertEqual(config.sync_dir, '/tmp/sync')
            self.assertEqual(config.device_id, 'phone')
            self.assertIsNone(config.tz)

            config = load_config('/tmp/other', 'laptop')
            self.assertEqual(config.sync_dir, '/tmp/other')
            self.assertEqual(config.device_id, 'laptop')

    def test_invalid_device(self):
        with self.assertRaises(InvalidInputError):
            load_config('/tmp/sync', '../laptop')


class TestTagclockFunctionality(unittest.TestCase):
    """Test the complete functionality of the tagclock command."""

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self.env_patcher = patch.dict('os.environ', {
            'TAGCLOCK_ENV_FILE': os.path.join(self.tmpdir, 'missing.env'),
            'TAGCLOCK_SYNC_DIR': self.tmpdir,
            'TAGCLOCK_DEVICE_ID': 'laptop',
            'TAGCLOCK_TIMEZONE': '',
        })
        self.env_patcher.start()
        self.now_patcher = patch('tagclock.__main__.utc_now', return_value=NOW)
        self.now_patcher.start()

    def tearDown(self):
        self.now_patcher.stop()
        self.env_patcher.stop()
        shutil.rmtree(self.tmpdir)

    def run_cli(self, *argv):
        """Run the CLI and return (stdout, stderr, exit code)."""
        stdout, stderr = StringIO(), StringIO()
        code = 0
        with patch('sys.stdout', stdout), patch('sys.stderr', stderr):
            try:
                main(list(argv))
            except SystemExit as e:
                code = e.code
        return stdout.getvalue(), stderr.getvalue(), code

    def load_repo(self):
        return Repository.load(FileStore(self.tmpdir, 'laptop'))

    def test_start_and_summary(self):
        out, _, code = self.run_cli('start', 'work', 'coding', '--at', '2023-01-01T09:00:00+00:00')
        self.assertEqual(code, 0)
        self.assertIn("[SUCCESS] Started 'coding work'", out)

        out, _, code = self.run_cli('summary', '--start', '2022-12-31', '--end', '2023-01-02')
        self.assertEqual(code, 0)
        self.assertIn("### Time Entries", out)
        self.assertIn("### Time by Tag", out)
        self.assertIn("coding work", out)
        self.assertIn("03:00", out)

    def test_stop_without_tracking_fails(self):
        _, err, code = self.run_cli('stop')
        self.assertEqual(code, 1)
        self.assertIn("[ERROR] Nothing is being tracked", err)

    def test_start_without_tags_is_a_usage_error(self):
        _, _, code = self.run_cli('start')
        self.assertEqual(code, 2)

    def test_invalid_range(self):
        _, err, code = self.run_cli('summary', '--start', '2023-01-05', '--end', '2023-01-01')
        self.assertEqual(code, 1)
        self.assertIn("after end date", err)

    def test_week(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        out, _, code = self.run_cli('week', 'work')
        self.assertEqual(code, 0)
        lines = out.splitlines()
        self.assertTrue(lines[0].startswith("Day 0  1"))
        self.assertEqual(len(lines), 8)
        self.assertIn("█", out)

    def test_tags(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        self.run_cli('start', 'Lunch', '--at', '2023-01-01T11:00:00+00:00')
        out, _, code = self.run_cli('tags', '--plain')
        self.assertEqual(code, 0)
        self.assertEqual(out, "Lunch\nwork\n")

        out, _, _ = self.run_cli('tags')
        self.assertIn("| Tag", out)

    def test_tags_when_empty(self):
        out, _, code = self.run_cli('tags')
        self.assertEqual(code, 0)
        self.assertIn("No tags recorded yet", out)

    def test_set_tags_and_set_start(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        event_ref = self.load_repo().timesheet().events()[0][0]

        out, _, code = self.run_cli('set-tags', event_ref[:8], 'work', 'review')
        self.assertEqual(code, 0)
        self.assertIn("is now tagged 'review work'", out)

        out, _, code = self.run_cli('set-start', event_ref[:8], '2023-01-01T08:30:00+00:00')
        self.assertEqual(code, 0)

        event = self.load_repo().timesheet().get(event_ref)
        self.assertEqual(event.tags, frozenset({"work", "review"}))
        self.assertEqual(event.start, datetime(2023, 1, 1, 8, 30, tzinfo=timezone.utc))

    def test_unknown_event(self):
        _, err, code = self.run_cli('set-tags', 'nope', 'work')
        self.assertEqual(code, 1)
        self.assertIn("Unknown event nope", err)

    def test_status(self):
        out, _, _ = self.run_cli('status')
        self.assertIn("Nothing tracked yet", out)

        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        out, _, _ = self.run_cli('status')
        self.assertIn("▶  work since", out)
        self.assertIn("03:00", out)

        self.run_cli('stop', '--at', '2023-01-01T10:00:00+00:00')
        out, _, _ = self.run_cli('status')
        self.assertIn("Stopped since", out)

    def test_sync_from_other_device(self):
        self.run_cli('--device', 'phone', 'start', 'commute', '--at', '2023-01-01T08:00:00+00:00')
        out, err, code = self.run_cli('tags', '--plain')
        self.assertEqual(code, 0)
        self.assertEqual(out, "commute\n")
        self.assertIn("[INFO] Merged 1 patch(es)", err)

    def test_markdown_export(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        md_path = os.path.join(self.tmpdir, 'report.md')
        out, _, code = self.run_cli('summary', '--start', '2022-12-31', '--end', '2023-01-02', '--md', md_path)
        self.assertEqual(code, 0)
        self.assertIn("[SUCCESS] Markdown output written", out)
        with open(md_path, encoding='utf-8') as f:
            content = f.read()
        self.assertTrue(content.startswith("# Time tracked 2022-12-31 to 2023-01-02"))
        self.assertIn("### Time by Tag", content)

    def test_markdown_write_failure(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        md_path = os.path.join(self.tmpdir, 'missing', 'report.md')
        _, err, code = self.run_cli('summary', '--md', md_path)
        self.assertEqual(code, 2)
        self.assertIn("[ERROR]", err)

    def test_markdown_validation_failure(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        md_path = os.path.join(self.tmpdir, 'report.md')
        with patch('tagclock.utils.file_utils.markdown.markdown', side_effect=ValueError("bad table")):
            _, err, code = self.run_cli('summary', '--md', md_path)
        self.assertEqual(code, 3)
        self.assertIn("Markdown validation failed", err)
        self.assertFalse(os.path.exists(md_path))

    def test_malformed_patch_from_other_device(self):
        self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        event_ref = self.load_repo().timesheet().events()[0][0]
        bad_id = "0badbad0-0000-4000-8000-000000000000"
        with open(os.path.join(self.tmpdir, 'patches', f'{bad_id}.json'), 'w') as f:
            json.dump({"id": bad_id, "add-tag": [{"parents": [], "event": event_ref, "tag": 5}]}, f)
        with open(os.path.join(self.tmpdir, 'meta', 'phone.json'), 'w') as f:
            json.dump({"patches": [bad_id]}, f)

        out, err, code = self.run_cli('tags', '--plain')
        self.assertEqual(code, 0)
        self.assertEqual(out, "work\n")
        self.assertIn(f"[WARN] Patch {bad_id}", err)

    def test_broken_meta_from_other_device(self):
        os.makedirs(os.path.join(self.tmpdir, 'meta'))
        with open(os.path.join(self.tmpdir, 'meta', 'phone.json'), 'w') as f:
            f.write('{"patches": ["ab')

        out, err, code = self.run_cli('start', 'work', '--at', '2023-01-01T09:00:00+00:00')
        self.assertEqual(code, 0)
        self.assertIn("[SUCCESS] Started 'work'", out)
        self.assertIn("[WARN] Invalid meta file for device phone", err)

    @patch('sys.stdout', new_callable=StringIO)
    def test_summary_breakdown(self, mock_stdout):
        repo = self.load_repo()
        repo.start(["work"], datetime(2023, 1, 1, 9, 0, tzinfo=timezone.utc))
        repo.stop(datetime(2023, 1, 1, 10, 0, tzinfo=timezone.utc))
        repo.start(["work"], datetime(2023, 1, 2, 9, 0, tzinfo=timezone.utc))
        repo.stop(datetime(2023, 1, 2, 11, 0, tzinfo=timezone.utc))

        summary_interface(repo, ["work"], "2023-01-01", "2023-01-02", tz=timezone.utc,
                          now=datetime(2023, 1, 3, tzinfo=timezone.utc), breakdown=True)

        output = mock_stdout.getvalue()
        self.assertIn("### Time Entries (Sun)2023-01-01", output)
        self.assertIn("### Time Entries (Mo)2023-01-02", output)
        self.assertIn("### Time by Day", output)
        self.assertIn("03:00", output)
        self.assertIn("[work]", output)


if __name__ == '__main__':
    unittest.main()
