import tempfile
import unittest
from datetime import date, datetime
from pathlib import Path

from bidbot.analytics import AnalyticsService


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class AnalyticsReportTests(unittest.TestCase):
    def setUp(self):
        self.clock = FixedClock(datetime(2026, 10, 12, 9, 0))  # a Monday
        self.analytics = AnalyticsService(clock=self.clock)

    def test_empty_reports(self):
        report = self.analytics.daily_report()
        self.assertEqual(report["searches"]["total"], 0)
        self.assertEqual(report["proposals"]["average_length"], 0.0)
        self.assertEqual(self.analytics.performance()["response_rate"], 0.0)

    def test_daily_report(self):
        self.analytics.record_search("upwork", True, 800, projects_found=10)
        self.analytics.record_search("freelancer", False, 1200)
        self.analytics.record_proposal("upwork", "j1", 900, word_count=120, sent=True)
        self.analytics.record_proposal("upwork", "j2", 1100, word_count=180)

        report = self.analytics.daily_report(date(2026, 10, 12))
        self.assertEqual(report["searches"], {"total": 2, "successful": 1, "projects_found": 10})
        self.assertEqual(report["proposals"], {"total": 2, "sent": 1, "average_length": 150.0})
        self.assertEqual(report["platforms"]["upwork"], {"searches": 1, "projects": 10, "proposals": 2})
        self.assertEqual(self.analytics.daily_report(date(2026, 10, 13))["searches"]["total"], 0)

    def test_weekly_report_rates(self):
        self.analytics.record_proposal("upwork", "j1", 900, word_count=100, sent=True)
        self.analytics.record_proposal("upwork", "j2", 900, word_count=100, sent=True)
        self.clock.now = datetime(2026, 10, 14, 15, 0)
        self.analytics.record_response("j1", "upwork")
        self.analytics.record_win("j1", "upwork", budget=800)

        report = self.analytics.weekly_report()
        self.assertEqual(report["week_start"], "2026-10-12")
        self.assertEqual(report["week_end"], "2026-10-19")
        self.assertEqual(report["performance"], {"response_rate": 50.0, "win_rate": 100.0})
        self.assertEqual(self.analytics.performance()["win_rate"], 50.0)

    def test_export_csv(self):
        self.analytics.record_search("upwork", True, 500, projects_found=3)
        self.analytics.record_loss("j9", "fiverr", reason="price")
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out" / "events.csv"
            text = self.analytics.export_csv(path)
            self.assertTrue(path.exists())
        lines = text.strip().splitlines()
        self.assertTrue(lines[0].startswith("type,timestamp,platform"))
        self.assertEqual(len(lines), 3)

    def test_old_events_are_dropped(self):
        analytics = AnalyticsService(clock=self.clock, retention_days=7)
        analytics.record_search("upwork", True, 500)
        self.clock.now = datetime(2026, 10, 20, 9, 0)
        analytics.record_search("upwork", True, 500)
        self.assertEqual(len(analytics.to_dataframe()), 2)

        self.clock.now = datetime(2026, 10, 21, 9, 0)
        analytics.record_search("freelancer", True, 500)
        frame = analytics.to_dataframe()
        self.assertEqual(len(frame), 2)
        self.assertEqual(frame["timestamp"].min(), datetime(2026, 10, 20, 9, 0))

    def test_event_log_is_capped(self):
        analytics = AnalyticsService(clock=self.clock, max_events=3)
        for i in range(5):
            analytics.record_proposal("upwork", f"j{i}", 100, word_count=10)
        self.assertEqual(list(analytics.to_dataframe()["project_id"]), ["j2", "j3", "j4"])

    def test_reset(self):
        self.analytics.record_search("upwork", True, 500)
        self.analytics.reset()
        self.assertEqual(self.analytics.metrics()["totals"]["searches"]["total"], 0)


if __name__ == "__main__":
    unittest.main()
