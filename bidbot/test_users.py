import unittest
from datetime import datetime, timedelta

from bidbot.users import (
    QuietHours,
    Subscription,
    User,
    is_in_quiet_hours,
    subscription_status,
    update_stats,
    validate_subscription,
)

NOW = datetime(2026, 10, 18, 12, 0)


class UserStatsTests(unittest.TestCase):
    def test_success_rate_from_sent_and_won(self):
        user = User(telegram_id=1)
        update_stats(user, "sent", 4, now=NOW)
        update_stats(user, "won", now=NOW)
        self.assertEqual(user.stats.success_rate, 25.0)

        update_stats(user, "search", now=NOW)
        self.assertEqual(user.stats.total_searches, 1)
        self.assertEqual(user.stats.last_search_date, NOW)

    def test_unknown_kind_rejected(self):
        with self.assertRaises(ValueError):
            update_stats(User(telegram_id=1), "likes")

    def test_full_name(self):
        self.assertEqual(User(telegram_id=1, first_name="Ada").full_name, "Ada")


class QuietHoursTests(unittest.TestCase):
    def test_disabled_never_quiet(self):
        self.assertFalse(is_in_quiet_hours(User(telegram_id=1), NOW.replace(hour=23)))

    def test_overnight_window(self):
        user = User(telegram_id=1, quiet_hours=QuietHours(enabled=True, start="22:00", end="08:00"))
        self.assertTrue(is_in_quiet_hours(user, NOW.replace(hour=23, minute=30)))
        self.assertTrue(is_in_quiet_hours(user, NOW.replace(hour=7, minute=59)))
        self.assertFalse(is_in_quiet_hours(user, NOW.replace(hour=12)))

    def test_same_day_window(self):
        user = User(telegram_id=1, quiet_hours=QuietHours(enabled=True, start="13:00", end="14:00"))
        self.assertTrue(is_in_quiet_hours(user, NOW.replace(hour=13, minute=30)))
        self.assertFalse(is_in_quiet_hours(user, NOW.replace(hour=15)))


class SubscriptionTests(unittest.TestCase):
    def status(self, **sub):
        return subscription_status(User(telegram_id=1, subscription=Subscription(**sub)), NOW)

    def test_statuses(self):
        self.assertEqual(self.status(), {"status": "free", "days_left": None})
        self.assertEqual(self.status(plan="basic"), {"status": "invalid", "days_left": None})
        self.assertEqual(self.status(plan="basic", end_date=NOW - timedelta(days=1)),
                         {"status": "expired", "days_left": 0})
        self.assertEqual(self.status(plan="premium", end_date=NOW + timedelta(days=3, hours=1)),
                         {"status": "expiring", "days_left": 4})
        self.assertEqual(self.status(plan="premium", end_date=NOW + timedelta(days=30)),
                         {"status": "active", "days_left": 30})

    def test_end_must_follow_start(self):
        with self.assertRaises(ValueError):
            validate_subscription(Subscription(plan="basic", start_date=NOW, end_date=NOW))


if __name__ == "__main__":
    unittest.main()
