import unittest
from datetime import datetime

from bidbot.database import (
    ProjectRecord,
    create_db_engine,
    get_user,
    init_db,
    make_session_factory,
    save_project,
    save_user,
)
from bidbot.projects import Project
from bidbot.users import Profile, QuietHours, Subscription, User, update_stats


class DatabaseTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_db_engine("sqlite://")
        init_db(self.engine)
        self.db = make_session_factory(self.engine)()

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    def test_save_user_upserts_and_loads_settings(self):
        user = User(
            telegram_id=99,
            first_name="Ada",
            profile=Profile(skills=["python"], bio="Backend developer"),
            quiet_hours=QuietHours(enabled=True, start="23:00", end="07:00"),
            subscription=Subscription(plan="premium", end_date=datetime(2026, 12, 1)),
        )
        update_stats(user, "sent", 4)
        update_stats(user, "won")
        first = save_user(self.db, user)

        update_stats(user, "proposal")
        second = save_user(self.db, user)
        self.assertEqual(first.id, second.id)

        loaded = get_user(self.db, 99)
        self.assertEqual(loaded.first_name, "Ada")
        self.assertEqual(loaded.profile.skills, ["python"])
        self.assertTrue(loaded.quiet_hours.enabled)
        self.assertEqual(loaded.stats.total_proposals, 1)
        self.assertEqual(loaded.stats.success_rate, 25.0)
        self.assertEqual(loaded.subscription.plan, "premium")
        self.assertEqual(loaded.subscription.end_date, datetime(2026, 12, 1))

    def test_missing_user_is_none(self):
        self.assertIsNone(get_user(self.db, 12345))

    def test_save_project_upserts_on_platform_and_id(self):
        save_project(self.db, Project(id="u1", platform="upwork", title="First"))
        save_project(self.db, Project(id="u1", platform="upwork", title="Renamed"))
        save_project(self.db, Project(id="u1", platform="freelancer", title="Other"))

        records = self.db.query(ProjectRecord).order_by(ProjectRecord.id).all()
        self.assertEqual([(r.platform, r.title) for r in records],
                         [("upwork", "Renamed"), ("freelancer", "Other")])


if __name__ == "__main__":
    unittest.main()
