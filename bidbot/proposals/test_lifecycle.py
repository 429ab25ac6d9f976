import unittest
from datetime import datetime, timedelta

from bidbot.proposals.lifecycle import (
    ProposalState,
    calculate_proposal_quality,
    mark_as_sent,
    record_response,
    response_time_hours,
    transition,
)


class ProposalQualityTests(unittest.TestCase):
    def test_short_plain_text(self):
        quality = calculate_proposal_quality("Short note.")
        self.assertEqual(quality.readability, 50)
        self.assertEqual(quality.relevance, 50)
        self.assertEqual(quality.personalization, 30)
        self.assertEqual(quality.score, 44)  # 15 + 20 + 9
        self.assertEqual(quality.word_count, 2)

    def test_bonuses_are_applied_and_capped(self):
        body = " ".join(["word"] * 150)
        content = (f"Hi there! I read your project requirements. {body} My experience, "
                   "portfolio and timeline fit. Thank you")
        quality = calculate_proposal_quality(content)
        self.assertEqual(quality.readability, 100)
        self.assertEqual(quality.personalization, 100)
        self.assertEqual(quality.score, 80)  # 30 + 20 + 30

    def test_empty_content(self):
        self.assertEqual(calculate_proposal_quality("").word_count, 0)


class ProposalTransitionTests(unittest.TestCase):
    def setUp(self):
        self.state = ProposalState(user_id="u1", project_id="p1", content="text")

    def test_send_then_respond(self):
        sent_at = datetime(2026, 10, 1, 9, 0)
        mark_as_sent(self.state, sent_at)
        record_response(self.state, "interview", "Let's talk", rating=5,
                        now=sent_at + timedelta(hours=5, minutes=30))
        self.assertEqual(self.state.status, "responded")
        self.assertTrue(self.state.response.received)
        self.assertEqual(self.state.response.type, "interview")
        self.assertEqual(response_time_hours(self.state), 5)

        transition(self.state, "accepted")
        self.assertEqual(self.state.status, "accepted")

    def test_invalid_transitions_raise(self):
        with self.assertRaises(ValueError):
            transition(self.state, "accepted")
        with self.assertRaises(ValueError):
            transition(self.state, "archived")
        with self.assertRaises(ValueError):
            record_response(self.state, "interview")  # not sent yet

    def test_response_validation(self):
        mark_as_sent(self.state)
        with self.assertRaises(ValueError):
            record_response(self.state, "maybe")
        with self.assertRaises(ValueError):
            record_response(self.state, "hire", rating=6)
        self.assertEqual(self.state.status, "sent")
        self.assertIsNone(response_time_hours(self.state))


if __name__ == "__main__":
    unittest.main()
