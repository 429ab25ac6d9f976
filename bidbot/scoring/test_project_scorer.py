import unittest

from bidbot.projects import ClientInfo, Project, ProposalStats
from bidbot.scoring.project_scorer import (
    calculate_scores,
    competition_score,
    matching_skills,
    round_half_up,
    search_quality_score,
    search_relevance_score,
)


def make_project(**overrides) -> Project:
    project = Project(id="p1", platform="upwork", title="React app", description="Build it")
    for key, value in overrides.items():
        setattr(project, key, value)
    return project


class ProfileScoreTests(unittest.TestCase):
    def test_reference_scenario(self):
        project = make_project(
            skills=["react", "node"],
            proposals=ProposalStats(count=3),
            client=ClientInfo(rating=4.5, verified=True),
        )
        scores = calculate_scores(project, ["react", "typescript"])
        self.assertEqual(scores.relevance, 50)
        self.assertEqual(scores.competition, 94)
        self.assertEqual(scores.quality, 80)
        self.assertEqual(scores.client, 68)  # 67.5 rounds half-up
        self.assertEqual(scores.overall, 69)
        self.assertIs(project.scores, scores)

    def test_relevance_zero_without_project_skills(self):
        scores = calculate_scores(make_project(skills=[]), ["react"])
        self.assertEqual(scores.relevance, 0)

    def test_skill_match_is_case_insensitive_substring(self):
        self.assertEqual(matching_skills(["React", "SQL"], ["react.js", "PostgreSQL"]), ["React", "SQL"])
        self.assertEqual(matching_skills(["Vue"], ["React"]), [])

    def test_competition_bounds(self):
        self.assertEqual(competition_score(0), 100)
        self.assertEqual(competition_score(50), 0)
        self.assertEqual(competition_score(120), 0)
        self.assertEqual(competition_score(None), 100)

    def test_scores_stay_in_range_for_extreme_inputs(self):
        project = make_project(
            skills=["python"],
            proposals=ProposalStats(count=500),
            client=ClientInfo(rating=5, hire_rate=1000, total_spent=10 ** 7,
                              verified=True, payment_verified=True),
        )
        scores = calculate_scores(project, ["python", "pythonic", "py"])
        for value in (scores.relevance, scores.quality, scores.competition, scores.client, scores.overall):
            self.assertGreaterEqual(value, 0)
            self.assertLessEqual(value, 100)
        self.assertEqual(scores.client, 100)
        self.assertEqual(scores.quality, 100)

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(0.5), 1)
        self.assertEqual(round_half_up(68.4), 68)


class SearchScoreTests(unittest.TestCase):
    def test_search_relevance(self):
        project = make_project(
            title="Python web app",
            skills=["a", "b", "c", "d", "e", "f"],
            normalized_budget=600,
        )
        # 3 keywords * 10 + skills capped at 25 + 15 for budget >= 500
        self.assertEqual(search_relevance_score(project), 70)

    def test_search_quality(self):
        project = make_project(
            description="x" * 150,
            proposals=ProposalStats(count=7),
            client=ClientInfo(rating=4.0, verified=True, jobs_posted=12),
        )
        # 40 rating + 20 verified + 15 hires + 10 description + 10 proposals
        self.assertEqual(search_quality_score(project), 95)


if __name__ == "__main__":
    unittest.main()
