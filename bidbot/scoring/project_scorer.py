"""
Project Scoring Module

Two scoring passes are applied to freelance listings:

1. Search-time scores (relevance_score / quality_score), computed for
   every normalized search result and used to sort result lists.
2. Profile-aware scores (ProjectScores), computed against a freelancer's
   skills when a project is reviewed:
   - Relevance (0-100): share of project skills the user covers
   - Quality (0-100): client verification and track record
   - Competition (0-100, fewer proposals = higher score)
   - Client (0-100): rating, hire rate and spend
   - Overall: 0.4 relevance + 0.25 quality + 0.2 competition + 0.15 client

Weights are fixed legacy constants. Every score is clamped to [0, 100]
and rounded half-up.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterable, Optional

from ..projects import Project, ProjectScores

# Overall score weights (sum to 1.0)
OVERALL_WEIGHTS = {
    "relevance": 0.40,
    "quality": 0.25,
    "competition": 0.20,
    "client": 0.15,
}

QUALITY_BASE = 50
QUALITY_BONUSES = {
    "verified": 20,
    "payment_verified": 15,
    "good_rating": 10,   # rating >= 4
    "spend": 5,          # total spent > 1000
}
COMPETITION_PENALTY_PER_PROPOSAL = 2

TECH_KEYWORDS = ("web", "app", "mobile", "react", "node", "javascript", "python", "ai", "ml")


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return max(lower, min(upper, value))


def round_half_up(value: float) -> int:
    """Round .5 away from zero, unlike Python's built-in round()."""
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _skills_match(user_skill: str, project_skill: str) -> bool:
    u, p = user_skill.lower(), project_skill.lower()
    return u in p or p in u


def matching_skills(user_skills: Iterable[str], project_skills: Iterable[str]) -> list[str]:
    """User skills that appear in (or contain) any project skill, in user order."""
    project_skills = [s for s in project_skills if s]
    return [
        skill for skill in user_skills
        if skill and any(_skills_match(skill, p) for p in project_skills)
    ]


def relevance_score(project: Project, user_skills: Iterable[str]) -> float:
    if not project.skills:
        return 0.0
    matched = matching_skills(user_skills, project.skills)
    return clamp(len(matched) / len(project.skills) * 100)


def quality_score(project: Project) -> float:
    client = project.client
    score = QUALITY_BASE
    if client.verified:
        score += QUALITY_BONUSES["verified"]
    if client.payment_verified:
        score += QUALITY_BONUSES["payment_verified"]
    if client.rating is not None and client.rating >= 4:
        score += QUALITY_BONUSES["good_rating"]
    if client.total_spent and client.total_spent > 1000:
        score += QUALITY_BONUSES["spend"]
    return clamp(score)


def competition_score(proposal_count: Optional[int]) -> float:
    count = proposal_count or 0
    return clamp(100 - count * COMPETITION_PENALTY_PER_PROPOSAL)


def client_score(project: Project) -> float:
    client = project.client
    score = 0.0
    if client.rating:
        score += client.rating * 15
    if client.hire_rate:
        score += client.hire_rate * 0.5
    if client.total_spent and client.total_spent > 5000:
        score += 10
    return clamp(score)


def overall_score(factor_scores: Dict[str, float]) -> float:
    total = sum(factor_scores[name] * weight for name, weight in OVERALL_WEIGHTS.items())
    return clamp(total)


def calculate_scores(project: Project, user_skills: Iterable[str]) -> ProjectScores:
    """Score a project against a freelancer's skills and store the result on it."""
    factors = {
        "relevance": relevance_score(project, list(user_skills)),
        "quality": quality_score(project),
        "competition": competition_score(project.proposals.count),
        "client": client_score(project),
    }
    overall = overall_score(factors)

    project.scores = ProjectScores(
        relevance=round_half_up(factors["relevance"]),
        quality=round_half_up(factors["quality"]),
        competition=round_half_up(factors["competition"]),
        client=round_half_up(factors["client"]),
        overall=round_half_up(overall),
    )
    return project.scores


# ---------------------------------------------------------------------------
# Search-time scores
# ---------------------------------------------------------------------------

def search_relevance_score(project: Project) -> int:
    score = 0
    if project.title:
        words = project.title.lower().split(" ")
        score += sum(1 for word in words if word in TECH_KEYWORDS) * 10

    if project.skills:
        score += min(len(project.skills) * 5, 25)

    budget = project.normalized_budget
    if budget:
        if budget >= 1000:
            score += 20
        elif budget >= 500:
            score += 15
        elif budget >= 100:
            score += 10

    return round_half_up(clamp(score))


def search_quality_score(project: Project) -> int:
    client = project.client
    score = 0.0
    if client.rating:
        score += client.rating * 10
    if client.verified:
        score += 20

    hires = client.jobs_posted
    if hires:
        if hires >= 10:
            score += 15
        elif hires >= 5:
            score += 10
        elif hires >= 1:
            score += 5

    if project.description and len(project.description) > 100:
        score += 10

    count = project.proposals.count
    if count < 5:
        score += 15
    elif count < 10:
        score += 10
    elif count < 20:
        score += 5

    return round_half_up(clamp(score))


def apply_search_scores(project: Project) -> Project:
    project.relevance_score = search_relevance_score(project)
    project.quality_score = search_quality_score(project)
    return project
