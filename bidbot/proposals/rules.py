"""
Keyword rule tables for template selection and proposal variables.

Each table is an ordered list of (keywords, value). first_match returns
the value of the first row with any keyword contained in the text;
all_matches collects the value of every matching row.
"""
from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..projects import Project

Rule = tuple[Sequence[str], str]


def first_match(rules: Iterable[Rule], text: str, default: str) -> str:
    for keywords, value in rules:
        if any(keyword in text for keyword in keywords):
            return value
    return default


def all_matches(rules: Iterable[Rule], text: str) -> list[str]:
    return [value for keywords, value in rules if any(keyword in text for keyword in keywords)]


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------
TEMPLATE_RULES: list[Rule] = [
    (("mobile", "app", "ios", "android"), "mobile_development"),
    (("design", "ui", "ux", "graphic"), "design"),
    (("web", "website", "react", "node"), "web_development"),
]

PROJECT_GOAL_RULES: list[Rule] = [
    (("build", "create", "develop"), "build a high-quality solution"),
    (("fix", "debug", "improve"), "fix and improve your existing system"),
    (("design", "redesign"), "create an outstanding design"),
]

PLATFORM_RULES: list[Rule] = [
    (("ios",), "iOS"),
    (("android",), "Android"),
    (("react native",), "React Native"),
    (("flutter",), "Flutter"),
]

TECH_SKILLS = ("react", "node", "javascript", "python", "swift", "kotlin", "flutter", "react native")

APP_TYPE_RULES: list[Rule] = [
    (("ecommerce", "shop"), "e-commerce"),
    (("social",), "social"),
    (("business",), "business"),
    (("game",), "gaming"),
]

DESIGN_TYPE_RULES: list[Rule] = [
    (("logo",), "logo design"),
    (("web", "ui"), "web design"),
    (("brand",), "branding"),
    (("print",), "print design"),
]

DELIVERABLE_RULES: list[Rule] = [
    (("logo",), "a professional logo"),
    (("website",), "a modern website design"),
    (("app",), "mobile app designs"),
]

DESIGN_GOAL_RULES: list[Rule] = [
    (("brand",), "strengthen your brand identity"),
    (("user", "ux"), "improve user experience"),
    (("modern",), "modernize your visual presence"),
]

# (min budget exclusive, min description length exclusive, estimate), largest first
TIME_ESTIMATES: list[tuple[float, int, str]] = [
    (5000, 1000, "4-6 weeks"),
    (1000, 500, "2-3 weeks"),
]
DEFAULT_TIME_ESTIMATE = "1-2 weeks"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def project_text(project: Project) -> str:
    return f"{project.title or ''} {project.description or ''}".lower()


def select_template_name(project: Project, language: str = "en") -> str:
    skills = " ".join(s.lower() for s in project.skills)
    content = f"{(project.title or '').lower()} {(project.description or '').lower()} {skills}"
    name = first_match(TEMPLATE_RULES, content, "web_development")
    if name == "web_development" and language == "uk":
        return "web_development_uk"
    return name


def extract_project_goal(project: Project) -> str:
    return first_match(PROJECT_GOAL_RULES, (project.description or "").lower(),
                       "achieve your project objectives")


def extract_relevant_skills(project: Project, user_skills: Sequence[str]) -> str:
    relevant = [
        skill for skill in user_skills
        if any(skill.lower() in p.lower() or p.lower() in skill.lower() for p in project.skills)
    ]
    return ", ".join(relevant if relevant else list(user_skills)[:3])


def estimate_project_time(project: Project) -> str:
    budget = project.normalized_budget or 0
    length = len(project.description or "")
    for min_budget, min_length, estimate in TIME_ESTIMATES:
        if budget > min_budget or length > min_length:
            return estimate
    return DEFAULT_TIME_ESTIMATE


def extract_platforms(project: Project) -> str:
    found = all_matches(PLATFORM_RULES, project_text(project))
    return " and ".join(found) if found else "iOS and Android"


def extract_technologies(project: Project) -> str:
    tech = [s for s in project.skills if any(t in s.lower() for t in TECH_SKILLS)]
    return ", ".join(tech) if tech else "modern technologies"


def extract_app_type(project: Project) -> str:
    return first_match(APP_TYPE_RULES, project_text(project), "mobile")


def extract_design_types(project: Project) -> str:
    found = all_matches(DESIGN_TYPE_RULES, project_text(project))
    return ", ".join(found) if found else "visual design"


def extract_deliverables(project: Project) -> str:
    return first_match(DELIVERABLE_RULES, project_text(project), "high-quality designs")


def extract_design_goal(project: Project) -> str:
    return first_match(DESIGN_GOAL_RULES, project_text(project), "achieve your design goals")


def _profile_value(profile: dict, key: str, default: str) -> str:
    value: Optional[object] = profile.get(key)
    if value in (None, "", []):
        return default
    return str(value)


def extract_variables(project: Project, profile: dict) -> dict[str, str]:
    """Values for every placeholder the default templates use."""
    user_skills = [s for s in (profile.get("skills") or []) if s]
    return {
        "experience": _profile_value(profile, "experience", "5+"),
        "skills": ", ".join(user_skills) if user_skills else "various technologies",
        "projectCount": _profile_value(profile, "completed_projects", "50+"),
        "projectGoal": extract_project_goal(project),
        "relevantSkills": extract_relevant_skills(project, user_skills),
        "estimatedTime": estimate_project_time(project),
        "platforms": extract_platforms(project),
        "appCount": _profile_value(profile, "mobile_apps", "20+"),
        "technologies": extract_technologies(project),
        "appType": extract_app_type(project),
        "designTypes": extract_design_types(project),
        "portfolioHighlights": _profile_value(profile, "portfolio_highlights", "various successful projects"),
        "clientTypes": _profile_value(profile, "client_types", "startups and enterprises"),
        "deliverables": extract_deliverables(project),
        "designGoal": extract_design_goal(project),
    }
