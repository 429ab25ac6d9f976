"""
Freelancer accounts: profile, search/AI preferences, usage stats and
subscription state, plus the pure rules that update or inspect them.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from datetime import datetime, time
from typing import Optional

EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced", "expert")
PLANS = ("free", "basic", "premium", "enterprise")
STAT_KINDS = ("search", "project", "proposal", "sent", "won", "earnings")
EXPIRING_WINDOW_DAYS = 7


@dataclass
class Profile:
    skills: list[str] = field(default_factory=list)
    experience: str = "intermediate"
    hourly_min: Optional[float] = None
    hourly_max: Optional[float] = None
    bio: str = ""
    portfolio: str = ""
    timezone: str = "UTC"


@dataclass
class SearchSettings:
    auto_search: bool = False
    keywords: list[str] = field(default_factory=list)
    platforms: list[str] = field(default_factory=lambda: ["upwork", "freelancer"])
    budget_min: float = 0
    budget_max: Optional[float] = None
    exclude_keywords: list[str] = field(default_factory=list)
    max_results: int = 50


@dataclass
class AISettings:
    auto_generate: bool = False
    proposal_tone: str = "professional"
    proposal_length: str = "medium"
    custom_prompt: str = ""
    max_proposals_per_day: int = 10


@dataclass
class QuietHours:
    enabled: bool = False
    start: str = "22:00"  # HH:MM
    end: str = "08:00"


@dataclass
class UserStats:
    total_searches: int = 0
    total_projects: int = 0
    total_proposals: int = 0
    proposals_sent: int = 0
    projects_won: int = 0
    total_earnings: float = 0.0
    success_rate: float = 0.0
    last_search_date: Optional[datetime] = None
    last_proposal_date: Optional[datetime] = None


@dataclass
class Subscription:
    plan: str = "free"
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    searches_per_day: int = 10
    proposals_per_day: int = 5


@dataclass
class User:
    telegram_id: int
    username: str = ""
    first_name: str = ""
    last_name: str = ""
    language_code: str = "en"
    profile: Profile = field(default_factory=Profile)
    search_settings: SearchSettings = field(default_factory=SearchSettings)
    ai_settings: AISettings = field(default_factory=AISettings)
    quiet_hours: QuietHours = field(default_factory=QuietHours)
    stats: UserStats = field(default_factory=UserStats)
    subscription: Subscription = field(default_factory=Subscription)

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def to_dict(self) -> dict:
        return asdict(self)

    def generator_profile(self) -> dict:
        """Profile mapping in the shape ProposalGenerator expects."""
        return {
            "id": str(self.telegram_id),
            "skills": list(self.profile.skills),
            "bio": self.profile.bio,
            "portfolio_highlights": self.profile.portfolio or None,
            "hourly_rate": self.profile.hourly_max or self.profile.hourly_min,
        }


def update_stats(user: User, kind: str, value: float = 1, now: Optional[datetime] = None) -> UserStats:
    """Bump one usage counter and recompute success_rate (won / sent * 100)."""
    if kind not in STAT_KINDS:
        raise ValueError(f"Unknown stat kind: {kind}")
    now = now or datetime.utcnow()
    stats = user.stats

    if kind == "search":
        stats.total_searches += int(value)
        stats.last_search_date = now
    elif kind == "project":
        stats.total_projects += int(value)
    elif kind == "proposal":
        stats.total_proposals += int(value)
        stats.last_proposal_date = now
    elif kind == "sent":
        stats.proposals_sent += int(value)
    elif kind == "won":
        stats.projects_won += int(value)
    elif kind == "earnings":
        stats.total_earnings += value

    if stats.proposals_sent > 0:
        stats.success_rate = stats.projects_won / stats.proposals_sent * 100
    return stats


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":", 1)
    return time(int(hours), int(minutes))


def is_in_quiet_hours(user: User, now: Optional[datetime] = None) -> bool:
    """True inside the quiet window; start > end means it spans midnight."""
    quiet = user.quiet_hours
    if not quiet.enabled:
        return False
    current = (now or datetime.utcnow()).time().replace(second=0, microsecond=0)
    start, end = _parse_hhmm(quiet.start), _parse_hhmm(quiet.end)
    if start > end:
        return current >= start or current <= end
    return start <= current <= end


def subscription_status(user: User, now: Optional[datetime] = None) -> dict:
    now = now or datetime.utcnow()
    sub = user.subscription
    if sub.plan == "free":
        return {"status": "free", "days_left": None}
    if sub.end_date is None:
        return {"status": "invalid", "days_left": None}
    if sub.end_date <= now:
        return {"status": "expired", "days_left": 0}

    days_left = math.ceil((sub.end_date - now).total_seconds() / 86400)
    if days_left <= EXPIRING_WINDOW_DAYS:
        return {"status": "expiring", "days_left": days_left}
    return {"status": "active", "days_left": days_left}


def is_subscribed(user: User, now: Optional[datetime] = None) -> bool:
    return subscription_status(user, now)["status"] in ("active", "expiring")


def validate_subscription(sub: Subscription):
    if sub.plan not in PLANS:
        raise ValueError(f"Unknown subscription plan: {sub.plan}")
    if sub.start_date and sub.end_date and sub.end_date <= sub.start_date:
        raise ValueError("Subscription end date must be after start date")
