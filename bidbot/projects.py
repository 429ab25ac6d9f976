"""
Project listings shared by the search, scoring and proposal components.

A Project is the common shape every platform listing is normalized into.
Flag and label rules are plain functions the caller invokes explicitly
before saving.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

PLATFORMS = ("upwork", "freelancer", "fiverr", "guru", "peopleperhour")
SEARCH_PLATFORMS = ("upwork", "freelancer", "fiverr")
BUDGET_TYPES = ("fixed", "hourly", "not_specified")

HIGH_VALUE_MAX_BUDGET = 5000
HIGH_VALUE_MIN_BUDGET = 2000
HIGH_VALUE_HOURLY_RATE = 50
SCAM_MAX_BUDGET = 50000
URGENT_WINDOW = timedelta(days=7)
RECENT_DAYS = 7


@dataclass
class ClientInfo:
    name: str = ""
    rating: Optional[float] = None  # 0-5
    reviews_count: int = 0
    total_spent: float = 0.0
    hire_rate: Optional[float] = None  # 0-100
    location: str = ""
    verified: bool = False
    payment_verified: bool = False
    jobs_posted: Optional[int] = None


@dataclass
class ProposalStats:
    count: int = 0
    range: str = ""  # e.g. "5 to 10", "20+"
    interviewing: int = 0


@dataclass
class ProjectScores:
    relevance: int = 0
    quality: int = 0
    competition: int = 0
    client: int = 0
    overall: int = 0


@dataclass
class ProjectFlags:
    is_high_value: bool = False
    is_urgent: bool = False
    is_scam: bool = False
    is_verified: bool = False


@dataclass
class Project:
    """A freelance listing in the common shape."""
    id: str
    platform: str
    title: str = ""
    description: str = ""
    url: str = ""
    category: str = ""
    budget: Any = None  # raw platform value, kept for display and prompts
    budget_type: str = "not_specified"
    budget_min: Optional[float] = None
    budget_max: Optional[float] = None
    currency: str = "USD"
    hourly_min: Optional[float] = None
    hourly_max: Optional[float] = None
    skills: list[str] = field(default_factory=list)
    client: ClientInfo = field(default_factory=ClientInfo)
    posted_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    proposals: ProposalStats = field(default_factory=ProposalStats)
    normalized_budget: Optional[float] = None
    relevance_score: int = 0
    quality_score: int = 0
    scores: ProjectScores = field(default_factory=ProjectScores)
    flags: ProjectFlags = field(default_factory=ProjectFlags)

    def to_dict(self) -> dict:
        data = asdict(self)
        for key in ("posted_date", "deadline"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Rebuild a Project from to_dict() output (e.g. a cached search)."""
        payload = dict(data)
        payload["client"] = ClientInfo(**(payload.get("client") or {}))
        payload["proposals"] = ProposalStats(**(payload.get("proposals") or {}))
        payload["scores"] = ProjectScores(**(payload.get("scores") or {}))
        payload["flags"] = ProjectFlags(**(payload.get("flags") or {}))
        for key in ("posted_date", "deadline"):
            payload[key] = _parse_datetime(payload.get(key))
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in payload.items() if k in known})


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def as_naive_utc(value: datetime) -> datetime:
    """Aware datetimes are converted to UTC; naive ones are taken as UTC already."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def update_flags(project: Project, now: Optional[datetime] = None) -> ProjectFlags:
    """Recompute high-value/urgent/scam flags from budget, deadline and client."""
    now = now or datetime.utcnow()
    client = project.client

    is_high_value = bool(
        (project.budget_max and project.budget_max >= HIGH_VALUE_MAX_BUDGET)
        or (project.budget_min and project.budget_min >= HIGH_VALUE_MIN_BUDGET)
        or (project.hourly_max and project.hourly_max >= HIGH_VALUE_HOURLY_RATE)
    )

    is_urgent = False
    if project.deadline is not None:
        is_urgent = as_naive_utc(project.deadline) - as_naive_utc(now) < URGENT_WINDOW

    is_scam = bool(
        not client.verified
        or not client.payment_verified
        or (project.budget_max and project.budget_max > SCAM_MAX_BUDGET)
        or "advance payment" in (project.description or "").lower()
    )

    project.flags = ProjectFlags(
        is_high_value=is_high_value,
        is_urgent=is_urgent,
        is_scam=is_scam,
        is_verified=client.verified,
    )
    return project.flags


def competition_level(proposal_count: int) -> str:
    if proposal_count <= 5:
        return "low"
    if proposal_count <= 15:
        return "medium"
    if proposal_count <= 30:
        return "high"
    return "very_high"


def _fmt_amount(value: Optional[float]) -> str:
    if value is None:
        return "0"
    return f"{value:g}"


def budget_range_label(project: Project) -> str:
    if not project.budget_min and not project.budget_max:
        return "Not specified"
    if project.budget_type == "hourly":
        return f"${_fmt_amount(project.hourly_min)}-{_fmt_amount(project.hourly_max)}/hr"
    upper = _fmt_amount(project.budget_max) if project.budget_max else "Open"
    return f"${_fmt_amount(project.budget_min)}-{upper}"


def age_in_days(project: Project, now: Optional[datetime] = None) -> Optional[int]:
    if project.posted_date is None:
        return None
    now = now or datetime.utcnow()
    return (as_naive_utc(now) - as_naive_utc(project.posted_date)).days


def is_recent(project: Project, now: Optional[datetime] = None) -> bool:
    age = age_in_days(project, now)
    return age is not None and age <= RECENT_DAYS
