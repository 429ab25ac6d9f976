"""
Normalization of per-platform search results into Project listings.

Each platform returns its own JSON shape; the mappers below pull the
fields we care about into the common Project dataclass and derive the
numeric normalized_budget used for filtering and sorting.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .projects import ClientInfo, Project, ProposalStats

logger = logging.getLogger("bidbot.normalizer")


def normalize_budget(value: Any) -> Optional[float]:
    """Best-effort numeric budget.

    Numbers pass through, strings yield their first integer
    ("$100-$500" -> 100), mappings yield `max` then `amount`.
    Zero and anything unparseable are None (never 0).
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value or None
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        if not match:
            return None
        return int(match.group(0)) or None
    if isinstance(value, dict):
        return parse_float_value(value.get("max")) or parse_float_value(value.get("amount")) or None
    return None


def parse_int_value(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    match = re.search(r"\d+", str(value))
    if not match:
        return None
    return int(match.group(0))


def parse_float_value(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    match = re.search(r"\d+(?:\.\d+)?", str(value).replace(",", ""))
    return float(match.group(0)) if match else None


def pick_first(record: dict, candidates: Iterable[str], default: Any = None) -> Any:
    for key in candidates:
        if key in record and record[key] not in (None, "", "nan", "None"):
            return record[key]
    return default


def _parse_posted(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _budget_bounds(budget: Any) -> tuple[Optional[float], Optional[float], str]:
    if isinstance(budget, dict):
        low = parse_float_value(pick_first(budget, ("min", "minimum")))
        high = parse_float_value(pick_first(budget, ("max", "maximum", "amount")))
        currency = budget.get("currency") or "USD"
        if isinstance(currency, dict):
            currency = currency.get("code") or "USD"
        return low, high, str(currency)[:3].upper()
    if isinstance(budget, (int, float)) and not isinstance(budget, bool):
        return None, float(budget), "USD"
    if isinstance(budget, str):
        numbers = [float(n) for n in re.findall(r"\d+(?:\.\d+)?", budget.replace(",", ""))]
        if len(numbers) >= 2:
            return numbers[0], numbers[1], "USD"
        if numbers:
            return None, numbers[0], "USD"
    return None, None, "USD"


def _skill_names(raw: Any) -> list[str]:
    if not raw:
        return []
    if isinstance(raw, str):
        return [s.strip() for s in raw.split(",") if s.strip()]
    names = []
    for item in raw:
        if isinstance(item, dict):
            name = pick_first(item, ("name", "prettyName", "skill"))
        else:
            name = item
        if name:
            names.append(str(name).strip())
    return names


def _build_project(platform: str, fields: dict) -> Project:
    budget = fields.get("budget")
    budget_type = fields.get("budget_type") or "not_specified"
    low, high, currency = _budget_bounds(budget)

    project = Project(
        id=str(fields.get("id") or ""),
        platform=platform,
        title=str(fields.get("title") or "").strip(),
        description=str(fields.get("description") or "").strip(),
        url=str(fields.get("url") or ""),
        category=str(fields.get("category") or ""),
        budget=budget,
        budget_type=budget_type,
        currency=currency,
        skills=_skill_names(fields.get("skills")),
        client=fields.get("client") or ClientInfo(),
        posted_date=_parse_posted(fields.get("posted_date")),
        proposals=ProposalStats(count=parse_int_value(fields.get("proposals")) or 0),
    )
    if budget_type == "hourly":
        project.hourly_min, project.hourly_max = low, high
    else:
        project.budget_min, project.budget_max = low, high
    project.normalized_budget = normalize_budget(budget)
    return project


def normalize_upwork_job(job: dict) -> Project:
    client = job.get("client") or {}
    return _build_project("upwork", {
        "id": job.get("id"),
        "title": job.get("title"),
        "description": job.get("snippet") or job.get("description"),
        "url": job.get("url"),
        "category": job.get("category2") or job.get("category"),
        "budget": job.get("budget"),
        "budget_type": "hourly" if str(job.get("job_type", "")).lower() == "hourly" else "fixed",
        "skills": job.get("skills"),
        "posted_date": job.get("date_created"),
        "proposals": job.get("proposals"),
        "client": ClientInfo(
            rating=parse_float_value(pick_first(client, ("feedback_score", "feedback"))),
            reviews_count=parse_int_value(client.get("reviews_count")) or 0,
            total_spent=parse_float_value(client.get("total_spent")) or 0.0,
            location=str(client.get("country") or ""),
            verified=client.get("payment_verification_status") == "VERIFIED",
            payment_verified=client.get("payment_verification_status") == "VERIFIED",
            jobs_posted=parse_int_value(client.get("jobs_posted")),
        ),
    })


def normalize_freelancer_project(item: dict) -> Project:
    owner = item.get("owner") or {}
    reputation = ((owner.get("reputation") or {}).get("entire_history") or {})
    status = owner.get("status") or {}
    country = ((owner.get("location") or {}).get("country") or {}).get("name")
    seo_url = item.get("seo_url")
    return _build_project("freelancer", {
        "id": item.get("id"),
        "title": item.get("title"),
        "description": item.get("description") or item.get("preview_description"),
        "url": f"https://www.freelancer.com/projects/{seo_url}" if seo_url else "",
        "budget": item.get("budget"),
        "budget_type": "fixed" if str(item.get("type", "")).upper() == "FIXED" else "hourly",
        "skills": item.get("jobs"),
        "posted_date": item.get("time_submitted"),
        "proposals": (item.get("bid_stats") or {}).get("bid_count"),
        "client": ClientInfo(
            rating=parse_float_value(reputation.get("overall")),
            reviews_count=parse_int_value(reputation.get("reviews")) or 0,
            location=str(country or ""),
            verified=bool(status.get("identity_verified") or status.get("payment_verified")),
            payment_verified=bool(status.get("payment_verified")),
            jobs_posted=parse_int_value(owner.get("jobs_posted")),
        ),
    })


def normalize_fiverr_listing(item: dict) -> Project:
    return _build_project("fiverr", {
        "id": item.get("id"),
        "title": item.get("title"),
        "description": item.get("description"),
        "url": item.get("url"),
        "budget": item.get("budget"),
        "budget_type": item.get("budget_type") or "fixed",
        "skills": item.get("skills"),
        "posted_date": item.get("posted_date"),
        "proposals": item.get("proposals"),
        "client": ClientInfo(
            rating=parse_float_value(item.get("client_rating")),
            location=str(item.get("client_country") or ""),
            verified=bool(item.get("verified")),
            payment_verified=bool(item.get("verified")),
        ),
    })


PLATFORM_MAPPERS = {
    "upwork": (lambda payload: (payload or {}).get("jobs") or [], normalize_upwork_job),
    "freelancer": (
        lambda payload: ((payload or {}).get("result") or {}).get("projects") or [],
        normalize_freelancer_project,
    ),
    "fiverr": (lambda payload: (payload or {}).get("gigs") or [], normalize_fiverr_listing),
}


def normalize_projects(platform: str, payload: Any) -> list[Project]:
    """Turn one platform's raw search response into Projects."""
    if platform not in PLATFORM_MAPPERS:
        raise ValueError(f"Unknown platform: {platform}")
    extract, mapper = PLATFORM_MAPPERS[platform]
    projects = []
    for item in extract(payload):
        if not isinstance(item, dict):
            continue
        try:
            projects.append(mapper(item))
        except Exception as e:
            logger.warning(f"Skipping malformed {platform} listing {item.get('id')}: {e}")
    return projects
