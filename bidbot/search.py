"""
Project Search Service – parallel multi-platform search.

Every platform is queried concurrently and joined all-settled: a failing
platform is reported in the per-platform stats and never aborts the
search. Results are normalized, scored, filtered, sorted, limited and
memoized in the cache for 30 minutes.

Usage:
    service = ProjectSearchService(platform_client, cache, HistoryStore(cache))
    result = await service.search_all_platforms(SearchParams(keywords="react developer"))
    for project in result.projects:
        print(project.title, project.normalized_budget)
"""
from __future__ import annotations

import asyncio
import base64
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Sequence

from .analytics import AnalyticsService
from .cache import CacheStore, HistoryStore
from .config import SEARCH_CACHE_TTL_SECONDS, SEARCH_HISTORY_LIMIT, SEARCH_HISTORY_TTL_SECONDS
from .models import SearchParams
from .normalizer import normalize_projects
from .platforms import PlatformClient
from .projects import SEARCH_PLATFORMS, Project
from .scoring import apply_search_scores

logger = logging.getLogger("bidbot.search")


@dataclass
class SearchResult:
    projects: list[Project]
    stats: dict[str, dict]  # platform -> {"count": int, "error": str | None}
    total_found: int
    cached: bool = False
    timestamp: str = field(default_factory=lambda: datetime.utcnow().isoformat())

    def to_dict(self) -> dict:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "stats": self.stats,
            "total_found": self.total_found,
            "cached": self.cached,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, data: dict, cached: bool = False) -> "SearchResult":
        return cls(
            projects=[Project.from_dict(p) for p in data.get("projects") or []],
            stats=data.get("stats") or {},
            total_found=int(data.get("total_found") or 0),
            cached=cached,
            timestamp=data.get("timestamp") or datetime.utcnow().isoformat(),
        )


@dataclass
class SearchStats:
    total_searches: int = 0
    projects_found: int = 0
    cache_hits: int = 0
    last_updated: Optional[datetime] = None

    @property
    def average_projects_per_search(self) -> float:
        return self.projects_found / self.total_searches if self.total_searches else 0.0

    def to_dict(self) -> dict:
        return {
            "total_searches": self.total_searches,
            "projects_found": self.projects_found,
            "average_projects_per_search": round(self.average_projects_per_search, 2),
            "cache_hits": self.cache_hits,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


# ---------------------------------------------------------------------------
# Filtering and sorting
# ---------------------------------------------------------------------------

def _posted_sort_key(project: Project):
    return (project.posted_date is not None, project.posted_date or datetime.min)


SORT_KEYS = {
    "budget_desc": (lambda p: p.normalized_budget or 0, True),
    "budget_asc": (lambda p: p.normalized_budget or 0, False),
    "relevance": (lambda p: p.relevance_score or 0, True),
    "quality": (lambda p: p.quality_score or 0, True),
    "date_desc": (_posted_sort_key, True),
}


def filter_and_sort(projects: Sequence[Project], params: SearchParams) -> list[Project]:
    """Apply budget/rating/verification filters, then sort.

    Projects without a budget or client rating are kept by the
    corresponding filter.
    """
    filtered = list(projects)

    if params.min_budget is not None or params.max_budget is not None:
        def in_budget(p: Project) -> bool:
            budget = p.normalized_budget
            if budget is None:
                return True
            if params.min_budget is not None and budget < params.min_budget:
                return False
            if params.max_budget is not None and budget > params.max_budget:
                return False
            return True
        filtered = [p for p in filtered if in_budget(p)]

    if params.min_client_rating:
        filtered = [
            p for p in filtered
            if p.client.rating is None or p.client.rating >= params.min_client_rating
        ]

    if params.verified_only:
        filtered = [p for p in filtered if p.client.verified]

    key, reverse = SORT_KEYS.get(params.sort_by, SORT_KEYS["date_desc"])
    filtered.sort(key=key, reverse=reverse)
    return filtered


def search_cache_key(params: SearchParams) -> str:
    payload = json.dumps(params.cache_fields(), sort_keys=True, default=str)
    return "search:" + base64.b64encode(payload.encode("utf-8")).decode("ascii")


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class ProjectSearchService:
    """Searches all platforms for one process; stats live on the instance."""

    def __init__(
        self,
        client: PlatformClient,
        cache: CacheStore,
        history: Optional[HistoryStore] = None,
        analytics: Optional[AnalyticsService] = None,
        platforms: Sequence[str] = SEARCH_PLATFORMS,
    ):
        self.client = client
        self.cache = cache
        self.history = history
        self.analytics = analytics
        self.platforms = tuple(platforms)
        self.stats = SearchStats()

    async def _search_platform(self, platform: str, params: SearchParams) -> list[Project]:
        raw = await self.client.search(
            platform,
            params.keywords,
            limit=params.limit,
            sort_by=params.sort_by,
            category=params.category,
        )
        projects = []
        for project in normalize_projects(platform, raw):
            try:
                projects.append(apply_search_scores(project))
            except Exception as e:
                logger.warning(f"Skipping {platform} project {project.id}, scoring failed: {e}")
        return projects

    async def search_all_platforms(self, params: SearchParams) -> SearchResult:
        cache_key = search_cache_key(params)
        cached = await self.cache.get(cache_key)
        if cached:
            logger.info(f"Returning cached search results for '{params.keywords}'")
            self.stats.cache_hits += 1
            result = SearchResult.from_dict(cached, cached=True)
            await self._save_history(params, result)
            return result

        logger.info(f"Searching {len(self.platforms)} platforms for '{params.keywords}'")
        start = time.perf_counter()

        outcomes = await asyncio.gather(
            *(self._search_platform(platform, params) for platform in self.platforms),
            return_exceptions=True,
        )

        all_projects: list[Project] = []
        platform_stats: dict[str, dict[str, Any]] = {}
        for platform, outcome in zip(self.platforms, outcomes):
            if isinstance(outcome, BaseException):
                platform_stats[platform] = {"count": 0, "error": str(outcome) or type(outcome).__name__}
                logger.error(f"{platform} search failed: {outcome}")
            else:
                platform_stats[platform] = {"count": len(outcome), "error": None}
                all_projects.extend(outcome)

        projects = filter_and_sort(all_projects, params)[:params.limit]
        elapsed_ms = int((time.perf_counter() - start) * 1000)

        self.stats.total_searches += 1
        self.stats.projects_found += len(projects)
        self.stats.last_updated = datetime.utcnow()

        result = SearchResult(projects=projects, stats=platform_stats, total_found=len(projects))
        await self.cache.set(cache_key, result.to_dict(), SEARCH_CACHE_TTL_SECONDS)
        await self._save_history(params, result)

        if self.analytics is not None:
            for platform, stat in platform_stats.items():
                self.analytics.record_search(platform, stat["error"] is None, elapsed_ms, stat["count"])

        summary = ", ".join(f"{name}={stat['count']}" for name, stat in platform_stats.items())
        logger.info(f"Search completed: {len(projects)} projects in {elapsed_ms}ms ({summary})")
        return result

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    @staticmethod
    def history_key(user_id) -> str:
        return f"search_history:{user_id}"

    async def _save_history(self, params: SearchParams, result: SearchResult):
        if self.history is None or not params.user_id:
            return
        entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "search_params": params.cache_fields(),
            "results_count": result.total_found,
            "platforms": list(result.stats),
            "cached": result.cached,
        }
        await self.history.push(
            self.history_key(params.user_id), entry,
            limit=SEARCH_HISTORY_LIMIT, ttl=SEARCH_HISTORY_TTL_SECONDS,
        )

    async def get_search_history(self, user_id, limit: int = 10) -> list[dict]:
        if self.history is None:
            return []
        return await self.history.recent(self.history_key(user_id), limit)
