"""
Platform Client – async HTTP access to freelance marketplace search APIs.

Usage:
    client = PlatformClient(settings)
    raw = await client.search("upwork", "react developer", limit=20)
    await client.close()
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional

import httpx

from ..config import Settings

logger = logging.getLogger("bidbot.platforms")

USER_AGENT = "bidbot/1.0"
MAX_PAGE_SIZE = 50
DEFAULT_PAGE_SIZE = 20
RATE_LIMIT_WINDOW = 3600.0  # seconds


class PlatformError(Exception):
    """Base exception for platform API operations."""
    pass


class PlatformNotConfigured(PlatformError):
    """No API credentials for the platform."""
    pass


class RateLimitExceeded(PlatformError):
    """Local request budget for the platform is spent."""
    pass


@dataclass(frozen=True)
class PlatformEndpoint:
    base_url: str
    search_path: str
    health_path: str
    auth_header: str
    auth_prefix: str = "Bearer "


ENDPOINTS = {
    "upwork": PlatformEndpoint(
        base_url="https://www.upwork.com/api",
        search_path="/profiles/v1/search/jobs",
        health_path="/auth/v1/info",
        auth_header="Authorization",
    ),
    "freelancer": PlatformEndpoint(
        base_url="https://www.freelancer.com/api",
        search_path="/projects/0.1/projects",
        health_path="/users/0.1/self",
        auth_header="freelancer-oauth-token",
        auth_prefix="",
    ),
    "fiverr": PlatformEndpoint(
        base_url="https://api.fiverr.com/v1",
        search_path="/gigs/search",
        health_path="/users/me",
        auth_header="Authorization",
    ),
}

UPWORK_SORT = {
    "date_desc": "create_time desc",
    "date_asc": "create_time asc",
    "budget_desc": "budget desc",
    "budget_asc": "budget asc",
    "relevance": "relevance desc",
}
FREELANCER_SORT = {
    "date_desc": "time_updated",
    "date_asc": "time_updated",
    "budget_desc": "budget",
    "budget_asc": "budget",
    "relevance": "relevance",
}


class TokenBucket:
    """Fixed number of requests per window, refilled continuously."""

    def __init__(self, capacity: int, window: float = RATE_LIMIT_WINDOW,
                 clock: Callable[[], float] = time.monotonic):
        self.capacity = capacity
        self.window = window
        self._clock = clock
        self._tokens = float(capacity)
        self._updated = clock()

    def _refill(self):
        now = self._clock()
        elapsed = now - self._updated
        self._updated = now
        self._tokens = min(self.capacity, self._tokens + elapsed * self.capacity / self.window)

    def try_acquire(self) -> bool:
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    @property
    def remaining(self) -> int:
        self._refill()
        return int(self._tokens)


def fiverr_placeholder_listings() -> dict:
    """Fiverr exposes no public job search; return a single sample listing."""
    return {
        "gigs": [
            {
                "id": "fiverr_mock_1",
                "title": "Mock Fiverr Project",
                "description": "This is a mock project from Fiverr API integration",
                "budget": {"min": 50, "max": 500},
                "budget_type": "fixed",
                "skills": ["Web Development", "Design"],
                "client_rating": 4.5,
                "client_country": "United States",
                "posted_date": datetime.utcnow().isoformat(),
                "url": "https://fiverr.com/mock-project",
                "proposals": 5,
                "verified": True,
            }
        ]
    }


class PlatformClient:
    """Async client for the Upwork, Freelancer and Fiverr search APIs."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport
        self._http: dict[str, httpx.AsyncClient] = {}
        self.rate_limiters = {
            platform: TokenBucket(limit) for platform, limit in settings.rate_limits.items()
        }
        self._api_keys = {
            "upwork": settings.upwork_api_key,
            "freelancer": settings.freelancer_api_key,
            "fiverr": settings.fiverr_api_key,
        }
        for platform, key in self._api_keys.items():
            if not key:
                logger.warning(f"{platform} API key not provided")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def is_configured(self, platform: str) -> bool:
        return bool(self._api_keys.get(platform))

    def _get_http(self, platform: str) -> httpx.AsyncClient:
        if not self.is_configured(platform):
            raise PlatformNotConfigured(f"{platform} client not configured")
        http = self._http.get(platform)
        if http is None or http.is_closed:
            endpoint = ENDPOINTS[platform]
            http = httpx.AsyncClient(
                base_url=endpoint.base_url,
                headers={
                    endpoint.auth_header: f"{endpoint.auth_prefix}{self._api_keys[platform]}",
                    "Content-Type": "application/json",
                    "User-Agent": USER_AGENT,
                },
                timeout=httpx.Timeout(self.settings.platform_timeout, connect=10.0),
                transport=self._transport,
            )
            self._http[platform] = http
        return http

    async def close(self):
        for http in self._http.values():
            if not http.is_closed:
                await http.aclose()
        self._http.clear()

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------
    async def _request(self, platform: str, path: str, params: Optional[dict] = None) -> Any:
        limiter = self.rate_limiters.get(platform)
        if limiter is not None and not limiter.try_acquire():
            raise RateLimitExceeded(f"Rate limit exceeded for {platform}")

        http = self._get_http(platform)
        try:
            r = await http.get(path, params=params)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"{platform} API request failed: {path} -> HTTP {e.response.status_code}")
            raise PlatformError(f"{platform} HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error(f"{platform} API request failed: {path} -> {e}")
            raise PlatformError(f"{platform} request failed: {e}") from e

        logger.debug(f"{platform} API request successful: {path} ({r.status_code})")
        return r.json()

    def _search_params(self, platform: str, keywords: str, *, limit: int,
                       sort_by: Optional[str], category: Optional[str]) -> dict:
        page = min(limit or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE)
        if platform == "upwork":
            params = {
                "q": keywords,
                "sort": UPWORK_SORT.get(sort_by or "", "create_time desc"),
                "paging": f"0;{page}",
                "category2": category,
                "job_type": "hourly,fixed",
                "client_hires": "1+",
                "client_info": "true",
            }
        elif platform == "freelancer":
            params = {
                "query": keywords,
                "sort_field": FREELANCER_SORT.get(sort_by or "", "time_updated"),
                "sort_order": "desc",
                "limit": page,
                "offset": 0,
                "job_details": "true",
                "user_details": "true",
                "location_details": "true",
            }
        else:
            params = {"query": keywords, "limit": page}
        return {k: v for k, v in params.items() if v is not None}

    async def search(self, platform: str, keywords: str, *, limit: int = DEFAULT_PAGE_SIZE,
                     sort_by: Optional[str] = None, category: Optional[str] = None) -> Any:
        """Run one platform search and return its raw JSON payload."""
        if platform not in ENDPOINTS:
            raise PlatformError(f"Unknown platform: {platform}")
        if platform == "fiverr":
            logger.warning("Fiverr search using placeholder data - API integration pending")
            return fiverr_placeholder_listings()

        params = self._search_params(platform, keywords, limit=limit, sort_by=sort_by, category=category)
        return await self._request(platform, ENDPOINTS[platform].search_path, params)

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------
    async def health(self) -> dict:
        status: dict[str, Any] = {"timestamp": datetime.utcnow().isoformat()}
        for platform, endpoint in ENDPOINTS.items():
            if not self.is_configured(platform):
                status[platform] = False
                continue
            try:
                await self._request(platform, endpoint.health_path)
                status[platform] = True
            except PlatformError as e:
                logger.error(f"{platform} health check failed: {e}")
                status[platform] = False
        return status

    def rate_limit_status(self) -> dict:
        return {
            platform: {
                "tokens_remaining": bucket.remaining,
                "tokens_per_interval": bucket.capacity,
                "interval_seconds": bucket.window,
            }
            for platform, bucket in self.rate_limiters.items()
        }
