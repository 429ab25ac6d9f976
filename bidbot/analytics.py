"""
Analytics for searches, proposals and project outcomes.

Events are kept in memory on the service instance and turned into a
pandas DataFrame for reports and CSV export. Events older than the
retention window are dropped as new ones arrive, and the log never
holds more than max_events entries.

Usage:
    analytics = AnalyticsService()
    analytics.record_search("upwork", True, 850, projects_found=12)
    analytics.record_proposal("upwork", "job_1", 1200, word_count=180, sent=True)
    print(analytics.daily_report())
    analytics.export_csv("outputs/events.csv")
"""
from __future__ import annotations

import logging
from collections import deque
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, Optional, Union

import pandas as pd

from .config import ANALYTICS_MAX_EVENTS, ANALYTICS_RETENTION_DAYS
from .projects import SEARCH_PLATFORMS

logger = logging.getLogger("bidbot.analytics")

EVENT_TYPES = ("searches", "proposals", "responses", "wins", "losses")
EXPORT_COLUMNS = [
    "type", "timestamp", "platform", "success", "search_time_ms", "projects_found",
    "project_id", "generation_time_ms", "word_count", "sent", "responded", "budget", "reason",
]


def _rate(numerator: int, denominator: int) -> float:
    return round(numerator / denominator * 100, 2) if denominator > 0 else 0.0


def _mean(df: pd.DataFrame, column: str) -> float:
    if df.empty or column not in df:
        return 0.0
    value = df[column].mean()
    return 0.0 if pd.isna(value) else round(float(value), 2)


def _count_true(df: pd.DataFrame, column: str) -> int:
    if df.empty or column not in df:
        return 0
    return int(df[column].eq(True).sum())


class AnalyticsService:
    """In-process event log with daily/weekly reports."""

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow,
                 retention_days: int = ANALYTICS_RETENTION_DAYS,
                 max_events: int = ANALYTICS_MAX_EVENTS):
        self._clock = clock
        self.retention = timedelta(days=retention_days)
        self._events: deque[dict] = deque(maxlen=max_events)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def _record(self, event_type: str, **data):
        event = {"type": event_type, "timestamp": self._clock(), **data}
        self._events.append(event)
        self._prune(event["timestamp"])
        logger.debug(f"{event_type} event recorded: {data}")

    def _prune(self, now: datetime):
        cutoff = now - self.retention
        while self._events and self._events[0]["timestamp"] < cutoff:
            self._events.popleft()

    def record_search(self, platform: str, success: bool, search_time_ms: int, projects_found: int = 0):
        self._record("searches", platform=platform, success=success,
                     search_time_ms=search_time_ms, projects_found=projects_found)

    def record_proposal(self, platform: str, project_id: str, generation_time_ms: int,
                        word_count: int, sent: bool = False):
        self._record("proposals", platform=platform, project_id=project_id,
                     generation_time_ms=generation_time_ms, word_count=word_count, sent=sent)

    def record_response(self, project_id: str, platform: str, responded: bool = True):
        self._record("responses", project_id=project_id, platform=platform, responded=responded)

    def record_win(self, project_id: str, platform: str, budget: float = 0):
        self._record("wins", project_id=project_id, platform=platform, budget=budget)
        logger.info(f"Project win recorded: {platform}/{project_id}")

    def record_loss(self, project_id: str, platform: str, reason: str = ""):
        self._record("losses", project_id=project_id, platform=platform, reason=reason)

    def reset(self):
        self._events.clear()
        logger.info("Analytics metrics reset")

    # ------------------------------------------------------------------
    # Frames
    # ------------------------------------------------------------------
    def to_dataframe(self) -> pd.DataFrame:
        if not self._events:
            return pd.DataFrame(columns=EXPORT_COLUMNS + ["date"])
        df = pd.DataFrame(list(self._events))
        df["timestamp"] = pd.to_datetime(df["timestamp"])
        df["date"] = df["timestamp"].dt.date
        return df

    def _between(self, start: date, end: date) -> pd.DataFrame:
        """Events with start <= date < end."""
        df = self.to_dataframe()
        if df.empty:
            return df
        return df[(df["date"] >= start) & (df["date"] < end)]

    @staticmethod
    def _of_type(df: pd.DataFrame, event_type: str) -> pd.DataFrame:
        if df.empty:
            return df
        return df[df["type"] == event_type]

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------
    def _summary(self, df: pd.DataFrame) -> dict:
        searches = self._of_type(df, "searches")
        proposals = self._of_type(df, "proposals")
        found = int(searches["projects_found"].fillna(0).sum()) if not searches.empty else 0
        return {
            "searches": {
                "total": len(searches),
                "successful": _count_true(searches, "success"),
                "projects_found": found,
            },
            "proposals": {
                "total": len(proposals),
                "sent": _count_true(proposals, "sent"),
                "average_length": _mean(proposals, "word_count"),
            },
            "responses": len(self._of_type(df, "responses")),
            "wins": len(self._of_type(df, "wins")),
            "losses": len(self._of_type(df, "losses")),
        }

    def platform_stats(self, df: Optional[pd.DataFrame] = None) -> dict:
        df = self.to_dataframe() if df is None else df
        stats = {p: {"searches": 0, "projects": 0, "proposals": 0} for p in SEARCH_PLATFORMS}
        if df.empty:
            return stats

        searches = self._of_type(df, "searches")
        if not searches.empty:
            grouped = searches.groupby("platform").agg(
                searches=("type", "size"), projects=("projects_found", "sum"))
            for platform, row in grouped.iterrows():
                stats.setdefault(platform, {"searches": 0, "projects": 0, "proposals": 0})
                stats[platform]["searches"] = int(row["searches"])
                stats[platform]["projects"] = int(row["projects"])

        proposals = self._of_type(df, "proposals")
        if not proposals.empty:
            for platform, count in proposals["platform"].value_counts().items():
                stats.setdefault(platform, {"searches": 0, "projects": 0, "proposals": 0})
                stats[platform]["proposals"] = int(count)
        return stats

    def daily_report(self, day: Optional[date] = None) -> dict:
        day = day or self._clock().date()
        df = self._between(day, day + timedelta(days=1))
        report = {"date": day.isoformat(), **self._summary(df)}
        report["platforms"] = self.platform_stats(df)
        return report

    def weekly_report(self, week_start: Optional[date] = None) -> dict:
        if week_start is None:
            today = self._clock().date()
            week_start = today - timedelta(days=today.weekday())
        week_end = week_start + timedelta(days=7)
        df = self._between(week_start, week_end)
        summary = self._summary(df)
        sent = summary["proposals"]["sent"]
        return {
            "week_start": week_start.isoformat(),
            "week_end": week_end.isoformat(),
            **summary,
            "performance": {
                "response_rate": _rate(summary["responses"], sent),
                "win_rate": _rate(summary["wins"], summary["responses"]),
            },
        }

    def performance(self) -> dict:
        df = self.to_dataframe()
        proposals = self._of_type(df, "proposals")
        responses = self._of_type(df, "responses")
        sent = _count_true(proposals, "sent")
        return {
            "response_rate": _rate(_count_true(responses, "responded"), sent),
            "win_rate": _rate(len(self._of_type(df, "wins")), sent),
            "average_proposal_length": _mean(proposals, "word_count"),
            "average_search_time_ms": _mean(self._of_type(df, "searches"), "search_time_ms"),
            "average_generation_time_ms": _mean(proposals, "generation_time_ms"),
        }

    def metrics(self) -> dict:
        df = self.to_dataframe()
        today = self._clock().date()
        return {
            "totals": self._summary(df),
            "today": self._summary(self._between(today, today + timedelta(days=1))),
            "platforms": self.platform_stats(df),
            "performance": self.performance(),
            "last_updated": self._clock().isoformat(),
        }

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_csv(self, path: Optional[Union[str, Path]] = None) -> str:
        """Write all events as CSV; returns the CSV text."""
        df = self.to_dataframe().reindex(columns=EXPORT_COLUMNS)
        csv_text = df.to_csv(index=False)
        if path is not None:
            path = Path(path)
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(csv_text, encoding="utf-8")
            logger.info(f"Exported {len(df)} analytics events to {path}")
        return csv_text
