"""
API Router – search, proposal generation, history, templates and stats.

Mounted at /v1/* in the main FastAPI app. Services are built once per
app (see main.create_app) and read from request.app.state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import PlainTextResponse
from sqlalchemy.orm import Session

from .analytics import AnalyticsService
from .database import get_user, save_project, save_proposal, save_user
from .models import (
    GenerateProposalRequest,
    HistoryResponse,
    ProposalResponse,
    SearchParams,
    SearchResponse,
    StatsResponse,
    TemplateInfo,
)
from .normalizer import normalize_budget
from .platforms import PlatformClient
from .projects import Project, update_flags
from .proposals import GenerationOptions, NoTemplatesError, ProposalGenerator
from .proposals.lifecycle import ProposalQuality, ProposalState
from .scoring import calculate_scores
from .search import ProjectSearchService
from .users import Profile, User, update_stats

logger = logging.getLogger("bidbot.api")

router = APIRouter(prefix="/v1", tags=["Bidding"])


@dataclass
class Services:
    platforms: PlatformClient
    search: ProjectSearchService
    generator: ProposalGenerator
    analytics: AnalyticsService


def get_services(request: Request) -> Services:
    return request.app.state.services


def get_db(request: Request):
    """Database session dependency"""
    db = request.app.state.session_factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _record_user_proposal(db: Session, profile: dict):
    """Count the proposal against the bot user whose numeric id sent it."""
    user_id = str(profile.get("id") or "")
    if not user_id.isdigit():
        return
    telegram_id = int(user_id)
    user = get_user(db, telegram_id)
    if user is None:
        user = User(telegram_id=telegram_id, profile=Profile(
            skills=list(profile.get("skills") or []),
            bio=profile.get("bio") or "",
            hourly_max=profile.get("hourly_rate"),
        ))
    update_stats(user, "proposal")
    save_user(db, user)


def _project_from_payload(payload: dict) -> Project:
    if not payload.get("id") or not payload.get("platform"):
        raise HTTPException(status_code=422, detail="project.id and project.platform are required")
    try:
        project = Project.from_dict(payload)
    except (TypeError, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid project: {e}")
    project.id = str(project.id)
    if project.normalized_budget is None:
        project.normalized_budget = normalize_budget(project.budget)
    return project


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------
@router.post("/search", response_model=SearchResponse)
async def search_projects(params: SearchParams, services: Services = Depends(get_services)):
    result = await services.search.search_all_platforms(params)
    return result.to_dict()


@router.get("/search/history/{user_id}", response_model=HistoryResponse)
async def search_history(user_id: str, limit: int = Query(default=10, ge=1, le=50),
                         services: Services = Depends(get_services)):
    items = await services.search.get_search_history(user_id, limit)
    return HistoryResponse(user_id=user_id, items=items, total=len(items))


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------
@router.post("/proposals/generate", response_model=ProposalResponse)
async def generate_proposal(
    body: GenerateProposalRequest,
    services: Services = Depends(get_services),
    db: Session = Depends(get_db),
):
    project = _project_from_payload(body.project)
    profile = body.profile.model_dump()
    update_flags(project)
    scores = calculate_scores(project, profile.get("skills") or [])

    try:
        result = await services.generator.generate_proposal(
            project, profile, GenerationOptions(**body.options.model_dump()))
    except NoTemplatesError as e:
        raise HTTPException(status_code=503, detail=str(e))

    metadata = dict(result.metadata)
    metadata["scores"] = {
        "relevance": scores.relevance,
        "quality": scores.quality,
        "competition": scores.competition,
        "client": scores.client,
        "overall": scores.overall,
    }

    save_project(db, project)
    state = ProposalState(
        user_id=profile.get("id"),
        project_id=project.id,
        content=result.proposal,
        generation_method=metadata["method"],
        quality=ProposalQuality(**metadata["quality"]),
    )
    record = save_proposal(
        db, state, project.platform,
        template_used=metadata.get("template"),
        ai_model=metadata.get("ai_model"),
        generation_time_ms=metadata["generation_time_ms"],
    )
    _record_user_proposal(db, profile)

    services.analytics.record_proposal(
        project.platform, project.id, metadata["generation_time_ms"], metadata["word_count"])
    return ProposalResponse(proposal=result.proposal, metadata=metadata, proposal_id=record.id)


@router.get("/proposals/history/{user_id}", response_model=HistoryResponse)
async def proposal_history(user_id: str, limit: int = Query(default=10, ge=1, le=100),
                           services: Services = Depends(get_services)):
    items = await services.generator.get_proposal_history(user_id, limit)
    return HistoryResponse(user_id=user_id, items=items, total=len(items))


@router.get("/templates", response_model=list[TemplateInfo])
def list_templates(services: Services = Depends(get_services)):
    return services.generator.templates.available()


# ---------------------------------------------------------------------------
# Stats / analytics
# ---------------------------------------------------------------------------
@router.get("/stats", response_model=StatsResponse)
def get_stats(services: Services = Depends(get_services)):
    return StatsResponse(
        search=services.search.stats.to_dict(),
        proposals=services.generator.stats.to_dict(),
        rate_limits=services.platforms.rate_limit_status(),
        analytics=services.analytics.metrics(),
    )


@router.get("/analytics/report")
def analytics_report(period: Literal["daily", "weekly"] = "daily",
                     services: Services = Depends(get_services)):
    if period == "weekly":
        return services.analytics.weekly_report()
    return services.analytics.daily_report()


@router.get("/analytics/export", response_class=PlainTextResponse)
def analytics_export(services: Services = Depends(get_services)):
    return PlainTextResponse(services.analytics.export_csv(), media_type="text/csv")
