"""
Proposal Writer – LLM-powered proposal text for a freelance project.

Takes a normalized Project and the freelancer profile and returns the
proposal text. Errors are raised as LLMError; callers decide whether to
fall back to template generation.
"""
from __future__ import annotations

import logging
from typing import Optional

from ..projects import Project
from .client import LLMClient, LLMResponseError
from .prompts import get_proposal_prompt, get_proposal_system

logger = logging.getLogger("bidbot.llm.proposal")

DEFAULT_HOURLY_RATE = 50
MIN_HOURS_HOURLY = 10
MIN_HOURS_FIXED = 20


def estimate_hours(project: Project, hourly_rate: float = DEFAULT_HOURLY_RATE) -> float:
    budget = project.normalized_budget or 0
    floor = MIN_HOURS_HOURLY if project.budget_type == "hourly" else MIN_HOURS_FIXED
    return max(budget / hourly_rate, floor)


def enhance_profile(profile: dict, project: Project) -> dict:
    """Add project-specific context the prompt refers to."""
    enhanced = dict(profile)
    enhanced["relevant_experience"] = (
        profile.get("experience") or "Extensive experience in relevant technologies"
    )
    enhanced["estimated_hours"] = round(estimate_hours(project))
    enhanced["similar_projects"] = profile.get("similar_projects") or []
    return enhanced


class ProposalWriter:
    """
    Generates proposal text using the LLM.

    Usage:
        writer = ProposalWriter(client)
        text = await writer.generate(project, profile, language="en")
    """

    def __init__(self, client: LLMClient):
        self.client = client

    @property
    def available(self) -> bool:
        return self.client.is_configured

    async def generate(
        self,
        project: Project,
        profile: dict,
        *,
        language: str = "en",
        model: Optional[str] = None,
        max_tokens: int = 400,
        temperature: float = 0.7,
        custom_prompt: str = "",
    ) -> str:
        prompt = get_proposal_prompt(project, enhance_profile(profile, project), language)
        text = await self.client.chat(
            prompt,
            system=get_proposal_system(custom_prompt),
            model=model,
            max_tokens=max_tokens,
            temperature=temperature,
        )
        if not text.strip():
            raise LLMResponseError("LLM returned an empty proposal")

        logger.info(f"AI proposal generated for: {project.platform}/{project.id} ({len(text)} chars)")
        return text
