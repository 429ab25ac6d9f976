"""
Proposal Generator – template and AI proposal text for a selected project.

The AI path is used when enabled and an LLM client is configured; any
failure there falls back to the template path without surfacing the
error. Template generation only fails when no template is loaded.

Usage:
    store = TemplateStore(settings.templates_dir)
    store.load()
    generator = ProposalGenerator(store, writer=ProposalWriter(llm), history=HistoryStore(cache))
    result = await generator.generate_proposal(project, profile, GenerationOptions(language="en"))
    print(result.proposal, result.metadata["method"])
"""
from __future__ import annotations

import logging
import re
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from ..cache import HistoryStore
from ..config import PROPOSAL_HISTORY_LIMIT, PROPOSAL_HISTORY_TTL_SECONDS
from ..llm.proposal_writer import ProposalWriter
from ..projects import Project
from .lifecycle import calculate_proposal_quality, word_count
from .rules import extract_variables, select_template_name
from .templates import TemplateStore, build_proposal_from_template

logger = logging.getLogger("bidbot.proposals")

HISTORY_PREVIEW_CHARS = 200


class NoTemplatesError(RuntimeError):
    """No proposal templates are loaded."""
    pass


@dataclass
class GenerationOptions:
    use_ai: bool = True
    template: Optional[str] = None
    language: str = "en"
    max_length: Optional[int] = None
    personalize: bool = False
    client_name: Optional[str] = None
    model: Optional[str] = None
    max_tokens: int = 400
    temperature: float = 0.7
    custom_prompt: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GeneratedProposal:
    proposal: str
    metadata: dict = field(default_factory=dict)


@dataclass
class GenerationStats:
    total_generated: int = 0
    successful: int = 0
    total_length: int = 0
    last_updated: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        return self.successful / self.total_generated if self.total_generated else 0.0

    @property
    def average_length(self) -> float:
        return self.total_length / self.successful if self.successful else 0.0

    def to_dict(self) -> dict:
        return {
            "total_generated": self.total_generated,
            "success_rate": round(self.success_rate, 4),
            "average_length": round(self.average_length, 1),
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
        }


def post_process_proposal(text: str, options: GenerationOptions) -> str:
    processed = re.sub(r"\n{3,}", "\n\n", text or "").strip()
    processed = re.sub(r"^[a-z]", lambda m: m.group(0).upper(), processed, flags=re.MULTILINE)

    if options.personalize and options.client_name:
        processed = processed.replace("Hi there!", f"Hi {options.client_name}!")
        processed = processed.replace("Hello!", f"Hello {options.client_name}!")

    if options.max_length and len(processed) > options.max_length:
        processed = truncate_at_sentence(processed, options.max_length)

    return processed


def truncate_at_sentence(text: str, max_length: int) -> str:
    """Keep whole ". "-separated sentences that fit in max_length."""
    truncated = ""
    for sentence in text.split(". "):
        candidate = f"{truncated}{sentence}. "
        if len(candidate) > max_length:
            break
        truncated = candidate
    truncated = truncated.strip()
    if truncated:
        return truncated
    # a single sentence longer than the limit: cut at the last word boundary
    cut = text[:max_length]
    return cut.rsplit(None, 1)[0] if " " in cut else cut


class ProposalGenerator:
    """Builds proposals for one service instance; no shared module state."""

    def __init__(
        self,
        templates: TemplateStore,
        writer: Optional[ProposalWriter] = None,
        history: Optional[HistoryStore] = None,
    ):
        self.templates = templates
        self.writer = writer
        self.history = history
        self.stats = GenerationStats()

    # ------------------------------------------------------------------
    # Template path
    # ------------------------------------------------------------------
    def select_best_template(self, project: Project, language: str = "en") -> str:
        return select_template_name(project, language)

    def generate_template_proposal(self, project: Project, profile: dict,
                                   options: GenerationOptions) -> tuple[str, str]:
        """Return (text, template key used)."""
        if len(self.templates) == 0:
            raise NoTemplatesError("No templates available")

        name = options.template or self.select_best_template(project, options.language)
        resolved = self.templates.resolve(name)
        if resolved is None:
            raise NoTemplatesError("No templates available")
        name, template = resolved

        variables = extract_variables(project, profile)
        return build_proposal_from_template(template, variables), name

    # ------------------------------------------------------------------
    # AI path
    # ------------------------------------------------------------------
    def _ai_enabled(self, options: GenerationOptions) -> bool:
        return bool(options.use_ai and self.writer is not None and self.writer.available)

    async def _generate_ai(self, project: Project, profile: dict,
                           options: GenerationOptions) -> Optional[str]:
        try:
            return await self.writer.generate(
                project,
                profile,
                language=options.language,
                model=options.model,
                max_tokens=options.max_tokens,
                temperature=options.temperature,
                custom_prompt=options.custom_prompt,
            )
        except Exception as e:
            logger.warning(f"AI proposal generation failed, falling back to template: {e}")
            return None

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    async def generate_proposal(self, project: Project, profile: dict,
                                options: Optional[GenerationOptions] = None) -> GeneratedProposal:
        options = options or GenerationOptions()
        start = time.perf_counter()

        text = None
        method = "template"
        template_used = None
        if self._ai_enabled(options):
            text = await self._generate_ai(project, profile, options)
            if text:
                method = "ai"

        try:
            if text is None:
                text, template_used = self.generate_template_proposal(project, profile, options)
        except NoTemplatesError:
            logger.error("Proposal generation failed: no templates loaded")
            self._record(success=False)
            raise

        processed = post_process_proposal(text, options)
        generation_time_ms = int((time.perf_counter() - start) * 1000)
        self._record(success=True, length=len(processed))

        await self._save_history(profile, project, processed, options)

        logger.info(
            f"Proposal generated for {project.platform}/{project.id} "
            f"({method}, {len(processed)} chars, {generation_time_ms}ms)"
        )

        return GeneratedProposal(
            proposal=processed,
            metadata={
                "method": method,
                "generation_time_ms": generation_time_ms,
                "template": template_used,
                "language": options.language,
                "word_count": word_count(processed),
                "ai_model": (options.model or self.writer.client.model) if method == "ai" else None,
                "quality": calculate_proposal_quality(processed).to_dict(),
            },
        )

    def _record(self, success: bool, length: int = 0):
        self.stats.total_generated += 1
        if success:
            self.stats.successful += 1
            self.stats.total_length += length
        self.stats.last_updated = datetime.utcnow()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    @staticmethod
    def history_key(user_id) -> str:
        return f"proposal_history:{user_id}"

    async def _save_history(self, profile: dict, project: Project, proposal: str,
                            options: GenerationOptions):
        user_id = profile.get("id")
        if self.history is None or user_id is None:
            return
        preview = proposal[:HISTORY_PREVIEW_CHARS]
        if len(proposal) > HISTORY_PREVIEW_CHARS:
            preview += "..."
        entry = {
            "timestamp": datetime.utcnow().isoformat(),
            "project_id": project.id,
            "project_title": project.title,
            "platform": project.platform,
            "proposal": preview,
            "options": options.to_dict(),
            "word_count": word_count(proposal),
        }
        await self.history.push(
            self.history_key(user_id), entry,
            limit=PROPOSAL_HISTORY_LIMIT, ttl=PROPOSAL_HISTORY_TTL_SECONDS,
        )

    async def get_proposal_history(self, user_id, limit: int = 10) -> list[dict]:
        if self.history is None:
            return []
        return await self.history.recent(self.history_key(user_id), limit)
