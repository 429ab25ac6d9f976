"""
Proposal quality metrics and status transitions.
"""
from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Optional

from ..scoring.project_scorer import clamp, round_half_up

STATUSES = ("draft", "ready", "sent", "viewed", "responded", "accepted", "rejected")
RESPONSE_TYPES = ("interview", "hire", "reject", "question", "other")
GENERATION_METHODS = ("ai", "template", "manual", "mixed")

# status -> statuses it may move to
TRANSITIONS = {
    "draft": {"ready", "sent"},
    "ready": {"draft", "sent"},
    "sent": {"viewed", "responded"},
    "viewed": {"responded"},
    "responded": {"accepted", "rejected"},
    "accepted": set(),
    "rejected": set(),
}

PERSONALIZATION_TERMS = {
    "your project": 20,
    "requirements": 15,
    "experience": 15,
    "portfolio": 10,
    "timeline": 10,
}


@dataclass
class ProposalQuality:
    score: int = 0
    readability: int = 0
    relevance: int = 0
    personalization: int = 0
    word_count: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ProposalResponse:
    received: bool = False
    type: Optional[str] = None
    content: str = ""
    rating: Optional[int] = None


@dataclass
class ProposalState:
    """A proposal bound to a (user, project) pair."""
    user_id: str
    project_id: str
    content: str
    generation_method: str = "template"
    status: str = "draft"
    sent_date: Optional[datetime] = None
    response_date: Optional[datetime] = None
    response: ProposalResponse = field(default_factory=ProposalResponse)
    quality: ProposalQuality = field(default_factory=ProposalQuality)


def word_count(content: str) -> int:
    return len([w for w in re.split(r"\s+", content or "") if w])


def calculate_proposal_quality(content: str) -> ProposalQuality:
    content = content or ""
    words = word_count(content)

    readability = 50
    if 100 <= words <= 300:
        readability += 30
    if "Dear" in content or "Hi" in content:
        readability += 10
    if "Thank you" in content or "Best regards" in content:
        readability += 10

    relevance = 50

    personalization = 30
    for term, bonus in PERSONALIZATION_TERMS.items():
        if term in content:
            personalization += bonus

    readability = clamp(readability)
    personalization = clamp(personalization)
    overall = readability * 0.3 + relevance * 0.4 + personalization * 0.3

    return ProposalQuality(
        score=round_half_up(clamp(overall)),
        readability=round_half_up(readability),
        relevance=round_half_up(relevance),
        personalization=round_half_up(personalization),
        word_count=words,
    )


def transition(state: ProposalState, new_status: str) -> ProposalState:
    if new_status not in STATUSES:
        raise ValueError(f"Unknown proposal status: {new_status}")
    if new_status not in TRANSITIONS[state.status]:
        raise ValueError(f"Cannot move proposal from {state.status} to {new_status}")
    state.status = new_status
    return state


def mark_as_sent(state: ProposalState, now: Optional[datetime] = None) -> ProposalState:
    transition(state, "sent")
    state.sent_date = now or datetime.utcnow()
    return state


def record_response(state: ProposalState, response_type: str, content: str = "",
                    rating: Optional[int] = None, now: Optional[datetime] = None) -> ProposalState:
    if response_type not in RESPONSE_TYPES:
        raise ValueError(f"Unknown response type: {response_type}")
    if rating is not None and not 1 <= rating <= 5:
        raise ValueError("Response rating must be between 1 and 5")
    transition(state, "responded")
    state.response = ProposalResponse(received=True, type=response_type, content=content, rating=rating)
    state.response_date = now or datetime.utcnow()
    return state


def response_time_hours(state: ProposalState) -> Optional[int]:
    if state.sent_date is None or state.response_date is None:
        return None
    return int((state.response_date - state.sent_date).total_seconds() // 3600)
