"""
Pydantic models for API requests and responses
"""
from pydantic import BaseModel, Field, model_validator
from typing import Any, Dict, List, Optional

DEFAULT_SEARCH_LIMIT = 50


# Search Models
class SearchParams(BaseModel):
    keywords: str = Field(..., min_length=1, max_length=200)
    min_budget: Optional[float] = Field(default=None, ge=0)
    max_budget: Optional[float] = Field(default=None, ge=0)
    category: Optional[str] = Field(default=None, max_length=100)
    sort_by: str = Field(default="date_desc", pattern="^(date_desc|budget_desc|budget_asc|relevance|quality)$")
    limit: int = Field(default=DEFAULT_SEARCH_LIMIT, ge=1, le=100)
    min_client_rating: Optional[float] = Field(default=None, ge=0, le=5)
    verified_only: bool = False
    user_id: Optional[str] = Field(default=None, max_length=100)

    @model_validator(mode="after")
    def check_budget_range(self):
        if self.min_budget is not None and self.max_budget is not None and self.min_budget > self.max_budget:
            raise ValueError("min_budget must not exceed max_budget")
        return self

    def cache_fields(self) -> dict:
        """Fields that identify a search result set (user_id excluded)."""
        return self.model_dump(exclude={"user_id"})


class PlatformStat(BaseModel):
    count: int = 0
    error: Optional[str] = None


class SearchResponse(BaseModel):
    projects: List[Dict[str, Any]]
    stats: Dict[str, PlatformStat]
    total_found: int
    cached: bool = False
    timestamp: str


# Proposal Models
class ProposalOptionsRequest(BaseModel):
    use_ai: bool = True
    template: Optional[str] = Field(default=None, pattern="^[A-Za-z0-9_-]{1,100}$")
    language: str = Field(default="en", pattern="^(en|uk)$")
    max_length: Optional[int] = Field(default=None, ge=50, le=5000)
    personalize: bool = False
    client_name: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = None
    max_tokens: int = Field(default=400, ge=50, le=2000)
    temperature: float = Field(default=0.7, ge=0, le=2)
    custom_prompt: str = Field(default="", max_length=2000)


class ProfileRequest(BaseModel):
    id: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    experience: Optional[str] = None
    completed_projects: Optional[str] = None
    mobile_apps: Optional[str] = None
    portfolio_highlights: Optional[str] = None
    client_types: Optional[str] = None
    bio: Optional[str] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)


class GenerateProposalRequest(BaseModel):
    project: Dict[str, Any]
    profile: ProfileRequest = Field(default_factory=ProfileRequest)
    options: ProposalOptionsRequest = Field(default_factory=ProposalOptionsRequest)


class ProposalResponse(BaseModel):
    proposal: str
    metadata: Dict[str, Any]
    proposal_id: Optional[int] = None


# History / Stats Models
class HistoryResponse(BaseModel):
    user_id: str
    items: List[Dict[str, Any]]
    total: int


class TemplateInfo(BaseModel):
    key: str
    name: str
    language: str
    variables: List[str]


class StatsResponse(BaseModel):
    search: Dict[str, Any]
    proposals: Dict[str, Any]
    rate_limits: Dict[str, Any]
    analytics: Dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: str
    cache: Dict[str, Any]
    platforms: Dict[str, bool]
    ai_enabled: bool
    templates: int
