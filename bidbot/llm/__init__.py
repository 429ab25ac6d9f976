"""
LLM integration for bidbot.
Connects to an OpenAI-compatible endpoint for AI-written proposals.
"""
from .client import LLMClient, LLMError, LLMConnectionError, LLMResponseError
from .proposal_writer import ProposalWriter

__all__ = [
    "LLMClient",
    "LLMError",
    "LLMConnectionError",
    "LLMResponseError",
    "ProposalWriter",
]
