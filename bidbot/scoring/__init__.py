"""
Scoring module for freelance project listings.

This module provides search-time ranking scores and profile-aware
relevance/quality/competition/client scoring.
"""

from .project_scorer import (
    apply_search_scores,
    calculate_scores,
    matching_skills,
    round_half_up,
)

__all__ = ['apply_search_scores', 'calculate_scores', 'matching_skills', 'round_half_up']
