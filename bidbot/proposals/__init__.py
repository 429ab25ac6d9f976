"""
Proposal generation for bidbot: templates, keyword rules, AI fallback
and proposal lifecycle.
"""
from .generator import (
    GeneratedProposal,
    GenerationOptions,
    NoTemplatesError,
    ProposalGenerator,
    post_process_proposal,
)
from .templates import ProposalTemplate, TemplateStore, build_proposal_from_template

__all__ = [
    "GeneratedProposal",
    "GenerationOptions",
    "NoTemplatesError",
    "ProposalGenerator",
    "ProposalTemplate",
    "TemplateStore",
    "build_proposal_from_template",
    "post_process_proposal",
]
