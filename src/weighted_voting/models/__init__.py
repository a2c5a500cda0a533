"""Core data models for weighted voting."""

from weighted_voting.models.voting import (
    Proposal,
    ProposalResults,
    ProposalView,
    SessionPhase,
    VoteChoice,
    VoterInfo,
    VoterRecord,
)

__all__ = [
    "Proposal",
    "ProposalResults",
    "ProposalView",
    "SessionPhase",
    "VoteChoice",
    "VoterInfo",
    "VoterRecord",
]
