"""Weighted, permissioned governance voting."""

from weighted_voting.core import WeightedVoting
from weighted_voting.errors import ErrorKind, VotingError
from weighted_voting.models.voting import SessionPhase
from weighted_voting.service import ServiceResult, VotingService

__version__ = "0.1.0"

__all__ = [
    "ErrorKind",
    "ServiceResult",
    "SessionPhase",
    "VotingError",
    "VotingService",
    "WeightedVoting",
]
