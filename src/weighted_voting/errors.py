"""Error taxonomy for the voting core.

Every rejected operation raises a VotingError subclass carrying an
ErrorKind, so callers can tell failures apart without parsing messages.
Messages match the ones the deployed voting contract reverted with.

All errors are caller-correctable. None of them is retried by the core.
"""

from __future__ import annotations

import enum


class ErrorKind(str, enum.Enum):
    """Classification of rejected operations."""
    UNAUTHORIZED = "unauthorized"
    INVALID_ARGUMENT = "invalid_argument"
    NOT_FOUND = "not_found"
    ALREADY_VOTED = "already_voted"
    NOT_ACTIVE = "not_active"
    INVALID_TRANSITION = "invalid_transition"


class VotingError(Exception):
    """Base class for all rejected voting operations."""
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthorized(VotingError):
    """Caller is not the administrator, or not whitelisted for voting."""
    kind = ErrorKind.UNAUTHORIZED


class InvalidArgument(VotingError):
    """Malformed input: non-positive weight, empty description, blank identity."""
    kind = ErrorKind.INVALID_ARGUMENT


class NotFound(VotingError):
    """Reference to a proposal that does not exist."""
    kind = ErrorKind.NOT_FOUND


class AlreadyVoted(VotingError):
    """Voter has already cast their one lifetime vote."""
    kind = ErrorKind.ALREADY_VOTED


class NotActive(VotingError):
    """Vote attempted while the session phase is not Active."""
    kind = ErrorKind.NOT_ACTIVE


class InvalidTransition(VotingError):
    """Session phase transition not in the allowed table."""
    kind = ErrorKind.INVALID_TRANSITION


ONLY_ADMIN = "Only admin can call this"
ONLY_WHITELISTED = "Only whitelisted voters can vote"
ALREADY_VOTED = "Already voted"
VOTING_NOT_ACTIVE = "Voting is not active"
INVALID_PROPOSAL = "Invalid proposal"
