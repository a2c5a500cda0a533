"""Voting data models.

Weighted, permissioned voting has three kinds of state:
- Voter records: whitelist flag, weight, and a single lifetime vote.
- Proposals: immutable description, weighted for/against tallies.
- Session phase: one global gate for all proposals.

Invariants:
- Proposal.total_voting_power_cast == for_votes + against_votes.
- A voter with has_voted=True has exactly one voted_proposal_id.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional


class SessionPhase(str, enum.Enum):
    """Global voting phase. Progression is one-way."""
    INACTIVE = "inactive"
    ACTIVE = "active"
    ENDED = "ended"


class VoteChoice(str, enum.Enum):
    """Which side of a proposal a vote counts towards."""
    FOR = "for"
    AGAINST = "against"

    @classmethod
    def from_support(cls, support: bool) -> VoteChoice:
        return cls.FOR if support else cls.AGAINST


@dataclass
class VoterRecord:
    """Registry entry for one identity.

    has_voted is global, not per proposal: once set, the voter can
    never vote again on any proposal.
    """
    voter_id: str
    is_whitelisted: bool = False
    weight: int = 0
    has_voted: bool = False
    voted_proposal_id: Optional[int] = None

    def to_info(self) -> VoterInfo:
        return VoterInfo(
            is_whitelisted=self.is_whitelisted,
            weight=self.weight,
            has_voted=self.has_voted,
            voted_proposal_id=self.voted_proposal_id,
        )


@dataclass
class Proposal:
    """A governance item. Tallies are mutated only by the tally engine."""
    proposal_id: int
    description: str
    total_voting_power_cast: int = 0
    for_votes: int = 0
    against_votes: int = 0

    def to_view(self) -> ProposalView:
        return ProposalView(
            proposal_id=self.proposal_id,
            description=self.description,
            total_voting_power_cast=self.total_voting_power_cast,
            for_votes=self.for_votes,
            against_votes=self.against_votes,
        )


@dataclass(frozen=True)
class VoterInfo:
    """Read-only view of a voter record. Unknown voters get the defaults."""
    is_whitelisted: bool = False
    weight: int = 0
    has_voted: bool = False
    voted_proposal_id: Optional[int] = None


@dataclass(frozen=True)
class ProposalView:
    """Read-only snapshot of a proposal."""
    proposal_id: int
    description: str
    total_voting_power_cast: int
    for_votes: int
    against_votes: int

    def as_tuple(self) -> tuple[str, int, int, int]:
        """(description, totalVotingPowerCast, forVotes, againstVotes)."""
        return (
            self.description,
            self.total_voting_power_cast,
            self.for_votes,
            self.against_votes,
        )


@dataclass(frozen=True)
class ProposalResults:
    """Percentage breakdown of a proposal's weighted tally."""
    proposal_id: int
    for_percentage: float
    against_percentage: float
    leading: str  # "for", "against" or "tied"

    @staticmethod
    def from_view(view: ProposalView) -> ProposalResults:
        cast = view.for_votes + view.against_votes
        if cast > 0:
            for_pct = round(view.for_votes * 100 / cast, 1)
            against_pct = round(view.against_votes * 100 / cast, 1)
        else:
            for_pct = against_pct = 0.0

        if view.for_votes > view.against_votes:
            leading = VoteChoice.FOR.value
        elif view.against_votes > view.for_votes:
            leading = VoteChoice.AGAINST.value
        else:
            leading = "tied"
        return ProposalResults(
            proposal_id=view.proposal_id,
            for_percentage=for_pct,
            against_percentage=against_pct,
            leading=leading,
        )
