"""Tally engine — applies a validated vote to a proposal.

Checks run in a fixed order, and the first failure decides the error kind:
1. Session phase is ACTIVE            (NotActive)
2. Caller is whitelisted              (Unauthorized)
3. Caller has not voted yet           (AlreadyVoted)
4. Proposal exists                    (NotFound)

Every check runs before any write. The write itself updates the
proposal counters and the voter's has_voted / voted_proposal_id together,
so a vote is never half-applied.

The single-vote limit is global: a voter who has voted on any proposal
can never vote again, on the same or any other proposal.
"""

from __future__ import annotations

from dataclasses import dataclass

from weighted_voting.access.control import AccessControl
from weighted_voting.engine.session import SessionStateMachine
from weighted_voting.errors import ALREADY_VOTED, AlreadyVoted, InvalidArgument
from weighted_voting.ledger.proposals import ProposalLedger
from weighted_voting.models.voting import Proposal, VoteChoice, VoterRecord


@dataclass(frozen=True)
class VoteReceipt:
    """Record of one applied vote."""
    voter_id: str
    proposal_id: int
    choice: VoteChoice
    weight: int


class TallyEngine:
    """Validates and applies weighted votes."""

    def __init__(
        self,
        access: AccessControl,
        ledger: ProposalLedger,
        session: SessionStateMachine,
    ) -> None:
        self._access = access
        self._ledger = ledger
        self._session = session

    def validate_vote(
        self, caller: str, proposal_id: int, support: bool,
    ) -> tuple[VoterRecord, Proposal]:
        """Run every vote check without writing anything."""
        self._session.require_active()
        voter = self._access.require_whitelisted(caller)
        if voter.has_voted:
            raise AlreadyVoted(ALREADY_VOTED)
        proposal = self._ledger.get(proposal_id)
        if not isinstance(support, bool):
            raise InvalidArgument(f"Support must be a boolean, got {support!r}")
        return voter, proposal

    def cast_vote(self, caller: str, proposal_id: int, support: bool) -> VoteReceipt:
        """Validate and apply a vote. Returns a receipt of what was applied."""
        voter, proposal = self.validate_vote(caller, proposal_id, support)
        choice = VoteChoice.from_support(support)
        weight = voter.weight

        proposal.total_voting_power_cast += weight
        if choice == VoteChoice.FOR:
            proposal.for_votes += weight
        else:
            proposal.against_votes += weight
        voter.has_voted = True
        voter.voted_proposal_id = proposal.proposal_id

        return VoteReceipt(
            voter_id=voter.voter_id,
            proposal_id=proposal.proposal_id,
            choice=choice,
            weight=weight,
        )

    def revert(self, receipt: VoteReceipt) -> None:
        """Undo an applied vote. Used only by rollback paths."""
        proposal = self._ledger.get(receipt.proposal_id)
        voter = self._access.get(receipt.voter_id)
        proposal.total_voting_power_cast -= receipt.weight
        if receipt.choice == VoteChoice.FOR:
            proposal.for_votes -= receipt.weight
        else:
            proposal.against_votes -= receipt.weight
        if voter is not None:
            voter.has_voted = False
            voter.voted_proposal_id = None
