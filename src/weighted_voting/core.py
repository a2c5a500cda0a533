"""WeightedVoting — the owned aggregate behind the voting call surface.

Composes the four components and exposes exactly the operations external
callers may invoke:

    whitelist_voter(caller, voter_id, weight)    admin only
    create_proposal(caller, description)         admin only
    start_voting(caller) / end_voting(caller)    admin only
    vote(caller, proposal_id, support)           whitelisted, not-yet-voted
    get_proposal / get_proposals_count / get_voter_info / admin   any

Each mutating call validates everything before writing, so a failure
leaves no partial state. The aggregate itself is not thread-safe;
VotingService serialises access to it.
"""

from __future__ import annotations

from typing import Any, Optional

from weighted_voting.access.control import AccessControl
from weighted_voting.engine.session import SessionStateMachine
from weighted_voting.engine.tally import TallyEngine, VoteReceipt
from weighted_voting.ledger.proposals import ProposalLedger
from weighted_voting.models.voting import (
    ProposalResults,
    ProposalView,
    SessionPhase,
    VoterInfo,
    VoterRecord,
)


class WeightedVoting:
    """Administrator, voter registry, proposal ledger and session phase."""

    def __init__(self, admin: str, strict_phase_transitions: bool = True) -> None:
        self._access = AccessControl(admin)
        self._ledger = ProposalLedger(self._access)
        self._session = SessionStateMachine(
            self._access, strict=strict_phase_transitions,
        )
        self._tally = TallyEngine(self._access, self._ledger, self._session)

    @classmethod
    def from_snapshot(
        cls,
        snapshot: dict[str, Any],
        strict_phase_transitions: bool = True,
    ) -> WeightedVoting:
        """Rebuild the aggregate from a snapshot produced by snapshot()."""
        voting = cls(snapshot["admin"], strict_phase_transitions)
        voting._access = AccessControl.from_records(
            snapshot["admin"], snapshot.get("voters", {}),
        )
        voting._ledger = ProposalLedger.from_records(
            voting._access, snapshot.get("proposals", []),
        )
        voting._session = SessionStateMachine(
            voting._access,
            phase=SessionPhase(snapshot.get("phase", SessionPhase.INACTIVE.value)),
            strict=strict_phase_transitions,
        )
        voting._tally = TallyEngine(voting._access, voting._ledger, voting._session)
        return voting

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def whitelist_voter(self, caller: str, voter_id: str, weight: int) -> VoterRecord:
        return self._access.whitelist_voter(caller, voter_id, weight)

    def create_proposal(self, caller: str, description: str) -> int:
        return self._ledger.create_proposal(caller, description)

    def start_voting(self, caller: str) -> SessionPhase:
        return self._session.start_voting(caller)

    def end_voting(self, caller: str) -> SessionPhase:
        return self._session.end_voting(caller)

    def vote(self, caller: str, proposal_id: int, support: bool) -> VoteReceipt:
        return self._tally.cast_vote(caller, proposal_id, support)

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    @property
    def admin(self) -> str:
        return self._access.admin

    def is_administrator(self, identity: str) -> bool:
        return self._access.is_administrator(identity)

    def is_whitelisted(self, voter_id: str) -> bool:
        return self._access.is_whitelisted(voter_id)

    def get_voter_info(self, voter_id: str) -> VoterInfo:
        return self._access.voter_info(voter_id)

    def get_proposal(self, proposal_id: int) -> ProposalView:
        return self._ledger.view(proposal_id)

    def get_proposals_count(self) -> int:
        return self._ledger.count

    def list_proposals(self) -> list[ProposalView]:
        return self._ledger.all_views()

    def get_proposal_results(self, proposal_id: int) -> ProposalResults:
        return ProposalResults.from_view(self._ledger.view(proposal_id))

    @property
    def current_phase(self) -> SessionPhase:
        return self._session.current_phase

    @property
    def strict_phase_transitions(self) -> bool:
        return self._session.strict

    def summary(self) -> dict[str, Any]:
        return {
            "admin": self._access.admin,
            "phase": self._session.current_phase.value,
            "proposals": self._ledger.count,
            "voters": {
                "whitelisted": self._access.whitelisted_count,
                "voted": self._access.voted_count,
            },
            "total_voting_power_cast": self._ledger.total_voting_power_cast,
        }

    def snapshot(self) -> dict[str, Any]:
        """Serialise the persisted state layout to plain JSON types."""
        return {
            "admin": self._access.admin,
            "phase": self._session.current_phase.value,
            "proposals": [
                {
                    "id": p.proposal_id,
                    "description": p.description,
                    "total_voting_power_cast": p.total_voting_power_cast,
                    "for_votes": p.for_votes,
                    "against_votes": p.against_votes,
                }
                for p in self._ledger.all_views()
            ],
            "voters": {
                v.voter_id: {
                    "is_whitelisted": v.is_whitelisted,
                    "weight": v.weight,
                    "has_voted": v.has_voted,
                    "voted_proposal_id": v.voted_proposal_id,
                }
                for v in self._access.all_voters()
            },
        }

    # ------------------------------------------------------------------
    # Recovery hooks, used by the service to undo or replay a mutation
    # ------------------------------------------------------------------

    def voter_record(self, voter_id: str) -> Optional[VoterRecord]:
        return self._access.get(voter_id)

    def forget_voter(self, voter_id: str) -> None:
        self._access.forget(voter_id)

    def discard_proposal(self, proposal_id: int) -> None:
        self._ledger.discard_last(proposal_id)

    def restore_phase(self, phase: SessionPhase) -> None:
        self._session.restore(phase)

    def revert_vote(self, receipt: VoteReceipt) -> None:
        self._tally.revert(receipt)
