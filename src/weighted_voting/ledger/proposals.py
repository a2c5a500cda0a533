"""Proposal ledger — append-only store of proposals.

Proposal ids are 0-based and assigned in append order. Proposals are
never deleted, reordered, or edited; only the tally engine touches their
counters.
"""

from __future__ import annotations

from typing import Any

from weighted_voting.access.control import AccessControl
from weighted_voting.errors import INVALID_PROPOSAL, InvalidArgument, NotFound
from weighted_voting.models.voting import Proposal, ProposalView


class ProposalLedger:
    """In-memory, append-only proposal store.

    Usage:
        ledger = ProposalLedger(access)
        pid = ledger.create_proposal(admin, "Approve Q4 budget")
        view = ledger.view(pid)
    """

    def __init__(self, access: AccessControl) -> None:
        self._access = access
        self._proposals: list[Proposal] = []

    @classmethod
    def from_records(
        cls,
        access: AccessControl,
        proposals_data: list[dict[str, Any]],
    ) -> ProposalLedger:
        """Restore the ledger from persisted proposal records (in id order)."""
        ledger = cls(access)
        for expected_id, pd in enumerate(proposals_data):
            if pd["id"] != expected_id:
                raise ValueError(
                    f"Proposal records out of order: expected id {expected_id}, "
                    f"got {pd['id']}"
                )
            ledger._proposals.append(Proposal(
                proposal_id=pd["id"],
                description=pd["description"],
                total_voting_power_cast=pd["total_voting_power_cast"],
                for_votes=pd["for_votes"],
                against_votes=pd["against_votes"],
            ))
        return ledger

    def validate_create(self, caller: str, description: str) -> None:
        """Check a create request without applying it.

        Raises:
            Unauthorized: caller is not the administrator.
            InvalidArgument: description is empty.
        """
        self._access.require_admin(caller)
        if not isinstance(description, str) or not description:
            raise InvalidArgument("Proposal description cannot be empty")

    def create_proposal(self, caller: str, description: str) -> int:
        """Append a new proposal with zero tallies. Returns its id."""
        self.validate_create(caller, description)
        proposal_id = len(self._proposals)
        self._proposals.append(Proposal(proposal_id=proposal_id, description=description))
        return proposal_id

    def get(self, proposal_id: int) -> Proposal:
        """Return the mutable proposal. Raises NotFound if out of range."""
        if (
            isinstance(proposal_id, bool)
            or not isinstance(proposal_id, int)
            or not 0 <= proposal_id < len(self._proposals)
        ):
            raise NotFound(INVALID_PROPOSAL)
        return self._proposals[proposal_id]

    def view(self, proposal_id: int) -> ProposalView:
        return self.get(proposal_id).to_view()

    def all_views(self) -> list[ProposalView]:
        """Return every proposal in id order."""
        return [p.to_view() for p in self._proposals]

    def discard_last(self, proposal_id: int) -> None:
        """Undo the most recent append. Used only by rollback paths."""
        if self._proposals and self._proposals[-1].proposal_id == proposal_id:
            self._proposals.pop()

    @property
    def count(self) -> int:
        return len(self._proposals)

    @property
    def total_voting_power_cast(self) -> int:
        return sum(p.total_voting_power_cast for p in self._proposals)
