"""Tests for the proposal ledger — append-only ids and admin-only creation."""

import pytest

from weighted_voting.access.control import AccessControl
from weighted_voting.errors import ErrorKind, InvalidArgument, NotFound, Unauthorized
from weighted_voting.ledger.proposals import ProposalLedger


ADMIN = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
OUTSIDER = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


@pytest.fixture
def ledger() -> ProposalLedger:
    return ProposalLedger(AccessControl(ADMIN))


class TestCreateProposal:
    def test_first_proposal_has_id_zero(self, ledger: ProposalLedger) -> None:
        assert ledger.create_proposal(ADMIN, "Launch new product line") == 0
        assert ledger.count == 1

    def test_ids_follow_append_order(self, ledger: ProposalLedger) -> None:
        ids = [ledger.create_proposal(ADMIN, f"Proposal {i}") for i in range(4)]
        assert ids == [0, 1, 2, 3]
        assert [v.description for v in ledger.all_views()] == [
            "Proposal 0", "Proposal 1", "Proposal 2", "Proposal 3",
        ]

    def test_new_proposal_has_zero_tallies(self, ledger: ProposalLedger) -> None:
        pid = ledger.create_proposal(ADMIN, "Approve Budget for Q4")
        assert ledger.view(pid).as_tuple() == ("Approve Budget for Q4", 0, 0, 0)

    def test_non_admin_rejected(self, ledger: ProposalLedger) -> None:
        with pytest.raises(Unauthorized):
            ledger.create_proposal(OUTSIDER, "Sneaky")
        assert ledger.count == 0

    @pytest.mark.parametrize("description", ["", None, 7])
    def test_empty_description_rejected(self, ledger: ProposalLedger, description: object) -> None:
        with pytest.raises(InvalidArgument):
            ledger.create_proposal(ADMIN, description)
        assert ledger.count == 0

    def test_whitespace_description_kept_verbatim(self, ledger: ProposalLedger) -> None:
        pid = ledger.create_proposal(ADMIN, "   ")
        assert ledger.view(pid).description == "   "

    def test_non_admin_checked_before_description(self, ledger: ProposalLedger) -> None:
        with pytest.raises(Unauthorized):
            ledger.create_proposal(OUTSIDER, "")


class TestLookup:
    def test_out_of_range_not_found(self, ledger: ProposalLedger) -> None:
        ledger.create_proposal(ADMIN, "Only one")
        with pytest.raises(NotFound) as exc:
            ledger.view(1)
        assert exc.value.kind == ErrorKind.NOT_FOUND

    def test_negative_id_not_found(self, ledger: ProposalLedger) -> None:
        ledger.create_proposal(ADMIN, "Only one")
        with pytest.raises(NotFound):
            ledger.view(-1)

    def test_empty_ledger_not_found(self, ledger: ProposalLedger) -> None:
        with pytest.raises(NotFound):
            ledger.get(0)

    def test_views_are_snapshots(self, ledger: ProposalLedger) -> None:
        pid = ledger.create_proposal(ADMIN, "Snapshot")
        view = ledger.view(pid)
        ledger.get(pid).for_votes = 3
        assert view.for_votes == 0


class TestFromRecords:
    def test_restores_in_order(self) -> None:
        ledger = ProposalLedger.from_records(AccessControl(ADMIN), [
            {"id": 0, "description": "A", "total_voting_power_cast": 5,
             "for_votes": 5, "against_votes": 0},
            {"id": 1, "description": "B", "total_voting_power_cast": 0,
             "for_votes": 0, "against_votes": 0},
        ])
        assert ledger.count == 2
        assert ledger.view(0).total_voting_power_cast == 5
        assert ledger.create_proposal(ADMIN, "C") == 2

    def test_rejects_out_of_order(self) -> None:
        with pytest.raises(ValueError):
            ProposalLedger.from_records(AccessControl(ADMIN), [
                {"id": 1, "description": "B", "total_voting_power_cast": 0,
                 "for_votes": 0, "against_votes": 0},
            ])
