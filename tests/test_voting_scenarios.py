"""End-to-end voting scenarios through the service facade.

Covers the reference scenarios:
- A: two weighted voters, one for and one against.
- B: double vote rejected, tally unchanged.
- C: vote before voting starts rejected.
- D: non-whitelisted voter rejected.
- E: non-admin whitelisting rejected.
"""

import pytest

from weighted_voting.errors import ErrorKind
from weighted_voting.service import VotingService


ADMIN = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
VOTER_X = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
VOTER_Y = "0x3C44CdDdB6a900fa2b585dd299e03d12FA4293BC"
OUTSIDER = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


def _tally(service: VotingService, proposal_id: int = 0) -> tuple[int, int, int]:
    view = service.get_proposal(proposal_id)
    return (view.total_voting_power_cast, view.for_votes, view.against_votes)


@pytest.fixture
def service() -> VotingService:
    svc = VotingService(admin=ADMIN)
    assert svc.whitelist_voter(ADMIN, VOTER_X, 5).success
    assert svc.whitelist_voter(ADMIN, VOTER_Y, 10).success
    return svc


@pytest.fixture
def active(service: VotingService) -> VotingService:
    assert service.create_proposal(ADMIN, "P").success
    assert service.start_voting(ADMIN).success
    return service


class TestScenarioA:
    def test_weighted_tally(self, active: VotingService) -> None:
        assert active.vote(VOTER_X, 0, True).success
        assert _tally(active) == (5, 5, 0)

        assert active.vote(VOTER_Y, 0, False).success
        assert _tally(active) == (15, 5, 10)
        assert active.get_proposal(0).description == "P"


class TestScenarioB:
    def test_double_vote_rejected(self, active: VotingService) -> None:
        active.vote(VOTER_X, 0, True)
        active.vote(VOTER_Y, 0, False)

        result = active.vote(VOTER_X, 0, True)
        assert not result.success
        assert result.error_kind == ErrorKind.ALREADY_VOTED
        assert result.errors == ["Already voted"]
        assert _tally(active) == (15, 5, 10)


class TestScenarioC:
    def test_vote_before_start_rejected(self, service: VotingService) -> None:
        service.create_proposal(ADMIN, "Test Inactive")
        result = service.vote(VOTER_X, 0, True)
        assert not result.success
        assert result.error_kind == ErrorKind.NOT_ACTIVE
        assert result.errors == ["Voting is not active"]
        assert _tally(service) == (0, 0, 0)


class TestScenarioD:
    def test_non_whitelisted_rejected(self, active: VotingService) -> None:
        result = active.vote(OUTSIDER, 0, True)
        assert not result.success
        assert result.error_kind == ErrorKind.UNAUTHORIZED
        assert result.errors == ["Only whitelisted voters can vote"]
        assert _tally(active) == (0, 0, 0)


class TestScenarioE:
    def test_non_admin_whitelist_rejected(self, service: VotingService) -> None:
        before = service.snapshot()["voters"]
        result = service.whitelist_voter(OUTSIDER, OUTSIDER, 1)
        assert not result.success
        assert result.error_kind == ErrorKind.UNAUTHORIZED
        assert result.errors == ["Only admin can call this"]
        assert service.snapshot()["voters"] == before
        assert service.get_voter_info(OUTSIDER).is_whitelisted is False


class TestNonAdminMutations:
    @pytest.mark.parametrize("description", ["Launch", "Approve Budget for Q4"])
    def test_create_proposal_rejected(self, service: VotingService, description: str) -> None:
        result = service.create_proposal(VOTER_X, description)
        assert result.error_kind == ErrorKind.UNAUTHORIZED
        assert service.get_proposals_count() == 0

    @pytest.mark.parametrize("weight", [1, 5, 1000])
    def test_whitelist_rejected_for_any_weight(self, service: VotingService, weight: int) -> None:
        result = service.whitelist_voter(VOTER_Y, OUTSIDER, weight)
        assert result.error_kind == ErrorKind.UNAUTHORIZED

    def test_phase_changes_rejected(self, service: VotingService) -> None:
        assert service.start_voting(VOTER_X).error_kind == ErrorKind.UNAUTHORIZED
        assert service.end_voting(VOTER_X).error_kind == ErrorKind.UNAUTHORIZED
        assert service.current_phase().value == "inactive"


class TestEndedSession:
    def test_no_votes_after_end_even_on_new_proposals(self, active: VotingService) -> None:
        active.end_voting(ADMIN)
        active.create_proposal(ADMIN, "After the end")
        for pid in (0, 1):
            result = active.vote(VOTER_X, pid, True)
            assert result.error_kind == ErrorKind.NOT_ACTIVE
        assert active.start_voting(ADMIN).error_kind == ErrorKind.INVALID_TRANSITION
