"""Tests for voting models and result percentages."""

import pytest

from weighted_voting.models.voting import (
    Proposal,
    ProposalResults,
    VoteChoice,
    VoterRecord,
)


def _results(for_votes: int, against_votes: int) -> ProposalResults:
    proposal = Proposal(
        proposal_id=0,
        description="P",
        total_voting_power_cast=for_votes + against_votes,
        for_votes=for_votes,
        against_votes=against_votes,
    )
    return ProposalResults.from_view(proposal.to_view())


class TestProposalResults:
    def test_no_votes(self) -> None:
        results = _results(0, 0)
        assert (results.for_percentage, results.against_percentage) == (0.0, 0.0)
        assert results.leading == "tied"

    @pytest.mark.parametrize(
        "for_votes,against_votes,expected",
        [
            (5, 10, (33.3, 66.7, "against")),
            (10, 5, (66.7, 33.3, "for")),
            (7, 7, (50.0, 50.0, "tied")),
            (1, 0, (100.0, 0.0, "for")),
        ],
    )
    def test_percentages(self, for_votes: int, against_votes: int, expected: tuple) -> None:
        results = _results(for_votes, against_votes)
        assert (results.for_percentage, results.against_percentage, results.leading) == expected


class TestViews:
    def test_as_tuple_order(self) -> None:
        view = Proposal(0, "Launch", 15, 5, 10).to_view()
        assert view.as_tuple() == ("Launch", 15, 5, 10)

    def test_voter_info_defaults(self) -> None:
        info = VoterRecord(voter_id="0xabc").to_info()
        assert info.is_whitelisted is False
        assert info.weight == 0
        assert info.has_voted is False
        assert info.voted_proposal_id is None

    def test_choice_from_support(self) -> None:
        assert VoteChoice.from_support(True) is VoteChoice.FOR
        assert VoteChoice.from_support(False) is VoteChoice.AGAINST
