"""Voting engine — session phase and weighted tally."""

from weighted_voting.engine.session import SessionStateMachine
from weighted_voting.engine.tally import TallyEngine, VoteReceipt

__all__ = ["SessionStateMachine", "TallyEngine", "VoteReceipt"]
