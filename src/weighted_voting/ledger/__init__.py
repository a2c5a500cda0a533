"""Proposal ledger."""

from weighted_voting.ledger.proposals import ProposalLedger

__all__ = ["ProposalLedger"]
