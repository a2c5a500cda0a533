"""Typed commands for the mutating call surface.

External transports (wallet-signed calls, CLI, RPC) translate each request
into one of these variants and hand it to VotingService.execute together
with the caller identity. Dispatch is by type, never by name.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class WhitelistVoter:
    voter_id: str
    weight: int


@dataclass(frozen=True)
class CreateProposal:
    description: str


@dataclass(frozen=True)
class StartVoting:
    pass


@dataclass(frozen=True)
class EndVoting:
    pass


@dataclass(frozen=True)
class CastVote:
    proposal_id: int
    support: bool


Command = Union[WhitelistVoter, CreateProposal, StartVoting, EndVoting, CastVote]
