"""Identity and access control — administrator identity and voter registry.

This module is the single source of truth for "who is admin" and
"who may vote". Every mutating operation routes its permission check
through AccessControl; no other module compares identities.

Rules enforced:
- The administrator is fixed at construction and never changes.
- Only the administrator may whitelist voters.
- Whitelisting is an upsert: weight is overwritten, is_whitelisted is set,
  and has_voted / voted_proposal_id are preserved.
- Weights are integers >= 1.

Identities are canonicalised before comparison: whitespace is stripped and
0x-prefixed hex addresses are lower-cased, so checksummed and lower-case
forms of the same address are the same identity.
"""

from __future__ import annotations

from typing import Any, Optional

from weighted_voting.errors import ONLY_ADMIN, ONLY_WHITELISTED, InvalidArgument, Unauthorized
from weighted_voting.models.voting import VoterInfo, VoterRecord


def canonical_identity(identity: str) -> str:
    """Return the canonical form of an identity used as registry key."""
    canonical = (identity or "").strip()
    if canonical[:2].lower() == "0x":
        canonical = canonical.lower()
    return canonical


class AccessControl:
    """Administrator identity plus the voter whitelist and weights.

    Thread-safety: this class is not thread-safe. The caller must
    synchronise access if used from multiple threads.
    """

    def __init__(self, admin: str) -> None:
        canonical = canonical_identity(admin)
        if not canonical:
            raise ValueError("Administrator identity cannot be blank")
        self._admin = canonical
        self._voters: dict[str, VoterRecord] = {}

    @classmethod
    def from_records(
        cls,
        admin: str,
        voters_data: dict[str, dict[str, Any]],
    ) -> AccessControl:
        """Restore the registry from persisted voter records."""
        control = cls(admin)
        for voter_id, vd in voters_data.items():
            key = canonical_identity(voter_id)
            control._voters[key] = VoterRecord(
                voter_id=key,
                is_whitelisted=vd["is_whitelisted"],
                weight=vd["weight"],
                has_voted=vd["has_voted"],
                voted_proposal_id=vd.get("voted_proposal_id"),
            )
        return control

    @property
    def admin(self) -> str:
        return self._admin

    def is_administrator(self, identity: str) -> bool:
        """Pure predicate: is this identity the administrator?"""
        return canonical_identity(identity) == self._admin

    def require_admin(self, caller: str) -> None:
        """Raise Unauthorized unless caller is the administrator."""
        if not self.is_administrator(caller):
            raise Unauthorized(ONLY_ADMIN)

    def validate_whitelist(self, caller: str, voter_id: str, weight: int) -> str:
        """Check a whitelist request without applying it.

        Returns the canonical voter identity.

        Raises:
            Unauthorized: caller is not the administrator.
            InvalidArgument: blank voter identity or weight < 1.
        """
        self.require_admin(caller)
        canonical = canonical_identity(voter_id)
        if not canonical:
            raise InvalidArgument("Voter identity cannot be blank")
        if isinstance(weight, bool) or not isinstance(weight, int):
            raise InvalidArgument(f"Weight must be an integer, got {weight!r}")
        if weight < 1:
            raise InvalidArgument(f"Weight must be at least 1, got {weight}")
        return canonical

    def whitelist_voter(self, caller: str, voter_id: str, weight: int) -> VoterRecord:
        """Grant voting eligibility and set the voter's weight (upsert)."""
        canonical = self.validate_whitelist(caller, voter_id, weight)
        record = self._voters.get(canonical)
        if record is None:
            record = VoterRecord(voter_id=canonical)
            self._voters[canonical] = record
        record.is_whitelisted = True
        record.weight = weight
        return record

    def require_whitelisted(self, caller: str) -> VoterRecord:
        """Return the caller's record, or raise Unauthorized if not whitelisted."""
        record = self.get(caller)
        if record is None or not record.is_whitelisted:
            raise Unauthorized(ONLY_WHITELISTED)
        return record

    def get(self, voter_id: str) -> Optional[VoterRecord]:
        """Look up a voter record by identity."""
        return self._voters.get(canonical_identity(voter_id))

    def voter_info(self, voter_id: str) -> VoterInfo:
        """Return voter info; unknown voters get the default record."""
        record = self.get(voter_id)
        if record is None:
            return VoterInfo()
        return record.to_info()

    def is_whitelisted(self, voter_id: str) -> bool:
        record = self.get(voter_id)
        return record is not None and record.is_whitelisted

    def all_voters(self) -> list[VoterRecord]:
        """Return all voter records in registration order."""
        return list(self._voters.values())

    def forget(self, voter_id: str) -> None:
        """Drop a voter record. Used only to roll back a failed upsert."""
        self._voters.pop(canonical_identity(voter_id), None)

    @property
    def whitelisted_count(self) -> int:
        return sum(1 for v in self._voters.values() if v.is_whitelisted)

    @property
    def voted_count(self) -> int:
        return sum(1 for v in self._voters.values() if v.has_voted)
