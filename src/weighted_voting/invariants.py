"""Invariant checks against a persisted voting snapshot.

Used by the `check-invariants` CLI command and by tests. Returns a list
of violations; an empty list means the snapshot is consistent.
"""

from __future__ import annotations

from typing import Any

from weighted_voting.models.voting import SessionPhase


def check_state(snapshot: dict[str, Any]) -> list[str]:
    errors: list[str] = []

    if not str(snapshot.get("admin") or "").strip():
        errors.append("admin must be a non-blank identity")

    phase = snapshot.get("phase")
    if phase not in {p.value for p in SessionPhase}:
        errors.append(f"unknown session phase: {phase!r}")

    proposals = snapshot.get("proposals", [])
    for index, p in enumerate(proposals):
        pid = p.get("id")
        if pid != index:
            errors.append(f"proposal at position {index} has id {pid}")
        if not p.get("description"):
            errors.append(f"proposal {pid}: description is empty")
        total = p.get("total_voting_power_cast", 0)
        for_votes = p.get("for_votes", 0)
        against_votes = p.get("against_votes", 0)
        if min(total, for_votes, against_votes) < 0:
            errors.append(f"proposal {pid}: negative tally")
        if total != for_votes + against_votes:
            errors.append(
                f"proposal {pid}: total_voting_power_cast {total} != "
                f"for_votes {for_votes} + against_votes {against_votes}"
            )

    for voter_id, v in snapshot.get("voters", {}).items():
        if v.get("is_whitelisted") and v.get("weight", 0) < 1:
            errors.append(f"voter {voter_id}: whitelisted with weight {v.get('weight')}")
        voted_on = v.get("voted_proposal_id")
        if v.get("has_voted") and voted_on is None:
            errors.append(f"voter {voter_id}: has_voted without voted_proposal_id")
        if not v.get("has_voted") and voted_on is not None:
            errors.append(f"voter {voter_id}: voted_proposal_id set but has_voted is false")
        if voted_on is not None and not 0 <= voted_on < len(proposals):
            errors.append(f"voter {voter_id}: voted on unknown proposal {voted_on}")

    return errors
