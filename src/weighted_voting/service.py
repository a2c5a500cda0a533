"""Voting service — the single serialisation point for the voting state.

This is the primary interface for programmatic access. It wraps the
WeightedVoting aggregate and adds:
- Serialisation: every operation runs under one re-entrant lock, so no
  two mutations interleave and reads never see a half-applied change.
  When a data-directory lock is wired (from_config), the same holds
  across processes: each operation takes the directory lock and first
  reloads state if another process has written since.
- Audit: every accepted mutation appends a hashed record to the event log.
- Persistence: the state snapshot is rewritten after each mutation.
- Typed results: mutations return ServiceResult; VotingError never escapes.

Failure ordering is fail-closed:
1. Validation failures leave the state untouched.
2. If the audit record cannot be written, the mutation is rolled back.
3. Once the audit record is durable, a snapshot failure does not roll
   back; it marks persistence as degraded and returns a warning.
Without an event log the snapshot is the only durable record, so a
snapshot failure rolls the mutation back.

Recovery: each snapshot records how many audit records it reflects
(applied_events). On load, later records are replayed onto the snapshot,
so a vote whose snapshot write failed is never forgotten. A record that
cannot be replayed (e.g. a second vote by the same voter) aborts the load.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, Optional

from filelock import FileLock

from weighted_voting.access.control import canonical_identity
from weighted_voting.commands import (
    CastVote,
    Command,
    CreateProposal,
    EndVoting,
    StartVoting,
    WhitelistVoter,
)
from weighted_voting.config import VotingConfig
from weighted_voting.core import WeightedVoting
from weighted_voting.errors import ErrorKind, VotingError
from weighted_voting.models.voting import (
    ProposalResults,
    ProposalView,
    SessionPhase,
    VoteChoice,
    VoterInfo,
)
from weighted_voting.persistence.event_log import EventKind, EventLog, EventRecord
from weighted_voting.persistence.state_store import StateStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)
    error_kind: Optional[ErrorKind] = None


def replay_event(voting: WeightedVoting, event: EventRecord) -> None:
    """Re-apply one audit record to the aggregate.

    Raises ValueError if the record is not valid against the current state.
    """
    payload = event.payload
    try:
        if event.event_kind == EventKind.VOTER_WHITELISTED:
            voting.whitelist_voter(event.actor_id, payload["voter_id"], payload["weight"])
        elif event.event_kind == EventKind.PROPOSAL_CREATED:
            proposal_id = voting.create_proposal(event.actor_id, payload["description"])
            if proposal_id != payload["proposal_id"]:
                raise ValueError(
                    f"Cannot replay {event.event_id}: proposal id {payload['proposal_id']} "
                    f"recorded, {proposal_id} assigned"
                )
        elif event.event_kind in (EventKind.VOTING_STARTED, EventKind.VOTING_ENDED):
            voting.restore_phase(SessionPhase(payload["phase"]))
        elif event.event_kind == EventKind.VOTE_CAST:
            voting.vote(
                event.actor_id,
                payload["proposal_id"],
                payload["choice"] == VoteChoice.FOR.value,
            )
    except VotingError as e:
        raise ValueError(
            f"Cannot replay {event.event_id} ({event.event_kind.value}) "
            f"by {event.actor_id}: {e.message}"
        ) from e


class VotingService:
    """Serialised, audited facade over the voting aggregate.

    Usage:
        service = VotingService(admin="0xadmin")
        service.whitelist_voter("0xadmin", "0xvoter", 5)
        pid = service.create_proposal("0xadmin", "Launch").data["proposal_id"]
        service.start_voting("0xadmin")
        service.vote("0xvoter", pid, True)
        service.get_proposal(pid)

    Persistence (optional):
        service = VotingService(admin, event_log=log, state_store=store)
        # State is loaded on construction and saved on each mutation.

    Shared data directory:
        service = VotingService.from_config(config)
        # Every operation holds config.lock_path; filelock.Timeout is
        # raised if another process keeps it past config.lock_timeout.
    """

    def __init__(
        self,
        admin: Optional[str] = None,
        strict_phase_transitions: bool = True,
        event_log: Optional[EventLog] = None,
        state_store: Optional[StateStore] = None,
        dir_lock: Optional[FileLock] = None,
    ) -> None:
        self._admin = admin
        self._strict = strict_phase_transitions
        self._event_log = event_log
        self._state_store = state_store
        self._dir_lock = dir_lock
        self._lock = threading.RLock()
        self._persistence_degraded: bool = False
        self._state_fingerprint: Optional[tuple[int, int, int]] = None

        with self._held():
            self._load()

    @classmethod
    def from_config(cls, config: VotingConfig) -> VotingService:
        """Create a service with durable persistence under config.data_dir."""
        config.data_dir.mkdir(parents=True, exist_ok=True)
        dir_lock = FileLock(str(config.lock_path), timeout=config.lock_timeout)
        # The log is read under the lock so a concurrent append is never half-read
        with dir_lock:
            return cls(
                admin=config.admin,
                strict_phase_transitions=config.strict_phase_transitions,
                event_log=EventLog(storage_path=config.events_path),
                state_store=StateStore(config.state_path),
                dir_lock=dir_lock,
            )

    # ------------------------------------------------------------------
    # Mutating operations
    # ------------------------------------------------------------------

    def whitelist_voter(self, caller: str, voter_id: str, weight: int) -> ServiceResult:
        """Grant voting eligibility and weight (admin only, upsert)."""
        with self._synced():
            existing = self._voting.voter_record(voter_id)
            prior = (
                (existing.is_whitelisted, existing.weight)
                if existing is not None else None
            )
            try:
                record = self._voting.whitelist_voter(caller, voter_id, weight)
            except VotingError as e:
                return self._rejected("whitelist_voter", caller, e)

            def _rollback() -> None:
                if prior is None:
                    self._voting.forget_voter(record.voter_id)
                else:
                    record.is_whitelisted, record.weight = prior

            return self._commit(
                caller,
                EventKind.VOTER_WHITELISTED,
                {"voter_id": record.voter_id, "weight": record.weight},
                _rollback,
            )

    def create_proposal(self, caller: str, description: str) -> ServiceResult:
        """Append a new proposal (admin only). data["proposal_id"] is its id."""
        with self._synced():
            try:
                proposal_id = self._voting.create_proposal(caller, description)
            except VotingError as e:
                return self._rejected("create_proposal", caller, e)

            return self._commit(
                caller,
                EventKind.PROPOSAL_CREATED,
                {"proposal_id": proposal_id, "description": description},
                lambda: self._voting.discard_proposal(proposal_id),
            )

    def start_voting(self, caller: str) -> ServiceResult:
        """Open the voting session (admin only)."""
        with self._synced():
            try:
                previous = self._voting.start_voting(caller)
            except VotingError as e:
                return self._rejected("start_voting", caller, e)
            return self._commit_phase(caller, EventKind.VOTING_STARTED, previous)

    def end_voting(self, caller: str) -> ServiceResult:
        """Close the voting session for good (admin only)."""
        with self._synced():
            try:
                previous = self._voting.end_voting(caller)
            except VotingError as e:
                return self._rejected("end_voting", caller, e)
            return self._commit_phase(caller, EventKind.VOTING_ENDED, previous)

    def vote(self, caller: str, proposal_id: int, support: bool) -> ServiceResult:
        """Cast the caller's single lifetime vote on a proposal."""
        with self._synced():
            try:
                receipt = self._voting.vote(caller, proposal_id, support)
            except VotingError as e:
                return self._rejected("vote", caller, e)

            return self._commit(
                caller,
                EventKind.VOTE_CAST,
                {
                    "proposal_id": receipt.proposal_id,
                    "choice": receipt.choice.value,
                    "weight": receipt.weight,
                },
                lambda: self._voting.revert_vote(receipt),
            )

    def execute(self, caller: str, command: Command) -> ServiceResult:
        """Apply a typed command on behalf of caller."""
        if isinstance(command, WhitelistVoter):
            return self.whitelist_voter(caller, command.voter_id, command.weight)
        if isinstance(command, CreateProposal):
            return self.create_proposal(caller, command.description)
        if isinstance(command, StartVoting):
            return self.start_voting(caller)
        if isinstance(command, EndVoting):
            return self.end_voting(caller)
        if isinstance(command, CastVote):
            return self.vote(caller, command.proposal_id, command.support)
        raise TypeError(f"Unknown command type: {type(command).__name__}")

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def admin(self) -> str:
        return self._voting.admin

    def is_administrator(self, identity: str) -> bool:
        return self._voting.is_administrator(identity)

    def is_whitelisted(self, voter_id: str) -> bool:
        with self._synced():
            return self._voting.is_whitelisted(voter_id)

    def get_voter_info(self, voter_id: str) -> VoterInfo:
        with self._synced():
            return self._voting.get_voter_info(voter_id)

    def get_proposal(self, proposal_id: int) -> ProposalView:
        """Raises NotFound if proposal_id is out of range."""
        with self._synced():
            return self._voting.get_proposal(proposal_id)

    def get_proposals_count(self) -> int:
        with self._synced():
            return self._voting.get_proposals_count()

    def list_proposals(self) -> list[ProposalView]:
        with self._synced():
            return self._voting.list_proposals()

    def get_proposal_results(self, proposal_id: int) -> ProposalResults:
        """Raises NotFound if proposal_id is out of range."""
        with self._synced():
            return self._voting.get_proposal_results(proposal_id)

    def current_phase(self) -> SessionPhase:
        with self._synced():
            return self._voting.current_phase

    def snapshot(self) -> dict[str, Any]:
        with self._synced():
            return self._voting.snapshot()

    def checkpoint(self) -> ServiceResult:
        """Write the current snapshot without mutating anything."""
        with self._synced():
            err = self._safe_persist()
            if err:
                return ServiceResult(success=False, errors=[err])
            return ServiceResult(success=True, data={"admin": self._voting.admin})

    def status(self) -> dict[str, Any]:
        """Return system-wide status summary."""
        with self._synced():
            summary = self._voting.summary()
            summary["strict_phase_transitions"] = self._voting.strict_phase_transitions
            summary["audit_events"] = (
                self._event_log.count if self._event_log is not None else 0
            )
            summary["persistence_degraded"] = self._persistence_degraded
            return summary

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _held(self) -> Iterator[None]:
        """Hold the in-process lock and, if wired, the data directory lock."""
        with self._lock:
            if self._dir_lock is None:
                yield
            else:
                with self._dir_lock:
                    yield

    @contextmanager
    def _synced(self) -> Iterator[None]:
        """Hold both locks with in-memory state matching what is on disk."""
        with self._held():
            if self._changed_on_disk():
                logger.info("Data directory changed by another writer, reloading")
                if self._event_log is not None:
                    self._event_log.reload()
                self._load()
            yield

    def _changed_on_disk(self) -> bool:
        if self._event_log is not None and self._event_log.changed_on_disk():
            return True
        return (
            self._state_store is not None
            and self._state_store.fingerprint() != self._state_fingerprint
        )

    def _load(self) -> None:
        """Rebuild the aggregate from the snapshot plus newer audit records.

        Raises:
            ValueError: missing or mismatched administrator, a snapshot
                ahead of the audit log, or an audit record that cannot be
                replayed.
        """
        snapshot = self._state_store.load() if self._state_store is not None else None
        events = self._event_log.events() if self._event_log is not None else []

        applied: Optional[int] = 0
        if snapshot is not None:
            applied = snapshot.pop("applied_events", None)
            stored_admin = canonical_identity(snapshot["admin"])
            if self._admin is not None and canonical_identity(self._admin) != stored_admin:
                raise ValueError(
                    f"Administrator mismatch: state belongs to {stored_admin}, "
                    f"got {canonical_identity(self._admin)}"
                )
            voting = WeightedVoting.from_snapshot(snapshot, self._strict)
        else:
            if self._admin is None:
                raise ValueError("Administrator identity is required")
            voting = WeightedVoting(self._admin, self._strict)

        # Snapshots written without an audit log carry no position
        if applied is None or self._event_log is None:
            applied = len(events)
        if applied > len(events):
            raise ValueError(
                f"State snapshot reflects {applied} audit records but the log "
                f"holds only {len(events)}"
            )

        pending = events[applied:]
        for event in pending:
            replay_event(voting, event)

        self._voting = voting
        # Continue numbering from the persisted log to avoid ID collisions
        self._event_counter = len(events)
        self._state_fingerprint = (
            self._state_store.fingerprint() if self._state_store is not None else None
        )

        if pending:
            logger.warning(
                "Replayed %d audit record(s) missing from the state snapshot",
                len(pending),
            )
            self._safe_persist_post_audit()

    def _commit_phase(
        self, caller: str, kind: EventKind, previous: SessionPhase,
    ) -> ServiceResult:
        phase = self._voting.current_phase
        return self._commit(
            caller,
            kind,
            {"previous_phase": previous.value, "phase": phase.value},
            lambda: self._voting.restore_phase(previous),
            extra={"changed": previous != phase},
        )

    def _commit(
        self,
        caller: str,
        kind: EventKind,
        payload: dict[str, Any],
        rollback: Callable[[], None],
        extra: Optional[dict[str, Any]] = None,
    ) -> ServiceResult:
        """Audit and persist an applied mutation, rolling back on failure."""
        data = dict(payload)
        if extra:
            data.update(extra)

        if self._event_log is None:
            err = self._safe_persist(on_rollback=rollback)
            if err:
                return ServiceResult(success=False, errors=[err])
            return ServiceResult(success=True, data=data)

        err = self._record_event(caller, kind, payload)
        if err:
            rollback()
            logger.error("Audit failure, %s rolled back: %s", kind.value, err)
            return ServiceResult(success=False, errors=[err])

        # Audit event committed; do NOT rollback in-memory state
        warning = self._safe_persist_post_audit()
        if warning:
            data["warning"] = warning
        return ServiceResult(success=True, data=data)

    def _rejected(self, operation: str, caller: str, error: VotingError) -> ServiceResult:
        logger.info(
            "Rejected %s from %s: %s (%s)",
            operation, caller, error.message, error.kind.value,
        )
        return ServiceResult(
            success=False, errors=[error.message], error_kind=error.kind,
        )

    def _next_event_id(self) -> str:
        """Generate a monotonically increasing unique event ID."""
        self._event_counter += 1
        return f"EVT-{self._event_counter:08d}"

    def _record_event(
        self, caller: str, kind: EventKind, payload: dict[str, Any],
    ) -> Optional[str]:
        """Append an audit record. Returns error string or None."""
        try:
            event = EventRecord.create(
                event_id=self._next_event_id(),
                event_kind=kind,
                actor_id=canonical_identity(caller),
                payload=payload,
            )
            self._event_log.append(event)
        except (ValueError, OSError) as e:
            self._event_counter -= 1
            return f"Event log failure: {e}"
        return None

    def _persist_state(self) -> None:
        """Write the snapshot (if a store is wired). Can raise OSError."""
        if self._state_store is None:
            return
        snapshot = self._voting.snapshot()
        if self._event_log is not None:
            snapshot["applied_events"] = self._event_log.count
        self._state_store.save(snapshot)
        self._state_fingerprint = self._state_store.fingerprint()

    def _safe_persist(
        self,
        on_rollback: Optional[Callable[[], None]] = None,
    ) -> Optional[str]:
        """Persist state, rolling back in-memory changes on failure."""
        try:
            self._persist_state()
            return None
        except OSError as e:
            if on_rollback is not None:
                on_rollback()
            logger.error("Persistence failure, mutation rolled back: %s", e)
            return f"Persistence failure: {e}"

    def _safe_persist_post_audit(self) -> Optional[str]:
        """Persist state after the audit record is durable.

        Never rolls back. On failure sets the degraded flag and returns a
        warning; the event log remains the source of truth.
        """
        try:
            self._persist_state()
            return None
        except OSError as e:
            self._persistence_degraded = True
            logger.warning("Persistence degraded: %s", e)
            return f"Persistence degraded: {e}; state committed in audit trail but StateStore is stale"
