"""Persistence — audit event log and state snapshots."""

from weighted_voting.persistence.event_log import EventKind, EventLog, EventRecord
from weighted_voting.persistence.state_store import StateStore

__all__ = ["EventKind", "EventLog", "EventRecord", "StateStore"]
