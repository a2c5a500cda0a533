"""Session state machine — the single global voting phase.

Phase lifecycle:
    INACTIVE → ACTIVE → ENDED
    INACTIVE → ENDED   (close without ever opening)

State semantics:
- INACTIVE: initial. Proposals and voters may be set up; no votes.
- ACTIVE: votes may be cast on any proposal.
- ENDED: terminal. No further votes on any existing or future proposal.

The phase is shared by all proposals; it is never scoped or reset per
proposal. Only the administrator may transition it.

Fail-closed: transitions outside the table raise InvalidTransition. In
non-strict mode, re-entering the current phase is accepted as a no-op;
leaving ENDED is refused in both modes.
"""

from __future__ import annotations

from weighted_voting.access.control import AccessControl
from weighted_voting.errors import VOTING_NOT_ACTIVE, InvalidTransition, NotActive
from weighted_voting.models.voting import SessionPhase


# Valid transitions: {from_phase: {allowed_to_phases}}
_TRANSITIONS: dict[SessionPhase, set[SessionPhase]] = {
    SessionPhase.INACTIVE: {SessionPhase.ACTIVE, SessionPhase.ENDED},
    SessionPhase.ACTIVE: {SessionPhase.ENDED},
    # Terminal
    SessionPhase.ENDED: set(),
}


class SessionStateMachine:
    """Holds the current phase and applies admin-only transitions."""

    def __init__(
        self,
        access: AccessControl,
        phase: SessionPhase = SessionPhase.INACTIVE,
        strict: bool = True,
    ) -> None:
        self._access = access
        self._phase = phase
        self._strict = strict

    @property
    def current_phase(self) -> SessionPhase:
        return self._phase

    @property
    def strict(self) -> bool:
        return self._strict

    @staticmethod
    def validate_transition(
        current: SessionPhase,
        target: SessionPhase,
        strict: bool = True,
    ) -> list[str]:
        """Check if a transition is valid. Returns errors (empty = OK)."""
        if not strict and current == target:
            return []
        allowed = _TRANSITIONS.get(current, set())
        if target not in allowed:
            allowed_str = ", ".join(s.value for s in sorted(allowed, key=lambda x: x.value))
            return [
                f"Invalid session transition: {current.value} → {target.value}. "
                f"Allowed from {current.value}: [{allowed_str}]"
            ]
        return []

    def check_transition(self, caller: str, target: SessionPhase) -> None:
        """Validate an admin-requested transition without applying it.

        The admin check precedes the table check, so a non-admin always
        sees Unauthorized.
        """
        self._access.require_admin(caller)
        errors = self.validate_transition(self._phase, target, self._strict)
        if errors:
            raise InvalidTransition(errors[0])

    def start_voting(self, caller: str) -> SessionPhase:
        """Open voting. Returns the phase before the call."""
        return self._transition(caller, SessionPhase.ACTIVE)

    def end_voting(self, caller: str) -> SessionPhase:
        """Close voting for good. Returns the phase before the call."""
        return self._transition(caller, SessionPhase.ENDED)

    def require_active(self) -> None:
        """Raise NotActive unless votes may currently be cast."""
        if self._phase != SessionPhase.ACTIVE:
            raise NotActive(VOTING_NOT_ACTIVE)

    def restore(self, phase: SessionPhase) -> None:
        """Reset the phase. Used only by rollback paths."""
        self._phase = phase

    @staticmethod
    def is_terminal(phase: SessionPhase) -> bool:
        return not _TRANSITIONS.get(phase)

    @staticmethod
    def valid_transitions(phase: SessionPhase) -> set[SessionPhase]:
        """Return the set of valid target phases from the given phase."""
        return set(_TRANSITIONS.get(phase, set()))

    def _transition(self, caller: str, target: SessionPhase) -> SessionPhase:
        self.check_transition(caller, target)
        previous = self._phase
        self._phase = target
        return previous
