"""Tests for the session state machine — one-way, admin-only phase changes."""

import pytest

from weighted_voting.access.control import AccessControl
from weighted_voting.engine.session import SessionStateMachine
from weighted_voting.errors import InvalidTransition, NotActive, Unauthorized
from weighted_voting.models.voting import SessionPhase


ADMIN = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
OUTSIDER = "0x90F79bf6EB2c4f870365E785982E1f101E93b906"


def _make_session(strict: bool = True) -> SessionStateMachine:
    return SessionStateMachine(AccessControl(ADMIN), strict=strict)


class TestValidTransitions:
    def test_initial_phase_inactive(self) -> None:
        assert _make_session().current_phase == SessionPhase.INACTIVE

    def test_inactive_to_active(self) -> None:
        session = _make_session()
        previous = session.start_voting(ADMIN)
        assert previous == SessionPhase.INACTIVE
        assert session.current_phase == SessionPhase.ACTIVE

    def test_active_to_ended(self) -> None:
        session = _make_session()
        session.start_voting(ADMIN)
        session.end_voting(ADMIN)
        assert session.current_phase == SessionPhase.ENDED

    def test_inactive_to_ended(self) -> None:
        session = _make_session()
        session.end_voting(ADMIN)
        assert session.current_phase == SessionPhase.ENDED


class TestInvalidTransitions:
    def test_ended_is_terminal(self) -> None:
        session = _make_session()
        session.end_voting(ADMIN)
        with pytest.raises(InvalidTransition):
            session.start_voting(ADMIN)
        assert session.current_phase == SessionPhase.ENDED

    def test_double_start_rejected_when_strict(self) -> None:
        session = _make_session()
        session.start_voting(ADMIN)
        with pytest.raises(InvalidTransition) as exc:
            session.start_voting(ADMIN)
        assert "active → active" in str(exc.value)

    def test_double_end_rejected_when_strict(self) -> None:
        session = _make_session()
        session.end_voting(ADMIN)
        with pytest.raises(InvalidTransition):
            session.end_voting(ADMIN)

    def test_validate_lists_allowed_targets(self) -> None:
        errors = SessionStateMachine.validate_transition(
            SessionPhase.ACTIVE, SessionPhase.INACTIVE,
        )
        assert len(errors) == 1
        assert "Allowed from active: [ended]" in errors[0]


class TestPermissiveMode:
    def test_double_start_is_noop(self) -> None:
        session = _make_session(strict=False)
        session.start_voting(ADMIN)
        previous = session.start_voting(ADMIN)
        assert previous == SessionPhase.ACTIVE
        assert session.current_phase == SessionPhase.ACTIVE

    def test_double_end_is_noop(self) -> None:
        session = _make_session(strict=False)
        session.end_voting(ADMIN)
        session.end_voting(ADMIN)
        assert session.current_phase == SessionPhase.ENDED

    def test_reopen_still_refused(self) -> None:
        session = _make_session(strict=False)
        session.end_voting(ADMIN)
        with pytest.raises(InvalidTransition):
            session.start_voting(ADMIN)


class TestAuthorization:
    def test_non_admin_cannot_start(self) -> None:
        session = _make_session()
        with pytest.raises(Unauthorized):
            session.start_voting(OUTSIDER)
        assert session.current_phase == SessionPhase.INACTIVE

    def test_non_admin_cannot_end(self) -> None:
        session = _make_session()
        session.start_voting(ADMIN)
        with pytest.raises(Unauthorized):
            session.end_voting(OUTSIDER)
        assert session.current_phase == SessionPhase.ACTIVE

    def test_non_admin_sees_unauthorized_even_when_invalid(self) -> None:
        session = _make_session()
        session.end_voting(ADMIN)
        with pytest.raises(Unauthorized):
            session.start_voting(OUTSIDER)


class TestRequireActive:
    @pytest.mark.parametrize("ended", [False, True])
    def test_not_active_outside_active_phase(self, ended: bool) -> None:
        session = _make_session()
        if ended:
            session.end_voting(ADMIN)
        with pytest.raises(NotActive) as exc:
            session.require_active()
        assert str(exc.value) == "Voting is not active"

    def test_active_passes(self) -> None:
        session = _make_session()
        session.start_voting(ADMIN)
        session.require_active()

    def test_terminal_and_valid_transitions(self) -> None:
        assert SessionStateMachine.is_terminal(SessionPhase.ENDED)
        assert not SessionStateMachine.is_terminal(SessionPhase.INACTIVE)
        assert SessionStateMachine.valid_transitions(SessionPhase.INACTIVE) == {
            SessionPhase.ACTIVE, SessionPhase.ENDED,
        }
