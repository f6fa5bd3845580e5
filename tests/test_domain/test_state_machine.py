"""Tests for the SwapStateMachine domain guard.

These tests verify that:
    1. The forward path Pending -> Executed -> Finalized is allowed.
    2. Skipping, repeating, and reversing are blocked.
    3. The convenience function validate_transition works.
"""

from __future__ import annotations

import pytest
from statemachine.exceptions import TransitionNotAllowed

from confidential_swap.domain.state_machine import (
    SwapStateMachine,
    validate_transition,
)


class TestHappyPath:
    def test_full_lifecycle(self) -> None:
        sm = SwapStateMachine("Pending")
        assert sm.status == "Pending"

        sm.execute_swap()
        assert sm.status == "Executed"

        sm.finalize_swap()
        assert sm.status == "Finalized"

    def test_default_is_pending(self) -> None:
        assert SwapStateMachine().status == "Pending"


class TestIllegalTransitions:
    def test_pending_cannot_finalize(self) -> None:
        sm = SwapStateMachine("Pending")
        with pytest.raises(TransitionNotAllowed):
            sm.finalize_swap()

    def test_executed_cannot_execute_again(self) -> None:
        sm = SwapStateMachine("Executed")
        with pytest.raises(TransitionNotAllowed):
            sm.execute_swap()

    @pytest.mark.parametrize("event", ["execute_swap", "finalize_swap"])
    def test_finalized_is_terminal(self, event: str) -> None:
        sm = SwapStateMachine("Finalized")
        with pytest.raises(TransitionNotAllowed):
            getattr(sm, event)()
        assert sm.status == "Finalized"


class TestAllowedEvents:
    def test_pending_allowed(self) -> None:
        assert SwapStateMachine("Pending").get_allowed_events() == ["execute_swap"]

    def test_executed_allowed(self) -> None:
        assert SwapStateMachine("Executed").get_allowed_events() == ["finalize_swap"]

    def test_finalized_allows_nothing(self) -> None:
        assert SwapStateMachine("Finalized").get_allowed_events() == []


class TestValidateTransitionFunction:
    def test_valid_transition(self) -> None:
        assert validate_transition("Pending", "execute_swap") == "Executed"
        assert validate_transition("Executed", "finalize_swap") == "Finalized"

    def test_illegal_transition(self) -> None:
        with pytest.raises(TransitionNotAllowed):
            validate_transition("Pending", "finalize_swap")

    def test_invalid_event_name(self) -> None:
        with pytest.raises(ValueError, match="Unknown event"):
            validate_transition("Pending", "delegate_swap")

    def test_invalid_status(self) -> None:
        with pytest.raises(ValueError, match="Unknown status"):
            SwapStateMachine("Cancelled")
