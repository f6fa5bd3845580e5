"""Swap Record State Machine Guard.

Uses python-statemachine to enforce legal status transitions at the domain
level. Whatever the API or MCP layer asks for, an illegal transition
(e.g., Pending -> Finalized) raises TransitionNotAllowed here, before the
record is touched.

Transition table:
    Pending   -> Executed    (execute_swap)
    Executed  -> Finalized   (finalize_swap)

Finalized is terminal. Delegation is not a transition: it only annotates
custody and is handled by the DelegationBroker.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class SwapStateMachine(StateMachine):
    """State machine that guards swap record lifecycle transitions.

    Usage:
        sm = SwapStateMachine(current_status="Pending")
        sm.execute_swap()  # transitions to Executed
        sm.status          # "Executed"
    """

    # --- States ---
    PENDING = State("Pending", value="Pending", initial=True)
    EXECUTED = State("Executed", value="Executed")
    FINALIZED = State("Finalized", value="Finalized", final=True)

    # --- Events / Transitions ---
    execute_swap = PENDING.to(EXECUTED)
    finalize_swap = EXECUTED.to(FINALIZED)

    def __init__(self, current_status: str = "Pending") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The current SwapStatus value (e.g., "Executed").
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches SwapStatus)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return a list of event names that can fire from the current state."""
        return [getattr(event, "id", None) or event.name for event in self.allowed_events]


def validate_transition(current_status: str, event_name: str) -> str:
    """Validate a status transition and return the new status.

    Args:
        current_status: Current SwapStatus value.
        event_name: The event to fire (e.g., "execute_swap").

    Returns:
        The new status string after the transition.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is invalid.
    """
    sm = SwapStateMachine(current_status=current_status)

    if event_name not in {"execute_swap", "finalize_swap"}:
        raise ValueError(
            f"Unknown event '{event_name}'. "
            f"Allowed events from {current_status}: {sm.get_allowed_events()}"
        )

    getattr(sm, event_name)()
    return sm.status
