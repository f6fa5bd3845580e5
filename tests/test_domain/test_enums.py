"""Tests for domain enumerations."""

from __future__ import annotations

import pytest

from confidential_swap.domain.enums import EventType, SwapStatus


class TestSwapStatus:
    def test_all_statuses_exist(self) -> None:
        assert {s.value for s in SwapStatus} == {"Pending", "Executed", "Finalized"}

    def test_status_is_str_enum(self) -> None:
        assert isinstance(SwapStatus.PENDING, str)
        assert SwapStatus.PENDING == "Pending"

    def test_tags_follow_declaration_order(self) -> None:
        assert [s.tag for s in SwapStatus] == [0, 1, 2]

    def test_from_tag(self) -> None:
        assert SwapStatus.from_tag(1) is SwapStatus.EXECUTED

    def test_unknown_tag(self) -> None:
        with pytest.raises(ValueError, match="Unknown swap status tag"):
            SwapStatus.from_tag(3)


class TestEventType:
    def test_one_event_per_operation(self) -> None:
        # initialize, delegate, execute, finalize, close
        assert len(EventType) == 5
