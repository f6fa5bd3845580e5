"""Application services — swap lifecycle orchestration."""

from confidential_swap.services.delegation import DelegationBroker
from confidential_swap.services.swap_service import SwapService, SwapSnapshot

__all__ = ["DelegationBroker", "SwapService", "SwapSnapshot"]
