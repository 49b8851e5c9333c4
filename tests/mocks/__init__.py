"""Mock implementations for testing."""

from tests.mocks.market import POOL_AB, POOL_BC, POOL_CA, set_amounts
from tests.mocks.node import FakeLogSubscription, FakeNodeClient, make_swap_log


__all__ = [
    "FakeLogSubscription",
    "FakeNodeClient",
    "POOL_AB",
    "POOL_BC",
    "POOL_CA",
    "make_swap_log",
    "set_amounts",
]
