"""Configuration module for the arbitrage engine."""

from dexarb.config.constants import (
    DECIMAL_PRECISION,
    FEE_UNITS_DENOMINATOR,
    Q96,
    SWAP_EVENT_SIGNATURE,
)
from dexarb.config.settings import Settings, get_settings


__all__ = [
    "DECIMAL_PRECISION",
    "FEE_UNITS_DENOMINATOR",
    "Q96",
    "SWAP_EVENT_SIGNATURE",
    "Settings",
    "get_settings",
]
