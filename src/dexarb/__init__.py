"""
DEX Triangular Arbitrage Engine.

An asynchronous pipeline that watches swap events on decentralized
exchange pools, keeps a concurrent registry of current exchange rates
and searches it for profitable A -> B -> C -> A token cycles.
"""

__version__ = "1.0.0"
