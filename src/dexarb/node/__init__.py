"""Blockchain node connectivity."""

from dexarb.node.client import ConnectionState, JsonRpcWebSocketClient, LogStream


__all__ = [
    "ConnectionState",
    "JsonRpcWebSocketClient",
    "LogStream",
]
