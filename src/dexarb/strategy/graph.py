"""
Best-pool index over the token graph.

Uses NetworkX for the token graph and keeps, on every directed edge, the
pools trading that pair and the pool currently offering the highest
unit-input output. The index is updated on each pool write instead of
being recomputed on each scan.
"""

import logging
from typing import Any

import networkx as nx

from dexarb.core.types import LegQuote, Pool


logger = logging.getLogger(__name__)


class BestPoolIndex:
    """
    Best pool per directed token pair.

    Uses a directed graph where:
    - Nodes are token symbols
    - Edge (A, B) holds every pool trading A/B, in registration order,
      and the best quote for selling A into B

    Not synchronized: the owning PoolRegistry guards every call with its
    lock. Ties go to the pool registered first.
    """

    def __init__(self) -> None:
        """Initialize empty index."""
        self._graph: nx.DiGraph = nx.DiGraph()

    @staticmethod
    def _directions(pool: Pool) -> tuple[tuple[str, str], tuple[str, str]]:
        token0, token1 = pool.pair
        return (token0, token1), (token1, token0)

    def add_pool(self, pool: Pool) -> None:
        """Register a pool on both directed edges of its pair."""
        for src, dst in self._directions(pool):
            if not self._graph.has_edge(src, dst):
                self._graph.add_edge(src, dst, pools=[], best=None)
            self._graph.edges[src, dst]["pools"].append(pool)
            self._graph.edges[src, dst]["best"] = self._select_best(src, dst)

    def remove_pool(self, pool: Pool) -> None:
        """Drop a pool, removing edges left without pools."""
        for src, dst in self._directions(pool):
            if not self._graph.has_edge(src, dst):
                continue
            pools: list[Pool] = self._graph.edges[src, dst]["pools"]
            pools[:] = [p for p in pools if p is not pool]
            if pools:
                self._graph.edges[src, dst]["best"] = self._select_best(src, dst)
            else:
                self._graph.remove_edge(src, dst)

    def refresh(self, pool: Pool) -> None:
        """
        Update both directions after the pool's amounts changed.

        A full rescan of the pair is needed only when the pool was the best,
        or ties the best; otherwise the comparison is O(1).
        """
        for src, dst in self._directions(pool):
            edge = self._graph.edges[src, dst]
            best: LegQuote | None = edge["best"]
            amount = pool.amount_out_from(src) if pool.has_quotes else None

            if best is None or best.pool is pool:
                edge["best"] = self._select_best(src, dst)
            elif amount is None or amount < best.amount_out:
                continue
            elif amount > best.amount_out:
                edge["best"] = LegQuote(pool, src, dst, amount)
            else:
                edge["best"] = self._select_best(src, dst)

    def _select_best(self, src: str, dst: str) -> LegQuote | None:
        """Scan a pair's pools for the highest eligible output."""
        best: LegQuote | None = None

        for pool in self._graph.edges[src, dst]["pools"]:
            # Both directions must be populated before a pool is eligible
            if not pool.has_quotes:
                continue

            amount = pool.amount_out_from(src)
            if amount is None or amount <= 0:
                continue

            if best is None or amount > best.amount_out:
                best = LegQuote(pool=pool, from_symbol=src, to_symbol=dst, amount_out=amount)

        return best

    def best(self, src: str, dst: str) -> LegQuote | None:
        """Get the best quote for selling `src` into `dst`."""
        data = self._graph.get_edge_data(src, dst)
        if data is None:
            return None
        quote: LegQuote | None = data["best"]
        return quote

    def snapshot(self) -> dict[tuple[str, str], LegQuote]:
        """All directed pairs that currently have an eligible pool."""
        return {
            (src, dst): data["best"]
            for src, dst, data in self._graph.edges(data=True)
            if data["best"] is not None
        }

    def pools_for(self, src: str, dst: str) -> list[Pool]:
        """Pools trading the pair, in registration order."""
        data = self._graph.get_edge_data(src, dst)
        return list(data["pools"]) if data else []

    def find_triangles(self) -> list[tuple[str, str, str]]:
        """
        List ordered cycles A -> B -> C -> A that the pool topology allows.

        Independent of current quotes; used for diagnostics.
        """
        triangles: list[tuple[str, str, str]] = []

        for first in self._graph.nodes:
            for second in self._graph.successors(first):
                if second == first:
                    continue

                for third in self._graph.successors(second):
                    if third in (first, second):
                        continue

                    if self._graph.has_edge(third, first):
                        triangles.append((first, second, third))

        logger.debug(f"Found {len(triangles)} triangular paths")
        return triangles

    @property
    def graph(self) -> nx.DiGraph:
        """Get the underlying NetworkX graph."""
        return self._graph

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        """
        Convert the index to serializable format.

        Returns:
            Dict with one entry per directed pair.
        """
        return {
            "pairs": [
                {
                    "from": src,
                    "to": dst,
                    "pools": [pool.address for pool in data["pools"]],
                    "best_pool": data["best"].pool.address if data["best"] else None,
                    "amount_out": str(data["best"].amount_out) if data["best"] else None,
                }
                for src, dst, data in self._graph.edges(data=True)
            ]
        }
