#!/usr/bin/env python3
"""
Triangle Discovery Script.

Lists every A -> B -> C -> A cycle the configured pools make possible,
without connecting to a node.
"""

import argparse
import sys
from pathlib import Path

# Add src to path for direct execution
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dexarb.config.markets import build_registries, load_markets
from dexarb.core.errors import DexArbError


def main() -> int:
    """Discover and display triangles."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "markets_file",
        nargs="?",
        type=Path,
        help="JSON markets file (default: built-in Polygon list)",
    )
    args = parser.parse_args()

    print("=" * 60)
    print("  TRIANGLE DISCOVERY")
    print("=" * 60)
    print()

    try:
        tokens, pools = build_registries(load_markets(args.markets_file))
    except (DexArbError, ValueError, OSError) as e:
        print(f"Error loading markets: {e}")
        return 1

    print(f"Loaded {len(tokens)} tokens and {len(pools)} pools")
    print()

    triangles = pools.find_triangles()
    print(f"Found {len(triangles)} ordered cycles")
    print()

    for i, (a, b, c) in enumerate(triangles, 1):
        print(f"{i:3}. {a} -> {b} -> {c} -> {a}")
        for src, dst in ((a, b), (b, c), (c, a)):
            candidates = [
                p for p in pools.list_all() if p.trades(src, dst)
            ]
            venues = ", ".join(f"{p.venue.value}/{p.fee_units}" for p in candidates)
            print(f"     {src}->{dst}: {venues}")
        print()

    # Pools per venue
    print("=" * 60)
    print("  POOLS PER VENUE")
    print("=" * 60)
    per_venue: dict[str, int] = {}
    for pool in pools.list_all():
        per_venue[pool.venue.value] = per_venue.get(pool.venue.value, 0) + 1
    for venue, count in sorted(per_venue.items()):
        print(f"  {venue:<14} {count}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
