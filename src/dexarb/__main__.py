"""
Entry point for the arbitrage engine.

Usage:
    python -m dexarb
    dexarb  # if installed via pip
"""

import asyncio
import sys


# Try to use uvloop for better performance
try:
    import uvloop

    UVLOOP_AVAILABLE = True
except ImportError:
    UVLOOP_AVAILABLE = False


def main() -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 on a fatal startup error).
    """
    from pydantic import ValidationError

    from dexarb import __version__
    from dexarb.config.settings import get_settings
    from dexarb.core.errors import DexArbError
    from dexarb.core.runner import ArbitrageRunner

    print(
        f"""
╔═══════════════════════════════════════════════════════════════╗
║     DEX TRIANGULAR ARBITRAGE ENGINE v{__version__:<19}      ║
║                                                               ║
║     Swap-event driven cycle search for V3 pools               ║
╚═══════════════════════════════════════════════════════════════╝
    """
    )

    # Load settings
    try:
        settings = get_settings()
    except ValidationError as e:
        print(f"Configuration error: {e}")
        print("\nMake sure you have a .env or .env.polygon file with:")
        print("  NODE_URL=wss://your-node-endpoint")
        print("  NODE_NAME=polygon")
        return 1

    uvloop_enabled = settings.use_uvloop and UVLOOP_AVAILABLE

    print("Configuration:")
    print(f"  Node:           {settings.node_name}")
    print(f"  Markets:        {settings.markets_file or 'built-in Polygon list'}")
    print(f"  Subscribe gap:  {settings.subscribe_interval:.2f}s")
    print(f"  Log level:      {settings.log_level} ({settings.log_format})")
    print(f"  uvloop:         {'Enabled' if uvloop_enabled else 'Disabled'}")
    print()

    async def run_engine() -> int:
        runner = ArbitrageRunner(settings)

        try:
            await runner.setup()
            await runner.run()
            return 0

        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 0

        except (DexArbError, ValueError, OSError) as e:
            print(f"\nFatal error: {e}")
            import traceback

            traceback.print_exc()
            return 1

        finally:
            await runner.shutdown()

    if uvloop_enabled:
        return uvloop.run(run_engine())
    return asyncio.run(run_engine())


if __name__ == "__main__":
    sys.exit(main())
