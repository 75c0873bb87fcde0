#!/usr/bin/env python3
"""Dev entrypoint for running the notification scheduler without the API.

Usage:
    # Run until Ctrl+C
    python scripts/run_scheduler.py

    # Run for a fixed time
    python scripts/run_scheduler.py --duration 120

    # Schedule a test notification 10 seconds out
    python scripts/run_scheduler.py --test-after 10 --duration 30

Environment variables:
    DATABASE_URL: SQL storage (default: in-memory)
    PLATFORM_PERMISSION: Initial permission, set to "granted" to deliver (default: default)
    ENABLE_BACKGROUND_WORKER: Use the background worker (default: true)
    SWEEP_INTERVAL_SECONDS: Seconds between staleness sweeps (default: 60)
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from notifier.runner import configure_logging, run_scheduler


def main() -> int:
    """Main entrypoint for the scheduler runner."""
    parser = argparse.ArgumentParser(
        description="Run the study notification scheduler",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Seconds to run before stopping",
    )
    parser.add_argument(
        "--test-after",
        type=float,
        default=None,
        help="Schedule a test notification this many seconds from now",
    )

    # Logging
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Reduce logging to warnings only",
    )

    args = parser.parse_args()

    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.WARNING)
    else:
        configure_logging(logging.INFO)

    logger = logging.getLogger(__name__)

    try:
        logger.info("Starting notification scheduler (Ctrl+C to stop)...")
        stats = asyncio.run(
            run_scheduler(
                duration_seconds=args.duration,
                test_after_seconds=args.test_after,
            )
        )
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 0
    except Exception as e:
        logger.error(f"Scheduler failed: {e}", exc_info=True)
        return 1

    print("\n--- Scheduler Run Summary ---")
    print(f"Scheduled: {stats.total_scheduled}")
    print(f"Sent: {stats.total_sent}")
    print(f"Clicked: {stats.total_clicked}")
    print(f"Dismissed: {stats.total_dismissed}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
