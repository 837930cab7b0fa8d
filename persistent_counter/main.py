#!/usr/bin/env python3
"""
Persistent Counter - Terminal Entry Point

Runs the persistent counter in a terminal, printing every change.

Usage:
    python -m persistent_counter.main                      # Run until Ctrl+C
    python -m persistent_counter.main --run 10             # Run for 10 seconds
    python -m persistent_counter.main --status             # Show stored value
    python -m persistent_counter.main --reset              # Reset stored value to 0
    python -m persistent_counter.main --backend preferences

Environment Variables (all optional):
    COUNTER_STORAGE_BACKEND - "datastore" (default) or "preferences"
    COUNTER_STORAGE_DIR     - Private storage directory (default: data)
    COUNTER_STORE_NAME      - Preference file name (default: CounterPrefs)
    COUNTER_KEY             - Record key (default: counter)
    COUNTER_TICK_INTERVAL   - Seconds between ticks (default: 1.0)
    LOG_LEVEL               - Log level when -v is not given (default: INFO)
"""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional

from config.settings import (
    BACKEND_PREFERENCES,
    SUPPORTED_BACKENDS,
    ConfigurationError,
    Settings,
    load_settings,
)
from persistent_counter.counter import CounterState, PersistentCounter
from persistent_counter.storage import (
    DataStoreAdapter,
    DurableStore,
    PreferencesDataStore,
    SharedPreferences,
    SharedPreferencesAdapter,
    StoreError,
)


def setup_logging(verbose: bool = False) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Counter that ticks once per second and remembers its value",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m persistent_counter.main                 # Run until Ctrl+C
    python -m persistent_counter.main --run 5         # Run for five seconds
    python -m persistent_counter.main --status        # Show stored value
    python -m persistent_counter.main --env .env.dev  # Use custom env file
        """,
    )

    parser.add_argument(
        "--run",
        type=float,
        metavar="SECONDS",
        help="Stop after this many seconds (default: run until interrupted)",
    )

    parser.add_argument(
        "--status",
        action="store_true",
        help="Show the stored counter value without running",
    )

    parser.add_argument(
        "--reset",
        action="store_true",
        help="Reset the stored counter value to 0 and exit",
    )

    parser.add_argument(
        "--backend",
        choices=SUPPORTED_BACKENDS,
        help="Persistence backend (overrides COUNTER_STORAGE_BACKEND)",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose/debug logging",
    )

    parser.add_argument(
        "--env",
        type=Path,
        help="Path to .env file (default: .env in current directory)",
    )

    return parser.parse_args(argv)


def open_store(settings: Settings) -> DurableStore:
    """
    Create the durable store selected by the settings.

    Args:
        settings: Loaded application settings

    Returns:
        Store adapter for the configured backend
    """
    storage = settings.storage
    if storage.backend == BACKEND_PREFERENCES:
        return SharedPreferencesAdapter(
            SharedPreferences(storage.directory, storage.store_name)
        )
    return DataStoreAdapter(
        PreferencesDataStore(storage.directory, storage.store_name)
    )


def show_status(state: CounterState, settings: Settings) -> None:
    """
    Display the stored counter.

    Args:
        state: Counter state after restoring from the store
        settings: Loaded application settings
    """
    logger = logging.getLogger(__name__)

    logger.info("=" * 50)
    logger.info("Counter Status")
    logger.info("=" * 50)
    logger.info(f"Backend:     {settings.storage.backend}")
    logger.info(f"Store:       {settings.storage.directory / settings.storage.store_name}")
    logger.info(f"Key:         {settings.storage.counter_key}")
    logger.info(f"Value:       {state.value}")
    logger.info("=" * 50)


async def run_counter(
    settings: Settings,
    duration: Optional[float] = None,
    status_only: bool = False,
    reset: bool = False,
) -> CounterState:
    """
    Open the store, restore the counter and perform the requested action.

    Args:
        settings: Loaded application settings
        duration: Seconds to run; None runs until cancelled
        status_only: Only report the stored value
        reset: Reset the stored value to 0

    Returns:
        Final counter state
    """
    logger = logging.getLogger(__name__)
    store = open_store(settings)

    try:
        counter = PersistentCounter(
            store,
            key=settings.storage.counter_key,
            tick_interval=settings.counter.tick_interval_seconds,
        )
        async with counter:
            if status_only:
                show_status(counter.state, settings)
                return counter.state

            if reset:
                counter.reset()
                logger.info("Counter reset to 0")
                return counter.state

            counter.subscribe(lambda state: logger.info(f"Counter: {state}"))
            counter.start()
            try:
                if duration is None:
                    await asyncio.Event().wait()
                else:
                    await asyncio.sleep(duration)
            finally:
                counter.pause()
            return counter.state
    finally:
        store.close()


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    logger = logging.getLogger(__name__)

    try:
        settings = load_settings(env_file=args.env)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        logger.error("Please check your .env file or environment variables")
        return 1

    if not args.verbose:
        logging.getLogger().setLevel(settings.log_level)

    if args.backend:
        settings = dataclasses.replace(
            settings,
            storage=dataclasses.replace(settings.storage, backend=args.backend),
        )

    try:
        state = asyncio.run(
            run_counter(
                settings,
                duration=args.run,
                status_only=args.status,
                reset=args.reset,
            )
        )
    except StoreError as e:
        logger.error(f"Storage error: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Counter interrupted by user")
        return 130

    logger.info(f"Final value: {state.value}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
