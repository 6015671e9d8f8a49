# src/task_reminder/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, starts the reminder scheduler in a background thread,
then either:
- runs the command given on the command line (task-reminder add ... / list / remove / sync), and
- keeps the process alive for the reminders: console REPL in the main thread (optional),
  otherwise until every reminder chain is done or a signal arrives.

All state is in memory: it lives exactly as long as this process.
"""

from __future__ import annotations

import logging
import signal
import sys
import threading

from ..cli.bootstrap import create_initial_state
from ..cli.commands import CommandError, registry
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..connectors.scheduler_runner import start_scheduler_in_background
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)

IDLE_POLL_SECONDS = 1.0


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    settings = get_settings()

    setup_logging(settings)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    runner = start_scheduler_in_background(state.scheduler)
    if runner is None:
        print("Error: reminder scheduler failed to start.", file=sys.stderr)
        return 1

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        if argv:
            try:
                print(registry.dispatch(state, argv[0], argv[1:]))
            except CommandError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1

        if settings.console_enabled:
            run_console_loop(state)
        elif not state.scheduler.is_idle():
            try:
                signal.signal(signal.SIGINT, _handle_signal)
                signal.signal(signal.SIGTERM, _handle_signal)
            except (ValueError, OSError):
                # Some platforms may not support SIGTERM, etc.
                pass

            logger.info("Console disabled. Waiting for reminders. Press Ctrl+C to stop.")
            while not stop_main.wait(IDLE_POLL_SECONDS):
                if state.scheduler.is_idle():
                    logger.info("All reminder chains finished.")
                    break

    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")

    return 0


if __name__ == "__main__":
    sys.exit(main())
