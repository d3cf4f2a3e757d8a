# src/bium/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import capture_task, registry as command_registry
from ..core.errors import PersistenceError
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Manage your inbox and queues. Use /help for commands. Use /exit to quit.\n")

    def emit(text: str) -> None:
        # Immediate user-visible feedback for long operations
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            if user_input.startswith("/"):
                response = command_registry.handle(state, user_input, emit=emit)
            else:
                # Plain text is a quick capture: the whole line is the title.
                response = capture_task(state, user_input)
        except PersistenceError as e:
            logger.error("Change not saved: %s", e)
            response = "Could not save the change; nothing was modified."
        except Exception:
            logger.exception("Command handler crashed.")
            response = "Internal error while handling a command."

        if response is not None:
            _print_ts(response)

    logger.info("Console connector finished.")
