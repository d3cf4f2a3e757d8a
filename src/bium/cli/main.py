# src/bium/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts one front-end:
- console command shell (BIUM_CONSOLE_ENABLED=1), or
- the JSON API served by uvicorn (default).
"""

from __future__ import annotations

import logging

import uvicorn

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..web.app import create_app

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (data=%s)...", settings.app_name, settings.db_path)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            app = create_app(state)
            # log_config=None keeps the handlers installed by setup_logging.
            uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
