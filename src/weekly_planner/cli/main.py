# src/weekly_planner/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, signs in, opens the document subscription,
then runs the console REPL until the user exits. The subscription is always
released before the process ends.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state, open_session
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.errors import AuthError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def run_app(settings) -> int:
    state = create_initial_state(settings=settings)

    unsubscribe_auth = state.identity.on_auth_state_changed(
        lambda user_id: logger.info("Auth state changed: user=%s", user_id or "<signed out>")
    )

    try:
        async with open_session(state):
            signed_out = await run_console_loop(state)
        if signed_out:
            await state.identity.sign_out()
            print("Signed out. The next run starts a new session.")
    except AuthError as e:
        print(f"[ERROR] {e.user_message}")
        return 1
    finally:
        unsubscribe_auth()
        close = getattr(state.gateway, "close", None)
        if callable(close):
            close()

    return 1 if state.error is not None else 0


def main() -> int:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (namespace=%s)...", settings.app_name, settings.app_namespace)

    try:
        code = asyncio.run(run_app(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
        code = 130

    logger.info("Bye.")
    return code


if __name__ == "__main__":
    raise SystemExit(main())
