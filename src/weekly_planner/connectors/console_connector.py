# src/weekly_planner/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def _resolve_line(fut: asyncio.Future[str], line: str | None, exc: Exception | None) -> None:
    if fut.done():
        return
    if exc is not None:
        fut.set_exception(exc)
    else:
        fut.set_result(line or "")


async def _read_line(prompt: str) -> str:
    """
    Read one line without blocking the event loop.

    The blocking input() runs in a daemon thread rather than the default executor,
    so a cancelled prompt (Ctrl+C under asyncio.run) does not hold up shutdown.
    """
    loop = asyncio.get_running_loop()
    fut: asyncio.Future[str] = loop.create_future()

    def _worker() -> None:
        line: str | None = None
        exc: Exception | None = None
        try:
            line = input(prompt)
        except Exception as e:
            exc = e
        # The loop may already be closed if the prompt was abandoned.
        with contextlib.suppress(RuntimeError):
            loop.call_soon_threadsafe(_resolve_line, fut, line, exc)

    threading.Thread(target=_worker, name="console-input", daemon=True).start()
    return await fut


def _print_error_screen(state: AppState) -> None:
    err = state.error
    if err is not None:
        _print_ts(f"[ERROR] {err.user_message}")


async def run_console_loop(state: AppState) -> bool:
    """
    Interactive REPL.

    Input is read in a daemon thread so the event loop keeps applying remote pushes
    while the prompt is open. Returns True when the user asked to sign out.
    """
    logger.info("Console connector started (user=%s).", state.session.user_id if state.session else None)
    _print_ts("[CONSOLE] Use /help for commands, /show to list everything, /exit to quit.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    signed_out = False

    while True:
        # Auth/Sync failures supersede the normal view.
        if state.error is not None:
            _print_error_screen(state)
            break

        try:
            user_input = (await _read_line(">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except asyncio.CancelledError:
            logger.info("Console cancelled, exiting.")
            print()
            raise

        if state.error is not None:
            _print_error_screen(state)
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if user_input.lower() == "/signout":
            signed_out = True
            break

        try:
            reply = command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."

        _print_ts(reply)

        # Let fire-and-forget writes start before the next prompt blocks.
        await asyncio.sleep(0)

        notice = state.take_notice()
        if notice:
            _print_ts(f"[NOTICE] {notice}")

    logger.info("Console connector finished.")
    return signed_out
