# src/agent_desk/connectors/console_connector.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import friendly_error_message
from ..tasks.task_models import Task, TaskStatus
from ..tasks.task_monitor import run_task_monitor

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def _report_transition(task: Task, before: TaskStatus | None) -> None:
    if task.status == TaskStatus.COMPLETED:
        _print_ts(f"[TASK] {task.id} completed. Use /show {task.id} to read it, /rate {task.id} <0.5..5> to rate it.")
    elif task.status == TaskStatus.ERROR:
        _print_ts(f"[TASK] {task.id} failed: {friendly_error_message(RuntimeError(task.error or ''))}")
    elif before is not None:
        logger.debug("Task %s %s -> %s", task.id, before.value, task.status.value)


async def run_console_loop(state: AppState) -> None:
    """
    Interactive REPL. Commands only; background task results are reported by the monitor.
    """
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")

    interval = float(getattr(state.settings, "monitor_interval_seconds", 5.0))
    monitor = asyncio.create_task(
        run_task_monitor(state.task_store, _report_transition, interval_seconds=interval),
        name="task-monitor",
    )

    try:
        while True:
            try:
                user_input = (await asyncio.to_thread(input, ">>> ")).strip()
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

            if not user_input.startswith("/"):
                _print_ts("Only slash commands are supported here. Use /task <agent> <prompt...> to delegate work.")
                continue

            try:
                reply = await command_registry.handle(state, user_input, emit=_print_ts)
            except Exception:
                logger.exception("Command handler crashed.")
                reply = "Internal error while handling a command."

            if reply is not None:
                _print_ts(reply)
    finally:
        monitor.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await monitor

    pending = state.orchestrator.in_flight()
    if pending:
        _print_ts(f"[TASK] Waiting for {len(pending)} background task(s) to finish...")
        await state.orchestrator.wait_all()

    logger.info("Console connector finished.")
