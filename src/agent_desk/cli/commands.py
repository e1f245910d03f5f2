# src/agent_desk/cli/commands.py

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import cast

from ..agents.models import Agent
from ..capabilities.catalog import all_available_capabilities
from ..core.state import AppState
from ..errors import NotFoundError, friendly_error_message
from ..learning.analytics import format_stats
from ..learning.calendar import build_daily_summaries, format_summary, month_summaries
from ..tasks.task_api import format_task_line, rate_task
from ..tasks.task_models import TaskType
from ..tools.simulated import ToolServer

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], Awaitable[str]]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /task, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                return await cast(CommandHandler3, handler)(state, args, emit)
            return await cast(CommandHandler2, handler)(state, args)
        except (NotFoundError, ValueError) as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    models = ", ".join(list(getattr(settings, "llm_models", []) or []))
    in_flight = state.orchestrator.in_flight()
    active = await state.orchestrator.active_agents()
    return (
        "Status:\n"
        f"  LLM client: {state.completion.__class__.__name__}\n"
        f"  Models (priority -> fallback): {models}\n"
        f"  Task store layout: {getattr(settings, 'task_store_layout', 'collection')}\n"
        f"  Active agents: {len(active)}\n"
        f"  Tasks in flight: {len(in_flight)}"
    )


async def cmd_agents(state: AppState, args: list[str]) -> str:
    agents = await state.agents.list()
    if not agents:
        return "No agents. Use /agent-add <id> <name> [prompt...]."
    lines = ["Agents:"]
    for a in agents:
        caps = ", ".join(c.id for c in a.capabilities if c.enabled) or "-"
        active = "active" if a.is_active else "inactive"
        spec = f" specialization={a.specialization}" if a.specialization else ""
        lines.append(f"  {a.id} ({a.name}, {active}) model={a.model or 'default'}{spec} capabilities: {caps}")
    return "\n".join(lines)


async def cmd_agent_add(state: AppState, args: list[str]) -> str:
    """
    /agent-add <id> <name> [prompt...]
    """
    if len(args) < 2:
        return "Usage: /agent-add <id> <name> [prompt...]"
    agent_id, name = args[0], args[1]
    prompt = " ".join(args[2:]) or f"You are {name}, a helpful assistant."
    existing = await state.agents.get(agent_id)
    if existing is not None:
        existing.name = name
        existing.prompt = prompt
        await state.agents.save(existing)
        return f"Agent {agent_id} updated."
    await state.agents.save(Agent(id=agent_id, name=name, prompt=prompt))
    return f"Agent {agent_id} created."


async def cmd_agent_cap(state: AppState, args: list[str]) -> str:
    """
    /agent-cap <agent_id> <capability_id> on|off
    """
    if len(args) != 3 or args[2].lower() not in ("on", "off"):
        return "Usage: /agent-cap <agent_id> <capability_id> on|off"
    agent_id, cap_id, flag = args[0], args[1], args[2].lower() == "on"

    agent = await state.agents.get(agent_id)
    if agent is None:
        return f"Agent with ID {agent_id} not found"

    for cap in agent.capabilities:
        if cap.id == cap_id:
            cap.enabled = flag
            break
    else:
        known = {c.id: c for c in await all_available_capabilities(state.tools)}
        if cap_id not in known:
            return f"Unknown capability: {cap_id}. Use /capabilities to list them."
        cap = known[cap_id]
        cap.enabled = flag
        agent.capabilities.append(cap)

    await state.agents.save(agent)
    return f"Capability {cap_id} {'enabled' if flag else 'disabled'} for agent {agent_id}."


async def cmd_capabilities(state: AppState, args: list[str]) -> str:
    caps = await all_available_capabilities(state.tools)
    lines = ["Capabilities:"]
    lines.extend(f"  {c.id} - {c.description}" for c in caps)
    return "\n".join(lines)


async def cmd_task(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /task <agent_id> <prompt...>
    """
    if len(args) < 2:
        return "Usage: /task <agent_id> <prompt...>"
    if emit is not None:
        emit(f"[TASK] Handing the prompt to agent {args[0]}...")
    task_id = await state.orchestrator.initiate(args[0], " ".join(args[1:]))
    return f"Task {task_id} started in the background."


async def cmd_cap(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /cap <agent_id> <capability_id> <input...>
    """
    if len(args) < 3:
        return "Usage: /cap <agent_id> <capability_id> <input...>"
    agent_id, cap_id = args[0], args[1]
    if emit is not None:
        emit(f"[TASK] Handing the input to {cap_id} on agent {agent_id}...")
    task_id = await state.orchestrator.initiate(
        agent_id,
        "",
        TaskType.CAPABILITY,
        capability=cap_id,
        capability_input=" ".join(args[2:]),
    )
    return f"Task {task_id} started with capability {cap_id}."


async def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = await state.orchestrator.list_tasks(args[0] if args else None)
    if not tasks:
        return "No tasks."
    tasks.sort(key=lambda t: t.timestamp, reverse=True)
    return "Tasks:\n" + "\n".join(f"  {format_task_line(t)}" for t in tasks[:30])


async def cmd_show(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /show <task_id>"
    task = await state.orchestrator.get_task(args[0])
    if task is None:
        return f"Task {args[0]} not found"
    lines = [format_task_line(task)]
    if task.result is not None:
        lines += ["Result:", task.result]
    if task.error is not None:
        lines += ["Error:", friendly_error_message(RuntimeError(task.error))]
    return "\n".join(lines)


async def cmd_rate(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /rate <task_id> <0.5..5>"
    try:
        value = float(args[1])
    except ValueError:
        return "Rating must be a number between 0.5 and 5."
    task = await rate_task(state.task_store, args[0], value)
    return f"Task {task.id} rated {value:g}."


async def cmd_stats(state: AppState, args: list[str]) -> str:
    return format_stats(await state.analytics.load_stats())


async def cmd_learning(state: AppState, args: list[str]) -> str:
    return await state.analytics.load_summary() or "No ratings yet."


async def cmd_calendar(state: AppState, args: list[str]) -> str:
    """
    /calendar <agent_id> [YYYY-MM]
    """
    usage = "Usage: /calendar <agent_id> [YYYY-MM]"
    if len(args) not in (1, 2):
        return usage
    month: tuple[int, int] | None = None
    if len(args) == 2:
        try:
            year_s, month_s = args[1].split("-")
            month = (int(year_s), int(month_s))
        except ValueError:
            return usage
        if not 1 <= month[1] <= 12:
            return usage

    agent = await state.agents.get(args[0])
    if agent is None:
        return f"Agent with ID {args[0]} not found"
    summaries = build_daily_summaries(agent, await state.task_store.list())
    selected = list(summaries.values()) if month is None else month_summaries(summaries, *month)
    if not selected:
        return f"No tasks for {agent.name}." if month is None else f"No tasks for {agent.name} in {args[1]}."
    return "\n".join(format_summary(s) for s in selected)


async def cmd_servers(state: AppState, args: list[str]) -> str:
    servers = await state.tools.list_servers()
    if not servers:
        return "No tool servers. Use /server-add <id> <name> <command>."
    return "Tool servers:\n" + "\n".join(f"  {s.id} ({s.name}) {s.status} :: {s.command}" for s in servers)


async def cmd_server_add(state: AppState, args: list[str]) -> str:
    if len(args) < 3:
        return "Usage: /server-add <id> <name> <command...>"
    server = ToolServer(id=args[0], name=args[1], command=" ".join(args[2:]), status="running")
    await state.tools.save_server(server)
    return f"Tool server {server.id} registered (running)."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current settings and in-flight tasks.")
registry.register("agents", cmd_agents, help_text="List agents.")
registry.register("agent-add", cmd_agent_add, help_text="Create/update an agent: /agent-add <id> <name> [prompt...].")
registry.register("agent-cap", cmd_agent_cap, help_text="Toggle a capability: /agent-cap <agent> <capability> on|off.")
registry.register("capabilities", cmd_capabilities, help_text="List built-in and tool capabilities.", aliases=["caps"])
registry.register("task", cmd_task, help_text="Run a background task: /task <agent> <prompt...>.")
registry.register("cap", cmd_cap, help_text="Run a capability task: /cap <agent> <capability> <input...>.")
registry.register("tasks", cmd_tasks, help_text="List tasks: /tasks [agent].")
registry.register("show", cmd_show, help_text="Show a task result: /show <task_id>.")
registry.register("rate", cmd_rate, help_text="Rate a completed task: /rate <task_id> <0.5..5>.")
registry.register("stats", cmd_stats, help_text="Rating statistics.")
registry.register("learning", cmd_learning, help_text="Learning context built from ratings.")
registry.register("calendar", cmd_calendar, help_text="Daily summaries for an agent: /calendar <agent> [YYYY-MM].")
registry.register("servers", cmd_servers, help_text="List tool servers.")
registry.register("server-add", cmd_server_add, help_text="Register a tool server: /server-add <id> <name> <command...>.")

