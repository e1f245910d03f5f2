# src/agent_desk/errors.py

from __future__ import annotations


class AgentDeskError(Exception):
    """Base class for errors raised by the task subsystem."""


class NotFoundError(AgentDeskError):
    """A referenced entity (agent, capability, task) does not exist or is disabled."""


class AgentNotFoundError(NotFoundError):
    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent with ID {agent_id} not found")
        self.agent_id = agent_id


class CapabilityNotFoundError(NotFoundError):
    def __init__(self, capability_id: str) -> None:
        super().__init__(f"Capability {capability_id} not found or not enabled")
        self.capability_id = capability_id


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} not found")
        self.task_id = task_id


class CollaboratorError(AgentDeskError):
    """An external collaborator (completion, search, tool) failed."""


class PersistenceReadError(AgentDeskError):
    """Stored data could not be decoded."""


def friendly_error_message(err: Exception) -> str:
    msg = str(err).strip() or err.__class__.__name__
    if "Tavily API key" in msg:
        return "Web search is not configured. Set AGENT_DESK_TAVILY_API_KEY in .env."
    if "Firecrawl API key" in msg:
        return "Web scraping is not configured. Set AGENT_DESK_FIRECRAWL_API_KEY in .env."
    if "API key is not set" in msg:
        return "LLM is not configured (missing API key). Set AGENT_DESK_OPENROUTER_API_KEY in .env."
    if "model list is empty" in msg:
        return "LLM is not configured (no models). Set AGENT_DESK_LLM_MODELS in .env."
    return msg
