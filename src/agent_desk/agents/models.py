# src/agent_desk/agents/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True)
class AgentCapability:
    id: str
    name: str
    description: str
    enabled: bool = False
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "enabled": self.enabled,
            "config": dict(self.config),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AgentCapability:
        config = data.get("config") or {}
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            description=str(data.get("description") or ""),
            enabled=bool(data.get("enabled", False)),
            config=dict(config) if isinstance(config, dict) else {},
        )


@dataclass(slots=True)
class Agent:
    """
    A named configuration: system prompt, credential/model and capability set.

    Task execution only reads agents; it never mutates them.
    """

    id: str
    name: str
    prompt: str
    model: str = ""
    api_key: str | None = None
    is_active: bool = True
    capabilities: list[AgentCapability] = field(default_factory=list)
    specialization: str | None = None

    def enabled_capability(self, capability_id: str) -> AgentCapability | None:
        for cap in self.capabilities:
            if cap.id == capability_id and cap.enabled:
                return cap
        return None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "prompt": self.prompt,
            "model": self.model,
            "apiKey": self.api_key or "",
            "isActive": self.is_active,
            "capabilities": [c.to_dict() for c in self.capabilities],
        }
        if self.specialization:
            data["specialization"] = self.specialization
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Agent:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or data["id"]),
            prompt=str(data.get("prompt") or ""),
            model=str(data.get("model") or ""),
            api_key=(data.get("apiKey") or None),
            is_active=bool(data.get("isActive", True)),
            capabilities=[AgentCapability.from_dict(c) for c in (data.get("capabilities") or [])],
            specialization=data.get("specialization"),
        )
