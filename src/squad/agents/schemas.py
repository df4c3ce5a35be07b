"""Data model for sub-agents and the tasks they run.

Identity and specialty describe who an agent is and what it does; AgentConfig
adds runtime limits. Tasks are mutable records owned by the registry, which is
the only writer of their status fields. Manifests use camelCase keys on disk
(``displayName``, ``systemPrompt``, ``defaultModel``), so the models accept
both spellings.
"""

from __future__ import annotations

import secrets
import string
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_TASK_TIMEOUT_MS = 120_000
DEFAULT_MAX_ITERATIONS = 10

_ID_ALPHABET = string.ascii_lowercase + string.digits


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Identity & Specialty ─────────────────────────────────────────────────────


class AgentVoice(str, Enum):
    PROFESSIONAL = "professional"
    CASUAL = "casual"
    FRIENDLY = "friendly"
    PLAYFUL = "playful"


class AgentIdentity(_CamelModel):
    """How an agent presents itself. Immutable; use ``with_overrides``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str
    emoji: str
    persona: str | None = None
    voice: AgentVoice | None = None

    def with_overrides(self, **overrides: Any) -> AgentIdentity:
        """Return a copy with the non-None overrides applied."""
        updates = {k: v for k, v in overrides.items() if v is not None}
        if "voice" in updates:
            updates["voice"] = AgentVoice(updates["voice"])
        return self.model_copy(update=updates)


class AgentSpecialty(_CamelModel):
    """What an agent is for.

    Attributes:
        id: Unique key of the specialty, also the agent id for built-ins.
        display_name: Human-readable specialty name.
        description: One-line description, used when no persona is set.
        system_prompt: Instructions appended to the generated prompt.
        tools: Tool allow-list. None or empty means every tool.
        required_tools: Tools that must be registered for the agent to work.
    """

    id: str
    display_name: str
    description: str
    system_prompt: str
    tools: list[str] | None = None
    required_tools: list[str] | None = None


class AgentConfig(_CamelModel):
    """Registration-time configuration of one sub-agent."""

    identity: AgentIdentity
    specialty: AgentSpecialty
    model: str | None = None
    enabled: bool = True
    max_concurrent: int | None = None
    task_timeout_ms: int = Field(default=DEFAULT_TASK_TIMEOUT_MS, gt=0)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, gt=0)


# ── Manifest ─────────────────────────────────────────────────────────────────


class ManifestSpecialty(_CamelModel):
    """Specialty section of a manifest; the id comes from the manifest."""

    display_name: str
    description: str
    system_prompt: str
    tools: list[str] | None = None
    required_tools: list[str] | None = None


class AgentManifest(_CamelModel):
    """Portable definition of a custom agent, stored as JSON."""

    id: str = Field(
        ..., min_length=1, pattern=r"^[a-z0-9_-]+$", description="Also the directory name"
    )
    version: str = "1.0.0"
    identity: AgentIdentity
    specialty: ManifestSpecialty
    default_model: str | None = None
    author: str | None = None
    description: str | None = None

    def to_config(self) -> AgentConfig:
        return AgentConfig(
            identity=self.identity,
            specialty=AgentSpecialty(id=self.id, **self.specialty.model_dump()),
            model=self.default_model,
        )


# ── Tasks ────────────────────────────────────────────────────────────────────


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (TaskStatus.COMPLETED, TaskStatus.FAILED)


def generate_task_id() -> str:
    """``task_<epoch millis>_<6 random base36 chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(6))
    return f"task_{int(time.time() * 1000)}_{suffix}"


class Task(BaseModel):
    """One unit of work delegated to a sub-agent."""

    id: str = Field(default_factory=generate_task_id)
    agent_id: str
    prompt: str
    context: dict[str, Any] | None = None
    status: TaskStatus = TaskStatus.PENDING
    result: str | None = None
    error: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: datetime | None = None
    completed_at: datetime | None = None
    notify_on_complete: bool = False
    notify_target: str | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.started_at is None or self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()


@dataclass
class AgentRuntimeState:
    """Registry-side state of one agent.

    ``completed_tasks`` is a ring buffer; the oldest entries fall off once
    ``retention`` is reached.
    """

    config: AgentConfig
    retention: int = 50
    active_tasks: list[Task] = field(default_factory=list)
    completed_tasks: deque[Task] = field(init=False)
    is_running: bool = field(init=False)

    def __post_init__(self) -> None:
        self.completed_tasks = deque(maxlen=self.retention)
        self.is_running = self.config.enabled
