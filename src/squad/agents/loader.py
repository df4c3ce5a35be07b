"""Load sub-agents from the built-in specialists and custom manifests.

Custom agents live in a directory as either ``<id>.json`` files or
``<id>/manifest.json`` subdirectories. A manifest that fails validation is
logged and skipped; it never stops the remaining agents from loading.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, Field, ValidationError

from src.squad.agents.registry import SubAgentRegistry
from src.squad.agents.schemas import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TASK_TIMEOUT_MS,
    AgentManifest,
    AgentVoice,
)
from src.squad.agents.specialists import BUILTIN_SPECIALISTS

logger = structlog.get_logger(__name__)

MANIFEST_FILENAME = "manifest.json"


class AgentOverride(BaseModel):
    """Per-agent settings layered over a manifest."""

    enabled: bool | None = None
    name: str | None = None
    emoji: str | None = None
    persona: str | None = None
    voice: AgentVoice | None = None
    model: str | None = None


class AgentsConfig(BaseModel):
    """Which agents to load and how to adjust them.

    Attributes:
        enabled: False skips loading entirely.
        builtins: "all", "none", or the ids of built-ins to load.
        custom_dir: Directory scanned for custom manifests.
        agents: Overrides keyed by agent id.
        task_timeout_ms: Wall-clock ceiling applied to every loaded agent.
        max_iterations: Tool-loop budget applied to every loaded agent.
    """

    enabled: bool = True
    builtins: Literal["all", "none"] | list[str] = "all"
    custom_dir: str | None = None
    agents: dict[str, AgentOverride] = Field(default_factory=dict)
    task_timeout_ms: int = Field(default=DEFAULT_TASK_TIMEOUT_MS, gt=0)
    max_iterations: int = Field(default=DEFAULT_MAX_ITERATIONS, gt=0)


def _register(
    registry: SubAgentRegistry,
    manifest: AgentManifest,
    override: AgentOverride | None,
    config: AgentsConfig,
) -> bool:
    if override is not None and override.enabled is False:
        return False

    if override is not None:
        identity = manifest.identity.with_overrides(
            name=override.name,
            emoji=override.emoji,
            persona=override.persona,
            voice=override.voice,
        )
        manifest = manifest.model_copy(update={"identity": identity})

    updates: dict[str, object] = {
        "enabled": True,
        "task_timeout_ms": config.task_timeout_ms,
        "max_iterations": config.max_iterations,
    }
    if override is not None and override.model:
        updates["model"] = override.model
    registry.register_from_manifest(manifest, updates)
    return True


def load_manifest(path: Path) -> AgentManifest | None:
    """Parse one manifest file. Returns None when it is unreadable or invalid."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return AgentManifest.model_validate(raw)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("agent_manifest_unreadable", path=str(path), error=str(exc))
    except ValidationError as exc:
        logger.warning("agent_manifest_invalid", path=str(path), errors=exc.error_count())
    return None


def load_custom_agents(
    registry: SubAgentRegistry,
    directory: Path,
    config: AgentsConfig | None = None,
) -> list[str]:
    """Register every valid manifest under ``directory``. Returns loaded ids."""
    if not directory.is_dir():
        return []

    config = config or AgentsConfig()
    loaded: list[str] = []
    for entry in sorted(directory.iterdir()):
        if entry.is_file() and entry.suffix == ".json":
            path = entry
        elif entry.is_dir() and (entry / MANIFEST_FILENAME).is_file():
            path = entry / MANIFEST_FILENAME
        else:
            continue

        manifest = load_manifest(path)
        if manifest is None:
            continue
        if _register(registry, manifest, config.agents.get(manifest.id), config):
            loaded.append(manifest.id)
            logger.info("custom_agent_loaded", agent_id=manifest.id, path=str(path))
    return loaded


def initialize_agents(
    registry: SubAgentRegistry,
    config: AgentsConfig | None = None,
    agents_dir: str | Path | None = None,
) -> list[str]:
    """Load built-in specialists and custom agents into ``registry``.

    Args:
        registry: Target registry.
        config: Load settings; defaults load every built-in.
        agents_dir: Fallback custom directory when the config names none.
            Created if missing.

    Returns:
        Ids of every agent registered by this call.
    """
    config = config or AgentsConfig()
    if not config.enabled:
        logger.info("subagents_disabled")
        return []

    loaded: list[str] = []
    if config.builtins != "none":
        for manifest in BUILTIN_SPECIALISTS:
            if isinstance(config.builtins, list) and manifest.id not in config.builtins:
                continue
            if _register(registry, manifest, config.agents.get(manifest.id), config):
                loaded.append(manifest.id)
        logger.info("builtin_agents_loaded", count=len(loaded))

    custom_dir = config.custom_dir or agents_dir
    if custom_dir is not None:
        directory = Path(custom_dir).expanduser()
        if config.custom_dir is None:
            directory.mkdir(parents=True, exist_ok=True)
        loaded.extend(load_custom_agents(registry, directory, config))

    return loaded


def create_custom_agent(
    registry: SubAgentRegistry,
    manifest: AgentManifest,
    agents_dir: str | Path,
) -> Path:
    """Persist a manifest as ``<agents_dir>/<id>/manifest.json`` and register it."""
    agent_dir = Path(agents_dir).expanduser() / manifest.id
    agent_dir.mkdir(parents=True, exist_ok=True)

    path = agent_dir / MANIFEST_FILENAME
    payload = manifest.model_dump(mode="json", by_alias=True, exclude_none=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")

    registry.register_from_manifest(manifest, {"enabled": True})
    logger.info("custom_agent_created", agent_id=manifest.id, path=str(path))
    return path
