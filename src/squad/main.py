"""Composition root: wire providers, tools, cost tracking, and sub-agents.

create_squad() builds every collaborator explicitly and hands back a Squad
container. Provider initialization is failure-tolerant: a backend that cannot
start is logged and skipped so the remaining ones still come up.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from src.squad.agents.loader import AgentsConfig, initialize_agents
from src.squad.agents.registry import SubAgentRegistry
from src.squad.agents.tools import build_agent_tools
from src.squad.config import Settings, get_settings
from src.squad.core.logging import configure_structlog
from src.squad.events.bus import TaskEventBus
from src.squad.observability.cost import CostTracker
from src.squad.providers.base import ProviderError
from src.squad.providers.registry import ProviderRegistry
from src.squad.providers.schemas import ProviderConfig
from src.squad.tools.bridge import ToolBridge
from src.squad.tools.registry import ToolRegistry
from src.squad.tools.schemas import ToolCategory

logger = structlog.get_logger(__name__)


@dataclass
class Squad:
    """Everything a host application needs to run sub-agents."""

    settings: Settings
    events: TaskEventBus
    providers: ProviderRegistry
    costs: CostTracker
    tools: ToolRegistry
    bridge: ToolBridge
    agents: SubAgentRegistry

    async def shutdown(self) -> None:
        """Let in-flight tasks finish."""
        await self.agents.drain()
        logger.info("squad_shutdown")


def provider_config_for(name: str, credential: str, settings: Settings) -> ProviderConfig:
    """ProviderConfig for one backend from its configured credential or host."""
    if name == "ollama":
        return ProviderConfig(
            base_url=credential,
            timeout=settings.LLM_TIMEOUT,
            max_retries=settings.LLM_MAX_RETRIES,
        )
    return ProviderConfig(
        api_key=credential,
        timeout=settings.LLM_TIMEOUT,
        max_retries=settings.LLM_MAX_RETRIES,
    )


async def init_providers(registry: ProviderRegistry, settings: Settings) -> list[str]:
    """Initialize every provider that has a credential. Returns the ready names."""
    ready: list[str] = []
    for name, credential in settings.provider_credentials().items():
        if not registry.has_provider_type(name):
            continue
        try:
            await registry.init_provider(name, provider_config_for(name, credential, settings))
        except ProviderError:
            logger.warning("provider_init_failed", provider=name, exc_info=True)
            continue
        ready.append(name)

    if settings.DEFAULT_PROVIDER:
        if settings.DEFAULT_PROVIDER in ready:
            registry.set_active(settings.DEFAULT_PROVIDER)
        else:
            logger.warning(
                "default_provider_unavailable",
                provider=settings.DEFAULT_PROVIDER,
                ready=ready,
            )

    if not ready:
        logger.warning("no_providers_configured")
    return ready


async def create_squad(
    settings: Settings | None = None,
    agents_config: AgentsConfig | None = None,
    *,
    providers: ProviderRegistry | None = None,
    configure_logging: bool = True,
) -> Squad:
    """Build a fully wired Squad.

    Args:
        settings: Application settings; defaults to the cached environment settings.
        agents_config: Which built-in and custom agents to load.
        providers: Pre-built provider registry. When given, no providers are
            initialized from the settings.
        configure_logging: Whether to configure structlog.
    """
    settings = settings or get_settings()
    if configure_logging:
        configure_structlog(settings)

    if providers is None:
        providers = ProviderRegistry()
        await init_providers(providers, settings)

    events = TaskEventBus()
    costs = CostTracker()
    tools = ToolRegistry(budget_gate=costs)
    bridge = ToolBridge(tools)
    agents = SubAgentRegistry(
        providers,
        bridge,
        events,
        default_model=settings.DEFAULT_MODEL or None,
        retention=settings.COMPLETED_TASK_RETENTION,
        default_wait_timeout_ms=settings.WAIT_FOR_TASK_TIMEOUT_MS,
    )

    tools.register_all(
        build_agent_tools(
            agents,
            settings.AGENTS_DIR,
            delegate_wait_timeout_ms=settings.DELEGATE_WAIT_TIMEOUT_MS,
        ),
        category=ToolCategory.AGENTS,
    )
    agents_config = agents_config or AgentsConfig(
        task_timeout_ms=settings.AGENT_TASK_TIMEOUT_MS,
        max_iterations=settings.AGENT_MAX_ITERATIONS,
    )
    loaded = initialize_agents(agents, agents_config, agents_dir=settings.AGENTS_DIR)

    logger.info(
        "squad_ready",
        providers=providers.list_providers(),
        active_provider=providers.active_name,
        agents=len(loaded),
        tools=tools.count,
    )
    return Squad(
        settings=settings,
        events=events,
        providers=providers,
        costs=costs,
        tools=tools,
        bridge=bridge,
        agents=agents,
    )
