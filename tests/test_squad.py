"""Integration tests for create_squad() and provider start-up from settings."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.squad.agents.loader import AgentsConfig
from src.squad.agents.schemas import TaskStatus
from src.squad.config import Settings
from src.squad.main import create_squad, init_providers, provider_config_for
from src.squad.providers.base import ProviderInitError
from src.squad.providers.registry import ProviderRegistry
from src.squad.tools.schemas import ToolCategory


def _settings(tmp_path: Path, **values) -> Settings:
    defaults = {
        "ANTHROPIC_API_KEY": "",
        "OPENAI_API_KEY": "",
        "GROQ_API_KEY": "",
        "GOOGLE_API_KEY": "",
        "GEMINI_API_KEY": "",
        "OPENROUTER_API_KEY": "",
        "OLLAMA_HOST": "",
        "DEFAULT_PROVIDER": "",
        "DEFAULT_MODEL": "",
        "AGENTS_DIR": str(tmp_path / "agents"),
    }
    defaults.update(values)
    return Settings(_env_file=None, **defaults)


# ── Provider start-up ────────────────────────────────────────────────────────


def test_settings_credentials_skip_empty(tmp_path: Path):
    settings = _settings(tmp_path, OPENAI_API_KEY="sk-1", GEMINI_API_KEY="g-1")
    assert settings.provider_credentials() == {"openai": "sk-1", "gemini": "g-1"}


def test_provider_config_for_ollama_uses_host(tmp_path: Path):
    settings = _settings(tmp_path, LLM_TIMEOUT=30)
    config = provider_config_for("ollama", "http://gpu-box:11434", settings)
    assert config.base_url == "http://gpu-box:11434"
    assert config.api_key is None
    assert config.timeout == 30


async def test_init_providers_tolerates_failures(tmp_path: Path, make_provider):
    def broken():
        return make_provider(
            init_error=ProviderInitError("Broken: No API key or auth token provided.")
        )

    registry = ProviderRegistry(factories={"openai": broken, "anthropic": make_provider})
    settings = _settings(tmp_path, OPENAI_API_KEY="sk-1", ANTHROPIC_API_KEY="sk-2")

    ready = await init_providers(registry, settings)

    assert ready == ["anthropic"]
    assert registry.active_name == "anthropic"


async def test_init_providers_honours_default(tmp_path: Path, make_provider):
    registry = ProviderRegistry(factories={"openai": make_provider, "anthropic": make_provider})
    settings = _settings(
        tmp_path, OPENAI_API_KEY="sk-1", ANTHROPIC_API_KEY="sk-2", DEFAULT_PROVIDER="openai"
    )

    await init_providers(registry, settings)

    assert registry.active_name == "openai"


async def test_init_providers_unavailable_default_keeps_first(tmp_path: Path, make_provider):
    registry = ProviderRegistry(factories={"anthropic": make_provider})
    settings = _settings(tmp_path, ANTHROPIC_API_KEY="sk-2", DEFAULT_PROVIDER="groq")

    assert await init_providers(registry, settings) == ["anthropic"]
    assert registry.active_name == "anthropic"


# ── create_squad ─────────────────────────────────────────────────────────────


@pytest.fixture
def scripted(make_provider):
    return make_provider()


@pytest.fixture
def scripted_providers(scripted) -> ProviderRegistry:
    registry = ProviderRegistry(factories={})
    registry.add_provider("scripted", scripted)
    return registry


async def test_create_squad_wires_everything(tmp_path: Path, scripted_providers):
    settings = _settings(tmp_path, AGENT_MAX_ITERATIONS=5, COMPLETED_TASK_RETENTION=7)

    squad = await create_squad(settings, providers=scripted_providers, configure_logging=False)

    assert len(squad.agents) == 7
    assert squad.agents.get("twitter").config.max_iterations == 5
    assert squad.agents.get("twitter").completed_tasks.maxlen == 7
    agent_tools = [t.name for t in squad.tools.list(category=ToolCategory.AGENTS)]
    assert "delegate_task" in agent_tools
    assert (tmp_path / "agents").is_dir()


async def test_create_squad_loads_custom_agents(tmp_path: Path, scripted_providers):
    settings = _settings(tmp_path)
    squad = await create_squad(
        settings,
        AgentsConfig(builtins="none"),
        providers=scripted_providers,
        configure_logging=False,
    )
    create = squad.tools.get("create_agent").tool

    await create.execute({
        "id": "copywriter",
        "name": "Sass",
        "emoji": "✍️",
        "specialty_name": "Copywriter",
        "specialty_description": "Landing page copy",
        "system_prompt": "You write landing page copy.",
    })

    reloaded = await create_squad(
        settings,
        AgentsConfig(builtins="none"),
        providers=scripted_providers,
        configure_logging=False,
    )
    assert reloaded.agents.list_ids() == ["copywriter"]


async def test_main_assistant_delegates_through_tool_bridge(
    tmp_path: Path, scripted_providers, scripted, text_response
):
    """The assistant's delegate_task call runs the sub-agent and returns its answer."""
    squad = await create_squad(
        _settings(tmp_path),
        AgentsConfig(builtins=["twitter"]),
        providers=scripted_providers,
        configure_logging=False,
    )
    scripted.steps = [text_response("Ship it 🚀")]

    text = await squad.bridge.invoke("delegate_task", {"agent_id": "twitter", "task": "Tweet"})

    assert json.loads(text) == {
        "task_id": squad.agents.get("twitter").completed_tasks[0].id,
        "agent_name": "Tweety",
        "result": "Ship it 🚀",
    }
    await squad.shutdown()


async def test_sub_agent_cannot_see_unlisted_agent_tools(
    tmp_path: Path, scripted_providers, scripted, text_response, tool_response
):
    squad = await create_squad(
        _settings(tmp_path),
        AgentsConfig(builtins=["twitter"]),
        providers=scripted_providers,
        configure_logging=False,
    )
    scripted.steps = [
        tool_response(("c1", "post_tweet", {"text": "hi"})),
        text_response("posting is not wired up here"),
    ]

    task = await squad.agents.spawn("twitter", "Post hi")
    await squad.agents.wait_for_task(task.id)

    assert task.status == TaskStatus.COMPLETED
    assert scripted.requests[0].tools is None
    assert scripted.requests[1].messages[-1].content == "Tool not found: post_tweet"
    await squad.shutdown()
