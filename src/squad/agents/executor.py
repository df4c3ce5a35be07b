"""Task execution engine: drives one task through the tool-calling loop.

The executor is stateless with respect to tasks. It reads the agent config,
talks to the active provider and the tool bridge, and returns the final text
or raises. The registry owns status transitions, bookkeeping, and events.

Loop shape per iteration:
    complete(history) -> no tool calls: done
                      -> tool calls: record the assistant turn, invoke each
                         call in the order the backend listed them, append
                         one tool turn per call, and go around again.
"""

from __future__ import annotations

import structlog

from src.squad.agents.errors import MaxIterationsExceededError, ProviderMissingError
from src.squad.agents.prompts import build_agent_prompt
from src.squad.agents.schemas import AgentConfig, Task
from src.squad.providers.registry import ProviderRegistry
from src.squad.providers.schemas import CompletionRequest, Message
from src.squad.tools.bridge import ToolBridge
from src.squad.tools.schemas import ExecutionContext

logger = structlog.get_logger(__name__)


class TaskExecutor:
    """Run sub-agent tasks against the active provider.

    Args:
        providers: Registry whose active provider serves every call.
        tools: Bridge used to list definitions and invoke tools.
        default_model: Model used when the agent has no override. When empty
            the provider's own configured model applies.
    """

    def __init__(
        self,
        providers: ProviderRegistry,
        tools: ToolBridge,
        default_model: str | None = None,
    ) -> None:
        self._providers = providers
        self._tools = tools
        self._default_model = default_model or None

    async def run(self, task: Task, config: AgentConfig) -> str:
        """Execute ``task`` and return the agent's final text response.

        Raises:
            ProviderMissingError: No active provider, or it is not ready.
            ProviderApiError: The backend rejected a request.
            MaxIterationsExceededError: The iteration budget ran out while
                the backend was still calling tools.
        """
        provider = self._providers.get_active()
        if provider is None or not provider.is_ready():
            raise ProviderMissingError()

        system_prompt = build_agent_prompt(config.identity, config.specialty, task.context)
        definitions = self._tools.list_definitions(config.specialty.tools)
        model = config.model or self._default_model
        context = ExecutionContext(agent=task.agent_id, task_id=task.id)
        log = logger.bind(task_id=task.id, agent_id=task.agent_id, provider=provider.name)

        history: list[Message] = [Message(role="user", content=task.prompt)]

        for iteration in range(1, config.max_iterations + 1):
            response = await provider.complete(
                CompletionRequest(
                    messages=list(history),
                    model=model,
                    system_prompt=system_prompt,
                    tools=definitions or None,
                )
            )

            if not response.tool_calls:
                log.debug("task_final_response", iteration=iteration, model=response.model)
                return response.content

            history.append(
                Message(
                    role="assistant",
                    content=response.content or "",
                    tool_calls=response.tool_calls,
                )
            )
            for call in response.tool_calls:
                output = await self._tools.invoke(call.name, call.arguments, context)
                history.append(Message(role="tool", content=output, tool_call_id=call.id))

            log.debug(
                "task_tool_round",
                iteration=iteration,
                tools=[call.name for call in response.tool_calls],
            )

        raise MaxIterationsExceededError(config.max_iterations)
