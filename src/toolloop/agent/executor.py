"""Agentic executor: the bounded tool-calling loop.

Alternates between asking the model for a completion and dispatching
the tool calls it requests, until the model answers without tools or
the iteration budget runs out:

    AWAITING_MODEL --no tool calls--> DONE
    AWAITING_MODEL --tool calls--> DISPATCHING_TOOLS --> AWAITING_MODEL
    AWAITING_MODEL --budget exhausted--> FORCED_SYNTHESIS --> DONE

Tool failures are written into the transcript for the model to see and
never end a run. Provider errors that survive retry propagate.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from toolloop.agent.result import ExecutionResult, ToolExecutionMetric
from toolloop.core.errors import ToolArgumentError, ToolError, ToolExecutionError
from toolloop.providers.base import Message

if TYPE_CHECKING:
    from collections.abc import Sequence

    from toolloop.completion.invoker import CompletionInvoker, MessageReducer
    from toolloop.providers.base import ToolCallRequest, ToolChoice
    from toolloop.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10

FORCED_SYNTHESIS_PROMPT = (
    "Please provide your final analysis based on your investigation. "
    "Do not request any more tools."
)


@dataclass(slots=True)
class _RunState:
    """Mutable state owned by a single :meth:`AgenticExecutor.run` call."""

    conversation: list[Message]
    iterations: int = 0
    tool_calls_executed: int = 0
    metrics: list[ToolExecutionMetric] = field(default_factory=list)

    def finish(self, final_message: str, *, forced: bool) -> ExecutionResult:
        self.conversation.append(Message.assistant(final_message))
        return ExecutionResult(
            final_message=final_message,
            iterations=self.iterations,
            tool_calls_executed=self.tool_calls_executed,
            conversation_history=tuple(self.conversation),
            tool_metrics=tuple(self.metrics),
            forced_synthesis=forced,
        )


def _parse_arguments(call: ToolCallRequest) -> dict[str, Any]:
    try:
        args = json.loads(call.arguments)
    except (json.JSONDecodeError, TypeError) as e:
        msg = f"Failed to parse tool arguments: {e}"
        raise ToolArgumentError(call.name, msg) from e
    if not isinstance(args, dict):
        msg = f"Tool arguments must be a JSON object, got {type(args).__name__}"
        raise ToolArgumentError(call.name, msg)
    return args


def _format_result(name: str, result: Any) -> str:
    if isinstance(result, str):
        return result
    try:
        return json.dumps(result, indent=2, default=str)
    except (TypeError, ValueError) as e:
        msg = f"result is not JSON-serializable: {e}"
        raise ToolExecutionError(name, msg) from e


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AgenticExecutor:
    """Runs the agentic loop against a :class:`CompletionInvoker`.

    One executor may serve several concurrent :meth:`run` calls; each
    call keeps its conversation, counters and metrics to itself.

    Args:
        invoker: Completion invoker bound to a provider and model.
        max_iterations: Completion calls allowed before forced synthesis.
        tool_choice: Policy sent with every tool-bearing call.
        reduce_messages: Passed to the invoker to shrink the conversation
            on context-length errors.
        final_prompt: User message appended before forced synthesis.
        debug_prefix: Capture name prefix; per-iteration captures are
            written as ``<prefix>-iter<N>`` and ``<prefix>-final``.
    """

    def __init__(
        self,
        invoker: CompletionInvoker,
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        tool_choice: ToolChoice = "auto",
        reduce_messages: MessageReducer | None = None,
        final_prompt: str = FORCED_SYNTHESIS_PROMPT,
        debug_prefix: str | None = None,
    ) -> None:
        if max_iterations < 1:
            msg = f"max_iterations must be at least 1, got {max_iterations}"
            raise ValueError(msg)
        self._invoker = invoker
        self._max_iterations = max_iterations
        self._tool_choice = tool_choice
        self._reduce_messages = reduce_messages
        self._final_prompt = final_prompt
        self._debug_prefix = debug_prefix

    @property
    def max_iterations(self) -> int:
        return self._max_iterations

    async def run(
        self,
        messages: Sequence[Message],
        registry: ToolRegistry,
    ) -> ExecutionResult:
        """Drive the loop from ``messages`` to a final answer.

        Raises:
            ValueError: If ``messages`` is empty.
            ProviderError: If a completion call fails after retries.
            ToolChoiceError: If the tool-choice policy cannot be honoured.
        """
        if not messages:
            msg = "At least one message is required to start a run"
            raise ValueError(msg)

        state = _RunState(conversation=list(messages))
        tools = registry.to_wire_format()

        logger.debug(
            "Starting agentic loop: max_iterations=%d tools=%d",
            self._max_iterations,
            len(tools),
        )

        while state.iterations < self._max_iterations:
            state.iterations += 1
            logger.debug("Iteration %d/%d", state.iterations, self._max_iterations)

            response = await self._invoker.invoke(
                state.conversation,
                tools=tools or None,
                tool_choice=self._tool_choice,
                reduce_messages=self._reduce_messages,
                capture_name=self._capture_name(f"iter{state.iterations}"),
            )

            if not response.tool_calls:
                logger.debug(
                    "Agent completed without tool calls: iterations=%d tool_calls=%d",
                    state.iterations,
                    state.tool_calls_executed,
                )
                return state.finish(response.content or "", forced=False)

            state.conversation.append(
                Message.assistant(response.content, response.tool_calls)
            )
            logger.debug("Executing %d tool call(s)", len(response.tool_calls))

            # Strictly sequential, in the order the model requested them
            for call in response.tool_calls:
                await self._dispatch(call, registry, state)

        logger.info(
            "Max iterations (%d) reached after %d tool call(s), forcing final answer",
            self._max_iterations,
            state.tool_calls_executed,
        )
        state.conversation.append(Message.user(self._final_prompt))
        response = await self._invoker.invoke(
            state.conversation,
            tools=None,
            capture_name=self._capture_name("final"),
        )
        return state.finish(response.content or "", forced=True)

    async def _dispatch(
        self,
        call: ToolCallRequest,
        registry: ToolRegistry,
        state: _RunState,
    ) -> None:
        """Execute one tool call and append its result or failure."""
        logger.info("Running tool: %s", call.name)
        start = time.monotonic()
        try:
            args = _parse_arguments(call)
            result = await registry.execute(call.name, args)
            content = _format_result(call.name, result)
        except ToolError as exc:
            duration_ms = (time.monotonic() - start) * 1000
            error = str(exc)
            logger.warning("Tool %s failed: %s", call.name, error)
            state.metrics.append(
                ToolExecutionMetric(
                    name=call.name,
                    iteration=state.iterations,
                    success=False,
                    duration_ms=duration_ms,
                    timestamp=_now_iso(),
                    error=error,
                )
            )
            state.conversation.append(
                Message.tool(call.id, f"Tool execution failed: {error}", call.name)
            )
            return

        duration_ms = (time.monotonic() - start) * 1000
        state.conversation.append(Message.tool(call.id, content, call.name))
        state.tool_calls_executed += 1
        state.metrics.append(
            ToolExecutionMetric(
                name=call.name,
                iteration=state.iterations,
                success=True,
                duration_ms=duration_ms,
                timestamp=_now_iso(),
            )
        )
        logger.info("Tool %s completed (%.0fms)", call.name, duration_ms)

    def _capture_name(self, suffix: str) -> str | None:
        if not self._debug_prefix:
            return None
        return f"{self._debug_prefix}-{suffix}"


async def run_agentic(
    messages: Sequence[Message],
    registry: ToolRegistry,
    invoker: CompletionInvoker,
    **kwargs: Any,
) -> ExecutionResult:
    """Create an :class:`AgenticExecutor` and run it once."""
    executor = AgenticExecutor(invoker, **kwargs)
    return await executor.run(messages, registry)
