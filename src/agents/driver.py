"""
Conversation driver: the turn-taking loop between a model session and a tool registry.

States per turn::

    AWAITING_RESPONSE --calls--> EXECUTING --results--> SENDING --> AWAITING_RESPONSE
    AWAITING_RESPONSE --text | completion tool | fatal error--> TERMINATED

Tool failures are recoverable: they are folded into the outcome batch and
handed back to the model. Gateway transport failures and the master timeout
are fatal and end the run. The loop is an explicit ``while not terminal``
over a ConversationState owned by this run; nothing recurses per turn.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from src.abstractions.dto.gateway import ConversationHandle, GatewayResponse
from src.abstractions.dto.tools import (
    ToolInvocationOutcome,
    ToolInvocationRequest,
    serialize_outcomes,
)
from src.abstractions.errors import (
    ExecutionTimeoutError,
    FatalToolError,
    GatewayTransportError,
    MasterTimeoutError,
    UnknownToolError,
)
from src.agents.config import DriverConfig
from src.agents.guard import ExecutionGuard
from src.agents.throttle import TurnThrottle
from src.agents.watchdog import MasterWatchdog
from src.domain.entities.conversation_state import (
    ConversationResult,
    ConversationState,
    TerminationReason,
)
from src.infrastructure.tools.tool_base import object_schema
from src.interfaces.services.llm import ICapabilityGateway, Message
from src.interfaces.services.tools import IToolRegistry

logger = logging.getLogger(__name__)

EXPLICIT_MODE_REMINDER = (
    "No tool was called. Continue the task, and call `{tool}` with a `{field}` "
    "when you are finished."
)


class ConversationDriver:
    """
    Runs one conversation at a time against injected collaborators.

    Example:
        driver = ConversationDriver(gateway, registry, DriverConfig(turn_delay_ms=0))
        result = await driver.run("Check available margin.")
        result.reason, result.output
    """

    def __init__(
        self,
        gateway: ICapabilityGateway,
        registry: IToolRegistry,
        config: Optional[DriverConfig] = None,
        throttle: Optional[TurnThrottle] = None,
        guard: Optional[ExecutionGuard] = None,
        system_prompt: str = "",
    ) -> None:
        self.gateway = gateway
        self.registry = registry
        self.config = config or DriverConfig()
        self.throttle = throttle or TurnThrottle(self.config.turn_delay_ms, self.config.per_call_delay_ms)
        self.guard = guard or ExecutionGuard(self.config.per_call_timeout_ms)
        self.system_prompt = system_prompt

    # ------------------------------------------------------------------ public

    def tool_declarations(self) -> List[Dict[str, Any]]:
        """Registry declarations plus the completion tool in explicit-tool mode."""
        declarations = list(self.registry.list_tools())
        cfg = self.config
        if cfg.exit_mode == "explicit-tool" and cfg.completion_tool not in self.registry:
            declarations.append({
                "name": cfg.completion_tool,
                "description": "Call when the task is complete, with a final summary of what was done.",
                "parameters": object_schema(
                    {cfg.summary_field: {"type": "string", "description": "Final summary for the user"}},
                    [cfg.summary_field],
                ),
            })
        return declarations

    async def run(self, prompt: str, state: Optional[ConversationState] = None) -> ConversationResult:
        """
        Drive the conversation to a terminal state under the master watchdog.

        Never raises for recoverable tool failures, gateway failures or the
        master timeout; those are reported on the returned result.
        """
        state = state if state is not None else ConversationState()
        watchdog = MasterWatchdog(self.config.master_timeout_ms)

        def _expire() -> None:
            state.terminate(TerminationReason.MASTER_TIMEOUT_EXCEEDED)

        try:
            return await watchdog.watch(self._drive(prompt, state), on_expire=_expire)
        except MasterTimeoutError as exc:
            logger.error("--- CONVERSATION HALTED --- %s", exc)
            return ConversationResult(
                reason=TerminationReason.MASTER_TIMEOUT_EXCEEDED, state=state, error=exc
            )

    # ---------------------------------------------------------------- the loop

    async def _drive(self, prompt: str, state: ConversationState) -> ConversationResult:
        cfg = self.config
        try:
            handle = await self.gateway.start(self.system_prompt, self.tool_declarations())
        except GatewayTransportError as exc:
            return self._fatal(state, exc)

        message: Message = prompt
        output: Any = None
        error: Optional[BaseException] = None

        while not state.terminal:
            if cfg.max_turns is not None and state.turn_index > cfg.max_turns:
                logger.warning("Loop Exit Condition: max_turns=%d reached.", cfg.max_turns)
                state.terminate(TerminationReason.MAX_TURNS_EXCEEDED)
                break

            logger.info("--- Loop Iteration: %d ---", state.turn_index)
            try:
                response = await self._send(handle, message)
            except GatewayTransportError as exc:
                return self._fatal(state, exc)
            if state.terminal:
                # Abandoned by the watchdog while the model was answering.
                break

            if response.kind == "text" or not response.invocations:
                if cfg.exit_mode == "explicit-tool":
                    logger.info("Model replied with text only; reminding it to call %s.", cfg.completion_tool)
                    message = EXPLICIT_MODE_REMINDER.format(tool=cfg.completion_tool, field=cfg.summary_field)
                    state.advance()
                    await self.throttle.wait()
                    continue
                logger.info("Loop Exit Condition: No function calls returned by the model.")
                output = response.content
                if output:
                    logger.info("Final response:\n%s", output)
                else:
                    logger.info("Final response was empty.")
                state.terminate(TerminationReason.NO_FURTHER_CALLS)
                break

            requests, completion = self._plan_turn(response.invocations)
            pairs, fatal = await self._execute_turn(requests)
            if state.terminal:
                break
            state.record_turn(pairs)

            if fatal is not None and cfg.halt_on_fatal_tool_error:
                logger.error("Fatal tool error; halting: %s", fatal)
                error = fatal
                state.terminate(TerminationReason.FATAL_TOOL_ERROR)
                break

            if completion is not None:
                output = completion.arguments.get(cfg.summary_field, "")
                logger.info("Loop Exit Condition: completion tool '%s' called.", completion.name)
                state.terminate(TerminationReason.EXPLICIT_COMPLETION)
                break

            outcomes = [outcome for _, outcome in pairs]
            logger.debug("--- Sending Tool Responses ---\n%s", serialize_outcomes(outcomes))
            await self.throttle.wait()
            if state.terminal:
                break
            message = outcomes
            state.advance()

        return ConversationResult(
            reason=state.termination_reason or TerminationReason.MASTER_TIMEOUT_EXCEEDED,
            state=state,
            output=output,
            error=error,
        )

    async def _send(self, handle: ConversationHandle, message: Message) -> GatewayResponse:
        try:
            return await self.gateway.send(handle, message)
        except GatewayTransportError:
            raise
        except Exception as exc:
            raise GatewayTransportError(f"Gateway send failed: {exc}", cause=exc) from exc

    def _fatal(self, state: ConversationState, exc: GatewayTransportError) -> ConversationResult:
        logger.error("Gateway transport failure: %s", exc)
        state.terminate(TerminationReason.GATEWAY_TRANSPORT_FAILURE)
        return ConversationResult(
            reason=state.termination_reason or TerminationReason.GATEWAY_TRANSPORT_FAILURE,
            state=state,
            error=exc,
        )

    # -------------------------------------------------------------- execution

    def _plan_turn(
        self, invocations: Sequence[ToolInvocationRequest]
    ) -> Tuple[List[ToolInvocationRequest], Optional[ToolInvocationRequest]]:
        """
        Apply the calls-per-turn policy and cut the turn at the completion tool.

        Returns the requests to execute, in order, and the completion request
        if one was made. Requests after the completion call are dropped.
        """
        cfg = self.config
        selected = list(invocations[:1]) if cfg.calls_per_turn == "first" else list(invocations)
        if len(invocations) > len(selected):
            logger.info("Single-call policy: ignoring %d further call(s) this turn.", len(invocations) - len(selected))

        logger.info("Model wants to call %d function(s).", len(selected))
        for position, request in enumerate(selected):
            if request.name == cfg.completion_tool:
                dropped = len(selected) - position - 1
                if dropped:
                    logger.info("Skipping %d call(s) requested after %s.", dropped, cfg.completion_tool)
                return selected[:position], request
        return selected, None

    async def _execute_turn(
        self, requests: List[ToolInvocationRequest]
    ) -> Tuple[List[Tuple[ToolInvocationRequest, ToolInvocationOutcome]], Optional[FatalToolError]]:
        runnable: List[ToolInvocationRequest] = []
        for request in requests:
            if request.name in self.registry or self.config.report_unknown_tools:
                runnable.append(request)
            else:
                logger.warning("Warning: Unknown tool '%s' requested by the model.", request.name)

        if self.config.concurrent_calls:
            results = await asyncio.gather(*(self._invoke(r) for r in runnable))
        else:
            results = []
            for position, request in enumerate(runnable):
                if position:
                    await self.throttle.wait_between_calls()
                results.append(await self._invoke(request))

        pairs = [(request, outcome) for request, (outcome, _) in zip(runnable, results)]
        fatal = next((exc for _, exc in results if exc is not None), None)
        return pairs, fatal

    async def _invoke(
        self, request: ToolInvocationRequest
    ) -> Tuple[ToolInvocationOutcome, Optional[FatalToolError]]:
        """Run one request under the guard and fold any failure into its outcome."""
        if request.name not in self.registry:
            exc = UnknownToolError(request.name)
            logger.warning("Warning: Unknown tool '%s' requested by the model.", request.name)
            return ToolInvocationOutcome.failed(request, exc.kind, str(exc)), None

        logger.info("Executing: %s(%s)", request.name, json.dumps(request.arguments, default=str))
        try:
            payload = await self.guard.run(request.name, self.registry.dispatch(request.name, request.arguments))
        except ExecutionTimeoutError as exc:
            logger.error("Error executing tool '%s': %s", request.name, exc)
            return ToolInvocationOutcome.failed(request, exc.kind, str(exc)), None
        except FatalToolError as exc:
            logger.error("Fatal error executing tool '%s': %s", request.name, exc)
            return ToolInvocationOutcome.failed(request, exc.kind, str(exc)), exc
        except Exception as exc:
            logger.error("Error executing tool '%s': %s", request.name, exc)
            return ToolInvocationOutcome.failed(request, "ToolExecutionFailure", str(exc)), None
        return ToolInvocationOutcome.success(request, payload), None


__all__ = ["ConversationDriver"]
