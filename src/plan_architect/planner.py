# planner.py
# Plan Architect: drives generate → extract → validate against the oracle.
#
# Control flow per planning call:
#   build messages (fatal on SetupError)
#   → [cancel check → oracle call → extract → validate] × max_attempts
#   → Succeeded | Aborted | Failed
#
# A rejected response is never patched locally: it goes back to the oracle
# as an assistant turn followed by a system correction.
#
# All terminal output is delegated to display.py. No formatting here.

import asyncio
import logging

from plan_architect import display
from plan_architect.config import PlannerConfig
from plan_architect.errors import (
    AbortError,
    OracleError,
    RetriesExhaustedError,
    RetryableError,
    SetupError,
)
from plan_architect.extractor import require_json, strip_thinking_tags
from plan_architect.models import (
    ChatMessage,
    FailedAttempt,
    Plan,
    PlanOutcome,
    PlanRequest,
    PlanResult,
    ToolDescriptor,
    ToolSet,
)
from plan_architect.oracle import OpenRouterOracle, Oracle
from plan_architect.prompts import ContextProvider, PromptBuilder, correction_message
from plan_architect.validator import validate_plan_text

logger = logging.getLogger(__name__)


class PlanArchitect:
    """
    Turns objectives into validated plans using an unreliable oracle.

    The allowed-tool set is frozen into a ToolSet snapshot at construction;
    use ``with_tools`` (or the per-call ``tools`` argument) to plan against a
    different set. Instances hold no per-call state, so one architect can
    serve many concurrent sessions.

    Example:
        architect = PlanArchitect.from_config(PlannerConfig.from_env(), DEFAULT_TOOLS)
        result = await architect.generate_plan("List files in repo")
        if result.ok:
            run(result.plan)
    """

    def __init__(
        self,
        oracle: Oracle,
        tools: ToolSet | list[ToolDescriptor] | tuple[ToolDescriptor, ...],
        config: PlannerConfig | None = None,
        context_provider: ContextProvider | None = None,
    ) -> None:
        self._oracle = oracle
        self._tools = ToolSet.snapshot(tools)
        self._config = config or PlannerConfig()
        self._context_provider = context_provider

    @classmethod
    def from_config(
        cls,
        config: PlannerConfig,
        tools,
        context_provider: ContextProvider | None = None,
    ) -> "PlanArchitect":
        return cls(OpenRouterOracle(config), tools, config, context_provider)

    @property
    def tools(self) -> ToolSet:
        return self._tools

    @property
    def config(self) -> PlannerConfig:
        return self._config

    def with_tools(self, tools) -> "PlanArchitect":
        return PlanArchitect(self._oracle, tools, self._config, self._context_provider)

    def _show(self, render, *args) -> None:
        if self._config.show_progress:
            render(*args)

    # ------------------------------------------------------------------
    # Plan parsing
    # ------------------------------------------------------------------

    def parse_plan(self, response: str, tools: ToolSet | None = None, objective: str = "") -> Plan:
        """
        Extract and validate a plan from raw oracle text.

        Raises ExtractionError, PlanParseError or PlanValidationError.
        """
        text = strip_thinking_tags(response) if self._config.strip_thinking else response
        candidate = require_json(text)
        return validate_plan_text(
            candidate,
            tools if tools is not None else self._tools,
            terminal_tool=self._config.terminal_tool,
            objective=objective,
        )

    # ------------------------------------------------------------------
    # Retry loop
    # ------------------------------------------------------------------

    async def _attempt_loop(
        self,
        messages: list[ChatMessage],
        request: PlanRequest,
        tools: ToolSet,
        cancel_event: asyncio.Event | None,
    ) -> PlanResult:
        max_attempts = self._config.max_attempts
        last_response = ""
        last_error = ""
        needs_correction = False

        for attempt in range(1, max_attempts + 1):
            if cancel_event is not None and cancel_event.is_set():
                logger.info("Planning aborted before attempt %d", attempt)
                self._show(display.aborted)
                return PlanResult(outcome=PlanOutcome.ABORTED, error="Aborted", attempts=attempt - 1)

            if needs_correction:
                messages.append(ChatMessage(role="assistant", content=last_response))
                messages.append(correction_message(last_error))
                needs_correction = False

            logger.info("Requesting plan, attempt %d/%d", attempt, max_attempts)
            self._show(display.attempt_start, attempt, max_attempts)

            try:
                last_response = await self._oracle.send_chat(
                    list(messages), cancel_event=cancel_event, model=request.model
                )
            except AbortError:
                logger.info("Planning aborted during attempt %d", attempt)
                self._show(display.aborted)
                return PlanResult(outcome=PlanOutcome.ABORTED, error="Aborted", attempts=attempt)
            except OracleError as exc:
                # No response this attempt; don't pair this error with an older one.
                last_response = ""
                last_error = str(exc)
                logger.warning("Oracle call failed on attempt %d: %s", attempt, exc)
                continue

            self._show(display.oracle_response, last_response)

            try:
                plan = self.parse_plan(last_response, tools, objective=request.objective)
            except RetryableError as exc:
                last_error = str(exc)
                needs_correction = True
                logger.warning("Attempt %d rejected: %s", attempt, exc)
                self._show(display.attempt_failed, attempt, last_error)
                continue

            logger.info("Plan accepted on attempt %d with %d task(s)", attempt, len(plan.tasks))
            self._show(display.plan_parsed, plan)
            return PlanResult(
                outcome=PlanOutcome.SUCCEEDED,
                plan=plan,
                raw_response=last_response,
                attempts=attempt,
            )

        exhausted = RetriesExhaustedError(max_attempts, last_error or "unknown error", last_response)
        logger.error("%s", exhausted)
        result = PlanResult(
            outcome=PlanOutcome.FAILED,
            raw_response=exhausted.raw_response,
            error=str(exhausted),
            attempts=max_attempts,
        )
        self._show(display.failed, result)
        return result

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def generate_plan(
        self,
        request: PlanRequest | str,
        *,
        tools=None,
        cancel_event: asyncio.Event | None = None,
    ) -> PlanResult:
        """
        Full planning pipeline.

        Returns a PlanResult in all cases. The caller always gets an outcome,
        whether a plan, an abort, a setup failure or exhausted retries.
        """
        if isinstance(request, str):
            request = PlanRequest(objective=request)
        snapshot = self._tools if tools is None else ToolSet.snapshot(tools)

        self._show(display.request_received, request.objective, request.is_continuation)

        builder = PromptBuilder(snapshot, self._config, self._context_provider)
        try:
            messages = await builder.build(request)
        except SetupError as exc:
            logger.error("Prompt setup failed: %s", exc)
            result = PlanResult(outcome=PlanOutcome.SETUP_FAILED, error=str(exc))
            self._show(display.failed, result)
            return result

        return await self._attempt_loop(messages, request, snapshot, cancel_event)

    async def revise_after_failure(
        self,
        objective: str,
        existing_plan: Plan,
        failed_task_id: int,
        failure_reason: str | None,
        *,
        completed_actions: list[str] | None = None,
        failed_attempts: list[FailedAttempt] | None = None,
        chat_history: list[ChatMessage] | None = None,
        tools=None,
        cancel_event: asyncio.Event | None = None,
        model: str | None = None,
    ) -> PlanResult:
        """
        Ask for a plan fragment that finishes ``objective`` after a task failed.

        The fragment goes through exactly the same extraction and validation
        as a fresh plan. Merging it into ``existing_plan`` is left to the
        caller (see revision.merge_fragment).
        """
        request = PlanRequest(
            objective=objective,
            existing_plan=existing_plan,
            failed_task_id=failed_task_id,
            failure_reason=failure_reason or "(the task produced no output)",
            completed_actions=list(completed_actions or []),
            failed_attempts=list(failed_attempts or []),
            chat_history=list(chat_history or []),
            model=model,
        )
        logger.info("Revising plan after failure of task %d", failed_task_id)
        return await self.generate_plan(request, tools=tools, cancel_event=cancel_event)
