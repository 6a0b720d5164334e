# prompts.py
# Prompt text and the builder that assembles oracle conversations.
#
# The builder is pure: it only assembles messages. The one awaited step is
# fetching grounding text from a ContextProvider, and any failure there is
# reported as SetupError.

import json
from typing import Protocol

from plan_architect.config import PlannerConfig
from plan_architect.errors import SetupError
from plan_architect.models import ChatMessage, FailedAttempt, PlanRequest, ToolDescriptor, ToolSet

# ---------------------------------------------------------------------------
# System Prompts
# ---------------------------------------------------------------------------

PLANNER_PERSONA = """\
You are the **Plan Architect**. You turn a user's objective into an ordered \
list of concrete tool invocations that an execution engine will run for you.

### MANDATORY CONSTRAINTS:
1. **JSON ONLY**: Your response MUST be a single JSON object.
2. **USE NATIVE TOOLS**: Prefer the dedicated tools below over writing scripts.
3. **NO REDUNDANCY**: Check the history and the completed actions. Never repeat a step that already succeeded.
4. **FINAL STEP**: {final_step_rule}
5. **VARIABLES**: To reuse a task's output later, give that task a "save_as" name and reference it as {{{{name}}}} inside a later task's string parameters."""

OUTPUT_CONTRACT = """\
### OUTPUT CONTRACT:
Respond with exactly one JSON object. No prose before or after it.
The object MUST contain a "tasks" array with at least one task.
{terminal_rule}

### Format:
```json
{{
  "objective": "...",
  "scratchpad": "...",
  "tasks": [
    {{ "id": 1, "task_type": "simple_action", "action": "...", "description": "...", "parameters": {{}}, "save_as": "optional_var_name" }}
  ]
}}
```"""

GROUNDING_HEADER = """\
# PROJECT WORLD STATE
Current environment and files:
"""

ARCHITECT_PROTOCOL = """\
# ARCHITECT PROTOCOL:
1. Output ONLY the JSON plan.
2. **INTELLIGENT PARAMETERS**: If earlier results are in the history, use the specific details found there in your task parameters.
3. **NO REDUNDANCY**: If a task has already been completed, DO NOT plan it again. Move to the next logical step."""

COMPLETED_ACTIONS_HEADER = "# COMPLETED ACTIONS (already done, do NOT repeat)"
COMPLETED_ACTION_PREFIX = "- [DONE] "

FAILED_ACTIONS_HEADER = """\
# ACTIONS PREVIOUSLY FAILED
You have already attempted the following actions and they FAILED.
YOU MUST CHOOSE A DIFFERENT STRATEGY OR TOOL."""

HISTORY_HEADER = "## PREVIOUS CONVERSATION HISTORY (Check this to avoid repeats)"

FAILURE_REPORT = """\
The original objective was: "{objective}".
We were executing a plan, but task {task_id} failed with this result:
---
{reason}
---
Interpret this result or fix the error. Generate a NEW plan fragment that \
finishes the objective. Do not repeat any completed action."""

CORRECTION_PROMPT = """\
CRITICAL ERROR: your previous response could not be used as a plan.
Problem: {error}

Respond again with exactly one JSON object containing a "tasks" array. \
Output JSON only: no explanations, no markdown prose, nothing before or after the object."""

FAILURE_ERROR_CHARS = 300


class ContextProvider(Protocol):
    """Supplies grounding text about the current project."""

    async def get_context(self, **options) -> str: ...


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------


def format_tool(tool: ToolDescriptor) -> str:
    params = ", ".join(
        f'"{p.name}" ({p.type}): {p.description}' + (" [required]" if p.required else "")
        for p in tool.parameters
    )
    return f"- **{tool.name}**: {tool.description} (Params: {params or 'none'})"


def format_completed_actions(actions: list[str]) -> str:
    if not actions:
        return ""
    lines = [COMPLETED_ACTIONS_HEADER]
    lines.extend(f"{COMPLETED_ACTION_PREFIX}{action}" for action in actions)
    return "\n".join(lines)


def format_failed_attempts(failures: list[FailedAttempt]) -> str:
    if not failures:
        return ""
    lines = [FAILED_ACTIONS_HEADER]
    for number, failure in enumerate(failures, start=1):
        lines.append(
            f"\n[FAILURE #{number}]\n"
            f"- Tool: `{failure.tool_name}`\n"
            f"- Used Parameters: `{json.dumps(failure.parameters, sort_keys=True)}`\n"
            f'- Error Result: "{failure.error_output[:FAILURE_ERROR_CHARS]}"\n'
            "- Action Required: Do NOT use this tool with these exact parameters again."
        )
    return "\n".join(lines)


def format_history(history: list[ChatMessage], budget: int) -> str:
    """Render non-system turns, each cut to ``budget`` characters."""
    turns = [message for message in history if message.role != "system"]
    if not turns:
        return ""
    lines = [HISTORY_HEADER, ""]
    for message in turns:
        content = message.text()
        if len(content) > budget:
            content = content[:budget] + "..."
        lines.append(f"**{message.role.upper()}**: {content}\n")
    lines.append("---")
    return "\n".join(lines)


def correction_message(error: str) -> ChatMessage:
    return ChatMessage(role="system", content=CORRECTION_PROMPT.format(error=error))


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


class PromptBuilder:
    """
    Assembles the [system, user] message pair for one planning call.

    Example:
        builder = PromptBuilder(ToolSet.snapshot(DEFAULT_TOOLS), PlannerConfig())
        messages = await builder.build(PlanRequest(objective="List files in repo"))
    """

    def __init__(
        self,
        tools: ToolSet,
        config: PlannerConfig,
        context_provider: ContextProvider | None = None,
    ) -> None:
        self._tools = tools
        self._config = config
        self._context_provider = context_provider

    @property
    def terminal_tool(self) -> str | None:
        name = self._config.terminal_tool
        return name if name and self._tools.has(name) else None

    def system_message(self) -> ChatMessage:
        terminal = self.terminal_tool
        if terminal:
            final_step_rule = f"The last task MUST be `{terminal}` to confirm completion to the user."
            terminal_rule = f'The final task\'s "action" MUST be "{terminal}".'
        else:
            final_step_rule = "The last task must produce the result the user asked for."
            terminal_rule = ""

        catalog = "\n".join(format_tool(tool) for tool in self._tools.tools) or "- (none)"
        content = (
            PLANNER_PERSONA.format(final_step_rule=final_step_rule)
            + "\n\n### Tools Available:\n"
            + catalog
            + "\n\n"
            + OUTPUT_CONTRACT.format(terminal_rule=terminal_rule)
        )
        if self._config.no_think:
            content = f"/no_think\n{content}"
        return ChatMessage(role="system", content=content)

    async def grounding_text(self, request: PlanRequest) -> str:
        if request.grounding_context is not None:
            return request.grounding_context
        if self._context_provider is None:
            return ""
        return await self._context_provider.get_context(include_tree=True)

    async def user_message(self, request: PlanRequest) -> ChatMessage:
        sections: list[str] = []

        if request.is_continuation:
            sections.append(
                FAILURE_REPORT.format(
                    objective=request.objective,
                    task_id=request.failed_task_id,
                    reason=request.failure_reason,
                )
            )
        else:
            grounding = await self.grounding_text(request)
            sections.append(GROUNDING_HEADER + (grounding or "(no project context available)"))
            sections.append(ARCHITECT_PROTOCOL)

        for block in (
            format_completed_actions(request.completed_actions),
            format_failed_attempts(request.failed_attempts),
            format_history(request.chat_history, self._config.history_char_budget),
        ):
            if block:
                sections.append(block)

        sections.append(f'**OBJECTIVE:**\n"{request.objective}"')
        if request.is_continuation:
            sections.append("Generate the JSON plan fragment.")
        else:
            sections.append("Generate the JSON plan.")

        return ChatMessage(role="user", content="\n\n".join(sections))

    async def build(self, request: PlanRequest) -> list[ChatMessage]:
        try:
            return [self.system_message(), await self.user_message(request)]
        except SetupError:
            raise
        except Exception as exc:
            raise SetupError(f"Setup failed: {exc}") from exc
