# models.py
# Data contracts for the plan architect.
# No business logic lives here, only schema and validation.

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class TaskType(str, Enum):
    SIMPLE_ACTION = "simple_action"
    AGENTIC_ACTION = "agentic_action"


class Task(BaseModel):
    """A single tool invocation in a plan."""

    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., description="Unique task id within the plan.")
    task_type: TaskType = TaskType.SIMPLE_ACTION
    action: str = Field(..., min_length=1, description="Tool name. Must be in the allowed set.")
    description: str = Field(default="", description="Human-readable intent of this task.")
    parameters: dict[str, Any] = Field(default_factory=dict, description="Tool arguments.")
    status: TaskStatus = TaskStatus.PENDING
    result: Any | None = None
    retries: int = 0
    save_as: str | None = Field(default=None, description="Variable name bound to this task's result.")


class Plan(BaseModel):
    """A complete plan emitted by the oracle."""

    model_config = ConfigDict(extra="ignore")

    objective: str = Field(default="", description="Top-level objective of the plan.")
    scratchpad: str = Field(default="", description="Free-form reasoning notes.")
    tasks: list[Task] = Field(..., min_length=1)

    def task_ids(self) -> list[int]:
        return [task.id for task in self.tasks]

    def get_task(self, task_id: int) -> Task | None:
        for task in self.tasks:
            if task.id == task_id:
                return task
        return None

    def next_task_id(self) -> int:
        return max(self.task_ids()) + 1


class ParamSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: str = "string"
    description: str = ""
    required: bool = False


class ToolDescriptor(BaseModel):
    """Read-only description of a tool the oracle may plan with."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: tuple[ParamSpec, ...] = ()


class ToolSet(BaseModel):
    """
    Immutable snapshot of the tools allowed for one planning call.

    Built once per call from whatever the caller's registry has enabled, so
    later registry changes cannot alter an allow-list mid-retry-loop.
    """

    model_config = ConfigDict(frozen=True)

    tools: tuple[ToolDescriptor, ...] = ()

    @classmethod
    def snapshot(cls, tools) -> "ToolSet":
        if isinstance(tools, ToolSet):
            return tools
        return cls(tools=tuple(tools))

    @property
    def names(self) -> frozenset[str]:
        return frozenset(tool.name for tool in self.tools)

    def has(self, name: str) -> bool:
        return name in self.names


class ChatMessage(BaseModel):
    """One role-tagged message in an oracle conversation."""

    role: Literal["system", "user", "assistant"]
    content: str | list[dict[str, Any]]

    def text(self) -> str:
        """Flatten multi-part content; non-text parts render as ``[Image]``."""
        if isinstance(self.content, str):
            return self.content
        parts = []
        for part in self.content:
            if part.get("type") == "text":
                parts.append(str(part.get("text", "")))
            else:
                parts.append("[Image]")
        return "\n".join(parts)


class FailedAttempt(BaseModel):
    """A tool call that failed during execution."""

    model_config = ConfigDict(frozen=True)

    tool_name: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    error_output: str = ""


class PlanRequest(BaseModel):
    """Everything the architect needs for one planning call."""

    objective: str
    existing_plan: Plan | None = None
    failed_task_id: int | None = None
    failure_reason: str | None = None
    chat_history: list[ChatMessage] = Field(default_factory=list)
    completed_actions: list[str] = Field(default_factory=list)
    failed_attempts: list[FailedAttempt] = Field(default_factory=list)
    grounding_context: str | None = None
    model: str | None = None

    @property
    def is_continuation(self) -> bool:
        return (
            self.existing_plan is not None
            and self.failed_task_id is not None
            and bool(self.failure_reason)
        )


class PlanOutcome(str, Enum):
    SUCCEEDED = "succeeded"
    ABORTED = "aborted"
    FAILED = "failed"
    SETUP_FAILED = "setup_failed"


class PlanResult(BaseModel):
    """Terminal outcome of a planning call. Never raised, always returned."""

    outcome: PlanOutcome
    plan: Plan | None = None
    raw_response: str = ""
    error: str | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.outcome is PlanOutcome.SUCCEEDED
