# validator.py
# Turns parsed oracle JSON into a well-formed Plan, or fails loudly.
#
# One ingest step (canonicalize) folds every accepted shape into a single
# dict layout; validate_plan then checks that layout against the allowed
# tool snapshot. Rejection is always whole-plan.

import json
from typing import Any

from pydantic import ValidationError

from plan_architect.errors import PlanParseError, PlanValidationError
from plan_architect.models import Plan, Task, TaskType, ToolSet

TASK_ALIASES = ("tasks", "steps", "plan", "actions")
RUNTIME_FIELDS = ("status", "result", "retries")

COMPLETION_DESCRIPTION = "Report completion to the user."
COMPLETION_RESPONSE = "All tasks completed successfully."


def parse_plan_json(raw: str) -> dict[str, Any]:
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise PlanParseError(f"Plan content is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise PlanParseError(
            f"Plan must be a JSON object, got {type(data).__name__}."
        )
    return data


def canonicalize(data: dict[str, Any], objective: str = "") -> dict[str, Any]:
    """
    Fold aliased plan shapes into ``{objective, scratchpad, tasks}``.

    The first key of ``tasks``/``steps``/``plan``/``actions`` holding an array
    wins. Task ids missing from the oracle output are assigned after the
    highest id present.
    """
    tasks = None
    for key in TASK_ALIASES:
        if isinstance(data.get(key), list):
            tasks = data[key]
            break
    if tasks is None:
        raise PlanValidationError(
            "missing tasks: the plan object must contain a \"tasks\" array."
        )
    if not tasks:
        raise PlanValidationError("The \"tasks\" array is empty.")

    canonical_tasks: list[dict[str, Any]] = []
    for position, task in enumerate(tasks, start=1):
        if not isinstance(task, dict):
            raise PlanValidationError(f"Task #{position} is not a JSON object.")
        task = dict(task)
        # "1" and 1 must collide before ids are handed out.
        if isinstance(task.get("id"), str) and task["id"].strip().isdigit():
            task["id"] = int(task["id"].strip())
        canonical_tasks.append(task)

    known_ids = [
        t["id"] for t in canonical_tasks
        if isinstance(t.get("id"), int) and not isinstance(t.get("id"), bool)
    ]
    next_id = max(known_ids, default=0) + 1
    for task in canonical_tasks:
        if task.get("id") is None:
            task["id"] = next_id
            next_id += 1

    return {
        "objective": data.get("objective") or objective,
        "scratchpad": data.get("scratchpad") or "",
        "tasks": canonical_tasks,
    }


def _completion_task(task_id: int, terminal_tool: str) -> Task:
    return Task(
        id=task_id,
        task_type=TaskType.SIMPLE_ACTION,
        action=terminal_tool,
        description=COMPLETION_DESCRIPTION,
        parameters={"response": COMPLETION_RESPONSE},
    )


def validate_plan(
    data: dict[str, Any],
    tools: ToolSet,
    terminal_tool: str | None = "submit_response",
    objective: str = "",
) -> Plan:
    """
    Validate parsed plan JSON against the allowed tool snapshot.

    Every task's runtime fields are reset, whatever the oracle sent. When the
    terminal tool is allowed and the plan does not end with it, one completion
    task is appended.
    """
    canonical = canonicalize(data, objective=objective)
    allowed = tools.names

    tasks: list[Task] = []
    seen_ids: set[int] = set()
    for position, raw_task in enumerate(canonical["tasks"], start=1):
        action = raw_task.get("action")
        if not isinstance(action, str) or not action.strip():
            raise PlanValidationError(f"Task #{position} is missing an \"action\".")
        if action not in allowed:
            raise PlanValidationError(
                f"Tool '{action}' (task #{position}) is unknown. "
                f"Allowed tools: {', '.join(sorted(allowed))}."
            )

        fields = {k: v for k, v in raw_task.items() if k not in RUNTIME_FIELDS}
        try:
            task = Task.model_validate(fields)
        except ValidationError as exc:
            raise PlanValidationError(f"Task #{position} is malformed: {exc}") from exc

        if task.id in seen_ids:
            raise PlanValidationError(f"Duplicate task id {task.id}.")
        seen_ids.add(task.id)
        tasks.append(task)

    plan = Plan(
        objective=str(canonical["objective"]),
        scratchpad=str(canonical["scratchpad"]),
        tasks=tasks,
    )

    if terminal_tool and terminal_tool in allowed and plan.tasks[-1].action != terminal_tool:
        plan.tasks.append(_completion_task(plan.next_task_id(), terminal_tool))

    return plan


def validate_plan_text(
    raw: str,
    tools: ToolSet,
    terminal_tool: str | None = "submit_response",
    objective: str = "",
) -> Plan:
    """Parse ``raw`` as JSON and validate it in one step."""
    return validate_plan(
        parse_plan_json(raw), tools, terminal_tool=terminal_tool, objective=objective
    )
