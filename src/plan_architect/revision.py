# revision.py
# Executor-side helpers around a plan: failure memory, fragment merging and
# {{variable}} resolution. None of these call the oracle.

import json
import re
from typing import Any

from plan_architect.errors import VariableResolutionError
from plan_architect.models import FailedAttempt, Plan, Task, TaskStatus

_VARIABLE_RE = re.compile(r"\{\{\s*([A-Za-z_][\w.\[\]]*)\s*\}\}")
_TASK_REF_RE = re.compile(r"^tasks\[(\d+)\]\.result$")


# ---------------------------------------------------------------------------
# Failure memory
# ---------------------------------------------------------------------------


class FailureMemory:
    """Remembers tool calls that already failed so they are not retried verbatim."""

    def __init__(self) -> None:
        self._failures: list[FailedAttempt] = []

    def record_failure(self, tool_name: str, parameters: dict[str, Any], error: str) -> None:
        self._failures.append(
            FailedAttempt(tool_name=tool_name, parameters=dict(parameters), error_output=error)
        )

    def has_failed_before(self, tool_name: str, parameters: dict[str, Any]) -> bool:
        key = json.dumps(parameters, sort_keys=True, default=str)
        return any(
            f.tool_name == tool_name and json.dumps(f.parameters, sort_keys=True, default=str) == key
            for f in self._failures
        )

    @property
    def attempts(self) -> list[FailedAttempt]:
        return list(self._failures)

    def clear(self) -> None:
        self._failures = []

    def __len__(self) -> int:
        return len(self._failures)


# ---------------------------------------------------------------------------
# Fragment merging
# ---------------------------------------------------------------------------


def merge_fragment(plan: Plan, fragment: Plan, failed_task_id: int) -> Plan:
    """
    Return a new plan: tasks before the failed one, then the fragment's tasks.

    Fragment tasks are renumbered to follow the kept tasks. Neither input
    plan is modified.
    """
    failed_index = next(
        (index for index, task in enumerate(plan.tasks) if task.id == failed_task_id),
        None,
    )
    if failed_index is None:
        raise ValueError(f"Task {failed_task_id} is not part of the plan.")

    kept = [task.model_copy(deep=True) for task in plan.tasks[:failed_index]]
    next_id = max((task.id for task in kept), default=0) + 1

    merged = list(kept)
    for offset, task in enumerate(fragment.tasks):
        merged.append(task.model_copy(deep=True, update={"id": next_id + offset}))

    return Plan(
        objective=plan.objective,
        scratchpad=(
            f"{plan.scratchpad}\n\n--- PLAN REVISED after failure of task {failed_task_id} ---"
        ).strip(),
        tasks=merged,
    )


# ---------------------------------------------------------------------------
# Variable resolution
# ---------------------------------------------------------------------------


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _lookup(name: str, plan: Plan) -> str:
    task_ref = _TASK_REF_RE.match(name)
    if task_ref:
        source = plan.get_task(int(task_ref.group(1)))
        label = f"task {task_ref.group(1)}"
    else:
        source = next((task for task in plan.tasks if task.save_as == name), None)
        label = f"variable '{name}'"

    if source is None:
        raise VariableResolutionError(f"Could not resolve {{{{{name}}}}}: no {label} in the plan.")
    if source.status is not TaskStatus.SUCCEEDED or source.result is None:
        raise VariableResolutionError(
            f"Could not resolve {{{{{name}}}}}: {label} has not completed successfully."
        )
    return _stringify(source.result)


def _resolve_value(value: Any, plan: Plan) -> Any:
    if isinstance(value, str):
        return _VARIABLE_RE.sub(lambda match: _lookup(match.group(1), plan), value)
    if isinstance(value, dict):
        return {key: _resolve_value(item, plan) for key, item in value.items()}
    if isinstance(value, list):
        return [_resolve_value(item, plan) for item in value]
    return value


def resolve_parameters(task: Task, plan: Plan) -> dict[str, Any]:
    """
    Substitute ``{{name}}`` and ``{{tasks[N].result}}`` in string parameters.

    ``name`` refers to an earlier task's ``save_as``. Raises
    VariableResolutionError when a reference has no succeeded source task.
    """
    return {key: _resolve_value(value, plan) for key, value in task.parameters.items()}
