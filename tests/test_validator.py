import pytest

from plan_architect.errors import PlanParseError, PlanValidationError
from plan_architect.models import TaskStatus, ToolSet
from plan_architect.tools import LIST_FILES, READ_FILE, SUBMIT_RESPONSE
from plan_architect.validator import (
    COMPLETION_DESCRIPTION,
    canonicalize,
    parse_plan_json,
    validate_plan,
    validate_plan_text,
)

TOOLS = ToolSet.snapshot([LIST_FILES, READ_FILE, SUBMIT_RESPONSE])
NO_TERMINAL = ToolSet.snapshot([LIST_FILES, READ_FILE])


def _task(task_id, action, **extra):
    return {"id": task_id, "task_type": "simple_action", "action": action,
            "description": f"run {action}", "parameters": {}, **extra}

# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def test_parse_plan_json_rejects_invalid_json():
    with pytest.raises(PlanParseError):
        parse_plan_json("{ broken json }")

def test_parse_plan_json_rejects_non_object():
    with pytest.raises(PlanParseError, match="JSON object"):
        parse_plan_json("[1, 2, 3]")

# ---------------------------------------------------------------------------
# Shape aliasing
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("key", ["tasks", "steps", "plan", "actions"])
def test_aliases_are_accepted(key):
    plan = validate_plan({key: [_task(1, "list_files")]}, TOOLS)
    assert plan.tasks[0].action == "list_files"

def test_first_array_alias_wins():
    data = {"plan": "do things", "actions": [_task(1, "read_file")]}
    assert canonicalize(data)["tasks"][0]["action"] == "read_file"

def test_missing_tasks_fails():
    with pytest.raises(PlanValidationError, match="missing tasks"):
        validate_plan({"objective": "x"}, TOOLS)

def test_empty_tasks_fails():
    with pytest.raises(PlanValidationError, match="empty"):
        validate_plan({"tasks": []}, TOOLS)

def test_objective_filled_from_caller():
    plan = validate_plan({"tasks": [_task(1, "submit_response")]}, TOOLS, objective="Do it")
    assert plan.objective == "Do it"
    assert plan.scratchpad == ""

# ---------------------------------------------------------------------------
# Task checks
# ---------------------------------------------------------------------------

def test_runtime_fields_are_reset():
    data = {"tasks": [
        _task(1, "list_files", status="succeeded", result="hallucinated", retries=7),
        _task(2, "submit_response", status="failed"),
    ]}
    plan = validate_plan(data, TOOLS)
    for task in plan.tasks:
        assert task.status is TaskStatus.PENDING
        assert task.result is None
        assert task.retries == 0

def test_unknown_tool_rejects_whole_plan():
    data = {"tasks": [_task(1, "list_files"), _task(2, "delete_everything"), _task(3, "submit_response")]}
    with pytest.raises(PlanValidationError, match="delete_everything"):
        validate_plan(data, TOOLS)

def test_missing_action_fails():
    with pytest.raises(PlanValidationError, match="action"):
        validate_plan({"tasks": [{"id": 1, "description": "?"}]}, TOOLS)

def test_duplicate_ids_fail():
    with pytest.raises(PlanValidationError, match="Duplicate"):
        validate_plan({"tasks": [_task(1, "list_files"), _task(1, "submit_response")]}, TOOLS)

def test_bad_task_type_fails():
    with pytest.raises(PlanValidationError, match="malformed"):
        validate_plan({"tasks": [_task(1, "list_files", task_type="teleport")]}, TOOLS)

def test_missing_ids_are_assigned():
    data = {"tasks": [{"action": "list_files"}, _task(5, "read_file"), {"action": "submit_response"}]}
    plan = validate_plan(data, TOOLS)
    assert plan.task_ids() == [6, 5, 7]

def test_numeric_string_ids_count_when_assigning_missing_ids():
    data = {"tasks": [{"id": "1", "action": "list_files"}, {"action": "submit_response"}]}
    plan = validate_plan(data, TOOLS)
    assert plan.task_ids() == [1, 2]
    assert [task.action for task in plan.tasks] == ["list_files", "submit_response"]

def test_numeric_string_id_duplicating_int_id_fails():
    with pytest.raises(PlanValidationError, match="Duplicate task id 1"):
        validate_plan({"tasks": [_task("1", "list_files"), _task(1, "submit_response")]}, TOOLS)

def test_save_as_is_kept():
    plan = validate_plan({"tasks": [_task(1, "list_files", save_as="files")]}, TOOLS)
    assert plan.tasks[0].save_as == "files"

# ---------------------------------------------------------------------------
# Terminal task enforcement
# ---------------------------------------------------------------------------

def test_terminal_task_appended_after_max_id():
    data = {"tasks": [_task(1, "read_file"), _task(3, "list_files")]}
    plan = validate_plan(data, TOOLS)
    assert len(plan.tasks) == 3
    last = plan.tasks[-1]
    assert last.action == "submit_response"
    assert last.id == 4
    assert last.description == COMPLETION_DESCRIPTION
    assert "response" in last.parameters

def test_terminal_task_not_duplicated():
    plan = validate_plan({"tasks": [_task(1, "list_files"), _task(2, "submit_response")]}, TOOLS)
    assert [t.action for t in plan.tasks] == ["list_files", "submit_response"]

def test_no_terminal_task_when_tool_not_allowed():
    plan = validate_plan({"tasks": [_task(1, "list_files")]}, NO_TERMINAL)
    assert len(plan.tasks) == 1

def test_terminal_enforcement_can_be_disabled():
    plan = validate_plan({"tasks": [_task(1, "list_files")]}, TOOLS, terminal_tool=None)
    assert len(plan.tasks) == 1

def test_validate_plan_text_end_to_end():
    raw = '{"objective": "o", "tasks": [{"id": 1, "action": "list_files", "parameters": {"path": "."}}]}'
    plan = validate_plan_text(raw, TOOLS)
    assert plan.objective == "o"
    assert plan.tasks[0].parameters == {"path": "."}
    assert plan.tasks[-1].action == "submit_response"
