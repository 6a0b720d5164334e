from unittest.mock import AsyncMock, MagicMock

import pytest

from plan_architect.config import PlannerConfig
from plan_architect.errors import SetupError
from plan_architect.models import ChatMessage, FailedAttempt, Plan, PlanRequest, Task, ToolSet
from plan_architect.prompts import (
    COMPLETED_ACTION_PREFIX,
    PromptBuilder,
    correction_message,
    format_history,
    format_tool,
)
from plan_architect.tools import LIST_FILES, READ_FILE, SUBMIT_RESPONSE

TOOLS = ToolSet.snapshot([LIST_FILES, READ_FILE, SUBMIT_RESPONSE])


def _builder(**config):
    return PromptBuilder(TOOLS, PlannerConfig(**config))

# ---------------------------------------------------------------------------
# System message
# ---------------------------------------------------------------------------

def test_system_message_lists_every_tool_and_contract():
    content = _builder().system_message().content
    for name in ("list_files", "read_file", "submit_response"):
        assert f"**{name}**" in content
    assert '"path" (string)' in content
    assert "exactly one JSON object" in content
    assert '"tasks"' in content
    assert 'MUST be "submit_response"' in content

def test_system_message_without_terminal_tool():
    builder = PromptBuilder(ToolSet.snapshot([LIST_FILES]), PlannerConfig())
    assert "submit_response" not in builder.system_message().content

def test_no_think_prefix():
    assert _builder(no_think=True).system_message().content.startswith("/no_think\n")

def test_format_tool_marks_required_params():
    assert '"path" (string): File path relative to the workspace root. [required]' in format_tool(READ_FILE)

# ---------------------------------------------------------------------------
# User message — fresh plan
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_fresh_user_message_section_order():
    request = PlanRequest(
        objective="List files in repo",
        grounding_context="src/app.py",
        completed_actions=["read README.md"],
        chat_history=[
            ChatMessage(role="system", content="hidden system turn"),
            ChatMessage(role="user", content="earlier question"),
        ],
    )
    messages = await _builder().build(request)
    assert [m.role for m in messages] == ["system", "user"]

    content = messages[1].content
    assert "hidden system turn" not in content
    positions = [
        content.index("src/app.py"),
        content.index(f"{COMPLETED_ACTION_PREFIX}read README.md"),
        content.index("earlier question"),
        content.index('"List files in repo"'),
        content.index("Generate the JSON plan."),
    ]
    assert positions == sorted(positions)

@pytest.mark.asyncio
async def test_context_provider_supplies_grounding():
    provider = MagicMock()
    provider.get_context = AsyncMock(return_value="TREE: a.py b.py")
    builder = PromptBuilder(TOOLS, PlannerConfig(), context_provider=provider)
    messages = await builder.build(PlanRequest(objective="x"))
    assert "TREE: a.py b.py" in messages[1].content
    provider.get_context.assert_awaited_once()

@pytest.mark.asyncio
async def test_context_provider_failure_is_setup_error():
    provider = MagicMock()
    provider.get_context = AsyncMock(side_effect=RuntimeError("disk gone"))
    builder = PromptBuilder(TOOLS, PlannerConfig(), context_provider=provider)
    with pytest.raises(SetupError, match="disk gone"):
        await builder.build(PlanRequest(objective="x"))

@pytest.mark.asyncio
async def test_failed_attempts_are_rendered():
    request = PlanRequest(
        objective="x",
        grounding_context="",
        failed_attempts=[FailedAttempt(tool_name="read_file", parameters={"path": "a"}, error_output="E" * 500)],
    )
    content = (await _builder().build(request))[1].content
    assert "[FAILURE #1]" in content
    assert '{"path": "a"}' in content
    assert "E" * 300 in content and "E" * 301 not in content

# ---------------------------------------------------------------------------
# User message — continuation
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_continuation_replaces_grounding_with_failure_report():
    existing = Plan(objective="Build it", tasks=[Task(id=1, action="list_files")])
    request = PlanRequest(
        objective="Build it",
        existing_plan=existing,
        failed_task_id=3,
        failure_reason="permission denied",
        grounding_context="SHOULD NOT APPEAR",
        completed_actions=["listed files", "read app.py"],
    )
    content = (await _builder().build(request))[1].content
    assert "SHOULD NOT APPEAR" not in content
    assert "PROJECT WORLD STATE" not in content
    assert "task 3 failed" in content
    assert "permission denied" in content
    assert f"{COMPLETED_ACTION_PREFIX}listed files" in content
    assert f"{COMPLETED_ACTION_PREFIX}read app.py" in content
    assert "plan fragment" in content

# ---------------------------------------------------------------------------
# History rendering
# ---------------------------------------------------------------------------

def test_history_turns_truncated_to_budget():
    history = [ChatMessage(role="assistant", content="x" * 50)]
    rendered = format_history(history, budget=10)
    assert "**ASSISTANT**: " + "x" * 10 + "..." in rendered
    assert "x" * 11 not in rendered

def test_history_multipart_content():
    history = [ChatMessage(role="user", content=[
        {"type": "text", "text": "look at this"},
        {"type": "image_url", "image_url": {"url": "data:..."}},
    ])]
    rendered = format_history(history, budget=100)
    assert "look at this" in rendered
    assert "[Image]" in rendered

def test_empty_history_renders_nothing():
    assert format_history([ChatMessage(role="system", content="s")], budget=100) == ""

def test_correction_message_repeats_json_contract():
    message = correction_message("Tool 'x' unknown.")
    assert message.role == "system"
    assert "Tool 'x' unknown." in message.content
    assert "JSON only" in message.content
