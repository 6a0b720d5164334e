# run.py
# Entry point. Config and wiring only. No logic lives here.
#
# Swap PLANNER_MODEL for any OpenRouter-supported model.
# https://openrouter.ai/models

import asyncio
import logging

from rich.logging import RichHandler

from plan_architect import display
from plan_architect.config import PlannerConfig
from plan_architect.models import PlanRequest
from plan_architect.planner import PlanArchitect
from plan_architect.revision import merge_fragment
from plan_architect.tools import DEFAULT_TOOLS

GROUNDING = """\
Workspace root: ./demo_project
Files:
  README.md
  src/app.py
  tests/test_app.py"""

# Demo objectives. Each is planned, then its first task is treated as
# failed so the revision path runs too.
PROMPTS = [
    "List the files in the repository and summarise what the project does.",
    "Read src/app.py and write a short description of it to NOTES.md.",
]


async def demo() -> None:
    config = PlannerConfig.from_env(show_progress=True)
    architect = PlanArchitect.from_config(config, DEFAULT_TOOLS)
    display.banner(config.model, architect.tools)

    for objective in PROMPTS:
        result = await architect.generate_plan(
            PlanRequest(objective=objective, grounding_context=GROUNDING)
        )
        if not result.ok:
            continue

        failed = result.plan.tasks[0]
        revision = await architect.revise_after_failure(
            objective,
            result.plan,
            failed.id,
            f"{failed.action} failed: permission denied",
        )
        if revision.ok:
            display.plan_parsed(merge_fragment(result.plan, revision.plan, failed.id))


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(message)s", handlers=[RichHandler()])
    asyncio.run(demo())


if __name__ == "__main__":
    main()
