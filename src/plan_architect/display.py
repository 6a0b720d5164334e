# display.py
# All terminal output for the plan architect.
#
# This module owns presentation entirely. planner.py never formats strings
# for the user; it calls named functions here. Swap this file to change the
# entire UI.
#
# Colour language:
#   cyan    — routing / prompt assembly
#   blue    — oracle calls and responses
#   yellow  — corrective retries
#   green   — success / confirmed
#   red     — failures, aborts

import json

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from plan_architect.models import Plan, PlanResult, ToolSet

console = Console()

STATUS_ICONS = {
    "pending": "⏳",
    "running": "🔄",
    "succeeded": "✅",
    "failed": "❌",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _label(tag: str, color: str) -> Text:
    t = Text()
    t.append(f" {tag} ", style=f"bold white on {color}")
    return t


def _mono(value: str, max_len: int = 120) -> str:
    if len(value) > max_len:
        return value[:max_len] + "…"
    return value


# ---------------------------------------------------------------------------
# Pipeline entry
# ---------------------------------------------------------------------------


def banner(model: str, tools: ToolSet) -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]Plan Architect[/bold cyan]\n"
            "[dim]Objective → validated JSON plan, with corrective re-prompting[/dim]\n\n"
            f"[dim]Model :[/dim] [white]{model}[/white]\n"
            f"[dim]Tools :[/dim] [white]{', '.join(sorted(tools.names)) or '(none)'}[/white]",
            border_style="cyan",
            padding=(1, 4),
        )
    )


def request_received(objective: str, continuation: bool = False) -> None:
    console.print()
    title = "REVISION REQUEST" if continuation else "NEW REQUEST"
    console.print(Rule(f"[cyan]{title}[/cyan]", style="cyan"))
    console.print(
        Panel(
            f"[white]{escape(objective)}[/white]",
            title=_label("OBJECTIVE", "cyan"),
            border_style="cyan",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Retry loop
# ---------------------------------------------------------------------------


def attempt_start(attempt: int, max_attempts: int) -> None:
    console.print()
    console.print(
        _label("ORACLE", "blue"),
        f"[blue] → Attempt {attempt}/{max_attempts}: requesting plan…[/blue]",
    )


def oracle_response(raw: str) -> None:
    console.print(f"  [blue]Response[/blue]  [dim white]{escape(_mono(raw, 200))}[/dim white]")


def attempt_failed(attempt: int, error: str) -> None:
    console.print(
        Panel(
            f"[bold yellow]Attempt {attempt} rejected.[/bold yellow]\n"
            f"[white]{escape(error)}[/white]\n"
            "[dim]Sending the response back with a correction.[/dim]",
            title=_label("CORRECTION", "yellow"),
            border_style="yellow",
            padding=(0, 2),
        )
    )


# ---------------------------------------------------------------------------
# Plan display
# ---------------------------------------------------------------------------


def plan_table(plan: Plan) -> Table:
    table = Table(
        box=box.SIMPLE_HEAVY,
        border_style="cyan",
        show_header=True,
        header_style="bold cyan",
        padding=(0, 1),
    )
    table.add_column("ID", justify="center", width=4)
    table.add_column("", width=2)
    table.add_column("Action", style="bold white", width=18)
    table.add_column("Parameters", style="dim white", width=32)
    table.add_column("Description", style="white")

    for task in plan.tasks:
        table.add_row(
            str(task.id),
            STATUS_ICONS.get(task.status.value, "❓"),
            task.action,
            escape(_mono(json.dumps(task.parameters), 30)),
            escape(task.description),
        )
    return table


def plan_parsed(plan: Plan) -> None:
    console.print()
    console.print(
        Panel(
            plan_table(plan),
            title=_label("PLAN VALIDATED ✓", "green"),
            subtitle=f"[dim]Objective: {escape(plan.objective)}[/dim]",
            border_style="green",
            padding=(0, 1),
        )
    )


# ---------------------------------------------------------------------------
# Terminal outcomes
# ---------------------------------------------------------------------------


def aborted() -> None:
    console.print()
    console.print(_label("ABORTED", "red"), "[red] Planning cancelled by caller.[/red]")


def failed(result: PlanResult) -> None:
    console.print()
    console.print(
        Panel(
            f"[bold red]{escape(result.error or '')}[/bold red]\n\n"
            f"[dim]Attempts: {result.attempts}[/dim]\n"
            f"[dim]Last raw response:[/dim]\n[white]{escape(_mono(result.raw_response, 600))}[/white]",
            title=_label(f"PLANNING {result.outcome.value.upper()} ✗", "red"),
            border_style="red",
            padding=(0, 2),
        )
    )
    console.print()
