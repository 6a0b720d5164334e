# config.py
# Tunables for the plan architect. Values come from the environment (and a
# .env file, if present) or are passed explicitly.

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

DEFAULT_MODEL = "anthropic/claude-3.5-haiku"
DEFAULT_BASE_URL = "https://openrouter.ai/api/v1"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class PlannerConfig(BaseModel):
    """Settings shared by the prompt builder, retry loop and oracle."""

    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    api_key: str | None = None

    max_attempts: int = Field(default=4, ge=1, description="Total oracle calls per planning request.")
    history_char_budget: int = Field(default=3000, ge=1, description="Per-turn cap on rendered history.")
    terminal_tool: str | None = "submit_response"
    strip_thinking: bool = True
    no_think: bool = False
    show_progress: bool = False

    @classmethod
    def from_env(cls, **overrides) -> "PlannerConfig":
        load_dotenv()
        values = {
            "model": os.getenv("PLANNER_MODEL", DEFAULT_MODEL),
            "base_url": os.getenv("PLANNER_BASE_URL", DEFAULT_BASE_URL),
            "api_key": os.getenv("OPENROUTER_API_KEY"),
            "max_attempts": int(os.getenv("PLANNER_MAX_ATTEMPTS", "4")),
            "history_char_budget": int(os.getenv("PLANNER_HISTORY_BUDGET", "3000")),
            "no_think": _env_bool("PLANNER_NO_THINK", False),
        }
        values.update(overrides)
        return cls(**values)
