# oracle.py
# Transport to the text-generation oracle.
#
# The planner only sees the Oracle protocol: one full response per call,
# never streamed. OpenRouterOracle is the production adapter.

import asyncio
import logging
from typing import Protocol

from openai import AsyncOpenAI, OpenAIError

from plan_architect.config import PlannerConfig
from plan_architect.errors import AbortError, OracleError
from plan_architect.models import ChatMessage

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    async def send_chat(
        self,
        messages: list[ChatMessage],
        *,
        cancel_event: asyncio.Event | None = None,
        model: str | None = None,
    ) -> str: ...


def to_wire(messages: list[ChatMessage]) -> list[dict]:
    return [message.model_dump() for message in messages]


class OpenRouterOracle:
    """
    Oracle backed by any OpenAI-compatible chat completions endpoint.

    Example:
        oracle = OpenRouterOracle(PlannerConfig.from_env())
        text = await oracle.send_chat([ChatMessage(role="user", content="hi")])
    """

    def __init__(self, config: PlannerConfig, client: AsyncOpenAI | None = None) -> None:
        self._model = config.model
        self._client = client or AsyncOpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
        )

    async def _complete(self, messages: list[ChatMessage], model: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                messages=to_wire(messages),
            )
        except OpenAIError as exc:
            raise OracleError(f"Oracle request failed: {exc}") from exc
        content = response.choices[0].message.content
        return (content or "").strip()

    async def send_chat(
        self,
        messages: list[ChatMessage],
        *,
        cancel_event: asyncio.Event | None = None,
        model: str | None = None,
    ) -> str:
        model = model or self._model
        if cancel_event is None:
            return await self._complete(messages, model)

        if cancel_event.is_set():
            raise AbortError("Aborted")

        request = asyncio.ensure_future(self._complete(messages, model))
        cancelled = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait(
                {request, cancelled}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            for future in (request, cancelled):
                if not future.done():
                    future.cancel()

        if request in done:
            return request.result()
        logger.info("Oracle call cancelled by caller")
        raise AbortError("Aborted")
