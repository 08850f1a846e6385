"""Forward chat transcripts to the OpenAI Chat Completions API."""
from __future__ import annotations

from typing import Any

import httpx
import structlog

from ..models import ChatMessage
from ..utils import compact_json

log = structlog.get_logger()

CONTEXT_PREAMBLE = (
    "You are LocalVault's AI assistant. Use the following JSON snapshot of the user's finances "
    "(banks, assets, debts, subscriptions, ISA, totals, recentDayPL) when answering.\n\n"
    "USER_SNAPSHOT_JSON:\n"
)


class OpenAIProxy:
    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = (api_key or "").strip()
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.model = model
        self.temperature = temperature
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings) -> "OpenAIProxy":
        return cls(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            temperature=settings.openai_temperature,
            timeout=settings.http_timeout_seconds,
        )

    def build_body(self, messages: list[ChatMessage], context: dict | None = None) -> dict:
        system = []
        if context is not None:
            system.append({"role": "system", "content": CONTEXT_PREAMBLE + compact_json(context)})
        return {
            "model": self.model,
            "messages": system + [m.model_dump() for m in messages],
            "temperature": self.temperature,
        }

    async def forward(self, messages: list[ChatMessage], context: dict | None = None) -> tuple[int, Any]:
        """Post the completion request; return upstream status and decoded body unchanged."""
        if not self.api_key:
            raise RuntimeError("Missing OPENAI_API_KEY")
        body = self.build_body(messages, context)
        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r = await client.post(self.url, json=body, headers=headers)
        data = r.json()
        if not r.is_success:
            log.warning("chat_proxy_upstream_rejected", status=r.status_code)
        return r.status_code, data
