"""Client side of the chat proxy.

One request per user turn carrying the transcript and, when sharing is on, the
finance snapshot as a separate ``context`` field. Proxies that reject the
``context`` field get exactly one retry with the snapshot inlined as a leading
system message.
"""
from __future__ import annotations

from typing import Any, Iterable

import httpx
import structlog

from ..models import ChatMessage, FinanceSnapshot
from ..utils import compact_json, js_truthy

log = structlog.get_logger()

INLINE_PREAMBLE = (
    "You are LocalVault's AI assistant.\n"
    "Here is the user's snapshot JSON for this session:\n\n"
)
NO_RESPONSE = "[No response]"
GENERIC_FAILURE = "Request failed"


class ChatError(Exception):
    pass


class TransportError(ChatError):
    """Network failure or a response body that is not JSON."""


class DispatchError(ChatError):
    """The proxy answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


def inline_snapshot_message(snapshot: FinanceSnapshot) -> ChatMessage:
    return ChatMessage(role="system", content=INLINE_PREAMBLE + compact_json(snapshot.to_payload()))


def reply_content(data: Any) -> str:
    """``choices[0].message.content`` of a completion body, or a placeholder."""
    choices = data.get("choices") if isinstance(data, dict) else None
    first = choices[0] if isinstance(choices, list) and choices else None
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    return str(content) if js_truthy(content) else NO_RESPONSE


def rejection_message(data: Any) -> str:
    error = data.get("error") if isinstance(data, dict) else None
    message = error.get("message") if isinstance(error, dict) else None
    return str(message) if js_truthy(message) else GENERIC_FAILURE


class ChatDispatcher:
    def __init__(self, endpoint_url: str, timeout: float = 30.0, transport: httpx.AsyncBaseTransport | None = None):
        self.endpoint_url = endpoint_url
        self.timeout = timeout
        self.transport = transport
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    async def send(
        self,
        transcript: Iterable[ChatMessage | dict],
        snapshot: FinanceSnapshot | None = None,
    ) -> ChatMessage | None:
        """Send the transcript and return the assistant reply.

        Returns None without sending anything while another send is pending.
        Raises DispatchError when the proxy rejects the request (after the
        inline fallback, if a snapshot was attached) and TransportError on
        network or decoding failures.
        """
        if self._in_flight:
            log.debug("chat_send_ignored", reason="in_flight")
            return None
        self._in_flight = True
        try:
            messages = [ChatMessage.model_validate(m).model_dump() for m in transcript]
            return await self._dispatch(messages, snapshot)
        finally:
            self._in_flight = False

    async def _dispatch(self, messages: list[dict], snapshot: FinanceSnapshot | None) -> ChatMessage:
        context = snapshot.to_payload() if snapshot is not None else None
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            r, data = await self._post(client, {"messages": messages, "context": context})
            if r.is_success:
                return ChatMessage(role="assistant", content=reply_content(data))
            if snapshot is None:
                log.warning("chat_primary_rejected", status=r.status_code, fallback=False)
                raise DispatchError(rejection_message(data), r.status_code, data)

            log.warning("chat_primary_rejected", status=r.status_code, fallback=True)
            inline = inline_snapshot_message(snapshot).model_dump()
            r, data = await self._post(client, {"messages": [inline, *messages]})
            if not r.is_success:
                log.warning("chat_fallback_rejected", status=r.status_code)
                raise DispatchError(compact_json(data), r.status_code, data)
            return ChatMessage(role="assistant", content=reply_content(data))

    async def _post(self, client: httpx.AsyncClient, body: dict) -> tuple[httpx.Response, Any]:
        try:
            request = client.build_request("POST", self.endpoint_url, json=body)
        except (TypeError, ValueError) as exc:
            raise TransportError(f"chat request could not be encoded: {exc}") from exc
        try:
            r = await client.send(request)
        except httpx.HTTPError as exc:
            raise TransportError(f"chat request failed: {exc}") from exc
        try:
            data = r.json()
        except ValueError as exc:
            raise TransportError(f"chat response was not JSON (status {r.status_code})") from exc
        return r, data
