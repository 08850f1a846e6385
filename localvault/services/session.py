"""Chat session: the transcript, its persistence and the send loop around the dispatcher."""
from __future__ import annotations

import json

import structlog

from ..config import CHAT_KEY
from ..models import ChatMessage
from .dispatcher import ChatDispatcher, ChatError
from .snapshot import load_snapshot

log = structlog.get_logger()

GREETING = (
    "Hi! I’m your LocalVault helper.\n"
    "Ask about budgeting, subscriptions, ISA math, or analyze your balances & assets.\n"
    "Turn on data sharing if you want me to use your numbers."
)
CLEARED = "Cleared. How can I help?"


def parse_history(raw: str | None) -> list[ChatMessage]:
    if not raw:
        return []
    try:
        rows = json.loads(raw)
    except ValueError:
        log.warning("chat_history_unreadable")
        return []
    if not isinstance(rows, list):
        return []
    out = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        role = row.get("role")
        if role not in ("user", "assistant"):
            role = "system"
        content = row.get("content")
        out.append(ChatMessage(role=role, content="" if content is None else str(content)))
    return out


class ChatSession:
    def __init__(self, store, dispatcher: ChatDispatcher, share_data: bool = False):
        self.store = store
        self.dispatcher = dispatcher
        self.share_data = share_data
        self.transcript: list[ChatMessage] = []

    def load_history(self) -> list[ChatMessage]:
        self.transcript = parse_history(self.store.get_item(CHAT_KEY))
        if not self.transcript:
            self.transcript.append(ChatMessage(role="assistant", content=GREETING))
        return list(self.transcript)

    def save_history(self):
        rows = [m.model_dump() for m in self.transcript]
        self.store.set_item(CHAT_KEY, json.dumps(rows, ensure_ascii=False))

    def clear(self):
        self.transcript = []
        self.store.remove_item(CHAT_KEY)
        self.transcript.append(ChatMessage(role="assistant", content=CLEARED))

    def data_status(self) -> str:
        snapshot = load_snapshot(self.store)
        if snapshot is None:
            return "No LocalVault data found"
        return f"Data detected • {snapshot.currency}"

    async def submit(self, text: str) -> ChatMessage | None:
        """Append the user's message, send the transcript and append the outcome.

        Returns the assistant reply, or a system ``Error: ...`` message when the
        send failed. Returns None if the text is blank or a send is pending.
        Error messages stay in the transcript but are only persisted by the
        next successful save.
        """
        if self.dispatcher.in_flight:
            return None
        text = (text or "").strip()
        if not text:
            return None

        self.transcript.append(ChatMessage(role="user", content=text))
        self.save_history()
        snapshot = load_snapshot(self.store) if self.share_data else None

        try:
            reply = await self.dispatcher.send(self.transcript, snapshot)
        except ChatError as exc:
            log.warning("chat_send_failed", error_type=type(exc).__name__)
            error = ChatMessage(role="system", content=f"Error: {exc}")
            self.transcript.append(error)
            return error
        if reply is None:
            return None
        self.transcript.append(reply)
        self.save_history()
        return reply
