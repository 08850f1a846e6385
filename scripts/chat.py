#!/usr/bin/env python3
"""
Interactive terminal chat against the LocalVault chat proxy.

Commands:
    /share on|off   include the tracker snapshot with each message
    /status         show whether tracker data is available
    /clear          clear the stored conversation
    /quit           exit

Usage:
    python scripts/chat.py [--share] [--endpoint URL]
"""
from pathlib import Path
import asyncio
import os
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
os.chdir(ROOT)

from localvault.config import settings
from localvault.db import LocalStore
from localvault.logging import setup_logging
from localvault.services.dispatcher import ChatDispatcher
from localvault.services.session import ChatSession

PREFIX = {"user": "you", "assistant": "ai", "system": "sys"}


def _show(msg):
    print(f"[{PREFIX.get(msg.role, msg.role)}] {msg.content}\n")


async def run(session: ChatSession):
    for msg in session.load_history():
        _show(msg)
    print(session.data_status(), "| sharing", "on" if session.share_data else "off", "\n")
    while True:
        try:
            text = await asyncio.to_thread(input, "> ")
        except EOFError:
            break
        cmd = text.strip()
        if cmd == "/quit":
            break
        if cmd == "/clear":
            session.clear()
            _show(session.transcript[-1])
            continue
        if cmd == "/status":
            print(session.data_status(), "\n")
            continue
        if cmd.startswith("/share"):
            session.share_data = cmd.endswith(" on")
            print("sharing", "on" if session.share_data else "off", "|", session.data_status(), "\n")
            continue
        reply = await session.submit(text)
        if reply is not None:
            _show(reply)


def main():
    import argparse
    p = argparse.ArgumentParser(description="Chat with the LocalVault assistant.")
    p.add_argument("--share", action="store_true", default=settings.share_data_default,
                   help="Include tracker snapshot with messages")
    p.add_argument("--endpoint", default=settings.chat_endpoint_url, help="Chat proxy URL")
    args = p.parse_args()

    setup_logging(fmt="console", stream=sys.stderr)
    store = LocalStore.open(settings.db_path)
    dispatcher = ChatDispatcher(args.endpoint, timeout=settings.http_timeout_seconds)
    session = ChatSession(store, dispatcher, share_data=args.share)
    try:
        asyncio.run(run(session))
    except KeyboardInterrupt:
        pass
    finally:
        store.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
