#!/usr/bin/env python3
"""
Load a LocalVault tracker export (JSON) into the local store.

The file is stored verbatim under the tracker key so the chat session can
derive a snapshot from it. A summary of the derived snapshot is printed.

Usage:
    python scripts/import_vault.py export.json
    python scripts/import_vault.py --remove      # forget stored tracker data
"""
from pathlib import Path
import json
import os
import sys

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from localvault.config import VAULT_KEY, settings
from localvault.db import LocalStore
from localvault.services.snapshot import parse_snapshot


def main():
    import argparse
    p = argparse.ArgumentParser(description="Import LocalVault tracker data for chat snapshots.")
    p.add_argument("path", nargs="?", help="Tracker export JSON file")
    p.add_argument("--remove", action="store_true", help="Remove stored tracker data")
    args = p.parse_args()

    if not args.remove and not args.path:
        p.error("path is required unless --remove is given")

    db_path = settings.db_path
    if not os.path.isabs(db_path):
        db_path = str(ROOT / db_path)
    store = LocalStore.open(db_path)

    if args.remove:
        store.remove_item(VAULT_KEY)
        print("Tracker data removed.")
        return 0

    raw = Path(args.path).read_text(encoding="utf-8")
    snapshot = parse_snapshot(raw)
    if snapshot is None:
        print("ERROR: file is not a usable tracker export; nothing stored.")
        return 1
    store.set_item(VAULT_KEY, raw)
    print(json.dumps({
        "currency": snapshot.currency,
        "totals": snapshot.totals.model_dump(by_alias=True),
        "recent_days": len(snapshot.recent_day_pl),
    }, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
