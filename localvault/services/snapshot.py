"""Compact finance snapshot derived from the LocalVault tracker blob.

The tracker stores one JSON object (banks, assets, debts, passive income
categories, subscriptions, ISA terms, settings and per-day P/L). The snapshot
keeps the raw collections, adds totals and ISA projections, and trims the
daily results to the most recent non-zero days so the payload stays small
enough to send with every chat request.
"""
from __future__ import annotations

import json

import structlog

from ..config import VAULT_KEY
from ..models import DayResult, FinanceSnapshot, IsaTerms, SnapshotSettings, SnapshotTotals
from ..utils import js_truthy, to_num

log = structlog.get_logger()

DEFAULT_CURRENCY = "GBP"
RECENT_DAYS_LIMIT = 30


class SnapshotShapeError(ValueError):
    pass


def _field(obj, key: str):
    return obj.get(key) if isinstance(obj, dict) else None


def _records(value, name: str) -> list:
    """Falsy values mean "no records"; anything else must be a list."""
    if not js_truthy(value):
        return []
    if not isinstance(value, list):
        raise SnapshotShapeError(f"{name} is not a list")
    return value


def _ledger(source: dict, key: str) -> list:
    # Balance lists only default when the key is missing; null, 0 or "" are shape errors.
    if key not in source:
        return []
    value = source[key]
    if not isinstance(value, list):
        raise SnapshotShapeError(f"{key} is not a list")
    return value


def sum_amounts(records: list, name: str = "records") -> float:
    total = 0.0
    for rec in records:
        if rec is None:
            raise SnapshotShapeError(f"{name} contains null")
        total += to_num(_field(rec, "amount"))
    return total


def passive_monthly(categories) -> float:
    total = 0.0
    for cat in _records(categories, "passiveCats"):
        if cat is None:
            raise SnapshotShapeError("passiveCats contains null")
        total += sum_amounts(_records(_field(cat, "items"), "passiveCats.items"), "passiveCats.items")
    return total


def isa_projection(principal: float, rate_pct: float, compound: bool) -> tuple[float, float]:
    """Return (monthly, yearly) interest on the ISA principal.

    ``rate_pct`` is the annual rate in percent. Compound mode spreads the annual
    rate over twelve equivalent monthly periods; simple mode divides by twelve.
    Compound rates below -100% have no real monthly equivalent and project 0.
    """
    rate = rate_pct / 100
    if compound:
        if 1 + rate < 0:
            return 0.0, 0.0
        monthly_rate = (1 + rate) ** (1 / 12) - 1
        yearly = principal * ((1 + monthly_rate) ** 12 - 1)
    else:
        monthly_rate = rate / 12
        yearly = principal * rate
    return principal * monthly_rate, yearly


def recent_day_results(days, limit: int = RECENT_DAYS_LIMIT) -> list[DayResult]:
    """Latest non-zero daily totals, newest first.

    Keys are ordered as plain strings, which matches calendar order only for
    zero-padded ISO dates.
    """
    if not isinstance(days, dict):
        return []
    try:
        out: list[DayResult] = []
        for day in sorted(days, reverse=True):
            if len(out) >= limit:
                break
            total = to_num(_field(days[day], "total"))
            if total != 0:
                out.append(DayResult(date=day, total=total))
        return out
    except (TypeError, ValueError) as exc:
        log.debug("snapshot_recent_days_skipped", error=str(exc))
        return []


def _derive(source: dict) -> FinanceSnapshot:
    isa = source.get("isa")
    prefs = source.get("settings")
    principal = to_num(_field(isa, "principal"))
    rate_pct = to_num(_field(isa, "rate"))
    isa_monthly, isa_yearly = isa_projection(principal, rate_pct, js_truthy(_field(prefs, "compoundISA")))
    currency = source.get("currency")
    banks = _ledger(source, "banks")
    assets = _ledger(source, "assets")
    debts = _ledger(source, "debts")

    return FinanceSnapshot(
        currency=str(currency) if js_truthy(currency) else DEFAULT_CURRENCY,
        banks=banks,
        assets=assets,
        debts=debts,
        passive_cats=_records(source.get("passiveCats"), "passiveCats"),
        subscriptions=_records(source.get("subscriptions"), "subscriptions"),
        isa=IsaTerms(principal=principal, rate=rate_pct),
        settings=SnapshotSettings(
            include_isa_in_net=js_truthy(_field(prefs, "includeIsaInNet")),
            start_on_monday=js_truthy(_field(prefs, "startOnMonday")),
        ),
        totals=SnapshotTotals(
            bank=sum_amounts(banks, "banks"),
            asset=sum_amounts(assets, "assets"),
            debt=sum_amounts(debts, "debts"),
            passive_monthly=passive_monthly(source.get("passiveCats")),
            isa_monthly=isa_monthly,
            isa_yearly=isa_yearly,
        ),
        recent_day_pl=recent_day_results(source.get("days")),
    )


def derive_snapshot(source) -> FinanceSnapshot | None:
    """Build a snapshot from a decoded tracker object, or None if unusable.

    Never raises: a missing source, a non-object, or any shape problem in the
    collections yields None rather than a partial snapshot.
    """
    if not isinstance(source, dict):
        return None
    try:
        return _derive(source)
    except Exception as exc:
        log.debug("snapshot_unavailable", error=str(exc))
        return None


def parse_snapshot(raw: str | None) -> FinanceSnapshot | None:
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError) as exc:
        log.debug("snapshot_unavailable", error=f"invalid json: {exc}")
        return None
    return derive_snapshot(data)


def load_snapshot(store) -> FinanceSnapshot | None:
    return parse_snapshot(store.get_item(VAULT_KEY))
