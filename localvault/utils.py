import json
import math
from datetime import datetime, timezone

def now_utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()

def compact_json(obj) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False, default=str)

def js_truthy(value) -> bool:
    """Truthiness of a decoded JSON value as the tracker's browser code sees it.

    Empty lists and objects are truthy; 0, NaN and "" are not.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value == value and value != 0
    if isinstance(value, str):
        return value != ""
    return True

def to_num(value) -> float:
    """Number-or-zero coercion of a decoded JSON value.

    Mirrors unary plus in the browser: booleans are 0/1, numeric strings are
    parsed (blank is 0) and anything non-finite or non-numeric becomes 0.
    """
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        try:
            num = float(value)
        except OverflowError:
            return 0.0
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if "_" in text or not text.isascii():
            return 0.0
        try:
            if text[:2].lower() in ("0x", "0o", "0b"):
                num = float(int(text, 0))
            else:
                num = float(text)
        except (ValueError, OverflowError):
            return 0.0
    else:
        return 0.0
    return num if math.isfinite(num) else 0.0

def finite_json(obj):
    """Copy of a JSON-shaped value with NaN and infinities replaced by None."""
    if isinstance(obj, float):
        return obj if math.isfinite(obj) else None
    if isinstance(obj, dict):
        return {k: finite_json(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [finite_json(v) for v in obj]
    return obj
