"""Shared API shape helpers: the standard success envelope."""
from __future__ import annotations
from typing import Any


def success(data: Any, **meta) -> dict:
    import time as _t
    return {"status": "success", "data": data, "meta": meta or None, "timestamp": _t.time()}
