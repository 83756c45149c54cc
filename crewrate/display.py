"""Formatting helpers for st.markdown interpolation.

Usage:
    from crewrate.display import e, money, rate_label

    st.markdown(f"<b>{e(crew.name)}</b>: {rate_label(result)}", unsafe_allow_html=True)

- e(): escapes &, <, >, and quotes for safe attribute/text contexts
- money()/percent(): never render nan or inf
- rate_label(): "$96.00/hr", or an explicit message when the rate is undefined
"""
from __future__ import annotations

import math
from html import escape as _escape
from typing import Any

from .model import RateResult

__all__ = ["e", "money", "percent", "rate_label", "INVALID_RATE_TEXT"]

INVALID_RATE_TEXT = "Rate cannot be computed"


def e(value: Any) -> str:
    """HTML-escape a value for safe insertion into markup. None becomes ""."""
    if value is None:
        return ""
    return _escape(str(value), quote=True)


def _finite(value: Any) -> float | None:
    try:
        v = float(value)
    except (TypeError, ValueError):
        return None
    return v if math.isfinite(v) else None


def money(value: Any, placeholder: str = "—") -> str:
    v = _finite(value)
    return placeholder if v is None else f"${v:,.2f}"


def percent(value: Any, digits: int = 1, placeholder: str = "—") -> str:
    v = _finite(value)
    return placeholder if v is None else f"{v:.{digits}f}%"


def rate_label(result: RateResult) -> str:
    if not result.valid or _finite(result.recommended_rate) is None:
        return INVALID_RATE_TEXT
    return f"{money(result.recommended_rate)}/hr"
