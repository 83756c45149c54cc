"""Calculator form state, saved per service type.

Separate from the rate records: this is everything needed to re-open the
calculator where the user left it. Anything unreadable falls back to the
service defaults.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from .engine import monthly_billable_hours_from_daily, wastage_from_daily_hours
from .model import RateConfig
from .presets import build_config, get_preset
from .repository import now_iso, read_json, write_json

logger = logging.getLogger(__name__)

STATE_KEY_PREFIX = "calculator-state"


def state_key(service_type: str) -> str:
    return f"{STATE_KEY_PREFIX}:{service_type}"


@dataclass(frozen=True)
class CalculatorState:
    service_type: str
    rate_name: str
    config: RateConfig
    daily_work_hours: float
    daily_billable_hours: float
    updated_at: str = ""

    def to_dict(self) -> dict:
        return {
            "serviceType": self.service_type,
            "rateName": self.rate_name,
            "config": self.config.to_dict(),
            "dailyWorkHours": self.daily_work_hours,
            "dailyBillableHours": self.daily_billable_hours,
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "CalculatorState":
        work = float(d["dailyWorkHours"])
        billable = float(d["dailyBillableHours"])
        if work < 0 or billable < 0 or billable > work:
            raise ValueError("daily hours out of range")
        return cls(
            service_type=str(d["serviceType"]),
            rate_name=str(d["rateName"]),
            config=RateConfig.from_dict(d["config"]),
            daily_work_hours=work,
            daily_billable_hours=billable,
            updated_at=str(d.get("updatedAt", "")),
        )


def default_state(service_type: str) -> CalculatorState:
    p = get_preset(service_type)
    return CalculatorState(
        service_type=service_type,
        rate_name=p.rate_name,
        config=build_config(service_type),
        daily_work_hours=float(p.daily_work_hours),
        daily_billable_hours=float(p.daily_billable_hours),
    )


def apply_daily_hours(state: CalculatorState) -> CalculatorState:
    """Derive wastage and per-crew monthly billable hours from the daily hours."""
    config = replace(
        state.config,
        wastage_percent=wastage_from_daily_hours(state.daily_work_hours, state.daily_billable_hours),
        monthly_billable_hours_per_crew=float(monthly_billable_hours_from_daily(state.daily_billable_hours)),
    )
    return replace(state, config=config)


def load_state(store, service_type: str) -> CalculatorState:
    key = state_key(service_type)
    data = read_json(store, key)
    if data is None:
        return default_state(service_type)
    try:
        state = CalculatorState.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("resetting %s to defaults: %s", key, exc)
        return default_state(service_type)
    if state.service_type != service_type:
        logger.warning("resetting %s: stored for %s", key, state.service_type)
        return default_state(service_type)
    return state


def save_state(store, state: CalculatorState) -> bool:
    stamped = replace(state, updated_at=now_iso())
    return write_json(store, state_key(state.service_type), stamped.to_dict())


def reset_state(store, service_type: str) -> CalculatorState:
    try:
        store.delete(state_key(service_type))
    except OSError:
        logger.warning("could not clear %s", state_key(service_type), exc_info=True)
    return default_state(service_type)
