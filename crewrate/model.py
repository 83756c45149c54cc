"""Value types for rate calculations.

A ``RateConfig`` is assembled from form state on every run and handed to
``engine.compute_rate``; the resulting ``RateResult`` is display-only apart
from the recommended rate, which the repository persists.

The ``to_dict``/``from_dict`` pairs use the camelCase keys of the stored
JSON. ``from_dict`` raises ``KeyError``/``TypeError``/``ValueError`` on
malformed input; callers decide whether to fall back to defaults.
"""
from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

__all__ = [
    "PAY_HOURLY",
    "PAY_SALARY",
    "Worker",
    "Crew",
    "OfficeStaffMember",
    "OverheadLineItem",
    "RateConfig",
    "RateResult",
]

PAY_HOURLY = "hourly"
PAY_SALARY = "salary"


def _num(value: Any, name: str) -> float:
    if isinstance(value, bool):
        raise TypeError(f"{name} must be a number, got bool")
    out = float(value)
    if not math.isfinite(out):
        raise ValueError(f"{name} must be finite, got {value!r}")
    return out


def _mapping(d: Any, name: str) -> Dict[str, Any]:
    if not isinstance(d, dict):
        raise TypeError(f"{name} must be an object, got {type(d).__name__}")
    return d


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class Worker:
    rate: float
    commission: float = 0.0
    title: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "hourlyRate": self.rate, "commission": self.commission}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Worker":
        d = _mapping(d, "Worker")
        rate = _num(d["hourlyRate"], "hourlyRate")
        commission = _num(d.get("commission", 0), "commission")
        if rate < 0:
            raise ValueError("hourlyRate must be >= 0")
        if not 0 <= commission <= 100:
            raise ValueError("commission must be within 0..100")
        return cls(rate=rate, commission=commission, title=str(d.get("title", "")))


@dataclass(frozen=True)
class Crew:
    name: str
    workers: List[Worker] = field(default_factory=list)
    id: str = field(default_factory=lambda: _new_id("crew"))

    @property
    def hourly_rate(self) -> float:
        return sum(w.rate for w in self.workers)

    @property
    def commission(self) -> float:
        return sum(w.commission for w in self.workers)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "workers": [w.to_dict() for w in self.workers],
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Crew":
        d = _mapping(d, "Crew")
        workers = d.get("workers", [])
        if not isinstance(workers, list):
            raise TypeError("workers must be a list")
        return cls(
            name=str(d["name"]),
            workers=[Worker.from_dict(w) for w in workers],
            id=str(d.get("id") or _new_id("crew")),
        )


@dataclass(frozen=True)
class OfficeStaffMember:
    """One office employee; ``pay_type`` picks which of the two pay fields is active."""
    title: str
    pay_type: str = PAY_SALARY
    hourly_rate: float = 0.0
    monthly_salary: float = 0.0

    @property
    def is_salary(self) -> bool:
        return self.pay_type == PAY_SALARY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "isHourly": not self.is_salary,
            "hourlyRate": self.hourly_rate,
            "monthlySalary": self.monthly_salary,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OfficeStaffMember":
        d = _mapping(d, "OfficeStaffMember")
        return cls(
            title=str(d.get("title", "")),
            pay_type=PAY_HOURLY if d["isHourly"] else PAY_SALARY,
            hourly_rate=_num(d.get("hourlyRate", 0), "hourlyRate"),
            monthly_salary=_num(d.get("monthlySalary", 0), "monthlySalary"),
        )


@dataclass(frozen=True)
class OverheadLineItem:
    name: str
    monthly_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "monthlyCost": self.monthly_cost}

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OverheadLineItem":
        d = _mapping(d, "OverheadLineItem")
        return cls(name=str(d["name"]), monthly_cost=_num(d["monthlyCost"], "monthlyCost"))


@dataclass(frozen=True)
class RateConfig:
    crews: List[Crew] = field(default_factory=list)
    total_crews: int = 1
    overhead_costs: List[OverheadLineItem] = field(default_factory=list)
    office_staff: List[OfficeStaffMember] = field(default_factory=list)
    monthly_billable_hours_per_crew: float = 160.0
    wastage_percent: float = 0.0
    desired_margin: float = 0.0
    commission_enabled: bool = False

    @property
    def monthly_overhead_cost(self) -> float:
        return sum(o.monthly_cost for o in self.overhead_costs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "crews": [c.to_dict() for c in self.crews],
            "totalCrews": self.total_crews,
            "overheadCosts": [o.to_dict() for o in self.overhead_costs],
            "officeStaff": [s.to_dict() for s in self.office_staff],
            "monthlyBillableHours": self.monthly_billable_hours_per_crew,
            "wastagePercent": self.wastage_percent,
            "desiredMargin": self.desired_margin,
            "commissionEnabled": self.commission_enabled,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "RateConfig":
        d = _mapping(d, "RateConfig")
        for key in ("crews", "overheadCosts", "officeStaff"):
            if not isinstance(d.get(key, []), list):
                raise TypeError(f"{key} must be a list")
        total_crews = int(_num(d["totalCrews"], "totalCrews"))
        if total_crews < 1:
            raise ValueError("totalCrews must be >= 1")
        return cls(
            crews=[Crew.from_dict(c) for c in d.get("crews", [])],
            total_crews=total_crews,
            overhead_costs=[OverheadLineItem.from_dict(o) for o in d.get("overheadCosts", [])],
            office_staff=[OfficeStaffMember.from_dict(s) for s in d.get("officeStaff", [])],
            monthly_billable_hours_per_crew=_num(d["monthlyBillableHours"], "monthlyBillableHours"),
            wastage_percent=_num(d["wastagePercent"], "wastagePercent"),
            desired_margin=_num(d["desiredMargin"], "desiredMargin"),
            commission_enabled=bool(d.get("commissionEnabled", False)),
        )


@dataclass(frozen=True)
class RateResult:
    base_labor_cost: float = 0.0
    wastage_cost: float = 0.0
    total_labor_cost: float = 0.0
    office_staff_cost_per_hour: float = 0.0
    overhead_cost_per_hour: float = 0.0
    total_cost_per_hour: float = 0.0
    profit_per_hour: float = 0.0
    recommended_rate: float = 0.0

    # Supporting figures shown in the breakdown
    avg_crew_hourly_rate: float = 0.0
    total_hours_per_billable_hour: float = 1.0
    total_commission_percent: float = 0.0
    commission_cost_per_hour: float = 0.0
    monthly_office_staff_cost: float = 0.0
    monthly_overhead_cost: float = 0.0
    total_monthly_billable_hours: float = 0.0

    valid: bool = True
    reason: Optional[str] = None

    @classmethod
    def invalid(cls, reason: str, **figures: float) -> "RateResult":
        """Sentinel for configurations whose rate is undefined (rate 0, ``valid`` False)."""
        clean = {k: v for k, v in figures.items() if math.isfinite(v)}
        return cls(recommended_rate=0.0, valid=False, reason=reason, **clean)

    @property
    def margin_percent(self) -> float:
        if not self.valid or self.recommended_rate <= 0:
            return 0.0
        return self.profit_per_hour / self.recommended_rate * 100
