"""Job pricing, saved jobs, dashboard stats and reports.

Job pricing goes through ``engine.compute_rate`` with a one-crew config and
no office staff or overhead, so the job calculator and the rate calculator
share one set of formulas.
"""
from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

import pandas as pd

from .engine import compute_rate
from .model import Crew, RateConfig, Worker
from .repository import now_iso, read_json, write_json

logger = logging.getLogger(__name__)

JOBS_KEY = "saved-jobs"
TIMEFRAMES = ("all", "week", "month", "year")
REPORT_SORTS = ("profitability", "revenue", "cost")
REPORT_COLUMNS = [
    "Job Name", "Date", "Type", "Hours", "Worker Count",
    "Total Cost", "Recommended Rate", "Actual Rate", "Profitability",
]


@dataclass(frozen=True)
class Job:
    name: str
    job_type: str
    billable_hours: float
    wastage_percent: float
    total_hours: float
    workers: List[Worker]
    desired_margin: float
    commission_enabled: bool
    total_cost: float
    recommended_rate: float
    actual_rate: float = 0.0
    profitability: float = 0.0
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    date: str = field(default_factory=now_iso)

    @property
    def revenue(self) -> float:
        return self.actual_rate * self.billable_hours

    @property
    def profit(self) -> float:
        return self.revenue - self.total_cost

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "date": self.date,
            "jobType": self.job_type,
            "billableHours": self.billable_hours,
            "wastagePercent": self.wastage_percent,
            "totalHours": self.total_hours,
            "workers": [w.to_dict() for w in self.workers],
            "desiredMargin": self.desired_margin,
            "commissionEnabled": self.commission_enabled,
            "totalCost": self.total_cost,
            "recommendedRate": self.recommended_rate,
            "actualRate": self.actual_rate,
            "profitability": self.profitability,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Job":
        return cls(
            id=str(d["id"]),
            name=str(d["name"]),
            date=str(d["date"]),
            job_type=str(d.get("jobType", "")),
            billable_hours=float(d["billableHours"]),
            wastage_percent=float(d["wastagePercent"]),
            total_hours=float(d["totalHours"]),
            workers=[Worker.from_dict(w) for w in d.get("workers", [])],
            desired_margin=float(d["desiredMargin"]),
            commission_enabled=bool(d.get("commissionEnabled", False)),
            total_cost=float(d["totalCost"]),
            recommended_rate=float(d["recommendedRate"]),
            actual_rate=float(d.get("actualRate", 0) or 0),
            profitability=float(d.get("profitability", 0) or 0),
        )


def profitability_percent(actual_rate: float, billable_hours: float, total_cost: float) -> float:
    revenue = actual_rate * billable_hours
    if actual_rate <= 0 or revenue <= 0:
        return 0.0
    return (revenue - total_cost) / revenue * 100


def price_job(
    name: str,
    job_type: str,
    billable_hours: float,
    wastage_percent: float,
    workers: Iterable[Worker],
    desired_margin: float,
    commission_enabled: bool = False,
    actual_rate: float = 0.0,
) -> Job:
    workers = list(workers)
    config = RateConfig(
        crews=[Crew(name=name or "Job crew", workers=workers)],
        total_crews=1,
        wastage_percent=wastage_percent,
        desired_margin=desired_margin,
        commission_enabled=commission_enabled,
    )
    result = compute_rate(config)

    total_cost = result.total_cost_per_hour * billable_hours
    if commission_enabled and actual_rate > 0:
        # commission is paid on what was actually charged
        total_cost = actual_rate * billable_hours * result.total_commission_percent / 100

    return Job(
        name=name,
        job_type=job_type,
        billable_hours=billable_hours,
        wastage_percent=wastage_percent,
        total_hours=billable_hours * result.total_hours_per_billable_hour if result.valid else billable_hours,
        workers=workers,
        desired_margin=desired_margin,
        commission_enabled=commission_enabled,
        total_cost=total_cost,
        recommended_rate=result.recommended_rate,
        actual_rate=actual_rate,
        profitability=profitability_percent(actual_rate, billable_hours, total_cost),
    )


# -------------------------
# Saved jobs
# -------------------------
class JobBook:
    """Saved jobs, newest first, in one JSON list under ``saved-jobs``."""

    def __init__(self, store):
        self.store = store

    def list(self) -> List[Job]:
        data = read_json(self.store, JOBS_KEY)
        if not isinstance(data, list):
            if data is not None:
                logger.warning("ignoring malformed %s payload", JOBS_KEY)
            return []
        jobs = []
        for d in data:
            try:
                jobs.append(Job.from_dict(d))
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping malformed saved job: %r", d)
        return jobs

    def _save_all(self, jobs: List[Job]) -> bool:
        return write_json(self.store, JOBS_KEY, [j.to_dict() for j in jobs])

    def get(self, job_id: str) -> Optional[Job]:
        return next((j for j in self.list() if j.id == job_id), None)

    def add(self, job: Job) -> bool:
        return self._save_all([job] + [j for j in self.list() if j.id != job.id])

    def delete(self, job_id: str) -> bool:
        jobs = self.list()
        kept = [j for j in jobs if j.id != job_id]
        if len(kept) == len(jobs):
            return False
        return self._save_all(kept)

    def duplicate(self, job_id: str) -> Optional[Job]:
        src = self.get(job_id)
        if src is None:
            return None
        copy = replace(src, id=uuid.uuid4().hex, name=f"{src.name} (Copy)", date=now_iso())
        return copy if self.add(copy) else None

    def search(self, term: str) -> List[Job]:
        term = (term or "").strip().lower()
        jobs = self.list()
        if not term:
            return jobs
        return [j for j in jobs if term in j.name.lower() or term in j.job_type.lower()]


# -------------------------
# Dashboard + reports
# -------------------------
def _parse_date(value: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def filter_timeframe(jobs: Iterable[Job], timeframe: str = "all", now: datetime | None = None) -> List[Job]:
    if timeframe not in TIMEFRAMES:
        raise ValueError(f"unknown timeframe {timeframe!r}")
    jobs = list(jobs)
    if timeframe == "all":
        return jobs
    now = now or datetime.now(timezone.utc)
    span = {"week": timedelta(days=7), "month": timedelta(days=30), "year": timedelta(days=365)}[timeframe]
    cutoff = now - span
    out = []
    for j in jobs:
        dt = _parse_date(j.date)
        if dt is not None and dt >= cutoff:
            out.append(j)
    return out


@dataclass(frozen=True)
class DashboardStats:
    total_jobs: int = 0
    avg_profitability: float = 0.0
    total_revenue: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    avg_hourly_rate: float = 0.0
    profitable_jobs: int = 0
    unprofitable_jobs: int = 0


def dashboard_stats(jobs: Iterable[Job], timeframe: str = "all", now: datetime | None = None) -> DashboardStats:
    """Totals over jobs that have an actual rate recorded."""
    priced = [j for j in filter_timeframe(jobs, timeframe, now) if j.actual_rate > 0]
    if not priced:
        return DashboardStats()
    n = len(priced)
    revenue = sum(j.revenue for j in priced)
    cost = sum(j.total_cost for j in priced)
    return DashboardStats(
        total_jobs=n,
        avg_profitability=sum(j.profitability for j in priced) / n,
        total_revenue=revenue,
        total_cost=cost,
        total_profit=revenue - cost,
        avg_hourly_rate=sum(j.actual_rate for j in priced) / n,
        profitable_jobs=sum(1 for j in priced if j.profitability > 0),
        unprofitable_jobs=sum(1 for j in priced if j.profitability <= 0),
    )


def report_frame(jobs: Iterable[Job], sort_by: str = "profitability") -> pd.DataFrame:
    if sort_by not in REPORT_SORTS:
        raise ValueError(f"unknown sort {sort_by!r}")
    key = {
        "profitability": lambda j: j.profitability,
        "revenue": lambda j: j.revenue,
        "cost": lambda j: j.total_cost,
    }[sort_by]
    rows = [
        {
            "Job Name": j.name,
            "Date": j.date[:10],
            "Type": j.job_type,
            "Hours": j.billable_hours,
            "Worker Count": len(j.workers),
            "Total Cost": round(j.total_cost, 2),
            "Recommended Rate": round(j.recommended_rate, 2),
            "Actual Rate": round(j.actual_rate, 2),
            "Profitability": round(j.profitability, 1),
        }
        for j in sorted(jobs, key=key, reverse=True)
    ]
    return pd.DataFrame(rows, columns=REPORT_COLUMNS)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def to_xlsx_bytes(df: pd.DataFrame, sheet_name: str = "Jobs") -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buf.getvalue()
