# Service types and their default calculator setups
from __future__ import annotations

from dataclasses import dataclass, field

from . import settings as cfg
from .engine import monthly_billable_hours_from_daily
from .model import (
    PAY_HOURLY,
    PAY_SALARY,
    Crew,
    OfficeStaffMember,
    OverheadLineItem,
    RateConfig,
    Worker,
)


@dataclass(frozen=True)
class ServicePreset:
    id: str
    name: str
    description: str
    category: str
    rate_name: str
    wastage_percent: float
    desired_margin: float
    commission_enabled: bool
    daily_work_hours: float
    daily_billable_hours: float
    monthly_billable_hours: float | None
    default_crew_count: int
    crews: tuple = ()
    office_staff: tuple = ()
    overhead: tuple = ()


def _w(title, rate, commission):
    return {"title": title, "rate": rate, "commission": commission}


def _salary(title, amount):
    return {"title": title, "pay_type": PAY_SALARY, "monthly_salary": amount}


def _hourly(title, rate):
    return {"title": title, "pay_type": PAY_HOURLY, "hourly_rate": rate}


PRESETS: dict[str, ServicePreset] = {p.id: p for p in (
    ServicePreset(
        id="residential-plumbing",
        name="Residential Plumbing",
        description="Service and repair for homeowners, one plumber per truck.",
        category="plumbing",
        rate_name="Residential Service Rate",
        wastage_percent=37.5,
        desired_margin=40,
        commission_enabled=False,
        daily_work_hours=8,
        daily_billable_hours=4,
        monthly_billable_hours=None,
        default_crew_count=2,
        crews=(
            ("Crew 1", (_w("Lead Plumber", 40, 30),)),
            ("Crew 2", (_w("Lead Plumber", 40, 30),)),
            ("Crew 3", (_w("Lead Plumber", 60, 30),)),
        ),
        office_staff=(_hourly("Admin Assistant", 30),),
        overhead=(("All", 25000),),
    ),
    ServicePreset(
        id="commercial-plumbing",
        name="Commercial Plumbing",
        description="Larger commercial projects with a full crew and project management.",
        category="plumbing",
        rate_name="Commercial Plumbing Rate",
        wastage_percent=15,
        desired_margin=40,
        commission_enabled=True,
        daily_work_hours=8,
        daily_billable_hours=6,
        monthly_billable_hours=192,
        default_crew_count=1,
        crews=(
            ("Commercial Crew", (
                _w("Master Plumber", 45, 18),
                _w("Journeyman Plumber", 35, 12),
                _w("Apprentice", 25, 5),
            )),
        ),
        office_staff=(
            _salary("Project Manager", 6000),
            _salary("Office Manager", 4500),
            _hourly("Admin Assistant", 22),
        ),
        overhead=(
            ("Office Rent", 2500),
            ("Equipment Leases", 1800),
            ("Insurance", 2000),
            ("Vehicle Fleet", 3500),
            ("Commercial Tools", 1200),
            ("Safety Training", 500),
        ),
    ),
    ServicePreset(
        id="property-management",
        name="Property Management",
        description="Maintenance crews on retainer for rental portfolios.",
        category="property",
        rate_name="Property Maintenance Rate",
        wastage_percent=20,
        desired_margin=25,
        commission_enabled=False,
        daily_work_hours=8,
        daily_billable_hours=5.5,
        monthly_billable_hours=176,
        default_crew_count=2,
        crews=(
            ("Maintenance Crew A", (
                _w("Maintenance Tech", 28, 10),
                _w("Helper", 18, 5),
            )),
            ("Maintenance Crew B", (
                _w("Maintenance Tech", 26, 10),
                _w("Helper", 17, 5),
            )),
        ),
        office_staff=(
            _salary("Property Manager", 5200),
            _hourly("Dispatcher", 20),
        ),
        overhead=(
            ("Office Space", 1200),
            ("Utilities", 450),
            ("Insurance", 750),
            ("Vehicle", 1100),
            ("Tools", 800),
        ),
    ),
    ServicePreset(
        id="septic-service",
        name="Septic Service",
        description="Pumping, repair and installation of septic systems.",
        category="septic",
        rate_name="Septic Service Rate",
        wastage_percent=30,
        desired_margin=35,
        commission_enabled=True,
        daily_work_hours=8,
        daily_billable_hours=5,
        monthly_billable_hours=160,
        default_crew_count=1,
        crews=(
            ("Septic Crew", (
                _w("Lead Septic Tech", 42, 15),
                _w("Equipment Operator", 38, 12),
                _w("Laborer", 25, 5),
            )),
        ),
        office_staff=(
            _salary("Operations Manager", 5800),
            _salary("Permits Coordinator", 4200),
            _hourly("Admin Assistant", 20),
        ),
        overhead=(
            ("Office Space", 1800),
            ("Heavy Equipment Leases", 3500),
            ("Specialized Tools", 900),
            ("Insurance & Bonds", 2200),
            ("Vehicle", 1800),
            ("Environmental Compliance", 600),
        ),
    ),
    ServicePreset(
        id="single-family-service",
        name="Single Family Service",
        description="General service calls for single family homes.",
        category="property",
        rate_name="Single Family Service Rate",
        wastage_percent=30,
        desired_margin=35,
        commission_enabled=False,
        daily_work_hours=8,
        daily_billable_hours=5,
        monthly_billable_hours=160,
        default_crew_count=1,
        crews=(
            ("Service Crew", (
                _w("Service Tech", 30, 12),
                _w("Assistant", 20, 5),
            )),
        ),
        office_staff=(
            _salary("Service Coordinator", 4000),
            _hourly("Customer Service Rep", 19),
        ),
        overhead=(
            ("Office Rent", 1200),
            ("Utilities", 400),
            ("Insurance", 750),
            ("Vehicle", 950),
            ("Tools", 600),
            ("Software", 300),
        ),
    ),
)}

GENERIC = ServicePreset(
    id="custom",
    name="Custom Service",
    description="Blank setup for any other service business.",
    category="other",
    rate_name="Hourly Rate",
    wastage_percent=cfg.DEFAULT_WASTAGE_PERCENT,
    desired_margin=cfg.DEFAULT_MARGIN_PERCENT,
    commission_enabled=False,
    daily_work_hours=cfg.DEFAULT_DAILY_WORK_HOURS,
    daily_billable_hours=cfg.DEFAULT_DAILY_BILLABLE_HOURS,
    monthly_billable_hours=cfg.DEFAULT_MONTHLY_BILLABLE_HOURS,
    default_crew_count=1,
    crews=(),
    office_staff=(
        _salary("Office Manager", 4500),
        _hourly("Admin Assistant", 18),
    ),
    overhead=(
        ("Office Rent", 1500),
        ("Utilities", 500),
        ("Insurance", 300),
    ),
)


def get_preset(service_type: str) -> ServicePreset:
    return PRESETS.get(service_type, GENERIC)


def service_options() -> dict[str, str]:
    """id -> display name, presets first, custom last."""
    out = {p.id: p.name for p in PRESETS.values()}
    out[GENERIC.id] = GENERIC.name
    return out


def new_worker(title: str = "Worker") -> Worker:
    return Worker(rate=cfg.DEFAULT_WORKER_RATE, commission=cfg.DEFAULT_WORKER_COMMISSION, title=title)


def new_crew(index: int, worker_count: int = cfg.DEFAULT_WORKERS_PER_CREW) -> Crew:
    workers = [new_worker(f"Worker {i + 1}") for i in range(max(1, worker_count))]
    return Crew(name=f"Crew {index}", workers=workers)


def even_commission_split(target: float = cfg.DEFAULT_CREW_COMMISSION, worker_count: int = 1) -> list[float]:
    """Split a crew commission evenly so the workers' shares add up to ``target``."""
    n = max(1, int(worker_count))
    return [target / n] * n


def build_config(service_type: str) -> RateConfig:
    """Fresh RateConfig for a service type (generic defaults when unknown)."""
    p = get_preset(service_type)

    crews = [
        Crew(name=name, workers=[Worker(**w) for w in workers])
        for name, workers in p.crews
    ] or [new_crew(1)]

    monthly = p.monthly_billable_hours
    if monthly is None:
        monthly = monthly_billable_hours_from_daily(p.daily_billable_hours)

    return RateConfig(
        crews=crews,
        total_crews=max(p.default_crew_count, len(crews)),
        overhead_costs=[OverheadLineItem(name, cost) for name, cost in p.overhead],
        office_staff=[OfficeStaffMember(**s) for s in p.office_staff],
        monthly_billable_hours_per_crew=float(monthly),
        wastage_percent=float(p.wastage_percent),
        desired_margin=float(p.desired_margin),
        commission_enabled=p.commission_enabled,
    )
