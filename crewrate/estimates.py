"""Estimate templates, line items and totals."""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import List, Optional

from . import settings as cfg
from .repository import now_iso, read_json, write_json

logger = logging.getLogger(__name__)

ESTIMATES_KEY = "saved-estimates"
LABOR = "labor"
MATERIAL = "material"


def apply_material_markup(base_total: float, markup: float, wastage: float = 0.0) -> float:
    return base_total * (1 + wastage / 100) * (1 + markup / 100)


@dataclass(frozen=True)
class LineItem:
    name: str
    type: str
    category: str
    price: float
    quantity: float = 1.0
    hours: float = 0.0
    wastage: float = 0.0
    description: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])

    def total(self, markup: float) -> float:
        if self.type == LABOR:
            return self.hours * self.price
        return apply_material_markup(self.quantity * self.price, markup, self.wastage)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "type": self.type,
            "category": self.category,
            "quantity": self.quantity,
            "hours": self.hours,
            "price": self.price,
            "wastage": self.wastage,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "LineItem":
        kind = str(d["type"])
        if kind not in (LABOR, MATERIAL):
            raise ValueError(f"unknown line item type {kind!r}")
        return cls(
            id=str(d.get("id") or uuid.uuid4().hex[:8]),
            name=str(d["name"]),
            description=str(d.get("description", "")),
            type=kind,
            category=str(d.get("category", kind)),
            quantity=float(d.get("quantity", 1) or 0),
            hours=float(d.get("hours", 0) or 0),
            price=float(d["price"]),
            wastage=float(d.get("wastage", 0) or 0),
        )


@dataclass(frozen=True)
class EstimateTemplate:
    id: str
    name: str
    description: str
    default_project_name: str
    categories: dict
    labor: tuple
    materials: tuple
    default_material_markup: float = cfg.DEFAULT_MATERIAL_MARKUP


TEMPLATES: dict[str, EstimateTemplate] = {t.id: t for t in (
    EstimateTemplate(
        id="standard-water-heater",
        name="Standard Water Heater Installation",
        description="Replace a tank water heater with a like-for-like unit.",
        default_project_name="Water Heater Installation",
        categories={"labor": "Labor", "materials": "Materials"},
        labor=(
            ("Remove old water heater", 1),
            ("Install new water heater", 2.5),
            ("Water line connections", 1),
            ("Test and inspect installation", 0.5),
        ),
        materials=(
            # name, qty, price, wastage (None -> default)
            ("50 Gallon Water Heater", 1, 650, 0),
            ("Expansion Tank", 1, 45, 0),
            ("Water Heater Connectors", 2, 15, 0),
            ("T&P Valve", 1, 35, 0),
            ("Misc. Fittings", 1, 45, None),
            ("Permit Fee", 1, 90, 0),
        ),
    ),
    EstimateTemplate(
        id="tankless-water-heater",
        name="Tankless Water Heater Installation",
        description="Convert to a tankless unit including gas, venting and electrical.",
        default_project_name="Tankless Water Heater Installation",
        categories={"labor": "Labor", "materials": "Materials"},
        labor=(
            ("Remove old water heater", 1),
            ("Install tankless water heater", 3.5),
            ("Water Line Connections", 1.5),
            ("Gas Line Installation", 2),
            ("Venting Installation", 2),
            ("Electrical Hookup", 1),
            ("Test and inspect installation", 1),
        ),
        materials=(
            ("Tankless Water Heater Unit", 1, 1200, 0),
            ("Stainless Steel Venting Kit", 1, 250, 5),
            ("Gas Line Materials", 1, 120, 10),
            ("Water Line Connectors", 1, 75, 5),
            ("Electrical Components", 1, 85, 10),
            ("Mounting Hardware", 1, 45, 15),
            ("Permit Fee", 1, 120, 0),
        ),
    ),
    EstimateTemplate(
        id="enviroserver-es-450",
        name="EnviroServer ES Series 450 GPD System",
        description="Advanced treatment septic system, tank and drip field.",
        default_project_name="EnviroServer ES Series 450 GPD Installation",
        categories={"labor": "Labor", "materials": "Materials"},
        labor=(
            ("Site Assessment", 2),
            ("Site Preparation", 40),
            ("Tank Installation", 8),
            ("Drip System Installation", 40),
            ("Control System Installation", 10),
            ("Electrical Connections", 10),
            ("System Testing", 2),
            ("Travel Time", 24),
        ),
        materials=(
            ("ES4.5-TA Tank Assembly", 1, 10600, None),
            ("ES4.5-BA Base Assembly", 1, 1350, None),
            ("SVR Solenoid Recirculation Option", 1, 295, None),
            ("MCPR-G MST Control Panel", 1, 2350, None),
            ("T100i Telemetry Monitoring Option", 1, 895, None),
        ),
    ),
)}


@dataclass(frozen=True)
class Estimate:
    project_name: str
    template_id: str
    hourly_rate: float
    rate_name: str
    material_markup: float
    line_items: List[LineItem]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    date: str = field(default_factory=now_iso)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "projectName": self.project_name,
            "templateId": self.template_id,
            "hourlyRate": self.hourly_rate,
            "rateName": self.rate_name,
            "materialMarkup": self.material_markup,
            "lineItems": [i.to_dict() for i in self.line_items],
            "date": self.date,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Estimate":
        return cls(
            id=str(d["id"]),
            project_name=str(d["projectName"]),
            template_id=str(d.get("templateId", "")),
            hourly_rate=float(d["hourlyRate"]),
            rate_name=str(d.get("rateName", "")),
            material_markup=float(d.get("materialMarkup", cfg.DEFAULT_MATERIAL_MARKUP)),
            line_items=[LineItem.from_dict(i) for i in d.get("lineItems", [])],
            date=str(d.get("date", "")),
        )


@dataclass(frozen=True)
class EstimateTotals:
    total_labor_hours: float
    total_labor_cost: float
    base_material_cost: float
    total_material_cost: float
    material_profit: float
    total_estimate: float


def new_estimate(template_id: str, hourly_rate: float, rate_name: str = "") -> Estimate:
    t = TEMPLATES[template_id]
    items = [
        LineItem(name=name, type=LABOR, category="labor", hours=float(hours), price=float(hourly_rate))
        for name, hours in t.labor
    ]
    for name, qty, price, wastage in t.materials:
        items.append(LineItem(
            name=name,
            type=MATERIAL,
            category="materials",
            quantity=float(qty),
            price=float(price),
            wastage=cfg.DEFAULT_MATERIAL_WASTAGE if wastage is None else float(wastage),
        ))
    return Estimate(
        project_name=t.default_project_name,
        template_id=t.id,
        hourly_rate=float(hourly_rate),
        rate_name=rate_name,
        material_markup=t.default_material_markup,
        line_items=items,
    )


def reprice_labor(estimate: Estimate, hourly_rate: float, rate_name: str = "") -> Estimate:
    items = [replace(i, price=float(hourly_rate)) if i.type == LABOR else i for i in estimate.line_items]
    return replace(estimate, hourly_rate=float(hourly_rate), rate_name=rate_name, line_items=items)


def estimate_totals(estimate: Estimate) -> EstimateTotals:
    labor = [i for i in estimate.line_items if i.type == LABOR]
    materials = [i for i in estimate.line_items if i.type == MATERIAL]
    labor_cost = sum(i.total(estimate.material_markup) for i in labor)
    base_material = sum(i.quantity * i.price for i in materials)
    material_total = sum(i.total(estimate.material_markup) for i in materials)
    return EstimateTotals(
        total_labor_hours=sum(i.hours for i in labor),
        total_labor_cost=labor_cost,
        base_material_cost=base_material,
        total_material_cost=material_total,
        material_profit=material_total - base_material,
        total_estimate=labor_cost + material_total,
    )


def estimate_text(estimate: Estimate) -> str:
    """Plain-text estimate grouped by category, for copying into an email or invoice."""
    t = TEMPLATES.get(estimate.template_id)
    names = t.categories if t else {}
    groups: dict[str, list[LineItem]] = {}
    for item in estimate.line_items:
        groups.setdefault(item.category or "uncategorized", []).append(item)

    lines = [estimate.project_name, ""]
    for category, items in groups.items():
        lines.append(names.get(category, category.upper()))
        lines.append("-" * 20)
        for item in items:
            lines.append(f"{item.name}: ${item.total(estimate.material_markup):,.2f}")
            if item.description:
                lines.append(f"  {item.description}")
        lines.append("")

    tot = estimate_totals(estimate)
    lines += [
        "SUMMARY",
        "-" * 20,
        f"Total Labor Hours: {tot.total_labor_hours:g} hrs",
        f"Total Labor Cost: ${tot.total_labor_cost:,.2f}",
        f"Material Cost (with {estimate.material_markup:g}% markup): ${tot.total_material_cost:,.2f}",
        f"Material Profit: ${tot.material_profit:,.2f}",
        f"TOTAL ESTIMATE: ${tot.total_estimate:,.2f}",
    ]
    return "\n".join(lines)


class EstimateBook:
    """Saved estimates, newest first."""

    def __init__(self, store):
        self.store = store

    def list(self) -> List[Estimate]:
        data = read_json(self.store, ESTIMATES_KEY)
        if not isinstance(data, list):
            if data is not None:
                logger.warning("ignoring malformed %s payload", ESTIMATES_KEY)
            return []
        out = []
        for d in data:
            try:
                out.append(Estimate.from_dict(d))
            except (KeyError, TypeError, ValueError):
                logger.warning("skipping malformed saved estimate")
        return out

    def get(self, estimate_id: str) -> Optional[Estimate]:
        return next((e for e in self.list() if e.id == estimate_id), None)

    def add(self, estimate: Estimate) -> bool:
        kept = [e for e in self.list() if e.id != estimate.id]
        return write_json(self.store, ESTIMATES_KEY, [e.to_dict() for e in [estimate] + kept])

    def delete(self, estimate_id: str) -> bool:
        items = self.list()
        kept = [e for e in items if e.id != estimate_id]
        if len(kept) == len(items):
            return False
        return write_json(self.store, ESTIMATES_KEY, [e.to_dict() for e in kept])
