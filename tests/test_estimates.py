import pytest

from crewrate.estimates import (
    LABOR,
    MATERIAL,
    TEMPLATES,
    EstimateBook,
    LineItem,
    apply_material_markup,
    estimate_text,
    estimate_totals,
    new_estimate,
    reprice_labor,
)
from crewrate.repository import SessionStore


def test_material_markup_applies_wastage_then_markup():
    assert apply_material_markup(100, 40, 10) == pytest.approx(154.0)
    assert apply_material_markup(100, 0, 0) == 100


def test_line_item_totals():
    labor = LineItem(name="Install", type=LABOR, category="labor", hours=2.5, price=100)
    part = LineItem(name="Connector", type=MATERIAL, category="materials", quantity=2, price=15, wastage=0)
    assert labor.total(40) == 250
    assert part.total(40) == pytest.approx(42.0)


def test_standard_water_heater_template():
    est = new_estimate("standard-water-heater", 100, "Residential Service Rate")
    labor = [i for i in est.line_items if i.type == LABOR]
    assert [i.hours for i in labor] == [1, 2.5, 1, 0.5]
    assert all(i.price == 100 for i in labor)
    fittings = next(i for i in est.line_items if i.name == "Misc. Fittings")
    assert fittings.wastage == 10
    assert est.material_markup == 40

    tot = estimate_totals(est)
    assert tot.total_labor_hours == 5
    assert tot.total_labor_cost == 500
    assert tot.base_material_cost == pytest.approx(650 + 45 + 30 + 35 + 45 + 90)
    expected_materials = (650 + 45 + 30 + 35 + 90) * 1.4 + 45 * 1.1 * 1.4
    assert tot.total_material_cost == pytest.approx(expected_materials)
    assert tot.material_profit == pytest.approx(expected_materials - 895)
    assert tot.total_estimate == pytest.approx(500 + expected_materials)


def test_every_template_builds():
    for template_id in TEMPLATES:
        est = new_estimate(template_id, 80)
        assert est.project_name == TEMPLATES[template_id].default_project_name
        assert estimate_totals(est).total_estimate > 0


def test_reprice_labor_leaves_materials_alone():
    est = new_estimate("tankless-water-heater", 80)
    again = reprice_labor(est, 120, "New rate")
    assert again.hourly_rate == 120
    assert all(i.price == 120 for i in again.line_items if i.type == LABOR)
    before = [i.price for i in est.line_items if i.type == MATERIAL]
    assert [i.price for i in again.line_items if i.type == MATERIAL] == before


def test_estimate_text_has_categories_and_summary():
    text = estimate_text(new_estimate("standard-water-heater", 100))
    assert text.startswith("Water Heater Installation\n")
    assert "Labor\n--------------------" in text
    assert "Install new water heater: $250.00" in text
    assert "TOTAL ESTIMATE: $" in text
    assert "Total Labor Hours: 5 hrs" in text


def test_estimate_book():
    book = EstimateBook(SessionStore({}))
    a = new_estimate("standard-water-heater", 90)
    b = new_estimate("enviroserver-es-450", 90)
    book.add(a)
    book.add(b)
    assert [e.template_id for e in book.list()] == ["enviroserver-es-450", "standard-water-heater"]
    again = book.get(a.id)
    assert estimate_totals(again) == estimate_totals(a)
    assert book.delete(a.id)
    assert not book.delete(a.id)
    assert len(book.list()) == 1


def test_unknown_line_item_type_rejected():
    with pytest.raises(ValueError):
        LineItem.from_dict({"name": "x", "type": "fee", "price": 1})
