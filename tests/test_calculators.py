"""
Price calculator tests: registry, per-category formulas, input errors.

Worked examples:
1. Garage, base 1000, barn roof ×1.15 → 1150.00
2. Oak beam, £800/m³, 3m × 150mm × 75mm → 0.03375 m³ → 27.00
3. Oak flooring, £40/m², 20 m², prime grade ×1.25 → 1000.00
"""

import math

import pytest

from timberyard.calculators.base import BaseCalculator
from timberyard.calculators.oak_beam import OakBeamCalculator
from timberyard.calculators.oak_flooring import OakFlooringCalculator
from timberyard.calculators.registry import get_calculator, has_calculator, list_calculators
from timberyard.calculators.structures import GarageCalculator, GazeboCalculator, PorchCalculator
from timberyard.catalog import DEFAULT_CATALOG, OptionCatalog, OptionChoice, OptionGroup
from timberyard.errors import InvalidBasePrice, InvalidConfiguration, InvalidDimensions
from timberyard.pricing_engine import PricingEngine, calculate_price, price_breakdown
from timberyard.schemas import SELECTION_MODELS, Dimensions
from timberyard.volumes import beam_volume_m3


def _garage(size="3x4", roof="apex", truss="straight"):
    return {"size": size, "roof": roof, "truss": truss}


def _beam(finish="sawn", profile="square"):
    return {"finish": finish, "profile": profile}


def _flooring(thickness="20", grade="character", finish="unfinished"):
    return {"thickness": thickness, "grade": grade, "finish": finish}


# ============================================================
# Registry
# ============================================================

def test_registry_has_every_category():
    assert list_calculators() == ["garage", "gazebo", "porch", "oak_beam", "oak_flooring"]
    assert has_calculator("oak_beam")
    assert not has_calculator("shed")


def test_get_calculator_returns_category_class():
    assert isinstance(get_calculator("garage"), GarageCalculator)
    assert isinstance(get_calculator("gazebo"), GazeboCalculator)
    assert isinstance(get_calculator("porch"), PorchCalculator)
    assert isinstance(get_calculator("oak_beam"), OakBeamCalculator)
    assert isinstance(get_calculator("oak_flooring"), OakFlooringCalculator)
    assert all(isinstance(get_calculator(c), BaseCalculator) for c in list_calculators())


def test_get_calculator_unknown_raises():
    with pytest.raises(ValueError):
        get_calculator("shed")


# ============================================================
# Structures
# ============================================================

def test_garage_roof_multiplier():
    """Worked example 1."""
    price = calculate_price("garage", 1000, _garage(roof="barn"))
    assert price == pytest.approx(1150.0)
    assert round(price, 2) == 1150.00


def test_garage_multiplier_applies_before_flat_modifiers():
    """base × factor + flats: the size and truss fees are not scaled by the roof."""
    price = calculate_price("garage", 1000, _garage(size="4x5", roof="barn", truss="curved"))
    assert price == pytest.approx(1000 * 1.15 + 500 + 250)


def test_gazebo_panels_priced_per_side():
    """Full panels £200 × 4 sides, pyramid roof ×1.15."""
    price = calculate_price("gazebo", 2000, {"size": "4x4", "roof": "pyramid", "panels": "full"})
    assert price == pytest.approx(2000 * 1.15 + 200 * 4)


def test_porch_posts_priced_per_post():
    """Curved posts £60 × 2 posts + king post truss £180."""
    options = {"style": "free_apex", "roof": "low_pitch", "posts": "curved_150", "truss": "king_post"}
    assert calculate_price("porch", 1500, options) == pytest.approx(1500 + 60 * 2 + 180)


def test_structures_ignore_dimensions():
    with_dims = calculate_price("garage", 1000, _garage(), {"length": 5, "width": 6})
    assert with_dims == calculate_price("garage", 1000, _garage())


# ============================================================
# Oak beams
# ============================================================

def test_beam_volume():
    assert beam_volume_m3(3, 150, 75) == pytest.approx(0.03375)


def test_beam_price_by_volume():
    """Worked example 2."""
    price = calculate_price("oak_beam", 800, _beam(), {"length": 3, "width": 150, "thickness": 75})
    assert price == pytest.approx(27.0)
    assert round(price, 2) == 27.00


def test_beam_finish_per_metre_and_profile_flat_fee():
    """Planed £5/m × 3m + chamfer £15 on top of the volume price."""
    price = calculate_price(
        "oak_beam", 800, _beam("planed", "chamfer"), {"length": 3, "width": 150, "thickness": 75}
    )
    assert price == pytest.approx(27.0 + 5 * 3 + 15)


def test_beam_requires_all_dimensions():
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), {"length": 3, "width": 150})
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), None)


def test_beam_rejects_non_positive_dimensions():
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), {"length": 0, "width": 150, "thickness": 75})
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), {"length": 3, "width": -150, "thickness": 75})


def test_beam_rejects_non_finite_dimensions():
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), {"length": float("inf"), "width": 150, "thickness": 75})
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), {"length": 3, "width": float("nan"), "thickness": 75})


def test_beam_rejects_non_numeric_dimensions():
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_beam", 800, _beam(), {"length": "long", "width": 150, "thickness": 75})


# ============================================================
# Oak flooring
# ============================================================

def test_flooring_price_by_area():
    """Worked example 3."""
    price = calculate_price("oak_flooring", 40, _flooring(grade="prime"), {"area": 20})
    assert price == pytest.approx(1000.0)


def test_flooring_finish_per_square_metre():
    """Oil £8/m² over 20 m² is added after the grade factor."""
    price = calculate_price("oak_flooring", 40, _flooring(grade="prime", finish="oil"), {"area": 20})
    assert price == pytest.approx(1000.0 + 8 * 20)


def test_flooring_area_from_length_and_width():
    by_area = calculate_price("oak_flooring", 40, _flooring(), {"area": 20})
    by_sides = calculate_price("oak_flooring", 40, _flooring(), {"length": 5, "width": 4})
    assert by_area == pytest.approx(by_sides)


def test_flooring_rustic_grade_discount():
    assert calculate_price("oak_flooring", 40, _flooring(grade="rustic"), {"area": 10}) == pytest.approx(360.0)


def test_flooring_requires_area():
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_flooring", 40, _flooring(), {"length": 5})
    with pytest.raises(InvalidDimensions):
        calculate_price("oak_flooring", 40, _flooring(), {"area": -1})


# ============================================================
# Base price + configuration errors
# ============================================================

@pytest.mark.parametrize("bad", [0, -10, None, "1000", float("nan"), float("inf"), True])
def test_invalid_base_price(bad):
    with pytest.raises(InvalidBasePrice):
        calculate_price("garage", bad, _garage())


def test_base_price_checked_before_options():
    with pytest.raises(InvalidBasePrice):
        calculate_price("garage", 0, {"colour": "red"})


def test_invalid_configuration_from_engine():
    with pytest.raises(InvalidConfiguration):
        calculate_price("garage", 1000, {"size": "3x4"})


def test_calculator_rechecks_required_keys():
    """Called directly, without validate_selection in front, the calculator still guards."""
    with pytest.raises(InvalidConfiguration):
        GarageCalculator().calculate(1000, {"size": "3x4", "roof": "apex"})


def test_unknown_category_is_invalid_configuration():
    with pytest.raises(InvalidConfiguration):
        calculate_price("shed", 1000, {})


# ============================================================
# Guarantees
# ============================================================

def test_price_is_deterministic():
    args = ("oak_flooring", 43.7, _flooring("22", "prime", "lacquer"), {"area": 17.3})
    assert calculate_price(*args) == calculate_price(*args)


def test_price_keeps_full_precision():
    """No rounding inside the engine: 1/3 m of beam does not snap to pennies."""
    price = calculate_price("oak_beam", 1000, _beam(), {"length": 1 / 3, "width": 100, "thickness": 100})
    assert price == pytest.approx(10 / 3)
    assert price != round(price, 2)


def test_price_never_negative():
    """A negative flat modifier larger than the base clamps to zero."""
    catalog = OptionCatalog()
    catalog.replace_groups("garage", [
        OptionGroup(key="discount", label="Trade Discount", choices=[
            OptionChoice(value="huge", label="Huge", flat_modifier=-5000),
        ]),
    ])
    assert calculate_price("garage", 1000, {"discount": "huge"}, catalog=catalog) == 0.0


def test_price_breakdown_terms():
    breakdown = price_breakdown("garage", 1000, _garage(size="5x6", roof="barn", truss="curved"))
    assert breakdown.base_amount == 1000
    assert breakdown.multiplier == pytest.approx(1.15)
    assert breakdown.flat_total == 1250
    assert breakdown.per_unit_total == 0
    assert breakdown.final_price == pytest.approx(1000 * 1.15 + 1250)


def test_engine_prices_against_its_own_catalog():
    catalog = OptionCatalog()
    catalog.replace_groups("oak_beam", [
        OptionGroup(key="finish", label="Finish", unit_basis="length", choices=[
            OptionChoice(value="sawn", label="Sawn", per_unit_rate=2),
        ]),
    ])
    engine = PricingEngine(catalog)
    price = engine.calculate_price("oak_beam", 800, {"finish": "sawn"},
                                   Dimensions(length=3, width=150, thickness=75))
    assert price == pytest.approx(27.0 + 6)


def test_build_line_item_freezes_price_and_normalises_options():
    engine = PricingEngine()
    item = engine.build_line_item(
        product_ref=7, category="oak_flooring", base_price=40,
        options={"thickness": 20, "grade": "prime", "finish": "unfinished"},
        dimensions={"area": 20}, quantity=2, name="Prime Oak Flooring",
    )
    assert item.product_ref == "7"
    assert item.options == {"thickness": "20", "grade": "prime", "finish": "unfinished"}
    assert item.unit_price == pytest.approx(1000.0)
    assert item.dimensions == Dimensions(area=20)
    assert math.isclose(item.line_total, 2000.0)


# ============================================================
# Catalog edits checked against the calculator
# ============================================================

def _keys(category):
    return SELECTION_MODELS[category].option_keys()


def test_default_groups_pass_calculator_checks():
    for category in list_calculators():
        get_calculator(category).check_groups(DEFAULT_CATALOG.groups_for(category), _keys(category))


def test_extra_group_rejected():
    groups = DEFAULT_CATALOG.groups_for("garage") + [
        OptionGroup(key="cladding", label="Cladding", choices=[
            OptionChoice(value="feather_edge", label="Feather Edge", flat_modifier=300),
        ]),
    ]
    with pytest.raises(InvalidConfiguration) as exc:
        get_calculator("garage").check_groups(groups, _keys("garage"))
    assert "cladding" in str(exc.value)


def test_missing_group_rejected():
    groups = [g for g in DEFAULT_CATALOG.groups_for("gazebo") if g.key != "panels"]
    with pytest.raises(InvalidConfiguration):
        get_calculator("gazebo").check_groups(groups, _keys("gazebo"))


def test_structure_group_cannot_use_dimension_basis():
    """Structures carry no dimensions, so per-metre pricing could never resolve."""
    groups = [
        g.model_copy(update={"unit_basis": "length"}) if g.key == "truss" else g
        for g in DEFAULT_CATALOG.groups_for("garage")
    ]
    with pytest.raises(InvalidConfiguration) as exc:
        get_calculator("garage").check_groups(groups, _keys("garage"))
    assert "truss" in str(exc.value)


def test_material_groups_limited_to_their_basis():
    beam_groups = [
        g.model_copy(update={"unit_basis": "area"}) if g.key == "finish" else g
        for g in DEFAULT_CATALOG.groups_for("oak_beam")
    ]
    with pytest.raises(InvalidConfiguration):
        get_calculator("oak_beam").check_groups(beam_groups, _keys("oak_beam"))

    floor_groups = [
        g.model_copy(update={"unit_basis": "length"}) if g.key == "finish" else g
        for g in DEFAULT_CATALOG.groups_for("oak_flooring")
    ]
    with pytest.raises(InvalidConfiguration):
        get_calculator("oak_flooring").check_groups(floor_groups, _keys("oak_flooring"))
