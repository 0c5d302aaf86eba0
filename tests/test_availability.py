import pytest

from pizza_service.availability import composition_issues, ensure_orderable, is_disabled
from pizza_service.catalog import Catalog
from pizza_service.errors import AvailabilityError, InvalidCompositionError
from pizza_service.models import Composition, Variant


def variant(category, variant_id, price=1.0, stock=10, threshold=2):
    return Variant(id=variant_id, name=variant_id.title(), category=category,
                   price=price, stock=stock, threshold=threshold)


@pytest.fixture
def catalog():
    return Catalog([
        variant("base", "thin"),
        variant("sauce", "tomato"),
        variant("sauce", "pesto", stock=1, threshold=5),
        variant("cheese", "mozzarella"),
        variant("veggie", "olive"),
        variant("veggie", "corn", stock=0, threshold=1),
    ])


@pytest.mark.parametrize("stock,threshold,disabled", [
    (0, 0, False),
    (5, 5, False),
    (4, 5, True),
    (6, 5, False),
    (0, 1, True),
])
def test_is_disabled_is_stock_below_threshold(stock, threshold, disabled):
    v = variant("base", "thin", stock=stock, threshold=threshold)
    assert is_disabled(v) is disabled
    assert v.disabled is disabled


def test_disabled_follows_stock_changes():
    v = variant("veggie", "olive", stock=3, threshold=3)
    assert not v.disabled
    v.stock = 2
    assert v.disabled


def test_disabled_is_not_part_of_the_stored_fields():
    assert "disabled" not in variant("base", "thin").model_dump()


def test_valid_composition_has_no_issues(catalog):
    comp = Composition(base="thin", sauce="tomato", cheese="mozzarella", veggies=["olive"])
    assert composition_issues(comp, catalog) == []
    ensure_orderable(comp, catalog)


def test_missing_slots_are_named(catalog):
    comp = Composition(base="thin")
    issues = composition_issues(comp, catalog)
    assert {"slot": "sauce", "reason": "missing"} in issues
    assert {"slot": "cheese", "reason": "missing"} in issues
    with pytest.raises(InvalidCompositionError) as exc:
        ensure_orderable(comp, catalog)
    assert [i["slot"] for i in exc.value.issues] == ["sauce", "cheese"]


def test_disabled_selection_is_named(catalog):
    comp = Composition(base="thin", sauce="pesto", cheese="mozzarella", veggies=["olive", "corn"])
    issues = composition_issues(comp, catalog)
    assert {"slot": "sauce", "reason": "disabled", "id": "pesto"} in issues
    assert {"slot": "veggies", "reason": "disabled", "id": "corn"} in issues
    assert len(issues) == 2


def test_unknown_selection_is_rejected(catalog):
    comp = Composition(base="thin", sauce="tomato", cheese="gouda")
    with pytest.raises(InvalidCompositionError) as exc:
        ensure_orderable(comp, catalog)
    assert exc.value.issues == [{"slot": "cheese", "reason": "unknown", "id": "gouda"}]


def test_interactive_gate_reports_disabled_as_invalid(catalog):
    comp = Composition(base="thin", sauce="pesto", cheese="mozzarella")
    with pytest.raises(InvalidCompositionError) as exc:
        ensure_orderable(comp, catalog)
    assert not isinstance(exc.value, AvailabilityError)


def test_authoritative_gate_reports_disabled_as_availability_error(catalog):
    comp = Composition(base="thin", sauce="pesto", cheese="mozzarella")
    with pytest.raises(AvailabilityError) as exc:
        ensure_orderable(comp, catalog, authoritative=True)
    assert exc.value.status_code == 409
    assert "pesto" in exc.value.message


def test_authoritative_gate_prefers_missing_slot_over_availability(catalog):
    comp = Composition(base="thin", sauce="pesto")
    with pytest.raises(InvalidCompositionError) as exc:
        ensure_orderable(comp, catalog, authoritative=True)
    assert not isinstance(exc.value, AvailabilityError)


def test_duplicate_veggies_are_dropped():
    comp = Composition(veggies=["olive", "corn", "olive"])
    assert comp.veggies == ["olive", "corn"]
