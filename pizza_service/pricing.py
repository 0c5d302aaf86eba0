"""
pricing.py — Pricing engine for menu pizzas and custom compositions

The same functions price a composition for the live estimate in the client
session and for the authoritative order total on the server. Amounts are
handled as Decimal and rounded half-up to the cent, so both evaluations agree
exactly for the same catalog snapshot and composition.

Custom pizza price:
    build fee (2)
    + base price
    + sauce price  x mult(density.sauce)
    + cheese price x mult(density.cheese)
    + sum(veggie price x mult(level))

where level is toppingLevels[id] when the key is present (even ""), else
density.toppings, else "normal".

with mult(low|light) = 1, mult(extra) = 3 and mult(anything else) = 2.
Unknown ids contribute 0; pricing never raises.
"""

from decimal import Decimal, ROUND_HALF_UP

BUILD_FEE = Decimal("2")
CENT = Decimal("0.01")

DENSITY_MULTIPLIERS = {"low": 1, "light": 1, "extra": 3}
DEFAULT_MULTIPLIER = 2


def density_multiplier(level) -> int:
    key = str(level or "normal").strip().lower()
    return DENSITY_MULTIPLIERS.get(key, DEFAULT_MULTIPLIER)


def to_money(value) -> Decimal:
    """Converts a stored price (int, float, str or Decimal) without binary float noise."""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round_price(amount) -> Decimal:
    return to_money(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def format_price(amount) -> str:
    return str(round_price(amount))


def price_menu_pizza(pizza) -> Decimal:
    """Menu pizzas cost their fixed price; no availability gating applies."""
    return to_money(pizza.price)


def _variant_price(catalog, category, variant_id) -> Decimal:
    if not variant_id:
        return Decimal("0")
    variant = catalog.get(category, variant_id)
    return to_money(variant.price) if variant is not None else Decimal("0")


def price_breakdown(composition, catalog) -> dict:
    """
    Prices a composition component by component.

    Args:
        composition (Composition): The selection, valid or not.
        catalog (Catalog): The catalog snapshot to price against.

    Returns:
        dict: Decimal amounts for 'buildFee', 'base', 'sauce', 'cheese',
        'veggies' and the rounded 'total'.
    """
    density = composition.density

    base = _variant_price(catalog, "base", composition.base)
    sauce = _variant_price(catalog, "sauce", composition.sauce) * density_multiplier(density.sauce)
    cheese = _variant_price(catalog, "cheese", composition.cheese) * density_multiplier(density.cheese)

    veggies = Decimal("0")
    for veggie_id in composition.veggies:
        level = composition.toppingLevels.get(veggie_id)
        if level is None:
            level = "normal" if density.toppings is None else density.toppings
        veggies += _variant_price(catalog, "veggie", veggie_id) * density_multiplier(level)

    total = BUILD_FEE + base + sauce + cheese + veggies
    return {
        "buildFee": BUILD_FEE,
        "base": base,
        "sauce": sauce,
        "cheese": cheese,
        "veggies": veggies,
        "total": round_price(total),
    }


def price_composition(composition, catalog) -> Decimal:
    return price_breakdown(composition, catalog)["total"]


def line_total(unit_price, quantity) -> Decimal:
    return round_price(to_money(unit_price) * quantity)
