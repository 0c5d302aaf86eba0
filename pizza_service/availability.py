"""
availability.py — Variant availability rule and composition gating

A variant is unavailable (disabled) when its stock is below its threshold.
The rule is evaluated against whatever catalog snapshot the caller passes in,
every time; nothing here caches a result.

Gating decides whether a composition may become a purchasable cart line or
order line. Pricing does not go through this module and stays total.
"""

from .errors import AvailabilityError, InvalidCompositionError

REQUIRED_SLOTS = ("base", "sauce", "cheese")


def is_disabled(variant) -> bool:
    """
    Returns True when the variant cannot be selected.

    Args:
        variant: Any object with integer `stock` and `threshold` attributes.

    Returns:
        bool: stock < threshold. stock == threshold is still available.
    """
    return int(variant.stock) < int(variant.threshold)


def missing_slots(composition) -> list:
    return [slot for slot in REQUIRED_SLOTS if not getattr(composition, slot)]


def composition_issues(composition, catalog) -> list:
    """
    Collects every reason why a composition is not orderable.

    Args:
        composition (Composition): The selection to check.
        catalog (Catalog): The catalog snapshot to check against.

    Returns:
        list[dict]: One entry per failing slot with keys 'slot', 'reason'
        ('missing', 'unknown' or 'disabled') and 'id' where applicable.
        An empty list means the composition is valid.
    """
    issues = [{"slot": slot, "reason": "missing"} for slot in missing_slots(composition)]

    selections = [(slot, slot, getattr(composition, slot)) for slot in REQUIRED_SLOTS]
    selections += [("veggies", "veggie", veggie_id) for veggie_id in composition.veggies]

    for slot, category, variant_id in selections:
        if not variant_id:
            continue
        variant = catalog.get(category, variant_id)
        if variant is None:
            issues.append({"slot": slot, "reason": "unknown", "id": variant_id})
        elif is_disabled(variant):
            issues.append({"slot": slot, "reason": "disabled", "id": variant_id})
    return issues


def describe_issue(issue: dict) -> str:
    if issue["reason"] == "missing":
        return f"Please choose a {issue['slot']}"
    if issue["reason"] == "unknown":
        return f"Unknown {issue['slot']} '{issue['id']}'"
    return f"'{issue['id']}' ({issue['slot']}) is out of stock"


def ensure_orderable(composition, catalog, authoritative=False):
    """
    Refuses a composition that fails validity.

    Args:
        composition (Composition): The selection to check.
        catalog (Catalog): Current catalog snapshot.
        authoritative (bool): True for the server-side re-check at order time.
            A composition whose only problems are disabled variants then raises
            AvailabilityError instead of InvalidCompositionError.

    Raises:
        InvalidCompositionError: A required slot is missing or an id is unknown
            (or, on the interactive side, a selected variant is disabled).
        AvailabilityError: Authoritative re-check found disabled variants.
    """
    issues = composition_issues(composition, catalog)
    if not issues:
        return

    message = "; ".join(describe_issue(issue) for issue in issues)
    if authoritative and all(issue["reason"] == "disabled" for issue in issues):
        raise AvailabilityError(message, issues)
    raise InvalidCompositionError(message, issues)
