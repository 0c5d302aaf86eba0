"""
catalog.py — In-memory snapshot of the variant catalog

A Catalog partitions variants by category and keys them by id within each
category (ids may repeat across categories). It is built either from database
documents (server side) or from the /api/customize payload (client side), so
both sides price against the same shape.
"""

from .models import CATEGORY_KEYS, Variant, VariantCategory


class Catalog:
    """Variants of one snapshot, partitioned by category."""

    def __init__(self, variants=()):
        self._by_category = {category: {} for category in VariantCategory}
        for variant in variants:
            self._by_category[variant.category][variant.id] = variant

    @classmethod
    def from_documents(cls, documents):
        """Builds a catalog from raw variant documents (each carries its own category)."""
        return cls(Variant(**doc) for doc in documents)

    @classmethod
    def from_payload(cls, payload: dict):
        """
        Builds a catalog from a grouped payload.

        Args:
            payload (dict): {"bases": [...], "sauces": [...], "cheeses": [...], "veggies": [...]}.
                Entries may omit 'category'. The public payload exposes 'disabled'
                instead of 'stock'/'threshold'; a disabled entry is mapped to
                stock 0 / threshold 1 so the availability rule gives the same answer.
        """
        variants = []
        for category, key in CATEGORY_KEYS.items():
            for entry in payload.get(key) or []:
                data = dict(entry)
                data["category"] = category
                if "stock" not in data and "threshold" not in data:
                    data["stock"], data["threshold"] = (0, 1) if data.get("disabled") else (0, 0)
                data.pop("disabled", None)
                variants.append(Variant(**data))
        return cls(variants)

    def get(self, category, variant_id):
        return self._by_category[VariantCategory(category)].get(variant_id)

    def variants(self, category) -> list:
        return list(self._by_category[VariantCategory(category)].values())

    def __iter__(self):
        for variants in self._by_category.values():
            yield from variants.values()

    def __len__(self):
        return sum(len(variants) for variants in self._by_category.values())

    def to_payload(self, include_inventory=False) -> dict:
        """
        Serializes the snapshot grouped by category.

        The derived 'disabled' flag is computed here from the current stock and
        threshold. With include_inventory the raw stock/threshold are exposed too
        (admin view).
        """
        payload = {}
        for category, key in CATEGORY_KEYS.items():
            rows = []
            for variant in self._by_category[category].values():
                row = {
                    "id": variant.id,
                    "name": variant.name,
                    "price": variant.price,
                    "disabled": variant.disabled,
                }
                if include_inventory:
                    row["stock"] = variant.stock
                    row["threshold"] = variant.threshold
                rows.append(row)
            payload[key] = rows
        return payload
