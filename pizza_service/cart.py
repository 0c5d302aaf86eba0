"""
cart.py — Client-side shopping cart

The cart is an ordered list of lines owned by one client session. Menu pizza
lines merge by pizza id; custom lines never merge, since two identical looking
compositions may have been priced against different catalog snapshots.
Operations only mutate the cart itself; there are no network calls here.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from .availability import describe_issue, ensure_orderable, missing_slots
from .errors import InvalidCompositionError
from .models import Composition, Pizza
from .pricing import line_total, price_menu_pizza, round_price, to_money


class CartLine(BaseModel):
    """
    One cart line: a menu pizza or a custom composition with its computed price.

    Attributes:
        pizza (Pizza, optional): The menu pizza of a menu line.
        custom (Composition, optional): The selection of a custom line.
        price (float, optional): Price computed for the custom line when it was added.
        quantity (int): Positive number of pizzas.
    """
    pizza: Optional[Pizza] = None
    custom: Optional[Composition] = None
    price: Optional[float] = None
    quantity: int = Field(1, gt=0)

    @property
    def unit_price(self) -> Decimal:
        if self.pizza is not None:
            return price_menu_pizza(self.pizza)
        return to_money(self.price)

    def to_order_item(self) -> dict:
        if self.pizza is not None:
            return {"pizza": self.pizza.id, "quantity": self.quantity}
        return {"custom": self.custom.model_dump(), "quantity": self.quantity}


class Cart:
    def __init__(self, lines: List[CartLine] = None):
        self.lines = list(lines or [])

    def __len__(self):
        return len(self.lines)

    def __iter__(self):
        return iter(self.lines)

    def _line(self, index: int) -> CartLine:
        if not 0 <= index < len(self.lines):
            raise IndexError(f"no cart line at index {index}")
        return self.lines[index]

    def add(self, pizza: Pizza) -> CartLine:
        for line in self.lines:
            if line.pizza is not None and line.pizza.id == pizza.id:
                line.quantity += 1
                return line
        line = CartLine(pizza=pizza, quantity=1)
        self.lines.append(line)
        return line

    def add_custom(self, composition: Composition, price, catalog=None) -> CartLine:
        """
        Appends a custom pizza line.

        Args:
            composition (Composition): The selection to add.
            price: The price computed for it.
            catalog (Catalog, optional): When given, the full validity gate
                (unknown and disabled selections) is applied against it.

        Raises:
            InvalidCompositionError: A required slot is empty, or the composition
                fails the gate against the given catalog.
        """
        if catalog is not None:
            ensure_orderable(composition, catalog)
        else:
            missing = [{"slot": slot, "reason": "missing"} for slot in missing_slots(composition)]
            if missing:
                raise InvalidCompositionError(
                    "; ".join(describe_issue(issue) for issue in missing), missing
                )

        line = CartLine(custom=composition.model_copy(deep=True), price=float(round_price(price)), quantity=1)
        self.lines.append(line)
        return line

    def increment(self, index: int) -> CartLine:
        line = self._line(index)
        line.quantity += 1
        return line

    def decrement(self, index: int):
        """Decreases the quantity, removing the line when it would drop to zero."""
        line = self._line(index)
        if line.quantity <= 1:
            del self.lines[index]
            return None
        line.quantity -= 1
        return line

    def remove(self, index: int) -> CartLine:
        self._line(index)
        return self.lines.pop(index)

    def clear(self):
        self.lines = []

    def total(self) -> Decimal:
        """Sum of the cent-rounded line totals, the same rule the server charges by."""
        total = sum((line_total(line.unit_price, line.quantity) for line in self.lines), Decimal("0"))
        return round_price(total)

    def to_order_items(self) -> list:
        return [line.to_order_item() for line in self.lines]

    def to_list(self) -> list:
        return [line.model_dump() for line in self.lines]

    @classmethod
    def from_list(cls, data) -> "Cart":
        return cls([CartLine(**entry) for entry in data or []])
