"""
models.py — Data Models for the Pizza Storefront

This module defines the data structures shared by the API, the checkout
workflow and the client session. It uses Pydantic models to ensure type safety
and automatic validation of incoming data.

Models:
    - Variant: A single purchasable ingredient option (base, sauce, cheese, veggie).
    - Density / Composition: A custom pizza selection.
    - Pizza / PizzaCreate: A fixed-price menu pizza.
    - OrderItemRequest / NewOrderRequest: The checkout payload.
    - OrderStatus / StatusUpdate: The admin-driven order status workflow.
    - VariantStockUpdate / InventoryUpdate: The admin bulk inventory save.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .availability import is_disabled


class VariantCategory(str, Enum):
    BASE = "base"
    SAUCE = "sauce"
    CHEESE = "cheese"
    VEGGIE = "veggie"


# Category -> key used in the catalog payloads ({"bases": [...], ...})
CATEGORY_KEYS = {
    VariantCategory.BASE: "bases",
    VariantCategory.SAUCE: "sauces",
    VariantCategory.CHEESE: "cheeses",
    VariantCategory.VEGGIE: "veggies",
}


class Variant(BaseModel):
    """
    Represents one purchasable ingredient option.

    Attributes:
        id (str): Identifier, unique within its category.
        name (str): Display label.
        category (VariantCategory): base, sauce, cheese or veggie.
        price (float): Non-negative price in the base currency (USD).
        stock (int): Current inventory count.
        threshold (int): Minimum stock required to remain purchasable.
    """
    id: str
    name: str
    category: VariantCategory
    price: float = Field(..., ge=0)
    stock: int = Field(0, ge=0)
    threshold: int = Field(0, ge=0)

    @property
    def disabled(self) -> bool:
        # Derived on every access, never stored.
        return is_disabled(self)


class Density(BaseModel):
    """Density levels for sauce, cheese and the global veggie default (toppings)."""
    sauce: Optional[str] = "normal"
    cheese: Optional[str] = "normal"
    toppings: Optional[str] = "normal"


class Composition(BaseModel):
    """
    A custom pizza selection.

    Attributes:
        base (str): Selected base id, empty when nothing is selected yet.
        sauce (str): Selected sauce id.
        cheese (str): Selected cheese id.
        veggies (List[str]): Selected veggie ids. Duplicates are dropped, order is kept.
        density (Density): Density for sauce, cheese and the default veggie density.
        toppingLevels (Dict[str, str]): Per-veggie density overrides.
    """
    base: str = ""
    sauce: str = ""
    cheese: str = ""
    veggies: List[str] = Field(default_factory=list)
    density: Density = Field(default_factory=Density)
    toppingLevels: Dict[str, str] = Field(default_factory=dict)

    @field_validator("base", "sauce", "cheese", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("veggies")
    @classmethod
    def _dedupe_veggies(cls, value):
        seen = []
        for veggie_id in value:
            if veggie_id not in seen:
                seen.append(veggie_id)
        return seen


class Pizza(BaseModel):
    id: str
    name: str
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    imageUrl: Optional[str] = None


class PizzaCreate(BaseModel):
    name: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    description: Optional[str] = None
    imageUrl: Optional[str] = None


class OrderItemRequest(BaseModel):
    """
    A single checkout line: either a menu pizza id or a custom composition.

    Attributes:
        pizza (str, optional): Menu pizza id.
        custom (Composition, optional): Custom pizza selection.
        quantity (int): Number of pizzas. Must be greater than zero.
    """
    pizza: Optional[str] = None
    custom: Optional[Composition] = None
    quantity: int = Field(..., gt=0)

    @model_validator(mode="after")
    def _exactly_one_kind(self):
        if (self.pizza is None) == (self.custom is None):
            raise ValueError("each item needs exactly one of 'pizza' or 'custom'")
        return self


class NewOrderRequest(BaseModel):
    """
    The checkout payload sent by the storefront.

    Attributes:
        items (List[OrderItemRequest]): Lines of the cart.
        address (str): Free-text delivery address.
        currency (str): Display currency of the client. The charge currency is server configured.
        amount (float, optional): Client-computed total. Informational only, never charged.
    """
    items: List[OrderItemRequest] = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    currency: str = "USD"
    amount: Optional[float] = None


class VerifyRequest(BaseModel):
    orderId: str


class OrderStatus(str, Enum):
    PAYMENT_PENDING = "payment_pending"
    ORDER_RECEIVED = "order_received"
    IN_KITCHEN = "in_kitchen"
    SENT_TO_DELIVERY = "sent_to_delivery"
    DELIVERED = "delivered"


INITIAL_STATUS = OrderStatus.PAYMENT_PENDING
TERMINAL_STATUSES = frozenset([OrderStatus.DELIVERED])


class StatusUpdate(BaseModel):
    status: OrderStatus


class VariantStockUpdate(BaseModel):
    id: str
    stock: int = Field(..., ge=0)
    threshold: int = Field(..., ge=0)


class InventoryUpdate(BaseModel):
    """Bulk stock/threshold rewrite, one list per category."""
    bases: List[VariantStockUpdate] = Field(default_factory=list)
    sauces: List[VariantStockUpdate] = Field(default_factory=list)
    cheeses: List[VariantStockUpdate] = Field(default_factory=list)
    veggies: List[VariantStockUpdate] = Field(default_factory=list)


class User(BaseModel):
    """Caller identity as forwarded by the authentication collaborator."""
    id: str
    role: str = "user"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
