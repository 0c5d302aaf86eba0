"""
session.py — Client-side storefront session

StorefrontSession is the explicit client context the storefront UI works
against: the logged-in user, the cart and the last catalog snapshot. It is
hydrated from a JSON file at startup, persisted after every mutation and
cleared on logout or after a verified payment.

Live price estimates are computed locally with the same pricing engine the
server uses for the authoritative order total.
"""

import json
import os
from decimal import Decimal

from .availability import composition_issues
from .cart import Cart
from .catalog import Catalog
from .errors import NotFoundError
from .logging_config import get_logger
from .models import Composition, Pizza
from .pricing import price_composition

log = get_logger(__name__)


class StorefrontSession:
    """
    Client session context.

    Attributes:
        client (StorefrontClient): API client; its identity follows login/logout.
        path (str, optional): JSON file used for persistence. None keeps the session in memory.
        user (dict, optional): {"id", "role"} of the logged-in user.
        cart (Cart): The session's cart.
        catalog (Catalog, optional): Last fetched catalog snapshot (last response wins).
        menu (list[Pizza]): Last fetched menu.
    """

    def __init__(self, client, path=None):
        self.client = client
        self.path = path
        self.user = None
        self.cart = Cart()
        self.catalog = None
        self.menu = []

    # --- Lifecycle ---

    def hydrate(self):
        """Restores user and cart from the persistence file, if any."""
        if not self.path or not os.path.exists(self.path):
            return self
        try:
            with open(self.path, encoding="utf-8") as fh:
                state = json.load(fh)
        except (OSError, ValueError) as e:
            log.warning(f"Session file {self.path} unreadable, starting empty: {e}")
            return self

        self.user = state.get("user")
        self.cart = Cart.from_list(state.get("cart"))
        self._apply_identity()
        return self

    def persist(self):
        if not self.path:
            return
        state = {"user": self.user, "cart": self.cart.to_list()}
        with open(self.path, "w", encoding="utf-8") as fh:
            json.dump(state, fh)

    def clear(self):
        self.user = None
        self.cart.clear()
        self._apply_identity()
        if self.path and os.path.exists(self.path):
            os.remove(self.path)

    def login(self, user_id: str, role: str = "user"):
        self.user = {"id": user_id, "role": role}
        self._apply_identity()
        self.persist()

    def logout(self):
        self.clear()

    def _apply_identity(self):
        self.client.user_id = self.user["id"] if self.user else None
        self.client.role = self.user["role"] if self.user else "user"

    # --- Catalog & menu ---

    def refresh_catalog(self) -> Catalog:
        self.catalog = Catalog.from_payload(self.client.customize_options())
        return self.catalog

    def refresh_menu(self) -> list:
        self.menu = [Pizza(**p) for p in self.client.pizzas()]
        return self.menu

    def _current_catalog(self) -> Catalog:
        return self.catalog if self.catalog is not None else self.refresh_catalog()

    def estimate(self, composition: Composition) -> dict:
        """
        Live estimate for the builder: price plus what blocks adding it to the cart.

        Never raises for an incomplete composition.
        """
        catalog = self._current_catalog()
        issues = composition_issues(composition, catalog)
        return {
            "price": price_composition(composition, catalog),
            "valid": not issues,
            "issues": issues,
        }

    # --- Cart ---

    def add_pizza(self, pizza_id: str):
        if not self.menu:
            self.refresh_menu()
        pizza = next((p for p in self.menu if p.id == pizza_id), None)
        if pizza is None:
            raise NotFoundError(f"Pizza {pizza_id} not on the menu")
        line = self.cart.add(pizza)
        self.persist()
        return line

    def add_custom(self, composition: Composition):
        """
        Prices the composition locally and adds it to the cart.

        Raises:
            InvalidCompositionError: Missing slot, unknown id or disabled variant
                in the current catalog snapshot. The cart is left unchanged.
        """
        catalog = self._current_catalog()
        price = price_composition(composition, catalog)
        line = self.cart.add_custom(composition, price, catalog=catalog)
        self.persist()
        return line

    def increment(self, index: int):
        line = self.cart.increment(index)
        self.persist()
        return line

    def decrement(self, index: int):
        line = self.cart.decrement(index)
        self.persist()
        return line

    def remove(self, index: int):
        line = self.cart.remove(index)
        self.persist()
        return line

    def cart_total(self) -> Decimal:
        return self.cart.total()

    # --- Checkout ---

    def checkout(self, address: str, currency: str = "USD") -> dict:
        """
        Sends the cart to the server and returns {orderId, sessionHandle, ...}.

        The cart is kept until the payment is verified.
        """
        payload = {
            "items": self.cart.to_order_items(),
            "address": address,
            "currency": currency,
            "amount": float(self.cart.total()),
        }
        return self.client.create_order(payload)

    def verify_payment(self, order_id: str) -> bool:
        """Asks the server to verify the payment; a confirmed payment empties the cart."""
        result = self.client.verify_payment(order_id)
        if result.get("success"):
            self.cart.clear()
            self.persist()
            return True
        log.warning(f"[Order: {order_id}] Payment not confirmed, cart kept for retry.")
        return False
