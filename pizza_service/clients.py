"""
This module provides HTTP clients for the systems around the storefront:
- Payment gateway (Cashfree PG REST API), used by the server
- Storefront API, used by the client session
Each class encapsulates its protocol logic, error handling and connection management.
"""

import time
import uuid

import httpx

from . import config
from .errors import (
    AuthError,
    AvailabilityError,
    ForbiddenError,
    InvalidCompositionError,
    NotFoundError,
    StorefrontError,
    UpstreamError,
)
from .logging_config import get_logger

log = get_logger(__name__)

PAID = "PAID"


# --- Payment Client (REST) ---
class PaymentClient:
    """
    Client for the payment gateway (Cashfree PG).
    Creates gateway orders (payment sessions) and reads their status back.
    """
    def __init__(self, base_url=None, client_id=None, client_secret=None,
                 verify_attempts=None, verify_backoff=None, transport=None):
        """
        Initializes the HTTP client with proper timeout configuration.

        Args:
            base_url (str, optional): Gateway base URL, defaults to CASHFREE_BASE_URL.
            client_id (str, optional): API client id.
            client_secret (str, optional): API client secret.
            verify_attempts (int, optional): Attempts for the status read on transport errors.
            verify_backoff (float, optional): Initial backoff in seconds, doubled per retry.
            transport (httpx.BaseTransport, optional): Custom transport (tests use httpx.MockTransport).
        """
        self.verify_attempts = max(1, verify_attempts or config.PAYMENT_VERIFY_ATTEMPTS)
        self.verify_backoff = config.PAYMENT_VERIFY_BACKOFF if verify_backoff is None else verify_backoff
        timeout_config = httpx.Timeout(5.0, read=8.0)
        headers = {
            "x-client-id": client_id or config.CASHFREE_CLIENT_ID,
            "x-client-secret": client_secret or config.CASHFREE_CLIENT_SECRET,
            "x-api-version": config.CASHFREE_API_VERSION,
        }
        self.client = httpx.Client(
            base_url=base_url or config.CASHFREE_BASE_URL,
            timeout=timeout_config,
            headers=headers,
            transport=transport,
        )

    def close(self):
        self.client.close()

    def create_order(self, order_id: str, amount, currency: str, customer_id: str) -> dict:
        """
        Creates a gateway order and returns its payment session.

        Args:
            order_id (str): Our order id, reused as the gateway order id (join key).
            amount (Decimal): Amount to charge in major currency units.
            currency (str): ISO currency code (e.g. 'USD').
            customer_id (str): Id of the paying user.

        Returns:
            dict: Gateway response, containing 'payment_session_id'.

        Raises:
            UpstreamError: Gateway unreachable, timed out or refused the order.
        """
        payload = {
            "order_id": order_id,
            "order_amount": float(amount),
            "order_currency": currency,
            "customer_details": {
                "customer_id": customer_id,
                "customer_phone": config.CASHFREE_CUSTOMER_PHONE,
            },
            "order_meta": {"return_url": config.PAYMENT_RETURN_URL.format(order_id=order_id)},
        }
        headers = {"x-idempotency-key": str(uuid.uuid4())}

        try:
            response = self.client.post("/orders", json=payload, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            log.error(f"[Order: {order_id}] Payment gateway timeout while creating the session: {e}")
            raise UpstreamError("Payment gateway timed out") from e
        except httpx.HTTPStatusError as e:
            log.error(f"[Order: {order_id}] Payment gateway refused the order "
                      f"(HTTP {e.response.status_code}): {e.response.text}")
            raise UpstreamError("Payment gateway refused the order") from e
        except httpx.HTTPError as e:
            log.error(f"[Order: {order_id}] Payment gateway unreachable: {e}")
            raise UpstreamError("Payment gateway unreachable") from e

        try:
            data = response.json()
        except ValueError as e:
            log.error(f"[Order: {order_id}] Payment gateway answered with a malformed body: {response.text[:200]}")
            raise UpstreamError("Payment gateway returned a malformed answer") from e
        if not isinstance(data, dict) or not data.get("payment_session_id"):
            log.error(f"[Order: {order_id}] Payment gateway answered without a session: {data}")
            raise UpstreamError("Payment gateway returned no payment session")
        return data

    def fetch_order_status(self, order_id: str) -> str:
        """
        Reads the gateway status of an order ('PAID', 'ACTIVE', 'EXPIRED', ...).

        Transport errors and 5xx answers are retried up to `verify_attempts`
        times with exponential backoff.

        Raises:
            UpstreamError: Still failing after the last attempt, a 4xx answer or a
                malformed body.
        """
        delay = self.verify_backoff
        for attempt in range(1, self.verify_attempts + 1):
            try:
                response = self.client.get(f"/orders/{order_id}")
                if response.status_code >= 500:
                    raise httpx.HTTPStatusError(
                        f"gateway error {response.status_code}", request=response.request, response=response
                    )
                response.raise_for_status()
                data = response.json()
                if not isinstance(data, dict):
                    raise ValueError(f"unexpected body {data!r}")
                return str(data.get("order_status", "")).upper()
            except ValueError as e:
                log.error(f"[Order: {order_id}] Gateway status read returned a malformed body: {e}")
                raise UpstreamError("Payment gateway returned a malformed answer") from e
            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    log.error(f"[Order: {order_id}] Gateway status read rejected (HTTP {e.response.status_code}).")
                    raise UpstreamError("Payment gateway rejected the status request") from e
                error = e
            except httpx.HTTPError as e:
                error = e

            log.warning(f"[Order: {order_id}] Gateway status read failed "
                        f"(attempt {attempt}/{self.verify_attempts}): {error}")
            if attempt < self.verify_attempts and delay:
                time.sleep(delay)
                delay *= 2

        raise UpstreamError("Payment gateway unreachable")


# --- Storefront Client (REST) ---
class StorefrontClient:
    """
    Client for the storefront REST API.
    Forwards the caller identity as X-User-Id / X-User-Role headers and maps
    error answers back to the storefront exception types.
    """
    def __init__(self, base_url="http://localhost:5000", user_id=None, role="user", http_client=None):
        """
        Args:
            base_url (str): API base URL (ignored when http_client is given).
            user_id (str, optional): Identity of the logged-in user.
            role (str): 'user' or 'admin'.
            http_client (httpx.Client, optional): Preconfigured client, e.g. a FastAPI TestClient.
        """
        self.client = http_client or httpx.Client(base_url=base_url, timeout=httpx.Timeout(5.0, read=8.0))
        self.user_id = user_id
        self.role = role

    def close(self):
        self.client.close()

    def _headers(self) -> dict:
        if not self.user_id:
            return {}
        return {"X-User-Id": self.user_id, "X-User-Role": self.role}

    def _request(self, method, url, **kwargs):
        try:
            response = self.client.request(method, url, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            log.error(f"Storefront API unreachable ({method} {url}): {e}")
            raise UpstreamError("Storefront API unreachable") from e

        if response.status_code < 400:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = {}
        message = body.get("message") or body.get("detail") or response.text
        issues = body.get("issues")
        status = response.status_code
        if status == 409:
            raise AvailabilityError(message, issues)
        if status in (400, 422):
            raise InvalidCompositionError(str(message), issues)
        if status == 401:
            raise AuthError(message)
        if status == 403:
            raise ForbiddenError(message)
        if status == 404:
            raise NotFoundError(message)
        if status >= 500:
            raise UpstreamError(message)
        error = StorefrontError(message)
        error.status_code = status
        raise error

    # Catalog & menu
    def customize_options(self) -> dict:
        return self._request("GET", "/api/customize")

    def quote(self, composition: dict) -> dict:
        return self._request("POST", "/api/customize/quote", json=composition)

    def pizzas(self) -> list:
        return self._request("GET", "/api/pizzas")

    # Checkout
    def create_order(self, payload: dict) -> dict:
        return self._request("POST", "/api/orders", json=payload)

    def verify_payment(self, order_id: str) -> dict:
        return self._request("POST", "/api/payments/verify", json={"orderId": order_id})

    def my_orders(self) -> list:
        return self._request("GET", "/api/orders/mine")

    # Admin
    def inventory_variants(self) -> dict:
        return self._request("GET", "/api/inventory/variants")

    def save_inventory_variants(self, payload: dict) -> dict:
        return self._request("PUT", "/api/inventory/variants", json=payload)

    def create_pizza(self, payload: dict) -> dict:
        return self._request("POST", "/api/pizzas", json=payload)

    def delete_pizza(self, pizza_id: str) -> dict:
        return self._request("DELETE", f"/api/pizzas/{pizza_id}")

    def all_orders(self) -> list:
        return self._request("GET", "/api/orders")

    def set_order_status(self, order_id: str, status: str) -> dict:
        return self._request("PATCH", f"/api/orders/{order_id}/status", json={"status": status})
