"""
mock_payment_service.py — Mock Implementation of the Payment Gateway (Cashfree PG REST API)

This module provides a simulated payment gateway for running the storefront
locally. It exposes a small FastAPI application with the subset of the
Cashfree PG API the storefront uses, plus one endpoint standing in for the
hosted checkout page.

Simulation Scenarios:
    • Successful payment (hosted checkout completed with outcome "success")
    • Failed payment (outcome "failure") — the order stays ACTIVE, never PAID
    • Gateway refusal (customer_id starting with "decline_") — HTTP 400 on order creation

Endpoints:
    POST /pg/orders                      — Creates a gateway order with a payment session.
    GET  /pg/orders/{order_id}           — Returns the order and its order_status.
    POST /pg/orders/{order_id}/checkout  — Simulates the hosted checkout result.

Port:
    Default: 8001 (HTTP)
"""

import logging
import uuid
from typing import Optional

from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel

app = FastAPI(title="Mock Payment Gateway")
logging.basicConfig(level=logging.INFO)

ORDERS = {}


class CustomerDetails(BaseModel):
    customer_id: str
    customer_phone: Optional[str] = None


class CreateOrderRequest(BaseModel):
    """
    Gateway order creation payload.

    Attributes:
        order_id (str): Merchant order id (the storefront order id).
        order_amount (float): Amount in major currency units.
        order_currency (str): ISO 4217 currency code.
        customer_details (CustomerDetails): Paying customer.
    """
    order_id: str
    order_amount: float
    order_currency: str
    customer_details: CustomerDetails
    order_meta: Optional[dict] = None


class CheckoutResult(BaseModel):
    outcome: str = "success"


@app.post("/pg/orders")
def create_order(
        request: CreateOrderRequest,
        x_client_id: str = Header(...),
        idempotency_key: Optional[str] = Header(None, alias="x-idempotency-key"),
):
    """
    Creates a gateway order and issues a payment session id.

    Raises:
        HTTPException(400): customer_id starts with "decline_".
        HTTPException(409): The order id already exists.
    """
    logging.info(f"[PG] Order request {request.order_id} from {x_client_id} (Idempotency: {idempotency_key})")

    if request.customer_details.customer_id.startswith("decline_"):
        logging.warning(f"[PG] Order {request.order_id} refused.")
        raise HTTPException(status_code=400, detail={"code": "order_refused", "message": "Customer refused."})

    if request.order_id in ORDERS:
        raise HTTPException(status_code=409, detail={"code": "order_already_exists"})

    order = {
        "cf_order_id": str(uuid.uuid4().int)[:10],
        "order_id": request.order_id,
        "order_amount": request.order_amount,
        "order_currency": request.order_currency,
        "order_status": "ACTIVE",
        "payment_session_id": f"session_{uuid.uuid4().hex}",
    }
    ORDERS[request.order_id] = order
    return order


@app.get("/pg/orders/{order_id}")
def get_order(order_id: str):
    order = ORDERS.get(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail={"code": "order_not_found"})
    return order


@app.post("/pg/orders/{order_id}/checkout")
def complete_checkout(order_id: str, result: CheckoutResult):
    """Stands in for the hosted checkout: 'success' marks the order PAID."""
    order = get_order(order_id)
    if result.outcome == "success":
        order["order_status"] = "PAID"
        logging.info(f"[PG] Order {order_id} paid.")
    else:
        logging.warning(f"[PG] Payment for {order_id} failed.")
    return order


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
