"""
main.py — FastAPI Entry Point for the Pizza Storefront

This module provides the REST API of the storefront: catalog and menu reads,
the custom pizza quote, checkout with payment verification, the caller's order
history and the admin console endpoints (inventory, menu, order status).

Responsibilities:
    • Expose the catalog with the derived availability flag
    • Price compositions and orders authoritatively on the server
    • Create orders and payment sessions, reconcile payments
    • Map storefront errors to JSON responses {"message": ...}
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, Header, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from . import config
from . import database
from . import workflow
from .availability import composition_issues
from .clients import PaymentClient
from .errors import AuthError, ForbiddenError, NotFoundError, PaymentVerificationError, StorefrontError
from .logging_config import get_logger, setup_logging
from .models import (
    Composition,
    InventoryUpdate,
    NewOrderRequest,
    PizzaCreate,
    StatusUpdate,
    User,
    VerifyRequest,
)
from .pricing import price_breakdown

# Initialization
setup_logging()
log = get_logger(__name__)
app = FastAPI(title="Pizza Storefront API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.ALLOWED_ORIGINS if config.is_production() else ["*"],
    allow_credentials=config.is_production(),
    allow_methods=["*"],
    allow_headers=["*"],
)

_payment_client = None


# --- Dependencies ---

def get_payment_client() -> PaymentClient:
    global _payment_client
    if _payment_client is None:
        _payment_client = PaymentClient()
    return _payment_client


def current_user(
        x_user_id: Optional[str] = Header(None),
        x_user_role: Optional[str] = Header(None),
) -> User:
    """
    Resolves the caller from the identity headers set by the auth layer.

    Raises:
        AuthError: No identity was forwarded.
    """
    if not x_user_id:
        raise AuthError("Login required")
    return User(id=x_user_id, role=x_user_role or "user")


def require_admin(user: User = Depends(current_user)) -> User:
    if not user.is_admin:
        raise ForbiddenError("Admin access required")
    return user


# --- Error handling ---

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    if exc.status_code >= 500:
        log.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    log.error(f"{request.method} {request.url.path} database error: {exc}")
    return JSONResponse(status_code=502, content={"message": "Database unavailable"})


# --- Startup ---

@app.on_event("startup")
def on_startup():
    """Seeds the default catalog and menu when the collections are empty."""
    log.info("Pizza storefront starting...")
    try:
        database.seed_defaults(database.get_db())
    except PyMongoError as e:
        log.warning(f"Seeding skipped, database not reachable: {e}")


# --- Routes ---

@app.get("/api/health")
def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/customize")
def customize_options(db=Depends(database.get_db)):
    """Variants grouped by category, each with its current 'disabled' flag."""
    return database.load_catalog(db).to_payload()


@app.post("/api/customize/quote")
def customize_quote(composition: Composition, db=Depends(database.get_db)):
    """
    Prices a composition with the authoritative engine.

    Invalid compositions are still priced (live estimate); 'valid' and 'issues'
    tell whether it could be added to a cart.
    """
    catalog = database.load_catalog(db)
    breakdown = price_breakdown(composition, catalog)
    issues = composition_issues(composition, catalog)
    return {
        "price": float(breakdown["total"]),
        "breakdown": {key: float(value) for key, value in breakdown.items()},
        "valid": not issues,
        "issues": issues,
    }


@app.get("/api/pizzas")
def list_pizzas(db=Depends(database.get_db)):
    return [
        {
            "id": p["id"],
            "name": p["name"],
            "price": p["price"],
            "description": p.get("description"),
            "imageUrl": p.get("imageUrl"),
        }
        for p in database.list_pizzas(db)
    ]


@app.post("/api/pizzas", status_code=201)
def create_pizza(payload: PizzaCreate, admin: User = Depends(require_admin), db=Depends(database.get_db)):
    pizza = database.create_pizza(db, payload.model_dump())
    log.info(f"[Admin: {admin.id}] Menu pizza '{pizza['name']}' created ({pizza['id']}).")
    return pizza


@app.delete("/api/pizzas/{pizza_id}")
def delete_pizza(pizza_id: str, admin: User = Depends(require_admin), db=Depends(database.get_db)):
    if not database.delete_pizza(db, pizza_id):
        raise NotFoundError(f"Pizza {pizza_id} not found")
    log.info(f"[Admin: {admin.id}] Menu pizza {pizza_id} deleted.")
    return {"deleted": pizza_id}


@app.get("/api/inventory/variants")
def inventory_variants(admin: User = Depends(require_admin), db=Depends(database.get_db)):
    return database.load_catalog(db).to_payload(include_inventory=True)


@app.put("/api/inventory/variants")
@app.post("/api/inventory/variants")
def save_inventory_variants(
        update: InventoryUpdate,
        admin: User = Depends(require_admin),
        db=Depends(database.get_db),
):
    """Bulk rewrite of stock/threshold; answers with the refreshed admin view."""
    result = database.save_inventory(db, update)
    log.info(f"[Admin: {admin.id}] Variant inventory saved.")
    return dict(result, variants=database.load_catalog(db).to_payload(include_inventory=True))


@app.post("/api/orders", status_code=201)
def submit_order(
        order: NewOrderRequest,
        user: User = Depends(current_user),
        db=Depends(database.get_db),
        payment_client: PaymentClient = Depends(get_payment_client),
):
    """
    Checkout: re-prices the cart, persists the order and opens a payment session.

    Returns:
        dict: orderId, sessionHandle, total and currency.
    """
    return workflow.create_order(db, payment_client, user, order)


@app.get("/api/orders/mine")
def my_orders(user: User = Depends(current_user), db=Depends(database.get_db)):
    return database.list_orders(db, user_id=user.id)


@app.get("/api/orders")
def all_orders(admin: User = Depends(require_admin), db=Depends(database.get_db)):
    return database.list_orders(db)


@app.patch("/api/orders/{order_id}/status")
@app.put("/api/orders/{order_id}/status")
def update_order_status(
        order_id: str,
        update: StatusUpdate,
        admin: User = Depends(require_admin),
        db=Depends(database.get_db),
):
    return workflow.set_order_status(db, order_id, update.status)


def _verify(db, payment_client, user, order_id):
    try:
        return workflow.verify_payment(db, payment_client, user, order_id)
    except PaymentVerificationError as e:
        return {"success": False, "orderId": order_id, "status": "payment_pending",
                "gatewayStatus": e.gateway_status, "retryable": True}


@app.post("/api/payments/verify")
def verify_payment_post(
        body: VerifyRequest,
        user: User = Depends(current_user),
        db=Depends(database.get_db),
        payment_client: PaymentClient = Depends(get_payment_client),
):
    return _verify(db, payment_client, user, body.orderId)


@app.get("/api/payments/verify")
def verify_payment_get(
        orderId: str,
        user: User = Depends(current_user),
        db=Depends(database.get_db),
        payment_client: PaymentClient = Depends(get_payment_client),
):
    return _verify(db, payment_client, user, orderId)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
