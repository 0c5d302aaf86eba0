"""
workflow.py — Checkout and payment reconciliation

This module contains the server-side order logic. It coordinates the database
and the payment gateway in the correct sequence.

Workflow Overview:
1. Re-price every cart line authoritatively against a fresh catalog snapshot
2. Persist the order in status payment_pending with the fixed total
3. Obtain a payment session from the gateway (order id is the join key)
4. Verify the payment by order id and advance the order to order_received
"""

from decimal import Decimal

from . import config
from . import database
from .availability import ensure_orderable
from .clients import PAID
from .errors import InvalidCompositionError, NotFoundError, PaymentVerificationError, UpstreamError
from .logging_config import get_logger
from .models import INITIAL_STATUS, OrderStatus, Pizza
from .pricing import line_total, price_composition, price_menu_pizza, round_price

log = get_logger(__name__)


def price_order_items(db, items) -> tuple:
    """
    Prices the requested lines against the current catalog and menu.

    Args:
        db: Database handle.
        items (List[OrderItemRequest]): Validated checkout lines.

    Returns:
        tuple: (list of item snapshots to persist, Decimal total).

    Raises:
        InvalidCompositionError: Unknown menu pizza, missing slot or unknown variant.
        AvailabilityError: A selected variant is disabled in the current snapshot.
    """
    catalog = database.load_catalog(db)
    snapshots = []
    total = Decimal("0")

    for index, item in enumerate(items):
        if item.pizza is not None:
            pizza = database.get_pizza(db, item.pizza)
            if pizza is None:
                raise InvalidCompositionError(
                    f"Unknown pizza '{item.pizza}'",
                    [{"slot": "pizza", "reason": "unknown", "id": item.pizza, "item": index}],
                )
            unit = price_menu_pizza(Pizza(**pizza))
            snapshots.append({
                "pizza": pizza["id"],
                "name": pizza["name"],
                "price": float(unit),
                "quantity": item.quantity,
            })
        else:
            ensure_orderable(item.custom, catalog, authoritative=True)
            unit = price_composition(item.custom, catalog)
            snapshots.append({
                "custom": item.custom.model_dump(),
                "name": "Custom Pizza",
                "price": float(unit),
                "quantity": item.quantity,
            })
        total += line_total(unit, item.quantity)

    return snapshots, round_price(total)


def create_order(db, payment_client, user, request) -> dict:
    """
    Creates an order and its payment session.

    The client-supplied amount is compared against the authoritative total but
    never charged. If the gateway cannot create a session the pending order is
    removed again, so a failed checkout leaves neither order nor charge.

    Args:
        db: Database handle.
        payment_client (PaymentClient): Gateway client.
        user (User): Authenticated caller.
        request (NewOrderRequest): Validated checkout payload.

    Returns:
        dict: orderId, sessionHandle, total and currency of the charge.

    Raises:
        InvalidCompositionError / AvailabilityError: The cart cannot be ordered.
        UpstreamError: The gateway could not create a payment session.
    """
    log.info(f"[User: {user.id}] Checkout with {len(request.items)} lines started.")
    items, total = price_order_items(db, request.items)

    if request.amount is not None and round_price(request.amount) != total:
        log.warning(f"[User: {user.id}] Client total {request.amount} differs from "
                    f"authoritative total {total}. Charging {total}.")
    if request.currency.upper() != config.PAYMENT_CURRENCY:
        log.info(f"[User: {user.id}] Display currency {request.currency} requested, "
                 f"charging in {config.PAYMENT_CURRENCY}.")

    now = database.utcnow()
    order = {
        "user": user.id,
        "items": items,
        "address": request.address,
        "currency": config.PAYMENT_CURRENCY,
        "total": float(total),
        "clientAmount": request.amount,
        "status": INITIAL_STATUS.value,
        "payment": {"gateway": "cashfree", "status": "CREATED"},
        "createdAt": now,
        "updatedAt": now,
    }
    order_id = database.insert_order(db, order)
    log_prefix = f"[Order: {order_id}]"
    log.info(f"{log_prefix} Created in {INITIAL_STATUS.value}, total {total} {config.PAYMENT_CURRENCY}.")

    try:
        session = payment_client.create_order(
            order_id=order_id,
            amount=total,
            currency=config.PAYMENT_CURRENCY,
            customer_id=user.id,
        )
    except UpstreamError:
        log.error(f"{log_prefix} No payment session. Removing pending order.")
        database.delete_order(db, order_id)
        raise

    session_handle = session["payment_session_id"]
    database.update_order(db, order_id, {
        "payment.status": "ACTIVE",
        "payment.sessionHandle": session_handle,
        "payment.gatewayOrderId": session.get("cf_order_id"),
    })
    log.info(f"{log_prefix} Payment session issued.")

    return {
        "orderId": order_id,
        "sessionHandle": session_handle,
        "total": float(total),
        "currency": config.PAYMENT_CURRENCY,
    }


def get_visible_order(db, user, order_id) -> dict:
    order = database.get_order(db, order_id)
    if order is None or (order.get("user") != user.id and not user.is_admin):
        raise NotFoundError(f"Order {order_id} not found")
    return order


def verify_payment(db, payment_client, user, order_id) -> dict:
    """
    Reconciles the gateway result of an order.

    Orders already past payment_pending are reported as successful without
    another gateway call.

    Returns:
        dict: {"success": True, "orderId", "status"} when the payment is confirmed.

    Raises:
        NotFoundError: Unknown order or not visible to the caller.
        PaymentVerificationError: The gateway does not report the order as paid;
            the order stays payment_pending and the check can be retried.
        UpstreamError: The gateway could not be reached.
    """
    log_prefix = f"[Order: {order_id}]"
    order = get_visible_order(db, user, order_id)

    if order["status"] != OrderStatus.PAYMENT_PENDING.value:
        log.info(f"{log_prefix} Already reconciled (status {order['status']}).")
        return {"success": True, "orderId": order_id, "status": order["status"]}

    gateway_status = payment_client.fetch_order_status(order_id)
    if gateway_status != PAID:
        log.warning(f"{log_prefix} Payment not confirmed (gateway status {gateway_status}). "
                    f"Order stays {OrderStatus.PAYMENT_PENDING.value}.")
        database.update_order(db, order_id, {"payment.status": gateway_status})
        raise PaymentVerificationError("Payment not completed", order_id=order_id, gateway_status=gateway_status)

    payment_fields = {"payment.status": PAID, "payment.verifiedAt": database.utcnow()}
    updated = database.update_order(
        db, order_id,
        dict(payment_fields, status=OrderStatus.ORDER_RECEIVED.value),
        expected_status=OrderStatus.PAYMENT_PENDING.value,
    )
    if updated is None:
        # Status changed since the read; record the payment but keep that status.
        updated = database.update_order(db, order_id, payment_fields)
        log.info(f"{log_prefix} Payment verified. Status already {updated['status']}, left unchanged.")
        return {"success": True, "orderId": order_id, "status": updated["status"]}

    log.info(f"{log_prefix} Payment verified. Status {OrderStatus.ORDER_RECEIVED.value}.")
    return {"success": True, "orderId": order_id, "status": updated["status"]}


def set_order_status(db, order_id, status: OrderStatus) -> dict:
    """
    Applies an admin status change.

    Any of the five statuses is accepted from any current status, including
    backward moves; only the target value itself is validated.
    """
    order = database.get_order(db, order_id)
    if order is None:
        raise NotFoundError(f"Order {order_id} not found")

    updated = database.update_order(db, order_id, {"status": status.value})
    log.info(f"[Order: {order_id}] Status {order['status']} -> {status.value} (admin).")
    return updated
