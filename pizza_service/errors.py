"""
errors.py — Exception hierarchy for the pizza storefront

Every error raised on purpose by the service derives from StorefrontError and
carries the HTTP status the API layer answers with. Pricing never raises; these
errors come from gating (composition validity, availability) and from the
collaborators (database, payment gateway).
"""


class StorefrontError(Exception):
    """Base class for all expected storefront failures."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class InvalidCompositionError(StorefrontError):
    """
    A composition or order line cannot be accepted.

    Raised when a required slot (base, sauce, cheese) is missing, when a
    selected id is unknown, or when a selected variant is disabled. `issues`
    names every failing slot so the caller can point at it.

    Attributes:
        issues (list[dict]): Entries with 'slot', 'reason' and optionally 'id'.
    """
    status_code = 400

    def __init__(self, message: str, issues=None):
        super().__init__(message)
        self.issues = list(issues or [])

    def to_dict(self) -> dict:
        return {"message": self.message, "issues": self.issues}


class AvailabilityError(InvalidCompositionError):
    """The authoritative re-check found a selected variant disabled at order time."""
    status_code = 409


class PaymentVerificationError(StorefrontError):
    """The gateway reports the payment as not completed. The order stays payment_pending."""
    status_code = 402

    def __init__(self, message: str, order_id: str = None, gateway_status: str = None):
        super().__init__(message)
        self.order_id = order_id
        self.gateway_status = gateway_status

    def to_dict(self) -> dict:
        return {"message": self.message, "orderId": self.order_id, "retryable": True}


class UpstreamError(StorefrontError):
    """Database or payment gateway unreachable or answering with a server error."""
    status_code = 502


class NotFoundError(StorefrontError):
    status_code = 404


class AuthError(StorefrontError):
    status_code = 401


class ForbiddenError(AuthError):
    status_code = 403
