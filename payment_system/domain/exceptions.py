class SettlementError(Exception):
    """Base class for checkout and settlement exceptions."""

    code = "settlement_error"

    def __init__(self, message: str = "", **details):
        self.message = message or self.__class__.__doc__ or self.code
        self.details = details
        super().__init__(self.message)


class ValidationError(SettlementError):
    """Raised when checkout input is rejected before any I/O."""

    code = "validation_error"


class EmptyCartError(ValidationError):
    """Raised when a checkout is attempted with no items."""

    code = "cart_empty"


class MissingSellerError(ValidationError):
    """Raised when a cart item cannot be attributed to a seller."""

    code = "missing_seller"


class InvalidQuantityError(ValidationError):
    """Raised when a cart line has a non-positive quantity or unit price."""

    code = "invalid_quantity"


class CheckoutConflictError(ValidationError):
    """Raised when a checkout id is already bound to another buyer or another amount."""

    code = "checkout_id_conflict"


class ShippingValidationError(ValidationError):
    """Raised when shipping information is incomplete or malformed."""

    code = "invalid_shipping_info"

    def __init__(self, errors: dict):
        self.errors = errors
        fields = ", ".join(sorted(errors))
        super().__init__(f"Invalid shipping information: {fields}", errors=errors)


class MinimumPurchaseError(ValidationError):
    """Raised when the cart total is below the minimum purchase amount."""

    code = "below_minimum_purchase"


class InsufficientStockError(SettlementError):
    """Raised when any requested quantity exceeds current stock."""

    code = "insufficient_stock"

    def __init__(self, product_id: str, requested: int, available: int):
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for product {product_id}: requested {requested}, available {available}",
            product_id=product_id,
            requested=requested,
            available=available,
        )


class FeePolicyViolationError(SettlementError):
    """Raised when fees would leave a seller with a negative amount."""

    code = "fee_policy_violation"


class PaymentError(SettlementError):
    """Base class for payment system exceptions."""

    code = "payment_error"


class PaymentDeclinedError(PaymentError):
    """Raised when the processor refuses the charge. Never retried."""

    code = "payment_declined"

    def __init__(self, message: str = "", decline_code: str = "", reference: str = ""):
        self.decline_code = decline_code
        self.reference = reference
        super().__init__(message, decline_code=decline_code)


class PaymentTransientError(PaymentError):
    """Raised when the processor stayed unreachable after all retries."""

    code = "payment_unavailable"


class ConcurrencyExhaustedError(SettlementError):
    """Raised when settlement kept losing races to concurrent checkouts."""

    code = "concurrency_exhausted"


class SettlementOutcomeUnknownError(SettlementError):
    """Raised when settlement failed in a way that may or may not have committed."""

    code = "settlement_outcome_unknown"


class SettlementIntegrityError(SettlementError):
    """Raised when settlement broke a database constraint. Never retried; nothing was committed."""

    code = "database_error"


class NotificationError(SettlementError):
    """Base class for notification failures. Never fails a checkout."""

    code = "notification_error"


class NotificationPayloadError(NotificationError):
    """Raised when a notification payload is malformed. Never retried."""

    code = "notification_payload_invalid"


class NotificationDeliveryError(NotificationError):
    """Raised when delivery failed on every attempt."""

    code = "notification_delivery_failed"


class UnsupportedCurrencyError(ValidationError):
    """Raised when no exchange rate or minor-unit definition exists for a currency."""

    code = "unsupported_currency"
