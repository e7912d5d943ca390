"""
Service error code -> HTTP status mapping shared by the marketplace views.
"""

from rest_framework import status
from rest_framework.response import Response

from marketplace.services import ErrorCodes, ServiceResult


ERROR_STATUS = {
    # Input problems, fixable by the caller
    ErrorCodes.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_QUANTITY: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.CART_EMPTY: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.MISSING_SELLER: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.INVALID_SHIPPING_INFO: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.BELOW_MINIMUM_PURCHASE: status.HTTP_400_BAD_REQUEST,
    ErrorCodes.UNSUPPORTED_CURRENCY: status.HTTP_400_BAD_REQUEST,
    # Not found / not yours
    ErrorCodes.PRODUCT_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PRODUCT_INACTIVE: status.HTTP_404_NOT_FOUND,
    ErrorCodes.ITEM_NOT_IN_CART: status.HTTP_404_NOT_FOUND,
    ErrorCodes.CART_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.ORDER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorCodes.NOT_ORDER_OWNER: status.HTTP_404_NOT_FOUND,
    ErrorCodes.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    # State conflicts
    ErrorCodes.INSUFFICIENT_STOCK: status.HTTP_409_CONFLICT,
    ErrorCodes.INVALID_ORDER_STATE: status.HTTP_409_CONFLICT,
    ErrorCodes.CONCURRENCY_EXHAUSTED: status.HTTP_409_CONFLICT,
    ErrorCodes.CHECKOUT_ID_CONFLICT: status.HTTP_409_CONFLICT,
    # Payment
    ErrorCodes.PAYMENT_DECLINED: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorCodes.PAYMENT_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorCodes.PAYMENT_UNAVAILABLE: status.HTTP_503_SERVICE_UNAVAILABLE,
    # Outcome unknown: the client must retry with the same checkout id
    ErrorCodes.SETTLEMENT_OUTCOME_UNKNOWN: status.HTTP_202_ACCEPTED,
}


def error_response(result: ServiceResult, **extra) -> Response:
    """Render a failed ServiceResult with the status its error code maps to."""
    body = {"error": result.error, "detail": result.error_detail}
    body.update(extra)
    return Response(body, status=ERROR_STATUS.get(result.error, status.HTTP_500_INTERNAL_SERVER_ERROR))
