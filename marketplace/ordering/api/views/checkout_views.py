from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import (
    CheckoutResponseSerializer,
    ErrorResponseSerializer,
    OutcomeUnknownResponseSerializer,
)
from marketplace.ordering.api.serializers import CheckoutRequestSerializer
from marketplace.ordering.domain.services import CheckoutService
from marketplace.services import ErrorCodes


class CheckoutView(APIView):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CheckoutService:
        return container.checkout_service()

    @extend_schema(
        operation_id="checkout_create",
        summary="Check out the cart",
        description="""
        **What it receives:**
        - `shipping_info`: name, email, phone, address, city, postal_code, country
        - `checkout_id` (optional): idempotency token; send the same one when retrying
        - `currency` (optional): charge currency (defaults to NGN)
        - `payment_method` (optional): payment method token

        **What it returns:**
        - One order id per seller in the cart
        - `warning` when the confirmation email may be delayed

        A `202` means the outcome is unknown: retry with the same `checkout_id`.
        """,
        request=CheckoutRequestSerializer,
        responses={
            201: OpenApiResponse(response=CheckoutResponseSerializer, description="Checkout settled"),
            200: OpenApiResponse(response=CheckoutResponseSerializer, description="Checkout was already settled"),
            202: OpenApiResponse(response=OutcomeUnknownResponseSerializer, description="Outcome unknown, retry"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid cart or shipping info"),
            402: OpenApiResponse(response=ErrorResponseSerializer, description="Payment declined"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Insufficient stock or busy"),
            503: OpenApiResponse(response=ErrorResponseSerializer, description="Payment processor unavailable"),
        },
        tags=["Marketplace - Checkout"],
    )
    def post(self, request):
        serializer = CheckoutRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": ErrorCodes.VALIDATION_ERROR, "detail": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        data = serializer.validated_data
        checkout_id = data.get("checkout_id") or CheckoutService.new_checkout_id()

        result = self.get_service().checkout(
            None,
            str(request.user.pk),
            dict(data["shipping_info"]),
            checkout_id=checkout_id,
            currency=data.get("currency"),
            payment_method=data.get("payment_method"),
        )

        if not result.ok:
            return error_response(result, checkout_id=checkout_id)

        checkout = result.value
        return Response(
            checkout.to_dict(),
            status=status.HTTP_200_OK if checkout.already_settled else status.HTTP_201_CREATED,
        )
