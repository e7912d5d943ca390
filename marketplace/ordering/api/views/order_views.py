from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer
from marketplace.ordering.api.serializers import OrderSerializer, OrderStatusUpdateSerializer
from marketplace.ordering.domain.services import OrderService
from marketplace.services import ErrorCodes


class OrderViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> OrderService:
        return container.order_service()

    @extend_schema(
        operation_id="orders_list",
        summary="List the user's orders",
        description="""
        **What it receives:**
        - `role` (query, optional): `buyer` (default) or `seller`
        - `status` (query, optional): status filter

        **What it returns:**
        - Orders newest first, with items
        """,
        parameters=[
            OpenApiParameter(name="role", type=str, description="buyer or seller"),
            OpenApiParameter(name="status", type=str, description="Filter by order status"),
        ],
        responses={
            200: OpenApiResponse(response=OrderSerializer(many=True), description="Orders retrieved"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Unknown role or status"),
        },
        tags=["Marketplace - Orders"],
    )
    def list(self, request):
        result = self.get_service().list_orders(
            str(request.user.pk),
            role=request.query_params.get("role", "buyer"),
            status=request.query_params.get("status"),
        )
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_retrieve",
        summary="Get order details",
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Order retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
        },
        tags=["Marketplace - Orders"],
    )
    def retrieve(self, request, pk=None):
        result = self.get_service().get_order(pk, str(request.user.pk))
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_by_checkout",
        summary="List the orders of one checkout",
        parameters=[OpenApiParameter(name="checkout_id", type=str, required=True)],
        responses={
            200: OpenApiResponse(response=OrderSerializer(many=True), description="Orders retrieved"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="No orders for checkout"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=False, methods=["get"], url_path="by-checkout")
    def by_checkout(self, request):
        checkout_id = request.query_params.get("checkout_id")
        if not checkout_id:
            return Response(
                {"error": ErrorCodes.INVALID_INPUT, "detail": "checkout_id is required"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = self.get_service().list_checkout_orders(checkout_id, str(request.user.pk))
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="orders_update_status",
        summary="Move an order along fulfilment (seller only)",
        description="""
        **What it receives:**
        - `status`: `shipped`, `delivered` or `cancelled`

        Allowed moves: pending-approval -> shipped -> delivered, pending-approval -> cancelled.
        """,
        request=OrderStatusUpdateSerializer,
        responses={
            200: OpenApiResponse(response=OrderSerializer, description="Status updated"),
            403: OpenApiResponse(response=ErrorResponseSerializer, description="Not the seller"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Order not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Transition not allowed"),
        },
        tags=["Marketplace - Orders"],
    )
    @action(detail=True, methods=["patch"], url_path="status")
    def update_status(self, request, pk=None):
        serializer = OrderStatusUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {"error": ErrorCodes.VALIDATION_ERROR, "detail": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        result = self.get_service().update_status(pk, serializer.validated_data["status"], str(request.user.pk))
        if not result.ok:
            return error_response(result)
        return Response(OrderSerializer(result.value).data, status=status.HTTP_200_OK)
