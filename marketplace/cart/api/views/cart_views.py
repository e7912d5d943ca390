from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from infrastructure.container import container  # For DI
from marketplace.api.errors import error_response
from marketplace.api.serializers import ErrorResponseSerializer, SuccessResponseSerializer
from marketplace.cart.api.serializers import (
    AddToCartRequestSerializer,
    CartOutputSerializer,
    RemoveFromCartRequestSerializer,
    UpdateCartRequestSerializer,
)
from marketplace.cart.domain.services import CartService
from marketplace.services import ErrorCodes


class CartViewSet(viewsets.ViewSet):
    permission_classes = [IsAuthenticated]

    def get_service(self) -> CartService:
        # Inject CartService via DI container
        return container.cart_service()

    @staticmethod
    def _invalid(serializer):
        return Response(
            {"error": ErrorCodes.VALIDATION_ERROR, "detail": serializer.errors}, status=status.HTTP_400_BAD_REQUEST
        )

    @staticmethod
    def _cart_response(result):
        if not result.ok:
            return error_response(result)
        return Response(CartOutputSerializer(result.value).data, status=status.HTTP_200_OK)

    @extend_schema(
        operation_id="cart_get",
        summary="Get user's shopping cart",
        description="""
        **What it receives:**
        - Authentication token (header)

        **What it returns:**
        - Cart items with product details
        - Subtotal and item count
        """,
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Cart retrieved successfully"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Cart"],
    )
    def list(self, request):
        return self._cart_response(self.get_service().get_cart(str(request.user.pk)))

    @extend_schema(
        operation_id="cart_add_item",
        summary="Add item to cart",
        description="""
        **What it receives:**
        - `product_id` (UUID): Product to add
        - `quantity` (integer, optional): Quantity to add (default: 1)

        **What it returns:**
        - Updated cart
        """,
        request=AddToCartRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Item added successfully"),
            400: OpenApiResponse(response=ErrorResponseSerializer, description="Invalid data or no seller"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Product not found"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Insufficient stock"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["post"])
    def add_item(self, request):
        serializer = AddToCartRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        result = self.get_service().add_to_cart(
            str(request.user.pk), str(serializer.validated_data["product_id"]), serializer.validated_data["quantity"]
        )
        return self._cart_response(result)

    @extend_schema(
        operation_id="cart_update_item",
        summary="Update item quantity in cart",
        description="""
        **What it receives:**
        - `product_id` (UUID): Product to update
        - `quantity` (integer): New quantity (0 to remove item)
        """,
        request=UpdateCartRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Item updated successfully"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart"),
            409: OpenApiResponse(response=ErrorResponseSerializer, description="Insufficient stock"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["patch"])
    def update_item(self, request):
        serializer = UpdateCartRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        buyer_id = str(request.user.pk)
        product_id = str(serializer.validated_data["product_id"])
        quantity = serializer.validated_data["quantity"]

        service = self.get_service()
        if quantity == 0:
            return self._cart_response(service.remove_from_cart(buyer_id, product_id))
        return self._cart_response(service.update_quantity(buyer_id, product_id, quantity))

    @extend_schema(
        operation_id="cart_remove_item",
        summary="Remove item from cart",
        request=RemoveFromCartRequestSerializer,
        responses={
            200: OpenApiResponse(response=CartOutputSerializer, description="Item removed"),
            404: OpenApiResponse(response=ErrorResponseSerializer, description="Item not in cart"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["delete"])
    def remove_item(self, request):
        serializer = RemoveFromCartRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return self._invalid(serializer)

        result = self.get_service().remove_from_cart(str(request.user.pk), str(serializer.validated_data["product_id"]))
        return self._cart_response(result)

    @extend_schema(
        operation_id="cart_clear",
        summary="Clear cart",
        responses={
            200: OpenApiResponse(response=SuccessResponseSerializer, description="Cart cleared"),
            500: OpenApiResponse(response=ErrorResponseSerializer, description="Internal server error"),
        },
        tags=["Marketplace - Cart"],
    )
    @action(detail=False, methods=["delete"])
    def clear(self, request):
        result = self.get_service().clear_cart(str(request.user.pk))
        if not result.ok:
            return error_response(result)
        return Response({"message": "Cart cleared"}, status=status.HTTP_200_OK)
