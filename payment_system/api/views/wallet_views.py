import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from payment_system.api.serializers import SellerWalletSerializer
from payment_system.models import SellerWallet


logger = logging.getLogger(__name__)


@extend_schema(
    operation_id="seller_wallet",
    summary="Get the authenticated seller's wallet",
    description="""
    **What it receives:**
    - Authentication token (header)

    **What it returns:**
    - Available and pending balance in the settlement currency
    - The most recent ledger entries credited to the wallet

    A seller who has never been paid gets a zero balance.
    """,
    responses={
        200: OpenApiResponse(response=SellerWalletSerializer, description="Wallet retrieved"),
    },
    tags=["Payments - Wallet"],
)
@api_view(["GET"])
@permission_classes([IsAuthenticated])
def seller_wallet(request):
    seller_id = str(request.user.pk)
    wallet = SellerWallet.objects.filter(seller_id=seller_id).first()
    if wallet is None:
        # Unsaved instance; nothing is written on read
        wallet = SellerWallet(seller_id=seller_id)

    logger.debug(f"Wallet read for seller {seller_id}")
    return Response(SellerWalletSerializer(wallet).data, status=status.HTTP_200_OK)
