from decimal import Decimal

from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from marketplace.tests.factories import SellerWalletFactory, UserFactory
from payment_system.models import LedgerEntry


class SellerWalletAPITest(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.seller = UserFactory()
        self.client.force_authenticate(user=self.seller)
        self.url = reverse("payment_system:seller_wallet")

    def test_unpaid_seller_gets_zero_balance(self):
        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(Decimal(response.data["available_balance"]), Decimal("0.00"))
        self.assertEqual(response.data["recent_entries"], [])

    def test_balance_and_entries(self):
        SellerWalletFactory(seller_id=str(self.seller.pk), available_balance=Decimal("1710.00"))
        LedgerEntry.objects.create(
            checkout_id="chk_api_0001",
            order_id="chk_api_0001-S1",
            seller_id=str(self.seller.pk),
            buyer_id="buyer_B",
            amount=Decimal("2000.00"),
            seller_amount=Decimal("1710.00"),
            admin_fees=Decimal("290.00"),
            payment_reference="pi_test_1",
        )

        response = self.client.get(self.url)

        self.assertEqual(Decimal(response.data["available_balance"]), Decimal("1710.00"))
        self.assertEqual(len(response.data["recent_entries"]), 1)
        self.assertEqual(Decimal(response.data["recent_entries"][0]["seller_amount"]), Decimal("1710.00"))

    def test_requires_authentication(self):
        self.client.force_authenticate(user=None)

        response = self.client.get(self.url)

        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))
