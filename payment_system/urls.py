from django.urls import path

from .api.views import seller_wallet


app_name = "payment_system"

urlpatterns = [
    # Seller wallet
    path("wallet/", seller_wallet, name="seller_wallet"),
]
