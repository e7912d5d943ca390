from django.http import HttpResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny


@api_view(["GET"])
@permission_classes([AllowAny])
def settlement_prometheus_metrics(request):
    """
    Exposes checkout, payment, settlement and notification metrics.
    """
    return HttpResponse(generate_latest(), content_type=CONTENT_TYPE_LATEST)
