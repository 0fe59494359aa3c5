"""
Payment gateway callback endpoint.
"""
import logging
from django.http import HttpResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods

from .reconciliation import ReconciliationHandler

logger = logging.getLogger(__name__)


@csrf_exempt
@require_http_methods(["GET", "POST"])
def payment_callback(request):
    """
    Handle incoming payment gateway callbacks.

    Answers "OK" to every callback it could evaluate, including ones with
    a bad signature or an unknown order, so the gateway stops retrying.
    Only an internal failure returns 500 and leaves the gateway to
    redeliver.
    """
    if request.method == 'GET':
        return HttpResponse("OK", status=200)

    try:
        outcome = ReconciliationHandler().handle_callback(request.body, request.headers)
        logger.info(f"Payment callback handled: {outcome.action} (booking {outcome.booking_id})")
        return HttpResponse("OK", status=200)

    except Exception as e:
        logger.error(f"Error processing payment callback: {str(e)}", exc_info=True)
        return HttpResponse("Error", status=500)
