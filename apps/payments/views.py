"""
Payment views for administrators
"""
import logging

from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAdminUser
from drf_spectacular.utils import extend_schema, OpenApiResponse

from apps.bookings.serializers import BookingSerializer
from apps.core.serializers import ErrorResponseSerializer
from .models import PaymentTransaction
from .serializers import StuckPaymentSerializer
from .stuck_payments import stuck_payment_service

logger = logging.getLogger(__name__)


class StuckPaymentViewSet(viewsets.GenericViewSet,
                          mixins.ListModelMixin,
                          mixins.RetrieveModelMixin):
    """
    Payments collected for cancelled bookings, waiting for an administrator.
    """
    permission_classes = [IsAdminUser]
    serializer_class = StuckPaymentSerializer

    def get_queryset(self):
        # Handle schema generation
        if getattr(self, 'swagger_fake_view', False):
            return PaymentTransaction.objects.none()
        return stuck_payment_service.queryset().order_by('-updated_at')

    @extend_schema(
        summary="List stuck payments",
        responses={200: StuckPaymentSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        summary="Get stuck payment",
        responses={200: StuckPaymentSerializer, 404: OpenApiResponse(description="No such stuck payment")},
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    @extend_schema(
        summary="Rebook",
        description="""
        Restore the cancelled booking the payment was made for and
        notify the client and the instructor.
        """,
        request=None,
        responses={
            200: BookingSerializer,
            404: OpenApiResponse(description="Payment not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Not stuck, or the time is taken"),
        },
    )
    @action(detail=True, methods=['post'])
    def rebook(self, request, pk=None):
        booking = stuck_payment_service.rebook(pk, rebooked_by=request.user.get_username())
        return Response(BookingSerializer(booking).data)

    @extend_schema(
        summary="Refund",
        description="Return the money through the payment gateway.",
        request=None,
        responses={
            202: StuckPaymentSerializer,
            404: OpenApiResponse(description="Payment not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Payment is not stuck"),
        },
    )
    @action(detail=True, methods=['post'])
    def refund(self, request, pk=None):
        payment_transaction = stuck_payment_service.refund(pk, requested_by=request.user.get_username())
        return Response(StuckPaymentSerializer(payment_transaction).data, status=status.HTTP_202_ACCEPTED)
