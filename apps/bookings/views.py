"""
Booking views
"""
import logging

from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import AllowAny, IsAdminUser
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.filters import OrderingFilter

from apps.core.serializers import ErrorResponseSerializer
from .models import Booking
from .serializers import (
    BookingSerializer,
    BookingListSerializer,
    BookingCancelSerializer,
    BookingCreatedSerializer,
    IndividualBookingCreateSerializer,
    GroupBookingCreateSerializer,
)
from .services.cancellation import cancellation_service
from .services.reservation import ReservationCoordinator

logger = logging.getLogger(__name__)


class BookingViewSet(viewsets.GenericViewSet,
                     mixins.ListModelMixin,
                     mixins.RetrieveModelMixin):
    """
    ViewSet for bookings.

    Clients reserve through the public `individual` and `group` actions
    and are redirected to the returned payment URL. Everything else is
    for administrators.
    """
    permission_classes = [IsAdminUser]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_fields = ['status', 'kind', 'instructor', 'date']
    ordering_fields = ['date', 'created_at', 'price_total']
    ordering = ['-date', '-start_time']

    def get_permissions(self):
        if self.action in ('individual', 'group'):
            return [AllowAny()]
        return super().get_permissions()

    def get_serializer_class(self):
        if self.action == 'list':
            return BookingListSerializer
        if self.action == 'individual':
            return IndividualBookingCreateSerializer
        if self.action == 'group':
            return GroupBookingCreateSerializer
        if self.action == 'cancel':
            return BookingCancelSerializer
        return BookingSerializer

    def get_queryset(self):
        # Handle schema generation
        if getattr(self, 'swagger_fake_view', False):
            return Booking.objects.none()

        return Booking.objects.select_related(
            'client', 'instructor', 'tariff', 'slot', 'group_session', 'payment_transaction'
        )

    @staticmethod
    def _created(result):
        return Response(
            {
                'success': True,
                'booking_id': str(result.booking.id),
                'payment_url': result.payment_url,
            },
            status=status.HTTP_201_CREATED
        )

    @extend_schema(
        summary="List bookings",
        description="All bookings, newest training date first.",
        parameters=[
            OpenApiParameter('status', str, description='Filter by status'),
            OpenApiParameter('kind', str, description='individual or group'),
            OpenApiParameter('instructor', str, description='Filter by instructor UUID'),
            OpenApiParameter('date', str, description='Filter by training date (YYYY-MM-DD)'),
        ],
        responses={200: BookingListSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        summary="Get booking details",
        responses={
            200: BookingSerializer,
            404: OpenApiResponse(description="Booking not found")
        },
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    @extend_schema(
        summary="Book an individual training",
        description="""
        Hold an instructor slot and start the payment.

        The slot stays held until the payment result arrives or the hold
        expires. Redirect the client to `payment_url`.
        """,
        request=IndividualBookingCreateSerializer,
        responses={
            201: BookingCreatedSerializer,
            400: ErrorResponseSerializer,
            404: OpenApiResponse(description="Slot not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Slot is no longer available"),
            502: OpenApiResponse(ErrorResponseSerializer, description="Payment could not be started"),
        },
    )
    @action(detail=False, methods=['post'])
    def individual(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ReservationCoordinator().reserve_individual(serializer.to_request())
        return self._created(result)

    @extend_schema(
        summary="Book a group training",
        description="Claim seats in a group session and start the payment.",
        request=GroupBookingCreateSerializer,
        responses={
            201: BookingCreatedSerializer,
            400: ErrorResponseSerializer,
            404: OpenApiResponse(description="Group session not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Not enough free seats"),
            502: OpenApiResponse(ErrorResponseSerializer, description="Payment could not be started"),
        },
    )
    @action(detail=False, methods=['post'])
    def group(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = ReservationCoordinator().reserve_group(serializer.to_request())
        return self._created(result)

    @extend_schema(
        summary="Cancel booking",
        description="""
        Cancel a pending or confirmed booking and return its capacity.

        A paid booking is refunded through the payment gateway and turns
        `refunded` when the gateway confirms it.
        """,
        request=BookingCancelSerializer,
        responses={
            200: BookingSerializer,
            404: OpenApiResponse(description="Booking not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Booking is already cancelled or refunded"),
        },
    )
    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        """Cancel a booking"""
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        booking = cancellation_service.cancel(
            pk,
            serializer.validated_data['reason'],
            cancelled_by=request.user.get_username(),
        )
        booking = self.get_queryset().get(id=booking.id)
        return Response(BookingSerializer(booking).data)
