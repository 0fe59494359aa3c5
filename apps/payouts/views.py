"""
Payout views
"""
import logging

from rest_framework import viewsets, status, mixins
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAdminUser
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse
from django_filters.rest_framework import DjangoFilterBackend
from rest_framework.filters import OrderingFilter

from apps.core.serializers import ErrorResponseSerializer
from .filters import InstructorPayoutFilter
from .models import InstructorPayout
from .serializers import (
    InstructorPayoutSerializer,
    PayoutCreateSerializer,
    PayoutUpdateSerializer,
    PayoutTrainingSerializer,
    EarningsQuerySerializer,
    InstructorEarningsSerializer,
)
from .services import aggregator

logger = logging.getLogger(__name__)


class PayoutViewSet(viewsets.GenericViewSet,
                    mixins.ListModelMixin,
                    mixins.RetrieveModelMixin):
    """
    ViewSet for instructor payouts (administrators only).
    """
    permission_classes = [IsAdminUser]
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = InstructorPayoutFilter
    ordering_fields = ['period_start', 'period_end', 'created_at', 'instructor_earnings']
    ordering = ['-period_end']
    http_method_names = ['get', 'post', 'patch', 'head', 'options']

    def get_serializer_class(self):
        if self.action == 'create':
            return PayoutCreateSerializer
        if self.action == 'partial_update':
            return PayoutUpdateSerializer
        if self.action == 'trainings':
            return PayoutTrainingSerializer
        if self.action == 'earnings':
            return InstructorEarningsSerializer
        return InstructorPayoutSerializer

    def get_queryset(self):
        # Handle schema generation
        if getattr(self, 'swagger_fake_view', False):
            return InstructorPayout.objects.none()
        return InstructorPayout.objects.select_related('instructor')

    @extend_schema(
        summary="List payouts",
        parameters=[
            OpenApiParameter('instructor', str, description='Filter by instructor UUID'),
            OpenApiParameter('status', str, description='pending, paid or cancelled'),
            OpenApiParameter('period_from', str, description='Payouts whose period ends on or after this date'),
            OpenApiParameter('period_to', str, description='Payouts whose period starts on or before this date'),
        ],
        responses={200: InstructorPayoutSerializer(many=True)},
    )
    def list(self, request, *args, **kwargs):
        return super().list(request, *args, **kwargs)

    @extend_schema(
        summary="Get payout details",
        responses={200: InstructorPayoutSerializer, 404: OpenApiResponse(description="Payout not found")},
    )
    def retrieve(self, request, *args, **kwargs):
        return super().retrieve(request, *args, **kwargs)

    @extend_schema(
        summary="Create payout",
        description="""
        Compute an instructor's earnings for a period from paid trainings
        that already took place, and store them as a pending payout.
        """,
        request=PayoutCreateSerializer,
        responses={
            201: InstructorPayoutSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Inverted period or nothing to pay"),
            404: OpenApiResponse(description="Instructor not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Payout for this period already exists"),
        },
    )
    def create(self, request):
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        payout = aggregator.create_payout(
            instructor_id=data['instructor_id'],
            period_start=data['period_start'],
            period_end=data['period_end'],
            created_by=request.user.get_username(),
        )
        return Response(InstructorPayoutSerializer(payout).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Update payout",
        description="Record payment details or mark a pending payout as paid or cancelled.",
        request=PayoutUpdateSerializer,
        responses={
            200: InstructorPayoutSerializer,
            404: OpenApiResponse(description="Payout not found"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Status change not allowed"),
        },
    )
    def partial_update(self, request, pk=None):
        serializer = self.get_serializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        payout = aggregator.update_payout(pk, serializer.validated_data, updated_by=request.user.get_username())
        return Response(InstructorPayoutSerializer(payout).data)

    @extend_schema(
        summary="Payout trainings",
        description="Bookings covered by the payout with the instructor's share of each.",
        responses={200: PayoutTrainingSerializer(many=True)},
    )
    @action(detail=True, methods=['get'])
    def trainings(self, request, pk=None):
        payout = self.get_object()
        rows = [
            {'booking': booking, 'instructor_earnings': earnings}
            for booking, earnings in aggregator.payout_trainings(payout)
        ]
        return Response(PayoutTrainingSerializer(rows, many=True).data)

    @extend_schema(
        summary="Unpaid earnings",
        description="Per-instructor earnings for a period that are not covered by a paid payout.",
        parameters=[
            OpenApiParameter('period_start', str, required=True, description='YYYY-MM-DD'),
            OpenApiParameter('period_end', str, required=True, description='YYYY-MM-DD'),
            OpenApiParameter('instructor', str, description='Limit to one instructor UUID'),
        ],
        responses={200: InstructorEarningsSerializer(many=True), 400: ErrorResponseSerializer},
    )
    @action(detail=False, methods=['get'], filter_backends=[], pagination_class=None)
    def earnings(self, request):
        query = EarningsQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data

        rows = aggregator.unpaid_earnings(data['period_start'], data['period_end'], data.get('instructor'))
        return Response(InstructorEarningsSerializer(rows, many=True).data)
