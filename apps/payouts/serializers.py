"""
Payout serializers
"""
from rest_framework import serializers

from apps.core.utils.constants import PAYOUT_STATUSES, PAYOUT_METHODS
from .models import InstructorPayout


class InstructorPayoutSerializer(serializers.ModelSerializer):
    """Payout serializer for output"""
    instructor_name = serializers.CharField(source='instructor.full_name', read_only=True)

    class Meta:
        model = InstructorPayout
        fields = [
            'id', 'instructor', 'instructor_name', 'period_start', 'period_end',
            'trainings_count', 'total_revenue', 'instructor_earnings',
            'admin_commission', 'admin_percentage', 'status',
            'payment_method', 'payment_date', 'payment_comment',
            'created_by', 'paid_by', 'paid_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields


class PayoutCreateSerializer(serializers.Serializer):
    instructor_id = serializers.UUIDField()
    period_start = serializers.DateField()
    period_end = serializers.DateField()


class PayoutUpdateSerializer(serializers.Serializer):
    """Payment details and status change; figures are not editable"""
    status = serializers.ChoiceField(choices=PAYOUT_STATUSES, required=False)
    payment_method = serializers.ChoiceField(choices=PAYOUT_METHODS, required=False, allow_blank=True)
    payment_date = serializers.DateField(required=False, allow_null=True)
    payment_comment = serializers.CharField(required=False, allow_blank=True)


class PayoutTrainingSerializer(serializers.Serializer):
    booking_id = serializers.UUIDField(source='booking.id')
    kind = serializers.CharField(source='booking.kind')
    date = serializers.DateField(source='booking.date')
    start_time = serializers.TimeField(source='booking.start_time')
    end_time = serializers.TimeField(source='booking.end_time')
    client_name = serializers.CharField(source='booking.client.full_name')
    group_session_id = serializers.UUIDField(source='booking.group_session_id', allow_null=True)
    participants_count = serializers.IntegerField(source='booking.participants_count')
    price_total = serializers.DecimalField(source='booking.price_total', max_digits=10, decimal_places=2)
    instructor_earnings = serializers.DecimalField(max_digits=10, decimal_places=2)


class EarningsQuerySerializer(serializers.Serializer):
    period_start = serializers.DateField()
    period_end = serializers.DateField()
    instructor = serializers.UUIDField(required=False)


class InstructorEarningsSerializer(serializers.Serializer):
    instructor_id = serializers.UUIDField()
    instructor_name = serializers.CharField()
    trainings_count = serializers.IntegerField()
    total_revenue = serializers.DecimalField(max_digits=12, decimal_places=2)
    admin_percentage = serializers.DecimalField(max_digits=5, decimal_places=2)
    admin_commission = serializers.DecimalField(max_digits=12, decimal_places=2)
    instructor_earnings = serializers.DecimalField(max_digits=12, decimal_places=2)
