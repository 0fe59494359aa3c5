"""
Payment serializers
"""
from rest_framework import serializers

from apps.core.utils.constants import PAYMENT_METADATA_LATE_PAYMENT
from .models import PaymentTransaction


class StuckPaymentSerializer(serializers.ModelSerializer):
    """Collected payment of a cancelled booking"""
    booking_id = serializers.UUIDField(source='booking.id', read_only=True)
    booking_kind = serializers.CharField(source='booking.kind', read_only=True)
    booking_status = serializers.CharField(source='booking.status', read_only=True)
    cancellation_reason = serializers.CharField(source='booking.cancellation_reason', read_only=True)
    date = serializers.DateField(source='booking.date', read_only=True)
    start_time = serializers.TimeField(source='booking.start_time', read_only=True)
    instructor_name = serializers.CharField(source='booking.instructor.full_name', read_only=True, default=None)
    client_name = serializers.CharField(source='client.full_name', read_only=True)
    client_phone = serializers.CharField(source='client.phone', read_only=True)
    paid_after_cancellation = serializers.SerializerMethodField()

    class Meta:
        model = PaymentTransaction
        fields = [
            'id', 'booking_id', 'booking_kind', 'booking_status', 'cancellation_reason',
            'date', 'start_time', 'instructor_name', 'client_name', 'client_phone',
            'amount', 'status', 'provider', 'provider_payment_id', 'provider_status',
            'paid_after_cancellation', 'completed_at', 'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def get_paid_after_cancellation(self, obj) -> bool:
        return PAYMENT_METADATA_LATE_PAYMENT in obj.metadata
