"""
Booking serializers
"""
from rest_framework import serializers

from apps.core.utils.constants import SPORT_TYPES, LOCATIONS
from .models import Booking
from .services.reservation import (
    ContactDetails,
    Participant,
    IndividualBookingRequest,
    GroupBookingRequest,
)


class ContactSerializer(serializers.Serializer):
    """Payer contact details"""
    full_name = serializers.CharField(max_length=255)
    phone = serializers.CharField(max_length=20)
    email = serializers.CharField(max_length=254)
    birth_date = serializers.DateField()


class ParticipantSerializer(serializers.Serializer):
    full_name = serializers.CharField(max_length=255)
    birth_year = serializers.IntegerField()


class IndividualBookingCreateSerializer(serializers.Serializer):
    """Input serializer for booking an instructor slot"""
    contact = ContactSerializer()
    slot_id = serializers.UUIDField()
    instructor_id = serializers.UUIDField()
    tariff_id = serializers.UUIDField()
    date = serializers.DateField()
    sport_type = serializers.ChoiceField(choices=SPORT_TYPES)
    location = serializers.ChoiceField(choices=LOCATIONS, required=False)
    participants = ParticipantSerializer(many=True, allow_empty=False)
    consent_confirmed = serializers.BooleanField(default=False)

    def to_request(self) -> IndividualBookingRequest:
        data = self.validated_data
        return IndividualBookingRequest(
            contact=ContactDetails(**data['contact']),
            slot_id=data['slot_id'],
            instructor_id=data['instructor_id'],
            tariff_id=data['tariff_id'],
            date=data['date'],
            sport_type=data['sport_type'],
            participants=[Participant(**p) for p in data['participants']],
            location=data.get('location'),
            consent_confirmed=data['consent_confirmed'],
        )


class GroupBookingCreateSerializer(serializers.Serializer):
    """Input serializer for booking seats in a group session"""
    contact = ContactSerializer()
    group_session_id = serializers.UUIDField()
    participants_count = serializers.IntegerField(min_value=1)
    participants_names = serializers.ListField(
        child=serializers.CharField(max_length=255, allow_blank=True),
        required=False,
        default=list
    )
    consent_confirmed = serializers.BooleanField(default=False)

    def to_request(self) -> GroupBookingRequest:
        data = self.validated_data
        return GroupBookingRequest(
            contact=ContactDetails(**data['contact']),
            group_session_id=data['group_session_id'],
            participants_count=data['participants_count'],
            participants_names=data['participants_names'],
            consent_confirmed=data['consent_confirmed'],
        )


class BookingCreatedSerializer(serializers.Serializer):
    """Response after a booking was reserved and its payment started"""
    success = serializers.BooleanField()
    booking_id = serializers.UUIDField()
    payment_url = serializers.URLField()


class BookingSerializer(serializers.ModelSerializer):
    """Detailed booking serializer for output"""
    client_name = serializers.CharField(source='client.full_name', read_only=True)
    client_phone = serializers.CharField(source='client.phone', read_only=True)
    client_email = serializers.CharField(source='client.email', read_only=True)
    instructor_name = serializers.CharField(source='instructor.full_name', read_only=True, default=None)
    tariff_name = serializers.CharField(source='tariff.name', read_only=True, default=None)
    payment_status = serializers.SerializerMethodField()
    payment_url = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            'id', 'kind', 'status',
            'client', 'client_name', 'client_phone', 'client_email',
            'slot', 'group_session', 'instructor', 'instructor_name',
            'tariff', 'tariff_name',
            'date', 'start_time', 'end_time', 'location', 'sport_type',
            'participants_count', 'participants_names',
            'price_per_person', 'price_total',
            'payment_status', 'payment_url',
            'confirmed_at', 'cancellation_reason', 'cancelled_at', 'refunded_at',
            'created_at', 'updated_at'
        ]
        read_only_fields = fields

    def _transaction(self, obj):
        try:
            return obj.payment_transaction
        except Booking.payment_transaction.RelatedObjectDoesNotExist:
            return None

    def get_payment_status(self, obj):
        payment_transaction = self._transaction(obj)
        return payment_transaction.status if payment_transaction else None

    def get_payment_url(self, obj):
        payment_transaction = self._transaction(obj)
        return payment_transaction.payment_url if payment_transaction else None


class BookingListSerializer(serializers.ModelSerializer):
    """Simplified booking serializer for lists"""
    client_name = serializers.CharField(source='client.full_name', read_only=True)
    instructor_name = serializers.CharField(source='instructor.full_name', read_only=True, default=None)

    class Meta:
        model = Booking
        fields = [
            'id', 'kind', 'status', 'client_name', 'instructor_name',
            'date', 'start_time', 'end_time', 'location',
            'participants_count', 'price_total', 'created_at'
        ]


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500)
