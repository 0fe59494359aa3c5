"""
Reservation Coordinator.

A booking request is handled in two steps:

1. One atomic unit locks the capacity row, validates it, claims it and
   inserts the pending Booking and PaymentTransaction.
2. After commit, the payment gateway is called without any lock held.
   If that call fails, a compensating atomic unit cancels the booking,
   fails the transaction and returns the capacity.
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import transaction
from django.utils import timezone

from apps.bookings.models import Booking
from apps.clients.services.registry import upsert_client
from apps.core import messages
from apps.core.exceptions import BookingValidationError, CapacityUnavailable, PaymentInitiationFailed
from apps.core.utils.constants import (
    BOOKING_KIND_INDIVIDUAL,
    BOOKING_KIND_GROUP,
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CANCELLED,
    PAYMENT_STATUS_FAILED,
    SLOT_STATUS_AVAILABLE,
    TARIFF_KIND_GROUP,
    CANCEL_REASON_INIT_FAILED,
)
from apps.core.utils.helpers import local_datetime, normalize_phone, school_now, school_today
from apps.payments.gateways import get_gateway, order_reference_for
from apps.payments.models import PaymentTransaction
from apps.schedules.models import Tariff
from apps.schedules.services.capacity import capacity_service

logger = logging.getLogger(__name__)

MAX_PARTICIPANT_AGE_YEARS = 99


@dataclass
class ContactDetails:
    full_name: str
    phone: str
    email: str
    birth_date: Optional[date]


@dataclass
class Participant:
    full_name: str
    birth_year: Optional[int] = None


@dataclass
class IndividualBookingRequest:
    contact: ContactDetails
    slot_id: object
    instructor_id: object
    tariff_id: object
    date: Optional[date]
    sport_type: str
    participants: List[Participant] = field(default_factory=list)
    location: Optional[str] = None
    consent_confirmed: bool = False


@dataclass
class GroupBookingRequest:
    contact: ContactDetails
    group_session_id: object
    participants_count: int
    participants_names: List[str] = field(default_factory=list)
    consent_confirmed: bool = False


@dataclass
class ReservationResult:
    booking: Booking
    payment_url: str


def _invalid(key):
    return BookingValidationError(messages.BOOKING[key]['error'])


def validate_contact(contact: ContactDetails, consent_confirmed: bool):
    if not consent_confirmed:
        raise _invalid('consent_required')
    if not (contact.full_name or '').strip() or not normalize_phone(contact.phone) \
            or not (contact.email or '').strip() or not contact.birth_date:
        raise _invalid('contact_required')
    try:
        validate_email(contact.email.strip())
    except DjangoValidationError:
        raise _invalid('invalid_email')


def validate_individual_request(request: IndividualBookingRequest):
    """Checks that need no database lock."""
    validate_contact(request.contact, request.consent_confirmed)

    if not (request.slot_id and request.instructor_id and request.tariff_id and request.date):
        raise BookingValidationError(messages.GENERAL['invalid_request']['error'])

    today = school_today()
    if request.date < today or request.date > today + timedelta(days=settings.BOOKING_MAX_DAYS_AHEAD):
        raise _invalid('date_out_of_range')

    if not request.participants:
        raise _invalid('participants_required')
    current_year = today.year
    for participant in request.participants:
        if not (participant.full_name or '').strip() or not participant.birth_year:
            raise _invalid('participants_required')
        if not current_year - MAX_PARTICIPANT_AGE_YEARS <= participant.birth_year <= current_year:
            raise _invalid('invalid_birth_year')


def validate_group_request(request: GroupBookingRequest):
    validate_contact(request.contact, request.consent_confirmed)

    if not request.group_session_id:
        raise BookingValidationError(messages.GENERAL['invalid_request']['error'])
    if request.participants_count < 1:
        raise _invalid('participants_required')
    if request.participants_count > settings.GROUP_MAX_PARTICIPANTS_PER_BOOKING:
        raise _invalid('too_many_participants')

    names = [name.strip() for name in request.participants_names if name and name.strip()]
    if names and len(names) != request.participants_count:
        raise _invalid('participants_required')


def _end_time(day, start, minutes):
    return (datetime.combine(day, start) + timedelta(minutes=minutes)).time()


class ReservationCoordinator:
    """
    Claims capacity for a booking request and starts its payment
    """

    def __init__(self, gateway=None):
        self.gateway = gateway or get_gateway()

    def reserve_individual(self, request: IndividualBookingRequest) -> ReservationResult:
        """
        Book an instructor slot.

        Raises:
            BookingValidationError: bad input
            NotFound: unknown slot
            CapacityUnavailable: slot already held or booked
            InsufficientSeats: group on the slot is full (group tariffs)
            PaymentInitiationFailed: gateway refused; nothing stays claimed
        """
        validate_individual_request(request)
        participants_count = len(request.participants)

        with transaction.atomic():
            try:
                tariff = Tariff.objects.get(id=request.tariff_id, is_active=True)
            except (Tariff.DoesNotExist, ValueError, DjangoValidationError):
                raise _invalid('tariff_not_found')
            if tariff.kind == TARIFF_KIND_GROUP and participants_count > tariff.participants:
                raise _invalid('tariff_participants_exceeded')

            slot = capacity_service.lock_slot(request.slot_id)
            if local_datetime(slot.date, slot.start_time) <= school_now():
                raise CapacityUnavailable(messages.BOOKING['slot_not_available']['error'])
            # A group tariff may join the group already running on the slot
            if tariff.kind != TARIFF_KIND_GROUP and slot.status != SLOT_STATUS_AVAILABLE:
                raise CapacityUnavailable(messages.BOOKING['slot_not_available']['error'])

            instructor = slot.instructor
            if str(slot.instructor_id) != str(request.instructor_id) or slot.date != request.date:
                raise _invalid('slot_mismatch')
            if request.location and slot.location != request.location:
                raise _invalid('slot_mismatch')
            if not instructor.is_active or not instructor.teaches(request.sport_type):
                raise _invalid('instructor_not_available')
            if slot.duration_minutes < tariff.duration_minutes:
                raise _invalid('slot_too_short')

            client = upsert_client(
                full_name=request.contact.full_name.strip(),
                phone=request.contact.phone,
                email=request.contact.email.strip(),
                birth_date=request.contact.birth_date,
            )
            names = [p.full_name.strip() for p in request.participants]

            if tariff.kind == TARIFF_KIND_GROUP:
                session = capacity_service.open_slot_group(slot, tariff, request.sport_type, participants_count)
                if session.sport_type != request.sport_type:
                    raise _invalid('slot_mismatch')
                capacity_service.claim_seats(session, participants_count)
                booking = self._create_group_booking(client, session, participants_count, names, tariff=tariff)
                payment_transaction = self._open_transaction(booking)

                logger.info(
                    f"Group tariff booking {booking.id} created: slot {slot.id}, "
                    f"session {session.id}, client {client.id}, {booking.price_total}"
                )
            else:
                price_per_person = tariff.price_per_person
                booking = Booking.objects.create(
                    client=client,
                    kind=BOOKING_KIND_INDIVIDUAL,
                    slot=slot,
                    instructor=instructor,
                    tariff=tariff,
                    date=slot.date,
                    start_time=slot.start_time,
                    end_time=_end_time(slot.date, slot.start_time, tariff.duration_minutes),
                    location=slot.location,
                    sport_type=request.sport_type,
                    participants_count=participants_count,
                    participants_names=names,
                    price_per_person=price_per_person,
                    price_total=price_per_person * participants_count,
                )
                payment_transaction = self._open_transaction(booking)
                capacity_service.claim_slot(slot, payment_transaction)

                logger.info(
                    f"Individual booking {booking.id} created: slot {slot.id}, "
                    f"client {client.id}, {booking.price_total}"
                )

        return self._start_payment(booking, payment_transaction)

    def reserve_group(self, request: GroupBookingRequest) -> ReservationResult:
        """
        Book seats in a group session.

        Raises:
            BookingValidationError: bad input
            NotFound: unknown group session
            CapacityUnavailable: session cancelled or already started
            InsufficientSeats: fewer free seats than requested
            PaymentInitiationFailed: gateway refused; seats are returned
        """
        validate_group_request(request)
        count = request.participants_count
        names = [name.strip() for name in request.participants_names if name and name.strip()]
        if not names:
            names = [request.contact.full_name.strip()] * count

        with transaction.atomic():
            session = capacity_service.lock_session(request.group_session_id)
            if local_datetime(session.date, session.start_time) <= school_now():
                raise CapacityUnavailable(messages.BOOKING['session_closed']['error'])
            capacity_service.claim_seats(session, count)

            client = upsert_client(
                full_name=request.contact.full_name.strip(),
                phone=request.contact.phone,
                email=request.contact.email.strip(),
                birth_date=request.contact.birth_date,
            )

            booking = self._create_group_booking(client, session, count, names)
            payment_transaction = self._open_transaction(booking)

            logger.info(
                f"Group booking {booking.id} created: session {session.id}, "
                f"{count} seats, client {client.id}, {booking.price_total}"
            )

        return self._start_payment(booking, payment_transaction)

    @staticmethod
    def _create_group_booking(client, session, count, names, tariff=None):
        price_per_person = session.price_per_participant
        return Booking.objects.create(
            client=client,
            kind=BOOKING_KIND_GROUP,
            group_session=session,
            instructor=session.instructor,
            tariff=tariff,
            date=session.date,
            start_time=session.start_time,
            end_time=session.end_time,
            location=session.location,
            sport_type=session.sport_type,
            participants_count=count,
            participants_names=names,
            price_per_person=price_per_person,
            price_total=price_per_person * count,
        )

    def _open_transaction(self, booking):
        return PaymentTransaction.objects.create(
            booking=booking,
            client=booking.client,
            amount=booking.price_total,
            provider=self.gateway.name,
            description=self._description(booking),
        )

    @staticmethod
    def _description(booking):
        kind = 'Group training' if booking.kind == BOOKING_KIND_GROUP else 'Individual training'
        return f"{kind} {booking.date:%d.%m.%Y} {booking.start_time:%H:%M}, {booking.participants_count} pers."

    def _start_payment(self, booking, payment_transaction) -> ReservationResult:
        """
        Call the gateway outside the reservation unit; compensate on failure.
        """
        try:
            result = self.gateway.init_payment(
                order_reference=order_reference_for(booking.id),
                amount=booking.price_total,
                description=payment_transaction.description,
                customer_email=booking.client.email,
                customer_phone=booking.client.phone,
                items=[{
                    'name': payment_transaction.description,
                    'price': booking.price_per_person,
                    'quantity': booking.participants_count,
                }],
            )
        except Exception as e:
            logger.error(f"Payment initiation failed for booking {booking.id}: {e}", exc_info=True)
            try:
                self.compensate(booking.id)
            except Exception:
                logger.error(f"Compensation failed for booking {booking.id}", exc_info=True)
            raise PaymentInitiationFailed(messages.BOOKING['payment_init_failed']['error']) from e

        PaymentTransaction.objects.filter(id=payment_transaction.id).update(
            provider_payment_id=result.payment_id,
            payment_url=result.payment_url,
            updated_at=timezone.now(),
        )
        PaymentTransaction.objects.filter(id=payment_transaction.id, provider_status='').update(
            provider_status=result.status,
        )
        payment_transaction.refresh_from_db()
        logger.info(f"Payment {result.payment_id} started for booking {booking.id}")
        return ReservationResult(booking=booking, payment_url=result.payment_url)

    @staticmethod
    def compensate(booking_id):
        """
        Undo a reservation whose payment never started.

        Returns the capacity to exactly its pre-claim state. A booking that
        is no longer pending has already been settled and is left alone.
        """
        with transaction.atomic():
            booking = Booking.objects.select_for_update().get(id=booking_id)
            if booking.status != BOOKING_STATUS_PENDING:
                logger.warning(f"Booking {booking_id} is {booking.status}, skipping compensation")
                return False

            payment_transaction = PaymentTransaction.objects.select_for_update().get(booking=booking)
            payment_transaction.status = PAYMENT_STATUS_FAILED
            payment_transaction.save(update_fields=['status', 'updated_at'])

            booking.status = BOOKING_STATUS_CANCELLED
            booking.cancellation_reason = CANCEL_REASON_INIT_FAILED
            booking.cancelled_at = timezone.now()
            booking.save(update_fields=['status', 'cancellation_reason', 'cancelled_at', 'updated_at'])

            capacity_service.release_for_booking(booking)

        logger.info(f"Booking {booking_id} cancelled: {CANCEL_REASON_INIT_FAILED}")
        return True
