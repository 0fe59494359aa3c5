"""
Custom exceptions and exception handler
"""
from rest_framework.views import exception_handler
from rest_framework.exceptions import APIException
from rest_framework import status


class ServiceUnavailable(APIException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Service temporarily unavailable, try again later.'
    default_code = 'service_unavailable'


class InvalidOperation(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid operation.'
    default_code = 'invalid_operation'


class ResourceConflict(APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource conflict.'
    default_code = 'resource_conflict'


class BookingValidationError(InvalidOperation):
    """Reservation input rejected before any capacity is touched"""
    default_detail = 'Booking request is invalid.'
    default_code = 'booking_invalid'


class CapacityUnavailable(ResourceConflict):
    """Slot already taken, or session no longer accepting bookings"""
    default_detail = 'This time is no longer available.'
    default_code = 'capacity_unavailable'


class InsufficientSeats(CapacityUnavailable):
    default_detail = 'Not enough free seats in this group session.'
    default_code = 'insufficient_seats'


class PaymentInitiationFailed(ServiceUnavailable):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = 'Payment could not be started.'
    default_code = 'payment_initiation_failed'


class InvalidStateTransition(ResourceConflict):
    default_detail = 'This action is not allowed in the current state.'
    default_code = 'invalid_state_transition'


class PayoutAlreadyExists(ResourceConflict):
    default_detail = 'A payout for this instructor and period already exists.'
    default_code = 'payout_exists'


def custom_exception_handler(exc, context):
    """
    Custom exception handler that adds additional context
    """
    response = exception_handler(exc, context)

    if response is not None:
        detail = response.data.get('detail', str(exc)) if isinstance(response.data, dict) else str(exc)
        custom_response_data = {
            'error': True,
            'message': detail,
            'code': getattr(detail, 'code', None) or getattr(exc, 'default_code', 'error'),
            'status_code': response.status_code,
        }

        # Add field errors if present
        if isinstance(response.data, dict) and 'detail' not in response.data:
            custom_response_data['errors'] = response.data
        elif isinstance(response.data, list):
            custom_response_data['errors'] = response.data

        response.data = custom_response_data

    return response
