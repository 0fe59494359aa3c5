"""
User-friendly messages for API responses.

These messages are designed to be:
- Simple and jargon-free
- Actionable with clear next steps
- Helpful for non-technical users
"""

# ============================================
# Booking Messages
# ============================================

BOOKING = {
    'consent_required': {
        'error': "Please accept the terms to continue.",
        'message': "We need your consent to the booking rules and personal data processing.",
        'next_steps': "Tick the consent box and submit the form again."
    },
    'contact_required': {
        'error': "Some of your contact details are missing.",
        'message': "Full name, phone, email and birth date are required for a booking.",
        'next_steps': "Fill in all contact fields and try again."
    },
    'invalid_email': {
        'error': "This email address doesn't look right.",
        'message': "We send your booking confirmation to this address.",
        'next_steps': "Check the spelling of your email and try again."
    },
    'date_out_of_range': {
        'error': "This date can't be booked online.",
        'message': "Individual trainings can be booked from today up to two weeks ahead.",
        'next_steps': "Please choose a date within the booking window."
    },
    'participants_required': {
        'error': "Please tell us who is coming.",
        'message': "Each participant needs a name and a birth year.",
        'next_steps': "Add the participants and try again."
    },
    'invalid_birth_year': {
        'error': "A participant's birth year doesn't look right.",
        'message': "Birth year must be within the last 99 years.",
        'next_steps': "Correct the birth year and try again."
    },
    'too_many_participants': {
        'error': "Too many participants for one booking.",
        'message': "One group booking can include a limited number of people.",
        'next_steps': "Split the group into several bookings."
    },
    'tariff_not_found': {
        'error': "This tariff is no longer available.",
        'message': "The selected price option was changed or removed.",
        'next_steps': "Reload the page and choose a tariff again."
    },
    'tariff_participants_exceeded': {
        'error': "This tariff is for fewer people.",
        'message': "The number of participants exceeds what the selected tariff covers.",
        'next_steps': "Pick a tariff for a larger group or reduce the participants."
    },
    'slot_not_available': {
        'error': "This time slot is no longer available.",
        'message': "Someone may have just booked this slot.",
        'next_steps': "Please select a different time from the available slots."
    },
    'slot_mismatch': {
        'error': "This slot doesn't match your choice.",
        'message': "The slot belongs to a different instructor, sport or location.",
        'next_steps': "Reload the schedule and choose again."
    },
    'slot_too_short': {
        'error': "This slot is too short for the selected training.",
        'message': "The training duration is longer than the free window.",
        'next_steps': "Pick a longer slot or a shorter tariff."
    },
    'instructor_not_available': {
        'error': "This instructor is not taking bookings.",
        'message': "The instructor is inactive or doesn't teach this sport.",
        'next_steps': "Please choose another instructor."
    },
    'session_closed': {
        'error': "This group session is not accepting bookings.",
        'message': "The session was cancelled or already started.",
        'next_steps': "Please choose another group session."
    },
    'insufficient_seats': {
        'error': "Not enough free seats in this group.",
        'message': "Other participants booked the remaining seats.",
        'next_steps': "Reduce the number of participants or choose another session."
    },
    'payment_init_failed': {
        'error': "We couldn't start the payment.",
        'message': "The payment provider did not respond. Your booking was not created.",
        'next_steps': "Please try again in a few minutes."
    },
    'cannot_cancel': {
        'error': "This booking cannot be cancelled.",
        'message': "Only pending or confirmed bookings can be cancelled.",
    },
}

# ============================================
# Payout Messages
# ============================================

PAYOUT = {
    'already_exists': {
        'error': "A payout for this period already exists.",
        'message': "Each instructor can have only one payout per period.",
        'next_steps': "Open the existing payout instead of creating a new one."
    },
    'invalid_period': {
        'error': "The period is invalid.",
        'message': "Period start must not be later than period end.",
    },
    'no_trainings': {
        'error': "Nothing to pay out for this period.",
        'message': "The instructor has no completed trainings in this period that are not already paid.",
    },
    'invalid_transition': {
        'error': "This payout status change is not allowed.",
        'message': "Only pending payouts can be marked as paid or cancelled.",
    },
}

# ============================================
# General Messages
# ============================================

GENERAL = {
    'server_error': {
        'error': "Something went wrong on our end.",
        'message': "We're sorry, but we couldn't complete your request.",
        'next_steps': "Please try again in a few moments. If this continues, contact support."
    },
    'invalid_request': {
        'error': "We couldn't understand your request.",
        'message': "Some required information is missing or incorrect.",
        'next_steps': "Please check your input and try again."
    },
    'not_found': {
        'error': "Not found.",
        'message': "We couldn't find what you're looking for.",
        'next_steps': "Please check the link or go back to the previous page."
    },
}
