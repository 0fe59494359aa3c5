"""
Application-wide constants
"""

# Sport types
SPORT_SKI = 'ski'
SPORT_SNOWBOARD = 'snowboard'
SPORT_BOTH = 'both'

SPORT_TYPES = [
    (SPORT_SKI, 'Ski'),
    (SPORT_SNOWBOARD, 'Snowboard'),
    (SPORT_BOTH, 'Ski and snowboard'),
]

# Slope locations
LOCATION_KULIGA = 'kuliga'
LOCATION_VORONA = 'vorona'

LOCATIONS = [
    (LOCATION_KULIGA, 'Kuliga'),
    (LOCATION_VORONA, 'Vorona'),
]

# Booking kinds
BOOKING_KIND_INDIVIDUAL = 'individual'
BOOKING_KIND_GROUP = 'group'

BOOKING_KINDS = [
    (BOOKING_KIND_INDIVIDUAL, 'Individual'),
    (BOOKING_KIND_GROUP, 'Group'),
]

# Booking statuses
BOOKING_STATUS_PENDING = 'pending'
BOOKING_STATUS_CONFIRMED = 'confirmed'
BOOKING_STATUS_CANCELLED = 'cancelled'
BOOKING_STATUS_REFUNDED = 'refunded'

BOOKING_STATUSES = [
    (BOOKING_STATUS_PENDING, 'Pending'),
    (BOOKING_STATUS_CONFIRMED, 'Confirmed'),
    (BOOKING_STATUS_CANCELLED, 'Cancelled'),
    (BOOKING_STATUS_REFUNDED, 'Refunded'),
]

BOOKING_ACTIVE_STATUSES = (BOOKING_STATUS_PENDING, BOOKING_STATUS_CONFIRMED)

# Slot statuses
SLOT_STATUS_AVAILABLE = 'available'
SLOT_STATUS_HELD = 'held'
SLOT_STATUS_BOOKED = 'booked'
SLOT_STATUS_GROUP = 'group'

SLOT_STATUSES = [
    (SLOT_STATUS_AVAILABLE, 'Available'),
    (SLOT_STATUS_HELD, 'Held'),
    (SLOT_STATUS_BOOKED, 'Booked'),
    (SLOT_STATUS_GROUP, 'Group session'),
]

# Group session statuses
SESSION_STATUS_OPEN = 'open'
SESSION_STATUS_CONFIRMED = 'confirmed'
SESSION_STATUS_CANCELLED = 'cancelled'

SESSION_STATUSES = [
    (SESSION_STATUS_OPEN, 'Open'),
    (SESSION_STATUS_CONFIRMED, 'Confirmed'),
    (SESSION_STATUS_CANCELLED, 'Cancelled'),
]

# Session levels
LEVEL_BEGINNER = 'beginner'
LEVEL_INTERMEDIATE = 'intermediate'
LEVEL_ADVANCED = 'advanced'

SESSION_LEVELS = [
    (LEVEL_BEGINNER, 'Beginner'),
    (LEVEL_INTERMEDIATE, 'Intermediate'),
    (LEVEL_ADVANCED, 'Advanced'),
]

# Tariff kinds
TARIFF_KIND_INDIVIDUAL = 'individual'
TARIFF_KIND_GROUP = 'group'

TARIFF_KINDS = [
    (TARIFF_KIND_INDIVIDUAL, 'Individual'),
    (TARIFF_KIND_GROUP, 'Group'),
]

# Payment transaction statuses
PAYMENT_STATUS_PENDING = 'pending'
PAYMENT_STATUS_COMPLETED = 'completed'
PAYMENT_STATUS_FAILED = 'failed'
PAYMENT_STATUS_CANCELLED = 'cancelled'

PAYMENT_STATUSES = [
    (PAYMENT_STATUS_PENDING, 'Pending'),
    (PAYMENT_STATUS_COMPLETED, 'Completed'),
    (PAYMENT_STATUS_FAILED, 'Failed'),
    (PAYMENT_STATUS_CANCELLED, 'Cancelled'),
]

# Normalised gateway signals
GATEWAY_SUCCESS = 'SUCCESS'
GATEWAY_FAILED = 'FAILED'
GATEWAY_REFUNDED = 'REFUNDED'

# Payout statuses
PAYOUT_STATUS_PENDING = 'pending'
PAYOUT_STATUS_PAID = 'paid'
PAYOUT_STATUS_CANCELLED = 'cancelled'

PAYOUT_STATUSES = [
    (PAYOUT_STATUS_PENDING, 'Pending'),
    (PAYOUT_STATUS_PAID, 'Paid'),
    (PAYOUT_STATUS_CANCELLED, 'Cancelled'),
]

# Payout payment methods
PAYOUT_METHOD_CARD = 'card'
PAYOUT_METHOD_CASH = 'cash'
PAYOUT_METHOD_TRANSFER = 'transfer'

PAYOUT_METHODS = [
    (PAYOUT_METHOD_CARD, 'Card'),
    (PAYOUT_METHOD_CASH, 'Cash'),
    (PAYOUT_METHOD_TRANSFER, 'Bank transfer'),
]

# Cancellation reasons
CANCEL_REASON_INIT_FAILED = 'payment initiation failed'
CANCEL_REASON_GATEWAY_REJECTED = 'payment rejected by gateway'
CANCEL_REASON_HOLD_EXPIRED = 'payment not completed in time'
CANCEL_REASON_REFUNDED = 'payment refunded'

# PaymentTransaction.metadata keys
PAYMENT_METADATA_REFUND = 'refund'
PAYMENT_METADATA_LATE_PAYMENT = 'late_payment'
PAYMENT_METADATA_REBOOKED = 'rebooked'
