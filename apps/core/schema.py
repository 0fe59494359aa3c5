"""
Custom AutoSchema for automatic tag assignment
"""
from drf_spectacular.openapi import AutoSchema


class CustomAutoSchema(AutoSchema):
    """
    Custom schema that automatically assigns tags based on ViewSet and action
    """

    def get_tags(self):
        """Auto-assign tags based on ViewSet class and action"""
        tags = super().get_tags()

        if tags:
            return tags

        view_name = self.view.__class__.__name__
        action = getattr(self.view, 'action', None)

        tag_mapping = {
            'BookingViewSet': self._get_booking_tag(action),
            'PayoutViewSet': ['Payouts - Admin'],
            'StuckPaymentViewSet': ['Payments - Admin'],
        }

        return tag_mapping.get(view_name, ['api'])

    def _get_booking_tag(self, action):
        """Get tag for booking endpoints"""
        public_actions = ['individual', 'group']
        if action in public_actions:
            return ['Bookings - Public']
        return ['Bookings - Admin']
