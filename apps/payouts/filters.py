"""
Payout filters
"""
import django_filters

from .models import InstructorPayout


class InstructorPayoutFilter(django_filters.FilterSet):
    """Period filters select payouts overlapping the given dates."""
    period_from = django_filters.DateFilter(field_name='period_end', lookup_expr='gte')
    period_to = django_filters.DateFilter(field_name='period_start', lookup_expr='lte')

    class Meta:
        model = InstructorPayout
        fields = ['instructor', 'status', 'period_from', 'period_to']
