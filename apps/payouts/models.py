"""
Instructor payout model
"""
from django.db import models
from apps.core.models import BaseModel
from apps.core.utils.constants import PAYOUT_STATUSES, PAYOUT_STATUS_PENDING, PAYOUT_METHODS


class InstructorPayout(BaseModel):
    """
    Earnings of one instructor over one period, payable once.

    Figures are computed when the payout is created and never
    recalculated afterwards; status changes only record the payment.
    """
    instructor = models.ForeignKey(
        'instructors.Instructor',
        on_delete=models.PROTECT,
        related_name='payouts'
    )

    period_start = models.DateField()
    period_end = models.DateField()

    # Computed figures
    trainings_count = models.PositiveIntegerField(default=0)
    total_revenue = models.DecimalField(max_digits=12, decimal_places=2)
    instructor_earnings = models.DecimalField(max_digits=12, decimal_places=2)
    admin_commission = models.DecimalField(max_digits=12, decimal_places=2)
    admin_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        help_text="Commission rate applied when the payout was computed"
    )

    status = models.CharField(
        max_length=20,
        choices=PAYOUT_STATUSES,
        default=PAYOUT_STATUS_PENDING,
        db_index=True
    )

    # Payment record
    payment_method = models.CharField(max_length=20, choices=PAYOUT_METHODS, blank=True)
    payment_date = models.DateField(null=True, blank=True)
    payment_comment = models.TextField(blank=True)

    created_by = models.CharField(max_length=150, blank=True)
    paid_by = models.CharField(max_length=150, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'instructor_payouts'
        verbose_name = 'Instructor Payout'
        verbose_name_plural = 'Instructor Payouts'
        ordering = ['-period_end', 'instructor']
        constraints = [
            models.UniqueConstraint(
                fields=['instructor', 'period_start', 'period_end'],
                name='unique_payout_per_instructor_period',
            ),
        ]
        indexes = [
            models.Index(fields=['instructor', 'status'], name='payouts_instructor_status_idx'),
        ]

    def __str__(self):
        return f"{self.instructor} {self.period_start} - {self.period_end}: {self.instructor_earnings} ({self.status})"
