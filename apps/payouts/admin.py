from django.contrib import admin
from .models import InstructorPayout


@admin.register(InstructorPayout)
class InstructorPayoutAdmin(admin.ModelAdmin):
    list_display = [
        'instructor', 'period_start', 'period_end', 'trainings_count',
        'total_revenue', 'instructor_earnings', 'status', 'payment_date'
    ]
    list_filter = ['status', 'payment_method', 'period_end']
    search_fields = ['instructor__full_name']
    readonly_fields = [
        'trainings_count', 'total_revenue', 'instructor_earnings', 'admin_commission',
        'admin_percentage', 'created_by', 'paid_by', 'paid_at', 'created_at', 'updated_at'
    ]
