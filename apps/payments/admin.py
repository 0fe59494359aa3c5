"""
Payment app admin interface.
"""
from django.contrib import admin
from .models import PaymentTransaction, WebhookLog


@admin.register(PaymentTransaction)
class PaymentTransactionAdmin(admin.ModelAdmin):
    """Admin interface for payment transactions."""
    list_display = ['booking', 'client', 'amount', 'status', 'provider', 'provider_payment_id', 'created_at']
    list_filter = ['status', 'provider', 'created_at']
    search_fields = ['provider_payment_id', 'client__full_name', 'client__phone']
    readonly_fields = [
        'booking', 'client', 'amount', 'provider', 'provider_payment_id', 'provider_status',
        'payment_url', 'metadata', 'completed_at', 'created_at', 'updated_at'
    ]
    ordering = ['-created_at']

    fieldsets = (
        ('Booking', {
            'fields': ('booking', 'client', 'amount', 'description', 'status')
        }),
        ('Gateway', {
            'fields': ('provider', 'provider_payment_id', 'provider_status', 'payment_url', 'completed_at')
        }),
        ('Metadata', {
            'fields': ('metadata', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )


@admin.register(WebhookLog)
class WebhookLogAdmin(admin.ModelAdmin):
    """Admin interface for webhook logs (read-only)."""
    list_display = [
        'provider', 'status', 'payment_id', 'booking_id', 'signature_valid',
        'processed', 'created_at'
    ]
    list_filter = ['provider', 'processed', 'signature_valid', 'created_at']
    search_fields = ['payment_id', 'order_reference', 'error_message']
    readonly_fields = [
        'provider', 'payment_id', 'order_reference', 'booking_id', 'status',
        'signature_valid', 'payload', 'processed', 'error_message',
        'processing_time', 'processed_at', 'created_at', 'updated_at'
    ]
    ordering = ['-created_at']

    def has_add_permission(self, request):
        """Webhooks are created automatically."""
        return False

    def has_delete_permission(self, request, obj=None):
        """Allow deleting old logs for cleanup."""
        return request.user.is_superuser

    fieldsets = (
        ('Webhook Details', {
            'fields': ('provider', 'status', 'payment_id', 'order_reference', 'booking_id', 'signature_valid')
        }),
        ('Processing', {
            'fields': ('processed', 'error_message', 'processing_time', 'processed_at')
        }),
        ('Payload', {
            'fields': ('payload',),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
