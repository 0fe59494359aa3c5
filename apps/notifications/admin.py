"""
Admin configuration for notifications app.
"""
from django.contrib import admin
from apps.notifications.models import NotificationLog


@admin.register(NotificationLog)
class NotificationLogAdmin(admin.ModelAdmin):
    """Admin for notification delivery logs."""
    list_display = [
        'id', 'notification_type', 'channel', 'recipient', 'status',
        'sent_at', 'created_at'
    ]
    list_filter = ['notification_type', 'channel', 'status', 'created_at']
    search_fields = ['recipient', 'subject', 'booking_id', 'payout_id']
    readonly_fields = ['created_at', 'updated_at', 'sent_at']
    ordering = ['-created_at']

    fieldsets = (
        ('Delivery', {
            'fields': ('notification_type', 'channel', 'recipient', 'subject')
        }),
        ('Status', {
            'fields': ('status', 'error_message', 'sent_at')
        }),
        ('Related Objects', {
            'fields': ('booking_id', 'payout_id'),
            'classes': ('collapse',)
        }),
        ('Timestamps', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
