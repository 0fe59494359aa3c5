"""
Instructor admin configuration
"""
from django.contrib import admin
from .models import Instructor


@admin.register(Instructor)
class InstructorAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'sport_type', 'phone', 'admin_percentage', 'is_active', 'created_at']
    list_filter = ['is_active', 'sport_type', 'created_at']
    search_fields = ['full_name', 'email', 'phone']
    readonly_fields = ['id', 'created_at', 'updated_at']

    fieldsets = (
        ('Basic Information', {
            'fields': ('full_name', 'sport_type', 'email', 'phone', 'is_active')
        }),
        ('Payouts', {
            'fields': ('admin_percentage',)
        }),
        ('Notifications', {
            'fields': ('telegram_chat_id',)
        }),
        ('Metadata', {
            'fields': ('id', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )
