from django.contrib import admin
from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = ['client', 'kind', 'instructor', 'date', 'start_time', 'participants_count', 'price_total', 'status']
    search_fields = ['client__full_name', 'client__phone', 'client__email']
    list_filter = ['status', 'kind', 'location', 'date', 'created_at']
    raw_id_fields = ['client', 'slot', 'group_session', 'instructor', 'tariff']
    readonly_fields = ['confirmed_at', 'cancelled_at', 'refunded_at', 'created_at', 'updated_at']
