from django.contrib import admin
from .models import Slot, GroupSession, Tariff


@admin.register(Slot)
class SlotAdmin(admin.ModelAdmin):
    list_display = ['instructor', 'date', 'start_time', 'end_time', 'location', 'status', 'hold_until']
    search_fields = ['instructor__full_name']
    list_filter = ['status', 'location', 'date']
    readonly_fields = ['hold_until', 'hold_transaction']
    date_hierarchy = 'date'


@admin.register(GroupSession)
class GroupSessionAdmin(admin.ModelAdmin):
    list_display = [
        'date', 'start_time', 'instructor', 'sport_type', 'level', 'location',
        'current_participants', 'max_participants', 'price_per_participant', 'status'
    ]
    search_fields = ['instructor__full_name']
    list_filter = ['status', 'sport_type', 'level', 'location']
    readonly_fields = ['current_participants']
    date_hierarchy = 'date'


@admin.register(Tariff)
class TariffAdmin(admin.ModelAdmin):
    list_display = ['name', 'kind', 'duration_minutes', 'participants', 'price', 'is_active']
    list_filter = ['kind', 'is_active']
    search_fields = ['name']
