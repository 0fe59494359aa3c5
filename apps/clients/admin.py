"""
Client admin configuration
"""
from django.contrib import admin
from .models import Client


@admin.register(Client)
class ClientAdmin(admin.ModelAdmin):
    list_display = ['full_name', 'phone', 'email', 'birth_date', 'created_at']
    search_fields = ['full_name', 'phone', 'email']
    readonly_fields = ['id', 'created_at', 'updated_at']
