"""
Admin configuration for the contracts app.
"""

from django.contrib import admin
from .models import Contract, ContractScheduleDay, ShiftOccurrence


class ContractScheduleDayInline(admin.TabularInline):
    model = ContractScheduleDay
    extra = 0
    max_num = 7
    fields = ['weekday', 'enabled', 'start_local', 'end_local']
    ordering = ['weekday']


@admin.register(Contract)
class ContractAdmin(admin.ModelAdmin):
    """Admin interface for Contract model."""

    list_display = ['name', 'facility', 'role', 'start_date', 'end_date', 'timezone', 'status']
    list_filter = ['status', 'timezone', 'created_at']
    search_fields = ['name', 'facility', 'role']
    date_hierarchy = 'start_date'
    inlines = [ContractScheduleDayInline]

    fieldsets = (
        ('Assignment', {
            'fields': ('name', 'facility', 'role', 'status')
        }),
        ('Dates', {
            'fields': ('start_date', 'end_date', 'timezone')
        }),
        ('Pay', {
            'fields': ('base_rate', 'overtime_rate', 'weekly_hours_threshold')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']


@admin.register(ShiftOccurrence)
class ShiftOccurrenceAdmin(admin.ModelAdmin):
    """Admin interface for ShiftOccurrence model."""

    list_display = ['local_date', 'contract', 'start_utc', 'end_utc', 'source', 'status']
    list_filter = ['status', 'source', 'contract']
    date_hierarchy = 'local_date'
    list_select_related = ['contract']

    fieldsets = (
        ('Shift', {
            'fields': ('contract', 'local_date', 'source')
        }),
        ('Schedule', {
            'fields': ('start_utc', 'end_utc')
        }),
        ('Completion', {
            'fields': ('status', 'actual_start', 'actual_end')
        }),
        ('Metadata', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    readonly_fields = ['created_at', 'updated_at']
