"""
Serializers for the contract scheduling API.
"""

from rest_framework import serializers

from .conf import get_setting
from .exceptions import ScheduleError
from .models import Contract, ContractScheduleDay, ShiftOccurrence
from .types import ContractStatus, WeeklyPattern


CLOCK_REGEX = r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$'


def default_shift_start():
    return get_setting('DEFAULT_SHIFT_START')


def default_shift_end():
    return get_setting('DEFAULT_SHIFT_END')


class ScheduleDaySerializer(serializers.ModelSerializer):
    """Serializer for reading one weekday slot (output)."""

    weekday_name = serializers.ReadOnlyField()

    class Meta:
        model = ContractScheduleDay
        fields = ['weekday', 'weekday_name', 'enabled', 'start_local', 'end_local']


class ContractReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying Contract (output)."""

    schedule = ScheduleDaySerializer(source='schedule_days', many=True, read_only=True)

    class Meta:
        model = Contract
        fields = [
            'id',
            'name',
            'facility',
            'role',
            'start_date',
            'end_date',
            'timezone',
            'base_rate',
            'overtime_rate',
            'weekly_hours_threshold',
            'status',
            'schedule',
            'created_at',
            'updated_at',
        ]


class ScheduleDayInputSerializer(serializers.Serializer):
    weekday = serializers.IntegerField(min_value=0, max_value=6)
    enabled = serializers.BooleanField()
    start = serializers.RegexField(CLOCK_REGEX, required=False, allow_null=True)
    end = serializers.RegexField(CLOCK_REGEX, required=False, allow_null=True)


class ScheduleInputSerializer(serializers.Serializer):
    """Weekly pattern input: defaults plus exactly seven weekday entries."""

    default_start = serializers.RegexField(CLOCK_REGEX, default=default_shift_start)
    default_end = serializers.RegexField(CLOCK_REGEX, default=default_shift_end)
    days = ScheduleDayInputSerializer(many=True)

    def validate(self, data):
        """Build the WeeklyPattern, rejecting missing or repeated weekdays."""
        try:
            data['pattern'] = WeeklyPattern.from_days(
                data['days'],
                default_start=data['default_start'],
                default_end=data['default_end'],
            )
        except ScheduleError as exc:
            raise serializers.ValidationError({'days': exc.errors})
        return data


class ContractCreateSerializer(serializers.Serializer):
    """Serializer for creating a contract with options."""

    name = serializers.CharField(max_length=200)
    facility = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    role = serializers.CharField(max_length=200, required=False, allow_blank=True, default='')
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    timezone = serializers.CharField(max_length=64, required=False, allow_null=True)
    base_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    overtime_rate = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    weekly_hours_threshold = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    schedule = ScheduleInputSerializer()
    seed_shifts = serializers.BooleanField(default=True)


class ContractUpdateSerializer(serializers.Serializer):
    """Serializer for updating a contract; every field is optional."""

    name = serializers.CharField(max_length=200, required=False)
    facility = serializers.CharField(max_length=200, required=False, allow_blank=True)
    role = serializers.CharField(max_length=200, required=False, allow_blank=True)
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)
    timezone = serializers.CharField(max_length=64, required=False)
    base_rate = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    overtime_rate = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    weekly_hours_threshold = serializers.DecimalField(
        max_digits=5, decimal_places=2, min_value=0, required=False, allow_null=True
    )
    status = serializers.ChoiceField(choices=ContractStatus.choices(), required=False)
    schedule = ScheduleInputSerializer(required=False)
    seed_shifts = serializers.BooleanField(default=False)


class ContractReplaceSerializer(ContractCreateSerializer):
    """
    Serializer for replacing a contract (PUT).

    Omitted optional fields fall back to their empty value, so a missing
    overtime rate or threshold is cleared rather than kept.
    """

    timezone = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=ContractStatus.choices(), required=False)
    seed_shifts = serializers.BooleanField(default=False)


class ContractStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=ContractStatus.choices())


class ShiftOccurrenceReadSerializer(serializers.ModelSerializer):
    """Serializer for reading/displaying ShiftOccurrence (output)."""

    contract_id = serializers.IntegerField(allow_null=True, read_only=True)
    is_finalized = serializers.BooleanField(read_only=True)

    class Meta:
        model = ShiftOccurrence
        fields = [
            'id',
            'contract_id',
            'local_date',
            'start_utc',
            'end_utc',
            'source',
            'status',
            'is_finalized',
            'actual_start',
            'actual_end',
            'created_at',
            'updated_at',
        ]


class ManualShiftCreateSerializer(serializers.Serializer):
    """Serializer for creating a shift outside any contract."""

    local_date = serializers.DateField()
    start = serializers.RegexField(CLOCK_REGEX)
    end = serializers.RegexField(CLOCK_REGEX)
    timezone = serializers.CharField(max_length=64, required=False, allow_null=True)


class ShiftConfirmSerializer(serializers.Serializer):
    actual_start = serializers.DateTimeField()
    actual_end = serializers.DateTimeField()


class DateRangeQuerySerializer(serializers.Serializer):
    """Serializer for date range query parameters."""

    start = serializers.DateField(required=True)
    end = serializers.DateField(required=True)
    contract = serializers.IntegerField(required=False, min_value=1)

    def validate(self, data):
        """Ensure start is not after end."""
        if data['start'] > data['end']:
            raise serializers.ValidationError(
                "Start date must be on or before end date."
            )
        return data


class PayrollQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=True)
    period = serializers.ChoiceField(choices=['week', 'month'], default='week')


class PayrollSummaryQuerySerializer(DateRangeQuerySerializer):
    """Date range plus the zone manual shifts are read in."""

    contract = None
    timezone = serializers.CharField(max_length=64, required=False)


class ContractListQuerySerializer(serializers.Serializer):
    status = serializers.CharField(required=False)
    on = serializers.DateField(required=False)
