"""Views for the contract scheduling API."""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView, exception_handler, set_rollback

from . import audit, services
from .exceptions import ConflictError, NotFoundError, ShiftbookError, ValidationError
from .payroll import CENTS
from .serializers import (
    ContractCreateSerializer,
    ContractListQuerySerializer,
    ContractReadSerializer,
    ContractReplaceSerializer,
    ContractStatusSerializer,
    ContractUpdateSerializer,
    DateRangeQuerySerializer,
    ManualShiftCreateSerializer,
    PayrollQuerySerializer,
    PayrollSummaryQuerySerializer,
    ShiftConfirmSerializer,
    ShiftOccurrenceReadSerializer,
)
from .types import CLEARABLE_CONTRACT_FIELDS, ContractCreateData, ContractUpdateData


logger = logging.getLogger(__name__)

ERROR_STATUS = (
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
)


def api_exception_handler(exc, context):
    """Map domain errors to 400/404/409 responses; defer everything else to DRF."""
    if isinstance(exc, ShiftbookError):
        set_rollback()
        for error_class, http_status in ERROR_STATUS:
            if isinstance(exc, error_class):
                return Response({'message': exc.message, 'errors': exc.errors}, status=http_status)
        logger.error('Unmapped domain error: %s', exc)
        return Response({'message': exc.message, 'errors': exc.errors}, status=status.HTTP_400_BAD_REQUEST)
    return exception_handler(exc, context)


def summary_payload(summary):
    return {
        'hours': str(summary.hours.quantize(CENTS)),
        'earnings': str(summary.earnings),
    }


class ContractListCreateView(APIView):
    """
    List contracts or create a new one.

    GET /api/contracts/?status=active&on=YYYY-MM-DD - List contracts
    POST /api/contracts/ - Create a contract and seed its shifts
    """

    def get(self, request):
        """List contracts, optionally filtered by status and a covered date."""
        query_serializer = ContractListQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        data = query_serializer.validated_data
        contracts = services.list_contracts(data.get('status'), data.get('on'))
        serializer = ContractReadSerializer(contracts, many=True)
        return Response(serializer.data)

    def post(self, request):
        """Create a contract with optional shift seeding."""
        serializer = ContractCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        result = services.create_contract(ContractCreateData(
            name=data['name'],
            facility=data.get('facility', ''),
            role=data.get('role', ''),
            start_date=data['start_date'],
            end_date=data['end_date'],
            timezone=data.get('timezone'),
            base_rate=data['base_rate'],
            overtime_rate=data.get('overtime_rate'),
            weekly_hours_threshold=data.get('weekly_hours_threshold'),
            pattern=data['schedule']['pattern'],
            seed_shifts=data['seed_shifts'],
        ))

        contract = services.get_contract(result.contract.pk)
        return Response({
            'contract': ContractReadSerializer(contract).data,
            'seed_result': {
                'created': result.seed_result.created,
                'enabled_days': result.seed_result.enabled_days,
                'total_days': result.seed_result.total_days,
            },
        }, status=status.HTTP_201_CREATED)


class ContractDetailView(APIView):
    """
    Retrieve or update a contract.

    GET /api/contracts/{id}/ - Retrieve contract
    PUT /api/contracts/{id}/ - Replace contract and resync its shifts
    PATCH /api/contracts/{id}/ - Update some fields and resync its shifts
    """

    def get(self, request, pk):
        """Retrieve a contract."""
        serializer = ContractReadSerializer(services.get_contract(pk))
        return Response(serializer.data)

    def put(self, request, pk):
        """Replace a contract; omitted nullable fields are cleared."""
        serializer = ContractReplaceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        cleared = frozenset(name for name in CLEARABLE_CONTRACT_FIELDS if data.get(name) is None)
        return self._update(pk, data, cleared)

    def patch(self, request, pk):
        """Update the given fields of a contract; explicit nulls clear them."""
        serializer = ContractUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        cleared = frozenset(
            name for name in CLEARABLE_CONTRACT_FIELDS if name in data and data[name] is None
        )
        return self._update(pk, data, cleared)

    def _update(self, pk, data, cleared):
        schedule = data.get('schedule')
        result = services.update_contract(pk, ContractUpdateData(
            name=data.get('name'),
            facility=data.get('facility'),
            role=data.get('role'),
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            timezone=data.get('timezone'),
            base_rate=data.get('base_rate'),
            overtime_rate=data.get('overtime_rate'),
            weekly_hours_threshold=data.get('weekly_hours_threshold'),
            status=data.get('status'),
            pattern=schedule['pattern'] if schedule else None,
            seed_shifts=data.get('seed_shifts', False),
            cleared=cleared,
        ))

        contract = services.get_contract(result.contract.pk)
        return Response({
            'contract': ContractReadSerializer(contract).data,
            'update_result': {
                'created': result.update_result.created,
                'updated': result.update_result.updated,
                'deleted': result.update_result.deleted,
                'finalized_touched': result.update_result.finalized_touched,
            },
        })


class ContractStatusView(APIView):
    """
    Move a contract forward in its lifecycle.

    PATCH /api/contracts/{id}/status/
    """

    def patch(self, request, pk):
        serializer = ContractStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        services.change_contract_status(pk, serializer.validated_data['status'])
        return Response(ContractReadSerializer(services.get_contract(pk)).data)


class ContractPayrollView(APIView):
    """
    Weekly or monthly hours and earnings for a contract.

    GET /api/contracts/{id}/payroll/?date=YYYY-MM-DD[&period=month]
    """

    def get(self, request, pk):
        query_serializer = PayrollQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        data = query_serializer.validated_data
        if data['period'] == 'month':
            month, summary = services.monthly_earnings_for_contract(pk, data['date'])
            bounds = {'month_start': month.month_start, 'month_end': month.month_end}
        else:
            week, summary = services.weekly_earnings_for_contract(pk, data['date'])
            bounds = {'week_start': week.week_start, 'week_end': week.week_end}

        return Response(dict(bounds, **summary_payload(summary)))


class PayrollSummaryView(APIView):
    """
    Hours and earnings across every contract and manual shift.

    GET /api/payroll/?start=X&end=Y[&timezone=Z]
    """

    def get(self, request):
        query_serializer = PayrollSummaryQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        data = query_serializer.validated_data
        summary = services.payroll_summary(data['start'], data['end'], data.get('timezone'))
        return Response(dict({'start': data['start'], 'end': data['end']}, **summary_payload(summary)))


class ContractAuditView(APIView):
    """
    Read-only drift report for a contract's shifts.

    GET /api/contracts/{id}/audit/
    """

    def get(self, request, pk):
        result = audit.audit_contract(pk)
        return Response({
            'contract_id': result.contract_id,
            'contract_name': result.contract_name,
            'status': result.status,
            'expected': result.expected_count,
            'actual': result.actual_count,
            'missing': result.missing,
            'duplicates': result.duplicates,
            'finalized_touched': result.finalized_touched,
        })


class ShiftListCreateView(APIView):
    """
    List shifts within a date range or record a manual shift.

    GET /api/shifts/?start=X&end=Y[&contract=N] - List shifts in range
    POST /api/shifts/ - Create a manual shift
    """

    def get(self, request):
        """List shifts within a date range."""
        query_serializer = DateRangeQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        data = query_serializer.validated_data
        occurrences = services.get_occurrences_in_range(data['start'], data['end'], data.get('contract'))

        serializer = ShiftOccurrenceReadSerializer(occurrences, many=True)
        return Response(serializer.data)

    def post(self, request):
        """Create a manual shift."""
        serializer = ManualShiftCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        data = serializer.validated_data
        occurrence = services.create_manual_occurrence(
            local_date=data['local_date'],
            start=data['start'],
            end=data['end'],
            zone_id=data.get('timezone'),
        )

        response_serializer = ShiftOccurrenceReadSerializer(occurrence)
        return Response(response_serializer.data, status=status.HTTP_201_CREATED)


class ShiftConfirmView(APIView):
    """
    Record actual worked times and finalize a shift.

    POST /api/shifts/{id}/confirm/
    """

    def post(self, request, pk):
        serializer = ShiftConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        occurrence = services.confirm_occurrence_completion(
            pk,
            serializer.validated_data['actual_start'],
            serializer.validated_data['actual_end'],
        )
        return Response(ShiftOccurrenceReadSerializer(occurrence).data)
